"""Reading goal service."""

import logging
from datetime import date
from typing import Optional

from app.domain.entities import ReadingGoal
from app.domain.goals import DEFAULT_GOAL_TARGET, recount_goal
from app.domain.repositories import IBookRepository, IReadingGoalRepository
from app.domain.services import IReadingGoalService

logger = logging.getLogger(__name__)


class ReadingGoalService(IReadingGoalService):
    """Keeps each year's goal in step with the number of read books."""

    def __init__(
        self,
        goal_repository: IReadingGoalRepository,
        book_repository: IBookRepository,
        default_target: int = DEFAULT_GOAL_TARGET,
    ):
        self.goal_repository = goal_repository
        self.book_repository = book_repository
        self.default_target = default_target

    async def get_goal(self, year: Optional[int] = None) -> ReadingGoal:
        year = year or date.today().year
        goal = await self.goal_repository.get(year)
        if goal is None:
            logger.info("No reading goal for %d yet, creating one", year)
            goal = await self.sync(year)
        return goal

    async def set_target(self, target: int, year: Optional[int] = None) -> ReadingGoal:
        if not isinstance(target, int) or target < 1:
            raise ValueError("Valid target number is required")
        year = year or date.today().year
        books = await self.book_repository.list_all()
        goal = recount_goal(books, year, default_target=target)
        saved = await self.goal_repository.save(goal)
        logger.info("Reading goal for %d set to %d (current %d)", year, target, saved.current)
        return saved

    async def sync(self, year: Optional[int] = None) -> ReadingGoal:
        year = year or date.today().year
        books = await self.book_repository.list_all()
        existing = await self.goal_repository.get(year)
        goal = recount_goal(books, year, existing=existing, default_target=self.default_target)
        saved = await self.goal_repository.save(goal)
        logger.info("Reading goal for %d synced: %d/%d", year, saved.current, saved.target)
        return saved
