"""Reading goal API routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from app.api.schemas import ReadingGoalResponse, ReadingGoalUpdate
from app.core.dependencies import get_goal_service
from app.domain.services import IReadingGoalService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/reading-goal", tags=["reading-goal"])


@router.get("", response_model=ReadingGoalResponse)
async def get_reading_goal(
    goal_service: Annotated[IReadingGoalService, Depends(get_goal_service)],
) -> ReadingGoalResponse:
    """This year's goal; created with the default target on first access."""
    return ReadingGoalResponse.model_validate(await goal_service.get_goal())


@router.put("", response_model=ReadingGoalResponse)
async def set_reading_goal(
    payload: ReadingGoalUpdate,
    goal_service: Annotated[IReadingGoalService, Depends(get_goal_service)],
) -> ReadingGoalResponse:
    try:
        goal = await goal_service.set_target(payload.target)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ReadingGoalResponse.model_validate(goal)


@router.post("/sync", response_model=ReadingGoalResponse)
async def sync_reading_goal(
    goal_service: Annotated[IReadingGoalService, Depends(get_goal_service)],
) -> ReadingGoalResponse:
    """Recount the read books and store the result."""
    return ReadingGoalResponse.model_validate(await goal_service.sync())
