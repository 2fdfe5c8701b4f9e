"""Repository implementations."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.entities import Article, Book, Profile, ReadingGoal, ReadingStatus, Review, Shelf
from app.domain.repositories import (
    IArticleRepository,
    IBookRepository,
    IProfileRepository,
    IReadingGoalRepository,
    IReviewRepository,
    IShelfRepository,
)
from app.infrastructure.database.models import (
    ArticleModel,
    BookModel,
    ProfileModel,
    ReadingGoalModel,
    ReviewModel,
    ShelfModel,
)

PROFILE_ID = "default"


# ---------------------------------------------------------------------------
# Book Repository
# ---------------------------------------------------------------------------
class BookRepository(IBookRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, book: Book) -> Book:
        db_book = BookModel(
            id=book.id,
            title=book.title,
            author=book.author,
            status=book.status.value,
            progress=book.progress,
            total_pages=book.total_pages,
            tags=list(book.tags),
            shelf_id=book.shelf_id,
            cover_url=book.cover_url,
            isbn=book.isbn,
            description=book.description,
            date_added=book.date_added,
            created_at=book.created_at or datetime.utcnow(),
            reviews=[ReviewRepository._to_model(book.id, r) for r in book.reviews],
        )
        self.session.add(db_book)
        await self.session.commit()
        return await self.get_by_id(book.id)

    async def get_by_id(self, book_id: UUID) -> Optional[Book]:
        # populate_existing reloads reviews written through ReviewRepository in this session
        result = await self.session.execute(
            select(BookModel)
            .where(BookModel.id == book_id)
            .execution_options(populate_existing=True)
        )
        db_book = result.scalar_one_or_none()
        return self._to_entity(db_book) if db_book else None

    async def list_all(self) -> list[Book]:
        result = await self.session.execute(
            select(BookModel)
            .order_by(BookModel.date_added.desc(), BookModel.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(book) for book in result.scalars().all()]

    async def update(self, book: Book) -> Book:
        result = await self.session.execute(select(BookModel).where(BookModel.id == book.id))
        db_book = result.scalar_one()
        db_book.title = book.title
        db_book.author = book.author
        db_book.status = book.status.value
        db_book.progress = book.progress
        db_book.total_pages = book.total_pages
        db_book.tags = list(book.tags)
        db_book.shelf_id = book.shelf_id
        db_book.cover_url = book.cover_url
        db_book.isbn = book.isbn
        db_book.description = book.description
        db_book.updated_at = datetime.utcnow()
        await self.session.commit()
        return self._to_entity(db_book)

    async def delete(self, book_id: UUID) -> bool:
        result = await self.session.execute(
            select(BookModel)
            .where(BookModel.id == book_id)
            .execution_options(populate_existing=True)
        )
        db_book = result.scalar_one_or_none()
        if db_book:
            await self.session.delete(db_book)
            await self.session.commit()
            return True
        return False

    @staticmethod
    def _to_entity(model: BookModel) -> Book:
        return Book(
            id=model.id,
            title=model.title,
            author=model.author,
            status=ReadingStatus(model.status),
            progress=model.progress,
            total_pages=model.total_pages,
            tags=tuple(model.tags or ()),
            shelf_id=model.shelf_id,
            reviews=tuple(ReviewRepository._to_entity(r) for r in model.reviews),
            date_added=model.date_added,
            cover_url=model.cover_url,
            isbn=model.isbn,
            description=model.description,
            created_at=model.created_at,
        )


# ---------------------------------------------------------------------------
# Review Repository
# ---------------------------------------------------------------------------
class ReviewRepository(IReviewRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, book_id: UUID, review: Review) -> Review:
        db_review = self._to_model(book_id, review)
        self.session.add(db_review)
        await self.session.commit()
        await self.session.refresh(db_review)
        return self._to_entity(db_review)

    async def get(self, book_id: UUID, review_id: UUID) -> Optional[Review]:
        db_review = await self._get_model(book_id, review_id)
        return self._to_entity(db_review) if db_review else None

    async def update(self, book_id: UUID, review: Review) -> Review:
        db_review = await self._get_model(book_id, review.id)
        if db_review is None:
            raise ValueError("Review not found")
        db_review.content = review.content
        db_review.rating = review.rating
        await self.session.commit()
        return self._to_entity(db_review)

    async def delete(self, book_id: UUID, review_id: UUID) -> bool:
        db_review = await self._get_model(book_id, review_id)
        if db_review:
            await self.session.delete(db_review)
            await self.session.commit()
            return True
        return False

    async def _get_model(self, book_id: UUID, review_id: UUID) -> Optional[ReviewModel]:
        result = await self.session.execute(
            select(ReviewModel).where(
                ReviewModel.id == review_id, ReviewModel.book_id == book_id
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_model(book_id: UUID, review: Review) -> ReviewModel:
        return ReviewModel(
            id=review.id,
            book_id=book_id,
            content=review.content,
            rating=review.rating,
            date_added=review.date_added,
            created_at=datetime.utcnow(),
        )

    @staticmethod
    def _to_entity(model: ReviewModel) -> Review:
        return Review(
            id=model.id,
            content=model.content,
            rating=model.rating,
            date_added=model.date_added,
        )


# ---------------------------------------------------------------------------
# Shelf Repository
# ---------------------------------------------------------------------------
class ShelfRepository(IShelfRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, shelf: Shelf) -> Shelf:
        db_shelf = ShelfModel(id=shelf.id, name=shelf.name, created_at=shelf.created_at)
        self.session.add(db_shelf)
        await self.session.commit()
        await self.session.refresh(db_shelf)
        return self._to_entity(db_shelf, book_count=0)

    async def get_by_id(self, shelf_id: UUID) -> Optional[Shelf]:
        result = await self.session.execute(self._with_counts().where(ShelfModel.id == shelf_id))
        row = result.one_or_none()
        return self._to_entity(*row) if row else None

    async def get_by_name(self, name: str) -> Optional[Shelf]:
        result = await self.session.execute(self._with_counts().where(ShelfModel.name == name))
        row = result.one_or_none()
        return self._to_entity(*row) if row else None

    async def list_all(self) -> list[Shelf]:
        result = await self.session.execute(
            self._with_counts().order_by(ShelfModel.created_at.asc())
        )
        return [self._to_entity(model, count) for model, count in result.all()]

    async def rename(self, shelf_id: UUID, name: str) -> Optional[Shelf]:
        result = await self.session.execute(select(ShelfModel).where(ShelfModel.id == shelf_id))
        db_shelf = result.scalar_one_or_none()
        if db_shelf is None:
            return None
        db_shelf.name = name
        await self.session.commit()
        return await self.get_by_id(shelf_id)

    async def delete(self, shelf_id: UUID) -> bool:
        result = await self.session.execute(select(ShelfModel).where(ShelfModel.id == shelf_id))
        db_shelf = result.scalar_one_or_none()
        if db_shelf is None:
            return False
        # Books stay in the library; they just leave the shelf.
        await self.session.execute(
            update(BookModel).where(BookModel.shelf_id == shelf_id).values(shelf_id=None)
        )
        await self.session.delete(db_shelf)
        await self.session.commit()
        return True

    @staticmethod
    def _with_counts():
        return (
            select(ShelfModel, func.count(BookModel.id))
            .outerjoin(BookModel, BookModel.shelf_id == ShelfModel.id)
            .group_by(ShelfModel.id)
        )

    @staticmethod
    def _to_entity(model: ShelfModel, book_count: int = 0) -> Shelf:
        return Shelf(
            id=model.id,
            name=model.name,
            created_at=model.created_at,
            book_count=book_count or 0,
        )


# ---------------------------------------------------------------------------
# Reading Goal Repository
# ---------------------------------------------------------------------------
class ReadingGoalRepository(IReadingGoalRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, year: int) -> Optional[ReadingGoal]:
        db_goal = await self.session.get(ReadingGoalModel, year)
        return self._to_entity(db_goal) if db_goal else None

    async def save(self, goal: ReadingGoal) -> ReadingGoal:
        db_goal = await self.session.get(ReadingGoalModel, goal.year)
        if db_goal is None:
            db_goal = ReadingGoalModel(year=goal.year, target=goal.target, current=goal.current)
            self.session.add(db_goal)
        else:
            db_goal.target = goal.target
            db_goal.current = goal.current
            db_goal.updated_at = datetime.utcnow()
        await self.session.commit()
        return self._to_entity(db_goal)

    @staticmethod
    def _to_entity(model: ReadingGoalModel) -> ReadingGoal:
        return ReadingGoal(year=model.year, target=model.target, current=model.current)


# ---------------------------------------------------------------------------
# Profile Repository
# ---------------------------------------------------------------------------
class ProfileRepository(IProfileRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self) -> Optional[Profile]:
        db_profile = await self.session.get(ProfileModel, PROFILE_ID)
        return self._to_entity(db_profile) if db_profile else None

    async def save(self, profile: Profile) -> Profile:
        db_profile = await self.session.get(ProfileModel, PROFILE_ID)
        if db_profile is None:
            db_profile = ProfileModel(id=PROFILE_ID)
            self.session.add(db_profile)
        db_profile.name = profile.name
        db_profile.library_name = profile.library_name
        db_profile.bio = profile.bio
        db_profile.avatar = profile.avatar
        db_profile.updated_at = datetime.utcnow()
        await self.session.commit()
        return self._to_entity(db_profile)

    @staticmethod
    def _to_entity(model: ProfileModel) -> Profile:
        return Profile(
            name=model.name,
            library_name=model.library_name,
            bio=model.bio,
            avatar=model.avatar,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Article Repository
# ---------------------------------------------------------------------------
class ArticleRepository(IArticleRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, article: Article) -> Article:
        db_article = ArticleModel(
            id=article.id,
            title=article.title,
            url=article.url,
            text=article.text,
            word_count=article.word_count,
            page_count=article.page_count,
            words_per_page=article.words_per_page,
            date_added=article.date_added,
        )
        self.session.add(db_article)
        await self.session.commit()
        await self.session.refresh(db_article)
        return self._to_entity(db_article)

    async def list_all(self) -> list[Article]:
        result = await self.session.execute(
            select(ArticleModel).order_by(ArticleModel.date_added.desc())
        )
        return [self._to_entity(a) for a in result.scalars().all()]

    async def delete(self, article_id: UUID) -> bool:
        db_article = await self.session.get(ArticleModel, article_id)
        if db_article:
            await self.session.delete(db_article)
            await self.session.commit()
            return True
        return False

    @staticmethod
    def _to_entity(model: ArticleModel) -> Article:
        return Article(
            id=model.id,
            title=model.title,
            url=model.url,
            text=model.text,
            word_count=model.word_count,
            page_count=model.page_count,
            words_per_page=model.words_per_page,
            date_added=model.date_added,
        )
