"""SQLAlchemy database models."""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class ShelfModel(Base):
    __tablename__ = "shelves"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class BookModel(Base):
    __tablename__ = "books"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False, index=True)
    author = Column(String(255), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="want_to_read", index=True)
    progress = Column(Integer, nullable=True)
    total_pages = Column(Integer, nullable=True)
    tags = Column(JSON, nullable=False, default=list)  # ordered list of strings
    shelf_id = Column(
        Uuid, ForeignKey("shelves.id", ondelete="SET NULL"), nullable=True, index=True
    )
    cover_url = Column(String(1024), nullable=True)
    isbn = Column(String(20), nullable=True)
    description = Column(Text, nullable=True)
    date_added = Column(Date, default=date.today, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    reviews = relationship(
        "ReviewModel",
        back_populates="book",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="ReviewModel.created_at",
    )


class ReviewModel(Base):
    __tablename__ = "reviews"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    book_id = Column(
        Uuid, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content = Column(Text, nullable=False)
    rating = Column(Integer, nullable=False)
    date_added = Column(Date, default=date.today, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    book = relationship("BookModel", back_populates="reviews")


class ReadingGoalModel(Base):
    __tablename__ = "reading_goals"

    year = Column(Integer, primary_key=True, autoincrement=False)
    target = Column(Integer, nullable=False, default=24)
    current = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class ProfileModel(Base):
    """Single-row table; the library has one owner."""

    __tablename__ = "profiles"

    id = Column(String(20), primary_key=True, default="default")
    name = Column(String(100), nullable=False)
    library_name = Column(String(200), nullable=False)
    bio = Column(Text, nullable=False, default="")
    avatar = Column(String(20), nullable=False, default="")
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class ArticleModel(Base):
    __tablename__ = "articles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(500), nullable=False)
    url = Column(String(2048), nullable=False)
    text = Column(Text, nullable=False)
    word_count = Column(Integer, nullable=False)
    page_count = Column(Integer, nullable=False)
    words_per_page = Column(Integer, nullable=False, default=250)
    date_added = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
