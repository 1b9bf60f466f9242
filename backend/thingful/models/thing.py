"""
Thingful Backend — Thing and Review SQLAlchemy Models
======================================================

What:  ORM models for the `thingful_things` and `thingful_reviews` tables.
Who:   Queried by ThingService; written by the review-creation route.

Relationships:
    Thing  ──< Review        (a thing has many reviews)
    User   ──< Thing         (author of the thing)
    User   ──< Review        (author of the review)

    All foreign keys cascade on delete. Relationships are always loaded
    eagerly in queries (async sessions cannot lazy-load).
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from thingful.database import Base
from thingful.models.user import User


class Thing(Base):
    """A reviewable item."""

    __tablename__ = "thingful_things"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("thingful_users.id", ondelete="CASCADE"),
        nullable=True,
    )

    user: Mapped[Optional[User]] = relationship(User)

    def __repr__(self) -> str:
        return f"<Thing(id={self.id}, title='{self.title}')>"


class Review(Base):
    """A user's rating (1-5) and text about a thing."""

    __tablename__ = "thingful_reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)

    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    thing_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("thingful_things.id", ondelete="CASCADE"),
        nullable=False,
    )

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("thingful_users.id", ondelete="CASCADE"),
        nullable=False,
    )

    user: Mapped[User] = relationship(User)
    thing: Mapped[Thing] = relationship(Thing)

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        # Reviews are always fetched per thing
        Index("idx_reviews_thing_id", "thing_id"),
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, thing_id={self.thing_id}, rating={self.rating})>"
