"""
Thingful Backend — Thing Service
================================

What:  Queries and serialization for things and their reviews.
Why:   Keeps SQL and output shaping out of the route handlers.
How:   Async SQLAlchemy selects with eager-loaded authors, review statistics
       as correlated subqueries, and HTML sanitization on the way out.
Who:   Called by routes/things.py and routes/reviews.py.

XSS Handling:
    Stored text is returned through bleach with a small allow-list:
        "<script>alert(1)</script>"      → "&lt;script&gt;alert(1)&lt;/script&gt;"
        '<img src="x" onerror="...">'    → '<img src="x">'
        "<strong>bold</strong>"          → unchanged
    Text is stored as submitted and cleaned on every read, so tightening the
    allow-list also protects rows written earlier.
"""

import logging
from typing import List, Optional

import bleach
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from thingful.exceptions import DatabaseError, NotFoundError
from thingful.models.thing import Review, Thing
from thingful.models.user import User
from thingful.schemas.thing import (
    ReviewCreate,
    ReviewResponse,
    ThingResponse,
    UserSummary,
)

logger = logging.getLogger(__name__)

THING_NOT_FOUND = "Thing doesn't exist"

ALLOWED_TAGS = frozenset({
    "a", "b", "blockquote", "br", "code", "em", "h1", "h2", "h3", "h4", "h5",
    "h6", "i", "img", "li", "ol", "p", "pre", "span", "strong", "u", "ul",
})
ALLOWED_ATTRIBUTES = {
    "a": ["href", "title", "target"],
    "img": ["src", "alt", "title", "width", "height"],
}


def sanitize_html(value: Optional[str]) -> Optional[str]:
    """Escape disallowed markup and drop disallowed attributes."""
    if value is None:
        return None
    return bleach.clean(
        value,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=False,
    )


class ThingService:
    """
    Read/write operations for things and reviews.

    Database failures are wrapped in DatabaseError; NotFoundError is raised
    for unknown thing IDs and passes through untouched.
    """

    # ── Serialization ─────────────────────────────────────────────────────

    @staticmethod
    def serialize_user(user: Optional[User]) -> Optional[UserSummary]:
        if user is None:
            return None
        return UserSummary.model_validate(user)

    def serialize_thing(
        self,
        thing: Thing,
        number_of_reviews: Optional[int] = 0,
        average_review_rating: Optional[float] = None,
    ) -> ThingResponse:
        return ThingResponse(
            id=thing.id,
            title=sanitize_html(thing.title),
            image=thing.image,
            content=sanitize_html(thing.content),
            date_created=thing.date_created,
            average_review_rating=(
                float(average_review_rating) if average_review_rating is not None else None
            ),
            number_of_reviews=int(number_of_reviews or 0),
            user=self.serialize_user(thing.user),
        )

    def serialize_review(self, review: Review, user: Optional[User] = None) -> ReviewResponse:
        """
        Args:
            user: Author to embed. Pass it for freshly inserted reviews, whose
                  `user` relationship is not loaded.
        """
        author = user if user is not None else review.user
        return ReviewResponse(
            id=review.id,
            rating=review.rating,
            text=sanitize_html(review.text),
            thing_id=review.thing_id,
            date_created=review.date_created,
            user=self.serialize_user(author),
        )

    # ── Queries ───────────────────────────────────────────────────────────

    @staticmethod
    def _things_query():
        """
        SELECT things.*, users.*, (review count), (average rating)
        FROM thingful_things LEFT JOIN thingful_users ... ORDER BY things.id
        """
        number_of_reviews = (
            select(func.count(Review.id))
            .where(Review.thing_id == Thing.id)
            .correlate(Thing)
            .scalar_subquery()
        )
        average_review_rating = (
            select(func.avg(Review.rating))
            .where(Review.thing_id == Thing.id)
            .correlate(Thing)
            .scalar_subquery()
        )
        return (
            select(
                Thing,
                number_of_reviews.label("number_of_reviews"),
                average_review_rating.label("average_review_rating"),
            )
            .options(joinedload(Thing.user))
            .order_by(Thing.id)
        )

    async def list_things(self, db: AsyncSession) -> List[ThingResponse]:
        """All things, oldest first, with review statistics and author."""
        try:
            result = await db.execute(self._things_query())
            return [
                self.serialize_thing(thing, number_of_reviews, average_review_rating)
                for thing, number_of_reviews, average_review_rating in result.all()
            ]
        except Exception as e:
            logger.error("Database error listing things: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve things. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_thing(self, db: AsyncSession, thing_id: int) -> ThingResponse:
        """
        Raises:
            NotFoundError: No thing with this ID (→ 404 "Thing doesn't exist").
            DatabaseError: Query execution failed (→ 500).
        """
        try:
            result = await db.execute(self._things_query().where(Thing.id == thing_id))
            row = result.first()

            if row is None:
                raise NotFoundError(
                    message=THING_NOT_FOUND, resource="thing", resource_id=thing_id
                )

            thing, number_of_reviews, average_review_rating = row
            return self.serialize_thing(thing, number_of_reviews, average_review_rating)

        except NotFoundError:
            raise
        except Exception as e:
            logger.error("Database error fetching thing %s: %s", thing_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the thing. Please try again.",
                context={"thing_id": thing_id},
            )

    async def list_reviews_for_thing(self, db: AsyncSession, thing_id: int) -> List[ReviewResponse]:
        try:
            result = await db.execute(
                select(Review)
                .options(joinedload(Review.user))
                .where(Review.thing_id == thing_id)
                .order_by(Review.id)
            )
            return [self.serialize_review(review) for review in result.scalars().all()]
        except Exception as e:
            logger.error("Database error listing reviews for thing %s: %s", thing_id, str(e))
            raise DatabaseError(
                message="Could not retrieve reviews. Please try again.",
                context={"thing_id": thing_id},
            )

    async def get_review(self, db: AsyncSession, review_id: int) -> ReviewResponse:
        try:
            result = await db.execute(
                select(Review).options(joinedload(Review.user)).where(Review.id == review_id)
            )
            review = result.scalar_one_or_none()

            if review is None:
                raise NotFoundError(
                    message="Review doesn't exist", resource="review", resource_id=review_id
                )

            return self.serialize_review(review)

        except NotFoundError:
            raise
        except Exception as e:
            logger.error("Database error fetching review %s: %s", review_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the review. Please try again.",
                context={"review_id": review_id},
            )

    async def create_review(self, db: AsyncSession, user: User, payload: ReviewCreate) -> ReviewResponse:
        """
        Insert a review authored by `user` for an existing thing.

        Raises:
            NotFoundError: payload.thing_id does not exist.
            DatabaseError: Insert failed.
        """
        await self.get_thing(db, payload.thing_id)

        try:
            review = Review(
                thing_id=payload.thing_id,
                rating=payload.rating,
                text=payload.text,
                user_id=user.id,
            )
            db.add(review)
            await db.flush()  # Assigns id without committing (commit in get_db_session)
            logger.info("Review %s created for thing %s by user %s", review.id, payload.thing_id, user.id)
            return self.serialize_review(review, user=user)

        except Exception as e:
            logger.error("Database error creating review: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the review. Please try again.",
                context={"thing_id": payload.thing_id},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
thing_service = ThingService()
