"""
Thingful Backend — Pydantic Request/Response Schemas
====================================================

What:  Pydantic models defining the API contract.
Why:   Input validation, serialization, and OpenAPI doc generation.

Design Decision:
    Schemas are separate from SQLAlchemy models so that the API controls
    exactly what is exposed. In particular UserSummary has no password
    field: a bcrypt hash can never end up in a response body.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserSummary(BaseModel):
    """Public view of a user, embedded in things and reviews."""
    id: int
    user_name: str
    full_name: str
    nickname: Optional[str] = None
    date_created: datetime
    date_modified: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ThingResponse(BaseModel):
    """
    What:  A thing with its review statistics and author.
    Who:   Returned by GET /api/things and GET /api/things/{id}.

    title and content are HTML-sanitized before they reach this model.
    """
    id: int
    title: str
    image: Optional[str] = None
    content: Optional[str] = None
    date_created: datetime
    average_review_rating: Optional[float] = Field(
        default=None,
        description="Mean rating across reviews; null when there are none",
    )
    number_of_reviews: int = Field(default=0, description="Count of reviews for this thing")
    user: Optional[UserSummary] = None


class ReviewResponse(BaseModel):
    """A review with its author. Returned by the reviews endpoints."""
    id: int
    rating: int
    text: str
    thing_id: int
    date_created: datetime
    user: Optional[UserSummary] = None


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ReviewCreate(BaseModel):
    """
    Body of POST /api/reviews.

    There is no user_id field: the author is always the authenticated user.
    """
    thing_id: int
    rating: int = Field(ge=1, le=5)
    text: str = Field(min_length=1)


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Error body used by 4xx responses, e.g. {"error": "Unauthorized request"}.

    500 responses add a message and the request ID for support.
    """
    error: str = Field(description="Error description")
    message: Optional[str] = Field(default=None, description="Human-readable detail (5xx only)")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
