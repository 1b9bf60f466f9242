"""
Thingful Backend — Review Route Handlers
========================================

What:  POST /api/reviews (create) and GET /api/reviews/{id}.
Who:   Authenticated users only.

The author of a new review is the authenticated user. The request body has
no user field, so one user cannot post reviews under another's name.
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from thingful.database import get_db_session
from thingful.middleware.basic_auth import require_auth
from thingful.models.user import User
from thingful.schemas.thing import ErrorResponse, ReviewCreate, ReviewResponse
from thingful.services.thing_service import thing_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Reviews"])


@router.post(
    "/reviews",
    status_code=201,
    response_model=ReviewResponse,
    responses={
        400: {"description": "Missing or invalid field", "model": ErrorResponse},
        401: {"description": "Missing or invalid Basic credentials", "model": ErrorResponse},
        404: {"description": "Thing not found", "model": ErrorResponse},
    },
    summary="Post a review for a thing",
)
async def create_review(
    payload: ReviewCreate,
    response: Response,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
) -> ReviewResponse:
    review = await thing_service.create_review(db, user, payload)
    response.headers["Location"] = f"/api/reviews/{review.id}"
    return review


@router.get(
    "/reviews/{review_id}",
    response_model=ReviewResponse,
    responses={
        401: {"description": "Missing or invalid Basic credentials", "model": ErrorResponse},
        404: {"description": "Review not found", "model": ErrorResponse},
    },
    summary="Get a single review",
)
async def get_review(
    review_id: int,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
) -> ReviewResponse:
    return await thing_service.get_review(db, review_id)
