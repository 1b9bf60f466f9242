"""
Thingful Backend — Things Route Handlers
========================================

What:  GET /api/things, GET /api/things/{id}, GET /api/things/{id}/reviews.
How:   Thin handlers; ThingService does the querying and serialization.

Access:
    GET /api/things                      public
    GET /api/things/{thing_id}           Basic auth, then thing must exist
    GET /api/things/{thing_id}/reviews   Basic auth, then thing must exist

    The order matters: an unauthenticated caller gets 401 even for IDs that
    do not exist, so the API does not reveal which things exist.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from thingful.database import get_db_session
from thingful.middleware.basic_auth import require_auth
from thingful.models.user import User
from thingful.schemas.thing import ErrorResponse, ReviewResponse, ThingResponse
from thingful.services.thing_service import thing_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Things"])

AUTH_RESPONSES = {
    401: {"description": "Missing or invalid Basic credentials", "model": ErrorResponse},
    404: {"description": "Thing not found", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


async def require_existing_thing(
    thing_id: int,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
) -> ThingResponse:
    """Resolve the path's thing after authentication; 404 if it is missing."""
    return await thing_service.get_thing(db, thing_id)


@router.get(
    "/things",
    response_model=List[ThingResponse],
    summary="List all things",
)
async def list_things(db: AsyncSession = Depends(get_db_session)) -> List[ThingResponse]:
    return await thing_service.list_things(db)


@router.get(
    "/things/{thing_id}",
    response_model=ThingResponse,
    responses=AUTH_RESPONSES,
    summary="Get a single thing",
)
async def get_thing(thing: ThingResponse = Depends(require_existing_thing)) -> ThingResponse:
    return thing


@router.get(
    "/things/{thing_id}/reviews",
    response_model=List[ReviewResponse],
    responses=AUTH_RESPONSES,
    summary="List the reviews of a thing",
)
@router.get("/things/{thing_id}/reviews/", response_model=List[ReviewResponse], include_in_schema=False)
async def get_thing_reviews(
    thing: ThingResponse = Depends(require_existing_thing),
    db: AsyncSession = Depends(get_db_session),
) -> List[ReviewResponse]:
    return await thing_service.list_reviews_for_thing(db, thing.id)
