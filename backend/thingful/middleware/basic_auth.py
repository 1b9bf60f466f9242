"""
Thingful Backend — HTTP Basic Authentication Dependency
=======================================================

What:  FastAPI dependency that gates protected routes behind Basic auth.
Why:   Only some routes are protected (GET /api/things is public), so this
       is a per-route dependency rather than an app-wide Starlette
       middleware.
How:   Checks the header shape, decodes the token, and runs the
       authenticator with storage and bcrypt collaborators bound to this
       request's DB session. The authenticated User is the dependency's
       return value; routes receive it as a parameter.

Response mapping:
    Header absent / not "Basic ..."        → 401 {"error": "Missing basic token"}
    Bad token, empty fields, unknown user,
    wrong password                          → 401 {"error": "Unauthorized request"}
    User lookup failed (DB down)            → 500 (DatabaseError, not a 401)

Usage:
    @router.get("/things/{thing_id}")
    async def get_thing(user: User = Depends(require_auth)):
        ...
"""

import logging
from functools import partial

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from thingful.database import get_db_session
from thingful.exceptions import (
    InvalidCredentialFormatError,
    MissingBasicTokenError,
    UnauthorizedRequestError,
)
from thingful.middleware.request_id import request_id_var
from thingful.models.user import User
from thingful.services.auth_service import Rejected, auth_service

logger = logging.getLogger(__name__)

BASIC_PREFIX = "basic "


async def require_auth(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Return the authenticated User or raise an AuthenticationError.

    The credentials themselves are never logged, only the rejection reason.
    """
    rid = request_id_var.get("")
    path = request.url.path
    auth_token = request.headers.get("Authorization", "")

    if not auth_token.lower().startswith(BASIC_PREFIX.strip()):
        logger.warning("[%s] Missing basic token on %s", rid, path)
        raise MissingBasicTokenError(context={"path": path})

    basic_token = auth_token[len(BASIC_PREFIX):].strip()

    try:
        credentials = auth_service.parse_basic_token(basic_token)
    except InvalidCredentialFormatError:
        credentials = None

    outcome = await auth_service.authenticate(
        credentials,
        user_lookup=partial(auth_service.get_user_with_username, db),
        hash_verifier=auth_service.verify_password,
    )

    if isinstance(outcome, Rejected):
        logger.warning("[%s] Rejected credentials on %s: %s", rid, path, outcome.reason.value)
        raise UnauthorizedRequestError(
            message=outcome.message, reason=outcome.reason.value, context={"path": path}
        )

    logger.debug("[%s] Authenticated user id=%s on %s", rid, outcome.user.id, path)
    # Plain id for the access log; the User instance expires when the session closes
    request.state.user_id = outcome.user.id
    return outcome.user
