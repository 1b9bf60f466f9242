"""
Thingful Backend — Authentication Service
==========================================

What:  Decodes HTTP Basic tokens and decides whether a set of credentials
       identifies a user.
Why:   Every protected route depends on this; it is the only place where
       passwords are handled.
How:   Two pieces with no HTTP knowledge:
         - parse_basic_token(): base64 token → CredentialPair (pure)
         - authenticate():      CredentialPair → Authorized | Rejected,
                                using a user-lookup callable and a
                                hash-verifier callable supplied by the caller
       plus the default collaborators backed by SQLAlchemy and bcrypt.
Who:   Called by the require_auth dependency (middleware/basic_auth.py).

Authentication Flow:
    ┌───────────────┐   ┌──────────────┐   ┌──────────────┐   ┌────────────┐
    │ empty creds?  │──▶│ user_lookup  │──▶│ hash_verifier│──▶│ Authorized │
    └───────┬───────┘   └──────┬───────┘   └──────┬───────┘   └────────────┘
            ▼ Rejected         ▼ Rejected         ▼ Rejected
      MISSING_OR_MALFORMED   UNKNOWN_USER     PASSWORD_MISMATCH

    Each step runs only if the previous one succeeded: at most one lookup and
    at most one bcrypt comparison per attempt, and no comparison at all for
    unknown users. That skip makes "unknown user" answer faster than "wrong
    password"; see DESIGN.md for the trade-off.

    Every Rejected carries the same public message. The reason exists for
    server-side logging only.

    Exceptions raised by user_lookup (storage failures) are NOT rejections.
    They propagate so the caller can answer 500 instead of 401.
"""

import base64
import binascii
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

import bcrypt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from thingful.config import settings
from thingful.exceptions import (
    UNAUTHORIZED_MESSAGE,
    DatabaseError,
    InvalidCredentialFormatError,
)
from thingful.models.user import User

logger = logging.getLogger(__name__)

BCRYPT_MAX_PASSWORD_BYTES = 72


# ══════════════════════════════════════════════════════════════════════════
# Value Types
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CredentialPair:
    """Username and password decoded from one Basic token."""
    username: str
    password: str = field(repr=False)


class RejectionReason(str, enum.Enum):
    MISSING_OR_MALFORMED_TOKEN = "missing_or_malformed_token"
    INVALID_CREDENTIAL_FORMAT = "invalid_credential_format"
    UNKNOWN_USER = "unknown_user"
    PASSWORD_MISMATCH = "password_mismatch"


@dataclass(frozen=True)
class Authorized:
    """The credentials identify `user`, the exact record returned by the lookup."""
    user: Any


@dataclass(frozen=True)
class Rejected:
    """The credentials do not authenticate anyone."""
    reason: RejectionReason

    @property
    def message(self) -> str:
        # Identical for every reason so callers cannot enumerate users
        return UNAUTHORIZED_MESSAGE


AuthOutcome = Union[Authorized, Rejected]

UserLookup = Callable[[str], Awaitable[Optional[Any]]]
HashVerifier = Callable[[str, str], Awaitable[bool]]


# ══════════════════════════════════════════════════════════════════════════
# Service
# ══════════════════════════════════════════════════════════════════════════

class AuthService:
    """
    Stateless authentication logic.

    Responsibilities:
        - parse_basic_token(): decode the token of an Authorization header
        - authenticate(): run the lookup → verify sequence
        - get_user_with_username(): default user lookup (SQLAlchemy)
        - verify_password() / hash_password(): bcrypt helpers

    No instance state, so one instance serves all concurrent requests.
    """

    @staticmethod
    def parse_basic_token(token: str) -> CredentialPair:
        """
        Decode a Basic token into a CredentialPair.

        Args:
            token: The header value with the "Basic " prefix already removed.

        Returns:
            CredentialPair split on the FIRST colon, so passwords may contain
            colons ("alice:pa:ss" → ("alice", "pa:ss")).

        Raises:
            InvalidCredentialFormatError: token is not base64, does not decode
                to UTF-8 text, has no colon, or has an empty username or
                password.
        """
        # Tolerate clients that drop the trailing "=" padding
        padded = token + "=" * (-len(token) % 4)
        try:
            raw = base64.b64decode(padded, validate=True)
        except (binascii.Error, ValueError):
            raise InvalidCredentialFormatError("Basic token is not valid base64")

        try:
            decoded = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidCredentialFormatError("Basic token is not valid UTF-8")

        username, separator, password = decoded.partition(":")
        if not separator or not username or not password:
            raise InvalidCredentialFormatError("Basic token must contain 'username:password'")

        return CredentialPair(username=username, password=password)

    async def authenticate(
        self,
        credentials: Optional[CredentialPair],
        user_lookup: UserLookup,
        hash_verifier: HashVerifier,
    ) -> AuthOutcome:
        """
        Decide whether `credentials` identify a user.

        Args:
            credentials: Decoded pair, or None when decoding already failed.
            user_lookup: async (username) → user record or None.
            hash_verifier: async (plain_password, stored_hash) → bool.

        Returns:
            Authorized(user) or Rejected(reason).

        Raises:
            Whatever user_lookup or hash_verifier raise, unchanged.
        """
        if credentials is None:
            return Rejected(RejectionReason.INVALID_CREDENTIAL_FORMAT)

        if not credentials.username or not credentials.password:
            return Rejected(RejectionReason.MISSING_OR_MALFORMED_TOKEN)

        user = await user_lookup(credentials.username)
        if user is None:
            return Rejected(RejectionReason.UNKNOWN_USER)

        passwords_match = await hash_verifier(credentials.password, user.password)
        if not passwords_match:
            return Rejected(RejectionReason.PASSWORD_MISMATCH)

        return Authorized(user)

    # ── Default collaborators ─────────────────────────────────────────────

    async def get_user_with_username(self, db: AsyncSession, user_name: str) -> Optional[User]:
        """
        Fetch the user with this exact user_name, or None.

        Query plan:
            SELECT * FROM thingful_users WHERE user_name = :user_name
            → served by the UNIQUE index on user_name

        Raises:
            DatabaseError: The query failed. This is a service error (500),
                not a failed login.
        """
        try:
            result = await db.execute(
                select(User).where(User.user_name == user_name)
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error looking up user for authentication: %s", str(e))
            raise DatabaseError(
                message="Could not verify credentials. Please try again later.",
                context={"error_type": type(e).__name__},
            )

    async def verify_password(self, plain_password: str, stored_hash: str) -> bool:
        """
        Compare a plaintext password with a bcrypt hash.

        bcrypt is deliberately slow (~250ms at cost 12), so the comparison
        runs in Starlette's thread pool and other requests keep being served.
        A hash bcrypt cannot parse counts as a mismatch and is logged.
        Passwords longer than bcrypt's 72-byte input limit cannot match any
        stored hash and are rejected without calling bcrypt.
        """
        password_bytes = plain_password.encode("utf-8")
        if len(password_bytes) > BCRYPT_MAX_PASSWORD_BYTES:
            logger.warning(
                "Rejected a %d-byte password (bcrypt accepts at most %d bytes)",
                len(password_bytes),
                BCRYPT_MAX_PASSWORD_BYTES,
            )
            return False

        try:
            return await run_in_threadpool(
                bcrypt.checkpw,
                password_bytes,
                stored_hash.encode("utf-8"),
            )
        except ValueError as e:
            logger.error("bcrypt could not parse the stored password hash: %s", str(e))
            return False

    @staticmethod
    def hash_password(plain_password: str, rounds: Optional[int] = None) -> str:
        """Hash a password with bcrypt at the configured work factor."""
        salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
        return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
