"""
Thingful Backend — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the different error scenarios.
Why:   Targeted error handling with the right HTTP status code, and no
       internal details leaking to the client.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) turn them into JSON.
Who:   Raised by services and the auth dependency; caught by global handlers.

Exception Hierarchy:
    ThingfulError (base)
    ├── AuthenticationError           → 401 Unauthorized
    │   ├── MissingBasicTokenError       (header absent / not "Basic")
    │   └── UnauthorizedRequestError     (any credential rejection)
    ├── InvalidCredentialFormatError  (raised by the token decoder, never
    │                                  reaches the client as-is)
    ├── NotFoundError                 → 404 Not Found
    └── DatabaseError                 → 500 Internal Server Error

Authentication failures deliberately carry only two public messages.
"Unknown user" and "wrong password" are both UnauthorizedRequestError; the
precise reason stays in `context` and the server log.
"""

from typing import Any, Dict, Optional


class ThingfulError(Exception):
    """
    Base exception for all Thingful application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class AuthenticationError(ThingfulError):
    """Base for every 401 response. HTTP: 401 Unauthorized."""


class MissingBasicTokenError(AuthenticationError):
    """
    The Authorization header is absent or does not use the Basic scheme.

    This is the only authentication failure with its own message: it tells
    the client which scheme to use, not whether any credential was right.
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Missing basic token", context=context)


# Public text of every credential rejection
UNAUTHORIZED_MESSAGE = "Unauthorized request"


class UnauthorizedRequestError(AuthenticationError):
    """
    Credentials were supplied but did not authenticate.

    Covers malformed tokens, empty credentials, unknown users and password
    mismatches with one identical message.
    """

    def __init__(
        self,
        message: str = UNAUTHORIZED_MESSAGE,
        reason: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if reason:
            ctx["reason"] = reason
        super().__init__(message=message, context=ctx)
        self.reason = reason


class InvalidCredentialFormatError(ThingfulError):
    """
    A Basic token could not be decoded into a username/password pair.

    Raised by the token decoder for bad base64, undecodable bytes, a missing
    colon, or an empty username or password. The auth dependency converts it
    into a rejection.
    """

    def __init__(self, message: str = "Invalid credential format", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class NotFoundError(ThingfulError):
    """
    Raised when a requested resource does not exist.

    HTTP: 404 Not Found. The message is returned verbatim, e.g.
    "Thing doesn't exist".
    """

    def __init__(
        self,
        message: str = "The requested resource was not found",
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class DatabaseError(ThingfulError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500 Internal Server Error.

    Also covers failures of the user lookup during authentication: a storage
    outage is a service error, never a 401.

    Security Note:
        The message returned to the client is always generic. SQL text,
        constraint names and driver errors are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
