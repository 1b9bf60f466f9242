"""
Thingful Backend — Request Logging Middleware
=============================================

What:  One access-log line per request: method, path, status, duration,
       request ID, client IP.
When:  After RequestIDMiddleware (uses the request ID for correlation).

What we log vs what we DON'T log:
    Logged:     method, path, status, duration, IP, request ID, user id
    Not logged: request bodies, the Authorization header, any credential
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from thingful.middleware.request_id import request_id_var

logger = logging.getLogger("thingful.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each HTTP request with a level chosen from the status code:
    5xx → ERROR, 4xx → WARNING (includes every 401), else INFO.

    /health is skipped; probes would drown the log.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")

        if path == "/health":
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        user_id = getattr(request.state, "user_id", "-")
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s user=%s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            user_id,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "user_id": user_id,
            },
        )

        return response
