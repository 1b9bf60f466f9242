"""
Thingful Backend — Rate Limiting Middleware
===========================================

What:  Per-IP sliding window limits, with a second, tighter window for
       failed Basic-auth attempts.
Why:   Each authentication attempt costs one bcrypt comparison. Without a
       limit, a single client could both guess passwords at full speed and
       tie up the thread pool that runs bcrypt.
How:   Two in-memory timestamp logs per IP:
         - requests:  every request (rate_limit_requests per window)
         - failures:  responses that were 401 to a request carrying an
                      Authorization header (auth_failure_limit per window)

Algorithm: Sliding Window
    1. Drop timestamps older than the window
    2. If the request log is full, reject with 429
    3. If the request carries credentials and the failure log is full,
       reject with 429 before any bcrypt work happens
    4. Otherwise record the request and let it through
    5. A 401 to a credentialed request is recorded as a failure

    Successful logins never fill the failure log, so a user who knows their
    password is only bound by the general limit.

    The state lives in one process. Multi-worker deployments need a shared
    store (e.g. Redis) for a global limit.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from thingful.config import settings

logger = logging.getLogger(__name__)


def _prune(timestamps: List[float], window_start: float) -> List[float]:
    return [ts for ts in timestamps if ts > window_start]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Configuration (constructor arguments, defaulting to settings):
        max_requests:        rate_limit_requests, any request
        max_auth_failures:   auth_failure_limit, failed credentialed requests
        window:              rate_limit_window, in seconds

    Response on rate limit:
        HTTP 429 with a Retry-After header (seconds until the oldest entry
        leaves the window).
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        max_auth_failures: Optional[int] = None,
        window: Optional[int] = None,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.max_auth_failures = max_auth_failures or settings.auth_failure_limit
        self.window = window or settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._auth_failures: Dict[str, List[float]] = defaultdict(list)

    def _too_many(self, client_ip: str, timestamps: List[float], now: float, kind: str) -> Response:
        retry_after = int(timestamps[0] + self.window - now) + 1
        logger.warning(
            "Rate limit exceeded for IP %s: %d %s in %ds window",
            client_ip,
            len(timestamps),
            kind,
            self.window,
        )
        return JSONResponse(
            status_code=429,
            content={
                "error": f"Too many requests. Please wait {retry_after} seconds before retrying.",
            },
            headers={"Retry-After": str(retry_after)},
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        # Behind a proxy this is the proxy's address
        client_ip = (
            getattr(request.client, "host", "unknown")
            if request.client
            else "unknown"
        )
        has_credentials = "authorization" in request.headers

        now = time.time()
        window_start = now - self.window

        requests = self._requests[client_ip] = _prune(self._requests[client_ip], window_start)
        if len(requests) >= self.max_requests:
            return self._too_many(client_ip, requests, now, "requests")

        if has_credentials:
            failures = self._auth_failures[client_ip] = _prune(
                self._auth_failures[client_ip], window_start
            )
            if len(failures) >= self.max_auth_failures:
                return self._too_many(client_ip, failures, now, "failed logins")

        requests.append(now)

        # Amortized cleanup of IPs that went quiet
        if sum(len(v) for v in self._requests.values()) % 1000 == 0:
            self._cleanup_inactive_ips(window_start)

        response = await call_next(request)

        if has_credentials and response.status_code == 401:
            self._auth_failures[client_ip].append(time.time())

        return response

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Remove IPs that have no requests within the current window."""
        for log in (self._requests, self._auth_failures):
            inactive_ips = [
                ip for ip, timestamps in log.items()
                if not timestamps or max(timestamps) < window_start
            ]
            for ip in inactive_ips:
                del log[ip]

            if inactive_ips:
                logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
