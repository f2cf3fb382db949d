"""Fixed-window request limiter keyed by client address."""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS = "Too many requests, please try again later."


@dataclass
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_in: float


class FixedWindowRateLimiter:
    """
    Counts hits per key inside one process-wide window.

    All counters are dropped together when the window expires.
    """

    def __init__(self, max_requests: int = 100, window_seconds: float = 15 * 60, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._hits: Dict[str, int] = {}
        self._reset_at = self.clock() + window_seconds

    def _roll_window(self, now: float) -> None:
        if now >= self._reset_at:
            self._hits.clear()
            elapsed_windows = math.floor((now - self._reset_at) / self.window_seconds) + 1
            self._reset_at += elapsed_windows * self.window_seconds

    def hit(self, key: str) -> RateLimitDecision:
        now = self.clock()
        self._roll_window(now)
        count = self._hits.get(key, 0) + 1
        self._hits[key] = count
        return RateLimitDecision(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_in=self._reset_at - now,
        )


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects requests over the limit with 429 and ``X-RateLimit-*`` headers."""

    def __init__(self, app, limiter: FixedWindowRateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        decision = self.limiter.hit(client_key(request))
        headers = {
            "X-RateLimit-Limit": str(decision.limit),
            "X-RateLimit-Remaining": str(decision.remaining),
            "X-RateLimit-Reset": str(math.ceil(decision.reset_in)),
        }

        if not decision.allowed:
            logger.warning(f"Rate limit exceeded for {client_key(request)} on {request.url.path}")
            headers["Retry-After"] = str(math.ceil(decision.reset_in))
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": TOO_MANY_REQUESTS},
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
