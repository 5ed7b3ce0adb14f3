"""Per-client-IP sliding-window rate limiting (in-process, not shared between workers)."""

import logging
import math
import threading
import time
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from tasktrack.core.errors import RateLimitExceededError, to_error_response

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int = 0


class SlidingWindowRateLimiter:
    """
    Keeps the timestamps of recent hits per key and allows at most max_requests
    within any window_seconds span ending now.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def hit(self, key: str) -> RateLimitDecision:
        """Record a request for key if it fits in the window; never records a rejected one."""
        now = self._clock()
        cutoff = now - self.window_seconds
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= self.max_requests:
                retry_after = max(1, math.ceil(hits[0] + self.window_seconds - now))
                return RateLimitDecision(False, self.max_requests, 0, retry_after)
            hits.append(now)
            return RateLimitDecision(True, self.max_requests, self.max_requests - len(hits))

    def _sweep(self, cutoff: float) -> None:
        """Drop keys with no hit inside the window. Caller holds the lock."""
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in stale:
            del self._hits[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


def client_ip(request: Request) -> str:
    """First X-Forwarded-For entry when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies the global limiter to every request and the stricter auth limiter to
    auth routes, before any authentication runs. Exempt paths are never counted.
    """

    def __init__(
        self,
        app,
        *,
        limiter: SlidingWindowRateLimiter,
        auth_limiter: SlidingWindowRateLimiter | None = None,
        auth_prefix: str = "/api/v1/auth",
        exempt_paths: Iterable[str] = ("/health",),
        exempt_prefixes: Iterable[str] = ("/docs", "/redoc", "/openapi.json"),
    ) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.auth_limiter = auth_limiter
        self.auth_prefix = auth_prefix
        self.exempt_paths = frozenset(exempt_paths)
        self.exempt_prefixes = tuple(exempt_prefixes)

    def _is_exempt(self, path: str) -> bool:
        return path in self.exempt_paths or path.startswith(self.exempt_prefixes)

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if self._is_exempt(path):
            return await call_next(request)

        ip = client_ip(request)
        limiter = self.limiter
        decision = limiter.hit(ip)
        message = "Too many requests from this IP, please try again later"
        if decision.allowed and self.auth_limiter is not None and path.startswith(self.auth_prefix):
            limiter = self.auth_limiter
            decision = limiter.hit(ip)
            message = "Too many authentication attempts, please try again later"

        if not decision.allowed:
            logger.warning("Rate limit exceeded: ip=%s path=%s", ip, path)
            error = to_error_response(
                RateLimitExceededError(
                    message,
                    details=f"Rate limit: {decision.limit} requests per {limiter.window_seconds:g} seconds",
                ),
                expose_internals=False,
            )
            return JSONResponse(
                status_code=error.status_code,
                content=error.body,
                headers={
                    "Retry-After": str(decision.retry_after),
                    "RateLimit-Limit": str(decision.limit),
                    "RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["RateLimit-Limit"] = str(decision.limit)
        response.headers["RateLimit-Remaining"] = str(decision.remaining)
        return response
