"""CORS, request-id and request logging middleware."""

import logging
import time
import uuid

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from tasktrack.core.config import Settings
from tasktrack.core.rate_limit import RateLimitMiddleware, SlidingWindowRateLimiter

logger = logging.getLogger("tasktrack.request")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Add a unique request ID to every request/response and log one line per request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        response: Response = await call_next(request)

        duration = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers["X-Request-Id"] = request_id
        response.headers["X-Response-Time-Ms"] = str(duration)

        logger.info(
            "%s %s %s %sms",
            request.method,
            request.url.path,
            response.status_code,
            duration,
        )
        return response


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """
    Configure the middleware stack. Starlette runs the last-added middleware first,
    so requests pass request-id/logging, then CORS, then rate limiting, then routing.
    """
    if settings.RATE_LIMIT_ENABLED:
        limiter = SlidingWindowRateLimiter(
            settings.RATE_LIMIT_MAX_REQUESTS,
            settings.RATE_LIMIT_WINDOW_SECONDS,
        )
        auth_limiter = SlidingWindowRateLimiter(
            settings.AUTH_RATE_LIMIT_MAX_REQUESTS,
            settings.RATE_LIMIT_WINDOW_SECONDS,
        )
        app.add_middleware(
            RateLimitMiddleware,
            limiter=limiter,
            auth_limiter=auth_limiter,
            auth_prefix=f"{settings.API_V1_PREFIX}/auth",
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else settings.cors_origin_list,
        allow_credentials=settings.APP_ENV != "dev",
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_middleware(RequestIdMiddleware)
