"""API v1 routes."""

from fastapi import APIRouter

from tasktrack.api.v1 import auth, tasks, users
from tasktrack.schemas.common import ErrorEnvelope

# Documented failure bodies; all are written by the exception handlers in main.
ERROR_RESPONSES = {
    status_code: {"model": ErrorEnvelope, "description": description}
    for status_code, description in (
        (401, "Missing, invalid or expired credentials"),
        (403, "Authenticated but not allowed"),
        (404, "Resource not found"),
        (422, "Request validation failed"),
        (429, "Rate limit exceeded"),
        (500, "Internal server error"),
    )
}

router = APIRouter(responses=ERROR_RESPONSES)
router.include_router(auth.router, prefix="/auth", tags=["auth"], responses={409: {"model": ErrorEnvelope}})
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(tasks.router, prefix="/tasks", tags=["tasks"], responses={400: {"model": ErrorEnvelope}})
