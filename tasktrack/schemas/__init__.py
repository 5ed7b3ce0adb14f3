"""Pydantic request/response schemas."""

from tasktrack.schemas.auth import (
    AuthOut,
    CurrentUser,
    LoginRequest,
    ProfileUpdateRequest,
    RefreshRequest,
    SignupRequest,
    TokenPairOut,
    UserOut,
    UserRole,
)
from tasktrack.schemas.common import ApiResponse, ErrorEnvelope, PageMeta
from tasktrack.schemas.health import HealthResponse
from tasktrack.schemas.task import (
    BulkDeleteRequest,
    BulkDeleteResult,
    BulkStatusRequest,
    BulkStatusResult,
    TaskCreate,
    TaskFilters,
    TaskOut,
    TaskPriority,
    TaskSortField,
    TaskStatistics,
    TaskStatus,
    TaskUpdate,
)

__all__ = [
    "ApiResponse",
    "AuthOut",
    "BulkDeleteRequest",
    "BulkDeleteResult",
    "BulkStatusRequest",
    "BulkStatusResult",
    "CurrentUser",
    "ErrorEnvelope",
    "HealthResponse",
    "LoginRequest",
    "PageMeta",
    "ProfileUpdateRequest",
    "RefreshRequest",
    "SignupRequest",
    "TaskCreate",
    "TaskFilters",
    "TaskOut",
    "TaskPriority",
    "TaskSortField",
    "TaskStatistics",
    "TaskStatus",
    "TaskUpdate",
    "TokenPairOut",
    "UserOut",
    "UserRole",
]
