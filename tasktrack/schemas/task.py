"""Pydantic schemas for task create/update/list requests and task responses."""

import math
from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import Field, computed_field, field_validator, model_validator

from tasktrack.schemas.common import CamelModel

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 2_000
SEARCH_MAX_LENGTH = 255
PAGE_LIMIT_MAX = 100
BULK_MAX_IDS = 100


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskSortField(str, Enum):
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    DUE_DATE = "dueDate"
    TITLE = "title"
    PRIORITY = "priority"
    STATUS = "status"


SortOrder = Literal["ASC", "DESC"]


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _clean_title(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Task title is required")
    if len(v) > TITLE_MAX_LENGTH:
        raise ValueError(f"Task title must not exceed {TITLE_MAX_LENGTH} characters")
    return v


def _clean_description(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    if len(v) > DESCRIPTION_MAX_LENGTH:
        raise ValueError(f"Description must not exceed {DESCRIPTION_MAX_LENGTH} characters")
    return v


class TaskCreate(CamelModel):
    """Body for POST /tasks."""

    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str | None) -> str | None:
        return _clean_description(v)

    @field_validator("due_date")
    @classmethod
    def due_date_not_in_past(cls, v: datetime | None) -> datetime | None:
        v = as_utc(v)
        if v is not None and v < datetime.now(UTC):
            raise ValueError("Due date cannot be in the past")
        return v


class TaskUpdate(CamelModel):
    """
    Body for PUT /tasks/{id}: partial patch.

    Only fields present in the request are applied. description and dueDate may be
    null to clear them; title, status and priority may not.
    """

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        return _clean_title(v) if v is not None else None

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str | None) -> str | None:
        return _clean_description(v)

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @model_validator(mode="after")
    def check_fields(self) -> "TaskUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        for name in ("title", "status", "priority"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """Fields explicitly sent by the client, keyed by python attribute name."""
        return self.model_dump(exclude_unset=True)


class TaskFilters(CamelModel):
    """Validated list query: filters ANDed under the caller's ownership scope."""

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date_from: datetime | None = None
    due_date_to: datetime | None = None
    search: str | None = Field(default=None, max_length=SEARCH_MAX_LENGTH)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=PAGE_LIMIT_MAX)
    sort_by: TaskSortField = TaskSortField.CREATED_AT
    sort_order: SortOrder = "DESC"

    @field_validator("due_date_from", "due_date_to")
    @classmethod
    def normalize_dates(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @field_validator("search")
    @classmethod
    def strip_search(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @model_validator(mode="after")
    def check_date_range(self) -> "TaskFilters":
        if self.due_date_from and self.due_date_to and self.due_date_to < self.due_date_from:
            raise ValueError("dueDateTo must not be before dueDateFrom")
        return self


class TaskOut(CamelModel):
    """Task as returned to its owner, with derived overdue/days-until-due fields."""

    id: str
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime | None = None
    completed_at: datetime | None = None
    user_id: str
    created_at: datetime
    updated_at: datetime

    @computed_field(alias="isOverdue")
    @property
    def is_overdue(self) -> bool:
        if self.due_date is None or self.status == TaskStatus.COMPLETED:
            return False
        return datetime.now(UTC) > as_utc(self.due_date)

    @computed_field(alias="daysUntilDue")
    @property
    def days_until_due(self) -> int | None:
        if self.due_date is None:
            return None
        seconds = (as_utc(self.due_date) - datetime.now(UTC)).total_seconds()
        return math.ceil(seconds / 86400)


class BulkStatusRequest(CamelModel):
    task_ids: list[str] = Field(..., min_length=1, max_length=BULK_MAX_IDS)
    status: TaskStatus


class BulkDeleteRequest(CamelModel):
    task_ids: list[str] = Field(..., min_length=1, max_length=BULK_MAX_IDS)


class BulkStatusResult(CamelModel):
    updated: int
    failed: list[str]


class BulkDeleteResult(CamelModel):
    deleted: int
    failed: list[str]


class TaskStatistics(CamelModel):
    total: int
    pending: int
    in_progress: int
    completed: int
    overdue: int
    high_priority: int
