"""Task endpoints. Every route requires a bearer token and only touches the caller's tasks."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import ValidationError as PydanticValidationError

from tasktrack.api.deps import get_current_user, get_task_service
from tasktrack.core.errors import ValidationError
from tasktrack.schemas.auth import CurrentUser
from tasktrack.schemas.common import ApiResponse
from tasktrack.schemas.task import (
    PAGE_LIMIT_MAX,
    SEARCH_MAX_LENGTH,
    BulkDeleteRequest,
    BulkDeleteResult,
    BulkStatusRequest,
    BulkStatusResult,
    SortOrder,
    TaskCreate,
    TaskFilters,
    TaskOut,
    TaskPriority,
    TaskSortField,
    TaskStatistics,
    TaskStatus,
    TaskUpdate,
)
from tasktrack.services.tasks import UPCOMING_DAYS_DEFAULT, TaskService

router = APIRouter(dependencies=[Depends(get_current_user)])

CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]


def task_filters(
    task_status: Annotated[TaskStatus | None, Query(alias="status")] = None,
    priority: Annotated[TaskPriority | None, Query()] = None,
    due_date_from: Annotated[datetime | None, Query(alias="dueDateFrom")] = None,
    due_date_to: Annotated[datetime | None, Query(alias="dueDateTo")] = None,
    search: Annotated[str | None, Query(max_length=SEARCH_MAX_LENGTH)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=PAGE_LIMIT_MAX)] = 10,
    sort_by: Annotated[TaskSortField, Query(alias="sortBy")] = TaskSortField.CREATED_AT,
    sort_order: Annotated[SortOrder, Query(alias="sortOrder")] = "DESC",
) -> TaskFilters:
    """Collect list query parameters into TaskFilters (cross-field checks raise 422)."""
    try:
        return TaskFilters(
            status=task_status,
            priority=priority,
            due_date_from=due_date_from,
            due_date_to=due_date_to,
            search=search,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except PydanticValidationError as e:
        raise ValidationError(
            details=[{"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]} for err in e.errors()]
        ) from e


def _out(task) -> TaskOut:
    return TaskOut.model_validate(task)


@router.post("", response_model=ApiResponse[TaskOut], status_code=status.HTTP_201_CREATED)
def create_task(
    body: TaskCreate,
    current_user: CurrentUserDep,
    tasks: TaskServiceDep,
) -> ApiResponse[TaskOut]:
    """Create a task; status defaults to pending and priority to medium."""
    task = tasks.create(current_user.id, body)
    return ApiResponse[TaskOut](message="Task created successfully", data=_out(task))


@router.get("", response_model=ApiResponse[list[TaskOut]])
def list_tasks(
    filters: Annotated[TaskFilters, Depends(task_filters)],
    current_user: CurrentUserDep,
    tasks: TaskServiceDep,
) -> ApiResponse[list[TaskOut]]:
    """
    List the caller's tasks with optional status/priority/due-date filters and
    case-insensitive search over title and description.

    meta.totalPages is ceil(total / limit); a page past the end returns an empty list.
    """
    items, meta = tasks.list_tasks(current_user.id, filters)
    return ApiResponse[list[TaskOut]](
        message="Tasks retrieved successfully",
        data=[_out(t) for t in items],
        meta=meta,
    )


@router.get("/stats", response_model=ApiResponse[TaskStatistics])
def task_statistics(current_user: CurrentUserDep, tasks: TaskServiceDep) -> ApiResponse[TaskStatistics]:
    stats = tasks.statistics(current_user.id)
    return ApiResponse[TaskStatistics](
        message="Task statistics retrieved successfully",
        data=TaskStatistics(**stats),
    )


@router.get("/upcoming", response_model=ApiResponse[list[TaskOut]])
def upcoming_tasks(
    current_user: CurrentUserDep,
    tasks: TaskServiceDep,
    days: Annotated[int, Query(ge=1, le=365)] = UPCOMING_DAYS_DEFAULT,
) -> ApiResponse[list[TaskOut]]:
    """Open tasks due within the next `days` days, soonest first."""
    items = tasks.upcoming(current_user.id, days)
    return ApiResponse[list[TaskOut]](
        message="Upcoming tasks retrieved successfully",
        data=[_out(t) for t in items],
    )


@router.get("/overdue", response_model=ApiResponse[list[TaskOut]])
def overdue_tasks(current_user: CurrentUserDep, tasks: TaskServiceDep) -> ApiResponse[list[TaskOut]]:
    items = tasks.overdue(current_user.id)
    return ApiResponse[list[TaskOut]](
        message="Overdue tasks retrieved successfully",
        data=[_out(t) for t in items],
    )


@router.post("/bulk/status", response_model=ApiResponse[BulkStatusResult])
def bulk_update_status(
    body: BulkStatusRequest,
    current_user: CurrentUserDep,
    tasks: TaskServiceDep,
) -> ApiResponse[BulkStatusResult]:
    """Set one status on many tasks; ids that fail are reported, the rest still apply."""
    outcome = tasks.bulk_update_status(current_user.id, body.task_ids, body.status)
    return ApiResponse[BulkStatusResult](
        message="Bulk status update finished",
        data=BulkStatusResult(updated=outcome.succeeded, failed=outcome.failed),
    )


@router.post("/bulk/delete", response_model=ApiResponse[BulkDeleteResult])
def bulk_delete(
    body: BulkDeleteRequest,
    current_user: CurrentUserDep,
    tasks: TaskServiceDep,
) -> ApiResponse[BulkDeleteResult]:
    outcome = tasks.bulk_delete(current_user.id, body.task_ids)
    return ApiResponse[BulkDeleteResult](
        message="Bulk delete finished",
        data=BulkDeleteResult(deleted=outcome.succeeded, failed=outcome.failed),
    )


@router.get("/{task_id}", response_model=ApiResponse[TaskOut])
def get_task(task_id: str, current_user: CurrentUserDep, tasks: TaskServiceDep) -> ApiResponse[TaskOut]:
    """Another user's task is reported as 404, exactly like a missing one."""
    task = tasks.get(current_user.id, task_id)
    return ApiResponse[TaskOut](message="Task retrieved successfully", data=_out(task))


@router.put("/{task_id}", response_model=ApiResponse[TaskOut])
def update_task(
    task_id: str,
    body: TaskUpdate,
    current_user: CurrentUserDep,
    tasks: TaskServiceDep,
) -> ApiResponse[TaskOut]:
    task = tasks.update(current_user.id, task_id, body)
    return ApiResponse[TaskOut](message="Task updated successfully", data=_out(task))


@router.patch("/{task_id}/complete", response_model=ApiResponse[TaskOut])
def complete_task(task_id: str, current_user: CurrentUserDep, tasks: TaskServiceDep) -> ApiResponse[TaskOut]:
    task = tasks.complete(current_user.id, task_id)
    return ApiResponse[TaskOut](message="Task marked as complete", data=_out(task))


@router.delete("/{task_id}", response_model=ApiResponse[None])
def delete_task(task_id: str, current_user: CurrentUserDep, tasks: TaskServiceDep) -> ApiResponse[None]:
    tasks.delete(current_user.id, task_id)
    return ApiResponse[None](message="Task deleted successfully")
