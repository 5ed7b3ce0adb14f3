"""Task status transitions: keeps completed_at in step with status on every write."""

from datetime import UTC, datetime

from tasktrack.core.errors import ValidationError
from tasktrack.models.task import Task
from tasktrack.schemas.task import TaskStatus


def apply_status(task: Task, status: TaskStatus | str, now: datetime | None = None) -> Task:
    """
    Set task.status and restore the completed_at invariant.

    Entering completed stamps completed_at (an already-completed task keeps its
    original stamp); any other status clears it.
    """
    status = TaskStatus(status)
    if status == TaskStatus.COMPLETED:
        if task.status != TaskStatus.COMPLETED.value or task.completed_at is None:
            task.completed_at = now or datetime.now(UTC)
    else:
        task.completed_at = None
    task.status = status.value
    return task


def mark_completed(task: Task, now: datetime | None = None) -> Task:
    """Transition to completed; rejects a task that is already completed."""
    if task.status == TaskStatus.COMPLETED.value:
        raise ValidationError("Task is already completed", status_code=400)
    return apply_status(task, TaskStatus.COMPLETED, now)
