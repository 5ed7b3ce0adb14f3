"""Task operations for one owner: CRUD, completion, bulk updates and statistics."""

import logging
import math
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tasktrack.core.errors import AppError, NotFoundError
from tasktrack.models.task import Task
from tasktrack.repositories.tasks import TaskRepository
from tasktrack.repositories.users import UserRepository
from tasktrack.schemas.common import PageMeta
from tasktrack.schemas.task import TaskCreate, TaskFilters, TaskStatus, TaskUpdate
from tasktrack.services.task_lifecycle import apply_status, mark_completed

logger = logging.getLogger(__name__)

UPCOMING_DAYS_DEFAULT = 7


@dataclass
class BulkOutcome:
    """Partial-success result: how many ids succeeded and which ones failed."""

    succeeded: int = 0
    failed: list[str] = field(default_factory=list)


class TaskService:
    """
    Every read and write is scoped to user_id.

    A task owned by someone else is reported as not found, never as forbidden.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.tasks = TaskRepository(db)
        self.users = UserRepository(db)

    def create(self, user_id: str, data: TaskCreate) -> Task:
        if not self.users.exists(user_id):
            raise NotFoundError.for_resource("User")

        task = Task(
            user_id=user_id,
            title=data.title,
            description=data.description,
            priority=data.priority.value,
            due_date=data.due_date,
        )
        apply_status(task, data.status)
        self.tasks.add(task)
        self.db.commit()
        logger.info("Task created: task_id=%s user_id=%s", task.id, user_id)
        return task

    def list_tasks(self, user_id: str, filters: TaskFilters) -> tuple[list[Task], PageMeta]:
        tasks, total = self.tasks.list_for_user(user_id, filters)
        meta = PageMeta(
            page=filters.page,
            limit=filters.limit,
            total=total,
            total_pages=math.ceil(total / filters.limit),
        )
        return tasks, meta

    def get(self, user_id: str, task_id: str) -> Task:
        task = self.tasks.get(user_id, task_id)
        if task is None:
            raise NotFoundError.for_resource("Task")
        return task

    def update(self, user_id: str, task_id: str, patch: TaskUpdate) -> Task:
        task = self.get(user_id, task_id)
        changes = patch.changes()
        status = changes.pop("status", None)
        for name, value in changes.items():
            setattr(task, name, value.value if isinstance(value, Enum) else value)
        if status is not None:
            apply_status(task, status)
        self.db.commit()
        return task

    def complete(self, user_id: str, task_id: str) -> Task:
        task = self.get(user_id, task_id)
        mark_completed(task)
        self.db.commit()
        return task

    def delete(self, user_id: str, task_id: str) -> None:
        task = self.get(user_id, task_id)
        self.tasks.delete(task)
        self.db.commit()
        logger.info("Task deleted: task_id=%s user_id=%s", task_id, user_id)

    def bulk_update_status(self, user_id: str, task_ids: list[str], status: TaskStatus) -> BulkOutcome:
        """Apply update() per id in order; one failure never stops the rest."""
        outcome = BulkOutcome()
        patch = TaskUpdate(status=status)
        for task_id in task_ids:
            try:
                self.update(user_id, task_id, patch)
            except (AppError, SQLAlchemyError) as e:
                self.db.rollback()
                logger.info("Bulk status update skipped task_id=%s: %s", task_id, e)
                outcome.failed.append(task_id)
            else:
                outcome.succeeded += 1
        return outcome

    def bulk_delete(self, user_id: str, task_ids: list[str]) -> BulkOutcome:
        """Apply delete() per id in order; one failure never stops the rest."""
        outcome = BulkOutcome()
        for task_id in task_ids:
            try:
                self.delete(user_id, task_id)
            except (AppError, SQLAlchemyError) as e:
                self.db.rollback()
                logger.info("Bulk delete skipped task_id=%s: %s", task_id, e)
                outcome.failed.append(task_id)
            else:
                outcome.succeeded += 1
        return outcome

    def statistics(self, user_id: str) -> dict[str, int]:
        return self.tasks.statistics(user_id, datetime.now(UTC))

    def upcoming(self, user_id: str, days: int = UPCOMING_DAYS_DEFAULT) -> list[Task]:
        now = datetime.now(UTC)
        return self.tasks.due_between(user_id, now, now + timedelta(days=days))

    def overdue(self, user_id: str) -> list[Task]:
        return self.tasks.overdue(user_id, datetime.now(UTC))
