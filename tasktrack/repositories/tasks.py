"""Task persistence and the filtered, sorted, paginated list query."""

import logging
from datetime import datetime

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Query, Session

from tasktrack.models.task import Task
from tasktrack.schemas.task import TaskFilters, TaskPriority, TaskSortField, TaskStatus

logger = logging.getLogger(__name__)

# Enum-like string columns sort by declared order, not alphabetically.
_PRIORITY_RANK = case(
    {TaskPriority.LOW.value: 1, TaskPriority.MEDIUM.value: 2, TaskPriority.HIGH.value: 3},
    value=Task.priority,
    else_=0,
)
_STATUS_RANK = case(
    {
        TaskStatus.PENDING.value: 1,
        TaskStatus.IN_PROGRESS.value: 2,
        TaskStatus.COMPLETED.value: 3,
    },
    value=Task.status,
    else_=0,
)

SORT_COLUMNS = {
    TaskSortField.CREATED_AT: Task.created_at,
    TaskSortField.UPDATED_AT: Task.updated_at,
    TaskSortField.DUE_DATE: Task.due_date,
    TaskSortField.TITLE: Task.title,
    TaskSortField.PRIORITY: _PRIORITY_RANK,
    TaskSortField.STATUS: _STATUS_RANK,
}


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TaskRepository:
    """All queries are scoped by owning user id before any other condition."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _owned(self, user_id: str) -> Query:
        return self.db.query(Task).filter(Task.user_id == str(user_id))

    def add(self, task: Task) -> Task:
        self.db.add(task)
        self.db.flush()
        return task

    def get(self, user_id: str, task_id: str) -> Task | None:
        """Return the task only if it exists and belongs to user_id."""
        return self._owned(user_id).filter(Task.id == str(task_id)).first()

    def delete(self, task: Task) -> None:
        self.db.delete(task)
        self.db.flush()

    def list_for_user(self, user_id: str, filters: TaskFilters) -> tuple[list[Task], int]:
        """
        Return one page of the caller's tasks and the total matching count.

        The total ignores pagination, so a page past the end yields ([], total).
        """
        query = self._owned(user_id)
        if filters.status is not None:
            query = query.filter(Task.status == filters.status.value)
        if filters.priority is not None:
            query = query.filter(Task.priority == filters.priority.value)
        if filters.due_date_from is not None:
            query = query.filter(Task.due_date >= filters.due_date_from)
        if filters.due_date_to is not None:
            query = query.filter(Task.due_date <= filters.due_date_to)
        if filters.search:
            pattern = f"%{_escape_like(filters.search)}%"
            query = query.filter(
                or_(
                    Task.title.ilike(pattern, escape="\\"),
                    Task.description.ilike(pattern, escape="\\"),
                )
            )

        total = query.order_by(None).count()

        column = SORT_COLUMNS[filters.sort_by]
        ordering = column.asc() if filters.sort_order == "ASC" else column.desc()
        # id breaks ties so pages stay stable across requests
        tie_break = Task.id.asc() if filters.sort_order == "ASC" else Task.id.desc()
        offset = (filters.page - 1) * filters.limit
        tasks = query.order_by(ordering, tie_break).offset(offset).limit(filters.limit).all()
        logger.debug(
            "Listed tasks user_id=%s page=%s limit=%s returned=%s total=%s",
            user_id,
            filters.page,
            filters.limit,
            len(tasks),
            total,
        )
        return tasks, total

    def statistics(self, user_id: str, now: datetime) -> dict[str, int]:
        not_completed = Task.status != TaskStatus.COMPLETED.value
        row = (
            self.db.query(
                func.count(Task.id),
                func.sum(case((Task.status == TaskStatus.PENDING.value, 1), else_=0)),
                func.sum(case((Task.status == TaskStatus.IN_PROGRESS.value, 1), else_=0)),
                func.sum(case((Task.status == TaskStatus.COMPLETED.value, 1), else_=0)),
                func.sum(case(((Task.due_date < now) & not_completed, 1), else_=0)),
                func.sum(case((Task.priority == TaskPriority.HIGH.value, 1), else_=0)),
            )
            .filter(Task.user_id == str(user_id))
            .one()
        )
        total, pending, in_progress, completed, overdue, high = (int(v or 0) for v in row)
        return {
            "total": total,
            "pending": pending,
            "in_progress": in_progress,
            "completed": completed,
            "overdue": overdue,
            "high_priority": high,
        }

    def due_between(self, user_id: str, start: datetime, end: datetime) -> list[Task]:
        """Open tasks due in [start, end], soonest first."""
        return (
            self._owned(user_id)
            .filter(Task.due_date >= start, Task.due_date <= end)
            .filter(Task.status != TaskStatus.COMPLETED.value)
            .order_by(Task.due_date.asc(), Task.id.asc())
            .all()
        )

    def overdue(self, user_id: str, now: datetime) -> list[Task]:
        """Open tasks whose due date has passed, oldest first."""
        return (
            self._owned(user_id)
            .filter(Task.due_date < now)
            .filter(Task.status != TaskStatus.COMPLETED.value)
            .order_by(Task.due_date.asc(), Task.id.asc())
            .all()
        )
