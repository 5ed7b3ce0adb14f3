"""Integration tests for TaskService against an in-memory SQLite database."""

import unittest
from datetime import UTC, datetime, timedelta

from tasktrack.core.errors import NotFoundError, ValidationError
from tasktrack.models import Task
from tasktrack.schemas.task import (
    TaskCreate,
    TaskFilters,
    TaskPriority,
    TaskSortField,
    TaskStatus,
    TaskUpdate,
)
from tasktrack.services.tasks import TaskService
from tests.helpers import create_user, make_database


class TaskServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.database = make_database()
        self.owner = create_user(self.database, "owner@example.com")
        self.other = create_user(self.database, "other@example.com")
        self.db = self.database.session()
        self.service = TaskService(self.db)

    def tearDown(self) -> None:
        self.db.close()
        self.database.dispose()

    def _create(self, title: str, user_id: str | None = None, **fields) -> Task:
        return self.service.create(user_id or self.owner.id, TaskCreate(title=title, **fields))

    def _insert(self, title: str, **fields) -> Task:
        """Insert directly, bypassing create-time validation (e.g. past due dates)."""
        task = Task(user_id=self.owner.id, title=title, **fields)
        self.db.add(task)
        self.db.commit()
        return task


class TestCreateAndGet(TaskServiceTestCase):
    def test_defaults(self) -> None:
        task = self._create("  Write report  ")
        self.assertEqual(task.title, "Write report")
        self.assertEqual(task.status, "pending")
        self.assertEqual(task.priority, "medium")
        self.assertIsNone(task.completed_at)
        self.assertEqual(task.user_id, self.owner.id)

    def test_created_completed_gets_stamp(self) -> None:
        task = self._create("Done already", status=TaskStatus.COMPLETED)
        self.assertIsNotNone(task.completed_at)

    def test_unknown_owner(self) -> None:
        with self.assertRaises(NotFoundError):
            self._create("Orphan", user_id="00000000-0000-4000-8000-000000000000")

    def test_other_users_task_is_not_found(self) -> None:
        task = self._create("Private")
        with self.assertRaises(NotFoundError) as ctx:
            self.service.get(self.other.id, task.id)
        self.assertEqual(ctx.exception.message, "Task not found")
        with self.assertRaises(NotFoundError):
            self.service.update(self.other.id, task.id, TaskUpdate(title="Hijacked"))
        with self.assertRaises(NotFoundError):
            self.service.delete(self.other.id, task.id)
        self.assertEqual(self.service.get(self.owner.id, task.id).title, "Private")


class TestUpdateAndComplete(TaskServiceTestCase):
    def test_partial_update_only_touches_sent_fields(self) -> None:
        due = datetime.now(UTC) + timedelta(days=3)
        task = self._create("Plan", description="notes", due_date=due)
        updated = self.service.update(self.owner.id, task.id, TaskUpdate(priority=TaskPriority.HIGH))
        self.assertEqual(updated.priority, "high")
        self.assertEqual(updated.description, "notes")
        self.assertIsNotNone(updated.due_date)

    def test_null_clears_description_and_due_date(self) -> None:
        task = self._create("Plan", description="notes", due_date=datetime.now(UTC) + timedelta(days=1))
        patch = TaskUpdate.model_validate({"description": None, "dueDate": None})
        updated = self.service.update(self.owner.id, task.id, patch)
        self.assertIsNone(updated.description)
        self.assertIsNone(updated.due_date)

    def test_status_changes_keep_completed_at_in_step(self) -> None:
        task = self._create("Ship")
        done = self.service.update(self.owner.id, task.id, TaskUpdate(status=TaskStatus.COMPLETED))
        self.assertIsNotNone(done.completed_at)
        reopened = self.service.update(self.owner.id, task.id, TaskUpdate(status=TaskStatus.IN_PROGRESS))
        self.assertEqual(reopened.status, "in_progress")
        self.assertIsNone(reopened.completed_at)

    def test_complete_twice(self) -> None:
        task = self._create("Once")
        completed = self.service.complete(self.owner.id, task.id)
        self.assertEqual(completed.status, "completed")
        self.assertIsNotNone(completed.completed_at)
        with self.assertRaises(ValidationError) as ctx:
            self.service.complete(self.owner.id, task.id)
        self.assertEqual(ctx.exception.status_code, 400)


class TestListTasks(TaskServiceTestCase):
    def test_pagination(self) -> None:
        for i in range(25):
            self._create(f"Task {i}")
        tasks, meta = self.service.list_tasks(self.owner.id, TaskFilters(page=3, limit=10))
        self.assertEqual(len(tasks), 5)
        self.assertEqual((meta.page, meta.limit, meta.total, meta.total_pages), (3, 10, 25, 3))

        tasks, meta = self.service.list_tasks(self.owner.id, TaskFilters(page=4, limit=10))
        self.assertEqual(tasks, [])
        self.assertEqual(meta.total, 25)

    def test_pages_do_not_overlap(self) -> None:
        for i in range(7):
            self._create(f"Task {i}")
        seen = []
        for page in (1, 2, 3):
            tasks, _ = self.service.list_tasks(self.owner.id, TaskFilters(page=page, limit=3))
            seen.extend(t.id for t in tasks)
        self.assertEqual(len(seen), 7)
        self.assertEqual(len(set(seen)), 7)

    def test_empty_list(self) -> None:
        tasks, meta = self.service.list_tasks(self.owner.id, TaskFilters())
        self.assertEqual(tasks, [])
        self.assertEqual((meta.total, meta.total_pages), (0, 0))

    def test_only_own_tasks(self) -> None:
        self._create("Mine")
        self._create("Theirs", user_id=self.other.id)
        tasks, meta = self.service.list_tasks(self.owner.id, TaskFilters())
        self.assertEqual([t.title for t in tasks], ["Mine"])
        self.assertEqual(meta.total, 1)

    def test_search_is_case_insensitive_over_title_and_description(self) -> None:
        self._create("Buy MILK")
        self._create("Groceries", description="eggs and milk")
        self._create("Write report")
        tasks, meta = self.service.list_tasks(self.owner.id, TaskFilters(search="milk"))
        self.assertEqual(meta.total, 2)
        self.assertEqual({t.title for t in tasks}, {"Buy MILK", "Groceries"})

    def test_search_treats_wildcards_literally(self) -> None:
        self._create("100% done")
        self._create("1000 things")
        tasks, _ = self.service.list_tasks(self.owner.id, TaskFilters(search="100%"))
        self.assertEqual([t.title for t in tasks], ["100% done"])

    def test_status_and_priority_filters_combine(self) -> None:
        self._create("a", priority=TaskPriority.HIGH)
        self._create("b", priority=TaskPriority.HIGH, status=TaskStatus.IN_PROGRESS)
        self._create("c", priority=TaskPriority.LOW, status=TaskStatus.IN_PROGRESS)
        filters = TaskFilters(status=TaskStatus.IN_PROGRESS, priority=TaskPriority.HIGH)
        tasks, meta = self.service.list_tasks(self.owner.id, filters)
        self.assertEqual([t.title for t in tasks], ["b"])
        self.assertEqual(meta.total, 1)

    def test_due_date_range(self) -> None:
        now = datetime.now(UTC)
        self._create("soon", due_date=now + timedelta(days=1))
        self._create("later", due_date=now + timedelta(days=10))
        self._create("no date")
        filters = TaskFilters(due_date_from=now, due_date_to=now + timedelta(days=5))
        tasks, _ = self.service.list_tasks(self.owner.id, filters)
        self.assertEqual([t.title for t in tasks], ["soon"])

    def test_sort_by_priority_uses_declared_order(self) -> None:
        self._create("h", priority=TaskPriority.HIGH)
        self._create("l", priority=TaskPriority.LOW)
        self._create("m", priority=TaskPriority.MEDIUM)
        filters = TaskFilters(sort_by=TaskSortField.PRIORITY, sort_order="ASC")
        tasks, _ = self.service.list_tasks(self.owner.id, filters)
        self.assertEqual([t.title for t in tasks], ["l", "m", "h"])

    def test_sort_by_title(self) -> None:
        for title in ("banana", "apple", "cherry"):
            self._create(title)
        tasks, _ = self.service.list_tasks(self.owner.id, TaskFilters(sort_by=TaskSortField.TITLE, sort_order="ASC"))
        self.assertEqual([t.title for t in tasks], ["apple", "banana", "cherry"])


class TestBulkOperations(TaskServiceTestCase):
    def test_bulk_status_partial_success(self) -> None:
        a = self._create("a")
        b = self._create("b")
        foreign = self._create("foreign", user_id=self.other.id)
        outcome = self.service.bulk_update_status(
            self.owner.id, [a.id, "missing-id", foreign.id, b.id], TaskStatus.COMPLETED
        )
        self.assertEqual(outcome.succeeded, 2)
        self.assertEqual(outcome.failed, ["missing-id", foreign.id])
        self.assertIsNotNone(self.service.get(self.owner.id, b.id).completed_at)
        self.assertEqual(self.service.get(self.other.id, foreign.id).status, "pending")

    def test_bulk_delete_partial_success(self) -> None:
        a = self._create("a")
        outcome = self.service.bulk_delete(self.owner.id, [a.id, "missing-id"])
        self.assertEqual(outcome.succeeded, 1)
        self.assertEqual(outcome.failed, ["missing-id"])
        with self.assertRaises(NotFoundError):
            self.service.get(self.owner.id, a.id)


class TestStatisticsAndDueViews(TaskServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        now = datetime.now(UTC)
        self.overdue = self._insert("overdue", due_date=now - timedelta(days=2), priority="high")
        self._insert("done late", due_date=now - timedelta(days=1), status="completed", completed_at=now)
        self.soon = self._insert("soon", due_date=now + timedelta(days=2), status="in_progress")
        self._insert("far", due_date=now + timedelta(days=20))
        self._insert("done soon", due_date=now + timedelta(days=1), status="completed", completed_at=now)
        self._create("someone else's", user_id=self.other.id, priority=TaskPriority.HIGH)

    def test_statistics(self) -> None:
        stats = self.service.statistics(self.owner.id)
        self.assertEqual(
            stats,
            {
                "total": 5,
                "pending": 2,
                "in_progress": 1,
                "completed": 2,
                "overdue": 1,
                "high_priority": 1,
            },
        )

    def test_upcoming_excludes_completed_and_far_tasks(self) -> None:
        self.assertEqual([t.id for t in self.service.upcoming(self.owner.id, days=7)], [self.soon.id])
        self.assertEqual(len(self.service.upcoming(self.owner.id, days=30)), 2)

    def test_overdue(self) -> None:
        self.assertEqual([t.id for t in self.service.overdue(self.owner.id)], [self.overdue.id])


if __name__ == "__main__":
    unittest.main()
