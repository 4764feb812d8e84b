"""TaskStore — data access for tasks in the document tree."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from lifetracker.documents import DocumentStore
from lifetracker.tasks.models import Task

logger = logging.getLogger(__name__)

COLLECTION = "tasks"

# Fields a caller may set through create/update.
_WRITABLE = ("name", "category", "dueDate", "priority", "completed")


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _sort_key(task: Task) -> tuple[int, datetime]:
    due = task.due_at
    if due is None:
        return (1, datetime.max.replace(tzinfo=UTC))
    return (0, due)


class TaskStore:
    """Reads and writes ``tasks/<id>`` documents.

    Singleton accessed via ``TaskStore.get()``.  Pass an explicit
    *documents* store for test isolation.
    """

    _instance: TaskStore | None = None

    def __init__(self, documents: DocumentStore | None = None) -> None:
        self._documents = documents or DocumentStore.get()

    @classmethod
    def get(cls) -> TaskStore:
        """Return the shared TaskStore instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    # -- Unscoped reads (scheduler) --------------------------------------------

    async def get_task(self, task_id: str) -> Task | None:
        """Fetch a task by ID regardless of owner, or None if not found."""
        doc = await self._documents.get(f"{COLLECTION}/{task_id}")
        return Task.from_document(task_id, doc) if isinstance(doc, dict) else None

    async def list_all_tasks(self) -> list[Task]:
        """Return every stored task."""
        docs = await self._documents.get(COLLECTION) or {}
        return [Task.from_document(task_id, doc) for task_id, doc in docs.items()]

    # -- Per-user CRUD ---------------------------------------------------------

    async def list_tasks(self, user_id: str) -> list[Task]:
        """Return the user's tasks ordered by due date, undated tasks last."""
        docs = await self._documents.query_by_field(COLLECTION, "userId", user_id)
        tasks = [Task.from_document(task_id, doc) for task_id, doc in docs.items()]
        return sorted(tasks, key=_sort_key)

    async def list_by_category(self, user_id: str, category: str) -> list[Task]:
        return [t for t in await self.list_tasks(user_id) if t.category == category]

    async def list_by_priority(self, user_id: str, priority: str) -> list[Task]:
        return [t for t in await self.list_tasks(user_id) if t.priority == priority]

    async def get_user_task(self, task_id: str, user_id: str) -> Task | None:
        """Fetch a task only if it belongs to *user_id*."""
        task = await self.get_task(task_id)
        if task is None or task.user_id != user_id:
            return None
        return task

    async def create_task(self, fields: dict[str, Any], user_id: str) -> str:
        """Insert a new task for *user_id*. Returns the new task ID."""
        now = _now()
        doc = {k: fields[k] for k in _WRITABLE if k in fields}
        doc.setdefault("completed", False)
        doc.update({"userId": user_id, "createdAt": now, "updatedAt": now})
        task_id = await self._documents.push(COLLECTION, doc)
        logger.info("Created task %s for user %s", task_id, user_id)
        return task_id

    async def update_task(
        self, task_id: str, updates: dict[str, Any], user_id: str
    ) -> Task | None:
        """Apply a partial update. Returns the updated task, or None if not found."""
        if await self.get_user_task(task_id, user_id) is None:
            return None
        changes = {k: updates[k] for k in _WRITABLE if k in updates}
        changes["updatedAt"] = _now()
        await self._documents.update(f"{COLLECTION}/{task_id}", changes)
        return await self.get_user_task(task_id, user_id)

    async def delete_task(self, task_id: str, user_id: str) -> bool:
        """Delete a task. Returns True if it existed and belonged to the user."""
        if await self.get_user_task(task_id, user_id) is None:
            return False
        await self._documents.remove(f"{COLLECTION}/{task_id}")
        logger.info("Deleted task %s", task_id)
        return True

    async def toggle_completion(self, task_id: str, user_id: str) -> Task | None:
        """Flip the completed flag. Returns the updated task, or None if not found."""
        task = await self.get_user_task(task_id, user_id)
        if task is None:
            return None
        return await self.update_task(task_id, {"completed": not task.completed}, user_id)
