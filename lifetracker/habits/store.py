"""HabitStore — data access for habits in the document tree."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from lifetracker.documents import DocumentStore
from lifetracker.habits.models import DEFAULT_CATEGORY, Habit

logger = logging.getLogger(__name__)

COLLECTION = "habits"

_WRITABLE = ("name", "description", "frequency", "category")


def _now() -> str:
    return datetime.now(UTC).isoformat()


class HabitStore:
    """Reads and writes ``habits/<id>`` documents.

    Singleton accessed via ``HabitStore.get()``.
    """

    _instance: HabitStore | None = None

    def __init__(self, documents: DocumentStore | None = None) -> None:
        self._documents = documents or DocumentStore.get()

    @classmethod
    def get(cls) -> HabitStore:
        """Return the shared HabitStore instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    async def get_habit(self, habit_id: str) -> Habit | None:
        """Fetch a habit by ID regardless of owner."""
        doc = await self._documents.get(f"{COLLECTION}/{habit_id}")
        return Habit.from_document(habit_id, doc) if isinstance(doc, dict) else None

    async def list_all_habits(self) -> list[Habit]:
        docs = await self._documents.get(COLLECTION) or {}
        return [Habit.from_document(habit_id, doc) for habit_id, doc in docs.items()]

    async def list_habits(self, user_id: str) -> list[Habit]:
        docs = await self._documents.query_by_field(COLLECTION, "userId", user_id)
        return [Habit.from_document(habit_id, doc) for habit_id, doc in docs.items()]

    async def list_by_category(self, user_id: str, category: str) -> list[Habit]:
        return [h for h in await self.list_habits(user_id) if h.category == category]

    async def get_user_habit(self, habit_id: str, user_id: str) -> Habit | None:
        habit = await self.get_habit(habit_id)
        if habit is None or habit.user_id != user_id:
            return None
        return habit

    async def create_habit(self, fields: dict[str, Any], user_id: str) -> str:
        """Insert a new habit with a zero streak. Returns the new habit ID."""
        now = _now()
        doc = {k: fields[k] for k in _WRITABLE if k in fields}
        doc["category"] = doc.get("category") or DEFAULT_CATEGORY
        doc.update(
            {
                "userId": user_id,
                "streak": 0,
                "lastCompletedAt": None,
                "createdAt": now,
                "updatedAt": now,
            }
        )
        habit_id = await self._documents.push(COLLECTION, doc)
        logger.info("Created habit %s for user %s", habit_id, user_id)
        return habit_id

    async def update_habit(
        self, habit_id: str, updates: dict[str, Any], user_id: str
    ) -> Habit | None:
        """Apply a partial update of the writable fields. Other keys are ignored."""
        changes = {k: updates[k] for k in _WRITABLE if k in updates}
        return await self._write(habit_id, changes, user_id)

    async def _write(
        self, habit_id: str, changes: dict[str, Any], user_id: str
    ) -> Habit | None:
        if await self.get_user_habit(habit_id, user_id) is None:
            return None
        changes = {**changes, "updatedAt": _now()}
        await self._documents.update(f"{COLLECTION}/{habit_id}", changes)
        return await self.get_user_habit(habit_id, user_id)

    async def delete_habit(self, habit_id: str, user_id: str) -> bool:
        if await self.get_user_habit(habit_id, user_id) is None:
            return False
        await self._documents.remove(f"{COLLECTION}/{habit_id}")
        logger.info("Deleted habit %s", habit_id)
        return True

    async def increment_streak(self, habit_id: str, user_id: str) -> Habit | None:
        """Add one to the streak and stamp the completion time."""
        habit = await self.get_user_habit(habit_id, user_id)
        if habit is None:
            return None
        return await self._write(
            habit_id,
            {"streak": habit.streak + 1, "lastCompletedAt": _now()},
            user_id,
        )

    async def reset_streak(self, habit_id: str, user_id: str) -> Habit | None:
        if await self.get_user_habit(habit_id, user_id) is None:
            return None
        return await self._write(
            habit_id, {"streak": 0, "lastCompletedAt": None}, user_id
        )
