"""Task data model."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)


def parse_timestamp(value: str | None, tz: Any = UTC) -> datetime | None:
    """Parse an ISO 8601 string; naive values are taken to be in *tz*."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


@dataclass
class Task:
    """A to-do item owned by one user.

    Attributes:
        id: Document key under ``tasks/``.
        name: Human-readable title.
        user_id: Owning user's id.
        due_date: ISO 8601 due timestamp, or None for undated tasks.
        priority: ``"low"``, ``"medium"`` or ``"high"``.
        category: Free-form grouping label.
        completed: Whether the task is done.
        created_at: ISO 8601 timestamp.
        updated_at: ISO 8601 timestamp.
    """

    id: str
    name: str
    user_id: str
    due_date: str | None = None
    priority: str = "medium"
    category: str = ""
    completed: bool = False
    created_at: str = ""
    updated_at: str = ""

    @property
    def due_at(self) -> datetime | None:
        """Parsed due date. An unparseable stored value counts as no due date."""
        try:
            return parse_timestamp(self.due_date)
        except (TypeError, ValueError):
            logger.warning("Task %s has an invalid due date %r", self.id, self.due_date)
            return None

    def to_document(self) -> dict[str, Any]:
        """Serialize to the stored document shape (id is the key, not a field)."""
        return {
            "name": self.name,
            "userId": self.user_id,
            "dueDate": self.due_date,
            "priority": self.priority,
            "category": self.category,
            "completed": self.completed,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_document(cls, task_id: str, doc: dict[str, Any]) -> Task:
        return cls(
            id=task_id,
            name=doc.get("name", ""),
            user_id=doc.get("userId", ""),
            due_date=doc.get("dueDate") or None,
            priority=doc.get("priority") or "medium",
            category=doc.get("category") or "",
            completed=bool(doc.get("completed", False)),
            created_at=doc.get("createdAt") or "",
            updated_at=doc.get("updatedAt") or "",
        )
