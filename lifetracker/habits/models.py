"""Habit data model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_CATEGORY = "General"


@dataclass
class Habit:
    """A repeating behaviour a user is tracking.

    ``frequency`` drives the reminder cadence: ``"daily"``, ``"weekly"`` or
    ``"monthly"``; anything else is reminded daily.
    """

    id: str
    name: str
    user_id: str
    description: str = ""
    frequency: str = "daily"
    category: str = DEFAULT_CATEGORY
    streak: int = 0
    last_completed_at: str | None = None
    created_at: str = ""
    updated_at: str = ""

    def to_document(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "userId": self.user_id,
            "description": self.description,
            "frequency": self.frequency,
            "category": self.category,
            "streak": self.streak,
            "lastCompletedAt": self.last_completed_at,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_document(cls, habit_id: str, doc: dict[str, Any]) -> Habit:
        return cls(
            id=habit_id,
            name=doc.get("name", ""),
            user_id=doc.get("userId", ""),
            description=doc.get("description") or "",
            frequency=doc.get("frequency") or "daily",
            category=doc.get("category") or DEFAULT_CATEGORY,
            streak=int(doc.get("streak") or 0),
            last_completed_at=doc.get("lastCompletedAt"),
            created_at=doc.get("createdAt") or "",
            updated_at=doc.get("updatedAt") or "",
        )
