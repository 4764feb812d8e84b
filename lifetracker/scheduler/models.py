"""Job and JobPayload data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

# Entity kinds a job can reference.
HABIT = "habit"
TASK = "task"

# Job kinds, used as the job id prefix.
HABIT_REMINDER = "reminder"
TASK_DUE = "task_due"


@dataclass
class JobPayload:
    """Everything a job callback needs, copied at schedule time.

    Attributes:
        kind: Job kind (``"reminder"`` or ``"task_due"``).
        entity_kind: ``"habit"`` or ``"task"``.
        entity_id: ID of the habit or task the job is about.
        user_id: Owning user's ID.
        email: Recipient address.
        name: Recipient display name (may be empty).
        recurring: Whether firing schedules a successor.
        frequency: Recurrence frequency for recurring jobs.
    """

    kind: str
    entity_kind: str
    entity_id: str
    user_id: str
    email: str
    name: str = ""
    recurring: bool = False
    frequency: str | None = None

    def references(self, entity_id: str, entity_kind: str) -> bool:
        return self.entity_id == entity_id and self.entity_kind == entity_kind


@dataclass
class Job:
    """A pending timed callback held in the scheduler's job store."""

    id: str
    scheduled_for: datetime
    payload: JobPayload
    callback: Callable[[JobPayload], Awaitable[Any]]
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    timer_handle: Any = field(default=None, repr=False)

    @property
    def recurring(self) -> bool:
        return self.payload.recurring


def make_job_id(kind: str, entity_id: str, when: datetime) -> str:
    """Deterministic job ID from kind, entity and fire time (epoch ms)."""
    return f"{kind}_{entity_id}_{round(when.timestamp() * 1000)}"
