"""Shared test fixtures."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest

from lifetracker.documents import DocumentStore
from lifetracker.habits.store import HabitStore
from lifetracker.mail.transport import SendResult
from lifetracker.scheduler.engine import SchedulerEngine
from lifetracker.scheduler.hooks import ReminderHooks
from lifetracker.scheduler.reminders import ReminderService
from lifetracker.tasks.store import TaskStore
from lifetracker.tracker import LifeTracker
from lifetracker.users.directory import UserDirectory

if TYPE_CHECKING:
    from pathlib import Path

# Far enough ahead that a started APScheduler never fires a test job.
NOW = datetime(2030, 3, 14, 13, 30, tzinfo=UTC)


class FakeClock:
    """Settable clock handed to SchedulerEngine."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def _no_turso(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure tests use local file, not remote Turso."""
    monkeypatch.setattr("lifetracker.config.settings.turso_database_url", "")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def documents(tmp_path: Path) -> DocumentStore:
    return DocumentStore(db_path=tmp_path / "test.db")


@pytest.fixture
def task_store(documents: DocumentStore) -> TaskStore:
    return TaskStore(documents)


@pytest.fixture
def habit_store(documents: DocumentStore) -> HabitStore:
    return HabitStore(documents)


@pytest.fixture
def users(documents: DocumentStore) -> UserDirectory:
    return UserDirectory(documents)


@pytest.fixture
def transport() -> AsyncMock:
    t = AsyncMock()
    t.send = AsyncMock(return_value=SendResult(message_id="msg-1"))
    return t


@pytest.fixture
def engine(clock: FakeClock) -> SchedulerEngine:
    return SchedulerEngine(
        timezone="UTC",
        min_delay_seconds=1,
        reminder_hour=9,
        reminder_minute=0,
        clock=clock,
    )


@pytest.fixture
def service(
    engine: SchedulerEngine,
    habit_store: HabitStore,
    task_store: TaskStore,
    users: UserDirectory,
    transport: AsyncMock,
) -> ReminderService:
    return ReminderService(
        engine=engine,
        habits=habit_store,
        tasks=task_store,
        users=users,
        transport=transport,
        lead_minutes=15,
    )


@pytest.fixture
def hooks(service: ReminderService) -> ReminderHooks:
    return ReminderHooks(service)


@pytest.fixture
def tracker(task_store: TaskStore, habit_store: HabitStore, hooks: ReminderHooks) -> LifeTracker:
    return LifeTracker(tasks=task_store, habits=habit_store, hooks=hooks)


@pytest.fixture
async def alice(users: UserDirectory):
    return await users.upsert_user("alice", "alice@example.com", "Alice")
