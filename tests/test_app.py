"""Tests for application wiring and lifecycle."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from lifetracker.app import create_app
from lifetracker.scheduler.models import TASK

if TYPE_CHECKING:
    from unittest.mock import AsyncMock

    from lifetracker.documents import DocumentStore
    from lifetracker.scheduler.engine import SchedulerEngine
    from lifetracker.tasks.store import TaskStore
    from lifetracker.users.directory import UserDirectory


async def test_create_app_wires_shared_engine(
    documents: DocumentStore, transport: AsyncMock, engine: SchedulerEngine
) -> None:
    app = create_app(documents=documents, transport=transport, engine=engine)

    assert app.engine is engine
    assert app.reminders.engine is engine
    assert app.hooks._service is app.reminders


async def test_start_recovers_then_runs(
    documents: DocumentStore,
    transport: AsyncMock,
    engine: SchedulerEngine,
    task_store: TaskStore,
    users: UserDirectory,
    clock,
) -> None:
    await users.upsert_user("alice", "alice@example.com")
    task_id = await task_store.create_task(
        {"name": "Pick up parcel", "dueDate": (clock.now + timedelta(hours=2)).isoformat()},
        "alice",
    )
    app = create_app(documents=documents, transport=transport, engine=engine)

    report = await app.start()
    try:
        assert engine.running is True
        assert report.tasks_scheduled == 1
        assert len(engine.jobs_for_entity(task_id, TASK)) == 1
    finally:
        await app.stop()

    assert engine.running is False
    assert engine.list_jobs() == []


async def test_tracker_operations_reach_the_engine(
    documents: DocumentStore,
    transport: AsyncMock,
    engine: SchedulerEngine,
    users: UserDirectory,
) -> None:
    await users.upsert_user("alice", "alice@example.com")
    app = create_app(documents=documents, transport=transport, engine=engine)

    habit = await app.tracker.create_habit({"name": "Hydrate"}, "alice")

    assert [j.payload.entity_id for j in engine.list_jobs()] == [habit.id]
