"""Tests for SchedulerEngine: job store, timers, firing and recurrence."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from lifetracker.scheduler.engine import SchedulerEngine
from lifetracker.scheduler.models import HABIT, HABIT_REMINDER, TASK, TASK_DUE, JobPayload


def _task_payload(task_id: str = "t1") -> JobPayload:
    return JobPayload(
        kind=TASK_DUE,
        entity_kind=TASK,
        entity_id=task_id,
        user_id="alice",
        email="alice@example.com",
    )


def _habit_payload(habit_id: str = "h1", frequency: str = "daily") -> JobPayload:
    return JobPayload(
        kind=HABIT_REMINDER,
        entity_kind=HABIT,
        entity_id=habit_id,
        user_id="alice",
        email="alice@example.com",
        recurring=True,
        frequency=frequency,
    )


# -- schedule ------------------------------------------------------------------


def test_schedule_registers_job_and_timer(engine: SchedulerEngine, clock) -> None:
    at = clock.now + timedelta(hours=2)
    job_id = engine.schedule("job1", at, AsyncMock(), _task_payload())

    assert job_id == "job1"
    job = engine.get_job("job1")
    assert job is not None
    assert job.scheduled_for == at
    assert job.created_at == clock.now
    assert engine._scheduler.get_job("job1") is not None


def test_schedule_past_time_is_clamped(
    engine: SchedulerEngine, clock, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING):
        engine.schedule("late", clock.now - timedelta(minutes=5), AsyncMock(), _task_payload())

    job = engine.get_job("late")
    assert job is not None
    assert job.scheduled_for == clock.now + timedelta(seconds=1)
    assert "in the past or too soon" in caplog.text


def test_schedule_inside_floor_is_clamped(engine: SchedulerEngine, clock) -> None:
    engine.schedule("soon", clock.now + timedelta(milliseconds=200), AsyncMock(), _task_payload())
    assert engine.get_job("soon").scheduled_for == clock.now + timedelta(seconds=1)


def test_schedule_naive_time_uses_engine_timezone(engine: SchedulerEngine, clock) -> None:
    naive = (clock.now + timedelta(hours=1)).replace(tzinfo=None)
    engine.schedule("naive", naive, AsyncMock(), _task_payload())
    assert engine.get_job("naive").scheduled_for == clock.now + timedelta(hours=1)


def test_schedule_same_id_replaces(engine: SchedulerEngine, clock) -> None:
    engine.schedule("dup", clock.now + timedelta(hours=1), AsyncMock(), _task_payload())
    engine.schedule("dup", clock.now + timedelta(hours=3), AsyncMock(), _task_payload())

    assert len(engine.list_jobs()) == 1
    assert engine.get_job("dup").scheduled_for == clock.now + timedelta(hours=3)
    assert len(engine._scheduler.get_jobs()) == 1


def test_list_jobs_ordered_by_fire_time(engine: SchedulerEngine, clock) -> None:
    engine.schedule("b", clock.now + timedelta(hours=2), AsyncMock(), _task_payload("t2"))
    engine.schedule("a", clock.now + timedelta(hours=1), AsyncMock(), _task_payload("t1"))
    assert [j.id for j in engine.list_jobs()] == ["a", "b"]


# -- cancel --------------------------------------------------------------------


def test_cancel_unknown_returns_false(engine: SchedulerEngine, clock) -> None:
    engine.schedule("keep", clock.now + timedelta(hours=1), AsyncMock(), _task_payload())

    assert engine.cancel("nope") is False
    assert [j.id for j in engine.list_jobs()] == ["keep"]


def test_cancel_removes_job_and_timer(engine: SchedulerEngine, clock) -> None:
    engine.schedule("job1", clock.now + timedelta(hours=1), AsyncMock(), _task_payload())

    assert engine.cancel("job1") is True
    assert engine.get_job("job1") is None
    assert engine._scheduler.get_job("job1") is None
    assert engine.cancel("job1") is False


def test_cancel_all_for_entity_only_touches_that_entity(engine: SchedulerEngine, clock) -> None:
    later = clock.now + timedelta(hours=1)
    engine.schedule("t1-a", later, AsyncMock(), _task_payload("t1"))
    engine.schedule("t1-b", later + timedelta(hours=1), AsyncMock(), _task_payload("t1"))
    engine.schedule("t2-a", later, AsyncMock(), _task_payload("t2"))
    # Same id, different kind
    engine.schedule("h-t1", later, AsyncMock(), _habit_payload("t1"))

    cancelled = engine.cancel_all_for_entity("t1", TASK)

    assert cancelled == 2
    assert {j.id for j in engine.list_jobs()} == {"t2-a", "h-t1"}


# -- firing --------------------------------------------------------------------


async def test_fire_one_shot_runs_and_removes(engine: SchedulerEngine, clock) -> None:
    callback = AsyncMock(return_value={"status": "sent"})
    payload = _task_payload()
    engine.schedule("job1", clock.now + timedelta(minutes=45), callback, payload)

    await engine._fire("job1")

    callback.assert_awaited_once_with(payload)
    assert engine.list_jobs() == []


async def test_fire_failure_still_removes_job(
    engine: SchedulerEngine, clock, caplog: pytest.LogCaptureFixture
) -> None:
    callback = AsyncMock(side_effect=RuntimeError("smtp down"))
    engine.schedule("job1", clock.now + timedelta(minutes=45), callback, _task_payload())

    with caplog.at_level(logging.ERROR):
        await engine._fire("job1")

    assert engine.list_jobs() == []
    assert "Error executing scheduled job job1" in caplog.text


async def test_fire_recurring_schedules_exactly_one_successor(
    engine: SchedulerEngine, clock
) -> None:
    callback = AsyncMock()
    first = datetime(2030, 3, 15, 9, 0, tzinfo=clock.now.tzinfo)
    engine.schedule("reminder_h1_first", first, callback, _habit_payload("h1", "daily"))

    clock.now = first
    await engine._fire("reminder_h1_first")

    jobs = engine.list_jobs()
    assert len(jobs) == 1
    successor = jobs[0]
    expected = datetime(2030, 3, 16, 9, 0, tzinfo=clock.now.tzinfo)
    assert successor.scheduled_for == expected
    assert successor.id == f"reminder_h1_{round(expected.timestamp() * 1000)}"
    assert successor.callback is callback
    assert successor.payload.recurring is True


async def test_fire_recurring_reschedules_even_when_callback_fails(
    engine: SchedulerEngine, clock
) -> None:
    callback = AsyncMock(side_effect=RuntimeError("boom"))
    engine.schedule("r1", clock.now + timedelta(hours=1), callback, _habit_payload("h1", "weekly"))

    await engine._fire("r1")

    jobs = engine.list_jobs()
    assert len(jobs) == 1
    assert jobs[0].scheduled_for.date() == (clock.now + timedelta(days=7)).date()


async def test_fire_after_cancel_is_noop(engine: SchedulerEngine, clock) -> None:
    callback = AsyncMock()
    engine.schedule("job1", clock.now + timedelta(hours=1), callback, _task_payload())
    engine.cancel("job1")

    await engine._fire("job1")

    callback.assert_not_awaited()


async def test_same_id_scheduled_mid_flight_survives(engine: SchedulerEngine, clock) -> None:
    later = clock.now + timedelta(hours=5)

    async def reschedule_self(payload: JobPayload) -> None:
        engine.schedule("job1", later, AsyncMock(), payload)

    engine.schedule("job1", clock.now + timedelta(hours=1), reschedule_self, _task_payload())

    await engine._fire("job1")

    job = engine.get_job("job1")
    assert job is not None
    assert job.scheduled_for == later


async def test_cancel_during_flight_does_not_stop_callback(engine: SchedulerEngine, clock) -> None:
    seen: list[str] = []

    async def cancels_itself(payload: JobPayload) -> None:
        assert engine.cancel("job1") is True
        seen.append(payload.entity_id)

    engine.schedule("job1", clock.now + timedelta(hours=1), cancels_itself, _task_payload())

    await engine._fire("job1")

    assert seen == ["t1"]
    assert engine.list_jobs() == []


# -- Lifecycle -----------------------------------------------------------------


async def test_start_and_stop(engine: SchedulerEngine, clock) -> None:
    engine.schedule("job1", clock.now + timedelta(days=1), AsyncMock(), _task_payload())

    await engine.start()
    try:
        assert engine.running is True
        assert engine._scheduler.get_job("job1") is not None
    finally:
        await engine.stop()

    assert engine.running is False
    assert engine.list_jobs() == []


async def test_stop_when_not_running(engine: SchedulerEngine) -> None:
    await engine.stop()
    assert engine.running is False


def test_now_uses_engine_timezone(clock) -> None:
    eng = SchedulerEngine(timezone="America/Chicago", clock=clock)
    assert eng.now().utcoffset() == timedelta(hours=-5)
    assert eng.now() == clock.now


def test_explicit_zero_floor_is_respected(clock) -> None:
    eng = SchedulerEngine(timezone="UTC", min_delay_seconds=0, clock=clock)
    eng.schedule("now", clock.now - timedelta(minutes=5), AsyncMock(), _task_payload())

    assert eng.get_job("now").scheduled_for == clock.now
