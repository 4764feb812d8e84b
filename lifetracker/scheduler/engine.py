"""SchedulerEngine — in-memory job store on top of APScheduler timers."""

from __future__ import annotations

import logging
import threading
import zoneinfo
from dataclasses import replace
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from lifetracker.config import settings
from lifetracker.scheduler.models import Job, JobPayload, make_job_id
from lifetracker.scheduler.recurrence import next_occurrence

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class SchedulerEngine:
    """Schedules, fires, cancels and re-arms timed jobs.

    Every job in ``_jobs`` has a live APScheduler timer or a callback in
    flight.  All reads and writes of ``_jobs`` hold ``_lock``.

    Args:
        timezone: IANA timezone string (default from settings).
        min_delay_seconds: Floor applied to jobs due now or in the past.
        reminder_hour: Local hour recurring jobs are re-armed at.
        reminder_minute: Local minute recurring jobs are re-armed at.
        clock: Zero-arg callable returning the current aware datetime.
    """

    def __init__(
        self,
        timezone: str | None = None,
        *,
        min_delay_seconds: float | None = None,
        reminder_hour: int | None = None,
        reminder_minute: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._timezone = timezone or settings.scheduler_timezone
        self._tz = zoneinfo.ZoneInfo(self._timezone)
        self._min_delay = timedelta(
            seconds=settings.scheduler_min_delay_seconds
            if min_delay_seconds is None
            else min_delay_seconds
        )
        self._reminder_hour = (
            settings.reminder_hour if reminder_hour is None else reminder_hour
        )
        self._reminder_minute = (
            settings.reminder_minute if reminder_minute is None else reminder_minute
        )
        self._clock = clock
        self._scheduler = AsyncIOScheduler(timezone=self._timezone)
        self._jobs: dict[str, Job] = {}
        self._lock = threading.RLock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def tz(self) -> zoneinfo.ZoneInfo:
        return self._tz

    @property
    def reminder_time(self) -> tuple[int, int]:
        return self._reminder_hour, self._reminder_minute

    def now(self) -> datetime:
        """Current time in the scheduler timezone."""
        if self._clock is not None:
            return self._clock().astimezone(self._tz)
        return datetime.now(self._tz)

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Start firing timers. Jobs scheduled before start are armed now."""
        if self._running:
            return
        self._scheduler.start()
        self._running = True
        logger.info(
            "Scheduler started with %d pending job(s) (tz=%s)",
            len(self._jobs),
            self._timezone,
        )

    async def stop(self) -> None:
        """Shut down the scheduler. Pending jobs are dropped."""
        if self._running:
            with self._lock:
                dropped = len(self._jobs)
                self._jobs.clear()
            self._scheduler.remove_all_jobs()
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped (%d pending job(s) dropped)", dropped)

    # -- Job store views -------------------------------------------------------

    def get_job(self, job_id: str) -> Job | None:
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self) -> list[Job]:
        """Pending jobs ordered by fire time."""
        with self._lock:
            jobs = list(self._jobs.values())
        return sorted(jobs, key=lambda j: j.scheduled_for)

    def jobs_for_entity(self, entity_id: str, entity_kind: str) -> list[Job]:
        with self._lock:
            return [
                j for j in self._jobs.values() if j.payload.references(entity_id, entity_kind)
            ]

    # -- Scheduling ------------------------------------------------------------

    def schedule(
        self,
        job_id: str,
        execute_at: datetime,
        callback: Callable[[JobPayload], Awaitable[Any]],
        payload: JobPayload,
    ) -> str:
        """Arm a one-time timer that awaits ``callback(payload)``.

        Past or imminent fire times are clamped to the minimum delay rather
        than rejected.  An existing job with the same ID is replaced.
        """
        now = self.now()
        if execute_at.tzinfo is None:
            execute_at = execute_at.replace(tzinfo=self._tz)
        run_at = execute_at
        if execute_at - now < self._min_delay:
            run_at = now + self._min_delay
            logger.warning(
                "Job %s scheduled for %s is in the past or too soon; running in %.1fs",
                job_id,
                execute_at.isoformat(),
                self._min_delay.total_seconds(),
            )

        job = Job(
            id=job_id,
            scheduled_for=run_at,
            payload=payload,
            callback=callback,
            created_at=now,
        )
        with self._lock:
            previous = self._jobs.pop(job_id, None)
            if previous is not None:
                logger.debug("Replacing existing job %s", job_id)
                self._disarm(previous)
            job.timer_handle = self._scheduler.add_job(
                self._fire,
                trigger=DateTrigger(run_date=run_at, timezone=self._timezone),
                id=job_id,
                name=f"{payload.kind}:{payload.entity_id}",
                args=[job_id],
                misfire_grace_time=None,
                replace_existing=True,
            )
            self._jobs[job_id] = job
        logger.info("Job %s scheduled for %s", job_id, run_at.isoformat())
        return job_id

    def cancel(self, job_id: str) -> bool:
        """Cancel a pending job. Returns False if no such job exists."""
        with self._lock:
            job = self._jobs.pop(job_id, None)
            if job is None:
                logger.debug("Job %s not found in scheduler (may already be removed)", job_id)
                return False
            self._disarm(job)
        logger.info("Job %s cancelled", job_id)
        return True

    def cancel_all_for_entity(self, entity_id: str, entity_kind: str) -> int:
        """Cancel every job whose payload references the entity. Returns the count."""
        with self._lock:
            job_ids = [j.id for j in self.jobs_for_entity(entity_id, entity_kind)]
            cancelled = sum(1 for job_id in job_ids if self.cancel(job_id))
        if cancelled:
            logger.info("Cancelled %d job(s) for %s %s", cancelled, entity_kind, entity_id)
        return cancelled

    # -- Internal --------------------------------------------------------------

    def _disarm(self, job: Job) -> None:
        """Remove the job's timer. A timer that already fired is ignored."""
        if job.timer_handle is None:
            return
        try:
            job.timer_handle.remove()
        except JobLookupError:
            logger.debug("Timer for job %s already fired", job.id)

    async def _fire(self, job_id: str) -> None:
        """Timer callback. Runs the job, removes it, then re-arms if recurring."""
        job = self.get_job(job_id)
        if job is None:
            logger.debug("Job %s fired after cancellation; skipping", job_id)
            return

        logger.info("Executing job %s", job_id)
        try:
            result = await job.callback(job.payload)
            logger.info("Job %s finished: %s", job_id, result)
        except Exception:
            logger.exception("Error executing scheduled job %s", job_id)
        finally:
            with self._lock:
                # A same-ID replacement scheduled mid-flight must survive.
                if self._jobs.get(job_id) is job:
                    del self._jobs[job_id]

        if job.recurring:
            self._schedule_next(job)

    def _schedule_next(self, job: Job) -> str:
        payload = replace(job.payload)
        hour, minute = self.reminder_time
        next_at = next_occurrence(payload.frequency, self.now(), hour=hour, minute=minute)
        next_id = make_job_id(payload.kind, payload.entity_id, next_at)
        return self.schedule(next_id, next_at, job.callback, payload)
