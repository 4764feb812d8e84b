"""Reminder scheduler — job store, engine, reminder flows, recovery and hooks."""

from lifetracker.scheduler.engine import SchedulerEngine
from lifetracker.scheduler.hooks import ReminderHooks
from lifetracker.scheduler.models import Job, JobPayload, make_job_id
from lifetracker.scheduler.recovery import RecoveryReport, initialize_scheduler
from lifetracker.scheduler.recurrence import next_occurrence
from lifetracker.scheduler.reminders import ReminderService

__all__ = [
    "Job",
    "JobPayload",
    "RecoveryReport",
    "ReminderHooks",
    "ReminderService",
    "SchedulerEngine",
    "initialize_scheduler",
    "make_job_id",
    "next_occurrence",
]
