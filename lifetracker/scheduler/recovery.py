"""Startup recovery — rebuild pending reminder jobs from stored entities."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lifetracker.scheduler.reminders import ReminderService

logger = logging.getLogger(__name__)


@dataclass
class RecoveryReport:
    tasks_processed: int = 0
    tasks_scheduled: int = 0
    habits_processed: int = 0
    habits_scheduled: int = 0


async def _recover_tasks(service: ReminderService, report: RecoveryReport) -> None:
    logger.info("Loading existing tasks to schedule due date reminders...")
    now = service.engine.now()
    for task in await service.tasks.list_all_tasks():
        report.tasks_processed += 1
        try:
            due = task.due_at
            if due is None or task.completed or due - service.lead_time <= now:
                continue
            user = await service.users.get_user_by_id(task.user_id)
            if not user.email:
                logger.warning("User %s has no email; task %s skipped", task.user_id, task.id)
                continue
            job_id = service.schedule_task_due_reminder(
                task.id, task, task.user_id, user.email, user.display_name
            )
            if job_id:
                report.tasks_scheduled += 1
        except Exception:
            logger.exception("Error scheduling reminder for task %s", task.id)


async def _recover_habits(service: ReminderService, report: RecoveryReport) -> None:
    logger.info("Loading existing habits to schedule recurring reminders...")
    for habit in await service.habits.list_all_habits():
        report.habits_processed += 1
        try:
            user = await service.users.get_user_by_id(habit.user_id)
            if not user.email:
                logger.warning("User %s has no email; habit %s skipped", habit.user_id, habit.id)
                continue
            service.schedule_habit_reminder(
                habit.id, habit, habit.user_id, user.email, user.display_name
            )
            report.habits_scheduled += 1
        except Exception:
            logger.exception("Error scheduling reminder for habit %s", habit.id)


async def initialize_scheduler(service: ReminderService) -> RecoveryReport:
    """Re-create due reminders for open tasks and recurring reminders for habits.

    Called once at process start.  A failure on one entity, or on reading
    one collection, is logged and never stops the rest of the pass.
    """
    logger.info("Initializing scheduler service...")
    report = RecoveryReport()

    try:
        await _recover_tasks(service, report)
    except Exception:
        logger.exception("Failed to load tasks for reminder recovery")
    logger.info(
        "Processed %d tasks, scheduled reminders for %d upcoming tasks",
        report.tasks_processed,
        report.tasks_scheduled,
    )

    try:
        await _recover_habits(service, report)
    except Exception:
        logger.exception("Failed to load habits for reminder recovery")
    logger.info(
        "Processed %d habits, scheduled reminders for %d habits",
        report.habits_processed,
        report.habits_scheduled,
    )
    return report
