"""ReminderService — habit and task reminder flows on top of the engine."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from lifetracker.config import settings
from lifetracker.mail import messages
from lifetracker.scheduler.models import (
    HABIT,
    HABIT_REMINDER,
    TASK,
    TASK_DUE,
    JobPayload,
    make_job_id,
)
from lifetracker.scheduler.recurrence import first_occurrence

if TYPE_CHECKING:
    from lifetracker.habits.models import Habit
    from lifetracker.habits.store import HabitStore
    from lifetracker.mail.transport import MailTransport
    from lifetracker.scheduler.engine import SchedulerEngine
    from lifetracker.tasks.models import Task
    from lifetracker.tasks.store import TaskStore
    from lifetracker.users.directory import UserDirectory

logger = logging.getLogger(__name__)


class ReminderService:
    """Schedules reminder jobs and implements what they do when they fire.

    Fire-time callbacks re-read the habit or task so a reminder never acts on
    state that changed after it was scheduled.

    Args:
        engine: SchedulerEngine that owns the timers.
        habits: HabitStore for fire-time lookups.
        tasks: TaskStore for fire-time lookups.
        users: UserDirectory used by recovery and the mutation hooks.
        transport: Where reminder emails are sent.
        lead_minutes: How long before a task's due time its reminder fires.
    """

    def __init__(
        self,
        engine: SchedulerEngine,
        habits: HabitStore,
        tasks: TaskStore,
        users: UserDirectory,
        transport: MailTransport,
        lead_minutes: int | None = None,
    ) -> None:
        self.engine = engine
        self.habits = habits
        self.tasks = tasks
        self.users = users
        self._transport = transport
        self._lead = timedelta(
            minutes=settings.task_reminder_lead_minutes if lead_minutes is None else lead_minutes
        )

    @property
    def lead_time(self) -> timedelta:
        return self._lead

    # -- Habit reminders -------------------------------------------------------

    def schedule_habit_reminder(
        self, habit_id: str, habit: Habit, user_id: str, email: str, name: str = ""
    ) -> str:
        """Schedule the recurring reminder, first firing tomorrow at the reminder time."""
        hour, minute = self.engine.reminder_time
        first = first_occurrence(self.engine.now(), hour=hour, minute=minute)
        payload = JobPayload(
            kind=HABIT_REMINDER,
            entity_kind=HABIT,
            entity_id=habit_id,
            user_id=user_id,
            email=email,
            name=name,
            recurring=True,
            frequency=habit.frequency,
        )
        job_id = self.engine.schedule(
            make_job_id(HABIT_REMINDER, habit_id, first),
            first,
            self.send_habit_reminder,
            payload,
        )
        logger.info("Scheduled recurring reminders for habit %s (%s)", habit_id, habit.name)
        return job_id

    async def send_habit_reminder(self, payload: JobPayload) -> dict[str, Any]:
        """Job callback: email the habit's owner with the current streak."""
        habit = await self.habits.get_habit(payload.entity_id)
        if habit is None:
            logger.info("Habit %s no longer exists; reminder skipped", payload.entity_id)
            return {"status": "habit_not_found"}

        # The next occurrence follows the habit's current frequency.
        payload.frequency = habit.frequency
        message = messages.habit_reminder(habit, payload.email, payload.name)
        result = await self._transport.send(message)
        logger.info("Habit reminder sent for %s: %s", habit.id, result.message_id)
        return {"status": "sent", "message_id": result.message_id}

    def cancel_all_jobs_for_habit(self, habit_id: str) -> int:
        return self.engine.cancel_all_for_entity(habit_id, HABIT)

    # -- Task due reminders ----------------------------------------------------

    def schedule_task_due_reminder(
        self, task_id: str, task: Task, user_id: str, email: str, name: str = ""
    ) -> str | None:
        """Schedule a one-shot reminder ahead of the task's due time.

        Returns None, scheduling nothing, when the task has no due date, is
        completed, or the reminder time is not in the future.
        """
        due = task.due_at
        if due is None or task.completed:
            logger.info("Task %s has no due date or is completed; no reminder", task_id)
            return None

        trigger = due - self._lead
        if trigger <= self.engine.now():
            logger.info("Task %s is due too soon or already past; no reminder", task_id)
            return None

        payload = JobPayload(
            kind=TASK_DUE,
            entity_kind=TASK,
            entity_id=task_id,
            user_id=user_id,
            email=email,
            name=name,
        )
        job_id = self.engine.schedule(
            make_job_id(TASK_DUE, task_id, trigger),
            trigger,
            self.send_task_due_reminder,
            payload,
        )
        logger.info(
            "Scheduled due reminder for task %s (%s) at %s",
            task_id,
            task.name,
            trigger.isoformat(),
        )
        return job_id

    async def send_task_due_reminder(self, payload: JobPayload) -> dict[str, Any]:
        """Job callback: email a due-soon notice unless the task is gone or done."""
        task = await self.tasks.get_task(payload.entity_id)
        if task is None:
            logger.info("Task %s no longer exists; reminder skipped", payload.entity_id)
            return {"status": "task_not_found"}
        if task.completed:
            logger.info("Task %s already completed; reminder skipped", task.id)
            return {"status": "task_completed"}

        message = messages.task_due_reminder(
            task,
            payload.email,
            payload.name,
            tz=self.engine.tz,
            lead_minutes=int(self._lead.total_seconds() // 60),
        )
        result = await self._transport.send(message)
        logger.info("Task due reminder sent for %s: %s", task.id, result.message_id)
        return {"status": "sent", "message_id": result.message_id}

    def cancel_all_jobs_for_task(self, task_id: str) -> int:
        return self.engine.cancel_all_for_entity(task_id, TASK)
