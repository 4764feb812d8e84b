"""Mutation hooks — keep reminder jobs in step with task and habit CRUD."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from lifetracker.habits.models import Habit
    from lifetracker.scheduler.reminders import ReminderService
    from lifetracker.tasks.models import Task
    from lifetracker.users.directory import UserRecord

logger = logging.getLogger(__name__)

# Task fields whose change invalidates a scheduled due reminder.
_TASK_SCHEDULE_FIELDS = frozenset({"dueDate", "completed"})


class ReminderHooks:
    """Entry points the CRUD layer calls after it mutates an entity.

    Reminder problems never fail the CRUD operation: they are logged and
    swallowed here.  Cancelling and rescheduling happen back to back with
    no await in between, so a firing job cannot interleave with them.
    """

    def __init__(self, service: ReminderService) -> None:
        self._service = service

    async def _contact(self, user_id: str) -> UserRecord | None:
        try:
            user = await self._service.users.get_user_by_id(user_id)
        except Exception:
            logger.exception("Could not resolve contact for user %s", user_id)
            return None
        if not user.email:
            logger.warning("User %s has no email; reminders disabled", user_id)
            return None
        return user

    def _schedule_task(self, task: Task, user: UserRecord) -> str | None:
        try:
            return self._service.schedule_task_due_reminder(
                task.id, task, task.user_id, user.email, user.display_name
            )
        except Exception:
            logger.exception("Could not schedule due reminder for task %s", task.id)
            return None

    # -- Tasks -----------------------------------------------------------------

    async def on_task_created(self, task: Task) -> str | None:
        if not task.due_date:
            return None
        user = await self._contact(task.user_id)
        if user is None:
            return None
        return self._schedule_task(task, user)

    async def on_task_updated(self, task: Task, changed_fields: Iterable[str]) -> str | None:
        """Re-derive the due reminder when the due date or completion changed."""
        if not _TASK_SCHEDULE_FIELDS.intersection(changed_fields):
            return None
        user = None
        if task.due_date and not task.completed:
            user = await self._contact(task.user_id)
        self._service.cancel_all_jobs_for_task(task.id)
        if user is None:
            return None
        return self._schedule_task(task, user)

    async def on_task_toggled(self, task: Task) -> str | None:
        if task.completed:
            self._service.cancel_all_jobs_for_task(task.id)
            return None
        due = task.due_at
        if due is None or due <= self._service.engine.now():
            return None
        user = await self._contact(task.user_id)
        if user is None:
            return None
        self._service.cancel_all_jobs_for_task(task.id)
        return self._schedule_task(task, user)

    async def on_task_deleted(self, task_id: str) -> int:
        return self._service.cancel_all_jobs_for_task(task_id)

    # -- Habits ----------------------------------------------------------------

    async def on_habit_created(self, habit: Habit) -> str | None:
        user = await self._contact(habit.user_id)
        if user is None:
            return None
        try:
            return self._service.schedule_habit_reminder(
                habit.id, habit, habit.user_id, user.email, user.display_name
            )
        except Exception:
            logger.exception("Could not schedule reminder for habit %s", habit.id)
            return None

    async def on_habit_updated(self, habit: Habit) -> None:
        # Cadence is picked up from the stored habit when the next reminder fires.
        logger.debug("Habit %s updated; reminder cadence unchanged", habit.id)

    async def on_habit_deleted(self, habit_id: str) -> int:
        return self._service.cancel_all_jobs_for_habit(habit_id)
