"""LifeTracker — task and habit operations with their reminder side effects.

This is the seam the HTTP layer calls: each method performs the data change
through the store and then notifies the reminder hooks.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lifetracker.habits.models import Habit
    from lifetracker.habits.store import HabitStore
    from lifetracker.scheduler.hooks import ReminderHooks
    from lifetracker.tasks.models import Task
    from lifetracker.tasks.store import TaskStore

logger = logging.getLogger(__name__)


class LifeTracker:
    def __init__(self, tasks: TaskStore, habits: HabitStore, hooks: ReminderHooks) -> None:
        self._tasks = tasks
        self._habits = habits
        self._hooks = hooks

    # -- Tasks -----------------------------------------------------------------

    async def create_task(self, fields: dict[str, Any], user_id: str) -> Task | None:
        task_id = await self._tasks.create_task(fields, user_id)
        task = await self._tasks.get_user_task(task_id, user_id)
        if task is not None:
            await self._hooks.on_task_created(task)
        return task

    async def update_task(
        self, task_id: str, updates: dict[str, Any], user_id: str
    ) -> Task | None:
        task = await self._tasks.update_task(task_id, updates, user_id)
        if task is not None:
            await self._hooks.on_task_updated(task, updates.keys())
        return task

    async def toggle_task(self, task_id: str, user_id: str) -> Task | None:
        task = await self._tasks.toggle_completion(task_id, user_id)
        if task is not None:
            await self._hooks.on_task_toggled(task)
        return task

    async def delete_task(self, task_id: str, user_id: str) -> bool:
        deleted = await self._tasks.delete_task(task_id, user_id)
        if deleted:
            await self._hooks.on_task_deleted(task_id)
        return deleted

    # -- Habits ----------------------------------------------------------------

    async def create_habit(self, fields: dict[str, Any], user_id: str) -> Habit | None:
        habit_id = await self._habits.create_habit(fields, user_id)
        habit = await self._habits.get_user_habit(habit_id, user_id)
        if habit is not None:
            await self._hooks.on_habit_created(habit)
        return habit

    async def update_habit(
        self, habit_id: str, updates: dict[str, Any], user_id: str
    ) -> Habit | None:
        habit = await self._habits.update_habit(habit_id, updates, user_id)
        if habit is not None:
            await self._hooks.on_habit_updated(habit)
        return habit

    async def complete_habit(self, habit_id: str, user_id: str) -> Habit | None:
        """Record a completion (streak + 1)."""
        habit = await self._habits.increment_streak(habit_id, user_id)
        if habit is not None:
            await self._hooks.on_habit_updated(habit)
        return habit

    async def reset_habit_streak(self, habit_id: str, user_id: str) -> Habit | None:
        habit = await self._habits.reset_streak(habit_id, user_id)
        if habit is not None:
            await self._hooks.on_habit_updated(habit)
        return habit

    async def delete_habit(self, habit_id: str, user_id: str) -> bool:
        deleted = await self._habits.delete_habit(habit_id, user_id)
        if deleted:
            await self._hooks.on_habit_deleted(habit_id)
        return deleted
