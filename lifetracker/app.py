"""Application factory — wires stores, mail, scheduler and hooks together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from lifetracker.documents import DocumentStore
from lifetracker.habits.store import HabitStore
from lifetracker.mail.transport import SMTPTransport
from lifetracker.scheduler.engine import SchedulerEngine
from lifetracker.scheduler.hooks import ReminderHooks
from lifetracker.scheduler.recovery import RecoveryReport, initialize_scheduler
from lifetracker.scheduler.reminders import ReminderService
from lifetracker.tasks.store import TaskStore
from lifetracker.tracker import LifeTracker
from lifetracker.users.directory import UserDirectory

if TYPE_CHECKING:
    from lifetracker.mail.transport import MailTransport

logger = logging.getLogger(__name__)


@dataclass
class App:
    engine: SchedulerEngine
    reminders: ReminderService
    hooks: ReminderHooks
    tracker: LifeTracker

    async def start(self) -> RecoveryReport:
        """Rebuild pending reminders from storage, then start firing them."""
        report = await initialize_scheduler(self.reminders)
        await self.engine.start()
        return report

    async def stop(self) -> None:
        await self.engine.stop()


def create_app(
    documents: DocumentStore | None = None,
    transport: MailTransport | None = None,
    engine: SchedulerEngine | None = None,
) -> App:
    """Build the application graph. Arguments override the shared singletons."""
    documents = documents or DocumentStore.get()
    tasks = TaskStore(documents)
    habits = HabitStore(documents)
    users = UserDirectory(documents)
    engine = engine or SchedulerEngine()
    reminders = ReminderService(
        engine=engine,
        habits=habits,
        tasks=tasks,
        users=users,
        transport=transport or SMTPTransport.get(),
    )
    hooks = ReminderHooks(reminders)
    tracker = LifeTracker(tasks=tasks, habits=habits, hooks=hooks)
    logger.info("Application wired (tz=%s)", engine.tz.key)
    return App(engine=engine, reminders=reminders, hooks=hooks, tracker=tracker)
