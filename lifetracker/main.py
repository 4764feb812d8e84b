"""Life Tracker reminder service entry point."""

import asyncio
import logging
import signal

from lifetracker.app import create_app
from lifetracker.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)


async def run() -> None:
    """Recover reminders, then keep the scheduler alive until SIGINT/SIGTERM."""
    app = create_app()
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    report = await app.start()
    logger.info(
        "Life Tracker reminders running: %d task and %d habit reminder(s) recovered",
        report.tasks_scheduled,
        report.habits_scheduled,
    )
    try:
        await stop.wait()
    finally:
        await app.stop()


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
