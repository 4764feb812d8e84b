"""Next-occurrence arithmetic for recurring reminders.

Reminders fire once per period at a fixed local time of day, not a fixed
interval after the previous fire.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta

DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"


def add_months(moment: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's length."""
    index = moment.month - 1 + months
    year = moment.year + index // 12
    month = index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def at_time_of_day(moment: datetime, hour: int, minute: int = 0) -> datetime:
    return moment.replace(hour=hour, minute=minute, second=0, microsecond=0)


def next_occurrence(
    frequency: str | None, now: datetime, *, hour: int = 9, minute: int = 0
) -> datetime:
    """Return the next reminder instant after *now* for *frequency*.

    ``daily`` adds a day, ``weekly`` seven days, ``monthly`` one calendar
    month; anything unrecognised is treated as daily.
    """
    freq = (frequency or "").strip().lower()
    if freq == WEEKLY:
        nxt = now + timedelta(days=7)
    elif freq == MONTHLY:
        nxt = add_months(now, 1)
    else:
        nxt = now + timedelta(days=1)
    return at_time_of_day(nxt, hour, minute)


def first_occurrence(now: datetime, *, hour: int = 9, minute: int = 0) -> datetime:
    """The first reminder for a new habit: the next calendar day at the reminder time."""
    return at_time_of_day(now + timedelta(days=1), hour, minute)
