"""Reminder email templates."""

from __future__ import annotations

import html
from typing import TYPE_CHECKING

from lifetracker.mail.transport import OutboundEmail

if TYPE_CHECKING:
    from datetime import tzinfo

    from lifetracker.habits.models import Habit
    from lifetracker.tasks.models import Task

_FOOTER_HTML = (
    '<div style="margin-top: 20px; padding-top: 20px; border-top: 1px solid #eee;'
    ' font-size: 12px; color: #888;">'
    "<p>This is an automated email. Please do not reply to this message.</p></div>"
)


def _wrap_html(title: str, paragraphs: list[str]) -> str:
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<h2 style="color: #4a6ee0;">{html.escape(title)}</h2>'
        f"{body}<p>Best regards,<br>The Life Tracker Team</p>{_FOOTER_HTML}</div>"
    )


def _streak_phrase(streak: int) -> str:
    unit = "completion" if streak == 1 else "completions"
    return f"{streak} {unit}"


def habit_reminder(habit: Habit, to: str, name: str = "") -> OutboundEmail:
    """Reminder for a recurring habit, including the current streak."""
    greeting = name or to
    frequency = habit.frequency or "daily"
    streak = _streak_phrase(habit.streak)
    lines = [
        f"Hi {greeting},",
        "",
        f"This is your {frequency} reminder for your habit: {habit.name}.",
    ]
    if habit.description:
        lines.append(habit.description)
    lines += [
        f"Your current streak is {streak}. Keep it going!",
        "",
        "Best regards,",
        "The Life Tracker Team",
    ]
    paragraphs = [
        f"Hi {html.escape(greeting)},",
        f"This is your {html.escape(frequency)} reminder for your habit: "
        f"<strong>{html.escape(habit.name)}</strong>.",
    ]
    if habit.description:
        paragraphs.append(html.escape(habit.description))
    paragraphs.append(f"Your current streak is <strong>{streak}</strong>. Keep it going!")
    return OutboundEmail(
        to=to,
        subject=f"Habit Reminder: {habit.name}",
        body_text="\n".join(lines),
        body_html=_wrap_html("Habit Reminder", paragraphs),
    )


def task_due_reminder(
    task: Task,
    to: str,
    name: str = "",
    tz: tzinfo | None = None,
    lead_minutes: int = 15,
) -> OutboundEmail:
    """Heads-up that a task is due shortly."""
    greeting = name or to
    due = task.due_at
    if due is not None and tz is not None:
        due = due.astimezone(tz)
    due_text = due.strftime("%Y-%m-%d %H:%M %Z").strip() if due else "soon"
    details = [f"Due: {due_text}", f"Priority: {task.priority}"]
    if task.category:
        details.append(f"Category: {task.category}")
    lines = [
        f"Hi {greeting},",
        "",
        f"Your task \"{task.name}\" is due in about {lead_minutes} minutes.",
        *details,
        "",
        "Best regards,",
        "The Life Tracker Team",
    ]
    paragraphs = [
        f"Hi {html.escape(greeting)},",
        f"Your task <strong>{html.escape(task.name)}</strong>"
        f" is due in about {lead_minutes} minutes.",
        "<br>".join(html.escape(d) for d in details),
    ]
    return OutboundEmail(
        to=to,
        subject=f"Task Due Soon: {task.name}",
        body_text="\n".join(lines),
        body_html=_wrap_html("Task Due Soon", paragraphs),
    )
