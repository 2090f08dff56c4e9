"""
Recurring-task occurrence rules.

All checks run at calendar-day granularity on the task's local wall-clock
deadline (the anchor). Nothing here touches the store.
"""

from datetime import date, datetime, timedelta
from enum import Enum

from dateutil.relativedelta import relativedelta

from ..core.errors import ValidationError


class Recurrence(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, raw) -> "Recurrence":
        if isinstance(raw, cls):
            return raw
        if raw is None or raw == "":
            return cls.NONE
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown recurrence kind: {raw!r}") from None

    @property
    def repeats(self) -> bool:
        return self is not Recurrence.NONE


def as_day(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def occurs_on(task, day: date | datetime) -> bool:
    """
    Is `task` due on calendar day `day`?

    A completed recurring task only occurs on its own anchor day; its
    successor carries the later occurrences.
    """
    kind = Recurrence.parse(task.recurring)
    if kind is Recurrence.NONE:
        return False

    anchor = as_day(task.deadline)
    day = as_day(day)
    if day < anchor:
        return False

    if task.completed:
        return day == anchor

    if kind is Recurrence.DAILY:
        return True
    if kind is Recurrence.WEEKLY:
        return day.weekday() == anchor.weekday() and (day - anchor).days % 7 == 0
    if kind is Recurrence.MONTHLY:
        # no roll-over: an anchor on the 31st skips 30-day months
        return day.day == anchor.day and (day.year, day.month) >= (anchor.year, anchor.month)
    raise ValidationError(f"Unhandled recurrence kind: {kind!r}")


def next_deadline(deadline: datetime, recurring) -> datetime:
    """Deadline of the successor occurrence; time of day is preserved."""
    kind = Recurrence.parse(recurring)
    if kind is Recurrence.DAILY:
        return deadline + timedelta(days=1)
    if kind is Recurrence.WEEKLY:
        return deadline + timedelta(days=7)
    if kind is Recurrence.MONTHLY:
        # relativedelta clamps to the last day of shorter months (Jan 31 -> Feb 28/29)
        return deadline + relativedelta(months=1)
    if kind is Recurrence.NONE:
        raise ValidationError("Task does not recur")
    raise ValidationError(f"Unhandled recurrence kind: {kind!r}")
