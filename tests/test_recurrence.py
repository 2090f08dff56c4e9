from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from tasknest.core.errors import ValidationError
from tasknest.services.recurrence import Recurrence, next_deadline, occurs_on

from .fakes import make_task


def days(start: date, n: int):
    return [start + timedelta(days=i) for i in range(n)]


@pytest.mark.parametrize("kind", ["daily", "weekly", "monthly"])
def test_no_occurrence_before_anchor_day(kind) -> None:
    task = make_task(recurring=kind, deadline=datetime(2024, 3, 15, 18, 30))
    for day in days(date(2023, 12, 1), 105):
        assert not occurs_on(task, day)


def test_non_recurring_task_never_occurs() -> None:
    task = make_task(recurring="none", deadline=datetime(2024, 1, 1, 8, 0))
    assert not occurs_on(task, date(2024, 1, 1))
    assert not occurs_on(task, date(2024, 1, 2))


def test_daily_occurs_every_day_from_anchor() -> None:
    task = make_task(recurring="daily", deadline=datetime(2024, 1, 1, 23, 59))
    assert all(occurs_on(task, d) for d in days(date(2024, 1, 1), 400))
    assert not occurs_on(task, date(2023, 12, 31))


def test_time_of_day_is_ignored() -> None:
    task = make_task(recurring="daily", deadline=datetime(2024, 1, 1, 23, 59))
    assert occurs_on(task, datetime(2024, 1, 1, 0, 0))


def test_weekly_only_on_seven_day_multiples() -> None:
    # 2024-01-03 is a Wednesday
    anchor = date(2024, 1, 3)
    task = make_task(recurring="weekly", deadline=datetime(2024, 1, 3, 9, 0))

    hits = [d for d in days(anchor, 60) if occurs_on(task, d)]

    assert hits == [anchor + timedelta(weeks=w) for w in range(9)]
    assert all(d.weekday() == 2 for d in hits)
    # Wednesday before the anchor
    assert not occurs_on(task, date(2023, 12, 27))


def test_monthly_same_day_of_month() -> None:
    task = make_task(recurring="monthly", deadline=datetime(2024, 1, 15, 10, 0))
    assert occurs_on(task, date(2024, 1, 15))
    assert occurs_on(task, date(2024, 2, 15))
    assert occurs_on(task, date(2025, 7, 15))
    assert not occurs_on(task, date(2024, 2, 14))
    assert not occurs_on(task, date(2023, 12, 15))


def test_monthly_anchor_on_31st_skips_short_months() -> None:
    task = make_task(recurring="monthly", deadline=datetime(2024, 1, 31, 10, 0))
    april = [d for d in days(date(2024, 4, 1), 30) if occurs_on(task, d)]
    assert april == []
    assert not occurs_on(task, date(2024, 2, 29))
    assert occurs_on(task, date(2024, 3, 31))


@pytest.mark.parametrize("kind", ["daily", "weekly", "monthly"])
def test_completed_task_only_occurs_on_anchor_day(kind) -> None:
    task = make_task(recurring=kind, deadline=datetime(2024, 1, 1, 8, 0), completed=True)
    assert occurs_on(task, date(2024, 1, 1))
    for day in days(date(2024, 1, 2), 120):
        assert not occurs_on(task, day)


def test_water_plants_scenario_before_completion() -> None:
    task = make_task(title="Water plants", recurring="daily", deadline=datetime(2024, 1, 1, 8, 0))
    assert occurs_on(task, date(2024, 1, 5))


def test_next_deadline_keeps_time_of_day() -> None:
    anchor = datetime(2024, 1, 1, 8, 0)
    assert next_deadline(anchor, Recurrence.DAILY) == datetime(2024, 1, 2, 8, 0)
    assert next_deadline(anchor, "weekly") == datetime(2024, 1, 8, 8, 0)
    assert next_deadline(anchor, Recurrence.MONTHLY) == datetime(2024, 2, 1, 8, 0)


def test_next_deadline_monthly_rolls_year_and_clamps() -> None:
    assert next_deadline(datetime(2024, 12, 15, 9, 0), "monthly") == datetime(2025, 1, 15, 9, 0)
    assert next_deadline(datetime(2024, 1, 31, 9, 0), "monthly") == datetime(2024, 2, 29, 9, 0)
    assert next_deadline(datetime(2023, 1, 31, 9, 0), "monthly") == datetime(2023, 2, 28, 9, 0)


def test_next_deadline_rejects_non_recurring() -> None:
    with pytest.raises(ValidationError):
        next_deadline(datetime(2024, 1, 1), Recurrence.NONE)


def test_parse_rejects_unknown_kind() -> None:
    assert Recurrence.parse(None) is Recurrence.NONE
    assert Recurrence.parse(" Weekly ") is Recurrence.WEEKLY
    with pytest.raises(ValidationError):
        Recurrence.parse("yearly")
