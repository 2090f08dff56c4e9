import calendar
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Iterable, List, Optional

from ..db.models import Task
from .recurrence import Recurrence, as_day, occurs_on


class StatusFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass
class TaskFilter:
    search: str = ""
    category: Optional[str] = None
    priority: Optional[str] = None
    status: StatusFilter = StatusFilter.ALL
    on_date: Optional[date] = None


def due_on(task: Task, day: date) -> bool:
    """Deadline falls on `day`, or the task recurs on it."""
    if as_day(task.deadline) == day:
        return True
    return Recurrence.parse(task.recurring).repeats and occurs_on(task, day)


def _matches_search(task: Task, term: str) -> bool:
    if not term:
        return True
    return term in task.title.lower() or term in (task.description or "").lower()


def filter_tasks(tasks: Iterable[Task], flt: TaskFilter) -> List[Task]:
    term = flt.search.strip().lower()
    out = []
    for task in tasks:
        if task.archived:
            continue
        if flt.status is StatusFilter.ACTIVE and task.completed:
            continue
        if flt.status is StatusFilter.COMPLETED and not task.completed:
            continue
        if flt.category and task.category != flt.category:
            continue
        if flt.priority and _priority(task) != flt.priority:
            continue
        if not _matches_search(task, term):
            continue
        if flt.on_date is not None and not due_on(task, flt.on_date):
            continue
        out.append(task)
    return out


def _priority(task: Task) -> str:
    p = task.priority
    return p.value if isinstance(p, Enum) else str(p)


def dashboard_stats(tasks: Iterable[Task], today: date) -> dict:
    active = [t for t in tasks if not t.archived]
    pending = [t for t in active if not t.completed]

    overdue = 0
    due_today = 0
    for task in pending:
        if due_on(task, today):
            due_today += 1
        elif as_day(task.deadline) < today:
            overdue += 1

    return {
        "completed": len(active) - len(pending),
        "pending": len(pending),
        "overdue": overdue,
        "due_today": due_today,
    }


def local_day(ts: datetime) -> date:
    """Local calendar day of a naive-UTC store timestamp."""
    return ts.replace(tzinfo=timezone.utc).astimezone().date()


def chart_data(tasks: Iterable[Task], today: date) -> dict:
    """Series for the dashboard charts: category/priority/status splits and this month's progress."""
    tasks = list(tasks)
    active = [t for t in tasks if not t.archived]

    by_category = Counter(t.category for t in active)
    by_priority = Counter(_priority(t) for t in active)
    completed = sum(1 for t in active if t.completed)

    days_in_month = calendar.monthrange(today.year, today.month)[1]
    first = today.replace(day=1)
    created_per_day = Counter(local_day(t.created_at) for t in tasks)
    # completion time isn't recorded separately; updated_at is the closest proxy
    completed_per_day = Counter(local_day(t.updated_at or t.created_at) for t in tasks if t.completed)

    monthly = []
    for offset in range(days_in_month):
        day = first + timedelta(days=offset)
        monthly.append(
            {
                "day": day.day,
                "completed": completed_per_day.get(day, 0),
                "created": created_per_day.get(day, 0),
            }
        )

    return {
        "by_category": dict(by_category),
        "by_priority": {p: by_priority.get(p, 0) for p in ("high", "medium", "low")},
        "by_status": {"completed": completed, "pending": len(active) - completed},
        "monthly_progress": monthly,
    }


def daily_reminder(tasks: Iterable[Task], today: date) -> List[Task]:
    return [t for t in tasks if not t.completed and not t.archived and due_on(t, today)]
