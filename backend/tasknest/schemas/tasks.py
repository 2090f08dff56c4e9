from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, field_validator

from ..db.models import Priority
from ..services.completion import SkipReason
from ..services.recurrence import Recurrence


def _clean_title(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("title must not be empty")
    return v


class TaskIn(BaseModel):
    title: str
    description: Optional[str] = None
    deadline: datetime
    priority: Priority = Priority.MEDIUM
    category: str = "general"
    recurring: Recurrence = Recurrence.NONE

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        return _clean_title(v)


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    recurring: Optional[Recurrence] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _clean_title(v)


class TaskOut(TaskIn):
    id: int
    completed: bool
    archived: bool
    order_index: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskOrder(BaseModel):
    task_ids: List[int]


class CompletionOut(BaseModel):
    task_id: int
    completed: bool
    successor_created: bool
    successor_id: Optional[int] = None
    skipped: Optional[SkipReason] = None
    warning: Optional[str] = None
    ignored: bool = False
    message: str

    model_config = ConfigDict(from_attributes=True)


class DashboardStats(BaseModel):
    completed: int
    pending: int
    overdue: int
    due_today: int


class DayProgress(BaseModel):
    day: int
    completed: int
    created: int


class ChartData(BaseModel):
    by_category: dict[str, int]
    by_priority: dict[str, int]
    by_status: dict[str, int]
    monthly_progress: List[DayProgress]


class Reminder(BaseModel):
    count: int
    tasks: List[TaskOut]
