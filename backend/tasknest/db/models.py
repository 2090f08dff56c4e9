from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field

from ..services.recurrence import Recurrence


def utcnow() -> datetime:
    # naive UTC, the way SQLite hands timestamps back
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: str = Field(index=True)
    title: str = Field(index=True)
    description: Optional[str] = None
    deadline: datetime
    priority: Priority = Priority.MEDIUM
    category: str = "general"
    recurring: Recurrence = Recurrence.NONE
    completed: bool = False
    archived: bool = False
    order_index: int = 0
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)
