import contextlib
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.errors import StoreError, TaskNotFound, ValidationError
from ..services.recurrence import Recurrence
from .models import Task, utcnow

logger = logging.getLogger(__name__)

# columns a caller may change through update()
UPDATABLE_FIELDS = {
    "title",
    "description",
    "deadline",
    "priority",
    "category",
    "recurring",
    "completed",
    "archived",
    "order_index",
}


@dataclass
class StoreQuery:
    """Filter predicates for TaskStore.find; None means "don't care"."""

    title: Optional[str] = None
    recurring: Optional[Recurrence] = None
    completed: Optional[bool] = None
    archived: Optional[bool] = None
    created_after: Optional[datetime] = None
    limit: Optional[int] = None


class TaskStore:
    """Task persistence over a SQLModel session. Every DB failure surfaces as StoreError."""

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextlib.contextmanager
    def _guard(self, op: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.warning("Task store %s failed: %s", op, e)
            raise StoreError(f"{op} failed: {e}") from e

    def find(self, owner_id: str, filters: Optional[StoreQuery] = None) -> List[Task]:
        q = filters or StoreQuery()
        stmt = select(Task).where(Task.owner_id == owner_id)
        if q.title is not None:
            stmt = stmt.where(Task.title == q.title)
        if q.recurring is not None:
            stmt = stmt.where(Task.recurring == q.recurring)
        if q.completed is not None:
            stmt = stmt.where(Task.completed == q.completed)
        if q.archived is not None:
            stmt = stmt.where(Task.archived == q.archived)
        if q.created_after is not None:
            stmt = stmt.where(Task.created_at >= q.created_after)
        stmt = stmt.order_by(Task.order_index, Task.id)
        if q.limit is not None:
            stmt = stmt.limit(q.limit)
        with self._guard("find"):
            return list(self.session.exec(stmt).all())

    def get(self, task_id: int) -> Optional[Task]:
        with self._guard("get"):
            return self.session.get(Task, task_id)

    def insert(self, task: Task) -> Task:
        with self._guard("insert"):
            self.session.add(task)
            self.session.commit()
            self.session.refresh(task)
        logger.debug("Task inserted id=%s owner=%s title=%r", task.id, task.owner_id, task.title)
        return task

    def update(self, task_id: int, fields: dict[str, Any]) -> Task:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Not updatable: {sorted(unknown)}")
        with self._guard("update"):
            task = self.session.get(Task, task_id)
            if task is None:
                raise TaskNotFound(task_id)
            for name, value in fields.items():
                setattr(task, name, value)
            task.updated_at = utcnow()
            self.session.add(task)
            self.session.commit()
            self.session.refresh(task)
        return task

    def delete(self, task_id: int) -> None:
        with self._guard("delete"):
            task = self.session.get(Task, task_id)
            if task is None:
                raise TaskNotFound(task_id)
            self.session.delete(task)
            self.session.commit()

    def count(self, owner_id: str, *, archived: Optional[bool] = None) -> int:
        stmt = select(func.count()).select_from(Task).where(Task.owner_id == owner_id)
        if archived is not None:
            stmt = stmt.where(Task.archived == archived)
        with self._guard("count"):
            return int(self.session.exec(stmt).one())

    def count_active(self, owner_id: str) -> int:
        return self.count(owner_id, archived=False)

    def reorder(self, owner_id: str, task_ids: List[int]) -> None:
        """Assign order_index 0..n-1 following `task_ids`; ids owned by someone else are ignored."""
        with self._guard("reorder"):
            tasks = {
                t.id: t
                for t in self.session.exec(
                    select(Task).where(Task.owner_id == owner_id, Task.id.in_(task_ids))
                ).all()
            }
            now = utcnow()
            for index, task_id in enumerate(task_ids):
                task = tasks.get(task_id)
                if task is None:
                    continue
                task.order_index = index
                task.updated_at = now
                self.session.add(task)
            self.session.commit()
