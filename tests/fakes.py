from __future__ import annotations

import threading
from datetime import datetime

from tasknest.core.errors import StoreError, TaskNotFound
from tasknest.db.crud import StoreQuery
from tasknest.db.models import Task, utcnow
from tasknest.services.recurrence import Recurrence


class FakeTaskRepo:
    """
    In-memory task repo for completion workflow tests.

    - `fail_on` names store operations that raise StoreError
    - `hold_update` pauses the first update() until released, so a test can
      issue a second call while the first one is in flight
    - `hold_find` does the same for find(), after the result has been read
    """

    def __init__(self, tasks: list[Task] | None = None) -> None:
        self.tasks: dict[int, Task] = {}
        self.calls: list[str] = []
        self.fail_on: set[str] = set()
        self.update_entered = threading.Event()
        self.hold_update: threading.Event | None = None
        self.find_entered = threading.Event()
        self.hold_find: threading.Event | None = None
        self._next_id = 1
        self._lock = threading.Lock()
        for t in tasks or []:
            self.insert(t)

    def _record(self, op: str) -> None:
        self.calls.append(op)
        if op in self.fail_on:
            raise StoreError(f"{op} failed: boom")

    def get(self, task_id: int) -> Task | None:
        self._record("get")
        return self.tasks.get(task_id)

    def find(self, owner_id: str, filters: StoreQuery | None = None) -> list[Task]:
        self._record("find")
        q = filters or StoreQuery()
        out = []
        for t in sorted(self.tasks.values(), key=lambda x: (x.order_index, x.id)):
            if t.owner_id != owner_id:
                continue
            if q.title is not None and t.title != q.title:
                continue
            if q.recurring is not None and t.recurring != q.recurring:
                continue
            if q.completed is not None and t.completed != q.completed:
                continue
            if q.archived is not None and t.archived != q.archived:
                continue
            if q.created_after is not None and t.created_at < q.created_after:
                continue
            out.append(t)
        out = out[: q.limit] if q.limit is not None else out
        self.find_entered.set()
        if self.hold_find is not None:
            hold, self.hold_find = self.hold_find, None
            hold.wait(timeout=5)
        return out

    def insert(self, task: Task) -> Task:
        self._record("insert")
        with self._lock:
            task.id = self._next_id
            self._next_id += 1
            if task.created_at is None:
                task.created_at = utcnow()
            self.tasks[task.id] = task
        return task

    def update(self, task_id: int, fields: dict) -> Task:
        self._record("update")
        self.update_entered.set()
        if self.hold_update is not None:
            hold, self.hold_update = self.hold_update, None
            hold.wait(timeout=5)
        task = self.tasks.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        for k, v in fields.items():
            setattr(task, k, v)
        return task

    def count_active(self, owner_id: str) -> int:
        self._record("count_active")
        return sum(1 for t in self.tasks.values() if t.owner_id == owner_id and not t.archived)

    def successors(self, title: str) -> list[Task]:
        return [t for t in self.tasks.values() if t.title == title and not t.completed]


class FakeSmsGateway:
    def __init__(self, result=None, error: Exception | None = None, balance: str = "1250.50") -> None:
        self.result = result
        self.error = error
        self._balance = balance
        self.sent: list[tuple[str, str]] = []

    def send(self, phone_number: str, message: str):
        if self.error is not None:
            raise self.error
        self.sent.append((phone_number, message))
        return self.result

    def balance(self) -> str:
        if self.error is not None:
            raise self.error
        return self._balance


def make_task(
    *,
    title: str = "Water plants",
    recurring="daily",
    deadline: datetime = datetime(2024, 1, 1, 8, 0),
    completed: bool = False,
    created_at: datetime = datetime(2023, 12, 20, 9, 0),
    owner_id: str = "user-1",
    **extra,
) -> Task:
    return Task(
        owner_id=owner_id,
        title=title,
        deadline=deadline,
        recurring=Recurrence.parse(recurring),
        completed=completed,
        created_at=created_at,
        updated_at=created_at,
        **extra,
    )
