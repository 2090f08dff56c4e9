"""
Completing tasks and spawning the next occurrence of recurring ones.

Completing a recurring task creates at most one successor. Duplicates are
prevented in three layers:

- a per-session single-flight set: a second completion of the same task
  while the first is still running is ignored;
- a cascade debounce: a task created less than the guard window ago does
  not spawn (it is most likely a successor that was just created);
- two store queries right before the insert: any active task with the same
  owner/title/recurrence wins, and so does any recently created one whose
  deadline already covers the candidate day.

The store queries are check-then-act. Two processes completing the same task
at the same moment can still both insert; closing that gap needs a unique
constraint on (owner, title, recurrence) for incomplete rows or an
idempotency token at the store.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from ..core.errors import ConcurrencyConflict, StoreError, TaskNotFound, ValidationError
from ..db.crud import StoreQuery
from ..db.models import Task, utcnow
from .recurrence import Recurrence, as_day, next_deadline

logger = logging.getLogger(__name__)

DEFAULT_GUARD_WINDOW = timedelta(minutes=2)

# fields a successor inherits from the task it replaces
INHERITED_FIELDS = ("owner_id", "title", "description", "priority", "category", "recurring")


class TaskRepo(Protocol):
    def get(self, task_id: int) -> Optional[Task]: ...
    def find(self, owner_id: str, filters: Optional[StoreQuery] = None) -> List[Task]: ...
    def insert(self, task: Task) -> Task: ...
    def update(self, task_id: int, fields: Dict[str, Any]) -> Task: ...
    def count_active(self, owner_id: str) -> int: ...


class SkipReason(str, Enum):
    NOT_RECURRING = "not_recurring"
    RECENTLY_CREATED = "recently_created"
    ACTIVE_SUCCESSOR_EXISTS = "active_successor_exists"
    RECENT_SUCCESSOR_EXISTS = "recent_successor_exists"
    STORE_ERROR = "store_error"


@dataclass
class CompletionResult:
    task_id: int
    completed: bool
    successor_created: bool = False
    successor_id: Optional[int] = None
    skipped: Optional[SkipReason] = None
    warning: Optional[str] = None
    ignored: bool = False
    message: str = ""


class SessionContext:
    """
    Per-user state that lives from login to logout: the tasks currently
    being completed and a snapshot cache of the user's tasks.
    """

    def __init__(self, owner_id: str) -> None:
        self.owner_id = owner_id
        self._lock = threading.Lock()
        self._in_flight: set[int] = set()
        self._tasks: Optional[List[Task]] = None
        # bumped on every invalidation so a load that raced one is dropped
        self._generation = 0

    # ---- single-flight ----

    def claim(self, task_id: int) -> bool:
        with self._lock:
            if task_id in self._in_flight:
                return False
            self._in_flight.add(task_id)
            return True

    def release(self, task_id: int) -> None:
        with self._lock:
            self._in_flight.discard(task_id)

    def in_flight(self, task_id: int) -> bool:
        with self._lock:
            return task_id in self._in_flight

    # ---- task cache ----

    def tasks(self, store: TaskRepo) -> List[Task]:
        """Cached copy of the owner's tasks, loaded from `store` when stale."""
        with self._lock:
            if self._tasks is not None:
                return list(self._tasks)
            generation = self._generation
        loaded = [Task(**t.model_dump()) for t in store.find(self.owner_id)]
        with self._lock:
            if self._generation == generation:
                self._tasks = loaded
        return list(loaded)

    def invalidate(self) -> None:
        with self._lock:
            self._tasks = None
            self._generation += 1

    def clear(self) -> None:
        with self._lock:
            self._tasks = None
            self._generation += 1
            self._in_flight.clear()


class SessionRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: Dict[str, SessionContext] = {}

    def get(self, owner_id: str) -> SessionContext:
        with self._lock:
            ctx = self._sessions.get(owner_id)
            if ctx is None:
                ctx = SessionContext(owner_id)
                self._sessions[owner_id] = ctx
                logger.debug("Session opened owner=%s", owner_id)
            return ctx

    def close(self, owner_id: str) -> bool:
        with self._lock:
            ctx = self._sessions.pop(owner_id, None)
        if ctx is None:
            return False
        ctx.clear()
        logger.debug("Session closed owner=%s", owner_id)
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class CompletionWorkflow:
    def __init__(
        self,
        store: TaskRepo,
        context: SessionContext,
        *,
        guard_window: timedelta = DEFAULT_GUARD_WINDOW,
        now: Callable[[], datetime] = utcnow,
        notify: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.store = store
        self.context = context
        self.guard_window = guard_window
        self.now = now
        self.notify = notify

    def complete_task(self, task_id: int) -> CompletionResult:
        """
        Toggle completion of `task_id`.

        Completing an incomplete recurring task may create its successor.
        Store failures never raise: they come back as `warning` on the result.
        """
        if isinstance(task_id, bool) or not isinstance(task_id, int) or task_id <= 0:
            raise ValidationError(f"Invalid task id: {task_id!r}")

        if not self.context.claim(task_id):
            logger.info("Completion already in progress task_id=%s; ignoring", task_id)
            return CompletionResult(
                task_id=task_id,
                completed=False,
                ignored=True,
                message="Task completion already in progress",
            )

        try:
            result = self._toggle(task_id)
        finally:
            self.context.release(task_id)
            self.context.invalidate()

        if self.notify is not None and result.message:
            self.notify(result.message)
        return result

    def _toggle(self, task_id: int) -> CompletionResult:
        try:
            task = self.store.get(task_id)
        except StoreError as e:
            return CompletionResult(task_id, completed=False, warning=str(e), message="Error updating task")
        if task is None or task.owner_id != self.context.owner_id:
            raise TaskNotFound(task_id)

        original = task.model_dump()
        kind = Recurrence.parse(original["recurring"])

        if original["completed"]:
            try:
                self.store.update(task_id, {"completed": False})
            except StoreError as e:
                return CompletionResult(task_id, completed=True, warning=str(e), message="Error updating task")
            return CompletionResult(task_id, completed=False, message="Task marked as incomplete")

        try:
            self.store.update(task_id, {"completed": True})
        except StoreError as e:
            logger.warning("Completing task_id=%s failed: %s", task_id, e)
            return CompletionResult(task_id, completed=False, warning=str(e), message="Error updating task")

        done = CompletionResult(task_id, completed=True, message="Task completed!")

        if not kind.repeats:
            done.skipped = SkipReason.NOT_RECURRING
            return done

        candidate = next_deadline(original["deadline"], kind)
        now = self.now()

        age = now - original["created_at"]
        if age < self.guard_window:
            # Heuristic debounce, not a guarantee: a just-spawned successor
            # completed right away must not spawn another one.
            logger.info(
                "Task %s created %ss ago; skipping successor to avoid a cascade",
                task_id,
                int(age.total_seconds()),
            )
            done.skipped = SkipReason.RECENTLY_CREATED
            return done

        try:
            self._ensure_no_active_successor(original, kind)
            self._ensure_no_recent_successor(original, kind, candidate, now)
            successor = self.store.insert(
                Task(
                    **{name: original[name] for name in INHERITED_FIELDS},
                    deadline=candidate,
                    completed=False,
                    archived=False,
                    order_index=self.store.count_active(original["owner_id"]),
                )
            )
        except ConcurrencyConflict as e:
            logger.info("Skipping successor for task_id=%s: %s", task_id, e)
            done.skipped = e.reason
            return done
        except StoreError as e:
            logger.warning("Successor creation for task_id=%s failed: %s", task_id, e)
            done.skipped = SkipReason.STORE_ERROR
            done.warning = str(e)
            return done

        logger.info(
            "Created %s successor id=%s for task_id=%s deadline=%s",
            kind.value,
            successor.id,
            task_id,
            candidate.isoformat(),
        )
        done.successor_created = True
        done.successor_id = successor.id
        done.message = f"Task completed! New {kind.value} task created."
        return done

    def _ensure_no_active_successor(self, original: Dict[str, Any], kind: Recurrence) -> None:
        existing = self.store.find(
            original["owner_id"],
            StoreQuery(title=original["title"], recurring=kind, completed=False, archived=False, limit=1),
        )
        if existing:
            raise ConcurrencyConflict(
                f"active {kind.value} task {existing[0].id} already exists",
                reason=SkipReason.ACTIVE_SUCCESSOR_EXISTS,
            )

    def _ensure_no_recent_successor(
        self, original: Dict[str, Any], kind: Recurrence, candidate: datetime, now: datetime
    ) -> None:
        recent = self.store.find(
            original["owner_id"],
            StoreQuery(
                title=original["title"],
                recurring=kind,
                archived=False,
                created_after=now - self.guard_window,
                limit=5,
            ),
        )
        candidate_day = as_day(candidate)
        for other in recent:
            if as_day(other.deadline) >= candidate_day:
                raise ConcurrencyConflict(
                    f"recent {kind.value} task {other.id} already covers {candidate_day}",
                    reason=SkipReason.RECENT_SUCCESSOR_EXISTS,
                )
