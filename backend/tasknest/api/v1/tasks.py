import logging
from datetime import date, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from ...core.config import settings
from ...core.errors import TaskNotFound
from ...db.crud import StoreQuery, TaskStore
from ...db.models import Priority, Task
from ...schemas.tasks import CompletionOut, TaskIn, TaskOrder, TaskOut, TaskUpdate
from ...services.completion import CompletionWorkflow, SessionContext
from ...services.dashboard import StatusFilter, TaskFilter, filter_tasks
from ..deps import get_context, get_owner_id, get_store

logger = logging.getLogger(__name__)

router = APIRouter()


def _owned(store: TaskStore, owner_id: str, task_id: int) -> Task:
    task = store.get(task_id)
    if task is None or task.owner_id != owner_id:
        raise TaskNotFound(task_id)
    return task


@router.get("/tasks", response_model=List[TaskOut])
def list_all(
    search: str = "",
    category: Optional[str] = None,
    priority: Optional[Priority] = None,
    status: StatusFilter = StatusFilter.ALL,
    on_date: Optional[date] = Query(default=None, alias="date"),
    store: TaskStore = Depends(get_store),
    ctx: SessionContext = Depends(get_context),
):
    flt = TaskFilter(
        search=search,
        category=category or None,
        priority=priority.value if priority else None,
        status=status,
        on_date=on_date,
    )
    return filter_tasks(ctx.tasks(store), flt)


@router.get("/tasks/archived", response_model=List[TaskOut])
def list_archived(store: TaskStore = Depends(get_store), owner_id: str = Depends(get_owner_id)):
    return store.find(owner_id, StoreQuery(archived=True))


@router.put("/tasks/order", status_code=204)
def reorder(
    body: TaskOrder,
    store: TaskStore = Depends(get_store),
    ctx: SessionContext = Depends(get_context),
):
    store.reorder(ctx.owner_id, body.task_ids)
    ctx.invalidate()
    return Response(status_code=204)


@router.post("/tasks", response_model=TaskOut, status_code=201)
def create(body: TaskIn, store: TaskStore = Depends(get_store), ctx: SessionContext = Depends(get_context)):
    t = Task(**body.model_dump(), owner_id=ctx.owner_id, order_index=store.count(ctx.owner_id))
    created = store.insert(t)
    ctx.invalidate()
    return created


@router.get("/tasks/{task_id}", response_model=TaskOut)
def read(task_id: int, store: TaskStore = Depends(get_store), owner_id: str = Depends(get_owner_id)):
    return _owned(store, owner_id, task_id)


@router.patch("/tasks/{task_id}", response_model=TaskOut)
def update(
    task_id: int,
    body: TaskUpdate,
    store: TaskStore = Depends(get_store),
    ctx: SessionContext = Depends(get_context),
):
    _owned(store, ctx.owner_id, task_id)
    # only description may be cleared
    fields = {
        k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None or k == "description"
    }
    updated = store.update(task_id, fields)
    ctx.invalidate()
    return updated


@router.delete("/tasks/{task_id}", status_code=204)
def delete(task_id: int, store: TaskStore = Depends(get_store), ctx: SessionContext = Depends(get_context)):
    _owned(store, ctx.owner_id, task_id)
    store.delete(task_id)
    ctx.invalidate()
    return Response(status_code=204)


@router.post("/tasks/{task_id}/toggle", response_model=CompletionOut)
def toggle(task_id: int, store: TaskStore = Depends(get_store), ctx: SessionContext = Depends(get_context)):
    workflow = CompletionWorkflow(
        store,
        ctx,
        guard_window=timedelta(seconds=settings.RECURRENCE_GUARD_WINDOW_SEC),
        notify=lambda msg: logger.info("owner=%s task_id=%s: %s", ctx.owner_id, task_id, msg),
    )
    return CompletionOut.model_validate(workflow.complete_task(task_id))


@router.post("/tasks/{task_id}/archive", response_model=TaskOut)
def archive(task_id: int, store: TaskStore = Depends(get_store), ctx: SessionContext = Depends(get_context)):
    _owned(store, ctx.owner_id, task_id)
    task = store.update(task_id, {"archived": True})
    ctx.invalidate()
    return task


@router.post("/tasks/{task_id}/unarchive", response_model=TaskOut)
def unarchive(task_id: int, store: TaskStore = Depends(get_store), ctx: SessionContext = Depends(get_context)):
    _owned(store, ctx.owner_id, task_id)
    task = store.update(task_id, {"archived": False})
    ctx.invalidate()
    return task


@router.delete("/session", status_code=204)
def end_session(request: Request, owner_id: str = Depends(get_owner_id)):
    request.app.state.sessions.close(owner_id)
    return Response(status_code=204)
