from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from ...db.crud import TaskStore
from ...schemas.tasks import ChartData, DashboardStats, Reminder, TaskOut
from ...services.completion import SessionContext
from ...services.dashboard import chart_data, daily_reminder, dashboard_stats
from ..deps import get_context, get_store

router = APIRouter(prefix="/dashboard")


@router.get("/stats", response_model=DashboardStats)
def stats(
    today: Optional[date] = None,
    store: TaskStore = Depends(get_store),
    ctx: SessionContext = Depends(get_context),
):
    return dashboard_stats(ctx.tasks(store), today or date.today())


@router.get("/charts", response_model=ChartData)
def charts(
    today: Optional[date] = None,
    store: TaskStore = Depends(get_store),
    ctx: SessionContext = Depends(get_context),
):
    return chart_data(ctx.tasks(store), today or date.today())


@router.get("/reminder", response_model=Reminder)
def reminder(
    today: Optional[date] = None,
    store: TaskStore = Depends(get_store),
    ctx: SessionContext = Depends(get_context),
):
    due = daily_reminder(ctx.tasks(store), today or date.today())
    return Reminder(count=len(due), tasks=[TaskOut.model_validate(t) for t in due])
