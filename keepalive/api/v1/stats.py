"""
Stats API endpoints (dashboard, calendar, today, next day, recent activity)
"""
from datetime import date, datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from keepalive.api.deps import get_db, get_current_user_id
from keepalive.api.v1.tasks import TaskResponse
from keepalive.application.dashboard import DashboardService
from keepalive.utils.clock import today_local


router = APIRouter(prefix="/api/v1/stats", tags=["stats"])


# === Response models ===

class DashboardStatsResponse(BaseModel):
    period: str
    start: date | None
    end: date | None
    total_tasks: int
    pending_tasks: int
    completed_tasks: int
    skipped_tasks: int
    completion_rate: float
    total_accounts: int
    active_accounts: int
    total_strategies: int
    last_completed_at: datetime | None


class CalendarDayResponse(BaseModel):
    date: date
    task_count: int
    has_pending: bool


class NextDayResponse(BaseModel):
    date: date
    days_until: int
    tasks: list[TaskResponse]


class TodayResponse(BaseModel):
    date: date
    tasks: list[TaskResponse]
    pending_count: int
    completed_count: int
    skipped_count: int


# === Endpoints ===

@router.get("/dashboard", response_model=DashboardStatsResponse)
def dashboard_stats(
    period: str = "month",
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Сводка за период: week / month / year / all"""
    return DashboardService(db).dashboard_stats(user_id, period, today_local())


@router.get("/calendar", response_model=list[CalendarDayResponse])
def calendar(
    start: date,
    end: date,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Количество задач по дням диапазона [start, end]"""
    return DashboardService(db).calendar(user_id, start, end)


@router.get("/next-day", response_model=NextDayResponse | None)
def next_day(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Ближайший день с ожидающими переводами (null если нет)"""
    return DashboardService(db).next_day(user_id, today_local())


@router.get("/today", response_model=TodayResponse)
def today(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return DashboardService(db).today(user_id, today_local())


@router.get("/recent", response_model=list[TaskResponse])
def recent_activity(
    limit: int = 10,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Последние выполненные переводы"""
    return DashboardService(db).recent_activity(user_id, limit)
