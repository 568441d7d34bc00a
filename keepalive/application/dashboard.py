"""
Dashboard - aggregated read views over transfer tasks.

Pure read-layer: no events, no mutations. Every view is computed from the
committed rows at call time.
  1. Period stats (counts, completion rate, accounts, strategies)
  2. Calendar buckets
  3. Next day with pending work
  4. Today block
  5. Recent activity
"""
from datetime import date
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from keepalive.application.accounts import AccountDirectory
from keepalive.application.strategies import StrategyReadService
from keepalive.application.task_store import TaskStore
from keepalive.config import get_settings
from keepalive.domain.calendar import period_bounds, validate_range, iter_days
from keepalive.domain.errors import ValidationError
from keepalive.domain.task import PENDING, COMPLETED, SKIPPED
from keepalive.infrastructure.db.models import TransferTaskModel


def task_item(task: TransferTaskModel, names: dict[str, str]) -> dict:
    """Task row as a plain dict, with account names resolved."""
    return {
        "id": task.id,
        "group_name": task.group_name,
        "cycle": task.cycle,
        "anchor_date": task.anchor_date,
        "exec_date": task.exec_date,
        "exec_time": task.exec_time,
        "from_account_id": task.from_account_id,
        "from_account_name": names.get(task.from_account_id),
        "to_account_id": task.to_account_id,
        "to_account_name": names.get(task.to_account_id),
        "amount": f"{Decimal(task.amount):.2f}",
        "memo": task.memo,
        "notes": task.notes,
        "status": task.status,
        "completed_at": task.completed_at,
        "created_at": task.created_at,
    }


class DashboardService:
    def __init__(self, db: Session):
        self.db = db
        self.store = TaskStore(db)

    # ------------------------------------------------------------------
    # 1. Period stats
    # ------------------------------------------------------------------

    def dashboard_stats(self, user_id: int, period: str, today: date) -> dict:
        start, end = period_bounds(period, today)

        query = self.db.query(TransferTaskModel.status, func.count(TransferTaskModel.id)).filter(
            TransferTaskModel.user_id == user_id,
        )
        if start is not None:
            query = query.filter(TransferTaskModel.exec_date >= start)
        if end is not None:
            query = query.filter(TransferTaskModel.exec_date <= end)
        by_status = {status: n for status, n in query.group_by(TransferTaskModel.status).all()}

        pending = by_status.get(PENDING, 0)
        completed = by_status.get(COMPLETED, 0)
        skipped = by_status.get(SKIPPED, 0)
        closed = completed + skipped

        last_completed_at = self.db.query(func.max(TransferTaskModel.completed_at)).filter(
            TransferTaskModel.user_id == user_id,
            TransferTaskModel.status == COMPLETED,
        ).scalar()

        accounts = AccountDirectory(self.db).count(user_id)

        return {
            "period": period,
            "start": start,
            "end": end,
            "total_tasks": pending + completed + skipped,
            "pending_tasks": pending,
            "completed_tasks": completed,
            "skipped_tasks": skipped,
            "completion_rate": round(completed / closed, 4) if closed else 0.0,
            "total_accounts": accounts["total"],
            "active_accounts": accounts["active"],
            "total_strategies": StrategyReadService(self.db).count(user_id),
            "last_completed_at": last_completed_at,
        }

    # ------------------------------------------------------------------
    # 2. Calendar
    # ------------------------------------------------------------------

    def calendar(self, user_id: int, start: date, end: date) -> list[dict]:
        """One bucket per day of [start, end], empty days included."""
        validate_range(start, end)

        rows = (
            self.db.query(
                TransferTaskModel.exec_date,
                TransferTaskModel.status,
                func.count(TransferTaskModel.id),
            )
            .filter(
                TransferTaskModel.user_id == user_id,
                TransferTaskModel.exec_date >= start,
                TransferTaskModel.exec_date <= end,
            )
            .group_by(TransferTaskModel.exec_date, TransferTaskModel.status)
            .all()
        )
        counts: dict[date, int] = {}
        pending_days: set[date] = set()
        for d, status, n in rows:
            counts[d] = counts.get(d, 0) + n
            if status == PENDING:
                pending_days.add(d)

        return [
            {"date": d, "task_count": counts.get(d, 0), "has_pending": d in pending_days}
            for d in iter_days(start, end)
        ]

    # ------------------------------------------------------------------
    # 3. Next day
    # ------------------------------------------------------------------

    def next_day(self, user_id: int, today: date) -> dict | None:
        next_date = self.db.query(func.min(TransferTaskModel.exec_date)).filter(
            TransferTaskModel.user_id == user_id,
            TransferTaskModel.exec_date > today,
            TransferTaskModel.status == PENDING,
        ).scalar()
        if next_date is None:
            return None

        names = AccountDirectory(self.db).names_by_id(user_id)
        return {
            "date": next_date,
            "days_until": (next_date - today).days,
            "tasks": [task_item(t, names) for t in self.store.on_date(user_id, next_date)],
        }

    # ------------------------------------------------------------------
    # 4. Today
    # ------------------------------------------------------------------

    def today(self, user_id: int, today: date) -> dict:
        tasks = self.store.on_date(user_id, today)
        names = AccountDirectory(self.db).names_by_id(user_id)
        return {
            "date": today,
            "tasks": [task_item(t, names) for t in tasks],
            "pending_count": sum(1 for t in tasks if t.status == PENDING),
            "completed_count": sum(1 for t in tasks if t.status == COMPLETED),
            "skipped_count": sum(1 for t in tasks if t.status == SKIPPED),
        }

    # ------------------------------------------------------------------
    # 5. Recent activity
    # ------------------------------------------------------------------

    def recent_activity(self, user_id: int, limit: int = 10) -> list[dict]:
        max_limit = get_settings().RECENT_ACTIVITY_MAX
        if limit < 1 or limit > max_limit:
            raise ValidationError(f"limit должен быть от 1 до {max_limit}")

        # completed_at may be NULL; falls back to exec_date
        tasks = (
            self.db.query(TransferTaskModel)
            .filter(
                TransferTaskModel.user_id == user_id,
                TransferTaskModel.status == COMPLETED,
            )
            .order_by(
                func.coalesce(TransferTaskModel.completed_at, TransferTaskModel.exec_date).desc(),
                TransferTaskModel.exec_time.desc(),
                TransferTaskModel.id.desc(),
            )
            .limit(limit)
            .all()
        )

        names = AccountDirectory(self.db).names_by_id(user_id)
        return [task_item(t, names) for t in tasks]
