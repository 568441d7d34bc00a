"""
Task store - queries over transfer_tasks.

Two access paths matter:
  (user_id, exec_date)          calendar views, daily capacity
  (user_id, group_name, cycle)  continuation of a generation chain
"""
from dataclasses import dataclass
from datetime import date

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, aliased

from keepalive.domain.errors import NotFoundError, ValidationError
from keepalive.domain.task import TASK_STATUSES
from keepalive.infrastructure.db.models import TransferTaskModel, AccountModel

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

UNGROUPED = "ungrouped"


@dataclass(frozen=True)
class TaskListFilter:
    status: str | None = None   # pending/completed/skipped, "all" or None = any
    cycle: int | None = None
    group: str | None = None    # group name, "ungrouped" = chain over all accounts, "all" or None = any
    query: str | None = None    # substring of account names / group name


def chain_key(group: str | None) -> str:
    """group_name value stored for a generation chain ("" = all accounts)."""
    return (group or "").strip()


class TaskStore:
    def __init__(self, db: Session):
        self.db = db

    def _base(self, user_id: int):
        return self.db.query(TransferTaskModel).filter(TransferTaskModel.user_id == user_id)

    def get(self, user_id: int, task_id: str) -> TransferTaskModel:
        task = self._base(user_id).filter(TransferTaskModel.id == task_id).first()
        if not task:
            raise NotFoundError(f"Задача {task_id} не найдена")
        return task

    def list_page(
        self,
        user_id: int,
        flt: TaskListFilter | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> dict:
        if page < 1:
            raise ValidationError("Номер страницы должен быть не меньше 1")
        if page_size < 1:
            raise ValidationError("Размер страницы должен быть не меньше 1")
        page_size = min(page_size, MAX_PAGE_SIZE)

        query = self._apply_filter(self._base(user_id), flt or TaskListFilter())
        total = query.count()
        items = (
            query.order_by(
                TransferTaskModel.exec_date.asc(),
                TransferTaskModel.exec_time.asc(),
                TransferTaskModel.id.asc(),
            )
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"items": items, "total": total, "page": page, "page_size": page_size}

    def _apply_filter(self, query, flt: TaskListFilter):
        if flt.status and flt.status != "all":
            if flt.status not in TASK_STATUSES:
                raise ValidationError(f"Недопустимый статус: {flt.status}")
            query = query.filter(TransferTaskModel.status == flt.status)

        if flt.cycle is not None:
            query = query.filter(TransferTaskModel.cycle == flt.cycle)

        if flt.group and flt.group != "all":
            group = "" if flt.group == UNGROUPED else flt.group
            query = query.filter(TransferTaskModel.group_name == group)

        text = (flt.query or "").strip()
        if text:
            like = f"%{text}%"
            sender = aliased(AccountModel)
            receiver = aliased(AccountModel)
            query = (
                query.outerjoin(sender, sender.id == TransferTaskModel.from_account_id)
                .outerjoin(receiver, receiver.id == TransferTaskModel.to_account_id)
                .filter(or_(
                    sender.name.ilike(like),
                    receiver.name.ilike(like),
                    TransferTaskModel.group_name.ilike(like),
                ))
            )
        return query

    def list_cycles(self, user_id: int) -> list[int]:
        rows = (
            self.db.query(TransferTaskModel.cycle)
            .filter(TransferTaskModel.user_id == user_id)
            .distinct()
            .order_by(TransferTaskModel.cycle.asc())
            .all()
        )
        return [r.cycle for r in rows]

    def chain_tail(self, user_id: int, group: str | None) -> tuple[int, date | None]:
        """(max cycle, max exec_date) of a (user, group) chain; (0, None) when empty."""
        max_cycle, max_date = (
            self.db.query(func.max(TransferTaskModel.cycle), func.max(TransferTaskModel.exec_date))
            .filter(
                TransferTaskModel.user_id == user_id,
                TransferTaskModel.group_name == chain_key(group),
            )
            .one()
        )
        return (max_cycle or 0), max_date

    def day_counts(self, user_id: int, since: date) -> dict[date, int]:
        """Tasks per exec_date (all groups, all statuses) from `since` on."""
        rows = (
            self.db.query(TransferTaskModel.exec_date, func.count(TransferTaskModel.id))
            .filter(
                TransferTaskModel.user_id == user_id,
                TransferTaskModel.exec_date >= since,
            )
            .group_by(TransferTaskModel.exec_date)
            .all()
        )
        return {d: n for d, n in rows}

    def in_range(self, user_id: int, start: date | None, end: date | None) -> list[TransferTaskModel]:
        query = self._base(user_id)
        if start is not None:
            query = query.filter(TransferTaskModel.exec_date >= start)
        if end is not None:
            query = query.filter(TransferTaskModel.exec_date <= end)
        return query.order_by(TransferTaskModel.exec_date.asc(), TransferTaskModel.exec_time.asc()).all()

    def on_date(self, user_id: int, d: date) -> list[TransferTaskModel]:
        return self.in_range(user_id, d, d)

    def add_all(self, tasks: list[TransferTaskModel]) -> None:
        self.db.add_all(tasks)
        self.db.flush()
