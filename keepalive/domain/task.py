"""Transfer task domain - status machine and lifecycle event payloads"""
from datetime import datetime, date
from typing import Dict, Any

from keepalive.domain.errors import IllegalTransitionError

PENDING = "pending"
COMPLETED = "completed"
SKIPPED = "skipped"

TASK_STATUSES = (PENDING, COMPLETED, SKIPPED)

# pending -> completed | skipped; both targets are terminal
ALLOWED_TRANSITIONS = {
    PENDING: frozenset({COMPLETED, SKIPPED}),
    COMPLETED: frozenset(),
    SKIPPED: frozenset(),
}

_STATUS_LABEL = {PENDING: "ожидает", COMPLETED: "выполнена", SKIPPED: "пропущена"}


def ensure_transition(current: str, target: str) -> None:
    """Raise IllegalTransitionError unless current -> target is allowed."""
    if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise IllegalTransitionError(
            f"Задача уже {_STATUS_LABEL.get(current, current)}, переход невозможен"
        )


class TransferTask:
    """Builds event_log payloads for task lifecycle operations."""

    @staticmethod
    def generated(
        group_name: str,
        start_cycle: int,
        end_cycle: int,
        count: int,
        first_date: date,
        last_date: date,
        strategy_id: str | None = None,
        seed: int | None = None,
    ) -> Dict[str, Any]:
        return {
            "group_name": group_name,
            "strategy_id": strategy_id,
            "start_cycle": start_cycle,
            "end_cycle": end_cycle,
            "count": count,
            "first_date": first_date.isoformat(),
            "last_date": last_date.isoformat(),
            "seed": seed,
        }

    @staticmethod
    def complete(task_id: str, completed_at: datetime, notes: str | None = None) -> Dict[str, Any]:
        return {"task_id": task_id, "completed_at": completed_at.isoformat(), "notes": notes}

    @staticmethod
    def skip(task_id: str, skipped_at: datetime) -> Dict[str, Any]:
        return {"task_id": task_id, "skipped_at": skipped_at.isoformat()}

    @staticmethod
    def delete(task_id: str, status: str, deleted_at: datetime) -> Dict[str, Any]:
        return {"task_id": task_id, "status": status, "deleted_at": deleted_at.isoformat()}

    @staticmethod
    def batch_delete(selector: str, deleted_count: int, failed_ids: list[str], deleted_at: datetime) -> Dict[str, Any]:
        return {
            "selector": selector,
            "deleted_count": deleted_count,
            "failed_ids": failed_ids,
            "deleted_at": deleted_at.isoformat(),
        }
