"""Task lifecycle use cases - complete / skip / delete, single and batch"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from sqlalchemy import delete
from sqlalchemy.orm import Session

from keepalive.application.task_store import TaskStore
from keepalive.domain.errors import ValidationError
from keepalive.domain.task import TransferTask, ensure_transition, PENDING, COMPLETED, SKIPPED
from keepalive.infrastructure.db.models import TransferTaskModel
from keepalive.infrastructure.eventlog.repository import EventLogRepository

logger = logging.getLogger(__name__)

MAX_NOTES_LENGTH = 2000

SELECT_IDS = "ids"
SELECT_ALL = "all"
SELECT_COMPLETED = "completed"
SELECT_CYCLE = "cycle"


@dataclass(frozen=True)
class TaskSelector:
    kind: str
    ids: tuple[str, ...] = ()
    cycle: int | None = None

    @classmethod
    def by_ids(cls, ids) -> "TaskSelector":
        return cls(SELECT_IDS, ids=tuple(dict.fromkeys(ids)))

    @classmethod
    def all(cls) -> "TaskSelector":
        return cls(SELECT_ALL)

    @classmethod
    def completed(cls) -> "TaskSelector":
        return cls(SELECT_COMPLETED)

    @classmethod
    def in_cycle(cls, cycle: int) -> "TaskSelector":
        return cls(SELECT_CYCLE, cycle=cycle)

    def describe(self) -> str:
        if self.kind == SELECT_CYCLE:
            return f"cycle:{self.cycle}"
        if self.kind == SELECT_IDS:
            return f"ids:{len(self.ids)}"
        return self.kind


@dataclass
class BatchResult:
    count: int = 0
    failed_ids: list[str] = field(default_factory=list)


def _clean_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    notes = notes.strip()
    if len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(f"Заметка длиннее {MAX_NOTES_LENGTH} символов")
    return notes or None


class CompleteTaskUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(
        self,
        task_id: str,
        user_id: int,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> TransferTaskModel:
        now = now or datetime.now(timezone.utc)
        notes = _clean_notes(notes)

        task = TaskStore(self.db).get(user_id, task_id)
        ensure_transition(task.status, COMPLETED)

        task.status = COMPLETED
        task.completed_at = now
        task.notes = notes

        self.event_repo.append_event(
            user_id=user_id,
            event_type="task_completed",
            payload=TransferTask.complete(task_id, now, notes),
            occurred_at=now,
        )
        self.db.commit()
        return task


class SkipTaskUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(self, task_id: str, user_id: int, now: datetime | None = None) -> TransferTaskModel:
        now = now or datetime.now(timezone.utc)

        task = TaskStore(self.db).get(user_id, task_id)
        ensure_transition(task.status, SKIPPED)

        task.status = SKIPPED

        self.event_repo.append_event(
            user_id=user_id,
            event_type="task_skipped",
            payload=TransferTask.skip(task_id, now),
            occurred_at=now,
        )
        self.db.commit()
        return task


class DeleteTaskUseCase:
    """Deletion is allowed from any status."""

    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(self, task_id: str, user_id: int, now: datetime | None = None) -> None:
        now = now or datetime.now(timezone.utc)

        task = TaskStore(self.db).get(user_id, task_id)
        status = task.status
        self.db.delete(task)

        self.event_repo.append_event(
            user_id=user_id,
            event_type="task_deleted",
            payload=TransferTask.delete(task_id, status, now),
            occurred_at=now,
        )
        self.db.commit()


class BatchDeleteTasksUseCase:
    """
    Best-effort batch deletion.

    Every selected task is deleted on its own; a task that is already gone
    (unknown id, deleted concurrently) is reported in failed_ids and does not
    stop the rest.
    """

    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(self, user_id: int, selector: TaskSelector, now: datetime | None = None) -> BatchResult:
        now = now or datetime.now(timezone.utc)
        result = BatchResult()

        for task_id in self._selected_ids(user_id, selector):
            deleted = self.db.execute(
                delete(TransferTaskModel).where(
                    TransferTaskModel.id == task_id,
                    TransferTaskModel.user_id == user_id,
                )
            ).rowcount
            if deleted:
                result.count += 1
            else:
                result.failed_ids.append(task_id)
                logger.warning("Batch delete: task %s not found for user %s", task_id, user_id)

        if result.count:
            self.event_repo.append_event(
                user_id=user_id,
                event_type="tasks_batch_deleted",
                payload=TransferTask.batch_delete(selector.describe(), result.count, result.failed_ids, now),
                occurred_at=now,
            )
        self.db.commit()
        return result

    def _selected_ids(self, user_id: int, selector: TaskSelector) -> list[str]:
        if selector.kind == SELECT_IDS:
            return list(selector.ids)

        query = self.db.query(TransferTaskModel.id).filter(TransferTaskModel.user_id == user_id)
        if selector.kind == SELECT_ALL:
            pass
        elif selector.kind == SELECT_COMPLETED:
            query = query.filter(TransferTaskModel.status == COMPLETED)
        elif selector.kind == SELECT_CYCLE:
            if selector.cycle is None:
                raise ValidationError("Не указан номер цикла")
            query = query.filter(TransferTaskModel.cycle == selector.cycle)
        else:
            raise ValidationError(f"Неизвестный селектор: {selector.kind}")
        return [r.id for r in query.order_by(TransferTaskModel.id).all()]


class CompleteTodayTasksUseCase:
    """Mark every pending task dated `today` as completed."""

    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(self, user_id: int, today: date, now: datetime | None = None) -> BatchResult:
        now = now or datetime.now(timezone.utc)
        result = BatchResult()

        tasks = self.db.query(TransferTaskModel).filter(
            TransferTaskModel.user_id == user_id,
            TransferTaskModel.exec_date == today,
            TransferTaskModel.status == PENDING,
        ).all()
        for task in tasks:
            task.status = COMPLETED
            task.completed_at = now
            self.event_repo.append_event(
                user_id=user_id,
                event_type="task_completed",
                payload=TransferTask.complete(task.id, now),
                occurred_at=now,
            )
            result.count += 1

        self.db.commit()
        return result


def selector_from_request(
    task_ids: list[str] | None = None,
    delete_all: bool = False,
    delete_completed: bool = False,
    delete_cycle: int | None = None,
) -> TaskSelector:
    """Exactly one selector must be given."""
    chosen = [
        bool(task_ids),
        bool(delete_all),
        bool(delete_completed),
        delete_cycle is not None,
    ]
    if sum(chosen) != 1:
        raise ValidationError("Укажите ровно один способ выбора задач для удаления")
    if task_ids:
        return TaskSelector.by_ids(task_ids)
    if delete_all:
        return TaskSelector.all()
    if delete_completed:
        return TaskSelector.completed()
    return TaskSelector.in_cycle(delete_cycle)

