"""
Event Log Repository - append-only журнал событий жизненного цикла задач

Записи добавляются в той же транзакции, что и изменение задачи, поэтому
событие видно тогда и только тогда, когда закоммичено само изменение.
Читает журнал внешний диспетчер уведомлений.
"""
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from sqlalchemy.orm import Session

from keepalive.infrastructure.db.models import EventLog


class EventLogRepository:
    def __init__(self, db: Session):
        self.db = db

    def append_event(
        self,
        user_id: int,
        event_type: str,
        payload: Dict[str, Any],
        occurred_at: Optional[datetime] = None,
    ) -> int:
        """
        Добавить событие в event log (без commit)

        Args:
            user_id: владелец задач
            event_type: Тип события (например, "task_completed")
            payload: Данные события (JSON)
            occurred_at: Когда произошло событие (default: now, UTC)

        Returns:
            event_id: ID созданного события

        Example:
            >>> repo = EventLogRepository(db)
            >>> event_id = repo.append_event(
            ...     user_id=1,
            ...     event_type="task_skipped",
            ...     payload={"task_id": "8c1e...", "skipped_at": "2026-03-01T10:00:00"},
            ... )
        """
        if occurred_at is None:
            occurred_at = datetime.now(timezone.utc)

        event = EventLog(
            user_id=user_id,
            event_type=event_type,
            payload_json=payload,
            occurred_at=occurred_at,
        )

        self.db.add(event)
        self.db.flush()  # Получить ID без commit

        return event.id

    def list_events_since(
        self,
        user_id: int,
        after_id: int = 0,
        limit: int = 200,
        event_types: Optional[List[str]] = None,
    ) -> List[EventLog]:
        """
        Получить события после указанного ID (checkpoint диспетчера)

        Returns:
            Список событий отсортированных по ID (ASC)
        """
        query = (
            self.db.query(EventLog)
            .filter(
                EventLog.user_id == user_id,
                EventLog.id > after_id
            )
        )

        if event_types:
            query = query.filter(EventLog.event_type.in_(event_types))

        return query.order_by(EventLog.id.asc()).limit(limit).all()

    def count_events(
        self,
        user_id: int,
        event_types: Optional[List[str]] = None
    ) -> int:
        query = self.db.query(EventLog).filter(EventLog.user_id == user_id)

        if event_types:
            query = query.filter(EventLog.event_type.in_(event_types))

        return query.count()
