"""
Strategy catalog - use cases and read service.

System strategies (user_id IS NULL, is_system = true) are visible to every user
and can never be changed or deleted.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import or_
from sqlalchemy.orm import Session

from keepalive.domain.errors import NotFoundError
from keepalive.domain.strategy import (
    SYSTEM_STRATEGIES, StrategySpec,
    build_strategy_spec, apply_changes, validate_strategy,
    strategy_spec_from_db, ensure_mutable,
)
from keepalive.infrastructure.db.models import StrategyModel

logger = logging.getLogger(__name__)


def _visible_to(user_id: int):
    return or_(StrategyModel.user_id == user_id, StrategyModel.is_system.is_(True))


def _write_spec(row: StrategyModel, spec: StrategySpec) -> None:
    row.name = spec.name
    row.interval_min = spec.interval_min
    row.interval_max = spec.interval_max
    row.time_start = spec.time_start
    row.time_end = spec.time_end
    row.skip_weekend = spec.skip_weekend
    row.amount_min = spec.amount_min
    row.amount_max = spec.amount_max
    row.daily_limit = spec.daily_limit


class StrategyReadService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, strategy_id: str, user_id: int) -> StrategyModel:
        row = self.db.query(StrategyModel).filter(
            StrategyModel.id == strategy_id,
            _visible_to(user_id),
        ).first()
        if not row:
            raise NotFoundError("Стратегия не найдена")
        return row

    def list_visible(self, user_id: int) -> list[StrategyModel]:
        """System strategies first, then the user's own in creation order."""
        return (
            self.db.query(StrategyModel)
            .filter(_visible_to(user_id))
            .order_by(StrategyModel.is_system.desc(), StrategyModel.created_at.asc(), StrategyModel.id.asc())
            .all()
        )

    def count(self, user_id: int) -> int:
        return self.db.query(StrategyModel).filter(_visible_to(user_id)).count()


class CreateStrategyUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, name: str, **fields) -> StrategyModel:
        spec = build_strategy_spec(name=name, **fields)
        validate_strategy(spec)

        now = datetime.now(timezone.utc)
        row = StrategyModel(user_id=user_id, is_system=False, created_at=now, updated_at=now)
        _write_spec(row, spec)
        self.db.add(row)
        self.db.commit()
        logger.info("Strategy %s created for user %s", row.id, user_id)
        return row


class UpdateStrategyUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, strategy_id: str, user_id: int, **changes) -> StrategyModel:
        row = StrategyReadService(self.db).get(strategy_id, user_id)

        spec = apply_changes(strategy_spec_from_db(row), **changes)
        validate_strategy(spec)

        _write_spec(row, spec)
        row.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        return row


class DeleteStrategyUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, strategy_id: str, user_id: int) -> None:
        row = StrategyReadService(self.db).get(strategy_id, user_id)
        ensure_mutable(strategy_spec_from_db(row), action="удалить")

        self.db.delete(row)
        self.db.commit()
        logger.info("Strategy %s deleted by user %s", strategy_id, user_id)


def ensure_system_strategies(db: Session) -> int:
    """Seed built-in strategies if the table has none. Returns number of rows created."""
    exists = db.query(StrategyModel).filter(StrategyModel.is_system.is_(True)).count()
    if exists:
        return 0

    now = datetime.now(timezone.utc)
    for fields in SYSTEM_STRATEGIES:
        row = StrategyModel(user_id=None, is_system=True, created_at=now, updated_at=now)
        _write_spec(row, build_strategy_spec(**fields))
        db.add(row)
    db.commit()
    logger.info("Seeded %d system strategies", len(SYSTEM_STRATEGIES))
    return len(SYSTEM_STRATEGIES)
