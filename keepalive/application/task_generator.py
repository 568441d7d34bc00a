"""
Generate tasks use case - builds N cycles of keep-alive transfers for a
(user, group) chain and commits them as one batch.

Either the whole batch becomes visible or none of it does.
"""
import logging
import random
from dataclasses import dataclass
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from keepalive.application.accounts import AccountDirectory
from keepalive.application.generation_locks import GenerationLocks
from keepalive.application.strategies import StrategyReadService
from keepalive.application.task_store import TaskStore, chain_key
from keepalive.config import Settings, get_settings
from keepalive.domain.errors import InsufficientAccountsError, ValidationError
from keepalive.domain.randomizer import Randomizer
from keepalive.domain.schedule import TaskGenerator, MIN_ACCOUNTS
from keepalive.domain.strategy import strategy_spec_from_db
from keepalive.domain.task import TransferTask, PENDING
from keepalive.infrastructure.db.models import TransferTaskModel
from keepalive.infrastructure.eventlog.repository import EventLogRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    created_count: int
    start_cycle: int
    end_cycle: int
    first_date: date
    last_date: date
    seed: int


class GenerateTasksUseCase:
    def __init__(self, db: Session, locks: GenerationLocks | None = None, settings: Settings | None = None):
        self.db = db
        self.locks = locks if locks is not None else GenerationLocks()
        self.settings = settings or get_settings()
        self.store = TaskStore(db)
        self.event_repo = EventLogRepository(db)

    def execute(
        self,
        user_id: int,
        strategy_id: str,
        today: date,
        group: str | None = None,
        cycles: int | None = None,
        seed: int | None = None,
        now: datetime | None = None,
    ) -> GenerationResult:
        if not strategy_id:
            raise ValidationError("Выберите стратегию")
        if cycles is None:
            cycles = self.settings.DEFAULT_CYCLES
        if cycles < 1 or cycles > self.settings.MAX_CYCLES_PER_CALL:
            raise ValidationError(
                f"Количество циклов должно быть от 1 до {self.settings.MAX_CYCLES_PER_CALL}"
            )
        if seed is None:
            seed = random.SystemRandom().getrandbits(63)
        now = now or datetime.now(timezone.utc)

        strategy = strategy_spec_from_db(StrategyReadService(self.db).get(strategy_id, user_id))
        group_key = chain_key(group)
        accounts = AccountDirectory(self.db).list_active(user_id, group_key or None)
        if len(accounts) < MIN_ACCOUNTS:
            raise InsufficientAccountsError(
                f"Для генерации нужно минимум {MIN_ACCOUNTS} активных счёта"
            )

        with self.locks.hold(user_id, group_key, self.db):
            try:
                prev_cycle, last_date = self.store.chain_tail(user_id, group_key)
                anchor = max(last_date, today) if last_date else today

                generator = TaskGenerator(Randomizer(seed), self.settings.CAPACITY_SEARCH_DAYS)
                planned = generator.generate(
                    strategy,
                    accounts,
                    cycles,
                    anchor_date=anchor,
                    prev_max_cycle=prev_cycle,
                    booked=self.store.day_counts(user_id, anchor),
                )

                rows = [
                    TransferTaskModel(
                        user_id=user_id,
                        group_name=group_key,
                        cycle=p.cycle,
                        anchor_date=today,
                        exec_date=p.exec_date,
                        exec_time=p.exec_time,
                        from_account_id=p.from_account_id,
                        to_account_id=p.to_account_id,
                        amount=p.amount,
                        status=PENDING,
                        created_at=now,
                    )
                    for p in planned
                ]
                self.store.add_all(rows)

                result = GenerationResult(
                    created_count=len(rows),
                    start_cycle=prev_cycle + 1,
                    end_cycle=prev_cycle + cycles,
                    first_date=min(p.exec_date for p in planned),
                    last_date=max(p.exec_date for p in planned),
                    seed=seed,
                )
                self.event_repo.append_event(
                    user_id=user_id,
                    event_type="tasks_generated",
                    payload=TransferTask.generated(
                        group_name=group_key,
                        start_cycle=result.start_cycle,
                        end_cycle=result.end_cycle,
                        count=result.created_count,
                        first_date=result.first_date,
                        last_date=result.last_date,
                        strategy_id=strategy_id,
                        seed=seed,
                    ),
                    occurred_at=now,
                )
                self.db.commit()
            except Exception:
                self.db.rollback()
                logger.warning(
                    "Task generation rolled back: user=%s group=%r cycles=%d",
                    user_id, group_key, cycles, exc_info=True,
                )
                raise

        logger.info(
            "Generated %d task(s) for user=%s group=%r cycles %d..%d (%s..%s)",
            result.created_count, user_id, group_key, result.start_cycle, result.end_cycle,
            result.first_date, result.last_date,
        )
        return result

    def preview(self, user_id: int, group: str | None = None) -> dict:
        """Where the next generation call for this chain would continue from."""
        last_cycle, last_date = self.store.chain_tail(user_id, chain_key(group))
        return {
            "has_tasks": last_cycle > 0,
            "last_cycle": last_cycle,
            "last_exec_date": last_date,
            "next_cycle": last_cycle + 1,
        }
