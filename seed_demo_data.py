"""
Seed demo data for user_id=1: three accounts, system strategies, 4 cycles.
Run:  python seed_demo_data.py
"""
from datetime import datetime, timedelta, timezone

from keepalive.application.generation_locks import GenerationLocks
from keepalive.application.strategies import StrategyReadService, ensure_system_strategies
from keepalive.application.task_generator import GenerateTasksUseCase
from keepalive.infrastructure.db.models import AccountModel
from keepalive.infrastructure.db.session import get_session_factory
from keepalive.utils.clock import today_local

USER_ID = 1
ACCOUNTS = ("Сбер зарплатный", "Тинькофф Black", "Альфа накопительный")

db = get_session_factory()()

ensure_system_strategies(db)

existing = db.query(AccountModel).filter_by(user_id=USER_ID).count()
if existing:
    print(f"Accounts exist ({existing}), skipping account creation")
else:
    base = datetime.now(timezone.utc)
    for i, name in enumerate(ACCOUNTS):
        db.add(AccountModel(user_id=USER_ID, name=name, is_active=True, created_at=base + timedelta(seconds=i)))
    db.commit()
    print(f"Created {len(ACCOUNTS)} accounts")

strategy = StrategyReadService(db).list_visible(USER_ID)[0]
result = GenerateTasksUseCase(db, GenerationLocks()).execute(
    user_id=USER_ID,
    strategy_id=strategy.id,
    today=today_local(),
    cycles=4,
)
print(
    f"Generated {result.created_count} tasks, cycles {result.start_cycle}..{result.end_cycle}, "
    f"{result.first_date}..{result.last_date} (seed={result.seed})"
)
db.close()
