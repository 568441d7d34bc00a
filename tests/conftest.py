"""
Pytest fixtures for testing
"""
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from keepalive.infrastructure.db.session import Base
from keepalive.infrastructure.db.models import AccountModel, StrategyModel, TransferTaskModel


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared by every connection (TestClient runs routes in a thread pool)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sample_user_id():
    """Sample user ID for tests"""
    return 1


_BASE_CREATED = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_account(db_session, sample_user_id):
    """Account factory; creation order = rotation order."""
    counter = {"n": 0}

    def _make(name=None, *, user_id=None, is_active=True, group_name=None, amount_min=None, amount_max=None):
        counter["n"] += 1
        acc = AccountModel(
            user_id=user_id or sample_user_id,
            name=name or f"Счёт {counter['n']}",
            is_active=is_active,
            group_name=group_name,
            amount_min=Decimal(str(amount_min)) if amount_min is not None else None,
            amount_max=Decimal(str(amount_max)) if amount_max is not None else None,
            created_at=_BASE_CREATED + timedelta(minutes=counter["n"]),
        )
        db_session.add(acc)
        db_session.commit()
        return acc

    return _make


@pytest.fixture
def make_strategy(db_session, sample_user_id):
    def _make(*, user_id=None, is_system=False, name="Тест", interval_min=7, interval_max=7,
              time_start=time(9, 0), time_end=time(9, 0), skip_weekend=False,
              amount_min="10", amount_max="10", daily_limit=10):
        now = datetime.now(timezone.utc)
        row = StrategyModel(
            user_id=None if is_system else (user_id or sample_user_id),
            is_system=is_system,
            name=name,
            interval_min=interval_min,
            interval_max=interval_max,
            time_start=time_start,
            time_end=time_end,
            skip_weekend=skip_weekend,
            amount_min=Decimal(amount_min),
            amount_max=Decimal(amount_max),
            daily_limit=daily_limit,
            created_at=now,
            updated_at=now,
        )
        db_session.add(row)
        db_session.commit()
        return row

    return _make


@pytest.fixture
def make_task(db_session, sample_user_id):
    """Insert a task row directly (bypassing the generator)."""

    def _make(from_account, to_account, exec_date, *, cycle=1, status="pending", group_name="",
              exec_time=time(10, 0), amount="15.00", completed_at=None, user_id=None):
        task = TransferTaskModel(
            user_id=user_id or sample_user_id,
            group_name=group_name,
            cycle=cycle,
            anchor_date=exec_date,
            exec_date=exec_date,
            exec_time=exec_time,
            from_account_id=from_account.id,
            to_account_id=to_account.id,
            amount=Decimal(amount),
            status=status,
            completed_at=completed_at,
            created_at=datetime.now(timezone.utc),
        )
        db_session.add(task)
        db_session.commit()
        return task

    return _make
