"""
SQLAlchemy ORM models

strategies      - generation policies (system + per-user)
accounts        - owned by the external account directory, read-only here
transfer_tasks  - generated keep-alive transfers
event_log       - append-only lifecycle events for the notification dispatcher
"""
import uuid
from decimal import Decimal
from datetime import date as date_type, time as time_type, datetime
from sqlalchemy import String, Integer, Text, TIMESTAMP, Date, Time, func, Boolean, Numeric, Index, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from keepalive.infrastructure.db.session import Base


def new_id() -> str:
    return str(uuid.uuid4())


class StrategyModel(Base):
    """Keep-alive policy: интервалы, окно времени, суммы, дневной лимит"""
    __tablename__ = "strategies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)  # NULL for system strategies

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    interval_min: Mapped[int] = mapped_column(Integer, nullable=False, server_default="30")
    interval_max: Mapped[int] = mapped_column(Integer, nullable=False, server_default="60")
    time_start: Mapped[time_type] = mapped_column(Time, nullable=False)
    time_end: Mapped[time_type] = mapped_column(Time, nullable=False)
    skip_weekend: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")

    amount_min: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=2), nullable=False)
    amount_max: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=2), nullable=False)

    daily_limit: Mapped[int] = mapped_column(Integer, nullable=False, server_default="3")

    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class AccountModel(Base):
    """
    Bank-like account (managed by the account directory, not by this engine)
    """
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    group_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Per-account override of the strategy amount range
    amount_min: Mapped[Decimal | None] = mapped_column(Numeric(precision=20, scale=2), nullable=True)
    amount_max: Mapped[Decimal | None] = mapped_column(Numeric(precision=20, scale=2), nullable=True)
    strategy_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_accounts_user_active_group", "user_id", "is_active", "group_name"),
    )


class TransferTaskModel(Base):
    """Scheduled keep-alive transfer between two accounts of one user"""
    __tablename__ = "transfer_tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    group_name: Mapped[str] = mapped_column(String(100), nullable=False, server_default="")  # "" = все счета

    cycle: Mapped[int] = mapped_column(Integer, nullable=False)
    anchor_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    exec_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    exec_time: Mapped[time_type] = mapped_column(Time, nullable=False)

    from_account_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    to_account_id: Mapped[str] = mapped_column(String(36), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=2), nullable=False)

    memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="pending")  # pending/completed/skipped
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_transfer_tasks_user_exec_date", "user_id", "exec_date"),
        Index("ix_transfer_tasks_user_group_cycle", "user_id", "group_name", "cycle"),
    )


class EventLog(Base):
    """
    Append-only log of task lifecycle events

    Пишется в той же транзакции, что и само изменение. Читается внешним
    диспетчером уведомлений; движок сам его не читает.
    """
    __tablename__ = "event_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    event_type: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    payload_json: Mapped[dict] = mapped_column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)

    occurred_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
