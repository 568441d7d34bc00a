"""create keepalive tables

Revision ID: c4e1a7d20b31
Revises:
Create Date: 2026-10-18 12:04:37.215904

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'c4e1a7d20b31'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # 1. strategies
    op.create_table(
        'strategies',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('interval_min', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('interval_max', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('time_start', sa.Time(), nullable=False),
        sa.Column('time_end', sa.Time(), nullable=False),
        sa.Column('skip_weekend', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('amount_min', sa.Numeric(precision=20, scale=2), nullable=False),
        sa.Column('amount_max', sa.Numeric(precision=20, scale=2), nullable=False),
        sa.Column('daily_limit', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('is_system', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_strategies_user_id', 'strategies', ['user_id'])

    # 2. accounts (written by the account directory)
    op.create_table(
        'accounts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('group_name', sa.String(length=100), nullable=True),
        sa.Column('amount_min', sa.Numeric(precision=20, scale=2), nullable=True),
        sa.Column('amount_max', sa.Numeric(precision=20, scale=2), nullable=True),
        sa.Column('strategy_id', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_accounts_user_active_group', 'accounts', ['user_id', 'is_active', 'group_name'])

    # 3. transfer_tasks
    op.create_table(
        'transfer_tasks',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('group_name', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('cycle', sa.Integer(), nullable=False),
        sa.Column('anchor_date', sa.Date(), nullable=False),
        sa.Column('exec_date', sa.Date(), nullable=False),
        sa.Column('exec_time', sa.Time(), nullable=False),
        sa.Column('from_account_id', sa.String(length=36), nullable=False),
        sa.Column('to_account_id', sa.String(length=36), nullable=False),
        sa.Column('amount', sa.Numeric(precision=20, scale=2), nullable=False),
        sa.Column('memo', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_transfer_tasks_user_exec_date', 'transfer_tasks', ['user_id', 'exec_date'])
    op.create_index('ix_transfer_tasks_user_group_cycle', 'transfer_tasks', ['user_id', 'group_name', 'cycle'])
    op.create_index('ix_transfer_tasks_from_account_id', 'transfer_tasks', ['from_account_id'])

    # 4. event_log
    op.create_table(
        'event_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(length=128), nullable=False),
        sa.Column('payload_json', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('occurred_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_event_log_user_id', 'event_log', ['user_id'])
    op.create_index('ix_event_log_event_type', 'event_log', ['event_type'])
    op.create_index('ix_event_log_occurred_at', 'event_log', ['occurred_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('event_log')
    op.drop_table('transfer_tasks')
    op.drop_table('accounts')
    op.drop_table('strategies')
