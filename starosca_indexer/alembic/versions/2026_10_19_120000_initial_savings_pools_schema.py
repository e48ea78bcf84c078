"""initial_savings_pools_schema

Revision ID: 2026_10_19_120000
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '2026_10_19_120000'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'pools',
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('creator', sa.Text(), nullable=False),
        sa.Column('max_participants', sa.Integer(), nullable=False),
        sa.Column('monthly_contribution', sa.Text(), nullable=False),
        sa.Column('status', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('current_month', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('address'),
    )
    op.create_index('ix_pools_creator', 'pools', ['creator'])
    op.create_index('ix_pools_status', 'pools', ['status'])

    op.create_table(
        'participants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('pool_address', sa.Text(), nullable=False),
        sa.Column('participant', sa.Text(), nullable=False),
        sa.Column('joined_at', sa.BigInteger(), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pool_address', 'participant', name='uq_participants_pool_participant'),
    )
    op.create_index('ix_participants_participant', 'participants', ['participant'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('pool_address', sa.Text(), nullable=False),
        sa.Column('participant', sa.Text(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Text(), nullable=False),
        sa.Column('status', sa.Integer(), nullable=False),
        sa.Column('paid_at', sa.BigInteger(), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('tx_hash', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payments_pool_month', 'payments', ['pool_address', 'month'])
    op.create_index('ix_payments_participant', 'payments', ['participant'])

    op.create_table(
        'drawings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('pool_address', sa.Text(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('winner', sa.Text(), nullable=False),
        sa.Column('pot_amount', sa.Text(), nullable=False),
        sa.Column('drawn_at', sa.BigInteger(), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('tx_hash', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_drawings_pool_month', 'drawings', ['pool_address', 'month'])

    op.create_table(
        'yield_snapshots',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('aave_apy', sa.Integer(), nullable=False),
        sa.Column('compound_apy', sa.Integer(), nullable=False),
        sa.Column('moonwell_apy', sa.Integer(), nullable=False),
        sa.Column('active_protocol', sa.Text(), nullable=False),
        sa.Column('total_deposits', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_yield_snapshots_timestamp', 'yield_snapshots', ['timestamp'])

    indexer_state = op.create_table(
        'indexer_state',
        sa.Column('key', sa.Text(), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('key'),
    )
    op.bulk_insert(indexer_state, [{'key': 'last_block', 'value': '0'}])


def downgrade() -> None:
    op.drop_table('indexer_state')
    op.drop_index('ix_yield_snapshots_timestamp', table_name='yield_snapshots')
    op.drop_table('yield_snapshots')
    op.drop_index('ix_drawings_pool_month', table_name='drawings')
    op.drop_table('drawings')
    op.drop_index('ix_payments_participant', table_name='payments')
    op.drop_index('ix_payments_pool_month', table_name='payments')
    op.drop_table('payments')
    op.drop_index('ix_participants_participant', table_name='participants')
    op.drop_table('participants')
    op.drop_index('ix_pools_status', table_name='pools')
    op.drop_index('ix_pools_creator', table_name='pools')
    op.drop_table('pools')
