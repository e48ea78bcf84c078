from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from starosca_indexer.app.domain.errors import CursorRegressionError
from starosca_indexer.app.domain.events import (
    DrawingCompleted,
    ParticipantJoined,
    PaymentMade,
    PoolCreated,
    PoolStatus,
)
from starosca_indexer.app.domain.ports.out import IndexerStore, IndexerStoreTransaction
from starosca_indexer.app.infrastructure.db.models.domain.indexer_state import LAST_BLOCK_KEY

# ON CONFLICT ... DO NOTHING / DO UPDATE is understood by both SQLite (>= 3.24)
# and PostgreSQL, so the same statements serve both backends.

_SELECT_CURSOR_SQL = text("SELECT value FROM indexer_state WHERE key = :key")

_UPSERT_CURSOR_SQL = text(
    """
    INSERT INTO indexer_state (key, value)
    VALUES (:key, :value)
    ON CONFLICT (key) DO UPDATE SET value = excluded.value
    """
)

_SELECT_POOL_ADDRESSES_SQL = text(
    "SELECT address FROM pools ORDER BY block_number, address"
)

_INSERT_POOL_SQL = text(
    """
    INSERT INTO pools (
        address,
        creator,
        max_participants,
        monthly_contribution,
        status,
        current_month,
        created_at,
        block_number
    )
    VALUES (
        :address,
        :creator,
        :max_participants,
        :monthly_contribution,
        :status,
        0,
        :created_at,
        :block_number
    )
    ON CONFLICT (address) DO NOTHING
    """
)

_INSERT_PARTICIPANT_SQL = text(
    """
    INSERT INTO participants (pool_address, participant, joined_at, block_number)
    VALUES (:pool_address, :participant, :joined_at, :block_number)
    ON CONFLICT (pool_address, participant) DO NOTHING
    """
)

_INSERT_PAYMENT_SQL = text(
    """
    INSERT INTO payments (
        pool_address,
        participant,
        month,
        amount,
        status,
        paid_at,
        block_number,
        tx_hash
    )
    VALUES (
        :pool_address,
        :participant,
        :month,
        :amount,
        :status,
        :paid_at,
        :block_number,
        :tx_hash
    )
    """
)

_INSERT_DRAWING_SQL = text(
    """
    INSERT INTO drawings (
        pool_address,
        month,
        winner,
        pot_amount,
        drawn_at,
        block_number,
        tx_hash
    )
    VALUES (
        :pool_address,
        :month,
        :winner,
        :pot_amount,
        :drawn_at,
        :block_number,
        :tx_hash
    )
    """
)

_UPDATE_POOL_STATUS_SQL = text(
    "UPDATE pools SET status = :status WHERE address = :address"
)


async def _read_last_block(conn: AsyncConnection) -> int:
    result = await conn.execute(_SELECT_CURSOR_SQL, {"key": LAST_BLOCK_KEY})
    value = result.scalar_one_or_none()
    return int(value) if value is not None else 0


async def _read_pool_addresses(conn: AsyncConnection) -> list[str]:
    result = await conn.execute(_SELECT_POOL_ADDRESSES_SQL)
    return [row[0] for row in result.all()]


class _SqlAlchemyStoreTransaction(IndexerStoreTransaction):
    """All statements run on one connection inside one database transaction."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_last_block(self) -> int:
        return await _read_last_block(self._conn)

    async def set_last_block(self, block_number: int) -> None:
        current = await _read_last_block(self._conn)
        if block_number < current:
            raise CursorRegressionError(current=current, requested=block_number)
        await self._conn.execute(
            _UPSERT_CURSOR_SQL,
            {"key": LAST_BLOCK_KEY, "value": str(block_number)},
        )

    async def list_pool_addresses(self) -> list[str]:
        return await _read_pool_addresses(self._conn)

    async def insert_pool(self, *, event: PoolCreated, created_at: int) -> bool:
        result = await self._conn.execute(
            _INSERT_POOL_SQL,
            {
                "address": event.pool,
                "creator": event.creator,
                "max_participants": event.max_participants,
                "monthly_contribution": str(event.monthly_contribution),
                "status": int(PoolStatus.PENDING),
                "created_at": created_at,
                "block_number": event.context.block_number,
            },
        )
        return getattr(result, "rowcount", 0) == 1

    async def insert_participant(self, *, event: ParticipantJoined, joined_at: int) -> bool:
        result = await self._conn.execute(
            _INSERT_PARTICIPANT_SQL,
            {
                "pool_address": event.context.address,
                "participant": event.participant,
                "joined_at": joined_at,
                "block_number": event.context.block_number,
            },
        )
        return getattr(result, "rowcount", 0) == 1

    async def insert_payment(self, *, event: PaymentMade, paid_at: int) -> None:
        await self._conn.execute(
            _INSERT_PAYMENT_SQL,
            {
                "pool_address": event.context.address,
                "participant": event.participant,
                "month": event.month,
                "amount": str(event.amount),
                "status": event.status,
                "paid_at": paid_at,
                "block_number": event.context.block_number,
                "tx_hash": event.context.transaction_hash,
            },
        )

    async def insert_drawing(self, *, event: DrawingCompleted, drawn_at: int) -> None:
        await self._conn.execute(
            _INSERT_DRAWING_SQL,
            {
                "pool_address": event.context.address,
                "month": event.month,
                "winner": event.winner,
                "pot_amount": str(event.pot_amount),
                "drawn_at": drawn_at,
                "block_number": event.context.block_number,
                "tx_hash": event.context.transaction_hash,
            },
        )

    async def update_pool_status(self, *, pool_address: str, status: PoolStatus) -> int:
        result = await self._conn.execute(
            _UPDATE_POOL_STATUS_SQL,
            {"status": int(status), "address": pool_address},
        )
        return int(getattr(result, "rowcount", 0) or 0)


class SqlAlchemyIndexerStore(IndexerStore):
    """
    SQLAlchemy implementation of IndexerStore.

    Strategy:
    - raw SQL via text(), one AsyncConnection per unit of work,
    - natural-key idempotency with ON CONFLICT DO NOTHING (pools, participants),
    - plain appends for payments/drawings,
    - cursor kept in indexer_state and never moved backwards.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    @asynccontextmanager
    async def begin(self) -> AsyncIterator[IndexerStoreTransaction]:
        async with self._engine.begin() as conn:
            yield _SqlAlchemyStoreTransaction(conn)

    async def get_last_block(self) -> int:
        async with self._engine.connect() as conn:
            return await _read_last_block(conn)

    async def list_pool_addresses(self) -> list[str]:
        async with self._engine.connect() as conn:
            return await _read_pool_addresses(conn)
