from __future__ import annotations

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from starosca_indexer.app.domain.ports.out import PoolQueries
from starosca_indexer.app.infrastructure.db.models.domain.indexer_state import LAST_BLOCK_KEY

_DEFAULT_SNAPSHOT_LIMIT = 50
_MAX_SNAPSHOT_LIMIT = 200

_SELECT_POOL_SQL = text("SELECT * FROM pools WHERE LOWER(address) = LOWER(:address)")

_SELECT_PARTICIPANTS_SQL = text(
    """
    SELECT * FROM participants
    WHERE LOWER(pool_address) = LOWER(:address)
    ORDER BY block_number, id
    """
)

_SELECT_DRAWINGS_SQL = text(
    """
    SELECT * FROM drawings
    WHERE LOWER(pool_address) = LOWER(:address)
    ORDER BY month, id
    """
)

_SELECT_USER_POOLS_SQL = text(
    """
    SELECT p.* FROM pools p
    INNER JOIN participants pt ON LOWER(p.address) = LOWER(pt.pool_address)
    WHERE LOWER(pt.participant) = LOWER(:participant)
    ORDER BY p.created_at DESC, p.address
    """
)

_SELECT_SNAPSHOTS_SQL = text(
    "SELECT * FROM yield_snapshots ORDER BY timestamp DESC, id DESC LIMIT :limit"
)

_SELECT_CURSOR_SQL = text("SELECT value FROM indexer_state WHERE key = :key")

_COUNT_POOLS_SQL = text("SELECT COUNT(*) FROM pools")


def _rows(result: Any) -> list[dict[str, Any]]:
    return [dict(r) for r in result.mappings().all()]


class SqlAlchemyPoolQueries(PoolQueries):
    """
    Read-only projection queries over the indexed store.

    Never writes. Address filters are case-insensitive so callers may pass
    lowercase or checksummed addresses. "Not found" is None / empty list,
    never an exception.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def list_pools(
        self,
        *,
        status: int | None = None,
        creator: str | None = None,
    ) -> list[dict[str, Any]]:
        sql = "SELECT * FROM pools"
        conditions: list[str] = []
        params: dict[str, Any] = {}

        if status is not None:
            conditions.append("status = :status")
            params["status"] = int(status)
        if creator:
            conditions.append("LOWER(creator) = LOWER(:creator)")
            params["creator"] = creator

        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY created_at DESC, address"

        async with self._engine.connect() as conn:
            result = await conn.execute(text(sql), params)
            return _rows(result)

    async def get_pool_detail(self, address: str) -> dict[str, Any] | None:
        async with self._engine.connect() as conn:
            result = await conn.execute(_SELECT_POOL_SQL, {"address": address})
            pool = result.mappings().one_or_none()
            if pool is None:
                return None

            participants = _rows(await conn.execute(_SELECT_PARTICIPANTS_SQL, {"address": address}))
            payments = await self._select_payments(conn, address, month=None)
            drawings = _rows(await conn.execute(_SELECT_DRAWINGS_SQL, {"address": address}))

        return {
            "pool": dict(pool),
            "participants": participants,
            "payments": payments,
            "drawings": drawings,
        }

    async def list_participants(self, pool_address: str) -> list[dict[str, Any]]:
        async with self._engine.connect() as conn:
            return _rows(await conn.execute(_SELECT_PARTICIPANTS_SQL, {"address": pool_address}))

    async def list_payments(
        self,
        pool_address: str,
        *,
        month: int | None = None,
    ) -> list[dict[str, Any]]:
        async with self._engine.connect() as conn:
            return await self._select_payments(conn, pool_address, month=month)

    async def list_drawings(self, pool_address: str) -> list[dict[str, Any]]:
        async with self._engine.connect() as conn:
            return _rows(await conn.execute(_SELECT_DRAWINGS_SQL, {"address": pool_address}))

    async def list_user_pools(self, participant: str) -> list[dict[str, Any]]:
        async with self._engine.connect() as conn:
            return _rows(await conn.execute(_SELECT_USER_POOLS_SQL, {"participant": participant}))

    async def list_yield_snapshots(self, *, limit: int = _DEFAULT_SNAPSHOT_LIMIT) -> list[dict[str, Any]]:
        # Zero or negative means "no explicit limit".
        n = int(limit) if limit and int(limit) > 0 else _DEFAULT_SNAPSHOT_LIMIT
        n = min(n, _MAX_SNAPSHOT_LIMIT)
        async with self._engine.connect() as conn:
            return _rows(await conn.execute(_SELECT_SNAPSHOTS_SQL, {"limit": n}))

    async def latest_yield_snapshot(self) -> dict[str, Any] | None:
        snapshots = await self.list_yield_snapshots(limit=1)
        return snapshots[0] if snapshots else None

    async def indexer_status(self) -> dict[str, int]:
        async with self._engine.connect() as conn:
            cursor = (await conn.execute(_SELECT_CURSOR_SQL, {"key": LAST_BLOCK_KEY})).scalar_one_or_none()
            pool_count = (await conn.execute(_COUNT_POOLS_SQL)).scalar_one()

        return {
            "last_block": int(cursor) if cursor is not None else 0,
            "pool_count": int(pool_count),
        }

    @staticmethod
    async def _select_payments(
        conn: AsyncConnection,
        pool_address: str,
        *,
        month: int | None,
    ) -> list[dict[str, Any]]:
        sql = "SELECT * FROM payments WHERE LOWER(pool_address) = LOWER(:address)"
        params: dict[str, Any] = {"address": pool_address}
        if month is not None:
            sql += " AND month = :month"
            params["month"] = int(month)
        sql += " ORDER BY month, paid_at, id"

        return _rows(await conn.execute(text(sql), params))
