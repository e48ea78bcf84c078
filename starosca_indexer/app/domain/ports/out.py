from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol, Sequence

from starosca_indexer.app.domain.events import (
    DrawingCompleted,
    ParticipantJoined,
    PaymentMade,
    PoolCreated,
    PoolStatus,
    RawLog,
    StaroscaEvent,
)


class ChainReader(Protocol):
    """
    Port for reading chain data over RPC.

    Implementations must return logs ordered by
    (block_number, transaction_index, log_index) and must raise on transport
    or decoding failures rather than drop logs.
    """

    async def get_chain_id(self) -> int:
        ...

    async def get_block_number(self) -> int:
        ...

    async def get_logs(
        self,
        *,
        address: str,
        topics: Sequence[bytes],
        from_block: int,
        to_block: int,
    ) -> list[RawLog]:
        """
        Logs emitted by `address` within [from_block, to_block] (inclusive)
        whose topic0 is any of `topics`.
        """
        ...

    async def get_block_timestamp(self, block_number: int) -> int:
        ...


class StaroscaEventDecoder(Protocol):
    """
    Decodes raw logs of the savings-pool contracts into event variants.

    factory_topics / pool_topics are the topic0 sets used to filter
    get_logs calls for the factory and for each pool respectively.
    """

    @property
    def factory_topics(self) -> tuple[bytes, ...]: ...

    @property
    def pool_topics(self) -> tuple[bytes, ...]: ...

    def decode(self, log: RawLog) -> StaroscaEvent:
        """
        Raise EventDecodeError if the log is not one of the known events
        or its payload is malformed.
        """
        ...


class IndexerStoreTransaction(Protocol):
    """
    Unit of work over the durable store.

    Everything written through one transaction commits or rolls back together.
    """

    async def get_last_block(self) -> int: ...

    async def set_last_block(self, block_number: int) -> None: ...

    async def list_pool_addresses(self) -> list[str]: ...

    async def insert_pool(self, *, event: PoolCreated, created_at: int) -> bool:
        """Insert, ignoring an existing address. Returns True if a row was created."""
        ...

    async def insert_participant(self, *, event: ParticipantJoined, joined_at: int) -> bool:
        """Insert, ignoring an existing (pool, participant). Returns True if created."""
        ...

    async def insert_payment(self, *, event: PaymentMade, paid_at: int) -> None: ...

    async def insert_drawing(self, *, event: DrawingCompleted, drawn_at: int) -> None: ...

    async def update_pool_status(self, *, pool_address: str, status: PoolStatus) -> int:
        """Returns the number of pool rows updated (0 when the pool is unknown)."""
        ...


class IndexerStore(Protocol):
    """
    Port for the indexer's durable store (the sole writer's view).
    """

    def begin(self) -> AbstractAsyncContextManager[IndexerStoreTransaction]:
        ...

    async def get_last_block(self) -> int: ...

    async def list_pool_addresses(self) -> list[str]: ...


class PoolQueries(Protocol):
    """
    Read-only contract exposed to query consumers (API, UI).

    Rows are returned as plain dicts ready for JSON serialization.
    """

    async def list_pools(
        self,
        *,
        status: int | None = None,
        creator: str | None = None,
    ) -> list[dict[str, Any]]: ...

    async def get_pool_detail(self, address: str) -> dict[str, Any] | None: ...

    async def list_participants(self, pool_address: str) -> list[dict[str, Any]]: ...

    async def list_payments(
        self,
        pool_address: str,
        *,
        month: int | None = None,
    ) -> list[dict[str, Any]]: ...

    async def list_drawings(self, pool_address: str) -> list[dict[str, Any]]: ...

    async def list_user_pools(self, participant: str) -> list[dict[str, Any]]: ...

    async def list_yield_snapshots(self, *, limit: int = 50) -> list[dict[str, Any]]: ...

    async def latest_yield_snapshot(self) -> dict[str, Any] | None: ...

    async def indexer_status(self) -> dict[str, int]: ...
