from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from starosca_indexer.app.application.services.block_bounds import BlockRange, next_scan_range
from starosca_indexer.app.domain.errors import EventDecodeError
from starosca_indexer.app.domain.events import (
    DrawingCompleted,
    ParticipantJoined,
    PaymentMade,
    PoolActivated,
    PoolCreated,
    PoolEvent,
    PoolFinalized,
    PoolStatus,
    RawLog,
)
from starosca_indexer.app.domain.ports.out import (
    ChainReader,
    IndexerStore,
    IndexerStoreTransaction,
    StaroscaEventDecoder,
)

logger = logging.getLogger(__name__)

_POOL_EVENT_TYPES = (ParticipantJoined, PaymentMade, DrawingCompleted, PoolActivated, PoolFinalized)


@dataclass(frozen=True)
class PollCycleResult:
    last_block: int
    head: int
    block_range: BlockRange | None = None
    pools_created: int = 0
    watched_pools: int = 0
    pool_events_applied: int = 0

    @property
    def skipped(self) -> bool:
        return self.block_range is None


class _BlockTimestamps:
    """Per-cycle cache of block timestamps (one RPC per distinct block)."""

    def __init__(self, chain: ChainReader) -> None:
        self._chain = chain
        self._cache: dict[int, int] = {}

    async def resolve(self, block_numbers: Iterable[int]) -> None:
        for block_number in sorted(set(block_numbers)):
            if block_number not in self._cache:
                self._cache[block_number] = await self._chain.get_block_timestamp(block_number)

    def __getitem__(self, block_number: int) -> int:
        return self._cache[block_number]


async def index_savings_pools_for_block_range(
    *,
    store: IndexerStore,
    chain: ChainReader,
    decoder: StaroscaEventDecoder,
    factory_address: str,
) -> PollCycleResult:
    """
    One poll cycle: advance the cursor from its persisted value to the chain head.

    Order of work:
      1. cursor + head; stop here (no writes) when the head has not moved,
      2. factory PoolCreated logs -> pools (insert-or-ignore), committed,
      3. watch-set re-read from the store, so pools found in step 2 are scanned
         in this same cycle,
      4. per-pool logs fetched and decoded one pool at a time,
      5. pool events applied and the cursor advanced in a single transaction.

    Any exception propagates to the caller with the cursor unchanged; the
    range is then retried as a whole and idempotent writes absorb the replay.
    """
    last_block = await store.get_last_block()
    head = await chain.get_block_number()

    block_range = next_scan_range(last_block=last_block, head=head)
    if block_range is None:
        logger.debug("Chain head %s <= cursor %s; nothing to index", head, last_block)
        return PollCycleResult(last_block=last_block, head=head)

    timestamps = _BlockTimestamps(chain)

    # -------------------------------------------------------------------------
    # Factory events
    # -------------------------------------------------------------------------
    factory_logs = await chain.get_logs(
        address=factory_address,
        topics=decoder.factory_topics,
        from_block=block_range.from_block,
        to_block=block_range.to_block,
    )
    created = [_decode_pool_created(decoder, log) for log in factory_logs]

    pools_created = 0
    if created:
        await timestamps.resolve(e.context.block_number for e in created)
        async with store.begin() as tx:
            for event in created:
                inserted = await tx.insert_pool(
                    event=event,
                    created_at=timestamps[event.context.block_number],
                )
                if inserted:
                    pools_created += 1
                    logger.info(
                        "Pool discovered: pool=%s creator=%s max_participants=%s block=%s",
                        event.pool,
                        event.creator,
                        event.max_participants,
                        event.context.block_number,
                    )

    # -------------------------------------------------------------------------
    # Pool events over the full watch-set
    # -------------------------------------------------------------------------
    watched = await store.list_pool_addresses()

    pool_events: list[PoolEvent] = []
    for pool_address in watched:
        logs = await chain.get_logs(
            address=pool_address,
            topics=decoder.pool_topics,
            from_block=block_range.from_block,
            to_block=block_range.to_block,
        )
        logger.debug(
            "Fetched %s pool logs: pool=%s blocks=[%s, %s]",
            len(logs),
            pool_address,
            block_range.from_block,
            block_range.to_block,
        )
        pool_events.extend(_decode_pool_event(decoder, log) for log in logs)

    await timestamps.resolve(e.context.block_number for e in pool_events)

    async with store.begin() as tx:
        for event in pool_events:
            await _apply_pool_event(tx, event, timestamps[event.context.block_number])
        # Cursor last: a failure above rolls this transaction back untouched.
        await tx.set_last_block(block_range.to_block)

    result = PollCycleResult(
        last_block=last_block,
        head=head,
        block_range=block_range,
        pools_created=pools_created,
        watched_pools=len(watched),
        pool_events_applied=len(pool_events),
    )
    logger.info(
        "Indexed blocks [%s, %s]: factory_events=%s pools_created=%s watched_pools=%s pool_events=%s",
        block_range.from_block,
        block_range.to_block,
        len(factory_logs),
        pools_created,
        len(watched),
        len(pool_events),
    )
    return result


def _decode_pool_created(decoder: StaroscaEventDecoder, log: RawLog) -> PoolCreated:
    event = decoder.decode(log)
    if not isinstance(event, PoolCreated):
        raise EventDecodeError(
            f"Expected PoolCreated from factory {log.address}, got {type(event).__name__}"
        )
    return event


def _decode_pool_event(decoder: StaroscaEventDecoder, log: RawLog) -> PoolEvent:
    event = decoder.decode(log)
    if not isinstance(event, _POOL_EVENT_TYPES):
        raise EventDecodeError(
            f"Expected a pool event from {log.address}, got {type(event).__name__}"
        )
    return event


async def _apply_pool_event(tx: IndexerStoreTransaction, event: PoolEvent, block_timestamp: int) -> None:
    pool_address = event.context.address

    if isinstance(event, ParticipantJoined):
        inserted = await tx.insert_participant(event=event, joined_at=block_timestamp)
        if inserted:
            logger.info("Participant joined: pool=%s participant=%s", pool_address, event.participant)
    elif isinstance(event, PaymentMade):
        await tx.insert_payment(event=event, paid_at=block_timestamp)
    elif isinstance(event, DrawingCompleted):
        await tx.insert_drawing(event=event, drawn_at=block_timestamp)
        logger.info(
            "Drawing completed: pool=%s month=%s winner=%s pot=%s",
            pool_address,
            event.month,
            event.winner,
            event.pot_amount,
        )
    elif isinstance(event, PoolActivated):
        await tx.update_pool_status(pool_address=pool_address, status=PoolStatus.ACTIVE)
    elif isinstance(event, PoolFinalized):
        await tx.update_pool_status(pool_address=pool_address, status=PoolStatus.FINALIZED)
    else:
        raise TypeError(f"Unhandled pool event: {event!r}")
