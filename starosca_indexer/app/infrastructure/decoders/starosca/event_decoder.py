from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from starosca_indexer.app.domain.errors import EventDecodeError
from starosca_indexer.app.domain.events import (
    DrawingCompleted,
    EventContext,
    ParticipantJoined,
    PaymentMade,
    PoolActivated,
    PoolCreated,
    PoolFinalized,
    RawLog,
    StaroscaEvent,
)
from starosca_indexer.app.domain.ports.out import StaroscaEventDecoder
from starosca_indexer.app.infrastructure.decoders.abi_event_decoder import AbiEventDecoder

FACTORY_EVENT_NAMES: tuple[str, ...] = ("PoolCreated",)
POOL_EVENT_NAMES: tuple[str, ...] = (
    "ParticipantJoined",
    "PaymentMade",
    "DrawingCompleted",
    "PoolActivated",
    "PoolFinalized",
)

_Builder = Callable[[EventContext, dict[str, Any]], StaroscaEvent]

_BUILDERS: dict[str, _Builder] = {
    "PoolCreated": lambda ctx, a: PoolCreated(
        context=ctx,
        pool=a["pool"],
        creator=a["creator"],
        max_participants=a["maxParticipants"],
        monthly_contribution=a["monthlyContribution"],
    ),
    "ParticipantJoined": lambda ctx, a: ParticipantJoined(
        context=ctx,
        participant=a["participant"],
        collateral=a["collateral"],
        first_contribution=a["firstContribution"],
    ),
    "PaymentMade": lambda ctx, a: PaymentMade(
        context=ctx,
        participant=a["participant"],
        month=a["month"],
        amount=a["amount"],
        status=a["status"],
    ),
    "DrawingCompleted": lambda ctx, a: DrawingCompleted(
        context=ctx,
        month=a["month"],
        winner=a["winner"],
        pot_amount=a["potAmount"],
    ),
    "PoolActivated": lambda ctx, a: PoolActivated(context=ctx, timestamp=a["timestamp"]),
    "PoolFinalized": lambda ctx, a: PoolFinalized(context=ctx, total_yield=a["totalYield"]),
}


class AbiStaroscaEventDecoder(StaroscaEventDecoder):
    """
    Decoder for the Starosca factory + pool contracts.

    Wraps two AbiEventDecoder instances (factory ABI, pool ABI) and turns the
    generic (event_name, args) output into typed event variants. Factory and
    pool topic sets are disjoint, so a log is routed purely by its topic0.
    """

    def __init__(self, *, factory_abi_path: Path, pool_abi_path: Path) -> None:
        self._factory = AbiEventDecoder(abi_path=factory_abi_path, event_names=FACTORY_EVENT_NAMES)
        self._pool = AbiEventDecoder(abi_path=pool_abi_path, event_names=POOL_EVENT_NAMES)

    @property
    def factory_topics(self) -> tuple[bytes, ...]:
        return self._factory.topics

    @property
    def pool_topics(self) -> tuple[bytes, ...]:
        return self._pool.topics

    def decode(self, log: RawLog) -> StaroscaEvent:
        if self._factory.handles(log.topic0):
            decoder = self._factory
        elif self._pool.handles(log.topic0):
            decoder = self._pool
        else:
            topic0 = log.topic0.hex() if log.topic0 is not None else None
            raise EventDecodeError(
                f"Unexpected log from {log.address} at block {log.block_number} "
                f"(log_index={log.log_index}, topic0={topic0})"
            )

        event_name, args = decoder.decode(topics=log.topics, data=log.data)
        try:
            return _BUILDERS[event_name](EventContext.from_log(log), args)
        except KeyError as exc:
            raise EventDecodeError(f"{event_name}: missing decoded field {exc}") from exc
