from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class PoolStatus(IntEnum):
    PENDING = 0
    ACTIVE = 1
    COMPLETED = 2
    FINALIZED = 3
    CANCELLED = 4


class PaymentStatus(IntEnum):
    NOT_PAID = 0
    ON_TIME = 1
    LATE = 2
    MISSED = 3


@dataclass(frozen=True)
class RawLog:
    """
    Undecoded EVM log as returned by a ChainReader.

    address is the EIP-55 checksummed emitter; topics and data are raw bytes.
    """

    address: str
    topics: tuple[bytes, ...]
    data: bytes
    block_number: int
    transaction_hash: bytes
    transaction_index: int
    log_index: int

    @property
    def topic0(self) -> bytes | None:
        return self.topics[0] if self.topics else None

    @property
    def sort_key(self) -> tuple[int, int, int]:
        return (self.block_number, self.transaction_index, self.log_index)


@dataclass(frozen=True)
class EventContext:
    """Where an event came from: emitting contract and canonical log position."""

    address: str
    block_number: int
    transaction_hash: str  # 0x-prefixed hex
    transaction_index: int
    log_index: int

    @classmethod
    def from_log(cls, log: RawLog) -> "EventContext":
        return cls(
            address=log.address,
            block_number=log.block_number,
            transaction_hash="0x" + bytes(log.transaction_hash).hex(),
            transaction_index=log.transaction_index,
            log_index=log.log_index,
        )


# -----------------------------------------------------------------------------
# Factory events
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class PoolCreated:
    context: EventContext
    pool: str
    creator: str
    max_participants: int
    monthly_contribution: int


# -----------------------------------------------------------------------------
# Pool events (emitted by each discovered pool contract)
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ParticipantJoined:
    context: EventContext
    participant: str
    collateral: int
    first_contribution: int


@dataclass(frozen=True)
class PaymentMade:
    context: EventContext
    participant: str
    month: int
    amount: int
    # Raw PaymentStatus value; stored as emitted.
    status: int


@dataclass(frozen=True)
class DrawingCompleted:
    context: EventContext
    month: int
    winner: str
    pot_amount: int


@dataclass(frozen=True)
class PoolActivated:
    context: EventContext
    timestamp: int


@dataclass(frozen=True)
class PoolFinalized:
    context: EventContext
    total_yield: int


PoolEvent = ParticipantJoined | PaymentMade | DrawingCompleted | PoolActivated | PoolFinalized
StaroscaEvent = PoolCreated | PoolEvent
