from __future__ import annotations

import itertools
from typing import Any, Sequence

from eth_abi import encode as abi_encode
from eth_utils import keccak, to_checksum_address

from starosca_indexer.app.domain.events import RawLog

BASE_TIMESTAMP = 1_700_000_000

_SIGNATURES = {
    "PoolCreated": "PoolCreated(address,address,uint8,uint256)",
    "ParticipantJoined": "ParticipantJoined(address,uint256,uint256)",
    "PaymentMade": "PaymentMade(address,uint8,uint256,uint8)",
    "DrawingCompleted": "DrawingCompleted(uint8,address,uint256)",
    "PoolActivated": "PoolActivated(uint256)",
    "PoolFinalized": "PoolFinalized(uint256)",
}


def addr(byte_hex: str) -> str:
    """addr("aa") -> checksummed 0xaaaa...aa"""
    return to_checksum_address("0x" + byte_hex * 20)


FACTORY = addr("fa")


def topic0(event_name: str) -> bytes:
    return keccak(text=_SIGNATURES[event_name])


def address_topic(address: str) -> bytes:
    return bytes(12) + bytes.fromhex(address[2:])


def block_timestamp(block_number: int) -> int:
    return BASE_TIMESTAMP + block_number * 2


class LogBuilder:
    """Builds ABI-encoded RawLogs the way a node would return them."""

    def __init__(self) -> None:
        self._log_index = itertools.count()

    def _log(
        self,
        *,
        address: str,
        event_name: str,
        indexed: Sequence[bytes],
        types: list[str],
        values: list[Any],
        block: int,
        tx_index: int,
    ) -> RawLog:
        return RawLog(
            address=address,
            topics=(topic0(event_name), *indexed),
            data=abi_encode(types, values),
            block_number=block,
            transaction_hash=keccak(text=f"tx-{block}-{tx_index}"),
            transaction_index=tx_index,
            log_index=next(self._log_index),
        )

    def pool_created(
        self,
        *,
        block: int,
        pool: str,
        creator: str,
        max_participants: int = 5,
        monthly_contribution: int = 100_000000,
        factory: str = FACTORY,
        tx_index: int = 0,
    ) -> RawLog:
        return self._log(
            address=factory,
            event_name="PoolCreated",
            indexed=[address_topic(pool), address_topic(creator)],
            types=["uint8", "uint256"],
            values=[max_participants, monthly_contribution],
            block=block,
            tx_index=tx_index,
        )

    def participant_joined(
        self,
        *,
        block: int,
        pool: str,
        participant: str,
        collateral: int = 200_000000,
        first_contribution: int = 100_000000,
        tx_index: int = 0,
    ) -> RawLog:
        return self._log(
            address=pool,
            event_name="ParticipantJoined",
            indexed=[address_topic(participant)],
            types=["uint256", "uint256"],
            values=[collateral, first_contribution],
            block=block,
            tx_index=tx_index,
        )

    def payment_made(
        self,
        *,
        block: int,
        pool: str,
        participant: str,
        month: int,
        amount: int = 100_000000,
        status: int = 1,
        tx_index: int = 0,
    ) -> RawLog:
        return self._log(
            address=pool,
            event_name="PaymentMade",
            indexed=[address_topic(participant)],
            types=["uint8", "uint256", "uint8"],
            values=[month, amount, status],
            block=block,
            tx_index=tx_index,
        )

    def drawing_completed(
        self,
        *,
        block: int,
        pool: str,
        month: int,
        winner: str,
        pot_amount: int = 500_000000,
        tx_index: int = 0,
    ) -> RawLog:
        return self._log(
            address=pool,
            event_name="DrawingCompleted",
            indexed=[address_topic(winner)],
            types=["uint8", "uint256"],
            values=[month, pot_amount],
            block=block,
            tx_index=tx_index,
        )

    def pool_activated(self, *, block: int, pool: str, tx_index: int = 0) -> RawLog:
        return self._log(
            address=pool,
            event_name="PoolActivated",
            indexed=[],
            types=["uint256"],
            values=[block_timestamp(block)],
            block=block,
            tx_index=tx_index,
        )

    def pool_finalized(self, *, block: int, pool: str, total_yield: int = 12_345, tx_index: int = 0) -> RawLog:
        return self._log(
            address=pool,
            event_name="PoolFinalized",
            indexed=[],
            types=["uint256"],
            values=[total_yield],
            block=block,
            tx_index=tx_index,
        )


class FakeChainReader:
    """
    In-memory ChainReader: a scripted head plus a list of logs.

    fail_block_number: number of upcoming get_block_number calls that raise.
    fail_logs_for: lowercase addresses whose get_logs calls raise.
    """

    def __init__(self, *, head: int = 0, chain_id: int = 84532) -> None:
        self.head = head
        self.chain_id = chain_id
        self.logs: list[RawLog] = []
        self.get_logs_calls: list[tuple[str, int, int]] = []
        self.fail_block_number = 0
        self.fail_logs_for: set[str] = set()

    def add(self, *logs: RawLog) -> None:
        self.logs.extend(logs)

    async def get_chain_id(self) -> int:
        return self.chain_id

    async def get_block_number(self) -> int:
        if self.fail_block_number:
            self.fail_block_number -= 1
            raise ConnectionError("RPC unreachable")
        return self.head

    async def get_logs(
        self,
        *,
        address: str,
        topics: Sequence[bytes],
        from_block: int,
        to_block: int,
    ) -> list[RawLog]:
        self.get_logs_calls.append((address, from_block, to_block))
        if address.lower() in self.fail_logs_for:
            raise ConnectionError(f"eth_getLogs failed for {address}")

        wanted = {bytes(t) for t in topics}
        matching = [
            log
            for log in self.logs
            if log.address.lower() == address.lower()
            and from_block <= log.block_number <= to_block
            and log.topic0 in wanted
        ]
        return sorted(matching, key=lambda log: log.sort_key)

    async def get_block_timestamp(self, block_number: int) -> int:
        return block_timestamp(block_number)
