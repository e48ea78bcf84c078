from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from web3 import AsyncWeb3

from starosca_indexer.app.domain.events import RawLog
from starosca_indexer.app.domain.ports.out import ChainReader

logger = logging.getLogger(__name__)


class Web3ChainReader(ChainReader):
    """
    ChainReader backed by AsyncWeb3 (eth_blockNumber / eth_getLogs / eth_getBlockByNumber).

    Errors from the provider (HTTP, timeout, JSON-RPC error) propagate unchanged;
    the poll cycle treats them as transport failures and retries the range.
    """

    def __init__(self, *, w3: AsyncWeb3) -> None:
        self._w3 = w3

    async def get_chain_id(self) -> int:
        return int(await self._w3.eth.chain_id)

    async def get_block_number(self) -> int:
        return int(await self._w3.eth.block_number)

    async def get_logs(
        self,
        *,
        address: str,
        topics: Sequence[bytes],
        from_block: int,
        to_block: int,
    ) -> list[RawLog]:
        if from_block > to_block:
            raise ValueError("from_block must be <= to_block")
        if not topics:
            return []

        params: dict[str, Any] = {
            "address": self._w3.to_checksum_address(address),
            "fromBlock": from_block,
            "toBlock": to_block,
            # A nested list in position 0 means "topic0 is any of these".
            "topics": [["0x" + bytes(t).hex() for t in topics]],
        }
        entries = await self._w3.eth.get_logs(params)  # type: ignore[arg-type]

        logs = [self._to_raw_log(entry) for entry in entries]
        logs.sort(key=lambda log: log.sort_key)

        logger.debug(
            "eth_getLogs address=%s blocks=[%s, %s] topics=%s -> %s logs",
            address,
            from_block,
            to_block,
            len(topics),
            len(logs),
        )
        return logs

    async def get_block_timestamp(self, block_number: int) -> int:
        block = await self._w3.eth.get_block(block_number)
        return int(block["timestamp"])

    def _to_raw_log(self, entry: Mapping[str, Any]) -> RawLog:
        return RawLog(
            address=self._w3.to_checksum_address(entry["address"]),
            topics=tuple(self._as_bytes(t) for t in entry["topics"]),
            data=self._as_bytes(entry["data"]),
            block_number=int(entry["blockNumber"]),
            transaction_hash=self._as_bytes(entry["transactionHash"]),
            transaction_index=int(entry["transactionIndex"]),
            log_index=int(entry["logIndex"]),
        )

    @staticmethod
    def _as_bytes(value: Any) -> bytes:
        if isinstance(value, str):
            s = value[2:] if value.startswith("0x") else value
            return bytes.fromhex(s)
        return bytes(value)
