from __future__ import annotations

import asyncio
import logging
from enum import Enum

from starosca_indexer.app.application.services.domain.index_savings_pools_for_block_range import (
    PollCycleResult,
    index_savings_pools_for_block_range,
)
from starosca_indexer.app.domain.errors import ChainIdMismatchError
from starosca_indexer.app.domain.ports.out import ChainReader, IndexerStore, StaroscaEventDecoder

logger = logging.getLogger(__name__)

_DEFAULT_POLLING_INTERVAL_SECONDS = 10.0


class IndexerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class EventIndexer:
    """
    Long-running polling loop around the savings-pools poll cycle.

    - start(): runs cycles until stop() is requested; a second call while
      running returns immediately instead of starting another loop.
    - stop(): non-blocking request, observed between cycles. It also cuts the
      idle delay short; an in-flight cycle always runs to completion.
    - run_once(): one cycle with the loop's error policy (log, keep cursor).
    - verify_chain(): compares the endpoint chain id with the configured one;
      start() calls it before the first cycle and a mismatch is fatal.
    """

    def __init__(
        self,
        *,
        store: IndexerStore,
        chain: ChainReader,
        decoder: StaroscaEventDecoder,
        factory_address: str,
        polling_interval: float = _DEFAULT_POLLING_INTERVAL_SECONDS,
        expected_chain_id: int | None = None,
    ) -> None:
        if polling_interval <= 0:
            raise ValueError("polling_interval must be positive")
        self._store = store
        self._chain = chain
        self._decoder = decoder
        self._factory_address = factory_address
        self._polling_interval = polling_interval
        self._expected_chain_id = expected_chain_id
        self._chain_verified = expected_chain_id is None

        self._state = IndexerState.STOPPED
        self._stop_requested = asyncio.Event()
        self._cycles = 0
        self._failed_cycles = 0

    @property
    def state(self) -> IndexerState:
        return self._state

    @property
    def cycles(self) -> int:
        return self._cycles

    @property
    def failed_cycles(self) -> int:
        return self._failed_cycles

    async def start(self) -> None:
        if self._state is IndexerState.RUNNING:
            logger.warning("Event indexer already running; start() ignored")
            return

        self._state = IndexerState.RUNNING
        self._stop_requested.clear()
        logger.info(
            "Starting event indexer: factory=%s polling_interval=%ss",
            self._factory_address,
            self._polling_interval,
        )

        try:
            await self.verify_chain()
            while not self._stop_requested.is_set():
                await self.run_once()
                await self._idle()
        finally:
            self._state = IndexerState.STOPPED
            logger.info(
                "Event indexer stopped after %s cycles (%s failed)",
                self._cycles,
                self._failed_cycles,
            )

    async def verify_chain(self) -> None:
        if self._chain_verified:
            return
        actual = await self._chain.get_chain_id()
        if actual != self._expected_chain_id:
            raise ChainIdMismatchError(expected=self._expected_chain_id, actual=actual)
        self._chain_verified = True
        logger.info("Connected to chain_id=%s", actual)

    def stop(self) -> None:
        if self._state is not IndexerState.RUNNING:
            return
        logger.info("Stopping event indexer...")
        self._stop_requested.set()

    async def run_once(self) -> PollCycleResult | None:
        """
        Run one poll cycle. Returns None if the cycle failed.

        Failures (RPC, decode, store) are logged and swallowed here, at the
        cycle boundary; the cursor has not moved so the range is retried.
        """
        self._cycles += 1
        try:
            return await index_savings_pools_for_block_range(
                store=self._store,
                chain=self._chain,
                decoder=self._decoder,
                factory_address=self._factory_address,
            )
        except Exception:
            self._failed_cycles += 1
            logger.exception("Poll cycle failed; cursor not advanced, range will be retried")
            return None

    async def _idle(self) -> None:
        try:
            await asyncio.wait_for(self._stop_requested.wait(), timeout=self._polling_interval)
        except asyncio.TimeoutError:
            pass
