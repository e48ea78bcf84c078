from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Any

from starosca_indexer.app.infrastructure.db.engine import create_app_async_engine
from starosca_indexer.app.infrastructure.db.schema import init_store
from starosca_indexer.app.infrastructure.factories.domain.pool_queries_factory import (
    pool_queries_factory,
)
from starosca_indexer.app.infrastructure.factories.domain.savings_pools_indexer import (
    savings_pools_indexer_factory,
)

logger = logging.getLogger(__name__)


async def watch_savings_pools_task(*, backend: str = "sqlalchemy") -> None:
    """
    Task: run the savings-pools indexer until SIGINT/SIGTERM.

    - opens/migrates the store (tables + cursor seed),
    - polls factory + pool events from the persisted cursor to the chain head,
    - on signal: requests a graceful stop, waits for the in-flight cycle,
      then disposes the engine.
    """
    engine = create_app_async_engine()
    try:
        await init_store(engine)
        indexer = savings_pools_indexer_factory(backend=backend, engine=engine)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            # Not available on Windows event loops; Ctrl-C still raises there.
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, indexer.stop)

        try:
            await indexer.start()
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                with contextlib.suppress(NotImplementedError):
                    loop.remove_signal_handler(sig)
    finally:
        await engine.dispose()


async def index_savings_pools_once_task(*, backend: str = "sqlalchemy") -> None:
    """
    Task: run exactly one poll cycle (cursor -> current head) and exit.
    """
    engine = create_app_async_engine()
    try:
        await init_store(engine)
        indexer = savings_pools_indexer_factory(backend=backend, engine=engine)
        await indexer.verify_chain()
        result = await indexer.run_once()
        if result is None:
            raise RuntimeError("Poll cycle failed; see log for details")
    finally:
        await engine.dispose()


async def init_store_task() -> None:
    """
    Task: create absent tables and seed the cursor at block 0.
    """
    engine = create_app_async_engine()
    try:
        await init_store(engine)
    finally:
        await engine.dispose()


async def indexer_status_task(*, backend: str = "sqlalchemy") -> dict[str, Any]:
    """
    Task: read the persisted cursor and pool count.
    """
    engine = create_app_async_engine()
    try:
        await init_store(engine)
        queries = pool_queries_factory(backend=backend, engine=engine)
        return await queries.indexer_status()
    finally:
        await engine.dispose()
