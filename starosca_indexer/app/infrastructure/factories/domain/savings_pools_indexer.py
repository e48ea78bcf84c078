from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict

from sqlalchemy.ext.asyncio import AsyncEngine
from web3 import AsyncHTTPProvider, AsyncWeb3

from starosca_indexer.app.application.services.event_indexer import EventIndexer
from starosca_indexer.app.config import Settings, settings
from starosca_indexer.app.infrastructure.adapters.domain.savings_pools_store import (
    SqlAlchemyIndexerStore,
)
from starosca_indexer.app.infrastructure.chain.web3_chain_reader import Web3ChainReader
from starosca_indexer.app.infrastructure.decoders.starosca.event_decoder import (
    AbiStaroscaEventDecoder,
)

SavingsPoolsIndexerFactory = Callable[[AsyncEngine, Settings], EventIndexer]

_SAVINGS_POOLS_INDEXER_REGISTRY: Dict[str, SavingsPoolsIndexerFactory] = {}

# Resolve ABI paths robustly (relative to the package, not current working dir)
_ABI_DIR = (
    Path(__file__).resolve().parents[3]  # .../starosca_indexer/app
    / "registry"
    / "abi"
)
DEFAULT_FACTORY_ABI_PATH = _ABI_DIR / "StaroscaFactory.json"
DEFAULT_POOL_ABI_PATH = _ABI_DIR / "StaroscaPool.json"


def build_event_decoder(
    *,
    factory_abi_path: Path = DEFAULT_FACTORY_ABI_PATH,
    pool_abi_path: Path = DEFAULT_POOL_ABI_PATH,
) -> AbiStaroscaEventDecoder:
    return AbiStaroscaEventDecoder(
        factory_abi_path=factory_abi_path,
        pool_abi_path=pool_abi_path,
    )


def _make_sqlalchemy_indexer(engine: AsyncEngine, cfg: Settings) -> EventIndexer:
    """
    Wire dependencies for SQLAlchemy backend:
    - AsyncWeb3 provider (RPC URL + timeout from settings)
    - ABI-based decoder for factory + pool events
    - SQLAlchemy store adapter (pools/participants/payments/drawings + cursor)
    """
    w3 = AsyncWeb3(
        AsyncHTTPProvider(
            cfg.rpc_url,
            request_kwargs={"timeout": cfg.rpc_timeout_seconds},
        )
    )

    return EventIndexer(
        store=SqlAlchemyIndexerStore(engine),
        chain=Web3ChainReader(w3=w3),
        decoder=build_event_decoder(),
        factory_address=cfg.factory_address,
        polling_interval=cfg.polling_interval_seconds,
        expected_chain_id=cfg.chain_id,
    )


# Register backends
_SAVINGS_POOLS_INDEXER_REGISTRY["sqlalchemy"] = _make_sqlalchemy_indexer


def savings_pools_indexer_factory(
    *,
    backend: str,
    engine: AsyncEngine,
    cfg: Settings | None = None,
) -> EventIndexer:
    """
    Create the savings-pools event indexer for the given backend.

    The factory wires:
    - web3 Async provider for the configured chain,
    - factory/pool event decoder (loads registry ABIs, computes topic0 sets),
    - store adapter (idempotent writes, persisted cursor).
    """
    try:
        factory = _SAVINGS_POOLS_INDEXER_REGISTRY[backend]
    except KeyError:
        raise ValueError(f"Unsupported savings pools indexer backend: {backend!r}")

    return factory(engine, cfg or settings)
