from __future__ import annotations

from typing import Callable, Dict

from sqlalchemy.ext.asyncio import AsyncEngine

from starosca_indexer.app.domain.ports.out import PoolQueries
from starosca_indexer.app.infrastructure.adapters.domain.savings_pools_queries import (
    SqlAlchemyPoolQueries,
)

PoolQueriesFactory = Callable[[AsyncEngine], PoolQueries]

_POOL_QUERIES_REGISTRY: Dict[str, PoolQueriesFactory] = {
    "sqlalchemy": lambda engine: SqlAlchemyPoolQueries(engine),
}


def pool_queries_factory(
    *,
    backend: str,
    engine: AsyncEngine,
) -> PoolQueries:
    try:
        factory = _POOL_QUERIES_REGISTRY[backend]
    except KeyError:
        raise ValueError(f"Unsupported pool queries backend: {backend!r}")
    return factory(engine)
