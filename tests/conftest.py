from __future__ import annotations

import pytest
import pytest_asyncio

from starosca_indexer.app.infrastructure.adapters.domain.savings_pools_queries import (
    SqlAlchemyPoolQueries,
)
from starosca_indexer.app.infrastructure.adapters.domain.savings_pools_store import (
    SqlAlchemyIndexerStore,
)
from starosca_indexer.app.infrastructure.db.engine import create_app_async_engine
from starosca_indexer.app.infrastructure.db.schema import init_store
from starosca_indexer.app.infrastructure.factories.domain.savings_pools_indexer import (
    build_event_decoder,
)
from tests.helpers import FakeChainReader, LogBuilder


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_app_async_engine(database_url=f"sqlite+aiosqlite:///{tmp_path / 'starosca.db'}")
    await init_store(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def store(engine):
    return SqlAlchemyIndexerStore(engine)


@pytest.fixture
def queries(engine):
    return SqlAlchemyPoolQueries(engine)


@pytest.fixture(scope="session")
def decoder():
    return build_event_decoder()


@pytest.fixture
def chain():
    return FakeChainReader()


@pytest.fixture
def logs():
    return LogBuilder()
