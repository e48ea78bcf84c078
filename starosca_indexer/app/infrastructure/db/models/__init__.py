from starosca_indexer.app.infrastructure.db.models.domain.drawings import DrawingsDB
from starosca_indexer.app.infrastructure.db.models.domain.indexer_state import IndexerStateDB
from starosca_indexer.app.infrastructure.db.models.domain.participants import ParticipantsDB
from starosca_indexer.app.infrastructure.db.models.domain.payments import PaymentsDB
from starosca_indexer.app.infrastructure.db.models.domain.pools import PoolsDB
from starosca_indexer.app.infrastructure.db.models.domain.yield_snapshots import YieldSnapshotsDB

__all__ = [
    "DrawingsDB",
    "IndexerStateDB",
    "ParticipantsDB",
    "PaymentsDB",
    "PoolsDB",
    "YieldSnapshotsDB",
]
