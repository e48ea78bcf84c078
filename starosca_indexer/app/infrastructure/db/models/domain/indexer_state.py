from __future__ import annotations

from sqlalchemy import PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from starosca_indexer.app.infrastructure.db.db_base import BaseDB

LAST_BLOCK_KEY = "last_block"


class IndexerStateDB(BaseDB):
    """
    Key/value indexer state. Holds the cursor row (key='last_block').
    """

    __tablename__ = "indexer_state"
    __table_args__ = (
        PrimaryKeyConstraint("key"),
    )

    key: Mapped[str] = mapped_column(Text, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
