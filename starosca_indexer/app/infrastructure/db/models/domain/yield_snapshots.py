from __future__ import annotations

from sqlalchemy import BigInteger, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from starosca_indexer.app.infrastructure.db.db_base import BaseDB


class YieldSnapshotsDB(BaseDB):
    """
    Yield observations written by the external rebalancing workflow.

    The indexer never writes this table; it is part of the read model only.
    APYs are in basis points.
    """

    __tablename__ = "yield_snapshots"
    __table_args__ = (
        Index("ix_yield_snapshots_timestamp", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    aave_apy: Mapped[int] = mapped_column(Integer, nullable=False)
    compound_apy: Mapped[int] = mapped_column(Integer, nullable=False)
    moonwell_apy: Mapped[int] = mapped_column(Integer, nullable=False)
    active_protocol: Mapped[str] = mapped_column(Text, nullable=False)
    total_deposits: Mapped[str] = mapped_column(Text, nullable=False)
