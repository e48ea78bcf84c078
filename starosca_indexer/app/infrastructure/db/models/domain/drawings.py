from __future__ import annotations

from sqlalchemy import BigInteger, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from starosca_indexer.app.infrastructure.db.db_base import BaseDB


class DrawingsDB(BaseDB):
    """Monthly pot distribution outcome (DrawingCompleted). Append-only."""

    __tablename__ = "drawings"
    __table_args__ = (
        Index("ix_drawings_pool_month", "pool_address", "month"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pool_address: Mapped[str] = mapped_column(Text, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    winner: Mapped[str] = mapped_column(Text, nullable=False)
    pot_amount: Mapped[str] = mapped_column(Text, nullable=False)
    drawn_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    tx_hash: Mapped[str] = mapped_column(Text, nullable=False)
