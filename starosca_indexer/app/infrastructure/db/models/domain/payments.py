from __future__ import annotations

from sqlalchemy import BigInteger, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from starosca_indexer.app.infrastructure.db.db_base import BaseDB


class PaymentsDB(BaseDB):
    """
    Monthly contribution log (PaymentMade).

    Append-only: no natural key, one row per observed event.
    """

    __tablename__ = "payments"
    __table_args__ = (
        Index("ix_payments_pool_month", "pool_address", "month"),
        Index("ix_payments_participant", "participant"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pool_address: Mapped[str] = mapped_column(Text, nullable=False)
    participant: Mapped[str] = mapped_column(Text, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[str] = mapped_column(Text, nullable=False)
    # PaymentStatus: 0 NotPaid, 1 OnTime, 2 Late, 3 Missed
    status: Mapped[int] = mapped_column(Integer, nullable=False)
    paid_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    tx_hash: Mapped[str] = mapped_column(Text, nullable=False)
