from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Index,
    Integer,
    PrimaryKeyConstraint,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from starosca_indexer.app.infrastructure.db.db_base import BaseDB


class PoolsDB(BaseDB):
    """
    Pool registry.

    One row = one savings-pool contract deployed by the factory (from PoolCreated).
    Only `status` is ever updated in place (PoolActivated / PoolFinalized).
    """

    __tablename__ = "pools"
    __table_args__ = (
        PrimaryKeyConstraint("address"),
        Index("ix_pools_creator", "creator"),
        Index("ix_pools_status", "status"),
    )

    # Identity (EIP-55 checksummed)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    creator: Mapped[str] = mapped_column(Text, nullable=False)

    # Pool config
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False)
    # uint256 in smallest currency unit, kept as decimal string
    monthly_contribution: Mapped[str] = mapped_column(Text, nullable=False)

    # Lifecycle (PoolStatus)
    status: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    current_month: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    # Creation metadata: unix seconds of the emitting block
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
