from __future__ import annotations

from sqlalchemy import BigInteger, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from starosca_indexer.app.infrastructure.db.db_base import BaseDB


class ParticipantsDB(BaseDB):
    """
    Pool membership.

    Idempotency:
      - UNIQUE(pool_address, participant): a replayed ParticipantJoined is ignored.
    """

    __tablename__ = "participants"
    __table_args__ = (
        UniqueConstraint("pool_address", "participant", name="uq_participants_pool_participant"),
        Index("ix_participants_participant", "participant"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pool_address: Mapped[str] = mapped_column(Text, nullable=False)
    participant: Mapped[str] = mapped_column(Text, nullable=False)
    joined_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
