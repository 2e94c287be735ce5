"""Ledger block models."""

from sqlalchemy import Column, Integer, String

from ledgis_api.db.base import Base


class LedgerBlock(Base):
    """Append-only ledger block. Rows are never updated or deleted."""

    __tablename__ = "ledger_blocks"

    id = Column(String(64), primary_key=True)  # genesis, block-<n>
    block_number = Column(Integer, nullable=False, unique=True, index=True)
    hash = Column(String(64), nullable=False, index=True)
    previous_hash = Column(String(64), nullable=False)
    data_hash = Column(String(64), nullable=False)
    timestamp = Column(String(32), nullable=False)  # ISO-8601, hashed verbatim
    created_by = Column(String(255), nullable=True)
    evidence_count = Column(Integer, default=0, nullable=False)
