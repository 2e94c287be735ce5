"""Evidence file models."""

from sqlalchemy import BigInteger, Column, ForeignKey, String, Text

from ledgis_api.db.base import Base


class EvidenceFile(Base):
    """Evidence metadata anchored by a ledger block."""

    __tablename__ = "evidence_files"

    id = Column(String(64), primary_key=True)  # evidence-<hex>
    case_id = Column(String(255), nullable=False, index=True)
    block_id = Column(String(64), ForeignKey("ledger_blocks.id"), nullable=False, index=True)
    file_name = Column(String(512), nullable=False)
    file_path = Column(String(512), nullable=False)
    file_size = Column(BigInteger, default=0, nullable=False)
    file_type = Column(String(255), default="", nullable=False)
    description = Column(Text, default="", nullable=False)
    uploaded_by = Column(String(255), nullable=False, index=True)
    uploader_name = Column(String(255), nullable=True)
    created_at = Column(String(32), nullable=False)
