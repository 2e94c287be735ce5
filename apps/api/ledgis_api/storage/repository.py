"""Block and evidence repositories.

The ledger core never touches storage. LedgerService talks to these
interfaces; the SQL implementation backs the API and CLI, the in-memory
one backs tests and embedded use.
"""

import logging
from typing import Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledgis_api.ledger.schema import Block, EvidenceRecord
from ledgis_api.models import EvidenceFile, LedgerBlock

logger = logging.getLogger(__name__)


class BlockStore(Protocol):
    """Ordered, append-only block storage."""

    def list_blocks(self) -> list[Block]: ...

    def get_block(self, block_id: str) -> Optional[Block]: ...

    def append_block(self, block: Block) -> None: ...

    def commit(self) -> None: ...


class EvidenceStore(Protocol):
    """Evidence record storage."""

    def list_evidence(self) -> list[EvidenceRecord]: ...

    def get_evidence(self, evidence_id: str) -> Optional[EvidenceRecord]: ...

    def evidence_for_block(self, block_id: str) -> list[EvidenceRecord]: ...

    def add_evidence(self, record: EvidenceRecord) -> None: ...

    def commit(self) -> None: ...


class SqlBlockStore:
    """Block store backed by the ledger_blocks table."""

    def __init__(self, db: Session):
        """Initialize block store."""
        self.db = db

    def list_blocks(self) -> list[Block]:
        rows = self.db.query(LedgerBlock).order_by(LedgerBlock.block_number.asc()).all()
        return [Block.model_validate(row) for row in rows]

    def get_block(self, block_id: str) -> Optional[Block]:
        row = self.db.query(LedgerBlock).filter(LedgerBlock.id == block_id).first()
        return Block.model_validate(row) if row else None

    def append_block(self, block: Block) -> None:
        self.db.add(LedgerBlock(**block.model_dump()))
        self.db.flush()

    def commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to commit ledger blocks: {e}")
            self.db.rollback()
            raise


class SqlEvidenceStore:
    """Evidence store backed by the evidence_files table."""

    def __init__(self, db: Session):
        """Initialize evidence store."""
        self.db = db

    def list_evidence(self) -> list[EvidenceRecord]:
        # created_at can tie; chain position is the total order. Orphans sort last.
        rows = (
            self.db.query(EvidenceFile)
            .outerjoin(LedgerBlock, EvidenceFile.block_id == LedgerBlock.id)
            .order_by(
                LedgerBlock.block_number.is_(None),
                LedgerBlock.block_number.asc(),
                EvidenceFile.id.asc(),
            )
            .all()
        )
        return [EvidenceRecord.model_validate(row) for row in rows]

    def get_evidence(self, evidence_id: str) -> Optional[EvidenceRecord]:
        row = self.db.query(EvidenceFile).filter(EvidenceFile.id == evidence_id).first()
        return EvidenceRecord.model_validate(row) if row else None

    def evidence_for_block(self, block_id: str) -> list[EvidenceRecord]:
        rows = (
            self.db.query(EvidenceFile)
            .filter(EvidenceFile.block_id == block_id)
            .order_by(EvidenceFile.created_at.asc(), EvidenceFile.id.asc())
            .all()
        )
        return [EvidenceRecord.model_validate(row) for row in rows]

    def add_evidence(self, record: EvidenceRecord) -> None:
        self.db.add(EvidenceFile(**record.model_dump()))
        self.db.flush()

    def commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to commit evidence: {e}")
            self.db.rollback()
            raise


class InMemoryBlockStore:
    """Block store kept in a Python list."""

    def __init__(self, blocks: Optional[list[Block]] = None):
        self._blocks: list[Block] = list(blocks or [])

    def list_blocks(self) -> list[Block]:
        return list(self._blocks)

    def get_block(self, block_id: str) -> Optional[Block]:
        return next((block for block in self._blocks if block.id == block_id), None)

    def append_block(self, block: Block) -> None:
        self._blocks.append(block)

    def commit(self) -> None:
        pass


class InMemoryEvidenceStore:
    """Evidence store kept in a Python list."""

    def __init__(self, records: Optional[list[EvidenceRecord]] = None):
        self._records: list[EvidenceRecord] = list(records or [])

    def list_evidence(self) -> list[EvidenceRecord]:
        return list(self._records)

    def get_evidence(self, evidence_id: str) -> Optional[EvidenceRecord]:
        return next((record for record in self._records if record.id == evidence_id), None)

    def evidence_for_block(self, block_id: str) -> list[EvidenceRecord]:
        return [record for record in self._records if record.block_id == block_id]

    def add_evidence(self, record: EvidenceRecord) -> None:
        self._records.append(record)

    def commit(self) -> None:
        pass
