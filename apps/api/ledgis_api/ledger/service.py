"""Ledger service: single-writer wrapper around the block chain."""

import logging
import re
import threading
import uuid
from typing import Optional

from ledgis_api.ledger.chain import (
    compute_block_hash,
    create_block,
    create_genesis_block,
    first_broken_link,
    get_stats,
    utc_timestamp,
)
from ledgis_api.ledger.schema import Block, EvidenceRecord, EvidenceSubmission, LedgerStats
from ledgis_api.storage.repository import BlockStore, EvidenceStore
from ledgis_api.telemetry.aggregation import build_network_overview
from ledgis_api.telemetry.generator import derive_record_telemetry
from ledgis_api.telemetry.network import NODE_LOCATIONS
from ledgis_api.telemetry.schema import NetworkOverview, RecordTelemetry
from ledgis_api.utils.metrics import blocks_appended, chain_verifications, telemetry_derivations

logger = logging.getLogger(__name__)

INVALID_FILENAME_CHARACTERS = re.compile(r'[\\/:*?"<>|]')
DEFAULT_DOWNLOAD_NAME = "ledger-download.bin"


def sanitise_file_name(raw_name: Optional[str], fallback: str = DEFAULT_DOWNLOAD_NAME) -> str:
    """Replace characters that are unsafe in file names; blank names use the fallback."""
    trimmed = (raw_name or "").strip()
    if not trimmed:
        return fallback
    return INVALID_FILENAME_CHARACTERS.sub("-", trimmed)


class LedgerService:
    """Anchor evidence into the chain and answer ledger queries."""

    # Appends must be serialised or two blocks can claim the same number.
    _append_lock = threading.Lock()

    def __init__(self, block_store: BlockStore, evidence_store: EvidenceStore):
        """Initialize ledger service."""
        self.blocks = block_store
        self.evidence = evidence_store

    def _ensure_genesis(self) -> list[Block]:
        blocks = self.blocks.list_blocks()
        if blocks:
            return blocks
        genesis = create_genesis_block()
        self.blocks.append_block(genesis)
        self.blocks.commit()
        blocks_appended.labels(kind="genesis").inc()
        logger.info(f"Created genesis block at {genesis.timestamp}")
        return [genesis]

    def get_blocks(self) -> list[Block]:
        """Get the chain, creating the genesis block on first access."""
        with self._append_lock:
            return self._ensure_genesis()

    def get_block(self, block_id: str) -> Optional[Block]:
        """Get a block by id."""
        return self.blocks.get_block(block_id)

    def commit_evidence(
        self,
        submission: EvidenceSubmission,
        created_by: str,
        uploader_name: Optional[str] = None,
    ) -> tuple[Block, EvidenceRecord]:
        """
        Anchor a new evidence record in a new block.

        Args:
            submission: Evidence metadata
            created_by: Node committing the evidence
            uploader_name: Display name of the uploader

        Returns:
            (new block, new evidence record)
        """
        evidence_id = f"evidence-{uuid.uuid4().hex}"

        with self._append_lock:
            latest = self._ensure_genesis()[-1]

            # Clock skew must not move the chain backwards in time.
            timestamp = max(utc_timestamp(), latest.timestamp)
            block = create_block(
                latest.block_number + 1,
                latest.hash,
                [evidence_id],
                created_by,
                timestamp=timestamp,
            )
            record = EvidenceRecord(
                id=evidence_id,
                case_id=submission.case_id,
                block_id=block.id,
                file_name=submission.file_name,
                file_path=f"/evidence/{evidence_id}",
                file_size=submission.file_size,
                file_type=submission.file_type,
                description=submission.description,
                uploaded_by=created_by,
                uploader_name=uploader_name,
                created_at=timestamp,
            )

            self.blocks.append_block(block)
            self.evidence.add_evidence(record)
            self.blocks.commit()
            self.evidence.commit()

        blocks_appended.labels(kind="evidence").inc()
        logger.info(f"Anchored {evidence_id} for case {submission.case_id} in {block.id}")
        return block, record

    def get_stats(self) -> LedgerStats:
        """Get ledger statistics."""
        return get_stats(self.get_blocks(), self.evidence.list_evidence())

    def verify_chain(self) -> tuple[bool, Optional[str]]:
        """
        Verify the stored chain.

        Checks block linkage, recomputes every non-genesis block hash, and
        checks that each evidence record references an existing block.

        Returns:
            (is_valid, error message of the first failure)
        """
        blocks = self.get_blocks()
        error = self._find_chain_error(blocks)

        chain_verifications.labels(result="valid" if error is None else "invalid").inc()
        if error:
            logger.warning(f"Ledger verification failed: {error}")
            return False, error
        return True, None

    def _find_chain_error(self, blocks: list[Block]) -> Optional[str]:
        if not blocks:
            return "Chain is empty"

        broken = first_broken_link(blocks)
        if broken is not None:
            return f"Block {blocks[broken].id} does not link to {blocks[broken - 1].id}"

        for block in blocks[1:]:
            if compute_block_hash(block) != block.hash:
                return f"Block {block.id} hash does not match its contents"

        block_ids = {block.id for block in blocks}
        for record in self.evidence.list_evidence():
            if record.block_id not in block_ids:
                return f"Evidence {record.id} references missing block {record.block_id}"

        return None

    def get_evidence(self, evidence_id: str) -> Optional[EvidenceRecord]:
        """Get an evidence record by id."""
        return self.evidence.get_evidence(evidence_id)

    def evidence_for_block(self, block_id: str) -> list[EvidenceRecord]:
        """Get the evidence anchored by a block."""
        return self.evidence.evidence_for_block(block_id)

    def search_evidence(self, query: Optional[str] = None) -> list[EvidenceRecord]:
        """Case-insensitive search over case id, file name and description."""
        records = self.evidence.list_evidence()
        needle = (query or "").strip().lower()
        if not needle:
            return records
        return [
            record
            for record in records
            if any(needle in field.lower() for field in (record.case_id, record.file_name, record.description))
        ]

    def record_telemetry(self, evidence_id: str) -> Optional[RecordTelemetry]:
        """Derive chunk and node telemetry for an evidence record."""
        record = self.evidence.get_evidence(evidence_id)
        if record is None:
            return None
        telemetry_derivations.labels(view="record").inc()
        return derive_record_telemetry(record, len(NODE_LOCATIONS))

    def network_overview(self) -> NetworkOverview:
        """Derive the network overview from all evidence."""
        telemetry_derivations.labels(view="network").inc()
        return build_network_overview(self.evidence.list_evidence(), NODE_LOCATIONS)

    @staticmethod
    def render_download(record: EvidenceRecord) -> tuple[str, str]:
        """Build the download file name and text payload for a record."""
        payload = (
            f"Evidence File: {record.file_name}\n"
            f"Case ID: {record.case_id}\n"
            f"Description: {record.description}"
        )
        return sanitise_file_name(record.file_name), payload
