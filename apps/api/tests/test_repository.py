"""Tests for the SQL block and evidence stores."""

import pytest
from sqlalchemy.orm import Session

from ledgis_api.ledger.chain import create_block, create_genesis_block
from ledgis_api.ledger.schema import EvidenceRecord
from ledgis_api.ledger.service import LedgerService
from ledgis_api.storage.repository import SqlBlockStore, SqlEvidenceStore

TIMESTAMP = "2024-05-01T12:00:00.000Z"


def record(evidence_id: str, block_id: str) -> EvidenceRecord:
    return EvidenceRecord(
        id=evidence_id,
        case_id="CASE-1",
        block_id=block_id,
        file_name=f"{evidence_id}.bin",
        file_path=f"/evidence/{evidence_id}",
        file_size=10,
        uploaded_by="node-a",
        created_at=TIMESTAMP,
    )


@pytest.fixture
def stores(db: Session):
    """SQL stores holding genesis and two blocks, all with the same timestamp."""
    blocks = SqlBlockStore(db)
    genesis = create_genesis_block(TIMESTAMP)
    first = create_block(1, genesis.hash, ["evidence-m", "evidence-z"], "node-a", timestamp=TIMESTAMP)
    second = create_block(2, first.hash, ["evidence-a"], "node-a", timestamp=TIMESTAMP)
    for block in (genesis, first, second):
        blocks.append_block(block)
    blocks.commit()
    return blocks, SqlEvidenceStore(db)


def test_list_blocks_in_chain_order(stores):
    """Test that blocks come back by block number."""
    blocks, _ = stores
    assert [block.id for block in blocks.list_blocks()] == ["genesis", "block-1", "block-2"]


def test_tied_timestamps_follow_chain_order(stores):
    """Test that evidence with equal created_at is ordered by block, then id."""
    _, evidence = stores
    for evidence_id, block_id in [("evidence-a", "block-2"), ("evidence-z", "block-1"), ("evidence-m", "block-1")]:
        evidence.add_evidence(record(evidence_id, block_id))
    evidence.commit()

    assert [r.id for r in evidence.list_evidence()] == ["evidence-m", "evidence-z", "evidence-a"]
    assert [r.id for r in evidence.evidence_for_block("block-1")] == ["evidence-m", "evidence-z"]


def test_orphaned_evidence_is_listed_last(db: Session, stores):
    """Test that evidence referencing a missing block is still listed and caught."""
    if db.bind.dialect.name != "sqlite":
        pytest.skip("server databases enforce the block foreign key")

    blocks, evidence = stores
    evidence.add_evidence(record("evidence-0", "block-9"))
    evidence.add_evidence(record("evidence-a", "block-2"))
    evidence.commit()

    assert [r.id for r in evidence.list_evidence()] == ["evidence-a", "evidence-0"]

    is_valid, error = LedgerService(blocks, evidence).verify_chain()
    assert not is_valid
    assert error == "Evidence evidence-0 references missing block block-9"
