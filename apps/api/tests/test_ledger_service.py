"""Tests for the ledger service."""

import threading

import pytest
from sqlalchemy.orm import Session

from ledgis_api.ledger.chain import create_genesis_block, validate_chain
from ledgis_api.ledger.schema import EvidenceRecord, EvidenceSubmission
from ledgis_api.ledger.service import LedgerService, sanitise_file_name
from ledgis_api.models import EvidenceFile, LedgerBlock
from ledgis_api.storage.repository import InMemoryBlockStore, InMemoryEvidenceStore


def submission(case_id: str = "CASE-1", file_name: str = "photo.jpg", **overrides) -> EvidenceSubmission:
    fields = {
        "case_id": case_id,
        "file_name": file_name,
        "file_size": 2048,
        "file_type": "image/jpeg",
        "description": "Scene photograph",
    }
    fields.update(overrides)
    return EvidenceSubmission(**fields)


@pytest.fixture(params=["memory", "sql"])
def service(request) -> LedgerService:
    """Run the test against both store implementations."""
    return request.getfixturevalue(f"{request.param}_service")


def test_genesis_created_once(service: LedgerService):
    """Test that the genesis block is created on first access only."""
    first = service.get_blocks()
    second = service.get_blocks()
    assert len(first) == 1
    assert first == second
    assert first[0].id == "genesis"
    assert first[0].hash == "0" * 64


def test_commit_evidence_appends_block(service: LedgerService):
    """Test that a commit anchors the record in a new linked block."""
    genesis = service.get_blocks()[0]
    block, record = service.commit_evidence(submission(), created_by="node-a", uploader_name="Analyst")

    assert block.block_number == 1
    assert block.previous_hash == genesis.hash
    assert block.created_by == "node-a"
    assert block.evidence_count == 1
    assert record.block_id == block.id
    assert record.id.startswith("evidence-")
    assert record.file_path == f"/evidence/{record.id}"
    assert record.uploaded_by == "node-a"
    assert record.uploader_name == "Analyst"
    assert record.created_at == block.timestamp

    assert service.get_block(block.id) == block
    assert service.get_evidence(record.id) == record
    assert service.evidence_for_block(block.id) == [record]


def test_commits_increment_block_numbers(service: LedgerService):
    """Test that each commit extends the chain by exactly one block."""
    for i in range(5):
        service.commit_evidence(submission(case_id=f"CASE-{i}"), created_by="node-a")

    blocks = service.get_blocks()
    assert [block.block_number for block in blocks] == list(range(6))
    assert validate_chain(blocks)

    stats = service.get_stats()
    assert stats.total_blocks == 6
    assert stats.total_evidence == 5
    assert stats.latest_block == blocks[-1]
    assert stats.is_valid is True


def test_verify_chain_valid(service: LedgerService):
    """Test that an untouched chain verifies."""
    service.commit_evidence(submission(), created_by="node-a")
    service.commit_evidence(submission(case_id="CASE-2"), created_by="node-b")

    is_valid, error = service.verify_chain()
    assert is_valid, f"Chain should be valid: {error}"
    assert error is None


def test_search_evidence(service: LedgerService):
    """Test case-insensitive search across case id, file name and description."""
    service.commit_evidence(submission(case_id="CASE-ALPHA", file_name="bodycam.mp4"), created_by="node-a")
    service.commit_evidence(
        submission(case_id="CASE-BETA", file_name="scan.pdf", description="Witness statement"),
        created_by="node-a",
    )

    assert len(service.search_evidence()) == 2
    assert len(service.search_evidence("   ")) == 2
    assert [r.case_id for r in service.search_evidence("alpha")] == ["CASE-ALPHA"]
    assert [r.file_name for r in service.search_evidence("SCAN")] == ["scan.pdf"]
    assert [r.case_id for r in service.search_evidence("witness")] == ["CASE-BETA"]
    assert service.search_evidence("nothing-matches") == []


def test_record_telemetry(service: LedgerService):
    """Test telemetry derivation for a stored record."""
    _, record = service.commit_evidence(submission(file_size=3_000_000), created_by="node-a")

    telemetry = service.record_telemetry(record.id)
    assert telemetry.evidence_id == record.id
    assert len(telemetry.chunks) == 12
    assert sum(share.shards for share in telemetry.assignment.shares) == 12
    assert service.record_telemetry(record.id) == telemetry
    assert service.record_telemetry("evidence-missing") is None


def test_network_overview(service: LedgerService):
    """Test that the overview covers every committed byte."""
    sizes = [1000, 250_000, 3_000_000]
    for size in sizes:
        service.commit_evidence(submission(file_size=size), created_by="node-a")

    overview = service.network_overview()
    assert overview.source == "ledger"
    assert overview.totals.total_data_volume_bytes == sum(sizes)


def test_timestamp_never_regresses():
    """Test that a block is never timestamped before its predecessor."""
    future = "2999-01-01T00:00:00.000Z"
    service = LedgerService(
        InMemoryBlockStore([create_genesis_block(future)]),
        InMemoryEvidenceStore(),
    )

    block, record = service.commit_evidence(submission(), created_by="node-a")
    assert block.timestamp == future
    assert record.created_at == future


def test_verify_detects_tampered_hash():
    """Test that a block whose contents no longer match its hash fails."""
    blocks = InMemoryBlockStore()
    service = LedgerService(blocks, InMemoryEvidenceStore())
    block, _ = service.commit_evidence(submission(), created_by="node-a")

    blocks._blocks[1] = block.model_copy(update={"created_by": "node-b", "data_hash": "f" * 64})

    is_valid, error = service.verify_chain()
    assert not is_valid
    assert error == "Block block-1 hash does not match its contents"


def test_verify_detects_broken_link():
    """Test that a block pointing at the wrong predecessor fails."""
    blocks = InMemoryBlockStore()
    service = LedgerService(blocks, InMemoryEvidenceStore())
    service.commit_evidence(submission(), created_by="node-a")
    block, _ = service.commit_evidence(submission(), created_by="node-a")

    blocks._blocks[2] = block.model_copy(update={"previous_hash": "0" * 64})

    is_valid, error = service.verify_chain()
    assert not is_valid
    assert error == "Block block-2 does not link to block-1"


def test_verify_detects_missing_block_reference():
    """Test that evidence pointing at an unknown block fails."""
    orphan = EvidenceRecord(
        id="evidence-orphan",
        case_id="CASE-1",
        block_id="block-99",
        file_name="orphan.bin",
        file_path="/evidence/evidence-orphan",
        file_size=1,
        uploaded_by="node-a",
        created_at="2024-05-01T12:00:00.000Z",
    )
    service = LedgerService(InMemoryBlockStore(), InMemoryEvidenceStore([orphan]))

    is_valid, error = service.verify_chain()
    assert not is_valid
    assert error == "Evidence evidence-orphan references missing block block-99"


def test_verify_detects_tampered_row(db: Session, sql_service: LedgerService):
    """Test that editing a stored block row is caught."""
    block, _ = sql_service.commit_evidence(submission(), created_by="node-a")

    row = db.query(LedgerBlock).filter(LedgerBlock.id == block.id).one()
    row.data_hash = "0" * 64
    db.commit()

    is_valid, error = sql_service.verify_chain()
    assert not is_valid
    assert block.id in error


def test_sql_rows_persist(db: Session, sql_service: LedgerService):
    """Test that commits land in the database tables."""
    block, record = sql_service.commit_evidence(submission(), created_by="node-a")

    assert db.query(LedgerBlock).count() == 2
    stored = db.query(EvidenceFile).filter(EvidenceFile.id == record.id).one()
    assert stored.block_id == block.id
    assert stored.file_size == 2048


def test_concurrent_commits_keep_chain_valid():
    """Test that parallel commits never fork the chain."""
    service = LedgerService(InMemoryBlockStore(), InMemoryEvidenceStore())
    errors = []

    def worker(n: int):
        try:
            for i in range(5):
                service.commit_evidence(submission(case_id=f"CASE-{n}-{i}"), created_by=f"node-{n}")
        except Exception as e:  # surfaced by the assertion below
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    blocks = service.get_blocks()
    assert len(blocks) == 41
    assert [block.block_number for block in blocks] == list(range(41))
    assert validate_chain(blocks)
    assert service.verify_chain() == (True, None)


class TestDownload:
    """Test download rendering."""

    def test_render_download(self):
        """Test the download payload layout."""
        record = EvidenceRecord(
            id="evidence-1",
            case_id="CASE-1",
            block_id="block-1",
            file_name="scene:1/2?.jpg",
            file_path="/evidence/evidence-1",
            file_size=1,
            description="Scene photograph",
            uploaded_by="node-a",
            created_at="2024-05-01T12:00:00.000Z",
        )
        file_name, payload = LedgerService.render_download(record)
        assert file_name == "scene-1-2-.jpg"
        assert payload == "Evidence File: scene:1/2?.jpg\nCase ID: CASE-1\nDescription: Scene photograph"

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("report.pdf", "report.pdf"),
            ('  a\\b/c:d*e?f"g<h>i|j  ', "a-b-c-d-e-f-g-h-i-j"),
            ("", "ledger-download.bin"),
            ("   ", "ledger-download.bin"),
            (None, "ledger-download.bin"),
        ],
    )
    def test_sanitise_file_name(self, raw, expected):
        """Test that unsafe characters are replaced and blanks fall back."""
        assert sanitise_file_name(raw) == expected
