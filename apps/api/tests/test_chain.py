"""Tests for the hash-linked block chain."""

import re
from datetime import datetime, timezone

import pytest

from ledgis_api.ledger.chain import (
    GENESIS_HASH,
    block_id_for,
    compute_block_hash,
    create_block,
    create_genesis_block,
    get_stats,
    ledger_hash,
    utc_timestamp,
    validate_chain,
)
from ledgis_api.ledger.schema import EvidenceRecord

HEX_64 = re.compile(r"^[0-9a-f]{64}$")
TIMESTAMP = "2024-05-01T12:00:00.000Z"


def build_chain(length: int):
    """Build a valid chain of `length` blocks including genesis."""
    chain = [create_genesis_block(TIMESTAMP)]
    for n in range(1, length):
        previous = chain[-1]
        chain.append(
            create_block(previous.block_number + 1, previous.hash, [f"evidence-{n}"], "node-a", timestamp=TIMESTAMP)
        )
    return chain


class TestLedgerHash:
    """Test the ledger hash function."""

    def test_known_values(self):
        """Test the hash on hand-computed inputs."""
        assert ledger_hash("") == "0" * 64
        assert ledger_hash("a") == "61".zfill(64)

    @pytest.mark.parametrize("data", ["", "a", "0" * 200, "evidence-1" + TIMESTAMP, "ünïcødé" * 40])
    def test_fixed_width_hex(self, data):
        """Test that output is always 64 lowercase hex characters."""
        value = ledger_hash(data)
        assert HEX_64.match(value)
        assert int(value, 16) <= 2**31

    def test_deterministic(self):
        """Test that the same data always hashes the same."""
        assert ledger_hash("evidence-1,evidence-2") == ledger_hash("evidence-1,evidence-2")


class TestCreateBlock:
    """Test block creation."""

    def test_genesis_block(self):
        """Test the genesis block shape."""
        genesis = create_genesis_block(TIMESTAMP)
        assert genesis.id == "genesis"
        assert genesis.block_number == 0
        assert genesis.previous_hash == "0" * 64
        assert genesis.hash == GENESIS_HASH
        assert genesis.evidence_count == 0

    def test_block_fields(self):
        """Test that hashes follow the documented formulas."""
        genesis = create_genesis_block(TIMESTAMP)
        block = create_block(1, genesis.hash, ["evidence-1"], "node-a", timestamp=TIMESTAMP)

        assert block.id == "block-1"
        assert block.block_number == 1
        assert block.previous_hash == genesis.hash
        assert block.data_hash == ledger_hash("evidence-1" + TIMESTAMP)
        assert block.hash == ledger_hash(f"1{genesis.hash}{block.data_hash}{TIMESTAMP}")
        assert block.hash == compute_block_hash(block)
        assert block.created_by == "node-a"
        assert block.evidence_count == 1

    def test_multiple_evidence_ids_are_comma_joined(self):
        """Test the data hash over several evidence ids."""
        block = create_block(4, GENESIS_HASH, ["e-1", "e-2", "e-3"], None, timestamp=TIMESTAMP)
        assert block.data_hash == ledger_hash("e-1,e-2,e-3" + TIMESTAMP)
        assert block.evidence_count == 3

    def test_does_not_mutate_inputs(self):
        """Test that the evidence id list is left untouched."""
        evidence_ids = ["evidence-1", "evidence-2"]
        create_block(1, GENESIS_HASH, evidence_ids, "node-a")
        assert evidence_ids == ["evidence-1", "evidence-2"]

    def test_default_timestamp_format(self):
        """Test that generated timestamps are ISO-8601 UTC with milliseconds."""
        block = create_block(1, GENESIS_HASH, [], "node-a")
        assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$", block.timestamp)

    def test_utc_timestamp(self):
        """Test timestamp formatting of a fixed moment."""
        moment = datetime(2024, 5, 1, 12, 0, 0, 250000, tzinfo=timezone.utc)
        assert utc_timestamp(moment) == "2024-05-01T12:00:00.250Z"

    def test_block_ids(self):
        """Test that block ids derive from block numbers."""
        assert block_id_for(0) == "genesis"
        assert block_id_for(12) == "block-12"


class TestValidateChain:
    """Test chain validation."""

    def test_empty_chain_is_invalid(self):
        """Test that an empty chain is never valid."""
        assert validate_chain([]) is False

    def test_genesis_only_chain_is_valid(self):
        """Test that a genesis-only chain is valid."""
        assert validate_chain([create_genesis_block()]) is True

    @pytest.mark.parametrize("length", [2, 3, 10])
    def test_built_chain_is_valid(self, length):
        """Test that chains built link by link are valid."""
        assert validate_chain(build_chain(length)) is True

    def test_tampered_previous_hash_is_invalid(self):
        """Test that a changed previous hash breaks the chain."""
        chain = build_chain(3)
        chain[2] = chain[2].model_copy(update={"previous_hash": "f" * 64})
        assert validate_chain(chain) is False

    def test_skipped_block_number_is_invalid(self):
        """Test that a gap in block numbers breaks the chain."""
        chain = build_chain(3)
        chain[2] = chain[2].model_copy(update={"block_number": 5})
        assert validate_chain(chain) is False

    def test_forked_chain_is_invalid(self):
        """Test that two blocks claiming the same predecessor are rejected."""
        genesis = create_genesis_block(TIMESTAMP)
        first = create_block(1, genesis.hash, ["evidence-a"], "node-a", timestamp=TIMESTAMP)
        second = create_block(1, genesis.hash, ["evidence-b"], "node-b", timestamp=TIMESTAMP)
        assert validate_chain([genesis, first, second]) is False


class TestGetStats:
    """Test chain statistics."""

    def test_scenario_genesis_plus_one_block(self):
        """Test stats after anchoring one evidence record."""
        genesis = create_genesis_block()
        block = create_block(genesis.block_number + 1, genesis.hash, ["evidence-1"], "node-a")
        record = EvidenceRecord(
            id="evidence-1",
            case_id="CASE-1",
            block_id=block.id,
            file_name="photo.jpg",
            file_path="/evidence/evidence-1",
            file_size=2048,
            uploaded_by="node-a",
            created_at=block.timestamp,
        )

        stats = get_stats([genesis, block], [record])
        assert block.block_number == 1
        assert block.previous_hash == genesis.hash
        assert stats.total_blocks == 2
        assert stats.total_evidence == 1
        assert stats.latest_block == block
        assert stats.is_valid is True

    def test_empty_chain_stats(self):
        """Test stats for an empty chain."""
        stats = get_stats([], [])
        assert stats.total_blocks == 0
        assert stats.latest_block is None
        assert stats.is_valid is False
