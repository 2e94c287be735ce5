"""Append-only hash-linked block chain.

The ledger hash is the 31-polynomial string hash used by the LEDGIS
browser client: signed 32-bit wraparound, absolute value, hex, zero-padded
to 64 characters. It is NOT a cryptographic hash. Anyone can forge a block
that matches a given hash, and there are no signatures or consensus. The
chain detects accidental breakage and unserialised writers; it does not
resist an adversary.
"""

from datetime import datetime, timezone
from typing import Optional, Sequence

from ledgis_api.ledger.schema import Block, EvidenceRecord, LedgerStats
from ledgis_api.telemetry.seed import seeded_hash

HASH_WIDTH = 64
GENESIS_HASH = "0" * HASH_WIDTH
GENESIS_ID = "genesis"
GENESIS_DATA_HASH = "genesis"


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a moment as an ISO-8601 UTC string with millisecond precision."""
    moment = moment or datetime.now(timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def ledger_hash(data: str) -> str:
    """Hash a string to a fixed-width 64-character hex digest."""
    value = seeded_hash(data)
    if value >= 2**31:
        value -= 2**32
    return format(abs(value), "x").zfill(HASH_WIDTH)[:HASH_WIDTH]


def block_id_for(block_number: int) -> str:
    """Stable block identifier for a block number."""
    return GENESIS_ID if block_number == 0 else f"block-{block_number}"


def create_genesis_block(timestamp: Optional[str] = None) -> Block:
    """Create the genesis block."""
    return Block(
        id=GENESIS_ID,
        block_number=0,
        hash=GENESIS_HASH,
        previous_hash=GENESIS_HASH,
        data_hash=GENESIS_DATA_HASH,
        timestamp=timestamp or utc_timestamp(),
        evidence_count=0,
    )


def compute_block_hash(block: Block) -> str:
    """Recompute a block's hash from its own fields."""
    return ledger_hash(f"{block.block_number}{block.previous_hash}{block.data_hash}{block.timestamp}")


def create_block(
    block_number: int,
    previous_hash: str,
    evidence_ids: Sequence[str],
    created_by: Optional[str],
    timestamp: Optional[str] = None,
) -> Block:
    """
    Create a block anchoring evidence ids.

    Args:
        block_number: Position in the chain (previous block number + 1)
        previous_hash: Hash of the preceding block
        evidence_ids: Evidence ids anchored by this block
        created_by: Node that commits the block
        timestamp: Creation time; defaults to now

    Returns:
        Fully populated block
    """
    timestamp = timestamp or utc_timestamp()
    data_hash = ledger_hash(",".join(evidence_ids) + timestamp)
    block_hash = ledger_hash(f"{block_number}{previous_hash}{data_hash}{timestamp}")

    return Block(
        id=block_id_for(block_number),
        block_number=block_number,
        hash=block_hash,
        previous_hash=previous_hash,
        data_hash=data_hash,
        timestamp=timestamp,
        created_by=created_by,
        evidence_count=len(evidence_ids),
    )


def first_broken_link(blocks: Sequence[Block]) -> Optional[int]:
    """Index of the first block that does not link to its predecessor."""
    for i in range(1, len(blocks)):
        current = blocks[i]
        previous = blocks[i - 1]
        if current.previous_hash != previous.hash:
            return i
        if current.block_number != previous.block_number + 1:
            return i
    return None


def validate_chain(blocks: Sequence[Block]) -> bool:
    """Check that every block links to its predecessor; an empty chain is invalid."""
    if not blocks:
        return False
    return first_broken_link(blocks) is None


def get_stats(blocks: Sequence[Block], evidence: Sequence[EvidenceRecord]) -> LedgerStats:
    """Summarise a chain and its evidence."""
    return LedgerStats(
        total_blocks=len(blocks),
        total_evidence=len(evidence),
        latest_block=blocks[-1] if blocks else None,
        is_valid=validate_chain(blocks),
    )
