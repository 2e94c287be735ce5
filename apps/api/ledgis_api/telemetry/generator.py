"""Synthetic telemetry derived from evidence records.

Nothing here talks to a storage network. Chunk layouts and node placement
are pure functions of a record key, so every dashboard shows the same
numbers for the same record across requests and restarts.
"""

import math

from ledgis_api.ledger.schema import EvidenceRecord
from ledgis_api.telemetry.sampler import select_distinct
from ledgis_api.telemetry.schema import (
    ChunkDetail,
    IntegrityState,
    NodeAssignment,
    NodeShare,
    RecordTelemetry,
)
from ledgis_api.telemetry.seed import seeded_hash, seeded_in_range

CHUNK_SIZE_BYTES = 262144
MIN_CHUNKS = 3
MAX_CHUNKS = 12
MIN_AVERAGE_CHUNK_KB = 64
MIN_CHUNK_KB = 32
SIZE_JITTER_KB = 20
MIN_REPLICAS = 2
BASE_LATENCY_MS = 45
LATENCY_SPREAD_MS = 90
REBUILDING_THRESHOLD = 8  # rolls 0..8 of 100 are rebuilding
HASH_FRAGMENT_WIDTH = 8
NODES_PER_RECORD = 3


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def telemetry_key(record: EvidenceRecord) -> str:
    """Build the compound derivation key for an evidence record."""
    parts = [record.id, record.case_id, record.block_id]
    return "-".join(part for part in parts if part)


def chunk_count_for(virtual_size_bytes: float) -> int:
    """Number of synthetic chunks for a file size, clamped to [3, 12]."""
    estimate = math.ceil(max(virtual_size_bytes, 0) / CHUNK_SIZE_BYTES)
    return min(max(estimate, MIN_CHUNKS), MAX_CHUNKS)


def derive_chunk_details(record_key: str, virtual_size_bytes: float) -> list[ChunkDetail]:
    """
    Derive the chunk layout of a record.

    Args:
        record_key: Compound key of the record (see telemetry_key)
        virtual_size_bytes: Size the layout is derived for

    Returns:
        Chunk details ordered by chunk index
    """
    chunk_count = chunk_count_for(virtual_size_bytes)
    average_kb = max(
        MIN_AVERAGE_CHUNK_KB,
        _round_half_up(max(virtual_size_bytes, 0) / chunk_count / 1024),
    )

    chunks = []
    for i in range(chunk_count):
        jitter = seeded_in_range(f"{record_key}-size-{i}", SIZE_JITTER_KB * 2 + 1) - SIZE_JITTER_KB
        integrity_roll = seeded_in_range(f"{record_key}-integrity-{i}", 100)
        fragment = format(seeded_hash(f"{record_key}-{i}"), "x").zfill(HASH_FRAGMENT_WIDTH)

        chunks.append(
            ChunkDetail(
                index=i,
                size_kb=max(MIN_CHUNK_KB, average_kb + jitter),
                replicas=MIN_REPLICAS + seeded_in_range(f"{record_key}-replicas-{i}", 3),
                latency_ms=BASE_LATENCY_MS + seeded_in_range(f"{record_key}-latency-{i}", LATENCY_SPREAD_MS),
                hash_fragment=fragment[:HASH_FRAGMENT_WIDTH],
                integrity_state=(
                    IntegrityState.VERIFIED
                    if integrity_roll > REBUILDING_THRESHOLD
                    else IntegrityState.REBUILDING
                ),
            )
        )

    return chunks


def _split_evenly(total: int, parts: int) -> list[int]:
    """Split an integer into near-equal parts; earlier parts take the remainder."""
    base, remainder = divmod(total, parts)
    return [base + (1 if i < remainder else 0) for i in range(parts)]


def derive_node_distribution(
    record_key: str,
    chunk_estimate: int,
    node_universe_size: int,
    data_volume_bytes: int = 0,
) -> NodeAssignment:
    """
    Place a record's chunks on NODES_PER_RECORD distinct nodes.

    Chunks and bytes are split as integers so that each node's parts sum
    exactly to the record totals. That keeps network totals independent of
    the order in which records are folded.

    Args:
        record_key: Compound key of the record
        chunk_estimate: Number of chunks to place
        node_universe_size: Size of the node universe
        data_volume_bytes: Bytes to place

    Returns:
        NodeAssignment with one share per selected node
    """
    chunk_estimate = max(int(chunk_estimate), 0)
    data_volume_bytes = max(int(data_volume_bytes), 0)
    nodes = select_distinct(f"{record_key}-nodes", NODES_PER_RECORD, node_universe_size)

    shares = []
    if nodes:
        shard_parts = _split_evenly(chunk_estimate, len(nodes))
        volume_parts = _split_evenly(data_volume_bytes, len(nodes))
        for node_index, shards, volume in zip(nodes, shard_parts, volume_parts):
            shares.append(
                NodeShare(
                    node_index=node_index,
                    shards=shards,
                    data_volume_bytes=volume,
                    projected_latency_ms=BASE_LATENCY_MS
                    + seeded_in_range(f"{record_key}-node-{node_index}-latency", LATENCY_SPREAD_MS),
                )
            )

    return NodeAssignment(
        record_key=record_key,
        chunk_count=chunk_estimate,
        data_volume_bytes=data_volume_bytes,
        shares=shares,
    )


def derive_record_telemetry(record: EvidenceRecord, node_universe_size: int) -> RecordTelemetry:
    """Derive chunk and node telemetry for an evidence record."""
    key = telemetry_key(record)
    chunks = derive_chunk_details(key, record.file_size)
    assignment = derive_node_distribution(
        key,
        len(chunks),
        node_universe_size,
        data_volume_bytes=record.file_size,
    )
    return RecordTelemetry(
        evidence_id=record.id,
        record_key=key,
        chunks=chunks,
        assignment=assignment,
    )
