"""Telemetry models for derived shard data and network reporting.

Derived telemetry is recomputed on demand and never persisted. Network
reports carry optional fields; defaults are applied during aggregation:

- shards and data volume default to 0
- availability defaults to DEFAULT_AVAILABILITY
- a missing latency leaves the smoothed latency unchanged
"""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_AVAILABILITY = 99.9


class IntegrityState(str, Enum):
    """Integrity state of a derived chunk."""

    VERIFIED = "verified"
    REBUILDING = "rebuilding"


class NodeStatus(str, Enum):
    """Status of a storage location."""

    ACTIVE = "active"
    STANDBY = "standby"
    OFFLINE = "offline"


class ChunkDetail(BaseModel):
    """One synthetic chunk of an evidence file."""

    model_config = ConfigDict(frozen=True)

    index: int
    size_kb: int
    replicas: int
    latency_ms: int
    hash_fragment: str
    integrity_state: IntegrityState


class NodeShare(BaseModel):
    """A node's share of one record's chunks and data."""

    model_config = ConfigDict(frozen=True)

    node_index: int
    shards: int
    data_volume_bytes: int
    projected_latency_ms: int


class NodeAssignment(BaseModel):
    """Distribution of one record across the node universe."""

    model_config = ConfigDict(frozen=True)

    record_key: str
    chunk_count: int
    data_volume_bytes: int
    shares: list[NodeShare] = Field(default_factory=list)

    @property
    def node_indices(self) -> list[int]:
        """Selected node indices in selection order."""
        return [share.node_index for share in self.shares]


class RecordTelemetry(BaseModel):
    """Chunk and node telemetry derived for one evidence record."""

    evidence_id: str
    record_key: str
    chunks: list[ChunkDetail]
    assignment: NodeAssignment


class MapLocation(BaseModel):
    """A storage location in the node universe."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    region: str
    iso: str
    x: float
    y: float
    latency_range: tuple[float, float]

    @property
    def latency_midpoint(self) -> float:
        """Midpoint of the expected latency range."""
        return (self.latency_range[0] + self.latency_range[1]) / 2


class Coordinates(BaseModel):
    """Map coordinates in percent of the map width/height."""

    x: float
    y: float


class NodeReport(BaseModel):
    """Telemetry reported for a single node."""

    id: str
    label: Optional[str] = None
    region: Optional[str] = None
    iso: Optional[str] = None
    location_id: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    shards: Optional[int] = Field(None, ge=0)
    data_volume_bytes: Optional[int] = Field(None, ge=0)
    availability: Optional[float] = None
    latency_ms: Optional[float] = None
    status: Optional[str] = None


class LocationMetric(BaseModel):
    """Aggregated telemetry for one location."""

    id: str
    label: str
    region: str
    iso: str
    x: float
    y: float
    latency_range: tuple[float, float]
    shards: int = 0
    data_volume_bytes: int = 0
    availability: float = 0.0
    latency_ms: float = 0.0
    status: NodeStatus = NodeStatus.STANDBY


class NetworkTotals(BaseModel):
    """Network-wide statistics."""

    total_shards: int
    total_data_volume_bytes: int
    avg_latency_ms: float
    nodes_online: int
    nodes_total: int
    jurisdictions: int


class NetworkOverview(BaseModel):
    """Everything the network dashboard shows."""

    source: Literal["ledger", "reports"] = "ledger"
    metrics: list[LocationMetric]
    totals: NetworkTotals
    top_locations: list[LocationMetric]
    unmapped: int = 0
