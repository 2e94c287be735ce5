"""Fold per-node telemetry into network statistics.

Shard counts and data volumes are plain sums, so totals do not depend on
the order reports arrive in. Latency is exponentially smoothed and
availability keeps the latest reported value; both depend on fold order.
That is an accepted approximation for a dashboard figure.
"""

import logging
from typing import Iterable, Optional, Sequence

from ledgis_api.ledger.schema import EvidenceRecord
from ledgis_api.telemetry.generator import derive_record_telemetry
from ledgis_api.telemetry.schema import (
    DEFAULT_AVAILABILITY,
    LocationMetric,
    MapLocation,
    NetworkOverview,
    NetworkTotals,
    NodeAssignment,
    NodeReport,
    NodeStatus,
)

logger = logging.getLogger(__name__)

LATENCY_RETAIN_WEIGHT = 0.65
LATENCY_INCOMING_WEIGHT = 0.35
DEFAULT_LATENCY_ESTIMATE_MS = 60
TOP_LOCATION_LIMIT = 4

_ACTIVE_STATUSES = {"active", "online", "healthy", "green"}
_OFFLINE_STATUSES = {"offline", "down", "red"}


def resolve_node_status(status: Optional[str]) -> NodeStatus:
    """Normalise a free-form status string."""
    if not status:
        return NodeStatus.STANDBY
    normalised = status.strip().lower()
    if normalised in _ACTIVE_STATUSES:
        return NodeStatus.ACTIVE
    if normalised in _OFFLINE_STATUSES:
        return NodeStatus.OFFLINE
    return NodeStatus.STANDBY


def prioritise_status(current: NodeStatus, incoming: NodeStatus) -> NodeStatus:
    """Merge two statuses for the same location: active > standby > offline."""
    if incoming == NodeStatus.ACTIVE:
        return NodeStatus.ACTIVE
    if incoming == NodeStatus.STANDBY and current == NodeStatus.OFFLINE:
        return NodeStatus.STANDBY
    if incoming == NodeStatus.OFFLINE and current != NodeStatus.ACTIVE:
        return NodeStatus.OFFLINE
    return current


def resolve_location(report: NodeReport, locations: Sequence[MapLocation]) -> Optional[MapLocation]:
    """
    Find the location a report belongs to.

    Lookup order is location id, ISO code, then label. A report that
    matches nothing but carries coordinates becomes its own location.
    """
    if report.location_id:
        for location in locations:
            if location.id == report.location_id:
                return location

    if report.iso:
        for location in locations:
            if location.iso.lower() == report.iso.lower():
                return location

    if report.label:
        for location in locations:
            if location.label.lower() == report.label.lower():
                return location

    if report.coordinates:
        estimate = report.latency_ms if report.latency_ms is not None else DEFAULT_LATENCY_ESTIMATE_MS
        return MapLocation(
            id=report.id,
            label=report.label or report.id,
            region=report.region or "Unspecified region",
            iso=report.iso or report.id.upper(),
            x=min(max(report.coordinates.x, 0), 100),
            y=min(max(report.coordinates.y, 0), 100),
            latency_range=(max(estimate - 20, 10), estimate + 20),
        )

    return None


def _empty_metric(location: MapLocation) -> LocationMetric:
    return LocationMetric(
        id=location.id,
        label=location.label,
        region=location.region,
        iso=location.iso,
        x=location.x,
        y=location.y,
        latency_range=location.latency_range,
        latency_ms=location.latency_midpoint,
    )


def fold_report(
    metrics: dict[str, LocationMetric],
    report: NodeReport,
    locations: Sequence[MapLocation],
) -> bool:
    """
    Apply one report to the per-location metrics.

    Returns:
        False if the report could not be mapped to a location
    """
    location = resolve_location(report, locations)
    if location is None:
        return False

    metric = metrics.get(location.id)
    if metric is None:
        metric = _empty_metric(location)
        metrics[location.id] = metric

    if report.label:
        metric.label = report.label
    if report.region:
        metric.region = report.region
    if report.iso:
        metric.iso = report.iso

    metric.shards += report.shards or 0
    metric.data_volume_bytes += report.data_volume_bytes or 0

    if report.availability is not None:
        metric.availability = report.availability
    elif metric.availability <= 0:
        metric.availability = DEFAULT_AVAILABILITY

    if report.latency_ms is not None:
        if metric.latency_ms > 0:
            metric.latency_ms = (
                metric.latency_ms * LATENCY_RETAIN_WEIGHT + report.latency_ms * LATENCY_INCOMING_WEIGHT
            )
        else:
            metric.latency_ms = report.latency_ms

    metric.status = prioritise_status(metric.status, resolve_node_status(report.status))
    return True


def assignment_reports(assignment: NodeAssignment, locations: Sequence[MapLocation]) -> list[NodeReport]:
    """Turn a derived node assignment into active node reports."""
    reports = []
    for share in assignment.shares:
        if share.node_index >= len(locations):
            continue
        location = locations[share.node_index]
        reports.append(
            NodeReport(
                id=f"{location.id}:{assignment.record_key}",
                location_id=location.id,
                shards=share.shards,
                data_volume_bytes=share.data_volume_bytes,
                latency_ms=share.projected_latency_ms,
                status=NodeStatus.ACTIVE.value,
            )
        )
    return reports


def build_location_metrics(
    reports: Iterable[NodeReport],
    locations: Sequence[MapLocation],
) -> tuple[list[LocationMetric], int]:
    """
    Fold reports into per-location metrics.

    Returns:
        (metrics, unmapped report count). With nothing mapped, every
        location is returned at its defaults.
    """
    metrics: dict[str, LocationMetric] = {}
    unmapped = 0
    for report in reports:
        if not fold_report(metrics, report, locations):
            unmapped += 1

    if not metrics:
        defaults = []
        for location in locations:
            metric = _empty_metric(location)
            metric.availability = DEFAULT_AVAILABILITY
            defaults.append(metric)
        return defaults, unmapped

    result = []
    for metric in metrics.values():
        if metric.availability <= 0:
            metric.availability = DEFAULT_AVAILABILITY
        result.append(metric)
    return result, unmapped


def compute_totals(metrics: Sequence[LocationMetric]) -> NetworkTotals:
    """Compute network totals; latency is weighted by shard count."""
    total_shards = sum(metric.shards for metric in metrics)
    total_volume = sum(metric.data_volume_bytes for metric in metrics)

    if total_shards > 0:
        avg_latency = sum(metric.latency_ms * metric.shards for metric in metrics) / total_shards
    elif metrics:
        avg_latency = sum(metric.latency_ms for metric in metrics) / len(metrics)
    else:
        avg_latency = 0.0

    return NetworkTotals(
        total_shards=total_shards,
        total_data_volume_bytes=total_volume,
        avg_latency_ms=avg_latency,
        nodes_online=sum(1 for metric in metrics if metric.status == NodeStatus.ACTIVE),
        nodes_total=len(metrics),
        jurisdictions=len({metric.region for metric in metrics if metric.shards > 0}),
    )


def top_locations(metrics: Sequence[LocationMetric], limit: int = TOP_LOCATION_LIMIT) -> list[LocationMetric]:
    """Locations holding shards, busiest first."""
    holding = [metric for metric in metrics if metric.shards > 0]
    return sorted(holding, key=lambda metric: metric.shards, reverse=True)[:limit]


def _overview(reports: list[NodeReport], locations: Sequence[MapLocation], source: str) -> NetworkOverview:
    metrics, unmapped = build_location_metrics(reports, locations)
    if unmapped:
        logger.warning(f"{unmapped} node report(s) could not be mapped to a location")
    return NetworkOverview(
        source=source,
        metrics=metrics,
        totals=compute_totals(metrics),
        top_locations=top_locations(metrics),
        unmapped=unmapped,
    )


def build_network_overview(
    records: Iterable[EvidenceRecord],
    locations: Sequence[MapLocation],
) -> NetworkOverview:
    """Derive the network overview from evidence records."""
    reports: list[NodeReport] = []
    for record in records:
        telemetry = derive_record_telemetry(record, len(locations))
        reports.extend(assignment_reports(telemetry.assignment, locations))
    return _overview(reports, locations, "ledger")


def summarise_reports(
    reports: Iterable[NodeReport],
    locations: Sequence[MapLocation],
) -> NetworkOverview:
    """Build the network overview from externally reported node telemetry."""
    return _overview(list(reports), locations, "reports")
