"""Prometheus metrics."""

from prometheus_client import Counter

# Ledger metrics
blocks_appended = Counter(
    "ledgis_blocks_appended_total",
    "Total blocks appended to the ledger",
    ["kind"],
)

chain_verifications = Counter(
    "ledgis_chain_verifications_total",
    "Total chain verifications",
    ["result"],
)

# Telemetry metrics
telemetry_derivations = Counter(
    "ledgis_telemetry_derivations_total",
    "Total synthetic telemetry derivations",
    ["view"],
)

# HTTP metrics
http_requests = Counter(
    "ledgis_http_requests_total",
    "Total HTTP requests",
    ["method", "status"],
)
