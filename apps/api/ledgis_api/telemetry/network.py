"""Fixed node universe of the custody mesh.

Index i of a NodeAssignment refers to NODE_LOCATIONS[i]; the order of this
tuple is part of the derivation contract and must not change.
"""

from ledgis_api.telemetry.schema import MapLocation

NODE_LOCATIONS: tuple[MapLocation, ...] = (
    MapLocation(id="nyc", label="US-East Authority", region="North America", iso="USA", x=33, y=38, latency_range=(28, 42)),
    MapLocation(id="mtl", label="Canadian Custody Mesh", region="North America", iso="CAN", x=30, y=27, latency_range=(34, 48)),
    MapLocation(id="lon", label="UK Sovereign Vault", region="Europe", iso="GBR", x=52, y=32, latency_range=(22, 36)),
    MapLocation(id="fra", label="EU Evidence Exchange", region="Europe", iso="DEU", x=55, y=34, latency_range=(24, 38)),
    MapLocation(id="sgp", label="APAC Custody Hub", region="Asia Pacific", iso="SGP", x=78, y=58, latency_range=(62, 84)),
    MapLocation(id="tyo", label="Tokyo Archive Node", region="Asia Pacific", iso="JPN", x=86, y=38, latency_range=(70, 92)),
    MapLocation(id="syd", label="Oceania Ledger Vault", region="Oceania", iso="AUS", x=88, y=76, latency_range=(88, 110)),
    MapLocation(id="gru", label="LATAM Custody Relay", region="South America", iso="BRA", x=36, y=70, latency_range=(56, 78)),
)

NODE_UNIVERSE_SIZE = len(NODE_LOCATIONS)
