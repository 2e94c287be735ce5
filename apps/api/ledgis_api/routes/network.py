"""Network routes: replication map and node telemetry reports."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ledgis_api.ledger.service import LedgerService
from ledgis_api.routes.deps import get_ledger_service
from ledgis_api.telemetry.aggregation import summarise_reports
from ledgis_api.telemetry.network import NODE_LOCATIONS
from ledgis_api.telemetry.schema import MapLocation, NetworkOverview, NodeReport

router = APIRouter(prefix="/v1/network", tags=["network"])


class NodeReportBatch(BaseModel):
    """Batch of node telemetry reports."""

    nodes: list[NodeReport] = Field(default_factory=list)


@router.get("/locations", response_model=list[MapLocation])
async def list_locations():
    """List the node universe in index order."""
    return list(NODE_LOCATIONS)


@router.get("/overview", response_model=NetworkOverview)
async def network_overview(service: LedgerService = Depends(get_ledger_service)):
    """Network statistics derived from all committed evidence."""
    return service.network_overview()


@router.post("/reports", response_model=NetworkOverview)
async def summarise_node_reports(batch: NodeReportBatch):
    """Aggregate externally reported node telemetry."""
    return summarise_reports(batch.nodes, NODE_LOCATIONS)
