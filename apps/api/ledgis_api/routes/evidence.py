"""Evidence routes: commit, search, chunk telemetry and download."""

import re
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from pydantic import BaseModel

from ledgis_api.ledger.schema import Block, EvidenceRecord, EvidenceSubmission
from ledgis_api.ledger.service import DEFAULT_DOWNLOAD_NAME, LedgerService
from ledgis_api.routes.deps import get_ledger_service
from ledgis_api.telemetry.schema import RecordTelemetry

router = APIRouter(prefix="/v1", tags=["evidence"])

HEADER_CONTROL_CHARACTERS = re.compile(r"[\x00-\x1f\x7f]")


class EvidenceCommitResponse(BaseModel):
    """Evidence commit response."""

    evidence: EvidenceRecord
    block: Block


def _get_record_or_404(service: LedgerService, evidence_id: str) -> EvidenceRecord:
    record = service.get_evidence(evidence_id)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Evidence {evidence_id} not found",
        )
    return record


@router.post("/evidence", response_model=EvidenceCommitResponse, status_code=status.HTTP_201_CREATED)
async def commit_evidence(
    submission: EvidenceSubmission,
    request: Request,
    service: LedgerService = Depends(get_ledger_service),
):
    """Anchor an evidence record in a new block."""
    block, record = service.commit_evidence(
        submission,
        created_by=request.state.node_id,
        uploader_name=request.state.node_name,
    )
    return EvidenceCommitResponse(evidence=record, block=block)


@router.get("/evidence", response_model=list[EvidenceRecord])
async def search_evidence(
    q: Optional[str] = Query(None, description="Match case id, file name or description"),
    service: LedgerService = Depends(get_ledger_service),
):
    """List evidence, optionally filtered."""
    return service.search_evidence(q)


@router.get("/evidence/{evidence_id}", response_model=EvidenceRecord)
async def get_evidence(
    evidence_id: str,
    service: LedgerService = Depends(get_ledger_service),
):
    """Get an evidence record."""
    return _get_record_or_404(service, evidence_id)


@router.get("/evidence/{evidence_id}/chunks", response_model=RecordTelemetry)
async def get_evidence_chunks(
    evidence_id: str,
    service: LedgerService = Depends(get_ledger_service),
):
    """Get the derived chunk layout and node placement of a record."""
    telemetry = service.record_telemetry(evidence_id)
    if telemetry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Evidence {evidence_id} not found",
        )
    return telemetry


@router.get("/evidence/{evidence_id}/download")
async def download_evidence(
    evidence_id: str,
    service: LedgerService = Depends(get_ledger_service),
):
    """Download a plain-text summary of an evidence record."""
    record = _get_record_or_404(service, evidence_id)
    file_name, payload = service.render_download(record)

    # Header values must be printable ASCII; the exact name travels in filename*.
    ascii_name = HEADER_CONTROL_CHARACTERS.sub("-", file_name)
    ascii_name = ascii_name.encode("ascii", "ignore").decode("ascii") or DEFAULT_DOWNLOAD_NAME
    disposition = f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(file_name)}"
    return Response(
        content=payload,
        media_type="text/plain",
        headers={"Content-Disposition": disposition},
    )
