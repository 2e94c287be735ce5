"""Ledger routes: blocks, statistics and verification."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from ledgis_api.ledger.schema import Block, EvidenceRecord, LedgerStats
from ledgis_api.ledger.service import LedgerService
from ledgis_api.routes.deps import get_ledger_service

router = APIRouter(prefix="/v1", tags=["ledger"])


class BlockDetail(BaseModel):
    """Block with the evidence it anchors."""

    block: Block
    evidence: list[EvidenceRecord]


class VerificationResponse(BaseModel):
    """Chain verification result."""

    is_valid: bool
    error: Optional[str] = None
    total_blocks: int


@router.get("/blocks", response_model=list[Block])
async def list_blocks(service: LedgerService = Depends(get_ledger_service)):
    """List the chain from genesis onward."""
    return service.get_blocks()


@router.get("/blocks/{block_id}", response_model=BlockDetail)
async def get_block(
    block_id: str,
    service: LedgerService = Depends(get_ledger_service),
):
    """Get a block and its evidence."""
    block = service.get_block(block_id)
    if not block:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Block {block_id} not found",
        )
    return BlockDetail(block=block, evidence=service.evidence_for_block(block_id))


@router.get("/ledger/stats", response_model=LedgerStats)
async def ledger_stats(service: LedgerService = Depends(get_ledger_service)):
    """Get ledger statistics."""
    return service.get_stats()


@router.get("/ledger/verify", response_model=VerificationResponse)
async def verify_ledger(service: LedgerService = Depends(get_ledger_service)):
    """Verify chain linkage, block hashes and evidence references."""
    is_valid, error = service.verify_chain()
    return VerificationResponse(
        is_valid=is_valid,
        error=error,
        total_blocks=len(service.get_blocks()),
    )
