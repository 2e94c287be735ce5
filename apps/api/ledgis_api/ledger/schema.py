"""Ledger and evidence models shared by the chain, stores and routes."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Block(BaseModel):
    """One immutable entry of the append-only ledger."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    block_number: int = Field(..., ge=0)
    hash: str
    previous_hash: str
    data_hash: str
    timestamp: str
    created_by: Optional[str] = None
    evidence_count: int = Field(0, ge=0)


class EvidenceRecord(BaseModel):
    """An uploaded evidence file anchored by a block."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    case_id: str
    block_id: str
    file_name: str
    file_path: str
    file_size: int = Field(..., ge=0)
    file_type: str = ""
    description: str = ""
    uploaded_by: str
    uploader_name: Optional[str] = None
    created_at: str


class EvidenceSubmission(BaseModel):
    """Evidence metadata supplied at upload time."""

    case_id: str = Field(..., min_length=1, description="Case the evidence belongs to")
    file_name: str = Field(..., min_length=1, description="Original file name")
    file_size: int = Field(..., ge=0, description="File size in bytes")
    file_type: str = Field(default="", description="MIME type")
    description: str = Field(..., min_length=1, description="What the evidence shows")


class LedgerStats(BaseModel):
    """Ledger summary."""

    total_blocks: int
    total_evidence: int
    latest_block: Optional[Block] = None
    is_valid: bool
