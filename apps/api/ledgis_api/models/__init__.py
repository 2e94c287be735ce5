"""Database models - import all models here for metadata discovery."""

from ledgis_api.models.evidence import EvidenceFile
from ledgis_api.models.ledger import LedgerBlock

__all__ = [
    "LedgerBlock",
    "EvidenceFile",
]
