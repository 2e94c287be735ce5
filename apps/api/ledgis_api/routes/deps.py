"""Shared route dependencies."""

from fastapi import Depends
from sqlalchemy.orm import Session

from ledgis_api.db.session import get_db
from ledgis_api.ledger.service import LedgerService
from ledgis_api.storage.repository import SqlBlockStore, SqlEvidenceStore


def get_ledger_service(db: Session = Depends(get_db)) -> LedgerService:
    """Build a ledger service on the request's database session."""
    return LedgerService(SqlBlockStore(db), SqlEvidenceStore(db))
