"""Pytest configuration and fixtures."""

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ledgis_api.db.base import Base
from ledgis_api.db.session import get_db
from ledgis_api.ledger.service import LedgerService
from ledgis_api.main import app
from ledgis_api.storage.repository import (
    InMemoryBlockStore,
    InMemoryEvidenceStore,
    SqlBlockStore,
    SqlEvidenceStore,
)
import ledgis_api.models  # noqa: F401

# Use test database URL from environment or default to SQLite in-memory
TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    "sqlite:///:memory:"
)


@pytest.fixture(scope="function")
def engine():
    """Create a test database engine with the ledger schema."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(TEST_DATABASE_URL)

    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    """Session factory bound to the test engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Session:
    """Create a test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sql_service(db: Session) -> LedgerService:
    """Ledger service backed by the test database."""
    return LedgerService(SqlBlockStore(db), SqlEvidenceStore(db))


@pytest.fixture
def memory_service() -> LedgerService:
    """Ledger service backed by in-memory stores."""
    return LedgerService(InMemoryBlockStore(), InMemoryEvidenceStore())


@pytest.fixture
def client(session_factory):
    """Test client with the database dependency pointed at the test engine."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
