"""Database session management."""

from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ledgis_api.settings import get_settings

settings = get_settings()

ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"

if settings.is_sqlite:
    engine = create_engine(
        settings.database_url,
        echo=settings.sql_echo,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        settings.database_url,
        echo=settings.sql_echo,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_schema(bind=None):
    """Create ledger tables if they do not exist, bypassing migrations."""
    from ledgis_api.db.base import Base
    import ledgis_api.models  # noqa: F401

    Base.metadata.create_all(bind or engine)


def upgrade_schema(revision: str = "head", database_url: Optional[str] = None):
    """Apply Alembic migrations up to `revision`."""
    from alembic import command
    from alembic.config import Config

    config = Config(str(ALEMBIC_INI))
    # ConfigParser interpolates %, which URL-encoded passwords contain.
    config.set_main_option("sqlalchemy.url", (database_url or settings.database_url).replace("%", "%%"))
    command.upgrade(config, revision)


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
