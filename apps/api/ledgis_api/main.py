"""LEDGIS API - Main FastAPI application."""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from ledgis_api import __version__
from ledgis_api.middleware.node import NodeContextMiddleware
from ledgis_api.routes import evidence, ledger, network
from ledgis_api.settings import get_settings

settings = get_settings()

LOG_FORMATS = {
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s", "module": "%(name)s"}',
    "text": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
}

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format=LOG_FORMATS.get(settings.log_format, LOG_FORMATS["json"]),
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting LEDGIS API...")
    try:
        settings.validate_production_settings()

        if settings.auto_create_schema:
            from ledgis_api.db.session import init_schema
            init_schema()
            logger.info("Ledger schema ready")
    except Exception as e:
        logger.error(f"Configuration validation failed: {e}")
        raise ValueError(f"Invalid configuration: {e}") from e

    yield
    logger.info("Shutting down LEDGIS API...")


# Create FastAPI app
app = FastAPI(
    title="LEDGIS API",
    description="Hash-linked evidence ledger with synthetic custody telemetry",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)
app.add_middleware(NodeContextMiddleware)

# Prometheus metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Register routers
app.include_router(evidence.router)
app.include_router(ledger.router)
app.include_router(network.router)


@app.get("/health")
async def health_check():
    """Health check endpoint (basic liveness)."""
    return {
        "status": "healthy",
        "service": "ledgis-api",
        "version": __version__,
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "LEDGIS API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
