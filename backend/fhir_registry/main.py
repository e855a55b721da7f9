"""FHIR Server Registry API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Error handlers registered after all routes; every error leaves as JSON
    - Collaborators (db manager, storage, FHIR client) built once in the
      lifespan and attached to app.state
    - Static files mounted last so /api/* always wins

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - FHIR client built from the active registered server, falling back to
      FHIR_SERVER_URL; a storage outage at startup does not stop the process
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from fhir_registry.api.error_handlers import register_error_handlers
from fhir_registry.api.routes import fhir_servers, health
from fhir_registry.config import Settings, get_settings
from fhir_registry.core.errors import StorageError
from fhir_registry.infrastructure.database import init_db
from fhir_registry.infrastructure.fhir_client import FhirClient
from fhir_registry.infrastructure.fhir_server_storage import SqlFhirServerStorage
from fhir_registry.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


async def build_fhir_client(
    storage: SqlFhirServerStorage, settings: Settings,
) -> FhirClient:
    """FHIR client for the active server, or FHIR_SERVER_URL when none is usable."""
    try:
        active = await storage.get_active_fhir_server()
    except StorageError as e:
        logger.warning(f"Could not read active FHIR server, using default: {e.message}")
        active = None
    if active is None:
        return FhirClient(
            settings.fhir_server_url,
            timeout_seconds=settings.fhir_client_timeout_seconds,
        )
    logger.info(
        f"Active FHIR server: {active.name} ({active.url})",
        extra={"server_id": active.id},
    )
    return FhirClient(
        active.url, active.auth_config,
        timeout_seconds=settings.fhir_client_timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db_manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    storage = SqlFhirServerStorage(db_manager)
    try:
        if settings.database_create_tables:
            await db_manager.create_tables()
        if settings.seed_default_server:
            await storage.seed_default_server()
    except StorageError as e:
        logger.error(f"Storage initialization failed: {e.message}")
    fhir_client = await build_fhir_client(storage, settings)

    app.state.db_manager = db_manager
    app.state.fhir_server_storage = storage
    app.state.fhir_client = fhir_client
    logger.info("FHIR Server Registry API started")
    yield
    logger.info("FHIR Server Registry API shutting down")
    await fhir_client.aclose()
    await db_manager.dispose()


app = FastAPI(
    title="FHIR Server Registry API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(fhir_servers.router)

register_error_handlers(app)

# Mounted after API routes so /api/* takes precedence; html=True serves index.html
if os.path.isdir(settings.static_dir):
    app.mount(
        "/", StaticFiles(directory=settings.static_dir, html=True), name="static",
    )
