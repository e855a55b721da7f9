"""FHIR Servers: list and register FHIR servers.

Invariants:
    - Storage failures never leak: fixed 500 message, details only in logs
    - name and url checked before storage is touched (400, zero storage calls)
    - Any body without a truthy name and url gets the same 400, whatever its
      type or content type
    - Creation answers 200, not 201: existing clients depend on it

Design Decisions:
    - Handlers return JSONResponse for their own errors instead of raising:
      these failures are expected and must not reach the error normalizer
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from fhir_registry.api.dependencies import get_fhir_server_storage
from fhir_registry.core.repository_protocols import FhirServerStorage
from fhir_registry.schemas.fhir_server import FhirServerCreate, FhirServerResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/fhir/servers", tags=["fhir-servers"])

FETCH_FAILED = "Failed to fetch FHIR servers"
ADD_FAILED = "Failed to add FHIR server"
FIELDS_REQUIRED = "Name and URL are required"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("")
async def list_fhir_servers(
    storage: FhirServerStorage = Depends(get_fhir_server_storage),
):
    """List registered FHIR servers in storage order."""
    try:
        servers = await storage.list_fhir_servers()
    except Exception as e:
        logger.error(f"{FETCH_FAILED}: {e}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, FETCH_FAILED)
    return [FhirServerResponse.from_server(s).to_json() for s in servers]


@router.post("")
async def add_fhir_server(
    body: Any = Body(None),
    storage: FhirServerStorage = Depends(get_fhir_server_storage),
):
    """Register a FHIR server."""
    registration = FhirServerCreate.from_body(body)
    if registration is None:
        return _error(status.HTTP_400_BAD_REQUEST, FIELDS_REQUIRED)
    try:
        server = await storage.add_fhir_server(registration.to_storage_input())
    except Exception as e:
        logger.error(f"{ADD_FAILED}: {e}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, ADD_FAILED)
    return FhirServerResponse.from_server(server).to_json()
