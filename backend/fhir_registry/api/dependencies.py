"""Route Dependencies: hand the startup-built collaborators to handlers.

Invariants:
    - Collaborators live on app.state, set once by the lifespan
    - Handlers never import infrastructure singletons directly

Design Decisions:
    - FastAPI Depends over module globals: tests swap collaborators through
      app.dependency_overrides
"""

from fastapi import Request

from fhir_registry.core.repository_protocols import FhirServerStorage
from fhir_registry.infrastructure.database import DatabaseSessionManager


def _from_state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise RuntimeError(f"{name} not initialized")
    return value


def get_fhir_server_storage(request: Request) -> FhirServerStorage:
    return _from_state(request, "fhir_server_storage")


def get_db_manager(request: Request) -> DatabaseSessionManager:
    return _from_state(request, "db_manager")
