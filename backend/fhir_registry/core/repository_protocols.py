"""Boundary Protocols: contracts between the route layer and storage.

Invariants:
    - Routes depend on FhirServerStorage, never on the SQLAlchemy adapter
    - Implementations raise StorageError on failure (core/errors.py)

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: implementations do IO
"""

from datetime import datetime
from typing import Any, Protocol


class FhirServerLike(Protocol):
    """Structural contract for FHIR server records returned by storage.

    Avoids coupling the route layer to the ORM model.
    """
    id: int
    name: str
    url: str
    is_active: bool
    auth_config: Any
    created_at: datetime | None


class FhirServerStorage(Protocol):
    """Contract for FHIR server persistence: implemented by infrastructure."""
    async def list_fhir_servers(self) -> list[FhirServerLike]: ...
    async def add_fhir_server(self, server_data: dict) -> FhirServerLike: ...
    async def get_active_fhir_server(self) -> FhirServerLike | None: ...
