"""SQL FHIR Server Storage: FhirServerStorage implemented on DatabaseSessionManager.

Invariants:
    - One AsyncSession per operation; commit on success, rollback on failure
    - list_fhir_servers returns insertion order (ascending id)
    - Every SQLAlchemy failure surfaces as StorageError

Design Decisions:
    - Manager passed in by the caller, not read from the module singleton:
      tests hand in a manager bound to an in-memory engine
"""

import logging

from sqlalchemy import func, select

from fhir_registry.infrastructure.database import DatabaseSessionManager
from fhir_registry.models.fhir_server import FhirServer

logger = logging.getLogger(__name__)

DEFAULT_SERVER = {
    "name": "Fire.ly Server",
    "url": "https://server.fire.ly",
    "is_active": True,
    "auth_config": {"type": "none"},
}


class SqlFhirServerStorage:
    """FHIR server persistence backed by SQLAlchemy."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def list_fhir_servers(self) -> list[FhirServer]:
        async with self._db.session() as session:
            result = await session.execute(
                select(FhirServer).order_by(FhirServer.id),
            )
            return list(result.scalars().all())

    async def add_fhir_server(self, server_data: dict) -> FhirServer:
        async with self._db.session() as session:
            server = FhirServer(
                name=server_data["name"],
                url=server_data["url"],
                is_active=server_data.get("is_active", False),
                auth_config=server_data.get("auth_config"),
            )
            session.add(server)
            await session.commit()
            await session.refresh(server)
            logger.info(
                f"Registered FHIR server {server.name}",
                extra={"server_id": server.id},
            )
            return server

    async def get_active_fhir_server(self) -> FhirServer | None:
        """First active server, else the oldest server, else None."""
        async with self._db.session() as session:
            result = await session.execute(
                select(FhirServer)
                .order_by(FhirServer.is_active.desc(), FhirServer.id)
                .limit(1),
            )
            return result.scalar_one_or_none()

    async def seed_default_server(self) -> bool:
        """Insert DEFAULT_SERVER when the table is empty. Returns True if inserted."""
        async with self._db.session() as session:
            count = await session.scalar(
                select(func.count()).select_from(FhirServer),
            )
        if count:
            return False
        await self.add_fhir_server(DEFAULT_SERVER)
        return True
