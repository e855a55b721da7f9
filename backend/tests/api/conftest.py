"""API test fixtures: fake storage and test clients over ASGITransport.

Invariants:
    - Collaborators reach routes through dependency_overrides, never app.state
    - The lifespan does not run under ASGITransport

Design Decisions:
    - FakeStorage records calls so tests can assert storage was never touched
"""

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from fhir_registry.api.dependencies import get_db_manager, get_fhir_server_storage
from fhir_registry.main import app
from fhir_registry.models.fhir_server import FhirServer


class FakeStorage:
    """In-memory FhirServerStorage with call log and switchable failures."""

    def __init__(self):
        self.servers: list[FhirServer] = []
        self.calls: list[str] = []
        self.fail_with: Exception | None = None

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_with is not None:
            raise self.fail_with

    def calls_to(self, name: str) -> int:
        return self.calls.count(name)

    async def list_fhir_servers(self) -> list[FhirServer]:
        self._record("list_fhir_servers")
        return list(self.servers)

    async def add_fhir_server(self, server_data: dict) -> FhirServer:
        self._record("add_fhir_server")
        server = FhirServer(
            id=len(self.servers) + 1,
            name=server_data["name"],
            url=server_data["url"],
            is_active=server_data.get("is_active", False),
            auth_config=server_data.get("auth_config"),
            created_at=datetime.now(timezone.utc),
        )
        self.servers.append(server)
        return server

    async def get_active_fhir_server(self) -> FhirServer | None:
        self._record("get_active_fhir_server")
        return next((s for s in self.servers if s.is_active), None)


@pytest.fixture
def fake_storage():
    return FakeStorage()


async def _client_with(storage, db_manager=None):
    app.dependency_overrides[get_fhir_server_storage] = lambda: storage
    if db_manager is not None:
        app.dependency_overrides[get_db_manager] = lambda: db_manager
    return AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    )


@pytest.fixture
async def client(sql_storage, test_db_manager):
    """Test client wired to real SQL storage on in-memory SQLite."""
    async with await _client_with(sql_storage, test_db_manager) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def fake_client(fake_storage):
    """Test client wired to FakeStorage."""
    async with await _client_with(fake_storage) as c:
        yield c
    app.dependency_overrides.clear()
