"""FHIR Server Schemas: request body and public projection of a server.

Invariants:
    - from_body() never raises: a body that is not a JSON object, or lacks a
      truthy name or url, yields None and the route answers the fixed 400
    - FhirServerResponse never carries auth_config, only hasAuth/authType
    - JSON field names are camelCase on the wire

Design Decisions:
    - The raw body is read as Any and checked by truthiness, not validated by
      field type: any truthy name/url is accepted, non-strings stored as JSON text
    - alias_generator=to_camel + populate_by_name: Python code uses snake_case,
      clients keep the camelCase contract
"""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from fhir_registry.core.repository_protocols import FhirServerLike

DEFAULT_AUTH_CONFIG = {"type": "none"}


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value)


class FhirServerCreate(BaseModel):
    """Registration payload that passed the presence check."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    url: str
    auth_config: Any = None

    @classmethod
    def from_body(cls, body: Any) -> "FhirServerCreate | None":
        if not isinstance(body, dict):
            return None
        name, url = body.get("name"), body.get("url")
        if not name or not url:
            return None
        return cls(
            name=_as_text(name),
            url=_as_text(url),
            auth_config=body.get("authConfig"),
        )

    def to_storage_input(self) -> dict:
        return {
            "name": self.name,
            "url": self.url,
            "auth_config": self.auth_config or dict(DEFAULT_AUTH_CONFIG),
            "is_active": False,
        }


class FhirServerResponse(BaseModel):
    """Public view of a FHIR server."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    name: str
    url: str
    is_active: bool = False
    has_auth: bool = False
    auth_type: str = "none"
    created_at: datetime | None = None

    @classmethod
    def from_server(cls, server: FhirServerLike) -> "FhirServerResponse":
        auth_config = server.auth_config
        auth_type = auth_config.get("type") if isinstance(auth_config, dict) else None
        return cls(
            id=server.id,
            name=server.name,
            url=server.url,
            is_active=bool(server.is_active),
            # Any stored config counts, including the {"type": "none"} default
            has_auth=bool(auth_config),
            auth_type=auth_type if isinstance(auth_type, str) and auth_type else "none",
            created_at=server.created_at,
        )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
