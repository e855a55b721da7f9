"""FhirServer ORM: a registered FHIR endpoint.

Invariants:
    - id is an autoincrement integer assigned on insert
    - name and url are non-nullable text (non-empty checked at the API boundary)
    - auth_config holds credentials; it never leaves the process unprojected

Design Decisions:
    - JSON column for auth_config: shape varies by auth type (none/basic/bearer/oauth2)
    - Integer id over UUID: matches the serial ids clients already store
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column

from fhir_registry.db.base import Base


class FhirServer(Base):
    """A FHIR server known to the registry."""
    __tablename__ = "fhir_servers"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    auth_config: Mapped[Any] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
