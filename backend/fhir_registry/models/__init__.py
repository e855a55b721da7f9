"""ORM Models: imported here so Base.metadata is complete before create_all."""

from fhir_registry.models.fhir_server import FhirServer  # noqa: F401
