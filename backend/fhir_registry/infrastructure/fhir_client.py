"""FHIR Client: async httpx client for a single FHIR server base URL.

Invariants:
    - Built once at startup and shared; no route calls it yet
    - Credentials from auth_config become an Authorization header, never logged
    - test_connection() never raises; it reports failures in ConnectionResult

Design Decisions:
    - httpx.AsyncClient owned by the wrapper, closed in the app lifespan
    - transport injectable so tests use httpx.MockTransport instead of the network
"""

import base64
import logging
import time
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

FHIR_HEADERS = {
    "Accept": "application/fhir+json",
    "Content-Type": "application/fhir+json",
}


@dataclass
class ConnectionResult:
    """Outcome of probing GET {base}/metadata."""
    connected: bool
    version: str | None = None
    error: str | None = None
    error_type: str | None = None
    status_code: int | None = None
    response_time_ms: int = 0


def normalize_fhir_version(version: str | None) -> str | None:
    """Map a raw fhirVersion ("4.0.1", "6.0.0-ballot1") to R4/R5/R6."""
    if not version:
        return None
    major = version.split(".")[0]
    if major in ("4", "5", "6"):
        return f"R{major}"
    upper = version.upper()
    for release in ("R4", "R5", "R6"):
        if release in upper:
            return release
    logger.warning(f"Unknown FHIR version {version}")
    return None


def build_auth_headers(auth_config: dict | None) -> dict[str, str]:
    """Authorization header for the configured auth type (none/basic/bearer/oauth2)."""
    if not isinstance(auth_config, dict):
        return {}
    auth_type = auth_config.get("type", "none")
    if auth_type == "basic":
        username = auth_config.get("username")
        password = auth_config.get("password")
        if username and password:
            token = base64.b64encode(f"{username}:{password}".encode()).decode()
            return {"Authorization": f"Basic {token}"}
    elif auth_type in ("bearer", "oauth2"):
        if auth_config.get("token"):
            return {"Authorization": f"Bearer {auth_config['token']}"}
    return {}


_STATUS_ERRORS = {
    401: ("authentication_required", "Authentication required - server requires credentials"),
    403: ("access_forbidden", "Access forbidden - insufficient permissions"),
    404: ("endpoint_not_found", "FHIR metadata endpoint not found - server may not support FHIR"),
}


class FhirClient:
    """Thin async client for one FHIR server."""

    def __init__(
        self,
        base_url: str,
        auth_config: dict | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth_config = auth_config
        self.timeout_seconds = timeout_seconds
        self.headers = {**FHIR_HEADERS, **build_auth_headers(auth_config)}
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=timeout_seconds,
            transport=transport,
        )

    async def test_connection(self) -> ConnectionResult:
        """Probe /metadata and classify the outcome."""
        start = time.monotonic()
        try:
            response = await self.client.get("/metadata")
        except httpx.TimeoutException:
            return ConnectionResult(
                connected=False,
                error=f"Connection timeout - server did not respond within {self.timeout_seconds:g} seconds",
                error_type="timeout",
                response_time_ms=_elapsed_ms(start),
            )
        except httpx.ConnectError as e:
            return ConnectionResult(
                connected=False,
                error=f"Connection failed - {e}",
                error_type="connection_error",
                response_time_ms=_elapsed_ms(start),
            )
        except httpx.HTTPError as e:
            return ConnectionResult(
                connected=False,
                error=str(e) or "Unknown connection error",
                error_type="unknown_error",
                response_time_ms=_elapsed_ms(start),
            )
        return _classify_metadata_response(response, _elapsed_ms(start))

    async def aclose(self) -> None:
        await self.client.aclose()


def _classify_metadata_response(
    response: httpx.Response, elapsed_ms: int,
) -> ConnectionResult:
    status_code = response.status_code
    if status_code == 200:
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("resourceType") == "CapabilityStatement":
            return ConnectionResult(
                connected=True,
                version=data.get("fhirVersion") or "Unknown",
                status_code=status_code,
                response_time_ms=elapsed_ms,
            )
    if status_code in _STATUS_ERRORS:
        error_type, error = _STATUS_ERRORS[status_code]
    elif 400 <= status_code < 500:
        error_type = "client_error"
        error = f"Client error: {status_code} {response.reason_phrase}"
    elif status_code >= 500:
        error_type = "server_error"
        error = f"Server error: {status_code} {response.reason_phrase}"
    else:
        error_type = "invalid_response"
        error = "Invalid FHIR server response - not a valid CapabilityStatement"
    return ConnectionResult(
        connected=False,
        error=error,
        error_type=error_type,
        status_code=status_code,
        response_time_ms=elapsed_ms,
    )


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
