"""Process entry point: `python -m fhir_registry` or the `fhir-registry` script.

Binds HOST:PORT ourselves so the listener can set SO_REUSEPORT, then hands
the socket to uvicorn.
"""

import socket

import uvicorn

from fhir_registry.config import get_settings


def bind_socket(host: str, port: int) -> socket.socket:
    """TCP listener with address and (where supported) port reuse enabled."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    if hasattr(socket, "SO_REUSEPORT"):
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
    sock.bind((host, port))
    sock.set_inheritable(True)
    return sock


def main() -> None:
    settings = get_settings()
    sock = bind_socket(settings.host, settings.port)
    config = uvicorn.Config(
        "fhir_registry.main:app",
        log_level=settings.log_level.lower(),
        log_config=None,
    )
    uvicorn.Server(config).run(sockets=[sock])


if __name__ == "__main__":
    main()
