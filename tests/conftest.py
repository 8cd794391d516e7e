"""Test configuration and shared fixtures.

Provide isolated probe settings, a FastAPI probe target and helpers for
building HTTP clients over mock transports. All fixtures ensure tests run
without external dependencies on environment files.
"""
import asyncio
import logging
import socket
import threading
import time
from typing import Callable, Generator

import httpx
import pytest
import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from healthprobe.config import Settings, get_settings

# ==============================================================================
# CONFIGURATION FIXTURES
# ==============================================================================

@pytest.fixture(scope="session")
def mock_settings() -> Settings:
    """Provide isolated probe configuration with the default 2s timeouts.

    Returns:
        Settings: Test configuration with the `.env` file bypassed.
    """
    return Settings(
        CONNECT_TIMEOUT=2.0,
        REQUEST_TIMEOUT=2.0,
        ENVIRONMENT="development",
        LOG_LEVEL="debug",
        _env_file=None  # Bypass local environment file
    )


@pytest.fixture
def fast_settings() -> Settings:
    """Provide short timeouts for tests that wait on real sockets."""
    return Settings(
        CONNECT_TIMEOUT=0.2,
        REQUEST_TIMEOUT=0.3,
        _env_file=None
    )


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Drop the cached settings singleton around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def restore_logging() -> Generator[None, None, None]:
    """Undo the global stdlib and structlog configuration applied by `main`."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()

# ==============================================================================
# PROBE TARGETS
# ==============================================================================

def create_target_app() -> FastAPI:
    """Build a service exposing the usual liveness and readiness endpoints."""
    app = FastAPI(title="Probe Target")
    app.state.is_ready = True

    @app.get("/health/live", status_code=status.HTTP_200_OK)
    async def liveness_probe() -> dict[str, str]:
        return {"status": "alive"}

    @app.get("/health/ready", status_code=status.HTTP_200_OK)
    async def readiness_probe(request: Request) -> dict[str, str]:
        if not getattr(request.app.state, "is_ready", False):
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="System is starting up or dependencies are unavailable"
            )
        return {"status": "ready"}

    @app.get("/health", include_in_schema=False)
    async def legacy_health() -> RedirectResponse:
        return RedirectResponse(url="/health/live")

    return app


@pytest.fixture
def target_app() -> FastAPI:
    """Provide a fresh probe target with readiness enabled."""
    return create_target_app()


@pytest.fixture
def target_client(target_app: FastAPI) -> Generator[httpx.AsyncClient, None, None]:
    """Provide an async HTTP client routed in-process to the probe target.

    Yields:
        httpx.AsyncClient: Client whose transport calls the ASGI app directly.
    """
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=target_app))
    yield client
    asyncio.run(client.aclose())

# ==============================================================================
# TRANSPORT HELPERS
# ==============================================================================

@pytest.fixture
def make_client() -> Generator[Callable[..., httpx.AsyncClient], None, None]:
    """Provide a factory for async clients backed by `httpx.MockTransport`.

    Every client built by the factory is closed after the test.

    Yields:
        Callable: Takes a request handler and returns an httpx.AsyncClient.
    """
    clients: list[httpx.AsyncClient] = []

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory

    for client in clients:
        asyncio.run(client.aclose())


@pytest.fixture
def closed_port() -> int:
    """Return a localhost port with no listener on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def silent_server() -> Generator[int, None, None]:
    """Listen on a localhost port but never answer.

    The kernel completes the TCP handshake from the backlog, so the probe
    connects and then waits for a response that never comes.

    Yields:
        int: The listening port.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        sock.listen(8)
        yield sock.getsockname()[1]


@pytest.fixture
def trickling_server() -> Generator[int, None, None]:
    """Serve a valid 200 response, four bytes every 100ms.

    Every individual read completes quickly, so only a deadline on the
    whole exchange can stop the probe from waiting for the full response.

    Yields:
        int: The listening port.
    """
    payload = b"HTTP/1.1 200 OK\r\nContent-Length: 0\r\n\r\n"
    stop = threading.Event()

    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(8)
    sock.settimeout(0.05)

    def serve() -> None:
        while not stop.is_set():
            try:
                conn, _ = sock.accept()
            except OSError:
                continue
            with conn:
                for offset in range(0, len(payload), 4):
                    if stop.is_set():
                        break
                    try:
                        conn.sendall(payload[offset:offset + 4])
                    except OSError:
                        break
                    time.sleep(0.1)

    worker = threading.Thread(target=serve, daemon=True)
    worker.start()

    yield sock.getsockname()[1]

    stop.set()
    worker.join(timeout=2)
    sock.close()
