"""Shared fixtures: local HTTP targets for the executor, runner and CLI tests."""

from __future__ import annotations

import asyncio
import socket
import threading
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


# =============================================================================
# Network utilities
# =============================================================================


def _get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# =============================================================================
# Target HTTP server handlers
# =============================================================================

# Requests received by the /echo route, in arrival order.
_SEEN = web.AppKey("seen", list)


async def _ok_handler(request: web.Request) -> web.Response:
    """Always 200."""
    return web.Response(text="ok")


async def _missing_handler(request: web.Request) -> web.Response:
    """Always 404."""
    return web.Response(text="not here", status=404)


async def _echo_handler(request: web.Request) -> web.Response:
    """Record method, lowercased headers and body, then reply 200."""
    seen = request.app[_SEEN]
    seen.append(
        {
            "method": request.method,
            "headers": {k.lower(): v for k, v in request.headers.items()},
            "body": await request.read(),
        }
    )
    return web.json_response({"received": len(seen)})


async def _stall_handler(request: web.Request) -> web.Response:
    """Respond only after ``?delay=`` seconds."""
    await asyncio.sleep(float(request.query.get("delay", "2.0")))
    return web.Response(text="late")


async def _trickle_handler(request: web.Request) -> web.StreamResponse:
    """Stream ``chunks`` chunks of 100 bytes, ``interval`` seconds apart."""
    chunks = int(request.query.get("chunks", "6"))
    interval = float(request.query.get("interval", "0.1"))
    response = web.StreamResponse()
    response.content_length = chunks * 100
    await response.prepare(request)
    for _ in range(chunks):
        await asyncio.sleep(interval)
        await response.write(b"x" * 100)
    await response.write_eof()
    return response


def _create_target_app() -> web.Application:
    app = web.Application()
    app[_SEEN] = []
    app.router.add_get("/ok", _ok_handler)
    app.router.add_get("/missing", _missing_handler)
    app.router.add_route("*", "/echo", _echo_handler)
    app.router.add_get("/stall", _stall_handler)
    app.router.add_get("/trickle", _trickle_handler)
    return app


@asynccontextmanager
async def _serving(app: web.Application) -> AsyncIterator[str]:
    """Serve ``app`` on a free local port and yield its base URL."""
    port = _get_free_port()
    runner = web.AppRunner(app)
    await runner.setup()
    await web.TCPSite(runner, "127.0.0.1", port).start()
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        await runner.cleanup()


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
async def target_server() -> AsyncIterator[str]:
    """Base URL of a target server, e.g. ``http://127.0.0.1:54321``."""
    async with _serving(_create_target_app()) as base_url:
        yield base_url


@pytest.fixture
async def recording_server() -> AsyncIterator[tuple[str, list[dict[str, object]]]]:
    """Target server plus the list its /echo route appends to."""
    app = _create_target_app()
    async with _serving(app) as base_url:
        yield base_url, app[_SEEN]


@pytest.fixture
async def truncating_server() -> AsyncIterator[str]:
    """Raw server that promises 100 body bytes, sends 5 and hangs up."""

    async def _handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await reader.readuntil(b"\r\n\r\n")
        writer.write(b"HTTP/1.1 200 OK\r\nContent-Length: 100\r\n\r\nshort")
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(_handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    yield f"http://127.0.0.1:{port}/"
    server.close()
    await server.wait_closed()


@pytest.fixture
def refused_url() -> str:
    """URL of a local port nothing listens on."""
    return f"http://127.0.0.1:{_get_free_port()}/"


@pytest.fixture
def sync_target_server() -> Iterator[str]:
    """Target server on a background thread, for the CLI which owns its own loop."""
    loop = asyncio.new_event_loop()
    ready = threading.Event()
    base_url: list[str] = []
    stop = asyncio.Event()

    async def _serve() -> None:
        async with _serving(_create_target_app()) as url:
            base_url.append(url)
            ready.set()
            await stop.wait()

    thread = threading.Thread(target=loop.run_until_complete, args=(_serve(),), daemon=True)
    thread.start()
    ready.wait(timeout=5.0)

    yield base_url[0]

    loop.call_soon_threadsafe(stop.set)
    thread.join(timeout=5.0)
    loop.close()
