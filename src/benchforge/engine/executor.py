"""Request executor capability and the default httpcore implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol
from urllib.parse import urlsplit

import httpcore

from benchforge._internal.errors import ResponseDrainError, TransportError
from benchforge._internal.logging import get_logger
from benchforge.engine.connection import InstrumentedBackend

if TYPE_CHECKING:
    from collections.abc import Callable

    from benchforge._internal.config import TransportSettings
    from benchforge._internal.types import Headers, Method
    from benchforge.metrics.models import ClientResult

logger = get_logger("engine.executor")

# Everything httpcore raises for a failed connection, request or body read.
TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    httpcore.TimeoutException,
    httpcore.NetworkError,
    httpcore.ProtocolError,
    httpcore.UnsupportedProtocol,
    httpcore.ProxyError,
    OSError,
)


@dataclass(frozen=True)
class BenchRequest:
    """Description of one HTTP request attempt.

    Attributes:
        method: HTTP method.
        url: Absolute target URL.
        body: Raw request body, or None.
        headers: Request headers.
    """

    method: Method
    url: str
    body: bytes | None = None
    headers: Headers = field(default_factory=dict)


class BenchResponse(Protocol):
    """A received response whose body has not been read yet."""

    @property
    def status(self) -> int: ...

    async def drain(self) -> int:
        """Read and discard the full body, releasing the connection.

        Returns:
            Number of body bytes read.

        Raises:
            ResponseDrainError: If reading the body fails.
        """
        ...


class RequestExecutor(Protocol):
    """Capability to execute an HTTP request over an established connection.

    Executors are async context managers; a client enters its executor
    once and sends all of its requests through it.
    """

    async def __aenter__(self) -> RequestExecutor: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None: ...

    async def send(self, request: BenchRequest) -> BenchResponse:
        """Send a request and wait for the response status and headers.

        Raises:
            TransportError: If the connection or the request fails.
        """
        ...


class _HttpcoreResponse:
    """Adapts an ``httpcore.Response`` to :class:`BenchResponse`."""

    def __init__(self, url: str, response: httpcore.Response) -> None:
        self._url = url
        self._response = response

    @property
    def status(self) -> int:
        return self._response.status

    async def drain(self) -> int:
        try:
            body = await self._response.aread()
        except TRANSPORT_ERRORS as exc:
            raise ResponseDrainError(self._url, f"{type(exc).__name__}: {exc}") from exc
        finally:
            await self._response.aclose()
        return len(body)


class HttpExecutor:
    """Default executor: HTTP/1.1 over an instrumented ``httpcore`` pool.

    Each client owns one executor and therefore one connection pool; there
    is no connection sharing between clients. With connection reuse off,
    every request opens a fresh connection.
    """

    def __init__(
        self,
        result: ClientResult,
        settings: TransportSettings,
        *,
        backend: httpcore.AsyncNetworkBackend | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            result: Counters the instrumented connections charge bytes to.
            settings: Timeouts, reuse policy and pool size.
            backend: Backend performing the raw dialing. Defaults to
                ``httpcore.AnyIOBackend``.
        """
        self._settings = settings
        self._pool = httpcore.AsyncConnectionPool(
            max_connections=settings.pool_size,
            max_keepalive_connections=None if settings.reuse_connections else 0,
            retries=0,
            network_backend=InstrumentedBackend(result, settings, backend),
        )

    async def __aenter__(self) -> HttpExecutor:
        await self._pool.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self._pool.aclose()

    async def send(self, request: BenchRequest) -> BenchResponse:
        """Send a request through the pool.

        Args:
            request: The request to send.

        Returns:
            The response, with its body still to be drained.

        Raises:
            TransportError: If connecting, writing the request or reading
                the response head fails.
        """
        headers = {"Host": _host_header(request.url), **request.headers}
        if request.body is not None:
            headers["Content-Length"] = str(len(request.body))

        core_request = httpcore.Request(
            request.method,
            request.url,
            headers=list(headers.items()),
            content=request.body,
            extensions={
                "timeout": {
                    "connect": self._settings.connect_timeout,
                    "read": self._settings.read_timeout,
                    "write": self._settings.write_timeout,
                    "pool": None,
                },
            },
        )

        try:
            response = await self._pool.handle_async_request(core_request)
        except TRANSPORT_ERRORS as exc:
            raise TransportError(request.url, f"{type(exc).__name__}: {exc}") from exc

        return _HttpcoreResponse(request.url, response)


def _host_header(url: str) -> str:
    """Return the ``Host`` header value for an absolute URL."""
    return urlsplit(url).netloc.rpartition("@")[2]


def http_executor_factory(
    settings: TransportSettings,
) -> Callable[[ClientResult], RequestExecutor]:
    """Return a factory building one :class:`HttpExecutor` per client.

    Args:
        settings: Transport settings shared by every client.

    Returns:
        Callable taking a client's counters and returning its executor.
    """

    def _factory(result: ClientResult) -> RequestExecutor:
        return HttpExecutor(result, settings)

    return _factory
