"""Byte-counting network streams with per-operation idle timeouts.

The default request executor dials every connection through
:class:`InstrumentedBackend`, so each byte moved by ``httpcore`` passes through
an :class:`InstrumentedStream` that charges it to the owning client's
:class:`~benchforge.metrics.models.ClientResult`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpcore

from benchforge._internal.logging import get_logger

if TYPE_CHECKING:
    import ssl
    from collections.abc import Iterable

    from benchforge._internal.config import TransportSettings
    from benchforge.metrics.models import ClientResult

logger = get_logger("engine.connection")


class InstrumentedStream(httpcore.AsyncNetworkStream):
    """Decorates an established stream with byte counting and idle timeouts.

    Every read and write is bounded by its own timeout, measured from the
    start of that operation. A connection that keeps moving bytes faster
    than the timeout never times out, however long it stays open.

    A failed operation propagates the underlying error unchanged and
    leaves the counters untouched.
    """

    def __init__(
        self,
        stream: httpcore.AsyncNetworkStream,
        result: ClientResult,
        read_timeout: float,
        write_timeout: float,
    ) -> None:
        """Wrap a stream.

        Args:
            stream: The established connection to decorate.
            result: Counters to charge bytes to.
            read_timeout: Idle seconds allowed per read.
            write_timeout: Idle seconds allowed per write.
        """
        self._stream = stream
        self._result = result
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout

    async def read(self, max_bytes: int, timeout: float | None = None) -> bytes:  # noqa: ARG002
        """Read up to ``max_bytes`` within the read timeout and count them.

        The caller's ``timeout`` is ignored in favour of the configured
        idle timeout.
        """
        data = await self._stream.read(max_bytes, timeout=self.read_timeout)
        self._result.read_throughput += len(data)
        return data

    async def write(self, buffer: bytes, timeout: float | None = None) -> None:  # noqa: ARG002
        """Write ``buffer`` within the write timeout and count it."""
        await self._stream.write(buffer, timeout=self.write_timeout)
        self._result.write_throughput += len(buffer)

    async def aclose(self) -> None:
        """Close the underlying stream."""
        await self._stream.aclose()

    async def start_tls(
        self,
        ssl_context: ssl.SSLContext,
        server_hostname: str | None = None,
        timeout: float | None = None,
    ) -> httpcore.AsyncNetworkStream:
        """Upgrade to TLS, keeping the upgraded stream instrumented.

        Handshake bytes and all subsequent encrypted traffic are counted.
        """
        tls_stream = await self._stream.start_tls(
            ssl_context,
            server_hostname=server_hostname,
            timeout=timeout,
        )
        return InstrumentedStream(
            tls_stream,
            self._result,
            self.read_timeout,
            self.write_timeout,
        )

    def get_extra_info(self, info: str) -> Any:
        """Delegate to the wrapped stream, e.g. ``"ssl_object"``."""
        return self._stream.get_extra_info(info)


class InstrumentedBackend(httpcore.AsyncNetworkBackend):
    """Network backend that dials with a connect timeout and instruments streams.

    Failure to connect within the connect timeout surfaces as
    ``httpcore.ConnectTimeout``, distinct from read and write timeouts.
    """

    def __init__(
        self,
        result: ClientResult,
        settings: TransportSettings,
        backend: httpcore.AsyncNetworkBackend | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            result: Counters every dialed stream charges bytes to.
            settings: Connect, read and write timeouts.
            backend: Backend that performs the actual dialing. Defaults to
                ``httpcore.AnyIOBackend``.
        """
        self._result = result
        self._settings = settings
        self._backend = backend or httpcore.AnyIOBackend()

    def _wrap(self, stream: httpcore.AsyncNetworkStream) -> InstrumentedStream:
        return InstrumentedStream(
            stream,
            self._result,
            read_timeout=self._settings.read_timeout,
            write_timeout=self._settings.write_timeout,
        )

    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: float | None = None,  # noqa: ARG002
        local_address: str | None = None,
        socket_options: Iterable[Any] | None = None,
    ) -> httpcore.AsyncNetworkStream:
        """Dial ``host:port`` under the connect timeout and instrument the stream.

        Raises:
            httpcore.ConnectError: If the connection is refused.
            httpcore.ConnectTimeout: If dialing exceeds the connect timeout.
        """
        logger.debug("Dialing %s:%d", host, port)
        stream = await self._backend.connect_tcp(
            host,
            port,
            timeout=self._settings.connect_timeout,
            local_address=local_address,
            socket_options=socket_options,
        )
        return self._wrap(stream)

    async def connect_unix_socket(
        self,
        path: str,
        timeout: float | None = None,  # noqa: ARG002
        socket_options: Iterable[Any] | None = None,
    ) -> httpcore.AsyncNetworkStream:
        """Unix-socket counterpart of :meth:`connect_tcp`."""
        stream = await self._backend.connect_unix_socket(
            path,
            timeout=self._settings.connect_timeout,
            socket_options=socket_options,
        )
        return self._wrap(stream)

    async def sleep(self, seconds: float) -> None:
        """Delegate to the dialing backend."""
        await self._backend.sleep(seconds)
