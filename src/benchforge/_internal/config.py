"""Run configuration construction and validation for BenchForge."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

import httpcore

from benchforge._internal.errors import ConfigError

if TYPE_CHECKING:
    from benchforge._internal.types import Method


@dataclass(frozen=True)
class BenchForgeConfig:
    """Process-level settings read from the environment.

    Attributes:
        pool_size: Maximum open connections per client.
        log_format: Log output format, ``"text"`` or ``"json"``.
    """

    pool_size: int = 10
    log_format: Literal["text", "json"] = "text"


@dataclass(frozen=True)
class RunConfiguration:
    """Immutable parameters of one benchmark run.

    Built once before any client starts and shared read-only with every
    client. Exactly one of ``request_limit`` and ``period`` is set.

    Attributes:
        urls: Target URLs, visited in order on every pass.
        method: ``"POST"`` when a body was supplied, otherwise ``"GET"``.
        body: Raw request body sent unmodified on every request.
        request_limit: Requests per client, or None for a period run.
        period: Run duration in seconds, or None for a request-count run.
        keep_alive: Send ``Connection: keep-alive`` instead of ``close``.
    """

    urls: tuple[str, ...]
    method: Method = "GET"
    body: bytes | None = None
    request_limit: int | None = None
    period: float | None = None
    keep_alive: bool = True

    @property
    def stop_description(self) -> str:
        """Human-readable stop condition, e.g. ``"100 requests per client"``."""
        if self.request_limit is not None:
            return f"{self.request_limit} requests per client"
        return f"{self.period:g}s"


@dataclass(frozen=True)
class TransportSettings:
    """Connection-level settings for the default request executor.

    Attributes:
        connect_timeout: Seconds allowed to establish a connection.
        read_timeout: Idle seconds allowed for each read operation.
        write_timeout: Idle seconds allowed for each write operation.
        reuse_connections: Keep connections open between requests.
        pool_size: Maximum open connections per client.
    """

    connect_timeout: float = 5.0
    read_timeout: float = 5.0
    write_timeout: float = 5.0
    reuse_connections: bool = True
    pool_size: int = 10


def load_config() -> BenchForgeConfig:
    """Load process-level settings from environment variables with defaults.

    Environment variables:
        BENCHFORGE_POOL_SIZE: Connections per client (default: 10).
        BENCHFORGE_LOG_FORMAT: ``text`` or ``json`` (default: text).

    Returns:
        Populated BenchForgeConfig instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    pool_size_str = os.environ.get("BENCHFORGE_POOL_SIZE", "10")
    log_format = os.environ.get("BENCHFORGE_LOG_FORMAT", "text").lower()

    try:
        pool_size = int(pool_size_str)
    except ValueError:
        msg = f"BENCHFORGE_POOL_SIZE must be an integer, got: {pool_size_str!r}"
        raise ConfigError(msg) from None

    if pool_size < 1:
        msg = f"BENCHFORGE_POOL_SIZE must be >= 1, got: {pool_size}"
        raise ConfigError(msg)

    if log_format not in ("text", "json"):
        msg = f"BENCHFORGE_LOG_FORMAT must be 'text' or 'json', got: {log_format!r}"
        raise ConfigError(msg)

    return BenchForgeConfig(pool_size=pool_size, log_format=log_format)  # type: ignore[arg-type]


def read_lines(path: str | Path) -> list[str]:
    """Read a newline-delimited URL file.

    Surrounding whitespace is stripped and blank lines are skipped.

    Args:
        path: File to read.

    Returns:
        Non-empty lines in file order.

    Raises:
        ConfigError: If the file cannot be read.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read URL file {str(path)!r}: {exc}"
        raise ConfigError(msg) from exc

    return [line.strip() for line in text.splitlines() if line.strip()]


def read_body(path: str | Path) -> bytes:
    """Read a POST body file verbatim.

    Args:
        path: File to read.

    Returns:
        The file contents as bytes.

    Raises:
        ConfigError: If the file cannot be read.
    """
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        msg = f"Cannot read POST data file {str(path)!r}: {exc}"
        raise ConfigError(msg) from exc


def check_url(url: str) -> None:
    """Reject a URL the transport could never turn into a request.

    Non-ASCII characters and out-of-range ports fail here, before any
    client starts. Unsupported schemes pass and are counted as network
    failures at request time.

    Raises:
        ConfigError: If ``url`` cannot be parsed.
    """
    try:
        httpcore.URL(url)
    except (TypeError, ValueError) as exc:
        msg = f"Invalid URL {url!r}: {exc}"
        raise ConfigError(msg) from exc


def build_configuration(
    *,
    url: str | None = None,
    urls_file: str | Path | None = None,
    request_limit: int | None = None,
    period: float | None = None,
    post_data_file: str | Path | None = None,
    keep_alive: bool = True,
) -> RunConfiguration:
    """Validate run inputs and build the immutable run configuration.

    URLs from ``urls_file`` come first, in file order, followed by ``url``.

    Args:
        url: A single target URL.
        urls_file: Path to a newline-delimited URL file.
        request_limit: Requests per client. Mutually exclusive with period.
        period: Run duration in seconds. Mutually exclusive with
            request_limit.
        post_data_file: Path to a POST body file. Switches the method to
            POST.
        keep_alive: Send ``Connection: keep-alive`` instead of ``close``.

    Returns:
        The validated RunConfiguration.

    Raises:
        ConfigError: If the URL sources or stop conditions are invalid, a
            URL cannot be parsed, or an input file cannot be read.
    """
    if not url and not urls_file:
        msg = "A URL (-u) or a URL file (-f) must be provided"
        raise ConfigError(msg)

    if request_limit is None and period is None:
        msg = "Requests or period must be provided"
        raise ConfigError(msg)

    if request_limit is not None and period is not None:
        msg = "Only one should be provided: [requests|period]"
        raise ConfigError(msg)

    if request_limit is not None and request_limit < 1:
        msg = f"Requests per client must be >= 1, got: {request_limit}"
        raise ConfigError(msg)

    if period is not None and period <= 0:
        msg = f"Period must be positive, got: {period}"
        raise ConfigError(msg)

    urls: list[str] = []
    if urls_file:
        urls.extend(read_lines(urls_file))
    if url:
        urls.append(url)

    if not urls:
        msg = f"URL file {str(urls_file)!r} contains no URLs"
        raise ConfigError(msg)

    for target in urls:
        check_url(target)

    method: Method = "GET"
    body: bytes | None = None
    if post_data_file:
        method = "POST"
        body = read_body(post_data_file)

    return RunConfiguration(
        urls=tuple(urls),
        method=method,
        body=body,
        request_limit=request_limit,
        period=period,
        keep_alive=keep_alive,
    )


def build_transport_settings(
    connect_timeout_ms: int = 5000,
    write_timeout_ms: int = 5000,
    read_timeout_ms: int = 5000,
    *,
    reuse_connections: bool = True,
    pool_size: int = 10,
) -> TransportSettings:
    """Build transport settings from millisecond timeouts.

    Args:
        connect_timeout_ms: Connect timeout in milliseconds.
        write_timeout_ms: Per-write idle timeout in milliseconds.
        read_timeout_ms: Per-read idle timeout in milliseconds.
        reuse_connections: Keep connections open between requests.
        pool_size: Maximum open connections per client.

    Returns:
        TransportSettings with timeouts in seconds.

    Raises:
        ConfigError: If a timeout or the pool size is not positive.
    """
    for name, value in (
        ("Connect timeout", connect_timeout_ms),
        ("Write timeout", write_timeout_ms),
        ("Read timeout", read_timeout_ms),
    ):
        if value <= 0:
            msg = f"{name} must be positive, got: {value}ms"
            raise ConfigError(msg)

    if pool_size < 1:
        msg = f"Pool size must be >= 1, got: {pool_size}"
        raise ConfigError(msg)

    return TransportSettings(
        connect_timeout=connect_timeout_ms / 1000,
        read_timeout=read_timeout_ms / 1000,
        write_timeout=write_timeout_ms / 1000,
        reuse_connections=reuse_connections,
        pool_size=pool_size,
    )
