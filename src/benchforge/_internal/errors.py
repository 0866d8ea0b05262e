"""Custom exception hierarchy for BenchForge."""

from __future__ import annotations


class BenchForgeError(Exception):
    """Base exception for all BenchForge errors.

    All custom exceptions in BenchForge inherit from this class, making it
    easy to catch any BenchForge-specific error with a single except clause.
    """


class ConfigError(BenchForgeError):
    """Raised when run configuration is invalid or missing.

    Examples:
        - Neither a URL nor a URL file was supplied.
        - Both or neither of the request limit and the period were supplied.
        - The URL list or POST body file cannot be read.
        - An environment variable has an invalid value.
    """


class TransportError(BenchForgeError):
    """Raised when a request cannot be sent or its response not received.

    Counted as a network failure by the client worker, never retried.

    Attributes:
        url: The target URL of the failed attempt.
    """

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(f"{url}: {message}")


class ResponseDrainError(TransportError):
    """Raised when reading a response body fails after the status arrived.

    Counted exactly like a :class:`TransportError`.
    """


class WorkerFault(BenchForgeError):
    """Raised when a client worker fails with an unexpected exception.

    A fault in any one client ends the whole run.

    Attributes:
        client_id: Index of the client that failed.
    """

    def __init__(self, client_id: int, message: str) -> None:
        self.client_id = client_id
        super().__init__(f"Client {client_id} failed: {message}")
