"""Counter and report dataclasses for BenchForge."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "ClientResult",
    "RunReport",
]


@dataclass
class ClientResult:
    """Counters owned and mutated by exactly one client.

    ``requests == success + network_failed + bad_failed`` holds whenever
    another coroutine can observe the object: the attempt counter and its
    outcome bucket are updated together with no suspension point between
    them. Throughput counters are fed by the instrumented connection.

    Attributes:
        requests: Total attempts issued.
        success: Responses with status 200.
        network_failed: Transport errors and body-read errors.
        bad_failed: Non-200 responses that were read successfully.
        read_throughput: Bytes read from the network.
        write_throughput: Bytes written to the network.
    """

    requests: int = 0
    success: int = 0
    network_failed: int = 0
    bad_failed: int = 0
    read_throughput: int = 0
    write_throughput: int = 0


@dataclass(frozen=True)
class RunReport:
    """Aggregated result of a benchmark run.

    Attributes:
        clients: Number of clients that were dispatched.
        requests: Total attempts across all clients.
        success: Total status-200 responses.
        network_failed: Total transport and body-read failures.
        bad_failed: Total non-200 responses.
        read_throughput: Total bytes read.
        write_throughput: Total bytes written.
        elapsed_seconds: Wall-clock seconds from start to aggregation.
        interrupted: True if the run ended through the stop path (signal or
            period expiry) rather than by every client finishing.
    """

    clients: int
    requests: int
    success: int
    network_failed: int
    bad_failed: int
    read_throughput: int
    write_throughput: int
    elapsed_seconds: float
    interrupted: bool = False

    def _per_second(self, value: int) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return value / self.elapsed_seconds

    @property
    def success_rate(self) -> float:
        """Successful requests per second."""
        return self._per_second(self.success)

    @property
    def read_rate(self) -> float:
        """Bytes read per second."""
        return self._per_second(self.read_throughput)

    @property
    def write_rate(self) -> float:
        """Bytes written per second."""
        return self._per_second(self.write_throughput)
