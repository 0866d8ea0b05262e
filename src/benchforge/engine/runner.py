"""Top-level benchmark orchestrator."""

from __future__ import annotations

import asyncio
import signal
import sys
import time
from typing import TYPE_CHECKING

from benchforge._internal.errors import ConfigError, WorkerFault
from benchforge._internal.logging import get_logger
from benchforge.engine.executor import http_executor_factory
from benchforge.engine.worker import run_client
from benchforge.metrics.aggregator import aggregate
from benchforge.metrics.models import ClientResult

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from typing import Any

    from benchforge._internal.config import RunConfiguration, TransportSettings
    from benchforge.engine.executor import RequestExecutor
    from benchforge.metrics.models import RunReport

logger = get_logger("engine.runner")


class BenchmarkRunner:
    """Dispatches a fixed pool of clients and aggregates their counters.

    A run ends in one of three ways:

    - every client reaches its request limit (normal completion);
    - the stop path fires, through SIGINT/SIGTERM, period expiry or
      :meth:`request_stop` (interrupted completion);
    - a client raises an unexpected exception (fault, fatal to the run).

    On interrupted completion the counters are summed immediately, while
    clients may still be mid-request; the report is an advisory snapshot.
    Clients are cancelled only after the report values are fixed.

    Attributes:
        config: The run configuration.
        clients: Number of concurrent clients.
    """

    def __init__(
        self,
        config: RunConfiguration,
        settings: TransportSettings,
        *,
        clients: int = 100,
        executor_factory: Callable[[ClientResult], RequestExecutor] | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            config: Validated run configuration.
            settings: Transport settings for the default executor.
            clients: Number of concurrent clients to dispatch.
            executor_factory: Builds one executor per client from that
                client's counters. Defaults to :class:`HttpExecutor`.

        Raises:
            ConfigError: If ``clients`` is less than 1.
        """
        if clients < 1:
            msg = f"Clients must be >= 1, got: {clients}"
            raise ConfigError(msg)

        self.config = config
        self.clients = clients
        self._executor_factory = executor_factory or http_executor_factory(settings)
        self._stop_event: asyncio.Event | None = None
        self._stop_reason: str | None = None
        self._results: list[ClientResult] = []

    @property
    def results(self) -> list[ClientResult]:
        """Return the per-client counters of the current or last run."""
        return self._results

    @property
    def stop_reason(self) -> str | None:
        """Return why the stop path fired, or None if it has not."""
        return self._stop_reason

    def request_stop(self, reason: str = "stop requested") -> None:
        """Trigger interrupted completion. Idempotent.

        Args:
            reason: Human-readable cause, logged once.
        """
        if self._stop_event is None or self._stop_event.is_set():
            return
        logger.info("Stopping: %s", reason)
        self._stop_reason = reason
        self._stop_event.set()

    async def run(self) -> RunReport:
        """Execute the benchmark and return the aggregated report.

        Returns:
            RunReport with summed counters and elapsed time.

        Raises:
            WorkerFault: If any client raises an unexpected exception.
        """
        start_time = time.monotonic()
        loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        self._stop_reason = None
        self._results = [ClientResult() for _ in range(self.clients)]

        self._install_signal_handlers(loop)
        period_handle: asyncio.TimerHandle | None = None
        if self.config.period is not None:
            period_handle = loop.call_later(
                self.config.period,
                self.request_stop,
                f"period of {self.config.period:g}s elapsed",
            )

        logger.info(
            "Dispatching %d clients: urls=%d, method=%s, stop=%s",
            self.clients,
            len(self.config.urls),
            self.config.method,
            self.config.stop_description,
        )

        tasks = [
            asyncio.create_task(
                run_client(self.config, result, self._executor_factory(result)),
                name=f"client-{i}",
            )
            for i, result in enumerate(self._results)
        ]
        stop_waiter = asyncio.create_task(self._stop_event.wait(), name="stop-waiter")

        try:
            interrupted = await self._wait(tasks, stop_waiter)
            report = aggregate(self._results, start_time, interrupted=interrupted)
        finally:
            if period_handle is not None:
                period_handle.cancel()
            # Handlers stay installed while clients unwind; a repeated
            # signal lands on the already-set stop event.
            try:
                await _cancel_all([*tasks, stop_waiter])
            finally:
                self._remove_signal_handlers(loop)

        logger.info(
            "Run finished: requests=%d, success=%d, elapsed=%.2fs, interrupted=%s",
            report.requests,
            report.success,
            report.elapsed_seconds,
            report.interrupted,
        )
        return report

    async def _wait(
        self,
        tasks: list[asyncio.Task[ClientResult]],
        stop_waiter: asyncio.Task[Any],
    ) -> bool:
        """Block until all clients finish, the stop path fires, or one faults.

        Returns:
            True if the stop path fired first.

        Raises:
            WorkerFault: If a client raised.
        """
        pending: set[asyncio.Task[Any]] = {*tasks, stop_waiter}
        while True:
            done, pending = await asyncio.wait(
                pending, return_when=asyncio.FIRST_COMPLETED
            )
            for task in done:
                if task is stop_waiter or task.cancelled():
                    continue
                exc = task.exception()
                if exc is not None:
                    client_id = tasks.index(task)
                    logger.error("Client %d failed", client_id, exc_info=exc)
                    raise WorkerFault(client_id, f"{type(exc).__name__}: {exc}") from exc

            if stop_waiter in done:
                return True
            if pending == {stop_waiter}:
                return False

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Route SIGINT and SIGTERM into :meth:`request_stop`."""
        if sys.platform != "win32":
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self.request_stop, f"received {sig.name}")
        else:
            # Windows doesn't support add_signal_handler
            signal.signal(
                signal.SIGINT,
                lambda _s, _f: loop.call_soon_threadsafe(self.request_stop, "received SIGINT"),
            )

    def _remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Remove custom signal handlers, restoring defaults."""
        if sys.platform != "win32":
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
        else:
            signal.signal(signal.SIGINT, signal.default_int_handler)


async def _cancel_all(tasks: list[asyncio.Task[Any]]) -> None:
    """Cancel unfinished tasks and wait briefly for them to unwind."""
    pending = [t for t in tasks if not t.done()]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.wait(pending, timeout=2.0)

    # Only the first fault is reported; mark the rest as retrieved.
    for task in tasks:
        if task.done() and not task.cancelled():
            task.exception()


def run_benchmark(
    config: RunConfiguration,
    settings: TransportSettings,
    *,
    clients: int = 100,
    executor_factory: Callable[[ClientResult], RequestExecutor] | None = None,
) -> RunReport:
    """Run a benchmark to completion in a fresh event loop.

    Uses uvloop when it is installed, the default asyncio loop otherwise.

    Args:
        config: Validated run configuration.
        settings: Transport settings.
        clients: Number of concurrent clients.
        executor_factory: Optional per-client executor factory.

    Returns:
        The aggregated RunReport.

    Raises:
        WorkerFault: If any client raises an unexpected exception.
    """
    runner = BenchmarkRunner(
        config,
        settings,
        clients=clients,
        executor_factory=executor_factory,
    )
    return _run_event_loop(runner.run())


def _run_event_loop(coro: Coroutine[Any, Any, RunReport]) -> RunReport:
    """Run ``coro`` on uvloop if available.

    Falls back to the default asyncio event loop on Windows or if uvloop
    is not installed.
    """
    if sys.platform != "win32":
        try:
            import uvloop
        except ImportError:
            logger.debug("uvloop not available, using default asyncio event loop")
        else:
            return uvloop.run(coro)
    return asyncio.run(coro)
