"""Summing per-client counters into a run report."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from benchforge.metrics.models import RunReport

if TYPE_CHECKING:
    from collections.abc import Sequence

    from benchforge.metrics.models import ClientResult


def aggregate(
    results: Sequence[ClientResult],
    start_time: float,
    *,
    end_time: float | None = None,
    interrupted: bool = False,
) -> RunReport:
    """Sum client counters into a :class:`RunReport`.

    This is a best-effort read: when called while clients are still
    running, each counter is read once and the totals reflect whatever the
    clients had recorded at that instant.

    Args:
        results: One ClientResult per dispatched client.
        start_time: ``time.monotonic()`` value recorded before dispatch.
        end_time: ``time.monotonic()`` value to measure up to. Defaults to
            now.
        interrupted: Whether the run ended through the stop path.

    Returns:
        The aggregated RunReport.
    """
    if end_time is None:
        end_time = time.monotonic()

    requests = success = network_failed = bad_failed = 0
    read_throughput = write_throughput = 0

    for result in results:
        requests += result.requests
        success += result.success
        network_failed += result.network_failed
        bad_failed += result.bad_failed
        read_throughput += result.read_throughput
        write_throughput += result.write_throughput

    return RunReport(
        clients=len(results),
        requests=requests,
        success=success,
        network_failed=network_failed,
        bad_failed=bad_failed,
        read_throughput=read_throughput,
        write_throughput=write_throughput,
        elapsed_seconds=max(end_time - start_time, 0.0),
        interrupted=interrupted,
    )
