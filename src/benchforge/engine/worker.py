"""Client worker loop: issue requests and classify every outcome."""

from __future__ import annotations

import asyncio
from enum import Enum, auto
from typing import TYPE_CHECKING

from benchforge._internal.errors import ResponseDrainError, TransportError
from benchforge._internal.logging import get_logger
from benchforge.engine.executor import BenchRequest

if TYPE_CHECKING:
    from benchforge._internal.config import RunConfiguration
    from benchforge.engine.executor import RequestExecutor
    from benchforge.metrics.models import ClientResult

logger = get_logger("engine.worker")


class Outcome(Enum):
    """Classification of a single request attempt."""

    SUCCESS = auto()
    NETWORK_FAILED = auto()
    BAD_STATUS = auto()


def build_request(config: RunConfiguration, url: str) -> BenchRequest:
    """Build the request sent to ``url`` on every pass.

    Args:
        config: Run configuration supplying method, body and keep-alive.
        url: Target URL.

    Returns:
        The request description.
    """
    connection = "keep-alive" if config.keep_alive else "close"
    return BenchRequest(
        method=config.method,
        url=url,
        body=config.body,
        headers={"Connection": connection},
    )


def record_outcome(result: ClientResult, outcome: Outcome) -> None:
    """Count one attempt and its outcome.

    Both counters move together, so ``requests`` always equals the sum of
    the three outcome buckets.

    Args:
        result: The client's counters.
        outcome: Classification of the attempt.
    """
    result.requests += 1
    if outcome is Outcome.SUCCESS:
        result.success += 1
    elif outcome is Outcome.BAD_STATUS:
        result.bad_failed += 1
    else:
        result.network_failed += 1


async def attempt(executor: RequestExecutor, request: BenchRequest) -> Outcome:
    """Send one request, drain its body and classify the result.

    Args:
        executor: Executor to send through.
        request: The request to send.

    Returns:
        The attempt's outcome. Transport and body-read failures are
        outcomes, never exceptions; anything else propagates.
    """
    try:
        response = await executor.send(request)
    except TransportError as exc:
        logger.debug("Request failed: %s", exc)
        return Outcome.NETWORK_FAILED

    try:
        await response.drain()
    except ResponseDrainError as exc:
        logger.debug("Reading response body failed: %s", exc)
        return Outcome.NETWORK_FAILED

    if response.status == 200:
        return Outcome.SUCCESS
    return Outcome.BAD_STATUS


async def run_client(
    config: RunConfiguration,
    result: ClientResult,
    executor: RequestExecutor,
) -> ClientResult:
    """Run one client until its stop condition is met.

    Every pass visits each URL once, in order. The request limit is only
    checked between passes, so a client may overshoot it by up to
    ``len(config.urls) - 1`` requests. A period run never stops on its own;
    the runner ends it.

    Args:
        config: Run configuration.
        result: Counters owned by this client.
        executor: Executor this client sends through. Entered and exited
            here.

    Returns:
        The same ``result``, for convenience.
    """
    requests = [build_request(config, url) for url in config.urls]
    limit = config.request_limit

    async with executor:
        while limit is None or result.requests < limit:
            # Yield once per pass so the stop path runs even when every
            # attempt fails without suspending.
            await asyncio.sleep(0)
            for request in requests:
                outcome = await attempt(executor, request)
                record_outcome(result, outcome)

    return result
