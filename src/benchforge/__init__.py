"""BenchForge: concurrent HTTP load generation with connection-level throughput."""

from __future__ import annotations

from benchforge._internal.config import (
    RunConfiguration,
    TransportSettings,
    build_configuration,
    build_transport_settings,
)
from benchforge.engine.executor import BenchRequest, HttpExecutor, RequestExecutor
from benchforge.engine.runner import BenchmarkRunner, run_benchmark
from benchforge.metrics.models import ClientResult, RunReport

__version__ = "0.1.0"

__all__ = [
    "BenchRequest",
    "BenchmarkRunner",
    "ClientResult",
    "HttpExecutor",
    "RequestExecutor",
    "RunConfiguration",
    "RunReport",
    "TransportSettings",
    "build_configuration",
    "build_transport_settings",
    "run_benchmark",
]
