"""Fixed-layout text rendering of a run report."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from benchforge.metrics.models import RunReport

_LABEL_WIDTH = 32


def _line(label: str, value: str, unit: str) -> str:
    return f"{label + ':':<{_LABEL_WIDTH}}{value:>13} {unit}"


def format_report(report: RunReport) -> str:
    """Render a report in the fixed textual layout.

    Args:
        report: Aggregated run report.

    Returns:
        The report text, starting with a blank line, without a trailing
        newline.
    """
    lines = [
        "",
        _line("Requests", f"{report.requests:d}", "hits"),
        _line("Successful requests", f"{report.success:d}", "hits"),
        _line("Network failed", f"{report.network_failed:d}", "hits"),
        _line("Bad requests failed (!2xx)", f"{report.bad_failed:d}", "hits"),
        _line("Successful requests rate", f"{report.success_rate:.2f}", "hits/sec"),
        _line("Read throughput", f"{report.read_rate:.2f}", "bytes/sec"),
        _line("Write throughput", f"{report.write_rate:.2f}", "bytes/sec"),
        _line("Test time", f"{report.elapsed_seconds:.2f}", "sec"),
    ]
    return "\n".join(lines)
