"""Tests for the fixed-layout report text."""

from __future__ import annotations

from benchforge.cli.report import format_report
from benchforge.metrics.models import RunReport


def _report() -> RunReport:
    return RunReport(
        clients=2,
        requests=120,
        success=100,
        network_failed=15,
        bad_failed=5,
        read_throughput=50_000,
        write_throughput=12_345,
        elapsed_seconds=4.0,
    )


def test_layout():
    lines = format_report(_report()).split("\n")

    assert lines == [
        "",
        "Requests:                                 120 hits",
        "Successful requests:                      100 hits",
        "Network failed:                            15 hits",
        "Bad requests failed (!2xx):                 5 hits",
        "Successful requests rate:               25.00 hits/sec",
        "Read throughput:                     12500.00 bytes/sec",
        "Write throughput:                     3086.25 bytes/sec",
        "Test time:                               4.00 sec",
    ]


def test_values_right_aligned_in_same_column():
    lines = format_report(_report()).split("\n")[1:]
    assert {len(line.rsplit(" ", 1)[0]) for line in lines} == {45}


def test_zero_elapsed_does_not_divide_by_zero():
    report = RunReport(
        clients=1,
        requests=0,
        success=0,
        network_failed=0,
        bad_failed=0,
        read_throughput=0,
        write_throughput=0,
        elapsed_seconds=0.0,
    )
    assert "0.00 hits/sec" in format_report(report)
