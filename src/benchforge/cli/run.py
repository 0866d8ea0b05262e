"""``benchforge`` command: build the run configuration, run, print the report."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from benchforge import __version__
from benchforge._internal.config import (
    build_configuration,
    build_transport_settings,
    load_config,
)
from benchforge._internal.errors import BenchForgeError, ConfigError
from benchforge._internal.logging import enable_transport_logging, setup_logging
from benchforge.cli.report import format_report
from benchforge.engine.runner import run_benchmark

console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: True if --version was passed.
    """
    if value:
        typer.echo(f"benchforge {__version__}")
        raise typer.Exit


def run_cmd(
    requests: int | None = typer.Option(
        None,
        "--requests",
        "-r",
        help="Number of requests per client. Mutually exclusive with --period.",
    ),
    clients: int = typer.Option(
        100,
        "--clients",
        "-c",
        help="Number of concurrent clients.",
        min=1,
    ),
    url: str | None = typer.Option(
        None,
        "--url",
        "-u",
        help="Target URL.",
    ),
    urls_file: Path | None = typer.Option(
        None,
        "--urls-file",
        "-f",
        help="File with one target URL per line.",
    ),
    keep_alive: bool = typer.Option(
        True,
        "--keep-alive/--no-keep-alive",
        "-k/-K",
        help="Send 'Connection: keep-alive' instead of 'Connection: close'.",
    ),
    reuse_connections: bool = typer.Option(
        True,
        "--reuse-connections/--no-reuse-connections",
        "-qk/-QK",
        help="Reuse transport connections between requests.",
    ),
    data: Path | None = typer.Option(
        None,
        "--data",
        "-d",
        help="File whose contents are sent as the body of a POST request.",
    ),
    period: float | None = typer.Option(
        None,
        "--period",
        "-t",
        help="Run for this many seconds. Mutually exclusive with --requests.",
    ),
    connect_timeout: int = typer.Option(
        5000,
        "--connect-timeout",
        "-tc",
        help="Connect timeout in milliseconds.",
    ),
    write_timeout: int = typer.Option(
        5000,
        "--write-timeout",
        "-tw",
        help="Write idle timeout in milliseconds.",
    ),
    read_timeout: int = typer.Option(
        5000,
        "--read-timeout",
        "-tr",
        help="Read idle timeout in milliseconds.",
    ),
    verbose_log: bool = typer.Option(
        False,
        "--log",
        "-log",
        help="Enable verbose transport logging.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Drive concurrent clients against HTTP endpoints and report throughput."""
    try:
        env = load_config()
        config = build_configuration(
            url=url,
            urls_file=urls_file,
            request_limit=requests,
            period=period,
            post_data_file=data,
            keep_alive=keep_alive,
        )
        settings = build_transport_settings(
            connect_timeout,
            write_timeout,
            read_timeout,
            reuse_connections=reuse_connections,
            pool_size=env.pool_size,
        )
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        console.print("Try 'benchforge --help' for usage.")
        raise typer.Exit(code=1) from exc

    setup_logging(
        level=logging.DEBUG if verbose_log else logging.WARNING,
        log_format=env.log_format,
    )
    if verbose_log:
        enable_transport_logging()

    console.print(
        Panel(
            f"[bold]URLs:[/bold]    {len(config.urls)}\n"
            f"[bold]Method:[/bold]  {config.method}\n"
            f"[bold]Stop:[/bold]    {config.stop_description}",
            title="BenchForge",
            border_style="cyan",
        )
    )
    console.print(f"Dispatching {clients} clients")
    console.print("Waiting for results...")

    try:
        report = run_benchmark(config, settings, clients=clients)
    except BenchForgeError as exc:
        console.print(f"[red]Benchmark failed:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    typer.echo(format_report(report))
