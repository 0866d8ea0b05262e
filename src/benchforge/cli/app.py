"""Main Typer application: entry point for the ``benchforge`` CLI."""

from __future__ import annotations

import typer

from benchforge.cli.run import run_cmd

app = typer.Typer(
    name="benchforge",
    help="Concurrent HTTP load generator.",
    add_completion=False,
    rich_markup_mode="rich",
)

app.command(help="Run a benchmark against one or more URLs.")(run_cmd)


def main() -> None:
    """Console-script entry point."""
    app()
