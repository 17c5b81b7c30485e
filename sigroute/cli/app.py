"""Main Typer application: imports and registers all CLI commands.

Entry point: ``sigroute`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from sigroute.cli.commands.decode import decode_cmd
from sigroute.cli.commands.simulate import simulate_cmd
from sigroute.config import config
from sigroute.core.tracing import create_trace_id

app = typer.Typer(
    name="sigroute",
    help="sigroute: routing and dispatch core for stateless telemetry pipelines.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def configure(
    log_level: str = typer.Option(
        None, "--log-level", help="Logging level (defaults to SIGROUTE_LOG_LEVEL)."
    ),
) -> None:
    """Configure process-wide logging before any command runs."""
    logging.basicConfig(level=(log_level or config.log_level).upper())


# Register subcommands
app.command(name="simulate", help="Run a message through its route locally.")(simulate_cmd)
app.command(name="decode", help="Decode the envelope carried by an event file.")(decode_cmd)


@app.command(name="trace-id", help="Print a new trace identifier.")
def trace_id_cmd() -> None:
    Console().print(create_trace_id())


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
