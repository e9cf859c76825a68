"""stockpulse CLI: Typer app factory and entry point."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from cli.analyze import analyze
from cli.calibrate import calibrate
from cli.crash import crash
from stockpulse.config import get_settings

app = typer.Typer(
    name="stockpulse",
    help="Score securities and market crash risk from CSV files.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        from stockpulse import __version__

        typer.echo(f"stockpulse CLI {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", help="Log at DEBUG level."),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show CLI version and exit.",
    ),
) -> None:
    """Global options applied before any sub-command."""
    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register commands
app.command()(analyze)
app.command()(crash)
app.command()(calibrate)


if __name__ == "__main__":
    app()
