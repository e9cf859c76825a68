"""Market-wide crash-risk command."""

from __future__ import annotations

from pathlib import Path

import typer

from cli.display import error_panel, show_crash
from cli.loaders import load_macro
from stockpulse.crash import evaluate_crash_risk
from stockpulse.exceptions import StockPulseError


def crash(
    macro: Path = typer.Argument(..., exists=True, help="Long-format CSV: symbol,date,close"),
) -> None:
    """Evaluate systemic crash risk from macro indicator closes."""
    try:
        risk = evaluate_crash_risk(load_macro(macro))
    except StockPulseError as exc:
        error_panel(str(exc))
        raise typer.Exit(code=1) from exc
    show_crash(risk)
