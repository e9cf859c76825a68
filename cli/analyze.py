"""Per-security analysis command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from cli.calibrate import reference_calibration_cache
from cli.display import error_panel, show_analysis
from cli.loaders import (
    load_bars,
    load_flows,
    load_macro,
    load_margin,
    load_news,
    load_revenue,
)
from stockpulse.exceptions import StockPulseError
from stockpulse.pipeline import SecurityInputs, analyze_security, evaluate_crash_risk


def analyze(
    bars: Path = typer.Argument(..., exists=True, help="Daily OHLCV CSV"),
    symbol: str = typer.Option("", "--symbol", "-s", help="Ticker label (defaults to file stem)"),
    flows: Optional[Path] = typer.Option(None, exists=True, help="Institutional flow CSV"),
    margin: Optional[Path] = typer.Option(None, exists=True, help="Margin balance CSV"),
    revenue: Optional[Path] = typer.Option(None, exists=True, help="Monthly revenue CSV"),
    news: Optional[Path] = typer.Option(None, exists=True, help="Headline CSV"),
    macro: Optional[Path] = typer.Option(
        None, exists=True, help="Long-format macro CSV; feeds the crash veto"
    ),
    reference: Optional[Path] = typer.Option(
        None,
        exists=True,
        file_okay=False,
        help="Directory of <symbol>.csv bars for the configured reference symbols",
    ),
    backtest: bool = typer.Option(False, "--backtest", help="Run the flow-signal backtest"),
) -> None:
    """Score one security and print its strategy card."""
    try:
        inputs = SecurityInputs(
            symbol=symbol or bars.stem,
            bars=load_bars(bars),
            flows=load_flows(flows) if flows else (),
            margin=load_margin(margin) if margin else (),
            revenue=load_revenue(revenue) if revenue else (),
            news=load_news(news) if news else (),
        )
        crash_risk = evaluate_crash_risk(load_macro(macro)) if macro else None
        calibration = reference_calibration_cache(reference).get() if reference else None
        result = analyze_security(
            inputs,
            calibration=calibration,
            crash_risk=crash_risk,
            run_backtest=backtest,
        )
    except StockPulseError as exc:
        error_panel(str(exc))
        raise typer.Exit(code=1) from exc

    show_analysis(result)
