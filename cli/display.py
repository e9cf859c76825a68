"""Rich rendering helpers for CLI output (single-responsibility display layer)."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stockpulse.crash import CrashLevel, CrashRisk
from stockpulse.forecast import CalibrationModel, Horizon
from stockpulse.pipeline import SecurityAnalysis

console = Console()

_LEVEL_STYLE = {
    CrashLevel.NORMAL: "green",
    CrashLevel.WARNING: "yellow",
    CrashLevel.HIGH: "red",
    CrashLevel.CRASH: "bold red",
    CrashLevel.INSUFFICIENT_DATA: "dim",
}


def _fmt(value: float | None, digits: int = 1) -> str:
    return "n/a" if value is None else f"{value:.{digits}f}"


# ------------------------------------------------------------------
# Panels
# ------------------------------------------------------------------


def error_panel(msg: str) -> None:
    """Print a red error panel."""
    console.print(Panel(msg, title="Error", border_style="red"))


def success_panel(msg: str) -> None:
    """Print a green success panel."""
    console.print(Panel(msg, title="Success", border_style="green"))


def warning_panel(msg: str) -> None:
    """Print a yellow warning panel."""
    console.print(Panel(msg, title="Warning", border_style="yellow"))


def info_panel(title: str, body: str) -> None:
    """Print a blue informational panel."""
    console.print(Panel(body, title=title, border_style="blue"))


# ------------------------------------------------------------------
# Tables
# ------------------------------------------------------------------


def dict_table(data: dict[str, Any], title: str = "") -> None:
    """Render a key/value table from a dict."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(str(key), str(value))
    console.print(table)


def list_table(
    rows: Sequence[dict[str, Any]],
    columns: Sequence[str],
    title: str = "",
) -> None:
    """Render a tabular display from a list of dicts.

    Only the keys listed in *columns* are shown, in order.
    """
    if not rows:
        console.print(f"[dim]No data to display for '{title}'.[/dim]")
        return

    table = Table(title=title, show_header=True, header_style="bold cyan")
    for col in columns:
        table.add_column(col)
    for row in rows:
        table.add_row(*(str(row.get(col, "")) for col in columns))
    console.print(table)


# ------------------------------------------------------------------
# Domain views
# ------------------------------------------------------------------


def show_analysis(result: SecurityAnalysis) -> None:
    """Factor table, forecast, strategy card and risk flags of one security."""
    rows = [
        {
            "Factor": name.value,
            "Score": _fmt(score.value),
            "Reason": score.reasons[0],
        }
        for name, score in result.factors.items()
    ]
    rows.append(
        {
            "Factor": "catalyst",
            "Score": f"{result.catalyst.value:+.0f}",
            "Reason": result.catalyst.reasons[0],
        }
    )
    rows.append(
        {
            "Factor": "overall",
            "Score": _fmt(result.overall.value),
            "Reason": f"coverage {result.overall.coverage:.0%}",
        }
    )
    list_table(rows, ("Factor", "Score", "Reason"), title=f"{result.symbol} @ {result.as_of}")

    forecast = result.forecast
    list_table(
        [
            {
                "Horizon": h.value,
                "Raw %": _fmt(forecast.raw[h]),
                "Calibrated %": _fmt(forecast.calibrated[h]),
            }
            for h in Horizon
        ],
        ("Horizon", "Raw %", "Calibrated %"),
        title=f"Up probability (big move {forecast.big_move:.1f}%)",
    )

    decision = result.strategy
    card = decision.action_cards[0]
    body = "\n".join(
        [
            f"[bold]{card.summary}[/bold]",
            "",
            "Conditions: " + "; ".join(card.conditions),
            "Invalidation: " + "; ".join(card.invalidation),
            "Plan: " + "; ".join(card.plan),
            "Risks: " + "; ".join(card.risk_notes),
            "",
            f"Consistency {result.consistency.score:.1f} ({result.consistency.level.value})",
        ]
    )
    title = (
        f"{decision.signal.value.upper()} | {decision.mode.value} | "
        f"confidence {decision.confidence:.1f} | rule {decision.chosen_rule_id}"
    )
    info_panel(title, body)
    if decision.veto_reason:
        warning_panel(decision.veto_reason)

    if result.risk_flags:
        console.print(
            "[yellow]Risk flags:[/yellow] "
            + ", ".join(sorted(f.value for f in result.risk_flags))
        )

    if result.backtest is not None:
        list_table(
            [
                {
                    "Horizon": f"{h}d",
                    "Hits": s.hits,
                    "Trials": s.total,
                    "Hit rate": f"{s.hit_rate:.1%}",
                }
                for h, s in result.backtest.stats.items()
            ],
            ("Horizon", "Hits", "Trials", "Hit rate"),
            title=f"Flow signal backtest (last {result.backtest.window} bars)",
        )


def show_crash(risk: CrashRisk) -> None:
    """Headline panel, factor table and triggers of a crash verdict."""
    style = _LEVEL_STYLE[risk.level]
    console.print(
        Panel(
            f"{risk.summary}\n\nScore: {_fmt(risk.score)}",
            title=f"{risk.headline} [{risk.level.value}]",
            border_style=style,
        )
    )
    list_table(
        [
            {
                "Factor": name.value,
                "Score": _fmt(f.score),
                "Inputs": ", ".join(f.inputs) or "-",
            }
            for name, f in risk.factors.items()
        ],
        ("Factor", "Score", "Inputs"),
        title="Crash sub-factors",
    )
    for trigger in risk.triggers:
        console.print(f"  - {trigger}")


def show_calibration(model: CalibrationModel) -> None:
    """Coefficients and reliability bins of a calibration model."""
    dict_table(
        {
            "slope": model.slope,
            "intercept": model.intercept,
            "samples": model.sample_size,
            "identity": model.is_identity,
        },
        title="Calibration",
    )
    list_table(
        [
            {"Bin": b.label, "Samples": b.total, "Win rate %": _fmt(b.win_rate, 2)}
            for b in model.bins
        ],
        ("Bin", "Samples", "Win rate %"),
        title="Reliability bins",
    )
