"""Calibration fit command and the reference-directory calibration cache."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import typer

from cli.display import error_panel, show_calibration, warning_panel
from cli.loaders import load_bars
from stockpulse.config import get_settings
from stockpulse.exceptions import StockPulseError
from stockpulse.forecast import (
    CalibrationCache,
    CalibrationConfig,
    build_calibration_model,
)
from stockpulse.records import Bar

logger = logging.getLogger(__name__)


def _replay_config() -> CalibrationConfig:
    return dataclasses.replace(
        CalibrationConfig(), max_workers=get_settings().replay_workers
    )


def load_reference_histories(directory: Path) -> dict[str, list[Bar]]:
    """Bars of every configured reference symbol found as ``<symbol>.csv``."""
    histories: dict[str, list[Bar]] = {}
    for symbol in get_settings().reference_symbols_list:
        path = directory / f"{symbol}.csv"
        if not path.exists():
            logger.warning("Reference %s not found in %s", symbol, directory)
            continue
        histories[symbol] = load_bars(path)
    return histories


def reference_calibration_cache(directory: Path) -> CalibrationCache:
    """Cache that rebuilds from ``directory`` once the settings TTL expires."""
    config = _replay_config()
    return CalibrationCache(
        lambda: build_calibration_model(load_reference_histories(directory), config),
        ttl_seconds=get_settings().calibration_ttl_seconds,
    )


def calibrate(
    files: list[Path] = typer.Argument(..., exists=True, help="One bar CSV per reference security"),
) -> None:
    """Replay reference securities and fit the probability calibration."""
    try:
        histories = {path.stem: load_bars(path) for path in files}
    except StockPulseError as exc:
        error_panel(str(exc))
        raise typer.Exit(code=1) from exc

    model = build_calibration_model(histories, _replay_config())
    if model.is_identity:
        warning_panel(
            f"Too few samples ({model.sample_size}); identity calibration in effect."
        )
    show_calibration(model)
