"""Historical hit-rate backtest of a discrete flow signal."""

from stockpulse.backtest._config import BacktestConfig, BacktestSignal
from stockpulse.backtest._evaluator import (
    BacktestResult,
    HitStats,
    day_signal,
    run_backtest,
)

__all__ = [
    "BacktestConfig",
    "BacktestResult",
    "BacktestSignal",
    "HitStats",
    "day_signal",
    "run_backtest",
]
