"""Systemic crash-risk composite over macro indicator series."""

from stockpulse.crash._config import CrashConfig, CrashFactorName, CrashLevel
from stockpulse.crash._engine import (
    CrashFactor,
    CrashMeta,
    CrashRisk,
    FactorTrace,
    drawdown,
    evaluate_crash_risk,
    period_return,
)

__all__ = [
    # Config
    "CrashConfig",
    "CrashFactorName",
    "CrashLevel",
    # Results
    "CrashFactor",
    "CrashMeta",
    "CrashRisk",
    "FactorTrace",
    # Engine
    "evaluate_crash_risk",
    # Series helpers
    "drawdown",
    "period_return",
]
