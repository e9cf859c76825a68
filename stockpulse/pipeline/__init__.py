"""Per-security analysis orchestration.

Composes the factor scorers, news catalyst, forecaster, consistency
aggregator and strategy selector into a single call.  The market-wide
crash composite is re-exported for convenience.
"""

from stockpulse.crash import CrashRisk, evaluate_crash_risk
from stockpulse.pipeline._config import (
    PipelineConfig,
    SecurityAnalysis,
    SecurityInputs,
)
from stockpulse.pipeline._orchestrator import analyze_security

__all__ = [
    "CrashRisk",
    "PipelineConfig",
    "SecurityAnalysis",
    "SecurityInputs",
    "analyze_security",
    "evaluate_crash_risk",
]
