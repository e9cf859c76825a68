"""Per-security factor scorers and availability-aware composites."""

from stockpulse.factors._config import (
    RISK_FLAG_LABELS,
    FactorName,
    FlowConfig,
    FundamentalConfig,
    RiskFlag,
    ShortTermConfig,
    TrendConfig,
    VolatilityConfig,
    risk_flag_label,
)
from stockpulse.factors._flow import FlowVerdict, compute_flow_score
from stockpulse.factors._fundamental import compute_fundamental_score
from stockpulse.factors._indicators import (
    MACDResult,
    atr,
    bollinger_width_series,
    ema_series,
    macd,
    percentile_rank,
    period_return_pct,
    rsi,
    sma,
    true_ranges,
)
from stockpulse.factors._key_levels import KeyLevels, compute_key_levels
from stockpulse.factors._score import (
    Component,
    CompositeScore,
    FactorScore,
    compute_composite_score,
    top_reasons,
)
from stockpulse.factors._short_term import compute_short_term_score
from stockpulse.factors._trend import compute_trend_score
from stockpulse.factors._volatility import compute_volatility_score

__all__ = [
    # Config
    "FactorName",
    "FlowConfig",
    "FundamentalConfig",
    "RiskFlag",
    "RISK_FLAG_LABELS",
    "ShortTermConfig",
    "TrendConfig",
    "VolatilityConfig",
    "risk_flag_label",
    # Containers
    "Component",
    "CompositeScore",
    "FactorScore",
    "FlowVerdict",
    "KeyLevels",
    # Scorers
    "compute_composite_score",
    "compute_flow_score",
    "compute_fundamental_score",
    "compute_key_levels",
    "compute_short_term_score",
    "compute_trend_score",
    "compute_volatility_score",
    "top_reasons",
    # Indicators
    "MACDResult",
    "atr",
    "bollinger_width_series",
    "ema_series",
    "macd",
    "percentile_rank",
    "period_return_pct",
    "rsi",
    "sma",
    "true_ranges",
]
