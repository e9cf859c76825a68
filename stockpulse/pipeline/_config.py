"""Configuration, inputs and result types for per-security analysis."""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from dataclasses import dataclass, field

from stockpulse.backtest import BacktestConfig, BacktestResult
from stockpulse.consistency import ConsistencyConfig, ConsistencyResult
from stockpulse.exceptions import ConfigurationError
from stockpulse.factors import (
    CompositeScore,
    FactorName,
    FactorScore,
    FlowConfig,
    FundamentalConfig,
    KeyLevels,
    RiskFlag,
    ShortTermConfig,
    TrendConfig,
    VolatilityConfig,
)
from stockpulse.forecast import ForecastConfig, ProbabilityForecast
from stockpulse.news import CatalystConfig, CatalystScore
from stockpulse.records import (
    Bar,
    FlowRecord,
    MarginRecord,
    NewsItem,
    RevenueRecord,
)
from stockpulse.strategy import StrategyConfig, StrategyDecision


@dataclass(frozen=True)
class SecurityInputs:
    """Raw records of one security.

    Parameters
    ----------
    symbol : str
    bars : Sequence[Bar]
        Daily bars in any order; duplicates are resolved on normalisation.
    flows, margin, revenue, news : Sequence
        Optional auxiliary records.
    as_of : date or None
        Reference date for news decay; defaults to the last bar date.
    """

    symbol: str
    bars: Sequence[Bar]
    flows: Sequence[FlowRecord] = ()
    margin: Sequence[MarginRecord] = ()
    revenue: Sequence[RevenueRecord] = ()
    news: Sequence[NewsItem] = ()
    as_of: dt.date | None = None


@dataclass(frozen=True)
class PipelineConfig:
    """Composite weights and the sub-configurations of every stage.

    Parameters
    ----------
    composite_weights : dict[FactorName, float]
        Weights of the overall score; renormalised over available factors.
    crash_confidence_divisor : float
        Strategy confidence is multiplied by ``1 - crash / divisor`` when
        a crash score is supplied.
    """

    composite_weights: dict[FactorName, float] = field(
        default_factory=lambda: {
            FactorName.TREND: 0.4,
            FactorName.FLOW: 0.3,
            FactorName.FUNDAMENTAL: 0.2,
            FactorName.SHORT_TERM: 0.1,
        }
    )
    crash_confidence_divisor: float = 150.0
    trend: TrendConfig = field(default_factory=TrendConfig)
    flow: FlowConfig = field(default_factory=FlowConfig)
    fundamental: FundamentalConfig = field(default_factory=FundamentalConfig)
    volatility: VolatilityConfig = field(default_factory=VolatilityConfig)
    short_term: ShortTermConfig = field(default_factory=ShortTermConfig)
    catalyst: CatalystConfig = field(default_factory=CatalystConfig)
    consistency: ConsistencyConfig = field(default_factory=ConsistencyConfig)
    forecast: ForecastConfig = field(default_factory=ForecastConfig)
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    backtest: BacktestConfig = field(default_factory=BacktestConfig)

    def __post_init__(self) -> None:
        if any(w < 0 for w in self.composite_weights.values()):
            raise ConfigurationError("composite weights must be non-negative")
        if sum(self.composite_weights.values()) <= 0:
            raise ConfigurationError("composite weights must not all be zero")
        if self.crash_confidence_divisor <= 100:
            raise ConfigurationError("crash_confidence_divisor must exceed 100")

    @classmethod
    def for_technical_only(cls) -> PipelineConfig:
        """Overall score from trend and short-term opportunity only."""
        return cls(
            composite_weights={
                FactorName.TREND: 0.8,
                FactorName.SHORT_TERM: 0.2,
            }
        )


@dataclass(frozen=True)
class SecurityAnalysis:
    """Everything computed for one security.

    Attributes
    ----------
    symbol : str
    as_of : date or None
        Last bar date, or the explicit reference date.
    factors : dict[FactorName, FactorScore]
        Trend, flow, fundamental, volatility and short-term results.
    catalyst : CatalystScore
    forecast : ProbabilityForecast
    consistency : ConsistencyResult
    key_levels : KeyLevels
    strategy : StrategyDecision
    overall : CompositeScore
        Renormalised weighted score.
    risk_flags : frozenset[RiskFlag]
        Union of every factor's flags.
    backtest : BacktestResult or None
        Present only when requested.
    """

    symbol: str
    as_of: dt.date | None
    factors: dict[FactorName, FactorScore]
    catalyst: CatalystScore
    forecast: ProbabilityForecast
    consistency: ConsistencyResult
    key_levels: KeyLevels
    strategy: StrategyDecision
    overall: CompositeScore
    risk_flags: frozenset[RiskFlag] = frozenset()
    backtest: BacktestResult | None = None

    def factor(self, name: FactorName | str) -> FactorScore:
        return self.factors[FactorName(name)]

    @property
    def trend(self) -> FactorScore:
        return self.factors[FactorName.TREND]

    @property
    def flow(self) -> FactorScore:
        return self.factors[FactorName.FLOW]

    @property
    def fundamental(self) -> FactorScore:
        return self.factors[FactorName.FUNDAMENTAL]

    @property
    def volatility(self) -> FactorScore:
        return self.factors[FactorName.VOLATILITY]

    @property
    def short_term(self) -> FactorScore:
        return self.factors[FactorName.SHORT_TERM]
