"""Logistic up-move probabilities and their calibrated form."""

from __future__ import annotations

from dataclasses import dataclass, field

from scipy.special import expit

from stockpulse._numeric import clamp, round_half_up
from stockpulse.forecast._config import ForecastConfig, Horizon
from stockpulse.forecast._model import CalibrationModel


@dataclass(frozen=True)
class ForecastFeatures:
    """Factor scores mapped to ``[-1, 1]`` features.

    A missing score maps to 0, the neutral feature, rather than being
    dropped from the logit.
    """

    trend: float
    flow: float
    fundamental: float
    news: float
    volatility: float
    opportunity: float
    risk: float
    volume_spike: float
    gap: float

    def linear(self) -> dict[str, float]:
        return {
            "opportunity": self.opportunity,
            "trend": self.trend,
            "news": self.news,
            "flow": self.flow,
            "risk": self.risk,
            "fundamental": self.fundamental,
        }


@dataclass(frozen=True)
class FeatureContribution:
    key: str
    value: float
    weight: float
    contribution: float


@dataclass(frozen=True)
class RawForecast:
    """Uncalibrated probabilities with the logits that produced them."""

    up: dict[Horizon, float]
    big_move: float
    logits: dict[Horizon, float]
    big_move_logit: float
    features: ForecastFeatures
    breakdown: dict[Horizon, tuple[FeatureContribution, ...]] = field(
        default_factory=dict
    )


def _normalize(score: float | None) -> float:
    return ((50.0 if score is None else score) - 50.0) / 50.0


def _probability(logit: float) -> float:
    return round_half_up(float(expit(logit)) * 100.0, 1)


def build_features(
    *,
    trend: float | None,
    flow: float | None,
    fundamental: float | None,
    catalyst: float,
    volatility: float | None,
    opportunity: float | None,
    pullback_risk: float | None,
    volume_spike: float | None,
    gap: float | None,
    config: ForecastConfig | None = None,
) -> ForecastFeatures:
    if config is None:
        config = ForecastConfig()
    spike = 1.0 if volume_spike is None else volume_spike
    return ForecastFeatures(
        trend=_normalize(trend),
        flow=_normalize(flow),
        fundamental=0.0 if fundamental is None else _normalize(fundamental),
        news=catalyst / 100.0,
        volatility=_normalize(volatility),
        opportunity=_normalize(opportunity),
        risk=_normalize(pullback_risk),
        volume_spike=clamp((spike - 1.0) / config.spike_scale, 0.0, 1.0),
        gap=clamp(abs(gap or 0.0) / config.gap_scale, 0.0, 1.0),
    )


def compute_raw_probabilities(
    features: ForecastFeatures,
    config: ForecastConfig | None = None,
) -> RawForecast:
    """Evaluate every horizon logit and the large-move logit.

    Probabilities are ``sigmoid(logit) * 100`` rounded to one decimal.
    """
    if config is None:
        config = ForecastConfig()

    linear = features.linear()
    logits: dict[Horizon, float] = {}
    breakdown: dict[Horizon, tuple[FeatureContribution, ...]] = {}
    for horizon in Horizon:
        weights = config.horizons[horizon].as_dict()
        parts = tuple(
            FeatureContribution(key, linear[key], w, w * linear[key])
            for key, w in weights.items()
        )
        breakdown[horizon] = parts
        logits[horizon] = sum(p.contribution for p in parts)

    big_move_logit = (
        config.big_move_volatility * features.volatility
        + config.big_move_catalyst * abs(features.news)
        + config.big_move_spike * features.volume_spike
        + config.big_move_gap * features.gap
    )
    return RawForecast(
        up={h: _probability(logit) for h, logit in logits.items()},
        big_move=_probability(big_move_logit),
        logits=logits,
        big_move_logit=big_move_logit,
        features=features,
        breakdown=breakdown,
    )


def apply_calibration(probability: float, slope: float, intercept: float) -> float:
    """``clamp(round(slope * p + intercept, 1), 0, 100)``."""
    return clamp(round_half_up(slope * probability + intercept, 1), 0.0, 100.0)


@dataclass(frozen=True)
class ProbabilityForecast:
    """Raw and calibrated up-move probabilities.

    Attributes
    ----------
    raw : dict[Horizon, float]
        Uncalibrated probabilities on ``[0, 100]``.
    calibrated : dict[Horizon, float]
        ``a * raw + b`` clamped to ``[0, 100]``.
    big_move : float
        Probability of a large move; never calibrated.
    breakdown : dict[Horizon, tuple[FeatureContribution, ...]]
        Per-feature logit contributions for every horizon.
    calibration : CalibrationModel
        Model applied to the raw values.
    """

    raw: dict[Horizon, float]
    calibrated: dict[Horizon, float]
    big_move: float
    breakdown: dict[Horizon, tuple[FeatureContribution, ...]]
    features: ForecastFeatures
    calibration: CalibrationModel

    def up(self, horizon: Horizon | str) -> float:
        return self.calibrated[Horizon(horizon)]

    @property
    def up_1d(self) -> float:
        return self.calibrated[Horizon.ONE_DAY]

    @property
    def up_3d(self) -> float:
        return self.calibrated[Horizon.THREE_DAY]

    @property
    def up_5d(self) -> float:
        return self.calibrated[Horizon.FIVE_DAY]


def predict_probabilities(
    features: ForecastFeatures,
    calibration: CalibrationModel | None = None,
    config: ForecastConfig | None = None,
) -> ProbabilityForecast:
    """Raw probabilities corrected by the active calibration model.

    Without a model the identity transform applies and the calibrated
    values equal the raw ones.
    """
    if calibration is None:
        calibration = CalibrationModel.identity()
    raw = compute_raw_probabilities(features, config)
    return ProbabilityForecast(
        raw=dict(raw.up),
        calibrated={
            h: apply_calibration(p, calibration.slope, calibration.intercept)
            for h, p in raw.up.items()
        },
        big_move=raw.big_move,
        breakdown=raw.breakdown,
        features=features,
        calibration=calibration,
    )
