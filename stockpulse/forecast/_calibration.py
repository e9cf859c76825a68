"""Historical replay calibration and its time-bounded cache."""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

import numpy as np
from sklearn.linear_model import LinearRegression

from stockpulse._numeric import round_half_up
from stockpulse.factors import (
    compute_short_term_score,
    compute_trend_score,
    compute_volatility_score,
)
from stockpulse.forecast._config import CalibrationConfig, ForecastConfig, Horizon
from stockpulse.forecast._model import CalibrationBin, CalibrationModel
from stockpulse.forecast._probability import build_features, compute_raw_probabilities
from stockpulse.records import Bar

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 6 * 60 * 60


@dataclass(frozen=True)
class CalibrationSample:
    raw_probability: float
    outcome: int


# ---------------------------------------------------------------------------
# Replay
# ---------------------------------------------------------------------------


def replay_samples(
    bars: Sequence[Bar],
    config: CalibrationConfig | None = None,
    forecast_config: ForecastConfig | None = None,
) -> list[CalibrationSample]:
    """Replay the forecaster point-in-time over one security's history.

    At each index ``i`` only ``bars[: i + 1]`` is visible to the scorers.
    Flow is fixed at neutral, fundamentals are unavailable and the
    catalyst is zero, since none of those histories is replayed.  The
    outcome is 1 when the close ``forward_bars`` later is strictly higher.
    """
    if config is None:
        config = CalibrationConfig()

    samples: list[CalibrationSample] = []
    last = len(bars) - config.forward_bars
    for i in range(config.start_index, last):
        history = bars[: i + 1]
        trend = compute_trend_score(history)
        volatility = compute_volatility_score(history)
        short_term = compute_short_term_score(history, trend, volatility)
        features = build_features(
            trend=trend.value,
            flow=50.0,
            fundamental=None,
            catalyst=0.0,
            volatility=volatility.value,
            opportunity=short_term.value,
            pullback_risk=short_term.metric("pullback_risk_score"),
            volume_spike=volatility.metric("volume_spike"),
            gap=volatility.metric("gap"),
            config=forecast_config,
        )
        raw = compute_raw_probabilities(features, forecast_config)
        outcome = int(bars[i + config.forward_bars].close > bars[i].close)
        samples.append(CalibrationSample(raw.up[Horizon.FIVE_DAY], outcome))
    return samples


# ---------------------------------------------------------------------------
# Fitting
# ---------------------------------------------------------------------------


def _bins(
    raw: np.ndarray, outcomes: np.ndarray, n_bins: int
) -> tuple[CalibrationBin, ...]:
    width = 100.0 / n_bins
    idx = np.clip(np.floor(raw / width).astype(int), 0, n_bins - 1)
    bins = []
    for b in range(n_bins):
        mask = idx == b
        total = int(mask.sum())
        win_rate = (
            round_half_up(float(outcomes[mask].mean()) * 100.0, 2) if total else 0.0
        )
        bins.append(CalibrationBin(b * width, (b + 1) * width, total, win_rate))
    return tuple(bins)


def fit_calibration(
    samples: Sequence[CalibrationSample],
    config: CalibrationConfig | None = None,
) -> CalibrationModel:
    """Fit ``outcome * 100 ~ slope * raw + intercept`` by least squares.

    Returns the identity model below ``config.min_samples`` samples or
    when the raw probabilities have zero variance.
    """
    if config is None:
        config = CalibrationConfig()

    if len(samples) < config.min_samples:
        logger.info(
            "Calibration underfit: %d samples (< %d); using identity",
            len(samples),
            config.min_samples,
        )
        return CalibrationModel.identity()

    raw = np.array([s.raw_probability for s in samples], dtype=np.float64)
    outcomes = np.array([s.outcome for s in samples], dtype=np.float64)
    if np.var(raw) == 0:
        logger.info("Calibration inputs have zero variance; using identity")
        return CalibrationModel.identity()

    model = LinearRegression()
    model.fit(raw.reshape(-1, 1), outcomes * 100.0)
    slope = float(model.coef_[0])
    intercept = float(model.intercept_)
    if not (math.isfinite(slope) and math.isfinite(intercept)):
        return CalibrationModel.identity()

    return CalibrationModel(
        slope=round_half_up(slope, 4),
        intercept=round_half_up(intercept, 4),
        sample_size=len(samples),
        bins=_bins(raw, outcomes, config.n_bins),
    )


def build_calibration_model(
    histories: Mapping[str, Sequence[Bar]],
    config: CalibrationConfig | None = None,
    forecast_config: ForecastConfig | None = None,
) -> CalibrationModel:
    """Replay several reference securities and fit one pooled model.

    Parameters
    ----------
    histories : Mapping[str, Sequence[Bar]]
        Date-sorted bars per reference symbol.
    config : CalibrationConfig or None
        Replay and fitting configuration.
    forecast_config : ForecastConfig or None
        Forecaster whose raw output is being calibrated.

    Returns
    -------
    CalibrationModel
        Fitted model, or the identity model when too few samples exist.
        A security that is too short or whose replay fails is skipped.
    """
    if config is None:
        config = CalibrationConfig()

    eligible = {}
    for symbol, bars in histories.items():
        if len(bars) < config.min_bars:
            logger.warning(
                "Skipping %s: %d bars (< %d)", symbol, len(bars), config.min_bars
            )
            continue
        eligible[symbol] = bars

    samples: list[CalibrationSample] = []
    if eligible:
        workers = min(config.max_workers, len(eligible))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_symbol = {
                executor.submit(replay_samples, bars, config, forecast_config): symbol
                for symbol, bars in eligible.items()
            }
            for future in as_completed(future_to_symbol):
                symbol = future_to_symbol[future]
                try:
                    result = future.result()
                except Exception as exc:
                    logger.warning("Replay failed for %s: %s", symbol, exc)
                    continue
                logger.debug("%s contributed %d samples", symbol, len(result))
                samples.extend(result)

    model = fit_calibration(samples, config)
    logger.info(
        "Calibration built from %d securities: slope=%.4f intercept=%.4f n=%d",
        len(eligible),
        model.slope,
        model.intercept,
        model.sample_size,
    )
    return model


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class CalibrationCache:
    """Time-bounded holder of the active calibration model.

    The first caller to observe an expired (or empty) cache rebuilds it
    synchronously.  Callers arriving during that rebuild receive the
    previous model instead of waiting; with nothing cached yet they wait
    for the rebuild.

    Parameters
    ----------
    builder : Callable[[], CalibrationModel]
        Produces a fresh model, typically a closure over
        :func:`build_calibration_model` and the reference histories.
    ttl_seconds : float
        Validity window of a built model.
    clock : Callable[[], float]
        Monotonic clock in seconds; injectable for tests.
    """

    def __init__(
        self,
        builder: Callable[[], CalibrationModel],
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._builder = builder
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._model: CalibrationModel | None = None
        self._built_at: float | None = None

    @property
    def built_at(self) -> float | None:
        return self._built_at

    def _fresh(self, now: float) -> bool:
        return self._built_at is not None and now - self._built_at < self._ttl

    def peek(self) -> CalibrationModel | None:
        """Cached model without triggering a rebuild, ``None`` if stale."""
        if self._model is not None and self._fresh(self._clock()):
            return self._model
        return None

    def get(self) -> CalibrationModel:
        now = self._clock()
        model = self._model
        if model is not None and self._fresh(now):
            logger.debug("Calibration cache hit")
            return model

        if model is not None:
            if not self._lock.acquire(blocking=False):
                return model
        else:
            self._lock.acquire()

        try:
            # Another caller may have rebuilt while we waited.
            if self._model is not None and self._fresh(self._clock()):
                return self._model
            logger.info("Calibration cache miss; rebuilding")
            try:
                fresh = self._builder()
            except Exception:
                logger.exception("Calibration rebuild failed; using identity")
                fresh = CalibrationModel.identity()
            self._model = fresh
            self._built_at = self._clock()
            return fresh
        finally:
            self._lock.release()

    def invalidate(self) -> None:
        with self._lock:
            self._model = None
            self._built_at = None
