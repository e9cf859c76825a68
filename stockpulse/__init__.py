"""Equity scoring, direction forecasting and systemic-risk library.

Modules
-------
records
    Immutable input records (bars, institutional flow, margin balances,
    monthly revenue, headlines, macro series) and their normalisers.
factors
    Trend, flow, fundamental, volatility and short-term opportunity
    scorers, key price levels, and availability-aware composite scoring.
news
    Headline classification and decayed catalyst scoring.
consistency
    Directional consensus and disagreement across factor signals.
forecast
    Logistic direction probabilities and their affine calibration,
    fitted from a point-in-time historical replay.
backtest
    Forward hit-rate evaluation of a discrete flow/volume signal.
strategy
    First-match rule table selecting a trading stance and action card.
crash
    Fail-open gated systemic crash-risk composite over macro indicators.
pipeline
    Per-security "compute everything" orchestration.
config
    Environment-driven runtime settings.
"""

import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

logging.getLogger("stockpulse").addHandler(logging.NullHandler())

from stockpulse.exceptions import (
    ConfigurationError,
    DataError,
    StockPulseError,
)

__all__ = [
    "ConfigurationError",
    "DataError",
    "StockPulseError",
]

try:
    __version__ = _pkg_version("stockpulse")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"
