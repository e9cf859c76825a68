"""Custom exception hierarchy for the stockpulse library.

Only contract violations are raised: malformed records and invalid
configuration.  Thin or missing market data is never an exception; it is
encoded in the result objects (``value is None``, availability flags).
"""


class StockPulseError(Exception):
    """Base exception for all stockpulse library errors."""


class ConfigurationError(StockPulseError):
    """Invalid configuration parameters or missing required arguments."""


class DataError(StockPulseError):
    """Invalid input record: non-finite, negative or inconsistent fields."""
