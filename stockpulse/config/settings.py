"""Runtime settings using Pydantic Settings v2"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-level settings read from ``STOCKPULSE_*`` variables and ``.env``"""

    model_config = SettingsConfigDict(
        env_prefix="STOCKPULSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Calibration
    calibration_ttl_seconds: float = Field(default=6 * 60 * 60, gt=0)
    reference_symbols: str = Field(default="2330,2317,2454,2308,2881")
    replay_workers: int = Field(default=4, ge=1)

    # Logging
    log_level: str = Field(default="WARNING")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def reference_symbols_list(self) -> list[str]:
        """Reference tickers as a list"""
        return [s.strip() for s in self.reference_symbols.split(",") if s.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
