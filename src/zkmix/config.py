"""Runtime configuration for the mixer.

Values are read from ``ZKMIX_``-prefixed environment variables, optionally
from a ``.env`` file in the working directory:

    ZKMIX_MIN_DEPOSIT          (int wei, default 0.01 ether)
    ZKMIX_MAX_DEPOSIT          (int wei, default 1,000,000 ether)
    ZKMIX_MAX_MERKLE_DEPTH     (int, default 32, at most 32)
    ZKMIX_WITHDRAWAL_FEE_BPS   (int, default 10 = 0.1%)
    ZKMIX_RANDOM_DELAY_RANGE   (int seconds, default 3600)
    ZKMIX_MAX_BATCH_SIZE       (int, default 100)
    ZKMIX_MIN_BATCH_DELAY      (int seconds, default 60)
    ZKMIX_MAX_BATCH_DELAY      (int seconds, default 86400)
    ZKMIX_DATABASE_URL         (str, default "sqlite:///zkmix.db")
    ZKMIX_LOG_LEVEL            (str, default "INFO")
    ZKMIX_VERIFICATION_KEY_PATH (path to a snarkjs verification_key.json)
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ABSOLUTE_MAX_DEPTH = 32
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}


class MixerSettings(BaseSettings):
    """Typed mixer configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ZKMIX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    min_deposit: int = Field(default=10**16, gt=0, description="Smallest deposit in wei")
    max_deposit: int = Field(default=10**24, gt=0, description="Largest deposit in wei")
    max_merkle_depth: int = Field(default=ABSOLUTE_MAX_DEPTH, ge=1, le=ABSOLUTE_MAX_DEPTH)
    withdrawal_fee_bps: int = Field(default=10, ge=0, le=10_000, description="Fee in basis points")
    random_delay_range: int = Field(default=3600, ge=0, description="Upper bound of release jitter")
    max_batch_size: int = Field(default=100, ge=1)
    min_batch_delay: int = Field(default=60, ge=0)
    max_batch_delay: int = Field(default=86_400, ge=0)
    database_url: str = "sqlite:///zkmix.db"
    log_level: str = "INFO"
    verification_key_path: Optional[Path] = None

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def _check_ranges(self) -> "MixerSettings":
        if self.min_deposit > self.max_deposit:
            raise ValueError("min_deposit must not exceed max_deposit")
        if self.min_batch_delay > self.max_batch_delay:
            raise ValueError("min_batch_delay must not exceed max_batch_delay")
        return self


@lru_cache(maxsize=1)
def get_settings() -> MixerSettings:
    """Return the process-wide settings, loading them on first use."""
    return MixerSettings()


def reset_settings() -> None:
    """Drop cached settings (for testing)."""
    get_settings.cache_clear()


def configure_logging(settings: Optional[MixerSettings] = None) -> None:
    """Apply ``log_level`` to the ``zkmix`` logger hierarchy."""
    settings = settings or get_settings()
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("zkmix").setLevel(settings.log_level)
