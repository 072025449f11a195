"""Configuration for FeedVol."""

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .enums import (
    ConsolidationPolicy,
    EstimatorBase,
    Granularity,
    VarianceDivisor,
    ZeroPricePolicy,
)
from .errors import ConfigurationError
from .periods import parse_granularity

# Upper bound on retained buckets (Dune queries look back 741 periods)
MAX_PERIODS = 740

DEFAULT_POLYGON_API_URL = "https://api.polygon.io/v2/aggs/ticker/X:ETHUSD/range"


def _parse_enum(enum_cls, value: str, name: str):
    """Parse an enum by value, raising ConfigurationError on failure."""
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(f"{name} must be one of: {allowed} (got '{value}')")


def _parse_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer (got '{value}')")


def _parse_float(value: str, name: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number (got '{value}')")


def _parse_bool(value: str, name: str) -> bool:
    normalized = value.strip().lower()
    if normalized in ("true", "1", "yes", "on"):
        return True
    if normalized in ("false", "0", "no", "off"):
        return False
    raise ConfigurationError(f"{name} must be true or false (got '{value}')")


@dataclass
class VolConfig:
    """
    Configuration container for a volatility run.

    Loaded from environment variables with sensible defaults.
    """
    # Window
    no_of_periods: int = 30
    timespan: str = "hour"
    now: Optional[datetime] = None  # None means "current UTC time"

    # Engine / estimator
    consolidation: str = "max"
    vol_base: str = "levels"
    vol_divisor: str = "sample"
    zero_price_policy: str = "skip"
    reround: bool = True

    # Feeds
    feed_timeout_seconds: float = 10.0
    polygon_api_key: str = ""
    polygon_api_url: str = DEFAULT_POLYGON_API_URL
    dune_api_key: str = ""
    dune_query_ids: dict = field(default_factory=lambda: {
        "second": "",
        "minute": "",
        "hour": "",
        "day": "",
    })
    dune_max_price: float = 8000.0
    kraken_pair: str = "ETHPYUSD"
    coinapi_api_key: str = ""
    coinapi_asset_id: str = "BITFINEX_SPOT_ETH_USD"

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "VolConfig":
        """Load configuration from environment variables."""
        dune_query_ids = {
            "second": os.getenv("DUNE_QUERY_ID_SEC", ""),
            "minute": os.getenv("DUNE_QUERY_ID_MIN", ""),
            "hour": os.getenv("DUNE_QUERY_ID_HOUR", ""),
            "day": os.getenv("DUNE_QUERY_ID_DAY", ""),
        }

        return cls(
            no_of_periods=_parse_int(os.getenv("NO_OF_PERIODS", "30"), "NO_OF_PERIODS"),
            timespan=os.getenv("TIMESPAN", "") or "hour",
            consolidation=os.getenv("CONSOLIDATION", "max"),
            vol_base=os.getenv("VOL_BASE", "levels"),
            vol_divisor=os.getenv("VOL_DIVISOR", "sample"),
            zero_price_policy=os.getenv("ZERO_PRICE_POLICY", "skip"),
            reround=_parse_bool(os.getenv("REROUND", "true"), "REROUND"),
            feed_timeout_seconds=_parse_float(
                os.getenv("FEED_TIMEOUT_SECONDS", "10"), "FEED_TIMEOUT_SECONDS"
            ),
            polygon_api_key=os.getenv("POLYGON_API_KEY", ""),
            polygon_api_url=os.getenv("POLYGON_API_URL", DEFAULT_POLYGON_API_URL),
            dune_api_key=os.getenv("DUNE_API_KEY", ""),
            dune_query_ids=dune_query_ids,
            dune_max_price=_parse_float(os.getenv("DUNE_MAX_PRICE", "8000"), "DUNE_MAX_PRICE"),
            kraken_pair=os.getenv("KRAKEN_PAIR", "ETHPYUSD"),
            coinapi_api_key=os.getenv("COINAPI_API_KEY", ""),
            coinapi_asset_id=os.getenv("COINAPI_ASSET_ID", "BITFINEX_SPOT_ETH_USD"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @property
    def granularity(self) -> Granularity:
        g = parse_granularity(self.timespan)
        if g is None:
            raise ConfigurationError(f"Unsupported timespan '{self.timespan}'")
        return g

    @property
    def consolidation_policy(self) -> ConsolidationPolicy:
        return _parse_enum(ConsolidationPolicy, self.consolidation, "CONSOLIDATION")

    @property
    def estimator_base(self) -> EstimatorBase:
        return _parse_enum(EstimatorBase, self.vol_base, "VOL_BASE")

    @property
    def variance_divisor(self) -> VarianceDivisor:
        return _parse_enum(VarianceDivisor, self.vol_divisor, "VOL_DIVISOR")

    @property
    def zero_policy(self) -> ZeroPricePolicy:
        return _parse_enum(ZeroPricePolicy, self.zero_price_policy, "ZERO_PRICE_POLICY")

    def validate(self) -> None:
        """Validate configuration values."""
        if self.no_of_periods < 1 or self.no_of_periods > MAX_PERIODS:
            raise ConfigurationError(
                f"no_of_periods must be between 1 and {MAX_PERIODS} (got {self.no_of_periods})"
            )

        if self.feed_timeout_seconds <= 0:
            raise ConfigurationError("feed_timeout_seconds must be positive")

        # Property access raises on unknown values
        self.granularity
        self.consolidation_policy
        self.estimator_base
        self.variance_divisor
        self.zero_policy
