"""Type definitions for FeedVol."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .enums import EstimatorBase, Granularity, Slot, VarianceDivisor

# A single (timestamp, price) pair as produced by a feed adapter
Observation = tuple[datetime, float]


@dataclass(slots=True)
class TimeBucket:
    """
    Prices recorded for one time bucket.

    Four source slots (one per feed) plus the derived consolidated price.
    Unset fields are None.
    """
    feed_a: Optional[float] = None  # Polygon VWAP
    feed_b: Optional[float] = None  # Dune on-chain average
    feed_c: Optional[float] = None  # Kraken OHLC average
    feed_d: Optional[float] = None  # CoinAPI OHLC average
    consolidated: Optional[float] = None

    def get(self, slot: Slot) -> Optional[float]:
        """Get the price stored in a source slot."""
        return getattr(self, slot.field_name)

    def set(self, slot: Slot, price: Optional[float]) -> None:
        """Set the price stored in a source slot."""
        setattr(self, slot.field_name, price)

    @property
    def sources(self) -> tuple[Optional[float], ...]:
        """Source slot values in slot order."""
        return (self.feed_a, self.feed_b, self.feed_c, self.feed_d)

    def available_sources(self) -> list[float]:
        """Set source values in slot order (feed_a..feed_d)."""
        return [v for v in self.sources if v is not None]

    def copy(self) -> "TimeBucket":
        return TimeBucket(
            feed_a=self.feed_a,
            feed_b=self.feed_b,
            feed_c=self.feed_c,
            feed_d=self.feed_d,
            consolidated=self.consolidated,
        )


@dataclass(slots=True)
class FeedOutcome:
    """Result of fetching one feed during a collection run."""
    feed: str
    slot: Slot
    observations: int = 0
    error: Optional[str] = None
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class VolatilityResult:
    """
    Output from a volatility estimator.

    value is None when there was no data to estimate from.
    """
    value: Optional[float]
    base: EstimatorBase
    divisor: VarianceDivisor
    sample_size: int = 0
    mean: Optional[float] = None

    @property
    def no_data(self) -> bool:
        return self.value is None

    @property
    def finite(self) -> bool:
        return self.value is not None and math.isfinite(self.value)


@dataclass(slots=True)
class ReportRow:
    """One finalized bucket, ready to render."""
    ts: datetime
    feed_a: Optional[float]
    feed_b: Optional[float]
    feed_c: Optional[float]
    feed_d: Optional[float]
    consolidated: Optional[float]


@dataclass(slots=True)
class EstimationReport:
    """Chronologically ordered buckets plus the volatility figure."""
    granularity: Granularity
    no_of_periods: int
    rows: list[ReportRow]
    volatility: VolatilityResult
    feeds: list[FeedOutcome] = field(default_factory=list)

    @property
    def no_data(self) -> bool:
        return self.volatility.no_data
