"""Shared enumerations for FeedVol."""

from enum import Enum, IntEnum


class Granularity(Enum):
    """Bucket width used to align observations from different feeds."""
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"


class Slot(IntEnum):
    """Source slot of a time bucket, one per feed.

    FEED_A: Polygon volume-weighted price.
    FEED_B: Dune on-chain average price.
    FEED_C: Kraken OHLC average.
    FEED_D: CoinAPI OHLC average.
    """
    FEED_A = 0
    FEED_B = 1
    FEED_C = 2
    FEED_D = 3

    @property
    def field_name(self) -> str:
        """Attribute name of this slot on TimeBucket."""
        return self.name.lower()


class ConsolidationPolicy(Enum):
    """Extremum taken over the available source prices of a bucket."""
    MAX = "max"
    MIN = "min"


class EstimatorBase(Enum):
    """Series the volatility is computed over."""
    LEVELS = "levels"  # Consolidated prices themselves
    RETURNS = "returns"  # Period-over-period simple returns


class VarianceDivisor(Enum):
    """Divisor applied to the sum of squared deviations."""
    SAMPLE = "sample"  # n - 1
    POPULATION = "population"  # n


class ZeroPricePolicy(Enum):
    """What to do with a return whose previous price is exactly 0.0.

    SKIP: Drop that return from the sample.
    ZERO: Count it as a 0.0 return.
    PROPAGATE: Keep the non-finite value, so the estimate is non-finite.

    A series that is 0.0 everywhere (an all-unset grid) bypasses the
    policy: its returns are all 0.0 and the estimate is exactly 0.0.
    """
    SKIP = "skip"
    ZERO = "zero"
    PROPAGATE = "propagate"
