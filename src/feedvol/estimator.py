"""Volatility estimators for FeedVol."""

import logging
import math
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .enums import EstimatorBase, VarianceDivisor, ZeroPricePolicy
from .types import VolatilityResult

logger = logging.getLogger(__name__)


def dispersion(
    sample: Sequence[float],
    divisor: VarianceDivisor = VarianceDivisor.SAMPLE,
) -> Optional[tuple[float, float]]:
    """
    Compute mean and standard deviation of a sample.

    Variance is the sum of squared deviations from the mean divided by
    n - 1 (SAMPLE) or n (POPULATION). A single point has no spread and
    yields 0.0 under either divisor.

    Returns:
        (mean, standard deviation), or None for an empty sample
    """
    n = len(sample)
    if n == 0:
        return None

    mean = sum(sample) / n
    if n == 1:
        return mean, 0.0

    denom = n - 1 if divisor is VarianceDivisor.SAMPLE else n
    variance = sum((x - mean) ** 2 for x in sample) / denom
    return mean, math.sqrt(variance)


def compute_returns(
    levels: Sequence[float],
    zero_policy: ZeroPricePolicy = ZeroPricePolicy.SKIP,
) -> list[float]:
    """
    Period-over-period simple returns of a price series.

    return[i] = (price[i] - price[i-1]) / price[i-1]

    Args:
        levels: Chronologically ordered prices
        zero_policy: Handling of a previous price equal to 0.0

    Returns:
        Returns in chronological order (len(levels) - 1 at most)
    """
    returns: list[float] = []
    for prev, curr in zip(levels, levels[1:]):
        if prev == 0.0:
            if zero_policy is ZeroPricePolicy.SKIP:
                logger.debug(f"Skipping return from zero price to {curr}")
                continue
            if zero_policy is ZeroPricePolicy.ZERO:
                returns.append(0.0)
                continue
            # PROPAGATE: IEEE 754 result of x / 0.0
            returns.append(math.nan if curr == 0.0 else math.copysign(math.inf, curr))
            continue

        ret = (curr - prev) / prev
        logger.debug(f"Price {curr} Previous {prev} Return {ret}")
        returns.append(ret)
    return returns


class VolatilityEstimator(ABC):
    """
    Abstract base class for volatility estimators.

    Turns the finalized consolidated series into a single figure.
    """

    def __init__(self, divisor: VarianceDivisor = VarianceDivisor.SAMPLE):
        self._divisor = divisor

    @property
    @abstractmethod
    def base(self) -> EstimatorBase:
        """Series this estimator measures."""
        ...

    @property
    def divisor(self) -> VarianceDivisor:
        return self._divisor

    @abstractmethod
    def sample(self, levels: Sequence[float]) -> Optional[list[float]]:
        """
        Derive the sample to measure from the price levels.

        Returns:
            The sample, or None if none can be formed
        """
        ...

    def estimate(self, levels: Sequence[float]) -> VolatilityResult:
        """
        Estimate volatility of a consolidated price series.

        Args:
            levels: Chronologically ordered consolidated prices

        Returns:
            VolatilityResult (value None when there is no data)
        """
        sample = self.sample(levels)
        stats = dispersion(sample, self._divisor) if sample else None

        if stats is None:
            logger.info(f"{type(self).__name__}: no data to estimate from")
            return VolatilityResult(value=None, base=self.base, divisor=self._divisor)

        mean, stdev = stats
        if not math.isfinite(stdev):
            logger.warning(f"{type(self).__name__}: non-finite volatility {stdev}")

        return VolatilityResult(
            value=stdev,
            base=self.base,
            divisor=self._divisor,
            sample_size=len(sample),
            mean=mean,
        )


class LevelVolatilityEstimator(VolatilityEstimator):
    """Standard deviation of the consolidated price levels."""

    @property
    def base(self) -> EstimatorBase:
        return EstimatorBase.LEVELS

    def sample(self, levels: Sequence[float]) -> Optional[list[float]]:
        return list(levels) if levels else None


class ReturnVolatilityEstimator(VolatilityEstimator):
    """Standard deviation of period-over-period returns."""

    def __init__(
        self,
        divisor: VarianceDivisor = VarianceDivisor.SAMPLE,
        zero_policy: ZeroPricePolicy = ZeroPricePolicy.SKIP,
    ):
        super().__init__(divisor)
        self._zero_policy = zero_policy

    @property
    def base(self) -> EstimatorBase:
        return EstimatorBase.RETURNS

    @property
    def zero_policy(self) -> ZeroPricePolicy:
        return self._zero_policy

    def sample(self, levels: Sequence[float]) -> Optional[list[float]]:
        if len(levels) < 2:
            return None
        # All-zero series (no feed data) has not moved
        if all(v == 0.0 for v in levels):
            return [0.0] * (len(levels) - 1)
        return compute_returns(levels, self._zero_policy) or None


def build_estimator(
    base: EstimatorBase = EstimatorBase.LEVELS,
    divisor: VarianceDivisor = VarianceDivisor.SAMPLE,
    zero_policy: ZeroPricePolicy = ZeroPricePolicy.SKIP,
) -> VolatilityEstimator:
    """Create the estimator for a base/divisor pairing."""
    if base is EstimatorBase.RETURNS:
        return ReturnVolatilityEstimator(divisor=divisor, zero_policy=zero_policy)
    return LevelVolatilityEstimator(divisor=divisor)
