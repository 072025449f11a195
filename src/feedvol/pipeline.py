"""Estimation pipeline: merged grid -> EstimationReport."""

import logging
from typing import Optional, Sequence

from .engine import ConsolidationEngine
from .enums import Granularity
from .estimator import LevelVolatilityEstimator, VolatilityEstimator
from .grid import BucketGrid
from .types import EstimationReport, FeedOutcome, ReportRow, VolatilityResult

logger = logging.getLogger(__name__)


def run_estimation(
    grid: BucketGrid,
    no_of_periods: int,
    granularity: Granularity,
    engine: Optional[ConsolidationEngine] = None,
    estimator: Optional[VolatilityEstimator] = None,
    reround: bool = True,
    feeds: Sequence[FeedOutcome] = (),
) -> EstimationReport:
    """
    Finalize a merged grid and estimate its volatility.

    Order: re-round (optional), prune to the window, consolidate and
    interpolate, estimate. Runs on one task after every merge is done.

    The report has no data when the grid is empty, or when every feed
    outcome passed in failed and no bucket holds a source price. An
    initialised grid with no outcomes is estimated as all zeros.

    Args:
        grid: Grid with all feeds merged in (mutated)
        no_of_periods: Buckets to retain
        granularity: Bucket width
        engine: Consolidation engine (default: max policy)
        estimator: Volatility estimator (default: level-based, n - 1)
        reround: Whether to run the re-rounding pass
        feeds: Feed outcomes to carry into the report

    Returns:
        EstimationReport
    """
    engine = engine or ConsolidationEngine()
    estimator = estimator or LevelVolatilityEstimator()

    if reround:
        grid.reround(granularity)
    grid.prune(no_of_periods)

    # Every feed failed and nothing else populated the grid
    feeds_failed = bool(feeds) and not any(o.ok for o in feeds)
    no_prices = not any(grid[ts].available_sources() for ts in grid)

    if len(grid) == 0 or (feeds_failed and no_prices):
        logger.info("No source prices in the grid, no data to estimate from")
        return EstimationReport(
            granularity=granularity,
            no_of_periods=no_of_periods,
            rows=[],
            volatility=VolatilityResult(
                value=None,
                base=estimator.base,
                divisor=estimator.divisor,
            ),
            feeds=list(feeds),
        )

    series = engine.run(grid)
    volatility = estimator.estimate([value for _, value in series])

    rows = [
        ReportRow(
            ts=ts,
            feed_a=bucket.feed_a,
            feed_b=bucket.feed_b,
            feed_c=bucket.feed_c,
            feed_d=bucket.feed_d,
            consolidated=bucket.consolidated,
        )
        for ts, bucket in grid.sorted_items()
    ]

    return EstimationReport(
        granularity=granularity,
        no_of_periods=no_of_periods,
        rows=rows,
        volatility=volatility,
        feeds=list(feeds),
    )
