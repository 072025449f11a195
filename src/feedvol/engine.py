"""Consolidation and interpolation engine for FeedVol."""

import logging
from datetime import datetime
from typing import Optional, Sequence

from .enums import ConsolidationPolicy
from .grid import BucketGrid

logger = logging.getLogger(__name__)


def consolidate(
    values: Sequence[float],
    policy: ConsolidationPolicy = ConsolidationPolicy.MAX,
) -> Optional[float]:
    """
    Pick one representative price from the available source prices.

    Args:
        values: Set source prices (may be empty)
        policy: Extremum to take

    Returns:
        The chosen price, or None if no source is set
    """
    if not values:
        return None
    if policy is ConsolidationPolicy.MIN:
        return min(values)
    return max(values)


def fill_leading_gap(values: Sequence[Optional[float]]) -> list[Optional[float]]:
    """
    Back-fill unset values at the start of the series.

    The first set value is copied into every leading unset position.
    A series with no set value at all becomes all 0.0.
    """
    out = list(values)
    if not out or out[0] is not None:
        return out

    first = next((v for v in out if v is not None), None)
    if first is None:
        return [0.0] * len(out)

    i = 0
    while out[i] is None:
        out[i] = first
        i += 1
    return out


def interpolate_gaps(values: Sequence[Optional[float]]) -> list[float]:
    """
    Fill runs of unset values by linear interpolation.

    A run of L unset values between start and end is filled with
    start + (end - start) * (j + 1) / (L + 1) for j = 0..L-1. A run that
    reaches the end of the series has no right bound and is held flat
    at start. A run at index 0 starts from 0.0 (fill_leading_gap
    normally removes that case first).
    """
    out = list(values)
    n = len(out)
    i = 0
    while i < n:
        if out[i] is not None:
            i += 1
            continue

        run_start = i
        start = out[i - 1] if i > 0 else 0.0
        while i < n and out[i] is None:
            i += 1
        end = out[i] if i < n else start

        length = i - run_start
        for j in range(length):
            out[run_start + j] = start + (end - start) * (j + 1) / (length + 1)

    return out


class ConsolidationEngine:
    """
    Derives one gap-free price series from a merged grid.

    Steps:
    - Consolidate the source slots of each bucket (policy extremum)
    - Order buckets chronologically
    - Back-fill the leading gap
    - Interpolate interior gaps, hold trailing gaps flat
    - Write the result back to each bucket's consolidated field
    """

    def __init__(self, policy: ConsolidationPolicy = ConsolidationPolicy.MAX):
        self._policy = policy

    @property
    def policy(self) -> ConsolidationPolicy:
        return self._policy

    def run(self, grid: BucketGrid) -> list[tuple[datetime, float]]:
        """
        Consolidate and fill the grid in place.

        Args:
            grid: Merged, pruned grid

        Returns:
            Chronologically ordered (bucket start, consolidated price)
            pairs; empty if the grid has no buckets
        """
        if len(grid) == 0:
            logger.info("ConsolidationEngine: empty grid, nothing to consolidate")
            return []

        for ts in grid:
            bucket = grid[ts]
            bucket.consolidated = consolidate(bucket.available_sources(), self._policy)

        ordered = grid.sorted_items()
        keys = [ts for ts, _ in ordered]
        raw = [bucket.consolidated for _, bucket in ordered]

        gaps = sum(1 for v in raw if v is None)
        if gaps == len(raw):
            logger.warning("ConsolidationEngine: no bucket has a source price, filling with 0.0")
        elif gaps:
            logger.info(f"ConsolidationEngine: filling {gaps}/{len(raw)} empty buckets")

        filled = interpolate_gaps(fill_leading_gap(raw))

        for ts, value in zip(keys, filled):
            grid[ts].consolidated = value

        return list(zip(keys, filled))
