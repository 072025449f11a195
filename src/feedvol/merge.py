"""Source merge step: writes one feed's observations into the grid."""

import logging
from typing import Iterable

from .enums import Slot
from .grid import BucketGrid
from .periods import GranularityLike, round_to_period
from .types import Observation

logger = logging.getLogger(__name__)


def merge_observations(
    grid: BucketGrid,
    observations: Iterable[Observation],
    slot: Slot,
    granularity: GranularityLike,
) -> BucketGrid:
    """
    Merge a feed's observations into one slot of the grid.

    Observations are applied in timestamp order, so when two of them
    round into the same bucket the most recent one wins. Buckets missing
    from the grid are created with only this slot set.

    Args:
        grid: Grid to mutate
        observations: (timestamp, price) pairs from one feed
        slot: Slot owned by the feed
        granularity: Bucket width

    Returns:
        The same grid
    """
    count = 0
    created = 0
    for ts, price in sorted(observations, key=lambda obs: obs[0]):
        bucket_ts = round_to_period(ts, granularity)
        if bucket_ts not in grid:
            created += 1
        grid.set_slot(bucket_ts, slot, price)
        count += 1

    logger.debug(
        f"Merged {count} observations into {slot.field_name} "
        f"({created} new buckets)"
    )
    return grid


def build_partial_grid(
    observations: Iterable[Observation],
    slot: Slot,
    granularity: GranularityLike,
) -> BucketGrid:
    """Merge one feed into a private, initially empty grid."""
    return merge_observations(BucketGrid(), observations, slot, granularity)


def combine(grid: BucketGrid, partials: Iterable[tuple[Slot, BucketGrid]]) -> BucketGrid:
    """
    Fold per-feed partial grids into the run grid.

    Only the slot owned by each partial grid is copied, so the result
    does not depend on the order of partials.

    Args:
        grid: Run grid to mutate
        partials: (slot, partial grid) pairs

    Returns:
        The same grid
    """
    for slot, partial in partials:
        for ts in partial:
            price = partial[ts].get(slot)
            if price is not None:
                grid.set_slot(ts, slot, price)
    return grid
