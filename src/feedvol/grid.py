"""Bucket grid for FeedVol."""

import logging
from datetime import datetime
from typing import Iterator, Optional

from .enums import Slot
from .periods import GranularityLike, period_delta, round_to_period
from .types import TimeBucket

logger = logging.getLogger(__name__)

_FIELDS = ("feed_a", "feed_b", "feed_c", "feed_d", "consolidated")


class BucketGrid:
    """
    Mapping of bucket start timestamp -> TimeBucket.

    Storage is unordered; every consumer that needs chronological
    order goes through sorted_keys() / sorted_items().
    """

    def __init__(self, buckets: Optional[dict[datetime, TimeBucket]] = None):
        self._buckets: dict[datetime, TimeBucket] = dict(buckets or {})

    @classmethod
    def initialize(
        cls,
        now: datetime,
        no_of_periods: int,
        granularity: GranularityLike,
    ) -> "BucketGrid":
        """
        Build an empty grid of no_of_periods buckets ending at now.

        Steps back one period at a time from now. Rounded duplicates
        collapse into a single bucket.

        Args:
            now: Reference instant (newest bucket contains it)
            no_of_periods: Number of buckets to create
            granularity: Bucket width

        Returns:
            BucketGrid with every field unset
        """
        grid = cls()
        step = period_delta(granularity)
        for i in range(no_of_periods):
            grid.ensure(round_to_period(now - step * i, granularity))
        logger.debug(f"Initialized grid with {len(grid)} buckets")
        return grid

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, ts: datetime) -> bool:
        return ts in self._buckets

    def __getitem__(self, ts: datetime) -> TimeBucket:
        return self._buckets[ts]

    def __iter__(self) -> Iterator[datetime]:
        return iter(self._buckets)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BucketGrid):
            return NotImplemented
        return self._buckets == other._buckets

    def get(self, ts: datetime) -> Optional[TimeBucket]:
        return self._buckets.get(ts)

    def ensure(self, ts: datetime) -> TimeBucket:
        """Get the bucket at ts, creating an empty one if missing."""
        bucket = self._buckets.get(ts)
        if bucket is None:
            bucket = TimeBucket()
            self._buckets[ts] = bucket
        return bucket

    def set_slot(self, ts: datetime, slot: Slot, price: float) -> None:
        """Write a source price, creating the bucket if needed."""
        self.ensure(ts).set(slot, price)

    def sorted_keys(self) -> list[datetime]:
        return sorted(self._buckets)

    def sorted_items(self) -> list[tuple[datetime, TimeBucket]]:
        return [(ts, self._buckets[ts]) for ts in self.sorted_keys()]

    def prune(self, no_of_periods: int) -> "BucketGrid":
        """
        Keep only the most recent no_of_periods buckets.

        Must run after all feeds are merged and after reround().

        Returns:
            self (mutated)
        """
        keys = self.sorted_keys()
        excess = len(keys) - no_of_periods
        if excess > 0:
            for ts in keys[:excess]:
                del self._buckets[ts]
            logger.debug(f"Pruned {excess} old buckets")
        return self

    def reround(self, granularity: GranularityLike) -> "BucketGrid":
        """
        Re-round every key and coalesce buckets that collide.

        Colliding buckets are folded in ascending key order; set fields
        of a later bucket overwrite those of an earlier one.

        Returns:
            self (mutated)
        """
        merged: dict[datetime, TimeBucket] = {}
        collisions = 0
        for ts in self.sorted_keys():
            bucket = self._buckets[ts]
            key = round_to_period(ts, granularity)
            target = merged.get(key)
            if target is None:
                merged[key] = bucket
                continue
            collisions += 1
            for name in _FIELDS:
                value = getattr(bucket, name)
                if value is not None:
                    setattr(target, name, value)
        if collisions:
            logger.debug(f"Re-rounding coalesced {collisions} buckets")
        self._buckets = merged
        return self

    def copy(self) -> "BucketGrid":
        return BucketGrid({ts: b.copy() for ts, b in self._buckets.items()})
