"""Concurrent feed collection for FeedVol."""

import asyncio
import logging
import time
from typing import Optional, Sequence

from .enums import Granularity, Slot
from .errors import FeedError
from .feeds.base import PriceFeed
from .grid import BucketGrid
from .merge import build_partial_grid, combine
from .types import FeedOutcome

logger = logging.getLogger(__name__)


class FeedCollector:
    """
    Fetches every feed concurrently and merges the results into a grid.

    Each feed is merged into its own private partial grid while the
    fetches are in flight; the partial grids are combined into the run
    grid only after every fetch has finished, so no grid is written by
    more than one task.
    """

    def __init__(self, feeds: Sequence[PriceFeed], timeout_seconds: float = 10.0):
        """
        Initialize the collector.

        Args:
            feeds: Feeds to fetch, each owning a distinct slot
            timeout_seconds: Per-fetch deadline
        """
        slots = [feed.slot for feed in feeds]
        if len(set(slots)) != len(slots):
            raise ValueError("each feed must own a distinct slot")

        self._feeds = list(feeds)
        self._timeout_seconds = timeout_seconds

    @property
    def feeds(self) -> list[PriceFeed]:
        return list(self._feeds)

    async def _collect_one(
        self,
        feed: PriceFeed,
        granularity: Granularity,
        period_count: int,
    ) -> tuple[FeedOutcome, Optional[BucketGrid]]:
        """Fetch one feed into a partial grid; failures are recorded, never raised."""
        start = time.monotonic()
        outcome = FeedOutcome(feed=feed.name, slot=feed.slot)
        partial: Optional[BucketGrid] = None

        try:
            observations = await asyncio.wait_for(
                feed.fetch(granularity, period_count),
                timeout=self._timeout_seconds,
            )
            partial = build_partial_grid(observations, feed.slot, granularity)
            outcome.observations = len(observations)
            logger.info(f"{feed.name}: {len(observations)} observations")
        except asyncio.TimeoutError:
            outcome.error = f"timeout after {self._timeout_seconds}s"
            logger.warning(f"{feed.name}: {outcome.error}, skipping feed")
        except FeedError as e:
            outcome.error = e.message
            logger.warning(f"{feed.name}: {e.message}, skipping feed")
        except Exception as e:
            outcome.error = f"unexpected error: {type(e).__name__}: {e}"
            logger.warning(f"{feed.name}: {outcome.error}, skipping feed", exc_info=True)

        outcome.elapsed_ms = int((time.monotonic() - start) * 1000)
        return outcome, partial

    async def collect(
        self,
        grid: BucketGrid,
        granularity: Granularity,
        period_count: int,
    ) -> list[FeedOutcome]:
        """
        Fetch all feeds and merge them into the grid.

        Args:
            grid: Run grid to mutate
            granularity: Bucket width
            period_count: Number of periods the run retains

        Returns:
            One FeedOutcome per feed, in feed order
        """
        results = await asyncio.gather(*(
            self._collect_one(feed, granularity, period_count)
            for feed in self._feeds
        ))

        partials: list[tuple[Slot, BucketGrid]] = [
            (outcome.slot, partial)
            for outcome, partial in results
            if partial is not None
        ]
        combine(grid, partials)

        outcomes = [outcome for outcome, _ in results]
        ok = sum(1 for o in outcomes if o.ok)
        logger.info(f"Collected {ok}/{len(outcomes)} feeds")
        return outcomes

    async def close(self) -> None:
        """Close every feed's HTTP session."""
        for feed in self._feeds:
            await feed.close()
