"""Polygon aggregates feed (volume-weighted price)."""

import logging
from datetime import datetime
from typing import Any, Callable

from ..config import DEFAULT_POLYGON_API_URL
from ..enums import Granularity, Slot
from ..errors import FeedError
from ..periods import from_epoch_ms, get_current_utc, period_delta
from ..types import Observation
from ..util import to_finite_float
from .base import PriceFeed

logger = logging.getLogger(__name__)


class PolygonFeed(PriceFeed):
    """
    Polygon aggregate bars.

    Uses the volume-weighted average price (vw) of each bar, keyed by
    the bar start time (t, epoch ms).
    """

    name = "polygon"
    slot = Slot.FEED_A

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_POLYGON_API_URL,
        timeout_seconds: float = 10.0,
        clock: Callable[[], datetime] = get_current_utc,
    ):
        super().__init__(timeout_seconds)
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self._clock = clock

    def build_url(self, granularity: Granularity, period_count: int) -> str:
        """Build the aggregates URL covering the last period_count periods."""
        end = self._clock()
        start = end - period_delta(granularity) * period_count
        return (
            f"{self.api_url}/1/{granularity.value}/"
            f"{start.strftime('%Y-%m-%d')}/{end.strftime('%Y-%m-%d')}"
        )

    async def _request(self, granularity: Granularity, period_count: int) -> Any:
        if not self.api_key:
            raise FeedError(self.name, "POLYGON_API_KEY not set")
        url = self.build_url(granularity, period_count)
        logger.debug(f"Polygon URL: {url}")
        return await self._get_json(url, params={"apiKey": self.api_key})

    def parse(self, payload: Any) -> list[Observation]:
        if not isinstance(payload, dict):
            raise FeedError(self.name, "unexpected response shape")

        results = payload.get("results")
        if results is None:
            if payload.get("resultsCount") == 0:
                return []
            raise FeedError(self.name, f"no results (status={payload.get('status')})")
        if not isinstance(results, list):
            raise FeedError(self.name, "results is not a list")

        observations: list[Observation] = []
        for row in results:
            if not isinstance(row, dict):
                continue
            price = to_finite_float(row.get("vw"))
            t = row.get("t")
            if price is None or not isinstance(t, (int, float)):
                continue
            observations.append((from_epoch_ms(int(t)), price))
        return observations
