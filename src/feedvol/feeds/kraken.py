"""Kraken OHLC feed."""

import logging
from typing import Any

from ..enums import Granularity, Slot
from ..errors import FeedError
from ..periods import from_epoch_s
from ..types import Observation
from ..util import to_finite_float
from .base import PriceFeed

logger = logging.getLogger(__name__)

KRAKEN_OHLC_URL = "https://api.kraken.com/0/public/OHLC"

# Kraken interval in minutes per granularity (no sub-minute bars)
_INTERVALS = {
    Granularity.MINUTE: 1,
    Granularity.HOUR: 60,
    Granularity.DAY: 1440,
}


class KrakenFeed(PriceFeed):
    """
    Kraken public OHLC bars.

    Price is the average of open, high, low and close. Kraken returns
    numbers as strings; both forms are accepted.
    """

    name = "kraken"
    slot = Slot.FEED_C
    supported = frozenset(_INTERVALS)

    def __init__(
        self,
        pair: str = "ETHPYUSD",
        timeout_seconds: float = 10.0,
        url: str = KRAKEN_OHLC_URL,
    ):
        super().__init__(timeout_seconds)
        self.pair = pair
        self.url = url

    async def _request(self, granularity: Granularity, period_count: int) -> Any:
        params = {"pair": self.pair, "interval": str(_INTERVALS[granularity])}
        return await self._get_json(self.url, params=params)

    def _bars(self, payload: Any) -> list:
        if not isinstance(payload, dict):
            raise FeedError(self.name, "unexpected response shape")

        errors = payload.get("error") or []
        if errors:
            raise FeedError(self.name, "; ".join(str(e) for e in errors))

        result = payload.get("result")
        if not isinstance(result, dict):
            raise FeedError(self.name, "response has no result")

        bars = result.get(self.pair)
        if bars is None:
            # Kraken may answer under its own pair name (e.g. XETHZUSD)
            candidates = [k for k in result if k != "last"]
            if len(candidates) != 1:
                raise FeedError(self.name, f"no OHLC data found for {self.pair}")
            bars = result[candidates[0]]
        return bars

    def parse(self, payload: Any) -> list[Observation]:
        observations: list[Observation] = []
        for bar in self._bars(payload):
            if not isinstance(bar, list) or len(bar) < 5:
                continue

            ts_s = to_finite_float(bar[0])
            ohlc = [to_finite_float(v) for v in bar[1:5]]
            if ts_s is None or any(v is None for v in ohlc):
                continue

            observations.append((from_epoch_s(int(ts_s)), sum(ohlc) / 4.0))
        return observations
