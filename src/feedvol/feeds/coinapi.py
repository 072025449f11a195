"""CoinAPI OHLCV feed."""

import logging
from typing import Any

from ..enums import Granularity, Slot
from ..errors import FeedError
from ..periods import parse_utc_timestamp
from ..types import Observation
from ..util import to_finite_float
from .base import PriceFeed

logger = logging.getLogger(__name__)

COINAPI_URL = "https://rest.coinapi.io/v1/ohlcv"

_PERIOD_IDS = {
    Granularity.SECOND: "1SEC",
    Granularity.MINUTE: "1MIN",
    Granularity.HOUR: "1HRS",
    Granularity.DAY: "1DAY",
}


class CoinApiFeed(PriceFeed):
    """CoinAPI OHLCV history; price is the average of open, high, low and close."""

    name = "coinapi"
    slot = Slot.FEED_D

    def __init__(
        self,
        api_key: str,
        asset_id: str = "BITFINEX_SPOT_ETH_USD",
        timeout_seconds: float = 10.0,
        base_url: str = COINAPI_URL,
    ):
        super().__init__(timeout_seconds)
        self.api_key = api_key
        self.asset_id = asset_id
        self.base_url = base_url.rstrip("/")

    async def _request(self, granularity: Granularity, period_count: int) -> Any:
        if not self.api_key:
            raise FeedError(self.name, "COINAPI_API_KEY not set")

        url = f"{self.base_url}/{self.asset_id}/history"
        logger.debug(f"Constructed CoinAPI URL: {url}")
        return await self._get_json(
            url,
            params={"period_id": _PERIOD_IDS[granularity], "limit": str(period_count)},
            headers={"X-CoinAPI-Key": self.api_key, "Accept": "application/json"},
        )

    def parse(self, payload: Any) -> list[Observation]:
        if not isinstance(payload, list):
            raise FeedError(self.name, "unexpected response shape")

        observations: list[Observation] = []
        for record in payload:
            if not isinstance(record, dict):
                continue
            start = record.get("time_period_start")
            ts = parse_utc_timestamp(start) if isinstance(start, str) else None
            ohlc = [
                to_finite_float(record.get(key))
                for key in ("price_open", "price_high", "price_low", "price_close")
            ]
            if ts is None or any(v is None for v in ohlc):
                continue
            observations.append((ts, sum(ohlc) / 4.0))
        return observations
