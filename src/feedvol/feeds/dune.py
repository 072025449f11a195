"""Dune Analytics feed (on-chain average price)."""

import logging
from typing import Any, Optional

from ..enums import Granularity, Slot
from ..errors import FeedError
from ..periods import parse_utc_timestamp
from ..types import Observation
from ..util import to_finite_float
from .base import PriceFeed

logger = logging.getLogger(__name__)

DUNE_API_URL = "https://api.dune.com/api/v1/query"


class DuneFeed(PriceFeed):
    """
    Results of a saved Dune query, one query per granularity.

    Each query returns rows of (tspan, average_eth_price), e.g. the
    hourly average Uniswap v3 USDC/WETH execution price. Prices may be
    strings such as "Infinity" and are cleansed before use.
    """

    name = "dune"
    slot = Slot.FEED_B

    def __init__(
        self,
        api_key: str,
        query_ids: dict[str, str],
        max_price: float = 8000.0,
        timeout_seconds: float = 10.0,
        base_url: str = DUNE_API_URL,
    ):
        super().__init__(timeout_seconds)
        self.api_key = api_key
        self.query_ids = query_ids
        self.max_price = max_price
        self.base_url = base_url.rstrip("/")

    def query_id(self, granularity: Granularity) -> Optional[str]:
        return self.query_ids.get(granularity.value) or None

    async def _request(self, granularity: Granularity, period_count: int) -> Any:
        if not self.api_key:
            raise FeedError(self.name, "DUNE_API_KEY not set")
        query_id = self.query_id(granularity)
        if query_id is None:
            raise FeedError(self.name, f"no query id configured for {granularity.value}")

        url = f"{self.base_url}/{query_id}/results"
        logger.debug(f"Dune URL: {url}")
        return await self._get_json(
            url,
            params={"limit": str(period_count)},
            headers={"X-Dune-API-Key": self.api_key},
        )

    def parse(self, payload: Any) -> list[Observation]:
        try:
            rows = payload["result"]["rows"]
        except (KeyError, TypeError):
            raise FeedError(self.name, "failed to deserialize response")
        if not isinstance(rows, list):
            raise FeedError(self.name, "failed to deserialize response: rows is not a list")

        observations: list[Observation] = []
        non_finite = 0
        above_cap = 0
        for row in rows:
            if not isinstance(row, dict):
                continue
            price = to_finite_float(row.get("average_eth_price"))
            if price is None:
                non_finite += 1
                continue
            if price > self.max_price:
                above_cap += 1
                continue

            tspan = row.get("tspan")
            ts = parse_utc_timestamp(tspan) if isinstance(tspan, str) else None
            if ts is None:
                logger.warning(f"Dune: failed to parse date: {tspan!r}")
                continue
            observations.append((ts, price))

        if non_finite or above_cap:
            logger.info(
                f"Dune: dropped {non_finite} non-finite and "
                f"{above_cap} above {self.max_price} prices"
            )

        if rows and non_finite == len(rows):
            raise FeedError(self.name, "no valid prices found")

        return observations
