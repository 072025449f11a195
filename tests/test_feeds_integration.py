"""
Integration tests for the HTTP feeds - calls the live endpoints.

Run with: FEEDVOL_INTEGRATION=1 pytest tests/test_feeds_integration.py -v -s -m integration

Environment variables (read from .env if present):
- POLYGON_API_KEY, DUNE_API_KEY, DUNE_QUERY_ID_HOUR, COINAPI_API_KEY:
  feeds without credentials are skipped. Kraken needs no key.
"""

import logging
import os
import pytest
from pathlib import Path

from dotenv import load_dotenv

from feedvol.config import VolConfig
from feedvol.enums import Granularity
from feedvol.feeds import CoinApiFeed, DuneFeed, KrakenFeed, PolygonFeed

logger = logging.getLogger(__name__)

pytestmark = pytest.mark.skipif(
    os.getenv("FEEDVOL_INTEGRATION") != "1",
    reason="set FEEDVOL_INTEGRATION=1 to call live feed endpoints",
)


@pytest.fixture(scope="module")
def config():
    env_path = Path(__file__).parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.info(f"Loaded env from {env_path}")
    return VolConfig.from_env()


async def _fetch_and_close(feed, granularity=Granularity.HOUR, periods=5):
    try:
        return await feed.fetch(granularity, periods)
    finally:
        await feed.close()


class TestLiveFeeds:
    """Live fetches, one per feed."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_kraken(self, config):
        observations = await _fetch_and_close(KrakenFeed(pair=config.kraken_pair))
        assert observations
        assert all(price > 0 for _, price in observations)

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_polygon(self, config):
        if not config.polygon_api_key:
            pytest.skip("POLYGON_API_KEY not set")
        feed = PolygonFeed(api_key=config.polygon_api_key, api_url=config.polygon_api_url)
        observations = await _fetch_and_close(feed)
        assert all(price > 0 for _, price in observations)

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_dune(self, config):
        if not config.dune_api_key or not config.dune_query_ids.get("hour"):
            pytest.skip("DUNE_API_KEY / DUNE_QUERY_ID_HOUR not set")
        feed = DuneFeed(api_key=config.dune_api_key, query_ids=config.dune_query_ids)
        observations = await _fetch_and_close(feed)
        assert all(0 < price <= config.dune_max_price for _, price in observations)

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_coinapi(self, config):
        if not config.coinapi_api_key:
            pytest.skip("COINAPI_API_KEY not set")
        feed = CoinApiFeed(api_key=config.coinapi_api_key, asset_id=config.coinapi_asset_id)
        observations = await _fetch_and_close(feed)
        assert all(price > 0 for _, price in observations)
