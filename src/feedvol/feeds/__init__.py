"""HTTP price feeds, one per grid slot."""

from ..config import VolConfig
from .base import PriceFeed
from .coinapi import CoinApiFeed
from .dune import DuneFeed
from .kraken import KrakenFeed
from .polygon import PolygonFeed

__all__ = [
    "PriceFeed",
    "PolygonFeed",
    "DuneFeed",
    "KrakenFeed",
    "CoinApiFeed",
    "build_feeds",
]


def build_feeds(config: VolConfig) -> list[PriceFeed]:
    """Create the four feeds from configuration."""
    timeout = config.feed_timeout_seconds
    return [
        PolygonFeed(
            api_key=config.polygon_api_key,
            api_url=config.polygon_api_url,
            timeout_seconds=timeout,
        ),
        DuneFeed(
            api_key=config.dune_api_key,
            query_ids=config.dune_query_ids,
            max_price=config.dune_max_price,
            timeout_seconds=timeout,
        ),
        KrakenFeed(pair=config.kraken_pair, timeout_seconds=timeout),
        CoinApiFeed(
            api_key=config.coinapi_api_key,
            asset_id=config.coinapi_asset_id,
            timeout_seconds=timeout,
        ),
    ]
