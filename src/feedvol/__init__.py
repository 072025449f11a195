"""FeedVol - multi-feed price reconciliation and volatility estimation.

This package is responsible for:
- Building a fixed window of time buckets
- Fetching prices from four independent feeds (Polygon, Dune, Kraken, CoinAPI)
- Merging feed prices into the bucket grid
- Consolidating and interpolating one price per bucket
- Estimating volatility over the resulting series
"""

__version__ = "0.1.0"
