"""Custom exceptions for FeedVol."""


class FeedVolError(Exception):
    """Base exception for FeedVol errors."""
    pass


class ConfigurationError(FeedVolError):
    """Raised when run configuration is invalid. Fatal before any fetch."""
    pass


class FeedError(FeedVolError):
    """
    Raised when a price feed cannot deliver observations.

    Recoverable: the collector logs it and leaves the feed's slot unset.
    """

    def __init__(self, feed: str, message: str):
        super().__init__(f"{feed}: {message}")
        self.feed = feed
        self.message = message


class UnsupportedGranularityError(FeedError):
    """Raised when a feed has no endpoint for the requested granularity."""

    def __init__(self, feed: str, granularity: str):
        super().__init__(feed, f"unsupported granularity '{granularity}'")
        self.granularity = granularity
