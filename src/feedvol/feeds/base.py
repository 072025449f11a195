"""Base class for HTTP price feeds."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp
import orjson

from ..enums import Granularity, Slot
from ..errors import FeedError, UnsupportedGranularityError
from ..types import Observation

logger = logging.getLogger(__name__)


class PriceFeed(ABC):
    """
    Abstract base class for price feeds.

    A feed fetches (timestamp, price) observations for one granularity
    and raises FeedError for anything that prevents it from doing so.
    Subclasses implement the request and the payload parsing.
    """

    name: str = "feed"
    slot: Slot = Slot.FEED_A
    supported: frozenset = frozenset(Granularity)

    def __init__(self, timeout_seconds: float = 10.0):
        """
        Initialize the feed.

        Args:
            timeout_seconds: Request timeout
        """
        self.timeout_seconds = timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _get_json(
        self,
        url: str,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> Any:
        """
        GET a URL and decode the JSON body.

        Raises:
            FeedError: on timeout, connection error, non-200 status or bad JSON
        """
        session = await self._get_session()
        try:
            async with session.get(url, params=params, headers=headers) as resp:
                body = await resp.read()
                if resp.status != 200:
                    text = body[:200].decode("utf-8", errors="replace")
                    logger.error(f"{self.name}: request failed with status {resp.status}: {text}")
                    raise FeedError(self.name, f"HTTP {resp.status}")
        except asyncio.TimeoutError:
            raise FeedError(self.name, f"timeout after {self.timeout_seconds}s")
        except aiohttp.ClientError as e:
            raise FeedError(self.name, f"request error: {e}")

        try:
            return orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise FeedError(self.name, f"invalid JSON: {e}")

    def check_granularity(self, granularity: Granularity) -> None:
        if granularity not in self.supported:
            raise UnsupportedGranularityError(self.name, granularity.value)

    async def fetch(self, granularity: Granularity, period_count: int) -> list[Observation]:
        """
        Fetch observations for the most recent period_count periods.

        Args:
            granularity: Bucket width requested
            period_count: Number of periods the run retains

        Returns:
            List of (UTC timestamp, price) pairs

        Raises:
            FeedError: feed could not deliver (recoverable)
        """
        self.check_granularity(granularity)
        payload = await self._request(granularity, period_count)
        try:
            observations = self.parse(payload)
        except (TypeError, ValueError, KeyError, IndexError, OverflowError, OSError) as e:
            raise FeedError(self.name, f"failed to deserialize response: {e}")
        logger.debug(f"{self.name}: parsed {len(observations)} observations")
        return observations

    @abstractmethod
    async def _request(self, granularity: Granularity, period_count: int) -> Any:
        """Perform the HTTP request and return the decoded payload."""
        ...

    @abstractmethod
    def parse(self, payload: Any) -> list[Observation]:
        """
        Convert a decoded payload into observations.

        Raises:
            FeedError: payload does not have the expected shape
        """
        ...
