"""
Base classes for HTTP price sources.

A source turns a symbol into a SourceQuote. The runner polls sources and
pushes the quotes into PolledPriceFeeds, which is what the engine reads.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

# A source with no success for this long reports itself unhealthy
HEALTHY_WINDOW_SECONDS = 60


class FeedError(Exception):
    """Raised when a source cannot produce a quote"""
    pass


@dataclass
class SourceQuote:
    """Price quote fetched from an HTTP source"""
    symbol: str
    price: float
    timestamp: float
    source: str = ""


@dataclass
class RateLimiter:
    """
    Token bucket shared by all requests of one source.

    Args:
        requests_per_second: Refill rate
        burst_size: Tokens available after an idle period
    """
    requests_per_second: float
    burst_size: int = 5

    _tokens: float = field(default=0.0, init=False)
    _refilled_at: float = field(default=0.0, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    def __post_init__(self):
        self._tokens = float(self.burst_size)
        self._refilled_at = time.monotonic()

    async def acquire(self):
        async with self._lock:
            now = time.monotonic()
            self._tokens = min(
                float(self.burst_size),
                self._tokens + (now - self._refilled_at) * self.requests_per_second,
            )
            self._refilled_at = now

            if self._tokens >= 1:
                self._tokens -= 1
                return
            # Wait out the deficit; the token is consumed on wake-up
            await asyncio.sleep((1 - self._tokens) / self.requests_per_second)
            self._tokens = 0.0
            self._refilled_at = time.monotonic()


class PriceSource(ABC):
    """
    HTTP price source with a short quote cache and retries.

    Quotes younger than cache_ttl are served from memory, so several feeds
    polling the same symbol in one heartbeat cost one request.
    """

    def __init__(
        self,
        name: str,
        rate_limit: float = 5.0,
        cache_ttl: float = 1.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ):
        self.name = name
        self.rate_limiter = RateLimiter(rate_limit)
        self.cache_ttl = cache_ttl
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        # symbol -> (quote, monotonic expiry)
        self._quotes: Dict[str, Tuple[SourceQuote, float]] = {}
        self._failures = 0
        self._last_success: Optional[float] = None

    @property
    def is_healthy(self) -> bool:
        if self._last_success is None:
            return False
        return time.time() - self._last_success < HEALTHY_WINDOW_SECONDS

    def _cached(self, symbol: str) -> Optional[SourceQuote]:
        entry = self._quotes.get(symbol)
        if entry is not None and time.monotonic() < entry[1]:
            return entry[0]
        return None

    async def get_quote(self, symbol: str) -> SourceQuote:
        """
        Latest quote for symbol.

        Raises:
            FeedError: when every attempt failed
        """
        quote = self._cached(symbol)
        if quote is not None:
            return quote

        await self.rate_limiter.acquire()

        for attempt in range(1, self.max_retries + 1):
            try:
                quote = await self._fetch(symbol)
            except Exception as e:
                self._failures += 1
                logger.warning(f"{self.name}: {symbol} attempt {attempt}/{self.max_retries} failed: {e}")
                if attempt == self.max_retries:
                    raise FeedError(f"{self.name}: no quote for {symbol}: {e}") from e
                await asyncio.sleep(self.retry_delay * attempt)
                continue

            self._failures = 0
            self._last_success = time.time()
            self._quotes[symbol] = (quote, time.monotonic() + self.cache_ttl)
            return quote

        raise FeedError(f"{self.name}: max_retries must be at least 1")

    @abstractmethod
    async def _fetch(self, symbol: str) -> SourceQuote:
        """Fetch one quote from the remote API"""
        pass

    async def close(self):
        pass

    def get_status(self) -> Dict[str, Any]:
        """Get source status for monitoring"""
        return {
            "name": self.name,
            "healthy": self.is_healthy,
            "error_count": self._failures,
            "last_success": self._last_success,
            "cached_symbols": sorted(self._quotes),
        }
