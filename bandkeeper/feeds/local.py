"""
In-process price feeds implementing the PriceFeed interface.

StaticPriceFeed returns a fixed price; PolledPriceFeed holds the last quote
pushed into it by a poller. Both store values as fixed-point integers scaled by
their decimals, the same shape an on-chain aggregator reports.
"""

import logging
from typing import Optional

from ..clock import Clock, SystemClock
from ..errors import BadFeed
from ..interfaces import PriceFeed
from ..models.feed import FeedReading
from .base import SourceQuote

logger = logging.getLogger(__name__)


def to_fixed_point(price: float, decimals: int) -> int:
    return int(round(price * 10 ** decimals))


class StaticPriceFeed(PriceFeed):
    """Feed reporting a fixed price, refreshed on every read unless pinned"""

    def __init__(
        self,
        feed_id: str,
        price: float,
        decimals: int = 8,
        clock: Optional[Clock] = None,
        updated_at: Optional[float] = None,
    ):
        super().__init__(feed_id)
        self._decimals = decimals
        self.clock = clock or SystemClock()
        self.value = to_fixed_point(price, decimals)
        self.updated_at = updated_at

    def decimals(self) -> int:
        return self._decimals

    def set_price(self, price: float, updated_at: Optional[float] = None):
        self.value = to_fixed_point(price, self._decimals)
        self.updated_at = updated_at

    def latest_reading(self) -> FeedReading:
        updated_at = self.updated_at if self.updated_at is not None else self.clock.now()
        return FeedReading(value=self.value, updated_at=updated_at)


class PolledPriceFeed(PriceFeed):
    """Feed holding the latest quote pushed by an async poller"""

    def __init__(self, feed_id: str, symbol: str, decimals: int = 8):
        super().__init__(feed_id)
        self.symbol = symbol
        self._decimals = decimals
        self._reading: Optional[FeedReading] = None

    def decimals(self) -> int:
        return self._decimals

    @property
    def has_reading(self) -> bool:
        return self._reading is not None

    def push(self, quote: SourceQuote):
        """Record a fetched quote as the latest reading"""
        if quote.price <= 0:
            raise BadFeed(self.feed_id, f"non-positive quote {quote.price} from {quote.source}")
        self._reading = FeedReading(
            value=to_fixed_point(quote.price, self._decimals),
            updated_at=quote.timestamp,
        )
        logger.debug(f"{self.feed_id}: {quote.symbol} = {quote.price} ({quote.source})")

    def latest_reading(self) -> FeedReading:
        if self._reading is None:
            raise BadFeed(self.feed_id, "no reading yet")
        return self._reading
