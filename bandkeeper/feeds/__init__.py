"""
Price feeds for the Band Keeper

- PriceFeed implementations read by the indicator engine (static, polled)
- HTTP price sources (Coinbase, Binance) polled by the runner

Usage:
    from bandkeeper.feeds import CoinbasePriceSource, PolledPriceFeed

    async def poll():
        source = CoinbasePriceSource()
        feed = PolledPriceFeed("asset-usd", "ETH/USD")
        feed.push(await source.get_quote("ETH/USD"))
"""

from typing import Optional

from ..clock import Clock
from ..config import FeedConfig
from ..interfaces import PriceFeed
from .base import FeedError, PriceSource, RateLimiter, SourceQuote
from .local import PolledPriceFeed, StaticPriceFeed
from .sources import BinancePriceSource, CoinbasePriceSource

SOURCES = {
    "coinbase": CoinbasePriceSource,
    "binance": BinancePriceSource,
}


def build_source(config: FeedConfig) -> Optional[PriceSource]:
    """HTTP source for a feed config, None for static feeds"""
    if config.source == "static":
        return None
    source_cls = SOURCES[config.source]
    return source_cls(
        rate_limit=config.requests_per_second,
        max_retries=config.max_retries,
    )


def build_feed(config: FeedConfig, clock: Optional[Clock] = None) -> PriceFeed:
    """PriceFeed the engine reads for a feed config"""
    if config.source == "static":
        return StaticPriceFeed(
            config.feed_id, config.static_price, decimals=config.decimals, clock=clock
        )
    return PolledPriceFeed(config.feed_id, config.symbol, decimals=config.decimals)


__all__ = [
    "FeedError",
    "PriceSource",
    "RateLimiter",
    "SourceQuote",
    "StaticPriceFeed",
    "PolledPriceFeed",
    "CoinbasePriceSource",
    "BinancePriceSource",
    "build_source",
    "build_feed",
]
