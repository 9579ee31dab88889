"""
Binance price source.

Uses the public book ticker endpoint (no auth required); the quote is the
bid/ask midpoint.
"""

import time

from ..base import SourceQuote
from .http import HttpPriceSource


class BinancePriceSource(HttpPriceSource):
    """
    Binance spot book ticker.

    Rate limits: 1200 requests/minute for general endpoints
    """

    BASE_URL = "https://api.binance.com"

    SYMBOL_MAP = {
        "ETH/USDT": "ETHUSDT",
        "BTC/USDT": "BTCUSDT",
        "ETH/USDC": "ETHUSDC",
        "USDC/USDT": "USDCUSDT",
    }

    def __init__(self, cache_ttl: float = 1.0, rate_limit: float = 10.0, max_retries: int = 3):
        super().__init__(
            name="binance",
            rate_limit=rate_limit,
            cache_ttl=cache_ttl,
            max_retries=max_retries,
        )

    async def _fetch(self, symbol: str) -> SourceQuote:
        binance_symbol = self.SYMBOL_MAP.get(symbol, symbol.replace("/", ""))
        data = await self._get_json(
            "/api/v3/ticker/bookTicker", params={"symbol": binance_symbol}
        )

        bid = float(data["bidPrice"])
        ask = float(data["askPrice"])

        return SourceQuote(
            symbol=symbol,
            price=(bid + ask) / 2,
            timestamp=time.time(),
            source=self.name,
        )
