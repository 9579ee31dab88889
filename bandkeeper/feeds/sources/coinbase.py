"""
Coinbase price source.

Uses the public product ticker endpoint (no auth required).
"""

import time

from ..base import SourceQuote
from .http import HttpPriceSource


class CoinbasePriceSource(HttpPriceSource):
    """
    Coinbase spot ticker.

    Rate limits: 10 requests/second for public endpoints
    """

    BASE_URL = "https://api.exchange.coinbase.com"

    # Map our symbols to Coinbase format
    SYMBOL_MAP = {
        "ETH/USD": "ETH-USD",
        "BTC/USD": "BTC-USD",
        "USDT/USD": "USDT-USD",
        "DAI/USD": "DAI-USD",
    }

    def __init__(self, cache_ttl: float = 1.0, rate_limit: float = 5.0, max_retries: int = 3):
        super().__init__(
            name="coinbase",
            rate_limit=rate_limit,
            cache_ttl=cache_ttl,
            max_retries=max_retries,
        )

    async def _fetch(self, symbol: str) -> SourceQuote:
        cb_symbol = self.SYMBOL_MAP.get(symbol, symbol.replace("/", "-"))
        data = await self._get_json(f"/products/{cb_symbol}/ticker")

        return SourceQuote(
            symbol=symbol,
            price=float(data["price"]),
            timestamp=time.time(),
            source=self.name,
        )
