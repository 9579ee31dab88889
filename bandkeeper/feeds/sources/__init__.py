"""HTTP price sources"""

from .http import HttpPriceSource
from .coinbase import CoinbasePriceSource
from .binance import BinancePriceSource

__all__ = ["HttpPriceSource", "CoinbasePriceSource", "BinancePriceSource"]
