"""
Band Keeper - Bollinger band order sizing

A rolling price-statistics engine (moving average and standard deviation
over a fixed observation window, updated incrementally) paired with an
epoch-gated controller that turns the price's %-band position into bounded
buy/sell orders.
"""

__version__ = "1.0.0"

from .keeper import BandKeeper, HeartbeatResult
from .indicators.engine import IndicatorEngine
from .controller.controller import BandController
from .models.indicator import IndicatorReading, Observation
from .models.order import OrderDecision, OrderDirection, DecisionAction, BollingerBands
from .errors import (
    BandKeeperError,
    InvalidParams,
    NotInitialized,
    AlreadyInitialized,
    BadFeed,
    TooEarly,
    Unauthorized,
    ControllerInactive,
)

__all__ = [
    # Core
    "BandKeeper",
    "HeartbeatResult",
    "IndicatorEngine",
    "BandController",
    # Models
    "IndicatorReading",
    "Observation",
    "OrderDecision",
    "OrderDirection",
    "DecisionAction",
    "BollingerBands",
    # Errors
    "BandKeeperError",
    "InvalidParams",
    "NotInitialized",
    "AlreadyInitialized",
    "BadFeed",
    "TooEarly",
    "Unauthorized",
    "ControllerInactive",
]
