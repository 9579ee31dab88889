"""Data models for the band keeper"""

from .indicator import Observation, IndicatorReading
from .feed import FeedReading
from .order import OrderDirection, DecisionAction, BollingerBands, OrderDecision

__all__ = [
    "Observation",
    "IndicatorReading",
    "FeedReading",
    "OrderDirection",
    "DecisionAction",
    "BollingerBands",
    "OrderDecision",
]
