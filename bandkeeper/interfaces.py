"""
Collaborator interfaces.

The engine and controller are built with explicit references to these; the
collaborators execute the side effects (price sourcing, minting, reserve
withdrawal, order placement) and are assumed reliable.
"""

from abc import ABC, abstractmethod

from .models.feed import FeedReading
from .models.order import OrderDirection


class PriceFeed(ABC):
    """Upstream price feed (value denominated in a common base unit)"""

    def __init__(self, feed_id: str):
        self.feed_id = feed_id

    @abstractmethod
    def latest_reading(self) -> FeedReading:
        """Return the latest (value, updated_at) reading"""
        pass

    @abstractmethod
    def decimals(self) -> int:
        """Fixed-point precision of reading values"""
        pass


class Minter(ABC):
    @abstractmethod
    def mint_to(self, recipient: str, amount: float):
        """Increase recipient's balance of the asset by amount"""
        pass


class Treasury(ABC):
    @abstractmethod
    def withdraw_reserves(self, recipient: str, asset: str, amount: float):
        """Transfer amount of the reserve asset to recipient"""
        pass


class MarketMaker(ABC):
    """Venue executing time-weighted orders"""

    @abstractmethod
    def place_time_weighted_order(
        self,
        direction: OrderDirection,
        total_size: float,
        num_intervals: int,
    ):
        """Split total_size into num_intervals equal sub-orders"""
        pass

    @abstractmethod
    def minimum_order_interval(self) -> int:
        """Shortest interval between sub-orders, in seconds"""
        pass
