"""
Paper collaborators.

In-memory minter, treasury and market maker that record every call and track
balances. Used by the runner's dry-run mode and by tests.
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Tuple

from ..errors import BandKeeperError
from ..interfaces import MarketMaker, Minter, Treasury
from ..models.order import OrderDirection

logger = logging.getLogger(__name__)


class InsufficientReserves(BandKeeperError):
    """Raised when a withdrawal exceeds the paper treasury's reserves"""
    pass


@dataclass
class PlacedOrder:
    """Time-weighted order accepted by the paper venue"""
    direction: OrderDirection
    total_size: float
    num_intervals: int
    placed_at: float

    @property
    def interval_size(self) -> float:
        """Size of each equal sub-order"""
        return self.total_size / self.num_intervals

    def to_dict(self) -> dict:
        return {
            "direction": self.direction.value,
            "total_size": self.total_size,
            "num_intervals": self.num_intervals,
            "interval_size": self.interval_size,
            "placed_at": self.placed_at,
        }


class PaperMinter(Minter):
    def __init__(self):
        self.balances: Dict[str, float] = defaultdict(float)
        self.mints: List[Tuple[str, float]] = []

    @property
    def total_minted(self) -> float:
        return sum(amount for _, amount in self.mints)

    def mint_to(self, recipient: str, amount: float):
        self.balances[recipient] += amount
        self.mints.append((recipient, amount))
        logger.info(f"Minted {amount:.4f} to {recipient}")


class PaperTreasury(Treasury):
    def __init__(self, reserves: float = 0.0, asset: str = "reserve"):
        self.reserves: Dict[str, float] = {asset: reserves}
        self.balances: Dict[str, float] = defaultdict(float)
        self.withdrawals: List[Tuple[str, str, float]] = []

    def withdraw_reserves(self, recipient: str, asset: str, amount: float):
        available = self.reserves.get(asset, 0.0)
        if amount > available:
            raise InsufficientReserves(
                f"withdrawal of {amount} {asset} exceeds reserves of {available}"
            )
        self.reserves[asset] = available - amount
        self.balances[recipient] += amount
        self.withdrawals.append((recipient, asset, amount))
        logger.info(f"Withdrew {amount:.4f} {asset} to {recipient}")


class PaperMarketMaker(MarketMaker):
    def __init__(self, minimum_interval: int = 3600):
        self._minimum_interval = minimum_interval
        self.orders: List[PlacedOrder] = []

    def minimum_order_interval(self) -> int:
        return self._minimum_interval

    def place_time_weighted_order(
        self,
        direction: OrderDirection,
        total_size: float,
        num_intervals: int,
    ):
        if num_intervals < 1:
            raise ValueError("num_intervals must be at least 1")
        order = PlacedOrder(
            direction=direction,
            total_size=total_size,
            num_intervals=num_intervals,
            placed_at=time.time(),
        )
        self.orders.append(order)
        logger.info(
            f"Placed {direction.value} order of {total_size:.4f} "
            f"over {num_intervals} intervals"
        )
