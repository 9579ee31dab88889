"""Band controller decision models"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OrderDirection(Enum):
    """Side of a time-weighted order, from the asset's point of view"""
    BUY = "buy"    # Buy asset with reserves (price low in band)
    SELL = "sell"  # Sell freshly minted asset (price high in band)


class DecisionAction(Enum):
    """Outcome of one controller evaluation"""
    IDLE = "idle"
    SELL_TRIGGERED = "sell_triggered"
    BUY_TRIGGERED = "buy_triggered"


@dataclass
class BollingerBands:
    """
    Bollinger bands around the moving average.

    percent_band is the clamped position of price between lower (0.0) and
    upper (1.0); 0.5 is the moving average.
    """
    upper: float
    lower: float
    middle: float
    percent_band: float

    @property
    def is_degenerate(self) -> bool:
        """True when the bands collapse onto the average (zero volatility)"""
        return self.upper == self.lower

    def to_dict(self) -> dict:
        return {
            "upper": self.upper,
            "lower": self.lower,
            "middle": self.middle,
            "percent_band": self.percent_band,
        }


@dataclass
class OrderDecision:
    """
    Result of one band controller update.

    Attributes:
        action: Idle, sell or buy
        percent_band: Band position used for the decision, in [0, 1]
        overshoot: Fraction of the half-band beyond the midpoint, in [0, 1]
        order_size: Order size in asset units (sell) or reserve units (buy)
        num_intervals: Sub-intervals the time-weighted order is split across
        bands: Bands computed for this decision
        epoch_timestamp: The epoch this decision was made for
    """
    action: DecisionAction
    percent_band: float
    overshoot: float = 0.0
    order_size: float = 0.0
    num_intervals: int = 0
    bands: Optional[BollingerBands] = None
    epoch_timestamp: float = 0.0

    @property
    def direction(self) -> Optional[OrderDirection]:
        if self.action == DecisionAction.SELL_TRIGGERED:
            return OrderDirection.SELL
        if self.action == DecisionAction.BUY_TRIGGERED:
            return OrderDirection.BUY
        return None

    @property
    def is_triggered(self) -> bool:
        return self.action != DecisionAction.IDLE

    @classmethod
    def idle(cls, percent_band: float, bands: Optional[BollingerBands] = None) -> "OrderDecision":
        """Create dead-zone (no order) decision"""
        return cls(action=DecisionAction.IDLE, percent_band=percent_band, bands=bands)

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "direction": self.direction.value if self.direction else None,
            "percent_band": self.percent_band,
            "overshoot": self.overshoot,
            "order_size": self.order_size,
            "num_intervals": self.num_intervals,
            "bands": self.bands.to_dict() if self.bands else None,
            "epoch_timestamp": self.epoch_timestamp,
        }
