"""
Band controller.

Epoch-gated decision loop: on each due trigger, pull a fresh indicator
reading, place the price within its Bollinger bands and turn the overshoot
past the midpoint into a bounded time-weighted order.

States: AwaitingEpoch -> Evaluating -> {Idle, SellTriggered, BuyTriggered}
-> AwaitingEpoch. The schedule advances by exactly one epoch per update so
the cadence does not drift with call-time jitter.
"""

import logging
from typing import Dict, Optional

from ..auth import Authority
from ..clock import Clock, SystemClock
from ..config import ControllerConfig
from ..errors import ControllerInactive, InvalidParams, TooEarly
from ..indicators.engine import IndicatorEngine
from ..interfaces import MarketMaker, Minter, Treasury
from ..models.order import DecisionAction, OrderDecision, OrderDirection
from .bands import decide

logger = logging.getLogger(__name__)

MIN_BAND_MULTIPLE = 1.0
MAX_BAND_MULTIPLE = 3.0


class BandController:
    """
    Converts %-band readings into buy/sell orders once per epoch.
    """

    def __init__(
        self,
        engine: IndicatorEngine,
        minter: Minter,
        treasury: Treasury,
        market_maker: MarketMaker,
        config: ControllerConfig,
        authority: Authority,
        clock: Optional[Clock] = None,
        address: str = "band-controller",
    ):
        """
        Initialize band controller.

        Args:
            engine: Indicator engine to pull readings from (not owned)
            minter: Mints asset to the controller for sells
            treasury: Releases reserves to the controller for buys
            market_maker: Venue placing time-weighted orders
            config: Epoch, capacity and threshold parameters
            authority: Owner check for admin operations
            clock: Time source (system clock if not provided)
            address: Identity that receives minted asset and reserves
        """
        errors = config.validate()
        if errors:
            raise InvalidParams("; ".join(errors))

        self.engine = engine
        self.minter = minter
        self.treasury = treasury
        self.market_maker = market_maker
        self.authority = authority
        self.clock = clock or SystemClock()
        self.address = address

        self.bid_capacity = config.bid_capacity
        self.ask_capacity = config.ask_capacity
        self.max_band_multiple = config.max_band_multiple
        self.min_pct_threshold = config.min_pct_threshold
        self.reserve_asset = config.reserve_asset

        self.epoch_duration = config.epoch_duration
        self.num_intervals = self._intervals_for(config.epoch_duration)
        self.next_epoch_timestamp = 0.0

        self.active = True
        self.last_decision: Optional[OrderDecision] = None

    # ============ Update ============

    def is_epoch_due(self) -> bool:
        return self.clock.now() >= self.next_epoch_timestamp

    def update(self) -> OrderDecision:
        """
        Evaluate the current band position and act on it.

        Returns:
            The decision taken for this epoch
        """
        if not self.active:
            raise ControllerInactive("band controller is deactivated")

        now = self.clock.now()
        if now < self.next_epoch_timestamp:
            raise TooEarly(now, self.next_epoch_timestamp)

        # The observation is stored only once the orders went through, so a
        # failed collaborator leaves the engine and the schedule untouched
        pending = self.engine.prepare_update()
        reading = pending.reading

        decision = decide(
            reading,
            band_multiple=self.max_band_multiple,
            min_pct_threshold=self.min_pct_threshold,
            bid_capacity=self.bid_capacity,
            ask_capacity=self.ask_capacity,
        )
        decision.epoch_timestamp = self.next_epoch_timestamp

        if decision.action == DecisionAction.SELL_TRIGGERED:
            decision.num_intervals = self.num_intervals
            self.minter.mint_to(self.address, decision.order_size)
            self.market_maker.place_time_weighted_order(
                OrderDirection.SELL, decision.order_size, self.num_intervals
            )
        elif decision.action == DecisionAction.BUY_TRIGGERED:
            decision.num_intervals = self.num_intervals
            self.treasury.withdraw_reserves(
                self.address, self.reserve_asset, decision.order_size
            )
            self.market_maker.place_time_weighted_order(
                OrderDirection.BUY, decision.order_size, self.num_intervals
            )

        self.engine.commit_update(pending)

        # Fixed cadence, also in the dead zone
        self.next_epoch_timestamp += self.epoch_duration
        self.last_decision = decision

        logger.info(
            f"Epoch decision: {decision.action.value} "
            f"pct_band={decision.percent_band:.2%} size={decision.order_size:.4f} "
            f"price={reading.price:.6f} sma={reading.moving_average:.6f} "
            f"std={reading.standard_deviation:.6f}"
        )
        return decision

    # ============ Admin ============

    def _intervals_for(self, duration: int) -> int:
        min_interval = self.market_maker.minimum_order_interval()
        if duration <= 0 or duration < min_interval:
            raise InvalidParams(
                f"epoch duration {duration}s must cover at least one "
                f"order interval of {min_interval}s"
            )
        return int(duration // min_interval)

    def set_epoch_duration(self, caller: str, duration: int):
        """
        Set the epoch length.

        The schedule is reset so the next update is immediately eligible.
        """
        self.authority.require(caller, "set_epoch_duration")
        num_intervals = self._intervals_for(duration)

        self.epoch_duration = duration
        self.num_intervals = num_intervals
        self.next_epoch_timestamp = 0.0
        logger.info(f"Epoch duration set to {duration}s ({num_intervals} intervals), schedule reset")

    def set_bid_capacity(self, caller: str, capacity: float):
        self.authority.require(caller, "set_bid_capacity")
        self.bid_capacity = capacity

    def set_ask_capacity(self, caller: str, capacity: float):
        self.authority.require(caller, "set_ask_capacity")
        self.ask_capacity = capacity

    def set_max_band_multiple(self, caller: str, multiple: float):
        self.authority.require(caller, "set_max_band_multiple")
        if not MIN_BAND_MULTIPLE <= multiple <= MAX_BAND_MULTIPLE:
            raise InvalidParams(
                f"band multiple must be in [{MIN_BAND_MULTIPLE}, {MAX_BAND_MULTIPLE}], got {multiple}"
            )
        self.max_band_multiple = multiple

    def set_min_pct_threshold(self, caller: str, threshold: float):
        self.authority.require(caller, "set_min_pct_threshold")
        if not 0 <= threshold <= 1:
            raise InvalidParams(f"threshold must be in [0, 1], got {threshold}")
        self.min_pct_threshold = threshold

    def activate(self, caller: str):
        self.authority.require(caller, "activate")
        self.active = True
        logger.info("Band controller activated")

    def deactivate(self, caller: str):
        self.authority.require(caller, "deactivate")
        self.active = False
        logger.info("Band controller deactivated")

    # ============ Monitoring ============

    def get_state(self) -> Dict:
        """Get current controller state for debugging/monitoring"""
        return {
            "active": self.active,
            "epoch_duration": self.epoch_duration,
            "next_epoch_timestamp": self.next_epoch_timestamp,
            "num_intervals": self.num_intervals,
            "bid_capacity": self.bid_capacity,
            "ask_capacity": self.ask_capacity,
            "max_band_multiple": self.max_band_multiple,
            "min_pct_threshold": self.min_pct_threshold,
            "last_decision": self.last_decision.to_dict() if self.last_decision else None,
        }
