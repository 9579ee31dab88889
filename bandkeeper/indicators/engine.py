"""
Indicator engine: rolling moving average and standard deviation.

State:
- Observation window of N = moving_average_duration / observation_frequency
  samples, written through a single cursor
- Running moving average and M2, updated incrementally on every tick
- Lifecycle flag; any change of N puts the engine back to uninitialized

Every operation either commits its whole state transition or raises before
touching state.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from ..auth import Authority
from ..clock import Clock, SystemClock
from ..config import IndicatorConfig
from ..errors import AlreadyInitialized, BadFeed, InvalidParams, NotInitialized
from ..interfaces import PriceFeed
from ..models.indicator import IndicatorReading, Observation
from .stats import UPDATE_RULES, fold_samples, sample_std, window_statistics
from .window import ObservationWindow

logger = logging.getLogger(__name__)

# Staleness bounds as multiples of the observation frequency
ASSET_FEED_STALENESS = 3
RESERVE_FEED_STALENESS = 1

ObservationCallback = Callable[[Observation], None]


@dataclass
class PendingUpdate:
    """Computed but not yet stored observation"""
    reading: IndicatorReading
    m2: float
    next_index: int
    window_size: int


class IndicatorEngine:
    """
    Rolling price statistics over a fixed observation window.
    """

    def __init__(
        self,
        asset_feed: PriceFeed,
        reserve_feed: PriceFeed,
        config: IndicatorConfig,
        authority: Authority,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize indicator engine (uninitialized until seeded).

        Args:
            asset_feed: Feed of the asset price in the base unit
            reserve_feed: Feed of the reserve price in the base unit
            config: Window shape, precision and update rule
            authority: Owner check for admin operations
            clock: Time source (system clock if not provided)
        """
        errors = config.validate()
        if errors:
            raise InvalidParams("; ".join(errors))

        self.asset_feed = asset_feed
        self.reserve_feed = reserve_feed
        self.authority = authority
        self.clock = clock or SystemClock()

        self._moving_average_duration = config.moving_average_duration
        self._observation_frequency = config.observation_frequency
        self._update_rule_name = config.update_rule
        self._update_rule = UPDATE_RULES[config.update_rule]

        # Cross rate precision is fixed at construction
        self.price_decimals = config.price_decimals
        self._scale_exponent = (
            config.price_decimals + reserve_feed.decimals() - asset_feed.decimals()
        )

        self._observers: List[ObservationCallback] = []
        self._reset_window(config.window_size)

    # ============ Lifecycle ============

    def _reset_window(self, window_size: int):
        """Allocate an empty window and drop all running statistics"""
        self._window = ObservationWindow(window_size)
        self._moving_average = 0.0
        self._m2 = 0.0
        self._last_observation_time = 0.0
        self._initialized = False

    def initialize(
        self,
        caller: str,
        seed_observations: Sequence[float],
        last_observation_time: float,
    ):
        """
        Seed the window and the running statistics.

        Args:
            caller: Identity performing the call (must be the owner)
            seed_observations: Exactly N positive prices, oldest first
            last_observation_time: Timestamp of the newest seed sample
        """
        self.authority.require(caller, "initialize")

        if self._initialized:
            raise AlreadyInitialized("indicator engine is already initialized")

        window_size = self._window.capacity
        if len(seed_observations) != window_size:
            raise InvalidParams(
                f"expected {window_size} seed observations, got {len(seed_observations)}"
            )
        for sample in seed_observations:
            if not sample > 0 or math.isinf(sample):
                raise InvalidParams(f"seed observations must be positive, got {sample}")
        if last_observation_time > self.clock.now():
            raise InvalidParams("last_observation_time is in the future")

        average, m2 = fold_samples(seed_observations)

        self._window.load(seed_observations)
        self._moving_average = average
        self._m2 = m2
        self._last_observation_time = float(last_observation_time)
        self._initialized = True

        logger.info(
            f"Indicator engine initialized: N={window_size} "
            f"avg={average:.6f} std={self.get_standard_deviation():.6f}"
        )

    def _require_initialized(self):
        if not self._initialized:
            raise NotInitialized("indicator engine is not initialized")

    # ============ Update ============

    def update(self) -> IndicatorReading:
        """
        Take one observation and roll the statistics forward.

        Returns:
            IndicatorReading of (price, moving average, standard deviation)
        """
        return self.commit_update(self.prepare_update())

    def prepare_update(self) -> PendingUpdate:
        """
        Read the feeds and compute the next statistics without storing them.

        Callers that must act on the reading before keeping it (the band
        controller) commit the result with commit_update() afterwards.
        """
        self._require_initialized()

        window_size = self._window.capacity
        oldest = self._window.oldest
        current_price = self.get_current_price()

        average, m2 = self._update_rule(
            self._moving_average, self._m2, current_price, oldest, window_size
        )

        reading = IndicatorReading(
            price=current_price,
            moving_average=average,
            standard_deviation=sample_std(m2, window_size),
            timestamp=self.clock.now(),
        )
        return PendingUpdate(
            reading=reading,
            m2=m2,
            next_index=self._window.next_index,
            window_size=window_size,
        )

    def commit_update(self, pending: PendingUpdate) -> IndicatorReading:
        """Store a prepared observation and notify subscribers"""
        self._require_initialized()
        if (pending.window_size != self._window.capacity
                or pending.next_index != self._window.next_index):
            raise InvalidParams("pending update no longer matches the observation window")

        reading = pending.reading
        self._window.push(reading.price)
        self._moving_average = reading.moving_average
        self._m2 = pending.m2
        self._last_observation_time = reading.timestamp

        logger.debug(
            f"Observation t={reading.timestamp:.0f} price={reading.price:.6f} "
            f"avg={reading.moving_average:.6f} std={reading.standard_deviation:.6f}"
        )
        self._notify(Observation(timestamp=reading.timestamp, price=reading.price))
        return reading

    def subscribe(self, callback: ObservationCallback):
        """Register a callable receiving each committed Observation"""
        self._observers.append(callback)

    def unsubscribe(self, callback: ObservationCallback):
        self._observers.remove(callback)

    def _notify(self, observation: Observation):
        for callback in list(self._observers):
            callback(observation)

    # ============ Price ============

    def _read_feed(self, feed: PriceFeed, max_age: float, now: float) -> int:
        reading = feed.latest_reading()
        if reading.age(now) > max_age:
            raise BadFeed(feed.feed_id, f"stale by {reading.age(now) - max_age:.0f}s")
        if reading.value <= 0:
            raise BadFeed(feed.feed_id, f"non-positive value {reading.value}")
        return int(reading.value)

    def get_current_price(self) -> float:
        """
        Cross rate of asset over reserve, in quote units.

        The asset feed must have updated within 3 observation periods and the
        reserve feed within 1.
        """
        self._require_initialized()

        now = self.clock.now()
        asset_value = self._read_feed(
            self.asset_feed, ASSET_FEED_STALENESS * self._observation_frequency, now
        )
        reserve_value = self._read_feed(
            self.reserve_feed, RESERVE_FEED_STALENESS * self._observation_frequency, now
        )

        # Fixed-point division first, then conversion to quote units
        if self._scale_exponent >= 0:
            price = (asset_value * 10 ** self._scale_exponent) // reserve_value
        else:
            price = asset_value // (reserve_value * 10 ** -self._scale_exponent)

        return price / 10 ** self.price_decimals

    # ============ Accessors ============

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def window_size(self) -> int:
        return self._window.capacity

    @property
    def moving_average_duration(self) -> int:
        return self._moving_average_duration

    @property
    def observation_frequency(self) -> int:
        return self._observation_frequency

    @property
    def update_rule(self) -> str:
        return self._update_rule_name

    @property
    def last_observation_time(self) -> float:
        return self._last_observation_time

    @property
    def next_index(self) -> int:
        return self._window.next_index

    @property
    def m2(self) -> float:
        return self._m2

    def get_moving_average(self) -> float:
        self._require_initialized()
        return self._moving_average

    def get_standard_deviation(self) -> float:
        self._require_initialized()
        return sample_std(self._m2, self._window.capacity)

    def get_last_price(self) -> float:
        """Most recent sample in the window"""
        self._require_initialized()
        return self._window.latest

    def get_observations(self) -> List[float]:
        """Window samples, oldest first"""
        self._require_initialized()
        return self._window.ordered().tolist()

    # ============ Reconfiguration ============

    def _check_window_shape(self, duration: int, frequency: int) -> int:
        if frequency <= 0 or duration <= 0:
            raise InvalidParams("duration and frequency must be positive")
        if duration % frequency != 0:
            raise InvalidParams(
                f"moving average duration {duration} is not a multiple of "
                f"observation frequency {frequency}"
            )
        window_size = duration // frequency
        if window_size < 2:
            raise InvalidParams("window must hold at least 2 observations")
        return window_size

    def change_moving_average_duration(self, caller: str, duration: int):
        """Set a new window duration; the engine must be re-initialized"""
        self.authority.require(caller, "change_moving_average_duration")
        window_size = self._check_window_shape(duration, self._observation_frequency)

        self._moving_average_duration = duration
        self._reset_window(window_size)
        logger.info(f"Moving average duration set to {duration}s (N={window_size}), engine reset")

    def change_observation_frequency(self, caller: str, frequency: int):
        """Set a new observation frequency; the engine must be re-initialized"""
        self.authority.require(caller, "change_observation_frequency")
        window_size = self._check_window_shape(self._moving_average_duration, frequency)

        self._observation_frequency = frequency
        self._reset_window(window_size)
        logger.info(f"Observation frequency set to {frequency}s (N={window_size}), engine reset")

    # ============ Monitoring ============

    def get_state(self) -> Dict:
        """
        Get current engine state for debugging/monitoring.

        Reports the direct window mean/std next to the running statistics so
        drift of the running estimator is visible.
        """
        state = {
            "is_initialized": self._initialized,
            "window_size": self._window.capacity,
            "moving_average_duration": self._moving_average_duration,
            "observation_frequency": self._observation_frequency,
            "update_rule": self._update_rule_name,
            "next_index": self._window.next_index,
            "last_observation_time": self._last_observation_time,
            "moving_average": None,
            "standard_deviation": None,
            "window_mean": None,
            "window_std": None,
        }
        if self._initialized:
            window_mean, window_std = window_statistics(self._window.ordered())
            state.update({
                "moving_average": self._moving_average,
                "standard_deviation": self.get_standard_deviation(),
                "last_price": self._window.latest,
                "window_mean": window_mean,
                "window_std": window_std,
            })
        return state
