"""
Band Keeper - Heartbeat Orchestrator

Wires an indicator engine and a band controller to their collaborators and
drives them from a single heartbeat:
1. Band controller update when the epoch is due (pulls its own observation)
2. Otherwise an indicator engine update when an observation is due
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional, Sequence

from .auth import Authority
from .clock import Clock, SystemClock
from .config import KeeperConfig, load_config
from .controller.controller import BandController
from .errors import NotInitialized
from .feeds import build_feed
from .indicators.engine import IndicatorEngine
from .interfaces import MarketMaker, Minter, PriceFeed, Treasury
from .models.indicator import Observation
from .models.order import OrderDecision
from .venues.paper import PaperMarketMaker, PaperMinter, PaperTreasury

logger = logging.getLogger(__name__)


@dataclass
class HeartbeatResult:
    """What a single heartbeat did"""
    timestamp: float
    observation: Optional[Observation] = None
    decision: Optional[OrderDecision] = None

    @property
    def is_idle(self) -> bool:
        return self.observation is None and self.decision is None

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "observation": self.observation.to_dict() if self.observation else None,
            "decision": self.decision.to_dict() if self.decision else None,
        }


class BandKeeper:
    """
    Main keeper orchestrator.

    Collaborators default to the paper implementations and config-built feeds
    when not injected.
    """

    def __init__(
        self,
        config: Optional[KeeperConfig] = None,
        asset_feed: Optional[PriceFeed] = None,
        reserve_feed: Optional[PriceFeed] = None,
        minter: Optional[Minter] = None,
        treasury: Optional[Treasury] = None,
        market_maker: Optional[MarketMaker] = None,
        clock: Optional[Clock] = None,
        history_size: int = 256,
    ):
        """
        Initialize band keeper.

        Args:
            config: Keeper configuration (loads default if not provided)
            asset_feed: Asset price feed (built from config if not provided)
            reserve_feed: Reserve price feed (built from config if not provided)
            minter: Minting collaborator (paper if not provided)
            treasury: Treasury collaborator (paper if not provided)
            market_maker: Market-making venue (paper if not provided)
            clock: Time source shared by all components
            history_size: Number of recent observations kept for monitoring
        """
        self.config = config or load_config()
        self.clock = clock or SystemClock()
        self.authority = Authority(self.config.owner)

        self.asset_feed = asset_feed or build_feed(self.config.asset_feed, self.clock)
        self.reserve_feed = reserve_feed or build_feed(self.config.reserve_feed, self.clock)

        self.minter = minter or PaperMinter()
        self.treasury = treasury or PaperTreasury(
            reserves=self.config.venue.initial_reserves,
            asset=self.config.controller.reserve_asset,
        )
        self.market_maker = market_maker or PaperMarketMaker(
            minimum_interval=self.config.venue.minimum_order_interval
        )

        self.engine = IndicatorEngine(
            self.asset_feed,
            self.reserve_feed,
            self.config.indicator,
            self.authority,
            clock=self.clock,
        )
        self.controller = BandController(
            self.engine,
            self.minter,
            self.treasury,
            self.market_maker,
            self.config.controller,
            self.authority,
            clock=self.clock,
        )

        self.history: Deque[Observation] = deque(maxlen=history_size)
        self._observation_count = 0
        self.engine.subscribe(self._record)
        self._beats = 0

    def _record(self, observation: Observation):
        self.history.append(observation)
        self._observation_count += 1

    def initialize(
        self,
        caller: str,
        seed_observations: Sequence[float],
        last_observation_time: Optional[float] = None,
    ):
        """Seed the indicator engine; last observation defaults to now"""
        if last_observation_time is None:
            last_observation_time = self.clock.now()
        self.engine.initialize(caller, seed_observations, last_observation_time)

    def is_observation_due(self) -> bool:
        next_observation = self.engine.last_observation_time + self.engine.observation_frequency
        return self.clock.now() >= next_observation

    def heartbeat(self) -> HeartbeatResult:
        """
        Run whatever is due at the current time.

        Returns:
            HeartbeatResult with the observation and decision taken, if any
        """
        if not self.engine.is_initialized:
            raise NotInitialized("indicator engine is not initialized")

        self._beats += 1
        result = HeartbeatResult(timestamp=self.clock.now())
        observed = self._observation_count

        if self.controller.active and self.controller.is_epoch_due():
            result.decision = self.controller.update()
        elif self.is_observation_due():
            self.engine.update()

        if self._observation_count != observed:
            result.observation = self.history[-1]

        if result.is_idle:
            logger.debug(f"Heartbeat {self._beats}: nothing due")
        return result

    def recent_prices(self) -> List[float]:
        return [obs.price for obs in self.history]

    def get_state(self) -> Dict:
        """
        Get current keeper state for debugging/monitoring.
        """
        return {
            "beats": self._beats,
            "owner": self.authority.owner,
            "engine": self.engine.get_state(),
            "controller": self.controller.get_state(),
            "orders_placed": len(getattr(self.market_maker, "orders", [])),
        }
