"""
Band Keeper Runner

Polls HTTP price sources, pushes the quotes into the engine's feeds and
drives the keeper heartbeat. Orders go to the paper venue.

Usage:
    python -m bandkeeper.runner
    python -m bandkeeper.runner --config keeper.yaml --interval 30
    python -m bandkeeper.runner --seed 3000 --once
"""

import asyncio
import argparse
import logging
import signal
from typing import Dict, List, Optional, Sequence

from .clock import Clock
from .config import KeeperConfig, load_config
from .feeds import PolledPriceFeed, build_source
from .keeper import BandKeeper, HeartbeatResult

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_file: str = ""):
    """Configure root logging for the runner"""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=level.upper(),
        format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%H:%M:%S',
        handlers=handlers,
    )


def parse_seed(raw: Optional[str], window_size: int) -> Optional[List[float]]:
    """
    Parse a comma-separated seed.

    A single value is repeated over the whole window; otherwise exactly
    window_size values are required.
    """
    if not raw:
        return None
    values = [float(v) for v in raw.split(",") if v.strip()]
    if len(values) == 1:
        return values * window_size
    if len(values) != window_size:
        raise ValueError(f"seed needs 1 or {window_size} values, got {len(values)}")
    return values


class KeeperRunner:
    """
    Runs the Band Keeper against live price sources.
    """

    def __init__(
        self,
        config: KeeperConfig,
        update_interval: Optional[int] = None,
        seed: Optional[Sequence[float]] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config
        self.update_interval = update_interval or config.heartbeat_interval_seconds
        self.seed = seed

        self.keeper = BandKeeper(config, clock=clock)
        self._sources = [
            (self.keeper.asset_feed, build_source(config.asset_feed),
             config.asset_feed.poll_interval_seconds),
            (self.keeper.reserve_feed, build_source(config.reserve_feed),
             config.reserve_feed.poll_interval_seconds),
        ]
        self._last_polled: Dict[str, float] = {}

        self._running = False
        self._update_count = 0

    async def poll_feeds(self):
        """Fetch a quote for every polled feed whose poll interval has elapsed"""
        now = self.keeper.clock.now()
        for feed, source, interval in self._sources:
            if source is None or not isinstance(feed, PolledPriceFeed):
                continue
            last = self._last_polled.get(feed.feed_id)
            if last is not None and now - last < interval:
                continue
            quote = await source.get_quote(feed.symbol)
            feed.push(quote)
            self._last_polled[feed.feed_id] = now

    async def ensure_initialized(self):
        """Seed the engine from --seed or from the current cross rate"""
        engine = self.keeper.engine
        if engine.is_initialized:
            return

        seed = self.seed
        if seed is None:
            await self.poll_feeds()
            asset = self.keeper.asset_feed.latest_reading()
            reserve = self.keeper.reserve_feed.latest_reading()
            asset_price = asset.value / 10 ** self.keeper.asset_feed.decimals()
            reserve_price = reserve.value / 10 ** self.keeper.reserve_feed.decimals()
            seed = [asset_price / reserve_price] * engine.window_size
            logger.info(f"Seeding flat window at current price {seed[0]:.6f}")

        self.keeper.initialize(self.config.owner, seed)

    async def start(self):
        """Start the keeper runner"""
        logger.info(f"Starting Band Keeper ({self.config.asset_feed.symbol} / "
                    f"{self.config.reserve_feed.symbol})")
        logger.info(f"Heartbeat interval: {self.update_interval}s")
        logger.info(f"Window: N={self.keeper.engine.window_size} "
                    f"rule={self.keeper.engine.update_rule}")
        logger.info("-" * 60)

        self._running = True

        try:
            await self.ensure_initialized()
            while self._running:
                await self._update_cycle()
                await asyncio.sleep(self.update_interval)
        except asyncio.CancelledError:
            logger.info("Keeper runner cancelled")
        finally:
            await self.stop()

    async def stop(self):
        """Stop the keeper runner"""
        self._running = False
        for _, source, _ in self._sources:
            if source is not None:
                await source.close()
        logger.info("Keeper runner stopped")

    async def _update_cycle(self) -> Optional[HeartbeatResult]:
        """Single heartbeat cycle"""
        self._update_count += 1

        try:
            await self.poll_feeds()
            result = self.keeper.heartbeat()
            self._log_update(result)
            return result
        except Exception as e:
            logger.error(f"Heartbeat failed: {e}", exc_info=True)
            return None

    def _log_update(self, result: HeartbeatResult):
        if result.is_idle:
            return

        logger.info(f"[{self._update_count}] heartbeat")
        if result.observation:
            engine = self.keeper.engine
            logger.info(
                f"  Price: {result.observation.price:,.6f} | "
                f"SMA: {engine.get_moving_average():,.6f} | "
                f"Std: {engine.get_standard_deviation():,.6f}"
            )
        if result.decision:
            d = result.decision
            logger.info(
                f"  Decision: {d.action.value} | %B: {d.percent_band:.1%} | "
                f"Size: {d.order_size:,.4f} over {d.num_intervals} intervals"
            )
        logger.info("-" * 60)


async def run_once(config: KeeperConfig, seed: Optional[Sequence[float]] = None):
    """
    Seed (if needed) and run a single heartbeat.

    Returns:
        Tuple of (result, keeper)
    """
    runner = KeeperRunner(config, seed=seed)
    try:
        await runner.ensure_initialized()
        await runner.poll_feeds()
        return runner.keeper.heartbeat(), runner.keeper
    finally:
        await runner.stop()


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Band Keeper Runner")
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML/JSON config (default: search keeper.yaml, keeper.json)"
    )
    parser.add_argument(
        "--interval", "-i",
        type=int,
        default=None,
        help="Heartbeat interval in seconds (default: from config)"
    )
    parser.add_argument(
        "--seed", "-s",
        default=None,
        help="Seed prices, comma separated; one value seeds a flat window"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run one heartbeat and exit"
    )

    args = parser.parse_args()

    config = load_config(args.config)
    setup_logging(config.log_level, config.log_file)
    seed = parse_seed(args.seed, config.indicator.window_size)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    try:
        if args.once:
            result, keeper = loop.run_until_complete(run_once(config, seed))
            state = keeper.engine.get_state()
            print(f"\nMoving Average: {state['moving_average']:,.6f}")
            print(f"Std Dev: {state['standard_deviation']:,.6f}")
            if result.decision:
                print(f"Decision: {result.decision.action.value} "
                      f"(%B {result.decision.percent_band:.1%}, "
                      f"size {result.decision.order_size:,.4f})")
        else:
            runner = KeeperRunner(config, update_interval=args.interval, seed=seed)

            def signal_handler(sig, frame):
                logger.info("Shutting down...")
                runner._running = False

            signal.signal(signal.SIGINT, signal_handler)
            loop.run_until_complete(runner.start())
    except KeyboardInterrupt:
        pass
    finally:
        loop.close()


if __name__ == "__main__":
    main()
