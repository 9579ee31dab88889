"""
Configuration for the Band Keeper

Supports:
- YAML/JSON file loading
- Environment variable overrides
- Validation with sensible defaults
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Any, Union
from pathlib import Path
import os
import json
import logging

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env file if present
load_dotenv()


UPDATE_RULES = ("eviction_delta", "sliding_window")
PRICE_SOURCES = ("coinbase", "binance", "static")


# ============ Sub-Configurations ============

@dataclass
class IndicatorConfig:
    """Indicator engine configuration"""
    # Window shape (seconds); window size N = duration / frequency
    moving_average_duration: int = 30 * 24 * 3600  # 30 days
    observation_frequency: int = 8 * 3600  # 8 hours

    # Fixed-point precision of the cross rate before conversion to float
    price_decimals: int = 18

    # Running statistics update rule
    update_rule: str = "eviction_delta"

    @property
    def window_size(self) -> int:
        if self.observation_frequency <= 0:
            return 0
        return self.moving_average_duration // self.observation_frequency

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors"""
        errors = []
        if self.observation_frequency <= 0:
            errors.append("observation_frequency must be positive")
        elif self.moving_average_duration % self.observation_frequency != 0:
            errors.append("moving_average_duration must be a multiple of observation_frequency")
        elif self.window_size < 2:
            errors.append("window size (duration / frequency) must be at least 2")
        if self.price_decimals < 0:
            errors.append("price_decimals must be non-negative")
        if self.update_rule not in UPDATE_RULES:
            errors.append(f"update_rule must be one of {UPDATE_RULES}")
        return errors


@dataclass
class ControllerConfig:
    """Band controller configuration"""
    epoch_duration: int = 24 * 3600  # 1 day

    # Maximum order size per epoch
    bid_capacity: float = 100_000.0  # reserve units
    ask_capacity: float = 100_000.0  # asset units

    # Band width in standard deviations
    max_band_multiple: float = 2.0

    # Dead zone half-width around the 50% band midpoint
    min_pct_threshold: float = 0.05

    # Reserve asset withdrawn from treasury on buys
    reserve_asset: str = "reserve"

    def validate(self) -> List[str]:
        errors = []
        if self.epoch_duration <= 0:
            errors.append("epoch_duration must be positive")
        if not 1 <= self.max_band_multiple <= 3:
            errors.append("max_band_multiple must be in [1, 3]")
        if not 0 <= self.min_pct_threshold <= 1:
            errors.append("min_pct_threshold must be in [0, 1]")
        if not self.reserve_asset:
            errors.append("reserve_asset is required")
        return errors


@dataclass
class FeedConfig:
    """Price feed configuration"""
    feed_id: str
    source: str = "coinbase"
    symbol: str = "ETH/USD"
    decimals: int = 8

    # Static source only
    static_price: float = 0.0

    # HTTP polling
    poll_interval_seconds: int = 60
    requests_per_second: float = 5.0
    max_retries: int = 3

    def validate(self) -> List[str]:
        errors = []
        if not self.feed_id:
            errors.append("feed_id is required")
        if self.source not in PRICE_SOURCES:
            errors.append(f"feed {self.feed_id}: source must be one of {PRICE_SOURCES}")
        if self.decimals < 0:
            errors.append(f"feed {self.feed_id}: decimals must be non-negative")
        if self.source == "static" and self.static_price <= 0:
            errors.append(f"feed {self.feed_id}: static_price must be positive")
        if self.poll_interval_seconds <= 0:
            errors.append(f"feed {self.feed_id}: poll_interval_seconds must be positive")
        return errors


@dataclass
class VenueConfig:
    """Paper market-making venue and treasury configuration"""
    minimum_order_interval: int = 3600  # 1 hour
    initial_reserves: float = 10_000_000.0

    def validate(self) -> List[str]:
        errors = []
        if self.minimum_order_interval <= 0:
            errors.append("minimum_order_interval must be positive")
        if self.initial_reserves < 0:
            errors.append("initial_reserves must be non-negative")
        return errors


# ============ Default Feeds ============

def get_default_asset_feed() -> FeedConfig:
    return FeedConfig(feed_id="asset-usd", source="coinbase", symbol="ETH/USD", decimals=8)


def get_default_reserve_feed() -> FeedConfig:
    return FeedConfig(feed_id="reserve-usd", source="coinbase", symbol="USDT/USD", decimals=8)


# ============ Main Configuration ============

@dataclass
class KeeperConfig:
    """Main keeper configuration"""
    # Sub-configs
    indicator: IndicatorConfig = field(default_factory=IndicatorConfig)
    controller: ControllerConfig = field(default_factory=ControllerConfig)
    venue: VenueConfig = field(default_factory=VenueConfig)

    # Feeds: asset in base units, reserve in base units
    asset_feed: FeedConfig = field(default_factory=get_default_asset_feed)
    reserve_feed: FeedConfig = field(default_factory=get_default_reserve_feed)

    # Admin identity (loaded from env)
    owner: str = field(default_factory=lambda: os.getenv("KEEPER_OWNER", "keeper-admin"))

    # Heartbeat cadence of the runner
    heartbeat_interval_seconds: int = 60

    # Logging
    log_level: str = "INFO"
    log_file: str = ""

    def validate(self) -> List[str]:
        """Validate entire configuration"""
        errors = []

        errors.extend(self.indicator.validate())
        errors.extend(self.controller.validate())
        errors.extend(self.venue.validate())
        errors.extend(self.asset_feed.validate())
        errors.extend(self.reserve_feed.validate())

        if self.asset_feed.feed_id == self.reserve_feed.feed_id:
            errors.append("asset_feed and reserve_feed must have distinct feed_id")

        if not self.owner:
            errors.append("owner is required")

        if self.heartbeat_interval_seconds <= 0:
            errors.append("heartbeat_interval_seconds must be positive")

        if self.controller.epoch_duration < self.venue.minimum_order_interval:
            errors.append("epoch_duration must be at least minimum_order_interval")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (for serialization)"""
        return asdict(self)


# ============ Configuration Loading ============

def _apply_env_overrides(config_dict: Dict) -> Dict:
    """Apply environment variable overrides to config"""
    env_mappings = {
        "KEEPER_OWNER": (("owner",), str),
        "LOG_LEVEL": (("log_level",), str),
        "HEARTBEAT_INTERVAL_SECONDS": (("heartbeat_interval_seconds",), int),

        # Indicator window
        "MOVING_AVERAGE_DURATION": (("indicator", "moving_average_duration"), int),
        "OBSERVATION_FREQUENCY": (("indicator", "observation_frequency"), int),
        "UPDATE_RULE": (("indicator", "update_rule"), str),

        # Controller
        "EPOCH_DURATION": (("controller", "epoch_duration"), int),
        "BID_CAPACITY": (("controller", "bid_capacity"), float),
        "ASK_CAPACITY": (("controller", "ask_capacity"), float),
    }

    for env_var, (path, cast) in env_mappings.items():
        value = os.getenv(env_var)
        if value is not None:
            current = config_dict
            for key in path[:-1]:
                if key not in current:
                    current[key] = {}
                current = current[key]
            try:
                current[path[-1]] = cast(value)
            except ValueError:
                raise ValueError(f"Invalid value for {env_var}: {value!r}")

    return config_dict


def _dict_to_config(d: Dict) -> KeeperConfig:
    """Convert dictionary to KeeperConfig"""
    indicator = IndicatorConfig(**d.get("indicator", {}))
    controller = ControllerConfig(**d.get("controller", {}))
    venue = VenueConfig(**d.get("venue", {}))

    asset_feed = d.get("asset_feed")
    asset_feed = FeedConfig(**asset_feed) if isinstance(asset_feed, dict) else get_default_asset_feed()
    reserve_feed = d.get("reserve_feed")
    reserve_feed = FeedConfig(**reserve_feed) if isinstance(reserve_feed, dict) else get_default_reserve_feed()

    return KeeperConfig(
        indicator=indicator,
        controller=controller,
        venue=venue,
        asset_feed=asset_feed,
        reserve_feed=reserve_feed,
        owner=d.get("owner", os.getenv("KEEPER_OWNER", "keeper-admin")),
        heartbeat_interval_seconds=d.get("heartbeat_interval_seconds", 60),
        log_level=d.get("log_level", "INFO"),
        log_file=d.get("log_file", ""),
    )


def load_config(config_path: Optional[Union[str, Path]] = None) -> KeeperConfig:
    """
    Load configuration from file or environment.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (YAML/JSON)
    3. Default values

    Args:
        config_path: Path to config file. If None, looks for:
            - KEEPER_CONFIG_PATH env var
            - ./keeper.yaml
            - ./keeper.json
            - ./config/keeper.yaml
            - ./config/keeper.json

    Returns:
        KeeperConfig instance
    """
    config_dict: Dict[str, Any] = {}

    if config_path is None:
        config_path = os.getenv("KEEPER_CONFIG_PATH")

    if config_path is None:
        search_paths = [
            Path("keeper.yaml"),
            Path("keeper.json"),
            Path("config/keeper.yaml"),
            Path("config/keeper.json"),
        ]
        for path in search_paths:
            if path.exists():
                config_path = path
                break

    if config_path is not None:
        config_path = Path(config_path)
        if config_path.exists():
            logger.info(f"Loading config from {config_path}")

            with open(config_path, 'r') as f:
                if config_path.suffix in ['.yaml', '.yml']:
                    config_dict = yaml.safe_load(f) or {}
                elif config_path.suffix == '.json':
                    config_dict = json.load(f)
                else:
                    raise ValueError(f"Unsupported config file format: {config_path.suffix}")
        else:
            logger.warning(f"Config file not found: {config_path}")

    config_dict = _apply_env_overrides(config_dict)

    config = _dict_to_config(config_dict)

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Config validation error: {error}")
        raise ValueError(f"Configuration validation failed with {len(errors)} errors")

    return config


def save_config(config: KeeperConfig, path: Union[str, Path], format: str = "yaml") -> None:
    """
    Save configuration to file.

    Args:
        config: KeeperConfig to save
        path: Output file path
        format: "yaml" or "json"
    """
    path = Path(path)
    config_dict = config.to_dict()

    # Owner identity comes from the environment in deployments
    config_dict.pop("owner", None)

    with open(path, 'w') as f:
        if format == "yaml":
            yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
        elif format == "json":
            json.dump(config_dict, f, indent=2)
        else:
            raise ValueError(f"Unsupported format: {format}")

    logger.info(f"Config saved to {path}")


def generate_default_config(path: Union[str, Path], format: str = "yaml") -> None:
    """Generate a default configuration file"""
    config = KeeperConfig()
    save_config(config, path, format)
