"""Shared fixtures for band keeper tests"""

import pytest

from bandkeeper.auth import Authority
from bandkeeper.clock import ManualClock
from bandkeeper.config import IndicatorConfig
from bandkeeper.feeds import StaticPriceFeed
from bandkeeper.indicators.engine import IndicatorEngine

OWNER = "owner"
START_TIME = 1_000_000.0
FREQUENCY = 10


@pytest.fixture
def owner():
    return OWNER


@pytest.fixture
def clock():
    return ManualClock(start=START_TIME)


@pytest.fixture
def authority():
    return Authority(OWNER)


@pytest.fixture
def asset_feed(clock):
    return StaticPriceFeed("asset-usd", 100.0, decimals=8, clock=clock)


@pytest.fixture
def reserve_feed(clock):
    return StaticPriceFeed("reserve-usd", 1.0, decimals=8, clock=clock)


@pytest.fixture
def make_engine(asset_feed, reserve_feed, authority, clock):
    """Factory for engines over a window of `window` observations"""
    def _make(window=10, rule="eviction_delta", frequency=FREQUENCY):
        config = IndicatorConfig(
            moving_average_duration=window * frequency,
            observation_frequency=frequency,
            update_rule=rule,
        )
        return IndicatorEngine(asset_feed, reserve_feed, config, authority, clock=clock)
    return _make
