"""Tests for the indicator engine"""

import math

import numpy as np
import pytest

from bandkeeper.auth import Authority
from bandkeeper.config import IndicatorConfig
from bandkeeper.errors import (
    AlreadyInitialized,
    BadFeed,
    InvalidParams,
    NotInitialized,
    Unauthorized,
)
from bandkeeper.feeds import StaticPriceFeed
from bandkeeper.indicators.engine import IndicatorEngine

OWNER = "owner"
SEED = [100.0, 101.0, 102.0, 103.0, 104.0, 105.0, 106.0, 107.0, 108.0, 109.0]


@pytest.fixture
def engine(make_engine, clock):
    engine = make_engine()
    engine.initialize(OWNER, SEED, clock.now())
    return engine


class TestConstruction:
    def test_window_size(self, make_engine):
        engine = make_engine(window=10)
        assert engine.window_size == 10
        assert engine.is_initialized is False

    def test_rejects_single_observation_window(self, asset_feed, reserve_feed, clock):
        config = IndicatorConfig(moving_average_duration=10, observation_frequency=10)
        with pytest.raises(InvalidParams):
            IndicatorEngine(asset_feed, reserve_feed, config, Authority(OWNER), clock=clock)

    def test_rejects_non_divisible_window(self, asset_feed, reserve_feed, clock):
        config = IndicatorConfig(moving_average_duration=105, observation_frequency=10)
        with pytest.raises(InvalidParams):
            IndicatorEngine(asset_feed, reserve_feed, config, Authority(OWNER), clock=clock)


class TestInitialize:
    def test_moving_average_is_mean(self, engine):
        assert engine.get_moving_average() == pytest.approx(np.mean(SEED), abs=1e-9)

    def test_standard_deviation_is_sample_std(self, engine):
        assert engine.get_standard_deviation() == pytest.approx(np.std(SEED, ddof=1), abs=1e-9)

    def test_seed_copied_verbatim(self, engine, clock):
        assert engine.get_observations() == SEED
        assert engine.next_index == 0
        assert engine.get_last_price() == SEED[-1]
        assert engine.last_observation_time == clock.now()

    def test_already_initialized(self, engine, clock):
        with pytest.raises(AlreadyInitialized):
            engine.initialize(OWNER, SEED, clock.now())

    def test_wrong_length(self, make_engine, clock):
        engine = make_engine()
        with pytest.raises(InvalidParams):
            engine.initialize(OWNER, SEED[:-1], clock.now())
        assert engine.is_initialized is False

    @pytest.mark.parametrize("bad", [0.0, -5.0, float("nan")])
    def test_non_positive_sample(self, make_engine, clock, bad):
        engine = make_engine()
        seed = SEED[:-1] + [bad]
        with pytest.raises(InvalidParams):
            engine.initialize(OWNER, seed, clock.now())
        assert engine.is_initialized is False

    def test_future_timestamp(self, make_engine, clock):
        engine = make_engine()
        with pytest.raises(InvalidParams):
            engine.initialize(OWNER, SEED, clock.now() + 1)

    def test_unauthorized(self, make_engine, clock):
        engine = make_engine()
        with pytest.raises(Unauthorized):
            engine.initialize("intruder", SEED, clock.now())
        assert engine.is_initialized is False


class TestNotInitialized:
    @pytest.mark.parametrize("method", [
        "get_moving_average",
        "get_standard_deviation",
        "get_last_price",
        "get_current_price",
        "get_observations",
        "update",
    ])
    def test_requires_initialize(self, make_engine, method):
        engine = make_engine()
        with pytest.raises(NotInitialized):
            getattr(engine, method)()

    def test_state_before_initialize(self, make_engine):
        state = make_engine().get_state()
        assert state["is_initialized"] is False
        assert state["moving_average"] is None


class TestEvictionDeltaUpdate:
    """Default rule: |new - evicted| is folded in as the data point"""

    def test_flat_window_flat_price(self, make_engine, clock):
        engine = make_engine()
        engine.initialize(OWNER, [100.0] * 10, clock.now())

        reading = engine.update()

        assert reading.price == 100.0
        assert reading.moving_average == pytest.approx(90.0)
        assert engine.m2 == pytest.approx(9000.0)
        assert reading.standard_deviation == pytest.approx(math.sqrt(1000.0))

    def test_price_move(self, make_engine, asset_feed, clock):
        engine = make_engine()
        engine.initialize(OWNER, [100.0] * 10, clock.now())
        asset_feed.set_price(110.0)

        reading = engine.update()

        assert reading.price == 110.0
        assert reading.moving_average == pytest.approx(91.0)
        assert reading.standard_deviation == pytest.approx(math.sqrt(7290.0 / 9))

    def test_constant_price_does_not_settle(self, make_engine, clock):
        engine = make_engine()
        engine.initialize(OWNER, [100.0] * 10, clock.now())

        for _ in range(30):
            clock.advance(10)
            engine.update()

        # Running statistics drift away from the (flat) window
        state = engine.get_state()
        assert state["window_mean"] == pytest.approx(100.0)
        assert state["window_std"] == pytest.approx(0.0, abs=1e-9)
        assert state["moving_average"] < 10.0
        assert state["standard_deviation"] > 10.0


class TestSlidingWindowUpdate:
    def test_flat_window_flat_price(self, make_engine, clock):
        engine = make_engine(rule="sliding_window")
        engine.initialize(OWNER, [100.0] * 10, clock.now())

        reading = engine.update()

        assert reading.moving_average == pytest.approx(100.0)
        assert reading.standard_deviation == pytest.approx(0.0, abs=1e-9)

    def test_tracks_window(self, make_engine, asset_feed, clock):
        engine = make_engine(rule="sliding_window")
        engine.initialize(OWNER, SEED, clock.now())

        for price in [95.0, 120.5, 101.25, 99.0, 130.0, 87.5, 110.0]:
            asset_feed.set_price(price)
            clock.advance(10)
            reading = engine.update()

            window = engine.get_observations()
            assert reading.moving_average == pytest.approx(np.mean(window), abs=1e-9)
            assert reading.standard_deviation == pytest.approx(np.std(window, ddof=1), abs=1e-6)

    def test_constant_price_drives_std_to_zero(self, make_engine, asset_feed, clock):
        engine = make_engine(rule="sliding_window")
        engine.initialize(OWNER, SEED, clock.now())
        asset_feed.set_price(105.0)

        for _ in range(10):
            clock.advance(10)
            engine.update()

        assert engine.get_moving_average() == pytest.approx(105.0)
        assert engine.m2 == pytest.approx(0.0, abs=1e-8)
        assert engine.get_standard_deviation() == pytest.approx(0.0, abs=1e-4)


class TestUpdateBookkeeping:
    def test_buffer_overwrite_and_cursor(self, engine, asset_feed):
        asset_feed.set_price(110.0)
        engine.update()

        assert engine.next_index == 1
        assert engine.get_last_price() == 110.0
        assert engine.get_observations() == SEED[1:] + [110.0]

    def test_cursor_wraps(self, engine, clock):
        for _ in range(10):
            clock.advance(10)
            engine.update()
        assert engine.next_index == 0
        assert engine.get_observations() == [100.0] * 10

    def test_observation_time_and_notification(self, engine, clock):
        seen = []
        engine.subscribe(seen.append)
        clock.advance(10)

        engine.update()

        assert engine.last_observation_time == clock.now()
        assert len(seen) == 1
        assert seen[0].timestamp == clock.now()
        assert seen[0].price == 100.0

    def test_prepare_does_not_store(self, engine, asset_feed):
        seen = []
        engine.subscribe(seen.append)
        before = engine.get_state()
        asset_feed.set_price(110.0)

        pending = engine.prepare_update()

        assert pending.reading.price == 110.0
        assert engine.get_state() == before
        assert seen == []

        reading = engine.commit_update(pending)
        assert reading == pending.reading
        assert engine.get_last_price() == 110.0
        assert engine.next_index == 1
        assert len(seen) == 1

    def test_commit_rejects_outdated_pending(self, engine):
        pending = engine.prepare_update()
        engine.update()

        with pytest.raises(InvalidParams):
            engine.commit_update(pending)
        assert engine.next_index == 1

    def test_unsubscribe(self, engine):
        seen = []
        engine.subscribe(seen.append)
        engine.unsubscribe(seen.append)
        engine.update()
        assert seen == []


class TestCurrentPrice:
    def test_cross_rate(self, engine, reserve_feed):
        reserve_feed.set_price(0.5)
        assert engine.get_current_price() == 200.0

    def test_mixed_decimals(self, clock):
        asset = StaticPriceFeed("asset", 3000.0, decimals=8, clock=clock)
        reserve = StaticPriceFeed("reserve", 0.5, decimals=18, clock=clock)
        config = IndicatorConfig(moving_average_duration=100, observation_frequency=10)
        engine = IndicatorEngine(asset, reserve, config, Authority(OWNER), clock=clock)
        engine.initialize(OWNER, [6000.0] * 10, clock.now())

        assert engine.get_current_price() == 6000.0

    def test_negative_scale_exponent(self, clock):
        asset = StaticPriceFeed("asset", 3000.0, decimals=18, clock=clock)
        reserve = StaticPriceFeed("reserve", 1.0, decimals=8, clock=clock)
        config = IndicatorConfig(
            moving_average_duration=100, observation_frequency=10, price_decimals=0
        )
        engine = IndicatorEngine(asset, reserve, config, Authority(OWNER), clock=clock)
        engine.initialize(OWNER, [3000.0] * 10, clock.now())

        assert engine.get_current_price() == 3000.0

    def test_asset_feed_staleness_bound(self, engine, asset_feed, clock):
        # Asset feed may lag up to 3 observation periods
        asset_feed.updated_at = clock.now() - 30
        assert engine.get_current_price() == 100.0

        asset_feed.updated_at = clock.now() - 31
        with pytest.raises(BadFeed) as exc_info:
            engine.get_current_price()
        assert exc_info.value.feed_id == "asset-usd"

    def test_reserve_feed_staleness_bound(self, engine, reserve_feed, clock):
        # Reserve feed may lag only 1 observation period
        reserve_feed.updated_at = clock.now() - 10
        assert engine.get_current_price() == 100.0

        reserve_feed.updated_at = clock.now() - 20
        with pytest.raises(BadFeed) as exc_info:
            engine.get_current_price()
        assert exc_info.value.feed_id == "reserve-usd"

    def test_non_positive_value(self, engine, reserve_feed):
        reserve_feed.value = 0
        with pytest.raises(BadFeed) as exc_info:
            engine.get_current_price()
        assert exc_info.value.feed_id == "reserve-usd"

    def test_bad_feed_leaves_state_untouched(self, engine, asset_feed, clock):
        before = engine.get_state()
        asset_feed.updated_at = clock.now() - 1000

        with pytest.raises(BadFeed):
            engine.update()

        assert engine.get_state() == before


class TestReconfiguration:
    def test_change_duration_resets(self, engine):
        engine.change_moving_average_duration(OWNER, 200)

        assert engine.is_initialized is False
        assert engine.window_size == 20
        assert engine.moving_average_duration == 200
        assert engine.last_observation_time == 0.0
        assert engine.next_index == 0
        with pytest.raises(NotInitialized):
            engine.get_moving_average()

    def test_change_frequency_resets(self, engine):
        engine.change_observation_frequency(OWNER, 20)

        assert engine.is_initialized is False
        assert engine.window_size == 5
        assert engine.observation_frequency == 20

    def test_reset_even_when_uninitialized(self, make_engine):
        engine = make_engine()
        engine.change_moving_average_duration(OWNER, 50)
        assert engine.is_initialized is False
        assert engine.window_size == 5

    def test_non_divisible_rejected(self, engine):
        with pytest.raises(InvalidParams):
            engine.change_moving_average_duration(OWNER, 105)
        with pytest.raises(InvalidParams):
            engine.change_observation_frequency(OWNER, 30)
        assert engine.is_initialized is True
        assert engine.window_size == 10

    def test_single_observation_window_rejected(self, engine):
        with pytest.raises(InvalidParams):
            engine.change_observation_frequency(OWNER, 100)
        assert engine.is_initialized is True

    def test_unauthorized(self, engine):
        with pytest.raises(Unauthorized):
            engine.change_moving_average_duration("intruder", 200)
        with pytest.raises(Unauthorized):
            engine.change_observation_frequency("intruder", 20)
        assert engine.is_initialized is True

    def test_reinitialize_with_new_window(self, engine, clock):
        engine.change_moving_average_duration(OWNER, 50)
        engine.initialize(OWNER, [10.0, 20.0, 30.0, 40.0, 50.0], clock.now())

        assert engine.get_moving_average() == pytest.approx(30.0)
        assert engine.get_observations() == [10.0, 20.0, 30.0, 40.0, 50.0]
