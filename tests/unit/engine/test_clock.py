"""
Unit tests for timeoutsim/engine/clock.py
"""

from unittest.mock import Mock

import pytest

from timeoutsim.engine.clock import TICK_SECONDS, SimulationClock, Ticker


class TestSimulationClock:
    """Test suite for the SimulationClock class."""

    def test_initialization(self):
        """Test that clock initializes with time zero."""
        clock = SimulationClock()
        assert clock.now() == 0, "Clock should start at time 0"

    def test_advance_to_positive_time(self):
        """Test advancing the clock to a future time."""
        clock = SimulationClock()
        clock.advance_to(10)
        assert clock.now() == 10, "Clock should advance to the specified time"

    def test_advance_to_keeps_fractions(self):
        """Test that sub-second targets are kept, not truncated."""
        clock = SimulationClock()
        clock.advance_to(1.5)
        assert clock.now() == 1.5

    def test_advance_to_same_time(self):
        """Test advancing to the current time (no-op)."""
        clock = SimulationClock()
        clock.advance_to(10)
        clock.advance_to(10)  # Should not raise an error
        assert clock.now() == 10, "Clock should remain at same time"

    def test_advance_to_backwards_raises_error(self):
        """Test that attempting to move backwards raises ValueError."""
        clock = SimulationClock()
        clock.advance_to(10)

        with pytest.raises(ValueError) as exc_info:
            clock.advance_to(5)

        assert "Cannot move clock backwards from 10 to 5" in str(exc_info.value)
        assert clock.now() == 10, "Clock time should not change after error"

    def test_advance_by_defaults_to_one_tick(self):
        """Test that advance_by moves one simulated second by default."""
        clock = SimulationClock()
        clock.advance_by()
        clock.advance_by()
        assert clock.now() == 2 * TICK_SECONDS

    def test_reset_functionality(self):
        """Test that reset returns clock to time zero."""
        clock = SimulationClock()
        clock.advance_to(42)

        clock.reset()
        assert clock.now() == 0, "Reset should return clock to time 0"


class TestTicker:
    """Test suite for the Ticker class."""

    def test_initial_state(self):
        """Test that a new ticker is not armed."""
        ticker = Ticker()
        assert ticker.active is False
        assert ticker.fire() is False

    def test_negative_interval_rejected(self):
        """Test that a negative pacing interval is refused."""
        with pytest.raises(ValueError):
            Ticker(interval=-1)

    def test_start_twice_raises(self):
        """Test that only one handler may be armed at a time."""
        ticker = Ticker()
        ticker.start(lambda: None)

        with pytest.raises(RuntimeError) as exc_info:
            ticker.start(lambda: None)

        assert "already running" in str(exc_info.value)

    def test_stop_is_idempotent(self):
        """Test that stop can be called repeatedly."""
        ticker = Ticker()
        ticker.stop()
        ticker.start(lambda: None)
        ticker.stop()
        ticker.stop()
        assert ticker.active is False

    def test_start_after_stop(self):
        """Test that a stopped ticker can be armed again."""
        ticker = Ticker()
        ticker.start(lambda: None)
        ticker.stop()
        ticker.start(lambda: None)
        assert ticker.active is True

    def test_fire_calls_handler_and_advances_clock(self):
        """Test that each fired tick calls the handler once and moves the clock."""
        handler = Mock()
        ticker = Ticker()
        ticker.start(handler)

        assert ticker.fire() is True
        assert ticker.fire() is True

        assert handler.call_count == 2
        assert ticker.clock.now() == 2 * TICK_SECONDS

    def test_start_resets_clock(self):
        """Test that arming the ticker starts its clock from zero."""
        ticker = Ticker()
        ticker.start(lambda: None)
        ticker.fire()
        ticker.stop()

        ticker.start(lambda: None)
        assert ticker.clock.now() == 0

    def test_run_until_handler_stops(self):
        """Test that run returns once the handler stops the ticker."""
        ticker = Ticker()
        calls = []

        def handler():
            calls.append(ticker.clock.now())
            if len(calls) == 3:
                ticker.stop()

        ticker.start(handler)
        fired = ticker.run()

        assert fired == 3
        assert calls == [1.0, 2.0, 3.0]
        assert ticker.active is False

    def test_run_when_not_armed(self):
        """Test that running an idle ticker fires nothing."""
        assert Ticker().run() == 0

    def test_run_respects_max_ticks(self):
        """Test that the optional cap raises instead of spinning forever."""
        ticker = Ticker()
        ticker.start(lambda: None)

        with pytest.raises(RuntimeError) as exc_info:
            ticker.run(max_ticks=5)

        assert "after 5 ticks" in str(exc_info.value)
        assert ticker.clock.now() == 5

    def test_run_sleeps_between_ticks(self):
        """Test that the interval paces the run through the sleep callable."""
        sleep = Mock()
        ticker = Ticker(interval=0.1, sleep=sleep)
        calls = []

        def handler():
            calls.append(1)
            if len(calls) == 2:
                ticker.stop()

        ticker.start(handler)
        ticker.run()

        assert sleep.call_count == 2
        sleep.assert_called_with(0.1)

    def test_zero_interval_never_sleeps(self):
        """Test that an unpaced ticker never calls sleep."""
        sleep = Mock()
        ticker = Ticker(sleep=sleep)
        ticker.start(ticker.stop)
        ticker.run()

        sleep.assert_not_called()

    def test_stop_during_sleep_prevents_next_tick(self):
        """Test that a stop issued while pausing cancels the pending tick."""
        handler = Mock()
        ticker = Ticker(interval=1.0, sleep=lambda _: ticker.stop())
        ticker.start(handler)

        assert ticker.run() == 0
        handler.assert_not_called()
