"""
Simulation clock and ticker for the timeout cascade simulator.

The clock decouples a run from real time: one tick is always exactly one
simulated second, however fast or slow the ticker is paced. The ticker
is the only thing that drives a run forwards.

Ticks are fired one after another on the calling thread. There is no
background thread and no timer callback, so no two ticks can overlap.
"""

import time
from collections.abc import Callable

TICK_SECONDS = 1.0

TickHandler = Callable[[], None]


class SimulationClock:
    """
    A minimal simulated clock.

    Time is represented as seconds since the start of the run. No
    assumptions are made about real-world timestamps.
    """

    def __init__(self) -> None:
        self._current_time: float = 0.0

    def now(self) -> float:
        """
        Return the current simulated time in seconds.
        """
        return self._current_time

    def advance_to(self, target_time: int | float) -> None:
        """
        Advance the clock to the specified time.

        The clock may only move forwards. Attempting to move backwards is
        a programming error.
        """
        target = float(target_time)

        if target < self._current_time:
            raise ValueError(
                f"Cannot move clock backwards from {self._current_time:g} to {target:g}"
            )

        self._current_time = target

    def advance_by(self, seconds: int | float = TICK_SECONDS) -> None:
        self.advance_to(self._current_time + seconds)

    def reset(self) -> None:
        """
        Reset the clock to time zero.
        """
        self._current_time = 0.0


class Ticker:
    """
    Fires a tick handler at a fixed cadence until stopped.

    ``interval`` is the real-time pause between ticks. It only paces the
    run for a human watching it; each tick still stands for
    ``TICK_SECONDS`` of simulated time. With the default interval of 0 a
    run completes as fast as the handler allows.

    Usage::

        ticker.start(handler)
        ticker.run()        # returns once something calls ticker.stop()
    """

    def __init__(
        self,
        interval: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval < 0:
            raise ValueError(f"Tick interval cannot be negative: {interval}")

        self.interval = interval
        self.clock = SimulationClock()
        self._sleep = sleep
        self._handler: TickHandler | None = None

    @property
    def active(self) -> bool:
        return self._handler is not None

    def start(self, on_tick: TickHandler) -> None:
        """
        Arm the ticker with a handler.

        Only one handler may be armed at a time; call stop() first.
        """
        if self._handler is not None:
            raise RuntimeError("Ticker is already running; stop it before starting again")

        self.clock.reset()
        self._handler = on_tick

    def stop(self) -> None:
        """
        Disarm the ticker.

        Safe to call at any time, including from inside the tick handler
        and when the ticker is already stopped.
        """
        self._handler = None

    def fire(self) -> bool:
        """
        Fire a single tick. Returns False if the ticker is not armed.
        """
        handler = self._handler
        if handler is None:
            return False

        self.clock.advance_by(TICK_SECONDS)
        handler()
        return True

    def run(self, max_ticks: int | None = None) -> int:
        """
        Fire ticks until the ticker is stopped.

        Args:
            max_ticks: Optional cap on the number of ticks fired. Reaching
                       it raises RuntimeError and leaves the ticker armed.

        Returns:
            Number of ticks fired.
        """
        fired = 0

        while self._handler is not None:
            if max_ticks is not None and fired >= max_ticks:
                raise RuntimeError(f"Ticker still running after {max_ticks} ticks")

            if self.interval:
                self._sleep(self.interval)

            # stop() may have been called while we slept
            if not self.fire():
                break
            fired += 1

        return fired
