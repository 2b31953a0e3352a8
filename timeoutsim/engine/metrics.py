"""
Wall-clock and CPU time accounting.
"""

from typing import NamedTuple

from timeoutsim.engine.clock import TICK_SECONDS


class Metrics(NamedTuple):
    wall_clock_time: float = 0.0
    cpu_time: float = 0.0


def accumulate(metrics: Metrics, cpu_active: bool, tick: float = TICK_SECONDS) -> Metrics:
    """
    Advance both clocks by one tick.

    Wall-clock time always moves; CPU time only moves while the active
    stage is computing. Neither clock ever decreases.
    """
    if tick < 0:
        raise ValueError(f"Tick cannot be negative: {tick}")

    return Metrics(
        wall_clock_time=metrics.wall_clock_time + tick,
        cpu_time=metrics.cpu_time + (tick if cpu_active else 0.0),
    )
