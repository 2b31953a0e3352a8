"""
Simulation engine for the timeout cascade simulator.

One tick of a run, as a pure function. ``step`` never touches a timer,
an event bus or any shared state: give it a snapshot and it returns the
next one. The run controller calls it from the ticker; tests call it
directly with as many ticks as they like.
"""

from dataclasses import replace

from timeoutsim.config import Architecture, TimeoutConfig
from timeoutsim.engine.cascade import TickContext, evaluate
from timeoutsim.engine.clock import TICK_SECONDS
from timeoutsim.engine.metrics import Metrics, accumulate
from timeoutsim.engine.stages import resolve_stage
from timeoutsim.engine.state import SimulationState
from timeoutsim.scenarios import Scenario


def step(
    state: SimulationState,
    config: TimeoutConfig,
    scenario: Scenario,
    architecture: Architecture,
    tick: float = TICK_SECONDS,
) -> SimulationState:
    """
    Advance a running simulation by one tick.

    This function:
    1. Resolves the active stage for the new wall-clock time
    2. Advances the wall-clock and CPU clocks
    3. Runs the timeout cascade against the new clocks

    Args:
        state: Current snapshot. Snapshots that are not running are
               returned unchanged.
        config: Layer timeouts.
        scenario: The scenario being run.
        architecture: Stack serving the request.
        tick: Simulated seconds covered by this tick.

    Returns:
        The next snapshot, terminal if a cascade rule fired.
    """
    if not state.running:
        return state

    phase = resolve_stage(state.wall_clock_time + tick, architecture, scenario.type)
    metrics = accumulate(Metrics(state.wall_clock_time, state.cpu_time), phase.cpu_active, tick)

    advanced = replace(
        state,
        wall_clock_time=metrics.wall_clock_time,
        cpu_time=metrics.cpu_time,
        active_stage=phase.stage,
    )

    outcome = evaluate(TickContext(metrics, phase.stage, config, architecture, scenario))
    if outcome is None:
        return advanced

    return replace(
        advanced,
        status=outcome.status,
        error_source=outcome.error_source,
        active_stage=phase.stage if outcome.stage is None else outcome.stage,
    ).with_log(outcome.message)


def run_to_completion(
    state: SimulationState,
    config: TimeoutConfig,
    scenario: Scenario,
    architecture: Architecture,
    max_ticks: int = 10_000,
) -> list[SimulationState]:
    """
    Step a running snapshot until it reaches a terminal status.

    Returns every snapshot produced, the terminal one last.
    """
    history: list[SimulationState] = []

    for _ in range(max_ticks):
        state = step(state, config, scenario, architecture)
        history.append(state)
        if not state.running:
            return history

    raise RuntimeError(f"Simulation did not finish within {max_ticks} ticks")
