"""
Stage resolution for the timeout cascade simulator.

Given how long the request has been in flight, which stack serves it and
what the scenario is doing, decide which layer is active and whether
that layer burns CPU time this tick.

The phases are an ordered tuple of rules; the first rule whose condition
holds wins. Waiting on a database, an API or a sleep() call advances the
wall clock but not the CPU clock. Only bootstrapping and real
computation cost CPU time.
"""

from collections.abc import Callable
from typing import NamedTuple

from timeoutsim.config import Architecture
from timeoutsim.engine.state import Stage
from timeoutsim.scenarios import ScenarioType

# Request entry through the web server
WEB_SERVER_END = 1.0
# Process manager hands the request to a worker (Nginx + FPM only)
PROCESS_MANAGER_END = 1.5
# Runtime bootstrap, after which the scenario's own behaviour starts
DOWNSTREAM_START = 2.0


class Phase(NamedTuple):
    stage: Stage
    cpu_active: bool


class PhaseRule(NamedTuple):
    name: str
    applies: Callable[[float, Architecture, ScenarioType], bool]
    phase: Phase


PHASES: tuple[PhaseRule, ...] = (
    PhaseRule(
        "request-entry",
        lambda t, arch, kind: t <= WEB_SERVER_END,
        Phase(Stage.WEB_SERVER, False),
    ),
    PhaseRule(
        "process-management",
        lambda t, arch, kind: arch.has_process_manager and t <= PROCESS_MANAGER_END,
        Phase(Stage.PROCESS_MANAGER, False),
    ),
    PhaseRule(
        "bootstrap",
        lambda t, arch, kind: t <= DOWNSTREAM_START,
        Phase(Stage.RUNTIME, True),
    ),
    PhaseRule(
        "downstream-wait",
        lambda t, arch, kind: kind.waits_downstream,
        Phase(Stage.DOWNSTREAM, False),
    ),
    PhaseRule(
        "sleep",
        lambda t, arch, kind: kind is ScenarioType.COOPERATIVE_SLEEP,
        Phase(Stage.RUNTIME, False),
    ),
    PhaseRule(
        "execution",
        lambda t, arch, kind: True,
        Phase(Stage.RUNTIME, True),
    ),
)


def resolve_stage(
    wall_clock_time: float,
    architecture: Architecture,
    scenario_type: ScenarioType,
) -> Phase:
    for rule in PHASES:
        if rule.applies(wall_clock_time, architecture, scenario_type):
            return rule.phase

    # The last rule always matches
    raise AssertionError("no phase rule matched")
