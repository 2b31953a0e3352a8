"""
Timeout cascade simulator core package.

Models the race between the timeouts of a web-serving stack (client,
web server, process manager, runtime CPU limit, downstream call) and
shows which one ends a request under each failure scenario.

The engine provides:
- SimulationController
- step (pure per-tick transition)
- SimulationClock / Ticker
- EventBus
"""

from timeoutsim.config import Architecture, TimeoutConfig
from timeoutsim.engine.clock import SimulationClock, Ticker
from timeoutsim.engine.event_bus import EventBus
from timeoutsim.engine.scenario_runner import SimulationController
from timeoutsim.engine.simulation_engine import step
from timeoutsim.engine.state import ErrorSource, SimulationState, SimulationStatus, Stage
from timeoutsim.scenarios import Scenario, ScenarioType, load_catalog
