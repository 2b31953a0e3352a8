"""
Run controller for the timeout cascade simulator.

Responsibilities:

- Own the configuration, the architecture and the current snapshot
- Own the single ticker that drives a run
- Apply each tick through the pure ``step`` function
- Hand every applied snapshot to the EventBus
- Reject configuration and architecture changes while a run is active
"""

import logging

from timeoutsim.config import Architecture, TimeoutConfig, validate_value
from timeoutsim.engine.clock import Ticker
from timeoutsim.engine.event_bus import Event, EventBus, Observer
from timeoutsim.engine.simulation_engine import step
from timeoutsim.engine.state import SimulationState, idle_state, running_state
from timeoutsim.scenarios import Scenario

logger = logging.getLogger(__name__)

STARTED = "simulation.started"
TICK = "simulation.tick"
FINISHED = "simulation.finished"
RESET = "simulation.reset"


class SimulationController:
    """
    Executes one scenario at a time in simulated time.

    Starting a run while another is active is rejected, as are
    configuration and architecture changes. Rejected calls return False
    and leave everything untouched.
    """

    def __init__(
        self,
        config: TimeoutConfig | None = None,
        architecture: Architecture = Architecture.NGINX_FPM,
        event_bus: EventBus | None = None,
        ticker: Ticker | None = None,
    ) -> None:
        self.event_bus = event_bus or EventBus()
        self.ticker = ticker or Ticker()
        self._config = config or TimeoutConfig()
        self._architecture = architecture
        self._scenario: Scenario | None = None
        self._state = idle_state()

    @property
    def config(self) -> TimeoutConfig:
        return self._config

    @property
    def architecture(self) -> Architecture:
        return self._architecture

    @property
    def scenario(self) -> Scenario | None:
        return self._scenario

    def snapshot(self) -> SimulationState:
        """
        Return the latest fully applied snapshot.
        """
        return self._state

    def subscribe(self, observer: Observer):
        """
        Register an observer for snapshot events. Returns an unsubscribe callable.
        """
        return self.event_bus.subscribe(observer)

    def configure(self, key: str, value: float) -> bool:
        """
        Change one timeout threshold.

        Raises:
            ValueError: for an unknown key or a non-positive value.
        """
        validate_value(key, value)
        if self._state.running:
            logger.debug("Ignoring %s=%s while a run is active", key, value)
            return False

        self._config = self._config.with_value(key, value)
        logger.debug("Configured %s=%s", key, value)
        return True

    def switch_architecture(self, architecture: Architecture) -> bool:
        """
        Switch the serving stack and reset to idle.
        """
        if self._state.running:
            logger.debug("Ignoring switch to %s while a run is active", architecture.value)
            return False

        self.ticker.stop()
        self._architecture = architecture
        self._scenario = None
        self._state = idle_state(
            f"Switched architecture to {architecture.label}. Ready to simulate."
        )
        self._publish(RESET)
        return True

    def start(self, scenario: Scenario) -> bool:
        """
        Begin a run of ``scenario``.

        The ticker is armed but not driven; call run() (or tick()) to
        advance the simulation.
        """
        if self._state.running:
            logger.debug("Ignoring start of %s while a run is active", scenario.id)
            return False

        self.ticker.stop()
        self._scenario = scenario
        self._state = running_state(f"Started: {scenario.name} ({self._architecture.label})")
        self.ticker.start(self._on_tick)
        logger.info("Started %s on %s", scenario.id, self._architecture.value)
        self._publish(STARTED)
        return True

    def tick(self) -> SimulationState:
        """
        Apply exactly one tick, if a run is active.
        """
        self.ticker.fire()
        return self._state

    def run(self, max_ticks: int | None = None) -> SimulationState:
        """
        Drive the active run until a cascade rule ends it.
        """
        self.ticker.run(max_ticks=max_ticks)
        return self._state

    def _on_tick(self) -> None:
        if self._scenario is None:
            raise RuntimeError("Ticker fired with no scenario started")

        self._state = step(self._state, self._config, self._scenario, self._architecture)

        if self._state.running:
            self._publish(TICK)
            return

        self.ticker.stop()
        logger.info(
            "Run of %s ended %s (%s) at %gs wall / %gs CPU",
            self._scenario.id,
            self._state.status.value,
            self._state.error_source.value,
            self._state.wall_clock_time,
            self._state.cpu_time,
        )
        self._publish(FINISHED)

    def _publish(self, event_type: str) -> None:
        event: Event = {
            "event_type": event_type,
            "timestamp": self._state.wall_clock_time,
            "architecture": self._architecture.value,
            "scenario_id": self._scenario.id if self._scenario else None,
            "state": self._state,
        }
        self.event_bus.publish(event)
