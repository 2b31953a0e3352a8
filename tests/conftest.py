"""Test configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from timeoutsim.config import TimeoutConfig  # noqa: E402
from timeoutsim.engine.state import SimulationState, running_state  # noqa: E402
from timeoutsim.scenarios import Scenario, load_catalog  # noqa: E402


@pytest.fixture
def catalog() -> list[Scenario]:
    """The bundled scenario catalog."""
    return load_catalog()


@pytest.fixture
def default_config() -> TimeoutConfig:
    """Default layer timeouts: client 90, web 70, FPM 65, CPU 60, DB 50."""
    return TimeoutConfig()


@pytest.fixture
def running() -> SimulationState:
    """A freshly started run."""
    return running_state("Started: test")
