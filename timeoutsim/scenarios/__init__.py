"""
Scenario catalog for the timeout cascade simulator.

Each scenario describes one way a request can misbehave: finish quickly,
wait on a database or an external API, sleep, or spin on the CPU.
"""

from timeoutsim.scenarios.catalog import (
    DEFAULT_CATALOG_PATH,
    Scenario,
    ScenarioType,
    get_scenario,
    load_catalog,
)

__all__ = [
    "DEFAULT_CATALOG_PATH",
    "Scenario",
    "ScenarioType",
    "get_scenario",
    "load_catalog",
]
