"""
Scenario catalog for the timeout cascade simulator.

Responsibilities:

- Describe a scenario (what kind of request misbehaves, and how)
- Load the scenario catalog from YAML
- Look scenarios up by id

The engine only reads a scenario's ``type``, ``duration`` and ``name``;
the descriptions exist for whoever presents the catalog.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CATALOG_PATH = Path(__file__).with_name("catalog.yaml")


class ScenarioType(str, Enum):
    """Closed set of request behaviours."""

    NORMAL = "normal"
    DOWNSTREAM_SLOW_DB = "downstream-slow-db"
    DOWNSTREAM_SLOW_API = "downstream-slow-api"
    COOPERATIVE_SLEEP = "cooperative-sleep"
    BUSY_LOOP = "busy-loop"

    @property
    def waits_downstream(self) -> bool:
        return self in (ScenarioType.DOWNSTREAM_SLOW_DB, ScenarioType.DOWNSTREAM_SLOW_API)


@dataclass(frozen=True)
class Scenario:
    """
    Immutable scenario descriptor.

    ``duration`` is the target run time if nothing times out. It only
    decides success for the ``normal`` type.
    """

    id: str
    name: str
    type: ScenarioType
    duration: float
    description: str = ""
    details: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Scenario":
        """
        Build a scenario from one catalog entry, validating its structure.
        """
        if not isinstance(data, dict):
            raise ValueError("Each scenario must be a YAML mapping (dict)")

        missing = [key for key in ("id", "name", "type", "duration") if key not in data]
        if missing:
            raise ValueError(
                f"Scenario {data.get('id', '<unnamed>')!r} is missing: {', '.join(missing)}"
            )

        try:
            scenario_type = ScenarioType(data["type"])
        except ValueError:
            raise ValueError(
                f"Scenario {data['id']!r} has unknown type {data['type']!r}"
            ) from None

        duration = data["duration"]
        if isinstance(duration, bool) or not isinstance(duration, (int, float)) or duration <= 0:
            raise ValueError(f"Scenario {data['id']!r} duration must be a positive number")

        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            type=scenario_type,
            duration=duration,
            description=str(data.get("description", "")),
            details=str(data.get("details", "")),
        )


def load_catalog(path: Path = DEFAULT_CATALOG_PATH) -> list[Scenario]:
    """
    Load and validate a scenario catalog YAML file.

    The file must be a mapping with a ``scenarios`` list. Scenario ids
    must be unique.
    """
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)

    if not isinstance(raw, dict):
        raise ValueError("Catalog file must be a YAML mapping (dict)")

    if "scenarios" not in raw:
        raise ValueError("Catalog is missing a 'scenarios' section")

    if not isinstance(raw["scenarios"], list):
        raise ValueError("'scenarios' must be a list of scenarios")

    scenarios = [Scenario.from_dict(entry) for entry in raw["scenarios"]]

    seen: set[str] = set()
    for scenario in scenarios:
        if scenario.id in seen:
            raise ValueError(f"Duplicate scenario id: {scenario.id!r}")
        seen.add(scenario.id)

    return scenarios


def get_scenario(scenarios: list[Scenario], scenario_id: str) -> Scenario:
    """
    Return the scenario with the given id.

    Raises:
        KeyError: if no scenario has that id.
    """
    for scenario in scenarios:
        if scenario.id == scenario_id:
            return scenario
    raise KeyError(scenario_id)
