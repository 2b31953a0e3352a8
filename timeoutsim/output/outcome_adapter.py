# timeoutsim/output/outcome_adapter.py
from __future__ import annotations
from typing import Iterable

from timeoutsim.config import Architecture
from timeoutsim.engine.state import ErrorSource, SimulationStatus
from .base import Adapter, stage_label


class OutcomeAdapter(Adapter):
    """Renders the terminal event of a run."""

    def transform(self, event: dict) -> Iterable[str]:
        state = event["state"]
        architecture = Architecture(event["architecture"])

        if state.status is SimulationStatus.SUCCESS:
            marker = "OK"
        elif state.error_source is ErrorSource.DOWNSTREAM_TIMEOUT:
            # Caught by application code, so the request still gets an answer
            marker = "WARN"
        else:
            marker = "ERROR"

        yield f"[{marker}] {state.logs[0]}"
        yield (
            f"{state.status.value} after {state.wall_clock_time:g}s wall clock, "
            f"{state.cpu_time:g}s CPU; stopped in {stage_label(state.active_stage, architecture)} "
            f"({state.error_source.value})"
        )
