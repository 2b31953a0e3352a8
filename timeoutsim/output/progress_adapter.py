# timeoutsim/output/progress_adapter.py
from __future__ import annotations
from typing import Iterable

from timeoutsim.config import Architecture
from .base import Adapter, stage_label


class ProgressAdapter(Adapter):
    """Renders started/tick/reset events as one status line each."""

    def transform(self, event: dict) -> Iterable[str]:
        state = event["state"]
        event_type = event.get("event_type")

        if event_type in ("simulation.started", "simulation.reset"):
            # The newest log entry is the start or switch message
            yield state.logs[0]
            return

        architecture = Architecture(event["architecture"])
        yield (
            f"[{state.wall_clock_time:>5g}s] cpu={state.cpu_time:g}s "
            f"stage={stage_label(state.active_stage, architecture)}"
        )
