# timeoutsim/output/adapter.py
from pathlib import Path
from typing import Any, Iterable

from timeoutsim.engine.scenario_runner import FINISHED, RESET, STARTED, TICK
from .outcome_adapter import OutcomeAdapter
from .progress_adapter import ProgressAdapter


class SnapshotAdapter:
    """Dispatch snapshot events to the proper adapter."""

    def __init__(self, show_ticks: bool = True):
        progress = ProgressAdapter()
        self.adapters = {
            STARTED: progress,
            RESET: progress,
            FINISHED: OutcomeAdapter(),
        }
        if show_ticks:
            self.adapters[TICK] = progress

    def transform(self, event: dict) -> list[str]:
        adapter = self.adapters.get(event.get("event_type"))
        if adapter:
            return list(adapter.transform(event))
        return []


def event_record(event: dict) -> dict[str, Any]:
    """Flatten a snapshot event into a JSON-serialisable record."""
    return {
        "event_type": event.get("event_type"),
        "timestamp": event.get("timestamp"),
        "architecture": event.get("architecture"),
        "scenario_id": event.get("scenario_id"),
        "state": event["state"].to_dict(),
    }


def write_run_log(events: Iterable[dict], output_file_path: str | Path) -> None:
    adapter = SnapshotAdapter()
    output_file = Path(output_file_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    with output_file.open("w", encoding="utf-8") as f:
        for event in events:
            for line in adapter.transform(event):
                if line:
                    f.write(line + "\n")
