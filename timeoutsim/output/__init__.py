# timeoutsim/output/__init__.py
from .base import Adapter, stage_label
from .adapter import SnapshotAdapter, event_record, write_run_log
from .progress_adapter import ProgressAdapter
from .outcome_adapter import OutcomeAdapter

__all__ = [
    "Adapter",
    "stage_label",
    "SnapshotAdapter",
    "event_record",
    "write_run_log",
    "ProgressAdapter",
    "OutcomeAdapter",
]
