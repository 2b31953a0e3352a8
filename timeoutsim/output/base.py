# timeoutsim/output/base.py
from __future__ import annotations
from typing import Iterable

from timeoutsim.config import Architecture
from timeoutsim.engine.state import Stage


class Adapter:
    """Base adapter for transforming snapshot events into text lines."""

    def transform(self, event: dict) -> Iterable[str]:
        """Override in subclasses."""
        return []


def stage_label(stage: Stage, architecture: Architecture) -> str:
    """Name a stage the way an operator of that stack would."""
    if stage is Stage.WEB_SERVER:
        return "Nginx" if architecture is Architecture.NGINX_FPM else "Apache"
    return {
        Stage.CLIENT: "Client",
        Stage.PROCESS_MANAGER: "PHP-FPM",
        Stage.RUNTIME: "PHP",
        Stage.DOWNSTREAM: "DB/API",
    }[stage]
