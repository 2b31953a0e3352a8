"""
Simulation state for the timeout cascade simulator.

A SimulationState is an immutable snapshot. Every tick produces a new
one; nothing ever mutates a snapshot in place, so any observer holding
a reference sees a consistent picture.
"""

from dataclasses import dataclass, replace
from enum import Enum

MAX_LOG_ENTRIES = 10

READY_MESSAGE = "Ready to simulate..."


class SimulationStatus(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"

    @property
    def terminal(self) -> bool:
        return self in (SimulationStatus.SUCCESS, SimulationStatus.ERROR)


class Stage(str, Enum):
    """The layer a request is currently sitting in."""

    CLIENT = "client"
    WEB_SERVER = "web-server"
    PROCESS_MANAGER = "process-manager"
    RUNTIME = "runtime"
    DOWNSTREAM = "downstream"


class ErrorSource(str, Enum):
    """
    Which layer ended a failed run.

    DOWNSTREAM_HANG is reserved for a downstream call that hangs with no
    downstream timeout configured at all. No cascade rule produces it.
    """

    NONE = "none"
    CLIENT_TIMEOUT = "client-timeout"
    WEB_SERVER_TIMEOUT = "web-server-timeout"
    PROCESS_MANAGER_TIMEOUT = "process-manager-timeout"
    CPU_LIMIT = "cpu-limit"
    DOWNSTREAM_TIMEOUT = "downstream-timeout"
    DOWNSTREAM_HANG = "downstream-hang"


@dataclass(frozen=True)
class SimulationState:
    status: SimulationStatus = SimulationStatus.IDLE
    wall_clock_time: float = 0.0
    cpu_time: float = 0.0
    active_stage: Stage = Stage.CLIENT
    error_source: ErrorSource = ErrorSource.NONE
    logs: tuple[str, ...] = (READY_MESSAGE,)

    @property
    def running(self) -> bool:
        return self.status is SimulationStatus.RUNNING

    @property
    def finished(self) -> bool:
        return self.status.terminal

    def with_log(self, message: str) -> "SimulationState":
        """
        Return a copy with ``message`` prepended to the log history.

        The history is most-recent-first and keeps only the newest
        MAX_LOG_ENTRIES lines.
        """
        return replace(self, logs=((message,) + self.logs)[:MAX_LOG_ENTRIES])

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "wall_clock_time": self.wall_clock_time,
            "cpu_time": self.cpu_time,
            "active_stage": self.active_stage.value,
            "error_source": self.error_source.value,
            "logs": list(self.logs),
        }


def idle_state(message: str = READY_MESSAGE) -> SimulationState:
    return SimulationState(logs=(message,))


def running_state(message: str) -> SimulationState:
    """
    Start a fresh run.

    Clocks and error classification are zeroed and the log history is
    replaced by the start message.
    """
    return SimulationState(status=SimulationStatus.RUNNING, logs=(message,))
