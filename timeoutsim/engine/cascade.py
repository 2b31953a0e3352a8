"""
The timeout cascade.

Every layer of the stack has its own timeout and they race each other.
After each tick's metrics are applied, the rules in CASCADE are checked
in order and the first one that holds ends the run. Later rules are not
looked at on that tick.

The order is:

1. client         - outermost; the backend keeps working (zombie)
2. downstream     - graceful, caught by application code
3. CPU limit      - runtime kills itself on CPU time
4. process manager - worker killed on wall-clock time (Nginx + FPM only)
5. web server     - proxy gives up on wall-clock time
6. success        - a normal request finished

Swapping any two rules changes which error some configurations produce.
"""

from collections.abc import Callable
from typing import NamedTuple

from timeoutsim.config import Architecture, TimeoutConfig, format_seconds
from timeoutsim.engine.metrics import Metrics
from timeoutsim.engine.stages import DOWNSTREAM_START
from timeoutsim.engine.state import ErrorSource, SimulationStatus, Stage
from timeoutsim.scenarios import Scenario, ScenarioType


class TickContext(NamedTuple):
    """Everything a cascade rule may look at for one tick."""

    metrics: Metrics
    stage: Stage
    config: TimeoutConfig
    architecture: Architecture
    scenario: Scenario


class Outcome(NamedTuple):
    status: SimulationStatus
    error_source: ErrorSource
    # None keeps the stage the resolver picked for this tick
    stage: Stage | None
    message: str


class CascadeRule(NamedTuple):
    name: str
    applies: Callable[[TickContext], bool]
    outcome: Callable[[TickContext], Outcome]


def _client_timeout(ctx: TickContext) -> Outcome:
    return Outcome(
        SimulationStatus.ERROR,
        ErrorSource.CLIENT_TIMEOUT,
        None,
        f"Client Disconnect: Load Balancer or Browser gave up at "
        f"{format_seconds(ctx.config.client_timeout)}s. Server became a Zombie.",
    )


def _in_downstream_too_long(ctx: TickContext) -> bool:
    if ctx.stage is not Stage.DOWNSTREAM:
        return False
    return ctx.metrics.wall_clock_time - DOWNSTREAM_START >= ctx.config.downstream_timeout


def _downstream_timeout(ctx: TickContext) -> Outcome:
    limit = format_seconds(ctx.config.downstream_timeout)
    if ctx.scenario.type is ScenarioType.DOWNSTREAM_SLOW_API:
        message = f"cURL Error 28: Operation timed out after {limit}s"
    else:
        message = f"PDOException: SQLSTATE[HY000] Timeout ({limit}s) caught!"

    # The exception is caught, so control is back in application code
    return Outcome(SimulationStatus.ERROR, ErrorSource.DOWNSTREAM_TIMEOUT, Stage.RUNTIME, message)


def _cpu_limit(ctx: TickContext) -> Outcome:
    return Outcome(
        SimulationStatus.ERROR,
        ErrorSource.CPU_LIMIT,
        Stage.RUNTIME,
        f"Fatal Error: max_execution_time ({format_seconds(ctx.config.cpu_limit)}s) exceeded",
    )


def _process_manager_timeout(ctx: TickContext) -> Outcome:
    return Outcome(
        SimulationStatus.ERROR,
        ErrorSource.PROCESS_MANAGER_TIMEOUT,
        Stage.PROCESS_MANAGER,
        f"502 Bad Gateway: PHP-FPM worker killed after "
        f"{format_seconds(ctx.config.process_manager_timeout)}s (Wall Clock)",
    )


def _web_server_timeout(ctx: TickContext) -> Outcome:
    if ctx.architecture is Architecture.NGINX_FPM:
        code, server = "504 Gateway Timeout", "Nginx"
    else:
        code, server = "Timeout", "Apache"

    return Outcome(
        SimulationStatus.ERROR,
        ErrorSource.WEB_SERVER_TIMEOUT,
        Stage.WEB_SERVER,
        f"{code}: {server} closed connection at "
        f"{format_seconds(ctx.config.web_server_timeout)}s",
    )


def _success(ctx: TickContext) -> Outcome:
    return Outcome(
        SimulationStatus.SUCCESS,
        ErrorSource.NONE,
        Stage.CLIENT,
        "200 OK: Request completed successfully.",
    )


CASCADE: tuple[CascadeRule, ...] = (
    CascadeRule(
        "client-timeout",
        lambda ctx: ctx.metrics.wall_clock_time >= ctx.config.client_timeout,
        _client_timeout,
    ),
    CascadeRule(
        "downstream-timeout",
        _in_downstream_too_long,
        _downstream_timeout,
    ),
    CascadeRule(
        "cpu-limit",
        lambda ctx: ctx.metrics.cpu_time >= ctx.config.cpu_limit,
        _cpu_limit,
    ),
    CascadeRule(
        "process-manager-timeout",
        lambda ctx: (
            ctx.architecture.has_process_manager
            and ctx.metrics.wall_clock_time >= ctx.config.process_manager_timeout
        ),
        _process_manager_timeout,
    ),
    CascadeRule(
        "web-server-timeout",
        lambda ctx: ctx.metrics.wall_clock_time >= ctx.config.web_server_timeout,
        _web_server_timeout,
    ),
    CascadeRule(
        "success",
        lambda ctx: (
            ctx.scenario.type is ScenarioType.NORMAL
            and ctx.metrics.wall_clock_time >= ctx.scenario.duration
        ),
        _success,
    ),
)


def evaluate(ctx: TickContext, rules: tuple[CascadeRule, ...] = CASCADE) -> Outcome | None:
    """
    Return the outcome of the first rule that holds, or None to keep going.
    """
    for rule in rules:
        if rule.applies(ctx):
            return rule.outcome(ctx)
    return None
