"""
Timeout configuration for the timeout cascade simulator.

Each layer of the serving stack has its own independently configured
timeout. Nothing here enforces an ordering between them: a misordered
stack is exactly what the simulator exists to demonstrate.
"""

import logging
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class Architecture(str, Enum):
    """
    The two serving stacks the simulator knows about.

    Only the Nginx + FPM variant has a separate process manager, so only
    that variant has a process-manager stage and timeout rule.
    """

    NGINX_FPM = "nginx-fpm"
    APACHE_MODPHP = "apache-modphp"

    @property
    def label(self) -> str:
        return "Nginx + FPM" if self is Architecture.NGINX_FPM else "Apache + mod_php"

    @property
    def has_process_manager(self) -> bool:
        return self is Architecture.NGINX_FPM


@dataclass(frozen=True)
class ConfigBounds:
    """Slider bounds offered to the presentation layer, in simulated seconds."""

    minimum: int = 5
    maximum: int = 120
    step: int = 5

    def contains(self, value: float) -> bool:
        if value < self.minimum or value > self.maximum:
            return False
        return (value - self.minimum) % self.step == 0


CONFIG_BOUNDS = ConfigBounds()


@dataclass(frozen=True)
class TimeoutConfig:
    """
    The five layer timeouts, in simulated seconds.

    Attributes:
        client_timeout: Browser or load balancer connection timeout.
        web_server_timeout: fastcgi_read_timeout (Nginx) or Timeout (Apache).
        process_manager_timeout: FPM request_terminate_timeout. Ignored
            when the architecture has no process manager.
        cpu_limit: max_execution_time, counted in CPU time.
        downstream_timeout: database or HTTP client timeout.
    """

    client_timeout: float = 90
    web_server_timeout: float = 70
    process_manager_timeout: float = 65
    cpu_limit: float = 60
    downstream_timeout: float = 50

    def __post_init__(self) -> None:
        for key in self.keys():
            validate_value(key, getattr(self, key))

    @classmethod
    def keys(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def with_value(self, key: str, value: float) -> "TimeoutConfig":
        """
        Return a copy with one threshold replaced.
        """
        if key not in self.keys():
            raise ValueError(f"Unknown timeout setting: {key!r}")
        return replace(self, **{key: value})

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


def validate_value(key: str, value: Any) -> None:
    """
    Reject values that are not positive numbers.

    The engine does not care about slider bounds; it only needs every
    threshold to be reachable by a finite run.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number, got {value!r}")

    if not 0 < value < float("inf"):
        raise ValueError(f"{key} must be a positive finite number, got {value!r}")


def config_from_mapping(
    data: dict[str, Any],
    base: TimeoutConfig | None = None,
    strict: bool = False,
) -> TimeoutConfig:
    """
    Build a TimeoutConfig from a plain mapping.

    Args:
        data: Mapping of threshold names to values. Missing keys keep the
              value from ``base``.
        base: Starting configuration (defaults when omitted).
        strict: Also require every value to sit on the slider grid.
    """
    config = base or TimeoutConfig()

    unknown = sorted(set(data) - set(TimeoutConfig.keys()))
    if unknown:
        raise ValueError(f"Unknown timeout settings: {', '.join(unknown)}")

    for key, value in data.items():
        validate_value(key, value)
        if strict and not CONFIG_BOUNDS.contains(value):
            raise ValueError(
                f"{key}={value} is outside {CONFIG_BOUNDS.minimum}-"
                f"{CONFIG_BOUNDS.maximum}s in steps of {CONFIG_BOUNDS.step}s"
            )
        config = config.with_value(key, value)

    return config


def load_config(
    path: Path, strict: bool = False
) -> tuple[TimeoutConfig, Architecture | None]:
    """
    Load timeouts (and optionally the architecture) from a YAML file.

    The file is a mapping with an optional ``architecture`` key and a
    ``timeouts`` mapping::

        architecture: nginx-fpm
        timeouts:
          client_timeout: 60
          cpu_limit: 30
    """
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)

    if raw is None:
        raw = {}

    if not isinstance(raw, dict):
        raise ValueError("Config file must be a YAML mapping (dict)")

    timeouts = raw.get("timeouts", {}) or {}
    if not isinstance(timeouts, dict):
        raise ValueError("'timeouts' must be a mapping of setting to seconds")

    architecture = None
    if "architecture" in raw:
        try:
            architecture = Architecture(raw["architecture"])
        except ValueError:
            raise ValueError(
                f"Unknown architecture {raw['architecture']!r}; expected one of "
                f"{', '.join(a.value for a in Architecture)}"
            ) from None

    config = config_from_mapping(timeouts, strict=strict)
    logger.debug("Loaded config from %s: %s", path, config)
    return config, architecture


def find_zombie_risks(config: TimeoutConfig, architecture: Architecture) -> list[str]:
    """
    Describe layer orderings that leave backend work running unobserved.

    If the client gives up before a backend wall-clock limit fires, the
    backend keeps working for a response nobody will read.
    """
    warnings: list[str] = []

    backend = [("web server", config.web_server_timeout)]
    if architecture.has_process_manager:
        backend.append(("process manager", config.process_manager_timeout))

    for layer, timeout in backend:
        if config.client_timeout < timeout:
            warnings.append(
                f"Client timeout ({_seconds(config.client_timeout)}) is lower than the "
                f"{layer} timeout ({_seconds(timeout)}): requests can become zombies."
            )

    if (
        architecture.has_process_manager
        and config.process_manager_timeout >= config.web_server_timeout
    ):
        warnings.append(
            f"Process manager timeout ({_seconds(config.process_manager_timeout)}) is not "
            f"lower than the web server timeout ({_seconds(config.web_server_timeout)}): "
            "the worker is never killed before the proxy gives up."
        )

    return warnings


def _seconds(value: float) -> str:
    return f"{format_seconds(value)}s"


def format_seconds(value: float) -> str:
    """Render a threshold without a trailing '.0' when it is integral."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)
