# timeoutsim/cli.py

from __future__ import annotations
import argparse
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Any, List

from timeoutsim.config import (
    CONFIG_BOUNDS,
    Architecture,
    TimeoutConfig,
    config_from_mapping,
    find_zombie_risks,
    load_config,
)
from timeoutsim.engine.clock import Ticker
from timeoutsim.engine.event_bus import EventBus
from timeoutsim.engine.scenario_runner import SimulationController
from timeoutsim.output.adapter import SnapshotAdapter, event_record, write_run_log
from timeoutsim.scenarios import DEFAULT_CATALOG_PATH, get_scenario, load_catalog

TIMEOUT_FLAGS = {
    "client_timeout": "Client / load balancer timeout",
    "web_server_timeout": "Web server timeout (fastcgi_read_timeout or Apache Timeout)",
    "process_manager_timeout": "PHP-FPM request_terminate_timeout (Nginx + FPM only)",
    "cpu_limit": "PHP max_execution_time, counted in CPU seconds",
    "downstream_timeout": "Database / HTTP client timeout",
}


def _timeout_value(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{raw!r} is not a whole number of seconds") from None

    if not CONFIG_BOUNDS.contains(value):
        raise argparse.ArgumentTypeError(
            f"{value} must be between {CONFIG_BOUNDS.minimum} and "
            f"{CONFIG_BOUNDS.maximum} in steps of {CONFIG_BOUNDS.step}"
        )
    return value


def _tick_delay(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{raw!r} is not a number of seconds") from None

    if value < 0:
        raise argparse.ArgumentTypeError(f"{value:g} cannot be negative")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timeoutsim",
        description="Simulate which timeout in a web-serving stack ends a request",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "scenario",
        nargs="?",
        help="Id of the scenario to run (see --list)",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List the scenarios in the catalog and exit",
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        default=DEFAULT_CATALOG_PATH,
        help="Path to the scenario catalog YAML file",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML file with an optional 'architecture' and a 'timeouts' mapping",
    )
    parser.add_argument(
        "--architecture",
        choices=[a.value for a in Architecture],
        help="Serving stack (default: from --config, else nginx-fpm)",
    )
    for key, help_text in TIMEOUT_FLAGS.items():
        parser.add_argument(
            f"--{key.replace('_', '-')}",
            dest=key,
            type=_timeout_value,
            help=f"{help_text} in seconds (default: {getattr(TimeoutConfig(), key):g})",
        )
    parser.add_argument(
        "--output",
        choices=["cli", "json"],
        default="cli",
        help="Output mode: 'cli' prints lines to stdout; 'json' dumps snapshot events to a JSON file",
    )
    parser.add_argument(
        "--json-file",
        type=Path,
        default=Path("simulation_output.json"),
        help="Path to JSON output file if --output=json",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write the rendered run log (every tick and the outcome) to this file",
    )
    parser.add_argument(
        "--tick-delay",
        type=_tick_delay,
        default=0.0,
        help="Real seconds to pause between simulated seconds",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only print the start and the outcome, not every tick",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr",
    )
    return parser


def main(argv: list[str] | None = None) -> int | None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        scenarios = load_catalog(args.catalog)
    except Exception as exc:
        print(f"Failed to load scenario catalog: {exc}", file=sys.stderr)
        return 2

    if args.list:
        for scenario in scenarios:
            print(f"{scenario.id:<16} {scenario.name}: {scenario.description}")
        return 0

    if not args.scenario:
        print("No scenario given (use --list to see the catalog)", file=sys.stderr)
        return 1

    try:
        scenario = get_scenario(scenarios, args.scenario)
    except KeyError:
        print(f"Scenario not found: {args.scenario}", file=sys.stderr)
        return 1

    config = TimeoutConfig()
    architecture = None
    if args.config is not None:
        try:
            config, architecture = load_config(args.config, strict=True)
        except Exception as exc:
            print(f"Failed to load config: {exc}", file=sys.stderr)
            return 2

    overrides = {key: getattr(args, key) for key in TIMEOUT_FLAGS if getattr(args, key) is not None}
    config = config_from_mapping(overrides, base=config)

    if args.architecture:
        architecture = Architecture(args.architecture)
    architecture = architecture or Architecture.NGINX_FPM

    for warning in find_zombie_risks(config, architecture):
        print(f"[WARN] {warning}", file=sys.stderr)

    # Initialize components
    event_bus = EventBus()
    adapter = SnapshotAdapter(show_ticks=not args.quiet)
    controller = SimulationController(
        config=config,
        architecture=architecture,
        event_bus=event_bus,
        ticker=Ticker(interval=args.tick_delay),
    )

    records: List[dict[str, Any]] = []
    events: List[dict[str, Any]] = []

    def handle_event(event: dict[str, Any]) -> None:
        events.append(event)
        if args.output == "json":
            records.append(event_record(event))
            return

        for line in adapter.transform(event):
            if line:
                print(line, flush=True)

    event_bus.subscribe(handle_event)

    # Run simulation
    try:
        controller.start(scenario)
        controller.run()
    except Exception as exc:
        print(f"Simulation failed: {exc}", file=sys.stderr)
        return 3

    # Dump JSON output if requested
    if args.output == "json":
        try:
            args.json_file.parent.mkdir(parents=True, exist_ok=True)
            with args.json_file.open("w", encoding="utf-8") as f:
                json.dump(records, f, indent=2)
            print(f"Simulation events dumped to {args.json_file}")
        except Exception as exc:
            print(f"Failed to write JSON file: {exc}", file=sys.stderr)
            return 4

    if args.log_file is not None:
        try:
            write_run_log(events, args.log_file)
        except Exception as exc:
            print(f"Failed to write log file: {exc}", file=sys.stderr)
            return 4

    return 0  # success


if __name__ == "__main__":

    signal.signal(signal.SIGPIPE, signal.SIG_DFL)  # Ignore broken pipe
    sys.exit(main())
