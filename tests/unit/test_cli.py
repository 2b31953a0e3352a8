"""Unit tests for timeoutsim.cli module.

These tests verify CLI orchestration behaviour, not engine internals.
"""

import json
from unittest.mock import Mock

import pytest

from timeoutsim.cli import main


# ---------------------------------------------------------------------
# Argument handling
# ---------------------------------------------------------------------

def test_list_prints_catalog(capsys):
    result = main(["--list"])
    assert result == 0
    out = capsys.readouterr().out
    assert "db_slow" in out
    assert "Infinite CPU Loop" in out


def test_missing_scenario_returns_1(capsys):
    result = main([])
    assert result == 1
    assert "No scenario given" in capsys.readouterr().err


def test_unknown_scenario_returns_1(capsys):
    result = main(["deadlock"])
    assert result == 1
    assert "Scenario not found: deadlock" in capsys.readouterr().err


@pytest.mark.parametrize("value", ["7", "0", "125", "soon"])
def test_timeout_flags_must_be_on_grid(value):
    with pytest.raises(SystemExit):
        main(["normal", "--cpu-limit", value])


def test_unknown_architecture_rejected():
    with pytest.raises(SystemExit):
        main(["normal", "--architecture", "iis"])


@pytest.mark.parametrize("value", ["-1", "later"])
def test_tick_delay_must_be_non_negative(value, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["normal", "--tick-delay", value])
    assert exc_info.value.code == 2
    assert "--tick-delay" in capsys.readouterr().err


# ---------------------------------------------------------------------
# Running scenarios
# ---------------------------------------------------------------------

def test_healthy_request(capsys):
    result = main(["normal"])
    assert result == 0

    out = capsys.readouterr().out
    assert "Started: Healthy Request (Nginx + FPM)" in out
    assert "[    1s] cpu=0s stage=Nginx" in out
    assert "[OK] 200 OK: Request completed successfully." in out


def test_timeout_flags_override_defaults(capsys):
    result = main(["infinite_loop", "--cpu-limit", "30"])
    assert result == 0
    out = capsys.readouterr().out
    assert "[ERROR] Fatal Error: max_execution_time (30s) exceeded" in out


def test_architecture_flag(capsys):
    result = main(["sleep", "--architecture", "apache-modphp", "--quiet"])
    assert result == 0
    out = capsys.readouterr().out
    assert "Started: PHP Sleep() (Apache + mod_php)" in out
    assert "[ERROR] Timeout: Apache closed connection at 70s" in out
    # Quiet mode skips the per-second lines
    assert "cpu=" not in out.split("\n")[1]


def test_graceful_downstream_timeout_is_a_warning(capsys):
    main(["db_slow", "--quiet"])
    out = capsys.readouterr().out
    assert "[WARN] PDOException: SQLSTATE[HY000] Timeout (50s) caught!" in out


def test_zombie_warning_on_stderr(capsys):
    result = main(["normal", "--client-timeout", "30"])
    assert result == 0
    err = capsys.readouterr().err
    assert "[WARN] Client timeout (30s) is lower than the web server timeout (70s)" in err


# ---------------------------------------------------------------------
# Catalog and config files
# ---------------------------------------------------------------------

def test_bad_catalog_returns_2(tmp_path, capsys):
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text("- not a mapping")

    result = main(["normal", "--catalog", str(catalog)])
    assert result == 2
    assert "Failed to load scenario catalog" in capsys.readouterr().err


def test_custom_catalog(tmp_path, capsys):
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text(
        "scenarios:\n"
        "  - {id: quick, name: Quick Job, type: normal, duration: 4}\n"
    )

    result = main(["quick", "--catalog", str(catalog), "--quiet"])
    assert result == 0
    assert "Started: Quick Job" in capsys.readouterr().out


def test_config_file(tmp_path, capsys):
    config = tmp_path / "stack.yaml"
    config.write_text(
        "architecture: apache-modphp\n"
        "timeouts:\n"
        "  web_server_timeout: 20\n"
    )

    result = main(["sleep", "--config", str(config), "--quiet"])
    assert result == 0
    out = capsys.readouterr().out
    assert "Timeout: Apache closed connection at 20s" in out


def test_flags_override_config_file(tmp_path, capsys):
    config = tmp_path / "stack.yaml"
    config.write_text("architecture: apache-modphp\ntimeouts:\n  web_server_timeout: 20\n")

    result = main([
        "sleep", "--config", str(config), "--architecture", "nginx-fpm",
        "--process-manager-timeout", "10", "--quiet",
    ])
    assert result == 0
    out = capsys.readouterr().out
    assert "502 Bad Gateway: PHP-FPM worker killed after 10s (Wall Clock)" in out


def test_config_file_values_must_be_on_grid(tmp_path, capsys):
    config = tmp_path / "stack.yaml"
    config.write_text("timeouts:\n  cpu_limit: 7\n")

    result = main(["normal", "--config", str(config)])
    assert result == 2
    assert "cpu_limit=7 is outside 5-120s in steps of 5s" in capsys.readouterr().err


def test_bad_config_returns_2(tmp_path, capsys):
    config = tmp_path / "stack.yaml"
    config.write_text("timeouts:\n  nginx: 20\n")

    result = main(["normal", "--config", str(config)])
    assert result == 2
    assert "Failed to load config" in capsys.readouterr().err


# ---------------------------------------------------------------------
# Failures and JSON output
# ---------------------------------------------------------------------

def test_simulation_failure_returns_3(monkeypatch, capsys):
    controller = Mock()
    controller.run.side_effect = RuntimeError("ticker jammed")
    monkeypatch.setattr("timeoutsim.cli.SimulationController", lambda **kwargs: controller)

    result = main(["normal"])
    assert result == 3
    assert "Simulation failed: ticker jammed" in capsys.readouterr().err


def test_json_output(tmp_path, capsys):
    json_file = tmp_path / "out" / "run.json"

    result = main(["api_slow", "--output", "json", "--json-file", str(json_file)])
    assert result == 0
    assert "Simulation events dumped to" in capsys.readouterr().out

    records = json.loads(json_file.read_text())
    assert records[0]["event_type"] == "simulation.started"
    assert records[-1]["event_type"] == "simulation.finished"
    assert records[-1]["state"]["error_source"] == "downstream-timeout"
    assert records[-1]["state"]["logs"][0] == "cURL Error 28: Operation timed out after 50s"


def test_json_write_failure_returns_4(tmp_path, capsys):
    # A directory cannot be opened for writing
    result = main(["normal", "--output", "json", "--json-file", str(tmp_path)])
    assert result == 4
    assert "Failed to write JSON file" in capsys.readouterr().err


def test_log_file(tmp_path, capsys):
    log_file = tmp_path / "logs" / "run.log"

    result = main(["normal", "--quiet", "--log-file", str(log_file)])
    assert result == 0

    # The file keeps every tick even when stdout is quiet
    assert log_file.read_text(encoding="utf-8").splitlines() == [
        "Started: Healthy Request (Nginx + FPM)",
        "[    1s] cpu=0s stage=Nginx",
        "[OK] 200 OK: Request completed successfully.",
        "SUCCESS after 2s wall clock, 1s CPU; stopped in Client (none)",
    ]


def test_log_file_write_failure_returns_4(tmp_path, capsys):
    result = main(["normal", "--log-file", str(tmp_path)])
    assert result == 4
    assert "Failed to write log file" in capsys.readouterr().err
