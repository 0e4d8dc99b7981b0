# tests/unit/cli/test_cli.py
"""Tests for the chipqc CLI."""

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
import yaml
from typer.testing import CliRunner

from chipqc.cli import app
from tests.conftest import write_chip_file

runner = CliRunner()

CYCLE_CHIP = {
    "channels": [1, 2, 3, 4, 5],
    "connections": [[1, 2], [2, 3], [3, 4], [4, 5], [5, 1]],
    "test_routes": {"default": [1, 3]},
}

PATH_CHIP = {"connections": [[1, 2], [2, 3]]}

LINE_CHIP = {"connections": [[1, 2], [2, 3], [3, 4]]}


@pytest.fixture(autouse=True)
def _reset_root_logging() -> Iterator[None]:
    """CliRunner closes its streams; drop handlers bound to them."""
    yield
    logging.getLogger().handlers = []


def write_settings(tmp_path: Path, chip: dict[str, Any] = CYCLE_CHIP, **sections: Any) -> Path:
    write_chip_file(tmp_path / "chip.yaml", chip)
    document: dict[str, Any] = {
        "chip": {"path": "chip.yaml"},
        "route": {"test_route": "default"},
        "retry": {"max_attempts": 2, "hop_timeout_seconds": 0.1, "backoff_seconds": 0},
    }
    document.update(sections)
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(document), encoding="utf-8")
    return path


def json_lines(output: str) -> list[dict[str, Any]]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


class TestCLIBasics:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "chipqc version" in result.stdout

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("plan", "run", "summarize"):
            assert command in result.stdout


class TestPlanCommand:
    def test_console_plan(self, tmp_path: Path) -> None:
        settings = write_settings(tmp_path)

        result = runner.invoke(app, ["plan", "--settings", str(settings)])

        assert result.exit_code == 0, result.output
        assert "Waypoints: 1, 3" in result.stdout
        assert "1 → 2 → 3 → 2 → 1" in result.stdout

    def test_json_plan_with_start_and_bad_channel(self, tmp_path: Path) -> None:
        settings = write_settings(
            tmp_path,
            chip={"connections": CYCLE_CHIP["connections"]},
            route={"waypoints": [1, 3], "start": 3, "loop": False},
        )
        settings_doc = yaml.safe_load(settings.read_text())
        settings_doc["chip"]["bad_channels"] = [2]
        settings.write_text(yaml.safe_dump(settings_doc), encoding="utf-8")

        result = runner.invoke(app, ["plan", "-s", str(settings), "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json_lines(result.stdout)[-1]
        assert data["way_points"] == [3, 1]
        assert data["channel_plan"] == [3, 4, 5, 1]
        assert data["excluded_channels"] == [2]

    def test_missing_settings_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["plan", "--settings", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1
        assert "Settings file not found" in result.output

    def test_invalid_settings(self, tmp_path: Path) -> None:
        settings = write_settings(tmp_path, retry={"max_attempts": 0})

        result = runner.invoke(app, ["plan", "--settings", str(settings)])

        assert result.exit_code == 1
        assert "Configuration errors" in result.output
        assert "retry.max_attempts" in result.output

    def test_missing_chip_file(self, tmp_path: Path) -> None:
        settings = write_settings(tmp_path)
        (tmp_path / "chip.yaml").unlink()

        result = runner.invoke(app, ["plan", "--settings", str(settings)])

        assert result.exit_code == 1
        assert "Chip definition not found" in result.output

    def test_unknown_test_route(self, tmp_path: Path) -> None:
        settings = write_settings(tmp_path, route={"test_route": "missing"})

        result = runner.invoke(app, ["plan", "--settings", str(settings)])

        assert result.exit_code == 1
        assert "Route error" in result.output

    def test_unreachable_waypoint(self, tmp_path: Path) -> None:
        chip = {"connections": [[1, 2], [3, 4]]}
        settings = write_settings(tmp_path, chip=chip, route={"waypoints": [1, 4]})

        result = runner.invoke(app, ["plan", "--settings", str(settings)])

        assert result.exit_code == 1
        assert "Planning error" in result.output


class TestRunCommand:
    def test_clean_run_exits_zero(self, tmp_path: Path) -> None:
        settings = write_settings(tmp_path)

        result = runner.invoke(app, ["run", "--settings", str(settings)])

        assert result.exit_code == 0, result.output
        assert "Test COMPLETED" in result.stdout

    def test_failed_channel_exits_two(self, tmp_path: Path) -> None:
        settings = write_settings(tmp_path, simulation={"dead_channels": [3]})

        result = runner.invoke(app, ["run", "--settings", str(settings)])

        assert result.exit_code == 2
        assert "Channel 3 failed after 2 attempt(s)" in result.output

    def test_json_output_is_event_stream(self, tmp_path: Path) -> None:
        settings = write_settings(tmp_path, simulation={"flaky_channels": {2: 1}})

        result = runner.invoke(app, ["run", "--settings", str(settings), "--output", "json"])

        assert result.exit_code == 0, result.output
        events = [record["event"] for record in json_lines(result.stdout)]
        assert events[0] == "test-start"
        assert events[1] == "electrode-attempt-fail"
        assert events.count("electrode-success") == 4
        assert events[-1] == "test-complete"

    def test_fatal_error_exits_one(self, tmp_path: Path) -> None:
        settings = write_settings(
            tmp_path,
            chip=PATH_CHIP,
            route={"waypoints": [1, 3], "loop": False},
            simulation={"dead_channels": [2]},
        )

        result = runner.invoke(app, ["run", "--settings", str(settings)])

        assert result.exit_code == 1
        assert "Test ABORTED (UnreachableWaypointError)" in result.output

    def test_event_log_then_summarize(self, tmp_path: Path) -> None:
        settings = write_settings(tmp_path, simulation={"dead_channels": [3]})
        log_path = tmp_path / "out" / "events.jsonl"

        run_result = runner.invoke(app, ["run", "--settings", str(settings), "--event-log", str(log_path)])
        assert run_result.exit_code == 2

        result = runner.invoke(app, ["summarize", str(log_path), "--json"])

        assert result.exit_code == 0, result.output
        summary = json_lines(result.stdout)[-1]
        assert summary["status"] == "completed"
        assert summary["failed_electrodes"] == [3]
        assert summary["success_electrodes"] == [1, 2]

    def test_rerun_into_same_event_log_summarizes_latest_run(self, tmp_path: Path) -> None:
        route = {"waypoints": [1, 4], "loop": False}
        log_path = tmp_path / "events.jsonl"

        clean = write_settings(tmp_path, chip=LINE_CHIP, route=route)
        assert runner.invoke(app, ["run", "-s", str(clean), "-l", str(log_path)]).exit_code == 0

        failing = write_settings(tmp_path, chip=LINE_CHIP, route=route, simulation={"dead_channels": [4]})
        assert runner.invoke(app, ["run", "-s", str(failing), "-l", str(log_path)]).exit_code == 2

        result = runner.invoke(app, ["summarize", str(log_path), "--json"])

        assert result.exit_code == 0, result.output
        summary = json_lines(result.stdout)[-1]
        assert summary["success_route"] == [1, 2, 3]
        assert summary["failed_electrodes"] == [4]
        starts = [line for line in log_path.read_text().splitlines() if '"test-start"' in line]
        assert len(starts) == 1

    def test_fatal_error_prints_partial_result(self, tmp_path: Path) -> None:
        settings = write_settings(
            tmp_path,
            chip=LINE_CHIP,
            route={"waypoints": [1, 4], "loop": False},
            simulation={"dead_channels": [3]},
        )

        result = runner.invoke(app, ["run", "--settings", str(settings)])

        assert result.exit_code == 1
        assert "Partial result:" in result.stdout
        assert "Success route: 1 → 2" in result.stdout
        assert "Failed channels: 3" in result.stdout

    def test_fatal_error_json_ends_with_partial_result(self, tmp_path: Path) -> None:
        settings = write_settings(
            tmp_path,
            chip=LINE_CHIP,
            route={"waypoints": [1, 4], "loop": False},
            simulation={"dead_channels": [3]},
        )

        result = runner.invoke(app, ["run", "--settings", str(settings), "--output", "json"])

        assert result.exit_code == 1
        partial = json_lines(result.stdout)[-1]
        assert partial["status"] == "failed"
        assert partial["success_route"] == [1, 2]
        assert partial["failed_electrodes"] == [3]

    def test_event_log_path_from_settings(self, tmp_path: Path) -> None:
        log_path = tmp_path / "from-settings.jsonl"
        settings = write_settings(tmp_path, event_log={"path": str(log_path)})

        result = runner.invoke(app, ["run", "--settings", str(settings)])

        assert result.exit_code == 0, result.output
        assert log_path.exists()

        summary = runner.invoke(app, ["summarize", str(log_path)])
        assert summary.exit_code == 0
        assert "Test COMPLETED" in summary.stdout


class TestSummarizeCommand:
    def test_missing_log(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["summarize", str(tmp_path / "missing.jsonl")])

        assert result.exit_code == 1
        assert "Event log not found" in result.output

    def test_log_without_start(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.jsonl"
        path.write_text("", encoding="utf-8")

        result = runner.invoke(app, ["summarize", str(path)])

        assert result.exit_code == 1
        assert "no test-start" in result.output
