"""
Tests for CLI commands.

These tests verify the command-line interface functionality including:
- devices listing for both CSV shapes
- summary table and JSON output with filter options
- report export
- config threshold management
"""

import json

from datetime import timedelta

import pytest

from presswatch.cli import cli
from tests.helpers.synthetic_data import BASE_TIME, build_csv, wide_csv, wide_row


@pytest.fixture
def fleet_file(write_csv, fleet_csv):
    return write_csv(fleet_csv, "fleet.csv")


@pytest.fixture(autouse=True)
def _isolate(cli_env):
    yield


class TestDevicesCommand:
    def test_lists_devices_and_locations(self, cli_runner, fleet_file):
        result = cli_runner.invoke(cli, ["devices", str(fleet_file)])

        assert result.exit_code == 0
        assert "Shape: wide" in result.stdout
        assert "Devices (3):" in result.stdout
        assert "Locations (2):" in result.stdout
        assert "  South" in result.stdout

    def test_long_export(self, cli_runner, write_csv, long_export_csv):
        path = write_csv(long_export_csv)

        result = cli_runner.invoke(cli, ["devices", str(path)])

        assert result.exit_code == 0
        assert "Shape: long" in result.stdout
        assert "  P2" in result.stdout

    def test_missing_column_fails(self, cli_runner, write_csv):
        path = write_csv(
            build_csv(["device_id", "cycle_started_at"], [["M1", "2024-05-06T08:00:00Z"]])
        )

        result = cli_runner.invoke(cli, ["devices", str(path)])

        assert result.exit_code == 1
        assert "Missing required wide-shape columns: cycle_duration_ms" in result.output

    def test_forced_shape_mismatch(self, cli_runner, fleet_file):
        result = cli_runner.invoke(cli, ["devices", str(fleet_file), "--shape", "long"])

        assert result.exit_code == 1

    def test_nonexistent_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(cli, ["devices", str(tmp_path / "missing.csv")])

        assert result.exit_code == 2


class TestSummaryCommand:
    def test_round_trip_table(self, cli_runner, write_csv, round_trip_csv):
        path = write_csv(round_trip_csv)

        result = cli_runner.invoke(cli, ["summary", str(path)])

        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert any(line.startswith("Cycles") and line.endswith(" 2") for line in lines)
        assert any(line.startswith("Runtime (h)") and line.endswith("3.0") for line in lines)
        assert any(line.startswith("Utilization (%)") and line.endswith("100.0") for line in lines)

    def test_json_output(self, cli_runner, fleet_file):
        result = cli_runner.invoke(cli, ["summary", str(fleet_file), "--json", "--device", "M2"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["fleet"]["total_cycles"] == 8
        assert data["fleet"]["unique_devices"] == 1
        assert len(data["runtime_heatmap"]["cells"]) == 168

    def test_out_of_range_numbers(self, cli_runner, write_csv):
        rows = [
            wide_row("M1", energy_active_kwh="9" * 400),
            wide_row("M1", started_at=BASE_TIME + timedelta(hours=1), duration_ms="1e400"),
        ]
        path = write_csv(wide_csv(rows))

        result = cli_runner.invoke(cli, ["summary", str(path), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["fleet"]["total_cycles"] == 1

    def test_no_matching_cycles(self, cli_runner, fleet_file):
        result = cli_runner.invoke(cli, ["summary", str(fleet_file), "--device", "nope"])

        assert result.exit_code == 0
        assert "No cycles match the selection" in result.stdout

    def test_date_window(self, cli_runner, fleet_file):
        result = cli_runner.invoke(
            cli,
            ["summary", str(fleet_file), "--json", "--start", "2024-05-07", "--end", "2024-05-08"],
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout)["fleet"]["total_cycles"] == 9

    def test_window_needs_both_bounds(self, cli_runner, fleet_file):
        result = cli_runner.invoke(cli, ["summary", str(fleet_file), "--start", "2024-05-07"])

        assert result.exit_code == 2
        assert "--start and --end must be given together" in result.output

    def test_reversed_window(self, cli_runner, fleet_file):
        result = cli_runner.invoke(
            cli, ["summary", str(fleet_file), "--start", "2024-05-08", "--end", "2024-05-07"]
        )

        assert result.exit_code == 2

    def test_relative_range(self, cli_runner, fleet_file):
        result = cli_runner.invoke(cli, ["summary", str(fleet_file), "--json", "--range", "1h"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert 0 < data["fleet"]["total_cycles"] < 18
        assert data["lifetime"]["lifetime_cycles"] == 18


class TestReportCommand:
    def test_writes_report(self, cli_runner, fleet_file, tmp_path):
        output_dir = tmp_path / "reports"

        result = cli_runner.invoke(cli, ["report", str(fleet_file), "-o", str(output_dir)])

        assert result.exit_code == 0
        assert "Report written to" in result.stdout
        (path,) = output_dir.glob("telemetry-report-*.json")
        data = json.loads(path.read_text())
        assert data["device"] == "all"
        assert data["summary"]["total_cycles"] == 18
        assert "safetyEvents" in data

    def test_recommendations_printed(self, cli_runner, fleet_file, tmp_path):
        result = cli_runner.invoke(cli, ["report", str(fleet_file), "-o", str(tmp_path)])

        assert result.exit_code == 0
        assert "Low MTBF" in result.stdout


class TestConfigCommands:
    def test_set_and_show_threshold(self, cli_runner, cli_env):
        result = cli_runner.invoke(cli, ["config", "set-threshold", "inrush_multiple", "10"])

        assert result.exit_code == 0
        assert "inrush_multiple = 10.0" in result.stdout
        assert cli_env.exists()

        result = cli_runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "  inrush_multiple = 10.0\n" in result.stdout
        assert "voltage_sag_pct = 60.0  (default)" in result.stdout

    def test_invalid_value(self, cli_runner):
        result = cli_runner.invoke(cli, ["config", "set-threshold", "ripple_pct", "-5"])

        assert result.exit_code != 0

    def test_unknown_threshold(self, cli_runner):
        result = cli_runner.invoke(cli, ["config", "set-threshold", "speed", "5"])

        assert result.exit_code == 2

    def test_reset(self, cli_runner, cli_env):
        cli_runner.invoke(cli, ["config", "set-threshold", "ripple_pct", "50"])

        result = cli_runner.invoke(cli, ["config", "reset-thresholds"])

        assert result.exit_code == 0
        assert not cli_env.exists()

    def test_thresholds_affect_summary(self, cli_runner, fleet_file):
        cli_runner.invoke(cli, ["config", "set-threshold", "cycle_duration_s", "11"])

        result = cli_runner.invoke(cli, ["summary", str(fleet_file), "--json"])

        assert json.loads(result.stdout)["cycles"]["slow_count"] == 8


class TestMiscCommands:
    def test_version(self, cli_runner):
        result = cli_runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert result.stdout.startswith("presswatch, version")

    def test_logs_path(self, cli_runner, tmp_path):
        result = cli_runner.invoke(cli, ["logs", "path"])

        assert result.exit_code == 0
        assert str(tmp_path / "logs") in result.stdout
