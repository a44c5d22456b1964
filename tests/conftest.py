"""Pytest configuration and fixtures for presswatch tests."""

from datetime import timedelta

import pytest

from tests.helpers.synthetic_data import (
    BASE_TIME,
    long_csv,
    wide_csv,
    wide_row,
)


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that do not require external dependencies"
    )
    config.addinivalue_line("markers", "parser: Tests for CSV ingestion and shape parsers")
    config.addinivalue_line(
        "markers", "business_logic: Tests for metric formulas and filtering rules"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests combining multiple components"
    )


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def round_trip_csv():
    """Two one- and two-hour cycles for M1, one hour apart."""
    return wide_csv(
        [
            wide_row("M1", BASE_TIME, 3_600_000),
            wide_row("M1", BASE_TIME + timedelta(hours=1), 7_200_000),
        ]
    )


@pytest.fixture
def fleet_csv():
    """Wide export for three devices at two locations over two days."""
    rows = []
    for day in range(2):
        for i in range(4):
            started = BASE_TIME + timedelta(days=day, hours=i)
            rows.append(
                wide_row(
                    "M1",
                    started,
                    12_000,
                    location="North",
                    di_e_stop_triggered="True" if (day, i) == (1, 3) else "False",
                    di_overload_trip="False",
                    health_anomaly_score=0.2,
                    energy_active_kwh=0.5,
                )
            )
            rows.append(
                wide_row(
                    "M2",
                    started + timedelta(minutes=5),
                    10_000,
                    location="North",
                    di_e_stop_triggered="False",
                    di_overload_trip="False",
                    health_anomaly_score=0.7,
                    energy_active_kwh=0.4,
                )
            )
        rows.append(
            wide_row(
                "M3",
                BASE_TIME + timedelta(days=day, hours=2, minutes=30),
                9_000,
                location="South",
                di_e_stop_triggered="False",
                di_overload_trip="True",
                energy_active_kwh=0.3,
            )
        )
    return wide_csv(rows)


@pytest.fixture
def long_export_csv():
    """Long export with cycle summaries and realtime samples for two devices."""
    t0 = "2024-05-06T08:00:00Z"
    t1 = "2024-05-06T08:00:25Z"
    t2 = "2024-05-06T08:01:00Z"
    return long_csv(
        [
            (t0, "P2", "cycle.durationS", 14.0),
            (t0, "P2", "cycle.overall", 0),
            (t0, "P1", "cycle.durationS", 12.5),
            (t0, "P1", "cycle.overall", 0),
            (t0, "P1", "energy.totalWh", 40.0),
            (t0, "P1", "energy.workWh", 30.0),
            (t1, "P1", "voltage.U1", 231.0),
            (t1, "P1", "DI1_KM", 1),
            (t1, "P1", "DI4_Door", 1),
            (t2, "P1", "cycle.durationS", 13.0),
            (t2, "P1", "cycle.overall", 1),
            (t2, "P1", "inrush.multiple", 9.5),
        ]
    )


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the config file at a temporary directory."""
    monkeypatch.setattr("presswatch.config.DEFAULT_CONFIG_DIR", tmp_path / ".presswatch")
    return tmp_path / ".presswatch" / "config.toml"
