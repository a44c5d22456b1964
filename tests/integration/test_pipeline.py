"""
Integration tests for the upload-to-report pipeline.

Tests focus on:
1. Ingest, filter and compute across both CSV shapes
2. Filter selections flowing through to every metric
3. Report generation from computed metrics
"""

import json

from datetime import UTC, datetime

import pytest

from presswatch import MetricsService, TelemetryStore, filter_dataset
from presswatch.models.filters import DateWindow, FilterCriteria, TimeRange
from presswatch.reporting import export_report_json, generate_report
from tests.helpers.synthetic_data import hourly_wide_rows, long_csv, wide_csv


class TestWidePipeline:
    @pytest.fixture
    def store(self, fleet_csv):
        store = TelemetryStore()
        store.load(fleet_csv)
        return store

    def test_location_selection(self, store):
        view = store.filtered(FilterCriteria(location="South"))

        metrics = MetricsService().compute(view)

        assert metrics.fleet.unique_devices == 1
        assert metrics.fleet.total_cycles == 2
        assert metrics.fleet.overload_count == 2
        assert metrics.rankings.top_performers[0].device_id == "M3"

    def test_time_window_selection(self, store):
        window = DateWindow(
            start=datetime(2024, 5, 7, 0, 0, tzinfo=UTC),
            end=datetime(2024, 5, 7, 23, 59, tzinfo=UTC),
        )
        view = store.filtered(FilterCriteria(time_range=window))

        metrics = MetricsService().compute(view, window, history=store.dataset)

        assert metrics.fleet.total_cycles == 9
        assert len(metrics.health.trends) == 1
        assert metrics.lifetime.lifetime_cycles == 18

    def test_report_from_selection(self, store, tmp_path):
        criteria = FilterCriteria(device="M1")
        metrics = MetricsService().compute(store.filtered(criteria))

        report = generate_report(
            criteria.device,
            metrics.fleet,
            metrics.anomalies,
            metrics.safety,
            metrics.voltage_sags,
            metrics.lifetime,
            now=datetime(2024, 5, 8, tzinfo=UTC),
        )
        path = export_report_json(report, tmp_path)

        data = json.loads(path.read_text())
        assert data["device"] == "M1"
        assert data["summary"]["total_cycles"] == 8
        assert data["summary"]["e_stop_count"] == 1
        assert [e["type"] for e in data["safetyEvents"]] == ["E-Stop"]
        assert data["lifetime"]["lifetime_cycles"] == 8


class TestLongPipeline:
    def test_cycles_and_samples(self, long_export_csv):
        store = TelemetryStore()
        store.load(long_export_csv)

        metrics = MetricsService().compute(store.filtered(FilterCriteria(device="P1")))

        assert metrics.fleet.total_cycles == 2
        assert metrics.cycles.baseline_s == 13.0
        assert metrics.energy.efficiency[0].efficiency_pct == pytest.approx(75.0)
        assert metrics.di_timeline[0].states["Door"] == 1

    def test_relative_window_on_samples(self):
        text = long_csv(
            [
                ("2024-05-06T08:00:00Z", "P1", "DI1_KM", 1),
                ("2024-05-06T10:00:00Z", "P1", "DI1_KM", 1),
                ("2024-05-06T10:30:00Z", "P1", "DI1_KM", 0),
            ]
        )
        store = TelemetryStore()
        store.load(text)

        metrics = MetricsService().compute(
            store.filtered(FilterCriteria(time_range=TimeRange.LAST_1H)), TimeRange.LAST_1H
        )

        assert metrics.idle_active.total_samples == 2
        assert metrics.idle_active.active_samples == 1


class TestReload:
    def test_second_upload_replaces_first(self, fleet_csv):
        store = TelemetryStore()
        store.load(fleet_csv)

        store.load(wide_csv(hourly_wide_rows(3, device_id="Z9")))

        assert filter_dataset(store.dataset, FilterCriteria()).records[0].device_id == "Z9"
        assert len(store.dataset.records) == 3
