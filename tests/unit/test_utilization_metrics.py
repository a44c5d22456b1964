"""Unit tests for heatmaps, idle/active analysis and utilization."""

from datetime import timedelta

import pytest

from presswatch.analysis.heatmap import (
    build_heatmap,
    calculate_activity_heatmap,
    calculate_runtime_heatmap,
)
from presswatch.analysis.utilization import (
    calculate_device_utilization,
    calculate_idle_active,
    calculate_performance_trends,
    window_hours,
)
from presswatch.models.filters import DateWindow, TimeRange
from tests.helpers.synthetic_data import BASE_TIME, make_cycle, make_sample

pytestmark = pytest.mark.business_logic


def cell(heatmap, day, hour):
    return heatmap.cells[day * 24 + hour]


class TestHeatmap:
    def test_grid_layout(self):
        heatmap = build_heatmap([])

        assert len(heatmap.cells) == 168
        assert heatmap.days[0] == "Sun"
        assert (heatmap.cells[0].day, heatmap.cells[0].hour) == (0, 0)
        assert (heatmap.cells[-1].day, heatmap.cells[-1].hour) == (6, 23)

    def test_runtime_lands_in_start_cell(self):
        """BASE_TIME is Monday 08:00 UTC."""
        cycles = [make_cycle(duration_s=1800), make_cycle(duration_s=1800)]

        heatmap = calculate_runtime_heatmap(cycles)

        monday_eight = cell(heatmap, 1, 8)
        assert monday_eight.day_name == "Mon"
        assert monday_eight.value == pytest.approx(1.0)
        assert monday_eight.intensity == 1.0

    def test_total_is_conserved(self):
        cycles = [
            make_cycle(started_at=BASE_TIME + timedelta(hours=7 * i), duration_s=600 * (i + 1))
            for i in range(20)
        ]

        heatmap = calculate_runtime_heatmap(cycles)

        expected = sum(c.runtime_hours for c in cycles)
        assert heatmap.total == pytest.approx(expected)
        assert sum(c.value for c in heatmap.cells) == pytest.approx(expected)

    def test_intensity_relative_to_max(self):
        heatmap = build_heatmap([(BASE_TIME, 4.0), (BASE_TIME + timedelta(hours=1), 1.0)])

        assert heatmap.max_value == 4.0
        assert cell(heatmap, 1, 9).intensity == pytest.approx(0.25)

    def test_all_zero_has_zero_intensity(self):
        heatmap = build_heatmap([(BASE_TIME, 0.0)])

        assert heatmap.max_value == 0.0
        assert all(c.intensity == 0.0 for c in heatmap.cells)

    def test_sunday_is_day_zero(self):
        sunday = BASE_TIME - timedelta(days=1)

        heatmap = build_heatmap([(sunday, 1.0)])

        assert cell(heatmap, 0, 8).value == 1.0

    def test_activity_counts_energized_samples(self):
        samples = [make_sample(DI1_KM=1), make_sample(DI1_KM=0), make_sample(DI1_KM=1)]

        heatmap = calculate_activity_heatmap(samples)

        assert cell(heatmap, 1, 8).value == 2.0
        assert heatmap.total == 2.0


class TestIdleActive:
    def test_reading_interval(self):
        samples = [make_sample(DI1_KM=1)] * 3 + [make_sample(DI1_KM=0)]

        analysis = calculate_idle_active(samples)

        assert analysis.active_samples == 3
        assert analysis.active_hours == pytest.approx(3 * 25 / 3600)
        assert analysis.idle_hours == pytest.approx(25 / 3600)
        assert analysis.active_pct == pytest.approx(75.0)

    def test_empty_input(self):
        analysis = calculate_idle_active([])

        assert analysis.total_samples == 0
        assert analysis.active_pct == 0.0


class TestDeviceUtilization:
    @pytest.mark.parametrize(
        "time_range,hours",
        [(TimeRange.LAST_24H, 24.0), (TimeRange.LAST_7D, 168.0), (TimeRange.ALL, 168.0)],
    )
    def test_window_hours(self, time_range, hours):
        assert window_hours(time_range) == hours

    def test_short_date_window_floors_at_one_hour(self):
        window = DateWindow(start=BASE_TIME, end=BASE_TIME + timedelta(minutes=30))

        assert window_hours(window) == 1.0

    def test_per_device_utilization(self):
        cycles = [
            make_cycle("M1", duration_s=6 * 3600),
            make_cycle("M1", duration_s=6 * 3600),
            make_cycle("M2", duration_s=30 * 3600),
        ]

        result = calculate_device_utilization(cycles, TimeRange.LAST_24H)

        assert [d.device_id for d in result] == ["M2", "M1"]
        assert result[0].utilization_pct == 100.0
        assert result[0].idle_hours == 0.0
        assert result[1].utilization_pct == pytest.approx(50.0)
        assert result[1].idle_hours == pytest.approx(12.0)

    def test_limit(self):
        cycles = [make_cycle(f"M{i}") for i in range(10)]

        assert len(calculate_device_utilization(cycles)) == 8

    def test_performance_trends(self):
        cycles = [
            make_cycle(started_at=BASE_TIME + timedelta(days=d), duration_s=2.4 * 3600, bale_count=2)
            for d in range(9)
        ]

        trends = calculate_performance_trends(cycles)

        assert len(trends) == 7
        assert trends[0].day == (BASE_TIME + timedelta(days=2)).date()
        assert trends[0].avg_utilization_pct == pytest.approx(10.0)
        assert trends[0].bales == 2.0

    def test_empty_input(self):
        assert calculate_device_utilization([]) == []
        assert calculate_performance_trends([]) == []
