"""
Unit tests for the wide and long shape parsers.

Covers flag interpretation, dropped rows, derived percentages and the
long-shape pivot.
"""

from datetime import UTC, datetime

import pytest

from presswatch.constants import DataShape
from presswatch.ingest import ingest
from presswatch.models.records import LongDataset, WideDataset
from presswatch.parsers.base import EmptyInputError, RowParseError
from presswatch.parsers.long import LongMeasurementParser
from presswatch.parsers.timestamps import parse_timestamp
from presswatch.parsers.wide import (
    WideCycleParser,
    is_true_flag,
    overshoot_pct,
    phase_imbalance_pct,
)
from tests.helpers.synthetic_data import BASE_TIME, long_csv, wide_csv, wide_row

pytestmark = pytest.mark.parser


class TestTimestamps:
    def test_iso_with_z_suffix(self):
        assert parse_timestamp("2024-05-06T08:00:00Z") == BASE_TIME

    def test_offset_is_converted_to_utc(self):
        assert parse_timestamp("2024-05-06T10:00:00+02:00") == BASE_TIME

    def test_naive_is_taken_as_utc(self):
        parsed = parse_timestamp("2024-05-06T08:00:00")
        assert parsed == BASE_TIME
        assert parsed.tzinfo is UTC

    def test_epoch_milliseconds(self):
        assert parse_timestamp(1714982400000) == BASE_TIME

    @pytest.mark.parametrize("value", [None, "", "yesterday", True])
    def test_invalid_values(self, value):
        with pytest.raises(RowParseError):
            parse_timestamp(value)


class TestWideParser:
    """Test wide-shape normalization."""

    @pytest.fixture
    def parser(self):
        return WideCycleParser()

    def test_required_fields(self, parser):
        record = parser.to_record(
            {
                "device_id": "M1",
                "cycle_started_at": "2024-05-06T08:00:00Z",
                "cycle_duration_ms": 12_000,
            }
        )

        assert record.device_id == "M1"
        assert record.started_at == BASE_TIME
        assert record.duration_s == 12.0
        assert record.location is None
        assert not record.has_error

    def test_numeric_device_id_becomes_string(self, parser):
        record = parser.to_record(
            {"device_id": 7, "cycle_started_at": BASE_TIME.isoformat(), "cycle_duration_ms": 1}
        )
        assert record.device_id == "7"

    @pytest.mark.parametrize(
        "value,expected",
        [("True", True), (True, True), ("False", False), (None, False), (1, False)],
    )
    def test_true_flag(self, value, expected):
        assert is_true_flag(value) is expected

    def test_flags_and_valve_feedback(self, parser):
        row = {
            "device_id": "M1",
            "cycle_started_at": "2024-05-06T08:00:00Z",
            "cycle_duration_ms": 1000,
            "di_e_stop_triggered": "True",
            "di_overload_trip": "False",
            "di_valve_extend_feedback_ok": "True",
            "di_valve_retract_feedback_ok": "False",
        }

        record = parser.to_record(row)

        assert record.e_stop
        assert not record.overload_trip
        assert record.valve_issue
        assert record.has_error

    def test_missing_valve_columns_are_not_issues(self, parser):
        record = parser.to_record(
            {"device_id": "M1", "cycle_started_at": "2024-05-06T08:00:00Z", "cycle_duration_ms": 1}
        )
        assert not record.valve_issue

    @pytest.mark.parametrize("score,anomaly", [(0.6, True), (0.5, False), (None, False)])
    def test_anomaly_flag_from_score(self, parser, score, anomaly):
        record = parser.to_record(
            {
                "device_id": "M1",
                "cycle_started_at": "2024-05-06T08:00:00Z",
                "cycle_duration_ms": 1,
                "health_anomaly_score": score,
            }
        )
        assert record.anomaly is anomaly

    def test_phase_imbalance(self):
        assert phase_imbalance_pct([10.0, 12.0, 14.0]) == pytest.approx(100 * 4 / 12)
        assert phase_imbalance_pct([10.0, None, 14.0]) is None
        assert phase_imbalance_pct([0.0, 0.0, 0.0]) is None

    def test_pressure_overshoot(self):
        assert overshoot_pct(1200.0, 1000.0) == pytest.approx(20.0)
        assert overshoot_pct(1200.0, 0.0) is None
        assert overshoot_pct(None, 1000.0) is None

    def test_rows_without_timestamp_are_dropped(self, parser):
        rows = [
            {"device_id": "M1", "cycle_started_at": "2024-05-06T09:00:00Z", "cycle_duration_ms": 1},
            {"device_id": "M1", "cycle_started_at": "not a time", "cycle_duration_ms": 1},
            {"device_id": "M1", "cycle_started_at": None, "cycle_duration_ms": 1},
            {"device_id": "M1", "cycle_started_at": "2024-05-06T08:00:00Z", "cycle_duration_ms": 1},
        ]

        dataset = parser.normalize(rows)

        assert isinstance(dataset, WideDataset)
        assert dataset.dropped_rows == 2
        assert [r.started_at.hour for r in dataset.records] == [8, 9]

    def test_negative_duration_is_dropped(self, parser):
        rows = [
            {"device_id": "M1", "cycle_started_at": "2024-05-06T08:00:00Z", "cycle_duration_ms": -5},
            {"device_id": "M1", "cycle_started_at": "2024-05-06T08:00:00Z", "cycle_duration_ms": 5},
        ]

        dataset = parser.normalize(rows)

        assert len(dataset.records) == 1
        assert dataset.dropped_rows == 1

    def test_infinite_duration_is_dropped(self):
        text = wide_csv(
            [
                wide_row("M1", duration_ms="1e400"),
                wide_row("M1", started_at=datetime(2024, 5, 6, 9, tzinfo=UTC)),
            ]
        )

        dataset = ingest(text)

        assert dataset.dropped_rows == 1
        assert [r.started_at.hour for r in dataset.records] == [9]

    def test_oversized_integer_is_not_a_number(self):
        dataset = ingest(wide_csv([wide_row("M1", energy_active_kwh="9" * 400)]))

        record = dataset.records[0]
        assert record.energy_kwh is None
        assert record.field("energy_active_kwh") is None

    def test_all_rows_invalid_raises(self, parser):
        with pytest.raises(EmptyInputError):
            parser.normalize([{"device_id": "M1", "cycle_started_at": "bad", "cycle_duration_ms": 1}])

    def test_passthrough_numeric_fields(self, parser):
        record = parser.to_record(
            {
                "device_id": "M1",
                "cycle_started_at": "2024-05-06T08:00:00Z",
                "cycle_duration_ms": 1000,
                "hydraulic_oil_temp_c": 41.5,
                "note": "text",
            }
        )
        assert record.field("hydraulic_oil_temp_c") == 41.5
        assert record.field("note") is None

    def test_ingest_detects_wide_shape(self):
        text = wide_csv([wide_row("M2", location="North", energy_active_kwh=0.5)])

        dataset = ingest(text)

        assert dataset.shape == "wide"
        assert dataset.records[0].location == "North"
        assert dataset.records[0].energy_kwh == 0.5


class TestLongParser:
    """Test the long-shape pivot."""

    def test_pivot_groups_by_device_and_time(self, long_export_csv):
        dataset = ingest(long_export_csv)

        assert isinstance(dataset, LongDataset)
        assert list(dataset.devices) == ["P1", "P2"]

        p1 = dataset.devices["P1"]
        assert len(p1.time_series) == 3
        assert len(p1.cycle_summaries) == 2
        assert len(p1.realtime_samples) == 1
        assert p1.time_series[0].measures["energy.totalWh"] == 40.0

    def test_cycle_summaries_become_cycle_records(self, long_export_csv):
        p1 = ingest(long_export_csv).devices["P1"]

        first, second = p1.cycles
        assert first.duration_s == 12.5
        assert first.energy_kwh == pytest.approx(0.04)
        assert not first.has_error
        assert second.cycle_fault
        assert second.inrush_multiple == 9.5

    def test_unrepresentable_cycle_duration_counts_as_zero(self):
        text = long_csv([("2024-05-06T08:00:00Z", "P1", "cycle.durationS", "1e307")])

        cycle = ingest(text).devices["P1"].cycles[0]

        assert cycle.duration_ms == 0.0

    def test_last_value_wins_for_repeated_measure(self):
        text = long_csv(
            [
                ("2024-05-06T08:00:00Z", "P1", "cycle.durationS", 10),
                ("2024-05-06T08:00:00Z", "P1", "cycle.durationS", 11),
            ]
        )

        point = ingest(text).devices["P1"].time_series[0]

        assert point.measures["cycle.durationS"] == 11

    def test_time_key_is_exact_string(self):
        text = long_csv(
            [
                ("2024-05-06T08:00:00Z", "P1", "voltage.U1", 230),
                ("2024-05-06T08:00:00+00:00", "P1", "voltage.U1", 231),
            ]
        )

        series = ingest(text).devices["P1"].time_series

        assert len(series) == 2
        assert series[0].timestamp == series[1].timestamp

    def test_points_sorted_by_time(self):
        text = long_csv(
            [
                ("2024-05-06T09:00:00Z", "P1", "voltage.U1", 231),
                ("2024-05-06T08:00:00Z", "P1", "voltage.U1", 230),
            ]
        )

        series = ingest(text).devices["P1"].time_series

        assert [p.measures["voltage.U1"] for p in series] == [230, 231]

    def test_point_without_known_measures_is_unclassified(self):
        text = long_csv([("2024-05-06T08:00:00Z", "P1", "firmware.build", 412)])

        device = ingest(text).devices["P1"]

        assert len(device.time_series) == 1
        assert device.cycle_summaries == []
        assert device.realtime_samples == []

    def test_invalid_time_rows_are_dropped(self):
        text = long_csv(
            [
                ("garbage", "P1", "voltage.U1", 230),
                ("2024-05-06T08:00:00Z", "P1", "voltage.U1", 231),
                ("2024-05-06T08:00:00Z", "", "voltage.U1", 231),
            ]
        )

        dataset = ingest(text)

        assert dataset.dropped_rows == 2
        assert len(dataset.devices["P1"].time_series) == 1

    def test_no_valid_rows_raises(self):
        with pytest.raises(EmptyInputError):
            LongMeasurementParser().normalize(
                [{"Time": "bad", "deviceId": "P1", "measure_name": "x", "measure_value": 1}]
            )

    def test_location_column_is_carried(self):
        text = long_csv(
            [("2024-05-06T08:00:00Z", "P1", "cycle.durationS", 10, "Dock 3")],
            extra_columns=["location"],
        )

        device = ingest(text).devices["P1"]

        assert device.location == "Dock 3"
        assert device.cycles[0].location == "Dock 3"

    def test_forced_shape(self, long_export_csv):
        dataset = ingest(long_export_csv, shape=DataShape.LONG)
        assert dataset.shape == "long"

    def test_digital_input_flags(self, long_export_csv):
        sample = ingest(long_export_csv).devices["P1"].realtime_samples[0]

        assert sample.flag("DI1_KM") == 1
        assert sample.flag("DI4_Door") == 1
        assert sample.flag("DI8_Full_Error") == 0
        assert sample.timestamp == datetime(2024, 5, 6, 8, 0, 25, tzinfo=UTC)
