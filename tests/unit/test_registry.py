"""Tests for parser registry shape detection."""

import pytest

from presswatch.constants import DataShape
from presswatch.ingest import ingest, ingest_steps
from presswatch.parsers.base import MissingColumnsError
from presswatch.parsers.long import LongMeasurementParser
from presswatch.parsers.registry import ParserRegistry, build_default_registry
from presswatch.parsers.wide import WideCycleParser
from tests.helpers.synthetic_data import build_csv, wide_csv, wide_row

pytestmark = pytest.mark.parser

WIDE_HEADER = ["device_id", "cycle_started_at", "cycle_duration_ms", "location"]
LONG_HEADER = ["Time", "deviceId", "measure_name", "measure_value"]


class TestShapeDetection:
    """Tests for ParserRegistry.select_parser."""

    @pytest.fixture
    def registry(self):
        return build_default_registry()

    def test_wide_header(self, registry):
        assert registry.select_parser(WIDE_HEADER).shape == DataShape.WIDE

    def test_long_header(self, registry):
        assert registry.select_parser(LONG_HEADER).shape == DataShape.LONG

    def test_detect_all_sorted_by_confidence(self, registry):
        ranked = registry.detect_all(LONG_HEADER)

        assert ranked[0][0].shape == DataShape.LONG
        assert ranked[0][1].confidence == 1.0
        assert ranked[1][1].confidence == 0.0

    def test_missing_column_names_closest_shape(self, registry):
        with pytest.raises(MissingColumnsError) as exc_info:
            registry.select_parser(["device_id", "cycle_started_at"])

        assert exc_info.value.missing == ["cycle_duration_ms"]
        assert exc_info.value.shape == DataShape.WIDE
        assert "cycle_duration_ms" in str(exc_info.value)

    def test_forced_shape_must_match_header(self, registry):
        with pytest.raises(MissingColumnsError) as exc_info:
            registry.select_parser(WIDE_HEADER, shape=DataShape.LONG)

        assert set(exc_info.value.missing) == set(LONG_HEADER)

    def test_unrelated_header(self, registry):
        with pytest.raises(MissingColumnsError):
            registry.select_parser(["foo", "bar"])


class TestRegistration:
    def test_duplicate_parser_id_rejected(self):
        registry = ParserRegistry()
        registry.register(WideCycleParser())

        with pytest.raises(ValueError, match="already registered"):
            registry.register(WideCycleParser())

    def test_second_parser_for_shape_rejected(self):
        class RenamedWideParser(WideCycleParser):
            def get_metadata(self):
                return super().get_metadata().model_copy(update={"parser_id": "wide_v2"})

        registry = ParserRegistry()
        registry.register(WideCycleParser())

        with pytest.raises(ValueError, match="wide shape is already registered"):
            registry.register(RenamedWideParser())

    def test_lookup_by_shape(self):
        registry = ParserRegistry()
        registry.register(LongMeasurementParser())

        assert registry.get_parser_for_shape(DataShape.LONG).parser_id == "long_measurements"
        with pytest.raises(KeyError):
            registry.get_parser_for_shape(DataShape.WIDE)

    def test_empty_registry(self):
        with pytest.raises(RuntimeError):
            ParserRegistry().select_parser(WIDE_HEADER)


class TestIngest:
    """Tests for the end-to-end upload pipeline."""

    def test_missing_column_fails_before_reading_rows(self):
        text = build_csv(["device_id", "cycle_started_at"], [["M1", "2024-05-06T08:00:00Z"]])

        steps = ingest_steps(text)

        with pytest.raises(MissingColumnsError):
            next(steps)

    def test_progress_reaches_100(self):
        text = wide_csv([wide_row()])
        reported = []

        ingest(text, on_progress=reported.append)

        assert reported == sorted(reported)
        assert reported[-2:] == [95.0, 100.0]

    def test_steps_return_dataset(self):
        steps = ingest_steps(wide_csv([wide_row()]), batch_size=1)

        while True:
            try:
                next(steps)
            except StopIteration as done:
                dataset = done.value
                break

        assert dataset.shape == "wide"
        assert len(dataset.records) == 1
