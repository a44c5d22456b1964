"""
Long-shape parser.

Each CSV row is one ``(Time, deviceId, measure_name, measure_value)``
measurement. Rows are pivoted into one TimeSeriesPoint per device and exact
``Time`` string; when the same measure repeats at the same instant the last
row in file order wins.
"""

import logging
import math

from collections.abc import Sequence
from datetime import datetime

from presswatch.constants import (
    COL_LOCATION,
    COL_LONG_DEVICE_ID,
    COL_MEASURE_NAME,
    COL_MEASURE_VALUE,
    COL_TIME,
    LONG_REQUIRED_COLUMNS,
    MEASURE_CURRENT_UNBALANCE_PCT,
    MEASURE_CYCLE_DURATION_S,
    MEASURE_CYCLE_OVERALL,
    MEASURE_ENERGY_TOTAL_WH,
    MEASURE_INRUSH_MULTIPLE,
    MEASURE_LOAD_FACTOR,
    MEASURE_RIPPLE_MAX_PCT,
    MEASURE_SAG_DEPTH_PCT,
    MILLISECONDS_PER_SECOND,
    DataShape,
)
from presswatch.models.records import (
    CycleRecord,
    DeviceDataset,
    LongDataset,
    MeasurementPoint,
    RawRow,
    Scalar,
    TimeSeriesPoint,
    as_float,
)
from presswatch.parsers.base import (
    EmptyInputError,
    ParserMetadata,
    RowParseError,
    TelemetryParser,
)
from presswatch.parsers.timestamps import parse_timestamp

logger = logging.getLogger(__name__)


def cycle_record_from_summary(
    point: TimeSeriesPoint, location: str | None = None
) -> CycleRecord:
    """
    Express a long-shape cycle summary as a CycleRecord.

    ``cycle.overall == 1`` marks a failed cycle; energy is converted from Wh
    to kWh so both shapes report the same unit. A duration too large to
    express in milliseconds is treated like a missing one.
    """
    duration_ms = (point.value(MEASURE_CYCLE_DURATION_S) or 0.0) * MILLISECONDS_PER_SECOND
    if not math.isfinite(duration_ms):
        duration_ms = 0.0
    energy_wh = point.value(MEASURE_ENERGY_TOTAL_WH)

    return CycleRecord(
        device_id=point.device_id,
        location=location,
        started_at=point.timestamp,
        duration_ms=max(0.0, duration_ms),
        cycle_fault=point.flag(MEASURE_CYCLE_OVERALL) == 1,
        energy_kwh=energy_wh / 1000 if energy_wh is not None else None,
        inrush_multiple=point.value(MEASURE_INRUSH_MULTIPLE),
        voltage_sag_pct=point.value(MEASURE_SAG_DEPTH_PCT),
        current_unbalance_pct=point.value(MEASURE_CURRENT_UNBALANCE_PCT),
        ripple_pct=point.value(MEASURE_RIPPLE_MAX_PCT),
        load_factor=point.value(MEASURE_LOAD_FACTOR),
        fields={
            name: number
            for name, value in point.measures.items()
            if (number := as_float(value)) is not None
        },
    )


class _DeviceAccumulator:
    """Collects measurements for one device in first-seen time order."""

    def __init__(self, device_id: str):
        self.device_id = device_id
        self.location: str | None = None
        self.timestamps: dict[str, datetime] = {}
        self.measures: dict[str, dict[str, Scalar]] = {}

    def add(self, measurement: MeasurementPoint) -> None:
        key = measurement.time_key
        if key not in self.measures:
            self.timestamps[key] = measurement.timestamp
            self.measures[key] = {}
        self.measures[key][measurement.measure_name] = measurement.value

    def build(self) -> DeviceDataset:
        points = [
            TimeSeriesPoint(
                device_id=self.device_id,
                time_key=key,
                timestamp=self.timestamps[key],
                measures=measures,
            )
            for key, measures in self.measures.items()
        ]
        points.sort(key=lambda p: p.timestamp)

        summaries = [p for p in points if p.is_cycle_summary]
        return DeviceDataset(
            device_id=self.device_id,
            location=self.location,
            time_series=points,
            cycle_summaries=summaries,
            realtime_samples=[p for p in points if p.is_realtime_sample],
            cycles=[cycle_record_from_summary(p, self.location) for p in summaries],
        )


class LongMeasurementParser(TelemetryParser):
    """Parser for narrow exports keyed by ``measure_name``."""

    def get_metadata(self) -> ParserMetadata:
        return ParserMetadata(
            parser_id="long_measurements",
            parser_version="1.0.0",
            shape=DataShape.LONG,
            required_columns=list(LONG_REQUIRED_COLUMNS),
            description="One row per measurement, pivoted per device and time",
        )

    def normalize(self, rows: Sequence[RawRow]) -> LongDataset:
        devices: dict[str, _DeviceAccumulator] = {}
        time_cache: dict[str, datetime | None] = {}
        dropped = 0

        for index, row in enumerate(rows):
            try:
                measurement = self.to_measurement(row, time_cache)
            except RowParseError as e:
                dropped += 1
                logger.debug(f"Dropping row {index + 1}: {e}")
                continue

            accumulator = devices.get(measurement.device_id)
            if accumulator is None:
                accumulator = devices[measurement.device_id] = _DeviceAccumulator(
                    measurement.device_id
                )
            location = row.get(COL_LOCATION)
            if accumulator.location is None and location not in (None, ""):
                accumulator.location = str(location)
            accumulator.add(measurement)

        if dropped:
            logger.info(f"Dropped {dropped} of {len(rows)} incomplete measurement rows")

        if not devices:
            raise EmptyInputError("No measurement rows with a valid Time value")

        datasets = {device_id: devices[device_id].build() for device_id in sorted(devices)}
        for dataset in datasets.values():
            logger.debug(
                f"Device {dataset.device_id}: {len(dataset.time_series)} points, "
                f"{len(dataset.cycle_summaries)} cycles, "
                f"{len(dataset.realtime_samples)} realtime samples"
            )

        return LongDataset(devices=datasets, dropped_rows=dropped)

    def to_measurement(
        self, row: RawRow, time_cache: dict[str, datetime | None] | None = None
    ) -> MeasurementPoint:
        """
        Validate one long-shape row.

        Args:
            row: Typed CSV row
            time_cache: Parsed timestamps by raw Time string, shared across rows

        Raises:
            RowParseError: If Time, deviceId or measure_name is unusable
        """
        device = row.get(COL_LONG_DEVICE_ID)
        name = row.get(COL_MEASURE_NAME)
        raw_time = row.get(COL_TIME)
        if device in (None, "") or name in (None, "") or raw_time in (None, ""):
            raise RowParseError("Missing Time, deviceId or measure_name")

        time_key = str(raw_time)
        if time_cache is not None and time_key in time_cache:
            timestamp = time_cache[time_key]
        else:
            try:
                timestamp = parse_timestamp(raw_time)
            except RowParseError:
                timestamp = None
            if time_cache is not None:
                time_cache[time_key] = timestamp

        if timestamp is None:
            raise RowParseError(f"Invalid Time: {raw_time!r}")

        return MeasurementPoint(
            device_id=str(device),
            time_key=time_key,
            timestamp=timestamp,
            measure_name=str(name),
            value=row.get(COL_MEASURE_VALUE),
        )
