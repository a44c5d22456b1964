"""
Wide-shape parser.

One CSV row per completed cycle. Rows whose ``cycle_started_at`` cannot be
parsed are dropped rather than failing the upload.
"""

import logging

from collections.abc import Sequence

from presswatch.constants import (
    COL_AVG_PRESSURE,
    COL_BALE_COUNT,
    COL_CURRENT_RIPPLE_PCT,
    COL_CYCLE_DURATION_MS,
    COL_CYCLE_STARTED_AT,
    COL_DEVICE_ID,
    COL_DOOR_OPEN_EVENTS,
    COL_E_STOP,
    COL_ENERGY_KWH,
    COL_GATE_OPEN_EVENTS,
    COL_HEALTH_ANOMALY_SCORE,
    COL_INRUSH_MULTIPLE,
    COL_LOAD_FACTOR,
    COL_LOCATION,
    COL_MAX_PRESSURE,
    COL_OVERLOAD,
    COL_PHASE_CURRENTS,
    COL_VALVE_EXTEND_OK,
    COL_VALVE_RETRACT_OK,
    COL_VOLTAGE_SAG_PCT,
    WIDE_REQUIRED_COLUMNS,
    DataShape,
    MetricConstants,
)
from presswatch.models.records import CycleRecord, RawRow, Scalar, WideDataset, as_float
from presswatch.parsers.base import (
    EmptyInputError,
    ParserMetadata,
    RowParseError,
    TelemetryParser,
)
from presswatch.parsers.timestamps import parse_timestamp

logger = logging.getLogger(__name__)


def is_true_flag(value: Scalar) -> bool:
    """Digital input reported as native True or the literal string "True"."""
    return value is True or value == "True"


def is_false_flag(value: Scalar) -> bool:
    """Digital input reported as native False or the literal string "False"."""
    return value is False or value == "False"


def phase_imbalance_pct(phases: Sequence[float | None]) -> float | None:
    """
    Spread of the three phase currents relative to their mean.

    Returns:
        (max - min) / mean * 100, or None if a phase is missing or mean is 0
    """
    if any(p is None for p in phases):
        return None
    values = [p for p in phases if p is not None]
    mean = sum(values) / len(values)
    if mean == 0:
        return None
    return (max(values) - min(values)) / mean * 100


def overshoot_pct(maximum: float | None, average: float | None) -> float | None:
    """Peak over average, as a percentage of the average."""
    if maximum is None or average is None or average == 0:
        return None
    return (maximum - average) / average * 100


class WideCycleParser(TelemetryParser):
    """Parser for per-cycle exports (``device_id, cycle_started_at, ...``)."""

    def get_metadata(self) -> ParserMetadata:
        return ParserMetadata(
            parser_id="wide_cycles",
            parser_version="1.0.0",
            shape=DataShape.WIDE,
            required_columns=list(WIDE_REQUIRED_COLUMNS),
            description="One row per completed cycle",
        )

    def normalize(self, rows: Sequence[RawRow]) -> WideDataset:
        records: list[CycleRecord] = []
        dropped = 0

        for index, row in enumerate(rows):
            try:
                records.append(self.to_record(row))
            except RowParseError as e:
                dropped += 1
                logger.debug(f"Dropping row {index + 1}: {e}")

        if dropped:
            logger.info(f"Dropped {dropped} of {len(rows)} rows without a valid cycle")

        if not records:
            raise EmptyInputError("No rows with a valid cycle_started_at timestamp")

        records.sort(key=lambda r: r.started_at)
        return WideDataset(records=records, dropped_rows=dropped)

    def to_record(self, row: RawRow) -> CycleRecord:
        """
        Convert one wide-shape row into a CycleRecord.

        Raises:
            RowParseError: If the timestamp, device or duration is unusable
        """
        started_at = parse_timestamp(row.get(COL_CYCLE_STARTED_AT))

        device = row.get(COL_DEVICE_ID)
        if device is None or device == "":
            raise RowParseError("Missing device_id")

        duration_ms = as_float(row.get(COL_CYCLE_DURATION_MS))
        if duration_ms is None or duration_ms < 0:
            raise RowParseError(
                f"Invalid cycle_duration_ms: {row.get(COL_CYCLE_DURATION_MS)!r}"
            )

        location = row.get(COL_LOCATION)
        score = as_float(row.get(COL_HEALTH_ANOMALY_SCORE))
        imbalance = phase_imbalance_pct([as_float(row.get(c)) for c in COL_PHASE_CURRENTS])

        return CycleRecord(
            device_id=str(device),
            location=str(location) if location not in (None, "") else None,
            started_at=started_at,
            duration_ms=duration_ms,
            e_stop=is_true_flag(row.get(COL_E_STOP)),
            overload_trip=is_true_flag(row.get(COL_OVERLOAD)),
            valve_issue=(
                is_false_flag(row.get(COL_VALVE_EXTEND_OK))
                or is_false_flag(row.get(COL_VALVE_RETRACT_OK))
            ),
            health_anomaly_score=score,
            anomaly=score is not None and score > MetricConstants.HEALTH_ANOMALY_THRESHOLD,
            energy_kwh=as_float(row.get(COL_ENERGY_KWH)),
            bale_count=as_float(row.get(COL_BALE_COUNT)),
            door_open_events=as_float(row.get(COL_DOOR_OPEN_EVENTS)),
            gate_open_events=as_float(row.get(COL_GATE_OPEN_EVENTS)),
            current_imbalance_pct=imbalance,
            pressure_overshoot_pct=overshoot_pct(
                as_float(row.get(COL_MAX_PRESSURE)), as_float(row.get(COL_AVG_PRESSURE))
            ),
            inrush_multiple=as_float(row.get(COL_INRUSH_MULTIPLE)),
            voltage_sag_pct=as_float(row.get(COL_VOLTAGE_SAG_PCT)),
            current_unbalance_pct=imbalance,
            ripple_pct=as_float(row.get(COL_CURRENT_RIPPLE_PCT)),
            load_factor=as_float(row.get(COL_LOAD_FACTOR)),
            fields={
                name: number
                for name, value in row.items()
                if (number := as_float(value)) is not None
            },
        )
