"""
Canonical telemetry record shapes.

Every parser converts its CSV rows into these structures at the
normalization boundary. Filtering and the metrics engine only ever see
``CycleRecord`` and ``TimeSeriesPoint``; untyped row mappings never travel
past the parsers.
"""

import math

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from presswatch.constants import (
    MEASURE_CYCLE_DURATION_S,
    MILLISECONDS_PER_HOUR,
    MILLISECONDS_PER_SECOND,
    REALTIME_MEASURES,
)

Scalar = str | int | float | bool | None
RawRow = dict[str, Scalar]


def as_float(value: Scalar) -> float | None:
    """Return ``value`` as a finite float if it is numeric, else None."""
    if isinstance(value, bool) or value is None:
        return None
    if not isinstance(value, int | float):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


class CycleRecord(BaseModel):
    """One completed machine cycle."""

    model_config = ConfigDict(frozen=True)

    device_id: str = Field(description="Device identifier")
    location: str | None = Field(default=None, description="Site or line name")
    started_at: datetime = Field(description="Cycle start (timezone-aware, UTC)")
    duration_ms: float = Field(ge=0, allow_inf_nan=False, description="Cycle duration (ms)")

    e_stop: bool = Field(default=False, description="Emergency stop triggered")
    overload_trip: bool = Field(default=False, description="Motor overload tripped")
    valve_issue: bool = Field(default=False, description="Valve feedback not OK")
    cycle_fault: bool = Field(
        default=False, description="Controller reported the cycle as failed"
    )

    health_anomaly_score: float | None = Field(
        default=None, description="Controller health anomaly score (0-1)"
    )
    anomaly: bool = Field(default=False, description="Anomaly score above 0.5")

    energy_kwh: float | None = Field(default=None, description="Active energy (kWh)")
    bale_count: float | None = Field(default=None, description="Bales produced")
    door_open_events: float | None = Field(default=None, description="Door openings")
    gate_open_events: float | None = Field(default=None, description="Gate openings")

    current_imbalance_pct: float | None = Field(
        default=None, description="Phase peak current imbalance (%)"
    )
    pressure_overshoot_pct: float | None = Field(
        default=None, description="Hydraulic max over average pressure (%)"
    )
    inrush_multiple: float | None = Field(
        default=None, description="Inrush peak as a multiple of rated current"
    )
    voltage_sag_pct: float | None = Field(default=None, description="Sag depth (%)")
    current_unbalance_pct: float | None = Field(
        default=None, description="Work current unbalance (%)"
    )
    ripple_pct: float | None = Field(default=None, description="Current ripple (%)")
    load_factor: float | None = Field(default=None, description="Load factor (0-1)")

    fields: dict[str, float] = Field(
        default_factory=dict, description="All numeric source fields"
    )

    @property
    def runtime_hours(self) -> float:
        return self.duration_ms / MILLISECONDS_PER_HOUR

    @property
    def duration_s(self) -> float:
        return self.duration_ms / MILLISECONDS_PER_SECOND

    @property
    def has_error(self) -> bool:
        """True if the cycle ended in an E-stop, overload trip or fault."""
        return self.e_stop or self.overload_trip or self.cycle_fault

    def field(self, name: str) -> float | None:
        """Look up a passthrough numeric field by its source name."""
        return self.fields.get(name)


class MeasurementPoint(BaseModel):
    """A single long-shape measurement before pivoting."""

    model_config = ConfigDict(frozen=True)

    device_id: str
    time_key: str = Field(description="Raw Time value, used as grouping key")
    timestamp: datetime
    measure_name: str
    value: Scalar = None


class TimeSeriesPoint(BaseModel):
    """All measurements one device reported at one instant."""

    model_config = ConfigDict(frozen=True)

    device_id: str
    time_key: str = Field(description="Raw Time value shared by all measures")
    timestamp: datetime
    measures: dict[str, Scalar] = Field(default_factory=dict)

    @property
    def is_cycle_summary(self) -> bool:
        return MEASURE_CYCLE_DURATION_S in self.measures

    @property
    def is_realtime_sample(self) -> bool:
        return any(name in self.measures for name in REALTIME_MEASURES)

    def value(self, name: str) -> float | None:
        return as_float(self.measures.get(name))

    def flag(self, name: str) -> int:
        """Digital input state as 0/1; anything other than 1 counts as 0."""
        raw = self.measures.get(name)
        if raw is True:
            return 1
        return 1 if as_float(raw) == 1.0 else 0


class DeviceDataset(BaseModel):
    """Pivoted long-shape data for a single device."""

    model_config = ConfigDict(frozen=True)

    device_id: str
    location: str | None = None
    time_series: list[TimeSeriesPoint] = Field(default_factory=list)
    cycle_summaries: list[TimeSeriesPoint] = Field(default_factory=list)
    realtime_samples: list[TimeSeriesPoint] = Field(default_factory=list)
    cycles: list[CycleRecord] = Field(
        default_factory=list,
        description="Cycle summaries converted to CycleRecord, same order",
    )


class WideDataset(BaseModel):
    """Normalized wide-shape upload."""

    model_config = ConfigDict(frozen=True)

    shape: Literal["wide"] = "wide"
    records: list[CycleRecord] = Field(default_factory=list)
    dropped_rows: int = Field(default=0, ge=0, description="Rows without a timestamp")

    @property
    def is_empty(self) -> bool:
        return not self.records


class LongDataset(BaseModel):
    """Normalized long-shape upload, keyed by device in sorted order."""

    model_config = ConfigDict(frozen=True)

    shape: Literal["long"] = "long"
    devices: dict[str, DeviceDataset] = Field(default_factory=dict)
    dropped_rows: int = Field(default=0, ge=0, description="Rows without a timestamp")

    @property
    def is_empty(self) -> bool:
        return not any(d.time_series for d in self.devices.values())

    def all_cycles(self) -> list[CycleRecord]:
        return [c for device in self.devices.values() for c in device.cycles]

    def all_samples(self) -> list[TimeSeriesPoint]:
        return [p for device in self.devices.values() for p in device.realtime_samples]
