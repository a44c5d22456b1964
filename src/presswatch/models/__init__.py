"""Data models for press telemetry."""

from presswatch.models.filters import ALL, DateWindow, FilterCriteria, TimeRange
from presswatch.models.records import (
    CycleRecord,
    DeviceDataset,
    LongDataset,
    MeasurementPoint,
    RawRow,
    Scalar,
    TimeSeriesPoint,
    WideDataset,
)
from presswatch.models.thresholds import AlertThresholds

__all__ = [
    "ALL",
    "AlertThresholds",
    "CycleRecord",
    "DateWindow",
    "DeviceDataset",
    "FilterCriteria",
    "LongDataset",
    "MeasurementPoint",
    "RawRow",
    "Scalar",
    "TimeRange",
    "TimeSeriesPoint",
    "WideDataset",
]
