"""
Filter engine.

Applies device, location and time-window selections to a normalized
dataset. Filtering never mutates its input; every call returns new lists.

The relative time window is anchored on the newest timestamp in the dataset
being filtered, not on the wall clock, so a week-old export still shows its
last 24 hours. Callers pass the unfiltered upload so the anchor does not move
when other selections narrow the data.
"""

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from presswatch.models.filters import ALL, DateWindow, FilterCriteria, TimeRange
from presswatch.models.records import (
    CycleRecord,
    DeviceDataset,
    LongDataset,
    TimeSeriesPoint,
    WideDataset,
)

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def reference_time(dataset: WideDataset | LongDataset) -> datetime | None:
    """
    Newest timestamp in a dataset, used as "now" for relative windows.

    Returns:
        Latest cycle start or point timestamp, or None for an empty dataset
    """
    if isinstance(dataset, WideDataset):
        return max((r.started_at for r in dataset.records), default=None)
    return max(
        (p.timestamp for d in dataset.devices.values() for p in d.time_series),
        default=None,
    )


def window_start(now: datetime | None, time_range: TimeRange) -> datetime:
    """
    Lower bound of a relative window.

    Args:
        now: Anchor timestamp
        time_range: Selected range

    Returns:
        ``now`` minus the range span, or the epoch for "all"
    """
    span = time_range.span
    if span is None or now is None:
        return EPOCH
    return now - span


def in_window(
    timestamp: datetime,
    time_range: TimeRange | DateWindow,
    now: datetime | None,
) -> bool:
    """Inclusive lower bound for relative ranges, inclusive both ends for windows."""
    if isinstance(time_range, DateWindow):
        return time_range.start <= timestamp <= time_range.end
    return timestamp >= window_start(now, time_range)


def _matches(value: str | None, selection: str) -> bool:
    return selection == ALL or value == selection


def filter_cycles(
    records: Sequence[CycleRecord],
    criteria: FilterCriteria,
    now: datetime | None = None,
) -> list[CycleRecord]:
    """
    Filter cycle records.

    Args:
        records: Cycle records, typically the unfiltered upload
        criteria: Current selection
        now: Window anchor; defaults to the newest record in ``records``

    Returns:
        New list of matching records in input order
    """
    if now is None:
        now = max((r.started_at for r in records), default=None)

    return [
        r
        for r in records
        if _matches(r.device_id, criteria.device)
        and _matches(r.location, criteria.location)
        and in_window(r.started_at, criteria.time_range, now)
    ]


def filter_points(
    points: Iterable[TimeSeriesPoint],
    time_range: TimeRange | DateWindow,
    now: datetime | None,
) -> list[TimeSeriesPoint]:
    """Apply only the time window to a sequence of pivoted points."""
    return [p for p in points if in_window(p.timestamp, time_range, now)]


def filter_device(
    dataset: DeviceDataset,
    time_range: TimeRange | DateWindow,
    now: datetime | None,
) -> DeviceDataset:
    """Return a copy of a device dataset restricted to a time window."""
    return DeviceDataset(
        device_id=dataset.device_id,
        location=dataset.location,
        time_series=filter_points(dataset.time_series, time_range, now),
        cycle_summaries=filter_points(dataset.cycle_summaries, time_range, now),
        realtime_samples=filter_points(dataset.realtime_samples, time_range, now),
        cycles=[c for c in dataset.cycles if in_window(c.started_at, time_range, now)],
    )


def filter_dataset(
    original: WideDataset | LongDataset,
    criteria: FilterCriteria,
) -> WideDataset | LongDataset:
    """
    Apply a selection to an uploaded dataset.

    Pure and idempotent: applying the same criteria to the result yields the
    same result.

    Args:
        original: Unfiltered dataset as installed after upload
        criteria: Current selection

    Returns:
        New dataset of the same shape
    """
    now = reference_time(original)

    if isinstance(original, WideDataset):
        return WideDataset(
            records=filter_cycles(original.records, criteria, now=now),
            dropped_rows=original.dropped_rows,
        )

    devices = {
        device_id: filter_device(dataset, criteria.time_range, now)
        for device_id, dataset in original.devices.items()
        if _matches(device_id, criteria.device)
        and _matches(dataset.location, criteria.location)
    }
    return LongDataset(devices=devices, dropped_rows=original.dropped_rows)


def list_devices(dataset: WideDataset | LongDataset) -> list[str]:
    """Sorted distinct device ids, for the device selector."""
    if isinstance(dataset, WideDataset):
        return sorted({r.device_id for r in dataset.records})
    return sorted(dataset.devices)


def list_locations(dataset: WideDataset | LongDataset) -> list[str]:
    """Sorted distinct non-empty locations, for the location selector."""
    if isinstance(dataset, WideDataset):
        locations = {r.location for r in dataset.records}
    else:
        locations = {d.location for d in dataset.devices.values()}
    return sorted(loc for loc in locations if loc)
