"""Idle/active analysis, per-device utilization and daily performance."""

from collections.abc import Sequence

from presswatch.analysis.common import group_by, group_by_day, percentage, sum_present
from presswatch.analysis.types import (
    DailyPerformance,
    DeviceUtilization,
    IdleActiveAnalysis,
)
from presswatch.constants import (
    DI_CONTACTOR,
    HOURS_PER_DAY,
    SECONDS_PER_HOUR,
    MetricConstants,
)
from presswatch.models.filters import DateWindow, TimeRange
from presswatch.models.records import CycleRecord, TimeSeriesPoint

# Unbounded selections are measured against one week
DEFAULT_WINDOW_HOURS = 7 * HOURS_PER_DAY


def calculate_idle_active(samples: Sequence[TimeSeriesPoint]) -> IdleActiveAnalysis:
    """
    Estimate active and idle hours from contactor samples.

    Every sample stands for one 25-second reading interval; a sample is
    active when the main contactor input is 1.
    """
    if not samples:
        return IdleActiveAnalysis()

    interval_hours = MetricConstants.READING_INTERVAL_S / SECONDS_PER_HOUR
    active = sum(1 for s in samples if s.flag(DI_CONTACTOR) == 1)
    total = len(samples)

    return IdleActiveAnalysis(
        active_samples=active,
        total_samples=total,
        active_hours=active * interval_hours,
        idle_hours=(total - active) * interval_hours,
        total_hours=total * interval_hours,
        active_pct=percentage(active, total),
    )


def window_hours(time_range: TimeRange | DateWindow) -> float:
    """Length of the selected window in hours."""
    if isinstance(time_range, DateWindow):
        span = (time_range.end - time_range.start).total_seconds() / SECONDS_PER_HOUR
        return max(1.0, span)
    return time_range.hours or DEFAULT_WINDOW_HOURS


def calculate_device_utilization(
    cycles: Sequence[CycleRecord],
    time_range: TimeRange | DateWindow = TimeRange.LAST_7D,
    limit: int = MetricConstants.DEVICE_UTILIZATION_LIMIT,
) -> list[DeviceUtilization]:
    """
    Active vs idle hours per device within the selected window.

    Args:
        cycles: Filtered cycle records
        time_range: Selected window, used as each device's available time
        limit: Maximum devices returned

    Returns:
        Devices sorted by active hours, most active first
    """
    hours = window_hours(time_range)
    devices = []
    for device_id, records in group_by(cycles, lambda c: c.device_id).items():
        runtime = sum(r.runtime_hours for r in records)
        devices.append(
            DeviceUtilization(
                device_id=device_id,
                active_hours=runtime,
                idle_hours=max(0.0, hours - runtime),
                utilization_pct=min(100.0, percentage(runtime, hours)),
                window_hours=hours,
            )
        )

    devices.sort(key=lambda d: d.active_hours, reverse=True)
    return devices[:limit]


def calculate_performance_trends(cycles: Sequence[CycleRecord]) -> list[DailyPerformance]:
    """Per-day production totals for the last 7 days with data."""
    trends = [
        DailyPerformance(
            day=day,
            cycles=len(records),
            runtime_hours=sum(r.runtime_hours for r in records),
            energy_kwh=sum_present(r.energy_kwh for r in records),
            bales=sum_present(r.bale_count for r in records),
            avg_utilization_pct=sum(r.runtime_hours / HOURS_PER_DAY * 100 for r in records)
            / len(records),
        )
        for day, records in group_by_day(cycles).items()
    ]
    return trends[-MetricConstants.TREND_DAYS :]
