"""
Reliability and end-of-life projections.

MTBF is runtime per failed cycle. MTTR is measured from failure flag
transitions: a repair interval starts at the first failed cycle of a run and
ends at the next cycle of the same device that is not failed. Projections
are based on how many cycles a device has run against its rated lifetime.
"""

from collections.abc import Sequence

from presswatch.analysis.common import group_by, mean_or_none
from presswatch.analysis.types import DeviceEol, FleetEol, LifetimeMetrics
from presswatch.constants import MetricConstants
from presswatch.models.records import CycleRecord
from presswatch.models.thresholds import AlertThresholds

SECONDS_PER_DAY = 86_400
SECONDS_PER_MINUTE = 60


def calculate_mtbf(cycles: Sequence[CycleRecord]) -> float:
    """
    Mean time between failures in hours.

    MTBF = total runtime / max(1, failed cycles)
    """
    runtime = sum(c.runtime_hours for c in cycles)
    failures = sum(1 for c in cycles if c.has_error)
    return runtime / max(1, failures)


def repair_intervals_minutes(cycles: Sequence[CycleRecord]) -> list[float]:
    """
    Durations of completed failure runs, per device, in minutes.

    A run still failing at the end of the data has no repair time yet and
    is left out.
    """
    intervals = []
    for records in group_by(cycles, lambda c: c.device_id).values():
        failed_since = None
        for record in sorted(records, key=lambda c: c.started_at):
            if record.has_error:
                if failed_since is None:
                    failed_since = record.started_at
            elif failed_since is not None:
                elapsed = (record.started_at - failed_since).total_seconds()
                intervals.append(elapsed / SECONDS_PER_MINUTE)
                failed_since = None
    return intervals


def calculate_mttr(cycles: Sequence[CycleRecord]) -> float:
    """
    Mean time to repair in minutes.

    Falls back to a fixed 20 minutes when no failure run has ended.
    """
    mean = mean_or_none(repair_intervals_minutes(cycles))
    return mean if mean is not None else MetricConstants.DEFAULT_MTTR_MINUTES


def calculate_lifetime_metrics(
    cycles: Sequence[CycleRecord], thresholds: AlertThresholds | None = None
) -> LifetimeMetrics:
    """
    Project remaining useful life from cycle consumption.

    remaining = max(0, rated - cycles)
    rul % = remaining / rated x 100
    cycles/day = cycles / span days (a zero span counts as one day; shorter
    non-zero spans are scaled up, so 3 cycles over half a day is 6/day)
    rul days = remaining / (cycles/day), 0 when no cycles are being run

    Args:
        cycles: Cycle history, normally unrestricted by time window
        thresholds: Alert limits (defaults used if None)

    Returns:
        LifetimeMetrics, zeroed for no cycles
    """
    thresholds = thresholds or AlertThresholds()
    if not cycles:
        return LifetimeMetrics(mttr_minutes=MetricConstants.DEFAULT_MTTR_MINUTES)

    rated = thresholds.lifetime_cycle_threshold
    lifetime_cycles = len(cycles)
    remaining = max(0, rated - lifetime_cycles)

    starts = [c.started_at for c in cycles]
    span_days = (max(starts) - min(starts)).total_seconds() / SECONDS_PER_DAY
    per_day = lifetime_cycles / span_days if span_days > 0 else float(lifetime_cycles)
    mtbf = calculate_mtbf(cycles)

    return LifetimeMetrics(
        lifetime_cycles=lifetime_cycles,
        remaining_cycles=remaining,
        rul_pct=remaining / rated * 100,
        rul_days=remaining / per_day if per_day > 0 else 0.0,
        avg_cycles_per_day=per_day,
        span_days=span_days,
        failures=sum(1 for c in cycles if c.has_error),
        mtbf_hours=mtbf,
        mttr_minutes=calculate_mttr(cycles),
        below_mtbf_threshold=mtbf < thresholds.mtbf_threshold_hours,
    )


def calculate_fleet_eol(
    cycles: Sequence[CycleRecord],
    thresholds: AlertThresholds | None = None,
    limit: int = MetricConstants.RANKING_LIMIT,
) -> FleetEol:
    """
    End-of-life table for every device.

    A device is near end of life when its RUL is under 10 % or its mean
    health anomaly score is above 0.7.

    Returns:
        FleetEol with devices sorted by RUL (lowest first) and fleet averages
    """
    if not cycles:
        return FleetEol()

    devices = []
    for device_id, records in group_by(cycles, lambda c: c.device_id).items():
        lifetime = calculate_lifetime_metrics(records, thresholds)
        score = mean_or_none(r.health_anomaly_score for r in records)
        devices.append(
            DeviceEol(
                device_id=device_id,
                lifetime_cycles=lifetime.lifetime_cycles,
                rul_pct=lifetime.rul_pct,
                rul_days=lifetime.rul_days,
                mtbf_hours=lifetime.mtbf_hours,
                mttr_minutes=lifetime.mttr_minutes,
                mean_anomaly_score=score,
                is_near_eol=(
                    lifetime.rul_pct < MetricConstants.NEAR_EOL_RUL_PCT
                    or (score or 0.0) > MetricConstants.NEAR_EOL_ANOMALY_SCORE
                ),
            )
        )

    devices.sort(key=lambda d: d.rul_pct)
    count = len(devices)
    return FleetEol(
        total_devices=count,
        avg_mtbf_hours=sum(d.mtbf_hours for d in devices) / count,
        avg_mttr_minutes=sum(d.mttr_minutes for d in devices) / count,
        avg_rul_pct=sum(d.rul_pct for d in devices) / count,
        devices=devices,
        near_eol=[d for d in devices if d.is_near_eol][:limit],
    )
