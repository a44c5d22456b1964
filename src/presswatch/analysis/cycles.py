"""Cycle time baseline, drift and distribution."""

import math

from collections.abc import Sequence

from presswatch.analysis.types import CycleMetrics, CycleTrend, DurationBucket
from presswatch.constants import MetricConstants
from presswatch.models.records import CycleRecord
from presswatch.models.thresholds import AlertThresholds


def calculate_baseline(durations: Sequence[float]) -> float:
    """
    Baseline cycle duration.

    Takes the element at index ``len // 2`` of the numerically sorted
    durations; for even lengths this is the upper of the two middle values
    rather than their mean.

    Returns:
        Baseline duration, or 0.0 for no durations
    """
    if not durations:
        return 0.0
    return sorted(durations)[len(durations) // 2]


def calculate_drift_pct(duration: float, baseline: float) -> float:
    """Percentage deviation from baseline (0 when the baseline is 0)."""
    if baseline <= 0:
        return 0.0
    return (duration - baseline) / baseline * 100


def is_drifting(drift_pct: float) -> bool:
    return abs(drift_pct) > MetricConstants.DRIFT_ALERT_PCT


def calculate_distribution(durations: Sequence[float]) -> list[DurationBucket]:
    """
    Histogram of durations in 2-second buckets ``[lower, lower + 2)``.

    Buckets start at 0 and extend far enough to hold the longest cycle, up
    to ``MAX_DISTRIBUTION_BUCKETS``; the last bucket then becomes an open
    ``lower+`` bucket that also counts every longer cycle.
    """
    width = MetricConstants.DURATION_BUCKET_S
    limit = MetricConstants.MAX_DISTRIBUTION_BUCKETS
    durations = [d for d in durations if math.isfinite(d)]
    longest = max(durations, default=0.0)
    if longest > 0:
        bucket_count = min(math.floor(longest / width) + 1, limit)
    else:
        bucket_count = MetricConstants.DEFAULT_DISTRIBUTION_MAX_S // width
    capped = longest >= limit * width

    counts = [0] * bucket_count
    for duration in durations:
        counts[min(int(duration // width), bucket_count - 1)] += 1

    buckets = [
        DurationBucket(
            label=f"{i * width}-{(i + 1) * width}s",
            lower_s=i * width,
            upper_s=(i + 1) * width,
            count=count,
        )
        for i, count in enumerate(counts)
    ]
    if capped:
        last = buckets[-1]
        buckets[-1] = last.model_copy(
            update={"label": f"{last.lower_s:g}s+", "upper_s": longest}
        )
    return buckets


def calculate_cycle_metrics(
    cycles: Sequence[CycleRecord], thresholds: AlertThresholds | None = None
) -> CycleMetrics:
    """
    Calculate per-cycle drift against the baseline duration.

    Args:
        cycles: Filtered cycles in ascending start order
        thresholds: Alert limits (defaults used if None)

    Returns:
        CycleMetrics with trends, distribution and the recent drift window
    """
    if not cycles:
        return CycleMetrics()

    thresholds = thresholds or AlertThresholds()
    durations = [c.duration_s for c in cycles]
    baseline = calculate_baseline(durations)

    trends = []
    for index, (cycle, duration) in enumerate(zip(cycles, durations, strict=True), 1):
        drift = calculate_drift_pct(duration, baseline)
        trends.append(
            CycleTrend(
                index=index,
                device_id=cycle.device_id,
                started_at=cycle.started_at,
                duration_s=duration,
                energy_kwh=cycle.energy_kwh,
                load_factor=cycle.load_factor,
                drift_pct=drift,
                is_drifting=is_drifting(drift),
                is_slow=duration > thresholds.cycle_duration_s,
            )
        )

    return CycleMetrics(
        baseline_s=baseline,
        mean_drift_pct=sum(t.drift_pct for t in trends) / len(trends),
        drifting_count=sum(1 for t in trends if t.is_drifting),
        slow_count=sum(1 for t in trends if t.is_slow),
        trends=trends,
        distribution=calculate_distribution(durations),
        drift_analysis=trends[-MetricConstants.DRIFT_ANALYSIS_POINTS :],
    )
