"""Daily health trends and controller-flagged anomalies."""

from collections.abc import Sequence

from presswatch.analysis.common import group_by, group_by_day, mean_or_none, sum_present
from presswatch.analysis.cycles import calculate_baseline, calculate_drift_pct
from presswatch.analysis.types import (
    DailyTrend,
    HealthAnomalies,
    HealthMetrics,
    HighAnomalyDevice,
)
from presswatch.constants import MetricConstants
from presswatch.models.records import CycleRecord


def _score_pct(score: float | None) -> float | None:
    return score * 100 if score is not None else None


def calculate_health_metrics(cycles: Sequence[CycleRecord]) -> HealthMetrics:
    """
    Average machine health indicators and their per-day trend.

    Drift is measured against the baseline of the whole working set, so the
    daily values are comparable with each other.

    Args:
        cycles: Filtered cycle records

    Returns:
        HealthMetrics with at most the last 7 days of trend data
    """
    if not cycles:
        return HealthMetrics()

    baseline = calculate_baseline([c.duration_s for c in cycles])

    def mean_drift(records: Sequence[CycleRecord]) -> float:
        drifts = [calculate_drift_pct(r.duration_s, baseline) for r in records]
        return sum(drifts) / len(drifts)

    trends = [
        DailyTrend(
            day=day,
            cycles=len(records),
            current_imbalance_pct=mean_or_none(r.current_imbalance_pct for r in records),
            pressure_overshoot_pct=mean_or_none(r.pressure_overshoot_pct for r in records),
            cycle_time_drift_pct=mean_drift(records),
            energy_per_cycle_kwh=mean_or_none(r.energy_kwh for r in records),
            anomalies=sum(1 for r in records if r.anomaly),
            avg_anomaly_score_pct=_score_pct(
                mean_or_none(r.health_anomaly_score for r in records)
            ),
            e_stops=sum(1 for r in records if r.e_stop),
            overloads=sum(1 for r in records if r.overload_trip),
            door_gate_events=sum_present(r.door_open_events for r in records)
            + sum_present(r.gate_open_events for r in records),
            valve_issues=sum(1 for r in records if r.valve_issue),
        )
        for day, records in group_by_day(cycles).items()
    ]

    return HealthMetrics(
        avg_current_imbalance_pct=mean_or_none(c.current_imbalance_pct for c in cycles),
        avg_pressure_overshoot_pct=mean_or_none(c.pressure_overshoot_pct for c in cycles),
        cycle_time_drift_pct=mean_drift(cycles),
        avg_energy_per_cycle_kwh=mean_or_none(c.energy_kwh for c in cycles),
        trends=trends[-MetricConstants.TREND_DAYS :],
    )


def calculate_health_anomalies(
    cycles: Sequence[CycleRecord], limit: int = MetricConstants.RANKING_LIMIT
) -> HealthAnomalies:
    """
    Summarize cycles whose health anomaly score exceeds 0.5.

    Devices with more than three anomalous cycles are listed, most recently
    affected first.
    """
    if not cycles:
        return HealthAnomalies()

    anomalous = [c for c in cycles if c.anomaly]
    devices = [
        HighAnomalyDevice(
            device_id=device_id,
            anomaly_count=len(records),
            avg_score_pct=_score_pct(
                mean_or_none(r.health_anomaly_score for r in records)
            )
            or 0.0,
            last_anomaly=max(r.started_at for r in records),
        )
        for device_id, records in group_by(anomalous, lambda c: c.device_id).items()
        if len(records) > MetricConstants.HIGH_ANOMALY_DEVICE_MIN_COUNT
    ]
    devices.sort(key=lambda d: d.last_anomaly, reverse=True)

    return HealthAnomalies(
        anomaly_count=len(anomalous),
        avg_anomaly_score_pct=_score_pct(
            mean_or_none(c.health_anomaly_score for c in cycles)
        ),
        high_anomaly_devices=devices[:limit],
    )
