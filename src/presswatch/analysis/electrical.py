"""Electrical series, voltage monitoring and voltage sag analysis."""

from collections.abc import Sequence

from presswatch.analysis.common import exceeds
from presswatch.analysis.types import (
    CurrentPoint,
    ElectricalMetrics,
    InrushPoint,
    SeverityCounts,
    StartDelayPoint,
    VoltagePoint,
    VoltageReading,
    VoltageSag,
    VoltageSagAnalysis,
)
from presswatch.constants import (
    MEASURE_CURRENT_MEAN_A,
    MEASURE_INRUSH_DURATION_MS,
    MEASURE_INRUSH_MAX_PEAK_A,
    MEASURE_INRUSH_MEAN_PEAK_A,
    MEASURE_INRUSH_UNBALANCE_PCT,
    MEASURE_SAG_DURATION_MS,
    MEASURE_SAG_LEVEL_MIN_V,
    MEASURE_START_DELAY_MAX_MS,
    MEASURE_START_DELAY_MEAN_MS,
    MEASURE_TEMPERATURE_AMBIENT,
    MEASURE_VOLTAGE_LEVEL_PCT,
    MEASURE_VOLTAGE_U1,
    MEASURE_VOLTAGE_U2,
    MEASURE_VOLTAGE_U3,
    MEASURE_VOLTAGE_UNBALANCE_PCT,
    MetricConstants,
)
from presswatch.models.records import CycleRecord, TimeSeriesPoint
from presswatch.models.thresholds import AlertThresholds


def calculate_electrical_metrics(
    cycles: Sequence[CycleRecord], thresholds: AlertThresholds | None = None
) -> ElectricalMetrics:
    """
    Per-cycle inrush, voltage, current and start delay series.

    Values a cycle does not report are left as None.

    Args:
        cycles: Filtered cycles in ascending start order
        thresholds: Alert limits (defaults used if None)

    Returns:
        ElectricalMetrics with one entry per cycle in each series
    """
    thresholds = thresholds or AlertThresholds()
    metrics = ElectricalMetrics()

    for index, c in enumerate(cycles, 1):
        metrics.inrush.append(
            InrushPoint(
                index=index,
                started_at=c.started_at,
                peak_a=c.field(MEASURE_INRUSH_MAX_PEAK_A),
                mean_a=c.field(MEASURE_INRUSH_MEAN_PEAK_A),
                unbalance_pct=c.field(MEASURE_INRUSH_UNBALANCE_PCT),
                duration_ms=c.field(MEASURE_INRUSH_DURATION_MS),
                multiple=c.inrush_multiple,
                is_high=exceeds(c.inrush_multiple, thresholds.inrush_multiple),
            )
        )
        metrics.voltage.append(
            VoltagePoint(
                index=index,
                started_at=c.started_at,
                level_pct=c.field(MEASURE_VOLTAGE_LEVEL_PCT),
                unbalance_pct=c.field(MEASURE_VOLTAGE_UNBALANCE_PCT),
                sag_depth_pct=c.voltage_sag_pct,
                sag_duration_ms=c.field(MEASURE_SAG_DURATION_MS),
                sag_level_v=c.field(MEASURE_SAG_LEVEL_MIN_V),
                has_sag=exceeds(c.voltage_sag_pct, thresholds.voltage_sag_pct),
            )
        )
        metrics.current.append(
            CurrentPoint(
                index=index,
                started_at=c.started_at,
                load_factor=c.load_factor,
                mean_a=c.field(MEASURE_CURRENT_MEAN_A),
                unbalance_pct=c.current_unbalance_pct,
                ripple_pct=c.ripple_pct,
                has_issue=exceeds(
                    c.current_unbalance_pct, thresholds.current_unbalance_pct
                ),
            )
        )
        metrics.start_delay.append(
            StartDelayPoint(
                index=index,
                started_at=c.started_at,
                max_ms=c.field(MEASURE_START_DELAY_MAX_MS),
                mean_ms=c.field(MEASURE_START_DELAY_MEAN_MS),
            )
        )

    return metrics


def calculate_voltage_monitoring(
    samples: Sequence[TimeSeriesPoint],
) -> list[VoltageReading]:
    """Phase voltages from the most recent realtime samples that carry them."""
    recent = samples[-MetricConstants.VOLTAGE_MONITOR_POINTS :]
    return [
        VoltageReading(
            device_id=s.device_id,
            timestamp=s.timestamp,
            u1=s.value(MEASURE_VOLTAGE_U1),
            u2=s.value(MEASURE_VOLTAGE_U2),
            u3=s.value(MEASURE_VOLTAGE_U3),
            temperature=s.value(MEASURE_TEMPERATURE_AMBIENT),
        )
        for s in recent
        if MEASURE_VOLTAGE_U1 in s.measures
    ]


def sag_severity(depth_pct: float) -> str:
    if depth_pct > MetricConstants.SAG_CRITICAL_DEPTH_PCT:
        return "critical"
    if depth_pct > MetricConstants.SAG_HIGH_DEPTH_PCT:
        return "high"
    return "medium"


def calculate_voltage_sag_analysis(cycles: Sequence[CycleRecord]) -> VoltageSagAnalysis:
    """
    Classify every cycle with a voltage sag.

    Severity: depth > 60 % critical, > 40 % high, otherwise medium. Counts
    cover all sags; the listed sags are the most recent ones.
    """
    sags = [
        VoltageSag(
            index=index,
            device_id=c.device_id,
            started_at=c.started_at,
            depth_pct=c.voltage_sag_pct,
            duration_ms=c.field(MEASURE_SAG_DURATION_MS),
            min_level_v=c.field(MEASURE_SAG_LEVEL_MIN_V),
            severity=sag_severity(c.voltage_sag_pct),
        )
        for index, c in enumerate(
            (c for c in cycles if c.voltage_sag_pct is not None and c.voltage_sag_pct > 0),
            1,
        )
    ]

    return VoltageSagAnalysis(
        total=len(sags),
        sags=sags[-MetricConstants.RECENT_SAGS :],
        severity=SeverityCounts(
            critical=sum(1 for s in sags if s.severity == "critical"),
            high=sum(1 for s in sags if s.severity == "high"),
            medium=sum(1 for s in sags if s.severity == "medium"),
        ),
    )
