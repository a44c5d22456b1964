"""Threshold-based cycle anomaly scoring."""

from collections.abc import Sequence

from presswatch.analysis.common import exceeds
from presswatch.analysis.types import AnomalyMetrics, CycleAnomaly, SeverityCounts
from presswatch.constants import MetricConstants
from presswatch.models.records import CycleRecord
from presswatch.models.thresholds import AlertThresholds


def score_cycle(
    cycle: CycleRecord, index: int, thresholds: AlertThresholds
) -> CycleAnomaly:
    """
    Count how many of five checks a cycle fails.

    Checks: inrush multiple, voltage sag depth, current unbalance and ripple
    above their thresholds, plus the cycle's own error flag. Two or more
    failed checks make the cycle anomalous.
    """
    checks = {
        "inrush_high": exceeds(cycle.inrush_multiple, thresholds.inrush_multiple),
        "voltage_issue": exceeds(cycle.voltage_sag_pct, thresholds.voltage_sag_pct),
        "current_issue": exceeds(
            cycle.current_unbalance_pct, thresholds.current_unbalance_pct
        ),
        "ripple_high": exceeds(cycle.ripple_pct, thresholds.ripple_pct),
        "cycle_error": cycle.has_error,
    }
    score = sum(checks.values())

    return CycleAnomaly(
        index=index,
        device_id=cycle.device_id,
        started_at=cycle.started_at,
        score=score,
        is_anomaly=score >= MetricConstants.ANOMALY_MIN_SCORE,
        **checks,
    )


def calculate_anomalies(
    cycles: Sequence[CycleRecord], thresholds: AlertThresholds | None = None
) -> AnomalyMetrics:
    """
    Score every cycle and bucket anomalies by severity.

    Severity: score >= 4 critical, 3 high, 2 medium.

    Args:
        cycles: Filtered cycles in ascending start order
        thresholds: Alert limits (defaults used if None)

    Returns:
        AnomalyMetrics with all scores, anomaly count and the 10 most recent
    """
    if not cycles:
        return AnomalyMetrics()

    thresholds = thresholds or AlertThresholds()
    scored = [score_cycle(c, index, thresholds) for index, c in enumerate(cycles, 1)]
    flagged = [a for a in scored if a.is_anomaly]

    return AnomalyMetrics(
        count=len(flagged),
        anomalies=scored,
        recent=flagged[-MetricConstants.RECENT_ANOMALIES :],
        severity=SeverityCounts(
            critical=sum(1 for a in scored if a.score >= MetricConstants.ANOMALY_CRITICAL_SCORE),
            high=sum(1 for a in scored if a.score == MetricConstants.ANOMALY_HIGH_SCORE),
            medium=sum(1 for a in scored if a.score == MetricConstants.ANOMALY_MIN_SCORE),
        ),
    )
