"""
Telemetry report generation and export.

Assembles a subset of computed metrics plus maintenance recommendations
into a JSON document.
"""

import json
import logging

from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from presswatch.analysis.types import (
    AnomalyMetrics,
    CycleAnomaly,
    FleetKPIs,
    LifetimeMetrics,
    SafetyEvent,
    SafetyMetrics,
    SeverityCounts,
    VoltageSagAnalysis,
)
from presswatch.constants import REPORT_FILENAME_PREFIX
from presswatch.models.thresholds import AlertThresholds

logger = logging.getLogger(__name__)

ANOMALY_COUNT_LIMIT = 5
E_STOP_COUNT_LIMIT = 3
LOAD_FACTOR_FLOOR = 0.5
RUL_PCT_FLOOR = 20.0


class AnomalySection(BaseModel):
    """Anomaly summary included in a report."""

    total: int = Field(description="Anomalous cycles in the selection")
    severity: SeverityCounts = Field(description="Cycles per severity bucket")
    recent: list[CycleAnomaly] = Field(description="Most recent anomalous cycles")


class TelemetryReport(BaseModel):
    """Complete telemetry report."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime = Field(description="Report generation time (UTC)")
    device: str = Field(description="Device id or 'all'")
    summary: FleetKPIs = Field(description="Fleet KPIs for the selection")
    anomalies: AnomalySection
    safety_events: list[SafetyEvent] = Field(
        alias="safetyEvents", description="Most recent safety events"
    )
    lifetime: LifetimeMetrics
    recommendations: list[str] = Field(default_factory=list)


def build_recommendations(
    fleet: FleetKPIs,
    anomalies: AnomalyMetrics,
    sags: VoltageSagAnalysis,
    lifetime: LifetimeMetrics,
    thresholds: AlertThresholds,
) -> list[str]:
    """
    Evaluate the recommendation rules.

    Each rule is checked independently; every rule that fires adds one
    recommendation. Lifetime rules need at least one cycle of history.
    """
    recommendations = []

    if anomalies.count > ANOMALY_COUNT_LIMIT:
        recommendations.append(
            "High anomaly count detected - recommend maintenance inspection"
        )
    if fleet.e_stop_count > E_STOP_COUNT_LIMIT:
        recommendations.append("Multiple E-Stop events - investigate safety concerns")
    if fleet.avg_load_factor is not None and fleet.avg_load_factor < LOAD_FACTOR_FLOOR:
        recommendations.append(
            "Low load factor - check for underloading or inefficient operation"
        )
    if sags.severity.critical > 0:
        recommendations.append(
            "Critical voltage sags detected - check power supply quality"
        )
    if lifetime.lifetime_cycles > 0 and lifetime.rul_pct < RUL_PCT_FLOOR:
        recommendations.append(
            "Machine approaching end-of-life - plan replacement within "
            f"{lifetime.rul_days:.0f} days"
        )
    if lifetime.lifetime_cycles > 0 and lifetime.mtbf_hours < thresholds.mtbf_threshold_hours:
        recommendations.append(
            "Low MTBF indicates poor reliability - investigate recurring failure modes"
        )

    return recommendations


def generate_report(
    device: str,
    fleet: FleetKPIs,
    anomalies: AnomalyMetrics,
    safety: SafetyMetrics,
    sags: VoltageSagAnalysis,
    lifetime: LifetimeMetrics,
    thresholds: AlertThresholds | None = None,
    now: datetime | None = None,
) -> TelemetryReport:
    """
    Assemble a report from computed metrics.

    Args:
        device: Selected device id or 'all'
        fleet: Fleet KPIs
        anomalies: Threshold anomaly metrics
        safety: Safety metrics
        sags: Voltage sag analysis
        lifetime: Lifetime metrics
        thresholds: Alert limits (defaults used if None)
        now: Report time (defaults to current UTC time)

    Returns:
        TelemetryReport
    """
    thresholds = thresholds or AlertThresholds()

    return TelemetryReport(
        timestamp=now or datetime.now(UTC),
        device=device,
        summary=fleet,
        anomalies=AnomalySection(
            total=anomalies.count,
            severity=anomalies.severity,
            recent=anomalies.recent,
        ),
        safety_events=safety.events,
        lifetime=lifetime,
        recommendations=build_recommendations(fleet, anomalies, sags, lifetime, thresholds),
    )


def report_filename(now: datetime | None = None) -> str:
    """File name for a report, e.g. ``telemetry-report-2024-05-01.json``."""
    moment = now or datetime.now(UTC)
    return f"{REPORT_FILENAME_PREFIX}-{moment.date().isoformat()}.json"


def export_report_json(report: TelemetryReport, output_dir: Path) -> Path:
    """
    Export a report as JSON.

    Args:
        report: Report to export
        output_dir: Directory to write into

    Returns:
        Path of the written file
    """
    output_path = output_dir / report_filename(report.timestamp)
    with open(output_path, "w") as f:
        json.dump(report.model_dump(mode="json", by_alias=True), f, indent=2)

    logger.info(f"Wrote report to {output_path}")
    return output_path
