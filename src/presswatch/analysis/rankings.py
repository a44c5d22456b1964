"""Per-device rankings."""

from collections.abc import Sequence

from presswatch.analysis.common import group_by, mean_or_none, sum_present
from presswatch.analysis.types import DeviceRanking, DeviceRankings, DeviceStatus
from presswatch.constants import MetricConstants
from presswatch.models.records import CycleRecord


def device_status(mean_anomaly_score: float | None, error_count: int) -> DeviceStatus:
    if (
        mean_anomaly_score is not None
        and mean_anomaly_score > MetricConstants.HEALTH_ANOMALY_THRESHOLD
    ):
        return "Critical"
    if error_count > 0:
        return "Warning"
    return "Healthy"


def summarize_devices(cycles: Sequence[CycleRecord]) -> list[DeviceRanking]:
    """Per-device totals in first-seen device order."""
    rankings = []
    for device_id, records in group_by(cycles, lambda c: c.device_id).items():
        runtime = sum(r.runtime_hours for r in records)
        errors = sum(1 for r in records if r.has_error)
        score = mean_or_none(r.health_anomaly_score for r in records)
        rankings.append(
            DeviceRanking(
                device_id=device_id,
                location=records[0].location,
                runtime_hours=runtime,
                cycles=len(records),
                energy_kwh=sum_present(r.energy_kwh for r in records),
                error_count=errors,
                efficiency_hours=runtime / errors if errors else runtime,
                mean_anomaly_score=score,
                status=device_status(score, errors),
            )
        )
    return rankings


def calculate_device_rankings(
    cycles: Sequence[CycleRecord], limit: int = MetricConstants.RANKING_LIMIT
) -> DeviceRankings:
    """
    Rank devices by runtime.

    Both lists use a stable sort on runtime only, so devices with equal
    runtime keep the order in which they first appear in ``cycles``.

    Args:
        cycles: Filtered cycle records
        limit: Entries per list

    Returns:
        Top performers (most runtime first) and devices needing attention
        (least runtime first)
    """
    devices = summarize_devices(cycles)
    return DeviceRankings(
        top_performers=sorted(devices, key=lambda d: d.runtime_hours, reverse=True)[:limit],
        attention_needed=sorted(devices, key=lambda d: d.runtime_hours)[:limit],
    )
