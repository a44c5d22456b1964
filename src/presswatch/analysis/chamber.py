"""Chamber fullness estimate."""

from collections.abc import Sequence

from presswatch.analysis.common import group_by
from presswatch.analysis.types import ChamberFullness
from presswatch.constants import ChamberConstants
from presswatch.models.records import CycleRecord


def classify_hour(cycle_count: int) -> str:
    if cycle_count <= ChamberConstants.LOW_MAX_CYCLES_PER_HOUR:
        return "low"
    if cycle_count <= ChamberConstants.MEDIUM_MAX_CYCLES_PER_HOUR:
        return "medium"
    return "high"


def estimate_chamber_fullness(cycles: Sequence[CycleRecord]) -> ChamberFullness:
    """
    Estimate how full the chamber has been, as a low/medium/high split.

    This is a heuristic, not a measurement: each of the most recent 24
    hours with any cycles is bucketed by how many cycles started in it, and
    the split is each bucket's share of those hours. With no recent activity
    the default 30/40/30 split is returned.

    Args:
        cycles: Filtered cycle records

    Returns:
        ChamberFullness percentages summing to 100
    """
    per_hour = group_by(
        cycles, lambda c: c.started_at.replace(minute=0, second=0, microsecond=0)
    )
    recent_hours = sorted(per_hour)[-ChamberConstants.RECENT_HOURS :]

    buckets = {"low": 0, "medium": 0, "high": 0}
    for hour in recent_hours:
        buckets[classify_hour(len(per_hour[hour]))] += 1

    total = sum(buckets.values())
    if total == 0:
        low, medium, high = ChamberConstants.DEFAULT_SPLIT
        return ChamberFullness(low_pct=low, medium_pct=medium, high_pct=high, is_default=True)

    return ChamberFullness(
        low_pct=buckets["low"] / total * 100,
        medium_pct=buckets["medium"] / total * 100,
        high_pct=buckets["high"] / total * 100,
        hours_considered=total,
    )
