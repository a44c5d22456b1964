"""Energy efficiency, hourly consumption and composite cycle scores."""

from collections.abc import Sequence

from presswatch.analysis.common import group_by, mean_or_none, sum_present
from presswatch.analysis.types import (
    CompositeScore,
    EnergyEfficiencyPoint,
    EnergyMetrics,
    HourlyEnergy,
)
from presswatch.constants import (
    MEASURE_ENERGY_POWER_W,
    MEASURE_ENERGY_WORK_WH,
    MEASURE_VOLTAGE_LEVEL_PCT,
    MetricConstants,
)
from presswatch.models.records import CycleRecord


def total_wh(cycle: CycleRecord) -> float | None:
    return cycle.energy_kwh * 1000 if cycle.energy_kwh is not None else None


def efficiency_pct(cycle: CycleRecord) -> float:
    """Work energy as a share of total energy (0 when either is unknown)."""
    total = total_wh(cycle)
    work = cycle.field(MEASURE_ENERGY_WORK_WH)
    if total is None or work is None or total <= 0:
        return 0.0
    return work / total * 100


def composite_score(cycle: CycleRecord, index: int) -> CompositeScore:
    """
    Mean of three 0-100 scores: energy efficiency, closeness of the working
    voltage to 100 % and load factor.
    """
    energy_score = efficiency_pct(cycle)
    voltage_score = 100 - abs(100 - (cycle.field(MEASURE_VOLTAGE_LEVEL_PCT) or 0.0))
    load_score = (cycle.load_factor or 0.0) * 100

    return CompositeScore(
        index=index,
        energy_score=energy_score,
        voltage_score=voltage_score,
        load_score=load_score,
        overall_score=(energy_score + voltage_score + load_score) / 3,
    )


def calculate_energy_metrics(cycles: Sequence[CycleRecord]) -> EnergyMetrics:
    """
    Calculate energy series for a working set.

    Args:
        cycles: Filtered cycles in ascending start order

    Returns:
        EnergyMetrics with per-cycle efficiency, per-hour-of-day totals
        (sorted by hour) and composite scores for the last 20 cycles
    """
    if not cycles:
        return EnergyMetrics()

    efficiency = [
        EnergyEfficiencyPoint(
            index=index,
            device_id=c.device_id,
            started_at=c.started_at,
            total_wh=total_wh(c),
            work_wh=c.field(MEASURE_ENERGY_WORK_WH),
            efficiency_pct=efficiency_pct(c),
            power_w=c.field(MEASURE_ENERGY_POWER_W),
        )
        for index, c in enumerate(cycles, 1)
    ]

    by_hour = group_by(cycles, lambda c: c.started_at.hour)
    hourly = [
        HourlyEnergy(
            hour=hour,
            total_wh=sum_present(total_wh(c) for c in by_hour[hour]),
            cycles=len(by_hour[hour]),
            avg_power_w=mean_or_none(c.field(MEASURE_ENERGY_POWER_W) for c in by_hour[hour]),
        )
        for hour in sorted(by_hour)
    ]

    recent = cycles[-MetricConstants.COMPOSITE_SCORE_CYCLES :]
    return EnergyMetrics(
        total_energy_kwh=sum_present(c.energy_kwh for c in cycles),
        efficiency=efficiency,
        hourly=hourly,
        composite=[composite_score(c, index) for index, c in enumerate(recent, 1)],
    )
