"""Fleet-level KPIs."""

from collections.abc import Sequence

from presswatch.analysis.common import mean_or_none, percentage, sum_present
from presswatch.analysis.types import FleetKPIs
from presswatch.constants import (
    DI_CONTACTOR,
    DI_DOOR,
    DI_ESTOP_OVERLOAD,
    MEASURE_VOLTAGE_LEVEL_PCT,
    SECONDS_PER_HOUR,
)
from presswatch.models.records import CycleRecord, TimeSeriesPoint


def calculate_window_hours(cycles: Sequence[CycleRecord]) -> float:
    """
    Hours between the first and last cycle start.

    Floored at 1 hour so single-instant selections don't blow up rates.
    """
    if not cycles:
        return 0.0
    starts = [c.started_at for c in cycles]
    span = (max(starts) - min(starts)).total_seconds() / SECONDS_PER_HOUR
    return max(1.0, span)


def is_door_violation(sample: TimeSeriesPoint) -> bool:
    """Door open while the main contactor is energized."""
    return sample.flag(DI_DOOR) == 1 and sample.flag(DI_CONTACTOR) == 1


def calculate_fleet_kpis(
    cycles: Sequence[CycleRecord],
    samples: Sequence[TimeSeriesPoint] = (),
) -> FleetKPIs:
    """
    Calculate headline KPIs for a working set.

    utilization = min(100, runtime / (devices x window hours) x 100)

    Args:
        cycles: Filtered cycle records
        samples: Filtered realtime samples (long shape only)

    Returns:
        FleetKPIs, zeroed when there are no cycles
    """
    if not cycles:
        return FleetKPIs(
            e_stop_count=sum(1 for s in samples if s.flag(DI_ESTOP_OVERLOAD) == 1),
            door_violations=float(sum(1 for s in samples if is_door_violation(s))),
        )

    total_cycles = len(cycles)
    unique_devices = len({c.device_id for c in cycles})
    total_runtime = sum(c.runtime_hours for c in cycles)
    window_hours = calculate_window_hours(cycles)
    device_hours = unique_devices * window_hours

    error_count = sum(1 for c in cycles if c.has_error)
    total_energy = sum_present(c.energy_kwh for c in cycles)

    e_stops = sum(1 for c in cycles if c.e_stop)
    e_stops += sum(1 for s in samples if s.flag(DI_ESTOP_OVERLOAD) == 1)

    door_events = sum_present(c.door_open_events for c in cycles)
    door_events += sum_present(c.gate_open_events for c in cycles)
    door_events += sum(1 for s in samples if is_door_violation(s))

    return FleetKPIs(
        total_cycles=total_cycles,
        unique_devices=unique_devices,
        total_runtime_hours=total_runtime,
        window_hours=window_hours,
        utilization_rate=min(100.0, percentage(total_runtime, device_hours)),
        idle_hours=max(0.0, device_hours - total_runtime),
        error_count=error_count,
        error_rate=percentage(error_count, total_cycles),
        e_stop_count=e_stops,
        overload_count=sum(1 for c in cycles if c.overload_trip),
        door_violations=door_events,
        valve_issues=sum(1 for c in cycles if c.valve_issue),
        avg_cycles_per_device=total_cycles / unique_devices,
        avg_cycle_duration_s=sum(c.duration_s for c in cycles) / total_cycles,
        total_energy_kwh=total_energy,
        avg_energy_per_cycle_kwh=total_energy / total_cycles,
        total_bales=sum_present(c.bale_count for c in cycles),
        avg_inrush_multiple=mean_or_none(c.inrush_multiple for c in cycles),
        avg_load_factor=mean_or_none(c.load_factor for c in cycles),
        avg_voltage_level_pct=mean_or_none(
            c.field(MEASURE_VOLTAGE_LEVEL_PCT) for c in cycles
        ),
    )
