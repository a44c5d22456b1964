"""Safety events and digital input timelines."""

from collections.abc import Sequence

from presswatch.analysis.common import sum_present
from presswatch.analysis.fleet import is_door_violation
from presswatch.analysis.types import (
    DigitalInputState,
    SafetyEvent,
    SafetyMetrics,
    SafetyTimelinePoint,
)
from presswatch.constants import (
    DI_DOOR,
    DI_ESTOP_OVERLOAD,
    DI_FULL_ERROR,
    DI_TIMELINE_LABELS,
    MetricConstants,
)
from presswatch.models.records import CycleRecord, TimeSeriesPoint


def cycle_events(cycle: CycleRecord) -> list[SafetyEvent]:
    """Safety events recorded on a wide-shape cycle."""
    checks = (
        (cycle.e_stop, "E-Stop", "critical"),
        (cycle.overload_trip, "Overload Trip", "critical"),
        (cycle.valve_issue, "Valve Feedback Fault", "high"),
    )
    return [
        SafetyEvent(
            type=kind,
            device_id=cycle.device_id,
            timestamp=cycle.started_at,
            severity=severity,
        )
        for raised, kind, severity in checks
        if raised
    ]


def sample_events(sample: TimeSeriesPoint) -> list[SafetyEvent]:
    """Safety events visible in one realtime digital input sample."""
    checks = (
        (sample.flag(DI_ESTOP_OVERLOAD) == 1, "E-Stop/Overload", "critical"),
        (is_door_violation(sample), "Door Open Violation", "high"),
        (sample.flag(DI_FULL_ERROR) == 1, "Full Error", "critical"),
    )
    return [
        SafetyEvent(
            type=kind,
            device_id=sample.device_id,
            timestamp=sample.timestamp,
            severity=severity,
        )
        for raised, kind, severity in checks
        if raised
    ]


def calculate_safety_metrics(
    cycles: Sequence[CycleRecord], samples: Sequence[TimeSeriesPoint] = ()
) -> SafetyMetrics:
    """
    Collect safety events from cycle flags and digital input samples.

    Args:
        cycles: Filtered cycle records
        samples: Filtered realtime samples (long shape only)

    Returns:
        SafetyMetrics with counts over the whole selection, the 20 most
        recent events and the last 200 samples as a timeline
    """
    events = [e for c in cycles for e in cycle_events(c)]
    events += [e for s in samples for e in sample_events(s)]
    events.sort(key=lambda e: e.timestamp)

    door_events = sum_present(c.door_open_events for c in cycles)
    door_events += sum_present(c.gate_open_events for c in cycles)
    door_events += sum(1 for s in samples if is_door_violation(s))

    timeline = [
        SafetyTimelinePoint(
            device_id=s.device_id,
            timestamp=s.timestamp,
            e_stop=s.flag(DI_ESTOP_OVERLOAD),
            door_open=s.flag(DI_DOOR),
            full_error=s.flag(DI_FULL_ERROR),
        )
        for s in samples[-MetricConstants.SAFETY_TIMELINE_POINTS :]
    ]

    return SafetyMetrics(
        total_events=len(events),
        e_stop_count=sum(1 for c in cycles if c.e_stop)
        + sum(1 for s in samples if s.flag(DI_ESTOP_OVERLOAD) == 1),
        overload_count=sum(1 for c in cycles if c.overload_trip),
        door_violations=door_events,
        valve_issues=sum(1 for c in cycles if c.valve_issue),
        full_error_count=sum(1 for s in samples if s.flag(DI_FULL_ERROR) == 1),
        events=events[-MetricConstants.RECENT_SAFETY_EVENTS :],
        timeline=timeline,
    )


def calculate_di_timeline(samples: Sequence[TimeSeriesPoint]) -> list[DigitalInputState]:
    """States of all eight digital inputs for the last 50 samples."""
    return [
        DigitalInputState(
            device_id=s.device_id,
            timestamp=s.timestamp,
            states={label: s.flag(name) for name, label in DI_TIMELINE_LABELS.items()},
        )
        for s in samples[-MetricConstants.DI_TIMELINE_POINTS :]
    ]
