"""
Result models for the metrics engine.

Every model has usable defaults so that an empty working set produces a
zeroed result instead of an error.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

Severity = Literal["critical", "high", "medium"]
DeviceStatus = Literal["Critical", "Warning", "Healthy"]

# ============================================================================
# Fleet & Rankings
# ============================================================================


class FleetKPIs(BaseModel):
    """Headline numbers for the current selection."""

    total_cycles: int = Field(default=0, description="Cycles in view")
    unique_devices: int = Field(default=0, description="Distinct devices in view")
    total_runtime_hours: float = Field(default=0.0, description="Sum of cycle runtime (h)")
    window_hours: float = Field(
        default=0.0, description="Span between first and last cycle, at least 1 h"
    )
    utilization_rate: float = Field(
        default=0.0, ge=0, le=100, description="Runtime share of device-hours (%)"
    )
    idle_hours: float = Field(default=0.0, description="Device-hours without runtime")
    error_count: int = Field(default=0, description="Cycles with an error flag")
    error_rate: float = Field(default=0.0, description="Error cycles per cycle (%)")
    e_stop_count: int = Field(default=0, description="E-stop cycles and samples")
    overload_count: int = Field(default=0, description="Overload trip cycles")
    door_violations: float = Field(
        default=0.0, description="Door/gate openings, including doors open under power"
    )
    valve_issues: int = Field(default=0, description="Cycles with bad valve feedback")
    avg_cycles_per_device: float = Field(default=0.0)
    avg_cycle_duration_s: float = Field(default=0.0)
    total_energy_kwh: float = Field(default=0.0)
    avg_energy_per_cycle_kwh: float = Field(default=0.0)
    total_bales: float = Field(default=0.0)
    avg_inrush_multiple: float | None = Field(default=None)
    avg_load_factor: float | None = Field(
        default=None, description="Mean load factor, None when not reported"
    )
    avg_voltage_level_pct: float | None = Field(default=None)


class DeviceRanking(BaseModel):
    """Per-device totals used by the ranking tables."""

    device_id: str
    location: str | None = None
    runtime_hours: float
    cycles: int
    energy_kwh: float
    error_count: int
    efficiency_hours: float = Field(description="Runtime per error (h)")
    mean_anomaly_score: float | None = None
    status: DeviceStatus


class DeviceRankings(BaseModel):
    top_performers: list[DeviceRanking] = Field(default_factory=list)
    attention_needed: list[DeviceRanking] = Field(default_factory=list)


# ============================================================================
# Health
# ============================================================================


class DailyTrend(BaseModel):
    """Per-day health, anomaly and safety aggregates."""

    day: date
    cycles: int
    current_imbalance_pct: float | None = None
    pressure_overshoot_pct: float | None = None
    cycle_time_drift_pct: float = 0.0
    energy_per_cycle_kwh: float | None = None
    anomalies: int = 0
    avg_anomaly_score_pct: float | None = None
    e_stops: int = 0
    overloads: int = 0
    door_gate_events: float = 0.0
    valve_issues: int = 0


class HealthMetrics(BaseModel):
    avg_current_imbalance_pct: float | None = None
    avg_pressure_overshoot_pct: float | None = None
    cycle_time_drift_pct: float = Field(
        default=0.0, description="Mean drift from the baseline duration (%)"
    )
    avg_energy_per_cycle_kwh: float | None = None
    trends: list[DailyTrend] = Field(default_factory=list)


class HighAnomalyDevice(BaseModel):
    device_id: str
    anomaly_count: int
    avg_score_pct: float
    last_anomaly: datetime


class HealthAnomalies(BaseModel):
    """Anomalies flagged by the controller's health score."""

    anomaly_count: int = 0
    avg_anomaly_score_pct: float | None = None
    high_anomaly_devices: list[HighAnomalyDevice] = Field(default_factory=list)


# ============================================================================
# Cycles
# ============================================================================


class CycleTrend(BaseModel):
    """One cycle's duration relative to the baseline."""

    index: int = Field(description="1-based position in the working set")
    device_id: str
    started_at: datetime
    duration_s: float
    energy_kwh: float | None = None
    load_factor: float | None = None
    drift_pct: float
    is_drifting: bool = Field(description="|drift| above 10 %")
    is_slow: bool = Field(description="Duration above the cycle time threshold")


class DurationBucket(BaseModel):
    label: str
    lower_s: float
    upper_s: float
    count: int


class CycleMetrics(BaseModel):
    baseline_s: float = Field(default=0.0, description="Floor-middle median duration (s)")
    mean_drift_pct: float = 0.0
    drifting_count: int = 0
    slow_count: int = 0
    trends: list[CycleTrend] = Field(default_factory=list)
    distribution: list[DurationBucket] = Field(default_factory=list)
    drift_analysis: list[CycleTrend] = Field(
        default_factory=list, description="Most recent cycles"
    )


# ============================================================================
# Electrical
# ============================================================================


class InrushPoint(BaseModel):
    index: int
    started_at: datetime
    peak_a: float | None = None
    mean_a: float | None = None
    unbalance_pct: float | None = None
    duration_ms: float | None = None
    multiple: float | None = None
    is_high: bool = False


class VoltagePoint(BaseModel):
    index: int
    started_at: datetime
    level_pct: float | None = None
    unbalance_pct: float | None = None
    sag_depth_pct: float | None = None
    sag_duration_ms: float | None = None
    sag_level_v: float | None = None
    has_sag: bool = False


class CurrentPoint(BaseModel):
    index: int
    started_at: datetime
    load_factor: float | None = None
    mean_a: float | None = None
    unbalance_pct: float | None = None
    ripple_pct: float | None = None
    has_issue: bool = False


class StartDelayPoint(BaseModel):
    index: int
    started_at: datetime
    max_ms: float | None = None
    mean_ms: float | None = None


class ElectricalMetrics(BaseModel):
    inrush: list[InrushPoint] = Field(default_factory=list)
    voltage: list[VoltagePoint] = Field(default_factory=list)
    current: list[CurrentPoint] = Field(default_factory=list)
    start_delay: list[StartDelayPoint] = Field(default_factory=list)


class VoltageReading(BaseModel):
    """Phase voltages from one realtime sample."""

    device_id: str
    timestamp: datetime
    u1: float | None = None
    u2: float | None = None
    u3: float | None = None
    temperature: float | None = None


class SeverityCounts(BaseModel):
    critical: int = 0
    high: int = 0
    medium: int = 0


class VoltageSag(BaseModel):
    index: int = Field(description="1-based position among sags")
    device_id: str
    started_at: datetime
    depth_pct: float
    duration_ms: float | None = None
    min_level_v: float | None = None
    severity: Severity


class VoltageSagAnalysis(BaseModel):
    total: int = 0
    sags: list[VoltageSag] = Field(default_factory=list, description="Most recent sags")
    severity: SeverityCounts = Field(default_factory=SeverityCounts)


# ============================================================================
# Anomalies & Safety
# ============================================================================


class CycleAnomaly(BaseModel):
    """Threshold checks for one cycle; score is the number that failed."""

    index: int
    device_id: str
    started_at: datetime
    score: int = Field(ge=0, le=5)
    is_anomaly: bool
    inrush_high: bool
    voltage_issue: bool
    current_issue: bool
    ripple_high: bool
    cycle_error: bool


class AnomalyMetrics(BaseModel):
    count: int = 0
    anomalies: list[CycleAnomaly] = Field(default_factory=list)
    recent: list[CycleAnomaly] = Field(default_factory=list)
    severity: SeverityCounts = Field(default_factory=SeverityCounts)


class SafetyEvent(BaseModel):
    type: str
    device_id: str
    timestamp: datetime
    severity: Severity


class SafetyTimelinePoint(BaseModel):
    device_id: str
    timestamp: datetime
    e_stop: int = 0
    door_open: int = 0
    full_error: int = 0


class SafetyMetrics(BaseModel):
    total_events: int = 0
    e_stop_count: int = 0
    overload_count: int = 0
    door_violations: float = 0.0
    valve_issues: int = 0
    full_error_count: int = 0
    events: list[SafetyEvent] = Field(default_factory=list, description="Most recent events")
    timeline: list[SafetyTimelinePoint] = Field(default_factory=list)


class DigitalInputState(BaseModel):
    device_id: str
    timestamp: datetime
    states: dict[str, int] = Field(description="Input label to 0/1 state")


# ============================================================================
# Energy
# ============================================================================


class EnergyEfficiencyPoint(BaseModel):
    index: int
    device_id: str
    started_at: datetime
    total_wh: float | None = None
    work_wh: float | None = None
    efficiency_pct: float = 0.0
    power_w: float | None = None


class HourlyEnergy(BaseModel):
    hour: int = Field(ge=0, le=23)
    total_wh: float
    cycles: int
    avg_power_w: float | None = None


class CompositeScore(BaseModel):
    index: int
    energy_score: float
    voltage_score: float
    load_score: float
    overall_score: float


class EnergyMetrics(BaseModel):
    total_energy_kwh: float = 0.0
    efficiency: list[EnergyEfficiencyPoint] = Field(default_factory=list)
    hourly: list[HourlyEnergy] = Field(default_factory=list)
    composite: list[CompositeScore] = Field(default_factory=list)


# ============================================================================
# Heatmaps & Utilization
# ============================================================================


class HeatmapCell(BaseModel):
    day: int = Field(ge=0, le=6, description="Day of week, Sunday = 0")
    hour: int = Field(ge=0, le=23)
    day_name: str
    value: float
    intensity: float = Field(ge=0, le=1, description="value / max value")


class Heatmap(BaseModel):
    days: list[str] = Field(default_factory=list)
    hours: list[int] = Field(default_factory=list)
    cells: list[HeatmapCell] = Field(default_factory=list)
    max_value: float = 0.0
    total: float = Field(default=0.0, description="Sum of all cell values")


class IdleActiveAnalysis(BaseModel):
    active_samples: int = 0
    total_samples: int = 0
    active_hours: float = 0.0
    idle_hours: float = 0.0
    total_hours: float = 0.0
    active_pct: float = 0.0


class DeviceUtilization(BaseModel):
    device_id: str
    active_hours: float
    idle_hours: float
    utilization_pct: float = Field(ge=0, le=100)
    window_hours: float


class DailyPerformance(BaseModel):
    day: date
    cycles: int
    runtime_hours: float
    energy_kwh: float
    bales: float
    avg_utilization_pct: float


# ============================================================================
# Lifetime
# ============================================================================


class LifetimeMetrics(BaseModel):
    """Remaining-useful-life projection for a set of cycles."""

    lifetime_cycles: int = 0
    remaining_cycles: int = 0
    rul_pct: float = 0.0
    rul_days: float = 0.0
    avg_cycles_per_day: float = 0.0
    span_days: float = 0.0
    failures: int = 0
    mtbf_hours: float = 0.0
    mttr_minutes: float = 0.0
    below_mtbf_threshold: bool = False


class DeviceEol(BaseModel):
    device_id: str
    lifetime_cycles: int
    rul_pct: float
    rul_days: float
    mtbf_hours: float
    mttr_minutes: float
    mean_anomaly_score: float | None = None
    is_near_eol: bool


class FleetEol(BaseModel):
    total_devices: int = 0
    avg_mtbf_hours: float = 0.0
    avg_mttr_minutes: float = 0.0
    avg_rul_pct: float = 0.0
    devices: list[DeviceEol] = Field(default_factory=list, description="Lowest RUL first")
    near_eol: list[DeviceEol] = Field(default_factory=list)


class ChamberFullness(BaseModel):
    """Heuristic fill-level split inferred from recent cycle density."""

    low_pct: float
    medium_pct: float
    high_pct: float
    hours_considered: int = 0
    is_default: bool = Field(
        default=False, description="True when no recent activity was available"
    )


# ============================================================================
# Bundle
# ============================================================================


class DashboardMetrics(BaseModel):
    """Every metric for one filtered working set."""

    fleet: FleetKPIs
    rankings: DeviceRankings
    health: HealthMetrics
    health_anomalies: HealthAnomalies
    cycles: CycleMetrics
    electrical: ElectricalMetrics
    voltage_monitoring: list[VoltageReading]
    voltage_sags: VoltageSagAnalysis
    anomalies: AnomalyMetrics
    safety: SafetyMetrics
    di_timeline: list[DigitalInputState]
    energy: EnergyMetrics
    runtime_heatmap: Heatmap
    activity_heatmap: Heatmap
    idle_active: IdleActiveAnalysis
    device_utilization: list[DeviceUtilization]
    performance_trends: list[DailyPerformance]
    lifetime: LifetimeMetrics
    fleet_eol: FleetEol
    chamber: ChamberFullness
