"""
Constants and column mappings for press telemetry analysis.

Column names follow the two CSV exports produced by the press controllers:
the wide per-cycle export and the long ``measure_name``/``measure_value``
export.
"""

from enum import Enum
from pathlib import Path

# ============================================================================
# Input Shapes
# ============================================================================


class DataShape(str, Enum):
    """Canonical CSV layouts understood by the ingestor."""

    WIDE = "wide"  # One row per completed cycle
    LONG = "long"  # One row per (time, device, measure)


CSV_DELIMITERS = (",", "\t", "|", ";")

# Wide shape columns
COL_DEVICE_ID = "device_id"
COL_LOCATION = "location"
COL_CYCLE_STARTED_AT = "cycle_started_at"
COL_CYCLE_DURATION_MS = "cycle_duration_ms"
COL_E_STOP = "di_e_stop_triggered"
COL_OVERLOAD = "di_overload_trip"
COL_VALVE_EXTEND_OK = "di_valve_extend_feedback_ok"
COL_VALVE_RETRACT_OK = "di_valve_retract_feedback_ok"
COL_DOOR_OPEN_EVENTS = "di_door_open_events"
COL_GATE_OPEN_EVENTS = "di_gate_open_events"
COL_HEALTH_ANOMALY_SCORE = "health_anomaly_score"
COL_ENERGY_KWH = "energy_active_kwh"
COL_BALE_COUNT = "productivity_bale_count_increment"
COL_PHASE_CURRENTS = (
    "electrical_peak_current_rms_phase_a_a",
    "electrical_peak_current_rms_phase_b_a",
    "electrical_peak_current_rms_phase_c_a",
)
COL_MAX_PRESSURE = "hydraulic_max_pressure_psi"
COL_AVG_PRESSURE = "hydraulic_avg_pressure_psi"
COL_INRUSH_MULTIPLE = "electrical_inrush_multiple"
COL_VOLTAGE_SAG_PCT = "electrical_voltage_sag_pct"
COL_CURRENT_RIPPLE_PCT = "electrical_current_ripple_pct"
COL_LOAD_FACTOR = "electrical_load_factor"

WIDE_REQUIRED_COLUMNS = (COL_DEVICE_ID, COL_CYCLE_STARTED_AT, COL_CYCLE_DURATION_MS)

# Long shape columns
COL_TIME = "Time"
COL_LONG_DEVICE_ID = "deviceId"
COL_MEASURE_NAME = "measure_name"
COL_MEASURE_VALUE = "measure_value"

LONG_REQUIRED_COLUMNS = (COL_TIME, COL_LONG_DEVICE_ID, COL_MEASURE_NAME, COL_MEASURE_VALUE)

# ============================================================================
# Long Shape Measure Names
# ============================================================================

MEASURE_CYCLE_DURATION_S = "cycle.durationS"
MEASURE_CYCLE_OVERALL = "cycle.overall"  # 1 = cycle ended in error

MEASURE_ENERGY_TOTAL_WH = "energy.totalWh"
MEASURE_ENERGY_WORK_WH = "energy.workWh"
MEASURE_ENERGY_POWER_W = "energy.powerWorkW"

MEASURE_INRUSH_MAX_PEAK_A = "inrush.maxPeakA"
MEASURE_INRUSH_MEAN_PEAK_A = "inrush.meanPeakA"
MEASURE_INRUSH_UNBALANCE_PCT = "inrush.unbalancePct"
MEASURE_INRUSH_DURATION_MS = "inrush.durationMs"
MEASURE_INRUSH_MULTIPLE = "inrush.multiple"

MEASURE_VOLTAGE_LEVEL_PCT = "workVoltage.levelPct"
MEASURE_VOLTAGE_UNBALANCE_PCT = "workVoltage.unbalancePct"
MEASURE_SAG_DEPTH_PCT = "voltageSag.sagDepthPct"
MEASURE_SAG_DURATION_MS = "voltageSag.sagDurationMaxMs"
MEASURE_SAG_LEVEL_MIN_V = "voltageSag.sagLevelMinV"

MEASURE_LOAD_FACTOR = "workCurrent.loadFactor"
MEASURE_CURRENT_MEAN_A = "workCurrent.meanAvgA"
MEASURE_CURRENT_UNBALANCE_PCT = "workCurrent.unbalancePct"
MEASURE_RIPPLE_MAX_PCT = "workCurrent.rippleMaxPct"

MEASURE_START_DELAY_MAX_MS = "startDelay.delayMaxMs"
MEASURE_START_DELAY_MEAN_MS = "startDelay.delayMeanMs"

MEASURE_VOLTAGE_U1 = "voltage.U1"
MEASURE_VOLTAGE_U2 = "voltage.U2"
MEASURE_VOLTAGE_U3 = "voltage.U3"
MEASURE_TEMPERATURE_AMBIENT = "temperature.ambient"

# Digital inputs
DI_CONTACTOR = "DI1_KM"
DI_ESTOP_OVERLOAD = "DI2_ES_Overload_Key"
DI_GATE = "DI3_Gate"
DI_DOOR = "DI4_Door"
DI_GATE_DOWN = "DI5_GateDown"
DI_PRESSURE_SWITCH = "DI6_PressureSwitchDigital"
DI_Y_DOWN = "DI7_Y_Down"
DI_FULL_ERROR = "DI8_Full_Error"

DI_TIMELINE_LABELS = {
    DI_CONTACTOR: "KM",
    DI_ESTOP_OVERLOAD: "Overload",
    DI_GATE: "Gate",
    DI_DOOR: "Door",
    DI_GATE_DOWN: "GateDown",
    DI_PRESSURE_SWITCH: "Pressure",
    DI_Y_DOWN: "YDown",
    DI_FULL_ERROR: "Error",
}

# A point is a realtime sample if it carries any of these
REALTIME_MEASURES = (MEASURE_VOLTAGE_U1, DI_CONTACTOR, MEASURE_TEMPERATURE_AMBIENT)

# ============================================================================
# Metric Constants
# ============================================================================

MILLISECONDS_PER_SECOND = 1000
SECONDS_PER_HOUR = 3600
MILLISECONDS_PER_HOUR = 3_600_000
HOURS_PER_DAY = 24

DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


class MetricConstants:
    """Fixed parameters of the metrics engine."""

    HEALTH_ANOMALY_THRESHOLD = 0.5
    DRIFT_ALERT_PCT = 10.0
    ANOMALY_MIN_SCORE = 2
    ANOMALY_CRITICAL_SCORE = 4
    ANOMALY_HIGH_SCORE = 3

    SAG_CRITICAL_DEPTH_PCT = 60.0
    SAG_HIGH_DEPTH_PCT = 40.0

    DEFAULT_MTTR_MINUTES = 20.0
    NEAR_EOL_RUL_PCT = 10.0
    NEAR_EOL_ANOMALY_SCORE = 0.7
    HIGH_ANOMALY_DEVICE_MIN_COUNT = 3

    DURATION_BUCKET_S = 2
    DEFAULT_DISTRIBUTION_MAX_S = 30
    MAX_DISTRIBUTION_BUCKETS = 60  # last bucket collects everything longer
    TREND_DAYS = 7
    DRIFT_ANALYSIS_POINTS = 30
    RECENT_ANOMALIES = 10
    RECENT_SAGS = 30
    RECENT_SAFETY_EVENTS = 20
    SAFETY_TIMELINE_POINTS = 200
    VOLTAGE_MONITOR_POINTS = 100
    DI_TIMELINE_POINTS = 50
    COMPOSITE_SCORE_CYCLES = 20
    RANKING_LIMIT = 5
    DEVICE_UTILIZATION_LIMIT = 8

    # Long-shape controllers sample digital inputs every 25 seconds
    READING_INTERVAL_S = 25.0


class ChamberConstants:
    """
    Bucket thresholds for the chamber fullness heuristic.

    Fullness is not measured; it is inferred from how densely cycles were run
    in each of the most recent active hours.
    """

    RECENT_HOURS = 24
    LOW_MAX_CYCLES_PER_HOUR = 4  # <= 4 cycles/hour -> low
    MEDIUM_MAX_CYCLES_PER_HOUR = 12  # 5-12 cycles/hour -> medium, above -> high
    DEFAULT_SPLIT = (30.0, 40.0, 30.0)


# ============================================================================
# Ingestion
# ============================================================================

DEFAULT_BATCH_SIZE = 10_000
PROGRESS_READ_CEILING = 90.0
PROGRESS_NORMALIZE = 95.0
PROGRESS_DONE = 100.0

# ============================================================================
# Default Paths
# ============================================================================

DEFAULT_CONFIG_DIR = Path.home() / ".presswatch"
DEFAULT_LOG_DIR = DEFAULT_CONFIG_DIR / "logs"
DEFAULT_LOG_FILE = "presswatch.log"
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_LOG_BACKUP_COUNT = 5

REPORT_FILENAME_PREFIX = "telemetry-report"
