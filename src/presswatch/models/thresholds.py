"""User-adjustable alert limits."""

from pydantic import BaseModel, ConfigDict, Field


class AlertThresholds(BaseModel):
    """
    Numeric limits used by the metrics engine to flag values as alerting.

    Thresholds never influence ingestion or normalization.
    """

    model_config = ConfigDict(frozen=True)

    cycle_duration_s: float = Field(default=25.0, gt=0, description="Cycle time (s)")
    inrush_multiple: float = Field(default=8.0, gt=0, description="Inrush multiple")
    voltage_sag_pct: float = Field(default=60.0, ge=0, description="Sag depth (%)")
    current_unbalance_pct: float = Field(
        default=15.0, ge=0, description="Current unbalance (%)"
    )
    ripple_pct: float = Field(default=70.0, ge=0, description="Current ripple (%)")
    lifetime_cycle_threshold: int = Field(
        default=50_000, gt=0, description="Rated lifetime cycles"
    )
    mtbf_threshold_hours: float = Field(default=100.0, gt=0, description="MTBF (h)")
