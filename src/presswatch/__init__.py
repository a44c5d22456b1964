"""
presswatch: press telemetry analysis

Ingests per-cycle and time-series CSV exports from baling press
controllers and derives fleet KPIs, drift, anomaly, safety and
end-of-life metrics.
"""

from presswatch.analysis.service import MetricsService
from presswatch.filtering import filter_dataset
from presswatch.ingest import ingest
from presswatch.store import TelemetryStore

__all__ = ["MetricsService", "TelemetryStore", "filter_dataset", "ingest"]
