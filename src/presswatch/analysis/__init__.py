"""Metrics engine for press telemetry."""

from presswatch.analysis.service import DashboardMetrics, MetricsService

__all__ = ["DashboardMetrics", "MetricsService"]
