"""
Metrics service for computing a full dashboard from a working set.

This module provides the main interface for running every metric
calculation over a filtered dataset with one set of alert thresholds.
"""

import logging
import time

from presswatch.analysis.anomaly import calculate_anomalies
from presswatch.analysis.chamber import estimate_chamber_fullness
from presswatch.analysis.common import cycles_of, samples_of
from presswatch.analysis.cycles import calculate_cycle_metrics
from presswatch.analysis.electrical import (
    calculate_electrical_metrics,
    calculate_voltage_monitoring,
    calculate_voltage_sag_analysis,
)
from presswatch.analysis.energy import calculate_energy_metrics
from presswatch.analysis.fleet import calculate_fleet_kpis
from presswatch.analysis.health import calculate_health_anomalies, calculate_health_metrics
from presswatch.analysis.heatmap import calculate_activity_heatmap, calculate_runtime_heatmap
from presswatch.analysis.lifetime import calculate_fleet_eol, calculate_lifetime_metrics
from presswatch.analysis.rankings import calculate_device_rankings
from presswatch.analysis.safety import calculate_di_timeline, calculate_safety_metrics
from presswatch.analysis.types import DashboardMetrics
from presswatch.analysis.utilization import (
    calculate_device_utilization,
    calculate_idle_active,
    calculate_performance_trends,
)
from presswatch.models.filters import DateWindow, TimeRange
from presswatch.models.records import LongDataset, WideDataset
from presswatch.models.thresholds import AlertThresholds

logger = logging.getLogger(__name__)

__all__ = ["MetricsService", "DashboardMetrics"]


class MetricsService:
    """
    Service for computing dashboard metrics.

    Example:
        >>> service = MetricsService(load_thresholds())
        >>> metrics = service.compute(filter_dataset(dataset, criteria))
        >>> print(f"Utilization: {metrics.fleet.utilization_rate:.1f}%")
    """

    def __init__(self, thresholds: AlertThresholds | None = None):
        """
        Initialize metrics service.

        Args:
            thresholds: Alert limits (defaults used if None)
        """
        self.thresholds = thresholds or AlertThresholds()

    def compute(
        self,
        dataset: WideDataset | LongDataset,
        time_range: TimeRange | DateWindow = TimeRange.ALL,
        history: WideDataset | LongDataset | None = None,
    ) -> DashboardMetrics:
        """
        Compute every metric for a filtered dataset.

        Args:
            dataset: Filtered working set
            time_range: Window the working set was filtered with
            history: Dataset for lifetime projections, normally the same
                device/location selection without a time window. Defaults
                to ``dataset``.

        Returns:
            DashboardMetrics for the working set
        """
        start_time = time.time()

        cycles = cycles_of(dataset)
        samples = samples_of(dataset)
        lifetime_cycles = cycles_of(history) if history is not None else cycles

        metrics = DashboardMetrics(
            fleet=calculate_fleet_kpis(cycles, samples),
            rankings=calculate_device_rankings(cycles),
            health=calculate_health_metrics(cycles),
            health_anomalies=calculate_health_anomalies(cycles),
            cycles=calculate_cycle_metrics(cycles, self.thresholds),
            electrical=calculate_electrical_metrics(cycles, self.thresholds),
            voltage_monitoring=calculate_voltage_monitoring(samples),
            voltage_sags=calculate_voltage_sag_analysis(cycles),
            anomalies=calculate_anomalies(cycles, self.thresholds),
            safety=calculate_safety_metrics(cycles, samples),
            di_timeline=calculate_di_timeline(samples),
            energy=calculate_energy_metrics(cycles),
            runtime_heatmap=calculate_runtime_heatmap(cycles),
            activity_heatmap=calculate_activity_heatmap(samples),
            idle_active=calculate_idle_active(samples),
            device_utilization=calculate_device_utilization(cycles, time_range),
            performance_trends=calculate_performance_trends(cycles),
            lifetime=calculate_lifetime_metrics(lifetime_cycles, self.thresholds),
            fleet_eol=calculate_fleet_eol(lifetime_cycles, self.thresholds),
            chamber=estimate_chamber_fullness(cycles),
        )

        elapsed_ms = (time.time() - start_time) * 1000
        logger.debug(
            f"Computed metrics for {len(cycles)} cycles and {len(samples)} samples "
            f"in {elapsed_ms:.1f}ms"
        )
        return metrics
