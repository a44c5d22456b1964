"""Day-of-week by hour-of-day utilization heatmaps."""

from collections.abc import Iterable, Sequence
from datetime import datetime

import numpy as np

from presswatch.analysis.common import day_of_week
from presswatch.analysis.types import Heatmap, HeatmapCell
from presswatch.constants import DAY_NAMES, DI_CONTACTOR, HOURS_PER_DAY
from presswatch.models.records import CycleRecord, TimeSeriesPoint


def build_heatmap(entries: Iterable[tuple[datetime, float]]) -> Heatmap:
    """
    Accumulate values into a 7x24 grid.

    Cells are emitted Sunday first, hour 0 first. Intensity is each cell's
    share of the largest cell; when every cell is 0 all intensities are 0.

    Args:
        entries: (UTC timestamp, value) pairs

    Returns:
        Heatmap with all 168 cells
    """
    grid = np.zeros((len(DAY_NAMES), HOURS_PER_DAY), dtype=float)
    for moment, value in entries:
        grid[day_of_week(moment), moment.hour] += value

    max_value = float(grid.max())
    if max_value > 0:
        intensity = grid / max_value
    else:
        intensity = np.zeros_like(grid)

    cells = [
        HeatmapCell(
            day=day,
            hour=hour,
            day_name=DAY_NAMES[day],
            value=float(grid[day, hour]),
            intensity=float(intensity[day, hour]),
        )
        for day in range(len(DAY_NAMES))
        for hour in range(HOURS_PER_DAY)
    ]

    return Heatmap(
        days=list(DAY_NAMES),
        hours=list(range(HOURS_PER_DAY)),
        cells=cells,
        max_value=max_value,
        total=float(grid.sum()),
    )


def calculate_runtime_heatmap(cycles: Sequence[CycleRecord]) -> Heatmap:
    """Runtime hours per cycle start cell."""
    return build_heatmap((c.started_at, c.runtime_hours) for c in cycles)


def calculate_activity_heatmap(samples: Sequence[TimeSeriesPoint]) -> Heatmap:
    """Count of samples with the main contactor energized, per cell."""
    return build_heatmap(
        (s.timestamp, 1.0) for s in samples if s.flag(DI_CONTACTOR) == 1
    )
