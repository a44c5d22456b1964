"""Shared helpers for metric calculations."""

from collections.abc import Callable, Hashable, Iterable, Sequence
from datetime import date, datetime
from typing import TypeVar

import numpy as np

from presswatch.models.records import (
    CycleRecord,
    LongDataset,
    TimeSeriesPoint,
    WideDataset,
)

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


def mean_or_none(values: Iterable[float | None]) -> float | None:
    """
    Mean of the non-missing values.

    Returns:
        Mean, or None if every value is missing
    """
    present = [v for v in values if v is not None]
    if not present:
        return None
    return float(np.mean(present))


def sum_present(values: Iterable[float | None]) -> float:
    """Sum of the non-missing values (0.0 when none)."""
    return float(np.sum([v for v in values if v is not None], dtype=float))


def group_by(items: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    """Group items by key, keeping first-seen key order and item order."""
    groups: dict[K, list[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def group_by_day(cycles: Sequence[CycleRecord]) -> dict[date, list[CycleRecord]]:
    """Group cycles by UTC calendar date, in ascending date order."""
    groups = group_by(cycles, lambda c: c.started_at.date())
    return {day: groups[day] for day in sorted(groups)}


def day_of_week(moment: datetime) -> int:
    """Day index with Sunday as 0."""
    return (moment.weekday() + 1) % 7


def cycles_of(dataset: WideDataset | LongDataset) -> list[CycleRecord]:
    """All cycles of a dataset in ascending start order."""
    if isinstance(dataset, WideDataset):
        return list(dataset.records)
    return sorted(dataset.all_cycles(), key=lambda c: c.started_at)


def samples_of(dataset: WideDataset | LongDataset) -> list[TimeSeriesPoint]:
    """All realtime samples of a dataset in ascending time order."""
    if isinstance(dataset, WideDataset):
        return []
    return sorted(dataset.all_samples(), key=lambda p: p.timestamp)


def percentage(part: float, whole: float) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def exceeds(value: float | None, limit: float) -> bool:
    """True if a reported value is above a limit; missing values never alert."""
    return value is not None and value > limit
