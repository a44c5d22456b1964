"""Filter control values."""

from datetime import UTC, datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ALL = "all"


class TimeRange(str, Enum):
    """Relative time windows, measured back from the newest record."""

    LAST_1H = "1h"
    LAST_3H = "3h"
    LAST_6H = "6h"
    LAST_12H = "12h"
    LAST_24H = "24h"
    LAST_7D = "7d"
    LAST_30D = "30d"
    ALL = "all"

    @property
    def span(self) -> timedelta | None:
        """Window length, or None for the unbounded window."""
        return _SPANS.get(self)

    @property
    def hours(self) -> float | None:
        span = self.span
        return span.total_seconds() / 3600 if span is not None else None


_SPANS = {
    TimeRange.LAST_1H: timedelta(hours=1),
    TimeRange.LAST_3H: timedelta(hours=3),
    TimeRange.LAST_6H: timedelta(hours=6),
    TimeRange.LAST_12H: timedelta(hours=12),
    TimeRange.LAST_24H: timedelta(hours=24),
    TimeRange.LAST_7D: timedelta(days=7),
    TimeRange.LAST_30D: timedelta(days=30),
}


class DateWindow(BaseModel):
    """Explicit inclusive time window."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        """Naive bounds are taken to be UTC, matching parsed timestamps."""
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    @model_validator(mode="after")
    def validate_order(self) -> "DateWindow":
        if self.start > self.end:
            raise ValueError(
                f"Invalid window: start ({self.start}) must be before or equal to end ({self.end})"
            )
        return self


class FilterCriteria(BaseModel):
    """Current selection of the device, location and time controls."""

    model_config = ConfigDict(frozen=True)

    device: str = Field(default=ALL, description="Device id or 'all'")
    location: str = Field(default=ALL, description="Location name or 'all'")
    time_range: TimeRange | DateWindow = Field(
        default=TimeRange.ALL, description="Relative range or explicit window"
    )
