"""Timestamp parsing for CSV telemetry fields."""

from datetime import UTC, datetime

from presswatch.constants import MILLISECONDS_PER_SECOND
from presswatch.models.records import Scalar
from presswatch.parsers.base import RowParseError


def parse_timestamp(value: Scalar) -> datetime:
    """
    Parse a CSV timestamp into a timezone-aware UTC datetime.

    Accepts ISO-8601 text (with or without offset, ``Z`` suffix allowed) and
    numeric epoch milliseconds. Naive timestamps are taken to be UTC.

    Args:
        value: Field value as produced by the CSV ingestor

    Returns:
        Aware datetime in UTC

    Raises:
        RowParseError: If the value is not a valid instant
    """
    if value is None or isinstance(value, bool):
        raise RowParseError(f"Not a timestamp: {value!r}")

    if isinstance(value, int | float):
        try:
            return datetime.fromtimestamp(value / MILLISECONDS_PER_SECOND, tz=UTC)
        except (OverflowError, OSError, ValueError) as e:
            raise RowParseError(f"Epoch value out of range: {value!r}") from e

    text = value.strip()
    if not text:
        raise RowParseError("Empty timestamp")

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise RowParseError(f"Invalid timestamp: {text!r}") from None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
