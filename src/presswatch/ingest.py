"""
Upload pipeline: CSV text to normalized dataset.

``ingest_steps`` is a generator so the caller decides when to resume
parsing; each yielded value is a progress percentage and the generator's
return value is the normalized dataset.
"""

import logging

from collections.abc import Generator

from presswatch.constants import (
    DEFAULT_BATCH_SIZE,
    PROGRESS_DONE,
    PROGRESS_NORMALIZE,
    DataShape,
)
from presswatch.models.records import LongDataset, RawRow, WideDataset
from presswatch.parsers.base import InvalidDataError, TelemetryParser
from presswatch.parsers.csv_reader import CsvSource, ProgressCallback, iter_row_batches
from presswatch.parsers.registry import ParserRegistry, parser_registry

logger = logging.getLogger(__name__)


def ingest_steps(
    source: CsvSource,
    shape: DataShape | None = None,
    registry: ParserRegistry | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> Generator[float, None, WideDataset | LongDataset]:
    """
    Parse and normalize CSV input one batch at a time.

    The header is validated before any row is read, so a missing column
    fails fast without scanning the file.

    Args:
        source: CSV text, path or text stream
        shape: Force a shape instead of detecting it from the header
        registry: Parser registry (defaults to the global one)
        batch_size: Rows per batch

    Yields:
        Progress percentages (0-100)

    Returns:
        The normalized dataset

    Raises:
        MissingColumnsError: If required columns are absent
        EmptyInputError: If no data rows survive
        FileReadError: If the input cannot be read
        InvalidDataError: If a row value cannot be represented
    """
    active_registry = registry or parser_registry
    selected: list[TelemetryParser] = []

    def select(header: list[str]) -> None:
        selected.append(active_registry.select_parser(header, shape))

    rows: list[RawRow] = []
    for batch in iter_row_batches(source, batch_size=batch_size, on_header=select):
        rows.extend(batch.rows)
        yield batch.progress

    parser = selected[0]
    logger.info(f"Normalizing {len(rows)} rows with {parser.parser_id}")
    yield PROGRESS_NORMALIZE

    try:
        dataset = parser.normalize(rows)
    except (ArithmeticError, ValueError) as e:
        raise InvalidDataError(
            f"Could not normalize {parser.shape.value}-shape rows: {e}"
        ) from e
    yield PROGRESS_DONE
    return dataset


def ingest(
    source: CsvSource,
    shape: DataShape | None = None,
    on_progress: ProgressCallback | None = None,
    registry: ParserRegistry | None = None,
) -> WideDataset | LongDataset:
    """
    Parse and normalize CSV input in one call.

    Args:
        source: CSV text, path or text stream
        shape: Force a shape instead of detecting it from the header
        on_progress: Optional progress callback
        registry: Parser registry (defaults to the global one)

    Returns:
        The normalized dataset
    """
    steps = ingest_steps(source, shape=shape, registry=registry)
    while True:
        try:
            progress = next(steps)
        except StopIteration as done:
            return done.value
        if on_progress:
            on_progress(progress)
