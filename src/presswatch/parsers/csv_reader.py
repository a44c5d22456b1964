"""
CSV ingestion.

Reads delimited text into header-keyed rows with opportunistic numeric
typing. Large long-shape exports are read in batches so a host event loop
can report progress between them instead of blocking for the whole file.
"""

import csv
import io
import itertools
import logging
import os
import re

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from presswatch.constants import (
    CSV_DELIMITERS,
    DEFAULT_BATCH_SIZE,
    PROGRESS_READ_CEILING,
)
from presswatch.models.records import RawRow, Scalar
from presswatch.parsers.base import EmptyInputError, FileReadError

logger = logging.getLogger(__name__)

CsvSource = str | Path | TextIO
ProgressCallback = Callable[[float], None]
HeaderCallback = Callable[[list[str]], None]

_INT_PATTERN = re.compile(r"^[+-]?\d+$")
_FLOAT_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

# Row count used to scale progress when the input size is unknown
_UNSIZED_PROGRESS_ROWS = 100_000


@dataclass
class RowBatch:
    """A batch of parsed rows and the progress reached after reading it."""

    header: list[str]
    rows: list[RawRow]
    progress: float
    rows_read: int


@dataclass
class CsvContent:
    """Fully read CSV input."""

    header: list[str]
    rows: list[RawRow] = field(default_factory=list)


def coerce_value(text: str) -> Scalar:
    """
    Type a raw CSV field.

    Numbers become int/float, lowercase or uppercase ``true``/``false`` become
    booleans and empty fields become None. Capitalised ``"True"``/``"False"``
    are deliberately left as strings; boolean flags are derived explicitly by
    the parsers.

    Args:
        text: Raw field text

    Returns:
        Typed scalar
    """
    stripped = text.strip()
    if not stripped:
        return None
    if stripped in ("true", "TRUE"):
        return True
    if stripped in ("false", "FALSE"):
        return False
    if _INT_PATTERN.match(stripped):
        return int(stripped)
    if _FLOAT_PATTERN.match(stripped):
        return float(stripped)
    return stripped


def detect_delimiter(sample: str) -> str:
    """
    Guess the field delimiter from a sample of the file.

    Tries csv.Sniffer restricted to the supported delimiters, then falls back
    to the candidate occurring most often in the first line.

    Args:
        sample: Leading text of the file (at least the header line)

    Returns:
        One of ',', '\\t', '|', ';'
    """
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters="".join(CSV_DELIMITERS))
        return str(dialect.delimiter)
    except csv.Error:
        pass

    first_line = sample.splitlines()[0] if sample else ""
    counts = {d: first_line.count(d) for d in CSV_DELIMITERS}
    best = max(CSV_DELIMITERS, key=lambda d: counts[d])
    return best if counts[best] > 0 else ","


class _CountingLines:
    """Line iterator that tracks how many characters have been consumed."""

    def __init__(self, lines: Iterator[str]):
        self._lines = lines
        self.consumed = 0

    def __iter__(self) -> "_CountingLines":
        return self

    def __next__(self) -> str:
        line = next(self._lines)
        self.consumed += len(line)
        return line


def _open_lines(source: CsvSource) -> tuple[Iterator[str], int | None, TextIO | None]:
    """Return a line iterator, the total size if known, and a handle to close."""
    if isinstance(source, Path):
        try:
            handle = open(source, encoding="utf-8-sig", newline="")
            size = os.path.getsize(source)
        except OSError as e:
            raise FileReadError(f"Failed to read {source}: {e}") from e
        return iter(handle), size, handle

    if isinstance(source, str):
        text = source.lstrip("\ufeff")
        return iter(io.StringIO(text, newline="")), len(text), None

    return iter(source), None, None


def _build_row(header: list[str], cells: list[str]) -> RawRow:
    row: RawRow = {}
    for index, name in enumerate(header):
        row[name] = coerce_value(cells[index]) if index < len(cells) else None
    return row


def iter_row_batches(
    source: CsvSource,
    batch_size: int = DEFAULT_BATCH_SIZE,
    on_progress: ProgressCallback | None = None,
    on_header: HeaderCallback | None = None,
) -> Iterator[RowBatch]:
    """
    Read CSV input incrementally, one batch of typed rows at a time.

    Progress is coarse: it is reported once per batch, scaled to 0-90 so the
    normalization step can report the remainder.

    Args:
        source: CSV text, a path to a CSV file, or an open text stream
        batch_size: Rows per batch
        on_progress: Optional callback receiving the progress percentage
        on_header: Optional callback receiving the header before any row is
            read; it may raise to abort ingestion

    Yields:
        RowBatch objects in file order

    Raises:
        EmptyInputError: If the input has no header or no data rows
        FileReadError: If the file cannot be read or decoded
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    lines, total_size, handle = _open_lines(source)
    try:
        counter = _CountingLines(lines)
        try:
            first_line = next(counter, "")
        except UnicodeDecodeError as e:
            raise FileReadError(f"Input is not valid UTF-8: {e}") from e

        if not first_line.strip():
            raise EmptyInputError("CSV input is empty")

        delimiter = detect_delimiter(first_line)
        reader = csv.reader(itertools.chain([first_line], counter), delimiter=delimiter)
        header = [name.strip() for name in next(reader)]
        logger.debug(f"Detected delimiter {delimiter!r} with {len(header)} columns")
        if on_header:
            on_header(header)

        rows_read = 0
        batch: list[RawRow] = []

        def progress() -> float:
            if total_size:
                fraction = counter.consumed / total_size
            else:
                fraction = rows_read / _UNSIZED_PROGRESS_ROWS
            return min(PROGRESS_READ_CEILING, fraction * 100)

        try:
            for cells in reader:
                if not any(cell.strip() for cell in cells):
                    continue
                batch.append(_build_row(header, cells))
                rows_read += 1

                if len(batch) >= batch_size:
                    reached = progress()
                    if on_progress:
                        on_progress(reached)
                    yield RowBatch(header, batch, reached, rows_read)
                    batch = []
        except UnicodeDecodeError as e:
            raise FileReadError(f"Input is not valid UTF-8: {e}") from e
        except csv.Error as e:
            raise FileReadError(f"Malformed CSV near row {rows_read + 1}: {e}") from e

        if batch or rows_read == 0:
            reached = PROGRESS_READ_CEILING if rows_read else 0.0
            if on_progress:
                on_progress(reached)
            if batch:
                yield RowBatch(header, batch, reached, rows_read)

        if rows_read == 0:
            raise EmptyInputError()

        logger.debug(f"Read {rows_read} rows")
    finally:
        if handle is not None:
            handle.close()


def read_rows(
    source: CsvSource,
    on_progress: ProgressCallback | None = None,
    on_header: HeaderCallback | None = None,
) -> CsvContent:
    """
    Read CSV input completely.

    Args:
        source: CSV text, a path to a CSV file, or an open text stream
        on_progress: Optional progress callback
        on_header: Optional header validation callback

    Returns:
        CsvContent with header and typed rows

    Raises:
        EmptyInputError: If the input has no data rows
        FileReadError: If the file cannot be read
    """
    header: list[str] = []
    rows: list[RawRow] = []
    for batch in iter_row_batches(
        source, on_progress=on_progress, on_header=on_header
    ):
        header = batch.header
        rows.extend(batch.rows)
    return CsvContent(header=header, rows=rows)
