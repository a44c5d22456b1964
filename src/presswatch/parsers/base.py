"""
Abstract Parser Interface

Every CSV shape parser inherits from TelemetryParser. The registry asks each
parser whether it recognises a header, then hands the rows of the winning
parser its ``normalize`` method. Nothing downstream of a parser sees raw rows.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from pydantic import BaseModel, Field

from presswatch.constants import DataShape
from presswatch.models.records import LongDataset, RawRow, WideDataset


class ParserMetadata(BaseModel):
    """Metadata about a parser implementation."""

    parser_id: str = Field(description="Unique parser identifier")
    parser_version: str = Field(description="Parser version")
    shape: DataShape = Field(description="CSV layout handled by the parser")
    required_columns: list[str] = Field(description="Columns that must be present")
    description: str = Field(description="Parser description")


class ParserDetectionResult:
    """Result of checking a CSV header against a parser."""

    def __init__(
        self,
        detected: bool,
        confidence: float = 1.0,
        missing_columns: list[str] | None = None,
        message: str = "",
    ):
        self.detected = detected
        self.confidence = confidence  # 0.0 to 1.0
        self.missing_columns = missing_columns or []
        self.message = message


class TelemetryParser(ABC):
    """
    Abstract base class for CSV shape parsers.

    Usage Example:
        class WideCycleParser(TelemetryParser):
            def detect(self, header):
                ...

            def normalize(self, rows):
                return WideDataset(records=[...])
    """

    def __init__(self) -> None:
        """Initialize the parser."""
        self._metadata = self.get_metadata()

    @abstractmethod
    def get_metadata(self) -> ParserMetadata:
        """Return metadata about this parser."""
        pass

    @abstractmethod
    def normalize(self, rows: Sequence[RawRow]) -> WideDataset | LongDataset:
        """
        Convert ingested rows into this parser's canonical dataset.

        Args:
            rows: Rows produced by the CSV ingestor, in file order

        Returns:
            Normalized dataset

        Raises:
            EmptyInputError: If no row survives normalization
        """
        pass

    def detect(self, header: Sequence[str]) -> ParserDetectionResult:
        """
        Check whether a CSV header carries this parser's required columns.

        Confidence is the fraction of required columns present, so a header
        missing one column still points at the intended shape when reporting
        the error.

        Args:
            header: Column names from the CSV header row

        Returns:
            ParserDetectionResult with the missing columns, if any
        """
        columns = set(header)
        required = self._metadata.required_columns
        missing = [c for c in required if c not in columns]
        confidence = (len(required) - len(missing)) / len(required)

        if missing:
            return ParserDetectionResult(
                detected=False,
                confidence=confidence,
                missing_columns=missing,
                message=f"Missing columns for {self.shape.value} shape: {', '.join(missing)}",
            )
        return ParserDetectionResult(
            detected=True,
            confidence=confidence,
            message=f"Found {self.shape.value} shape header",
        )

    @property
    def parser_id(self) -> str:
        """Get unique parser identifier."""
        return self._metadata.parser_id

    @property
    def shape(self) -> DataShape:
        """Get the CSV shape this parser handles."""
        return self._metadata.shape

    def __str__(self) -> str:
        """String representation of parser."""
        return f"{self.parser_id} (v{self._metadata.parser_version}): {self._metadata.description}"

    def __repr__(self) -> str:
        """Developer representation of parser."""
        return f"<{self.__class__.__name__} id={self.parser_id} shape={self.shape.value}>"


# ============================================================================
# Ingestion Errors
# ============================================================================


class IngestError(Exception):
    """Base exception for errors that abort an upload."""

    pass


class EmptyInputError(IngestError):
    """Raised when no parsable data rows are found."""

    def __init__(self, message: str = "CSV contains no data rows"):
        super().__init__(message)


class MissingColumnsError(IngestError):
    """Raised when required columns are absent from the header."""

    def __init__(self, missing: Sequence[str], shape: DataShape | None = None):
        self.missing = list(missing)
        self.shape = shape
        label = f"{shape.value}-shape " if shape is not None else ""
        super().__init__(f"Missing required {label}columns: {', '.join(self.missing)}")


class FileReadError(IngestError):
    """Raised when the underlying file cannot be read."""

    pass


class InvalidDataError(IngestError):
    """Raised when rows hold values that cannot be normalized."""

    pass


class RowParseError(ValueError):
    """
    A single row could not be normalized.

    Recovered locally by the parsers: the row is dropped and counted, never
    surfaced on its own.
    """

    pass
