"""CSV ingestion and shape normalization."""

from presswatch.parsers.base import (
    EmptyInputError,
    FileReadError,
    IngestError,
    InvalidDataError,
    MissingColumnsError,
    RowParseError,
    TelemetryParser,
)
from presswatch.parsers.registry import ParserRegistry, parser_registry

__all__ = [
    "EmptyInputError",
    "FileReadError",
    "IngestError",
    "InvalidDataError",
    "MissingColumnsError",
    "ParserRegistry",
    "RowParseError",
    "TelemetryParser",
    "parser_registry",
]
