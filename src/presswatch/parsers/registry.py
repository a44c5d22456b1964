"""
Parser Registry

Central registry for CSV shape parsers. Picks the parser whose required
columns best match an uploaded header and reports precisely which columns
are missing when none match.
"""

import logging

from collections.abc import Sequence

from presswatch.constants import DataShape
from presswatch.parsers.base import (
    MissingColumnsError,
    ParserDetectionResult,
    TelemetryParser,
)

logger = logging.getLogger(__name__)


class ParserRegistry:
    """
    Registry of available shape parsers.

    Usage:
        registry = ParserRegistry()
        registry.register(WideCycleParser())
        parser = registry.select_parser(header)
        dataset = parser.normalize(rows)
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._parsers: list[TelemetryParser] = []
        self._parsers_by_id: dict[str, TelemetryParser] = {}
        self._parsers_by_shape: dict[DataShape, TelemetryParser] = {}

    def register(self, parser: TelemetryParser) -> None:
        """
        Register a new parser.

        Raises:
            ValueError: If the parser ID or shape is already registered
        """
        parser_id = parser.parser_id

        if parser_id in self._parsers_by_id:
            existing = self._parsers_by_id[parser_id]
            raise ValueError(
                f"Parser ID '{parser_id}' already registered by {existing.__class__.__name__}"
            )
        if parser.shape in self._parsers_by_shape:
            raise ValueError(f"A parser for {parser.shape.value} shape is already registered")

        self._parsers.append(parser)
        self._parsers_by_id[parser_id] = parser
        self._parsers_by_shape[parser.shape] = parser

        logger.debug(f"Registered parser: {parser}")

    def get_parser_for_shape(self, shape: DataShape) -> TelemetryParser:
        """
        Look up the parser for a shape.

        Raises:
            KeyError: If no parser handles the shape
        """
        try:
            return self._parsers_by_shape[shape]
        except KeyError:
            raise KeyError(f"No parser registered for {shape.value} shape") from None

    def detect_all(
        self, header: Sequence[str]
    ) -> list[tuple[TelemetryParser, ParserDetectionResult]]:
        """
        Score every parser against a header.

        Returns:
            (parser, result) pairs sorted by confidence, highest first.
            Ties keep registration order.
        """
        results = [(parser, parser.detect(header)) for parser in self._parsers]
        return sorted(results, key=lambda pr: pr[1].confidence, reverse=True)

    def select_parser(
        self, header: Sequence[str], shape: DataShape | None = None
    ) -> TelemetryParser:
        """
        Choose the parser for an uploaded header.

        Args:
            header: CSV column names
            shape: Force a specific shape instead of detecting it

        Returns:
            Parser whose required columns are all present

        Raises:
            MissingColumnsError: If the chosen (or closest) shape lacks columns
        """
        if shape is not None:
            parser = self.get_parser_for_shape(shape)
            result = parser.detect(header)
        else:
            ranked = self.detect_all(header)
            if not ranked:
                raise RuntimeError("No parsers registered")
            detected = [pr for pr in ranked if pr[1].detected]
            parser, result = detected[0] if detected else ranked[0]

        if not result.detected:
            logger.warning(result.message)
            raise MissingColumnsError(result.missing_columns, shape=parser.shape)

        logger.debug(f"Selected {parser.parser_id} ({result.message})")
        return parser


def build_default_registry() -> ParserRegistry:
    """Create a registry with the wide and long parsers."""
    from presswatch.parsers.long import LongMeasurementParser
    from presswatch.parsers.wide import WideCycleParser

    registry = ParserRegistry()
    registry.register(WideCycleParser())
    registry.register(LongMeasurementParser())
    return registry


parser_registry = build_default_registry()
