"""Base adapter interface for exchange CSV ingestion."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from cryptobasis.ingestion.detector import CsvRecord, normalize_header
from cryptobasis.ingestion.fields import parse_number
from cryptobasis.models.enums import ExchangeFormat
from cryptobasis.models.lot import Lot

logger = logging.getLogger(__name__)


@dataclass
class ParsedCSV:
    """Bundles the output of a CSV parse.

    ``errors`` are rows that could not be parsed; ``warnings`` are rows
    skipped on purpose (missing fields, ignored transaction types).
    ``symbols`` lists every asset the parsed lots belong to.
    """

    format: ExchangeFormat
    lots: list[Lot] = field(default_factory=list)
    token_id: str = ""
    symbol: str = ""
    symbols: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class MissingFieldError(Exception):
    """A required cell is empty; the row is skipped with a warning."""

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(f"Missing required fields ({', '.join(fields)}), skipped")


class SkippedRow(Exception):
    """The row is valid but not a buy or sell; skipped with a warning."""


class RowParseError(ValueError):
    """The row's content is malformed; reported as an error."""


RowT = TypeVar("RowT")


def header_index(headers: list[str]) -> dict[str, int]:
    """Map normalized header names to their column position (first wins)."""
    index: dict[str, int] = {}
    for pos, header in enumerate(headers):
        index.setdefault(normalize_header(header), pos)
    return index


def find_column(index: dict[str, int], *aliases: str) -> int | None:
    for alias in aliases:
        if alias in index:
            return index[alias]
    return None


def cell(record: CsvRecord, column: int | None) -> str:
    if column is None or column >= len(record.cells):
        return ""
    return record.cells[column]


def require_number(value: str, name: str) -> float:
    number = parse_number(value)
    if number is None:
        raise RowParseError(f"Invalid number format for {name}: {value!r}")
    return number


class BaseAdapter(ABC, Generic[RowT]):
    """Abstract base class for all exchange adapters.

    The header is resolved into a typed column map once, in the constructor;
    every data row is then read into a typed row before interpretation.
    """

    format: ExchangeFormat
    fallback_symbol: str = ""

    def __init__(self, headers: list[str]):
        self.headers = headers
        self.resolve_columns(header_index(headers))

    @abstractmethod
    def resolve_columns(self, index: dict[str, int]) -> None:
        """Locate this format's columns in the normalized header index."""
        ...

    @abstractmethod
    def read(self, record: CsvRecord) -> RowT:
        """Read the raw cells of a record into this format's row type."""
        ...

    @abstractmethod
    def symbol_of(self, row: RowT) -> str:
        """Asset symbol of a row, upper-case, or "" when the row has none."""
        ...

    @abstractmethod
    def to_lot(self, row: RowT) -> Lot:
        """Convert a row to a lot, raising MissingFieldError, SkippedRow or RowParseError."""
        ...

    def parse(self, records: list[CsvRecord], target_symbol: str | None = None) -> ParsedCSV:
        """Parse every record independently; bad rows never abort the batch."""
        result = ParsedCSV(format=self.format)
        target = target_symbol.strip().upper() if target_symbol else None
        symbols: list[str] = []

        for record in records:
            prefix = f"Line {record.line}"
            if len(record.cells) != len(self.headers):
                result.warnings.append(
                    f"{prefix}: expected {len(self.headers)} columns, "
                    f"found {len(record.cells)}, skipped"
                )
                continue

            row = self.read(record)
            try:
                symbol = self.symbol_of(row)
                if target and symbol and symbol != target:
                    continue
                result.lots.append(self.to_lot(row))
                if symbol and symbol not in symbols:
                    symbols.append(symbol)
            except MissingFieldError as exc:
                result.warnings.append(f"{prefix}: {exc}")
            except SkippedRow as exc:
                result.warnings.append(f"{prefix}: {exc}")
            except RowParseError as exc:
                result.errors.append(f"{prefix}: {exc}")

        detected = symbols[0] if symbols else (target or self.fallback_symbol)
        result.symbol = detected
        result.token_id = detected.lower()
        result.symbols = symbols
        if len(symbols) > 1 and not target:
            result.warnings.append(
                f"CSV contains several assets ({', '.join(symbols)}). "
                f"Pass a target symbol to import one asset."
            )

        logger.info(
            "Parsed %s CSV: %d lot(s), %d error(s), %d warning(s)",
            self.format.value,
            len(result.lots),
            len(result.errors),
            len(result.warnings),
        )
        return result
