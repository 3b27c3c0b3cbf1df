"""CSV tokenization and exchange-format auto-detection from header rows."""

import csv
from dataclasses import dataclass, field

from cryptobasis.models.enums import ExchangeFormat

# Ordered by specificity (most specific first to avoid false matches)
FORMAT_SIGNATURES: list[tuple[ExchangeFormat, set[str]]] = [
    (ExchangeFormat.COINBASE, {"transaction type", "quantity transacted"}),
    (ExchangeFormat.BINANCE, {"pair", "side", "executed"}),
]

# Exchange exports may put a few lines of preamble above the header
HEADER_SCAN_ROWS = 10

_BOM = "\ufeff"


@dataclass(frozen=True)
class CsvRecord:
    """One data row with its 1-based source line number."""

    line: int
    cells: tuple[str, ...]


@dataclass
class CsvTable:
    headers: list[str] = field(default_factory=list)
    records: list[CsvRecord] = field(default_factory=list)
    header_line: int = 0


def normalize_header(cell: str) -> str:
    return cell.replace(_BOM, "").strip().lower()


def detect_format(headers: list[str] | tuple[str, ...]) -> ExchangeFormat:
    """Detect the exchange format from a header row.

    Matching is case-insensitive and ignores column order. Anything that is
    neither a Coinbase nor a Binance export is treated as generic.
    """
    present = {normalize_header(h) for h in headers}
    for exchange_format, signature in FORMAT_SIGNATURES:
        if signature <= present:
            return exchange_format
    return ExchangeFormat.GENERIC


def read_csv(text: str) -> CsvTable:
    """Tokenize CSV text into a header row and numbered data records.

    Quoted fields may contain commas. Blank lines are ignored. The header is
    the first recognized exchange header within the first few rows, or the
    first row otherwise.
    """
    reader = csv.reader(text.lstrip(_BOM).splitlines())
    rows: list[CsvRecord] = []
    for cells in reader:
        if not any(cell.strip() for cell in cells):
            continue
        rows.append(CsvRecord(line=reader.line_num, cells=tuple(c.strip() for c in cells)))

    if not rows:
        return CsvTable()

    header_pos = _locate_header(rows)
    header = rows[header_pos]
    return CsvTable(
        headers=[cell.replace(_BOM, "") for cell in header.cells],
        records=rows[header_pos + 1:],
        header_line=header.line,
    )


def _locate_header(rows: list[CsvRecord]) -> int:
    for pos, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        if detect_format(row.cells) != ExchangeFormat.GENERIC:
            return pos
    return 0
