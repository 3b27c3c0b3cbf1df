"""Entry point for exchange CSV imports: detect the format, then dispatch."""

import logging
from pathlib import Path

from cryptobasis.config import EngineSettings
from cryptobasis.ingestion.base import BaseAdapter, ParsedCSV
from cryptobasis.ingestion.binance import BinanceAdapter
from cryptobasis.ingestion.coinbase import CoinbaseAdapter
from cryptobasis.ingestion.detector import detect_format, read_csv
from cryptobasis.ingestion.generic import GenericAdapter
from cryptobasis.models.enums import ExchangeFormat

logger = logging.getLogger(__name__)

ADAPTERS: dict[ExchangeFormat, type[BaseAdapter]] = {
    ExchangeFormat.COINBASE: CoinbaseAdapter,
    ExchangeFormat.BINANCE: BinanceAdapter,
    ExchangeFormat.GENERIC: GenericAdapter,
}


def build_adapter(
    exchange_format: ExchangeFormat, headers: list[str], settings: EngineSettings
) -> BaseAdapter:
    if exchange_format == ExchangeFormat.BINANCE:
        return BinanceAdapter(headers, quotes=settings.quote_currencies)
    return ADAPTERS[exchange_format](headers)


def parse_csv(
    text: str,
    target_symbol: str | None = None,
    settings: EngineSettings | None = None,
) -> ParsedCSV:
    """Parse an exchange export into lots.

    Args:
        text: Raw CSV text.
        target_symbol: When given, rows for other assets are skipped silently.
        settings: Supplies the quote currencies used to split Binance pairs.

    Returns:
        ParsedCSV with the lots plus row-level errors and warnings. Problems
        are returned as data, never raised.
    """
    table = read_csv(text)
    exchange_format = detect_format(table.headers)

    if not table.records:
        return ParsedCSV(format=exchange_format, errors=["No data rows found in CSV"])

    logger.debug("Detected %s format (header on line %d)", exchange_format.value, table.header_line)
    adapter = build_adapter(exchange_format, table.headers, settings or EngineSettings())
    return adapter.parse(table.records, target_symbol)


def parse_csv_file(
    file_path: Path,
    target_symbol: str | None = None,
    settings: EngineSettings | None = None,
) -> ParsedCSV:
    """Read and parse a CSV export from disk."""
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    return parse_csv(file_path.read_text(encoding="utf-8-sig"), target_symbol, settings)
