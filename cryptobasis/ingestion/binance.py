"""Binance adapter for spot "Trade History" CSV exports."""

import re
from dataclasses import dataclass

from cryptobasis.config import DEFAULT_QUOTE_CURRENCIES
from cryptobasis.ingestion.base import (
    BaseAdapter,
    MissingFieldError,
    cell,
    find_column,
    require_number,
)
from cryptobasis.ingestion.detector import CsvRecord
from cryptobasis.ingestion.fields import normalize_date
from cryptobasis.models.enums import ExchangeFormat
from cryptobasis.models.lot import Lot

_PAIR_SEPARATOR = re.compile(r"[/\-_]")


def extract_base_asset(pair: str, quotes: list[str] | None = None) -> str:
    """Extract the base asset from a trading pair.

    "BTCUSDT" -> "BTC", "ETH/BTC" -> "ETH". Unknown quotes fall back to the
    first four characters.
    """
    pair = pair.strip().upper()
    if _PAIR_SEPARATOR.search(pair):
        return _PAIR_SEPARATOR.split(pair, maxsplit=1)[0]

    for quote in quotes or DEFAULT_QUOTE_CURRENCIES:
        if pair.endswith(quote) and len(pair) > len(quote):
            return pair[: -len(quote)]

    return pair[: min(4, len(pair))]


@dataclass(frozen=True)
class BinanceRow:
    line: int
    date: str
    pair: str
    side: str
    price: str
    executed: str


class BinanceAdapter(BaseAdapter[BinanceRow]):
    format = ExchangeFormat.BINANCE

    def __init__(self, headers: list[str], quotes: list[str] | None = None):
        self.quotes = quotes or DEFAULT_QUOTE_CURRENCIES
        super().__init__(headers)

    def resolve_columns(self, index: dict[str, int]) -> None:
        self.date_col = find_column(index, "date(utc)", "date", "time")
        self.pair_col = find_column(index, "pair")
        self.side_col = find_column(index, "side")
        self.price_col = find_column(index, "price")
        self.executed_col = find_column(index, "executed")

    def read(self, record: CsvRecord) -> BinanceRow:
        return BinanceRow(
            line=record.line,
            date=cell(record, self.date_col),
            pair=cell(record, self.pair_col),
            side=cell(record, self.side_col),
            price=cell(record, self.price_col),
            executed=cell(record, self.executed_col),
        )

    def symbol_of(self, row: BinanceRow) -> str:
        if not row.pair:
            return ""
        return extract_base_asset(row.pair, self.quotes)

    def to_lot(self, row: BinanceRow) -> Lot:
        missing = [
            name
            for name, value in (
                ("Date(UTC)", row.date),
                ("Pair", row.pair),
                ("Price", row.price),
                ("Executed", row.executed),
            )
            if not value
        ]
        if missing:
            raise MissingFieldError(missing)

        price = require_number(row.price, "Price")
        # Executed carries the asset as a suffix, e.g. "0.5BTC"
        executed = require_number(row.executed, "Executed")

        side = row.side.lower()
        is_sell = side == "sell"
        return Lot(
            date=normalize_date(row.date),
            qty=-abs(executed) if is_sell else abs(executed),
            price_per_unit=price,
            notes=f"Binance {side}",
        )
