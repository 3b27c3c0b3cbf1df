"""Generic adapter for hand-made or unrecognized transaction CSVs.

Expected columns (case-insensitive, any order): a date, a quantity and a
price, plus optional type/side, symbol/asset and notes/memo columns.
"""

from dataclasses import dataclass

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

DATE_ALIASES = ("date", "timestamp", "time")
QUANTITY_ALIASES = ("quantity", "qty", "amount")
PRICE_ALIASES = ("price", "price_per_unit", "unit_price", "unitprice")
TYPE_ALIASES = ("type", "side")
SYMBOL_ALIASES = ("symbol", "asset")
NOTES_ALIASES = ("notes", "memo")


@dataclass(frozen=True)
class GenericRow:
    line: int
    date: str
    quantity: str
    price: str
    indicator: str
    symbol: str
    notes: str


class GenericAdapter(BaseAdapter[GenericRow]):
    format = ExchangeFormat.GENERIC
    fallback_symbol = "UNKNOWN"

    def resolve_columns(self, index: dict[str, int]) -> None:
        self.date_col = find_column(index, *DATE_ALIASES)
        self.quantity_col = find_column(index, *QUANTITY_ALIASES)
        self.price_col = find_column(index, *PRICE_ALIASES)
        self.type_col = find_column(index, *TYPE_ALIASES)
        self.symbol_col = find_column(index, *SYMBOL_ALIASES)
        self.notes_col = find_column(index, *NOTES_ALIASES)

    def read(self, record: CsvRecord) -> GenericRow:
        return GenericRow(
            line=record.line,
            date=cell(record, self.date_col),
            quantity=cell(record, self.quantity_col),
            price=cell(record, self.price_col),
            indicator=cell(record, self.type_col),
            symbol=cell(record, self.symbol_col),
            notes=cell(record, self.notes_col),
        )

    def symbol_of(self, row: GenericRow) -> str:
        return row.symbol.upper()

    def to_lot(self, row: GenericRow) -> Lot:
        missing = [
            name
            for name, value in (("date", row.date), ("quantity", row.quantity), ("price", row.price))
            if not value
        ]
        if missing:
            raise MissingFieldError(missing)

        qty = require_number(row.quantity, "quantity")
        price = require_number(row.price, "price")

        # An explicit buy/sell indicator wins over the quantity's own sign
        indicator = row.indicator.lower()
        if "sell" in indicator:
            qty = -abs(qty)
        elif "buy" in indicator:
            qty = abs(qty)

        return Lot(
            date=normalize_date(row.date),
            qty=qty,
            price_per_unit=price,
            notes=row.notes or None,
        )
