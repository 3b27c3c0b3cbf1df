"""Coinbase adapter for "Transaction History" CSV exports."""

from dataclasses import dataclass

from cryptobasis.ingestion.base import (
    BaseAdapter,
    MissingFieldError,
    SkippedRow,
    cell,
    find_column,
    require_number,
)
from cryptobasis.ingestion.detector import CsvRecord
from cryptobasis.ingestion.fields import normalize_date
from cryptobasis.models.enums import ExchangeFormat
from cryptobasis.models.lot import Lot

# Everything else (Send, Receive, Rewards Income, Convert, ...) is not a trade
TRADE_TYPES = {"buy", "sell", "advanced trade buy", "advanced trade sell"}


@dataclass(frozen=True)
class CoinbaseRow:
    line: int
    timestamp: str
    transaction_type: str
    asset: str
    quantity: str
    spot_price: str


class CoinbaseAdapter(BaseAdapter[CoinbaseRow]):
    format = ExchangeFormat.COINBASE

    def resolve_columns(self, index: dict[str, int]) -> None:
        self.timestamp_col = find_column(index, "timestamp", "date")
        self.type_col = find_column(index, "transaction type")
        self.asset_col = find_column(index, "asset")
        self.quantity_col = find_column(index, "quantity transacted")
        # Older exports say "Spot Price at Transaction", newer ones "Price at Transaction"
        self.price_col = find_column(
            index, "spot price at transaction", "price at transaction"
        )

    def read(self, record: CsvRecord) -> CoinbaseRow:
        return CoinbaseRow(
            line=record.line,
            timestamp=cell(record, self.timestamp_col),
            transaction_type=cell(record, self.type_col),
            asset=cell(record, self.asset_col),
            quantity=cell(record, self.quantity_col),
            spot_price=cell(record, self.price_col),
        )

    def symbol_of(self, row: CoinbaseRow) -> str:
        return row.asset.upper()

    def to_lot(self, row: CoinbaseRow) -> Lot:
        missing = [
            name
            for name, value in (
                ("Asset", row.asset),
                ("Quantity Transacted", row.quantity),
                ("Spot Price at Transaction", row.spot_price),
            )
            if not value
        ]
        if missing:
            raise MissingFieldError(missing)

        quantity = require_number(row.quantity, "Quantity Transacted")
        price = require_number(row.spot_price, "Spot Price at Transaction")

        tx_type = row.transaction_type.lower()
        if tx_type not in TRADE_TYPES:
            raise SkippedRow(f"{row.transaction_type or 'Blank'} transaction ignored")

        is_sell = "sell" in tx_type
        return Lot(
            date=normalize_date(row.timestamp),
            qty=-abs(quantity) if is_sell else abs(quantity),
            price_per_unit=price,
            notes=f"Coinbase {tx_type}",
        )
