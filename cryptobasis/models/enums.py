"""Enumerations for cryptobasis."""

from enum import StrEnum

from cryptobasis.exceptions import UnsupportedMethodError


class AccountingMethod(StrEnum):
    FIFO = "fifo"
    LIFO = "lifo"
    AVERAGE = "average"


class EntrySource(StrEnum):
    MANUAL = "manual"
    CSV_IMPORT = "csv_import"


class ExchangeFormat(StrEnum):
    COINBASE = "coinbase"
    BINANCE = "binance"
    GENERIC = "generic"


class ReconciliationStatus(StrEnum):
    BALANCED = "balanced"
    OVER = "over"
    UNDER = "under"
    NO_COST_BASIS = "no_cost_basis"


def parse_method(value: str | AccountingMethod) -> AccountingMethod:
    """Resolve a user-supplied method selector, rejecting unknown values."""
    if isinstance(value, AccountingMethod):
        return value
    normalized = str(value).strip().lower()
    try:
        return AccountingMethod(normalized)
    except ValueError:
        raise UnsupportedMethodError(str(value)) from None
