"""Data models for cryptobasis."""

from cryptobasis.models.enums import (
    AccountingMethod,
    EntrySource,
    ExchangeFormat,
    ReconciliationStatus,
    parse_method,
)
from cryptobasis.models.lot import CostBasisEntry, Lot, WalletBalance
from cryptobasis.models.reports import (
    ImportSummary,
    PnLResult,
    PortfolioPnLSummary,
    ReconciliationItem,
    ReconciliationReport,
    ReconciliationSummary,
    SellAllocation,
    SellSimulation,
)

__all__ = [
    "AccountingMethod",
    "CostBasisEntry",
    "EntrySource",
    "ExchangeFormat",
    "ImportSummary",
    "Lot",
    "PnLResult",
    "PortfolioPnLSummary",
    "ReconciliationItem",
    "ReconciliationReport",
    "ReconciliationStatus",
    "ReconciliationSummary",
    "SellAllocation",
    "SellSimulation",
    "WalletBalance",
    "parse_method",
]
