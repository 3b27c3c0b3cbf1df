"""Cost-basis, P&L, simulation and reconciliation engines."""

from cryptobasis.engines.lot_matcher import LotMatcher
from cryptobasis.engines.portfolio import PortfolioCalculator, resolve_prices
from cryptobasis.engines.reconciliation import ReconciliationEngine, classify_status
from cryptobasis.engines.simulator import SellSimulator, build_sell_lot

__all__ = [
    "LotMatcher",
    "PortfolioCalculator",
    "ReconciliationEngine",
    "SellSimulator",
    "build_sell_lot",
    "classify_status",
    "resolve_prices",
]
