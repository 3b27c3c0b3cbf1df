"""Portfolio-level P&L across every tracked asset."""

import logging
import math

from cryptobasis.engines.calculator import token_pnl
from cryptobasis.engines.lot_matcher import LotMatcher
from cryptobasis.models.enums import AccountingMethod, parse_method
from cryptobasis.models.lot import CostBasisEntry, WalletBalance
from cryptobasis.models.reports import PortfolioPnLSummary

logger = logging.getLogger(__name__)


def resolve_prices(
    prices: dict[str, float], balances: list[WalletBalance] | None = None
) -> dict[str, float]:
    """Fill in missing prices from balances that carry a USD value.

    A balance reported as ``usd_value`` over ``balance`` units implies a unit
    price; an explicit price always wins.
    """
    resolved = dict(prices)
    for balance in balances or []:
        if balance.token_id in resolved:
            continue
        if balance.balance > 0 and balance.usd_value and balance.usd_value > 0:
            resolved[balance.token_id] = balance.usd_value / balance.balance
    return resolved


class PortfolioCalculator:
    """Computes per-token and total P&L for a set of cost-basis entries."""

    def __init__(self, matcher: LotMatcher | None = None):
        self.matcher = matcher or LotMatcher()

    def summarize(
        self,
        entries: list[CostBasisEntry],
        prices: dict[str, float],
        method: AccountingMethod | str = AccountingMethod.FIFO,
    ) -> PortfolioPnLSummary:
        method = parse_method(method)
        results = []
        for entry in entries:
            price = prices.get(entry.token_id)
            if price is None:
                logger.info("No price for %s; valuing at 0", entry.token_id)
                price = 0.0
            results.append(
                token_pnl(entry.token_id, entry.symbol, entry.lots, price, method, self.matcher)
            )

        summary = PortfolioPnLSummary(
            total_value=math.fsum(r.current_value for r in results),
            total_cost_basis=math.fsum(r.total_cost_basis for r in results),
            total_unrealized_pnl=math.fsum(r.unrealized_pnl for r in results),
            total_realized_pnl=math.fsum(r.realized_pnl for r in results),
            method=method,
            by_token=results,
        )
        if summary.total_cost_basis > 0:
            summary.total_unrealized_pnl_percent = (
                summary.total_unrealized_pnl / summary.total_cost_basis
            ) * 100
        return summary
