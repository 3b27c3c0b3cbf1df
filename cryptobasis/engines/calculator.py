"""Cost-basis and P&L calculator.

Pure functions over one asset's lot history. Buy lots carry positive
quantities, sell lots negative ones. FIFO/LIFO consume buy lots in the
method's date order; the average method blends every buy into one unit cost
computed once over the whole history.

A ledger that sells more than it ever bought is clamped: the excess sell
quantity is matched against nothing, so it contributes neither cost nor
proceeds, and it is reported as ``oversold_qty``.
"""

import logging
import math

from cryptobasis.engines.lot_matcher import LotMatcher
from cryptobasis.models.enums import AccountingMethod, parse_method
from cryptobasis.models.lot import Lot
from cryptobasis.models.reports import PnLResult

logger = logging.getLogger(__name__)

_matcher = LotMatcher()

Lots = list[Lot] | tuple[Lot, ...]


def buy_lots(lots: Lots) -> list[Lot]:
    return [lot for lot in lots if lot.qty > 0]


def sell_lots(lots: Lots) -> list[Lot]:
    return [lot for lot in lots if lot.qty < 0]


def total_qty(lots: Lots) -> float:
    """Signed sum of all lot quantities (exactly rounded, so order-independent)."""
    return math.fsum(lot.qty for lot in lots)


def total_bought(lots: Lots) -> float:
    return math.fsum(lot.qty for lot in lots if lot.qty > 0)


def total_sold(lots: Lots) -> float:
    """Historical sold quantity as a positive number."""
    return abs(math.fsum(lot.qty for lot in lots if lot.qty < 0))


def oversold_qty(lots: Lots, matcher: LotMatcher | None = None) -> float:
    """Sell quantity in excess of everything ever bought (0 when none)."""
    matcher = matcher or _matcher
    excess = total_sold(lots) - total_bought(lots)
    return excess if excess > matcher.epsilon else 0.0


def average_cost(lots: Lots) -> float:
    """Quantity-weighted mean price of buy lots; 0 without buys."""
    buys = buy_lots(lots)
    if not buys:
        return 0.0
    total_cost = math.fsum(lot.qty * lot.price_per_unit for lot in buys)
    quantity = math.fsum(lot.qty for lot in buys)
    return total_cost / quantity if quantity > 0 else 0.0


def cost_basis(
    lots: Lots, method: AccountingMethod | str, matcher: LotMatcher | None = None
) -> float:
    """Cost basis of the position still held after all historical sells."""
    method = parse_method(method)
    matcher = matcher or _matcher
    buys = buy_lots(lots)
    sold = total_sold(lots)

    if sold == 0:
        return math.fsum(lot.qty * lot.price_per_unit for lot in buys)

    if method == AccountingMethod.AVERAGE:
        return average_cost(lots) * max(total_qty(lots), 0.0)

    result = matcher.match(matcher.sort(buys, method), sold)
    return math.fsum(
        lot.qty * lot.price_per_unit for lot in matcher.remaining(result.pool)
    )


def realized_pnl(
    lots: Lots, method: AccountingMethod | str, matcher: LotMatcher | None = None
) -> float:
    """Gain or loss locked in by historical sells.

    Sells are processed in their stored order; under FIFO/LIFO every sell
    draws from one running pool of buy lots, so a sell may span several.
    """
    method = parse_method(method)
    matcher = matcher or _matcher
    sells = sell_lots(lots)
    if not sells:
        return 0.0

    if method == AccountingMethod.AVERAGE:
        avg = average_cost(lots)
        capacity = total_bought(lots)
        pnl = 0.0
        for sell in sells:
            matched = min(abs(sell.qty), max(capacity, 0.0))
            proceeds = matched * sell.price_per_unit
            cost = matched * avg
            pnl += proceeds - cost
            capacity -= matched
        return pnl

    pool = matcher.sort(lots, method)
    pnl = 0.0
    for sell in sells:
        result = matcher.match(pool, abs(sell.qty))
        for _, buy, taken in result.allocations:
            pnl += taken * sell.price_per_unit - taken * buy.price_per_unit
        pool = result.pool
    return pnl


def token_pnl(
    token_id: str,
    symbol: str,
    lots: Lots,
    current_price: float,
    method: AccountingMethod | str,
    matcher: LotMatcher | None = None,
) -> PnLResult:
    """Full P&L snapshot for one asset at ``current_price``."""
    method = parse_method(method)
    quantity = total_qty(lots)
    current_value = quantity * current_price
    basis = cost_basis(lots, method, matcher)
    avg = basis / quantity if quantity > 0 else 0.0
    unrealized = current_value - basis
    unrealized_percent = (unrealized / basis) * 100 if basis > 0 else 0.0
    oversold = oversold_qty(lots, matcher)
    if oversold:
        logger.warning(
            "%s: sells exceed buys by %.8f units; excess ignored for P&L",
            symbol,
            oversold,
        )

    return PnLResult(
        token_id=token_id,
        symbol=symbol,
        total_qty=quantity,
        current_price=current_price,
        current_value=current_value,
        total_cost_basis=basis,
        average_cost=avg,
        unrealized_pnl=unrealized,
        unrealized_pnl_percent=unrealized_percent,
        realized_pnl=realized_pnl(lots, method, matcher),
        method=method,
        oversold_qty=oversold,
    )
