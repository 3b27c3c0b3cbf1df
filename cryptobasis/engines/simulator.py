"""Partial-sell simulator: what-if previews and construction of sell lots."""

import logging
import math

from cryptobasis.engines.calculator import average_cost, buy_lots
from cryptobasis.engines.lot_matcher import LotMatcher
from cryptobasis.exceptions import DataValidationError
from cryptobasis.models.enums import AccountingMethod, parse_method
from cryptobasis.models.lot import Lot
from cryptobasis.models.reports import SellAllocation, SellSimulation

logger = logging.getLogger(__name__)


class SellSimulator:
    """Previews a sale against an asset's buy lots without touching the ledger."""

    def __init__(self, matcher: LotMatcher | None = None):
        self.matcher = matcher or LotMatcher()

    def simulate(
        self,
        lots: list[Lot] | tuple[Lot, ...],
        sell_qty: float,
        sell_price: float,
        method: AccountingMethod | str,
    ) -> SellSimulation:
        """Allocate a hypothetical sale of ``sell_qty`` at ``sell_price``.

        Average cost yields one allocation at the blended unit cost
        (lot_index -1) and shrinks every buy lot by the same fraction.
        FIFO/LIFO yield one allocation per buy lot touched, indexed by its
        position in the sorted order.
        """
        method = parse_method(method)
        _require_positive("sell_qty", sell_qty)
        _require_positive("sell_price", sell_price)

        if method == AccountingMethod.AVERAGE:
            return self._simulate_average(lots, sell_qty, sell_price)
        return self._simulate_ordered(lots, sell_qty, sell_price, method)

    def _simulate_average(
        self, lots: list[Lot] | tuple[Lot, ...], sell_qty: float, sell_price: float
    ) -> SellSimulation:
        buys = buy_lots(lots)
        avg = average_cost(lots)
        total_buy_qty = math.fsum(lot.qty for lot in buys)

        # Only the quantity the buys can cover is booked
        filled = min(sell_qty, total_buy_qty)
        unfilled = sell_qty - filled
        if unfilled <= self.matcher.epsilon:
            unfilled = 0.0

        cost = filled * avg
        proceeds = filled * sell_price
        allocation = SellAllocation(
            lot_index=-1,
            qty_from_lot=filled,
            cost_basis=cost,
            sale_proceeds=proceeds,
            realized_pnl=proceeds - cost,
        )

        if total_buy_qty > 0:
            keep = 1 - filled / total_buy_qty
            shrunk = [lot.model_copy(update={"qty": lot.qty * keep}) for lot in buys]
            remaining = self.matcher.remaining(shrunk)
        else:
            remaining = []

        if unfilled:
            logger.warning(
                "Simulated sale of %s exceeds available buy lots by %s", sell_qty, unfilled
            )

        return SellSimulation(
            method=AccountingMethod.AVERAGE,
            sell_qty=sell_qty,
            sell_price=sell_price,
            allocations=[allocation],
            total_realized_pnl=allocation.realized_pnl,
            remaining_lots=remaining,
            unfilled_qty=unfilled,
        )

    def _simulate_ordered(
        self,
        lots: list[Lot] | tuple[Lot, ...],
        sell_qty: float,
        sell_price: float,
        method: AccountingMethod,
    ) -> SellSimulation:
        result = self.matcher.match(self.matcher.sort(lots, method), sell_qty)

        allocations: list[SellAllocation] = []
        for index, lot, taken in result.allocations:
            cost = taken * lot.price_per_unit
            proceeds = taken * sell_price
            allocations.append(
                SellAllocation(
                    lot_index=index,
                    qty_from_lot=taken,
                    cost_basis=cost,
                    sale_proceeds=proceeds,
                    realized_pnl=proceeds - cost,
                )
            )

        if result.unfilled:
            logger.warning(
                "Simulated sale of %s exceeds available buy lots by %s",
                sell_qty,
                result.unfilled,
            )

        return SellSimulation(
            method=method,
            sell_qty=sell_qty,
            sell_price=sell_price,
            allocations=allocations,
            total_realized_pnl=sum(a.realized_pnl for a in allocations),
            remaining_lots=self.matcher.remaining(result.pool),
            unfilled_qty=result.unfilled,
        )


def build_sell_lot(simulation: SellSimulation, sell_date: str, notes: str | None = None) -> Lot:
    """Turn a confirmed simulation into the negative lot to append to the ledger."""
    if notes is None:
        notes = f"Sell ({simulation.method.value}), realized {simulation.total_realized_pnl:.2f}"
    return Lot(
        date=sell_date,
        qty=-abs(simulation.sell_qty),
        price_per_unit=simulation.sell_price,
        notes=notes,
    )


def _require_positive(field: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0:
        raise DataValidationError(field, f"must be a positive number, got {value}")
