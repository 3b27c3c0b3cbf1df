"""Lot matching engine: FIFO/LIFO ordering and consumption of buy lots."""

from dataclasses import dataclass, field

from cryptobasis.config import EPSILON
from cryptobasis.models.enums import AccountingMethod
from cryptobasis.models.lot import Lot


@dataclass
class MatchResult:
    """Outcome of consuming a quantity from a sorted pool of buy lots.

    ``pool`` keeps the input's length and positions, with consumed quantity
    subtracted, so it can be fed into the next match.
    """

    allocations: list[tuple[int, Lot, float]] = field(default_factory=list)
    pool: list[Lot] = field(default_factory=list)
    unfilled: float = 0.0


class LotMatcher:
    """Orders buy lots by date and allocates disposals against them."""

    def __init__(self, epsilon: float = EPSILON):
        self.epsilon = epsilon

    def sort(self, lots: list[Lot] | tuple[Lot, ...], method: AccountingMethod) -> list[Lot]:
        """Sort buy lots oldest-first (FIFO) or newest-first (LIFO).

        The sort is stable in both directions: lots sharing a date keep their
        original relative order.
        """
        if method == AccountingMethod.AVERAGE:
            raise ValueError("Average cost has no lot ordering")
        buys = [lot for lot in lots if lot.qty > 0]
        return sorted(buys, key=lambda lot: lot.date, reverse=method == AccountingMethod.LIFO)

    def match(self, pool: list[Lot], qty: float) -> MatchResult:
        """Consume ``qty`` from the front of ``pool``.

        Args:
            pool: Buy lots already in consumption order.
            qty: Positive quantity being disposed of.

        Returns:
            MatchResult with (pool position, lot, quantity taken) allocations,
            the reduced pool, and any quantity no lot could cover.
        """
        remaining = qty
        allocations: list[tuple[int, Lot, float]] = []
        new_pool: list[Lot] = []

        for index, lot in enumerate(pool):
            if remaining <= 0 or lot.qty <= 0:
                new_pool.append(lot)
                continue
            taken = min(remaining, lot.qty)
            allocations.append((index, lot, taken))
            new_pool.append(lot.model_copy(update={"qty": lot.qty - taken}))
            remaining -= taken

        unfilled = remaining if remaining > self.epsilon else 0.0
        return MatchResult(allocations=allocations, pool=new_pool, unfilled=unfilled)

    def remaining(self, pool: list[Lot]) -> list[Lot]:
        """Drop fully consumed lots, treating sub-epsilon fragments as zero."""
        return [lot for lot in pool if lot.qty > self.epsilon]
