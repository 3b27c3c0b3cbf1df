"""Reconciliation engine.

Compares the quantity each cost-basis ledger accounts for against the
externally observed wallet balance, and classifies the gap. The engine is
read-only: fixing a discrepancy (recording a missing buy, or a zero-cost
adjustment lot) is left to the caller.
"""

import logging
import re
from datetime import date

from cryptobasis.config import EngineSettings
from cryptobasis.engines.calculator import total_qty
from cryptobasis.models.enums import ReconciliationStatus
from cryptobasis.models.lot import CostBasisEntry, Lot, WalletBalance
from cryptobasis.models.reports import (
    ReconciliationItem,
    ReconciliationReport,
    ReconciliationSummary,
)

logger = logging.getLogger(__name__)

ADJUSTMENT_NOTE = "Reconciliation adjustment - marked as $0 cost"


def classify_status(
    wallet_balance: float, ledger_qty: float, threshold: float = 0.001
) -> ReconciliationStatus:
    """Classify a wallet/ledger pair, checked in priority order."""
    if ledger_qty == 0:
        return ReconciliationStatus.NO_COST_BASIS
    difference = wallet_balance - ledger_qty
    if wallet_balance != 0 and abs(difference / wallet_balance) < threshold:
        return ReconciliationStatus.BALANCED
    if difference > 0:
        return ReconciliationStatus.UNDER
    return ReconciliationStatus.OVER


def aggregate_balances(balances: list[WalletBalance]) -> dict[str, WalletBalance]:
    """Sum per-wallet balances into one balance per token."""
    totals: dict[str, WalletBalance] = {}
    for balance in balances:
        existing = totals.get(balance.token_id)
        if existing is None:
            totals[balance.token_id] = balance.model_copy()
            continue
        usd_value = existing.usd_value
        if balance.usd_value is not None:
            usd_value = (usd_value or 0.0) + balance.usd_value
        totals[balance.token_id] = existing.model_copy(
            update={"balance": existing.balance + balance.balance, "usd_value": usd_value}
        )
    return totals


class ReconciliationEngine:
    """Builds the wallet-vs-ledger reconciliation report."""

    def __init__(self, settings: EngineSettings | None = None):
        self.settings = settings or EngineSettings()
        self._spam = [re.compile(p, re.IGNORECASE) for p in self.settings.spam_patterns]

    def is_spam_symbol(self, symbol: str) -> bool:
        return any(pattern.search(symbol) for pattern in self._spam)

    def reconcile_item(
        self,
        token_id: str,
        symbol: str,
        wallet_balance: float,
        ledger_qty: float,
        price: float | None,
    ) -> ReconciliationItem | None:
        """Reconcile one token; None when it is filtered out of the report."""
        settings = self.settings
        # A zero price is as good as no price
        price = price or None
        usd_value = wallet_balance * price if price is not None else None

        if wallet_balance <= 0:
            return None

        if wallet_balance < settings.dust_qty and (
            usd_value is None or usd_value < settings.dust_usd
        ):
            logger.debug("Skipping dust balance for %s: %s", symbol, wallet_balance)
            return None

        has_cost_basis = ledger_qty > 0
        if price is None and not has_cost_basis and self.is_spam_symbol(symbol):
            logger.debug("Skipping spam-looking token %r", symbol)
            return None

        if (
            usd_value is not None
            and usd_value < settings.min_usd_without_cost_basis
            and not has_cost_basis
        ):
            return None

        difference = wallet_balance - ledger_qty
        if ledger_qty > 0:
            difference_percent = (difference / ledger_qty) * 100
        else:
            difference_percent = 100.0

        return ReconciliationItem(
            token_id=token_id,
            symbol=symbol,
            wallet_balance=wallet_balance,
            cost_basis_qty=ledger_qty,
            difference=difference,
            difference_percent=difference_percent,
            current_price=price,
            difference_usd=difference * price if price is not None else None,
            status=classify_status(wallet_balance, ledger_qty, settings.balance_threshold),
        )

    def reconcile(
        self,
        balances: list[WalletBalance],
        entries: list[CostBasisEntry],
        prices: dict[str, float],
    ) -> ReconciliationReport:
        """Reconcile every token that has a wallet balance or a ledger entry."""
        wallet = aggregate_balances(balances)
        ledger = {entry.token_id: entry for entry in entries}

        token_ids = list(wallet)
        token_ids.extend(t for t in ledger if t not in wallet)

        items: list[ReconciliationItem] = []
        for token_id in token_ids:
            balance = wallet.get(token_id)
            entry = ledger.get(token_id)
            symbol = (
                (balance.symbol if balance else None)
                or (entry.symbol if entry else None)
                or token_id.upper()
            )
            item = self.reconcile_item(
                token_id=token_id,
                symbol=symbol,
                wallet_balance=balance.balance if balance else 0.0,
                ledger_qty=total_qty(entry.lots) if entry else 0.0,
                price=prices.get(token_id),
            )
            if item is not None:
                items.append(item)

        items = self.sort_items(items)
        logger.info("Reconciled %d token(s), %d reported", len(token_ids), len(items))
        return ReconciliationReport(items=items, summary=self.summarize(items))

    @staticmethod
    def sort_items(items: list[ReconciliationItem]) -> list[ReconciliationItem]:
        """no_cost_basis first, then largest USD gap; unpriced last per group."""
        return sorted(
            items,
            key=lambda item: (
                item.status != ReconciliationStatus.NO_COST_BASIS,
                item.difference_usd is None,
                -abs(item.difference_usd or 0.0),
            ),
        )

    @staticmethod
    def summarize(items: list[ReconciliationItem]) -> ReconciliationSummary:
        return ReconciliationSummary(
            total_tokens=len(items),
            balanced=sum(1 for i in items if i.status == ReconciliationStatus.BALANCED),
            needs_attention=sum(
                1
                for i in items
                if i.status in (ReconciliationStatus.OVER, ReconciliationStatus.UNDER)
            ),
            no_cost_basis=sum(
                1 for i in items if i.status == ReconciliationStatus.NO_COST_BASIS
            ),
        )


def adjustment_lot(item: ReconciliationItem, on_date: date) -> Lot:
    """Zero-cost lot that closes a wallet surplus.

    Covers the positive difference, or the whole wallet balance for a token
    with no cost basis. Validate it with ``allow_zero_price=True``.
    """
    qty = item.difference if item.difference > 0 else item.wallet_balance
    return Lot(
        date=on_date.isoformat(),
        qty=qty,
        price_per_unit=0.0,
        notes=ADJUSTMENT_NOTE,
    )
