"""Tests for the wallet vs. ledger reconciliation engine."""

from datetime import date

import pytest

from cryptobasis.config import EngineSettings
from cryptobasis.engines.reconciliation import (
    ADJUSTMENT_NOTE,
    ReconciliationEngine,
    adjustment_lot,
    aggregate_balances,
    classify_status,
)
from cryptobasis.models.enums import ReconciliationStatus
from cryptobasis.models.lot import CostBasisEntry, Lot, WalletBalance
from cryptobasis.normalization.validator import LotValidator


class TestClassifyStatus:
    @pytest.mark.parametrize(
        "wallet,ledger,expected",
        [
            (1.0, 0.0, ReconciliationStatus.NO_COST_BASIS),
            (1.0, 0.9995, ReconciliationStatus.BALANCED),
            (1.0, 1.0, ReconciliationStatus.BALANCED),
            (1.0, 0.5, ReconciliationStatus.UNDER),
            (1.0, 1.5, ReconciliationStatus.OVER),
            (1.0, 0.998, ReconciliationStatus.UNDER),
        ],
    )
    def test_priority_order(self, wallet, ledger, expected):
        assert classify_status(wallet, ledger) == expected


class TestAggregateBalances:
    def test_sums_across_wallets(self):
        totals = aggregate_balances([
            WalletBalance(token_id="eth", symbol="ETH", balance=1.0, usd_value=10.0),
            WalletBalance(token_id="eth", symbol="ETH", balance=2.0),
            WalletBalance(token_id="btc", symbol="BTC", balance=0.1),
        ])
        assert totals["eth"].balance == pytest.approx(3.0)
        assert totals["eth"].usd_value == pytest.approx(10.0)
        assert totals["btc"].usd_value is None


class TestReconcileItem:
    def setup_method(self):
        self.engine = ReconciliationEngine()

    def test_unpriced_token_without_cost_basis_is_kept(self):
        item = self.engine.reconcile_item("dogecoin", "DOGE", 1.0, 0.0, None)
        assert item is not None
        assert item.status == ReconciliationStatus.NO_COST_BASIS
        assert item.difference == 1.0
        assert item.difference_percent == 100.0
        assert item.current_price is None
        assert item.difference_usd is None

    def test_spam_symbol_is_dropped(self):
        assert self.engine.reconcile_item("scam", "Visit http://scam.com", 1.0, 0.0, None) is None

    @pytest.mark.parametrize(
        "symbol",
        ["claim-rewards.io", "FREE AIRDROP", "0x" + "ab" * 12, "visit site"],
    )
    def test_spam_patterns(self, symbol):
        assert self.engine.is_spam_symbol(symbol)

    def test_spam_symbol_with_cost_basis_is_kept(self):
        item = self.engine.reconcile_item("odd", "REWARD", 1.0, 1.0, None)
        assert item.status == ReconciliationStatus.BALANCED

    def test_zero_wallet_balance_excluded(self):
        assert self.engine.reconcile_item("btc", "BTC", 0.0, 1.0, 60000.0) is None

    def test_dust_excluded(self):
        assert self.engine.reconcile_item("btc", "BTC", 1e-6, 1e-6, None) is None

    def test_small_quantity_with_value_is_not_dust(self):
        item = self.engine.reconcile_item("btc", "BTC", 1e-6, 1e-6, 100000.0)
        assert item.status == ReconciliationStatus.BALANCED

    def test_low_value_without_cost_basis_excluded(self):
        assert self.engine.reconcile_item("shib", "SHIB", 100.0, 0.0, 0.05) is None

    def test_valuable_token_without_cost_basis_kept(self):
        item = self.engine.reconcile_item("sol", "SOL", 1.0, 0.0, 100.0)
        assert item.status == ReconciliationStatus.NO_COST_BASIS
        assert item.difference_usd == pytest.approx(100.0)

    def test_zero_price_treated_as_missing(self):
        item = self.engine.reconcile_item("dogecoin", "DOGE", 1.0, 0.0, 0.0)
        assert item.current_price is None

    def test_difference_fields(self):
        item = self.engine.reconcile_item("eth", "ETH", 1.5, 1.0, 2000.0)
        assert item.status == ReconciliationStatus.UNDER
        assert item.difference == pytest.approx(0.5)
        assert item.difference_percent == pytest.approx(50.0)
        assert item.difference_usd == pytest.approx(1000.0)

    def test_custom_settings(self):
        engine = ReconciliationEngine(EngineSettings(spam_patterns=[r"^fake"]))
        assert engine.reconcile_item("x", "FAKEDOGE", 1.0, 0.0, None) is None
        assert engine.reconcile_item("y", "claim.com", 1.0, 0.0, None) is not None


class TestReconcile:
    def setup_method(self):
        self.engine = ReconciliationEngine()

    def test_sorting_and_summary(self):
        balances = [
            WalletBalance(token_id="c", symbol="CCC", balance=1.0),
            WalletBalance(token_id="b", symbol="BBB", balance=20.0),
            WalletBalance(token_id="d", symbol="DDD", balance=3.0),
            WalletBalance(token_id="a", symbol="AAA", balance=5.0),
        ]
        entries = [
            CostBasisEntry(
                token_id="b", symbol="BBB",
                lots=(Lot(date="2024-01-01", qty=10.0, price_per_unit=1.0),),
            ),
            CostBasisEntry(
                token_id="c", symbol="CCC",
                lots=(Lot(date="2024-01-01", qty=2.0, price_per_unit=1.0),),
            ),
        ]
        report = self.engine.reconcile(balances, entries, {"a": 10.0, "b": 100.0})

        assert [i.token_id for i in report.items] == ["a", "d", "b", "c"]
        assert [i.status for i in report.items] == [
            ReconciliationStatus.NO_COST_BASIS,
            ReconciliationStatus.NO_COST_BASIS,
            ReconciliationStatus.UNDER,
            ReconciliationStatus.OVER,
        ]
        assert report.summary.total_tokens == 4
        assert report.summary.balanced == 0
        assert report.summary.needs_attention == 2
        assert report.summary.no_cost_basis == 2

    def test_ledger_only_token_is_excluded(self, btc_entry):
        report = self.engine.reconcile([], [btc_entry], {})
        assert report.items == []
        assert report.summary.total_tokens == 0

    def test_uses_ledger_quantity(self, btc_entry, wallet_balances):
        report = self.engine.reconcile(wallet_balances[:1], [btc_entry], {"bitcoin": 70000.0})
        item = report.items[0]
        assert item.cost_basis_qty == pytest.approx(1.0)
        assert item.status == ReconciliationStatus.BALANCED
        assert report.summary.balanced == 1

    def test_scam_dropped_while_doge_kept(self):
        balances = [
            WalletBalance(token_id="dogecoin", symbol="DOGE", balance=1.0),
            WalletBalance(token_id="scam", symbol="Visit http://scam.com", balance=1.0),
        ]
        report = self.engine.reconcile(balances, [], {})
        assert [i.symbol for i in report.items] == ["DOGE"]


class TestAdjustmentLot:
    def setup_method(self):
        self.engine = ReconciliationEngine()

    def test_covers_surplus(self):
        item = self.engine.reconcile_item("eth", "ETH", 1.5, 1.0, 2000.0)
        lot = adjustment_lot(item, date(2024, 5, 1))
        assert lot.qty == pytest.approx(0.5)
        assert lot.price_per_unit == 0.0
        assert lot.date == "2024-05-01"
        assert lot.notes == ADJUSTMENT_NOTE

    def test_no_cost_basis_covers_whole_balance(self):
        item = self.engine.reconcile_item("dogecoin", "DOGE", 42.0, 0.0, None)
        lot = adjustment_lot(item, date(2024, 5, 1))
        assert lot.qty == 42.0
        assert LotValidator(allow_zero_price=True).validate([lot]).valid
        assert not LotValidator().validate([lot]).valid
