"""Shared test fixtures for cryptobasis."""

from pathlib import Path

import pytest

from cryptobasis.models.enums import AccountingMethod
from cryptobasis.models.lot import CostBasisEntry, Lot, WalletBalance
from cryptobasis.normalization.ledger import Ledger, save_ledger


@pytest.fixture
def btc_lots() -> list[Lot]:
    """Two buys and one partial sell."""
    return [
        Lot(date="2024-01-01", qty=1.0, price_per_unit=40000.0),
        Lot(date="2024-02-01", qty=0.5, price_per_unit=50000.0),
        Lot(date="2024-03-01", qty=-0.5, price_per_unit=60000.0),
    ]


@pytest.fixture
def btc_buys(btc_lots: list[Lot]) -> list[Lot]:
    return [lot for lot in btc_lots if lot.qty > 0]


@pytest.fixture
def btc_entry(btc_lots: list[Lot]) -> CostBasisEntry:
    return CostBasisEntry(token_id="bitcoin", symbol="BTC", lots=tuple(btc_lots))


@pytest.fixture
def eth_entry() -> CostBasisEntry:
    return CostBasisEntry(
        token_id="ethereum",
        symbol="ETH",
        accounting_method=AccountingMethod.AVERAGE,
        lots=(Lot(date="2024-01-10", qty=1.0, price_per_unit=2000.0),),
    )


@pytest.fixture
def sample_ledger(btc_entry: CostBasisEntry, eth_entry: CostBasisEntry) -> Ledger:
    return Ledger(entries={btc_entry.token_id: btc_entry, eth_entry.token_id: eth_entry})


@pytest.fixture
def ledger_path(tmp_path: Path) -> Path:
    return tmp_path / "ledger.json"


@pytest.fixture
def saved_ledger(sample_ledger: Ledger, ledger_path: Path) -> Path:
    save_ledger(sample_ledger, ledger_path)
    return ledger_path


@pytest.fixture
def wallet_balances() -> list[WalletBalance]:
    return [
        WalletBalance(token_id="bitcoin", symbol="BTC", balance=1.0, usd_value=70000.0),
        WalletBalance(token_id="ethereum", symbol="ETH", balance=1.5),
    ]


@pytest.fixture
def coinbase_csv() -> str:
    return (
        "Timestamp,Transaction Type,Asset,Quantity Transacted,Spot Price Currency,"
        "Spot Price at Transaction,Subtotal,Total (inclusive of fees and/or spread),"
        "Fees and/or Spread,Notes\n"
        "2024-01-15T10:30:00Z,Buy,BTC,0.5,USD,42000.00,21000.00,21100.00,100.00,"
        "Bought 0.5 BTC\n"
        "2024-01-20T12:00:00Z,Send,BTC,0.1,USD,43000.00,,,,Sent to wallet\n"
    )


@pytest.fixture
def binance_csv() -> str:
    return (
        "Date(UTC),Pair,Side,Price,Executed,Amount,Fee\n"
        "2024-01-15 10:30:00,BTCUSDT,BUY,42000,0.5BTC,21000USDT,0.0005BTC\n"
        "2024-02-01 09:00:00,BTCUSDT,SELL,45000,0.2BTC,9000USDT,9USDT\n"
    )


@pytest.fixture
def generic_csv() -> str:
    return (
        "date,type,symbol,quantity,price,notes\n"
        "2024-01-01,buy,ETH,2,2000,first\n"
        "2024-02-01,sell,ETH,1,2500,\n"
    )
