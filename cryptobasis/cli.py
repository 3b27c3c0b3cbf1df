"""Typer CLI interface for cryptobasis."""

import json
import logging
from datetime import date
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from cryptobasis.config import EngineSettings, load_settings
from cryptobasis.engines.lot_matcher import LotMatcher
from cryptobasis.engines.portfolio import PortfolioCalculator, resolve_prices
from cryptobasis.engines.reconciliation import ReconciliationEngine, adjustment_lot
from cryptobasis.engines.simulator import SellSimulator, build_sell_lot
from cryptobasis.exceptions import (
    CostBasisError,
    CSVImportError,
    LotIndexError,
    LotValidationError,
)
from cryptobasis.ingestion.parser import parse_csv_file
from cryptobasis.models.enums import ReconciliationStatus, parse_method
from cryptobasis.models.lot import Lot, WalletBalance
from cryptobasis.normalization.ledger import Ledger, load_ledger, save_ledger
from cryptobasis.normalization.validator import LotValidator
from cryptobasis.reports import PnLReportGenerator, ReconciliationReportGenerator

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="cryptobasis",
    help="cryptobasis: lot-based cost basis and P&L for crypto holdings.",
    no_args_is_help=True,
)

LEDGER_OPTION = typer.Option(
    None,
    "--ledger",
    "-l",
    help="Path to the ledger JSON file (defaults to the configured ledger path)",
)


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Settings JSON file (or set CRYPTOBASIS_CONFIG)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """cryptobasis: lot-based cost basis and P&L for crypto holdings."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        ctx.obj = load_settings(config)
    except CostBasisError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)


def _settings(ctx: typer.Context) -> EngineSettings:
    return ctx.obj if isinstance(ctx.obj, EngineSettings) else EngineSettings()


def _ledger_path(ctx: typer.Context, ledger: Path | None) -> Path:
    return ledger or _settings(ctx).ledger_path


def _matcher(ctx: typer.Context) -> LotMatcher:
    return LotMatcher(_settings(ctx).epsilon)


def _load_ledger(path: Path) -> Ledger:
    try:
        return load_ledger(path)
    except CostBasisError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)


def _read_json(path: Path, what: str):
    if not path.exists():
        typer.echo(f"Error: {what} file not found: {path}", err=True)
        raise typer.Exit(1)
    try:
        return json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        typer.echo(f"Error: {what} file is not valid JSON: {exc}", err=True)
        raise typer.Exit(1)


def _load_prices(path: Path | None) -> dict[str, float]:
    """Read a {token_id: usd_price} mapping."""
    if path is None:
        return {}
    raw = _read_json(path, "Prices")
    if not isinstance(raw, dict):
        typer.echo("Error: Prices file must be a JSON object of token_id to price", err=True)
        raise typer.Exit(1)
    try:
        return {
            str(token_id): float(price) for token_id, price in raw.items() if price is not None
        }
    except (TypeError, ValueError) as exc:
        typer.echo(f"Error: Prices file has a non-numeric price: {exc}", err=True)
        raise typer.Exit(1)


def _load_balances(path: Path | None) -> list[WalletBalance]:
    """Read a list of {token_id, symbol, balance, usd_value?} records."""
    if path is None:
        return []
    raw = _read_json(path, "Balances")
    if not isinstance(raw, list):
        typer.echo("Error: Balances file must be a JSON list", err=True)
        raise typer.Exit(1)
    try:
        return [WalletBalance.model_validate(item) for item in raw]
    except ValidationError as exc:
        typer.echo(f"Error: Invalid balances file: {exc}", err=True)
        raise typer.Exit(1)


def _echo_issues(title: str, issues: list[str]) -> None:
    typer.echo(title, err=True)
    for issue in issues:
        typer.echo(f"  - {issue}", err=True)


def _save_validated(book: Ledger, lots: list[Lot], path: Path, allow_zero_price: bool = False) -> None:
    validation = LotValidator(allow_zero_price=allow_zero_price).validate(lots)
    if not validation.valid:
        _echo_issues("Invalid lot data:", validation.errors)
        raise typer.Exit(1)
    save_ledger(book, path)


@app.command(name="import")
def import_cmd(
    ctx: typer.Context,
    csv_file: Path = typer.Argument(..., help="Exchange export (.csv): Coinbase, Binance or generic"),
    symbol: str | None = typer.Option(
        None, "--symbol", "-s", help="Only import rows for this asset symbol"
    ),
    replace: bool = typer.Option(
        False, "--replace", help="Replace the token's existing lots instead of merging"
    ),
    ledger: Path | None = LEDGER_OPTION,
) -> None:
    """Import lots from an exchange CSV export into the ledger.

    The format is detected from the header row. Rows that cannot be parsed
    reject the import; rows that are skipped (transfers, missing fields) are
    listed as warnings.
    """
    if not csv_file.exists():
        typer.echo(f"Error: File not found: {csv_file}", err=True)
        raise typer.Exit(1)

    parsed = parse_csv_file(csv_file, symbol, _settings(ctx))
    for warning in parsed.warnings:
        typer.echo(f"Warning: {warning}", err=True)

    if parsed.errors:
        _echo_issues("CSV parsing errors:", parsed.errors)
        raise typer.Exit(1)

    if not parsed.lots:
        typer.echo("Error: No valid lots found in CSV", err=True)
        raise typer.Exit(1)

    path = _ledger_path(ctx, ledger)
    try:
        book, summary = _load_ledger(path).import_lots(parsed, merge=not replace)
    except LotValidationError as exc:
        _echo_issues("Invalid lot data:", [str(issue) for issue in exc.issues])
        raise typer.Exit(1)
    except CSVImportError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)
    save_ledger(book, path)

    typer.echo(
        f"Imported {summary.lots_imported} lot(s) for {summary.symbol} "
        f"({parsed.format.value} format); {summary.total_lots} lot(s) in ledger"
        + (" after merge" if summary.merged else "")
    )


@app.command(name="add-lot")
def add_lot(
    ctx: typer.Context,
    token_id: str = typer.Argument(..., help="Token identifier, e.g. bitcoin"),
    symbol: str = typer.Argument(..., help="Ticker symbol, e.g. BTC"),
    qty: float = typer.Option(..., "--qty", help="Quantity (positive)"),
    price: float = typer.Option(..., "--price", help="Price per unit in USD"),
    on: str = typer.Option(date.today().isoformat(), "--date", help="Trade date (YYYY-MM-DD)"),
    sell: bool = typer.Option(False, "--sell", help="Record a disposal instead of a buy"),
    notes: str | None = typer.Option(None, "--notes"),
    ledger: Path | None = LEDGER_OPTION,
) -> None:
    """Append one buy or sell lot for a token."""
    lot = Lot(date=on, qty=-abs(qty) if sell else abs(qty), price_per_unit=price, notes=notes)
    validation = LotValidator().validate_entry(token_id, symbol, [lot])
    if not validation.valid:
        _echo_issues("Invalid lot data:", validation.errors)
        raise typer.Exit(1)

    path = _ledger_path(ctx, ledger)
    book = _load_ledger(path).add_lot(token_id, symbol, lot, method=_settings(ctx).default_method)
    save_ledger(book, path)
    typer.echo(f"Added {'sell' if sell else 'buy'} lot to {symbol.upper()}")


@app.command(name="set-method")
def set_method(
    ctx: typer.Context,
    token_id: str = typer.Argument(..., help="Token identifier"),
    method: str = typer.Argument(..., help="fifo, lifo or average"),
    ledger: Path | None = LEDGER_OPTION,
) -> None:
    """Change the accounting method stored for a token."""
    path = _ledger_path(ctx, ledger)
    try:
        selected = parse_method(method)
        book = _load_ledger(path).set_method(token_id, selected)
    except CostBasisError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)
    save_ledger(book, path)
    typer.echo(f"{token_id} now uses {selected.value}")


@app.command(name="edit-lot")
def edit_lot(
    ctx: typer.Context,
    token_id: str = typer.Argument(..., help="Token identifier"),
    index: int = typer.Argument(..., help="Lot index as shown by `cryptobasis lots`"),
    qty: float | None = typer.Option(None, "--qty", help="Signed quantity (negative for a sell)"),
    price: float | None = typer.Option(None, "--price", help="Price per unit in USD"),
    on: str | None = typer.Option(None, "--date", help="Trade date (YYYY-MM-DD)"),
    notes: str | None = typer.Option(None, "--notes"),
    ledger: Path | None = LEDGER_OPTION,
) -> None:
    """Replace one lot, keeping any field that is not given."""
    path = _ledger_path(ctx, ledger)
    book = _load_ledger(path)
    try:
        entry = book.get(token_id)
        if not 0 <= index < len(entry.lots):
            raise LotIndexError(token_id, index, len(entry.lots))
    except CostBasisError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    current = entry.lots[index]
    lot = Lot(
        date=on if on is not None else current.date,
        qty=qty if qty is not None else current.qty,
        price_per_unit=price if price is not None else current.price_per_unit,
        notes=notes if notes is not None else current.notes,
    )
    # Zero-cost adjustment lots stay editable as long as the price is kept
    keeps_zero_price = price is None and current.price_per_unit == 0
    _save_validated(
        book.replace_lot(token_id, index, lot), [lot], path, allow_zero_price=keeps_zero_price
    )
    typer.echo(f"Updated lot {index} of {token_id}")


@app.command(name="remove-lot")
def remove_lot(
    ctx: typer.Context,
    token_id: str = typer.Argument(..., help="Token identifier"),
    index: int = typer.Argument(..., help="Lot index as shown by `cryptobasis lots`"),
    ledger: Path | None = LEDGER_OPTION,
) -> None:
    """Remove one lot; the entry is deleted with its last lot."""
    path = _ledger_path(ctx, ledger)
    try:
        book = _load_ledger(path).remove_lot(token_id, index)
    except CostBasisError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)
    save_ledger(book, path)
    typer.echo(f"Removed lot {index} from {token_id}")


@app.command()
def lots(
    ctx: typer.Context,
    token_id: str | None = typer.Argument(None, help="Only show this token"),
    ledger: Path | None = LEDGER_OPTION,
) -> None:
    """List the ledger's lots."""
    book = _load_ledger(_ledger_path(ctx, ledger))
    entries = [e for e in book.entries.values() if token_id is None or e.token_id == token_id]
    if not entries:
        typer.echo("No cost basis entries.")
        return

    console = Console()
    for entry in entries:
        table = Table(title=f"{entry.symbol} ({entry.token_id}, {entry.accounting_method.value})")
        table.add_column("#", justify="right")
        table.add_column("Date")
        table.add_column("Qty", justify="right")
        table.add_column("Price", justify="right")
        table.add_column("Notes")
        for index, lot in enumerate(entry.lots):
            table.add_row(
                str(index), lot.date, f"{lot.qty:g}", f"{lot.price_per_unit:,.2f}", lot.notes or ""
            )
        console.print(table)


@app.command()
def pnl(
    ctx: typer.Context,
    prices: Path | None = typer.Option(None, "--prices", "-p", help="JSON {token_id: usd_price}"),
    balances: Path | None = typer.Option(
        None, "--balances", "-b", help="Balances JSON used to derive missing prices"
    ),
    method: str | None = typer.Option(None, "--method", "-m", help="fifo, lifo or average"),
    token_id: str | None = typer.Option(None, "--token", "-t", help="Only this token"),
    ledger: Path | None = LEDGER_OPTION,
) -> None:
    """Show cost basis, realized and unrealized P&L."""
    try:
        selected = parse_method(method or _settings(ctx).default_method)
    except CostBasisError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    book = _load_ledger(_ledger_path(ctx, ledger))
    entries = [e for e in book.entries.values() if token_id is None or e.token_id == token_id]
    price_map = resolve_prices(_load_prices(prices), _load_balances(balances))

    summary = PortfolioCalculator(_matcher(ctx)).summarize(entries, price_map, selected)
    typer.echo(PnLReportGenerator().render(summary))


@app.command()
def simulate(
    ctx: typer.Context,
    token_id: str = typer.Argument(..., help="Token identifier"),
    qty: float = typer.Option(..., "--qty", help="Quantity to sell"),
    price: float = typer.Option(..., "--price", help="Sale price per unit"),
    method: str | None = typer.Option(None, "--method", "-m", help="fifo, lifo or average"),
    commit: bool = typer.Option(False, "--commit", help="Record the sale in the ledger"),
    on: str = typer.Option(date.today().isoformat(), "--date", help="Sale date (YYYY-MM-DD)"),
    ledger: Path | None = LEDGER_OPTION,
) -> None:
    """Preview a partial sell, optionally committing it as a sell lot."""
    path = _ledger_path(ctx, ledger)
    book = _load_ledger(path)
    try:
        entry = book.get(token_id)
        selected = parse_method(method or entry.accounting_method)
        simulation = SellSimulator(_matcher(ctx)).simulate(entry.lots, qty, price, selected)
    except CostBasisError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    typer.echo(PnLReportGenerator().render_simulation(simulation, entry.symbol))

    if commit:
        sell_lot = build_sell_lot(simulation, on)
        _save_validated(book.add_lot(token_id, entry.symbol, sell_lot), [sell_lot], path)
        typer.echo(f"Recorded sell of {qty:g} {entry.symbol}")


@app.command()
def reconcile(
    ctx: typer.Context,
    balances: Path = typer.Option(..., "--balances", "-b", help="Wallet balances JSON"),
    prices: Path | None = typer.Option(None, "--prices", "-p", help="JSON {token_id: usd_price}"),
    adjust: bool = typer.Option(
        False, "--adjust", help="Record $0-cost lots for every wallet surplus"
    ),
    on: str = typer.Option(date.today().isoformat(), "--date", help="Adjustment date (YYYY-MM-DD)"),
    ledger: Path | None = LEDGER_OPTION,
) -> None:
    """Compare ledger quantities against observed wallet balances."""
    path = _ledger_path(ctx, ledger)
    book = _load_ledger(path)
    engine = ReconciliationEngine(_settings(ctx))
    report = engine.reconcile(
        _load_balances(balances), list(book.entries.values()), _load_prices(prices)
    )
    typer.echo(ReconciliationReportGenerator().render(report))

    if not adjust:
        return

    surplus = [
        item
        for item in report.items
        if item.status in (ReconciliationStatus.UNDER, ReconciliationStatus.NO_COST_BASIS)
    ]
    if not surplus:
        typer.echo("No adjustments needed")
        return

    try:
        on_date = date.fromisoformat(on)
    except ValueError:
        typer.echo(f"Error: Invalid date: {on}", err=True)
        raise typer.Exit(1)

    added = []
    for item in surplus:
        lot = adjustment_lot(item, on_date)
        book = book.add_lot(item.token_id, item.symbol, lot, method=_settings(ctx).default_method)
        added.append(lot)
    _save_validated(book, added, path, allow_zero_price=True)
    typer.echo(f"Recorded {len(added)} zero-cost adjustment lot(s)")


if __name__ == "__main__":
    app()
