"""Report output models. All of these are derived views, never persisted."""

from pydantic import BaseModel, Field

from cryptobasis.models.enums import AccountingMethod, ReconciliationStatus
from cryptobasis.models.lot import Lot


class PnLResult(BaseModel):
    token_id: str
    symbol: str

    total_qty: float
    current_price: float
    current_value: float

    total_cost_basis: float
    average_cost: float

    unrealized_pnl: float
    # 0 when total_cost_basis is 0, which means "undefined", not breakeven
    unrealized_pnl_percent: float
    realized_pnl: float

    method: AccountingMethod
    oversold_qty: float = 0.0


class PortfolioPnLSummary(BaseModel):
    total_value: float = 0.0
    total_cost_basis: float = 0.0
    total_unrealized_pnl: float = 0.0
    total_unrealized_pnl_percent: float = 0.0
    total_realized_pnl: float = 0.0
    method: AccountingMethod = AccountingMethod.FIFO
    by_token: list[PnLResult] = Field(default_factory=list)


class SellAllocation(BaseModel):
    # Position in the method's sorted buy order; -1 for the average method
    lot_index: int
    qty_from_lot: float
    cost_basis: float
    sale_proceeds: float
    realized_pnl: float


class SellSimulation(BaseModel):
    """Outcome of a hypothetical sale; the ledger is left untouched."""

    method: AccountingMethod
    sell_qty: float
    sell_price: float
    allocations: list[SellAllocation] = Field(default_factory=list)
    total_realized_pnl: float = 0.0
    remaining_lots: list[Lot] = Field(default_factory=list)
    unfilled_qty: float = 0.0

    @property
    def total_cost_basis(self) -> float:
        return sum(a.cost_basis for a in self.allocations)

    @property
    def total_proceeds(self) -> float:
        return sum(a.sale_proceeds for a in self.allocations)


class ReconciliationItem(BaseModel):
    token_id: str
    symbol: str
    wallet_balance: float
    cost_basis_qty: float
    difference: float
    difference_percent: float
    current_price: float | None = None
    difference_usd: float | None = None
    status: ReconciliationStatus


class ReconciliationSummary(BaseModel):
    total_tokens: int = 0
    balanced: int = 0
    needs_attention: int = 0
    no_cost_basis: int = 0


class ReconciliationReport(BaseModel):
    items: list[ReconciliationItem] = Field(default_factory=list)
    summary: ReconciliationSummary = Field(default_factory=ReconciliationSummary)


class ImportSummary(BaseModel):
    token_id: str
    symbol: str
    lots_imported: int
    total_lots: int
    merged: bool
