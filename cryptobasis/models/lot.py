"""Core lot and cost-basis entry models."""

from pydantic import BaseModel, ConfigDict, Field

from cryptobasis.models.enums import AccountingMethod, EntrySource


class Lot(BaseModel):
    """One recorded buy (qty > 0) or sell (qty < 0) for an asset.

    Invariants (canonical date, non-zero qty, positive price) are checked by
    LotValidator rather than here, so that a bad candidate can still be
    reported alongside every other problem in its batch.
    """

    model_config = ConfigDict(frozen=True)

    date: str
    qty: float
    price_per_unit: float
    notes: str | None = None

    @property
    def is_buy(self) -> bool:
        return self.qty > 0

    @property
    def is_sell(self) -> bool:
        return self.qty < 0

    @property
    def value(self) -> float:
        return abs(self.qty) * self.price_per_unit


class CostBasisEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    token_id: str
    symbol: str
    accounting_method: AccountingMethod = AccountingMethod.FIFO
    source: EntrySource = EntrySource.MANUAL
    lots: tuple[Lot, ...] = Field(default_factory=tuple)

    def with_lots(self, lots: list[Lot] | tuple[Lot, ...], **changes) -> "CostBasisEntry":
        """Return a copy holding ``lots`` (plus any other field changes)."""
        return self.model_copy(update={"lots": tuple(lots), **changes})


class WalletBalance(BaseModel):
    """Externally observed balance of one asset in one wallet."""

    token_id: str
    symbol: str
    balance: float
    usd_value: float | None = None
