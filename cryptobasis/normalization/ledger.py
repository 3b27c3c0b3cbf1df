"""Ledger: the set of cost-basis entries, changed only by returning new copies.

The legal mutations are append, replace-at-index and remove-at-index. An
entry is created with its first lot and dropped with its last one.
"""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cryptobasis.exceptions import (
    CSVImportError,
    EntryNotFoundError,
    LedgerFileError,
    LotIndexError,
    LotValidationError,
)
from cryptobasis.ingestion.base import ParsedCSV
from cryptobasis.models.enums import AccountingMethod, EntrySource
from cryptobasis.models.lot import CostBasisEntry, Lot
from cryptobasis.models.reports import ImportSummary
from cryptobasis.normalization.validator import LotValidator

logger = logging.getLogger(__name__)


def _dedup_key(lot: Lot) -> tuple[str, float, float]:
    return (lot.date, lot.qty, lot.price_per_unit)


def merge_lots(existing: tuple[Lot, ...] | list[Lot], incoming: list[Lot]) -> list[Lot]:
    """Combine two lot lists, dropping incoming lots already present.

    Lots are considered equal when date, quantity and price all match.
    """
    seen = {_dedup_key(lot) for lot in existing}
    merged = list(existing)
    for lot in incoming:
        key = _dedup_key(lot)
        if key not in seen:
            seen.add(key)
            merged.append(lot)
    return merged


class Ledger(BaseModel):
    model_config = ConfigDict(frozen=True)

    entries: dict[str, CostBasisEntry] = Field(default_factory=dict)

    def get(self, token_id: str) -> CostBasisEntry:
        try:
            return self.entries[token_id]
        except KeyError:
            raise EntryNotFoundError(token_id) from None

    def _with_entry(self, token_id: str, entry: CostBasisEntry | None) -> "Ledger":
        entries = dict(self.entries)
        if entry is None:
            entries.pop(token_id, None)
        else:
            entries[token_id] = entry
        return self.model_copy(update={"entries": entries})

    def add_lot(
        self,
        token_id: str,
        symbol: str,
        lot: Lot,
        method: AccountingMethod | None = None,
    ) -> "Ledger":
        """Append a lot, creating the entry when this is the token's first lot."""
        entry = self.entries.get(token_id)
        if entry is None:
            entry = CostBasisEntry(
                token_id=token_id,
                symbol=symbol.upper(),
                accounting_method=method or AccountingMethod.FIFO,
                lots=(lot,),
            )
        else:
            entry = entry.with_lots((*entry.lots, lot))
        return self._with_entry(token_id, entry)

    def replace_lot(self, token_id: str, index: int, lot: Lot) -> "Ledger":
        entry = self.get(token_id)
        self._check_index(entry, index)
        lots = [lot if pos == index else existing for pos, existing in enumerate(entry.lots)]
        return self._with_entry(token_id, entry.with_lots(lots))

    def remove_lot(self, token_id: str, index: int) -> "Ledger":
        """Remove one lot; removing the last lot deletes the entry."""
        entry = self.get(token_id)
        self._check_index(entry, index)
        lots = [existing for pos, existing in enumerate(entry.lots) if pos != index]
        if not lots:
            logger.info("Last lot removed; deleting entry %s", token_id)
            return self._with_entry(token_id, None)
        return self._with_entry(token_id, entry.with_lots(lots))

    def remove_entry(self, token_id: str) -> "Ledger":
        self.get(token_id)
        return self._with_entry(token_id, None)

    def set_method(self, token_id: str, method: AccountingMethod) -> "Ledger":
        entry = self.get(token_id)
        return self._with_entry(token_id, entry.model_copy(update={"accounting_method": method}))

    def import_lots(self, parsed: ParsedCSV, merge: bool = True) -> tuple["Ledger", ImportSummary]:
        """Commit parsed CSV lots under the parsed token.

        With ``merge`` the new lots are added to the existing ones (skipping
        duplicates); otherwise they replace them. The result is ordered by
        date, ties keeping their previous order.

        Raises:
            CSVImportError: The parse produced row errors, no lots, or lots
                for more than one asset.
            LotValidationError: A parsed lot breaks a lot invariant.
        """
        if parsed.errors:
            raise CSVImportError(
                parsed.format.value, f"{len(parsed.errors)} row(s) could not be parsed"
            )
        if not parsed.lots:
            raise CSVImportError(parsed.format.value, "no valid lots found")
        if len(parsed.symbols) > 1:
            raise CSVImportError(
                parsed.format.value,
                f"lots for several assets ({', '.join(parsed.symbols)})",
            )
        validation = LotValidator().validate(parsed.lots)
        if not validation.valid:
            raise LotValidationError(validation.issues)

        token_id = parsed.token_id
        existing = self.entries.get(token_id)
        merged = existing is not None and merge

        if merged:
            lots = merge_lots(existing.lots, parsed.lots)
        else:
            lots = list(parsed.lots)
        lots.sort(key=lambda lot: lot.date)

        if existing is None:
            entry = CostBasisEntry(
                token_id=token_id,
                symbol=parsed.symbol,
                source=EntrySource.CSV_IMPORT,
                lots=tuple(lots),
            )
        else:
            entry = existing.with_lots(lots, source=EntrySource.CSV_IMPORT)

        summary = ImportSummary(
            token_id=token_id,
            symbol=entry.symbol,
            lots_imported=len(parsed.lots),
            total_lots=len(lots),
            merged=merged,
        )
        return self._with_entry(token_id, entry), summary

    @staticmethod
    def _check_index(entry: CostBasisEntry, index: int) -> None:
        if index < 0 or index >= len(entry.lots):
            raise LotIndexError(entry.token_id, index, len(entry.lots))


def load_ledger(path: Path) -> Ledger:
    """Load a ledger JSON file; a missing file is an empty ledger.

    Raises:
        LedgerFileError: The file is not valid JSON or not a ledger.
    """
    if not path.exists():
        return Ledger()
    try:
        raw = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise LedgerFileError(str(path), f"invalid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise LedgerFileError(str(path), "expected a JSON object with an 'entries' list")
    try:
        entries = [CostBasisEntry.model_validate(item) for item in raw.get("entries", [])]
    except ValidationError as exc:
        raise LedgerFileError(str(path), str(exc)) from exc
    return Ledger(entries={entry.token_id: entry for entry in entries})


def save_ledger(ledger: Ledger, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "entries": [
            entry.model_dump(mode="json", exclude_none=True)
            for entry in ledger.entries.values()
        ]
    }
    path.write_text(json.dumps(payload, indent=2))
