"""Lot validation: structural checks run before lots enter the ledger."""

import math
import re
from datetime import date

from pydantic import BaseModel, Field

from cryptobasis.models.lot import Lot

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MAX_NOTES_LENGTH = 500
MAX_TOKEN_ID_LENGTH = 100
MAX_SYMBOL_LENGTH = 20


class ValidationIssue(BaseModel):
    # 1-based position of the lot in the candidate list; 0 for entry fields
    index: int
    field: str
    message: str

    def __str__(self) -> str:
        if self.index == 0:
            return f"{self.field}: {self.message}"
        return f"Lot {self.index}: {self.field}: {self.message}"


class ValidationResult(BaseModel):
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues

    @property
    def errors(self) -> list[str]:
        return [str(issue) for issue in self.issues]


class LotValidator:
    """Reports every invariant violation in a batch of candidate lots.

    Args:
        allow_zero_price: Accept ``price_per_unit == 0``, as used by zero-cost
            reconciliation adjustments.
    """

    def __init__(self, allow_zero_price: bool = False):
        self.allow_zero_price = allow_zero_price

    def validate(self, lots: list[Lot] | tuple[Lot, ...]) -> ValidationResult:
        issues: list[ValidationIssue] = []
        for position, lot in enumerate(lots, start=1):
            issues.extend(self._check_lot(position, lot))
        return ValidationResult(issues=issues)

    def validate_entry(
        self, token_id: str, symbol: str, lots: list[Lot] | tuple[Lot, ...]
    ) -> ValidationResult:
        """Validate a whole cost-basis entry: identifiers plus every lot."""
        issues: list[ValidationIssue] = []
        if not token_id or len(token_id) > MAX_TOKEN_ID_LENGTH:
            issues.append(ValidationIssue(
                index=0,
                field="token_id",
                message=f"Token ID is required (max {MAX_TOKEN_ID_LENGTH} characters)",
            ))
        if not symbol or len(symbol) > MAX_SYMBOL_LENGTH:
            issues.append(ValidationIssue(
                index=0,
                field="symbol",
                message=f"Symbol is required (max {MAX_SYMBOL_LENGTH} characters)",
            ))
        if not lots:
            issues.append(ValidationIssue(
                index=0, field="lots", message="At least one lot is required"
            ))
        issues.extend(self.validate(lots).issues)
        return ValidationResult(issues=issues)

    def _check_lot(self, position: int, lot: Lot) -> list[ValidationIssue]:
        issues = []
        if not _is_calendar_date(lot.date):
            issues.append(ValidationIssue(
                index=position,
                field="date",
                message="Invalid date format (expected YYYY-MM-DD)",
            ))
        if not math.isfinite(lot.qty) or lot.qty == 0:
            issues.append(ValidationIssue(
                index=position,
                field="qty",
                message="Quantity must be a non-zero number",
            ))
        price_ok = lot.price_per_unit >= 0 if self.allow_zero_price else lot.price_per_unit > 0
        if not math.isfinite(lot.price_per_unit) or not price_ok:
            issues.append(ValidationIssue(
                index=position,
                field="price_per_unit",
                message="Price must be a positive number",
            ))
        if lot.notes is not None and len(lot.notes) > MAX_NOTES_LENGTH:
            issues.append(ValidationIssue(
                index=position,
                field="notes",
                message=f"Notes must be at most {MAX_NOTES_LENGTH} characters",
            ))
        return issues


def _is_calendar_date(value: str) -> bool:
    if not value or not _DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True
