"""Normalization layer: lot validation and the cost-basis ledger."""

from cryptobasis.normalization.ledger import Ledger, load_ledger, merge_lots, save_ledger
from cryptobasis.normalization.validator import LotValidator, ValidationIssue, ValidationResult

__all__ = [
    "Ledger",
    "LotValidator",
    "ValidationIssue",
    "ValidationResult",
    "load_ledger",
    "merge_lots",
    "save_ledger",
]
