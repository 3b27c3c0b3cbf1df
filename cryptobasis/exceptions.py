"""Custom exceptions for cryptobasis."""


class CostBasisError(Exception):
    """Base exception for cost-basis accounting errors."""


class DataValidationError(CostBasisError):
    """Raised when input data fails validation."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error on '{field}': {message}")


class LotValidationError(CostBasisError):
    """Raised by callers that refuse to persist lots with validation issues."""

    def __init__(self, issues: list):
        self.issues = issues
        details = "; ".join(str(issue) for issue in issues)
        super().__init__(f"{len(issues)} invalid lot field(s): {details}")


class UnsupportedMethodError(CostBasisError):
    """Raised when an accounting method selector is not fifo, lifo or average."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"Invalid accounting method '{value}'. Use fifo, lifo, or average."
        )


class EntryNotFoundError(CostBasisError):
    """Raised when a ledger operation references an unknown token."""

    def __init__(self, token_id: str):
        self.token_id = token_id
        super().__init__(f"No cost basis entry for token: {token_id}")


class LotIndexError(CostBasisError):
    """Raised when a lot index is outside the entry's lot list."""

    def __init__(self, token_id: str, index: int, size: int):
        self.token_id = token_id
        self.index = index
        self.size = size
        super().__init__(
            f"Lot index {index} out of range for {token_id} ({size} lot(s))"
        )


class CSVImportError(CostBasisError):
    """Raised when a CSV import cannot be committed to the ledger."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Import error from {source}: {message}")


class ConfigError(CostBasisError):
    """Raised when a settings file cannot be read or parsed."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Config error in {path}: {message}")


class LedgerFileError(CostBasisError):
    """Raised when a ledger file exists but cannot be read back."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Ledger error in {path}: {message}")
