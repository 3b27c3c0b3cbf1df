"""Engine settings: numeric thresholds, heuristics and default paths."""

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from cryptobasis.exceptions import ConfigError
from cryptobasis.models.enums import AccountingMethod

CONFIG_ENV_VAR = "CRYPTOBASIS_CONFIG"
DEFAULT_LEDGER_PATH = Path.home() / ".cryptobasis" / "ledger.json"

# Lot fragments at or below this quantity are floating-point residue
EPSILON = 1e-8

DEFAULT_SPAM_PATTERNS: list[str] = [
    r"https?://",
    r"\.com|\.org|\.net|\.io",
    r"claim|reward|airdrop",
    r"visit\s+",
    r"^0x[a-f0-9]{20,}",
]

DEFAULT_QUOTE_CURRENCIES: list[str] = ["USDT", "USDC", "BUSD", "USD", "BTC", "ETH", "BNB"]


class EngineSettings(BaseModel):
    epsilon: float = Field(default=EPSILON, gt=0)

    # |wallet - ledger| / wallet below this counts as balanced (0.1%)
    balance_threshold: float = Field(default=0.001, gt=0)
    dust_qty: float = Field(default=1e-5, ge=0)
    dust_usd: float = Field(default=0.01, ge=0)
    min_usd_without_cost_basis: float = Field(default=10.0, ge=0)
    spam_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_SPAM_PATTERNS))

    quote_currencies: list[str] = Field(default_factory=lambda: list(DEFAULT_QUOTE_CURRENCIES))
    default_method: AccountingMethod = AccountingMethod.FIFO
    ledger_path: Path = DEFAULT_LEDGER_PATH


def load_settings(path: Path | None = None) -> EngineSettings:
    """Load settings from a JSON file.

    Falls back to the file named by $CRYPTOBASIS_CONFIG, then to defaults.
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if not env_path:
            return EngineSettings()
        path = Path(env_path)

    if not path.exists():
        raise ConfigError(str(path), "file not found")

    try:
        raw = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError(str(path), f"invalid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(str(path), "expected a JSON object")

    try:
        return EngineSettings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(str(path), str(exc)) from exc
