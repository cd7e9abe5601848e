"""Runtime settings, read from the environment."""

import os
from dataclasses import dataclass, replace
from decimal import Decimal
from pathlib import Path
from typing import Mapping, Optional

from walletledger.utils.amount_parser import to_decimal


@dataclass(frozen=True)
class Settings:
    """Settings shared by the CLI and the domain services."""

    database_path: Optional[str] = None
    # TODO: source the region from wallet data once wallets carry one.
    region: str = "GLOBAL"
    balance_tolerance: Decimal = Decimal("0.01")
    currency: str = "USD"
    log_level: str = "WARNING"

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from WALLETLEDGER_* environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Raises:
        ValueError: If WALLETLEDGER_BALANCE_TOLERANCE is not a number
    """
    env = os.environ if environ is None else environ
    defaults = Settings()
    tolerance = env.get("WALLETLEDGER_BALANCE_TOLERANCE")
    return Settings(
        database_path=env.get("WALLETLEDGER_DB_PATH"),
        region=env.get("WALLETLEDGER_REGION", defaults.region).upper(),
        balance_tolerance=to_decimal(tolerance) if tolerance else defaults.balance_tolerance,
        currency=env.get("WALLETLEDGER_CURRENCY", defaults.currency).upper(),
        log_level=env.get("WALLETLEDGER_LOG_LEVEL", defaults.log_level).upper(),
    )


def default_database_path() -> str:
    """Default to ~/.walletledger/walletledger.db, creating the directory."""
    db_dir = Path.home() / ".walletledger"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "walletledger.db")
