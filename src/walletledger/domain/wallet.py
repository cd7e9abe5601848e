"""Wallet domain service."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from walletledger.database.base import Database
from walletledger.domain.entities import DEFAULT_TIER, OWNER_TYPES, TIERS, Wallet as WalletEntity
from walletledger.domain.errors import ValidationError, WalletNotFound, wallet_not_found
from walletledger.utils.amount_parser import round_money
from walletledger.utils.date_parser import month_start, utcnow

logger = logging.getLogger(__name__)


def effective_monthly_count(wallet: WalletEntity, now: Optional[datetime] = None) -> int:
    """Transactions counted against this calendar month (UTC).

    A counter last reset before the current month is stale and reads as 0.
    """
    period_start = month_start(now or utcnow())
    if wallet.counter_reset_at is None or wallet.counter_reset_at < period_start:
        return 0
    return wallet.monthly_transaction_count


def _validate_tier(tier: str) -> str:
    tier = tier.upper()
    if tier not in TIERS:
        raise ValidationError(f"Unknown tier '{tier}'. Expected one of: {', '.join(TIERS)}")
    return tier


class WalletService:
    """Service for managing wallets."""

    def __init__(self, db: Database):
        """Initialize wallet service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_wallet(
        self,
        owner_ref: str,
        owner_type: str = "user",
        tier: str = DEFAULT_TIER,
        currency: str = "USD",
        initial_balance=Decimal("0"),
    ) -> int:
        """Create a wallet for an owner.

        Args:
            owner_ref: Unique reference of the owning user, merchant or driver
            owner_type: One of user, merchant, driver
            tier: Wallet tier
            currency: ISO currency code
            initial_balance: Opening balance

        Returns:
            Wallet ID

        Raises:
            ValidationError: If any argument is invalid
            ConflictError: If the owner already has a wallet
        """
        owner_ref = owner_ref.strip() if owner_ref else ""
        if not owner_ref:
            raise ValidationError("Owner reference cannot be empty")
        if owner_type not in OWNER_TYPES:
            raise ValidationError(f"Unknown owner type '{owner_type}'. Expected one of: {', '.join(OWNER_TYPES)}")
        try:
            balance = round_money(initial_balance)
        except ValueError as e:
            raise ValidationError(str(e))
        if balance < 0:
            raise ValidationError("Initial balance cannot be negative")

        wallet_id = self.db.create_wallet(
            owner_ref=owner_ref,
            owner_type=owner_type,
            tier=_validate_tier(tier),
            currency=currency.upper(),
            balance=balance,
        )
        logger.info("Created wallet %s for %s %s", wallet_id, owner_type, owner_ref)
        return wallet_id

    def get_wallet(self, owner_ref: str) -> WalletEntity:
        """Get wallet by owner reference.

        Raises:
            WalletNotFound: If the owner has no wallet
        """
        wallet = self.db.get_wallet_by_owner(owner_ref)
        if wallet is None:
            raise WalletNotFound(wallet_not_found(owner_ref))
        return wallet

    def list_wallets(self, tier: Optional[str] = None) -> list[WalletEntity]:
        """List all wallets, optionally for one tier."""
        return self.db.list_wallets(tier=_validate_tier(tier) if tier else None)

    def deposit(self, owner_ref: str, amount) -> WalletEntity:
        """Credit a wallet.

        Raises:
            ValidationError: If amount is not positive
            WalletNotFound: If the owner has no wallet
        """
        try:
            amount = round_money(amount)
        except ValueError as e:
            raise ValidationError(str(e))
        if amount <= 0:
            raise ValidationError("Deposit amount must be greater than zero")
        wallet = self.get_wallet(owner_ref)
        self.db.credit_wallet(wallet.id, amount)
        logger.info("Deposited %s %s into wallet %s", amount, wallet.currency, owner_ref)
        return self.get_wallet(owner_ref)

    def set_active(self, owner_ref: str, is_active: bool) -> WalletEntity:
        """Activate or deactivate a wallet. Wallets are never deleted."""
        wallet = self.get_wallet(owner_ref)
        self.db.update_wallet(wallet.id, is_active=is_active)
        logger.info("%s wallet %s", "Activated" if is_active else "Deactivated", owner_ref)
        return self.get_wallet(owner_ref)

    def set_tier(self, owner_ref: str, tier: str) -> WalletEntity:
        """Move a wallet to another tier."""
        wallet = self.get_wallet(owner_ref)
        self.db.update_wallet(wallet.id, tier=_validate_tier(tier))
        return self.get_wallet(owner_ref)
