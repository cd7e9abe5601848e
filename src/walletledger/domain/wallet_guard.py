"""Transaction eligibility checks for wallets."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from walletledger.database.base import Database
from walletledger.domain.entities import DEFAULT_TIER, WILDCARD_REGION, Eligibility
from walletledger.domain.errors import (
    AmountExceedsLimit,
    EligibilityError,
    InsufficientBalance,
    MonthlyLimitReached,
    ValidationError,
    WalletInactive,
    WalletNotFound,
    insufficient_balance,
    wallet_not_found,
)
from walletledger.domain.fee_calculator import compute_fee
from walletledger.domain.fee_catalog import FeeCatalog
from walletledger.domain.wallet import effective_monthly_count
from walletledger.utils.amount_parser import round_money
from walletledger.utils.date_parser import utcnow

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class TierLimits:
    max_monthly_transactions: int
    max_amount: Decimal


TRANSACTION_LIMITS = {
    "BASIC": TierLimits(10, Decimal("500")),
    "STANDARD": TierLimits(50, Decimal("2000")),
    "PREMIUM": TierLimits(150, Decimal("10000")),
    "VIP": TierLimits(500, Decimal("50000")),
}


def limits_for(tier: str) -> TierLimits:
    """Limits for a tier; unknown tiers get STANDARD limits."""
    return TRANSACTION_LIMITS.get(tier, TRANSACTION_LIMITS[DEFAULT_TIER])


class WalletGuard:
    """Read-only gate deciding whether a wallet may transact, and at what fee.

    Nothing is reserved or counted here. The balance is enforced again by
    the conditional debit when the transaction is committed.
    """

    def __init__(
        self,
        db: Database,
        catalog: Optional[FeeCatalog] = None,
        region: str = WILDCARD_REGION,
        tolerance: Decimal = DEFAULT_TOLERANCE,
    ):
        """Initialize wallet guard.

        Args:
            db: Database instance
            catalog: Fee catalog used for pricing
            region: Region used for fee selection
            tolerance: Absolute slack allowed when comparing balance to total
        """
        self.db = db
        self.catalog = catalog or FeeCatalog(db)
        self.region = region
        self.tolerance = tolerance

    def check_eligibility(
        self,
        wallet_ref: str,
        amount,
        transaction_type: str = "transfer",
        now: Optional[datetime] = None,
    ) -> Eligibility:
        """Check that a wallet can perform a transaction and price it.

        Args:
            wallet_ref: Owner reference of the wallet
            amount: Transaction amount
            transaction_type: Transaction type used for fee selection
            now: Moment of the check (defaults to current UTC time)

        Returns:
            Eligibility carrying the fee, fee type and total

        Raises:
            ValidationError: If amount is not a positive number
            WalletNotFound: If no wallet has this reference
            WalletInactive: If the wallet is deactivated
            InsufficientBalance: If balance + tolerance < amount + fee
            MonthlyLimitReached: If the tier's monthly transaction count is used up
            AmountExceedsLimit: If amount exceeds the tier's per-transaction cap
        """
        try:
            amount = round_money(amount)
        except ValueError as e:
            raise ValidationError(str(e))
        if amount <= 0:
            raise ValidationError("Amount must be greater than zero")

        moment = now or utcnow()
        wallet = self.db.get_wallet_by_owner(wallet_ref)
        if wallet is None:
            raise WalletNotFound(wallet_not_found(wallet_ref))

        try:
            if not wallet.is_active:
                raise WalletInactive(f"Wallet '{wallet_ref}' is inactive")

            rule = self.catalog.select_fee_rule(transaction_type, amount, wallet.tier, self.region, moment)
            fee = compute_fee(rule, amount)
            total = amount + fee

            if wallet.balance + self.tolerance < total:
                raise InsufficientBalance(insufficient_balance(total, wallet.balance))

            limits = limits_for(wallet.tier)
            count = effective_monthly_count(wallet, moment)
            if count >= limits.max_monthly_transactions:
                raise MonthlyLimitReached(
                    f"Monthly transaction limit reached for {wallet.tier} tier "
                    f"({limits.max_monthly_transactions} transactions)"
                )
            if amount > limits.max_amount:
                raise AmountExceedsLimit(
                    f"Amount {amount} exceeds the {wallet.tier} tier limit of {limits.max_amount}"
                )
        except EligibilityError as e:
            logger.warning("Wallet %s rejected (%s): %s", wallet_ref, e.reason, e)
            raise

        return Eligibility(
            wallet=wallet,
            fee_amount=fee,
            fee_type=rule.fee_type,
            total_amount=total,
            fee_rule=rule,
        )
