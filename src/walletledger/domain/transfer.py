"""Wallet-to-wallet transfers."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from walletledger.database.base import Database
from walletledger.domain.entities import WILDCARD_REGION, FeeLine, PartySnapshot, TransferResult, Wallet
from walletledger.domain.errors import (
    InsufficientBalance,
    ValidationError,
    WalletInactive,
    WalletNotFound,
    insufficient_balance,
    wallet_not_found,
)
from walletledger.domain.fee_catalog import FeeCatalog
from walletledger.domain.ledger import LedgerJournal
from walletledger.domain.references import REVENUE_PREFIX, TRANSFER_PREFIX
from walletledger.domain.revenue import RevenueRecognizer, RevenueRequest
from walletledger.domain.transaction import TransactionPoster, TransactionRequest
from walletledger.domain.wallet_guard import DEFAULT_TOLERANCE, WalletGuard
from walletledger.utils.amount_parser import round_money
from walletledger.utils.date_parser import month_start, utcnow

logger = logging.getLogger(__name__)


def _snapshot(wallet: Wallet) -> PartySnapshot:
    role = "customer" if wallet.owner_type == "user" else wallet.owner_type
    return PartySnapshot(id=wallet.owner_ref, role=role, tier=wallet.tier)


class TransferService:
    """Moves money between two wallets and books the fee."""

    def __init__(
        self,
        db: Database,
        region: str = WILDCARD_REGION,
        tolerance: Decimal = DEFAULT_TOLERANCE,
        catalog: Optional[FeeCatalog] = None,
    ):
        self.db = db
        self.region = region
        journal = LedgerJournal(db)
        self.guard = WalletGuard(db, catalog=catalog or FeeCatalog(db), region=region, tolerance=tolerance)
        self.poster = TransactionPoster(db, journal=journal)
        self.recognizer = RevenueRecognizer(db, journal=journal)

    def transfer(
        self,
        sender_ref: str,
        receiver_ref: str,
        amount,
        description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TransferResult:
        """Transfer ``amount`` from sender to receiver, charging the sender the fee.

        Eligibility is checked on the sender. The debit, credit, transaction,
        ledger entries and pending revenue record are then written in one
        atomic session; the debit itself is conditional on the balance still
        covering amount + fee when it executes.

        Raises:
            ValidationError: Non-positive amount, self-transfer or currency mismatch
            WalletNotFound: Either wallet is missing
            EligibilityError: Sender is not eligible (see WalletGuard), or the
                receiver is inactive
        """
        try:
            amount = round_money(amount)
        except ValueError as e:
            raise ValidationError(str(e))
        if amount <= 0:
            raise ValidationError("Transfer amount must be greater than zero")
        if sender_ref == receiver_ref:
            raise ValidationError("Cannot transfer to the same wallet")

        moment = now or utcnow()
        eligibility = self.guard.check_eligibility(sender_ref, amount, "transfer", moment)
        sender = eligibility.wallet

        receiver = self.db.get_wallet_by_owner(receiver_ref)
        if receiver is None:
            raise WalletNotFound(wallet_not_found(receiver_ref))
        if not receiver.is_active:
            raise WalletInactive(f"Wallet '{receiver_ref}' is inactive")
        if receiver.currency != sender.currency:
            raise ValidationError(
                f"Currency mismatch: sender holds {sender.currency}, receiver holds {receiver.currency}"
            )

        fee = eligibility.fee_amount
        total = eligibility.total_amount
        fees = ()
        if fee > 0:
            fees = (
                FeeLine(
                    fee_amount=fee,
                    fee_type=eligibility.fee_type,
                    currency=sender.currency,
                    description=eligibility.fee_rule.description or "Transfer fee",
                ),
            )
        transaction_ref = self.poster.references.generate(TRANSFER_PREFIX)
        revenue_ref = f"{REVENUE_PREFIX}-{transaction_ref}" if fees else None

        with self.db.atomic():
            self.db.reset_monthly_counter(sender.id, month_start(moment))
            if not self.db.debit_wallet(sender.id, total, count_transaction=True):
                current = self.db.get_wallet(sender.id)
                if current is not None and not current.is_active:
                    raise WalletInactive(f"Wallet '{sender_ref}' is inactive")
                available = current.balance if current is not None else Decimal("0")
                raise InsufficientBalance(insufficient_balance(total, available))
            self.db.credit_wallet(receiver.id, amount)

            self.poster.post_transaction(
                TransactionRequest(
                    transaction_type="transfer",
                    transfer_amount=amount,
                    sender=_snapshot(sender),
                    receiver=_snapshot(receiver),
                    fees=fees,
                    currency=sender.currency,
                    status="completed",
                    transaction_ref=transaction_ref,
                    transaction_date=moment,
                    notes=description,
                )
            )
            if fees:
                self.recognizer.record_revenue(
                    RevenueRequest(
                        amount=fee,
                        revenue_type=eligibility.fee_type,
                        currency=sender.currency,
                        associated_transaction_ref=transaction_ref,
                        revenue_ref=revenue_ref,
                        transaction_date=moment,
                        description=f"Fee from transaction {transaction_ref}",
                        region=self.region,
                    )
                )

        sender_balance = self.db.get_wallet(sender.id).balance
        logger.info(
            "Transfer %s: %s -> %s, %s %s (fee %s)",
            transaction_ref,
            sender_ref,
            receiver_ref,
            amount,
            sender.currency,
            fee,
        )
        return TransferResult(
            transaction_ref=transaction_ref,
            revenue_ref=revenue_ref,
            amount=amount,
            fee_amount=fee,
            fee_type=eligibility.fee_type,
            sender_balance=sender_balance,
        )
