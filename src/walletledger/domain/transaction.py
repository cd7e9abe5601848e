"""Transaction posting domain service."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from walletledger.database.base import Database
from walletledger.domain.entities import (
    CUSTOMER,
    REVENUE,
    TRANSACTION_STATUSES,
    TRANSACTION_TYPES,
    FeeLine,
    PartySnapshot,
    Transaction,
)
from walletledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    duplicate_reference,
    transaction_not_found,
)
from walletledger.domain.ledger import LedgerJournal
from walletledger.domain.references import TRANSACTION_PREFIX, ReferenceGenerator
from walletledger.utils.date_parser import utcnow
from walletledger.utils.payload import amount_with_currency, date_field, money_field, pick

logger = logging.getLogger(__name__)


def _party(payload: Any, role_name: str) -> PartySnapshot:
    if isinstance(payload, PartySnapshot):
        return payload
    if isinstance(payload, str):
        payload = {"id": payload}
    if not isinstance(payload, Mapping):
        raise ValidationError(f"{role_name} is required")
    party_id = pick(payload, "id", "_id", "walletId", "wallet_id")
    if not party_id:
        raise ValidationError(f"{role_name}.id is required")
    return PartySnapshot(
        id=str(party_id),
        name=pick(payload, "name"),
        role=pick(payload, "role", default="customer"),
        tier=pick(payload, "tier"),
        phone=pick(payload, "phone", "phoneNumber", "phone_number"),
    )


@dataclass(frozen=True)
class TransactionRequest:
    """Validated request to post a transaction."""

    transaction_type: str
    transfer_amount: Decimal
    sender: PartySnapshot
    receiver: PartySnapshot
    fees: tuple[FeeLine, ...] = ()
    currency: str = "USD"
    status: str = "pending"
    transaction_ref: Optional[str] = None
    transaction_date: Optional[datetime] = None
    notes: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TransactionRequest":
        """Build a request from a JSON-style payload.

        The counterpart may be given as ``receiver`` or ``recipient``; both
        map onto ``receiver``. ``transferAmount`` may be a number or an
        ``{amount, currency}`` object; a top-level ``currency`` wins over the
        nested one.

        Raises:
            ValidationError: If required fields are missing or malformed
        """
        amount = pick(payload, "transferAmount", "transfer_amount")
        if amount is None:
            raise ValidationError("transferAmount is required")
        transfer_amount, nested_currency = amount_with_currency(amount, "transferAmount")

        receiver = pick(payload, "receiver")
        recipient = pick(payload, "recipient")
        if receiver is not None and recipient is not None and receiver != recipient:
            raise ValidationError("receiver and recipient disagree; send only one")

        currency = str(pick(payload, "currency", default=nested_currency or "USD")).upper()
        fees = []
        for raw in pick(payload, "fees", default=[]):
            if not isinstance(raw, Mapping):
                raise ValidationError("fees must be a list of objects")
            fee_amount = pick(raw, "feeAmount", "fee_amount")
            if fee_amount is None:
                raise ValidationError("fees[].feeAmount is required")
            fees.append(
                FeeLine(
                    fee_amount=money_field(fee_amount, "feeAmount"),
                    fee_type=pick(raw, "feeType", "fee_type", default="transaction_fee"),
                    currency=str(pick(raw, "currency", default=currency)).upper(),
                    description=pick(raw, "description"),
                    revenue_status=pick(raw, "revenueStatus", "revenue_status", default="pending"),
                )
            )

        return cls(
            transaction_type=pick(payload, "transactionType", "transaction_type", default="transfer"),
            transfer_amount=transfer_amount,
            sender=_party(pick(payload, "sender"), "sender"),
            receiver=_party(receiver if receiver is not None else recipient, "receiver"),
            fees=tuple(fees),
            currency=currency,
            status=pick(payload, "status", default="pending"),
            transaction_ref=pick(payload, "transactionRef", "transaction_ref"),
            transaction_date=date_field(pick(payload, "transactionDate", "transaction_date"), "transactionDate"),
            notes=pick(payload, "notes", "description"),
        )

    def validate(self) -> None:
        """Raises ValidationError if the request cannot be posted."""
        if self.transaction_type not in TRANSACTION_TYPES:
            raise ValidationError(
                f"Unknown transaction type '{self.transaction_type}'. "
                f"Expected one of: {', '.join(TRANSACTION_TYPES)}"
            )
        if self.status not in TRANSACTION_STATUSES:
            raise ValidationError(f"Unknown transaction status '{self.status}'")
        if self.transfer_amount <= 0:
            raise ValidationError("transferAmount must be greater than zero")
        for fee in self.fees:
            if fee.fee_amount <= 0:
                raise ValidationError("feeAmount must be greater than zero")
            if fee.currency != self.currency:
                raise ValidationError(
                    f"Fee currency {fee.currency} does not match transaction currency {self.currency}"
                )


class TransactionPoster:
    """Posts a transaction and its ledger entries as one atomic unit."""

    def __init__(
        self,
        db: Database,
        journal: Optional[LedgerJournal] = None,
        references: Optional[ReferenceGenerator] = None,
    ):
        """Initialize transaction poster.

        Args:
            db: Database instance
            journal: Ledger journal (defaults to one over the same database)
            references: Transaction reference generator
        """
        self.db = db
        self.journal = journal or LedgerJournal(db)
        self.references = references or ReferenceGenerator(exists=db.transaction_ref_exists)

    def post_transaction(self, request: TransactionRequest, prefix: str = TRANSACTION_PREFIX) -> Transaction:
        """Persist a transaction and, when it carries fees, its ledger entries.

        With fees, exactly two entries are posted under the transaction's
        reference: a ``customer`` debit of the transfer amount and a
        ``revenue`` credit of the summed fees. Either everything is stored
        or nothing is.

        Args:
            request: Validated transaction request
            prefix: Reference prefix used when the request carries no reference

        Returns:
            The stored transaction

        Raises:
            ValidationError: If the request is malformed (nothing is written)
            ConflictError: If the reference or an entry id is already taken
            PersistenceError: If the session failed for any other reason
        """
        request.validate()
        if request.transaction_ref and self.db.transaction_ref_exists(request.transaction_ref):
            raise ConflictError(duplicate_reference("Transaction", request.transaction_ref))
        transaction_ref = request.transaction_ref or self.references.generate(prefix)
        transaction = Transaction(
            transaction_ref=transaction_ref,
            transaction_date=request.transaction_date or utcnow(),
            transaction_type=request.transaction_type,
            status=request.status,
            sender=request.sender,
            receiver=request.receiver,
            transfer_amount=request.transfer_amount,
            currency=request.currency,
            fees=request.fees,
            notes=request.notes,
        )

        with self.db.atomic():
            self.db.create_transaction(transaction)
            if transaction.fees:
                self.journal.post(self._fee_entries(transaction))

        logger.info(
            "Posted transaction %s (%s %s %s, fees %s)",
            transaction_ref,
            transaction.transaction_type,
            transaction.transfer_amount,
            transaction.currency,
            transaction.total_fee,
        )
        return self.get_transaction(transaction_ref)

    def _fee_entries(self, transaction: Transaction) -> list:
        sender = transaction.sender.name or transaction.sender.id
        receiver = transaction.receiver.name or transaction.receiver.id
        return [
            self.journal.entry(
                transaction.transaction_ref,
                CUSTOMER,
                "transfer",
                debit=transaction.transfer_amount,
                currency=transaction.currency,
                description=f"Transaction: {transaction.transaction_type}",
                notes=f"Transfer from {sender} to {receiver}",
                entry_date=transaction.transaction_date,
            ),
            self.journal.entry(
                transaction.transaction_ref,
                REVENUE,
                "fee",
                credit=transaction.total_fee,
                currency=transaction.currency,
                description=f"Fee collected for transaction: {transaction.transaction_type}",
                entry_date=transaction.transaction_date,
            ),
        ]

    def get_transaction(self, transaction_ref: str) -> Transaction:
        """Get transaction by reference.

        Raises:
            NotFoundError: If no transaction has this reference
        """
        transaction = self.db.get_transaction(transaction_ref)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_ref))
        return transaction

    def list_transactions(
        self,
        status: Optional[str] = None,
        transaction_type: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """List transactions, newest first."""
        return self.db.list_transactions(
            status=status, transaction_type=transaction_type, limit=limit, offset=offset
        )
