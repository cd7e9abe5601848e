"""Revenue recognition domain service."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from walletledger.database.base import Database
from walletledger.domain.entities import OPERATING, REVENUE, REVENUE_STATUSES, RevenueRecord
from walletledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    duplicate_reference,
    revenue_not_found,
    transaction_not_found,
)
from walletledger.domain.ledger import LedgerJournal
from walletledger.domain.references import REVENUE_PREFIX, ReferenceGenerator
from walletledger.utils.date_parser import utcnow
from walletledger.utils.payload import amount_with_currency, date_field, pick

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RevenueRequest:
    """Validated request to recognize fee revenue."""

    amount: Decimal
    revenue_type: str = "transaction_fee"
    currency: str = "USD"
    status: str = "pending"
    associated_transaction_ref: Optional[str] = None
    revenue_ref: Optional[str] = None
    transaction_date: Optional[datetime] = None
    settlement_date: Optional[datetime] = None
    settlement_batch: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    region: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RevenueRequest":
        """Build a request from a JSON-style payload.

        ``description``, ``notes``, ``region`` and ``settlementBatch`` may sit
        at the top level or inside ``metadata``. ``revenueAmount`` may be a
        number or an ``{amount, currency}`` object; a top-level ``currency``
        wins over the nested one.

        Raises:
            ValidationError: If revenueAmount is missing or malformed
        """
        amount = pick(payload, "revenueAmount", "revenue_amount", "amount")
        if amount is None:
            raise ValidationError("revenueAmount is required")
        revenue_amount, nested_currency = amount_with_currency(amount, "revenueAmount")
        metadata = pick(payload, "metadata", default={})
        if not isinstance(metadata, Mapping):
            raise ValidationError("metadata must be an object")

        def meta(*keys):
            return pick(payload, *keys, default=pick(metadata, *keys))

        return cls(
            amount=revenue_amount,
            revenue_type=pick(payload, "revenueType", "revenue_type", default="transaction_fee"),
            currency=str(pick(payload, "currency", default=nested_currency or "USD")).upper(),
            status=pick(payload, "status", default="pending"),
            associated_transaction_ref=pick(
                payload, "associatedTransactionRef", "associated_transaction_ref"
            ),
            revenue_ref=pick(payload, "transactionRef", "revenueRef", "revenue_ref"),
            transaction_date=date_field(pick(payload, "transactionDate", "transaction_date"), "transactionDate"),
            settlement_date=date_field(pick(payload, "settlementDate", "settlement_date"), "settlementDate"),
            settlement_batch=meta("settlementBatch", "settlement_batch"),
            description=meta("description"),
            notes=meta("notes"),
            region=meta("region"),
        )

    def validate(self) -> None:
        """Raises ValidationError if the request cannot be recorded."""
        if self.amount <= 0:
            raise ValidationError("revenueAmount must be greater than zero")
        if self.status not in REVENUE_STATUSES:
            raise ValidationError(
                f"Unknown revenue status '{self.status}'. Expected one of: {', '.join(REVENUE_STATUSES)}"
            )
        if not self.revenue_type:
            raise ValidationError("revenueType is required")


class RevenueRecognizer:
    """Records fee revenue and its ledger entries as one atomic unit."""

    def __init__(
        self,
        db: Database,
        journal: Optional[LedgerJournal] = None,
        references: Optional[ReferenceGenerator] = None,
    ):
        self.db = db
        self.journal = journal or LedgerJournal(db)
        self.references = references or ReferenceGenerator(exists=db.revenue_ref_exists)

    def record_revenue(self, request: RevenueRequest) -> RevenueRecord:
        """Store a revenue record and post its recognition entries.

        A ``revenue`` credit is always posted. When the record is created
        already settled, an ``operating`` debit is posted as well and the
        matching fee line (same fee type) on the associated transaction is
        marked settled. Without a settlement date the transaction date is used.

        Returns:
            The stored revenue record

        Raises:
            ValidationError: If the request is malformed (nothing is written)
            NotFoundError: If the associated transaction does not exist
            ConflictError: If the reference is already taken
        """
        request.validate()
        if request.associated_transaction_ref and not self.db.transaction_ref_exists(
            request.associated_transaction_ref
        ):
            raise NotFoundError(transaction_not_found(request.associated_transaction_ref))
        if request.revenue_ref and self.db.revenue_ref_exists(request.revenue_ref):
            raise ConflictError(duplicate_reference("Revenue record", request.revenue_ref))

        transaction_date = request.transaction_date or utcnow()
        settled = request.status == "settled"
        revenue_ref = request.revenue_ref or self.references.generate(REVENUE_PREFIX)
        settlement_date = (request.settlement_date or transaction_date) if settled else None
        settlement_batch = (request.settlement_batch or self.references.generate_batch_ref()) if settled else None

        record = RevenueRecord(
            revenue_ref=revenue_ref,
            revenue_type=request.revenue_type,
            amount=request.amount,
            currency=request.currency,
            status=request.status,
            transaction_date=transaction_date,
            associated_transaction_ref=request.associated_transaction_ref,
            settlement_date=settlement_date,
            settlement_batch=settlement_batch,
            description=request.description,
            notes=request.notes,
            region=request.region,
        )

        entries = [
            self.journal.entry(
                revenue_ref,
                REVENUE,
                "fee",
                credit=record.amount,
                currency=record.currency,
                description=f"Revenue: {record.revenue_type}",
                notes=record.description or "Fee revenue",
                entry_date=record.transaction_date,
            )
        ]
        if settled:
            entries.append(
                self.journal.entry(
                    revenue_ref,
                    OPERATING,
                    "settlement",
                    debit=record.amount,
                    currency=record.currency,
                    description="Settlement of fee revenue",
                    notes=f"Settlement from trust to operating account for {revenue_ref}",
                    settlement_batch=settlement_batch,
                    entry_date=settlement_date,
                )
            )

        with self.db.atomic():
            self.db.create_revenue(record)
            self.journal.post(entries)
            if settled and record.associated_transaction_ref:
                self.db.settle_fee_line(record.associated_transaction_ref, record.revenue_type, settlement_date)

        logger.info("Recorded %s revenue %s: %s %s", record.status, revenue_ref, record.amount, record.currency)
        return self.db.get_revenue_by_ref(revenue_ref)

    def get_revenue(self, revenue_id: int) -> RevenueRecord:
        """Get revenue record by ID.

        Raises:
            NotFoundError: If no record has this ID
        """
        record = self.db.get_revenue(revenue_id)
        if record is None:
            raise NotFoundError(revenue_not_found(revenue_id))
        return record

    def list_revenues(self, status: Optional[str] = None) -> list[RevenueRecord]:
        """List revenue records, optionally by status."""
        if status is not None and status not in REVENUE_STATUSES:
            raise ValidationError(f"Unknown revenue status '{status}'")
        return self.db.list_revenues(status=status)
