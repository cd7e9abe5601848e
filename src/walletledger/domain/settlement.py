"""Settlement of pending revenue."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from walletledger.database.base import Database
from walletledger.domain.entities import OPERATING, SettlementBatch, SettlementResult
from walletledger.domain.errors import ConflictError, NothingToSettle, ValidationError
from walletledger.domain.ledger import LedgerJournal
from walletledger.domain.references import ReferenceGenerator
from walletledger.utils.date_parser import utcnow

logger = logging.getLogger(__name__)

DEFAULT_SETTLEMENT_NOTES = "Settlement processed"


class SettlementBatcher:
    """Moves pending revenue records to settled, one atomic batch at a time."""

    def __init__(
        self,
        db: Database,
        journal: Optional[LedgerJournal] = None,
        references: Optional[ReferenceGenerator] = None,
    ):
        self.db = db
        self.journal = journal or LedgerJournal(db)
        self.references = references or ReferenceGenerator()

    def settle_batch(
        self,
        revenue_ids: Iterable[int],
        batch_ref: Optional[str] = None,
        settlement_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> SettlementResult:
        """Settle the pending records among ``revenue_ids``.

        Records that are missing or already settled are skipped, so running
        the same batch twice settles each record at most once. For every
        settled record one ``operating`` debit is posted and the matching
        fee line on its originating transaction is marked settled. Either
        the whole batch commits or none of it does.

        Args:
            revenue_ids: Revenue record IDs to settle
            batch_ref: Batch reference (generated as SETTLE-... if omitted)
            settlement_date: Settlement timestamp (defaults to now)
            notes: Notes stamped on each record

        Returns:
            Batch reference, total amount, currency and number settled

        Raises:
            ValidationError: If no IDs are given or the records mix currencies
            NothingToSettle: If none of the IDs is pending
        """
        ids = sorted(set(revenue_ids))
        if not ids:
            raise ValidationError("At least one revenue id is required")

        settled_at = settlement_date or utcnow()
        notes = notes or DEFAULT_SETTLEMENT_NOTES

        with self.db.atomic():
            pending = self.db.list_revenues(revenue_ids=ids, status="pending")
            if not pending:
                raise NothingToSettle(f"No pending revenue records among ids {ids}")

            currencies = {record.currency for record in pending}
            if len(currencies) > 1:
                raise ValidationError(
                    f"Cannot settle mixed currencies in one batch: {', '.join(sorted(currencies))}"
                )
            currency = currencies.pop()
            batch_ref = batch_ref or self.references.generate_batch_ref()

            total = Decimal("0.00")
            entries = []
            for record in pending:
                if not self.db.mark_revenue_settled(record.id, settled_at, batch_ref, notes):
                    raise ConflictError(f"Revenue record {record.id} was settled concurrently")
                total += record.amount
                entries.append(
                    self.journal.entry(
                        record.revenue_ref,
                        OPERATING,
                        "settlement",
                        debit=record.amount,
                        currency=record.currency,
                        description="Settlement of fee revenue",
                        notes=f"Settlement batch: {batch_ref}",
                        settlement_batch=batch_ref,
                        entry_date=settled_at,
                    )
                )
                if record.associated_transaction_ref:
                    self.db.settle_fee_line(record.associated_transaction_ref, record.revenue_type, settled_at)
            self.journal.post(entries)

        logger.info("Settled batch %s: %d records, %s %s", batch_ref, len(pending), total, currency)
        return SettlementResult(
            batch_ref=batch_ref,
            total_amount=total,
            currency=currency,
            settled_count=len(pending),
            settlement_date=settled_at,
            revenue_ids=tuple(record.id for record in pending),
        )

    def settle_pending(
        self,
        batch_ref: Optional[str] = None,
        settlement_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> SettlementResult:
        """Settle every pending revenue record.

        Raises:
            NothingToSettle: If nothing is pending
        """
        pending = self.db.list_revenues(status="pending")
        if not pending:
            raise NothingToSettle("No pending revenue records")
        return self.settle_batch(
            [record.id for record in pending],
            batch_ref=batch_ref,
            settlement_date=settlement_date,
            notes=notes,
        )

    def list_batches(self, batch_ref: Optional[str] = None) -> list[SettlementBatch]:
        """List settlement batches, newest first."""
        return self.db.list_settlement_batches(batch_ref=batch_ref)
