"""Ledger journal domain service."""

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from walletledger.database.base import Database
from walletledger.domain.entities import ACCOUNT_BUCKETS, ENTRY_TYPES, LedgerEntry
from walletledger.domain.errors import NotFoundError, ValidationError, ledger_entry_not_found
from walletledger.domain.references import LEDGER_PREFIX, ReferenceGenerator
from walletledger.utils.amount_parser import round_money
from walletledger.utils.date_parser import utcnow

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class LedgerJournal:
    """Append-only double-entry journal.

    The journal records entries exactly as given. It does not net, balance
    or correct them; callers post balanced sets inside the atomic session
    that persists the records justifying them. Corrections are new
    offsetting entries.
    """

    def __init__(self, db: Database, references: Optional[ReferenceGenerator] = None):
        self.db = db
        self.references = references or ReferenceGenerator(exists=db.ledger_entry_id_exists)

    def entry(
        self,
        transaction_ref: str,
        account: str,
        entry_type: str,
        debit=ZERO,
        credit=ZERO,
        currency: str = "USD",
        description: Optional[str] = None,
        notes: Optional[str] = None,
        settlement_batch: Optional[str] = None,
        entry_date: Optional[datetime] = None,
    ) -> LedgerEntry:
        """Build an unsaved entry with a fresh LEDGER-... id."""
        return LedgerEntry(
            entry_id=self.references.generate(LEDGER_PREFIX),
            transaction_ref=transaction_ref,
            entry_date=entry_date or utcnow(),
            account=account,
            debit=round_money(debit),
            credit=round_money(credit),
            currency=currency,
            entry_type=entry_type,
            description=description,
            notes=notes,
            settlement_batch=settlement_batch,
        )

    @staticmethod
    def check_entry(entry: LedgerEntry) -> None:
        """Validate the shape of a single entry.

        Raises:
            ValidationError: Unknown account or entry type, negative amounts,
                or not exactly one of debit/credit non-zero
        """
        if entry.account not in ACCOUNT_BUCKETS:
            raise ValidationError(f"Unknown ledger account '{entry.account}'")
        if entry.entry_type not in ENTRY_TYPES:
            raise ValidationError(f"Unknown ledger entry type '{entry.entry_type}'")
        if entry.debit < 0 or entry.credit < 0:
            raise ValidationError("Ledger amounts cannot be negative")
        if (entry.debit > 0) == (entry.credit > 0):
            raise ValidationError(
                f"Ledger entry {entry.entry_id} must have exactly one of debit and credit non-zero"
            )
        if not entry.transaction_ref:
            raise ValidationError("Ledger entry needs a transaction reference")

    def post(self, entries: list[LedgerEntry]) -> list[LedgerEntry]:
        """Append entries in one atomic session.

        Returns:
            The posted entries with their database IDs

        Raises:
            ValidationError: If any entry is malformed (nothing is posted)
            ConflictError: If an entry id is already taken (nothing is posted)
        """
        if not entries:
            return []
        for entry in entries:
            self.check_entry(entry)
        with self.db.atomic():
            ids = self.db.add_ledger_entries(entries)
        posted = [replace(entry, id=entry_id) for entry, entry_id in zip(entries, ids)]
        for entry in posted:
            logger.debug(
                "Posted %s %s debit=%s credit=%s for %s",
                entry.entry_id,
                entry.account,
                entry.debit,
                entry.credit,
                entry.transaction_ref,
            )
        return posted

    def get_entry(self, entry_id: str) -> LedgerEntry:
        """Get ledger entry by id.

        Raises:
            NotFoundError: If no entry has this id
        """
        entry = self.db.get_ledger_entry(entry_id)
        if entry is None:
            raise NotFoundError(ledger_entry_not_found(entry_id))
        return entry

    def list_entries(
        self,
        transaction_ref: Optional[str] = None,
        account: Optional[str] = None,
        entry_type: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[LedgerEntry]:
        """List entries, newest first."""
        if account is not None and account not in ACCOUNT_BUCKETS:
            raise ValidationError(f"Unknown ledger account '{account}'")
        if entry_type is not None and entry_type not in ENTRY_TYPES:
            raise ValidationError(f"Unknown ledger entry type '{entry_type}'")
        return self.db.list_ledger_entries(
            transaction_ref=transaction_ref,
            account=account,
            entry_type=entry_type,
            limit=limit,
            offset=offset,
        )

    def totals(self, transaction_ref: str) -> tuple[Decimal, Decimal]:
        """Return (total debit, total credit) posted for a reference."""
        entries = self.db.list_ledger_entries(transaction_ref=transaction_ref)
        debit = sum((e.debit for e in entries), ZERO)
        credit = sum((e.credit for e in entries), ZERO)
        return debit, credit
