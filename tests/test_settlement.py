"""Tests for settlement batches."""

import re
from datetime import datetime
from decimal import Decimal

import pytest

from walletledger.domain.errors import ConflictError, NothingToSettle, ValidationError
from walletledger.domain.ledger import LedgerJournal
from walletledger.domain.references import ReferenceGenerator
from walletledger.domain.revenue import RevenueRequest
from walletledger.domain.settlement import SettlementBatcher
from walletledger.domain.transaction import TransactionRequest


class FixedReferences(ReferenceGenerator):
    """Hands out the same reference every time."""

    def generate(self, prefix="TXN"):
        return f"{prefix}-DUP"


@pytest.fixture
def pending_revenue(recognizer):
    """Two pending revenue records of 5.00 and 7.00."""
    return [
        recognizer.record_revenue(RevenueRequest(amount=Decimal("5"))),
        recognizer.record_revenue(RevenueRequest(amount=Decimal("7"))),
    ]


class TestSettleBatch:
    """Test SettlementBatcher.settle_batch."""

    def test_settles_pending_records(self, temp_db, batcher, recognizer, pending_revenue):
        ids = [record.id for record in pending_revenue]

        result = batcher.settle_batch(ids)

        assert result.settled_count == 2
        assert result.total_amount == Decimal("12.00")
        assert result.currency == "USD"
        assert re.fullmatch(r"SETTLE-\d+-[0-9a-z]{5}", result.batch_ref)
        assert set(result.revenue_ids) == set(ids)

        for record in recognizer.list_revenues():
            assert record.status == "settled"
            assert record.settlement_batch == result.batch_ref
            assert record.notes == "Settlement processed"

    def test_posts_one_operating_debit_per_record(self, temp_db, batcher, pending_revenue):
        result = batcher.settle_batch([r.id for r in pending_revenue], batch_ref="SETTLE-TEST")

        for record in pending_revenue:
            entries = temp_db.list_ledger_entries(transaction_ref=record.revenue_ref, account="operating")
            assert len(entries) == 1
            assert entries[0].debit == record.amount
            assert entries[0].entry_type == "settlement"
            assert entries[0].settlement_batch == "SETTLE-TEST"
            assert entries[0].notes == "Settlement batch: SETTLE-TEST"
        assert result.batch_ref == "SETTLE-TEST"

    def test_second_run_settles_nothing(self, temp_db, batcher, pending_revenue):
        ids = [r.id for r in pending_revenue]
        batcher.settle_batch(ids)
        entries_after_first = temp_db.count_ledger_entries()

        with pytest.raises(NothingToSettle) as exc_info:
            batcher.settle_batch(ids)
        assert exc_info.value.settled_count == 0
        assert temp_db.count_ledger_entries() == entries_after_first

    def test_already_settled_records_skipped(self, batcher, recognizer, pending_revenue):
        first, second = pending_revenue
        batcher.settle_batch([first.id])

        result = batcher.settle_batch([first.id, second.id, 999])

        assert result.settled_count == 1
        assert result.total_amount == Decimal("7.00")
        assert recognizer.get_revenue(first.id).settlement_batch != result.batch_ref

    def test_settles_fee_line_on_transaction(self, batcher, poster, recognizer):
        transaction = poster.post_transaction(
            TransactionRequest.from_payload(
                {
                    "transferAmount": 100,
                    "sender": "u-1",
                    "receiver": "u-2",
                    "fees": [{"feeAmount": 3}],
                }
            )
        )
        record = recognizer.record_revenue(
            RevenueRequest(amount=Decimal("3"), associated_transaction_ref=transaction.transaction_ref)
        )
        settled_at = datetime(2024, 2, 1, 9, 0)

        batcher.settle_batch([record.id], settlement_date=settled_at, notes="Weekly sweep")

        fee = poster.get_transaction(transaction.transaction_ref).fees[0]
        assert fee.revenue_status == "settled"
        assert fee.settlement_date == settled_at
        settled = recognizer.get_revenue(record.id)
        assert settled.settlement_date == settled_at
        assert settled.notes == "Weekly sweep"

    def test_mixed_currencies_rejected(self, batcher, recognizer):
        usd = recognizer.record_revenue(RevenueRequest(amount=Decimal("5")))
        eur = recognizer.record_revenue(RevenueRequest(amount=Decimal("5"), currency="EUR"))

        with pytest.raises(ValidationError):
            batcher.settle_batch([usd.id, eur.id])
        assert len(recognizer.list_revenues(status="pending")) == 2

    def test_empty_id_list_rejected(self, batcher):
        with pytest.raises(ValidationError):
            batcher.settle_batch([])

    def test_failed_ledger_write_rolls_back_batch(self, temp_db, recognizer, pending_revenue):
        journal = LedgerJournal(temp_db, references=FixedReferences())
        batcher = SettlementBatcher(temp_db, journal=journal)
        entries_before = temp_db.count_ledger_entries()

        with pytest.raises(ConflictError):
            batcher.settle_batch([r.id for r in pending_revenue])

        assert len(recognizer.list_revenues(status="pending")) == 2
        assert temp_db.count_ledger_entries() == entries_before


class TestSettlePending:
    """Test settling everything pending and listing batches."""

    def test_settle_pending(self, batcher, pending_revenue):
        result = batcher.settle_pending(batch_ref="SETTLE-ALL")

        assert result.settled_count == 2
        with pytest.raises(NothingToSettle):
            batcher.settle_pending()

    def test_list_batches(self, batcher, recognizer, pending_revenue):
        first, second = pending_revenue
        batcher.settle_batch([first.id], batch_ref="SETTLE-A", settlement_date=datetime(2024, 1, 1))
        batcher.settle_batch([second.id], batch_ref="SETTLE-B", settlement_date=datetime(2024, 2, 1))

        batches = batcher.list_batches()

        assert [b.batch_ref for b in batches] == ["SETTLE-B", "SETTLE-A"]
        assert batches[0].total_amount == Decimal("7.00")
        assert batches[0].count == 1
        assert [b.batch_ref for b in batcher.list_batches(batch_ref="SETTLE-A")] == ["SETTLE-A"]
