"""Tests for revenue recognition."""

import re
from datetime import datetime
from decimal import Decimal

import pytest

from walletledger.domain.errors import ConflictError, NotFoundError, ValidationError
from walletledger.domain.revenue import RevenueRequest
from walletledger.domain.transaction import TransactionRequest


@pytest.fixture
def fee_transaction(poster):
    """A posted transfer carrying a 3.00 transaction fee."""
    return poster.post_transaction(
        TransactionRequest.from_payload(
            {
                "transferAmount": 100,
                "sender": {"id": "u-1"},
                "receiver": {"id": "u-2"},
                "fees": [{"feeAmount": 3, "feeType": "transaction_fee"}],
            }
        )
    )


class TestRevenueRequest:
    """Test building revenue requests from payloads."""

    def test_metadata_fields(self):
        request = RevenueRequest.from_payload(
            {
                "revenueAmount": "3",
                "revenueType": "transaction_fee",
                "associatedTransactionRef": "TXN-1",
                "metadata": {"description": "Fee from TXN-1", "region": "KE"},
            }
        )

        assert request.amount == Decimal("3.00")
        assert request.associated_transaction_ref == "TXN-1"
        assert request.description == "Fee from TXN-1"
        assert request.region == "KE"
        assert request.status == "pending"

    def test_top_level_fields_win_over_metadata(self):
        request = RevenueRequest.from_payload(
            {"revenueAmount": 1, "notes": "top", "metadata": {"notes": "nested"}}
        )
        assert request.notes == "top"

    def test_missing_amount(self):
        with pytest.raises(ValidationError):
            RevenueRequest.from_payload({"revenueType": "transaction_fee"})

    def test_nested_revenue_amount(self):
        request = RevenueRequest.from_payload({"revenueAmount": {"amount": 2.5, "currency": "kes"}})

        assert request.amount == Decimal("2.50")
        assert request.currency == "KES"

    def test_top_level_currency_wins(self):
        request = RevenueRequest.from_payload(
            {"revenueAmount": {"amount": 2.5, "currency": "KES"}, "currency": "usd"}
        )
        assert request.currency == "USD"

    @pytest.mark.parametrize("changes", [{"amount": Decimal("0")}, {"status": "void"}, {"revenue_type": ""}])
    def test_validate_rejects(self, changes):
        values = {"amount": Decimal("3")}
        values.update(changes)
        with pytest.raises(ValidationError):
            RevenueRequest(**values).validate()


class TestRecordRevenue:
    """Test RevenueRecognizer.record_revenue."""

    def test_pending_revenue_posts_revenue_credit(self, temp_db, recognizer, fee_transaction):
        record = recognizer.record_revenue(
            RevenueRequest(
                amount=Decimal("3"),
                associated_transaction_ref=fee_transaction.transaction_ref,
                description="Fee from transfer",
            )
        )

        assert re.fullmatch(r"REV-\d{14}-[0-9A-F]{8}", record.revenue_ref)
        assert record.id is not None
        assert record.status == "pending"
        assert record.settlement_batch is None

        entries = temp_db.list_ledger_entries(transaction_ref=record.revenue_ref)
        assert len(entries) == 1
        assert entries[0].account == "revenue"
        assert entries[0].credit == Decimal("3.00")
        assert entries[0].description == "Revenue: transaction_fee"
        assert entries[0].notes == "Fee from transfer"

    def test_settled_revenue_posts_operating_debit(self, temp_db, recognizer, poster, fee_transaction):
        record = recognizer.record_revenue(
            RevenueRequest(
                amount=Decimal("3"),
                status="settled",
                associated_transaction_ref=fee_transaction.transaction_ref,
            )
        )

        assert record.status == "settled"
        assert re.fullmatch(r"SETTLE-\d+-[0-9a-z]{5}", record.settlement_batch)
        assert record.settlement_date is not None

        entries = {e.account: e for e in temp_db.list_ledger_entries(transaction_ref=record.revenue_ref)}
        assert entries["revenue"].credit == Decimal("3.00")
        assert entries["operating"].debit == Decimal("3.00")
        assert entries["operating"].settlement_batch == record.settlement_batch

        fee = poster.get_transaction(fee_transaction.transaction_ref).fees[0]
        assert fee.revenue_status == "settled"

    def test_given_batch_and_dates_kept(self, recognizer):
        record = recognizer.record_revenue(
            RevenueRequest(
                amount=Decimal("2.99"),
                revenue_type="service_fee",
                status="settled",
                settlement_batch="SETTLE-MANUAL",
                transaction_date=datetime(2024, 1, 1),
                settlement_date=datetime(2024, 1, 31),
            )
        )

        assert record.settlement_batch == "SETTLE-MANUAL"
        assert record.transaction_date == datetime(2024, 1, 1)
        assert record.settlement_date == datetime(2024, 1, 31)

    def test_settlement_date_defaults_to_transaction_date(self, temp_db, recognizer, poster, fee_transaction):
        record = recognizer.record_revenue(
            RevenueRequest(
                amount=Decimal("3"),
                status="settled",
                associated_transaction_ref=fee_transaction.transaction_ref,
                transaction_date=datetime(2024, 3, 1, 9, 0),
            )
        )

        assert record.settlement_date == datetime(2024, 3, 1, 9, 0)
        entries = {e.account: e for e in temp_db.list_ledger_entries(transaction_ref=record.revenue_ref)}
        assert entries["operating"].entry_date == datetime(2024, 3, 1, 9, 0)
        fee = poster.get_transaction(fee_transaction.transaction_ref).fees[0]
        assert fee.settlement_date == datetime(2024, 3, 1, 9, 0)

    def test_unknown_transaction_rejected(self, temp_db, recognizer):
        with pytest.raises(NotFoundError):
            recognizer.record_revenue(RevenueRequest(amount=Decimal("3"), associated_transaction_ref="TXN-NOPE"))
        assert recognizer.list_revenues() == []
        assert temp_db.count_ledger_entries() == 0

    def test_duplicate_reference_rejected(self, temp_db, recognizer):
        recognizer.record_revenue(RevenueRequest(amount=Decimal("3"), revenue_ref="REV-FIXED"))

        with pytest.raises(ConflictError, match="already exists"):
            recognizer.record_revenue(RevenueRequest(amount=Decimal("4"), revenue_ref="REV-FIXED"))
        assert temp_db.count_ledger_entries("REV-FIXED") == 1

    def test_get_and_list(self, recognizer):
        first = recognizer.record_revenue(RevenueRequest(amount=Decimal("1")))
        recognizer.record_revenue(RevenueRequest(amount=Decimal("2"), status="settled"))

        assert recognizer.get_revenue(first.id).amount == Decimal("1.00")
        assert [r.amount for r in recognizer.list_revenues(status="pending")] == [Decimal("1.00")]
        assert len(recognizer.list_revenues()) == 2
        with pytest.raises(NotFoundError):
            recognizer.get_revenue(999)
        with pytest.raises(ValidationError):
            recognizer.list_revenues(status="void")
