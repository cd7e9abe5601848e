"""Tests for wallet-to-wallet transfers."""

import re
from datetime import datetime
from decimal import Decimal

import pytest

from walletledger.domain.entities import FeeRule, FixedFee
from walletledger.domain.errors import (
    InsufficientBalance,
    ValidationError,
    WalletInactive,
    WalletNotFound,
)
from walletledger.domain.wallet import effective_monthly_count


def balances(wallet_service):
    return {w.owner_ref: w.balance for w in wallet_service.list_wallets()}


class TestTransfer:
    """Test TransferService.transfer."""

    def test_transfer_moves_money_and_books_fee(
        self, temp_db, transfer_service, wallet_service, recognizer, sample_wallets, standard_transfer_rule
    ):
        result = transfer_service.transfer("alice", "bob", Decimal("100"), description="Lunch")

        assert re.fullmatch(r"TRF-\d{14}-[0-9A-F]{8}", result.transaction_ref)
        assert result.fee_amount == Decimal("2.50")
        assert result.fee_type == "transaction_fee"
        assert result.sender_balance == Decimal("897.50")
        assert balances(wallet_service) == {"alice": Decimal("897.50"), "bob": Decimal("150.00")}

        transaction = temp_db.get_transaction(result.transaction_ref)
        assert transaction.status == "completed"
        assert transaction.sender.id == "alice"
        assert transaction.receiver.id == "bob"
        assert transaction.notes == "Lunch"
        assert transaction.fees[0].fee_amount == Decimal("2.50")

        assert result.revenue_ref == f"REV-{result.transaction_ref}"
        revenue = temp_db.get_revenue_by_ref(result.revenue_ref)
        assert revenue.status == "pending"
        assert revenue.amount == Decimal("2.50")
        assert revenue.associated_transaction_ref == result.transaction_ref
        assert revenue.description == f"Fee from transaction {result.transaction_ref}"
        assert revenue.region == "GLOBAL"

        assert temp_db.count_ledger_entries(result.transaction_ref) == 2
        assert temp_db.count_ledger_entries(result.revenue_ref) == 1
        assert effective_monthly_count(wallet_service.get_wallet("alice")) == 1
        assert effective_monthly_count(wallet_service.get_wallet("bob")) == 0

    def test_default_fee_without_rules(self, transfer_service, wallet_service, sample_wallets):
        result = transfer_service.transfer("alice", "bob", Decimal("100"))

        assert result.fee_amount == Decimal("1.00")
        assert wallet_service.get_wallet("alice").balance == Decimal("899.00")

    def test_insufficient_balance_changes_nothing(self, temp_db, transfer_service, wallet_service, sample_wallets):
        before = balances(wallet_service)

        with pytest.raises(InsufficientBalance):
            transfer_service.transfer("bob", "alice", Decimal("50"))

        assert balances(wallet_service) == before
        assert temp_db.list_transactions() == []
        assert temp_db.list_revenues() == []
        assert temp_db.count_ledger_entries() == 0

    def test_lost_race_on_debit_changes_nothing(
        self, temp_db, transfer_service, wallet_service, sample_wallets, monkeypatch
    ):
        """The guard passes but the conditional debit finds the money gone."""
        before = balances(wallet_service)
        monkeypatch.setattr(temp_db, "debit_wallet", lambda *args, **kwargs: False)

        with pytest.raises(InsufficientBalance):
            transfer_service.transfer("alice", "bob", Decimal("100"))

        assert balances(wallet_service) == before
        assert temp_db.list_transactions() == []
        assert temp_db.count_ledger_entries() == 0

    def test_self_transfer_rejected(self, transfer_service, sample_wallets):
        with pytest.raises(ValidationError):
            transfer_service.transfer("alice", "alice", Decimal("10"))

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
    def test_non_positive_amount_rejected(self, transfer_service, sample_wallets, amount):
        with pytest.raises(ValidationError):
            transfer_service.transfer("alice", "bob", amount)

    def test_missing_receiver(self, transfer_service, wallet_service, sample_wallets):
        with pytest.raises(WalletNotFound):
            transfer_service.transfer("alice", "nobody", Decimal("10"))
        assert wallet_service.get_wallet("alice").balance == Decimal("1000.00")

    def test_inactive_receiver(self, transfer_service, wallet_service, sample_wallets):
        wallet_service.set_active("bob", False)
        with pytest.raises(WalletInactive):
            transfer_service.transfer("alice", "bob", Decimal("10"))

    def test_currency_mismatch(self, transfer_service, wallet_service, sample_wallets):
        wallet_service.create_wallet("pierre", currency="EUR")
        with pytest.raises(ValidationError):
            transfer_service.transfer("alice", "pierre", Decimal("10"))

    def test_zero_fee_books_no_revenue(self, temp_db, transfer_service, fee_catalog, sample_wallets):
        fee_catalog.create_rule(
            FeeRule(
                name="Free transfers",
                fee_type="transaction_fee",
                transaction_type="transfer",
                calculation=FixedFee(amount=Decimal("0")),
                applicable_tiers=("STANDARD",),
                effective_start=datetime(2020, 1, 1),
            )
        )

        result = transfer_service.transfer("alice", "bob", Decimal("100"))

        assert result.fee_amount == Decimal("0.00")
        assert result.revenue_ref is None
        assert result.sender_balance == Decimal("900.00")
        assert temp_db.get_transaction(result.transaction_ref).fees == ()
        assert temp_db.list_revenues() == []
        assert temp_db.count_ledger_entries() == 0

    def test_monthly_counter_rolls_over(self, temp_db, transfer_service, sample_wallets, standard_transfer_rule):
        alice_id = sample_wallets["alice"].id

        transfer_service.transfer("alice", "bob", Decimal("10"), now=datetime(2024, 1, 15, 12, 0))
        transfer_service.transfer("alice", "bob", Decimal("10"), now=datetime(2024, 1, 20, 12, 0))
        january = temp_db.get_wallet(alice_id)
        assert january.monthly_transaction_count == 2
        assert january.counter_reset_at == datetime(2024, 1, 1)

        transfer_service.transfer("alice", "bob", Decimal("10"), now=datetime(2024, 2, 3, 8, 0))
        february = temp_db.get_wallet(alice_id)
        assert february.monthly_transaction_count == 1
        assert february.counter_reset_at == datetime(2024, 2, 1)
