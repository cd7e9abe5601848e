"""Shared pytest fixtures for walletledger tests."""

import os
import tempfile
from datetime import datetime
from decimal import Decimal

import pytest

from walletledger.database.factories import create_sqlite_database
from walletledger.domain.entities import FeeRule, PercentageFee
from walletledger.domain.fee_catalog import FeeCatalog
from walletledger.domain.ledger import LedgerJournal
from walletledger.domain.revenue import RevenueRecognizer
from walletledger.domain.settlement import SettlementBatcher
from walletledger.domain.transaction import TransactionPoster
from walletledger.domain.transfer import TransferService
from walletledger.domain.wallet import WalletService
from walletledger.domain.wallet_guard import WalletGuard

RULES_START = datetime(2020, 1, 1)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def wallet_service(temp_db):
    """Create a WalletService with a temporary database."""
    return WalletService(temp_db)


@pytest.fixture
def fee_catalog(temp_db):
    """Create a FeeCatalog with a temporary database."""
    return FeeCatalog(temp_db)


@pytest.fixture
def wallet_guard(temp_db, fee_catalog):
    """Create a WalletGuard pricing in the GLOBAL region."""
    return WalletGuard(temp_db, catalog=fee_catalog)


@pytest.fixture
def journal(temp_db):
    """Create a LedgerJournal with a temporary database."""
    return LedgerJournal(temp_db)


@pytest.fixture
def poster(temp_db, journal):
    """Create a TransactionPoster with a temporary database."""
    return TransactionPoster(temp_db, journal=journal)


@pytest.fixture
def recognizer(temp_db, journal):
    """Create a RevenueRecognizer with a temporary database."""
    return RevenueRecognizer(temp_db, journal=journal)


@pytest.fixture
def batcher(temp_db, journal):
    """Create a SettlementBatcher with a temporary database."""
    return SettlementBatcher(temp_db, journal=journal)


@pytest.fixture
def transfer_service(temp_db, fee_catalog):
    """Create a TransferService with a temporary database."""
    return TransferService(temp_db, catalog=fee_catalog)


@pytest.fixture
def sample_wallets(wallet_service):
    """Create two wallets: alice (STANDARD, 1000.00) and bob (BASIC, 50.00)."""
    wallet_service.create_wallet("alice", tier="STANDARD", initial_balance=Decimal("1000.00"))
    wallet_service.create_wallet("bob", tier="BASIC", initial_balance=Decimal("50.00"))
    return {
        "alice": wallet_service.get_wallet("alice"),
        "bob": wallet_service.get_wallet("bob"),
    }


@pytest.fixture
def standard_transfer_rule(fee_catalog):
    """A 2.5% transfer fee (min 1.00, max 75.00) for STANDARD wallets."""
    rule_id = fee_catalog.create_rule(
        FeeRule(
            name="Standard Tier Transfer Fee",
            fee_type="transaction_fee",
            transaction_type="transfer",
            calculation=PercentageFee(rate=Decimal("2.5")),
            minimum_fee=Decimal("1.00"),
            maximum_fee=Decimal("75.00"),
            applicable_tiers=("STANDARD",),
            effective_start=RULES_START,
            description="Standard percentage fee for standard tier transfers",
        )
    )
    return fee_catalog.get_rule(rule_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
