"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from decimal import Decimal
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from walletledger.domain.entities import (
    FeeRule,
    LedgerEntry,
    RevenueRecord,
    SettlementBatch,
    Transaction,
    Wallet,
)


class Database(ABC):
    """Abstract database interface for walletledger."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Open an atomic session.

        Every write inside the block commits together at exit, or none does.
        Nested blocks join the outermost one.

        Raises:
            ConflictError: A unique index was violated (session rolled back)
            PersistenceError: Any other storage failure (session rolled back)
        """
        pass

    # Wallet operations
    @abstractmethod
    def create_wallet(
        self,
        owner_ref: str,
        owner_type: str,
        tier: str,
        currency: str,
        balance: Decimal = Decimal("0"),
        is_active: bool = True,
    ) -> int:
        """Create a new wallet. Returns wallet ID."""
        pass

    @abstractmethod
    def get_wallet(self, wallet_id: int) -> Optional[Wallet]:
        """Get wallet by ID."""
        pass

    @abstractmethod
    def get_wallet_by_owner(self, owner_ref: str) -> Optional[Wallet]:
        """Get wallet by owner reference."""
        pass

    @abstractmethod
    def list_wallets(self, tier: Optional[str] = None, include_inactive: bool = True) -> list[Wallet]:
        """List wallets, optionally filtered by tier."""
        pass

    @abstractmethod
    def update_wallet(self, wallet_id: int, tier: Optional[str] = None, is_active: Optional[bool] = None) -> None:
        """Update wallet tier and/or active flag."""
        pass

    @abstractmethod
    def credit_wallet(self, wallet_id: int, amount: Decimal) -> bool:
        """Add amount to a wallet balance. Returns False if no wallet was updated."""
        pass

    @abstractmethod
    def debit_wallet(self, wallet_id: int, amount: Decimal, count_transaction: bool = False) -> bool:
        """Conditionally subtract amount from an active wallet.

        The balance check and the decrement are one UPDATE statement, so two
        concurrent debits cannot both succeed against the same funds.

        Returns:
            False if the wallet is missing, inactive, or holds less than amount
        """
        pass

    @abstractmethod
    def reset_monthly_counter(self, wallet_id: int, period_start: datetime) -> bool:
        """Zero the monthly counter if it was last reset before period_start.

        Returns:
            True if the counter was reset
        """
        pass

    # Fee rule operations
    @abstractmethod
    def create_fee_rule(self, rule: FeeRule) -> int:
        """Create a new fee rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_fee_rule(self, rule_id: int) -> Optional[FeeRule]:
        """Get fee rule by ID."""
        pass

    @abstractmethod
    def list_fee_rules(
        self,
        transaction_type: Optional[str] = None,
        active_at: Optional[datetime] = None,
        include_inactive: bool = False,
    ) -> list[FeeRule]:
        """List fee rules.

        Args:
            transaction_type: Keep rules for this type or for "all"
            active_at: Keep rules whose effective range contains this moment
            include_inactive: Include rules with is_active False
        """
        pass

    @abstractmethod
    def set_fee_rule_active(self, rule_id: int, is_active: bool) -> None:
        """Activate or deactivate a fee rule."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(self, transaction: Transaction) -> int:
        """Insert a transaction with its fee lines. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_ref: str) -> Optional[Transaction]:
        """Get transaction by reference."""
        pass

    @abstractmethod
    def transaction_ref_exists(self, transaction_ref: str) -> bool:
        """Check whether a transaction reference is taken."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        status: Optional[str] = None,
        transaction_type: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """List transactions, newest first."""
        pass

    @abstractmethod
    def settle_fee_line(self, transaction_ref: str, fee_type: str, settlement_date: datetime) -> int:
        """Mark the pending fee line of the given type as settled.

        Returns:
            Number of fee lines updated (0 or 1)
        """
        pass

    # Ledger operations
    @abstractmethod
    def add_ledger_entries(self, entries: list[LedgerEntry]) -> list[int]:
        """Append ledger entries. Returns their IDs."""
        pass

    @abstractmethod
    def get_ledger_entry(self, entry_id: str) -> Optional[LedgerEntry]:
        """Get ledger entry by entry id."""
        pass

    @abstractmethod
    def list_ledger_entries(
        self,
        transaction_ref: Optional[str] = None,
        account: Optional[str] = None,
        entry_type: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[LedgerEntry]:
        """List ledger entries, newest first."""
        pass

    @abstractmethod
    def count_ledger_entries(self, transaction_ref: Optional[str] = None) -> int:
        """Count ledger entries, optionally for one reference."""
        pass

    @abstractmethod
    def ledger_entry_id_exists(self, entry_id: str) -> bool:
        """Check whether a ledger entry id is taken."""
        pass

    # Revenue operations
    @abstractmethod
    def create_revenue(self, record: RevenueRecord) -> int:
        """Insert a revenue record. Returns revenue ID."""
        pass

    @abstractmethod
    def get_revenue(self, revenue_id: int) -> Optional[RevenueRecord]:
        """Get revenue record by ID."""
        pass

    @abstractmethod
    def get_revenue_by_ref(self, revenue_ref: str) -> Optional[RevenueRecord]:
        """Get revenue record by reference."""
        pass

    @abstractmethod
    def revenue_ref_exists(self, revenue_ref: str) -> bool:
        """Check whether a revenue reference is taken."""
        pass

    @abstractmethod
    def list_revenues(
        self,
        revenue_ids: Optional[list[int]] = None,
        status: Optional[str] = None,
    ) -> list[RevenueRecord]:
        """List revenue records, optionally restricted to IDs and/or status."""
        pass

    @abstractmethod
    def mark_revenue_settled(
        self,
        revenue_id: int,
        settlement_date: datetime,
        batch_ref: str,
        notes: Optional[str] = None,
    ) -> bool:
        """Flip a pending revenue record to settled.

        Returns:
            False if the record is missing or no longer pending
        """
        pass

    @abstractmethod
    def list_settlement_batches(self, batch_ref: Optional[str] = None) -> list[SettlementBatch]:
        """List settled revenue grouped by batch, newest first."""
        pass
