"""SQLAlchemy models for walletledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(18, 2)
RATE = Numeric(9, 4)


def _now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Wallet(Base):
    """Wallet model."""

    __tablename__ = "wallets"

    id = Column(Integer, primary_key=True)
    owner_ref = Column(String, unique=True, nullable=False)
    owner_type = Column(String, nullable=False, default="user")
    balance = Column(MONEY, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    tier = Column(String, nullable=False, default="STANDARD")
    is_active = Column(Boolean, nullable=False, default=True)
    monthly_transaction_count = Column(Integer, nullable=False, default=0)
    counter_reset_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class FeeRule(Base):
    """Fee configuration model."""

    __tablename__ = "fee_rules"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    fee_type = Column(String, nullable=False)
    transaction_type = Column(String, nullable=False, default="all", index=True)
    calculation_type = Column(String, nullable=False)
    fixed_amount = Column(MONEY, nullable=False, default=0)
    percentage_rate = Column(RATE, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    minimum_fee = Column(MONEY, nullable=False, default=0)
    maximum_fee = Column(MONEY, nullable=False, default=0)
    applicable_tiers = Column(JSON, nullable=False, default=lambda: ["ALL"])
    applicable_regions = Column(JSON, nullable=False, default=lambda: ["GLOBAL"])
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    effective_start = Column(DateTime, nullable=False, default=_now)
    effective_end = Column(DateTime, nullable=True)
    description = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    brackets = relationship(
        "FeeBracket",
        back_populates="rule",
        cascade="all, delete-orphan",
        order_by="FeeBracket.position",
    )


class FeeBracket(Base):
    """Amount bracket of a tiered fee rule."""

    __tablename__ = "fee_brackets"

    id = Column(Integer, primary_key=True)
    rule_id = Column(Integer, ForeignKey("fee_rules.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    min_amount = Column(MONEY, nullable=False)
    max_amount = Column(MONEY, nullable=False)
    fixed_amount = Column(MONEY, nullable=False, default=0)
    percentage_rate = Column(RATE, nullable=False, default=0)

    # Relationships
    rule = relationship("FeeRule", back_populates="brackets")


class Transaction(Base):
    """Transaction model. Party columns are snapshots, not foreign keys."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    transaction_ref = Column(String, unique=True, nullable=False)
    transaction_date = Column(DateTime, nullable=False, default=_now)
    transaction_type = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending", index=True)
    sender_id = Column(String, nullable=False)
    sender_name = Column(String, nullable=True)
    sender_role = Column(String, nullable=False, default="customer")
    sender_tier = Column(String, nullable=True)
    sender_phone = Column(String, nullable=True)
    receiver_id = Column(String, nullable=False)
    receiver_name = Column(String, nullable=True)
    receiver_role = Column(String, nullable=False, default="customer")
    receiver_tier = Column(String, nullable=True)
    receiver_phone = Column(String, nullable=True)
    transfer_amount = Column(MONEY, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    fees = relationship(
        "TransactionFee",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionFee.id",
    )


class TransactionFee(Base):
    """Fee line item of a transaction."""

    __tablename__ = "transaction_fees"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    fee_amount = Column(MONEY, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    fee_type = Column(String, nullable=False)
    description = Column(String, nullable=True)
    revenue_status = Column(String, nullable=False, default="pending")
    settlement_date = Column(DateTime, nullable=True)

    # Relationships
    transaction = relationship("Transaction", back_populates="fees")


class LedgerEntry(Base):
    """Append-only ledger entry model.

    transaction_ref is indexed, not a foreign key: entries
    reference both transactions and revenue records.
    """

    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True)
    entry_id = Column(String, unique=True, nullable=False)
    transaction_ref = Column(String, nullable=False, index=True)
    entry_date = Column(DateTime, nullable=False, default=_now, index=True)
    account = Column(String, nullable=False, index=True)
    debit = Column(MONEY, nullable=False, default=0)
    credit = Column(MONEY, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    description = Column(String, nullable=True)
    entry_type = Column(String, nullable=False, index=True)
    notes = Column(String, nullable=True)
    settlement_batch = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class Revenue(Base):
    """Revenue record model."""

    __tablename__ = "revenues"

    id = Column(Integer, primary_key=True)
    revenue_ref = Column(String, unique=True, nullable=False)
    revenue_type = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(String, nullable=False, default="pending", index=True)
    transaction_date = Column(DateTime, nullable=False, default=_now)
    settlement_date = Column(DateTime, nullable=True)
    associated_transaction_ref = Column(String, nullable=True, index=True)
    settlement_batch = Column(String, nullable=True, index=True)
    description = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    region = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
