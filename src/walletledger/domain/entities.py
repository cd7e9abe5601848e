"""Domain model entities for walletledger.

These are pure data classes representing business concepts, independent of
database schema. Services receive and return these; the database layer maps
them to and from SQLAlchemy rows.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import ClassVar, Optional, Union

TIERS = ("BASIC", "STANDARD", "PREMIUM", "VIP")
DEFAULT_TIER = "STANDARD"
WILDCARD_TIER = "ALL"
WILDCARD_REGION = "GLOBAL"

OWNER_TYPES = ("user", "merchant", "driver")

FEE_TYPES = ("transaction_fee", "processing_fee", "service_fee", "withdrawal_fee")
TRANSACTION_TYPES = ("transfer", "deposit", "withdrawal", "fee", "refund")
ANY_TRANSACTION_TYPE = "all"

TRANSACTION_STATUSES = ("pending", "completed", "failed", "cancelled")
REVENUE_STATUSES = ("pending", "settled")

# Ledger account buckets and entry types
CUSTOMER = "customer"
REVENUE = "revenue"
OPERATING = "operating"
ACCOUNT_BUCKETS = (CUSTOMER, REVENUE, OPERATING)
ENTRY_TYPES = ("transfer", "fee", "settlement")


@dataclass(frozen=True)
class Wallet:
    """Wallet domain entity, one per owning user, merchant or driver."""

    id: int
    owner_ref: str
    owner_type: str
    balance: Decimal
    currency: str
    tier: str
    is_active: bool
    monthly_transaction_count: int
    counter_reset_at: Optional[datetime]
    created_at: datetime


# Fee calculation variants. Each carries only the parameters it uses.


@dataclass(frozen=True)
class FixedFee:
    calculation_type: ClassVar[str] = "fixed"

    amount: Decimal


@dataclass(frozen=True)
class PercentageFee:
    calculation_type: ClassVar[str] = "percentage"

    rate: Decimal


@dataclass(frozen=True)
class HybridFee:
    calculation_type: ClassVar[str] = "hybrid"

    fixed_amount: Decimal
    rate: Decimal


@dataclass(frozen=True)
class FeeBracket:
    """Amount bracket of a tiered fee; bounds are inclusive."""

    min_amount: Decimal
    max_amount: Decimal
    fixed_amount: Decimal = Decimal("0")
    percentage_rate: Decimal = Decimal("0")

    def contains(self, amount: Decimal) -> bool:
        return self.min_amount <= amount <= self.max_amount


@dataclass(frozen=True)
class TieredFee:
    calculation_type: ClassVar[str] = "tiered"

    brackets: tuple[FeeBracket, ...]


FeeCalculation = Union[FixedFee, PercentageFee, HybridFee, TieredFee]
CALCULATION_TYPES = ("fixed", "percentage", "tiered", "hybrid")


@dataclass(frozen=True)
class FeeRule:
    """Fee configuration domain entity.

    ``id`` is None for rules that are not stored, such as the built-in
    default rule.
    """

    name: str
    fee_type: str
    transaction_type: str
    calculation: FeeCalculation
    currency: str = "USD"
    minimum_fee: Decimal = Decimal("0")
    maximum_fee: Decimal = Decimal("0")
    applicable_tiers: tuple[str, ...] = (WILDCARD_TIER,)
    applicable_regions: tuple[str, ...] = (WILDCARD_REGION,)
    is_active: bool = True
    effective_start: Optional[datetime] = None
    effective_end: Optional[datetime] = None
    description: Optional[str] = None
    id: Optional[int] = None

    @property
    def calculation_type(self) -> str:
        return self.calculation.calculation_type


@dataclass(frozen=True)
class FeeQuote:
    """Priced fee for a prospective transaction."""

    fee_amount: Decimal
    total_amount: Decimal
    fee_type: str
    calculation_type: str
    description: Optional[str]
    currency: str
    rule_id: Optional[int] = None


@dataclass(frozen=True)
class Eligibility:
    """Successful eligibility check, carrying the fee to charge."""

    wallet: Wallet
    fee_amount: Decimal
    fee_type: str
    total_amount: Decimal
    fee_rule: FeeRule
    ok: bool = True


@dataclass(frozen=True)
class PartySnapshot:
    """Sender or receiver details copied onto a transaction at creation."""

    id: str
    name: Optional[str] = None
    role: str = "customer"
    tier: Optional[str] = None
    phone: Optional[str] = None


@dataclass(frozen=True)
class FeeLine:
    """One fee charged on a transaction."""

    fee_amount: Decimal
    fee_type: str
    currency: str = "USD"
    description: Optional[str] = None
    revenue_status: str = "pending"
    settlement_date: Optional[datetime] = None


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity."""

    transaction_ref: str
    transaction_date: datetime
    transaction_type: str
    status: str
    sender: PartySnapshot
    receiver: PartySnapshot
    transfer_amount: Decimal
    currency: str
    fees: tuple[FeeLine, ...] = ()
    notes: Optional[str] = None
    id: Optional[int] = None

    @property
    def total_fee(self) -> Decimal:
        return sum((fee.fee_amount for fee in self.fees), Decimal("0"))


@dataclass(frozen=True)
class LedgerEntry:
    """One account movement; exactly one of debit and credit is non-zero."""

    entry_id: str
    transaction_ref: str
    entry_date: datetime
    account: str
    debit: Decimal
    credit: Decimal
    currency: str
    entry_type: str
    description: Optional[str] = None
    notes: Optional[str] = None
    settlement_batch: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class RevenueRecord:
    """Fee earned by the platform."""

    revenue_ref: str
    revenue_type: str
    amount: Decimal
    currency: str
    status: str
    transaction_date: datetime
    associated_transaction_ref: Optional[str] = None
    settlement_date: Optional[datetime] = None
    settlement_batch: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    region: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class SettlementResult:
    """Outcome of settling one batch of revenue records."""

    batch_ref: str
    total_amount: Decimal
    currency: str
    settled_count: int
    settlement_date: datetime
    revenue_ids: tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SettlementBatch:
    """Settled revenue grouped by batch reference."""

    batch_ref: str
    settlement_date: Optional[datetime]
    total_amount: Decimal
    currency: str
    count: int
    revenue_ids: tuple[int, ...]


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a wallet-to-wallet transfer."""

    transaction_ref: str
    revenue_ref: Optional[str]
    amount: Decimal
    fee_amount: Decimal
    fee_type: str
    sender_balance: Decimal
