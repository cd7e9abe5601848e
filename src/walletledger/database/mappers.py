"""Mapper functions to convert between domain models and SQLAlchemy models.

Fee rules are the one place where the shapes differ: the table keeps flat
fixed/percentage columns plus a bracket child table, while the domain
carries a single calculation variant.
"""

from decimal import Decimal

from walletledger.domain import entities as domain
from walletledger.domain.errors import ValidationError
from walletledger.database.models import (
    Wallet as ORMWallet,
    FeeRule as ORMFeeRule,
    FeeBracket as ORMFeeBracket,
    Transaction as ORMTransaction,
    TransactionFee as ORMTransactionFee,
    LedgerEntry as ORMLedgerEntry,
    Revenue as ORMRevenue,
)

ZERO = Decimal("0")


def wallet_to_domain(orm_wallet: ORMWallet) -> domain.Wallet:
    """Convert SQLAlchemy Wallet model to domain Wallet entity."""
    return domain.Wallet(
        id=orm_wallet.id,
        owner_ref=orm_wallet.owner_ref,
        owner_type=orm_wallet.owner_type,
        balance=orm_wallet.balance,
        currency=orm_wallet.currency,
        tier=orm_wallet.tier,
        is_active=orm_wallet.is_active,
        monthly_transaction_count=orm_wallet.monthly_transaction_count,
        counter_reset_at=orm_wallet.counter_reset_at,
        created_at=orm_wallet.created_at,
    )


def calculation_to_domain(orm_rule: ORMFeeRule) -> domain.FeeCalculation:
    """Build the calculation variant from a fee rule row."""
    kind = orm_rule.calculation_type
    if kind == "fixed":
        return domain.FixedFee(amount=orm_rule.fixed_amount)
    if kind == "percentage":
        return domain.PercentageFee(rate=orm_rule.percentage_rate)
    if kind == "hybrid":
        return domain.HybridFee(fixed_amount=orm_rule.fixed_amount, rate=orm_rule.percentage_rate)
    if kind == "tiered":
        return domain.TieredFee(
            brackets=tuple(
                domain.FeeBracket(
                    min_amount=b.min_amount,
                    max_amount=b.max_amount,
                    fixed_amount=b.fixed_amount,
                    percentage_rate=b.percentage_rate,
                )
                for b in orm_rule.brackets
            )
        )
    raise ValidationError(f"Unknown calculation type '{kind}' on fee rule {orm_rule.id}")


def fee_rule_to_domain(orm_rule: ORMFeeRule) -> domain.FeeRule:
    """Convert SQLAlchemy FeeRule model to domain FeeRule entity."""
    return domain.FeeRule(
        id=orm_rule.id,
        name=orm_rule.name,
        fee_type=orm_rule.fee_type,
        transaction_type=orm_rule.transaction_type,
        calculation=calculation_to_domain(orm_rule),
        currency=orm_rule.currency,
        minimum_fee=orm_rule.minimum_fee,
        maximum_fee=orm_rule.maximum_fee,
        applicable_tiers=tuple(orm_rule.applicable_tiers or ()),
        applicable_regions=tuple(orm_rule.applicable_regions or ()),
        is_active=orm_rule.is_active,
        effective_start=orm_rule.effective_start,
        effective_end=orm_rule.effective_end,
        description=orm_rule.description,
    )


def fee_rule_to_orm(rule: domain.FeeRule) -> ORMFeeRule:
    """Convert a domain FeeRule into a new SQLAlchemy row (without id)."""
    calculation = rule.calculation
    fixed_amount = ZERO
    percentage_rate = ZERO
    brackets = []
    if isinstance(calculation, domain.FixedFee):
        fixed_amount = calculation.amount
    elif isinstance(calculation, domain.PercentageFee):
        percentage_rate = calculation.rate
    elif isinstance(calculation, domain.HybridFee):
        fixed_amount = calculation.fixed_amount
        percentage_rate = calculation.rate
    elif isinstance(calculation, domain.TieredFee):
        brackets = [
            ORMFeeBracket(
                position=position,
                min_amount=b.min_amount,
                max_amount=b.max_amount,
                fixed_amount=b.fixed_amount,
                percentage_rate=b.percentage_rate,
            )
            for position, b in enumerate(calculation.brackets)
        ]

    orm_rule = ORMFeeRule(
        name=rule.name,
        fee_type=rule.fee_type,
        transaction_type=rule.transaction_type,
        calculation_type=rule.calculation_type,
        fixed_amount=fixed_amount,
        percentage_rate=percentage_rate,
        currency=rule.currency,
        minimum_fee=rule.minimum_fee,
        maximum_fee=rule.maximum_fee,
        applicable_tiers=list(rule.applicable_tiers),
        applicable_regions=list(rule.applicable_regions),
        is_active=rule.is_active,
        effective_start=rule.effective_start,
        effective_end=rule.effective_end,
        description=rule.description,
    )
    orm_rule.brackets = brackets
    return orm_rule


def fee_line_to_domain(orm_fee: ORMTransactionFee) -> domain.FeeLine:
    """Convert SQLAlchemy TransactionFee model to domain FeeLine."""
    return domain.FeeLine(
        fee_amount=orm_fee.fee_amount,
        fee_type=orm_fee.fee_type,
        currency=orm_fee.currency,
        description=orm_fee.description,
        revenue_status=orm_fee.revenue_status,
        settlement_date=orm_fee.settlement_date,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        transaction_ref=orm_transaction.transaction_ref,
        transaction_date=orm_transaction.transaction_date,
        transaction_type=orm_transaction.transaction_type,
        status=orm_transaction.status,
        sender=domain.PartySnapshot(
            id=orm_transaction.sender_id,
            name=orm_transaction.sender_name,
            role=orm_transaction.sender_role,
            tier=orm_transaction.sender_tier,
            phone=orm_transaction.sender_phone,
        ),
        receiver=domain.PartySnapshot(
            id=orm_transaction.receiver_id,
            name=orm_transaction.receiver_name,
            role=orm_transaction.receiver_role,
            tier=orm_transaction.receiver_tier,
            phone=orm_transaction.receiver_phone,
        ),
        transfer_amount=orm_transaction.transfer_amount,
        currency=orm_transaction.currency,
        fees=tuple(fee_line_to_domain(fee) for fee in orm_transaction.fees),
        notes=orm_transaction.notes,
    )


def transaction_to_orm(transaction: domain.Transaction) -> ORMTransaction:
    """Convert a domain Transaction into a new SQLAlchemy row (without id)."""
    orm_transaction = ORMTransaction(
        transaction_ref=transaction.transaction_ref,
        transaction_date=transaction.transaction_date,
        transaction_type=transaction.transaction_type,
        status=transaction.status,
        sender_id=transaction.sender.id,
        sender_name=transaction.sender.name,
        sender_role=transaction.sender.role,
        sender_tier=transaction.sender.tier,
        sender_phone=transaction.sender.phone,
        receiver_id=transaction.receiver.id,
        receiver_name=transaction.receiver.name,
        receiver_role=transaction.receiver.role,
        receiver_tier=transaction.receiver.tier,
        receiver_phone=transaction.receiver.phone,
        transfer_amount=transaction.transfer_amount,
        currency=transaction.currency,
        notes=transaction.notes,
    )
    orm_transaction.fees = [
        ORMTransactionFee(
            fee_amount=fee.fee_amount,
            currency=fee.currency,
            fee_type=fee.fee_type,
            description=fee.description,
            revenue_status=fee.revenue_status,
            settlement_date=fee.settlement_date,
        )
        for fee in transaction.fees
    ]
    return orm_transaction


def ledger_entry_to_domain(orm_entry: ORMLedgerEntry) -> domain.LedgerEntry:
    """Convert SQLAlchemy LedgerEntry model to domain LedgerEntry entity."""
    return domain.LedgerEntry(
        id=orm_entry.id,
        entry_id=orm_entry.entry_id,
        transaction_ref=orm_entry.transaction_ref,
        entry_date=orm_entry.entry_date,
        account=orm_entry.account,
        debit=orm_entry.debit,
        credit=orm_entry.credit,
        currency=orm_entry.currency,
        entry_type=orm_entry.entry_type,
        description=orm_entry.description,
        notes=orm_entry.notes,
        settlement_batch=orm_entry.settlement_batch,
    )


def ledger_entry_to_orm(entry: domain.LedgerEntry) -> ORMLedgerEntry:
    """Convert a domain LedgerEntry into a new SQLAlchemy row (without id)."""
    return ORMLedgerEntry(
        entry_id=entry.entry_id,
        transaction_ref=entry.transaction_ref,
        entry_date=entry.entry_date,
        account=entry.account,
        debit=entry.debit,
        credit=entry.credit,
        currency=entry.currency,
        entry_type=entry.entry_type,
        description=entry.description,
        notes=entry.notes,
        settlement_batch=entry.settlement_batch,
    )


def revenue_to_domain(orm_revenue: ORMRevenue) -> domain.RevenueRecord:
    """Convert SQLAlchemy Revenue model to domain RevenueRecord entity."""
    return domain.RevenueRecord(
        id=orm_revenue.id,
        revenue_ref=orm_revenue.revenue_ref,
        revenue_type=orm_revenue.revenue_type,
        amount=orm_revenue.amount,
        currency=orm_revenue.currency,
        status=orm_revenue.status,
        transaction_date=orm_revenue.transaction_date,
        associated_transaction_ref=orm_revenue.associated_transaction_ref,
        settlement_date=orm_revenue.settlement_date,
        settlement_batch=orm_revenue.settlement_batch,
        description=orm_revenue.description,
        notes=orm_revenue.notes,
        region=orm_revenue.region,
    )


def revenue_to_orm(record: domain.RevenueRecord) -> ORMRevenue:
    """Convert a domain RevenueRecord into a new SQLAlchemy row (without id)."""
    return ORMRevenue(
        revenue_ref=record.revenue_ref,
        revenue_type=record.revenue_type,
        amount=record.amount,
        currency=record.currency,
        status=record.status,
        transaction_date=record.transaction_date,
        associated_transaction_ref=record.associated_transaction_ref,
        settlement_date=record.settlement_date,
        settlement_batch=record.settlement_batch,
        description=record.description,
        notes=record.notes,
        region=record.region,
    )
