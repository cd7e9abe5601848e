"""Fee rule catalog: storage, validation and rule selection."""

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from walletledger.database.base import Database
from walletledger.domain.entities import (
    ANY_TRANSACTION_TYPE,
    DEFAULT_TIER,
    FEE_TYPES,
    TIERS,
    TRANSACTION_TYPES,
    WILDCARD_REGION,
    WILDCARD_TIER,
    FeeBracket,
    FeeQuote,
    FeeRule,
    FixedFee,
    HybridFee,
    PercentageFee,
    TieredFee,
)
from walletledger.domain.errors import NotFoundError, ValidationError, fee_rule_not_found
from walletledger.domain.fee_calculator import compute_fee
from walletledger.utils.amount_parser import round_money, to_decimal
from walletledger.utils.date_parser import utcnow

logger = logging.getLogger(__name__)

EXPLICIT_MATCH = 10
WILDCARD_MATCH = 5
NO_MATCH = 0

# Used when no configured rule applies. Pricing never fails for lack of a rule.
DEFAULT_FEE_RULE = FeeRule(
    name="Default transaction fee",
    fee_type="transaction_fee",
    transaction_type=ANY_TRANSACTION_TYPE,
    calculation=FixedFee(amount=Decimal("1.00")),
    currency="USD",
    description="Default transaction fee",
)


def default_fee_rules(now: Optional[datetime] = None) -> list[FeeRule]:
    """Starter rule set: per-tier transfer fees, withdrawal fees, and two
    inactive examples (a tiered transfer fee and a service fee)."""
    start = now or utcnow()
    d = Decimal
    rules = [
        FeeRule(
            name=f"{label} Tier Transfer Fee",
            fee_type="transaction_fee",
            transaction_type="transfer",
            calculation=PercentageFee(rate=d(rate)),
            minimum_fee=d("1.00"),
            maximum_fee=d(maximum),
            applicable_tiers=(tier,),
            description=f"{kind} percentage fee for {label.lower()} tier transfers",
        )
        for tier, label, kind, rate, maximum in (
            ("BASIC", "Basic", "Standard", "3.0", "50.00"),
            ("STANDARD", "Standard", "Standard", "2.5", "75.00"),
            ("PREMIUM", "Premium", "Reduced", "1.5", "100.00"),
            ("VIP", "VIP", "Minimal", "1.0", "200.00"),
        )
    ]
    rules += [
        FeeRule(
            name="Standard Withdrawal Fee",
            fee_type="withdrawal_fee",
            transaction_type="withdrawal",
            calculation=HybridFee(fixed_amount=d("0.50"), rate=d("1.0")),
            minimum_fee=d("1.00"),
            maximum_fee=d("20.00"),
            applicable_tiers=("BASIC", "STANDARD"),
            description="Hybrid fee for withdrawals (fixed + percentage)",
        ),
        FeeRule(
            name="Premium Withdrawal Fee",
            fee_type="withdrawal_fee",
            transaction_type="withdrawal",
            calculation=FixedFee(amount=d("1.00")),
            applicable_tiers=("PREMIUM", "VIP"),
            description="Fixed fee for premium and VIP withdrawals",
        ),
        FeeRule(
            name="Tiered Transfer Fee",
            fee_type="transaction_fee",
            transaction_type="transfer",
            calculation=TieredFee(
                brackets=(
                    FeeBracket(d("0"), d("100"), fixed_amount=d("1.00")),
                    FeeBracket(d("100.01"), d("1000"), percentage_rate=d("2.0")),
                    FeeBracket(d("1000.01"), d("10000"), percentage_rate=d("1.5")),
                    FeeBracket(d("10000.01"), d("50000"), percentage_rate=d("1.0")),
                )
            ),
            is_active=False,
            description="Tiered fee structure based on transaction amount",
        ),
        FeeRule(
            name="Standard Service Fee",
            fee_type="service_fee",
            transaction_type=ANY_TRANSACTION_TYPE,
            calculation=FixedFee(amount=d("2.99")),
            applicable_tiers=("BASIC", "STANDARD"),
            is_active=False,
            description="Fixed monthly service fee",
        ),
    ]
    return [replace(rule, effective_start=start) for rule in rules]


def applicability_score(listed: tuple[str, ...], requested: str, wildcard: str) -> int:
    """Score how specifically a rule's filter list matches a request value."""
    if requested in listed:
        return EXPLICIT_MATCH
    if wildcard in listed:
        return WILDCARD_MATCH
    return NO_MATCH


def validate_rule(rule: FeeRule) -> None:
    """Reject malformed fee rules before they are stored.

    Raises:
        ValidationError: Describing the first problem found
    """
    if not rule.name or not rule.name.strip():
        raise ValidationError("Fee rule name cannot be empty")
    if rule.fee_type not in FEE_TYPES:
        raise ValidationError(f"Unknown fee type '{rule.fee_type}'. Expected one of: {', '.join(FEE_TYPES)}")
    if rule.transaction_type not in TRANSACTION_TYPES + (ANY_TRANSACTION_TYPE,):
        raise ValidationError(f"Unknown transaction type '{rule.transaction_type}'")

    for label, value in (("Minimum fee", rule.minimum_fee), ("Maximum fee", rule.maximum_fee)):
        if value < 0:
            raise ValidationError(f"{label} cannot be negative")
    if rule.minimum_fee > 0 and rule.maximum_fee > 0 and rule.minimum_fee > rule.maximum_fee:
        raise ValidationError("Minimum fee cannot exceed maximum fee")

    calculation = rule.calculation
    if isinstance(calculation, FixedFee):
        amounts = [calculation.amount]
    elif isinstance(calculation, PercentageFee):
        amounts = [calculation.rate]
    elif isinstance(calculation, HybridFee):
        amounts = [calculation.fixed_amount, calculation.rate]
    elif isinstance(calculation, TieredFee):
        if not calculation.brackets:
            raise ValidationError("Tiered fee rules need at least one bracket")
        amounts = []
        for bracket in calculation.brackets:
            if bracket.min_amount > bracket.max_amount:
                raise ValidationError(
                    f"Bracket minimum {bracket.min_amount} exceeds maximum {bracket.max_amount}"
                )
            amounts += [bracket.min_amount, bracket.fixed_amount, bracket.percentage_rate]
    else:
        raise ValidationError(f"Unsupported fee calculation: {calculation!r}")
    if any(value < 0 for value in amounts):
        raise ValidationError("Fee amounts and rates cannot be negative")

    if not rule.applicable_tiers:
        raise ValidationError("Fee rule must list at least one tier (or ALL)")
    for tier in rule.applicable_tiers:
        if tier not in TIERS + (WILDCARD_TIER,):
            raise ValidationError(f"Unknown tier '{tier}'. Expected one of: {', '.join(TIERS)} or ALL")
    if not rule.applicable_regions:
        raise ValidationError("Fee rule must list at least one region (or GLOBAL)")

    if rule.effective_start and rule.effective_end and rule.effective_end <= rule.effective_start:
        raise ValidationError("Effective end must be after effective start")


class FeeCatalog:
    """Service for managing fee rules and picking the one that applies."""

    def __init__(self, db: Database):
        """Initialize fee catalog.

        Args:
            db: Database instance
        """
        self.db = db

    def select_fee_rule(
        self,
        transaction_type: str,
        amount=None,
        tier: str = DEFAULT_TIER,
        region: str = WILDCARD_REGION,
        now: Optional[datetime] = None,
    ) -> FeeRule:
        """Select the single fee rule applying to a request.

        Candidates are active rules for the transaction type (or "all")
        whose effective range contains ``now``. Each is scored on tier and
        region: 10 for an explicit listing, 5 for the wildcard, 0 otherwise.
        Candidates scoring 0 on either axis are dropped. The highest tier
        score wins, then region score, then the latest effective start.

        Args:
            transaction_type: Transaction type being priced
            amount: Transaction amount; not used for selection
            tier: Requesting wallet's tier
            region: Requesting wallet's region
            now: Moment of pricing (defaults to current UTC time)

        Returns:
            The selected rule, or DEFAULT_FEE_RULE if none applies
        """
        moment = now or utcnow()
        candidates = self.db.list_fee_rules(transaction_type=transaction_type, active_at=moment)

        scored = []
        for rule in candidates:
            tier_score = applicability_score(rule.applicable_tiers, tier, WILDCARD_TIER)
            region_score = applicability_score(rule.applicable_regions, region, WILDCARD_REGION)
            if tier_score == NO_MATCH or region_score == NO_MATCH:
                continue
            scored.append((tier_score, region_score, rule.effective_start or datetime.min, rule.id or 0, rule))

        if not scored:
            logger.warning(
                "No fee rule for type=%s tier=%s region=%s; using default rule",
                transaction_type,
                tier,
                region,
            )
            return DEFAULT_FEE_RULE

        scored.sort(key=lambda item: item[:4], reverse=True)
        selected = scored[0][4]
        logger.debug("Selected fee rule %s (%s) for %s/%s/%s", selected.id, selected.name, transaction_type, tier, region)
        return selected

    def estimate(
        self,
        transaction_type: str,
        amount,
        tier: str = DEFAULT_TIER,
        region: str = WILDCARD_REGION,
        now: Optional[datetime] = None,
    ) -> FeeQuote:
        """Price a prospective transaction without touching any wallet.

        Raises:
            ValidationError: If amount is not a positive number
        """
        try:
            amount = round_money(amount)
        except ValueError as e:
            raise ValidationError(str(e))
        if amount <= 0:
            raise ValidationError("Amount must be greater than zero")

        rule = self.select_fee_rule(transaction_type, amount, tier, region, now)
        fee = compute_fee(rule, amount)
        return FeeQuote(
            fee_amount=fee,
            total_amount=amount + fee,
            fee_type=rule.fee_type,
            calculation_type=rule.calculation_type,
            description=rule.description,
            currency=rule.currency,
            rule_id=rule.id,
        )

    def create_rule(self, rule: FeeRule) -> int:
        """Validate and store a fee rule.

        Returns:
            Rule ID

        Raises:
            ValidationError: If the rule is malformed
        """
        rule = replace(
            rule,
            minimum_fee=to_decimal(rule.minimum_fee),
            maximum_fee=to_decimal(rule.maximum_fee),
            applicable_tiers=tuple(t.upper() for t in rule.applicable_tiers),
            applicable_regions=tuple(r.upper() for r in rule.applicable_regions),
        )
        validate_rule(rule)
        rule_id = self.db.create_fee_rule(rule)
        logger.info("Created fee rule %s (%s)", rule_id, rule.name)
        return rule_id

    def get_rule(self, rule_id: int) -> Optional[FeeRule]:
        """Get fee rule by ID, or None."""
        return self.db.get_fee_rule(rule_id)

    def require_rule(self, rule_id: int) -> FeeRule:
        """Get fee rule by ID.

        Raises:
            NotFoundError: If no rule has this ID
        """
        rule = self.db.get_fee_rule(rule_id)
        if rule is None:
            raise NotFoundError(fee_rule_not_found(rule_id))
        return rule

    def list_rules(self, transaction_type: Optional[str] = None, include_inactive: bool = True) -> list[FeeRule]:
        """List fee rules, optionally for one transaction type (plus "all" rules)."""
        return self.db.list_fee_rules(transaction_type=transaction_type, include_inactive=include_inactive)

    def deactivate_rule(self, rule_id: int) -> None:
        """Deactivate a fee rule. Deactivated rules are never selected."""
        self.require_rule(rule_id)
        self.db.set_fee_rule_active(rule_id, False)
        logger.info("Deactivated fee rule %s", rule_id)

    def activate_rule(self, rule_id: int) -> None:
        """Re-activate a fee rule."""
        self.require_rule(rule_id)
        self.db.set_fee_rule_active(rule_id, True)
        logger.info("Activated fee rule %s", rule_id)

    def install_defaults(self, now: Optional[datetime] = None) -> list[int]:
        """Store the starter rule set, skipping rules whose name already exists.

        Returns:
            IDs of the rules created
        """
        existing = {rule.name for rule in self.db.list_fee_rules(include_inactive=True)}
        created = []
        with self.db.atomic():
            for rule in default_fee_rules(now):
                if rule.name in existing:
                    continue
                created.append(self.create_rule(rule))
        return created
