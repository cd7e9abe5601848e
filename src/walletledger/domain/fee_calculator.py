"""Fee calculation.

``compute_fee`` is pure: the same rule and amount always produce the same
fee, and nothing is read from or written to the database.
"""

from decimal import Decimal

from walletledger.domain.entities import (
    FeeBracket,
    FeeRule,
    FixedFee,
    HybridFee,
    PercentageFee,
    TieredFee,
)
from walletledger.domain.errors import ValidationError
from walletledger.utils.amount_parser import round_money, to_decimal

HUNDRED = Decimal("100")


def _percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    return amount * rate / HUNDRED


def select_bracket(brackets: tuple[FeeBracket, ...], amount: Decimal) -> FeeBracket:
    """Pick the bracket containing ``amount``.

    Amounts above every bracket fall back to the bracket with the largest
    ``max_amount``. Amounts below every bracket fall back the same way.

    Raises:
        ValidationError: If there are no brackets
    """
    if not brackets:
        raise ValidationError("Tiered fee rule has no brackets")
    for bracket in brackets:
        if bracket.contains(amount):
            return bracket
    return max(brackets, key=lambda b: b.max_amount)


def raw_fee(rule: FeeRule, amount: Decimal) -> Decimal:
    """Fee before min/max clamping and rounding."""
    calculation = rule.calculation
    if isinstance(calculation, FixedFee):
        return calculation.amount
    if isinstance(calculation, PercentageFee):
        return _percent_of(amount, calculation.rate)
    if isinstance(calculation, HybridFee):
        return calculation.fixed_amount + _percent_of(amount, calculation.rate)
    if isinstance(calculation, TieredFee):
        bracket = select_bracket(calculation.brackets, amount)
        return bracket.fixed_amount + _percent_of(amount, bracket.percentage_rate)
    raise ValidationError(f"Unsupported fee calculation: {calculation!r}")


def compute_fee(rule: FeeRule, amount) -> Decimal:
    """Compute the fee charged by ``rule`` on ``amount``.

    The amount is rounded to cents first. The fee is clamped to
    ``minimum_fee``/``maximum_fee`` (each only when positive) and rounded
    to cents, half away from zero.

    Args:
        rule: Fee rule to apply
        amount: Transaction amount (Decimal, int, float or numeric string)

    Returns:
        Fee amount with exactly two decimal places

    Raises:
        ValidationError: If the amount is not a number or the rule is malformed
    """
    try:
        amount = round_money(amount)
    except ValueError as e:
        raise ValidationError(str(e))

    fee = raw_fee(rule, amount)

    if rule.minimum_fee > 0 and fee < rule.minimum_fee:
        fee = to_decimal(rule.minimum_fee)
    if rule.maximum_fee > 0 and fee > rule.maximum_fee:
        fee = to_decimal(rule.maximum_fee)

    return round_money(fee)
