"""Helpers for reading JSON-style request payloads."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from walletledger.domain.errors import ValidationError
from walletledger.utils.amount_parser import round_money
from walletledger.utils.date_parser import parse_datetime, to_naive_utc


def pick(payload: Mapping[str, Any], *keys: str, default=None):
    """Return the value of the first key present and not None.

    Lets callers accept both camelCase and snake_case spellings.
    """
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


def money_field(value, field_name: str) -> Decimal:
    """Read a currency amount, rounded to cents.

    Raises:
        ValidationError: If the value is not a number
    """
    try:
        return round_money(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be a number, got {value!r}")


def date_field(value, field_name: str) -> Optional[datetime]:
    """Read an optional timestamp as naive UTC.

    Raises:
        ValidationError: If the value is not a parseable date
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    try:
        return parse_datetime(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} is not a valid date: {value!r}")


def amount_with_currency(value, field_name: str) -> tuple[Decimal, Optional[str]]:
    """Read an amount sent either bare or as ``{"amount": ..., "currency": ...}``.

    Returns:
        The rounded amount and the nested currency, if one was sent
    """
    if isinstance(value, Mapping):
        amount = pick(value, "amount", "value")
        if amount is None:
            raise ValidationError(f"{field_name}.amount is required")
        currency = pick(value, "currency")
        return money_field(amount, f"{field_name}.amount"), str(currency).upper() if currency else None
    return money_field(value, field_name), None
