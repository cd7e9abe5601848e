"""Tests for amount parsing and rounding."""

from decimal import Decimal

import pytest

from walletledger.utils.amount_parser import parse_amount, round_money, to_decimal


def test_parse_plain_amount():
    assert parse_amount("123.45") == Decimal("123.45")


def test_parse_currency_symbol_and_commas():
    assert parse_amount("$1,234.56") == Decimal("1234.56")
    assert parse_amount(" €50 ") == Decimal("50")


@pytest.mark.parametrize("text", ["", "   ", "abc", "1.2.3"])
def test_parse_invalid(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_float_goes_through_string_form():
    assert to_decimal(0.1) == Decimal("0.1")


@pytest.mark.parametrize("value", [True, "NaN", "Infinity"])
def test_to_decimal_rejects_non_numbers(value):
    with pytest.raises(ValueError):
        to_decimal(value)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("0.005", "0.01"),
        ("0.0049", "0.00"),
        ("2.675", "2.68"),
        ("-0.005", "-0.01"),
        (10, "10.00"),
    ],
)
def test_round_money_half_up(value, expected):
    result = round_money(value)
    assert result == Decimal(expected)
    assert result.as_tuple().exponent == -2
