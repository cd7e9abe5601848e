"""Utility functions for walletledger."""

from walletledger.utils.amount_parser import parse_amount, round_money, to_decimal
from walletledger.utils.date_parser import parse_datetime, utcnow

__all__ = ["parse_amount", "round_money", "to_decimal", "parse_datetime", "utcnow"]
