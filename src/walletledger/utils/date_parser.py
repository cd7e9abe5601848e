"""Date parsing utilities.

Timestamps are stored as naive UTC datetimes; everything entering the
domain goes through ``to_naive_utc``.
"""

from datetime import datetime, timedelta, UTC
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def month_start(moment: datetime) -> datetime:
    """First instant of the calendar month containing ``moment``."""
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def next_month_start(moment: datetime) -> datetime:
    """First instant of the calendar month after ``moment``."""
    return month_start(moment) + relativedelta(months=1)


def parse_datetime(value: str) -> datetime:
    """Parse a datetime string into a naive UTC datetime.

    Supports:
    - Absolute timestamps: "2024-01-15", "2024-01-15T10:30:00Z", etc.
    - Relative values: "now", "today", "yesterday", "tomorrow"

    Args:
        value: Datetime string

    Returns:
        Naive UTC datetime

    Raises:
        ValueError: If the string cannot be parsed
    """
    text = value.strip().lower()
    now = utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)

    relative = {
        "now": now,
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if text in relative:
        return relative[text]

    try:
        parsed = date_parser.parse(value.strip())
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{value}': {e}")
    return to_naive_utc(parsed)
