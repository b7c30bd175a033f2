"""
Display Formatting

The only formatting contract callers rely on is two-decimal USD
currency; the date helpers match the labels the views show.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Union

from src.models.records import coerce_amount, coerce_timestamp


CENTS = Decimal("0.01")


def format_currency(amount: Any, symbol: str = "$") -> str:
    """
    Two-decimal currency with thousands separators.

    format_currency(1234.5)  -> "$1,234.50"
    format_currency(-50)     -> "-$50.00"
    format_currency(None)    -> "$0.00"
    """
    value = coerce_amount(amount)
    if value is None:
        value = Decimal("0")
    value = value.quantize(CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_date(value: Union[date, datetime, str, None]) -> str:
    """'Mar 5, 2024'; empty string when the date is unparseable."""
    timestamp = coerce_timestamp(value)
    if timestamp is None:
        return ""
    return f"{timestamp:%b} {timestamp.day}, {timestamp.year}"


def format_short_date(value: Union[date, datetime]) -> str:
    """'Mar 5'"""
    return f"{value:%b} {value.day}"


def month_name(value: Union[date, datetime]) -> str:
    """'March 2024'"""
    return value.strftime("%B %Y")


def short_month_name(value: Union[date, datetime]) -> str:
    """'Mar'"""
    return value.strftime("%b")


def day_key(value: Union[date, datetime]) -> str:
    """'2024-03-05', the calendar-cell key."""
    return value.strftime("%Y-%m-%d")


def format_percent(value: float) -> str:
    """Whole-number percentage label ('50%')."""
    whole = Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{whole}%"
