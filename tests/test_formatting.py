"""Tests for display formatting."""

import math
from datetime import date, datetime
from decimal import Decimal

from src.formatting import (
    day_key,
    format_currency,
    format_date,
    format_percent,
    format_short_date,
    month_name,
    short_month_name,
)


class TestCurrency:
    """Tests for the two-decimal currency contract."""

    def test_thousands_and_cents(self):
        """Test $1,234.50."""
        assert format_currency(1234.5) == "$1,234.50"
        assert format_currency(Decimal("1000000")) == "$1,000,000.00"

    def test_negative(self):
        """Test the sign goes before the symbol."""
        assert format_currency(-50) == "-$50.00"

    def test_missing_values(self):
        """Test None and NaN render as zero."""
        assert format_currency(None) == "$0.00"
        assert format_currency(math.nan) == "$0.00"

    def test_rounding(self):
        """Test half-up rounding to cents."""
        assert format_currency(Decimal("2.005")) == "$2.01"
        assert format_currency(Decimal("2.5") / 3) == "$0.83"

    def test_symbol(self):
        """Test a configured symbol."""
        assert format_currency(5, symbol="€") == "€5.00"


class TestDates:
    """Tests for date labels."""

    def test_format_date(self):
        """Test Mar 5, 2024."""
        assert format_date(date(2024, 3, 5)) == "Mar 5, 2024"
        assert format_date("2024-12-25T10:00:00") == "Dec 25, 2024"
        assert format_date("garbage") == ""

    def test_short_labels(self):
        """Test month and day labels."""
        assert format_short_date(datetime(2024, 3, 5, 9)) == "Mar 5"
        assert month_name(date(2024, 3, 5)) == "March 2024"
        assert short_month_name(date(2024, 3, 5)) == "Mar"
        assert day_key(datetime(2024, 3, 5, 23, 59)) == "2024-03-05"

    def test_percent(self):
        """Test whole-number percentages."""
        assert format_percent(50.0) == "50%"
        assert format_percent(62.5) == "63%"
        assert format_percent(0) == "0%"
