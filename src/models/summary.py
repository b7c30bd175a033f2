"""
Derived Models

Everything in this module is computed from the base records on demand
and never persisted. Recomputing is cheap; there is no caching.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models.records import ExpenseCategory


class MonthRange(BaseModel):
    """
    Inclusive [first day, last day] interval of one calendar month.

    Both bounds sit at local midnight.
    """
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    def contains(self, timestamp: datetime) -> bool:
        """
        Membership check: any time on the last day is inside, while
        the start bound is compared as a full timestamp.
        """
        day = timestamp.date()
        if not self.start.date() <= day <= self.end.date():
            return False
        return timestamp >= self.start


class CategoryTotal(BaseModel):
    """Spending total for one category."""
    model_config = ConfigDict(frozen=True)

    category: ExpenseCategory
    total: Decimal


class JobStats(BaseModel):
    """A job extended with its earned, received and pending figures."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    total_earned: Decimal = Decimal("0")
    total_received: Decimal = Decimal("0")
    pending: Decimal = Field(
        default=Decimal("0"),
        description="total_earned - total_received; negative when overpaid"
    )
    progress: float = Field(
        default=0.0,
        description="Percent of earnings received (not clamped)"
    )


class DataQualityReport(BaseModel):
    """
    Degraded-input signal for one collection.

    The engine never fails on malformed records; this report
    makes the silently-neutralized records visible.
    """
    model_config = ConfigDict(frozen=True)

    total_records: int = Field(default=0, ge=0)
    unparseable_dates: int = Field(default=0, ge=0)
    missing_amounts: int = Field(default=0, ge=0)

    @property
    def skipped_records(self) -> int:
        """Records left out of any date-range filter."""
        return self.unparseable_dates

    @property
    def is_degraded(self) -> bool:
        return bool(self.unparseable_dates or self.missing_amounts)

    def merge(self, other: "DataQualityReport") -> "DataQualityReport":
        return DataQualityReport(
            total_records=self.total_records + other.total_records,
            unparseable_dates=self.unparseable_dates + other.unparseable_dates,
            missing_amounts=self.missing_amounts + other.missing_amounts,
        )


class ExpenseSummary(BaseModel):
    """Figures shown in the expense summary panel for a selected day."""
    model_config = ConfigDict(frozen=True)

    selected_date: datetime
    daily_total: Decimal
    monthly_total: Decimal
    day_of_month: int
    days_in_month: int
    month_progress: float = Field(
        ...,
        description="Raw percent of the month elapsed"
    )
    month_progress_display: float = Field(
        ...,
        description="month_progress clamped to [0, 100]"
    )
    daily_average: Decimal
    projected_monthly: Decimal
    top_category: Optional[CategoryTotal] = None
    data_quality: DataQualityReport = Field(default_factory=DataQualityReport)


class MonthlyStats(BaseModel):
    """Dashboard figures for the selected month only."""
    model_config = ConfigDict(frozen=True)

    month: MonthRange
    total_expenses: Decimal
    total_earned: Decimal
    total_received: Decimal
    total_pending: Decimal
    net_balance: Decimal = Field(
        default=Decimal("0"),
        description="total_earned - total_expenses"
    )
    expense_count: int = 0
    work_entry_count: int = 0
    payment_count: int = 0
    data_quality: DataQualityReport = Field(default_factory=DataQualityReport)


class SalaryOverview(BaseModel):
    """All-time salary figures across every job."""
    model_config = ConfigDict(frozen=True)

    jobs: list[JobStats] = Field(default_factory=list)
    total_earned: Decimal = Decimal("0")
    total_received: Decimal = Decimal("0")
    total_pending: Decimal = Decimal("0")
    overall_progress: float = 0.0


class WorkHistoryRow(BaseModel):
    """One line of the work history list."""
    model_config = ConfigDict(frozen=True)

    entry_id: str
    job_id: Optional[str] = None
    job_name: str
    date: Optional[datetime] = None
    amount: Decimal = Decimal("0")


class CalendarDay(BaseModel):
    """One cell of the month calendar. day is None for leading blanks."""
    model_config = ConfigDict(frozen=True)

    day: Optional[datetime] = None
    total: Decimal = Decimal("0")
    in_month: bool = False
    is_selected: bool = False

    @property
    def has_expenses(self) -> bool:
        return self.total > 0


class CalendarMonth(BaseModel):
    """A Sunday-first month grid."""
    model_config = ConfigDict(frozen=True)

    month: MonthRange
    days: list[CalendarDay] = Field(default_factory=list)

    @property
    def weeks(self) -> list[list[CalendarDay]]:
        return [self.days[i:i + 7] for i in range(0, len(self.days), 7)]

