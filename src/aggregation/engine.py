"""
Aggregation Engine

DESIGN DECISION: Aggregation is PURE.
Every function here is a deterministic transformation from
(collections, reference date) to derived figures:
- no I/O, no logging, no shared state
- never raises on empty, zero or malformed input
- never mutates the records it is given

Malformed input degrades to a neutral value instead of an error:
a missing or NaN amount counts as 0, an unparseable date drops the
record out of any date-range filter. check_data_quality() reports
how many records were neutralized so callers can surface it.

Records may be pydantic models or plain mappings straight from the
API; fields are read by attribute or by key.
"""

import calendar
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Union

from src.models.records import (
    ExpenseCategory,
    coerce_amount,
    coerce_job_ref,
    coerce_timestamp,
)
from src.models.summary import (
    CategoryTotal,
    DataQualityReport,
    JobStats,
    MonthRange,
)


ZERO = Decimal("0")

DateLike = Union[date, datetime]
Number = Union[Decimal, int, float]


# =============================================================================
# FIELD ACCESS
# =============================================================================

def read_field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def record_id(record: Any) -> Optional[str]:
    if isinstance(record, Mapping):
        value = record.get("_id", record.get("id"))
    else:
        value = getattr(record, "id", None)
    return str(value) if value is not None else None


def job_ref(record: Any) -> Optional[str]:
    for name in ("job_id", "job"):
        value = read_field(record, name)
        if value is not None:
            return coerce_job_ref(value)
    return None


def _timestamp(record: Any, date_field: str) -> Optional[datetime]:
    return coerce_timestamp(read_field(record, date_field))


def _amount(record: Any, amount_field: str) -> Decimal:
    amount = coerce_amount(read_field(record, amount_field))
    return amount if amount is not None else ZERO


def _as_decimal(value: Any) -> Decimal:
    amount = coerce_amount(value)
    return amount if amount is not None else ZERO


# =============================================================================
# CALENDAR
# =============================================================================

def month_range(reference: DateLike) -> MonthRange:
    """
    First and last calendar day of the reference date's month, at midnight.

    month_range(2024-02-15) -> 2024-02-01 .. 2024-02-29
    """
    last_day = calendar.monthrange(reference.year, reference.month)[1]
    return MonthRange(
        start=datetime(reference.year, reference.month, 1),
        end=datetime(reference.year, reference.month, last_day),
    )


def days_in_month(reference: DateLike) -> int:
    return calendar.monthrange(reference.year, reference.month)[1]


def filter_by_range(
    records: Iterable[Any],
    month: MonthRange,
    date_field: str = "date",
) -> list:
    """
    Records whose date lies within [month.start, month.end], inclusive.

    The end bound covers its whole calendar day, so an entry made late
    on the last day of the month still belongs to that month. The start
    bound is compared as a full timestamp.
    Records with unparseable dates are excluded.
    """
    selected = []
    for record in records:
        timestamp = _timestamp(record, date_field)
        if timestamp is not None and month.contains(timestamp):
            selected.append(record)
    return selected


def filter_by_day(
    records: Iterable[Any],
    day: DateLike,
    date_field: str = "date",
) -> list:
    """Records dated on the given calendar day."""
    wanted = day.date() if isinstance(day, datetime) else day
    selected = []
    for record in records:
        timestamp = _timestamp(record, date_field)
        if timestamp is not None and timestamp.date() == wanted:
            selected.append(record)
    return selected


# =============================================================================
# TOTALS
# =============================================================================

def sum_amounts(records: Iterable[Any], amount_field: str = "amount") -> Decimal:
    """Arithmetic sum; missing or NaN amounts count as 0."""
    return sum((_amount(record, amount_field) for record in records), ZERO)


def group_expenses_by_date(
    expenses: Iterable[Any],
    date_field: str = "date",
    amount_field: str = "amount",
) -> dict[date, Decimal]:
    """Per-day totals keyed by calendar date (no time component)."""
    totals: dict[date, Decimal] = {}
    for expense in expenses:
        timestamp = _timestamp(expense, date_field)
        if timestamp is None:
            continue
        key = timestamp.date()
        totals[key] = totals.get(key, ZERO) + _amount(expense, amount_field)
    return totals


def group_by_category(expenses: Iterable[Any]) -> dict[ExpenseCategory, Decimal]:
    """Per-category totals; unrecognized categories land in OTHER."""
    totals: dict[ExpenseCategory, Decimal] = {}
    for expense in expenses:
        category = ExpenseCategory.parse(read_field(expense, "category"))
        totals[category] = totals.get(category, ZERO) + _amount(expense, "amount")
    return totals


def top_category(expenses: Iterable[Any]) -> Optional[CategoryTotal]:
    """
    Category with the largest total, or None when there are no expenses.

    Ties are broken alphabetically on the category name.
    """
    totals = group_by_category(expenses)
    if not totals:
        return None
    category, total = min(
        totals.items(),
        key=lambda item: (-item[1], item[0].value),
    )
    return CategoryTotal(category=category, total=total)


# =============================================================================
# RATES AND PROJECTIONS
# =============================================================================

def daily_average(monthly_total: Number, day_of_month: int) -> Decimal:
    """
    Monthly total spread over the elapsed calendar days.

    day_of_month is the 1-based day of the reference date, not the
    number of days with entries.
    """
    if day_of_month <= 0:
        return ZERO
    return _as_decimal(monthly_total) / day_of_month


def projected_monthly(average: Number, month_days: int) -> Decimal:
    """Naive linear extrapolation of the daily average over the month."""
    return _as_decimal(average) * month_days


def month_progress(day_of_month: int, month_days: int) -> float:
    """
    Percent of the month elapsed. Not clamped; see clamp_percent().
    """
    if month_days <= 0:
        return 0.0
    return (day_of_month / month_days) * 100


def clamp_percent(value: Number) -> float:
    """Clamp a percentage to [0, 100] for display."""
    return max(0.0, min(100.0, float(value)))


def payment_progress(total_earned: Number, total_received: Number) -> float:
    """Percent of earnings received; 0 when nothing has been earned."""
    earned = _as_decimal(total_earned)
    if earned <= 0:
        return 0.0
    return float(_as_decimal(total_received) / earned * 100)


# =============================================================================
# JOBS
# =============================================================================

def job_stats(
    jobs: Iterable[Any],
    work_entries: Iterable[Any],
    salary_payments: Iterable[Any],
) -> list[JobStats]:
    """
    Earned, received and pending figures for every job.

    Entries and payments are matched to a job by identifier.
    Pending may be negative when a job has been overpaid.
    """
    entries = list(work_entries)
    payments = list(salary_payments)

    stats = []
    for job in jobs:
        job_id = record_id(job) or ""
        earned = sum_amounts(e for e in entries if job_ref(e) == job_id)
        received = sum_amounts(p for p in payments if job_ref(p) == job_id)
        stats.append(JobStats(
            id=job_id,
            name=read_field(job, "name") or "",
            total_earned=earned,
            total_received=received,
            pending=earned - received,
            progress=payment_progress(earned, received),
        ))
    return stats


# =============================================================================
# DATA QUALITY
# =============================================================================

def check_data_quality(
    records: Iterable[Any],
    date_field: Optional[str] = "date",
    amount_field: Optional[str] = "amount",
) -> DataQualityReport:
    """
    Count the records the functions above silently neutralize.

    Pass None for a field the collection does not carry.
    """
    total = 0
    bad_dates = 0
    bad_amounts = 0
    for record in records:
        total += 1
        if date_field and _timestamp(record, date_field) is None:
            bad_dates += 1
        if amount_field and coerce_amount(read_field(record, amount_field)) is None:
            bad_amounts += 1
    return DataQualityReport(
        total_records=total,
        unparseable_dates=bad_dates,
        missing_amounts=bad_amounts,
    )
