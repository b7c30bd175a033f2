"""
View Reports

Composes engine results into the figures each view shows.
Like the engine, everything here is pure: same collections and
reference date in, same report out.
"""

import calendar
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any, Optional

from src.aggregation.engine import (
    ZERO,
    DateLike,
    check_data_quality,
    clamp_percent,
    daily_average,
    days_in_month,
    filter_by_day,
    filter_by_range,
    group_expenses_by_date,
    job_ref,
    job_stats,
    month_progress,
    month_range,
    payment_progress,
    projected_monthly,
    read_field,
    record_id,
    sum_amounts,
    top_category,
)
from src.models.records import coerce_amount, coerce_timestamp
from src.models.summary import (
    CalendarDay,
    CalendarMonth,
    ExpenseSummary,
    MonthlyStats,
    SalaryOverview,
    WorkHistoryRow,
)


UNKNOWN_JOB = "Unknown Job"


def _as_datetime(reference: DateLike) -> datetime:
    return coerce_timestamp(reference)


def expenses_on(expenses: Iterable[Any], day: DateLike) -> list:
    """Expenses recorded on one calendar day."""
    return filter_by_day(expenses, day)


def build_expense_summary(
    expenses: Iterable[Any],
    selected_date: DateLike,
) -> ExpenseSummary:
    """
    Figures for the expense summary panel.

    The average spreads the month-to-date total over the elapsed
    calendar days of the selected date, and the projection
    extrapolates that average over the whole month.
    """
    expenses = list(expenses)
    selected = _as_datetime(selected_date)

    daily_total = sum_amounts(expenses_on(expenses, selected))

    month = month_range(selected)
    monthly_expenses = filter_by_range(expenses, month)
    monthly_total = sum_amounts(monthly_expenses)

    day_of_month = selected.day
    month_days = days_in_month(selected)
    progress = month_progress(day_of_month, month_days)
    average = daily_average(monthly_total, day_of_month)

    return ExpenseSummary(
        selected_date=selected,
        daily_total=daily_total,
        monthly_total=monthly_total,
        day_of_month=day_of_month,
        days_in_month=month_days,
        month_progress=progress,
        month_progress_display=clamp_percent(progress),
        daily_average=average,
        projected_monthly=projected_monthly(average, month_days),
        top_category=top_category(monthly_expenses),
        data_quality=check_data_quality(expenses),
    )


def build_monthly_stats(
    expenses: Iterable[Any],
    work_entries: Iterable[Any],
    salary_payments: Iterable[Any],
    reference: DateLike,
) -> MonthlyStats:
    """Dashboard figures restricted to the reference date's month."""
    expenses = list(expenses)
    work_entries = list(work_entries)
    salary_payments = list(salary_payments)

    month = month_range(reference)
    month_expenses = filter_by_range(expenses, month)
    month_entries = filter_by_range(work_entries, month)
    month_payments = filter_by_range(salary_payments, month)

    total_expenses = sum_amounts(month_expenses)
    total_earned = sum_amounts(month_entries)
    total_received = sum_amounts(month_payments)

    quality = (
        check_data_quality(expenses)
        .merge(check_data_quality(work_entries))
        .merge(check_data_quality(salary_payments))
    )

    return MonthlyStats(
        month=month,
        total_expenses=total_expenses,
        total_earned=total_earned,
        total_received=total_received,
        total_pending=total_earned - total_received,
        net_balance=total_earned - total_expenses,
        expense_count=len(month_expenses),
        work_entry_count=len(month_entries),
        payment_count=len(month_payments),
        data_quality=quality,
    )


def build_salary_overview(
    jobs: Iterable[Any],
    work_entries: Iterable[Any],
    salary_payments: Iterable[Any],
) -> SalaryOverview:
    """
    Per-job stats plus totals across jobs.

    Totals are summed over existing jobs only; entries and payments
    left behind by a deleted job do not count.
    """
    stats = job_stats(jobs, work_entries, salary_payments)
    total_earned = sum((s.total_earned for s in stats), ZERO)
    total_received = sum((s.total_received for s in stats), ZERO)

    return SalaryOverview(
        jobs=stats,
        total_earned=total_earned,
        total_received=total_received,
        total_pending=total_earned - total_received,
        overall_progress=payment_progress(total_earned, total_received),
    )


def build_work_history(
    work_entries: Iterable[Any],
    jobs: Iterable[Any],
) -> list[WorkHistoryRow]:
    """Work entries newest first, each with its job name resolved."""
    names = {}
    for job in jobs:
        job_id = record_id(job)
        if job_id is not None:
            names[job_id] = read_field(job, "name") or UNKNOWN_JOB

    dated = []
    undated = []
    for entry in work_entries:
        job_id = job_ref(entry)
        amount = coerce_amount(read_field(entry, "amount"))
        row = WorkHistoryRow(
            entry_id=record_id(entry) or "",
            job_id=job_id,
            job_name=names.get(job_id, UNKNOWN_JOB),
            date=coerce_timestamp(read_field(entry, "date")),
            amount=amount if amount is not None else ZERO,
        )
        if row.date is None:
            undated.append(row)
        else:
            dated.append(row)

    dated.sort(key=lambda r: r.date, reverse=True)
    return dated + undated


def build_calendar_month(
    expenses: Iterable[Any],
    reference: DateLike,
    selected_date: Optional[DateLike] = None,
) -> CalendarMonth:
    """
    Sunday-first grid for the reference month.

    Leading and trailing blank cells pad the grid to whole weeks.
    """
    month = month_range(reference)
    totals = group_expenses_by_date(filter_by_range(expenses, month))
    selected = _as_datetime(selected_date).date() if selected_date is not None else None

    # Monday is 0 in Python; shift so Sunday opens the week
    leading = (month.start.weekday() + 1) % 7
    cells = [CalendarDay() for _ in range(leading)]

    day = month.start
    while day <= month.end:
        cells.append(CalendarDay(
            day=day,
            total=totals.get(day.date(), ZERO),
            in_month=True,
            is_selected=day.date() == selected,
        ))
        day += timedelta(days=1)

    trailing = (-len(cells)) % 7
    cells.extend(CalendarDay() for _ in range(trailing))

    return CalendarMonth(month=month, days=cells)


def shift_month(reference: DateLike, delta: int) -> DateLike:
    """
    Move a date by whole months for month navigation.

    The day is clamped to the target month's length (2024-01-31 + 1 -> 2024-02-29).
    """
    index = reference.year * 12 + (reference.month - 1) + delta
    year, month = divmod(index, 12)
    month += 1
    day = min(reference.day, calendar.monthrange(year, month)[1])
    return reference.replace(year=year, month=month, day=day)
