"""Aggregation package: the pure engine and the per-view reports built on it."""

from src.aggregation.engine import (
    check_data_quality,
    clamp_percent,
    daily_average,
    days_in_month,
    filter_by_day,
    filter_by_range,
    group_by_category,
    group_expenses_by_date,
    job_stats,
    month_progress,
    month_range,
    payment_progress,
    projected_monthly,
    sum_amounts,
    top_category,
)
from src.aggregation.reports import (
    UNKNOWN_JOB,
    build_calendar_month,
    build_expense_summary,
    build_monthly_stats,
    build_salary_overview,
    build_work_history,
    expenses_on,
    shift_month,
)

__all__ = [
    # Engine
    "check_data_quality",
    "clamp_percent",
    "daily_average",
    "days_in_month",
    "filter_by_day",
    "filter_by_range",
    "group_by_category",
    "group_expenses_by_date",
    "job_stats",
    "month_progress",
    "month_range",
    "payment_progress",
    "projected_monthly",
    "sum_amounts",
    "top_category",
    # Reports
    "UNKNOWN_JOB",
    "build_calendar_month",
    "build_expense_summary",
    "build_monthly_stats",
    "build_salary_overview",
    "build_work_history",
    "expenses_on",
    "shift_month",
]
