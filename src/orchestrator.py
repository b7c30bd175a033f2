"""
Main Orchestrator for the Finance Tracker

This module ties together the store, the aggregation engine and the
audit trail, and defines what each view needs:
1. Expense view (selected day → list, summary panel, calendar)
2. Salary view (per-job stats, totals, work history)
3. Dashboard (monthly figures for the selected month)

DESIGN DECISION: Views never compute anything themselves.
They ask the dashboard, which runs the pure aggregation over a
snapshot of the store. Whenever the aggregation had to neutralize
malformed records, that is logged so it does not go unnoticed.
"""

from datetime import date, datetime
from typing import Optional, Union

from src.aggregation import (
    build_calendar_month,
    build_expense_summary,
    build_monthly_stats,
    build_salary_overview,
    build_work_history,
    check_data_quality,
    expenses_on,
)
from src.audit import AuditLogger
from src.config import get_settings
from src.models.records import Expense
from src.models.summary import (
    CalendarMonth,
    DataQualityReport,
    ExpenseSummary,
    MonthlyStats,
    SalaryOverview,
    WorkHistoryRow,
)
from src.services.storage import (
    FinanceStorageInterface,
    InMemoryAuditStorage,
    InMemoryFinanceStorage,
    RestApiFinanceStorage,
)
from src.state import FinanceStore
from src.validation import FinanceInputValidator


DateLike = Union[date, datetime]


class FinanceDashboard:
    """
    Read side of the application.

    Every method aggregates the store's current snapshot; nothing
    is cached, so results always reflect the latest optimistic state.
    """

    def __init__(
        self,
        store: FinanceStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger

    @property
    def store(self) -> FinanceStore:
        return self._store

    async def _report_quality(self, view: str, report: DataQualityReport) -> None:
        if self._audit_logger:
            await self._audit_logger.log_degraded_input(view, report)

    async def expense_view(
        self,
        selected_date: DateLike,
    ) -> tuple[list[Expense], ExpenseSummary]:
        """
        Expenses of the selected day plus the summary panel figures.

        Returns:
            (expenses_on_day, summary)
        """
        snapshot = self._store.snapshot()
        summary = build_expense_summary(snapshot.expenses, selected_date)
        await self._report_quality("expenses", summary.data_quality)
        return expenses_on(snapshot.expenses, selected_date), summary

    async def calendar(
        self,
        reference: DateLike,
        selected_date: Optional[DateLike] = None,
    ) -> CalendarMonth:
        snapshot = self._store.snapshot()
        return build_calendar_month(snapshot.expenses, reference, selected_date)

    async def salary_view(self) -> SalaryOverview:
        snapshot = self._store.snapshot()
        overview = build_salary_overview(
            snapshot.jobs, snapshot.work_entries, snapshot.salary_payments
        )
        quality = check_data_quality(snapshot.work_entries).merge(
            check_data_quality(snapshot.salary_payments, date_field=None)
        )
        await self._report_quality("salary", quality)
        return overview

    async def work_history(self) -> list[WorkHistoryRow]:
        snapshot = self._store.snapshot()
        return build_work_history(snapshot.work_entries, snapshot.jobs)

    async def monthly_stats(self, reference: DateLike) -> MonthlyStats:
        snapshot = self._store.snapshot()
        stats = build_monthly_stats(
            snapshot.expenses,
            snapshot.work_entries,
            snapshot.salary_payments,
            reference,
        )
        await self._report_quality("dashboard", stats.data_quality)
        return stats


def create_storage(use_remote: Optional[bool] = None) -> FinanceStorageInterface:
    """
    Pick the storage backend from settings.

    Args:
        use_remote: Overrides the USE_REMOTE_API setting when given.
    """
    if use_remote is None:
        use_remote = get_settings().app.use_remote_api

    if use_remote:
        return RestApiFinanceStorage(get_settings().api)
    return InMemoryFinanceStorage()


def create_app_components(
    use_remote: Optional[bool] = None,
    storage: Optional[FinanceStorageInterface] = None,
) -> tuple[FinanceStore, FinanceDashboard, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        use_remote: Whether to talk to the REST API.
                    Defaults to the USE_REMOTE_API setting.
        storage: Explicit storage backend (takes precedence over use_remote).

    Returns:
        (store, dashboard, audit_logger)
    """
    audit_logger = AuditLogger(
        InMemoryAuditStorage(max_events=get_settings().app.audit_buffer_size)
    )
    store = FinanceStore(
        storage=storage or create_storage(use_remote),
        validator=FinanceInputValidator(),
        audit_logger=audit_logger,
    )
    dashboard = FinanceDashboard(store, audit_logger)
    return store, dashboard, audit_logger
