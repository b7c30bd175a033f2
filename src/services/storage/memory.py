"""
In-Memory Storage Implementation

Keeps every collection in process memory. Used for tests, for demos
without a backend, and as the reference behavior of the REST backend:
- identifiers are generated on create
- salary payments are stamped with the time they were recorded
- deleting a job leaves its work entries and payments in place
"""

from collections import deque
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from src.models.audit import AuditEvent
from src.models.records import (
    Expense,
    ExpenseCategory,
    ExpenseDraft,
    Job,
    JobDraft,
    SalaryPayment,
    SalaryPaymentDraft,
    WorkEntry,
    WorkEntryDraft,
)
from src.services.storage.interface import (
    AuditStorageInterface,
    FinanceStorageInterface,
    NotFoundError,
)


def _new_id() -> str:
    return uuid4().hex


class InMemoryFinanceStorage(FinanceStorageInterface):
    """Dictionary-backed storage, insertion ordered."""

    def __init__(
        self,
        expenses: Optional[list[Expense]] = None,
        jobs: Optional[list[Job]] = None,
        work_entries: Optional[list[WorkEntry]] = None,
        salary_payments: Optional[list[SalaryPayment]] = None,
    ):
        self._expenses = {e.id: e for e in expenses or []}
        self._jobs = {j.id: j for j in jobs or []}
        self._work_entries = {w.id: w for w in work_entries or []}
        self._salary_payments = {p.id: p for p in salary_payments or []}

    # -- Expenses -------------------------------------------------------------

    async def list_expenses(self) -> list[Expense]:
        return list(self._expenses.values())

    def _expense_from_draft(self, expense_id: str, draft: ExpenseDraft) -> Expense:
        return Expense(
            id=expense_id,
            title=draft.title or "",
            category=ExpenseCategory.parse(draft.category),
            amount=draft.amount,
            date=draft.date or datetime.now(),
        )

    async def create_expense(self, draft: ExpenseDraft) -> Expense:
        expense = self._expense_from_draft(_new_id(), draft)
        self._expenses[expense.id] = expense
        return expense

    async def update_expense(self, expense_id: str, draft: ExpenseDraft) -> Expense:
        if expense_id not in self._expenses:
            raise NotFoundError(f"Expense not found: {expense_id}")
        expense = self._expense_from_draft(expense_id, draft)
        self._expenses[expense_id] = expense
        return expense

    async def delete_expense(self, expense_id: str) -> bool:
        return self._expenses.pop(expense_id, None) is not None

    # -- Jobs -----------------------------------------------------------------

    async def list_jobs(self) -> list[Job]:
        return list(self._jobs.values())

    async def create_job(self, draft: JobDraft) -> Job:
        job = Job(id=_new_id(), name=draft.name or "")
        self._jobs[job.id] = job
        return job

    async def update_job(self, job_id: str, draft: JobDraft) -> Job:
        if job_id not in self._jobs:
            raise NotFoundError(f"Job not found: {job_id}")
        job = Job(id=job_id, name=draft.name or "")
        self._jobs[job_id] = job
        return job

    async def delete_job(self, job_id: str) -> bool:
        return self._jobs.pop(job_id, None) is not None

    # -- Work entries ---------------------------------------------------------

    async def list_work_entries(self) -> list[WorkEntry]:
        return list(self._work_entries.values())

    async def create_work_entry(self, draft: WorkEntryDraft) -> WorkEntry:
        entry = WorkEntry(
            id=_new_id(),
            job_id=draft.job_id,
            amount=draft.amount,
            date=draft.date or datetime.now(),
        )
        self._work_entries[entry.id] = entry
        return entry

    async def delete_work_entry(self, entry_id: str) -> bool:
        return self._work_entries.pop(entry_id, None) is not None

    # -- Salary payments ------------------------------------------------------

    async def list_salary_payments(self) -> list[SalaryPayment]:
        return list(self._salary_payments.values())

    async def create_salary_payment(self, draft: SalaryPaymentDraft) -> SalaryPayment:
        payment = SalaryPayment(
            id=_new_id(),
            job_id=draft.job_id,
            amount=draft.amount,
            date=datetime.now(),
        )
        self._salary_payments[payment.id] = payment
        return payment

    async def delete_salary_payment(self, payment_id: str) -> bool:
        return self._salary_payments.pop(payment_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Bounded buffer of audit events; the oldest are dropped once full."""

    def __init__(self, max_events: Optional[int] = 1000):
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
