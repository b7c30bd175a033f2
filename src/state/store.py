"""
Finance State Container

Holds the four collections the views aggregate over and exposes the
commands that change them.

DESIGN DECISION: Commands are optimistic.
1. The draft is validated; invalid input never reaches the backend
2. The local collection is changed immediately with a provisional record
3. The backend call is awaited
4. The provisional record is replaced with what the backend stored

If step 3 fails, the local change is rolled back and the error is
re-raised to the caller. Collections are never refetched after a
mutation; refresh() is the only full reload.

Views are read-only tuples so aggregation can never mutate the store.
"""

import asyncio
from datetime import date, datetime
from typing import Any, Awaitable, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict

from src.aggregation.engine import filter_by_day
from src.audit import AuditLogger, create_correlation_id
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
from src.models.validation import ValidationResult
from src.services.storage import FinanceStorageInterface
from src.validation import FinanceInputValidator


PROVISIONAL_PREFIX = "pending-"


def is_provisional(record_id: Optional[str]) -> bool:
    """True for ids of records not yet confirmed by the backend."""
    return bool(record_id) and record_id.startswith(PROVISIONAL_PREFIX)


def _provisional_id() -> str:
    return f"{PROVISIONAL_PREFIX}{uuid4().hex}"


class InvalidInputError(ValueError):
    """A draft failed validation and was not sent to the backend."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = [i.message for i in result.issues if i.severity == "error"]
        super().__init__("; ".join(messages) or "Invalid input")


class FinanceSnapshot(BaseModel):
    """Point-in-time copy of every collection."""
    model_config = ConfigDict(frozen=True)

    expenses: tuple[Expense, ...] = ()
    jobs: tuple[Job, ...] = ()
    work_entries: tuple[WorkEntry, ...] = ()
    salary_payments: tuple[SalaryPayment, ...] = ()
    loaded_at: Optional[datetime] = None


class FinanceStore:
    """
    In-memory state for one user session.

    Usage:
        store = FinanceStore(InMemoryFinanceStorage())
        await store.refresh()
        expense = await store.add_expense(ExpenseDraft(title="Lunch", amount=12, date=today))
    """

    def __init__(
        self,
        storage: FinanceStorageInterface,
        validator: Optional[FinanceInputValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or FinanceInputValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._collections: dict[str, list] = {
            "expense": [],
            "job": [],
            "work_entry": [],
            "salary_payment": [],
        }
        self._loaded_at: Optional[datetime] = None

    # =========================================================================
    # VIEWS
    # =========================================================================

    @property
    def expenses(self) -> tuple[Expense, ...]:
        return tuple(self._collections["expense"])

    @property
    def jobs(self) -> tuple[Job, ...]:
        return tuple(self._collections["job"])

    @property
    def work_entries(self) -> tuple[WorkEntry, ...]:
        return tuple(self._collections["work_entry"])

    @property
    def salary_payments(self) -> tuple[SalaryPayment, ...]:
        return tuple(self._collections["salary_payment"])

    @property
    def is_loaded(self) -> bool:
        return self._loaded_at is not None

    def snapshot(self) -> FinanceSnapshot:
        return FinanceSnapshot(
            expenses=self.expenses,
            jobs=self.jobs,
            work_entries=self.work_entries,
            salary_payments=self.salary_payments,
            loaded_at=self._loaded_at,
        )

    def job_name(self, job_id: Optional[str]) -> Optional[str]:
        for job in self._collections["job"]:
            if job.id == job_id:
                return job.name
        return None

    # =========================================================================
    # LOADING
    # =========================================================================

    async def refresh(self) -> FinanceSnapshot:
        """
        Reload all four collections concurrently.

        The collections are swapped in only when every fetch succeeded;
        on failure the previous state is kept and the error propagates.
        """
        try:
            expenses, jobs, work_entries, salary_payments = await asyncio.gather(
                self._storage.list_expenses(),
                self._storage.list_jobs(),
                self._storage.list_work_entries(),
                self._storage.list_salary_payments(),
            )
        except Exception as e:
            await self._audit_logger.log_external_service_error(
                service="finance_api",
                error_message=str(e),
            )
            raise

        self._collections = {
            "expense": list(expenses),
            "job": list(jobs),
            "work_entry": list(work_entries),
            "salary_payment": list(salary_payments),
        }
        self._loaded_at = datetime.now()

        await self._audit_logger.log_refresh({
            "expenses": len(expenses),
            "jobs": len(jobs),
            "work_entries": len(work_entries),
            "salary_payments": len(salary_payments),
        })
        return self.snapshot()

    # =========================================================================
    # OPTIMISTIC MECHANICS
    # =========================================================================

    @staticmethod
    def _index_of(items: list, record_id: str) -> Optional[int]:
        for index, item in enumerate(items):
            if item.id == record_id:
                return index
        return None

    def _swap(self, items: list, record_id: str, replacement: Any) -> None:
        index = self._index_of(items, record_id)
        if index is None:
            items.append(replacement)
        else:
            items[index] = replacement

    async def _check(self, entity_type: str, result: ValidationResult) -> None:
        if result.is_valid:
            return
        await self._audit_logger.log_validation_failed(
            entity_type=entity_type,
            issues=[
                {"field": i.field, "type": i.issue_type, "message": i.message}
                for i in result.issues
            ],
        )
        raise InvalidInputError(result)

    async def _create(
        self,
        entity_type: str,
        provisional: Any,
        call: Awaitable,
        summary: str,
    ) -> Any:
        items = self._collections[entity_type]
        items.append(provisional)
        try:
            created = await call
        except Exception as e:
            index = self._index_of(items, provisional.id)
            if index is not None:
                del items[index]
            await self._audit_logger.log_rollback(entity_type, "create", None, str(e))
            raise

        self._swap(items, provisional.id, created)
        await self._audit_logger.log_mutation(entity_type, "create", created.id, summary)
        return created

    async def _update(
        self,
        entity_type: str,
        record_id: str,
        provisional: Any,
        call: Awaitable,
        summary: str,
    ) -> Any:
        items = self._collections[entity_type]
        index = self._index_of(items, record_id)
        previous = items[index] if index is not None else None
        if index is not None:
            items[index] = provisional

        try:
            updated = await call
        except Exception as e:
            if previous is not None:
                self._swap(items, record_id, previous)
            await self._audit_logger.log_rollback(entity_type, "update", record_id, str(e))
            raise

        self._swap(items, record_id, updated)
        await self._audit_logger.log_mutation(entity_type, "update", record_id, summary)
        return updated

    async def _delete(
        self,
        entity_type: str,
        record_id: str,
        call: Awaitable,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        items = self._collections[entity_type]
        index = self._index_of(items, record_id)
        removed = items.pop(index) if index is not None else None

        try:
            deleted = await call
        except Exception as e:
            if removed is not None:
                items.insert(min(index, len(items)), removed)
            await self._audit_logger.log_rollback(
                entity_type, "delete", record_id, str(e), correlation_id
            )
            raise

        if deleted:
            summary = getattr(removed, "title", None) or getattr(removed, "name", None) or record_id
            await self._audit_logger.log_mutation(
                entity_type, "delete", record_id, summary, correlation_id
            )
        return deleted

    # =========================================================================
    # EXPENSES
    # =========================================================================

    async def add_expense(self, draft: ExpenseDraft) -> Expense:
        await self._check("expense", self._validator.validate_expense(draft))
        provisional = Expense(
            id=_provisional_id(),
            title=draft.title or "",
            category=ExpenseCategory.parse(draft.category),
            amount=draft.amount,
            date=draft.date,
        )
        return await self._create(
            "expense",
            provisional,
            self._storage.create_expense(draft),
            draft.title or "",
        )

    async def update_expense(self, expense_id: str, draft: ExpenseDraft) -> Expense:
        await self._check("expense", self._validator.validate_expense(draft))
        provisional = Expense(
            id=expense_id,
            title=draft.title or "",
            category=ExpenseCategory.parse(draft.category),
            amount=draft.amount,
            date=draft.date,
        )
        return await self._update(
            "expense",
            expense_id,
            provisional,
            self._storage.update_expense(expense_id, draft),
            draft.title or "",
        )

    async def delete_expense(self, expense_id: str) -> bool:
        return await self._delete(
            "expense", expense_id, self._storage.delete_expense(expense_id)
        )

    async def delete_expenses_on(self, day: date) -> int:
        """
        Delete every expense recorded on one calendar day.

        Deletions run one by one under a shared correlation id. A failure
        rolls back only the expense that failed and stops the run;
        expenses already deleted stay deleted.
        """
        correlation_id = create_correlation_id()
        deleted = 0
        for expense in filter_by_day(self._collections["expense"], day):
            removed = await self._delete(
                "expense",
                expense.id,
                self._storage.delete_expense(expense.id),
                correlation_id,
            )
            if removed:
                deleted += 1
        return deleted

    # =========================================================================
    # JOBS
    # =========================================================================

    async def add_job(self, draft: JobDraft) -> Job:
        await self._check("job", self._validator.validate_job(draft))
        provisional = Job(id=_provisional_id(), name=draft.name or "")
        return await self._create(
            "job", provisional, self._storage.create_job(draft), draft.name or ""
        )

    async def rename_job(self, job_id: str, draft: JobDraft) -> Job:
        await self._check("job", self._validator.validate_job(draft))
        provisional = Job(id=job_id, name=draft.name or "")
        return await self._update(
            "job",
            job_id,
            provisional,
            self._storage.update_job(job_id, draft),
            draft.name or "",
        )

    async def delete_job(self, job_id: str) -> bool:
        """Delete a job. Its work entries and payments are left in place."""
        return await self._delete("job", job_id, self._storage.delete_job(job_id))

    # =========================================================================
    # WORK ENTRIES AND SALARY PAYMENTS
    # =========================================================================

    def _job_aware_validator(self) -> FinanceInputValidator:
        return self._validator.with_jobs(job.id for job in self._collections["job"])

    async def add_work_entry(self, draft: WorkEntryDraft) -> WorkEntry:
        await self._check(
            "work_entry", self._job_aware_validator().validate_work_entry(draft)
        )
        provisional = WorkEntry(
            id=_provisional_id(),
            job_id=draft.job_id,
            amount=draft.amount,
            date=draft.date,
        )
        return await self._create(
            "work_entry",
            provisional,
            self._storage.create_work_entry(draft),
            f"{self.job_name(draft.job_id) or draft.job_id} {draft.amount}",
        )

    async def delete_work_entry(self, entry_id: str) -> bool:
        return await self._delete(
            "work_entry", entry_id, self._storage.delete_work_entry(entry_id)
        )

    async def record_salary_payment(self, draft: SalaryPaymentDraft) -> SalaryPayment:
        await self._check(
            "salary_payment",
            self._job_aware_validator().validate_salary_payment(draft),
        )
        provisional = SalaryPayment(
            id=_provisional_id(),
            job_id=draft.job_id,
            amount=draft.amount,
            date=datetime.now(),
        )
        return await self._create(
            "salary_payment",
            provisional,
            self._storage.create_salary_payment(draft),
            f"{self.job_name(draft.job_id) or draft.job_id} {draft.amount}",
        )

    async def delete_salary_payment(self, payment_id: str) -> bool:
        return await self._delete(
            "salary_payment",
            payment_id,
            self._storage.delete_salary_payment(payment_id),
        )
