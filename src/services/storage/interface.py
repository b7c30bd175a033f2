"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Talk to the REST backend in production
2. Use in-memory storage for testing and offline use
3. Keep the state container decoupled from the transport

The interface is intentionally simple - we're not building a full ORM.
Just the CRUD operations the backend exposes for each collection.
Every create/update returns the record as the backend stored it, so
callers can replace their provisional copy with the real one.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.records import (
    Expense,
    ExpenseDraft,
    Job,
    JobDraft,
    SalaryPayment,
    SalaryPaymentDraft,
    WorkEntry,
    WorkEntryDraft,
)


class FinanceStorageInterface(ABC):
    """
    Abstract interface for the four finance collections.

    Any storage implementation (REST API, in-memory, etc.)
    must implement these methods.
    """

    # -- Expenses -------------------------------------------------------------

    @abstractmethod
    async def list_expenses(self) -> list[Expense]:
        """
        List every expense of the current user.

        Raises:
            StorageError: If the collection cannot be read
        """
        pass

    @abstractmethod
    async def create_expense(self, draft: ExpenseDraft) -> Expense:
        """
        Create an expense.

        Args:
            draft: Validated form input

        Returns:
            The stored expense, with its backend identifier
        """
        pass

    @abstractmethod
    async def update_expense(self, expense_id: str, draft: ExpenseDraft) -> Expense:
        """
        Replace an existing expense.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> bool:
        """Delete an expense. Returns False if it did not exist."""
        pass

    # -- Jobs -----------------------------------------------------------------

    @abstractmethod
    async def list_jobs(self) -> list[Job]:
        pass

    @abstractmethod
    async def create_job(self, draft: JobDraft) -> Job:
        pass

    @abstractmethod
    async def update_job(self, job_id: str, draft: JobDraft) -> Job:
        pass

    @abstractmethod
    async def delete_job(self, job_id: str) -> bool:
        """
        Delete a job.

        Work entries and salary payments that reference it are kept;
        they show up as "Unknown Job" afterwards.
        """
        pass

    # -- Work entries ---------------------------------------------------------

    @abstractmethod
    async def list_work_entries(self) -> list[WorkEntry]:
        pass

    @abstractmethod
    async def create_work_entry(self, draft: WorkEntryDraft) -> WorkEntry:
        pass

    @abstractmethod
    async def delete_work_entry(self, entry_id: str) -> bool:
        pass

    # -- Salary payments ------------------------------------------------------

    @abstractmethod
    async def list_salary_payments(self) -> list[SalaryPayment]:
        pass

    @abstractmethod
    async def create_salary_payment(self, draft: SalaryPaymentDraft) -> SalaryPayment:
        """
        Record a salary payment.

        The payment date is stamped by the backend at creation.
        """
        pass

    @abstractmethod
    async def delete_salary_payment(self, payment_id: str) -> bool:
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a correlation ID, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class StorageConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass


class AuthenticationError(StorageError):
    """The backend rejected our credentials (HTTP 401)."""
    pass
