"""
Data Models Package

This package contains all Pydantic models used in the finance tracker.
All data flowing through the system must conform to these schemas.
"""

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
    coerce_amount,
    coerce_job_ref,
    coerce_timestamp,
)
from src.models.summary import (
    CalendarDay,
    CalendarMonth,
    CategoryTotal,
    DataQualityReport,
    ExpenseSummary,
    JobStats,
    MonthlyStats,
    MonthRange,
    SalaryOverview,
    WorkHistoryRow,
)
from src.models.validation import ValidationIssue, ValidationResult
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records
    "Expense",
    "ExpenseCategory",
    "ExpenseDraft",
    "Job",
    "JobDraft",
    "SalaryPayment",
    "SalaryPaymentDraft",
    "WorkEntry",
    "WorkEntryDraft",
    "coerce_amount",
    "coerce_job_ref",
    "coerce_timestamp",
    # Derived
    "CalendarDay",
    "CalendarMonth",
    "CategoryTotal",
    "DataQualityReport",
    "ExpenseSummary",
    "JobStats",
    "MonthlyStats",
    "MonthRange",
    "SalaryOverview",
    "WorkHistoryRow",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
