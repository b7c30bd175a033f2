"""
Form Input Validation

DESIGN DECISION: The aggregation engine never rejects anything; it
degrades malformed records to zero. That makes THIS layer the only
place where bad input can be stopped, so every draft goes through
here before it reaches the backend.

Checks mirror the input forms:
- expense: title present, amount > 0, category recognized, date present
- job: name present
- work entry: job selected, amount > 0, date present
- salary payment: job selected, amount > 0

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; the caller decides what to show the user.
"""

from decimal import Decimal
from typing import Iterable, Optional

from src.models.records import (
    ExpenseCategory,
    ExpenseDraft,
    JobDraft,
    SalaryPaymentDraft,
    WorkEntryDraft,
)
from src.models.validation import ValidationIssue, ValidationResult


class FinanceInputValidator:
    """
    Validates form drafts.

    Known job ids are optional; when given, references to jobs that
    don't exist produce a warning (the backend is the final judge).
    """

    def __init__(self, known_job_ids: Optional[Iterable[str]] = None):
        self._known_job_ids = set(known_job_ids) if known_job_ids is not None else None

    def with_jobs(self, job_ids: Iterable[str]) -> "FinanceInputValidator":
        """Copy of this validator aware of the given job ids."""
        return FinanceInputValidator(job_ids)

    def _check_amount(self, amount: Optional[Decimal], issues: list[ValidationIssue]) -> None:
        if amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
                suggested_fix="Enter a number such as 12.50",
            ))
        elif amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))

    def _check_job(self, job_id: Optional[str], issues: list[ValidationIssue]) -> None:
        if not job_id:
            issues.append(ValidationIssue(
                field="job_id",
                issue_type="missing",
                message="Please select a job",
                severity="error",
            ))
        elif self._known_job_ids is not None and job_id not in self._known_job_ids:
            issues.append(ValidationIssue(
                field="job_id",
                issue_type="unknown_reference",
                message=f"Job {job_id} is not in the current job list",
                severity="warning",
                suggested_fix="Refresh the page; the job may have been deleted",
            ))

    def _result(self, entity_type: str, issues: list[ValidationIssue]) -> ValidationResult:
        return ValidationResult(
            entity_type=entity_type,
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
        )

    def validate_expense(self, draft: ExpenseDraft) -> ValidationResult:
        issues = []

        if not draft.title:
            issues.append(ValidationIssue(
                field="title",
                issue_type="missing",
                message="Title is required",
                severity="error",
            ))

        self._check_amount(draft.amount, issues)

        if draft.category is not None and not ExpenseCategory.is_known(draft.category):
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_value",
                message=f"Unknown category '{draft.category}' will be saved as Other",
                severity="warning",
            ))

        if draft.date is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))

        return self._result("expense", issues)

    def validate_job(self, draft: JobDraft) -> ValidationResult:
        issues = []
        if not draft.name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Please enter a job name",
                severity="error",
            ))
        return self._result("job", issues)

    def validate_work_entry(self, draft: WorkEntryDraft) -> ValidationResult:
        issues = []
        self._check_job(draft.job_id, issues)
        self._check_amount(draft.amount, issues)
        if draft.date is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))
        return self._result("work_entry", issues)

    def validate_salary_payment(self, draft: SalaryPaymentDraft) -> ValidationResult:
        issues = []
        self._check_job(draft.job_id, issues)
        self._check_amount(draft.amount, issues)
        return self._result("salary_payment", issues)

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.
        """
        if result.is_valid and not result.warnings:
            return "✅ Looks good."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please note:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
