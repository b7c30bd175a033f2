"""
Tests for the Finance Tracker models

Test strategy:
1. Records parse whatever the backend sends without failing
2. Drafts keep raw input for the validator to judge
3. Derived and audit models behave as plain value objects
"""

import math
import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

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
    DataQualityReport,
    MonthRange,
)
from src.models.validation import ValidationIssue, ValidationResult
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestCoercion:
    """Tests for the lenient value readers."""

    def test_amount_from_number_and_string(self):
        """Test ints, floats and numeric strings become Decimals."""
        assert coerce_amount(5) == Decimal("5")
        assert coerce_amount(3.5) == Decimal("3.5")
        assert coerce_amount(" 12.40 ") == Decimal("12.40")

    def test_amount_float_keeps_short_repr(self):
        """Test 0.1 is not expanded to its binary value."""
        assert coerce_amount(0.1) == Decimal("0.1")

    def test_amount_rejects_garbage(self):
        """Test None, NaN, infinity, booleans and text give None."""
        assert coerce_amount(None) is None
        assert coerce_amount(math.nan) is None
        assert coerce_amount(math.inf) is None
        assert coerce_amount("NaN") is None
        assert coerce_amount(True) is None
        assert coerce_amount("twelve") is None
        assert coerce_amount([1]) is None

    def test_timestamp_from_iso_string(self):
        """Test ISO strings parse to naive datetimes."""
        assert coerce_timestamp("2024-03-05T14:30:00") == datetime(2024, 3, 5, 14, 30)
        assert coerce_timestamp("2024-03-05") == datetime(2024, 3, 5)

    def test_timestamp_from_date(self):
        """Test plain dates land at midnight."""
        assert coerce_timestamp(date(2024, 3, 5)) == datetime(2024, 3, 5)

    def test_timestamp_aware_becomes_naive(self):
        """Test UTC strings and aware datetimes are converted to local naive time."""
        parsed = coerce_timestamp("2024-03-05T12:00:00Z")
        assert parsed is not None
        assert parsed.tzinfo is None

        aware = datetime(2024, 3, 5, 12, tzinfo=timezone.utc)
        assert coerce_timestamp(aware).tzinfo is None

    def test_timestamp_rejects_garbage(self):
        """Test unparseable values give None."""
        assert coerce_timestamp(None) is None
        assert coerce_timestamp("") is None
        assert coerce_timestamp("yesterday") is None
        assert coerce_timestamp(12345) is None

    def test_job_ref_shapes(self):
        """Test bare ids, populated objects and null references."""
        assert coerce_job_ref("j1") == "j1"
        assert coerce_job_ref({"_id": "j1", "name": "Cafe"}) == "j1"
        assert coerce_job_ref({"id": 7}) == "7"
        assert coerce_job_ref(Job(id="j2", name="Shop")) == "j2"
        assert coerce_job_ref(None) is None
        assert coerce_job_ref("") is None


class TestExpenseCategory:
    """Tests for the closed category set."""

    def test_parse_requires_exact_value(self):
        """Test only the exact backend spelling is recognized."""
        assert ExpenseCategory.parse("Food") == ExpenseCategory.FOOD
        assert ExpenseCategory.parse("food") == ExpenseCategory.OTHER
        assert ExpenseCategory.parse(" Bills ") == ExpenseCategory.OTHER

    def test_unknown_category_falls_back_to_other(self):
        """Test unrecognized values land in Other."""
        assert ExpenseCategory.parse("Groceries") == ExpenseCategory.OTHER
        assert ExpenseCategory.parse(None) == ExpenseCategory.OTHER

    def test_is_known(self):
        """Test membership check."""
        assert ExpenseCategory.is_known("Healthcare")
        assert ExpenseCategory.is_known(ExpenseCategory.EDUCATION)
        assert not ExpenseCategory.is_known("Groceries")
        assert not ExpenseCategory.is_known(3)
        assert not ExpenseCategory.is_known("healthcare")

    def test_eight_categories(self):
        """Test the set is exactly the eight backend values."""
        assert [c.value for c in ExpenseCategory] == [
            "Food", "Transport", "Shopping", "Entertainment",
            "Bills", "Healthcare", "Education", "Other",
        ]


class TestRecords:
    """Tests for backend records."""

    def test_expense_from_api_row(self):
        """Test a Mongo-style row parses."""
        expense = Expense.model_validate({
            "_id": "65f0c0ffee",
            "title": "  Lunch ",
            "category": "Food",
            "amount": 12.5,
            "date": "2024-03-05T00:00:00.000Z",
            "user": "u1",
        })
        assert expense.id == "65f0c0ffee"
        assert expense.title == "Lunch"
        assert expense.category == ExpenseCategory.FOOD
        assert expense.amount == Decimal("12.5")
        assert expense.date is not None

    def test_expense_numeric_id_is_stringified(self):
        """Test ids are always strings."""
        assert Expense(id=42, title="x").id == "42"

    def test_expense_keeps_malformed_values_as_none(self):
        """Test bad amounts and dates do not reject the record."""
        expense = Expense.model_validate({
            "_id": "e1",
            "title": "Mystery",
            "category": "Groceries",
            "amount": "n/a",
            "date": "sometime",
        })
        assert expense.amount is None
        assert expense.date is None
        assert expense.category == ExpenseCategory.OTHER

    def test_records_are_frozen(self):
        """Test records cannot be mutated in place."""
        expense = Expense(id="e1", title="Lunch", amount=10)
        with pytest.raises(ValidationError):
            expense.amount = Decimal("20")

    def test_work_entry_populated_job(self):
        """Test a populated job reference resolves to its id."""
        entry = WorkEntry.model_validate({
            "_id": "w1",
            "job": {"_id": "j1", "name": "Cafe"},
            "amount": "50",
            "date": "2024-03-02",
        })
        assert entry.job_id == "j1"
        assert entry.amount == Decimal("50")

    def test_work_entry_deleted_job(self):
        """Test a null job reference is kept as None."""
        entry = WorkEntry.model_validate({"_id": "w1", "job": None, "amount": 5})
        assert entry.job_id is None

    def test_salary_payment_created_at_alias(self):
        """Test the creation timestamp is read as the payment date."""
        payment = SalaryPayment.model_validate({
            "_id": "p1",
            "job": "j1",
            "amount": 60,
            "createdAt": "2024-03-10T09:00:00",
        })
        assert payment.date == datetime(2024, 3, 10, 9)
        assert payment.job_id == "j1"


class TestDrafts:
    """Tests for form drafts."""

    def test_expense_draft_payload(self):
        """Test the body sent to the backend."""
        draft = ExpenseDraft(
            title=" Taxi ",
            amount="18.20",
            category=ExpenseCategory.TRANSPORT,
            date=date(2024, 3, 5),
        )
        assert draft.to_payload() == {
            "title": "Taxi",
            "amount": 18.2,
            "category": "Transport",
            "date": "2024-03-05T00:00:00",
        }

    def test_expense_draft_defaults_to_food(self):
        """Test the form's default category."""
        assert ExpenseDraft().category == "Food"

    def test_expense_draft_unknown_category_sent_as_other(self):
        """Test unknown categories are normalized in the payload."""
        draft = ExpenseDraft(title="x", amount=1, category="Pets", date=date(2024, 1, 1))
        assert draft.category == "Pets"
        assert draft.to_payload()["category"] == "Other"

    def test_draft_keeps_invalid_amount_as_none(self):
        """Test drafts never raise on bad amounts."""
        assert WorkEntryDraft(job_id="j1", amount="abc").amount is None

    def test_job_and_payment_payloads(self):
        """Test job references are sent under 'job'."""
        assert JobDraft(name=" Cafe ").to_payload() == {"name": "Cafe"}
        assert SalaryPaymentDraft(job_id="j1", amount=60).to_payload() == {
            "job": "j1",
            "amount": 60.0,
        }
        assert WorkEntryDraft(job_id="j1", amount=50, date=date(2024, 3, 2)).to_payload() == {
            "job": "j1",
            "amount": 50.0,
            "date": "2024-03-02T00:00:00",
        }


class TestDerivedModels:
    """Tests for summary models."""

    def test_month_range_contains_whole_last_day(self):
        """Test membership is decided per calendar day."""
        month = MonthRange(start=datetime(2024, 3, 1), end=datetime(2024, 3, 31))
        assert month.contains(datetime(2024, 3, 1))
        assert month.contains(datetime(2024, 3, 31, 23, 59))
        assert not month.contains(datetime(2024, 4, 1))
        assert not month.contains(datetime(2024, 2, 29, 23, 59))

    def test_data_quality_merge(self):
        """Test reports add up."""
        merged = DataQualityReport(total_records=3, unparseable_dates=1).merge(
            DataQualityReport(total_records=2, missing_amounts=2)
        )
        assert merged.total_records == 5
        assert merged.unparseable_dates == 1
        assert merged.missing_amounts == 2
        assert merged.skipped_records == 1
        assert merged.is_degraded

    def test_clean_report_is_not_degraded(self):
        """Test the default report."""
        assert not DataQualityReport(total_records=4).is_degraded

    def test_calendar_weeks(self):
        """Test days are split into rows of seven."""
        month = CalendarMonth(
            month=MonthRange(start=datetime(2024, 3, 1), end=datetime(2024, 3, 31)),
            days=[CalendarDay() for _ in range(35)],
        )
        assert len(month.weeks) == 5
        assert all(len(week) == 7 for week in month.weeks)

    def test_calendar_day_has_expenses(self):
        """Test shading flag."""
        assert CalendarDay(day=datetime(2024, 3, 1), total=Decimal("3")).has_expenses
        assert not CalendarDay(day=datetime(2024, 3, 1)).has_expenses


class TestValidationModels:
    """Tests for validation models."""

    def test_severity_pattern(self):
        """Test unknown severities are rejected."""
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="missing", message="m", severity="fatal")

    def test_result_counts_errors(self):
        """Test error helpers ignore warnings."""
        result = ValidationResult(
            entity_type="expense",
            is_valid=False,
            issues=[
                ValidationIssue(field="title", issue_type="missing", message="m", severity="error"),
                ValidationIssue(field="category", issue_type="unknown_value", message="w", severity="warning"),
            ],
        )
        assert result.has_errors
        assert result.error_count == 1


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.DATA_REFRESHED,
            description="Collections refreshed",
        )
        assert event.event_type == AuditEventType.DATA_REFRESHED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            description="Expense created: Lunch",
            entity_id="e1",
            details={"amount": "12.50"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "expense_created"
        assert log_dict["entity_id"] == "e1"
        assert log_dict["details"]["amount"] == "12.50"

    def test_builder_record_mutated(self):
        """Test mutation events map to their event type."""
        correlation_id = uuid4()
        event = AuditEventBuilder.record_mutated(
            "expense", "create", "e1", "Lunch", correlation_id=correlation_id
        )
        assert event.event_type == AuditEventType.EXPENSE_CREATED
        assert event.description == "Expense created: Lunch"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

        payment = AuditEventBuilder.record_mutated("salary_payment", "create", "p1", "Cafe 60")
        assert payment.event_type == AuditEventType.SALARY_PAYMENT_RECORDED

    def test_builder_rejects_unsupported_mutation(self):
        """Test work entries cannot be updated."""
        with pytest.raises(ValueError, match="Unsupported mutation"):
            AuditEventBuilder.record_mutated("work_entry", "update", "w1", "x")

    def test_builder_rollback_is_error(self):
        """Test rollbacks are logged as errors."""
        event = AuditEventBuilder.mutation_rolled_back("job", "delete", "j1", "timeout")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "timeout"
        assert event.details["operation"] == "delete"

    def test_builder_degraded_input(self):
        """Test degraded input carries its counts."""
        event = AuditEventBuilder.degraded_input("dashboard", 10, 2, 1)
        assert event.severity == AuditSeverity.WARNING
        assert event.details["unparseable_dates"] == 2
        assert event.details["missing_amounts"] == 1
