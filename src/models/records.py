"""
Record Models for the Finance Tracker

These models describe the four base entities exactly as the backend API
returns them, plus the drafts the input forms produce.

DESIGN DECISION: Records are accepted as received, never rejected.
The backend is the source of truth; a malformed amount or date on a
stored record must not make the whole collection unreadable.
Malformed values are kept as None and the aggregation engine degrades
them to neutral values (0, or exclusion from a date range).

Rejecting bad input is the job of the form validator, which runs
BEFORE anything is sent to the backend.
"""

from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# COERCION HELPERS - shared with the aggregation engine
# =============================================================================

def coerce_amount(value: Any) -> Optional[Decimal]:
    """
    Read a monetary amount leniently.

    Returns None for missing, NaN, infinite or unparseable values.
    Floats go through str() so 0.1 stays 0.1 and not its binary expansion.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None

    if not amount.is_finite():
        return None
    return amount


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """
    Read a calendar timestamp leniently as a naive local datetime.

    Accepts datetime, date and ISO-8601 strings (a trailing "Z" included).
    Timezone-aware values are converted to local time.
    Returns None for anything unparseable.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, time())
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def coerce_job_ref(value: Any) -> Optional[str]:
    """
    Read a job reference as a job identifier.

    The API returns either a bare id or a populated job object
    ({"_id": ..., "name": ...}). A deleted job shows up as null.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, Mapping):
        ref = value.get("_id") or value.get("id")
        return str(ref) if ref else None
    ref = getattr(value, "id", None)
    if ref is not None:
        return str(ref)
    return str(value)


# =============================================================================
# ENUMS
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    The closed set of expense categories.

    Values match what the backend stores.
    """
    FOOD = "Food"
    TRANSPORT = "Transport"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    BILLS = "Bills"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Any) -> "ExpenseCategory":
        """Resolve a raw category, falling back to OTHER unless it matches a value exactly."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for category in cls:
                if category.value == value:
                    return category
        return cls.OTHER

    @classmethod
    def is_known(cls, value: Any) -> bool:
        """Check whether a raw category names one of the members exactly."""
        if isinstance(value, cls):
            return True
        if not isinstance(value, str):
            return False
        return any(category.value == value for category in cls)


# =============================================================================
# BASE RECORDS (as received from the backend)
# =============================================================================

class _Record(BaseModel):
    """Common configuration for backend records."""
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    id: str = Field(
        ...,
        validation_alias=AliasChoices("_id", "id"),
        description="Backend identifier"
    )

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Any:
        if v is not None and not isinstance(v, str):
            return str(v)
        return v


class Expense(_Record):
    """A single expense the user recorded."""

    title: str = Field(
        default="",
        description="What the money was spent on"
    )
    category: ExpenseCategory = Field(
        default=ExpenseCategory.OTHER,
        description="Spending category"
    )
    amount: Optional[Decimal] = Field(
        default=None,
        description="Amount spent in USD (None if missing or malformed)"
    )
    date: Optional[datetime] = Field(
        default=None,
        description="When the expense happened (None if unparseable)"
    )

    @field_validator("category", mode="before")
    @classmethod
    def fallback_category(cls, v: Any) -> ExpenseCategory:
        return ExpenseCategory.parse(v)

    @field_validator("amount", mode="before")
    @classmethod
    def lenient_amount(cls, v: Any) -> Optional[Decimal]:
        return coerce_amount(v)

    @field_validator("date", mode="before")
    @classmethod
    def lenient_date(cls, v: Any) -> Optional[datetime]:
        return coerce_timestamp(v)


class Job(_Record):
    """A named income source."""

    name: str = Field(
        default="",
        description="Job name"
    )


class WorkEntry(_Record):
    """
    Amount earned for a job on a given day.

    job_id may be None, or point at a job that no longer exists.
    """

    job_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("job", "job_id"),
        description="Identifier of the job this was earned at"
    )
    amount: Optional[Decimal] = None
    date: Optional[datetime] = None

    @field_validator("job_id", mode="before")
    @classmethod
    def resolve_job(cls, v: Any) -> Optional[str]:
        return coerce_job_ref(v)

    @field_validator("amount", mode="before")
    @classmethod
    def lenient_amount(cls, v: Any) -> Optional[Decimal]:
        return coerce_amount(v)

    @field_validator("date", mode="before")
    @classmethod
    def lenient_date(cls, v: Any) -> Optional[datetime]:
        return coerce_timestamp(v)


class SalaryPayment(_Record):
    """
    Money actually received against a job's earnings.

    The date is not entered by the user; the backend stamps it when
    the payment is recorded (exposed as `date` or `createdAt`).
    """

    job_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("job", "job_id"),
    )
    amount: Optional[Decimal] = None
    date: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("date", "createdAt", "created_at"),
    )

    @field_validator("job_id", mode="before")
    @classmethod
    def resolve_job(cls, v: Any) -> Optional[str]:
        return coerce_job_ref(v)

    @field_validator("amount", mode="before")
    @classmethod
    def lenient_amount(cls, v: Any) -> Optional[Decimal]:
        return coerce_amount(v)

    @field_validator("date", mode="before")
    @classmethod
    def lenient_date(cls, v: Any) -> Optional[datetime]:
        return coerce_timestamp(v)


# =============================================================================
# DRAFTS (what the forms produce, before validation)
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    Expense form input.

    All fields are optional here; FinanceInputValidator decides
    whether the draft may be sent to the backend.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = None
    amount: Optional[Decimal] = None
    category: Optional[str] = ExpenseCategory.FOOD.value
    date: Optional[datetime] = None

    @field_validator("amount", mode="before")
    @classmethod
    def lenient_amount(cls, v: Any) -> Optional[Decimal]:
        return coerce_amount(v)

    @field_validator("date", mode="before")
    @classmethod
    def lenient_date(cls, v: Any) -> Optional[datetime]:
        return coerce_timestamp(v)

    @field_validator("category", mode="before")
    @classmethod
    def category_value(cls, v: Any) -> Optional[str]:
        if isinstance(v, ExpenseCategory):
            return v.value
        return v

    def to_payload(self) -> dict:
        """Body for the expenses endpoint."""
        return {
            "title": (self.title or "").strip(),
            "amount": float(self.amount) if self.amount is not None else None,
            "category": ExpenseCategory.parse(self.category).value,
            "date": self.date.isoformat() if self.date else None,
        }


class JobDraft(BaseModel):
    """Job form input."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None

    def to_payload(self) -> dict:
        return {"name": (self.name or "").strip()}


class WorkEntryDraft(BaseModel):
    """Work entry form input."""
    model_config = ConfigDict(str_strip_whitespace=True)

    job_id: Optional[str] = None
    amount: Optional[Decimal] = None
    date: Optional[datetime] = None

    @field_validator("amount", mode="before")
    @classmethod
    def lenient_amount(cls, v: Any) -> Optional[Decimal]:
        return coerce_amount(v)

    @field_validator("date", mode="before")
    @classmethod
    def lenient_date(cls, v: Any) -> Optional[datetime]:
        return coerce_timestamp(v)

    def to_payload(self) -> dict:
        return {
            "job": self.job_id,
            "amount": float(self.amount) if self.amount is not None else None,
            "date": self.date.isoformat() if self.date else None,
        }


class SalaryPaymentDraft(BaseModel):
    """Salary payment form input."""
    model_config = ConfigDict(str_strip_whitespace=True)

    job_id: Optional[str] = None
    amount: Optional[Decimal] = None

    @field_validator("amount", mode="before")
    @classmethod
    def lenient_amount(cls, v: Any) -> Optional[Decimal]:
        return coerce_amount(v)

    def to_payload(self) -> dict:
        return {
            "job": self.job_id,
            "amount": float(self.amount) if self.amount is not None else None,
        }
