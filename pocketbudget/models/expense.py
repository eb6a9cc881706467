"""
Core Data Models for Pocket Budget

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce the expense invariants at runtime (amount > 0, known category)
2. Provide clear validation error messages
3. Be serializable for the local store, the database and the HTTP API

DESIGN DECISION: Every timestamp is normalised to timezone-aware UTC with
whole-second precision. That is the precision of the relational DATETIME
column, so an expense reads back identically from every backend.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


def normalize_timestamp(value: datetime) -> datetime:
    """Convert to aware UTC and drop sub-second precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


def utc_now() -> datetime:
    return normalize_timestamp(datetime.now(timezone.utc))


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    DESIGN DECISION: Using explicit categories rather than free text ensures
    consistent categorization and reliable per-category totals.
    """
    FOOD = "Food"
    TRANSPORTATION = "Transportation"
    SCHOOL_SUPPLIES = "School Supplies"
    CLOTHING = "Clothing"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    COFFEE_SNACKS = "Coffee/Snacks"
    PHONE_INTERNET = "Phone/Internet"
    UTILITIES = "Utilities"
    OTHERS = "Others"

    @property
    def emoji(self) -> str:
        return _CATEGORY_EMOJI[self]

    @property
    def label(self) -> str:
        """Display label, e.g. '🍕 Food'."""
        return f"{self.emoji} {self.value}"

    @classmethod
    def parse(cls, raw: str) -> "ExpenseCategory":
        """
        Resolve a category from user or persisted input.

        Accepts the bare value ("Food"), the display label ("🍕 Food")
        and is case-insensitive. Raises ValueError for anything else.
        """
        text = raw.strip()
        for category in cls:
            if text.lower() in (category.value.lower(), category.label.lower()):
                return category
        raise ValueError(f"Unknown category: {raw!r}")


_CATEGORY_EMOJI = {
    ExpenseCategory.FOOD: "🍕",
    ExpenseCategory.TRANSPORTATION: "🚌",
    ExpenseCategory.SCHOOL_SUPPLIES: "📚",
    ExpenseCategory.CLOTHING: "👕",
    ExpenseCategory.ENTERTAINMENT: "🎬",
    ExpenseCategory.HEALTH: "💊",
    ExpenseCategory.COFFEE_SNACKS: "☕",
    ExpenseCategory.PHONE_INTERNET: "📱",
    ExpenseCategory.UTILITIES: "🏠",
    ExpenseCategory.OTHERS: "🎁",
}


class BudgetType(str, Enum):
    """Budget period."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class BudgetStatus(str, Enum):
    """
    Severity of budget usage, most severe first.

    NO_BUDGET is reported when no budget amount is set, so the UI
    never shows a misleading zero.
    """
    EXCEEDED = "exceeded"
    CRITICAL = "critical"
    WARNING = "warning"
    CAUTION = "caution"
    GOOD = "good"
    NO_BUDGET = "no_budget"


# Shared amount constraint: positive, finite, DECIMAL(10, 2)
PositiveAmount = Annotated[
    Decimal,
    Field(gt=0, max_digits=10, decimal_places=2, allow_inf_nan=False),
]


def _coerce_category(value: Any) -> Any:
    if isinstance(value, str) and not isinstance(value, ExpenseCategory):
        return ExpenseCategory.parse(value)
    return value


# =============================================================================
# EXPENSE MODELS
# =============================================================================

class Expense(BaseModel):
    """
    A persisted expense record.

    The id is assigned by the store: a random hex string in the local
    store, the autoincrement key (as a string) in the relational store.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Store-assigned identifier"
    )
    amount: PositiveAmount
    category: ExpenseCategory = Field(
        ...,
        description="Expense category"
    )
    note: Optional[str] = Field(
        default=None,
        description="Optional free text"
    )
    date: datetime = Field(
        default_factory=utc_now,
        description="When the expense happened (UTC)"
    )

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Integer keys from the relational store are carried as strings."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator('category', mode='before')
    @classmethod
    def parse_category(cls, v: Any) -> Any:
        return _coerce_category(v)

    @field_validator('note')
    @classmethod
    def empty_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator('date')
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return normalize_timestamp(v)

    def to_wire(self) -> dict:
        """
        JSON representation used by the HTTP API.

        The amount is a number, not a string.
        """
        return {
            "id": self.id,
            "amount": float(self.amount),
            "category": self.category.value,
            "note": self.note,
            "date": self.date.isoformat(),
        }


class ExpenseDraft(BaseModel):
    """Data for a new expense; the store assigns the id."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: PositiveAmount
    category: ExpenseCategory
    note: Optional[str] = None
    date: Optional[datetime] = Field(
        default=None,
        description="Defaults to the current time when the store persists it"
    )

    @field_validator('category', mode='before')
    @classmethod
    def parse_category(cls, v: Any) -> Any:
        return _coerce_category(v)

    @field_validator('note')
    @classmethod
    def empty_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator('date')
    @classmethod
    def normalize_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return normalize_timestamp(v) if v is not None else None

    def to_expense(self, expense_id: str) -> Expense:
        return Expense(
            id=expense_id,
            amount=self.amount,
            category=self.category,
            note=self.note,
            date=self.date or utc_now(),
        )


class ExpensePatch(BaseModel):
    """
    Merge-patch for an existing expense.

    Only explicitly supplied fields change. Use changes() rather than
    model_dump() so unset fields are never written back.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Optional[PositiveAmount] = None
    category: Optional[ExpenseCategory] = None
    note: Optional[str] = None
    date: Optional[datetime] = None

    @field_validator('category', mode='before')
    @classmethod
    def parse_category(cls, v: Any) -> Any:
        return _coerce_category(v)

    @field_validator('note')
    @classmethod
    def empty_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator('date')
    @classmethod
    def normalize_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return normalize_timestamp(v) if v is not None else None

    @model_validator(mode='after')
    def reject_nulled_required_fields(self) -> 'ExpensePatch':
        """Amount, category and date can be changed but never removed."""
        for name in ("amount", "category", "date"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set

    def apply_to(self, expense: Expense) -> Expense:
        """Return a re-validated copy of expense with this patch merged in."""
        merged = expense.model_dump()
        merged.update(self.changes())
        return Expense.model_validate(merged)


# =============================================================================
# BUDGET MODELS
# =============================================================================

class BudgetConfiguration(BaseModel):
    """
    The user's budget settings.

    Either field may be unset; the onboarding flow sets the type first
    and the amount second. An amount of zero is tolerated and means
    "no budget set"; the store itself only accepts positive amounts.
    """

    type: Optional[BudgetType] = None
    amount: Optional[Decimal] = Field(
        default=None,
        ge=0,
        allow_inf_nan=False,
    )

    @property
    def has_amount(self) -> bool:
        return self.amount is not None and self.amount > 0

    @property
    def is_complete(self) -> bool:
        return self.type is not None and self.has_amount


class BudgetSnapshot(BaseModel):
    """
    Derived budget state. Never persisted.

    None means "undefined" for remaining, percentage_used and
    suggested_allowance (no budget set, or nothing left to allocate).
    """

    budget_type: Optional[BudgetType] = None
    budget_amount: Optional[Decimal] = None
    total_spent: Decimal = Field(
        ...,
        ge=0,
        description="Sum of all expense amounts"
    )
    remaining: Optional[Decimal] = Field(
        default=None,
        description="Budget minus spent; may be negative"
    )
    percentage_used: Optional[Decimal] = None
    status: BudgetStatus
    suggested_allowance: Optional[Decimal] = None
    allowance_period: Optional[str] = Field(
        default=None,
        pattern="^(day|week)$",
        description="Period the suggested allowance covers"
    )
    expense_count: int = Field(ge=0)

    @property
    def has_budget(self) -> bool:
        return self.remaining is not None

    @property
    def is_over_budget(self) -> bool:
        return self.status == BudgetStatus.EXCEEDED


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating raw expense or budget input."""

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return not self.issues

    @property
    def error_count(self) -> int:
        return len(self.issues)

    def messages(self) -> list[str]:
        return [issue.message for issue in self.issues]
