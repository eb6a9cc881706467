"""
Boundary Validation

DESIGN DECISION: Raw input (form strings from the screens, JSON bodies
from the API) is validated here, before it can reach a store.

Each field is checked independently so the user sees every problem at
once, then the clean values are assembled into an ExpenseDraft or
ExpensePatch. The models repeat the core invariants, so nothing invalid
can be persisted even if a caller bypasses this module.

IMPORTANT: Validation NEVER silently fixes issues. An amount with more
than two decimal places is rejected, not rounded.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pocketbudget.models.expense import (
    BudgetType,
    ExpenseCategory,
    ExpenseDraft,
    ExpensePatch,
    ValidationIssue,
    ValidationResult,
    normalize_timestamp,
)

MAX_AMOUNT_DIGITS = 10
CENT = Decimal("0.01")


class InvalidArgumentError(ValueError):
    """Input was missing or malformed. Nothing was written."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues) or "Invalid input")

    @classmethod
    def single(cls, field: str, issue_type: str, message: str) -> "InvalidArgumentError":
        return cls([ValidationIssue(field=field, issue_type=issue_type, message=message)])

    def to_dicts(self) -> list[dict]:
        return [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in self.issues
        ]


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ExpenseInputValidator:
    """
    Converts raw expense and budget input into validated models.

    Every parse_* method returns (value, issues); value is None when
    issues is non-empty.
    """

    def parse_amount(
        self,
        raw: Any,
        field: str = "amount",
    ) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        if _missing(raw):
            return None, [ValidationIssue(
                field=field,
                issue_type="missing",
                message="Amount is required",
                suggested_fix="Enter an amount such as 120.50",
            )]

        if isinstance(raw, bool):
            amount = None
        elif isinstance(raw, Decimal):
            amount = raw
        elif isinstance(raw, (int, float)):
            amount = Decimal(str(raw))
        elif isinstance(raw, str):
            try:
                amount = Decimal(raw.strip().replace(",", ""))
            except InvalidOperation:
                amount = None
        else:
            amount = None

        if amount is None:
            return None, [ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"Amount ({raw!r}) is not a number",
                suggested_fix="Enter digits only, e.g. 120.50",
            )]

        if not amount.is_finite():
            return None, [ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message="Amount must be a finite number",
            )]

        if amount <= 0:
            return None, [ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                suggested_fix="Enter a positive amount",
            )]

        # DECIMAL(10, 2): eight integer digits
        if amount >= Decimal(10) ** (MAX_AMOUNT_DIGITS - 2):
            return None, [ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message="Amount is too large",
            )]

        cents = amount.quantize(CENT)
        if cents != amount:
            return None, [ValidationIssue(
                field=field,
                issue_type="invalid_precision",
                message="Amount can have at most two decimal places",
            )]

        return cents, []

    def parse_category(
        self,
        raw: Any,
    ) -> tuple[Optional[ExpenseCategory], list[ValidationIssue]]:
        if _missing(raw):
            return None, [ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                suggested_fix="Please select a category",
            )]
        if isinstance(raw, ExpenseCategory):
            return raw, []
        if not isinstance(raw, str):
            return None, [ValidationIssue(
                field="category",
                issue_type="invalid_format",
                message="Category must be text",
            )]
        try:
            return ExpenseCategory.parse(raw), []
        except ValueError:
            return None, [ValidationIssue(
                field="category",
                issue_type="invalid_value",
                message=f"Unknown category: {raw}",
                suggested_fix="Choose one of: " + ", ".join(c.value for c in ExpenseCategory),
            )]

    def parse_note(self, raw: Any) -> tuple[Optional[str], list[ValidationIssue]]:
        if raw is None:
            return None, []
        if not isinstance(raw, str):
            return None, [ValidationIssue(
                field="note",
                issue_type="invalid_format",
                message="Note must be text",
            )]
        return raw.strip() or None, []

    def parse_date(
        self,
        raw: Any,
        required: bool = True,
    ) -> tuple[Optional[datetime], list[ValidationIssue]]:
        if _missing(raw):
            if not required:
                return None, []
            return None, [ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                suggested_fix="Send an ISO-8601 timestamp, e.g. 2024-05-01T09:30:00Z",
            )]
        parsed = raw if isinstance(raw, datetime) else None
        if isinstance(raw, str):
            text = raw.strip()
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                pass
        if parsed is not None:
            try:
                return normalize_timestamp(parsed), []
            except OverflowError:
                # e.g. 0001-01-01T00:00:00+01:00 has no UTC equivalent
                pass
        return None, [ValidationIssue(
            field="date",
            issue_type="invalid_format",
            message=f"Date ({raw!r}) is not an ISO-8601 timestamp",
        )]

    def parse_budget_type(
        self,
        raw: Any,
    ) -> tuple[Optional[BudgetType], list[ValidationIssue]]:
        if isinstance(raw, BudgetType):
            return raw, []
        if isinstance(raw, str):
            try:
                return BudgetType(raw.strip().lower()), []
            except ValueError:
                pass
        return None, [ValidationIssue(
            field="budget_type",
            issue_type="invalid_value",
            message="Budget type must be weekly or monthly",
        )]

    # -------------------------------------------------------------------------
    # Assembled models
    # -------------------------------------------------------------------------

    def build_draft(
        self,
        amount: Any,
        category: Any,
        note: Any = None,
        date: Any = None,
        require_date: bool = False,
    ) -> ExpenseDraft:
        """
        Validate raw create input.

        Raises:
            InvalidArgumentError: With every issue found
        """
        issues: list[ValidationIssue] = []
        parsed_amount, found = self.parse_amount(amount)
        issues.extend(found)
        parsed_category, found = self.parse_category(category)
        issues.extend(found)
        parsed_note, found = self.parse_note(note)
        issues.extend(found)
        parsed_date, found = self.parse_date(date, required=require_date)
        issues.extend(found)

        if issues:
            raise InvalidArgumentError(issues)

        return ExpenseDraft(
            amount=parsed_amount,
            category=parsed_category,
            note=parsed_note,
            date=parsed_date,
        )

    def build_patch(self, fields: dict[str, Any]) -> ExpensePatch:
        """
        Validate raw merge-patch input.

        Only keys present in fields are validated and set. Unknown keys
        are rejected so a typo never turns into a silent no-op.

        Raises:
            InvalidArgumentError: With every issue found
        """
        issues: list[ValidationIssue] = []
        values: dict[str, Any] = {}

        unknown = sorted(set(fields) - {"amount", "category", "note", "date", "id"})
        for name in unknown:
            issues.append(ValidationIssue(
                field=name,
                issue_type="unknown_field",
                message=f"Unknown field: {name}",
            ))

        if "amount" in fields:
            values["amount"], found = self.parse_amount(fields["amount"])
            issues.extend(found)
        if "category" in fields:
            values["category"], found = self.parse_category(fields["category"])
            issues.extend(found)
        if "note" in fields:
            values["note"], found = self.parse_note(fields["note"])
            issues.extend(found)
        if "date" in fields:
            values["date"], found = self.parse_date(fields["date"], required=True)
            issues.extend(found)

        if issues:
            raise InvalidArgumentError(issues)

        return ExpensePatch(**values)

    def build_budget_amount(self, raw: Any) -> Decimal:
        amount, issues = self.parse_amount(raw, field="budget_amount")
        if issues:
            raise InvalidArgumentError(issues)
        return amount

    def build_budget_type(self, raw: Any) -> BudgetType:
        budget_type, issues = self.parse_budget_type(raw)
        if issues:
            raise InvalidArgumentError(issues)
        return budget_type

    def check_draft(self, **fields: Any) -> ValidationResult:
        """Validate create input without raising; for live form feedback."""
        try:
            self.build_draft(**fields)
        except InvalidArgumentError as e:
            return ValidationResult(issues=e.issues)
        return ValidationResult()

    def get_user_friendly_summary(self, error: InvalidArgumentError) -> str:
        """
        Generate a user-friendly summary of validation problems.

        This is what we show on the screens.
        """
        lines = ["❌ Please fix the following:"]
        for issue in error.issues:
            lines.append(f"   • {issue.message}")
            if issue.suggested_fix:
                lines.append(f"     💡 {issue.suggested_fix}")
        return "\n".join(lines)
