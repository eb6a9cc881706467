"""Tests for boundary validation of raw expense and budget input."""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from pocketbudget.models.expense import BudgetType, ExpenseCategory
from pocketbudget.validation import ExpenseInputValidator, InvalidArgumentError


@pytest.fixture
def validator():
    return ExpenseInputValidator()


class TestParseAmount:
    """Tests for amount parsing."""

    def test_plain_string(self, validator):
        amount, issues = validator.parse_amount("120.50")
        assert amount == Decimal("120.50")
        assert issues == []

    def test_thousands_separator(self, validator):
        """Test that commas typed by the user are accepted."""
        amount, issues = validator.parse_amount("1,500")
        assert amount == Decimal("1500.00")
        assert issues == []

    def test_json_number(self, validator):
        """Test numbers coming from a JSON body."""
        amount, _ = validator.parse_amount(300.5)
        assert amount == Decimal("300.50")

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_missing(self, validator, raw):
        amount, issues = validator.parse_amount(raw)
        assert amount is None
        assert issues[0].issue_type == "missing"

    @pytest.mark.parametrize("raw", ["abc", "12a", True, [1]])
    def test_not_a_number(self, validator, raw):
        amount, issues = validator.parse_amount(raw)
        assert amount is None
        assert issues[0].issue_type == "invalid_format"

    @pytest.mark.parametrize("raw", ["0", "-5", "NaN", "Infinity"])
    def test_not_positive_finite(self, validator, raw):
        amount, issues = validator.parse_amount(raw)
        assert amount is None
        assert issues[0].issue_type == "invalid_value"

    def test_too_many_decimals_is_rejected_not_rounded(self, validator):
        amount, issues = validator.parse_amount("10.005")
        assert amount is None
        assert issues[0].issue_type == "invalid_precision"

    def test_too_large(self, validator):
        amount, issues = validator.parse_amount("100000000")
        assert amount is None
        assert issues[0].message == "Amount is too large"

    def test_largest_allowed(self, validator):
        amount, issues = validator.parse_amount("99999999.99")
        assert amount == Decimal("99999999.99")
        assert issues == []


class TestParseOtherFields:
    """Tests for category, note, date and budget type parsing."""

    def test_category_label(self, validator):
        category, issues = validator.parse_category("🍕 Food")
        assert category == ExpenseCategory.FOOD
        assert issues == []

    def test_category_missing(self, validator):
        category, issues = validator.parse_category("")
        assert category is None
        assert issues[0].issue_type == "missing"

    def test_category_unknown(self, validator):
        category, issues = validator.parse_category("Rent")
        assert category is None
        assert issues[0].issue_type == "invalid_value"
        assert "Food" in issues[0].suggested_fix

    def test_note_blank_is_none(self, validator):
        note, issues = validator.parse_note("   ")
        assert note is None
        assert issues == []

    def test_note_must_be_text(self, validator):
        _, issues = validator.parse_note(42)
        assert issues[0].issue_type == "invalid_format"

    def test_date_with_z_suffix(self, validator):
        date, issues = validator.parse_date("2024-05-01T09:30:00.250Z")
        assert date == datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
        assert issues == []

    def test_date_with_offset(self, validator):
        date, _ = validator.parse_date("2024-05-01T17:30:00+08:00")
        assert date == datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)

    def test_date_optional(self, validator):
        date, issues = validator.parse_date(None, required=False)
        assert date is None
        assert issues == []

    def test_date_required(self, validator):
        _, issues = validator.parse_date(None, required=True)
        assert issues[0].issue_type == "missing"

    def test_date_invalid(self, validator):
        _, issues = validator.parse_date("yesterday")
        assert issues[0].issue_type == "invalid_format"

    @pytest.mark.parametrize("raw", ["0001-01-01T00:00:00+01:00", "9999-12-31T23:30:00-01:00"])
    def test_date_outside_utc_range(self, validator, raw):
        """Test that a date with no UTC equivalent is a format issue, not a crash."""
        date, issues = validator.parse_date(raw)
        assert date is None
        assert issues[0].issue_type == "invalid_format"

    def test_budget_type(self, validator):
        budget_type, issues = validator.parse_budget_type(" Weekly ")
        assert budget_type == BudgetType.WEEKLY
        assert issues == []

    def test_budget_type_invalid(self, validator):
        budget_type, issues = validator.parse_budget_type("daily")
        assert budget_type is None
        assert issues


class TestBuildDraft:
    """Tests for assembling a create payload."""

    def test_valid_draft(self, validator):
        draft = validator.build_draft("45", "Coffee/Snacks", " latte ")
        assert draft.amount == Decimal("45.00")
        assert draft.category == ExpenseCategory.COFFEE_SNACKS
        assert draft.note == "latte"
        assert draft.date is None

    def test_reports_every_issue(self, validator):
        """Test that all problems are reported at once."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            validator.build_draft("", "")
        fields = {issue.field for issue in exc_info.value.issues}
        assert fields == {"amount", "category"}

    def test_require_date(self, validator):
        with pytest.raises(InvalidArgumentError) as exc_info:
            validator.build_draft("10", "Food", require_date=True)
        assert exc_info.value.to_dicts()[0]["field"] == "date"

    def test_invalid_argument_is_value_error(self, validator):
        with pytest.raises(ValueError):
            validator.build_draft("-1", "Food")


class TestBuildPatch:
    """Tests for assembling a merge-patch."""

    def test_only_supplied_fields(self, validator):
        patch = validator.build_patch({"amount": "75"})
        assert patch.changes() == {"amount": Decimal("75.00")}

    def test_null_note_clears(self, validator):
        patch = validator.build_patch({"note": None})
        assert patch.changes() == {"note": None}

    def test_null_amount_rejected(self, validator):
        with pytest.raises(InvalidArgumentError):
            validator.build_patch({"amount": None})

    def test_unknown_field_rejected(self, validator):
        with pytest.raises(InvalidArgumentError) as exc_info:
            validator.build_patch({"amout": "75"})
        assert exc_info.value.issues[0].issue_type == "unknown_field"

    def test_id_in_body_is_ignored(self, validator):
        patch = validator.build_patch({"id": "5", "category": "Health"})
        assert patch.changes() == {"category": ExpenseCategory.HEALTH}

    def test_empty_patch(self, validator):
        assert validator.build_patch({}).is_empty


class TestBudgetInput:
    """Tests for budget setup input."""

    def test_budget_amount(self, validator):
        assert validator.build_budget_amount("1500") == Decimal("1500.00")

    @pytest.mark.parametrize("raw", ["", "0", "-100", "abc"])
    def test_budget_amount_rejected(self, validator, raw):
        with pytest.raises(InvalidArgumentError) as exc_info:
            validator.build_budget_amount(raw)
        assert exc_info.value.issues[0].field == "budget_amount"

    def test_budget_type_rejected(self, validator):
        with pytest.raises(InvalidArgumentError):
            validator.build_budget_type("yearly")


class TestHelpers:
    """Tests for non-raising helpers."""

    def test_check_draft(self, validator):
        result = validator.check_draft(amount="abc", category="Food")
        assert not result.is_valid
        assert result.error_count == 1

    def test_check_draft_valid(self, validator):
        assert validator.check_draft(amount="10", category="Food").is_valid

    def test_user_friendly_summary(self, validator):
        with pytest.raises(InvalidArgumentError) as exc_info:
            validator.build_draft("", "Food")
        summary = validator.get_user_friendly_summary(exc_info.value)
        assert "Amount is required" in summary
        assert "💡" in summary
