"""Tests for two-stage entry validation."""

from datetime import date

import pytest

from hisebi.models.ledger import TransactionType
from hisebi.validation import EntryValidator

from tests.factories import TODAY


@pytest.fixture
def validator():
    return EntryValidator(today=lambda: TODAY)


def issue_types(result):
    return {issue.issue_type for issue in result.issues}


class TestTransactionValidation:
    """Tests for income/expense forms."""

    def test_valid_expense(self, validator):
        """Test string input becomes a Transaction."""
        result, t = validator.validate_transaction("expense", " 250.50 ", "Food", "2024-01-05", " tea ")
        assert result.is_valid
        assert t.kind == TransactionType.EXPENSE
        assert t.amount == 250.5
        assert t.date == date(2024, 1, 5)
        assert t.note == "tea"

    def test_blank_date_defaults_to_today(self, validator):
        """Test an empty date field uses today."""
        _, t = validator.validate_transaction("income", "5000", "Salary", "")
        assert t.date == TODAY

    def test_amount_not_a_number(self, validator):
        """Test an invalid amount string never creates a record."""
        result, t = validator.validate_transaction("expense", "abc", "Food")
        assert t is None
        assert not result.schema_valid
        assert "not_a_number" in issue_types(result)

    @pytest.mark.parametrize("raw", ["nan", "inf", True])
    def test_amount_not_finite(self, validator, raw):
        """Test NaN, infinity and booleans are not amounts."""
        result, t = validator.validate_transaction("expense", raw, "Food")
        assert t is None
        assert "not_a_number" in issue_types(result)

    def test_missing_amount(self, validator):
        """Test the amount is required."""
        result, t = validator.validate_transaction("expense", "  ", "Food")
        assert t is None
        assert "missing" in issue_types(result)

    def test_negative_amount(self, validator):
        """Test negative amounts fail the semantic stage."""
        result, t = validator.validate_transaction("expense", "-10", "Food")
        assert t is None
        assert result.schema_valid
        assert not result.semantic_valid
        assert "negative" in issue_types(result)

    def test_invalid_kind(self, validator):
        """Test the type must be income or expense."""
        result, t = validator.validate_transaction("transfer", "10", "Food")
        assert t is None
        assert "invalid_choice" in issue_types(result)

    def test_invalid_date(self, validator):
        """Test an unparseable date is rejected."""
        result, t = validator.validate_transaction("expense", "10", "Food", "05/01/2024")
        assert t is None
        assert "invalid_format" in issue_types(result)

    def test_unknown_category_is_warning(self, validator):
        """Test free-text categories are allowed but flagged."""
        result, t = validator.validate_transaction("expense", "40", "Fuchka")
        assert t is not None
        assert t.category == "Fuchka"
        assert result.is_valid
        assert result.warnings

    def test_income_category_checked_against_income_list(self, validator):
        """Test an income category is not flagged for income."""
        result, _ = validator.validate_transaction("income", "100", "Freelance")
        assert result.warnings == []


class TestDebtValidation:
    """Tests for Dhar forms."""

    def test_valid_debt(self, validator):
        """Test a Dhar entry is created pending."""
        result, d = validator.validate_debt("Rahim", "1500", "2024-01-02", "for rent")
        assert result.is_valid
        assert d.person == "Rahim"
        assert d.is_pending

    def test_person_required(self, validator):
        """Test the counterparty is required."""
        result, d = validator.validate_debt("", "100")
        assert d is None
        assert result.error_count >= 1


class TestShoppingValidation:
    """Tests for shopping list forms."""

    def test_name_only(self, validator):
        """Test quantity, price and unit are optional."""
        result, item = validator.validate_shopping_item("Rice", "", "", "")
        assert result.is_valid
        assert item.quantity is None
        assert item.estimated_price is None
        assert item.unit is None
        assert item.completed is False

    def test_zero_quantity(self, validator):
        """Test a zero quantity is rejected."""
        result, item = validator.validate_shopping_item("Eggs", "0")
        assert item is None
        assert "not_positive" in issue_types(result)

    def test_negative_price(self, validator):
        """Test a negative price is rejected."""
        _, item = validator.validate_shopping_item("Eggs", "12", "-5")
        assert item is None


class TestProfileValidation:
    """Tests for profile edits."""

    def test_valid_profile(self, validator):
        """Test budget strings are parsed."""
        result, profile = validator.validate_profile("Nusrat", "20000")
        assert result.is_valid
        assert profile.monthly_budget == 20000

    def test_negative_budget(self, validator):
        """Test a negative budget is rejected."""
        _, profile = validator.validate_profile("Nusrat", "-1")
        assert profile is None
