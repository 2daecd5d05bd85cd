"""
Two-Stage Entry Validation

Form input reaches the ledger as raw values (usually strings). Nothing is
created until the input has passed both stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Numbers parse as finite numbers
- Dates parse as calendar dates

STAGE 2 - SEMANTIC VALIDATION:
- No negative amounts, prices or budgets
- Quantities must be positive
- Categories outside the catalogue are allowed but flagged

IMPORTANT: Validation NEVER silently fixes issues. A rejected entry
creates no record at all.
"""

import math
from datetime import date
from typing import Callable, Optional, Union

from pydantic import BaseModel, ValidationError

from hisebi.models.categories import is_known_category
from hisebi.models.forms import ValidationIssue, ValidationResult
from hisebi.models.ledger import (
    Debt,
    ShoppingItem,
    Transaction,
    TransactionType,
    UserProfile,
)


RawNumber = Union[str, int, float, None]
RawDate = Union[str, date, None]


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class EntryValidator:
    """
    Validates raw form input and builds the ledger record.

    Every `validate_*` method returns `(result, record)`; `record` is None
    whenever `result.is_valid` is False.
    """

    def __init__(self, today: Optional[Callable[[], date]] = None):
        """
        Args:
            today: Provides the default date for entries without one.
        """
        self._today = today or date.today

    # -------------------------------------------------------------------------
    # Stage 1 helpers
    # -------------------------------------------------------------------------

    def _parse_number(
        self,
        field: str,
        raw: RawNumber,
        issues: list[ValidationIssue],
        required: bool = True,
    ) -> Optional[float]:
        if _is_blank(raw):
            if required:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{field.replace('_', ' ').capitalize()} is required",
                    severity="error",
                ))
            return None

        if isinstance(raw, bool):
            value = None
        else:
            try:
                value = float(raw.strip() if isinstance(raw, str) else raw)
            except (TypeError, ValueError):
                value = None

        if value is None or not math.isfinite(value):
            issues.append(ValidationIssue(
                field=field,
                issue_type="not_a_number",
                message=f"{field.replace('_', ' ').capitalize()} must be a number, got '{raw}'",
                severity="error",
                suggested_fix="Enter digits only, e.g. 250 or 99.50",
            ))
            return None

        return value

    def _parse_date(
        self,
        field: str,
        raw: RawDate,
        issues: list[ValidationIssue],
    ) -> Optional[date]:
        if _is_blank(raw):
            return self._today()
        if isinstance(raw, date):
            return raw
        try:
            return date.fromisoformat(raw.strip())
        except (TypeError, ValueError):
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"Date must look like YYYY-MM-DD, got '{raw}'",
                severity="error",
            ))
            return None

    def _require_text(
        self,
        field: str,
        raw: Optional[str],
        issues: list[ValidationIssue],
    ) -> str:
        if _is_blank(raw):
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{field.replace('_', ' ').capitalize()} is required",
                severity="error",
            ))
            return ""
        return raw.strip()

    # -------------------------------------------------------------------------
    # Stage 2 helpers
    # -------------------------------------------------------------------------

    def _check_non_negative(
        self,
        field: str,
        value: Optional[float],
        issues: list[ValidationIssue],
    ) -> None:
        if value is not None and value < 0:
            issues.append(ValidationIssue(
                field=field,
                issue_type="negative",
                message=f"{field.replace('_', ' ').capitalize()} cannot be negative",
                severity="error",
            ))

    # -------------------------------------------------------------------------
    # Record construction
    # -------------------------------------------------------------------------

    def _build(
        self,
        model: type[BaseModel],
        values: dict,
        issues: list[ValidationIssue],
    ) -> Optional[BaseModel]:
        try:
            return model(**values)
        except ValidationError as e:
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"]) or "entry"
                issues.append(ValidationIssue(
                    field=location,
                    issue_type=error["type"],
                    message=error["msg"],
                    severity="error",
                ))
            return None

    def _finish(
        self,
        entity_type: str,
        schema_issues: list[ValidationIssue],
        semantic_issues: list[ValidationIssue],
        model: type[BaseModel],
        values: dict,
    ) -> tuple[ValidationResult, Optional[BaseModel]]:
        schema_valid = not any(i.severity == "error" for i in schema_issues)
        semantic_valid = not any(i.severity == "error" for i in semantic_issues)
        issues = schema_issues + semantic_issues

        record = None
        if schema_valid and semantic_valid:
            record = self._build(model, values, issues)
            if record is None:
                semantic_valid = False

        result = ValidationResult(
            entity_type=entity_type,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            issues=issues,
        )
        return result, record

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def validate_transaction(
        self,
        kind: Union[str, TransactionType],
        amount: RawNumber,
        category: Optional[str],
        entry_date: RawDate = None,
        note: Optional[str] = "",
    ) -> tuple[ValidationResult, Optional[Transaction]]:
        """Validate an income/expense form submission."""
        schema_issues: list[ValidationIssue] = []

        try:
            parsed_kind = TransactionType(kind)
        except ValueError:
            parsed_kind = None
            schema_issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_choice",
                message=f"Type must be 'income' or 'expense', got '{kind}'",
                severity="error",
            ))

        parsed_amount = self._parse_number("amount", amount, schema_issues)
        parsed_category = self._require_text("category", category, schema_issues)
        parsed_date = self._parse_date("date", entry_date, schema_issues)

        semantic_issues: list[ValidationIssue] = []
        self._check_non_negative("amount", parsed_amount, semantic_issues)
        if parsed_kind and parsed_category and not is_known_category(
            parsed_category, income=parsed_kind == TransactionType.INCOME
        ):
            semantic_issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message=f"'{parsed_category}' is not one of the standard categories",
                severity="warning",
            ))

        return self._finish(
            "transaction",
            schema_issues,
            semantic_issues,
            Transaction,
            {
                "kind": parsed_kind,
                "amount": parsed_amount,
                "category": parsed_category,
                "date": parsed_date,
                "note": (note or "").strip(),
            },
        )

    def validate_debt(
        self,
        person: Optional[str],
        amount: RawNumber,
        entry_date: RawDate = None,
        note: Optional[str] = "",
    ) -> tuple[ValidationResult, Optional[Debt]]:
        """Validate a Dhar form submission."""
        schema_issues: list[ValidationIssue] = []
        parsed_person = self._require_text("person", person, schema_issues)
        parsed_amount = self._parse_number("amount", amount, schema_issues)
        parsed_date = self._parse_date("date", entry_date, schema_issues)

        semantic_issues: list[ValidationIssue] = []
        self._check_non_negative("amount", parsed_amount, semantic_issues)

        return self._finish(
            "debt",
            schema_issues,
            semantic_issues,
            Debt,
            {
                "person": parsed_person,
                "amount": parsed_amount,
                "date": parsed_date,
                "note": (note or "").strip(),
            },
        )

    def validate_shopping_item(
        self,
        name: Optional[str],
        quantity: RawNumber = None,
        estimated_price: RawNumber = None,
        unit: Optional[str] = None,
    ) -> tuple[ValidationResult, Optional[ShoppingItem]]:
        """Validate a shopping list entry. Only the name is required."""
        schema_issues: list[ValidationIssue] = []
        parsed_name = self._require_text("name", name, schema_issues)
        parsed_quantity = self._parse_number("quantity", quantity, schema_issues, required=False)
        parsed_price = self._parse_number(
            "estimated_price", estimated_price, schema_issues, required=False
        )

        semantic_issues: list[ValidationIssue] = []
        if parsed_quantity is not None and parsed_quantity <= 0:
            semantic_issues.append(ValidationIssue(
                field="quantity",
                issue_type="not_positive",
                message="Quantity must be greater than zero",
                severity="error",
                suggested_fix="Leave quantity empty to mean one",
            ))
        self._check_non_negative("estimated_price", parsed_price, semantic_issues)

        return self._finish(
            "shopping_item",
            schema_issues,
            semantic_issues,
            ShoppingItem,
            {
                "name": parsed_name,
                "quantity": parsed_quantity,
                "estimated_price": parsed_price,
                "unit": None if _is_blank(unit) else unit.strip(),
            },
        )

    def validate_profile(
        self,
        name: Optional[str],
        monthly_budget: RawNumber,
    ) -> tuple[ValidationResult, Optional[UserProfile]]:
        """Validate a profile edit."""
        schema_issues: list[ValidationIssue] = []
        parsed_budget = self._parse_number("monthly_budget", monthly_budget, schema_issues)

        semantic_issues: list[ValidationIssue] = []
        self._check_non_negative("monthly_budget", parsed_budget, semantic_issues)

        return self._finish(
            "profile",
            schema_issues,
            semantic_issues,
            UserProfile,
            {
                "name": (name or "").strip(),
                "monthly_budget": parsed_budget,
            },
        )
