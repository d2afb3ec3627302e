"""Tests for input validation and the error taxonomy."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerdash.models import TransactionCreate
from ledgerdash.validation import (
    NotFoundError,
    ValidationError,
    issues_from_errors,
    month_key,
    parse_amount,
    parse_date,
    parse_model,
    parse_month,
    validate_day_of_month,
    validate_year,
)


class TestParseAmount:
    """Tests for exact amount parsing."""

    def test_accepts_decimal_strings(self):
        assert parse_amount("10.5") == Decimal("10.50")
        assert parse_amount(" 0.01 ") == Decimal("0.01")
        assert parse_amount(3) == Decimal("3.00")

    def test_rejects_floats(self):
        """Test that floats are rejected since they cannot hold cents exactly."""
        with pytest.raises(ValidationError) as exc_info:
            parse_amount(0.1)
        assert exc_info.value.issues[0].issue_type == "invalid_format"

    @pytest.mark.parametrize("value", [None, True, "", "abc", "NaN", "Infinity"])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValidationError):
            parse_amount(value)

    def test_rejects_sub_cent_precision(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_amount("1.001")
        assert exc_info.value.issues[0].issue_type == "invalid_precision"

    def test_positive_check(self):
        """Test that zero is rejected unless non-positive amounts are allowed."""
        with pytest.raises(ValidationError):
            parse_amount("0")
        assert parse_amount("0", positive=False) == Decimal("0.00")
        assert parse_amount("-5", positive=False) == Decimal("-5.00")

    def test_rejects_too_large(self):
        with pytest.raises(ValidationError):
            parse_amount("10000000000.00")

    def test_issue_names_the_field(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_amount("x", field="credit_limit")
        assert exc_info.value.issues[0].field == "credit_limit"


class TestDates:
    """Tests for date, month and day-of-month parsing."""

    def test_parse_date(self):
        assert parse_date("2024-02-29") == date(2024, 2, 29)
        assert parse_date(date(2024, 1, 1)) == date(2024, 1, 1)
        with pytest.raises(ValidationError):
            parse_date("2023-02-29")
        with pytest.raises(ValidationError):
            parse_date(20240101)

    def test_parse_month_bounds(self):
        assert parse_month("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
        assert parse_month("2023-12") == (date(2023, 12, 1), date(2023, 12, 31))

    @pytest.mark.parametrize("value", ["2024-13", "2024-1", "24-01", "2024/01", None])
    def test_parse_month_rejects(self, value):
        with pytest.raises(ValidationError):
            parse_month(value)

    def test_month_key(self):
        assert month_key(date(2024, 3, 9)) == "2024-03"

    def test_validate_day_of_month(self):
        assert validate_day_of_month(31, "due_date") == 31
        assert validate_day_of_month("5", "due_date") == 5

    @pytest.mark.parametrize("value", [0, 32, None, "", "5.5", True])
    def test_validate_day_of_month_rejects(self, value):
        with pytest.raises(ValidationError):
            validate_day_of_month(value, "closing_day")

    def test_validate_year(self):
        assert validate_year("2024") == 2024
        with pytest.raises(ValidationError):
            validate_year(1800)


class TestParseModel:
    """Tests for model parsing and issue reporting."""

    def test_instances_pass_through(self):
        tx = TransactionCreate(description="x", amount=Decimal("1.00"), date=date(2024, 1, 1))
        assert parse_model(TransactionCreate, tx) is tx

    def test_errors_become_field_issues(self):
        """Test that pydantic errors surface as ValidationError issues."""
        with pytest.raises(ValidationError) as exc_info:
            parse_model(TransactionCreate, {"description": "x", "date": "2024-01-01"})
        fields = [issue.field for issue in exc_info.value.issues]
        assert "amount" in fields

    def test_issues_strip_request_location(self):
        issues = issues_from_errors([
            {"loc": ("body", "amount"), "type": "missing", "msg": "Field required"},
            {"loc": (), "type": "value_error", "msg": "bad"},
        ])
        assert issues[0].field == "amount"
        assert issues[1].field == "__root__"

    def test_to_dict_uses_camel_case(self):
        error = ValidationError.for_field("due_date", "out_of_range", "too big")
        assert error.to_dict() == {
            "message": "too big",
            "errors": [{"field": "due_date", "issueType": "out_of_range", "message": "too big"}],
        }

    def test_not_found_message(self):
        error = NotFoundError("Account", 7)
        assert str(error) == "Account 7 not found"
        assert error.entity_id == 7
