"""
Input validation helpers.

DESIGN DECISION: Write paths never guess. Anything that cannot be
parsed exactly raises ValidationError with field-level issues:
- Amounts must be finite decimals with at most two decimal places
- Dates must be ISO "YYYY-MM-DD"
- Months must be "YYYY-MM"
- Days of month must be 1-31

Display code that must tolerate bad stored values uses
models.common.display_amount instead. It is never used on write paths.
"""

import calendar
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, TypeVar

import pydantic
from pydantic import BaseModel

from ledgerdash.models.common import CENT, ValidationIssue
from ledgerdash.validation.errors import ValidationError


ModelT = TypeVar("ModelT", bound=BaseModel)

MAX_AMOUNT = Decimal("9999999999.99")


def issues_from_errors(errors: list[dict]) -> list[ValidationIssue]:
    """Flatten a pydantic-style error list into ValidationIssues."""
    issues = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        issues.append(ValidationIssue(
            field=".".join(loc) or "__root__",
            issue_type=error.get("type", "invalid"),
            message=error.get("msg", "Invalid value"),
        ))
    return issues


def issues_from_pydantic(exc: pydantic.ValidationError) -> list[ValidationIssue]:
    return issues_from_errors(exc.errors())


def parse_model(model_cls: type[ModelT], data: Any) -> ModelT:
    """
    Validate raw input into a model.

    Accepts a dict (camelCase or snake_case keys) or an existing instance.
    Raises ValidationError instead of pydantic's own error type.
    """
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError("Invalid data", issues_from_pydantic(e)) from e


def parse_amount(
    value: Any,
    field: str = "amount",
    positive: bool = True,
) -> Decimal:
    """
    Parse a monetary amount exactly.

    Floats are rejected: they cannot represent cents exactly.
    """
    if value is None or isinstance(value, (bool, float)):
        raise ValidationError.for_field(field, "invalid_format", f"{field} must be a decimal string")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError.for_field(field, "invalid_format", f"{field} is not a number: {value!r}")

    if not amount.is_finite():
        raise ValidationError.for_field(field, "invalid_format", f"{field} must be finite")
    if amount != amount.quantize(CENT):
        raise ValidationError.for_field(field, "invalid_precision", f"{field} has more than two decimal places")
    if positive and amount <= 0:
        raise ValidationError.for_field(field, "out_of_range", f"{field} must be greater than zero")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError.for_field(field, "out_of_range", f"{field} is too large")

    return amount.quantize(CENT)


def parse_date(value: Any, field: str = "date") -> date:
    """Parse an ISO date. date objects pass through."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError.for_field(field, "invalid_format", f"{field} must be an ISO date")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError.for_field(field, "invalid_format", f"{field} is not a valid date: {value!r}")


def parse_month(value: Any, field: str = "month") -> tuple[date, date]:
    """
    Parse "YYYY-MM" into the first and last day of that month.
    """
    if not isinstance(value, str):
        raise ValidationError.for_field(field, "invalid_format", f"{field} must be YYYY-MM")
    parts = value.strip().split("-")
    if len(parts) != 2 or len(parts[0]) != 4 or len(parts[1]) != 2:
        raise ValidationError.for_field(field, "invalid_format", f"{field} must be YYYY-MM")
    try:
        year, month = int(parts[0]), int(parts[1])
    except ValueError:
        raise ValidationError.for_field(field, "invalid_format", f"{field} must be YYYY-MM")
    if not 1 <= month <= 12 or year < 1:
        raise ValidationError.for_field(field, "out_of_range", f"{field} is not a valid month")

    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def month_key(day: date) -> str:
    """'YYYY-MM' of a date."""
    return f"{day.year:04d}-{day.month:02d}"


def validate_day_of_month(value: Any, field: str) -> int:
    """A card's due or closing day: an integer in [1, 31]."""
    if isinstance(value, bool):
        raise ValidationError.for_field(field, "invalid_format", f"{field} must be an integer")
    try:
        day = int(value)
    except (TypeError, ValueError):
        raise ValidationError.for_field(field, "invalid_format", f"{field} must be an integer")
    if str(day) != str(value).strip():
        raise ValidationError.for_field(field, "invalid_format", f"{field} must be an integer")
    if not 1 <= day <= 31:
        raise ValidationError.for_field(field, "out_of_range", f"{field} must be between 1 and 31")
    return day


def validate_year(value: Optional[Any], field: str = "year") -> int:
    try:
        year = int(value)
    except (TypeError, ValueError):
        raise ValidationError.for_field(field, "invalid_format", f"{field} must be an integer")
    if not 1900 <= year <= 9999:
        raise ValidationError.for_field(field, "out_of_range", f"{field} is out of range")
    return year
