"""Input validation and the error taxonomy."""

from ledgerdash.validation.errors import (
    ConflictError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from ledgerdash.validation.validator import (
    issues_from_errors,
    issues_from_pydantic,
    month_key,
    parse_amount,
    parse_date,
    parse_model,
    parse_month,
    validate_day_of_month,
    validate_year,
)

__all__ = [
    "ConflictError",
    "LedgerError",
    "NotFoundError",
    "ValidationError",
    "issues_from_errors",
    "issues_from_pydantic",
    "month_key",
    "parse_amount",
    "parse_date",
    "parse_model",
    "parse_month",
    "validate_day_of_month",
    "validate_year",
]
