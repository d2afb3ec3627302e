"""
Shared model building blocks.

Every entity model in LedgerDash derives from LedgerModel so that the
API speaks camelCase JSON while Python code keeps snake_case names, and
so that SQLAlchemy rows can be validated straight into models.

Money is Decimal end to end. It is never converted to float for
arithmetic, and it leaves the process as a decimal string.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


# NUMERIC(12, 2) in the data store
Money = Annotated[Decimal, Field(max_digits=12, decimal_places=2)]
PositiveMoney = Annotated[Decimal, Field(gt=0, max_digits=12, decimal_places=2)]
NonNegativeMoney = Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]

DayOfMonth = Annotated[int, Field(ge=1, le=31)]


class LedgerModel(BaseModel):
    """Base model: camelCase aliases, ORM-friendly, whitespace stripped."""
    
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class TransactionType(str, Enum):
    """Direction of a money movement. Categories are typed the same way."""
    INCOME = "income"
    EXPENSE = "expense"


class ValidationIssue(LedgerModel):
    """A single field-level validation problem."""
    
    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'out_of_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


def quantize(amount: Decimal) -> Decimal:
    """Round to cents the way the data store does."""
    return amount.quantize(CENT)


def display_amount(value: Any) -> Decimal:
    """
    Best-effort conversion for DISPLAY ONLY.
    
    Unparseable values show as zero. Never feed the result back into
    a write path: write paths use validation.parse_amount, which raises.
    """
    if value is None or value == "":
        return ZERO
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    if not amount.is_finite():
        return ZERO
    return quantize(amount)


def format_amount(value: Any, symbol: Optional[str] = "R$") -> str:
    """Format an amount for display, e.g. 'R$ 1,234.50'."""
    amount = display_amount(value)
    text = f"{amount:,.2f}"
    return f"{symbol} {text}" if symbol else text
