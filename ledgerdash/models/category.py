"""Category models."""

from typing import Optional

from pydantic import Field

from ledgerdash.models.common import LedgerModel, TransactionType


HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class Category(LedgerModel):
    """A named, colored, iconed bucket for income or expense entries."""
    
    id: int
    account_id: int
    name: str
    color: str
    icon: str
    type: TransactionType = TransactionType.EXPENSE


class CategoryCreate(LedgerModel):
    name: str = Field(
        ...,
        min_length=1,
        max_length=80,
        description="Category name"
    )
    color: str = Field(
        default="#6B7280",
        pattern=HEX_COLOR_PATTERN,
        description="Display color (#RRGGBB)"
    )
    icon: str = Field(
        default="fas fa-tag",
        min_length=1,
        max_length=60,
        description="Icon class name"
    )
    type: TransactionType = TransactionType.EXPENSE


class CategoryUpdate(LedgerModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=80)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    icon: Optional[str] = Field(default=None, min_length=1, max_length=60)
    type: Optional[TransactionType] = None
