"""Account and bank account models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from ledgerdash.models.common import LedgerModel, Money, ZERO


class AccountType(str, Enum):
    """
    Account type.
    
    Business accounts unlock projects, cost centers and clients.
    The type is fixed at creation.
    """
    PERSONAL = "personal"
    BUSINESS = "business"


class Account(LedgerModel):
    """Top-level ownership scope for all financial data."""
    
    id: int
    name: str
    type: AccountType
    created_at: Optional[datetime] = None
    
    @property
    def is_business(self) -> bool:
        return self.type == AccountType.BUSINESS


class AccountCreate(LedgerModel):
    name: str = Field(
        ...,
        min_length=1,
        max_length=120,
        description="Account name"
    )
    type: AccountType = Field(
        default=AccountType.PERSONAL,
        description="personal or business (immutable)"
    )


class AccountUpdate(LedgerModel):
    """Rename an account. A type may be sent but must match the stored one."""
    
    name: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=120,
    )
    type: Optional[AccountType] = None


class BankAccount(LedgerModel):
    """A bank account owned by one Account, optionally shared read-only."""
    
    id: int
    account_id: int
    name: str
    initial_balance: Money = ZERO
    pix: str = ""
    shared: bool = False
    created_at: Optional[datetime] = None


class BankAccountCreate(LedgerModel):
    name: str = Field(
        ...,
        min_length=1,
        max_length=120,
        description="Bank account name"
    )
    initial_balance: Money = Field(
        default=ZERO,
        description="Opening balance"
    )
    pix: str = Field(
        default="",
        max_length=140,
        description="PIX key"
    )
    shared: bool = Field(
        default=False,
        description="Visible (read-only) from other accounts"
    )


class BankAccountUpdate(LedgerModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    initial_balance: Optional[Money] = None
    pix: Optional[str] = Field(default=None, max_length=140)
    shared: Optional[bool] = None


class BankAccountBalance(LedgerModel):
    """Running balance of a bank account from its tagged ledger entries."""
    
    bank_account_id: int
    initial_balance: Money
    income: Money
    expenses: Money
    balance: Money
