"""
Credit card, invoice and invoice payment models.

Invoices are DERIVED: they are never stored. An invoice is the group of
a card's transactions that fall between two closing days, identified by
(credit_card_id, month) where month is the "YYYY-MM" of its closing date.

Invoice payments ARE stored. They record that an invoice was settled
into the ledger, and are what makes overdue processing idempotent.
"""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import Field

from ledgerdash.models.common import (
    DayOfMonth,
    LedgerModel,
    Money,
    NonNegativeMoney,
    ZERO,
)
from ledgerdash.models.transaction import Transaction


class CreditCard(LedgerModel):
    """A credit card owned by one account."""

    id: int
    account_id: int
    name: str
    brand: str = ""
    credit_limit: Money = ZERO
    due_date: Optional[int] = None
    closing_day: Optional[int] = None
    created_at: Optional[dt.datetime] = None


class CreditCardCreate(LedgerModel):
    name: str = Field(
        ...,
        min_length=1,
        max_length=120,
        description="Card nickname"
    )
    brand: str = Field(
        default="",
        max_length=40,
        description="Visa, Mastercard, Amex..."
    )
    credit_limit: NonNegativeMoney = Field(
        default=ZERO,
        description="Credit limit"
    )
    due_date: DayOfMonth = Field(
        ...,
        description="Day of month the invoice is due (1-31)"
    )
    closing_day: DayOfMonth = Field(
        ...,
        description="Day of month the billing cycle closes (1-31)"
    )


class CreditCardUpdate(LedgerModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    brand: Optional[str] = Field(default=None, max_length=40)
    credit_limit: Optional[NonNegativeMoney] = None
    due_date: Optional[DayOfMonth] = None
    closing_day: Optional[DayOfMonth] = None


class CreditCardOverview(LedgerModel):
    """Dashboard view of a card: limit usage and the next due date label."""

    card: CreditCard
    current_balance: Money
    available_limit: Money
    next_due_label: str
    brand_icon: str


class InvoiceStatus(str, Enum):
    OPEN = "open"
    OVERDUE = "overdue"
    PAID = "paid"


class CreditCardInvoice(LedgerModel):
    """One billing cycle of one card."""

    account_id: int
    credit_card_id: int
    month: str = Field(
        ...,
        pattern=r"^\d{4}-\d{2}$",
        description="YYYY-MM of the closing date"
    )
    closing_date: dt.date
    due_date: dt.date
    total: Money
    status: InvoiceStatus = InvoiceStatus.OPEN
    transactions: list[Transaction] = Field(default_factory=list)

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)


class InvoicePaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class InvoicePayment(LedgerModel):
    """Settlement record for one invoice."""

    id: int
    account_id: int
    credit_card_id: int
    invoice_month: str
    total_amount: Money
    due_date: dt.date
    transaction_id: Optional[int] = None
    status: InvoicePaymentStatus = InvoicePaymentStatus.PENDING
    paid_at: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = None


class ProcessResult(LedgerModel):
    """Outcome of processing overdue invoices for one account."""

    account_id: int
    reference_date: dt.date
    processed_count: int = Field(default=0, ge=0)
    skipped_count: int = Field(
        default=0,
        ge=0,
        description="Overdue invoices already settled by a concurrent run"
    )
    settled: list[InvoicePayment] = Field(default_factory=list)
