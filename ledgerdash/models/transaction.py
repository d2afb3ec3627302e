"""
Transaction models.

A transaction is one money movement. A purchase paid in installments is
stored as an installment series: one row per installment, all sharing a
series_id, with a 1-based installment_index. A recurring transaction is
stored the same way, one row per occurrence, each repeating the full
amount.

Amounts are always positive. The type (income/expense) carries the sign.
"""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from ledgerdash.models.common import LedgerModel, Money, PositiveMoney, TransactionType


class EditScope(str, Enum):
    """
    Which rows of a series an edit or delete touches.

    SINGLE: only the selected row
    FUTURE: the selected row and every later one
    ALL:    every row of the series
    """
    SINGLE = "single"
    FUTURE = "future"
    ALL = "all"


class RecurrenceFrequency(str, Enum):
    """How often a recurring transaction repeats."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    BIMONTHLY = "bimonthly"
    QUARTERLY = "quarterly"
    SEMIANNUAL = "semiannual"
    YEARLY = "yearly"


class PaymentMethod(str, Enum):
    """Well-known payment methods. Free text is accepted as well."""
    CASH = "cash"
    DEBIT = "debit"
    CREDIT_CARD = "credit_card"
    PIX = "pix"
    TRANSFER = "transfer"
    BOLETO = "boleto"
    CREDIT_CARD_INVOICE = "credit_card_invoice"


class Transaction(LedgerModel):
    """A ledger row."""

    id: int
    account_id: int
    description: str
    amount: Money
    type: TransactionType
    date: dt.date

    category_id: Optional[int] = None
    payment_method: Optional[str] = None
    credit_card_id: Optional[int] = None
    bank_account_id: Optional[int] = None
    project_id: Optional[int] = None
    cost_center_id: Optional[int] = None
    paid: bool = False

    # Installment or recurring series
    series_id: Optional[str] = None
    installment_index: Optional[int] = None
    installment_total: Optional[int] = None
    recurrence_frequency: Optional[RecurrenceFrequency] = None
    recurrence_end_date: Optional[dt.date] = None

    # Month of the paid invoice this card purchase was settled in
    settled_invoice_month: Optional[str] = None

    created_at: Optional[dt.datetime] = None

    @property
    def is_recurring(self) -> bool:
        return self.series_id is not None and self.recurrence_frequency is not None

    @property
    def is_installment(self) -> bool:
        return self.series_id is not None and self.recurrence_frequency is None

    @property
    def is_settled(self) -> bool:
        return self.settled_invoice_month is not None

    @property
    def is_card_purchase(self) -> bool:
        return self.credit_card_id is not None

    @property
    def installment_label(self) -> Optional[str]:
        """'2/3' style label, or None outside a series."""
        if not self.is_installment:
            return None
        return f"{self.installment_index}/{self.installment_total}"


class TransactionCreate(LedgerModel):
    """
    Input for a new transaction.

    `amount` is the TOTAL amount. With installment_total > 1 it is
    split across the installments, and their amounts always add up to it.

    With a recurrence_frequency the transaction repeats, at the full
    amount, from `date` up to and including recurrence_end_date.
    Installments and recurrence cannot be combined.
    """

    description: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="What the money was for"
    )
    amount: PositiveMoney = Field(
        ...,
        description="Total amount (decimal string)"
    )
    type: TransactionType = Field(
        default=TransactionType.EXPENSE,
        description="income or expense"
    )
    date: dt.date = Field(
        ...,
        description="Date of the (first) installment"
    )

    category_id: Optional[int] = None
    payment_method: Optional[str] = Field(default=None, max_length=40)
    credit_card_id: Optional[int] = None
    bank_account_id: Optional[int] = None
    project_id: Optional[int] = None
    cost_center_id: Optional[int] = None
    paid: bool = False

    installment_total: int = Field(
        default=1,
        ge=1,
        le=120,
        description="Number of installments (1 = single transaction)"
    )

    recurrence_frequency: Optional[RecurrenceFrequency] = Field(
        default=None,
        description="Repeat the transaction at this frequency"
    )
    recurrence_end_date: Optional[dt.date] = Field(
        default=None,
        description="Last possible occurrence date (inclusive)"
    )

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_frequency is not None

    @model_validator(mode='after')
    def validate_card_purchase(self) -> 'TransactionCreate':
        """Card purchases are expenses and never hit a bank account directly."""
        if self.credit_card_id is not None:
            if self.type != TransactionType.EXPENSE:
                raise ValueError("Credit card transactions must be expenses")
            if self.bank_account_id is not None:
                raise ValueError("A credit card transaction cannot also target a bank account")
        return self

    @model_validator(mode='after')
    def validate_recurrence(self) -> 'TransactionCreate':
        """Frequency and end date come together, and never with installments."""
        if (self.recurrence_frequency is None) != (self.recurrence_end_date is None):
            raise ValueError("A recurring transaction needs both a frequency and an end date")
        if self.recurrence_frequency is not None:
            if self.installment_total > 1:
                raise ValueError("A transaction cannot be both recurring and in installments")
            if self.recurrence_end_date < self.date:
                raise ValueError("The recurrence end date is before the first occurrence")
        return self


class TransactionUpdate(LedgerModel):
    """Partial update. Only fields that were sent are applied."""

    description: Optional[str] = Field(default=None, min_length=1, max_length=255)
    amount: Optional[PositiveMoney] = None
    type: Optional[TransactionType] = None
    date: Optional[dt.date] = None
    category_id: Optional[int] = None
    payment_method: Optional[str] = Field(default=None, max_length=40)
    credit_card_id: Optional[int] = None
    bank_account_id: Optional[int] = None
    project_id: Optional[int] = None
    cost_center_id: Optional[int] = None
    paid: Optional[bool] = None

    def changes(self) -> dict:
        """Fields explicitly sent by the caller, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class DeleteResult(LedgerModel):
    """
    Outcome of a (possibly scoped) delete.

    The owning account id is returned so callers can refresh the
    right views without looking it up again.
    """

    account_id: int
    deleted_ids: list[int] = Field(default_factory=list)
