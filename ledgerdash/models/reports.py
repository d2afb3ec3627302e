"""Reporting models. All figures are Decimal sums."""

from typing import Optional

from pydantic import Field

from ledgerdash.models.account import Account
from ledgerdash.models.common import LedgerModel, Money
from ledgerdash.models.credit_card import CreditCardInvoice, CreditCardOverview
from ledgerdash.models.transaction import Transaction


class AccountStats(LedgerModel):
    """Dashboard headline numbers for one account and month."""

    account_id: int
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    total_balance: Money
    monthly_income: Money
    monthly_expenses: Money
    projected_balance: Money
    transaction_count: int = Field(ge=0)


class CategoryStat(LedgerModel):
    """Expense total of one category in one month."""

    category_id: int
    category_name: str
    color: str
    total: Money


class MonthlySummary(LedgerModel):
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    income: Money
    expenses: Money
    net: Money


class BudgetUsage(LedgerModel):
    """Spending against the budget of a project or cost center."""

    entity_type: str
    entity_id: int
    name: str
    budget: Optional[Money] = None
    spent: Money
    remaining: Optional[Money] = None
    transaction_count: int = Field(ge=0)


class DashboardSnapshot(LedgerModel):
    """Everything the dashboard page shows for one account and month."""

    account: Account
    month: str
    stats: AccountStats
    top_categories: list[CategoryStat] = Field(default_factory=list)
    recent_transactions: list[Transaction] = Field(default_factory=list)
    credit_cards: list[CreditCardOverview] = Field(default_factory=list)
    overdue_invoices: list[CreditCardInvoice] = Field(default_factory=list)
