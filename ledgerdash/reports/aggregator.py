"""
Reporting / Aggregation

Read-only figures for the dashboard and the reports page.

DESIGN DECISION: All sums are Decimal sums computed here, never SQL
floating-point aggregates.

Card purchases are left out of balance figures: they reach the ledger
through the settlement of their invoice, and counting both would
charge every purchase twice. Category breakdowns DO include card
purchases, since that is where the spending was categorized.
"""

import datetime as dt
from collections import defaultdict
from typing import Optional

from sqlalchemy import select

from ledgerdash.models.common import ZERO, TransactionType, quantize
from ledgerdash.models.reports import AccountStats, BudgetUsage, CategoryStat, MonthlySummary
from ledgerdash.services.base import LedgerService, load_account
from ledgerdash.services.storage.tables import (
    CategoryRow,
    CostCenterRow,
    ProjectRow,
    TransactionRow,
)
from ledgerdash.validation import NotFoundError, month_key, parse_month, validate_year


def _signed(row: TransactionRow):
    return row.amount if row.type == TransactionType.INCOME.value else -row.amount


class ReportAggregator(LedgerService):
    """Dashboard and report figures."""

    def __init__(self, database, audit_logger=None, top_categories_limit: int = 5):
        super().__init__(database, audit_logger)
        self._top_limit = top_categories_limit

    def _ledger_rows(self, session, account_id: int) -> list[TransactionRow]:
        """Ledger transactions of an account, card purchases excluded."""
        return session.scalars(
            select(TransactionRow).where(
                TransactionRow.account_id == account_id,
                TransactionRow.credit_card_id.is_(None),
            )
        ).all()

    def get_stats(self, account_id: int, month: Optional[str] = None) -> AccountStats:
        """
        Headline numbers for one month.

        total_balance:     all-time income - expenses
        monthly_*:         income / expenses dated in the month
        projected_balance: total_balance + monthly_income - monthly_expenses
        transaction_count: all-time ledger transactions
        """
        month = month or month_key(dt.date.today())
        start, end = parse_month(month)

        with self._db.session_scope() as session:
            load_account(session, account_id)
            rows = self._ledger_rows(session, account_id)

        total = income = expenses = ZERO
        for row in rows:
            total += _signed(row)
            if start <= row.date <= end:
                if row.type == TransactionType.INCOME.value:
                    income += row.amount
                else:
                    expenses += row.amount

        return AccountStats(
            account_id=account_id,
            month=month,
            total_balance=quantize(total),
            monthly_income=quantize(income),
            monthly_expenses=quantize(expenses),
            projected_balance=quantize(total + income - expenses),
            transaction_count=len(rows),
        )

    def get_category_stats(self, account_id: int, month: Optional[str] = None) -> list[CategoryStat]:
        """
        Expense totals per category for one month, largest first.

        Categories without spending (total <= 0) are left out.
        """
        month = month or month_key(dt.date.today())
        start, end = parse_month(month)

        with self._db.session_scope() as session:
            load_account(session, account_id)
            categories = {
                row.id: row
                for row in session.scalars(
                    select(CategoryRow).where(CategoryRow.account_id == account_id)
                )
            }
            expenses = session.scalars(
                select(TransactionRow).where(
                    TransactionRow.account_id == account_id,
                    TransactionRow.type == TransactionType.EXPENSE.value,
                    TransactionRow.category_id.is_not(None),
                    TransactionRow.date >= start,
                    TransactionRow.date <= end,
                )
            ).all()

        totals = defaultdict(lambda: ZERO)
        for row in expenses:
            totals[row.category_id] += row.amount

        stats = [
            CategoryStat(
                category_id=category_id,
                category_name=categories[category_id].name,
                color=categories[category_id].color,
                total=quantize(total),
            )
            for category_id, total in totals.items()
            if total > 0 and category_id in categories
        ]
        stats.sort(key=lambda stat: (-stat.total, stat.category_name))
        return stats

    def top_categories(
        self,
        account_id: int,
        month: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[CategoryStat]:
        return self.get_category_stats(account_id, month)[: limit or self._top_limit]

    def monthly_summary(self, account_id: int, year: Optional[int] = None) -> list[MonthlySummary]:
        """Income and expenses per month of a year, card purchases excluded."""
        year = validate_year(year if year is not None else dt.date.today().year)

        with self._db.session_scope() as session:
            load_account(session, account_id)
            rows = self._ledger_rows(session, account_id)

        income = defaultdict(lambda: ZERO)
        expenses = defaultdict(lambda: ZERO)
        for row in rows:
            if row.date.year != year:
                continue
            if row.type == TransactionType.INCOME.value:
                income[row.date.month] += row.amount
            else:
                expenses[row.date.month] += row.amount

        return [
            MonthlySummary(
                month=f"{year:04d}-{month:02d}",
                income=quantize(income[month]),
                expenses=quantize(expenses[month]),
                net=quantize(income[month] - expenses[month]),
            )
            for month in range(1, 13)
        ]

    def _budget_usage(self, row_cls, entity_type: str, entity_id: int, column) -> BudgetUsage:
        with self._db.session_scope() as session:
            entity = session.get(row_cls, entity_id)
            if entity is None:
                raise NotFoundError(entity_type, entity_id)
            tagged = session.scalars(
                select(TransactionRow).where(
                    column == entity_id,
                    TransactionRow.type == TransactionType.EXPENSE.value,
                )
            ).all()
            name, budget = entity.name, entity.budget

        spent = quantize(sum((row.amount for row in tagged), ZERO))
        return BudgetUsage(
            entity_type=entity_type,
            entity_id=entity_id,
            name=name,
            budget=budget,
            spent=spent,
            remaining=quantize(budget - spent) if budget is not None else None,
            transaction_count=len(tagged),
        )

    def project_stats(self, project_id: int) -> BudgetUsage:
        """Expenses tagged with a project against its budget."""
        return self._budget_usage(ProjectRow, "Project", project_id, TransactionRow.project_id)

    def cost_center_stats(self, cost_center_id: int) -> BudgetUsage:
        """Expenses tagged with a cost center against its budget."""
        return self._budget_usage(CostCenterRow, "CostCenter", cost_center_id, TransactionRow.cost_center_id)
