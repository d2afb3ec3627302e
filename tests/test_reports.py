"""Tests for report figures and the dashboard flow."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import expense, income
from ledgerdash.models import InvoiceStatus
from ledgerdash.validation import NotFoundError, ValidationError


@pytest.fixture
def march(components, personal, card):
    """A month with ledger entries and card purchases."""
    food, transport = [
        c for c in components.categories.list_categories(personal.id)
        if c.name in ("Alimentação", "Transporte")
    ]
    ledger = components.ledger
    ledger.create_transaction(personal.id, income("Salário", "5000.00", date(2024, 2, 5)))
    ledger.create_transaction(personal.id, income("Freela", "800.00", date(2024, 3, 5)))
    ledger.create_transaction(personal.id, expense("Mercado", "300.00", date(2024, 3, 8), category_id=food.id))
    ledger.create_transaction(personal.id, expense("Uber", "45.50", date(2024, 3, 9), category_id=transport.id))
    ledger.create_transaction(
        personal.id,
        expense("Restaurante", "120.00", date(2024, 3, 12), category_id=food.id, credit_card_id=card.id),
    )
    return {"food": food, "transport": transport}


class TestAccountStats:
    """Tests for the headline numbers."""

    def test_stats_exclude_card_purchases(self, components, personal, march):
        stats = components.reports.get_stats(personal.id, "2024-03")
        assert stats.monthly_income == Decimal("800.00")
        assert stats.monthly_expenses == Decimal("345.50")
        assert stats.total_balance == Decimal("5454.50")
        assert stats.projected_balance == Decimal("5909.00")
        assert stats.transaction_count == 4

    def test_empty_month(self, components, personal, march):
        stats = components.reports.get_stats(personal.id, "2023-01")
        assert stats.monthly_income == Decimal("0.00")
        assert stats.total_balance == Decimal("5454.50")

    def test_bad_month(self, components, personal):
        with pytest.raises(ValidationError):
            components.reports.get_stats(personal.id, "March")

    def test_unknown_account(self, components):
        with pytest.raises(NotFoundError):
            components.reports.get_stats(42, "2024-03")


class TestCategoryStats:

    def test_includes_card_purchases_sorted_desc(self, components, personal, march):
        stats = components.reports.get_category_stats(personal.id, "2024-03")
        assert [(s.category_name, s.total) for s in stats] == [
            ("Alimentação", Decimal("420.00")),
            ("Transporte", Decimal("45.50")),
        ]

    def test_top_categories_limit(self, components, personal, march):
        assert len(components.reports.top_categories(personal.id, "2024-03", limit=1)) == 1


class TestMonthlySummary:

    def test_twelve_months(self, components, personal, march):
        summary = components.reports.monthly_summary(personal.id, 2024)
        assert len(summary) == 12
        feb, mar = summary[1], summary[2]
        assert feb.income == Decimal("5000.00")
        assert mar.net == Decimal("454.50")
        assert summary[11].net == Decimal("0.00")


class TestBudgetUsage:

    def test_project_budget(self, components, business):
        project = components.business.create_project(business.id, {"name": "Site", "budget": "1000.00"})
        components.ledger.create_transaction(business.id, expense(amount="250.00", project_id=project.id))
        components.ledger.create_transaction(business.id, income(amount="999.00", project_id=project.id))

        usage = components.reports.project_stats(project.id)
        assert usage.spent == Decimal("250.00")
        assert usage.remaining == Decimal("750.00")
        assert usage.transaction_count == 1

    def test_cost_center_without_budget(self, components, business):
        center = components.business.create_cost_center(business.id, {"name": "TI"})
        usage = components.reports.cost_center_stats(center.id)
        assert usage.budget is None
        assert usage.remaining is None
        assert usage.spent == Decimal("0.00")


class TestDashboardFlow:
    """Tests for the assembled dashboard snapshot."""

    def test_no_accounts(self, components):
        assert components.dashboard.load() is None

    def test_snapshot(self, components, personal, march):
        snapshot = components.dashboard.load(month="2024-03", today=date(2024, 4, 10))
        assert snapshot.account.id == personal.id
        assert snapshot.stats.monthly_expenses == Decimal("345.50")
        assert snapshot.top_categories[0].category_name == "Alimentação"
        assert snapshot.recent_transactions[0].description == "Uber"
        assert len(snapshot.credit_cards) == 1
        assert [inv.status for inv in snapshot.overdue_invoices] == [InvoiceStatus.OVERDUE]

    def test_settled_invoice_enters_stats(self, components, personal, march):
        """Test that settlement moves the card spending into the balance."""
        components.invoices.process_overdue_invoices(personal.id, today=date(2024, 4, 10))
        stats = components.reports.get_stats(personal.id, "2024-04")
        assert stats.monthly_expenses == Decimal("120.00")
        assert stats.total_balance == Decimal("5334.50")
