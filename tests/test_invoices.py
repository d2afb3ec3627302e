"""Tests for credit cards, invoices and overdue settlement."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import expense
from ledgerdash.models import InvoiceStatus, PaymentMethod
from ledgerdash.services.invoices import (
    DEFAULT_BRAND_ICON,
    brand_icon,
    invoice_closing_date,
    invoice_due_date,
    invoice_month,
    next_due_date_label,
)
from ledgerdash.services.storage.tables import InvoicePaymentRow
from ledgerdash.validation import ConflictError, NotFoundError, ValidationError


class TestInvoiceDates:
    """Tests for invoice month and due date rules."""

    def test_purchase_on_or_before_closing_day(self):
        assert invoice_month(date(2024, 3, 20), 25) == "2024-03"
        assert invoice_month(date(2024, 3, 25), 25) == "2024-03"

    def test_purchase_after_closing_day(self):
        assert invoice_month(date(2024, 3, 27), 25) == "2024-04"
        assert invoice_month(date(2024, 12, 27), 25) == "2025-01"

    def test_closing_day_clamped_to_month_length(self):
        assert invoice_closing_date("2024-02", 31) == date(2024, 2, 29)
        assert invoice_month(date(2024, 2, 29), 31) == "2024-02"

    def test_due_date_next_month_when_before_closing(self):
        assert invoice_due_date("2024-03", 25, 5) == date(2024, 4, 5)
        assert invoice_due_date("2024-12", 25, 5) == date(2025, 1, 5)

    def test_due_date_same_month_when_after_closing(self):
        assert invoice_due_date("2024-03", 5, 15) == date(2024, 3, 15)

    def test_invalid_days_rejected(self):
        with pytest.raises(ValidationError):
            invoice_month(date(2024, 3, 1), 0)
        with pytest.raises(ValidationError):
            invoice_due_date("2024-03", 25, 32)


class TestDisplayHelpers:

    def test_next_due_label(self):
        assert next_due_date_label(10, today=date(2024, 3, 5)) == "10/03"
        assert next_due_date_label(10, today=date(2024, 3, 15)) == "10/04"
        assert next_due_date_label(31, today=date(2024, 2, 1)) == "29/02"

    @pytest.mark.parametrize("value", [None, 0, 32, "abc"])
    def test_invalid_due_label(self, value):
        assert next_due_date_label(value) == "--/--"

    def test_brand_icon(self):
        assert brand_icon("VISA") == "fab fa-cc-visa"
        assert brand_icon("Mastercard Black") == "fab fa-cc-mastercard"
        assert brand_icon("American Express") == "fab fa-cc-amex"
        assert brand_icon("Elo") == DEFAULT_BRAND_ICON
        assert brand_icon(None) == DEFAULT_BRAND_ICON


class TestCreditCards:
    """Tests for card CRUD."""

    def test_update_card(self, components, card):
        updated = components.invoices.update_credit_card(card.id, {"name": "Roxinho", "closingDay": 20})
        assert updated.name == "Roxinho"
        assert updated.closing_day == 20
        assert updated.due_date == 5

    def test_invalid_due_day_rejected(self, components, personal):
        with pytest.raises(ValidationError):
            components.invoices.create_credit_card(personal.id, {"name": "X", "due_date": 40, "closing_day": 1})

    def test_delete_card_with_purchases_conflicts(self, components, personal, card):
        components.ledger.create_transaction(personal.id, expense(credit_card_id=card.id))
        with pytest.raises(ConflictError):
            components.invoices.delete_credit_card(card.id)

    def test_delete_unused_card(self, components, personal, card):
        result = components.invoices.delete_credit_card(card.id)
        assert result.deleted_ids == [card.id]
        with pytest.raises(NotFoundError):
            components.invoices.get_credit_card(card.id)


class TestInvoices:
    """Tests for derived invoices."""

    def test_purchases_grouped_by_closing_day(self, components, personal, card):
        components.ledger.create_transaction(personal.id, expense("A", "10.00", date(2024, 3, 20), credit_card_id=card.id))
        components.ledger.create_transaction(personal.id, expense("B", "5.50", date(2024, 3, 27), credit_card_id=card.id))

        invoices = components.invoices.list_invoices(personal.id, today=date(2024, 3, 28))
        assert [(inv.month, inv.total) for inv in invoices] == [
            ("2024-03", Decimal("10.00")),
            ("2024-04", Decimal("5.50")),
        ]
        assert invoices[0].due_date == date(2024, 4, 5)
        assert invoices[0].status == InvoiceStatus.OPEN

    def test_installments_spread_over_invoices(self, components, personal, card):
        components.ledger.create_transaction(
            personal.id,
            expense("Celular", "300.00", date(2024, 3, 10), credit_card_id=card.id, installment_total=3),
        )
        invoices = components.invoices.list_invoices(personal.id, credit_card_id=card.id, today=date(2024, 3, 11))
        assert [inv.month for inv in invoices] == ["2024-03", "2024-04", "2024-05"]
        assert all(inv.total == Decimal("100.00") for inv in invoices)

    def test_empty_invoice(self, components, card):
        invoice = components.invoices.get_invoice(card.id, "2030-01", today=date(2024, 1, 1))
        assert invoice.total == Decimal("0.00")
        assert invoice.status == InvoiceStatus.OPEN
        assert invoice.transactions == []

    def test_card_overview(self, components, personal, card):
        components.ledger.create_transaction(personal.id, expense(amount="1200.00", credit_card_id=card.id))
        overview = components.invoices.card_overviews(personal.id, today=date(2024, 3, 11))[0]
        assert overview.current_balance == Decimal("1200.00")
        assert overview.available_limit == Decimal("3800.00")
        assert overview.next_due_label == "05/04"
        assert overview.brand_icon == "fab fa-cc-mastercard"


class TestOverdueProcessing:
    """Tests for settling overdue invoices."""

    @pytest.fixture
    def overdue(self, components, personal, card):
        components.ledger.create_transaction(personal.id, expense("A", "10.00", date(2024, 3, 20), credit_card_id=card.id))
        components.ledger.create_transaction(personal.id, expense("B", "20.00", date(2024, 3, 21), credit_card_id=card.id))
        return date(2024, 4, 6)

    def test_overdue_status(self, components, personal, overdue):
        invoices = components.invoices.list_invoices(personal.id, today=overdue)
        assert invoices[0].status == InvoiceStatus.OVERDUE

    def test_settlement_creates_one_expense(self, components, personal, card, overdue):
        result = components.invoices.process_overdue_invoices(personal.id, today=overdue)
        assert result.processed_count == 1
        payment = result.settled[0]
        assert payment.invoice_month == "2024-03"
        assert payment.total_amount == Decimal("30.00")

        settlement = components.ledger.get_transaction(payment.transaction_id)
        assert settlement.amount == Decimal("30.00")
        assert settlement.date == date(2024, 4, 5)
        assert settlement.payment_method == PaymentMethod.CREDIT_CARD_INVOICE.value
        assert settlement.credit_card_id is None
        assert settlement.paid is True

        invoice = components.invoices.get_invoice(card.id, "2024-03", today=overdue)
        assert invoice.status == InvoiceStatus.PAID

    def test_processing_twice_settles_once(self, components, personal, overdue):
        """Test that a second run finds nothing left to settle."""
        components.invoices.process_overdue_invoices(personal.id, today=overdue)
        second = components.invoices.process_overdue_invoices(personal.id, today=overdue)
        assert second.processed_count == 0

        ledger = components.ledger.list_transactions(personal.id, card_purchases=False)
        assert len(ledger) == 1
        assert len(components.invoices.list_invoice_payments(personal.id)) == 1

    def test_existing_payment_record_is_skipped(self, components, personal, card, overdue, database):
        """Test that a pending payment record for the invoice turns settlement into a skip."""
        with database.session_scope() as session:
            session.add(InvoicePaymentRow(
                account_id=personal.id,
                credit_card_id=card.id,
                invoice_month="2024-03",
                total_amount=Decimal("30.00"),
                due_date=date(2024, 4, 5),
                status="pending",
            ))

        result = components.invoices.process_overdue_invoices(personal.id, today=overdue)

        assert result.processed_count == 0
        assert result.skipped_count == 1
        assert len(components.invoices.list_invoice_payments(personal.id)) == 1
        assert components.ledger.list_transactions(personal.id, card_purchases=False) == []

    def test_nothing_overdue_before_due_date(self, components, personal, overdue):
        result = components.invoices.process_overdue_invoices(personal.id, today=date(2024, 4, 5))
        assert result.processed_count == 0
        assert result.settled == []


class TestSettledPurchases:
    """Tests that a paid invoice keeps its purchases and is never charged twice."""

    @pytest.fixture
    def settled(self, components, personal, card):
        purchase = components.ledger.create_transaction(
            personal.id,
            expense("Geladeira", "100.00", date(2024, 3, 20), credit_card_id=card.id),
        )[0]
        result = components.invoices.process_overdue_invoices(personal.id, today=date(2024, 5, 1))
        assert result.processed_count == 1
        return purchase

    @staticmethod
    def charged(components, account_id):
        return sum(tx.amount for tx in components.ledger.list_transactions(account_id, card_purchases=False))

    def test_settlement_stamps_purchases(self, components, settled):
        assert components.ledger.get_transaction(settled.id).settled_invoice_month == "2024-03"

    def test_settled_purchase_cannot_move_to_another_invoice(self, components, personal, settled):
        with pytest.raises(ConflictError):
            components.ledger.update_transaction(settled.id, {"date": "2024-03-27"})

        result = components.invoices.process_overdue_invoices(personal.id, today=date(2024, 6, 1))
        assert result.processed_count == 0
        assert self.charged(components, personal.id) == Decimal("100.00")

    def test_settled_purchase_amount_and_card_are_fixed(self, components, personal, card, settled):
        other = components.invoices.create_credit_card(personal.id, {
            "name": "Inter", "closing_day": 10, "due_date": 20,
        })
        with pytest.raises(ConflictError):
            components.ledger.update_transaction(settled.id, {"amount": "80.00"})
        with pytest.raises(ConflictError):
            components.ledger.update_transaction(settled.id, {"credit_card_id": other.id})
        assert components.ledger.get_transaction(settled.id).amount == Decimal("100.00")

    def test_settled_purchase_accepts_unchanged_values(self, components, settled):
        """Test that resubmitting the same amount and date with a new description is fine."""
        updated = components.ledger.update_transaction(settled.id, {
            "description": "Geladeira Frost Free",
            "amount": "100.00",
            "date": "2024-03-20",
        })[0]
        assert updated.description == "Geladeira Frost Free"
        assert updated.settled_invoice_month == "2024-03"

    def test_settled_purchase_cannot_be_deleted(self, components, settled):
        with pytest.raises(ConflictError):
            components.ledger.delete_transaction(settled.id)
        assert components.ledger.get_transaction(settled.id).id == settled.id

    def test_closing_day_change_does_not_resettle(self, components, personal, card, settled):
        components.invoices.update_credit_card(card.id, {"closing_day": 15})

        result = components.invoices.process_overdue_invoices(personal.id, today=date(2024, 6, 1))
        assert result.processed_count == 0
        assert self.charged(components, personal.id) == Decimal("100.00")

        invoices = components.invoices.list_invoices(personal.id, today=date(2024, 6, 1))
        assert [(inv.month, inv.status, inv.total) for inv in invoices] == [
            ("2024-03", InvoiceStatus.PAID, Decimal("100.00")),
        ]
        assert invoices[0].due_date == date(2024, 4, 5)

    def test_late_purchase_rolls_to_next_invoice(self, components, personal, card, settled):
        """Test that a purchase dated into a paid invoice is billed on the next one."""
        components.ledger.create_transaction(
            personal.id,
            expense("Esquecido", "50.00", date(2024, 3, 21), credit_card_id=card.id),
        )

        invoices = components.invoices.list_invoices(personal.id, today=date(2024, 5, 2))
        assert [(inv.month, inv.status, inv.total) for inv in invoices] == [
            ("2024-03", InvoiceStatus.PAID, Decimal("100.00")),
            ("2024-04", InvoiceStatus.OPEN, Decimal("50.00")),
        ]

        result = components.invoices.process_overdue_invoices(personal.id, today=date(2024, 6, 1))
        assert [payment.invoice_month for payment in result.settled] == ["2024-04"]
        assert self.charged(components, personal.id) == Decimal("150.00")

    def test_overview_balance_ignores_paid_invoice(self, components, personal, card, settled):
        overview = components.invoices.card_overviews(personal.id, today=date(2024, 5, 2))[0]
        assert overview.current_balance == Decimal("0.00")
