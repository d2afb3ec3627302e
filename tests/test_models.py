"""
Tests for LedgerDash models

Test strategy:
1. Unit tests for models and validators (no database)
2. Service tests against an in-memory SQLite database
3. API tests through FastAPI's TestClient on the same database
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from ledgerdash.models import (
    Account,
    AccountType,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    CategoryCreate,
    CreditCardCreate,
    ProjectCreate,
    RecurrenceFrequency,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
    display_amount,
    format_amount,
)


class TestTransactionModels:
    """Tests for transaction models."""

    def test_create_accepts_camel_case(self):
        """Test that camelCase keys populate snake_case fields."""
        tx = TransactionCreate.model_validate({
            "description": "Notebook",
            "amount": "1200.00",
            "date": "2024-03-10",
            "installmentTotal": 3,
            "categoryId": 7,
        })
        assert tx.installment_total == 3
        assert tx.category_id == 7
        assert tx.amount == Decimal("1200.00")

    def test_create_strips_whitespace(self):
        """Test that whitespace is stripped from descriptions."""
        tx = TransactionCreate(description="  Mercado  ", amount=Decimal("10.00"), date=date(2024, 3, 1))
        assert tx.description == "Mercado"

    def test_amount_must_be_positive(self):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(PydanticValidationError):
            TransactionCreate(description="x", amount=Decimal("0"), date=date(2024, 3, 1))
        with pytest.raises(PydanticValidationError):
            TransactionCreate(description="x", amount=Decimal("-5.00"), date=date(2024, 3, 1))

    def test_amount_rejects_sub_cent_precision(self):
        """Test that amounts with more than two decimal places are rejected."""
        with pytest.raises(PydanticValidationError):
            TransactionCreate(description="x", amount=Decimal("1.005"), date=date(2024, 3, 1))

    def test_card_purchase_must_be_expense(self):
        """Test that card purchases cannot be income."""
        with pytest.raises(PydanticValidationError):
            TransactionCreate(
                description="Refund",
                amount=Decimal("10.00"),
                type="income",
                date=date(2024, 3, 1),
                credit_card_id=1,
            )

    def test_card_purchase_cannot_target_bank_account(self):
        with pytest.raises(PydanticValidationError):
            TransactionCreate(
                description="x",
                amount=Decimal("10.00"),
                date=date(2024, 3, 1),
                credit_card_id=1,
                bank_account_id=2,
            )

    def test_update_changes_only_sent_fields(self):
        """Test that changes() reports exactly the fields the caller sent."""
        update = TransactionUpdate.model_validate({"amount": "50.00", "categoryId": None})
        assert update.changes() == {"amount": Decimal("50.00"), "category_id": None}

    def test_installment_label(self):
        tx = Transaction(
            id=1,
            account_id=1,
            description="TV",
            amount=Decimal("100.00"),
            type="expense",
            date=date(2024, 3, 1),
            series_id=str(uuid4()),
            installment_index=2,
            installment_total=3,
        )
        assert tx.installment_label == "2/3"
        assert tx.is_installment is True

    def test_recurrence_needs_frequency_and_end_date(self):
        with pytest.raises(PydanticValidationError):
            TransactionCreate(description="Aluguel", amount="1500.00", date=date(2024, 1, 5), recurrence_frequency="monthly")
        with pytest.raises(PydanticValidationError):
            TransactionCreate(description="Aluguel", amount="1500.00", date=date(2024, 1, 5), recurrence_end_date=date(2024, 6, 5))

    def test_recurrence_end_before_start_rejected(self):
        with pytest.raises(PydanticValidationError):
            TransactionCreate(
                description="Aluguel",
                amount="1500.00",
                date=date(2024, 6, 5),
                recurrence_frequency="monthly",
                recurrence_end_date=date(2024, 1, 5),
            )

    def test_recurring_create_accepts_camel_case(self):
        tx = TransactionCreate.model_validate({
            "description": "Academia",
            "amount": "99.90",
            "date": "2024-01-10",
            "recurrenceFrequency": "weekly",
            "recurrenceEndDate": "2024-02-10",
        })
        assert tx.is_recurring is True
        assert tx.recurrence_frequency == RecurrenceFrequency.WEEKLY

    def test_amount_serializes_as_decimal_string(self):
        """Test that money leaves the model as an exact decimal string."""
        tx = Transaction(
            id=1,
            account_id=1,
            description="Café",
            amount=Decimal("0.10"),
            type="expense",
            date=date(2024, 3, 1),
        )
        data = tx.model_dump(mode="json", by_alias=True)
        assert data["amount"] == "0.10"
        assert data["accountId"] == 1


class TestOtherModels:
    """Tests for account, category, card and project models."""

    def test_account_is_business(self):
        account = Account(id=1, name="Empresa", type="business")
        assert account.type == AccountType.BUSINESS
        assert account.is_business is True

    def test_category_color_must_be_hex(self):
        with pytest.raises(PydanticValidationError):
            CategoryCreate(name="Lazer", color="purple")

    def test_card_days_must_be_in_month_range(self):
        """Test that due and closing days outside 1-31 are rejected."""
        with pytest.raises(PydanticValidationError):
            CreditCardCreate(name="Visa", due_date=0, closing_day=25)
        with pytest.raises(PydanticValidationError):
            CreditCardCreate(name="Visa", due_date=5, closing_day=32)

    def test_project_end_before_start_rejected(self):
        with pytest.raises(PydanticValidationError):
            ProjectCreate(name="Site", start_date=date(2024, 5, 1), end_date=date(2024, 4, 1))


class TestAmountFormatting:
    """Tests for display helpers."""

    def test_format_amount(self):
        assert format_amount(Decimal("1234.5")) == "R$ 1,234.50"
        assert format_amount("10", symbol=None) == "10.00"

    def test_display_amount_tolerates_garbage(self):
        """Test that unparseable stored values display as zero."""
        assert display_amount(None) == Decimal("0.00")
        assert display_amount("abc") == Decimal("0.00")
        assert display_amount("NaN") == Decimal("0.00")


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            account_id=1,
            entity_type="transaction",
            entity_id=42,
            description="Transaction created",
        )
        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_builder_invoice_settled(self):
        """Test AuditEventBuilder for a settled invoice."""
        correlation_id = uuid4()
        event = AuditEventBuilder.invoice_settled(
            account_id=1,
            payment_id=3,
            credit_card_id=2,
            month="2024-03",
            total="150.00",
            transaction_id=9,
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.INVOICE_SETTLED
        assert event.entity_type == "invoice_payment"
        assert event.details["invoice_month"] == "2024-03"
        assert event.correlation_id == correlation_id

    def test_audit_event_to_row_serializes_details(self):
        event = AuditEventBuilder.validation_failed(
            operation="create_transaction",
            issues=[{"field": "amount"}],
            account_id=1,
        )
        row = event.to_row()
        assert row["event_type"] == "validation_failed"
        assert row["severity"] == "warning"
        assert '"amount"' in row["details_json"]

    def test_account_created_is_user_action(self):
        event = AuditEventBuilder.account_created(1, "Pessoal", "personal")
        assert event.is_user_action is True

    def test_audit_timestamp_is_timezone_aware(self):
        event = AuditEventBuilder.account_created(1, "Pessoal", "personal")
        assert event.timestamp.tzinfo is not None
        assert event.timestamp.utcoffset().total_seconds() == 0

    def test_recurring_series_builder(self):
        event = AuditEventBuilder.recurring_series_created(
            account_id=1,
            series_id="abc",
            amount="1500.00",
            frequency="monthly",
            transaction_ids=[4, 5, 6],
        )
        assert event.event_type == AuditEventType.RECURRING_SERIES_CREATED
        assert event.entity_id == 4
        assert event.details["frequency"] == "monthly"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
