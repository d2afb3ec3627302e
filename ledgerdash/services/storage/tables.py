"""SQLAlchemy table definitions."""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

from ledgerdash.models.common import utc_now


# Base class for declarative models
Base = declarative_base()

# NUMERIC(12, 2): money never goes through float
MONEY = Numeric(12, 2)


class AccountRow(Base):
    """Top-level ownership scope."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    type = Column(String(20), nullable=False, default="personal")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    # Relationships
    bank_accounts = relationship("BankAccountRow", back_populates="account", cascade="all, delete-orphan")
    categories = relationship("CategoryRow", back_populates="account", cascade="all, delete-orphan")
    credit_cards = relationship("CreditCardRow", back_populates="account", cascade="all, delete-orphan")
    transactions = relationship("TransactionRow", back_populates="account", cascade="all, delete-orphan")
    invoice_payments = relationship("InvoicePaymentRow", cascade="all, delete-orphan")
    clients = relationship("ClientRow", cascade="all, delete-orphan")
    projects = relationship("ProjectRow", cascade="all, delete-orphan")
    cost_centers = relationship("CostCenterRow", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Account(id={self.id}, name='{self.name}', type='{self.type}')>"


class BankAccountRow(Base):
    __tablename__ = "bank_accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    initial_balance = Column(MONEY, nullable=False, default=0)
    pix = Column(String(140), nullable=False, default="")
    shared = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    account = relationship("AccountRow", back_populates="bank_accounts")

    def __repr__(self):
        return f"<BankAccount(id={self.id}, account_id={self.account_id}, name='{self.name}')>"


class CategoryRow(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    name = Column(String(80), nullable=False)
    color = Column(String(7), nullable=False, default="#6B7280")
    icon = Column(String(60), nullable=False, default="fas fa-tag")
    type = Column(String(20), nullable=False, default="expense")

    account = relationship("AccountRow", back_populates="categories")

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}', type='{self.type}')>"


class CreditCardRow(Base):
    __tablename__ = "credit_cards"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    brand = Column(String(40), nullable=False, default="")
    credit_limit = Column(MONEY, nullable=False, default=0)
    due_date = Column(Integer, nullable=True)
    closing_day = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    account = relationship("AccountRow", back_populates="credit_cards")

    def __repr__(self):
        return f"<CreditCard(id={self.id}, name='{self.name}', closing_day={self.closing_day})>"


class TransactionRow(Base):
    """
    One ledger row.

    Installments and recurring occurrences are one row each, sharing
    series_id. Recurring rows also carry their frequency.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    amount = Column(MONEY, nullable=False)
    type = Column(String(20), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)

    # Classification and links
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    payment_method = Column(String(40), nullable=True)
    credit_card_id = Column(Integer, ForeignKey("credit_cards.id"), nullable=True, index=True)
    bank_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    cost_center_id = Column(Integer, ForeignKey("cost_centers.id"), nullable=True, index=True)
    paid = Column(Boolean, nullable=False, default=False)

    # Installment or recurring series
    series_id = Column(String(36), nullable=True, index=True)
    installment_index = Column(Integer, nullable=True)
    installment_total = Column(Integer, nullable=True)
    recurrence_frequency = Column(String(20), nullable=True)
    recurrence_end_date = Column(Date, nullable=True)

    # Set on card purchases once their invoice is paid
    settled_invoice_month = Column(String(7), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    account = relationship("AccountRow", back_populates="transactions")

    def __repr__(self):
        return f"<Transaction(id={self.id}, date={self.date}, amount={self.amount}, type='{self.type}')>"


class InvoicePaymentRow(Base):
    """
    Settlement of one card invoice.

    The unique constraint is what keeps overdue processing from
    settling the same invoice twice.
    """

    __tablename__ = "invoice_payments"
    __table_args__ = (
        UniqueConstraint("credit_card_id", "invoice_month", name="uq_invoice_payment_card_month"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    credit_card_id = Column(Integer, ForeignKey("credit_cards.id"), nullable=False, index=True)
    invoice_month = Column(String(7), nullable=False)
    total_amount = Column(MONEY, nullable=False)
    due_date = Column(Date, nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    def __repr__(self):
        return f"<InvoicePayment(card={self.credit_card_id}, month='{self.invoice_month}', status='{self.status}')>"


class ClientRow(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    email = Column(String(200), nullable=True)
    phone = Column(String(40), nullable=True)
    notes = Column(Text, nullable=True)


class ProjectRow(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="active")
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)
    budget = Column(MONEY, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)


class CostCenterRow(Base):
    __tablename__ = "cost_centers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    code = Column(String(30), nullable=True)
    description = Column(Text, nullable=True)
    department = Column(String(120), nullable=True)
    manager = Column(String(120), nullable=True)
    budget = Column(MONEY, nullable=True)


class AuditEventRow(Base):
    """Append-only audit trail."""

    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(36), nullable=False, unique=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    event_type = Column(String(60), nullable=False, index=True)
    severity = Column(String(20), nullable=False)
    account_id = Column(Integer, nullable=True, index=True)
    entity_type = Column(String(60), nullable=True)
    entity_id = Column(Integer, nullable=True)
    correlation_id = Column(String(36), nullable=True, index=True)
    description = Column(String(500), nullable=False)
    details_json = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
    is_user_action = Column(Boolean, nullable=False, default=False)
