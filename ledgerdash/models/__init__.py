"""
Data Models Package

This package contains all Pydantic models used in LedgerDash.
All data flowing through the services and the API conforms to these schemas.
"""

from ledgerdash.models.common import (
    CENT,
    ZERO,
    DayOfMonth,
    LedgerModel,
    Money,
    NonNegativeMoney,
    PositiveMoney,
    TransactionType,
    ValidationIssue,
    display_amount,
    format_amount,
    quantize,
)
from ledgerdash.models.account import (
    Account,
    AccountCreate,
    AccountType,
    AccountUpdate,
    BankAccount,
    BankAccountBalance,
    BankAccountCreate,
    BankAccountUpdate,
)
from ledgerdash.models.category import (
    Category,
    CategoryCreate,
    CategoryUpdate,
)
from ledgerdash.models.transaction import (
    DeleteResult,
    EditScope,
    RecurrenceFrequency,
    PaymentMethod,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
)
from ledgerdash.models.credit_card import (
    CreditCard,
    CreditCardCreate,
    CreditCardInvoice,
    CreditCardOverview,
    CreditCardUpdate,
    InvoicePayment,
    InvoicePaymentStatus,
    InvoiceStatus,
    ProcessResult,
)
from ledgerdash.models.business import (
    Client,
    ClientCreate,
    ClientUpdate,
    CostCenter,
    CostCenterCreate,
    CostCenterUpdate,
    Project,
    ProjectCreate,
    ProjectStatus,
    ProjectUpdate,
)
from ledgerdash.models.reports import (
    AccountStats,
    BudgetUsage,
    CategoryStat,
    DashboardSnapshot,
    MonthlySummary,
)
from ledgerdash.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Shared
    "CENT",
    "ZERO",
    "DayOfMonth",
    "LedgerModel",
    "Money",
    "NonNegativeMoney",
    "PositiveMoney",
    "TransactionType",
    "ValidationIssue",
    "display_amount",
    "format_amount",
    "quantize",
    # Accounts
    "Account",
    "AccountCreate",
    "AccountType",
    "AccountUpdate",
    "BankAccount",
    "BankAccountBalance",
    "BankAccountCreate",
    "BankAccountUpdate",
    # Categories
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    # Ledger
    "DeleteResult",
    "EditScope",
    "RecurrenceFrequency",
    "PaymentMethod",
    "Transaction",
    "TransactionCreate",
    "TransactionUpdate",
    # Cards and invoices
    "CreditCard",
    "CreditCardCreate",
    "CreditCardInvoice",
    "CreditCardOverview",
    "CreditCardUpdate",
    "InvoicePayment",
    "InvoicePaymentStatus",
    "InvoiceStatus",
    "ProcessResult",
    # Business
    "Client",
    "ClientCreate",
    "ClientUpdate",
    "CostCenter",
    "CostCenterCreate",
    "CostCenterUpdate",
    "Project",
    "ProjectCreate",
    "ProjectStatus",
    "ProjectUpdate",
    # Reports
    "AccountStats",
    "BudgetUsage",
    "CategoryStat",
    "DashboardSnapshot",
    "MonthlySummary",
    # Audit
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
