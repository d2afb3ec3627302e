"""
Main Orchestrator for LedgerDash

This module ties together all the components:
1. Storage (database, selection store, audit storage)
2. Domain services (accounts, categories, ledger, invoices, business)
3. Reporting and the dashboard flow

DESIGN DECISION: Nothing constructs its own collaborators. The API,
the Streamlit dashboard and the tests all build the same graph through
create_app_components(), passing in a different database or selection
store where they need to.
"""

import datetime as dt
from typing import Optional

import structlog

from ledgerdash.audit import AuditLogger, configure_logging
from ledgerdash.config import get_settings
from ledgerdash.models.account import Account
from ledgerdash.models.credit_card import InvoiceStatus
from ledgerdash.models.reports import DashboardSnapshot
from ledgerdash.reports import ReportAggregator
from ledgerdash.services.accounts import AccountContext, AccountDirectory
from ledgerdash.services.business import BusinessRegistry
from ledgerdash.services.categories import CategoryRegistry
from ledgerdash.services.invoices import InvoiceReconciler
from ledgerdash.services.ledger import TransactionLedger
from ledgerdash.services.storage import (
    Database,
    InMemorySelectionStore,
    JsonFileSelectionStore,
    SelectionStoreInterface,
    SqlAuditStorage,
)
from ledgerdash.validation import month_key


logger = structlog.get_logger()


class DashboardFlow:
    """
    Assembles the dashboard for the current account.

    Flow:
    1. Use the given account, or resolve the current one
       (saved -> personal -> first)
    2. Headline stats and top categories for the month
    3. Recent ledger transactions (card purchases excluded)
    4. Card overviews and overdue invoices
    """

    def __init__(
        self,
        accounts: AccountDirectory,
        context: AccountContext,
        ledger: TransactionLedger,
        invoices: InvoiceReconciler,
        reports: ReportAggregator,
        recent_limit: int = 10,
    ):
        self._accounts = accounts
        self._context = context
        self._ledger = ledger
        self._invoices = invoices
        self._reports = reports
        self._recent_limit = recent_limit

    def load(
        self,
        account_id: Optional[int] = None,
        month: Optional[str] = None,
        today: Optional[dt.date] = None,
    ) -> Optional[DashboardSnapshot]:
        """
        Build the snapshot. Returns None when there are no accounts.
        """
        today = today or dt.date.today()
        month = month or month_key(today)

        account: Optional[Account]
        if account_id is not None:
            account = self._accounts.get_account(account_id)
        else:
            account = self._context.resolve()
        if account is None:
            return None

        invoices = self._invoices.list_invoices(account.id, today=today)
        return DashboardSnapshot(
            account=account,
            month=month,
            stats=self._reports.get_stats(account.id, month),
            top_categories=self._reports.top_categories(account.id, month),
            recent_transactions=self._ledger.list_transactions(
                account.id,
                limit=self._recent_limit,
                card_purchases=False,
            ),
            credit_cards=self._invoices.card_overviews(account.id, today=today),
            overdue_invoices=[inv for inv in invoices if inv.status == InvoiceStatus.OVERDUE],
        )


class AppComponents:
    """The wired component graph."""

    def __init__(
        self,
        database: Database,
        audit_logger: AuditLogger,
        selection_store: SelectionStoreInterface,
        top_categories_limit: int = 5,
        recent_transactions_limit: int = 10,
    ):
        self.database = database
        self.audit_logger = audit_logger
        self.accounts = AccountDirectory(database, audit_logger)
        self.context = AccountContext(self.accounts, selection_store, audit_logger)
        self.categories = CategoryRegistry(database, audit_logger)
        self.business = BusinessRegistry(database, audit_logger)
        self.ledger = TransactionLedger(database, audit_logger)
        self.invoices = InvoiceReconciler(database, audit_logger)
        self.reports = ReportAggregator(
            database,
            audit_logger,
            top_categories_limit=top_categories_limit,
        )
        self.dashboard = DashboardFlow(
            accounts=self.accounts,
            context=self.context,
            ledger=self.ledger,
            invoices=self.invoices,
            reports=self.reports,
            recent_limit=recent_transactions_limit,
        )


def create_app_components(
    database: Optional[Database] = None,
    selection_store: Optional[SelectionStoreInterface] = None,
    persist_audit: bool = True,
    create_tables: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        database: Database to use. Defaults to one built from settings.
        selection_store: Where the current account is remembered.
                    Defaults to the JSON file from settings.
        persist_audit: Whether audit events are also written to the
                    audit_events table. Set to False for local-only logging.
        create_tables: Create missing tables on startup.

    Returns:
        AppComponents
    """
    settings = get_settings().app
    configure_logging(settings.log_level)

    database = database or Database()
    database.connect()
    if create_tables:
        database.create_tables()

    audit_logger = AuditLogger(SqlAuditStorage(database)) if persist_audit else AuditLogger()

    if selection_store is None:
        if database.is_memory:
            selection_store = InMemorySelectionStore()
        else:
            selection_store = JsonFileSelectionStore(settings.selection_path)

    logger.info("app_components_created", environment=settings.app_environment)

    return AppComponents(
        database=database,
        audit_logger=audit_logger,
        selection_store=selection_store,
        top_categories_limit=settings.top_categories_limit,
        recent_transactions_limit=settings.recent_transactions_limit,
    )
