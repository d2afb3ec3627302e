"""
Audit Logger

DESIGN DECISION: Every mutation of financial data is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. A history of changes per account

The audit logger:
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
- Is called AFTER the business transaction commits, never inside it
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from ledgerdash.models.audit import AuditEvent, AuditEventBuilder, AuditEventType, AuditSeverity
from ledgerdash.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An AuditStorageInterface (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("ledgerdash.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_account_created(self, account_id: int, name: str, account_type: str) -> None:
        self.log(AuditEventBuilder.account_created(account_id, name, account_type))

    def log_account_updated(self, account_id: int, changes: dict) -> None:
        self.log(AuditEventBuilder.account_updated(account_id, changes))

    def log_account_deleted(self, account_id: int, name: str) -> None:
        self.log(AuditEventBuilder.account_deleted(account_id, name))

    def log_account_delete_blocked(self, account_id: int, transaction_count: int) -> None:
        self.log(AuditEventBuilder.account_delete_blocked(account_id, transaction_count))

    def log_account_selected(self, account_id: int) -> None:
        self.log(AuditEventBuilder.account_selected(account_id))

    def log_bank_account_changed(self, account_id: int, bank_account_id: int, action: str) -> None:
        self.log(AuditEventBuilder.bank_account_changed(account_id, bank_account_id, action))

    def log_category_changed(
        self,
        event_type: AuditEventType,
        account_id: int,
        category_id: int,
        name: str,
        details: Optional[dict] = None,
    ) -> None:
        self.log(AuditEventBuilder.category_changed(event_type, account_id, category_id, name, details))

    def log_transaction_created(
        self,
        account_id: int,
        transaction_id: int,
        amount: str,
        transaction_type: str,
    ) -> None:
        self.log(AuditEventBuilder.transaction_created(
            account_id=account_id,
            transaction_id=transaction_id,
            amount=amount,
            transaction_type=transaction_type,
        ))

    def log_installment_series_created(
        self,
        account_id: int,
        series_id: str,
        total: str,
        installments: int,
        transaction_ids: list[int],
    ) -> None:
        self.log(AuditEventBuilder.installment_series_created(
            account_id=account_id,
            series_id=series_id,
            total=total,
            installments=installments,
            transaction_ids=transaction_ids,
        ))

    def log_recurring_series_created(
        self,
        account_id: int,
        series_id: str,
        amount: str,
        frequency: str,
        transaction_ids: list[int],
    ) -> None:
        self.log(AuditEventBuilder.recurring_series_created(
            account_id=account_id,
            series_id=series_id,
            amount=amount,
            frequency=frequency,
            transaction_ids=transaction_ids,
        ))

    def log_transaction_updated(
        self,
        account_id: int,
        transaction_id: int,
        scope: str,
        changed_fields: list[str],
        updated_ids: list[int],
    ) -> None:
        self.log(AuditEventBuilder.transaction_updated(
            account_id=account_id,
            transaction_id=transaction_id,
            scope=scope,
            changed_fields=changed_fields,
            updated_ids=updated_ids,
        ))

    def log_transaction_deleted(
        self,
        account_id: int,
        transaction_id: int,
        scope: str,
        deleted_ids: list[int],
    ) -> None:
        self.log(AuditEventBuilder.transaction_deleted(account_id, transaction_id, scope, deleted_ids))

    def log_credit_card_changed(self, account_id: int, credit_card_id: int, action: str) -> None:
        self.log(AuditEventBuilder.credit_card_changed(account_id, credit_card_id, action))

    def log_invoice_settled(
        self,
        account_id: int,
        payment_id: int,
        credit_card_id: int,
        month: str,
        total: str,
        transaction_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log the settlement of one overdue invoice."""
        self.log(AuditEventBuilder.invoice_settled(
            account_id=account_id,
            payment_id=payment_id,
            credit_card_id=credit_card_id,
            month=month,
            total=total,
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))

    def log_overdue_invoices_processed(
        self,
        account_id: int,
        processed: int,
        skipped: int,
        reference_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.overdue_invoices_processed(
            account_id=account_id,
            processed=processed,
            skipped=skipped,
            reference_date=reference_date,
            correlation_id=correlation_id,
        ))

    def log_business_entity_changed(
        self,
        account_id: int,
        entity_type: str,
        entity_id: int,
        action: str,
    ) -> None:
        self.log(AuditEventBuilder.business_entity_changed(account_id, entity_type, entity_id, action))

    def log_validation_failed(
        self,
        operation: str,
        issues: list[dict],
        account_id: Optional[int] = None,
    ) -> None:
        """Log validation failure."""
        self.log(AuditEventBuilder.validation_failed(
            operation=operation,
            issues=issues,
            account_id=account_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a multi-step action (e.g., processing
    overdue invoices) and pass it through every event it produces.
    """
    return uuid4()
