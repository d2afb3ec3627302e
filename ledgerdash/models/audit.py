"""
Audit Models for LedgerDash

Every mutation of financial data is logged for audit purposes.
This provides:
1. Traceability of who changed what, and when
2. Debugging information when a series edit or settlement goes wrong
3. A history the user can inspect

Audit logs are append-only. They are never updated or deleted.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from ledgerdash.models.common import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_DELETED = "account_deleted"
    ACCOUNT_DELETE_BLOCKED = "account_delete_blocked"
    ACCOUNT_SELECTED = "account_selected"
    BANK_ACCOUNT_CHANGED = "bank_account_changed"

    # Categories
    CATEGORY_CREATED = "category_created"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"

    # Ledger
    TRANSACTION_CREATED = "transaction_created"
    INSTALLMENT_SERIES_CREATED = "installment_series_created"
    RECURRING_SERIES_CREATED = "recurring_series_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Credit cards and invoices
    CREDIT_CARD_CHANGED = "credit_card_changed"
    INVOICE_SETTLED = "invoice_settled"
    OVERDUE_INVOICES_PROCESSED = "overdue_invoices_processed"

    # Business registry
    BUSINESS_ENTITY_CHANGED = "business_entity_changed"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    account_id: Optional[int] = Field(
        default=None,
        description="Owning account, when there is one"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'credit_card')"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one overdue processing run)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "account_id": self.account_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_row(self) -> dict:
        """
        Convert to column values for the audit_events table.

        details are JSON-serialized; non-JSON values fall back to str().
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp,
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "account_id": self.account_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details_json": json.dumps(self.details, default=str) if self.details else None,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.account_created(account_id, name, "personal")
        event = AuditEventBuilder.invoice_settled(payment_id, ...)
    """

    @staticmethod
    def account_created(
        account_id: int,
        name: str,
        account_type: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            account_id=account_id,
            entity_type="account",
            entity_id=account_id,
            description=f"Account created: {name}",
            details={"account_type": account_type},
            is_user_action=True,
        )

    @staticmethod
    def account_updated(account_id: int, changes: dict) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_UPDATED,
            account_id=account_id,
            entity_type="account",
            entity_id=account_id,
            description="Account updated",
            details={"changes": changes},
            is_user_action=True,
        )

    @staticmethod
    def account_deleted(account_id: int, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            account_id=account_id,
            entity_type="account",
            entity_id=account_id,
            description=f"Account deleted: {name}",
            is_user_action=True,
        )

    @staticmethod
    def account_delete_blocked(account_id: int, transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETE_BLOCKED,
            severity=AuditSeverity.WARNING,
            account_id=account_id,
            entity_type="account",
            entity_id=account_id,
            description=f"Account delete blocked by {transaction_count} transactions",
            details={"transaction_count": transaction_count},
            is_user_action=True,
        )

    @staticmethod
    def account_selected(account_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_SELECTED,
            severity=AuditSeverity.DEBUG,
            account_id=account_id,
            entity_type="account",
            entity_id=account_id,
            description="Current account selected",
            is_user_action=True,
        )

    @staticmethod
    def bank_account_changed(
        account_id: int,
        bank_account_id: int,
        action: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BANK_ACCOUNT_CHANGED,
            account_id=account_id,
            entity_type="bank_account",
            entity_id=bank_account_id,
            description=f"Bank account {action}",
            details={"action": action},
            is_user_action=True,
        )

    @staticmethod
    def category_changed(
        event_type: AuditEventType,
        account_id: int,
        category_id: int,
        name: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            account_id=account_id,
            entity_type="category",
            entity_id=category_id,
            description=f"Category {event_type.value.split('_')[-1]}: {name}",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def transaction_created(
        account_id: int,
        transaction_id: int,
        amount: str,
        transaction_type: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            account_id=account_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction created: {transaction_type} {amount}",
            details={"amount": amount, "type": transaction_type},
            is_user_action=True,
        )

    @staticmethod
    def installment_series_created(
        account_id: int,
        series_id: str,
        total: str,
        installments: int,
        transaction_ids: list[int],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSTALLMENT_SERIES_CREATED,
            account_id=account_id,
            entity_type="installment_series",
            entity_id=transaction_ids[0] if transaction_ids else None,
            description=f"Installment series created: {total} in {installments} installments",
            details={
                "series_id": series_id,
                "total": total,
                "installments": installments,
                "transaction_ids": transaction_ids,
            },
            is_user_action=True,
        )

    @staticmethod
    def recurring_series_created(
        account_id: int,
        series_id: str,
        amount: str,
        frequency: str,
        transaction_ids: list[int],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_SERIES_CREATED,
            account_id=account_id,
            entity_type="recurring_series",
            entity_id=transaction_ids[0] if transaction_ids else None,
            description=f"Recurring series created: {amount} {frequency}, {len(transaction_ids)} occurrences",
            details={
                "series_id": series_id,
                "amount": amount,
                "frequency": frequency,
                "transaction_ids": transaction_ids,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        account_id: int,
        transaction_id: int,
        scope: str,
        changed_fields: list[str],
        updated_ids: list[int],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            account_id=account_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction updated ({scope}): {len(updated_ids)} rows",
            details={
                "scope": scope,
                "changed_fields": changed_fields,
                "updated_ids": updated_ids,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        account_id: int,
        transaction_id: int,
        scope: str,
        deleted_ids: list[int],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            account_id=account_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction deleted ({scope}): {len(deleted_ids)} rows",
            details={"scope": scope, "deleted_ids": deleted_ids},
            is_user_action=True,
        )

    @staticmethod
    def credit_card_changed(
        account_id: int,
        credit_card_id: int,
        action: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDIT_CARD_CHANGED,
            account_id=account_id,
            entity_type="credit_card",
            entity_id=credit_card_id,
            description=f"Credit card {action}",
            details={"action": action},
            is_user_action=True,
        )

    @staticmethod
    def invoice_settled(
        account_id: int,
        payment_id: int,
        credit_card_id: int,
        month: str,
        total: str,
        transaction_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVOICE_SETTLED,
            account_id=account_id,
            entity_type="invoice_payment",
            entity_id=payment_id,
            correlation_id=correlation_id,
            description=f"Invoice {month} of card {credit_card_id} settled: {total}",
            details={
                "credit_card_id": credit_card_id,
                "invoice_month": month,
                "total": total,
                "transaction_id": transaction_id,
            },
        )

    @staticmethod
    def overdue_invoices_processed(
        account_id: int,
        processed: int,
        skipped: int,
        reference_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OVERDUE_INVOICES_PROCESSED,
            account_id=account_id,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Overdue invoices processed: {processed} settled, {skipped} skipped",
            details={
                "processed": processed,
                "skipped": skipped,
                "reference_date": reference_date,
            },
            is_user_action=True,
        )

    @staticmethod
    def business_entity_changed(
        account_id: int,
        entity_type: str,
        entity_id: int,
        action: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUSINESS_ENTITY_CHANGED,
            account_id=account_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.replace('_', ' ').capitalize()} {action}",
            details={"action": action},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        operation: str,
        issues: list[dict],
        account_id: Optional[int] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            account_id=account_id,
            description=f"Validation failed for {operation} with {len(issues)} issues",
            details={"operation": operation, "issues": issues},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
