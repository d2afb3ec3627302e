"""
SQL implementation of audit log storage.

Audit events go to the audit_events table in their own session, so a
failed business transaction never takes its audit trail down with it.
"""

import json
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ledgerdash.models.audit import AuditEvent, AuditEventType, AuditSeverity
from ledgerdash.services.storage.database import Database
from ledgerdash.services.storage.interface import AuditStorageInterface, StorageError
from ledgerdash.services.storage.tables import AuditEventRow


class SqlAuditStorage(AuditStorageInterface):
    """
    Audit events in the relational store.

    Audit events are append-only.
    """

    def __init__(self, database: Database):
        self._db = database

    def _row_to_event(self, row: AuditEventRow) -> AuditEvent:
        return AuditEvent(
            event_id=UUID(row.event_id),
            timestamp=row.timestamp,
            event_type=AuditEventType(row.event_type),
            severity=AuditSeverity(row.severity),
            account_id=row.account_id,
            entity_type=row.entity_type,
            entity_id=row.entity_id,
            correlation_id=UUID(row.correlation_id) if row.correlation_id else None,
            description=row.description,
            details=json.loads(row.details_json) if row.details_json else {},
            error_message=row.error_message,
            is_user_action=row.is_user_action,
        )

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        with self._db.session_scope() as session:
            session.add(AuditEventRow(**event.to_row()))
        return True

    def _query(self, stmt) -> list[AuditEvent]:
        try:
            with self._db.session_scope() as session:
                rows = session.scalars(stmt).all()
                return [self._row_to_event(row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get audit events: {e}")

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        stmt = (
            select(AuditEventRow)
            .where(AuditEventRow.correlation_id == str(correlation_id))
            .order_by(AuditEventRow.timestamp, AuditEventRow.id)
        )
        return self._query(stmt)

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: int,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        stmt = (
            select(AuditEventRow)
            .where(
                AuditEventRow.entity_type == entity_type,
                AuditEventRow.entity_id == entity_id,
            )
            .order_by(AuditEventRow.timestamp, AuditEventRow.id)
        )
        return self._query(stmt)

    def get_recent_events(
        self,
        limit: int = 100,
        account_id: Optional[int] = None,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        stmt = select(AuditEventRow)
        if account_id is not None:
            stmt = stmt.where(AuditEventRow.account_id == account_id)
        stmt = stmt.order_by(AuditEventRow.timestamp.desc(), AuditEventRow.id.desc()).limit(limit)
        return self._query(stmt)
