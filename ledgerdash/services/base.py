"""Shared plumbing for the domain services."""

from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ledgerdash.audit import AuditLogger
from ledgerdash.models.account import AccountType
from ledgerdash.services.storage import Database
from ledgerdash.services.storage.tables import AccountRow
from ledgerdash.validation import NotFoundError, ValidationError, parse_model


ModelT = TypeVar("ModelT", bound=BaseModel)


def load_account(session: Session, account_id: int) -> AccountRow:
    """Fetch an account row or raise NotFoundError."""
    row = session.get(AccountRow, account_id)
    if row is None:
        raise NotFoundError("Account", account_id)
    return row


def require_business(account: AccountRow, field: str = "account_id") -> None:
    """Projects, cost centers and clients exist only under business accounts."""
    if account.type != AccountType.BUSINESS.value:
        raise ValidationError.for_field(
            field,
            "account_type",
            f"Account {account.id} is not a business account",
        )


def column_values(values: dict[str, Any]) -> dict[str, Any]:
    """Model field values as column values (enums stored by value)."""
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in values.items()
    }


class LedgerService:
    """
    Base for services that own a slice of the relational store.

    Subclasses open one session_scope() per public operation and log
    audit events only after that scope has committed.
    """

    def __init__(
        self,
        database: Database,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._db = database
        self._audit = audit_logger or AuditLogger()

    @property
    def database(self) -> Database:
        return self._db

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit

    def _parse(
        self,
        model_cls: type[ModelT],
        data: Any,
        operation: str,
        account_id: Optional[int] = None,
    ) -> ModelT:
        """parse_model, with failures audit-logged."""
        try:
            return parse_model(model_cls, data)
        except ValidationError as e:
            self._audit.log_validation_failed(
                operation=operation,
                issues=[issue.model_dump() for issue in e.issues],
                account_id=account_id,
            )
            raise
