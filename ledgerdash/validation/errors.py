"""
Error taxonomy.

Services raise these; the API maps them to HTTP status codes:

    ValidationError -> 400
    NotFoundError   -> 404
    ConflictError   -> 409

Nothing in the services returns error values. A failed write always
raises, and the surrounding session scope rolls back.
"""

from typing import Optional

from ledgerdash.models.common import ValidationIssue


class LedgerError(Exception):
    """Base exception for LedgerDash domain errors."""
    pass


class ValidationError(LedgerError):
    """
    Input was rejected.

    Carries the field-level issues so callers can point at what to fix.
    """

    def __init__(
        self,
        message: str = "Invalid data",
        issues: Optional[list[ValidationIssue]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.issues = list(issues or [])

    @classmethod
    def for_field(cls, field: str, issue_type: str, message: str) -> "ValidationError":
        """Shortcut for the common single-issue case."""
        return cls(
            message=message,
            issues=[ValidationIssue(field=field, issue_type=issue_type, message=message)],
        )

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "errors": [issue.model_dump(by_alias=True) for issue in self.issues],
        }


class NotFoundError(LedgerError):
    """Entity not found."""

    def __init__(self, entity_type: str, entity_id):
        super().__init__(f"{entity_type} {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ConflictError(LedgerError):
    """The operation conflicts with the current state of the data."""
    pass
