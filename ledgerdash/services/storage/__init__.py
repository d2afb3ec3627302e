"""
Storage Services Package

Relational storage for ledger data (SQLAlchemy), plus small abstract
stores for the current-account selection and the audit trail.
"""

from ledgerdash.services.storage.interface import (
    AuditStorageInterface,
    SelectionStoreInterface,
    StorageConnectionError,
    StorageError,
)
from ledgerdash.services.storage.database import Database, create_database_engine
from ledgerdash.services.storage.selection import (
    InMemorySelectionStore,
    JsonFileSelectionStore,
)
from ledgerdash.services.storage.sql_audit import SqlAuditStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SelectionStoreInterface",
    # Exceptions
    "StorageConnectionError",
    "StorageError",
    # Relational store
    "Database",
    "create_database_engine",
    "SqlAuditStorage",
    # Selection stores
    "InMemorySelectionStore",
    "JsonFileSelectionStore",
]
