"""
Services package.

Domain services live in their own modules and are wired together by
ledgerdash.orchestrator:

    accounts    - AccountDirectory, AccountContext
    categories  - CategoryRegistry
    business    - BusinessRegistry (clients, projects, cost centers)
    ledger      - TransactionLedger
    invoices    - InvoiceReconciler
"""

from ledgerdash.services.storage import (
    AuditStorageInterface,
    Database,
    InMemorySelectionStore,
    JsonFileSelectionStore,
    SelectionStoreInterface,
    SqlAuditStorage,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "Database",
    "InMemorySelectionStore",
    "JsonFileSelectionStore",
    "SelectionStoreInterface",
    "SqlAuditStorage",
    "StorageConnectionError",
    "StorageError",
]
