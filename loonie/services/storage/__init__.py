"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the shared backend; the in-memory store is used for tests
and local runs.
"""

from loonie.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    GroupStorageInterface,
    NotFoundError,
    StorageError,
)
from loonie.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryGroupStorage,
)
from loonie.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsGroupStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "GroupStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryGroupStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsGroupStorage",
]
