"""Services package."""

from src.services.storage import (
    AuditStorageInterface,
    AuthenticationError,
    FinanceStorageInterface,
    InMemoryAuditStorage,
    InMemoryFinanceStorage,
    NotFoundError,
    RestApiFinanceStorage,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "AuthenticationError",
    "FinanceStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryFinanceStorage",
    "NotFoundError",
    "RestApiFinanceStorage",
    "StorageConnectionError",
    "StorageError",
]
