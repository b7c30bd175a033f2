"""
Storage Services Package

Provides the abstract storage interface and its implementations:
the REST backend for real use and an in-memory store for tests.
"""

from src.services.storage.interface import (
    AuditStorageInterface,
    AuthenticationError,
    FinanceStorageInterface,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)
from src.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryFinanceStorage,
)
from src.services.storage.rest_api import RestApiFinanceStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "FinanceStorageInterface",
    # Exceptions
    "AuthenticationError",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryFinanceStorage",
    "RestApiFinanceStorage",
]
