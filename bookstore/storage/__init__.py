"""
Storage Module for the Bookstore API

Pluggable persistence behind a single interface:
- In-memory dicts (default, tests)
- JSON document on disk
- SQLAlchemy (SQLite or any supported database)
"""

from bookstore.storage.records import (
    Role,
    Category,
    StoredUser,
    StoredBook,
)
from bookstore.storage.base import (
    Storage,
    UserStore,
    BookStore,
    StorageError,
    DuplicateEmailError,
)
from bookstore.storage.memory import InMemoryStorage, JsonFileStorage
from bookstore.storage.sql import SqlStorage


def create_storage(settings) -> Storage:
    """Build the storage backend selected by ``settings.storage_backend``."""
    backend = settings.storage_backend
    if backend == "memory":
        return InMemoryStorage()
    if backend == "json":
        return JsonFileStorage(settings.data_file)
    if backend == "sql":
        return SqlStorage(settings.database_url, echo=settings.database_echo)
    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = [
    # Records
    "Role",
    "Category",
    "StoredUser",
    "StoredBook",
    # Interface
    "Storage",
    "UserStore",
    "BookStore",
    "StorageError",
    "DuplicateEmailError",
    # Backends
    "InMemoryStorage",
    "JsonFileStorage",
    "SqlStorage",
    "create_storage",
]
