"""
Abstract storage interface.

The API layer talks only to ``Storage``; concrete backends (in-memory,
JSON file, SQL) are interchangeable behind it.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from .records import StoredBook, StoredUser


class StorageError(Exception):
    """Base error for storage backends."""


class DuplicateEmailError(StorageError):
    """A user with the same email already exists."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User with email '{email}' already exists")


class UserStore(ABC):
    """Credential store operations."""

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[StoredUser]:
        """Look up a user by id."""

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[StoredUser]:
        """Look up a user by exact email."""

    @abstractmethod
    def insert_user(self, user: StoredUser) -> StoredUser:
        """
        Insert a new user.

        Raises:
            DuplicateEmailError: If the email is already registered.
        """

    @abstractmethod
    def update_user(self, user_id: str, changes: dict[str, Any]) -> Optional[StoredUser]:
        """Apply profile changes; returns None when the user does not exist."""


class BookStore(ABC):
    """Catalog store operations."""

    @abstractmethod
    def get_book(self, book_id: str) -> Optional[StoredBook]:
        """Look up a book by id."""

    @abstractmethod
    def list_books(self) -> list[StoredBook]:
        """Return a snapshot of all books in insertion order."""

    @abstractmethod
    def insert_book(self, book: StoredBook) -> StoredBook:
        """Insert a new book."""

    @abstractmethod
    def update_book(self, book_id: str, changes: dict[str, Any]) -> Optional[StoredBook]:
        """Apply field changes; returns None when the book does not exist."""

    @abstractmethod
    def delete_book(self, book_id: str) -> bool:
        """Remove a book; returns False when it does not exist."""


class Storage(UserStore, BookStore):
    """Combined user and book store."""

    name: str = "storage"

    def close(self) -> None:
        """Release any held resources."""


def mutable_changes(changes: dict[str, Any], immutable: frozenset) -> dict[str, Any]:
    """Drop keys that an update is not allowed to touch."""
    return {key: value for key, value in changes.items() if key not in immutable}
