"""
In-memory and JSON-file storage backends.

``InMemoryStorage`` keeps users and books in insertion-ordered dicts
keyed by id. ``JsonFileStorage`` adds persistence by rewriting a single
JSON document after every mutation.
"""

import json
import os
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

from .base import DuplicateEmailError, Storage, mutable_changes
from .records import StoredBook, StoredUser, utcnow


class InMemoryStorage(Storage):
    """Thread-safe in-process store."""

    name = "memory"

    def __init__(self):
        self._users: dict[str, StoredUser] = {}
        self._books: dict[str, StoredBook] = {}
        self._lock = threading.Lock()

    # Users

    def get_user(self, user_id: str) -> Optional[StoredUser]:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[StoredUser]:
        with self._lock:
            return next((u for u in self._users.values() if u.email == email), None)

    def insert_user(self, user: StoredUser) -> StoredUser:
        with self._lock:
            if any(u.email == user.email for u in self._users.values()):
                raise DuplicateEmailError(user.email)
            self._users[user.id] = user
            self._changed()
        return user

    def update_user(self, user_id: str, changes: dict[str, Any]) -> Optional[StoredUser]:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            updates = mutable_changes(changes, StoredUser.IMMUTABLE)
            user = replace(user, **updates, updated_at=utcnow())
            self._users[user_id] = user
            self._changed()
        return user

    # Books

    def get_book(self, book_id: str) -> Optional[StoredBook]:
        with self._lock:
            return self._books.get(book_id)

    def list_books(self) -> list[StoredBook]:
        with self._lock:
            return list(self._books.values())

    def insert_book(self, book: StoredBook) -> StoredBook:
        with self._lock:
            self._books[book.id] = book
            self._changed()
        return book

    def update_book(self, book_id: str, changes: dict[str, Any]) -> Optional[StoredBook]:
        with self._lock:
            book = self._books.get(book_id)
            if book is None:
                return None
            updates = mutable_changes(changes, StoredBook.IMMUTABLE)
            book = replace(book, **updates, updated_at=utcnow())
            self._books[book_id] = book
            self._changed()
        return book

    def delete_book(self, book_id: str) -> bool:
        with self._lock:
            if self._books.pop(book_id, None) is None:
                return False
            self._changed()
        return True

    def _changed(self) -> None:
        """Hook called with the lock held after every mutation."""


class JsonFileStorage(InMemoryStorage):
    """
    In-memory store persisted to a JSON document.

    The file holds ``{"users": [...], "books": [...]}``. It is created on
    first use and rewritten atomically after every mutation.
    """

    name = "json"

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write()
            logger.info(f"Created data file {self.path}")
            return

        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)

        for entry in data.get("users", []):
            user = StoredUser.from_dict(entry)
            self._users[user.id] = user
        for entry in data.get("books", []):
            book = StoredBook.from_dict(entry)
            self._books[book.id] = book

        logger.info(
            f"Loaded {len(self._users)} users and {len(self._books)} books from {self.path}"
        )

    def _write(self) -> None:
        data = {
            "users": [u.to_dict() for u in self._users.values()],
            "books": [b.to_dict() for b in self._books.values()],
        }
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

    def _changed(self) -> None:
        self._write()
