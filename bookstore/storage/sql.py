"""
SQL storage backend.

Structured storage using SQLAlchemy:
- SQLite for development/testing
- Any SQLAlchemy-supported database in production

Each operation opens its own short-lived session.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .base import DuplicateEmailError, Storage, mutable_changes
from .models import Base, BookModel, UserModel
from .records import Category, Role, StoredBook, StoredUser, utcnow


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _user_from_model(model: UserModel) -> StoredUser:
    return StoredUser(
        id=model.id,
        email=model.email,
        password_hash=model.password_hash,
        role=Role(model.role),
        first_name=model.first_name or "",
        last_name=model.last_name or "",
        phone=model.phone or "",
        bio=model.bio or "",
        address=model.address or "",
        profile_picture=model.profile_picture,
        is_verified=bool(model.is_verified),
        created_at=_aware(model.created_at),
        updated_at=_aware(model.updated_at),
    )


def _book_from_model(model: BookModel) -> StoredBook:
    return StoredBook(
        id=model.id,
        title=model.title,
        author=model.author,
        category=Category(model.category),
        price=model.price,
        seller_id=model.seller_id,
        isbn=model.isbn,
        description=model.description or "",
        discount=model.discount or 0.0,
        image=model.image,
        stock=model.stock or 0,
        rating=model.rating or 0.0,
        created_at=_aware(model.created_at),
        updated_at=_aware(model.updated_at),
    )


def _column_values(record: Any) -> dict[str, Any]:
    values = dict(record.__dict__)
    for key, value in values.items():
        if isinstance(value, Enum):
            values[key] = value.value
    return values


class SqlStorage(Storage):
    """
    Storage backed by a relational database.

    Usage:
        storage = SqlStorage("sqlite:///./bookstore.db")
        storage.insert_user(user)
        storage.get_user_by_email("a@x.com")
    """

    name = "sql"

    def __init__(self, database_url: str = "sqlite:///:memory:", echo: bool = False):
        """
        Initialize storage.

        Args:
            database_url: SQLAlchemy database URL
            echo: Log emitted SQL
        """
        self.database_url = database_url

        engine_kwargs: dict[str, Any] = {"echo": echo}
        if database_url.startswith("sqlite"):
            # Handlers run in a thread pool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
                # Share the single in-memory database across sessions
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(database_url, **engine_kwargs)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

        logger.info(f"SqlStorage initialized: {self.database_url[:50]}...")

    def get_session(self) -> Session:
        """Get database session."""
        return self.SessionLocal()

    # Users

    def get_user(self, user_id: str) -> Optional[StoredUser]:
        with self.get_session() as session:
            model = session.get(UserModel, user_id)
            return _user_from_model(model) if model else None

    def get_user_by_email(self, email: str) -> Optional[StoredUser]:
        with self.get_session() as session:
            model = session.query(UserModel).filter(UserModel.email == email).first()
            return _user_from_model(model) if model else None

    def insert_user(self, user: StoredUser) -> StoredUser:
        with self.get_session() as session:
            session.add(UserModel(**_column_values(user)))
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise DuplicateEmailError(user.email)
        return user

    def update_user(self, user_id: str, changes: dict[str, Any]) -> Optional[StoredUser]:
        with self.get_session() as session:
            model = session.get(UserModel, user_id)
            if model is None:
                return None

            for key, value in mutable_changes(changes, StoredUser.IMMUTABLE).items():
                if hasattr(model, key):
                    setattr(model, key, value)

            model.updated_at = utcnow()
            session.commit()
            session.refresh(model)
            return _user_from_model(model)

    # Books

    def get_book(self, book_id: str) -> Optional[StoredBook]:
        with self.get_session() as session:
            model = session.query(BookModel).filter(BookModel.id == book_id).first()
            return _book_from_model(model) if model else None

    def list_books(self) -> list[StoredBook]:
        with self.get_session() as session:
            models = session.query(BookModel).order_by(BookModel.pk.asc()).all()
            return [_book_from_model(m) for m in models]

    def insert_book(self, book: StoredBook) -> StoredBook:
        with self.get_session() as session:
            session.add(BookModel(**_column_values(book)))
            session.commit()
        return book

    def update_book(self, book_id: str, changes: dict[str, Any]) -> Optional[StoredBook]:
        updates = mutable_changes(changes, StoredBook.IMMUTABLE)
        if "category" in updates:
            updates["category"] = Category(updates["category"]).value
        if updates.get("price", 0) < 0:
            raise ValueError("price must be non-negative")

        with self.get_session() as session:
            model = session.query(BookModel).filter(BookModel.id == book_id).first()
            if model is None:
                return None

            for key, value in updates.items():
                if hasattr(model, key):
                    setattr(model, key, value)

            model.updated_at = utcnow()
            session.commit()
            session.refresh(model)
            return _book_from_model(model)

    def delete_book(self, book_id: str) -> bool:
        with self.get_session() as session:
            model = session.query(BookModel).filter(BookModel.id == book_id).first()
            if model is None:
                return False
            session.delete(model)
            session.commit()
            return True

    def close(self) -> None:
        self.engine.dispose()
