"""
Database models for the SQL storage backend.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

from .records import DEFAULT_BOOK_IMAGE, Role, utcnow

Base = declarative_base()


class UserModel(Base):
    """User model for authentication and profiles."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)  # UUID
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=Role.CUSTOMER.value)

    first_name = Column(String(100), default="")
    last_name = Column(String(100), default="")
    phone = Column(String(50), default="")
    bio = Column(Text, default="")
    address = Column(String(500), default="")
    profile_picture = Column(String(500))
    is_verified = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class BookModel(Base):
    """Book model for the catalog."""
    __tablename__ = "books"

    # Surrogate key keeps insertion order for tie-breaking
    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, index=True, nullable=False)

    title = Column(String(500), nullable=False, index=True)
    author = Column(String(200), nullable=False, index=True)
    category = Column(String(50), nullable=False, index=True)
    price = Column(Float, nullable=False)
    seller_id = Column(String(36), nullable=False, index=True)

    isbn = Column(String(20))
    description = Column(Text, default="")
    discount = Column(Float, default=0.0)
    image = Column(String(500), default=DEFAULT_BOOK_IMAGE)
    stock = Column(Integer, default=0)
    rating = Column(Float, default=0.0)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_books_price_non_negative"),
        Index("idx_books_created", "created_at"),
    )
