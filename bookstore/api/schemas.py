"""
API Schemas for the Bookstore API

Pydantic models for request validation and response serialization:
- Auth models
- User profile models
- Book models

Fields are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from bookstore.storage.records import Category, Role


class APIModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# User Schemas
# =============================================================================

class UserResponse(APIModel):
    """User as returned to clients (no password hash)."""

    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    role: Role
    phone: str = ""
    bio: str = ""
    address: str = ""
    profile_picture: Optional[str] = None
    is_verified: bool = False
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(APIModel):
    """Profile update request (partial)."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    bio: Optional[str] = Field(None, max_length=2000)
    address: Optional[str] = Field(None, max_length=500)
    profile_picture: Optional[str] = Field(None, max_length=500)


# =============================================================================
# Auth Schemas
# =============================================================================

class RegisterRequest(APIModel):
    """Registration request."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "firstName": "Ada",
                "lastName": "Lovelace",
                "email": "ada@example.com",
                "password": "secret1",
            }
        }
    )


class LoginRequest(APIModel):
    """Login request."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthResponse(APIModel):
    """Token plus the authenticated user."""

    message: str
    token: str
    user: UserResponse


# =============================================================================
# Book Schemas
# =============================================================================

class BookCreate(APIModel):
    """Book creation request."""

    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=200)
    category: Category
    price: float = Field(..., ge=0)
    description: Optional[str] = Field(None, max_length=5000)
    isbn: Optional[str] = Field(None, max_length=20)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "The Hobbit",
                "author": "J.R.R. Tolkien",
                "category": "Fiction",
                "price": 12.5,
                "description": "There and back again.",
            }
        }
    )


class BookUpdate(APIModel):
    """Book update request (partial)."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    author: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    category: Optional[Category] = None
    price: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0, le=100)
    stock: Optional[int] = Field(None, ge=0)
    image: Optional[str] = Field(None, max_length=500)
    isbn: Optional[str] = Field(None, max_length=20)


class BookResponse(APIModel):
    """Book response model."""

    id: str
    title: str
    author: str
    category: Category
    price: float
    seller_id: str
    isbn: Optional[str] = None
    description: str = ""
    discount: float = 0.0
    image: str
    stock: int = 0
    rating: float = 0.0
    created_at: datetime
    updated_at: datetime


class PaginationInfo(APIModel):
    """Pagination metadata for list responses."""

    total: int
    page: int
    limit: int
    pages: int


class BookListResponse(APIModel):
    """Paginated book list response."""

    books: list[BookResponse]
    pagination: PaginationInfo


# =============================================================================
# Common Schemas
# =============================================================================

class MessageResponse(APIModel):
    """Plain acknowledgement."""

    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    detail: Optional[str] = None
    errors: Optional[list[dict]] = None
    timestamp: datetime


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    components: dict[str, str] = Field(default_factory=dict)
