"""
Book API Routes

Catalog browsing for everyone; create, update and delete for sellers
and admins. Updates and deletes are further limited to the seller who
listed the book, unless the caller is an admin.
"""

from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from bookstore.api.dependencies import get_app_settings, get_storage, require_roles
from bookstore.api.middleware.error_handler import ForbiddenError, NotFoundError
from bookstore.api.schemas import (
    BookCreate,
    BookListResponse,
    BookResponse,
    BookUpdate,
    ErrorResponse,
    MessageResponse,
    PaginationInfo,
)
from bookstore.catalog import CatalogQuery, query_catalog
from bookstore.config import Settings
from bookstore.security import TokenClaims, can_mutate
from bookstore.storage import Category, Role, Storage, StoredBook


router = APIRouter(prefix="/books", tags=["books"])

require_seller = require_roles(Role.SELLER, Role.ADMIN)


def _list_response(storage: Storage, query: CatalogQuery, settings: Settings) -> BookListResponse:
    result = query_catalog(storage.list_books(), query, max_limit=settings.max_page_limit)
    return BookListResponse(
        books=[BookResponse.model_validate(b) for b in result.items],
        pagination=PaginationInfo(
            total=result.total,
            page=result.page,
            limit=result.limit,
            pages=result.pages,
        ),
    )


def _get_owned_book(storage: Storage, book_id: str, actor: TokenClaims) -> StoredBook:
    book = storage.get_book(book_id)
    if book is None:
        raise NotFoundError("Book", book_id)
    if not can_mutate(actor, book):
        raise ForbiddenError("Not authorized", detail="Only the listing seller or an admin may change this book")
    return book


# =============================================================================
# Browsing
# =============================================================================

@router.get("", response_model=BookListResponse)
def list_books(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, description="Items per page"),
    category: Optional[str] = Query(None, description="Category, or 'all'"),
    search: Optional[str] = Query(None, description="Match title, author or ISBN"),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
):
    """List books newest first with filtering and pagination."""
    logger.debug(f"Listing books: page={page}, limit={limit}, category={category}, search={search}")
    query = CatalogQuery(category=category, search=search, page=page, limit=limit)
    return _list_response(storage, query, settings)


@router.get("/category/{category}", response_model=BookListResponse)
def list_books_in_category(
    category: Category,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
):
    """List books of a single category."""
    query = CatalogQuery(category=category.value, page=page, limit=limit)
    return _list_response(storage, query, settings)


@router.get(
    "/{book_id}",
    response_model=BookResponse,
    responses={404: {"model": ErrorResponse, "description": "Book not found"}},
)
def get_book(book_id: str, storage: Storage = Depends(get_storage)):
    """Get a book by ID."""
    book = storage.get_book(book_id)
    if book is None:
        raise NotFoundError("Book", book_id)
    return BookResponse.model_validate(book)


# =============================================================================
# Seller Operations
# =============================================================================

@router.post(
    "",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid book data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not a seller or admin"},
    },
)
def create_book(
    payload: BookCreate,
    actor: TokenClaims = Depends(require_seller),
    storage: Storage = Depends(get_storage),
):
    """List a new book owned by the caller."""
    book = StoredBook(
        id=str(uuid4()),
        title=payload.title,
        author=payload.author,
        category=payload.category,
        price=payload.price,
        seller_id=actor.user_id,
        isbn=payload.isbn or None,
        description=payload.description or "",
    )
    storage.insert_book(book)
    logger.info(f"Seller {actor.user_id} listed book {book.id}: {book.title} by {book.author}")
    return BookResponse.model_validate(book)


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
)
def update_book(
    book_id: str,
    payload: BookUpdate,
    actor: TokenClaims = Depends(require_seller),
    storage: Storage = Depends(get_storage),
):
    """
    Update a book.

    Supports partial updates - only provided fields are modified.
    """
    _get_owned_book(storage, book_id, actor)

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    updated = storage.update_book(book_id, changes)
    if updated is None:
        # Deleted between the ownership check and the write
        raise NotFoundError("Book", book_id)

    logger.info(f"User {actor.user_id} updated book {book_id}: {sorted(changes)}")
    return BookResponse.model_validate(updated)


@router.delete(
    "/{book_id}",
    response_model=MessageResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
)
def delete_book(
    book_id: str,
    actor: TokenClaims = Depends(require_seller),
    storage: Storage = Depends(get_storage),
):
    """Delete a book."""
    _get_owned_book(storage, book_id, actor)

    if not storage.delete_book(book_id):
        raise NotFoundError("Book", book_id)

    logger.info(f"User {actor.user_id} deleted book {book_id}")
    return MessageResponse(message="Book deleted")
