"""
Catalog query engine.

Filters, orders and paginates a snapshot of book records:

1. Category: exact match unless absent or the ``"all"`` sentinel
2. Search: case-insensitive substring of title, author or ISBN
3. Order: newest first, ties keep insertion order
4. Page: ``items[(page - 1) * limit : page * limit]``
"""

import math
from dataclasses import dataclass, field
from typing import Iterable, Optional

from bookstore.storage.records import StoredBook


ALL_CATEGORIES = "all"
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass
class CatalogQuery:
    """Catalog filter and page request."""

    category: Optional[str] = None
    search: Optional[str] = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT


@dataclass
class CatalogPage:
    """One page of query results."""

    items: list[StoredBook] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def pages(self) -> int:
        """Number of pages needed for ``total`` items."""
        return math.ceil(self.total / self.limit) if self.limit else 0


def matches_category(book: StoredBook, category: Optional[str]) -> bool:
    if not category or category == ALL_CATEGORIES:
        return True
    return book.category.value == category


def matches_search(book: StoredBook, search: Optional[str]) -> bool:
    if not search:
        return True
    needle = search.lower()
    haystacks = (book.title, book.author, book.isbn)
    return any(h and needle in h.lower() for h in haystacks)


def query_catalog(
    books: Iterable[StoredBook],
    query: CatalogQuery,
    max_limit: int = MAX_LIMIT,
) -> CatalogPage:
    """
    Run a catalog query over a collection of books.

    Args:
        books: Books in insertion order.
        query: Filters and page request.
        max_limit: Upper bound applied to ``query.limit``.

    Returns:
        CatalogPage with the requested slice and the filtered total.
        An offset beyond the end yields an empty page, not an error.
    """
    page = max(DEFAULT_PAGE, query.page or DEFAULT_PAGE)
    limit = min(max(1, query.limit or DEFAULT_LIMIT), max_limit)

    matched = [
        book for book in books
        if matches_category(book, query.category) and matches_search(book, query.search)
    ]

    # sorted() is stable, so equal timestamps keep insertion order
    matched = sorted(matched, key=lambda b: b.created_at, reverse=True)

    offset = (page - 1) * limit
    return CatalogPage(
        items=matched[offset:offset + limit],
        total=len(matched),
        page=page,
        limit=limit,
    )
