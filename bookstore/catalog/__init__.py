"""
Catalog browsing: filtering, ordering and pagination of books.
"""

from bookstore.catalog.query import (
    ALL_CATEGORIES,
    CatalogQuery,
    CatalogPage,
    query_catalog,
)

__all__ = [
    "ALL_CATEGORIES",
    "CatalogQuery",
    "CatalogPage",
    "query_catalog",
]
