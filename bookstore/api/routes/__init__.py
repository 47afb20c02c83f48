"""
API Routes for the Bookstore

Route modules:
- auth: Registration and login
- books: Catalog browsing and seller operations
- users: Profile read/update
"""

from bookstore.api.routes.auth import router as auth_router
from bookstore.api.routes.books import router as books_router
from bookstore.api.routes.users import router as users_router

__all__ = [
    "auth_router",
    "books_router",
    "users_router",
]
