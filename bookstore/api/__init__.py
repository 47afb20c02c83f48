"""
Bookstore API - FastAPI Backend.
"""

from .main import create_app, main
from .dependencies import (
    ServiceContainer,
    authenticate,
    require_roles,
)

__all__ = [
    # Application
    "create_app",
    "main",
    # Dependencies
    "ServiceContainer",
    "authenticate",
    "require_roles",
]
