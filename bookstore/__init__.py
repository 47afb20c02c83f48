"""
Bookstore: REST backend for a small online bookstore.

Accounts with role-based access, a browsable book catalog, and user
profiles, over a pluggable storage layer.
"""

__version__ = "1.0.0"
