"""
Bookstore Test Suite

Tests are organized into:
- unit/: Unit tests for security, catalog, storage, config and CLI
- integration/: HTTP tests against the application
"""
