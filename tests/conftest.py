"""
Pytest configuration and fixtures for Bookstore tests.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from bookstore.api.main import create_app
from bookstore.config import Settings
from bookstore.security import PasswordHasher, TokenClaims, TokenService
from bookstore.storage import Category, InMemoryStorage, Role, StoredBook, StoredUser


TEST_SECRET = "test-secret-key"
TEST_PASSWORD = "secret1"


# =============================================================================
# Test Settings
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Return settings configured for testing."""
    return Settings(
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        storage_backend="memory",
        environment="test",
        debug=False,
    )


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def storage() -> InMemoryStorage:
    """Fresh in-memory storage."""
    return InMemoryStorage()


@pytest.fixture
def hasher() -> PasswordHasher:
    """Password hasher at the lowest bcrypt cost."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_service() -> TokenService:
    """Token service sharing the application's test secret."""
    return TokenService(secret=TEST_SECRET)


@pytest.fixture
def expired_token_service() -> TokenService:
    """Token service whose clock runs eight days behind."""
    return TokenService(secret=TEST_SECRET, clock=lambda: datetime.now(timezone.utc) - timedelta(days=8))


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def make_user(storage, hasher) -> Callable[..., StoredUser]:
    """Factory inserting users with a known password."""

    def _make_user(
        email: str = None,
        role: Role = Role.CUSTOMER,
        password: str = TEST_PASSWORD,
        **fields,
    ) -> StoredUser:
        user = StoredUser(
            id=str(uuid4()),
            email=email or f"{role.value}-{uuid4().hex[:8]}@example.com",
            password_hash=hasher.hash(password),
            role=role,
            first_name=fields.pop("first_name", "Test"),
            last_name=fields.pop("last_name", role.value.title()),
            **fields,
        )
        return storage.insert_user(user)

    return _make_user


@pytest.fixture
def make_book(storage) -> Callable[..., StoredBook]:
    """Factory inserting books."""

    def _make_book(seller_id: str, title: str = "The Hobbit", **fields) -> StoredBook:
        book = StoredBook(
            id=str(uuid4()),
            title=title,
            author=fields.pop("author", "J.R.R. Tolkien"),
            category=fields.pop("category", Category.FICTION),
            price=fields.pop("price", 12.5),
            seller_id=seller_id,
            **fields,
        )
        return storage.insert_book(book)

    return _make_book


@pytest.fixture
def auth_headers(token_service) -> Callable[[StoredUser], dict]:
    """Build an Authorization header for a user."""

    def _auth_headers(user: StoredUser) -> dict:
        token = token_service.issue(TokenClaims(user_id=user.id, email=user.email, role=user.role))
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def catalog_books() -> list[StoredBook]:
    """Books with strictly increasing creation times, oldest first."""
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    specs = [
        ("The Hobbit", "J.R.R. Tolkien", Category.FICTION, "9780547928227"),
        ("The Silmarillion", "J.R.R. Tolkien", Category.FICTION, None),
        ("A Brief History of Time", "Stephen Hawking", Category.SCIENCE, "9780553380163"),
        ("Tolkien: A Biography", "Humphrey Carpenter", Category.BIOGRAPHIES, None),
        ("Matilda", "Roald Dahl", Category.CHILDREN, ""),
        ("Atomic Habits", "James Clear", Category.SELF_HELP, "9780735211292"),
    ]
    return [
        StoredBook(
            id=f"book-{i}",
            title=title,
            author=author,
            category=category,
            price=10.0 + i,
            seller_id="seller-1",
            isbn=isbn,
            created_at=base + timedelta(days=i),
        )
        for i, (title, author, category, isbn) in enumerate(specs)
    ]


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def app(test_settings, storage):
    """Create FastAPI application for testing."""
    return create_app(settings=test_settings, storage=storage)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
