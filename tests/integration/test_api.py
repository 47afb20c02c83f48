"""
Integration tests for API endpoints.
"""

import logging

import pytest

from bookstore.security import PasswordHasher, TokenClaims, TokenService
from bookstore.storage import Category, Role, StoredUser

pytestmark = pytest.mark.asyncio


REGISTRATION = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "email": "a@x.com",
    "password": "secret1",
}


class TestHealthEndpoints:
    """Tests for system endpoints."""

    async def test_health_check(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["storage"].startswith("healthy")

    async def test_request_id_is_echoed(self, client):
        response = await client.get("/api/books", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"


class TestAuthEndpoints:
    """Tests for registration and login."""

    async def test_register_returns_customer_token(self, client, token_service):
        response = await client.post("/api/auth/register", json=REGISTRATION)

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "a@x.com"
        assert data["user"]["firstName"] == "Ada"
        assert data["user"]["role"] == "customer"
        assert "password" not in data["user"]
        assert "passwordHash" not in data["user"]

        claims = token_service.verify(data["token"])
        assert claims.role == Role.CUSTOMER
        assert claims.email == "a@x.com"
        assert claims.user_id == data["user"]["id"]

    async def test_register_then_login(self, client, token_service):
        await client.post("/api/auth/register", json=REGISTRATION)

        response = await client.post(
            "/api/auth/login",
            json={"email": "a@x.com", "password": "secret1"},
        )

        assert response.status_code == 200
        assert token_service.verify(response.json()["token"]).email == "a@x.com"

    async def test_login_with_wrong_password(self, client):
        await client.post("/api/auth/register", json=REGISTRATION)

        response = await client.post(
            "/api/auth/login",
            json={"email": "a@x.com", "password": "wrong"},
        )

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHENTICATED"

    async def test_login_with_unknown_email(self, client, monkeypatch):
        checked = []
        real_verify = PasswordHasher.verify

        def counting_verify(self, plaintext, digest):
            checked.append(digest)
            return real_verify(self, plaintext, digest)

        monkeypatch.setattr(PasswordHasher, "verify", counting_verify)

        response = await client.post(
            "/api/auth/login",
            json={"email": "ghost@x.com", "password": "secret1"},
        )

        assert response.status_code == 401
        assert len(checked) == 1
        assert checked[0].startswith("$2b$04$")

    async def test_duplicate_registration(self, client, storage):
        first = await client.post("/api/auth/register", json=REGISTRATION)
        second = await client.post(
            "/api/auth/register",
            json={**REGISTRATION, "firstName": "Imposter", "password": "other12"},
        )

        assert first.status_code == 201
        assert second.status_code == 400
        assert second.json()["code"] == "VALIDATION_ERROR"
        assert storage.get_user_by_email("a@x.com").first_name == "Ada"

    @pytest.mark.parametrize("field, value", [
        ("email", "not-an-email"),
        ("password", "short"),
        ("firstName", "   "),
    ])
    async def test_register_validation(self, client, field, value):
        response = await client.post("/api/auth/register", json={**REGISTRATION, field: value})

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert any(e["field"] == field for e in data["errors"])

    async def test_register_missing_fields(self, client):
        response = await client.post("/api/auth/register", json={"email": "a@x.com"})

        assert response.status_code == 400
        fields = {e["field"] for e in response.json()["errors"]}
        assert {"password", "firstName", "lastName"} <= fields


class TestBooksEndpoints:
    """Tests for catalog browsing and seller operations."""

    async def test_list_books_with_pagination(self, client, make_user, make_book):
        seller = make_user(role=Role.SELLER)
        for i in range(12):
            make_book(seller.id, title=f"Book {i:02d}")

        response = await client.get("/api/books", params={"page": 2, "limit": 5})

        assert response.status_code == 200
        data = response.json()
        assert data["pagination"] == {"total": 12, "page": 2, "limit": 5, "pages": 3}
        assert len(data["books"]) == 5

    async def test_list_books_filters(self, client, make_user, make_book):
        seller = make_user(role=Role.SELLER)
        make_book(seller.id, title="The Hobbit")
        make_book(seller.id, title="Tolkien: A Biography", author="Humphrey Carpenter",
                  category=Category.BIOGRAPHIES)
        make_book(seller.id, title="Matilda", author="Roald Dahl", category=Category.CHILDREN)

        response = await client.get("/api/books", params={"category": "Fiction", "search": "tolkien"})
        everything = await client.get("/api/books", params={"category": "all"})

        assert [b["title"] for b in response.json()["books"]] == ["The Hobbit"]
        assert everything.json()["pagination"]["total"] == 3

    async def test_list_books_defaults(self, client):
        response = await client.get("/api/books")

        assert response.status_code == 200
        assert response.json() == {
            "books": [],
            "pagination": {"total": 0, "page": 1, "limit": 10, "pages": 0},
        }

    async def test_limit_is_capped(self, client):
        response = await client.get("/api/books", params={"limit": 1000000})

        assert response.json()["pagination"]["limit"] == 100

    async def test_invalid_page_is_rejected(self, client):
        response = await client.get("/api/books", params={"page": 0})

        assert response.status_code == 400

    async def test_list_by_category(self, client, make_user, make_book):
        seller = make_user(role=Role.SELLER)
        make_book(seller.id, title="Cosmos", author="Carl Sagan", category=Category.SCIENCE)
        make_book(seller.id, title="The Hobbit")

        response = await client.get("/api/books/category/Science")

        assert [b["title"] for b in response.json()["books"]] == ["Cosmos"]

    async def test_get_book(self, client, make_user, make_book):
        seller = make_user(role=Role.SELLER)
        book = make_book(seller.id)

        response = await client.get(f"/api/books/{book.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "The Hobbit"
        assert data["sellerId"] == seller.id
        assert data["category"] == "Fiction"

    async def test_get_nonexistent_book(self, client):
        response = await client.get("/api/books/nonexistent-id")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_seller_creates_book(self, client, make_user, auth_headers):
        seller = make_user(role=Role.SELLER)

        response = await client.post(
            "/api/books",
            json={"title": "Dune", "author": "Frank Herbert", "category": "Fiction", "price": 9.5},
            headers=auth_headers(seller),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["sellerId"] == seller.id
        assert data["price"] == 9.5
        assert data["stock"] == 0

        listed = await client.get("/api/books")
        assert listed.json()["books"][0]["id"] == data["id"]

    async def test_create_requires_authentication(self, client):
        response = await client.post(
            "/api/books",
            json={"title": "Dune", "author": "Frank Herbert", "category": "Fiction", "price": 9.5},
        )

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_customer_cannot_create(self, client, make_user, auth_headers):
        customer = make_user(role=Role.CUSTOMER)

        response = await client.post(
            "/api/books",
            json={"title": "Dune", "author": "Frank Herbert", "category": "Fiction", "price": 9.5},
            headers=auth_headers(customer),
        )

        assert response.status_code == 403

    @pytest.mark.parametrize("overrides", [
        {"price": -1},
        {"category": "Poetry"},
        {"title": ""},
    ])
    async def test_create_validation(self, client, make_user, auth_headers, overrides):
        seller = make_user(role=Role.SELLER)
        payload = {"title": "Dune", "author": "Frank Herbert", "category": "Fiction", "price": 9.5}

        response = await client.post("/api/books", json={**payload, **overrides}, headers=auth_headers(seller))

        assert response.status_code == 400

    async def test_owner_updates_book(self, client, make_user, make_book, auth_headers):
        seller = make_user(role=Role.SELLER)
        book = make_book(seller.id)

        response = await client.put(
            f"/api/books/{book.id}",
            json={"price": 15.0, "stock": 4, "discount": 10},
            headers=auth_headers(seller),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["price"] == 15.0
        assert data["stock"] == 4
        assert data["discount"] == 10
        assert data["title"] == "The Hobbit"

    async def test_other_seller_cannot_update_or_delete(self, client, make_user, make_book, auth_headers, storage):
        owner = make_user(role=Role.SELLER)
        other = make_user(role=Role.SELLER)
        book = make_book(owner.id)

        update = await client.put(f"/api/books/{book.id}", json={"price": 1.0}, headers=auth_headers(other))
        delete = await client.delete(f"/api/books/{book.id}", headers=auth_headers(other))

        assert update.status_code == 403
        assert delete.status_code == 403
        assert storage.get_book(book.id).price == 12.5

    async def test_admin_bypasses_ownership(self, client, make_user, make_book, auth_headers, storage):
        owner = make_user(role=Role.SELLER)
        admin = make_user(role=Role.ADMIN)
        book = make_book(owner.id)

        update = await client.put(f"/api/books/{book.id}", json={"title": "Edited"}, headers=auth_headers(admin))
        delete = await client.delete(f"/api/books/{book.id}", headers=auth_headers(admin))

        assert update.status_code == 200
        assert update.json()["title"] == "Edited"
        assert update.json()["sellerId"] == owner.id
        assert delete.status_code == 200
        assert delete.json() == {"message": "Book deleted"}
        assert storage.get_book(book.id) is None

    async def test_owner_deletes_book(self, client, make_user, make_book, auth_headers):
        seller = make_user(role=Role.SELLER)
        book = make_book(seller.id)

        response = await client.delete(f"/api/books/{book.id}", headers=auth_headers(seller))

        assert response.status_code == 200
        get_response = await client.get(f"/api/books/{book.id}")
        assert get_response.status_code == 404

    async def test_update_missing_book(self, client, make_user, auth_headers):
        seller = make_user(role=Role.SELLER)

        response = await client.put("/api/books/missing", json={"price": 1.0}, headers=auth_headers(seller))

        assert response.status_code == 404

    async def test_customer_cannot_delete(self, client, make_user, make_book, auth_headers):
        seller = make_user(role=Role.SELLER)
        customer = make_user(role=Role.CUSTOMER)
        book = make_book(seller.id)

        response = await client.delete(f"/api/books/{book.id}", headers=auth_headers(customer))

        assert response.status_code == 403


class TestTokenTransport:
    """Tests for how tokens reach the guard."""

    async def test_cookie_fallback(self, client, make_user, token_service):
        user = make_user(email="c@x.com")
        client.cookies.set("token", token_service.issue(_claims(user)))

        response = await client.get("/api/users/profile")

        assert response.status_code == 200
        assert response.json()["email"] == "c@x.com"

    async def test_missing_token(self, client):
        response = await client.get("/api/users/profile")

        assert response.status_code == 401

    async def test_garbage_token(self, client):
        response = await client.get("/api/users/profile", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401

    async def test_token_signed_with_other_secret(self, client, make_user):
        user = make_user()
        token = TokenService(secret="someone-else").issue(_claims(user))

        response = await client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    async def test_expired_token(self, client, make_user, expired_token_service):
        user = make_user()
        token = expired_token_service.issue(_claims(user))

        response = await client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHENTICATED"

    async def test_request_log_names_the_actor(self, client, make_user, auth_headers, caplog):
        user = make_user(role=Role.SELLER)
        api_logger = logging.getLogger("bookstore.api")
        api_logger.addHandler(caplog.handler)
        caplog.set_level(logging.INFO, logger="bookstore.api")
        try:
            await client.get("/api/users/profile", headers=auth_headers(user))
            await client.get("/api/books")
        finally:
            api_logger.removeHandler(caplog.handler)

        by_path = {r.http["path"]: r for r in caplog.records if hasattr(r, "http")}
        assert by_path["/api/users/profile"].actor == {"user_id": user.id, "role": "seller"}
        assert by_path["/api/books"].actor is None


class TestUsersEndpoints:
    """Tests for profile endpoints."""

    async def test_read_profile(self, client, make_user, auth_headers):
        user = make_user(email="p@x.com", first_name="Pat")

        response = await client.get("/api/users/profile", headers=auth_headers(user))

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "p@x.com"
        assert data["firstName"] == "Pat"
        assert "passwordHash" not in data

    async def test_update_profile(self, client, make_user, auth_headers, storage):
        user = make_user()

        response = await client.put(
            "/api/users/profile",
            json={"firstName": "Grace", "phone": "555-0100", "bio": "Reader", "role": "admin"},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["firstName"] == "Grace"
        assert data["phone"] == "555-0100"
        assert data["role"] == "customer"
        assert storage.get_user(user.id).bio == "Reader"

    async def test_profile_of_unknown_user(self, client, auth_headers):
        ghost = StoredUser(id="ghost", email="ghost@x.com", password_hash="x")

        response = await client.get("/api/users/profile", headers=auth_headers(ghost))

        assert response.status_code == 404


class TestErrorHandling:
    """Tests for unknown routes."""

    async def test_unknown_api_route_returns_json(self, client):
        response = await client.get("/api/nope", headers={"Accept": "text/html"})

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_unknown_page_for_browser_returns_html(self, client):
        response = await client.get("/some/page", headers={"Accept": "text/html,application/xhtml+xml"})

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/html")

    @pytest.mark.parametrize("headers", [{"Accept": "*/*"}, {"Accept": ""}])
    async def test_unknown_page_without_preference_returns_html(self, client, headers):
        response = await client.get("/some/page", headers=headers)

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/html")

    async def test_unknown_page_for_json_client(self, client):
        response = await client.get("/some/page", headers={"Accept": "application/json"})

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"


def _claims(user):
    return TokenClaims(user_id=user.id, email=user.email, role=user.role)
