"""
Security primitives for the Bookstore API.

- Password hashing (bcrypt)
- Signed, expiring identity tokens (JWT via python-jose)
- Ownership policy for catalog mutations
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import bcrypt
from jose import JWTError, jwt

from bookstore.storage.records import Role, StoredBook, utcnow


DEFAULT_BCRYPT_ROUNDS = 10
DEFAULT_TOKEN_LIFETIME = timedelta(days=7)
BCRYPT_MAX_PASSWORD_BYTES = 72


# =============================================================================
# Password Hashing
# =============================================================================

class PasswordHasher:
    """
    One-way salted password hashing.

    Usage:
        hasher = PasswordHasher(rounds=10)
        digest = hasher.hash("secret1")
        hasher.verify("secret1", digest)  # True
    """

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.rounds = rounds
        self._dummy_digest = None

    @property
    def dummy_digest(self) -> str:
        """Digest of a random password at the same cost, for unknown accounts."""
        if self._dummy_digest is None:
            self._dummy_digest = self.hash(secrets.token_urlsafe(16))
        return self._dummy_digest

    def hash(self, plaintext: str) -> str:
        """
        Hash a password with a fresh random salt.

        Raises:
            ValueError: If the password exceeds bcrypt's 72-byte limit.
        """
        encoded = plaintext.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        """Check a password against a stored digest. Never raises."""
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False


# =============================================================================
# Tokens
# =============================================================================

class TokenInvalid(Exception):
    """Token is malformed, tampered with, or expired."""


@dataclass(frozen=True)
class TokenClaims:
    """Identity asserted by a verified token."""

    user_id: str
    email: str
    role: Role
    expires_at: Optional[datetime] = None


class TokenService:
    """
    Issues and verifies signed identity tokens.

    Tokens are stateless JWTs carrying ``sub`` (user id), ``email``,
    ``role``, ``iat`` and ``exp``. Changing the secret invalidates every
    outstanding token.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_delta: timedelta = DEFAULT_TOKEN_LIFETIME,
        clock: Callable[[], datetime] = utcnow,
    ):
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.expires_delta = expires_delta
        self._clock = clock

    def issue(self, claims: TokenClaims) -> str:
        """Sign claims with an expiry of now + ``expires_delta``."""
        issued_at = self._clock()
        payload = {
            "sub": str(claims.user_id),
            "email": claims.email,
            "role": Role(claims.role).value,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.expires_delta).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Verify signature and expiry and return the embedded claims.

        Raises:
            TokenInvalid: For malformed, tampered, or expired tokens.
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise TokenInvalid(str(e)) from e

        try:
            return TokenClaims(
                user_id=payload["sub"],
                email=payload["email"],
                role=Role(payload["role"]),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (KeyError, ValueError, TypeError) as e:
            raise TokenInvalid(f"Invalid token claims: {e}") from e


# =============================================================================
# Ownership
# =============================================================================

def can_mutate(actor: TokenClaims, book: StoredBook) -> bool:
    """A book may be changed by the seller who listed it or by an admin."""
    return actor.user_id == book.seller_id or actor.role == Role.ADMIN
