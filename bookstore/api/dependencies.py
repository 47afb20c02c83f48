"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- Storage and security services
- Authentication and role checks
"""

from datetime import timedelta
from typing import Callable, Optional

from fastapi import Depends, Request

from ..config import Settings
from ..security import PasswordHasher, TokenClaims, TokenInvalid, TokenService
from ..storage import Role, Storage, create_storage
from .middleware.error_handler import AuthenticationError, ForbiddenError


# =============================================================================
# Service Container
# =============================================================================

class ServiceContainer:
    """
    Container for the services a request handler may need.

    Security services are built on first access from the settings.
    """

    def __init__(self, settings: Settings, storage: Optional[Storage] = None):
        self.settings = settings
        self._storage = storage
        self._password_hasher = None
        self._token_service = None

    @property
    def storage(self) -> Storage:
        """Get storage backend instance."""
        if self._storage is None:
            self._storage = create_storage(self.settings)
        return self._storage

    @property
    def password_hasher(self) -> PasswordHasher:
        """Get password hasher instance."""
        if self._password_hasher is None:
            self._password_hasher = PasswordHasher(rounds=self.settings.bcrypt_rounds)
        return self._password_hasher

    @property
    def token_service(self) -> TokenService:
        """Get token service instance."""
        if self._token_service is None:
            self._token_service = TokenService(
                secret=self.settings.jwt_secret,
                algorithm=self.settings.jwt_algorithm,
                expires_delta=timedelta(days=self.settings.token_expire_days),
            )
        return self._token_service

    def close(self) -> None:
        if self._storage is not None:
            self._storage.close()


def get_service_container(request: Request) -> ServiceContainer:
    """Get the service container attached to the application."""
    return request.app.state.services


# =============================================================================
# Individual Service Dependencies
# =============================================================================

def get_app_settings(
    container: ServiceContainer = Depends(get_service_container),
) -> Settings:
    """Dependency for application settings."""
    return container.settings


def get_storage(
    container: ServiceContainer = Depends(get_service_container),
) -> Storage:
    """Dependency for the storage backend."""
    return container.storage


def get_password_hasher(
    container: ServiceContainer = Depends(get_service_container),
) -> PasswordHasher:
    """Dependency for password hasher."""
    return container.password_hasher


def get_token_service(
    container: ServiceContainer = Depends(get_service_container),
) -> TokenService:
    """Dependency for token service."""
    return container.token_service


# =============================================================================
# Authentication Dependencies
# =============================================================================

TOKEN_COOKIE = "token"


def extract_token(request: Request) -> Optional[str]:
    """
    Read the bearer token from the Authorization header, falling back
    to the ``token`` cookie.
    """
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(TOKEN_COOKIE) or None


async def authenticate(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
) -> TokenClaims:
    """
    Require a valid token and attach its claims to ``request.state.user``.

    Raises:
        AuthenticationError: If the token is absent, malformed, tampered
            with, or expired.
    """
    token = extract_token(request)
    if not token:
        raise AuthenticationError("No token, authorization denied")

    try:
        claims = tokens.verify(token)
    except TokenInvalid as e:
        raise AuthenticationError("Token is not valid", detail=str(e))

    request.state.user = claims
    return claims


def require_roles(*roles: Role) -> Callable:
    """
    Build a dependency that authenticates and then checks the role.

    Usage:
        @router.post("", dependencies=[Depends(require_roles(Role.SELLER, Role.ADMIN))])
    """
    allowed = frozenset(Role(r) for r in roles)

    async def check_role(claims: TokenClaims = Depends(authenticate)) -> TokenClaims:
        if claims.role not in allowed:
            raise ForbiddenError(
                detail=f"Role '{claims.role.value}' may not perform this action",
            )
        return claims

    return check_role
