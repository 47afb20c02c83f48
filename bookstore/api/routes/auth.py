"""
Authentication API Routes for the Bookstore.

Handles:
- User registration (Sign Up)
- User login (Token generation)
"""

from uuid import uuid4

from fastapi import APIRouter, Depends, status
from loguru import logger

from bookstore.api.dependencies import get_password_hasher, get_storage, get_token_service
from bookstore.api.middleware.error_handler import AuthenticationError, ValidationError
from bookstore.api.schemas import AuthResponse, ErrorResponse, LoginRequest, RegisterRequest, UserResponse
from bookstore.security import PasswordHasher, TokenClaims, TokenService
from bookstore.storage import DuplicateEmailError, Role, Storage, StoredUser

router = APIRouter(prefix="/auth", tags=["auth"])


def _claims_for(user: StoredUser) -> TokenClaims:
    return TokenClaims(user_id=user.id, email=user.email, role=user.role)


# Handlers are sync so FastAPI runs bcrypt in its thread pool.

@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Invalid data or email taken"}},
)
def register(
    payload: RegisterRequest,
    storage: Storage = Depends(get_storage),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
):
    """Register a new customer account and return a token."""
    if storage.get_user_by_email(payload.email) is not None:
        raise ValidationError("User already exists", errors=[{"field": "email", "message": "Email already registered"}])

    try:
        password_hash = hasher.hash(payload.password)
    except ValueError as e:
        raise ValidationError("Invalid password", errors=[{"field": "password", "message": str(e)}])

    user = StoredUser(
        id=str(uuid4()),
        email=payload.email,
        password_hash=password_hash,
        role=Role.CUSTOMER,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )

    try:
        storage.insert_user(user)
    except DuplicateEmailError:
        # Lost a race with a concurrent registration
        raise ValidationError("User already exists", errors=[{"field": "email", "message": "Email already registered"}])

    logger.info(f"Registered user {user.id}")

    return AuthResponse(
        message="User registered successfully",
        token=tokens.issue(_claims_for(user)),
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
)
def login(
    payload: LoginRequest,
    storage: Storage = Depends(get_storage),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Login endpoint.
    Returns a token if credentials are valid.
    """
    user = storage.get_user_by_email(payload.email)

    # Unknown emails still pay for a bcrypt check
    digest = user.password_hash if user is not None else hasher.dummy_digest
    password_ok = hasher.verify(payload.password, digest)

    if user is None or not password_ok:
        logger.info("Rejected login attempt")
        raise AuthenticationError("Invalid credentials")

    return AuthResponse(
        message="Login successful",
        token=tokens.issue(_claims_for(user)),
        user=UserResponse.model_validate(user),
    )
