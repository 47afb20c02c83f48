"""
User profile routes.
"""

from fastapi import APIRouter, Depends

from bookstore.api.dependencies import authenticate, get_storage
from bookstore.api.middleware.error_handler import NotFoundError
from bookstore.api.schemas import ErrorResponse, ProfileUpdate, UserResponse
from bookstore.security import TokenClaims
from bookstore.storage import Storage

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/profile",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse, "description": "User no longer exists"}},
)
def read_profile(
    claims: TokenClaims = Depends(authenticate),
    storage: Storage = Depends(get_storage),
):
    """Get current user profile."""
    user = storage.get_user(claims.user_id)
    if user is None:
        raise NotFoundError("User", claims.user_id)
    return UserResponse.model_validate(user)


@router.put(
    "/profile",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse, "description": "User no longer exists"}},
)
def update_profile(
    payload: ProfileUpdate,
    claims: TokenClaims = Depends(authenticate),
    storage: Storage = Depends(get_storage),
):
    """Update the current user's profile fields."""
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    user = storage.update_user(claims.user_id, changes)
    if user is None:
        raise NotFoundError("User", claims.user_id)
    return UserResponse.model_validate(user)
