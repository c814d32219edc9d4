"""
Authentication API endpoints for signup, login, token refresh and profile management.
"""

from fastapi import APIRouter, Depends, status
from house_hunt.models.user import User
from house_hunt.services.auth import AuthService
from house_hunt.schemas.auth import (
    LoginRequest,
    RefreshTokenRequest,
    AccessTokenResponse,
    AuthResponse
)
from house_hunt.schemas.user import SignupRequest, ProfileUpdate, UserResponse
from house_hunt.schemas.error import get_error_responses
from house_hunt.utils.dependencies import get_auth_service, get_current_user
from house_hunt.config import settings


router = APIRouter(prefix="/auth", tags=["Authentication"])


def _auth_response(user: User, access_token: str, refresh_token: str) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(user.to_dict()),
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a tenant or owner account",
    responses=get_error_responses(403, 409, 422)
)
async def signup(
    signup_data: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """
    Create an account and return it with a fresh token pair.

    Raises:
        ForbiddenError: If the admin role is requested
        DuplicateResourceError: If the email is already registered
    """
    user, access_token, refresh_token = await auth_service.signup(signup_data)
    return _auth_response(user, access_token, refresh_token)


@router.post(
    "/login",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate user with email and password, returns JWT tokens",
    responses=get_error_responses(401, 422)
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """
    Authenticate user and return JWT tokens.

    Args:
        login_data: Login credentials (email and password)
        auth_service: Authentication service

    Returns:
        Login response with user info and JWT tokens

    Raises:
        InvalidCredentialsError: If credentials are invalid
    """
    user, access_token, refresh_token = await auth_service.login(
        email=login_data.email,
        password=login_data.password
    )
    return _auth_response(user, access_token, refresh_token)


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
    responses=get_error_responses(401, 422)
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AccessTokenResponse:
    access_token = await auth_service.refresh_access_token(refresh_data.refresh_token)
    return AccessTokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.get(
    "/me",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current user",
    responses=get_error_responses(401)
)
async def get_profile(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user.to_dict())


@router.put(
    "/me",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Update current user profile",
    responses=get_error_responses(401, 422)
)
async def update_profile(
    profile_data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    """
    Update name, phone or contact info of the current user.

    Raises:
        ValidationError: If no field is provided
    """
    user = await auth_service.update_profile(current_user, profile_data)
    return UserResponse.model_validate(user.to_dict())
