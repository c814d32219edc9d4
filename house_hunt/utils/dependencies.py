"""
FastAPI dependency injection utilities for authentication, services and actors.
Provides reusable dependencies for route protection and user extraction.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from house_hunt.database import get_db
from house_hunt.models.user import User, UserRole
from house_hunt.services.auth import AuthService
from house_hunt.services.property import PropertyService
from house_hunt.services.admin import AdminService
from house_hunt.services.image import ImageService
from house_hunt.services.policies import Actor
from house_hunt.utils.exceptions import (
    APIException,
    UnauthorizedError,
    InsufficientPermissionsError
)


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


async def get_property_service(db: AsyncSession = Depends(get_db)) -> PropertyService:
    return PropertyService(db)


async def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    return AdminService(db)


def get_image_service() -> ImageService:
    """
    Get image storage service bound to the configured upload directory.

    Returns:
        ImageService instance
    """
    return ImageService()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer credentials
        auth_service: Authentication service

    Returns:
        Current User object

    Raises:
        UnauthorizedError: If no token provided or token is invalid
        TokenExpiredError: If token is expired
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except APIException:
        raise
    except Exception as e:
        raise UnauthorizedError(f"Authentication failed: {str(e)}")


async def get_current_actor(current_user: User = Depends(get_current_user)) -> Actor:
    """Request-scoped identity handed to the authorization policies."""
    return Actor.from_user(current_user)


async def get_current_owner(actor: Actor = Depends(get_current_actor)) -> Actor:
    """
    Require the owner role.

    Raises:
        InsufficientPermissionsError: If the user is not an owner
    """
    if actor.role != UserRole.OWNER:
        raise InsufficientPermissionsError("access owner resources")
    return actor


async def get_current_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """
    Require the admin role.

    Raises:
        InsufficientPermissionsError: If the user is not an admin
    """
    if actor.role != UserRole.ADMIN:
        raise InsufficientPermissionsError("access admin resources")
    return actor
