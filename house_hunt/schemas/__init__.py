"""
Pydantic schemas for request/response validation.
"""

from house_hunt.schemas.auth import LoginRequest, RefreshTokenRequest, AccessTokenResponse, AuthResponse
from house_hunt.schemas.user import (
    SignupRequest,
    ProfileUpdate,
    UserResponse,
    AdminUserResponse,
    UserListResponse,
    OwnerSummary,
)
from house_hunt.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    OccupancyUpdate,
    PropertyResponse,
    PropertyListResponse,
)
from house_hunt.schemas.search import SearchPlan, SortOrder
from house_hunt.schemas.admin import StatsResponse, ModerationResponse
from house_hunt.schemas.error import ErrorDetail, ErrorResponse, APIErrorResponse

__all__ = [
    "LoginRequest",
    "RefreshTokenRequest",
    "AccessTokenResponse",
    "AuthResponse",
    "SignupRequest",
    "ProfileUpdate",
    "UserResponse",
    "AdminUserResponse",
    "UserListResponse",
    "OwnerSummary",
    "PropertyCreate",
    "PropertyUpdate",
    "OccupancyUpdate",
    "PropertyResponse",
    "PropertyListResponse",
    "SearchPlan",
    "SortOrder",
    "StatsResponse",
    "ModerationResponse",
    "ErrorDetail",
    "ErrorResponse",
    "APIErrorResponse",
]
