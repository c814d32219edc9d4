"""
Pydantic schemas for authentication requests and responses.
Handles login, token refresh and token-bearing responses.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from house_hunt.schemas.user import UserResponse


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(..., examples=["owner@example.com"])
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""

    refresh_token: str = Field(..., description="Valid refresh token")


class AccessTokenResponse(BaseModel):
    """Access token response schema."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class AuthResponse(AccessTokenResponse):
    """Signup/login response carrying the user and both tokens."""

    refresh_token: str
    user: UserResponse
