"""
Pydantic schemas for user requests and responses.
Handles signup, profile updates and admin user views.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Any, Optional, List
from datetime import datetime
from house_hunt.models.user import UserRole
import math
import re

PHONE_PATTERN = re.compile(r"^\d{10}$")


def _clean_phone(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        return None
    if not PHONE_PATTERN.match(v):
        raise ValueError("Phone number must be exactly 10 digits")
    return v


def _clean_name(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    if not v.strip():
        raise ValueError("Name cannot be empty")
    return v.strip()


class SignupRequest(BaseModel):
    """Schema for registering a new tenant or owner."""

    name: str = Field(..., min_length=2, max_length=50, examples=["Priya Sharma"])
    email: EmailStr = Field(..., examples=["priya@example.com"])
    password: str = Field(..., min_length=8, max_length=128, examples=["securepassword123"])
    role: UserRole = Field(UserRole.TENANT, description="tenant or owner")
    phone: Optional[str] = Field(None, examples=["9876543210"])
    contact_info: Optional[str] = Field(None, max_length=500)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _clean_name(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return _clean_phone(v)


class ProfileUpdate(BaseModel):
    """Schema for updating the caller's own profile."""

    name: Optional[str] = Field(None, min_length=2, max_length=50)
    phone: Optional[str] = None
    contact_info: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _clean_name(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return _clean_phone(v)


class UserResponse(BaseModel):
    """User response schema (excluding sensitive data)."""

    id: str
    name: str
    email: EmailStr
    role: UserRole
    phone: Optional[str] = None
    contact_info: Optional[str] = None
    is_blocked: bool
    created_at: datetime
    updated_at: datetime


class AdminUserResponse(UserResponse):
    """User details for admins, with the owner's listing count."""

    properties_count: Optional[int] = None


class UserListResponse(BaseModel):
    """Paginated user list for admins."""

    items: List[UserResponse]
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def from_page(cls, users: List[Any], page: int, limit: int, total: int) -> "UserListResponse":
        return cls(
            items=[UserResponse.model_validate(user.to_dict()) for user in users],
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0
        )


class OwnerSummary(BaseModel):
    """Public owner details embedded in listings."""

    id: str
    name: str
    email: EmailStr
    phone: Optional[str] = None
    contact_info: Optional[str] = None
