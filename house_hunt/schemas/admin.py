"""
Pydantic schemas for the admin dashboard and moderation responses.
"""

from pydantic import BaseModel
from house_hunt.schemas.user import UserResponse


class UserStats(BaseModel):
    total: int
    owners: int
    tenants: int
    blocked: int


class PropertyStats(BaseModel):
    total: int
    published: int
    available: int
    occupied: int


class StatsResponse(BaseModel):
    """Counts shown on the admin dashboard."""

    users: UserStats
    properties: PropertyStats


class ModerationResponse(BaseModel):
    """Result of a block toggle or account deletion."""

    message: str
    user: UserResponse
    affected_properties: int
