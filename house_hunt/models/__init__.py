"""
Database models for the House Hunt API.
Includes User, Property, PropertyAmenity and PropertyImage models.
"""

from house_hunt.models.user import User, UserRole
from house_hunt.models.property import Property, PropertyAmenity, OccupancyStatus
from house_hunt.models.image import PropertyImage

__all__ = [
    "User",
    "UserRole",
    "Property",
    "PropertyAmenity",
    "OccupancyStatus",
    "PropertyImage",
]
