"""
Repository layer for data access operations.
"""

from house_hunt.repositories.base import BaseRepository
from house_hunt.repositories.property import PropertyRepository
from house_hunt.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "PropertyRepository",
    "UserRepository"
]
