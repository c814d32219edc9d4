"""
Service layer for business logic implementation.
Contains services for authentication, listings, moderation, image storage and error handling.
"""

from .auth import AuthService
from .property import PropertyService
from .admin import AdminService
from .image import ImageService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "PropertyService",
    "AdminService",
    "ImageService",
    "ErrorHandlerService"
]
