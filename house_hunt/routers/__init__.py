"""
API route handlers for the House Hunt API.
"""

from .auth import router as auth_router
from .properties import router as properties_router
from .owners import router as owners_router
from .admin import router as admin_router

__all__ = ["auth_router", "properties_router", "owners_router", "admin_router"]
