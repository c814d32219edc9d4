"""
Exception hierarchy for the House Hunt API.

Every error raised by services and dependencies derives from APIException,
which carries the HTTP status and a machine readable error code rendered in
the error envelope.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class ValidationError(APIException):
    """Request data failed a business rule after schema validation."""

    def __init__(
        self,
        detail: str,
        field_errors: Optional[List[Dict[str, str]]] = None
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="VALIDATION_ERROR"
        )
        self.field_errors = field_errors or []


class NotFoundError(APIException):
    """A user, owner or property does not exist or is hidden from the caller."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


class UnauthorizedError(APIException):
    """Missing or unusable credentials."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenError(APIException):
    """The caller is known but a policy rule refuses the action."""

    def __init__(self, detail: str = "Access forbidden", error_code: str = "FORBIDDEN"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code=error_code
        )


class ConflictError(APIException):
    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="CONFLICT"
        )


class BadRequestError(APIException):
    def __init__(self, detail: str, error_code: str = "BAD_REQUEST"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )


# Authentication
class InvalidCredentialsError(UnauthorizedError):
    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(detail)


class TokenExpiredError(UnauthorizedError):
    def __init__(self, detail: str = "Token has expired"):
        super().__init__(detail)


class InvalidTokenError(UnauthorizedError):
    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail)


class RoleNotAllowedError(ForbiddenError):
    """Signup asked for a role that only the admin bootstrap script may grant."""

    def __init__(self, role: str):
        super().__init__(f"The {role} role cannot be self-registered")


# Policy
class InsufficientPermissionsError(ForbiddenError):
    """The actor's role or ownership does not allow the action."""

    def __init__(self, action: str):
        super().__init__(f"Insufficient permissions to {action}")


class BlockedUserError(ForbiddenError):
    """A blocked owner attempted a listing mutation other than delete."""

    def __init__(self, detail: str = "Your account has been blocked"):
        super().__init__(detail, error_code="ACCOUNT_BLOCKED")


class SelfModerationError(ForbiddenError):
    """An admin targeted their own account with a moderation action."""

    def __init__(self, action: str):
        super().__init__(f"You cannot {action} your own account")


# Resources
class PropertyNotFoundError(NotFoundError):
    def __init__(self, property_id: str):
        super().__init__("Property", property_id)


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class OwnerNotFoundError(NotFoundError):
    """The id is unknown, deleted, or belongs to a tenant or admin."""

    def __init__(self, owner_id: str):
        super().__init__("Owner", owner_id)


class DuplicateResourceError(ConflictError):
    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' already exists")


class ImageLimitExceededError(BadRequestError):
    """A property's gallery would grow past the configured image limit."""

    def __init__(self, limit: int):
        super().__init__(
            f"A property can hold at most {limit} images",
            error_code="IMAGE_LIMIT_EXCEEDED"
        )


class FileUploadError(BadRequestError):
    """An uploaded image was rejected or could not be written to storage."""

    def __init__(self, detail: str):
        super().__init__(f"File upload error: {detail}", error_code="FILE_UPLOAD_ERROR")
