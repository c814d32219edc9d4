"""
Authentication service for signup, login, token management and profile updates.
"""

from typing import Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from house_hunt.repositories.user import UserRepository
from house_hunt.models.user import User, UserRole
from house_hunt.schemas.user import SignupRequest, ProfileUpdate
from house_hunt.utils.auth import (
    create_access_token,
    create_refresh_token,
    verify_token,
    JWTError,
    ExpiredSignatureError,
)
from house_hunt.utils.exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    ValidationError,
    BadRequestError,
    DuplicateResourceError,
    RoleNotAllowedError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service for managing accounts and JWT tokens.
    Soft-deleted accounts can neither log in nor use previously issued tokens.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    async def signup(self, signup_data: SignupRequest) -> Tuple[User, str, str]:
        """
        Register a tenant or owner account and issue tokens.

        Args:
            signup_data: Validated signup payload

        Returns:
            Tuple of (user, access_token, refresh_token)

        Raises:
            RoleNotAllowedError: If the payload asks for the admin role
            DuplicateResourceError: If the email is already registered
        """
        try:
            if signup_data.role == UserRole.ADMIN:
                raise RoleNotAllowedError(signup_data.role.value)

            if await self.user_repo.email_exists(signup_data.email):
                raise DuplicateResourceError("User", signup_data.email)

            user = await self.user_repo.create_user(signup_data.model_dump())
            access_token, refresh_token = self.create_tokens(user)

            logger.info(f"New {user.role.value} account registered: {user.email}")
            return user, access_token, refresh_token

        except (RoleNotAllowedError, DuplicateResourceError):
            raise
        except IntegrityError:
            logger.warning(f"Concurrent signup for {signup_data.email} lost the unique email race")
            raise DuplicateResourceError("User", signup_data.email)
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Signup failed for {signup_data.email}: {e}")
            raise BadRequestError(f"Failed to register user: {str(e)}")

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Args:
            email: User's email address
            password: Plain text password

        Returns:
            Authenticated User object

        Raises:
            InvalidCredentialsError: If credentials are invalid or the account is deleted
            ValidationError: If input validation fails
        """
        if not email or not email.strip():
            raise ValidationError("Email is required")

        if not password:
            raise ValidationError("Password is required")

        try:
            user = await self.user_repo.authenticate_user(email, password)
        except Exception as e:
            logger.error(f"Authentication error for {email}: {e}")
            raise InvalidCredentialsError()

        if not user:
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        logger.info(f"User authenticated successfully: {user.email}")
        return user

    def create_tokens(self, user: User) -> Tuple[str, str]:
        """
        Create access and refresh tokens for user.

        Args:
            user: User object

        Returns:
            Tuple of (access_token, refresh_token)
        """
        access_token = create_access_token(user_id=user.id, email=user.email, role=user.role)
        refresh_token = create_refresh_token(user_id=user.id, email=user.email)
        return access_token, refresh_token

    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        """
        Authenticate user and create tokens.

        Returns:
            Tuple of (user, access_token, refresh_token)
        """
        user = await self.authenticate_user(email, password)
        access_token, refresh_token = self.create_tokens(user)
        return user, access_token, refresh_token

    async def refresh_access_token(self, refresh_token: str) -> str:
        """
        Create new access token from refresh token.

        Args:
            refresh_token: Valid refresh token

        Returns:
            New access token

        Raises:
            InvalidTokenError: If refresh token is invalid or its user is gone
            TokenExpiredError: If refresh token is expired
        """
        user = await self._resolve_token(refresh_token, "refresh")
        return create_access_token(user_id=user.id, email=user.email, role=user.role)

    async def get_current_user(self, token: str) -> User:
        """
        Get current user from access token.

        Args:
            token: JWT access token

        Returns:
            Current User object

        Raises:
            InvalidTokenError: If token is invalid or its user is gone
            TokenExpiredError: If token is expired
        """
        return await self._resolve_token(token, "access")

    async def update_profile(self, user: User, profile_data: ProfileUpdate) -> User:
        """
        Update the caller's name, phone and contact info.

        Args:
            user: Current user
            profile_data: Fields to change; omitted fields are kept

        Returns:
            Updated user

        Raises:
            ValidationError: If no field is provided
        """
        update_data = profile_data.model_dump(exclude_unset=True)
        update_data = {k: v for k, v in update_data.items() if v is not None}
        if not update_data:
            raise ValidationError("No valid fields provided for update")

        try:
            updated_user = await self.user_repo.update(user.id, update_data)
        except Exception as e:
            logger.error(f"Failed to update profile {user.id}: {e}")
            raise BadRequestError(f"Failed to update profile: {str(e)}")

        logger.info(f"Profile updated: {updated_user.email}")
        return updated_user

    async def _resolve_token(self, token: str, token_type: str) -> User:
        try:
            payload = verify_token(token, token_type=token_type)
            user_id = uuid.UUID(payload.user_id)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except (JWTError, ValueError) as e:
            raise InvalidTokenError(str(e))

        user = await self.user_repo.get_active_by_id(user_id)
        if not user:
            raise InvalidTokenError("User no longer exists")
        return user
