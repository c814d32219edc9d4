"""
User repository for authentication, account management and moderation cascades.
Soft-deleted users are invisible to every lookup in this module.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, or_, desc
from house_hunt.repositories.base import BaseRepository, contains_pattern
from house_hunt.models.user import User, UserRole
from house_hunt.models.property import Property
from typing import Optional, List, Dict, Any, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user management with authentication and moderation support.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Dictionary containing user information
                      Must include: name, email, password
                      Optional: role (defaults to TENANT), phone, contact_info

        Returns:
            Created user instance

        Raises:
            ValueError: If validation fails or the email is taken
            Exception: If database operation fails
        """
        try:
            user_data = dict(user_data)
            email = User.validate_email_format(user_data["email"])

            if await self.email_exists(email):
                raise ValueError(f"User with email {email} already exists")

            password = user_data.pop("password")

            create_data = {
                **user_data,
                "email": email,
                "hashed_password": User.hash_password(password),
                "role": user_data.get("role") or UserRole.TENANT,
            }

            created_user = await self.create(create_data)
            logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
            return created_user
        except ValueError as e:
            logger.error(f"User validation failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to create user: {e}")
            raise

    async def email_exists(self, email: str) -> bool:
        """Check whether any account, deleted or not, already uses the email."""
        query = select(func.count(User.id)).where(User.email == email.lower().strip())
        result = await self.db.execute(query)
        return (result.scalar() or 0) > 0

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get a non-deleted user by email address.

        Args:
            email: Email address to search for

        Returns:
            User instance if found, None otherwise
        """
        try:
            normalized_email = email.lower().strip()
            query = select(User).where(User.email == normalized_email, self.not_deleted)

            result = await self.db.execute(query)
            user = result.scalar_one_or_none()

            if user:
                logger.debug(f"Retrieved user by email: {email}")
            else:
                logger.debug(f"User with email {email} not found")

            return user
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def get_active_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Get a user by ID unless soft-deleted."""
        return await self.get_by_id(user_id, include_deleted=False)

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Args:
            email: User's email address
            password: Plain text password

        Returns:
            User instance if authentication successful, None otherwise
        """
        try:
            user = await self.get_by_email(email)

            if not user:
                logger.debug(f"Authentication failed: user {email} not found")
                return None

            if not user.verify_password(password):
                logger.debug(f"Authentication failed: invalid password for {email}")
                return None

            return user
        except Exception as e:
            logger.error(f"Failed to authenticate user {email}: {e}")
            raise

    async def list_users(
        self,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[User], int]:
        """
        List non-deleted users, newest first.

        Args:
            role: Optional role filter
            search: Case-insensitive substring over name or email
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (users list, total count)
        """
        try:
            conditions = [self.not_deleted]
            if role is not None:
                conditions.append(User.role == role)
            if search:
                pattern = contains_pattern(search)
                conditions.append(or_(
                    User.name.ilike(pattern, escape="\\"),
                    User.email.ilike(pattern, escape="\\")
                ))

            total = await self.count(*conditions)

            query = (
                select(User)
                .where(*conditions)
                .order_by(desc(User.created_at), desc(User.id))
                .offset(skip)
                .limit(limit)
            )
            result = await self.db.execute(query)
            users = list(result.scalars().all())

            logger.debug(f"Listed {len(users)} of {total} users")
            return users, total
        except Exception as e:
            logger.error(f"Failed to list users: {e}")
            raise

    async def count_properties(self, owner_id: uuid.UUID) -> int:
        """Count an owner's non-deleted properties."""
        query = select(func.count(Property.id)).where(
            Property.owner_id == owner_id,
            Property.is_deleted.is_(False)
        )
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def set_blocked(self, user_id: uuid.UUID, blocked: bool) -> int:
        """
        Set a user's blocked flag; blocking also unpublishes every property they own.
        Both writes share one transaction.

        Args:
            user_id: UUID of the user
            blocked: New blocked state

        Returns:
            Number of properties unpublished by the cascade
        """
        try:
            await self.db.execute(
                update(User)
                .where(User.id == user_id)
                .values(is_blocked=blocked)
                .execution_options(synchronize_session=False)
            )

            unpublished = 0
            if blocked:
                result = await self.db.execute(
                    update(Property)
                    .where(Property.owner_id == user_id, Property.is_published.is_(True))
                    .values(is_published=False)
                    .execution_options(synchronize_session=False)
                )
                unpublished = result.rowcount

            await self.db.commit()
            logger.info(f"User {user_id} {'blocked' if blocked else 'unblocked'}; {unpublished} properties unpublished")
            return unpublished
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to set blocked={blocked} for user {user_id}: {e}")
            raise

    async def soft_delete_with_properties(self, user_id: uuid.UUID) -> int:
        """
        Soft-delete a user and every property they own in one transaction.

        Args:
            user_id: UUID of the user

        Returns:
            Number of properties soft-deleted by the cascade
        """
        try:
            await self.db.execute(
                update(User)
                .where(User.id == user_id)
                .values(is_deleted=True)
                .execution_options(synchronize_session=False)
            )
            result = await self.db.execute(
                update(Property)
                .where(Property.owner_id == user_id, Property.is_deleted.is_(False))
                .values(is_deleted=True, is_published=False)
                .execution_options(synchronize_session=False)
            )
            cascaded = result.rowcount

            await self.db.commit()
            logger.info(f"User {user_id} soft-deleted with {cascaded} properties")
            return cascaded
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to soft-delete user {user_id}: {e}")
            raise

    async def get_user_statistics(self) -> Dict[str, int]:
        """
        Get user counts for the admin dashboard.

        Returns:
            Dictionary with total, owners, tenants and blocked counts
        """
        try:
            active = self.not_deleted
            return {
                "total": await self.count(active),
                "owners": await self.count(active, User.role == UserRole.OWNER),
                "tenants": await self.count(active, User.role == UserRole.TENANT),
                "blocked": await self.count(active, User.is_blocked.is_(True)),
            }
        except Exception as e:
            logger.error(f"Failed to get user statistics: {e}")
            raise
