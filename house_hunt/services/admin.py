"""
Admin service: user moderation with its property cascade, moderation listings and dashboard stats.
"""

from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from house_hunt.repositories.property import PropertyRepository
from house_hunt.repositories.user import UserRepository
from house_hunt.models.property import Property, OccupancyStatus
from house_hunt.models.user import User, UserRole
from house_hunt.services.policies import (
    Actor,
    PropertyAction,
    UserAction,
    ensure_can_manage_user,
    ensure_can_mutate,
)
from house_hunt.utils.exceptions import (
    APIException,
    BadRequestError,
    PropertyNotFoundError,
    UserNotFoundError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class AdminService:
    """
    Moderation operations. Every user-level action goes through the
    user-management policy, so an admin can never block or delete themselves.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    async def block_user(self, user_id: uuid.UUID, actor: Actor) -> Tuple[User, int]:
        """
        Block a user and unpublish every property they own.

        Blocking an already-blocked user changes nothing.

        Args:
            user_id: Target user
            actor: Acting admin

        Returns:
            Tuple of (refreshed user, number of properties unpublished)

        Raises:
            UserNotFoundError: If the user does not exist or is deleted
            ForbiddenError: If the actor may not manage the user
        """
        user = await self._get_manageable_user(user_id, actor, UserAction.BLOCK)
        if user.is_blocked:
            logger.info(f"User {user_id} already blocked; cascade skipped")
            return user, 0

        unpublished = await self._run_moderation(self.user_repo.set_blocked(user_id, True), "block", user_id)
        logger.info(f"Admin {actor.id} blocked user {user_id}; {unpublished} properties unpublished")
        return await self._reload_user(user_id), unpublished

    async def unblock_user(self, user_id: uuid.UUID, actor: Actor) -> Tuple[User, int]:
        """
        Clear a user's blocked flag. Previously unpublished properties stay unpublished.

        Returns:
            Tuple of (refreshed user, 0)
        """
        user = await self._get_manageable_user(user_id, actor, UserAction.BLOCK)
        if not user.is_blocked:
            return user, 0

        await self._run_moderation(self.user_repo.set_blocked(user_id, False), "unblock", user_id)
        logger.info(f"Admin {actor.id} unblocked user {user_id}")
        return await self._reload_user(user_id), 0

    async def toggle_block(self, user_id: uuid.UUID, actor: Actor) -> Tuple[User, int]:
        """Block an unblocked user or unblock a blocked one."""
        user = await self._get_manageable_user(user_id, actor, UserAction.BLOCK)
        if user.is_blocked:
            return await self.unblock_user(user_id, actor)
        return await self.block_user(user_id, actor)

    async def delete_user(self, user_id: uuid.UUID, actor: Actor) -> Tuple[User, int]:
        """
        Soft-delete a user together with every property they own.

        Returns:
            Tuple of (deleted user, number of properties soft-deleted)

        Raises:
            UserNotFoundError: If the user does not exist or is already deleted
            ForbiddenError: If the actor may not manage the user
        """
        await self._get_manageable_user(user_id, actor, UserAction.DELETE)

        cascaded = await self._run_moderation(
            self.user_repo.soft_delete_with_properties(user_id), "delete", user_id
        )
        logger.info(f"Admin {actor.id} deleted user {user_id} with {cascaded} properties")
        return await self._reload_user(user_id), cascaded

    async def delete_property(self, property_id: uuid.UUID, actor: Actor) -> None:
        """
        Soft-delete any non-deleted property, including those of blocked owners.

        Raises:
            PropertyNotFoundError: If the property does not exist or is already deleted
        """
        property_obj = await self.property_repo.get_property(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))

        ensure_can_mutate(actor, property_obj, PropertyAction.DELETE)
        await self.property_repo.soft_delete(property_id)
        logger.info(f"Admin {actor.id} deleted property {property_id}")

    async def list_users(
        self,
        role: Optional[UserRole],
        search: Optional[str],
        skip: int,
        limit: int
    ) -> Tuple[List[User], int]:
        return await self.user_repo.list_users(role=role, search=search, skip=skip, limit=limit)

    async def get_user_details(self, user_id: uuid.UUID) -> Tuple[User, int]:
        """
        Get a user and, for owners, how many live properties they have.

        Raises:
            UserNotFoundError: If the user does not exist or is deleted
        """
        user = await self.user_repo.get_active_by_id(user_id)
        if not user:
            raise UserNotFoundError(str(user_id))

        properties_count = 0
        if user.role == UserRole.OWNER:
            properties_count = await self.user_repo.count_properties(user_id)
        return user, properties_count

    async def list_properties(
        self,
        status: Optional[str],
        occupancy_status: Optional[OccupancyStatus],
        search: Optional[str],
        skip: int,
        limit: int
    ) -> Tuple[List[Property], int]:
        """
        List non-deleted properties whatever their visibility.

        Args:
            status: "published", "unpublished" or None for both
            occupancy_status: Optional occupancy filter
            search: Substring over title or city
            skip: Number of records to skip
            limit: Maximum number of records to return
        """
        published = None
        if status == "published":
            published = True
        elif status == "unpublished":
            published = False

        return await self.property_repo.admin_search(
            published=published,
            occupancy_status=occupancy_status,
            search=(search or "").strip() or None,
            skip=skip,
            limit=limit
        )

    async def get_stats(self) -> Dict[str, Dict[str, int]]:
        """Dashboard counts over non-deleted users and properties."""
        return {
            "users": await self.user_repo.get_user_statistics(),
            "properties": await self.property_repo.get_property_statistics(),
        }

    async def _get_manageable_user(self, user_id: uuid.UUID, actor: Actor, action: UserAction) -> User:
        ensure_can_manage_user(actor, user_id, action)

        user = await self.user_repo.get_active_by_id(user_id)
        if not user:
            raise UserNotFoundError(str(user_id))
        return user

    async def _reload_user(self, user_id: uuid.UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(str(user_id))
        return user

    async def _run_moderation(self, operation: Any, action: str, user_id: uuid.UUID) -> int:
        try:
            return await operation
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to {action} user {user_id}: {e}")
            raise BadRequestError(f"Failed to {action} user: {str(e)}")
