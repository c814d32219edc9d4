"""
Property service for managing listings with visibility and authorization rules.
Handles CRUD operations, publication and occupancy toggles, search and image uploads.
"""

from typing import Any, List, Mapping, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import UploadFile
from house_hunt.config import settings
from house_hunt.repositories.property import PropertyRepository
from house_hunt.repositories.user import UserRepository
from house_hunt.models.property import Property, OccupancyStatus
from house_hunt.models.user import UserRole
from house_hunt.schemas.property import PropertyCreate, PropertyUpdate
from house_hunt.schemas.search import OwnerFilter, SearchPlan
from house_hunt.services.image import ImageService
from house_hunt.services.policies import Actor, PropertyAction, ensure_can_mutate
from house_hunt.services.query_builder import build_search_plan
from house_hunt.utils.exceptions import (
    BadRequestError,
    OwnerNotFoundError,
    PropertyNotFoundError,
    ImageLimitExceededError,
    ValidationError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class PropertyService:
    """
    Property service for listing management.
    Every mutation is gated by the authorization policy; every public read by the visibility rule.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.user_repo = UserRepository(db_session)

    async def create_property(self, property_data: PropertyCreate, actor: Actor) -> Property:
        """
        Create a new listing owned by the actor.

        Args:
            property_data: Property creation data
            actor: Request-scoped identity

        Returns:
            Created property

        Raises:
            ForbiddenError: If the actor is not an owner in good standing
            ImageLimitExceededError: If too many images are given
        """
        ensure_can_mutate(actor, None, PropertyAction.CREATE)

        if len(property_data.images) > settings.max_images_per_property:
            raise ImageLimitExceededError(settings.max_images_per_property)

        create_data = property_data.model_dump(exclude={"amenities", "images"})
        create_data["owner_id"] = actor.id

        try:
            property_obj = await self.property_repo.create_property(
                create_data,
                amenities=property_data.amenities,
                images=property_data.images
            )
        except Exception as e:
            logger.error(f"Failed to create property for user {actor.id}: {e}")
            raise BadRequestError(f"Failed to create property: {str(e)}")

        logger.info(f"Property created by owner {actor.id}: {property_obj.title} (ID: {property_obj.id})")
        return property_obj

    async def get_public_property(self, property_id: uuid.UUID) -> Property:
        """
        Get a publicly visible property.

        Raises:
            PropertyNotFoundError: If missing or hidden by the visibility rule
        """
        property_obj = await self.property_repo.get_visible_property(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))

        logger.debug(f"Retrieved property: {property_id}")
        return property_obj

    async def search_properties(self, params: Mapping[str, Any]) -> Tuple[List[Property], SearchPlan, int]:
        """
        Public search over visible properties.

        Args:
            params: Raw query parameters

        Returns:
            Tuple of (properties, plan used, total count)
        """
        plan = build_search_plan(params)
        properties, total = await self.property_repo.search(plan, visible_only=True)
        return properties, plan, total

    async def list_owner_properties(
        self,
        owner_id: uuid.UUID,
        params: Mapping[str, Any]
    ) -> Tuple[List[Property], SearchPlan, int]:
        """
        Publicly visible properties of a single owner.

        Raises:
            OwnerNotFoundError: If the user is missing, deleted or not an owner
        """
        owner = await self.user_repo.get_active_by_id(owner_id)
        if not owner or owner.role != UserRole.OWNER:
            raise OwnerNotFoundError(str(owner_id))

        plan = build_search_plan(params).with_filter(OwnerFilter(owner_id=owner_id))
        properties, total = await self.property_repo.search(plan, visible_only=True)
        return properties, plan, total

    async def list_my_properties(self, actor: Actor, skip: int, limit: int) -> Tuple[List[Property], int]:
        """An owner's own listings, published or not."""
        return await self.property_repo.list_for_owner(actor.id, skip=skip, limit=limit)

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        actor: Actor
    ) -> Property:
        """
        Update a listing owned by the actor.

        Raises:
            PropertyNotFoundError: If the property does not exist
            ForbiddenError: If the actor is not its owner in good standing
            ValidationError: If no field is provided
        """
        property_obj = await self._get_for_mutation(property_id, actor, PropertyAction.UPDATE)

        update_data = property_data.model_dump(exclude_unset=True)
        amenities = update_data.pop("amenities", None)
        images = update_data.pop("images", None)
        fields = {k: v for k, v in update_data.items() if v is not None}

        if not fields and amenities is None and images is None:
            raise ValidationError("No valid fields provided for update")

        if images is not None and len(images) > settings.max_images_per_property:
            raise ImageLimitExceededError(settings.max_images_per_property)

        try:
            updated = await self.property_repo.update_property(property_obj, fields, amenities, images)
        except Exception as e:
            logger.error(f"Failed to update property {property_id}: {e}")
            raise BadRequestError(f"Failed to update property: {str(e)}")

        logger.info(f"Property updated by owner {actor.id}: {property_id}")
        return updated

    async def delete_property(self, property_id: uuid.UUID, actor: Actor) -> None:
        """
        Soft-delete a listing; allowed for its owner or an admin.

        Raises:
            PropertyNotFoundError: If the property does not exist
            ForbiddenError: If the actor may not delete it
        """
        await self._get_for_mutation(property_id, actor, PropertyAction.DELETE)
        await self.property_repo.soft_delete(property_id)
        logger.info(f"Property {property_id} deleted by {actor.role.value} {actor.id}")

    async def toggle_publish(self, property_id: uuid.UUID, actor: Actor) -> Property:
        """Flip is_published on one of the actor's listings."""
        property_obj = await self._get_for_mutation(property_id, actor, PropertyAction.PUBLISH_TOGGLE)
        updated = await self.property_repo.update_property(
            property_obj, {"is_published": not property_obj.is_published}
        )
        logger.info(f"Property {property_id} {'published' if updated.is_published else 'unpublished'}")
        return updated

    async def set_occupancy(self, property_id: uuid.UUID, status: OccupancyStatus, actor: Actor) -> Property:
        """Mark one of the actor's listings available or occupied."""
        property_obj = await self._get_for_mutation(property_id, actor, PropertyAction.OCCUPANCY_TOGGLE)
        updated = await self.property_repo.update_property(property_obj, {"occupancy_status": status})
        logger.info(f"Property {property_id} marked {status.value}")
        return updated

    async def add_images(
        self,
        property_id: uuid.UUID,
        files: List[UploadFile],
        actor: Actor,
        image_service: ImageService
    ) -> Property:
        """
        Store uploaded images and append them to the listing's gallery.

        Raises:
            ImageLimitExceededError: If the gallery would exceed the image limit
            ValidationError: If any file is not an accepted image
        """
        property_obj = await self._get_for_mutation(property_id, actor, PropertyAction.UPLOAD_IMAGES)

        if len(property_obj.images) + len(files) > settings.max_images_per_property:
            raise ImageLimitExceededError(settings.max_images_per_property)

        urls = await image_service.store_images(files)
        try:
            return await self.property_repo.append_images(property_obj, urls)
        except Exception as e:
            image_service.discard(urls)
            logger.error(f"Failed to attach images to property {property_id}: {e}")
            raise BadRequestError(f"Failed to attach images: {str(e)}")

    async def _get_for_mutation(self, property_id: uuid.UUID, actor: Actor, action: PropertyAction) -> Property:
        property_obj = await self.property_repo.get_property(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))

        ensure_can_mutate(actor, property_obj, action)
        return property_obj
