"""
Property repository for listing storage, search and moderation writes.
Lowers a validated SearchPlan into a single SQLAlchemy statement plus its count.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_, or_, func, desc, asc
from sqlalchemy.orm import selectinload
from house_hunt.repositories.base import BaseRepository, contains_pattern
from house_hunt.models.property import Property, PropertyAmenity, OccupancyStatus
from house_hunt.models.image import PropertyImage
from house_hunt.models.user import User
from house_hunt.schemas.search import (
    AmenitiesFilter,
    BedroomsFilter,
    CityFilter,
    FlagFilter,
    GeoRadiusFilter,
    OwnerFilter,
    RangeFilter,
    SearchFilter,
    SearchPlan,
    SortOrder,
    TextFilter,
)
from typing import Optional, List, Dict, Any, Iterable, Tuple
import math
import uuid
import logging

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000.0

DETAIL_OPTIONS = (
    selectinload(Property.owner),
    selectinload(Property.amenities),
    selectinload(Property.images),
)


def public_visibility_conditions() -> List:
    """
    SQL form of the public visibility rule. Requires User joined on the owner.
    """
    return [
        Property.is_published.is_(True),
        Property.occupancy_status == OccupancyStatus.AVAILABLE,
        Property.is_deleted.is_(False),
        User.is_blocked.is_(False),
        User.is_deleted.is_(False),
    ]


def haversine_distance(latitude: float, longitude: float):
    """
    Great-circle distance in meters between the given point and each property.

    Args:
        latitude: Center latitude in degrees
        longitude: Center longitude in degrees

    Returns:
        SQL expression evaluating to the distance
    """
    lat_r = math.radians(latitude)
    lng_r = math.radians(longitude)
    half_dlat = (func.radians(Property.latitude) - lat_r) / 2
    half_dlng = (func.radians(Property.longitude) - lng_r) / 2

    a = (
        func.sin(half_dlat) * func.sin(half_dlat)
        + math.cos(lat_r) * func.cos(func.radians(Property.latitude))
        * func.sin(half_dlng) * func.sin(half_dlng)
    )
    return 2 * EARTH_RADIUS_M * func.asin(func.sqrt(a))


def filter_condition(search_filter: SearchFilter):
    """
    Translate one typed filter into a SQLAlchemy condition.

    Args:
        search_filter: Filter from a SearchPlan

    Returns:
        SQLAlchemy boolean expression
    """
    if isinstance(search_filter, TextFilter):
        pattern = contains_pattern(search_filter.term)
        return or_(
            Property.title.ilike(pattern, escape="\\"),
            Property.description.ilike(pattern, escape="\\")
        )

    if isinstance(search_filter, CityFilter):
        return Property.city.ilike(contains_pattern(search_filter.name), escape="\\")

    if isinstance(search_filter, RangeFilter):
        column = Property.price if search_filter.field == "price" else Property.size
        bounds = []
        if search_filter.minimum is not None:
            bounds.append(column >= search_filter.minimum)
        if search_filter.maximum is not None:
            bounds.append(column <= search_filter.maximum)
        return and_(*bounds)

    if isinstance(search_filter, BedroomsFilter):
        return Property.bedrooms.in_(search_filter.counts)

    if isinstance(search_filter, FlagFilter):
        column = Property.parking if search_filter.field == "parking" else Property.balcony
        return column.is_(search_filter.value)

    if isinstance(search_filter, AmenitiesFilter):
        return and_(*[
            Property.amenities.any(func.lower(PropertyAmenity.name) == name.lower())
            for name in search_filter.names
        ])

    if isinstance(search_filter, GeoRadiusFilter):
        return and_(
            Property.latitude.isnot(None),
            Property.longitude.isnot(None),
            haversine_distance(search_filter.latitude, search_filter.longitude) <= search_filter.radius_m
        )

    if isinstance(search_filter, OwnerFilter):
        return Property.owner_id == search_filter.owner_id

    raise ValueError(f"Unsupported search filter: {search_filter!r}")


def sort_clauses(sort: SortOrder) -> Tuple:
    """Order-by clauses for a sort order; ties break on id for stable pages."""
    if sort == SortOrder.PRICE_ASC:
        return asc(Property.price), asc(Property.id)
    if sort == SortOrder.PRICE_DESC:
        return desc(Property.price), asc(Property.id)
    return desc(Property.created_at), desc(Property.id)


def normalize_amenities(names: Iterable[str]) -> List[str]:
    """Trim names and drop case-insensitive duplicates, keeping the first spelling."""
    seen = set()
    result = []
    for name in names:
        cleaned = name.strip()
        if cleaned and cleaned.lower() not in seen:
            seen.add(cleaned.lower())
            result.append(cleaned)
    return result


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property listings with search, owner dashboards and moderation writes.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def create_property(
        self,
        property_data: Dict[str, Any],
        amenities: Iterable[str] = (),
        images: Iterable[str] = ()
    ) -> Property:
        """
        Create a property together with its amenities and images.

        Args:
            property_data: Column values for the property
            amenities: Amenity names
            images: Image URLs in display order

        Returns:
            Created property with relationships loaded
        """
        try:
            property_obj = Property(**property_data)
            property_obj.amenities = [PropertyAmenity(name=name) for name in normalize_amenities(amenities)]
            property_obj.images = [
                PropertyImage(url=url, display_order=position)
                for position, url in enumerate(images)
            ]

            self.db.add(property_obj)
            await self.db.commit()

            created = await self.get_property(property_obj.id, include_deleted=True)
            logger.info(f"Created property: {created.title} (ID: {created.id})")
            return created
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create property: {e}")
            raise

    async def get_property(self, property_id: uuid.UUID, include_deleted: bool = False) -> Optional[Property]:
        """
        Get a property with owner, amenities and images loaded.

        Args:
            property_id: UUID of the property
            include_deleted: Whether soft-deleted properties are returned

        Returns:
            Property or None if not found
        """
        try:
            query = (
                select(Property)
                .options(*DETAIL_OPTIONS)
                .where(Property.id == property_id)
                .execution_options(populate_existing=True)
            )
            if not include_deleted:
                query = query.where(self.not_deleted)

            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get property {property_id}: {e}")
            raise

    async def get_visible_property(self, property_id: uuid.UUID) -> Optional[Property]:
        """Get a property only if it passes the public visibility rule."""
        try:
            query = (
                select(Property)
                .join(User, Property.owner_id == User.id)
                .options(*DETAIL_OPTIONS)
                .where(Property.id == property_id, *public_visibility_conditions())
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get visible property {property_id}: {e}")
            raise

    async def search(self, plan: SearchPlan, visible_only: bool = True) -> Tuple[List[Property], int]:
        """
        Run a search plan.

        Args:
            plan: Validated filters, sort and pagination
            visible_only: Restrict to publicly visible properties

        Returns:
            Tuple of (page of properties, total matching count)
        """
        try:
            conditions = [filter_condition(search_filter) for search_filter in plan.filters]
            if visible_only:
                conditions.extend(public_visibility_conditions())
            else:
                conditions.append(self.not_deleted)

            count_query = (
                select(func.count(Property.id))
                .select_from(Property)
                .join(User, Property.owner_id == User.id)
                .where(*conditions)
            )
            total = (await self.db.execute(count_query)).scalar() or 0

            query = (
                select(Property)
                .join(User, Property.owner_id == User.id)
                .options(*DETAIL_OPTIONS)
                .where(*conditions)
                .order_by(*sort_clauses(plan.sort))
                .offset(plan.skip)
                .limit(plan.limit)
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(query)
            properties = list(result.scalars().all())

            logger.debug(f"Property search returned {len(properties)} of {total} total results")
            return properties, total
        except Exception as e:
            logger.error(f"Failed to search properties: {e}")
            raise

    async def list_for_owner(self, owner_id: uuid.UUID, skip: int = 0, limit: int = 20) -> Tuple[List[Property], int]:
        """
        List an owner's non-deleted properties regardless of publication state.

        Args:
            owner_id: UUID of the owner
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (properties list, total count)
        """
        try:
            conditions = [Property.owner_id == owner_id, self.not_deleted]
            total = await self.count(*conditions)

            query = (
                select(Property)
                .options(*DETAIL_OPTIONS)
                .where(*conditions)
                .order_by(*sort_clauses(SortOrder.NEWEST))
                .offset(skip)
                .limit(limit)
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(query)
            properties = list(result.scalars().all())

            logger.debug(f"Retrieved {len(properties)} properties for owner {owner_id}")
            return properties, total
        except Exception as e:
            logger.error(f"Failed to list properties for owner {owner_id}: {e}")
            raise

    async def admin_search(
        self,
        published: Optional[bool] = None,
        occupancy_status: Optional[OccupancyStatus] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Property], int]:
        """
        List all non-deleted properties for moderation, whatever their visibility.

        Args:
            published: Filter on is_published when given
            occupancy_status: Filter on occupancy when given
            search: Case-insensitive substring over title or city
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (properties list, total count)
        """
        try:
            conditions = [self.not_deleted]
            if published is not None:
                conditions.append(Property.is_published.is_(published))
            if occupancy_status is not None:
                conditions.append(Property.occupancy_status == occupancy_status)
            if search:
                pattern = contains_pattern(search)
                conditions.append(or_(
                    Property.title.ilike(pattern, escape="\\"),
                    Property.city.ilike(pattern, escape="\\")
                ))

            total = await self.count(*conditions)

            query = (
                select(Property)
                .options(*DETAIL_OPTIONS)
                .where(*conditions)
                .order_by(*sort_clauses(SortOrder.NEWEST))
                .offset(skip)
                .limit(limit)
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(query)
            return list(result.scalars().all()), total
        except Exception as e:
            logger.error(f"Failed to search properties for admin: {e}")
            raise

    async def update_property(
        self,
        property_obj: Property,
        fields: Dict[str, Any],
        amenities: Optional[Iterable[str]] = None,
        images: Optional[Iterable[str]] = None
    ) -> Property:
        """
        Apply column changes and, when given, replace amenities and images.

        Args:
            property_obj: Loaded property to modify
            fields: Column values to set
            amenities: New amenity names, or None to keep the current set
            images: New image URLs, or None to keep the current list

        Returns:
            Updated property with relationships reloaded
        """
        try:
            for key, value in fields.items():
                setattr(property_obj, key, value)

            if amenities is not None:
                self._sync_amenities(property_obj, normalize_amenities(amenities))

            if images is not None:
                property_obj.images = [
                    PropertyImage(url=url, display_order=position)
                    for position, url in enumerate(images)
                ]

            await self.db.commit()
            logger.debug(f"Updated property {property_obj.id}")
            return await self.get_property(property_obj.id, include_deleted=True)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update property {property_obj.id}: {e}")
            raise

    async def append_images(self, property_obj: Property, urls: List[str]) -> Property:
        """
        Append image URLs after the existing gallery.

        Args:
            property_obj: Loaded property
            urls: URLs to append in order

        Returns:
            Property with images reloaded
        """
        try:
            start = max((image.display_order for image in property_obj.images), default=-1) + 1
            for offset, url in enumerate(urls):
                property_obj.images.append(PropertyImage(url=url, display_order=start + offset))

            await self.db.commit()
            logger.info(f"Appended {len(urls)} images to property {property_obj.id}")
            return await self.get_property(property_obj.id, include_deleted=True)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to append images to property {property_obj.id}: {e}")
            raise

    async def soft_delete(self, property_id: uuid.UUID) -> bool:
        """
        Mark a property deleted and unpublished.

        Returns:
            True if a non-deleted property was found and updated
        """
        try:
            result = await self.db.execute(
                update(Property)
                .where(Property.id == property_id, self.not_deleted)
                .values(is_deleted=True, is_published=False)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()

            deleted = result.rowcount > 0
            if deleted:
                logger.info(f"Property {property_id} soft-deleted")
            return deleted
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to soft-delete property {property_id}: {e}")
            raise

    async def get_property_statistics(self) -> Dict[str, int]:
        """
        Get property counts for the admin dashboard.

        Returns:
            Dictionary with total, published, available and occupied counts
        """
        try:
            live = self.not_deleted
            published = Property.is_published.is_(True)
            return {
                "total": await self.count(live),
                "published": await self.count(live, published),
                "available": await self.count(live, published, Property.occupancy_status == OccupancyStatus.AVAILABLE),
                "occupied": await self.count(live, Property.occupancy_status == OccupancyStatus.OCCUPIED),
            }
        except Exception as e:
            logger.error(f"Failed to get property statistics: {e}")
            raise

    @staticmethod
    def _sync_amenities(property_obj: Property, names: List[str]) -> None:
        # Existing rows are reused so the unique (property_id, name) constraint
        # never sees a delete and an insert of the same name in one flush.
        wanted = {name.lower(): name for name in names}
        kept = [amenity for amenity in property_obj.amenities if amenity.name.lower() in wanted]
        kept_keys = {amenity.name.lower() for amenity in kept}
        added = [PropertyAmenity(name=name) for key, name in wanted.items() if key not in kept_keys]
        property_obj.amenities = kept + added
