"""
Property model for rental listings.
Handles listing data with location, pricing, amenities and moderation flags.
"""

from sqlalchemy import String, Text, Integer, Numeric, Float, Boolean, Enum as SQLEnum, Index, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from house_hunt.database import Base
from decimal import Decimal
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from house_hunt.models.user import User
    from house_hunt.models.image import PropertyImage


class OccupancyStatus(str, enum.Enum):
    """Whether a listing can currently be rented."""
    AVAILABLE = "available"
    OCCUPIED = "occupied"


class Property(Base):
    """
    Property model for managing rental listings.
    Properties are never hard-deleted; moderation flips is_published / is_deleted.
    """

    __tablename__ = "properties"

    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        index=True,
        comment="Listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Detailed listing description"
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the owner who listed this property"
    )

    # Location
    address: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Street address"
    )

    city: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
        comment="City used by the city filter"
    )

    latitude: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Latitude in degrees"
    )

    longitude: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Longitude in degrees"
    )

    # Specifications
    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        index=True,
        comment="Monthly rent"
    )

    size: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Floor area in square feet"
    )

    bedrooms: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        comment="Number of bedrooms"
    )

    parking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    balcony: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Moderation and availability
    is_published: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
        comment="Visible in public search when true"
    )

    occupancy_status: Mapped[OccupancyStatus] = mapped_column(
        SQLEnum(OccupancyStatus),
        nullable=False,
        default=OccupancyStatus.AVAILABLE,
        index=True,
        comment="available or occupied"
    )

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        comment="Soft delete flag"
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", lazy="selectin")

    amenities: Mapped[List["PropertyAmenity"]] = relationship(
        "PropertyAmenity",
        back_populates="property_rel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PropertyAmenity.name"
    )

    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property_rel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PropertyImage.display_order"
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, title={self.title[:30]}..., price={self.price})>"

    @property
    def amenity_names(self) -> List[str]:
        return [amenity.name for amenity in self.amenities]

    @property
    def image_urls(self) -> List[str]:
        return [image.url for image in self.images]

    def to_dict(self, include_owner: bool = True) -> dict:
        """
        Convert property to dictionary.

        Args:
            include_owner: Whether to embed the owner's public details

        Returns:
            Dictionary representation of property
        """
        result = {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "owner_id": str(self.owner_id),
            "location": {
                "address": self.address,
                "city": self.city,
                "latitude": self.latitude,
                "longitude": self.longitude,
            },
            "price": float(self.price),
            "size": self.size,
            "bedrooms": self.bedrooms,
            "parking": self.parking,
            "balcony": self.balcony,
            "amenities": self.amenity_names,
            "images": self.image_urls,
            "is_published": self.is_published,
            "occupancy_status": self.occupancy_status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

        if include_owner and self.owner is not None:
            result["owner"] = self.owner.to_public_dict()

        return result


class PropertyAmenity(Base):
    """A single named amenity attached to a property."""

    __tablename__ = "property_amenities"
    __table_args__ = (
        UniqueConstraint("property_id", "name", name="uq_property_amenity_name"),
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    property_rel: Mapped["Property"] = relationship("Property", back_populates="amenities")

    def __repr__(self) -> str:
        return f"<PropertyAmenity(property_id={self.property_id}, name={self.name})>"


# Composite index for the public visibility predicate
visibility_index = Index(
    'idx_properties_visibility',
    Property.is_deleted,
    Property.is_published,
    Property.occupancy_status
)

# Composite index for owner dashboards and moderation cascades
owner_listing_index = Index(
    'idx_properties_owner_deleted',
    Property.owner_id,
    Property.is_deleted
)

coordinates_index = Index(
    'idx_properties_coordinates',
    Property.latitude,
    Property.longitude
)
