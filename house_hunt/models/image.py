"""
PropertyImage model holding the ordered image URLs of a listing.
"""

from sqlalchemy import String, Integer, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from house_hunt.database import Base
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from house_hunt.models.property import Property


class PropertyImage(Base):
    """
    PropertyImage model.
    Stores either an uploaded file's public URL or an external image URL.
    """

    __tablename__ = "property_images"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the property this image belongs to"
    )

    url: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="Public URL of the image"
    )

    display_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Position in the listing gallery"
    )

    property_rel: Mapped["Property"] = relationship("Property", back_populates="images")

    def __repr__(self) -> str:
        return f"<PropertyImage(id={self.id}, property_id={self.property_id}, url={self.url})>"
