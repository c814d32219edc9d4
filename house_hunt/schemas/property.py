"""
Pydantic schemas for property requests and responses.
Handles property create/update payloads, occupancy changes and listing pages.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Any
from datetime import datetime
from decimal import Decimal
import math
from house_hunt.config import settings
from house_hunt.models.property import OccupancyStatus
from house_hunt.schemas.user import OwnerSummary


def _split_amenities(v: Any) -> Any:
    """Accept amenities as a list or a comma-separated string."""
    if v is None:
        return v
    if isinstance(v, str):
        v = v.split(",")
    if isinstance(v, (list, tuple)):
        seen = set()
        cleaned = []
        for item in v:
            name = str(item).strip()
            if name and name.lower() not in seen:
                seen.add(name.lower())
                cleaned.append(name)
        return cleaned
    return v


def _strip_required(v: Optional[str], label: str) -> Optional[str]:
    if v is None:
        return v
    if not v.strip():
        raise ValueError(f"{label} cannot be empty")
    return v.strip()


AMENITY_NAME_MAX_LENGTH = 50
IMAGE_URL_MAX_LENGTH = 500


def _check_amenity_names(v: Optional[List[str]]) -> Optional[List[str]]:
    for name in v or []:
        if len(name) > AMENITY_NAME_MAX_LENGTH:
            raise ValueError(f"Amenity '{name[:20]}...' exceeds {AMENITY_NAME_MAX_LENGTH} characters")
    return v


def _check_image_urls(v: Optional[List[str]]) -> Optional[List[str]]:
    """Image URLs are absolute http(s) links or paths under the uploads prefix."""
    if v is None:
        return v
    upload_prefix = settings.upload_url_prefix.rstrip("/") + "/"
    cleaned = []
    for url in v:
        url = url.strip()
        if not url:
            raise ValueError("Image URL cannot be empty")
        if len(url) > IMAGE_URL_MAX_LENGTH:
            raise ValueError(f"Image URL exceeds {IMAGE_URL_MAX_LENGTH} characters")
        if not url.startswith(("http://", "https://", upload_prefix)):
            raise ValueError(f"Image URL must be http(s) or start with {upload_prefix}")
        cleaned.append(url)
    return cleaned


class PropertyCreate(BaseModel):
    """Schema for creating a new property."""

    title: str = Field(..., min_length=5, max_length=200, examples=["Sunny 2BHK near the metro"])
    description: str = Field(..., min_length=20, max_length=2000)
    address: str = Field(..., min_length=3, max_length=255)
    city: str = Field(..., min_length=2, max_length=100, examples=["Pune"])
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    price: Decimal = Field(..., gt=0, le=Decimal("999999999.99"), description="Monthly rent")
    size: int = Field(..., gt=0, le=1000000, description="Area in square feet")
    bedrooms: int = Field(..., ge=1, le=50)
    parking: bool = False
    balcony: bool = False
    amenities: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list, description="Image URLs in display order")
    occupancy_status: OccupancyStatus = OccupancyStatus.AVAILABLE
    is_published: bool = True

    @field_validator("title", "description", "address", "city")
    @classmethod
    def strip_text(cls, v, info):
        return _strip_required(v, info.field_name.capitalize())

    @field_validator("amenities", mode="before")
    @classmethod
    def split_amenities(cls, v):
        return _split_amenities(v) or []

    @field_validator("amenities")
    @classmethod
    def validate_amenity_names(cls, v):
        return _check_amenity_names(v)

    @field_validator("images")
    @classmethod
    def validate_image_urls(cls, v):
        return _check_image_urls(v)

    @model_validator(mode="after")
    def validate_coordinates(self):
        """Both coordinates are provided together or both are omitted."""
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Both latitude and longitude must be provided together")
        return self


class PropertyUpdate(BaseModel):
    """Schema for updating an existing property; omitted fields are kept."""

    title: Optional[str] = Field(None, min_length=5, max_length=200)
    description: Optional[str] = Field(None, min_length=20, max_length=2000)
    address: Optional[str] = Field(None, min_length=3, max_length=255)
    city: Optional[str] = Field(None, min_length=2, max_length=100)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    price: Optional[Decimal] = Field(None, gt=0, le=Decimal("999999999.99"))
    size: Optional[int] = Field(None, gt=0, le=1000000)
    bedrooms: Optional[int] = Field(None, ge=1, le=50)
    parking: Optional[bool] = None
    balcony: Optional[bool] = None
    amenities: Optional[List[str]] = None
    images: Optional[List[str]] = None

    @field_validator("title", "description", "address", "city")
    @classmethod
    def strip_text(cls, v, info):
        return _strip_required(v, info.field_name.capitalize())

    @field_validator("amenities", mode="before")
    @classmethod
    def split_amenities(cls, v):
        return _split_amenities(v)

    @field_validator("amenities")
    @classmethod
    def validate_amenity_names(cls, v):
        return _check_amenity_names(v)

    @field_validator("images")
    @classmethod
    def validate_image_urls(cls, v):
        return _check_image_urls(v)

    @model_validator(mode="after")
    def validate_coordinates(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Both latitude and longitude must be provided together")
        return self


class OccupancyUpdate(BaseModel):
    """Body of PUT /properties/{id}/occupancy."""

    occupancy_status: OccupancyStatus


class LocationResponse(BaseModel):
    address: str
    city: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class PropertyResponse(BaseModel):
    """Property response schema."""

    id: str
    title: str
    description: str
    owner_id: str
    owner: Optional[OwnerSummary] = None
    location: LocationResponse
    price: float
    size: int
    bedrooms: int
    parking: bool
    balcony: bool
    amenities: List[str]
    images: List[str]
    is_published: bool
    occupancy_status: OccupancyStatus
    created_at: datetime
    updated_at: datetime


class PropertyListResponse(BaseModel):
    """Paginated property page."""

    items: List[PropertyResponse]
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def from_page(cls, properties: List[Any], page: int, limit: int, total: int) -> "PropertyListResponse":
        """Build a page from Property models; total_pages is 0 for an empty result."""
        return cls(
            items=[PropertyResponse.model_validate(prop.to_dict()) for prop in properties],
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0
        )
