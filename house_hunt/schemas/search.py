"""
Typed search plan for property listings.
Each filter kind is its own model, discriminated by ``kind``, so the repository
can lower a validated plan into SQL without re-inspecting raw query strings.
"""

from pydantic import BaseModel, Field
from typing import Annotated, List, Literal, Optional, Union
from enum import Enum
import uuid


class TextFilter(BaseModel):
    """Case-insensitive substring match over title or description."""
    kind: Literal["text"] = "text"
    term: str = Field(..., min_length=1)


class CityFilter(BaseModel):
    """Case-insensitive substring match on the city."""
    kind: Literal["city"] = "city"
    name: str = Field(..., min_length=1)


class RangeFilter(BaseModel):
    """Inclusive numeric range; a missing bound is unbounded."""
    kind: Literal["range"] = "range"
    field: Literal["price", "size"]
    minimum: Optional[float] = None
    maximum: Optional[float] = None


class BedroomsFilter(BaseModel):
    """Bedroom count must be one of ``counts``."""
    kind: Literal["bedrooms"] = "bedrooms"
    counts: List[int] = Field(..., min_length=1)


class FlagFilter(BaseModel):
    kind: Literal["flag"] = "flag"
    field: Literal["parking", "balcony"]
    value: bool


class AmenitiesFilter(BaseModel):
    """Every listed amenity must be present (case-insensitive)."""
    kind: Literal["amenities"] = "amenities"
    names: List[str] = Field(..., min_length=1)


class GeoRadiusFilter(BaseModel):
    """Great-circle distance from the point must not exceed ``radius_m``."""
    kind: Literal["geo"] = "geo"
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    radius_m: float = Field(..., gt=0)


class OwnerFilter(BaseModel):
    kind: Literal["owner"] = "owner"
    owner_id: uuid.UUID


SearchFilter = Annotated[
    Union[
        TextFilter,
        CityFilter,
        RangeFilter,
        BedroomsFilter,
        FlagFilter,
        AmenitiesFilter,
        GeoRadiusFilter,
        OwnerFilter,
    ],
    Field(discriminator="kind"),
]


class SortOrder(str, Enum):
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NEWEST = "newest"


class SearchPlan(BaseModel):
    """Filters, sort order and pagination for one listing query."""

    filters: List[SearchFilter] = Field(default_factory=list)
    sort: SortOrder = SortOrder.NEWEST
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def with_filter(self, search_filter: SearchFilter) -> "SearchPlan":
        """Return a copy of the plan with one more filter appended."""
        return self.model_copy(update={"filters": [*self.filters, search_filter]})
