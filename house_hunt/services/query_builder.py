"""
Query builder turning raw listing query parameters into a SearchPlan.

Parsing is lenient: a parameter that is missing, empty or malformed simply
contributes no filter, and pagination falls back to its defaults.
"""

from typing import Any, List, Mapping, Optional
from house_hunt.config import settings
from house_hunt.schemas.search import (
    AmenitiesFilter,
    BedroomsFilter,
    CityFilter,
    FlagFilter,
    GeoRadiusFilter,
    RangeFilter,
    SearchPlan,
    SortOrder,
    TextFilter,
)
import math
import logging

logger = logging.getLogger(__name__)

TRUE_VALUES = {"true", "1", "yes"}
FALSE_VALUES = {"false", "0", "no"}

# Largest row offset a signed 64-bit database integer can hold
MAX_OFFSET = 2 ** 63 - 1


def parse_bool(value: Any) -> Optional[bool]:
    """
    Parse a boolean query value.

    Args:
        value: Raw value (string, bool or None)

    Returns:
        True for true/1/yes, False for false/0/no, None otherwise
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    normalized = str(value).strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    return None


def parse_float(value: Any) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def split_csv(value: Any) -> List[str]:
    """Split a comma-separated value into trimmed, non-empty tokens."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        tokens = [str(item) for item in value]
    else:
        tokens = str(value).split(",")
    return [token.strip() for token in tokens if token and token.strip()]


def parse_sort(value: Any) -> SortOrder:
    try:
        return SortOrder(str(value).strip().lower())
    except ValueError:
        return SortOrder.NEWEST


def parse_pagination(
    page: Any,
    limit: Any,
    default_limit: Optional[int] = None,
    max_limit: Optional[int] = None
) -> tuple:
    """
    Resolve page and limit, falling back to defaults for non-positive or non-numeric values.

    A page whose row offset would not fit in a 64-bit integer falls back to 1.

    Args:
        page: Raw page value
        limit: Raw limit value
        default_limit: Limit used when none is given (settings.default_page_size)
        max_limit: Upper bound for limit (settings.max_page_size)

    Returns:
        Tuple of (page, limit)
    """
    default_limit = default_limit or settings.default_page_size
    max_limit = max_limit or settings.max_page_size

    parsed_page = parse_int(page)
    parsed_limit = parse_int(limit)

    if parsed_page is None or parsed_page < 1:
        parsed_page = 1
    if parsed_limit is None or parsed_limit < 1:
        parsed_limit = default_limit

    parsed_limit = min(parsed_limit, max_limit)
    if (parsed_page - 1) * parsed_limit > MAX_OFFSET:
        parsed_page = 1

    return parsed_page, parsed_limit


def _range_filter(field: str, low: Any, high: Any) -> Optional[RangeFilter]:
    minimum = parse_float(low)
    maximum = parse_float(high)
    if minimum is None and maximum is None:
        return None
    return RangeFilter(field=field, minimum=minimum, maximum=maximum)


def _geo_filter(lat: Any, lng: Any, radius: Any) -> Optional[GeoRadiusFilter]:
    latitude = parse_float(lat)
    longitude = parse_float(lng)
    radius_m = parse_float(radius)
    if latitude is None or longitude is None or radius_m is None:
        return None
    if radius_m <= 0 or not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        return None
    return GeoRadiusFilter(latitude=latitude, longitude=longitude, radius_m=radius_m)


def build_search_plan(
    params: Mapping[str, Any],
    default_limit: Optional[int] = None,
    max_limit: Optional[int] = None
) -> SearchPlan:
    """
    Build a search plan from listing query parameters.

    Recognized keys: q, city, minPrice, maxPrice, minSize, maxSize, bedrooms,
    parking, balcony, amenities, lat, lng, radius, sort, page, limit.

    Args:
        params: Query parameter mapping
        default_limit: Page size used when ``limit`` is absent or invalid
        max_limit: Largest page size honoured

    Returns:
        Validated SearchPlan
    """
    filters = []

    text = (params.get("q") or "").strip()
    if text:
        filters.append(TextFilter(term=text))

    city = (params.get("city") or "").strip()
    if city:
        filters.append(CityFilter(name=city))

    for field, low_key, high_key in (("price", "minPrice", "maxPrice"), ("size", "minSize", "maxSize")):
        range_filter = _range_filter(field, params.get(low_key), params.get(high_key))
        if range_filter:
            filters.append(range_filter)

    counts = []
    for token in split_csv(params.get("bedrooms")):
        count = parse_int(token)
        if count is not None and count not in counts:
            counts.append(count)
    if counts:
        filters.append(BedroomsFilter(counts=counts))

    for field in ("parking", "balcony"):
        flag = parse_bool(params.get(field))
        if flag is not None:
            filters.append(FlagFilter(field=field, value=flag))

    amenities = []
    for name in split_csv(params.get("amenities")):
        if name.lower() not in amenities:
            amenities.append(name.lower())
    if amenities:
        filters.append(AmenitiesFilter(names=amenities))

    geo = _geo_filter(params.get("lat"), params.get("lng"), params.get("radius"))
    if geo:
        filters.append(geo)

    page, limit = parse_pagination(params.get("page"), params.get("limit"), default_limit, max_limit)
    plan = SearchPlan(filters=filters, sort=parse_sort(params.get("sort")), page=page, limit=limit)

    logger.debug(f"Built search plan with {len(plan.filters)} filters, sort={plan.sort.value}, page={plan.page}, limit={plan.limit}")
    return plan
