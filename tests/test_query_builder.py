"""
Tests for query parameter parsing and search plan construction.
"""

import pytest

from house_hunt.schemas.search import (
    AmenitiesFilter,
    BedroomsFilter,
    CityFilter,
    FlagFilter,
    GeoRadiusFilter,
    RangeFilter,
    SortOrder,
    TextFilter,
)
from house_hunt.services.query_builder import (
    build_search_plan,
    parse_bool,
    parse_pagination,
    parse_sort,
)


def filters_of(plan, kind):
    return [f for f in plan.filters if isinstance(f, kind)]


class TestParsers:
    """Scalar parsing rules."""

    @pytest.mark.parametrize("raw", ["true", "TRUE", "1", "yes"])
    def test_parse_bool_true(self, raw):
        assert parse_bool(raw) is True

    @pytest.mark.parametrize("raw", ["false", "0", "No"])
    def test_parse_bool_false(self, raw):
        assert parse_bool(raw) is False

    @pytest.mark.parametrize("raw", [None, "", "maybe", "2"])
    def test_parse_bool_unrecognized(self, raw):
        assert parse_bool(raw) is None

    def test_parse_sort_defaults_to_newest(self):
        assert parse_sort(None) == SortOrder.NEWEST
        assert parse_sort("cheapest") == SortOrder.NEWEST
        assert parse_sort("price_desc") == SortOrder.PRICE_DESC

    def test_parse_pagination_defaults(self):
        assert parse_pagination(None, None, default_limit=10, max_limit=100) == (1, 10)

    def test_parse_pagination_invalid_values_fall_back(self):
        assert parse_pagination("-3", "abc", default_limit=10, max_limit=100) == (1, 10)
        assert parse_pagination("0", "0", default_limit=10, max_limit=100) == (1, 10)

    def test_parse_pagination_clamps_limit(self):
        assert parse_pagination("2", "500", default_limit=10, max_limit=100) == (2, 100)

    def test_parse_pagination_oversized_page_falls_back(self):
        assert parse_pagination("99999999999999999999", None, default_limit=10, max_limit=100) == (1, 10)
        assert parse_pagination("2000000000000000000", "100", default_limit=10, max_limit=100) == (1, 100)

    def test_parse_pagination_keeps_largest_representable_page(self):
        page = (2 ** 63 - 1) // 100 + 1
        assert parse_pagination(str(page), "100", default_limit=10, max_limit=100) == (page, 100)


class TestBuildSearchPlan:
    """Query parameters to typed filters."""

    def test_empty_params(self):
        plan = build_search_plan({}, default_limit=10, max_limit=100)

        assert plan.filters == []
        assert plan.sort == SortOrder.NEWEST
        assert plan.page == 1
        assert plan.limit == 10
        assert plan.skip == 0

    def test_text_and_city_are_trimmed(self):
        plan = build_search_plan({"q": "  garden ", "city": " Pune "})

        assert filters_of(plan, TextFilter)[0].term == "garden"
        assert filters_of(plan, CityFilter)[0].name == "Pune"

    def test_blank_text_is_ignored(self):
        plan = build_search_plan({"q": "   ", "city": ""})
        assert plan.filters == []

    def test_price_and_size_ranges(self):
        plan = build_search_plan({"minPrice": "500", "maxPrice": "1500", "minSize": "300"})

        ranges = {f.field: f for f in filters_of(plan, RangeFilter)}
        assert ranges["price"].minimum == 500
        assert ranges["price"].maximum == 1500
        assert ranges["size"].minimum == 300
        assert ranges["size"].maximum is None

    def test_invalid_numbers_are_dropped(self):
        plan = build_search_plan({"minPrice": "cheap", "maxPrice": "nan", "bedrooms": "two"})
        assert plan.filters == []

    def test_bedrooms_list_is_deduplicated(self):
        plan = build_search_plan({"bedrooms": "2, 3,x,2"})

        bedrooms = filters_of(plan, BedroomsFilter)[0]
        assert bedrooms.counts == [2, 3]

    def test_boolean_flags_use_strict_parsing(self):
        plan = build_search_plan({"parking": "true", "balcony": "sometimes"})

        flags = filters_of(plan, FlagFilter)
        assert len(flags) == 1
        assert flags[0].field == "parking"
        assert flags[0].value is True

    def test_false_flag_is_a_filter(self):
        plan = build_search_plan({"balcony": "0"})

        flags = filters_of(plan, FlagFilter)
        assert flags[0].field == "balcony"
        assert flags[0].value is False

    def test_amenities_are_lowercased_and_unique(self):
        plan = build_search_plan({"amenities": "Pool, gym,POOL,,"})

        assert filters_of(plan, AmenitiesFilter)[0].names == ["pool", "gym"]

    def test_geo_filter_requires_all_three_values(self):
        assert filters_of(build_search_plan({"lat": "18.5", "lng": "73.8"}), GeoRadiusFilter) == []

        plan = build_search_plan({"lat": "18.5", "lng": "73.8", "radius": "2000"})
        geo = filters_of(plan, GeoRadiusFilter)[0]
        assert geo.latitude == 18.5
        assert geo.longitude == 73.8
        assert geo.radius_m == 2000

    @pytest.mark.parametrize("params", [
        {"lat": "95", "lng": "73.8", "radius": "1000"},
        {"lat": "18.5", "lng": "200", "radius": "1000"},
        {"lat": "18.5", "lng": "73.8", "radius": "0"},
        {"lat": "18.5", "lng": "73.8", "radius": "-5"},
    ])
    def test_out_of_range_geo_is_dropped(self, params):
        assert filters_of(build_search_plan(params), GeoRadiusFilter) == []

    def test_pagination_and_sort(self):
        plan = build_search_plan({"page": "2", "limit": "10", "sort": "price_asc"})

        assert plan.page == 2
        assert plan.limit == 10
        assert plan.skip == 10
        assert plan.sort == SortOrder.PRICE_ASC
