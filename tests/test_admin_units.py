"""Tests for the admin units index."""
from dataclasses import replace
from datetime import datetime

import pytest
from shapely.geometry import Point, Polygon

from geoexport.core.admin_units import AdminUnitsIndex, BoundedNameCache
from geoexport.core.centroids import admin_unit_center
from geoexport.core.models import AdminUnit, AdminUnitType, GeoPoint, ValidBetween


def test_point_inside_locality(admin_units_index):
    """A point inside the Oslo polygon resolves to Oslo."""
    locality = admin_units_index.locality_for_point(Point(10.75, 59.91))

    assert locality is not None
    assert locality.id == "KVE:TopographicPlace:0301"


def test_point_on_boundary_is_covered(admin_units_index):
    """Boundary points count as inside."""
    locality = admin_units_index.locality_for_point(Point(10.5, 59.9))

    assert locality is not None
    assert locality.name == "Oslo"


def test_point_outside_all_localities(admin_units_index):
    assert admin_units_index.locality_for_point(Point(20.0, 65.0)) is None
    assert admin_units_index.country_for_point(Point(20.0, 65.0)).country_ref == "NO"


def test_overlapping_polygons_return_first_in_list_order(admin_units_index):
    """Two counties share a polygon; the first one listed wins."""
    county = admin_units_index.county_for_point(Point(10.75, 59.91))

    assert county.id == "KVE:TopographicPlace:03"


def test_point_inside_locality_outside_every_country():
    """Without counties or countries the locality still resolves and the country lookup is empty."""
    locality = AdminUnit(
        id="L",
        name="Island",
        unit_type=AdminUnitType.LOCALITY,
        geometry=Polygon([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0), (0.0, 0.0)]),
        valid_between=(ValidBetween(datetime(2000, 1, 1)),),
    )
    index = AdminUnitsIndex.build([locality])
    point = Point(0.5, 0.5)

    assert index.locality_for_point(point).id == "L"
    assert index.county_for_point(point) is None
    assert index.country_for_point(point) is None


def test_excluded_country_is_dropped(admin_units_index):
    assert admin_units_index.country_for_point(Point(35.0, 60.0)) is None
    assert admin_units_index.country_for_id("KVE:TopographicPlace:RU") is None
    assert admin_units_index.country_for_id("KVE:TopographicPlace:NO") is not None


def test_lookup_by_id(admin_units_index):
    assert admin_units_index.locality_for_id("KVE:TopographicPlace:3001").name == "Halden"
    assert admin_units_index.county_for_id("KVE:TopographicPlace:30").name == "Viken"
    assert admin_units_index.locality_for_id("KVE:TopographicPlace:03") is None
    assert admin_units_index.locality_for_id(None) is None


def test_name_cache_covers_localities_and_counties(admin_units_index):
    assert admin_units_index.name_for_id("KVE:TopographicPlace:0301") == "Oslo"
    assert admin_units_index.name_for_id("KVE:TopographicPlace:03") == "Oslo fylke"
    assert admin_units_index.name_for_id("KVE:TopographicPlace:NO") is None
    assert admin_units_index.name_for_id("unknown") is None


def test_expired_and_undated_units_are_left_out(sample_polygons):
    """Only units with an open validity interval and a polygon are indexed."""
    units = [
        AdminUnit(
            id="expired",
            name="Expired",
            unit_type=AdminUnitType.LOCALITY,
            geometry=sample_polygons["locality"],
            valid_between=(ValidBetween(datetime(2000, 1, 1), datetime(2001, 1, 1)),),
        ),
        AdminUnit(
            id="undated",
            name="Undated",
            unit_type=AdminUnitType.LOCALITY,
            geometry=sample_polygons["locality"],
        ),
        AdminUnit(
            id="no-geometry",
            name="No geometry",
            unit_type=AdminUnitType.LOCALITY,
            valid_between=(ValidBetween(datetime(2000, 1, 1)),),
        ),
    ]

    index = AdminUnitsIndex.build(units)

    assert index.localities == []
    assert index.locality_for_point(Point(10.75, 59.91)) is None


def test_bounded_name_cache_evicts_least_recently_used():
    cache = BoundedNameCache(max_size=2)
    cache.put("a", "A")
    cache.put("b", "B")
    cache.get("a")
    cache.put("c", "C")

    assert len(cache) == 2
    assert "a" in cache
    assert "b" not in cache
    assert cache.get("c") == "C"


def test_bounded_name_cache_rejects_zero_capacity():
    with pytest.raises(ValueError):
        BoundedNameCache(max_size=0)


def test_admin_unit_center_from_polygon(sample_admin_units):
    """The projected centroid of the Oslo polygon lies inside it."""
    center = admin_unit_center(sample_admin_units[0])

    assert isinstance(center, GeoPoint)
    assert 10.5 <= center.lon <= 11.0
    assert 59.8 <= center.lat <= 60.1


def test_admin_unit_center_prefers_given_centroid(sample_admin_units):
    unit = replace(sample_admin_units[0], centroid=GeoPoint(lat=59.9, lon=10.7))

    assert admin_unit_center(unit) == GeoPoint(lat=59.9, lon=10.7)


def test_admin_unit_without_polygon_has_no_center():
    unit = AdminUnit(id="X", name="Nowhere", unit_type=AdminUnitType.LOCALITY)

    assert admin_unit_center(unit) is None
