"""Pytest configuration and fixtures."""
from datetime import datetime

import pytest
from shapely.geometry import Polygon

from geoexport.core.admin_units import AdminUnitsIndex
from geoexport.core.models import (
    AdminUnit,
    AdminUnitType,
    AlternativeName,
    GeoPoint,
    MultilingualString,
    NameType,
    StopPlace,
    StopType,
    ValidBetween,
)

OPEN_INTERVAL = (ValidBetween(from_date=datetime(2000, 1, 1)),)


@pytest.fixture
def sample_polygons():
    """Nested test polygons around Oslo, plus a second country to the east."""
    return {
        "country": Polygon([(4.0, 57.0), (31.0, 57.0), (31.0, 71.0), (4.0, 71.0), (4.0, 57.0)]),
        "other_country": Polygon([(31.0, 57.0), (40.0, 57.0), (40.0, 71.0), (31.0, 71.0), (31.0, 57.0)]),
        "county": Polygon([(10.0, 59.0), (11.5, 59.0), (11.5, 60.5), (10.0, 60.5), (10.0, 59.0)]),
        "locality": Polygon([(10.5, 59.8), (11.0, 59.8), (11.0, 60.1), (10.5, 60.1), (10.5, 59.8)]),
        "other_locality": Polygon([(10.0, 59.0), (10.4, 59.0), (10.4, 59.4), (10.0, 59.4), (10.0, 59.0)]),
    }


@pytest.fixture
def sample_admin_units(sample_polygons):
    """Localities, a county and countries with open validity intervals."""
    return [
        AdminUnit(
            id="KVE:TopographicPlace:0301",
            name="Oslo",
            unit_type=AdminUnitType.LOCALITY,
            geometry=sample_polygons["locality"],
            parent_id="KVE:TopographicPlace:03",
            country_ref="NO",
            valid_between=OPEN_INTERVAL,
        ),
        AdminUnit(
            id="KVE:TopographicPlace:3001",
            name="Halden",
            unit_type=AdminUnitType.LOCALITY,
            geometry=sample_polygons["other_locality"],
            parent_id="KVE:TopographicPlace:30",
            country_ref="NO",
            valid_between=OPEN_INTERVAL,
        ),
        AdminUnit(
            id="KVE:TopographicPlace:03",
            name="Oslo fylke",
            unit_type=AdminUnitType.COUNTY,
            geometry=sample_polygons["county"],
            country_ref="NO",
            valid_between=OPEN_INTERVAL,
        ),
        AdminUnit(
            id="KVE:TopographicPlace:30",
            name="Viken",
            unit_type=AdminUnitType.COUNTY,
            geometry=sample_polygons["county"],
            country_ref="NO",
            valid_between=OPEN_INTERVAL,
        ),
        AdminUnit(
            id="KVE:TopographicPlace:NO",
            name="Norge",
            unit_type=AdminUnitType.COUNTRY,
            geometry=sample_polygons["country"],
            country_ref="NO",
            valid_between=OPEN_INTERVAL,
        ),
        AdminUnit(
            id="KVE:TopographicPlace:RU",
            name="Russland",
            unit_type=AdminUnitType.COUNTRY,
            geometry=sample_polygons["other_country"],
            country_ref="RU",
            valid_between=OPEN_INTERVAL,
        ),
    ]


@pytest.fixture
def admin_units_index(sample_admin_units):
    return AdminUnitsIndex.build(sample_admin_units, cache_max_size=100, excluded_country_code="RU")


@pytest.fixture
def oslo_s():
    """A rail station with a translated alternative name and no parent."""
    return StopPlace(
        id="NSR:StopPlace:337",
        name=MultilingualString("Oslo S", "nor"),
        alternative_names=(
            AlternativeName(MultilingualString("Oslo Sentralstasjon", "nor"), NameType.TRANSLATION),
        ),
        centroid=GeoPoint(lat=59.910, lon=10.753),
        quays=("NSR:Quay:1", "NSR:Quay:2"),
        stop_place_type=StopType.RAIL_STATION,
        transport_mode="rail",
        submodes={"rail": "regionalRail"},
        tariff_zone_refs=("RUT:TariffZone:1",),
        topographic_place_ref="KVE:TopographicPlace:0301",
    )


@pytest.fixture
def multimodal_places():
    """A parent stop place with a bus and a tram child."""
    parent = StopPlace(
        id="NSR:StopPlace:1",
        name=MultilingualString("Jernbanetorget"),
        alternative_names=(AlternativeName(MultilingualString("JBT"), NameType.LABEL),),
        centroid=GeoPoint(lat=59.911, lon=10.750),
        key_values={"IS_PARENT_STOP_PLACE": "true"},
    )
    bus = StopPlace(
        id="NSR:StopPlace:2",
        name=MultilingualString("Jernbanetorget buss"),
        centroid=GeoPoint(lat=59.911, lon=10.751),
        parent_ref="NSR:StopPlace:1",
        quays=("NSR:Quay:10",),
        stop_place_type=StopType.ONSTREET_BUS,
        transport_mode="bus",
        submodes={"bus": "localBus"},
    )
    tram = StopPlace(
        id="NSR:StopPlace:3",
        name=MultilingualString("Jernbanetorget trikk"),
        alternative_names=(AlternativeName(MultilingualString("Central Tram", "eng"), NameType.TRANSLATION),),
        centroid=GeoPoint(lat=59.912, lon=10.752),
        parent_ref="NSR:StopPlace:1",
        quays=("NSR:Quay:20",),
        stop_place_type=StopType.ONSTREET_TRAM,
        transport_mode="tram",
    )
    return [parent, bus, tram]
