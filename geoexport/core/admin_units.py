"""Reverse geocoding index over administrative units."""
import threading
from collections import OrderedDict
from datetime import datetime
from typing import Iterable, List, Optional

from shapely.geometry import Point

from geoexport.core.config import ADMIN_UNITS_CACHE_MAX_SIZE, EXCLUDED_COUNTRY_CODE
from geoexport.core.models import AdminUnit, AdminUnitType
from geoexport.core.spatial import build_polygons_frame, first_covering_position
from geoexport.utils.logging import log_structured


class BoundedNameCache:
    """Capacity-bounded id -> name map with least-recently-used eviction."""

    def __init__(self, max_size: int):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._entries: "OrderedDict[str, Optional[str]]" = OrderedDict()
        self._lock = threading.Lock()

    def put(self, key: str, value: Optional[str]):
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            return self._entries[key]

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class AdminUnitsIndex:
    """
    Localities, counties and countries with polygons, queried by id or point.

    Built once per run and read-only afterwards. Point queries return the
    first unit in list order whose polygon covers the point.
    """

    def __init__(
        self,
        localities: List[AdminUnit],
        counties: List[AdminUnit],
        countries: List[AdminUnit],
        cache_max_size: int = ADMIN_UNITS_CACHE_MAX_SIZE
    ):
        self.localities = list(localities)
        self.counties = list(counties)
        self.countries = list(countries)

        self._name_cache = BoundedNameCache(cache_max_size)
        for unit in self.localities + self.counties:
            self._name_cache.put(unit.id, unit.name)

        self._localities_gdf = build_polygons_frame(self.localities)
        self._counties_gdf = build_polygons_frame(self.counties)
        self._countries_gdf = build_polygons_frame(self.countries)
        # Spatial indexes are built lazily; build them now so worker threads only read
        for gdf in (self._localities_gdf, self._counties_gdf, self._countries_gdf):
            if not gdf.empty:
                gdf.sindex

    @classmethod
    def build(
        cls,
        admin_units: Iterable[AdminUnit],
        cache_max_size: int = ADMIN_UNITS_CACHE_MAX_SIZE,
        excluded_country_code: Optional[str] = EXCLUDED_COUNTRY_CODE,
        now: Optional[datetime] = None
    ) -> "AdminUnitsIndex":
        """
        Build the index from all admin units of the entity graph.

        Keeps units that are current and carry a polygon. Countries whose
        country reference equals ``excluded_country_code`` are dropped.

        Args:
            admin_units: All administrative units
            cache_max_size: Capacity of the id -> name cache
            excluded_country_code: Country code to leave out of the country list
            now: Reference time for the validity check

        Returns:
            AdminUnitsIndex
        """
        usable = [
            unit for unit in admin_units
            if unit.geometry is not None and not unit.geometry.is_empty and unit.is_current(now)
        ]
        localities = [unit for unit in usable if unit.unit_type == AdminUnitType.LOCALITY]
        counties = [unit for unit in usable if unit.unit_type == AdminUnitType.COUNTY]
        countries = [
            unit for unit in usable
            if unit.unit_type == AdminUnitType.COUNTRY
            and not (excluded_country_code and unit.country_ref == excluded_country_code)
        ]

        log_structured(
            "info",
            "Built admin units index",
            localities=len(localities),
            counties=len(counties),
            countries=len(countries)
        )
        return cls(localities, counties, countries, cache_max_size=cache_max_size)

    def name_for_id(self, unit_id: Optional[str]) -> Optional[str]:
        """Name of a locality or county from the bounded cache, None when absent."""
        if unit_id is None:
            return None
        return self._name_cache.get(unit_id)

    def locality_for_id(self, unit_id: Optional[str]) -> Optional[AdminUnit]:
        return _first_with_id(self.localities, unit_id)

    def county_for_id(self, unit_id: Optional[str]) -> Optional[AdminUnit]:
        return _first_with_id(self.counties, unit_id)

    def country_for_id(self, unit_id: Optional[str]) -> Optional[AdminUnit]:
        return _first_with_id(self.countries, unit_id)

    def locality_for_point(self, point: Point) -> Optional[AdminUnit]:
        position = first_covering_position(point, self._localities_gdf)
        return self.localities[position] if position is not None else None

    def county_for_point(self, point: Point) -> Optional[AdminUnit]:
        position = first_covering_position(point, self._counties_gdf)
        return self.counties[position] if position is not None else None

    def country_for_point(self, point: Point) -> Optional[AdminUnit]:
        position = first_covering_position(point, self._countries_gdf)
        return self.countries[position] if position is not None else None


def _first_with_id(units: List[AdminUnit], unit_id: Optional[str]) -> Optional[AdminUnit]:
    if unit_id is None:
        return None
    for unit in units:
        if unit.id == unit_id:
            return unit
    return None
