"""Spatial operations for reverse geocoding."""
from typing import Optional, Sequence

import geopandas as gpd
from shapely.geometry import Point

from geoexport.core.models import AdminUnit, GeoPoint

WGS84 = "EPSG:4326"


def to_point(center: GeoPoint) -> Point:
    """Shapely point (lon, lat) for a document center."""
    return Point(center.lon, center.lat)


def build_polygons_frame(units: Sequence[AdminUnit], crs: str = WGS84) -> gpd.GeoDataFrame:
    """
    Build a GeoDataFrame of admin unit polygons.

    Rows keep the order of ``units`` so that positions returned by
    spatial queries map straight back to the list.

    Args:
        units: Admin units carrying a polygon
        crs: CRS string

    Returns:
        GeoDataFrame with id, name and geometry columns
    """
    return gpd.GeoDataFrame(
        {
            "id": [unit.id for unit in units],
            "name": [unit.name for unit in units],
        },
        geometry=[unit.geometry for unit in units],
        crs=crs,
    )


def first_covering_position(point: Point, polygons_gdf: gpd.GeoDataFrame) -> Optional[int]:
    """
    Position of the first polygon that covers the point.

    A point on the boundary counts as covered. When polygons overlap the
    lowest row position wins, so the result is the same as a linear scan
    in list order.

    Args:
        point: Shapely Point geometry (lon, lat)
        polygons_gdf: GeoDataFrame built by ``build_polygons_frame``

    Returns:
        Row position or None
    """
    if polygons_gdf.empty:
        return None

    positions = polygons_gdf.sindex.query(point, predicate="covered_by")
    if len(positions) == 0:
        return None
    return int(positions.min())
