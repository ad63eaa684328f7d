"""Center points for admin unit documents."""
from typing import Optional

from pyproj import Transformer
from shapely.ops import transform

from geoexport.core.config import CENTROID_CRS
from geoexport.core.models import AdminUnit, GeoPoint
from geoexport.core.spatial import WGS84


def admin_unit_center(unit: AdminUnit, projected_crs: Optional[str] = None) -> Optional[GeoPoint]:
    """
    Center of an admin unit.

    A centroid supplied with the unit wins. Otherwise the polygon centroid
    is taken in ``projected_crs`` (degrees distort area at high latitudes)
    and converted back to WGS84.

    Args:
        unit: Admin unit with a WGS84 polygon
        projected_crs: Metric CRS for the computation (default from config)

    Returns:
        GeoPoint, or None when the unit has neither centroid nor polygon
    """
    if unit.centroid is not None:
        return unit.centroid
    if unit.geometry is None or unit.geometry.is_empty:
        return None

    projected_crs = projected_crs or CENTROID_CRS
    to_projected = Transformer.from_crs(WGS84, projected_crs, always_xy=True)
    to_wgs84 = Transformer.from_crs(projected_crs, WGS84, always_xy=True)

    centroid = transform(to_projected.transform, unit.geometry).centroid
    lon, lat = to_wgs84.transform(centroid.x, centroid.y)
    return GeoPoint(lat=lat, lon=lon)
