"""Load an entity graph (stop places, groups, topographic places) from JSON."""
import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from shapely.errors import GEOSException
from shapely.geometry import shape

from geoexport.core.exceptions import EntityGraphError
from geoexport.core.models import (
    AdminUnit,
    AdminUnitType,
    AlternativeName,
    EntityGraph,
    GeoPoint,
    GroupOfStopPlaces,
    InterchangeWeighting,
    MultilingualString,
    NameType,
    StopPlace,
    StopType,
    ValidBetween,
)
from geoexport.utils.logging import log_structured

# Topographic place types in the input; anything else is ignored
TOPOGRAPHIC_PLACE_TYPES = {
    "municipality": AdminUnitType.LOCALITY,
    "county": AdminUnitType.COUNTY,
    "country": AdminUnitType.COUNTRY,
}


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """ISO-8601 timestamp; zoned values are converted to naive local time."""
    if value is None:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _multilingual(raw: Union[None, str, Dict[str, Any]]) -> Optional[MultilingualString]:
    if raw is None:
        return None
    if isinstance(raw, str):
        return MultilingualString(raw)
    if raw.get("value") is None:
        return None
    return MultilingualString(raw["value"], raw.get("lang"))


def _alternative_names(raw: List[Dict[str, Any]]) -> Tuple[AlternativeName, ...]:
    names = []
    for entry in raw or []:
        name = _multilingual(entry.get("name"))
        if name is None:
            continue
        names.append(AlternativeName(name, NameType(entry.get("nameType", NameType.TRANSLATION.value))))
    return tuple(names)


def _point(raw: Optional[Dict[str, Any]]) -> Optional[GeoPoint]:
    if raw is None:
        return None
    return GeoPoint(lat=float(raw["lat"]), lon=float(raw["lon"]))


def _valid_between(raw: List[Dict[str, Any]]) -> Tuple[ValidBetween, ...]:
    return tuple(
        ValidBetween(parse_datetime(entry.get("fromDate")), parse_datetime(entry.get("toDate")))
        for entry in raw or []
    )


def parse_stop_place(raw: Dict[str, Any]) -> StopPlace:
    stop_place_type = raw.get("stopPlaceType")
    weighting = raw.get("weighting")
    return StopPlace(
        id=raw["id"],
        name=_multilingual(raw.get("name")),
        alternative_names=_alternative_names(raw.get("alternativeNames")),
        centroid=_point(raw.get("centroid")),
        parent_ref=raw.get("parentSiteRef"),
        quays=tuple(raw.get("quays") or ()),
        stop_place_type=StopType(stop_place_type) if stop_place_type else None,
        transport_mode=raw.get("transportMode"),
        submodes=dict(raw.get("submodes") or {}),
        tariff_zone_refs=tuple(raw.get("tariffZoneRefs") or ()),
        topographic_place_ref=raw.get("topographicPlaceRef"),
        weighting=InterchangeWeighting(weighting) if weighting else None,
        valid_between=_valid_between(raw.get("validBetween")),
        key_values=dict(raw.get("keyValues") or {}),
        description=_multilingual(raw.get("description")),
    )


def parse_group_of_stop_places(raw: Dict[str, Any]) -> GroupOfStopPlaces:
    return GroupOfStopPlaces(
        id=raw["id"],
        name=_multilingual(raw.get("name")),
        alternative_names=_alternative_names(raw.get("alternativeNames")),
        centroid=_point(raw.get("centroid")),
        description=_multilingual(raw.get("description")),
        members=tuple(raw["members"]) if raw.get("members") is not None else None,
        valid_between=_valid_between(raw.get("validBetween")),
    )


def parse_topographic_place(raw: Dict[str, Any]) -> Optional[AdminUnit]:
    """Admin unit for municipalities, counties and countries; None for other types."""
    unit_type = TOPOGRAPHIC_PLACE_TYPES.get(raw.get("topographicPlaceType"))
    if unit_type is None:
        return None

    name = _multilingual(raw.get("name"))
    polygon = raw.get("polygon")
    return AdminUnit(
        id=raw["id"],
        name=name.value if name else None,
        unit_type=unit_type,
        geometry=shape(polygon) if polygon else None,
        parent_id=raw.get("parentTopographicPlaceRef"),
        country_ref=raw.get("countryRef"),
        valid_between=_valid_between(raw.get("validBetween")),
        alternative_names=_alternative_names(raw.get("alternativeNames")),
        centroid=_point(raw.get("centroid")),
    )


def parse_entity_graph(data: Dict[str, Any]) -> EntityGraph:
    """
    Build an EntityGraph from decoded JSON.

    Args:
        data: Mapping with stopPlaces, groupsOfStopPlaces and topographicPlaces lists

    Returns:
        EntityGraph

    Raises:
        EntityGraphError: on missing keys or values outside the known enums
    """
    if not isinstance(data, dict):
        raise EntityGraphError("Entity graph must be a JSON object")

    try:
        stop_places = tuple(parse_stop_place(raw) for raw in data.get("stopPlaces", []))
        groups = tuple(parse_group_of_stop_places(raw) for raw in data.get("groupsOfStopPlaces", []))
        admin_units = tuple(
            unit for unit in (parse_topographic_place(raw) for raw in data.get("topographicPlaces", []))
            if unit is not None
        )
    except (KeyError, TypeError, ValueError, AttributeError, GEOSException) as e:
        raise EntityGraphError(f"Malformed entity graph: {e}") from e

    log_structured(
        "info",
        "Entity graph loaded",
        stop_places=len(stop_places),
        groups_of_stop_places=len(groups),
        admin_units=len(admin_units),
    )
    return EntityGraph(stop_places, groups, admin_units)


def load_entity_graph(payload: bytes) -> EntityGraph:
    """Decode a UTF-8 JSON payload into an EntityGraph."""
    try:
        data = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise EntityGraphError(f"Entity graph is not valid JSON: {e}") from e
    return parse_entity_graph(data)
