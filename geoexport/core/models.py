"""Data models for the entity graph and the search documents built from it."""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple

from shapely.geometry.base import BaseGeometry


class NameType(Enum):
    """NeTEx alternative name types."""
    TRANSLATION = "translation"
    LABEL = "label"
    ALIAS = "alias"
    COPY = "copy"
    OTHER = "other"


class StopType(Enum):
    """NeTEx stop place types."""
    ONSTREET_BUS = "onstreetBus"
    ONSTREET_TRAM = "onstreetTram"
    AIRPORT = "airport"
    RAIL_STATION = "railStation"
    METRO_STATION = "metroStation"
    BUS_STATION = "busStation"
    COACH_STATION = "coachStation"
    TRAM_STATION = "tramStation"
    HARBOUR_PORT = "harbourPort"
    FERRY_PORT = "ferryPort"
    FERRY_STOP = "ferryStop"
    LIFT_STATION = "liftStation"
    VEHICLE_RAIL_INTERCHANGE = "vehicleRailInterchange"
    OTHER = "other"


class InterchangeWeighting(Enum):
    """NeTEx interchange weightings."""
    NO_INTERCHANGE = "noInterchange"
    INTERCHANGE_ALLOWED = "interchangeAllowed"
    RECOMMENDED_INTERCHANGE = "recommendedInterchange"
    PREFERRED_INTERCHANGE = "preferredInterchange"


class AdminUnitType(Enum):
    """Administrative unit levels used for reverse geocoding."""
    LOCALITY = "locality"
    COUNTY = "county"
    COUNTRY = "country"


class ParentFieldKind(Enum):
    """Keys of the parent block on a search document."""
    COUNTRY = "country"
    COUNTY = "county"
    LOCALITY = "locality"


@dataclass(frozen=True)
class ValidBetween:
    """Validity interval of an entity."""
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None

    def is_valid_now(self, now: Optional[datetime] = None) -> bool:
        """From-date not in the future and to-date absent or not in the past."""
        now = now or datetime.now()
        if self.from_date is not None and self.from_date > now:
            return False
        return self.to_date is None or self.to_date >= now


def is_currently_valid(valid_between: Tuple[ValidBetween, ...], now: Optional[datetime] = None) -> bool:
    """An entity without validity intervals is valid; otherwise any open interval makes it valid."""
    if not valid_between:
        return True
    return any(vb.is_valid_now(now) for vb in valid_between)


@dataclass(frozen=True)
class MultilingualString:
    """A text value with an optional language code."""
    value: str
    lang: Optional[str] = None


@dataclass(frozen=True)
class AlternativeName:
    """Alternative name of a stop place, group or admin unit."""
    name: MultilingualString
    name_type: NameType = NameType.TRANSLATION


@dataclass(frozen=True)
class GeoPoint:
    """WGS84 point."""
    lat: float
    lon: float


@dataclass(frozen=True)
class StopPlace:
    """A stop place as read from the entity graph."""
    id: str
    name: Optional[MultilingualString] = None
    alternative_names: Tuple[AlternativeName, ...] = ()
    centroid: Optional[GeoPoint] = None
    parent_ref: Optional[str] = None
    quays: Tuple[str, ...] = ()
    stop_place_type: Optional[StopType] = None
    transport_mode: Optional[str] = None
    submodes: Dict[str, str] = field(default_factory=dict, hash=False)
    tariff_zone_refs: Tuple[str, ...] = ()
    topographic_place_ref: Optional[str] = None
    weighting: Optional[InterchangeWeighting] = None
    valid_between: Tuple[ValidBetween, ...] = ()
    key_values: Dict[str, str] = field(default_factory=dict, hash=False)
    description: Optional[MultilingualString] = None


@dataclass(frozen=True)
class GroupOfStopPlaces:
    """
    A named group of stop places (e.g. all stations of a city).

    ``members`` is None when the input has no member list at all, and an
    empty tuple when the list is present but empty.
    """
    id: str
    name: Optional[MultilingualString] = None
    alternative_names: Tuple[AlternativeName, ...] = ()
    centroid: Optional[GeoPoint] = None
    description: Optional[MultilingualString] = None
    members: Optional[Tuple[str, ...]] = None
    valid_between: Tuple[ValidBetween, ...] = ()


@dataclass(frozen=True)
class AdminUnit:
    """Administrative boundary (locality, county or country) with polygon geometry."""
    id: str
    name: Optional[str]
    unit_type: AdminUnitType
    geometry: Optional[BaseGeometry] = field(default=None, compare=False, hash=False)
    parent_id: Optional[str] = None
    country_ref: Optional[str] = None
    valid_between: Tuple[ValidBetween, ...] = ()
    alternative_names: Tuple[AlternativeName, ...] = ()
    centroid: Optional[GeoPoint] = None

    def is_current(self, now: Optional[datetime] = None) -> bool:
        """Open validity interval right now. Units without an interval are not current."""
        if not self.valid_between:
            return False
        return self.valid_between[0].is_valid_now(now)


@dataclass(frozen=True)
class EntityGraph:
    """Everything the loader produced for one run."""
    stop_places: Tuple[StopPlace, ...] = ()
    groups_of_stop_places: Tuple[GroupOfStopPlaces, ...] = ()
    admin_units: Tuple[AdminUnit, ...] = ()


@dataclass(frozen=True)
class ParentField:
    """One entry of the parent block."""
    id: Optional[str]
    name: Optional[str] = None
    abbreviation: Optional[str] = None
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        return {k: v for k, v in (
            ("id", self.id),
            ("name", self.name),
            ("abbreviation", self.abbreviation),
            ("source", self.source),
        ) if v is not None}


@dataclass(frozen=True)
class Parent:
    """
    Administrative context of a document.

    Immutable: every update returns a new Parent, so enrichment steps
    can be composed and tested one at a time.
    """
    fields: Dict[ParentFieldKind, ParentField] = field(default_factory=dict)

    def with_field(self, kind: ParentFieldKind, parent_field: ParentField) -> "Parent":
        """Add or replace the field for ``kind``."""
        updated = dict(self.fields)
        updated[kind] = parent_field
        return Parent(updated)

    def with_name(self, kind: ParentFieldKind, name: Optional[str]) -> "Parent":
        """Set the name of an existing field; no-op when the field is absent."""
        current = self.fields.get(kind)
        if current is None:
            return self
        return self.with_field(kind, replace(current, name=name))

    def id_for(self, kind: ParentFieldKind) -> Optional[str]:
        current = self.fields.get(kind)
        return current.id if current else None

    def name_for(self, kind: ParentFieldKind) -> Optional[str]:
        current = self.fields.get(kind)
        return current.name if current else None

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {
            kind.value: self.fields[kind].to_dict()
            for kind in ParentFieldKind
            if kind in self.fields and self.fields[kind].id is not None
        }


@dataclass
class AddressParts:
    """Address block. Only ``street`` is used, as a dedup marker."""
    street: Optional[str] = None
    number: Optional[str] = None
    zip: Optional[str] = None


@dataclass
class SearchDocument:
    """A document for the geocoding search index."""
    layer: str
    source: str
    source_id: str
    names: Dict[str, str] = field(default_factory=dict)
    display_name: Optional[str] = None
    aliases: Dict[str, str] = field(default_factory=dict)
    descriptions: Dict[str, str] = field(default_factory=dict)
    center_point: Optional[GeoPoint] = None
    shape: Optional[BaseGeometry] = None
    address_parts: Optional[AddressParts] = None
    parent: Optional[Parent] = None
    population: Optional[int] = None
    popularity: Optional[int] = 1
    categories: List[str] = field(default_factory=list)
    tariff_zones: List[str] = field(default_factory=list)
    tariff_zone_authorities: List[str] = field(default_factory=list)

    @property
    def default_name(self) -> Optional[str]:
        return self.names.get("default")

    @property
    def default_alias(self) -> Optional[str]:
        return self.aliases.get("default")

    def is_valid(self) -> bool:
        """Documents without a center point cannot be indexed."""
        return self.center_point is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging and comparisons."""
        return {
            "layer": self.layer,
            "source": self.source,
            "source_id": self.source_id,
            "names": dict(self.names),
            "display_name": self.display_name,
            "aliases": dict(self.aliases),
            "descriptions": dict(self.descriptions),
            "center_point": (self.center_point.lat, self.center_point.lon) if self.center_point else None,
            "street": self.address_parts.street if self.address_parts else None,
            "parent": self.parent.to_dict() if self.parent else None,
            "popularity": self.popularity,
            "categories": list(self.categories),
            "tariff_zones": list(self.tariff_zones),
            "tariff_zone_authorities": list(self.tariff_zone_authorities),
        }
