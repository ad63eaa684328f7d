"""Popularity (search boost) for stop places, groups of stop places and admin units."""
import json
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional

from geoexport.core.config import GOS_BOOST_FACTOR, STOP_PLACE_BOOST_CONFIG
from geoexport.core.exceptions import ConfigurationError
from geoexport.core.hierarchy import StopPlaceHierarchy, stop_types_and_submodes
from geoexport.core.models import GroupOfStopPlaces, InterchangeWeighting, StopType
from geoexport.core.submodes import is_known_submode

MAX_POPULARITY = 2 ** 63 - 1
ALL_SUBMODES = "*"


def saturating_multiply(value: int, factor: float) -> int:
    """Multiply and truncate to int, clamping at MAX_POPULARITY instead of overflowing."""
    result = value * factor
    if result >= MAX_POPULARITY:
        return MAX_POPULARITY
    return int(result)


@dataclass(frozen=True)
class StopTypeBoost:
    """Boost factors for one stop type."""
    default_factor: float = 1.0
    submode_factors: Mapping[str, float] = field(default_factory=dict)

    def factor_for(self, submode: Optional[str]) -> float:
        if submode is not None and submode in self.submode_factors:
            return self.submode_factors[submode]
        return self.default_factor


class StopPlaceBoostConfiguration:
    """
    Stop place popularity from a JSON boost configuration.

    Format::

        {"defaultValue": 1000,
         "stopTypeFactors": {"railStation": {"*": 2, "highSpeedRail": 5}},
         "interchangeFactors": {"preferredInterchange": 10}}

    Stop types, submodes and interchange weightings are validated when
    the configuration is loaded.
    """

    def __init__(
        self,
        default_value: int,
        stop_type_factors: Optional[Dict[StopType, StopTypeBoost]] = None,
        interchange_factors: Optional[Dict[InterchangeWeighting, float]] = None
    ):
        self.default_value = default_value
        self.stop_type_factors = stop_type_factors or {}
        self.interchange_factors = interchange_factors or {}

    @classmethod
    def from_json(cls, boost_config: str = STOP_PLACE_BOOST_CONFIG) -> "StopPlaceBoostConfiguration":
        try:
            data = json.loads(boost_config)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Boost configuration is not valid JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Mapping) -> "StopPlaceBoostConfiguration":
        if "defaultValue" not in data:
            raise ConfigurationError("Boost configuration is missing defaultValue")

        stop_type_factors: Dict[StopType, StopTypeBoost] = {}
        for stop_type_value, factors in (data.get("stopTypeFactors") or {}).items():
            stop_type = _parse_enum(StopType, stop_type_value, "stop type")
            if not isinstance(factors, Mapping):
                raise ConfigurationError(f"Factors for stop type {stop_type_value!r} must be an object")
            factors = dict(factors)
            default_factor = _parse_number(factors.pop(ALL_SUBMODES, 1.0), f"{stop_type_value}.{ALL_SUBMODES}")
            for submode in factors:
                if not is_known_submode(stop_type, submode):
                    raise ConfigurationError(f"Unknown submode {submode!r} for stop type {stop_type_value!r}")
            stop_type_factors[stop_type] = StopTypeBoost(
                default_factor=default_factor,
                submode_factors={
                    submode: _parse_number(factor, f"{stop_type_value}.{submode}")
                    for submode, factor in factors.items()
                },
            )

        interchange_factors = {
            _parse_enum(InterchangeWeighting, weighting, "interchange weighting"): _parse_number(factor, weighting)
            for weighting, factor in (data.get("interchangeFactors") or {}).items()
        }

        default_value = int(_parse_number(data["defaultValue"], "defaultValue"))
        return cls(default_value, stop_type_factors, interchange_factors)

    def factor_for(self, stop_type: Optional[StopType], submode: Optional[str]) -> float:
        """Submode override, else stop type default, else 0 for unconfigured types."""
        boost = self.stop_type_factors.get(stop_type)
        if boost is None:
            return 0.0
        return boost.factor_for(submode)

    def popularity(self, node: StopPlaceHierarchy) -> int:
        """
        Popularity of a hierarchy node.

        Sums the factors of the node's and its descendants' (stop type,
        submode) pairs, multiplies the default value by the sum when it
        is positive, then by the node's interchange factor if configured.
        """
        popularity = self.default_value

        factor_sum = sum(
            self.factor_for(stop_type, submode)
            for stop_type, submode in stop_types_and_submodes(node)
        )
        if factor_sum > 0:
            popularity = saturating_multiply(popularity, factor_sum)

        interchange_factor = self.interchange_factors.get(node.place.weighting)
        if interchange_factor is not None:
            popularity = saturating_multiply(popularity, interchange_factor)

        return popularity


def _parse_enum(enum_cls, value: str, what: str):
    try:
        return enum_cls(value)
    except ValueError as e:
        raise ConfigurationError(f"Unknown {what} {value!r} in boost configuration") from e


def _parse_number(value, where: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Boost factor {where} is not a number: {value!r}") from e


class PopularityCache:
    """Computed popularity per stop place id."""

    def __init__(self, popularity_per_id: Dict[str, int]):
        self._popularity_per_id = dict(popularity_per_id)

    def get(self, stop_place_id: str) -> Optional[int]:
        return self._popularity_per_id.get(stop_place_id)

    def __len__(self) -> int:
        return len(self._popularity_per_id)


def build_popularity_cache(
    nodes: Iterable[StopPlaceHierarchy],
    boost_configuration: StopPlaceBoostConfiguration
) -> PopularityCache:
    return PopularityCache({node.place.id: boost_configuration.popularity(node) for node in nodes})


class GroupOfStopPlacesBoost:
    """Group popularity: boost factor times the product of member popularities."""

    def __init__(self, boost_factor: float = GOS_BOOST_FACTOR):
        self.boost_factor = boost_factor

    def popularity(self, group: GroupOfStopPlaces, cache: PopularityCache) -> Optional[int]:
        """None when the group carries no member list; an empty list gives the boost factor."""
        if group.members is None:
            return None

        product = 1
        for member_id in group.members:
            member_popularity = cache.get(member_id)
            if member_popularity is None:
                continue
            product *= member_popularity
            if product > MAX_POPULARITY:
                return MAX_POPULARITY

        return saturating_multiply(product, self.boost_factor)
