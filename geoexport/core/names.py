"""Name, alias and translation helpers for stop place documents."""
from typing import Dict, Iterable, List, Optional

from geoexport.core.hierarchy import StopPlaceHierarchy
from geoexport.core.models import AlternativeName, MultilingualString, NameType, StopPlace

NAME_VARIANT_TYPES = (NameType.TRANSLATION, NameType.LABEL)


def filter_unique(names: Iterable[MultilingualString]) -> List[MultilingualString]:
    """Drop names whose value was already seen, keeping the first occurrence."""
    seen = set()
    unique = []
    for name in names:
        if name.value in seen:
            continue
        seen.add(name.value)
        unique.append(name)
    return unique


def _variant_alternative_names(place: StopPlace) -> List[MultilingualString]:
    return [
        alternative.name for alternative in place.alternative_names
        if alternative.name_type in NAME_VARIANT_TYPES and alternative.name.value
    ]


def name_variants(node: StopPlaceHierarchy) -> List[MultilingualString]:
    """
    Distinct names to emit one document each for.

    Walks upwards collecting the names and translation/label alternative
    names of the node and its ancestors, then downwards collecting the
    translation/label alternative names of the whole subtree.
    """
    names: List[MultilingualString] = []

    for current in [node, *node.ancestors()]:
        if current.place.name is not None and current.place.name.value:
            names.append(current.place.name)
        names.extend(_variant_alternative_names(current.place))

    for current in [node, *node.descendants()]:
        names.extend(_variant_alternative_names(current.place))

    return filter_unique(names)


def closest_available_name(node: StopPlaceHierarchy) -> Optional[MultilingualString]:
    """Name of the node, or of the nearest ancestor that has one."""
    for current in [node, *node.ancestors()]:
        if current.place.name is not None:
            return current.place.name
    return None


def translations(place: StopPlace) -> List[AlternativeName]:
    return [
        alternative for alternative in place.alternative_names
        if alternative.name_type == NameType.TRANSLATION and alternative.name.lang
    ]


def label_aliases(node: StopPlaceHierarchy) -> Dict[str, str]:
    """
    Label alternative names keyed by language ("default" when untagged).

    Inherited from the nearest ancestor that has labels when the node has none.
    """
    for current in [node, *node.ancestors()]:
        aliases: Dict[str, str] = {}
        for alternative in current.place.alternative_names:
            if alternative.name_type == NameType.LABEL and alternative.name.value:
                aliases[alternative.name.lang or "default"] = alternative.name.value
        if aliases:
            return aliases
    return {}


def choose_default_alias(aliases: Dict[str, str], default_language: str) -> Optional[str]:
    """Existing default, else the default-language alias, else the first one."""
    if not aliases:
        return None
    if "default" in aliases:
        return aliases["default"]
    if default_language in aliases:
        return aliases[default_language]
    return next(iter(aliases.values()))
