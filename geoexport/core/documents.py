"""Map stop place hierarchies, groups of stop places and admin units to search documents."""
from typing import List, Optional

from geoexport.core.centroids import admin_unit_center
from geoexport.core.config import ADMIN_UNIT_POPULARITY, DEFAULT_LANGUAGE, DEFAULT_SOURCE
from geoexport.core.hierarchy import StopPlaceHierarchy
from geoexport.core.models import (
    AddressParts,
    AdminUnit,
    AdminUnitType,
    GroupOfStopPlaces,
    MultilingualString,
    Parent,
    ParentField,
    ParentFieldKind,
    SearchDocument,
    StopPlace,
    is_currently_valid,
)
from geoexport.core.names import (
    choose_default_alias,
    closest_available_name,
    filter_unique,
    label_aliases,
    name_variants,
    translations,
)
from geoexport.core.popularity import GroupOfStopPlacesBoost, PopularityCache

STOP_PLACE_LAYER = "stop_place"
PARENT_STOP_PLACE_LAYER = "stop_place_parent"
CHILD_STOP_PLACE_LAYER = "stop_place_child"
GROUP_OF_STOP_PLACES_LAYER = "group_of_stop_places"
GROUP_OF_STOP_PLACES_CATEGORY = "GroupOfStopPlaces"
ADMIN_UNIT_LAYERS = {
    AdminUnitType.LOCALITY: "locality",
    AdminUnitType.COUNTY: "county",
}

KEY_IS_PARENT_STOP_PLACE = "IS_PARENT_STOP_PLACE"
NOT_AN_ADDRESS_PREFIX = "NOT_AN_ADDRESS-"


def is_valid_stop_place(place: StopPlace) -> bool:
    """Rail replacement bus stops, quay-less non-parent stops and expired stops are not indexed."""
    if place.transport_mode == "bus" and place.submodes.get("bus") == "railReplacementBus":
        return False

    if not place.quays and place.key_values.get(KEY_IS_PARENT_STOP_PLACE, "").lower() != "true":
        return False

    return is_currently_valid(place.valid_between)


def layer_for(node: StopPlaceHierarchy) -> str:
    """
    Multimodal parents and children get their own layers so queries can filter on them.
    """
    if node.parent is not None:
        return CHILD_STOP_PLACE_LAYER
    if node.children:
        return PARENT_STOP_PLACE_LAYER
    return STOP_PLACE_LAYER


def document_id(entity_id: str, index: int) -> str:
    return entity_id if index == 0 else f"{entity_id}-{index}"


def not_an_address(entity_id: str) -> AddressParts:
    """
    The search API dedupes results with identical name, layer, parent and
    address; a unique street value keeps distinct places apart.
    """
    return AddressParts(street=NOT_AN_ADDRESS_PREFIX + entity_id)


class DocumentMapper:
    """Builds search documents, one per distinct name of each entity."""

    def __init__(
        self,
        group_boost: Optional[GroupOfStopPlacesBoost] = None,
        default_language: str = DEFAULT_LANGUAGE,
        source: str = DEFAULT_SOURCE,
        admin_unit_popularity: int = ADMIN_UNIT_POPULARITY
    ):
        self.group_boost = group_boost or GroupOfStopPlacesBoost()
        self.default_language = default_language
        self.source = source
        self.admin_unit_popularity = admin_unit_popularity

    # Stop places

    def stop_place_documents(
        self,
        node: StopPlaceHierarchy,
        popularity_cache: PopularityCache
    ) -> List[SearchDocument]:
        """
        Documents for one hierarchy node.

        Args:
            node: Hierarchy node
            popularity_cache: Popularity per stop place id

        Returns:
            One document per distinct name, empty for ineligible stop places
        """
        place = node.place
        if not is_valid_stop_place(place):
            return []

        popularity = popularity_cache.get(place.id)
        return [
            self._stop_place_document(node, document_id(place.id, index), name, popularity)
            for index, name in enumerate(name_variants(node))
        ]

    def _stop_place_document(
        self,
        node: StopPlaceHierarchy,
        source_id: str,
        name: MultilingualString,
        popularity: Optional[int]
    ) -> SearchDocument:
        place = node.place
        document = SearchDocument(layer=layer_for(node), source=self.source, source_id=source_id)
        document.names["default"] = name.value

        display_name = closest_available_name(node)
        if display_name is not None:
            document.display_name = display_name.value
            if display_name.lang:
                document.names[display_name.lang] = display_name.value
        for translation in translations(place):
            document.names[translation.name.lang] = translation.name.value

        document.aliases = label_aliases(node)
        default_alias = choose_default_alias(document.aliases, self.default_language)
        if default_alias is not None:
            document.aliases["default"] = default_alias

        document.center_point = place.centroid
        document.address_parts = not_an_address(place.id)
        self._set_description(document, place.description)
        document.categories = self._categories(node)
        document.popularity = popularity if popularity is not None else 1

        document.tariff_zones = list(place.tariff_zone_refs)
        document.tariff_zone_authorities = list(dict.fromkeys(
            zone_ref.split(":")[0] for zone_ref in place.tariff_zone_refs
        ))

        if place.topographic_place_ref:
            document.parent = Parent().with_field(
                ParentFieldKind.LOCALITY, ParentField(place.topographic_place_ref)
            )
        return document

    @staticmethod
    def _categories(node: StopPlaceHierarchy) -> List[str]:
        stop_types = [current.place.stop_place_type for current in [node, *node.descendants()]]
        return list(dict.fromkeys(stop_type.value for stop_type in stop_types if stop_type is not None))

    # Groups of stop places

    def group_documents(
        self,
        group: GroupOfStopPlaces,
        popularity_cache: PopularityCache
    ) -> List[SearchDocument]:
        if not is_currently_valid(group.valid_between):
            return []

        names = []
        if group.name is not None and group.name.value:
            names.append(group.name)
        names.extend(
            alternative.name for alternative in group.alternative_names
            if alternative.name.value and alternative.name.lang
        )

        popularity = self.group_boost.popularity(group, popularity_cache)
        documents = []
        for index, name in enumerate(filter_unique(names)):
            document = SearchDocument(
                layer=GROUP_OF_STOP_PLACES_LAYER,
                source=self.source,
                source_id=document_id(group.id, index),
            )
            document.names["default"] = name.value
            if group.name is not None:
                document.display_name = group.name.value
                if group.name.lang:
                    document.names[group.name.lang] = group.name.value
            document.center_point = group.centroid
            document.address_parts = not_an_address(group.id)
            self._set_description(document, group.description)
            document.popularity = popularity
            document.categories = [GROUP_OF_STOP_PLACES_CATEGORY]
            documents.append(document)
        return documents

    # Admin units

    def admin_unit_documents(self, unit: AdminUnit) -> List[SearchDocument]:
        """Localities and counties become documents; other units are skipped."""
        layer = ADMIN_UNIT_LAYERS.get(unit.unit_type)
        if layer is None or not is_currently_valid(unit.valid_between):
            return []

        names = []
        if unit.name:
            names.append(MultilingualString(unit.name))
        names.extend(
            alternative.name for alternative in unit.alternative_names
            if alternative.name.value and alternative.name.lang
        )

        center = admin_unit_center(unit)

        documents = []
        for index, name in enumerate(filter_unique(names)):
            document = SearchDocument(layer=layer, source=self.source, source_id=document_id(unit.id, index))
            document.names["default"] = name.value
            document.display_name = unit.name
            for alternative in unit.alternative_names:
                if alternative.name.lang and alternative.name.value:
                    document.names[alternative.name.lang] = alternative.name.value
            document.center_point = center
            document.shape = unit.geometry
            document.address_parts = not_an_address(unit.id)
            document.popularity = self.admin_unit_popularity
            document.parent = self._admin_unit_parent(unit)
            documents.append(document)
        return documents

    @staticmethod
    def _admin_unit_parent(unit: AdminUnit) -> Parent:
        parent = Parent()
        if unit.unit_type == AdminUnitType.LOCALITY:
            parent = parent.with_field(ParentFieldKind.LOCALITY, ParentField(unit.id, unit.name))
            if unit.parent_id:
                parent = parent.with_field(ParentFieldKind.COUNTY, ParentField(unit.parent_id))
        else:
            parent = parent.with_field(ParentFieldKind.COUNTY, ParentField(unit.id, unit.name))
        if unit.country_ref:
            parent = parent.with_field(ParentFieldKind.COUNTRY, ParentField(unit.country_ref))
        return parent

    def _set_description(self, document: SearchDocument, description: Optional[MultilingualString]):
        if description is not None and description.value:
            document.descriptions[description.lang or self.default_language] = description.value

