"""Fill in missing locality, county and country on search documents."""
from typing import Optional

from geoexport.core.admin_units import AdminUnitsIndex
from geoexport.core.models import GeoPoint, Parent, ParentField, ParentFieldKind, SearchDocument
from geoexport.core.spatial import to_point
from geoexport.utils.logging import log_structured

LOCALITY = ParentFieldKind.LOCALITY
COUNTY = ParentFieldKind.COUNTY
COUNTRY = ParentFieldKind.COUNTRY


class ParentEnricher:
    """
    Cascading parent enrichment backed by an AdminUnitsIndex.

    Each step takes a Parent (or None) and returns a new one; ``enrich``
    runs the steps in order and stores the result on the document.
    Missing data is never an error, fields are simply left out.
    """

    def __init__(self, admin_units: AdminUnitsIndex):
        self.admin_units = admin_units

    def enrich(self, document: SearchDocument) -> SearchDocument:
        parent = document.parent

        if parent is None or parent.id_for(LOCALITY) is None:
            parent = self.by_reverse_lookup(parent, document.center_point)

        if parent is not None and parent.id_for(LOCALITY) is not None:
            parent = self.locality_by_id(parent, document.center_point)

        if parent is not None:
            parent = self.county_name(parent)

        document.parent = parent
        return document

    def enrich_admin_unit(self, document: SearchDocument) -> SearchDocument:
        """Admin unit documents carry their own ids; only the county name is resolved."""
        if document.parent is not None:
            document.parent = self.county_name(document.parent)
        return document

    def by_reverse_lookup(self, parent: Optional[Parent], center: Optional[GeoPoint]) -> Optional[Parent]:
        """
        Set ids from the locality covering the point, or the country when no locality does.

        With a locality the locality, its county and its country are set;
        with only a country the COUNTRY field is set. Otherwise the parent
        is returned unchanged.
        """
        if center is None:
            return parent

        point = to_point(center)
        locality = self.admin_units.locality_for_point(point)
        if locality is not None:
            parent = parent or Parent()
            return (
                parent
                .with_field(LOCALITY, ParentField(locality.id))
                .with_field(COUNTY, ParentField(locality.parent_id))
                .with_field(COUNTRY, ParentField(locality.country_ref))
            )

        country = self.admin_units.country_for_point(point)
        if country is not None:
            parent = parent or Parent()
            return parent.with_field(COUNTRY, ParentField(country.country_ref))

        return parent

    def locality_by_id(self, parent: Parent, center: Optional[GeoPoint]) -> Parent:
        """Resolve the locality name; fall back to a point lookup for unknown ids."""
        locality_id = parent.id_for(LOCALITY)
        if locality_id is None or parent.name_for(LOCALITY) is not None:
            return parent

        locality = self.admin_units.locality_for_id(locality_id)
        if locality is not None:
            return (
                parent
                .with_name(LOCALITY, locality.name)
                .with_field(COUNTY, ParentField(locality.parent_id))
                .with_field(COUNTRY, ParentField(locality.country_ref))
            )

        log_structured("debug", "Unknown locality id, matching on geography", locality_id=locality_id)
        parent = self.by_reverse_lookup(parent, center)
        return parent.with_name(LOCALITY, self.admin_units.name_for_id(parent.id_for(LOCALITY)))

    def county_name(self, parent: Parent) -> Parent:
        county_id = parent.id_for(COUNTY)
        if county_id is None or parent.name_for(COUNTY) is not None:
            return parent
        return parent.with_name(COUNTY, self.admin_units.name_for_id(county_id))
