"""Tests for stop place hierarchy building."""
import json
import logging

import pytest

from geoexport.core.exceptions import HierarchyCycleError
from geoexport.core.hierarchy import build_hierarchies, nodes_by_id, stop_types_and_submodes
from geoexport.core.models import StopPlace, StopType


def test_roots_have_depth_zero(multimodal_places, oslo_s):
    """Parentless stop places become roots."""
    nodes = build_hierarchies(multimodal_places + [oslo_s])
    by_id = nodes_by_id(nodes)

    assert len(nodes) == 4
    assert by_id["NSR:StopPlace:1"].depth == 0
    assert by_id["NSR:StopPlace:1"].parent is None
    assert by_id["NSR:StopPlace:337"].depth == 0


def test_children_point_back_to_parent(multimodal_places):
    """Every child carries a back-reference to its parent node."""
    by_id = nodes_by_id(build_hierarchies(multimodal_places))
    parent = by_id["NSR:StopPlace:1"]

    assert [child.place.id for child in parent.children] == ["NSR:StopPlace:2", "NSR:StopPlace:3"]
    for child in parent.children:
        assert child.parent is parent
        assert child.depth == 1
        assert child.place.parent_ref == parent.place.id


def test_nodes_listed_depth_first():
    """Each root is followed by its descendants in depth-first order."""
    places = [
        StopPlace(id="A"),
        StopPlace(id="B"),
        StopPlace(id="A1", parent_ref="A"),
        StopPlace(id="A1a", parent_ref="A1"),
        StopPlace(id="A2", parent_ref="A"),
    ]
    nodes = build_hierarchies(places)

    assert [node.place.id for node in nodes] == ["A", "A1", "A1a", "A2", "B"]
    assert nodes[2].depth == 2
    assert [node.place.id for node in nodes[2].ancestors()] == ["A1", "A"]


def test_unknown_parent_is_dropped():
    """A stop place referencing a missing parent gets no node."""
    nodes = build_hierarchies([StopPlace(id="A"), StopPlace(id="B", parent_ref="missing")])

    assert [node.place.id for node in nodes] == ["A"]


def test_dropped_descendants_name_the_unresolved_ancestor(caplog):
    """A grandchild of a missing parent is logged with the missing id, not its own existing parent."""
    places = [
        StopPlace(id="A"),
        StopPlace(id="B", parent_ref="missing"),
        StopPlace(id="C", parent_ref="B"),
    ]

    with caplog.at_level(logging.WARNING, logger="geoexport"):
        nodes = build_hierarchies(places)

    assert [node.place.id for node in nodes] == ["A"]
    dropped = {
        entry["stop_place_id"]: entry
        for entry in (json.loads(record.getMessage()) for record in caplog.records)
        if "stop_place_id" in entry
    }
    assert dropped["B"]["unresolved_ref"] == "missing"
    assert dropped["C"]["parent_ref"] == "B"
    assert dropped["C"]["unresolved_ref"] == "missing"


def test_cyclic_parent_references_raise():
    """A reference loop fails fast and names an offending stop place."""
    places = [
        StopPlace(id="A", parent_ref="B"),
        StopPlace(id="B", parent_ref="A"),
    ]

    with pytest.raises(HierarchyCycleError) as exc_info:
        build_hierarchies(places)

    assert exc_info.value.stop_place_id in {"A", "B"}


def test_stop_types_and_submodes_cover_descendants(multimodal_places):
    by_id = nodes_by_id(build_hierarchies(multimodal_places))

    pairs = stop_types_and_submodes(by_id["NSR:StopPlace:1"])

    assert pairs == [
        (None, None),
        (StopType.ONSTREET_BUS, "localBus"),
        (StopType.ONSTREET_TRAM, None),
    ]
