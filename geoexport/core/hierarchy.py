"""Rebuild stop place parent/child trees from flat parent references."""
import weakref
from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from geoexport.core.exceptions import HierarchyCycleError
from geoexport.core.models import StopPlace, StopType
from geoexport.core.submodes import submode_of
from geoexport.utils.logging import log_structured


class StopPlaceHierarchy:
    """
    One node of a stop place tree.

    Children are owned by the node; the parent link is a weak reference
    used only for walking upwards.
    """

    def __init__(self, place: StopPlace, parent: Optional["StopPlaceHierarchy"] = None):
        self.place = place
        self.children: List["StopPlaceHierarchy"] = []
        self._parent_ref = weakref.ref(parent) if parent is not None else None

    @property
    def parent(self) -> Optional["StopPlaceHierarchy"]:
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def depth(self) -> int:
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def ancestors(self) -> Iterator["StopPlaceHierarchy"]:
        """Walk upwards, nearest parent first."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def descendants(self) -> Iterator["StopPlaceHierarchy"]:
        """Depth-first, pre-order walk of everything below this node."""
        for child in self.children:
            yield child
            yield from child.descendants()

    def __repr__(self) -> str:
        return f"StopPlaceHierarchy({self.place.id!r}, children={len(self.children)})"


def build_hierarchies(stop_places: Iterable[StopPlace]) -> List[StopPlaceHierarchy]:
    """
    Build stop place trees and return every node.

    Roots are stop places without a parent reference. Each root is
    followed by its descendants in depth-first order, because every
    node is mapped to its own documents downstream.

    Args:
        stop_places: Flat list of stop places

    Returns:
        All hierarchy nodes, roots and descendants

    Raises:
        HierarchyCycleError: if a parent reference chain loops
    """
    stop_places = list(stop_places)
    children_by_parent: Dict[str, List[StopPlace]] = defaultdict(list)
    roots: List[StopPlace] = []
    for place in stop_places:
        if place.parent_ref:
            children_by_parent[place.parent_ref].append(place)
        else:
            roots.append(place)

    nodes: List[StopPlaceHierarchy] = []
    for root in roots:
        root_node = StopPlaceHierarchy(root)
        nodes.append(root_node)
        _attach_children(root_node, children_by_parent, {root.id}, nodes)

    attached = {id(node.place) for node in nodes}
    unattached = [place for place in stop_places if id(place) not in attached]
    if unattached:
        _check_unattached(unattached, {place.id: place for place in stop_places})

    log_structured(
        "info",
        "Built stop place hierarchies",
        roots=len(roots),
        nodes=len(nodes),
        dropped=len(unattached)
    )
    return nodes


def _attach_children(
    node: StopPlaceHierarchy,
    children_by_parent: Dict[str, List[StopPlace]],
    path: Set[str],
    nodes: List[StopPlaceHierarchy]
):
    for child in children_by_parent.get(node.place.id, []):
        if child.id in path:
            raise HierarchyCycleError(child.id)
        child_node = StopPlaceHierarchy(child, parent=node)
        node.children.append(child_node)
        nodes.append(child_node)
        path.add(child.id)
        _attach_children(child_node, children_by_parent, path, nodes)
        path.discard(child.id)


def _check_unattached(unattached: List[StopPlace], places_by_id: Dict[str, StopPlace]):
    """
    Fail on stop places caught in a reference loop; log the orphans.

    An orphan is logged with the first reference in its ancestor chain
    that names no known stop place, which for a grandchild of a missing
    parent is not its own parent reference.
    """
    for place in unattached:
        seen: Set[str] = set()
        current = place
        missing_ref = None
        while current.parent_ref:
            if current.id in seen:
                raise HierarchyCycleError(current.id)
            seen.add(current.id)
            parent = places_by_id.get(current.parent_ref)
            if parent is None:
                missing_ref = current.parent_ref
                break
            current = parent
        log_structured(
            "warning",
            "Dropping stop place with unresolved ancestor",
            stop_place_id=place.id,
            parent_ref=place.parent_ref,
            unresolved_ref=missing_ref
        )


def nodes_by_id(nodes: Iterable[StopPlaceHierarchy]) -> Dict[str, StopPlaceHierarchy]:
    return {node.place.id: node for node in nodes}


def stop_types_and_submodes(node: StopPlaceHierarchy) -> List[Tuple[Optional[StopType], Optional[str]]]:
    """(stop type, submode) of the node followed by those of all descendants."""
    pairs = [(node.place.stop_place_type, submode_of(node.place))]
    for child in node.children:
        pairs.extend(stop_types_and_submodes(child))
    return pairs
