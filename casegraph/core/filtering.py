"""
Graph Filtering

Narrows a resolved graph down to the nodes a viewer asked for.

Each active filter computes its own candidate set over the full graph;
the sets are intersected, puzzle isolation is applied, the result is
expanded by the requested connection depth, and finally edges are
re-filtered so that none has an endpoint outside the visible set.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, List, Optional, Set

from ..contracts.entities import (
    Act, Character, CharacterTier, Element, Puzzle, TimelineEvent, entity_kind,
)
from ..contracts.graph import GraphData, GraphEdge, GraphNode, NodeType, RelationshipType
from .topology import TopologyEngine, get_visible_node_ids


@dataclass(frozen=True)
class FilterCriteria:
    """What a viewer wants to see. Empty fields mean "no filter"."""
    search_term: str = ""
    acts: FrozenSet[Act] = field(default_factory=frozenset)
    tiers: FrozenSet[CharacterTier] = field(default_factory=frozenset)
    entity_types: FrozenSet[NodeType] = field(default_factory=frozenset)
    relationship_types: FrozenSet[RelationshipType] = field(default_factory=frozenset)
    isolated_puzzle_id: Optional[str] = None
    selected_node_id: Optional[str] = None
    connection_depth: int = 0

    def __post_init__(self):
        if self.connection_depth < 0:
            raise ValueError("connection_depth must be >= 0")

    @property
    def is_empty(self) -> bool:
        return (
            not self.search_term.strip()
            and not self.acts
            and not self.tiers
            and not self.entity_types
            and not self.relationship_types
            and self.isolated_puzzle_id is None
            and self.selected_node_id is None
            and self.connection_depth == 0
        )


# =============================================================================
# PER-FILTER CANDIDATE SETS
# =============================================================================

# free-text fields searched per entity kind
_SEARCH_FIELDS = {
    Character: lambda c: (c.name, c.overview),
    Element: lambda e: (e.name, e.description),
    Puzzle: lambda p: (p.name, p.description_solution),
    TimelineEvent: lambda t: (t.name, t.description),
}


def _searchable_text(node: GraphNode) -> List[str]:
    texts = [node.label]
    if node.entity is not None:
        fields_of = _SEARCH_FIELDS[entity_kind(node.entity)]
        texts.extend(text for text in fields_of(node.entity) if text)
    return texts


def filter_by_search(nodes: Iterable[GraphNode], search_term: str) -> Set[str]:
    """Ids of nodes whose label, name or description contains the term."""
    term = search_term.strip().lower()
    return {
        n.id for n in nodes
        if any(term in text.lower() for text in _searchable_text(n))
    }


def filter_by_acts(nodes: Iterable[GraphNode], acts: Iterable[Act]) -> Set[str]:
    """Elements by first availability, puzzles by timing; others pass."""
    wanted = set(acts)
    selected = set()
    for node in nodes:
        entity = node.entity
        if isinstance(entity, Element):
            if entity.first_available in wanted:
                selected.add(node.id)
        elif isinstance(entity, Puzzle):
            if wanted.intersection(entity.timing):
                selected.add(node.id)
        else:
            selected.add(node.id)
    return selected


def filter_by_tiers(nodes: Iterable[GraphNode], tiers: Iterable[CharacterTier]) -> Set[str]:
    wanted = set(tiers)
    return {
        n.id for n in nodes
        if not isinstance(n.entity, Character) or n.entity.tier in wanted
    }


def filter_by_entity_types(nodes: Iterable[GraphNode], entity_types: Iterable[NodeType]) -> Set[str]:
    wanted = set(entity_types)
    return {n.id for n in nodes if n.type in wanted}


def isolate_puzzle(
    nodes: Iterable[GraphNode],
    edges: Iterable[GraphEdge],
    puzzle_id: str
) -> Set[str]:
    """The puzzle plus everything reachable from it, in either direction."""
    engine = TopologyEngine.from_graph(nodes, edges)
    return engine.reachable_from(puzzle_id)


def filter_edges_to_visible(edges: Iterable[GraphEdge], visible_ids: Iterable[str]) -> List[GraphEdge]:
    """Keep only edges with both endpoints visible."""
    visible = set(visible_ids)
    return [e for e in edges if e.source in visible and e.target in visible]


# =============================================================================
# COMBINED
# =============================================================================

def apply_filters(graph: GraphData, criteria: FilterCriteria) -> GraphData:
    """
    Apply every active filter in ``criteria`` to ``graph``.

    The returned graph has the same class as the input; a ResolvedGraph
    keeps its diagnostics and integrity report.
    """
    nodes = graph.nodes
    edges = list(graph.edges)
    if criteria.relationship_types:
        edges = [e for e in edges if e.relationship_type in criteria.relationship_types]

    candidates: Set[str] = {n.id for n in nodes}
    if criteria.search_term.strip():
        candidates &= filter_by_search(nodes, criteria.search_term)
    if criteria.acts:
        candidates &= filter_by_acts(nodes, criteria.acts)
    if criteria.tiers:
        candidates &= filter_by_tiers(nodes, criteria.tiers)
    if criteria.entity_types:
        candidates &= filter_by_entity_types(nodes, criteria.entity_types)
    if criteria.isolated_puzzle_id is not None:
        candidates &= isolate_puzzle(nodes, edges, criteria.isolated_puzzle_id)

    visible = get_visible_node_ids(
        candidates, edges,
        selected_id=criteria.selected_node_id,
        depth=criteria.connection_depth,
    )

    return replace(
        graph,
        nodes=tuple(n for n in nodes if n.id in visible),
        edges=tuple(filter_edges_to_visible(edges, visible)),
    )
