"""
Relationship Resolution

Derives typed, deduplicated edges from the cross-reference fields of the
entity collections.

BOUNDARY ENFORCEMENT:
- Reads entities through EntityLookupMaps only
- Produces GraphEdge tuples; never creates or mutates entities
- A dangling reference omits its edge and records a diagnostic

GUARANTEES:
- No edge has source == target
- At most one edge per (source, target, relationship_type)
- Output is sorted by edge id, so identical inputs in any order
  resolve to the same tuple
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple
import math

from ..config import EdgeWeighting, DEFAULT_EDGE_WEIGHTING
from ..contracts.base import Diagnostic, DiagnosticCode
from ..contracts.entities import Character, Element, Puzzle, TimelineEvent
from ..contracts.graph import (
    DataIntegrityReport, GraphEdge, GraphNode, MissingEntity, NodeType,
    RelationshipType, make_edge_id,
)
from ..observability import DiagnosticsCollector
from .lookup import EntityLookupMaps, build_lookup_maps
from .transformers import NodeTransformer


EdgeKey = Tuple[str, str, RelationshipType]


# =============================================================================
# EDGE BUILDER
# =============================================================================

class EdgeBuilder:
    """
    Collects edges, rejecting duplicates and self-references.

    When ``known_node_ids`` is given, edges whose endpoints are not in
    that set are rejected as well.
    """

    def __init__(
        self,
        weighting: Optional[EdgeWeighting] = None,
        collector: Optional[DiagnosticsCollector] = None,
        known_node_ids: Optional[Iterable[str]] = None
    ):
        self._weighting = weighting or DEFAULT_EDGE_WEIGHTING
        self._collector = collector or DiagnosticsCollector("edges")
        self._known = set(known_node_ids) if known_node_ids is not None else None
        self._edges: Dict[EdgeKey, GraphEdge] = {}

    @property
    def weighting(self) -> EdgeWeighting:
        return self._weighting

    @property
    def collector(self) -> DiagnosticsCollector:
        return self._collector

    def create_edge(
        self,
        source: str,
        target: str,
        relationship_type: RelationshipType,
        strength: Optional[float] = None,
        label: Optional[str] = None,
        animated: Optional[bool] = None
    ) -> Optional[GraphEdge]:
        """Create and store an edge; None if it was rejected."""
        if source == target:
            self._collector.record(Diagnostic.warning(
                DiagnosticCode.SELF_REFERENCE,
                "Self-referential edge skipped",
                node_id=source,
                relationship_type=relationship_type.value,
            ))
            return None

        if self._known is not None:
            for endpoint in (source, target):
                if endpoint not in self._known:
                    self._collector.record(Diagnostic.warning(
                        DiagnosticCode.UNKNOWN_REFERENCE,
                        "Edge endpoint is not a known node",
                        node_id=endpoint,
                        relationship_type=relationship_type.value,
                    ))
                    return None

        key = (source, target, relationship_type)
        if key in self._edges:
            self._collector.record(Diagnostic.debug(
                DiagnosticCode.DUPLICATE_EDGE,
                "Duplicate edge collapsed",
                edge_id=make_edge_id(source, target, relationship_type),
            ))
            return None

        w = self._weighting
        edge = GraphEdge(
            id=make_edge_id(source, target, relationship_type),
            source=source,
            target=target,
            relationship_type=relationship_type,
            weight=w.weight_for(relationship_type),
            strength=w.strength_for(relationship_type) if strength is None else strength,
            label=w.label_for(relationship_type) if label is None else label,
            animated=w.is_animated(relationship_type) if animated is None else animated,
        )
        self._edges[key] = edge
        return edge

    def has_edge(self, source: str, target: str, relationship_type: RelationshipType) -> bool:
        return (source, target, relationship_type) in self._edges

    def remove_edge(self, source: str, target: str, relationship_type: RelationshipType) -> bool:
        return self._edges.pop((source, target, relationship_type), None) is not None

    def get_edges(self) -> Tuple[GraphEdge, ...]:
        return tuple(self._edges.values())

    def filter_by_type(self, relationship_type: RelationshipType) -> List[GraphEdge]:
        return [e for e in self._edges.values() if e.relationship_type == relationship_type]

    def get_node_edges(self, node_id: str) -> List[GraphEdge]:
        return [e for e in self._edges.values() if e.touches(node_id)]

    def statistics(self) -> Dict[str, object]:
        by_type: Dict[str, int] = {}
        for edge in self._edges.values():
            name = edge.relationship_type.value
            by_type[name] = by_type.get(name, 0) + 1
        total = len(self._edges)
        return {
            "total": total,
            "by_type": by_type,
            "average_weight": (
                sum(e.weight for e in self._edges.values()) / total if total else 0.0
            ),
        }

    def clear(self) -> None:
        self._edges.clear()

    def __len__(self) -> int:
        return len(self._edges)


def merge_edge_builders(*builders: EdgeBuilder) -> Tuple[GraphEdge, ...]:
    """Union of several builders' edges; the first edge seen for a key wins."""
    merged: Dict[EdgeKey, GraphEdge] = {}
    for builder in builders:
        for edge in builder.get_edges():
            merged.setdefault(edge.key, edge)
    return tuple(merged.values())


# =============================================================================
# MISSING REFERENCE TRACKING
# =============================================================================

class MissingReferences:
    """Accumulates dangling references, keyed by the missing id."""

    def __init__(self):
        self._missing: Dict[str, Tuple[NodeType, List[str]]] = {}

    def note(self, entity_id: str, entity_type: NodeType, referenced_by: str) -> None:
        if entity_id in self._missing:
            self._missing[entity_id][1].append(referenced_by)
        else:
            self._missing[entity_id] = (entity_type, [referenced_by])

    def entities(self) -> Tuple[MissingEntity, ...]:
        return tuple(
            MissingEntity(entity_id=eid, entity_type=etype, referenced_by=tuple(refs))
            for eid, (etype, refs) in self._missing.items()
        )

    def __len__(self) -> int:
        return len(self._missing)


def _dangling(
    builder: EdgeBuilder,
    missing: Optional[MissingReferences],
    code: DiagnosticCode,
    message: str,
    missing_id: str,
    missing_type: NodeType,
    referenced_by: str
) -> None:
    builder.collector.record(Diagnostic.warning(
        code, message, missing_id=missing_id, referenced_by=referenced_by
    ))
    if missing is not None:
        missing.note(missing_id, missing_type, referenced_by)


# =============================================================================
# PER-TYPE EDGE CREATION
# =============================================================================

def create_ownership_edges(
    lookup: EntityLookupMaps,
    builder: EdgeBuilder,
    missing: Optional[MissingReferences] = None
) -> List[GraphEdge]:
    """Character -> Element, strength scaled by the owner's tier."""
    created = []
    for element in lookup.elements.values():
        if not element.owner_id:
            continue
        owner = lookup.characters.get(element.owner_id)
        if owner is None:
            _dangling(
                builder, missing, DiagnosticCode.UNKNOWN_OWNER,
                "Element owner not found", element.owner_id,
                NodeType.CHARACTER, element.id,
            )
            continue
        edge = builder.create_edge(
            owner.id, element.id, RelationshipType.OWNERSHIP,
            strength=builder.weighting.ownership_strength(owner.tier),
        )
        if edge is not None:
            created.append(edge)
    return created


def create_requirement_edges(
    lookup: EntityLookupMaps,
    builder: EdgeBuilder,
    missing: Optional[MissingReferences] = None
) -> List[GraphEdge]:
    """Element -> Puzzle for every element a puzzle needs."""
    created = []
    for puzzle in lookup.puzzles.values():
        for element_id in puzzle.puzzle_element_ids:
            if element_id not in lookup.elements:
                _dangling(
                    builder, missing, DiagnosticCode.UNKNOWN_ELEMENT,
                    "Required element not found", element_id,
                    NodeType.ELEMENT, puzzle.id,
                )
                continue
            edge = builder.create_edge(element_id, puzzle.id, RelationshipType.REQUIREMENT)
            if edge is not None:
                created.append(edge)
    return created


def create_reward_edges(
    lookup: EntityLookupMaps,
    builder: EdgeBuilder,
    missing: Optional[MissingReferences] = None
) -> List[GraphEdge]:
    """Puzzle -> Element for every reward; reward edges are animated."""
    created = []
    for puzzle in lookup.puzzles.values():
        for element_id in puzzle.reward_ids:
            if element_id not in lookup.elements:
                _dangling(
                    builder, missing, DiagnosticCode.UNKNOWN_ELEMENT,
                    "Reward element not found", element_id,
                    NodeType.ELEMENT, puzzle.id,
                )
                continue
            edge = builder.create_edge(puzzle.id, element_id, RelationshipType.REWARD)
            if edge is not None:
                created.append(edge)
    return created


def create_timeline_edges(
    lookup: EntityLookupMaps,
    builder: EdgeBuilder,
    missing: Optional[MissingReferences] = None
) -> List[GraphEdge]:
    created = []
    for element in lookup.elements.values():
        if not element.timeline_event_id:
            continue
        if element.timeline_event_id not in lookup.timeline:
            _dangling(
                builder, missing, DiagnosticCode.UNKNOWN_TIMELINE_EVENT,
                "Timeline event not found", element.timeline_event_id,
                NodeType.TIMELINE, element.id,
            )
            continue
        edge = builder.create_edge(
            element.id, element.timeline_event_id, RelationshipType.TIMELINE
        )
        if edge is not None:
            created.append(edge)
    return created


def create_container_edges(
    lookup: EntityLookupMaps,
    builder: EdgeBuilder,
    missing: Optional[MissingReferences] = None
) -> List[GraphEdge]:
    """Element -> Element for contents; an element never contains itself."""
    created = []
    for element in lookup.elements.values():
        for content_id in element.content_ids:
            if content_id == element.id:
                builder.collector.record(Diagnostic.warning(
                    DiagnosticCode.SELF_REFERENCE,
                    "Element lists itself as its own content",
                    element_id=element.id,
                ))
                continue
            if content_id not in lookup.elements:
                _dangling(
                    builder, missing, DiagnosticCode.UNKNOWN_ELEMENT,
                    "Contained element not found", content_id,
                    NodeType.ELEMENT, element.id,
                )
                continue
            edge = builder.create_edge(element.id, content_id, RelationshipType.CONTAINER)
            if edge is not None:
                created.append(edge)
    return created


def create_chain_edges(
    lookup: EntityLookupMaps,
    builder: EdgeBuilder,
    missing: Optional[MissingReferences] = None
) -> List[GraphEdge]:
    """Puzzle -> sub-puzzle."""
    created = []
    for puzzle in lookup.puzzles.values():
        for sub_id in puzzle.sub_puzzle_ids:
            if sub_id == puzzle.id:
                builder.collector.record(Diagnostic.warning(
                    DiagnosticCode.SELF_REFERENCE,
                    "Puzzle lists itself as a sub-puzzle",
                    puzzle_id=puzzle.id,
                ))
                continue
            if sub_id not in lookup.puzzles:
                _dangling(
                    builder, missing, DiagnosticCode.UNKNOWN_PUZZLE,
                    "Sub-puzzle not found", sub_id,
                    NodeType.PUZZLE, puzzle.id,
                )
                continue
            edge = builder.create_edge(puzzle.id, sub_id, RelationshipType.CHAIN)
            if edge is not None:
                created.append(edge)
    return created


EdgeCreator = Callable[
    [EntityLookupMaps, EdgeBuilder, Optional[MissingReferences]], List[GraphEdge]
]

EDGE_CREATORS: Tuple[Tuple[RelationshipType, EdgeCreator], ...] = (
    (RelationshipType.OWNERSHIP, create_ownership_edges),
    (RelationshipType.REQUIREMENT, create_requirement_edges),
    (RelationshipType.REWARD, create_reward_edges),
    (RelationshipType.TIMELINE, create_timeline_edges),
    (RelationshipType.CONTAINER, create_container_edges),
    (RelationshipType.CHAIN, create_chain_edges),
)


# =============================================================================
# RESOLVER
# =============================================================================

@dataclass(frozen=True)
class IntegrityResolution:
    edges: Tuple[GraphEdge, ...]
    placeholder_nodes: Tuple[GraphNode, ...]
    report: DataIntegrityReport


class RelationshipResolver:
    """
    Resolves all relationship types for one set of entity collections.

    Resolution never raises on bad references. Everything that was
    skipped is in ``collector``.
    """

    def __init__(
        self,
        weighting: Optional[EdgeWeighting] = None,
        collector: Optional[DiagnosticsCollector] = None,
        relationship_types: Optional[Sequence[RelationshipType]] = None
    ):
        self._weighting = weighting or DEFAULT_EDGE_WEIGHTING
        self._collector = collector or DiagnosticsCollector("resolver")
        self._types: Set[RelationshipType] = set(
            relationship_types if relationship_types is not None else RelationshipType
        )

    @property
    def collector(self) -> DiagnosticsCollector:
        return self._collector

    def resolve(
        self,
        characters: Iterable[Character] = (),
        elements: Iterable[Element] = (),
        puzzles: Iterable[Puzzle] = (),
        timeline: Iterable[TimelineEvent] = ()
    ) -> Tuple[GraphEdge, ...]:
        lookup = build_lookup_maps(characters, elements, puzzles, timeline)
        return self.resolve_lookup(lookup)

    def resolve_lookup(
        self,
        lookup: EntityLookupMaps,
        missing: Optional[MissingReferences] = None
    ) -> Tuple[GraphEdge, ...]:
        builder = EdgeBuilder(self._weighting, self._collector)
        for relationship_type, creator in EDGE_CREATORS:
            if relationship_type in self._types:
                creator(lookup, builder, missing)

        edges = tuple(sorted(builder.get_edges(), key=lambda e: e.id))
        self._collector.record(Diagnostic.info(
            DiagnosticCode.EDGES_CREATED,
            "Relationship resolution complete",
            **{k: str(v) for k, v in builder.statistics()["by_type"].items()},
            total=str(len(edges)),
        ))
        return edges

    def resolve_with_integrity(
        self,
        characters: Iterable[Character] = (),
        elements: Iterable[Element] = (),
        puzzles: Iterable[Puzzle] = (),
        timeline: Iterable[TimelineEvent] = ()
    ) -> IntegrityResolution:
        """
        Resolve edges and account for every dangling reference.

        Each distinct missing id becomes one placeholder node, unless the
        id belongs to an entity of another kind: that reference still
        counts as broken but the existing node keeps the id. The
        integrity score is the share of relationships that resolved,
        as a whole percentage (100 when there are none).
        """
        lookup = build_lookup_maps(characters, elements, puzzles, timeline)
        missing = MissingReferences()
        edges = self.resolve_lookup(lookup, missing)

        missing_entities = missing.entities()
        placeholders = tuple(
            NodeTransformer.create_placeholder_node(
                m.entity_id, m.entity_type, m.referenced_by
            )
            for m in missing_entities
            if lookup.find(m.entity_id) is None
        )

        broken = len(missing_entities)
        total = len(edges) + broken
        score = math.floor((total - broken) / total * 100 + 0.5) if total else 100

        self._collector.record(Diagnostic.info(
            DiagnosticCode.INTEGRITY_REPORT,
            f"Data integrity: {score}%",
            broken=str(broken),
            total=str(total),
        ))

        return IntegrityResolution(
            edges=edges,
            placeholder_nodes=placeholders,
            report=DataIntegrityReport(
                missing_entities=missing_entities,
                broken_relationships=broken,
                total_relationships=total,
                integrity_score=score,
            ),
        )


# =============================================================================
# MODULE-LEVEL HELPERS
# =============================================================================

def resolve_all_relationships(
    characters: Iterable[Character] = (),
    elements: Iterable[Element] = (),
    puzzles: Iterable[Puzzle] = (),
    timeline: Iterable[TimelineEvent] = (),
    collector: Optional[DiagnosticsCollector] = None
) -> Tuple[GraphEdge, ...]:
    return RelationshipResolver(collector=collector).resolve(
        characters, elements, puzzles, timeline
    )


def filter_edges_by_type(
    edges: Iterable[GraphEdge],
    relationship_types: Iterable[RelationshipType]
) -> List[GraphEdge]:
    wanted = set(relationship_types)
    return [e for e in edges if e.relationship_type in wanted]
