"""
Graph Contracts

Typed nodes and edges derived from the investigation entities.

Nodes are created once per resolver run and never mutated afterwards.
A layout computation produces a positioned copy (``GraphNode.with_position``);
the unpositioned resolver output is never touched.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple
from enum import Enum

from .base import Diagnostic
from .entities import (
    Character, Element, Puzzle, TimelineEvent, Entity, entity_kind
)


# =============================================================================
# ENUMS
# =============================================================================

class NodeType(Enum):
    CHARACTER = "character"
    ELEMENT = "element"
    PUZZLE = "puzzle"
    TIMELINE = "timeline"
    PLACEHOLDER = "placeholder"


class RelationshipType(Enum):
    OWNERSHIP = "ownership"
    REQUIREMENT = "requirement"
    REWARD = "reward"
    TIMELINE = "timeline"
    CONTAINER = "container"
    CHAIN = "chain"


_NODE_TYPES = {
    Character: NodeType.CHARACTER,
    Element: NodeType.ELEMENT,
    Puzzle: NodeType.PUZZLE,
    TimelineEvent: NodeType.TIMELINE,
}


def entity_node_type(entity: Entity) -> NodeType:
    return _NODE_TYPES[entity_kind(entity)]


def make_edge_id(source: str, target: str, relationship_type: RelationshipType) -> str:
    """Deterministic edge id; one id per (source, target, type) triple."""
    return f"{relationship_type.value}-{source}-{target}"


# =============================================================================
# NODE CONTRACTS
# =============================================================================

@dataclass(frozen=True)
class Position:
    x: float
    y: float


@dataclass(frozen=True)
class VisualHints:
    """Rendering hints produced here and consumed by the UI."""
    color: str
    size: str  # small, medium, large
    icon: str


@dataclass(frozen=True)
class ErrorState:
    """Validation failure attached to a node that was still created."""
    kind: str  # missing_data, invalid_relation, missing_entity
    message: str


@dataclass(frozen=True)
class NodeMetadata:
    entity_type: NodeType
    importance_score: float
    visual_hints: VisualHints
    error_state: Optional[ErrorState] = None
    attributes: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @property
    def has_error(self) -> bool:
        return self.error_state is not None


@dataclass(frozen=True)
class GraphNode:
    """
    Graph node for one entity.

    ``id`` equals the source entity id. ``entity`` is None only for
    placeholder nodes standing in for a missing referenced entity.
    """
    id: str
    type: NodeType
    entity: Optional[Entity]
    label: str
    metadata: NodeMetadata
    position: Optional[Position] = None

    def with_position(self, x: float, y: float) -> GraphNode:
        return replace(self, position=Position(x=x, y=y))


# =============================================================================
# EDGE CONTRACTS
# =============================================================================

@dataclass(frozen=True)
class GraphEdge:
    """Directed, typed relationship between two nodes."""
    id: str
    source: str
    target: str
    relationship_type: RelationshipType
    weight: float
    strength: float
    label: str
    animated: bool = False

    @property
    def key(self) -> Tuple[str, str, RelationshipType]:
        return (self.source, self.target, self.relationship_type)

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id


# =============================================================================
# GRAPH CONTRACTS
# =============================================================================

@dataclass(frozen=True)
class GraphData:
    """Nodes and edges; positioned when produced by a layout computation."""
    nodes: Tuple[GraphNode, ...] = field(default_factory=tuple)
    edges: Tuple[GraphEdge, ...] = field(default_factory=tuple)

    @property
    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def node_map(self) -> Dict[str, GraphNode]:
        return {n.id: n for n in self.nodes}

    @property
    def is_positioned(self) -> bool:
        return bool(self.nodes) and all(n.position is not None for n in self.nodes)


@dataclass(frozen=True)
class MissingEntity:
    """A referenced entity that is absent from the input collections."""
    entity_id: str
    entity_type: NodeType
    referenced_by: Tuple[str, ...]


@dataclass(frozen=True)
class DataIntegrityReport:
    missing_entities: Tuple[MissingEntity, ...]
    broken_relationships: int
    total_relationships: int
    integrity_score: int  # 0-100


@dataclass(frozen=True)
class ResolvedGraph(GraphData):
    """
    Resolver output: nodes and edges without positions, plus the
    diagnostics gathered while building them.
    """
    diagnostics: Tuple[Diagnostic, ...] = field(default_factory=tuple)
    integrity: Optional[DataIntegrityReport] = None

    def as_graph_data(self) -> GraphData:
        return GraphData(nodes=self.nodes, edges=self.edges)
