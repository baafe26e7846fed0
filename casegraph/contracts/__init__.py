"""
Case Graph Contracts

Immutable data definitions shared by every layer. No behaviour beyond
construction helpers.
"""

from .base import Severity, DiagnosticCode, Diagnostic, Result
from .entities import (
    CharacterType, CharacterTier, Act,
    Character, Element, Puzzle, TimelineEvent,
    Entity, ENTITY_KINDS, entity_kind,
)
from .graph import (
    NodeType, RelationshipType, Position, VisualHints, ErrorState,
    NodeMetadata, GraphNode, GraphEdge, GraphData, ResolvedGraph,
    MissingEntity, DataIntegrityReport, entity_node_type, make_edge_id,
)

__all__ = [
    'Severity', 'DiagnosticCode', 'Diagnostic', 'Result',
    'CharacterType', 'CharacterTier', 'Act',
    'Character', 'Element', 'Puzzle', 'TimelineEvent',
    'Entity', 'ENTITY_KINDS', 'entity_kind',
    'NodeType', 'RelationshipType', 'Position', 'VisualHints', 'ErrorState',
    'NodeMetadata', 'GraphNode', 'GraphEdge', 'GraphData', 'ResolvedGraph',
    'MissingEntity', 'DataIntegrityReport', 'entity_node_type', 'make_edge_id',
]
