"""
Case Graph
==========

Builds an investigation graph from characters, elements, puzzles and
timeline events, and caches layouts computed for it.

LAYERS:
=======
- contracts: immutable entity, node, edge and diagnostic types
- core: lookup, transformation, relationship resolution, traversal
- cache: graph hashing and the TTL/LRU layout cache
- observability: structured diagnostics mirrored to ``logging``
- temporal: injectable clocks
"""

from .config import EdgeWeighting, ImportanceWeights
from .contracts import (
    Character, Element, Puzzle, TimelineEvent,
    GraphNode, GraphEdge, GraphData, ResolvedGraph,
    NodeType, RelationshipType, Diagnostic, DiagnosticCode, Severity,
)
from .core import GraphBuilder, RelationshipResolver, FilterCriteria, apply_filters
from .cache import CacheConfig, LayoutCache, hash_graph

__version__ = "0.1.0"

__all__ = [
    'EdgeWeighting', 'ImportanceWeights',
    'Character', 'Element', 'Puzzle', 'TimelineEvent',
    'GraphNode', 'GraphEdge', 'GraphData', 'ResolvedGraph',
    'NodeType', 'RelationshipType', 'Diagnostic', 'DiagnosticCode', 'Severity',
    'GraphBuilder', 'RelationshipResolver', 'FilterCriteria', 'apply_filters',
    'CacheConfig', 'LayoutCache', 'hash_graph',
]
