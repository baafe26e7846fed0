"""
Case Graph Core

RESPONSIBILITY: Entity indexing, node transformation, relationship
resolution, traversal and filtering
ALLOWED INPUTS: Character, Element, Puzzle, TimelineEvent
OUTPUTS: ResolvedGraph (nodes and edges, no positions)

WHAT THIS LAYER MUST NOT DO:
============================
- Compute positions (layout is an external collaborator)
- Cache anything (the cache layer owns that)
- Raise on dangling references or invalid entities

BOUNDARY ENFORCEMENT:
=====================
- Consumes ONLY contract types
- Problems surface as Diagnostic records and ErrorState flags
"""

from .lookup import EntityLookupMaps, build_lookup_maps
from .transformers import NodeTransformer, format_event_date, parse_event_date
from .relationships import (
    EdgeBuilder, MissingReferences, IntegrityResolution, RelationshipResolver,
    EDGE_CREATORS, create_ownership_edges, create_requirement_edges,
    create_reward_edges, create_timeline_edges, create_container_edges,
    create_chain_edges, merge_edge_builders, resolve_all_relationships,
    filter_edges_by_type,
)
from .topology import (
    GraphMetrics, ConnectedEdges, TopologyEngine, calculate_connectivity,
    get_connected_edges, get_nodes_within_depth, get_visible_node_ids,
)
from .filtering import (
    FilterCriteria, apply_filters, filter_by_search, filter_by_acts,
    filter_by_tiers, filter_by_entity_types, isolate_puzzle,
    filter_edges_to_visible,
)
from .builder import BuilderConfig, GraphBuilder

__all__ = [
    'EntityLookupMaps', 'build_lookup_maps',
    'NodeTransformer', 'format_event_date', 'parse_event_date',
    'EdgeBuilder', 'MissingReferences', 'IntegrityResolution',
    'RelationshipResolver', 'EDGE_CREATORS', 'create_ownership_edges',
    'create_requirement_edges', 'create_reward_edges', 'create_timeline_edges',
    'create_container_edges', 'create_chain_edges', 'merge_edge_builders',
    'resolve_all_relationships', 'filter_edges_by_type',
    'GraphMetrics', 'ConnectedEdges', 'TopologyEngine', 'calculate_connectivity',
    'get_connected_edges', 'get_nodes_within_depth', 'get_visible_node_ids',
    'FilterCriteria', 'apply_filters', 'filter_by_search', 'filter_by_acts',
    'filter_by_tiers', 'filter_by_entity_types', 'isolate_puzzle',
    'filter_edges_to_visible',
    'BuilderConfig', 'GraphBuilder',
]
