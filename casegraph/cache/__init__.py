"""
Layout Cache Layer

RESPONSIBILITY: Content-addressed memoization of layout results
ALLOWED INPUTS: GraphData (unpositioned source, positioned result)
OUTPUTS: Previously computed positioned GraphData, metrics snapshots

WHAT THIS LAYER MUST NOT DO:
============================
- Compute layouts
- Mutate the graphs it is given or returns
- Raise into the caller on hashing or sizing failures
"""

from .hashing import (
    GraphHashError, SizeEstimationError, normalize_graph, canonical_json,
    fnv1a_32, hash_graph, estimate_size,
)
from .layout_cache import CacheConfig, CacheEntry, CacheMetrics, LayoutCache

__all__ = [
    'GraphHashError', 'SizeEstimationError', 'normalize_graph',
    'canonical_json', 'fnv1a_32', 'hash_graph', 'estimate_size',
    'CacheConfig', 'CacheEntry', 'CacheMetrics', 'LayoutCache',
]
