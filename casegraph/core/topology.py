"""
Topology Engine
===============

Connectivity and traversal over an already-resolved case graph.

SCOPE:
======
Everything here is structural: degree, neighbourhoods, reachability,
components, paths and cycles. Edge direction matters only for cycle
detection and for the incoming/outgoing split; every other traversal
follows edges in both directions.

GUARANTEES:
- Traversals are breadth-first with a visited set; each node is
  reported at most once and cyclic graphs terminate
- Depth 0 yields only the focus node
- Unknown node ids never raise; they yield the trivial answer
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple
import networkx as nx

from ..contracts.graph import GraphEdge, GraphNode


@dataclass(frozen=True)
class GraphMetrics:
    """Immutable structural metrics for a graph or subgraph."""
    node_count: int
    edge_count: int
    density: float
    is_connected: bool
    connected_components_count: int
    diameter: Optional[int] = None  # Only for connected graphs


@dataclass(frozen=True)
class ConnectedEdges:
    incoming: Tuple[GraphEdge, ...]
    outgoing: Tuple[GraphEdge, ...]


# =============================================================================
# EDGE-LIST HELPERS
# =============================================================================

def calculate_connectivity(node_id: str, edges: Iterable[GraphEdge]) -> int:
    """In-degree plus out-degree of ``node_id``."""
    return sum(1 for e in edges if e.touches(node_id))


def get_connected_edges(node_id: str, edges: Iterable[GraphEdge]) -> ConnectedEdges:
    """Split the edges touching a node by direction, keeping input order."""
    incoming = []
    outgoing = []
    for edge in edges:
        if edge.target == node_id:
            incoming.append(edge)
        if edge.source == node_id:
            outgoing.append(edge)
    return ConnectedEdges(incoming=tuple(incoming), outgoing=tuple(outgoing))


def get_nodes_within_depth(node_id: str, edges: Iterable[GraphEdge], depth: int) -> Set[str]:
    engine = TopologyEngine()
    engine.build_graph((node_id,), edges)
    return engine.nodes_within_depth(node_id, depth)


def get_visible_node_ids(
    filtered_ids: Iterable[str],
    edges: Iterable[GraphEdge],
    selected_id: Optional[str] = None,
    depth: int = 0
) -> Set[str]:
    """
    Expand a filtered node set by ``depth`` hops of context.

    If ``selected_id`` is inside the filtered set, only the selection is
    expanded, and depth 0 shows the selection alone. Otherwise every
    filtered node is expanded.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")

    filtered = set(filtered_ids)
    selected = selected_id is not None and selected_id in filtered
    if depth == 0:
        return {selected_id} if selected else filtered

    engine = TopologyEngine()
    engine.build_graph(filtered, edges)

    if selected:
        return engine.nodes_within_depth(selected_id, depth)

    visible = set(filtered)
    for node_id in filtered:
        visible |= engine.nodes_within_depth(node_id, depth)
    return visible


# =============================================================================
# TOPOLOGY ENGINE
# =============================================================================

class TopologyEngine:
    """
    Structural analysis of a case graph.

    Wraps NetworkX. ``build_graph`` replaces the internal state; the
    directed view is kept alongside for cycle detection.
    """

    def __init__(self):
        self._graph = nx.Graph()
        self._directed = nx.DiGraph()

    @classmethod
    def from_graph(
        cls,
        nodes: Iterable[GraphNode],
        edges: Iterable[GraphEdge]
    ) -> TopologyEngine:
        engine = cls()
        engine.build_graph((n.id for n in nodes), edges)
        return engine

    def build_graph(self, node_ids: Iterable[str], edges: Iterable[GraphEdge]) -> None:
        """Build from node ids and edges; edge endpoints are added as nodes."""
        self._graph = nx.Graph()
        self._directed = nx.DiGraph()

        for node_id in node_ids:
            self._graph.add_node(node_id)
            self._directed.add_node(node_id)

        for edge in edges:
            self._graph.add_edge(
                edge.source, edge.target,
                relationship_type=edge.relationship_type.value
            )
            self._directed.add_edge(edge.source, edge.target)

    def has_node(self, node_id: str) -> bool:
        return self._graph.has_node(node_id)

    def degree(self, node_id: str) -> int:
        """Undirected degree; parallel edges of different types count once."""
        if not self._graph.has_node(node_id):
            return 0
        return self._graph.degree(node_id)

    def nodes_within_depth(self, node_id: str, depth: int) -> Set[str]:
        """Nodes at most ``depth`` hops from ``node_id``, itself included."""
        if depth < 0:
            raise ValueError("depth must be >= 0")
        if not self._graph.has_node(node_id):
            return {node_id}
        return set(nx.single_source_shortest_path_length(self._graph, node_id, cutoff=depth))

    def distances_from(self, node_id: str, depth: Optional[int] = None) -> Dict[str, int]:
        if not self._graph.has_node(node_id):
            return {node_id: 0}
        return dict(nx.single_source_shortest_path_length(self._graph, node_id, cutoff=depth))

    def reachable_from(self, node_id: str) -> Set[str]:
        """Every node connected to ``node_id`` in either direction."""
        if not self._graph.has_node(node_id):
            return {node_id}
        return set(nx.node_connected_component(self._graph, node_id))

    def get_connected_components(self) -> List[Set[str]]:
        """Disjoint subgraphs, largest first."""
        if not self._graph:
            return []
        return sorted(
            (set(c) for c in nx.connected_components(self._graph)),
            key=lambda c: (-len(c), min(c)),
        )

    def find_isolated_nodes(self) -> List[str]:
        return sorted(nx.isolates(self._graph))

    def get_shortest_path(self, start_id: str, end_id: str) -> Optional[List[str]]:
        """Shortest undirected path, or None when absent or unknown."""
        try:
            return nx.shortest_path(self._graph, source=start_id, target=end_id)
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            return None

    def detect_cycles(self) -> List[List[str]]:
        """Directed cycles, each rotated to start at its smallest id."""
        cycles = []
        for cycle in nx.simple_cycles(self._directed):
            pivot = cycle.index(min(cycle))
            cycles.append(cycle[pivot:] + cycle[:pivot])
        return sorted(cycles)

    def compute_metrics(self) -> GraphMetrics:
        if not self._graph:
            return GraphMetrics(0, 0, 0.0, False, 0, None)

        is_connected = nx.is_connected(self._graph)

        diameter = None
        if is_connected and len(self._graph) > 1:
            diameter = nx.diameter(self._graph)

        return GraphMetrics(
            node_count=self._graph.number_of_nodes(),
            edge_count=self._graph.number_of_edges(),
            density=nx.density(self._graph),
            is_connected=is_connected,
            connected_components_count=nx.number_connected_components(self._graph),
            diameter=diameter
        )

    def clear(self) -> None:
        self._graph.clear()
        self._directed.clear()
