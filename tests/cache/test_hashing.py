"""
Graph Hashing Tests
===================

Fingerprints must ignore positions and ordering, and must change when
graph content changes.
"""

from dataclasses import replace
import json

import pytest

from casegraph.cache import (
    GraphHashError, SizeEstimationError, canonical_json, estimate_size,
    fnv1a_32, hash_graph,
)
from casegraph.contracts import Element, GraphData, GraphEdge, RelationshipType, make_edge_id
from casegraph.core import GraphBuilder, NodeTransformer
from layout_adapter import LayoutConfig

from tests.fixtures import grid_layout, make_case


@pytest.fixture
def graph():
    return GraphBuilder().build(*make_case()).as_graph_data()


class TestHashGraph:

    def test_sha256_prefix(self, graph):
        digest = hash_graph(graph)
        assert len(digest) == 16
        int(digest, 16)

    def test_deterministic(self, graph):
        assert hash_graph(graph) == hash_graph(GraphBuilder().build(*make_case()).as_graph_data())

    def test_order_independent(self, graph):
        shuffled = GraphData(nodes=tuple(reversed(graph.nodes)), edges=tuple(reversed(graph.edges)))
        assert hash_graph(shuffled) == hash_graph(graph)

    def test_position_independent(self, graph):
        positioned = grid_layout(graph, LayoutConfig("grid"))
        assert positioned.is_positioned
        assert hash_graph(positioned) == hash_graph(graph)

    def test_removing_an_edge_changes_hash(self, graph):
        fewer = replace(graph, edges=graph.edges[1:])
        assert hash_graph(fewer) != hash_graph(graph)

    def test_retyping_an_edge_changes_hash(self, graph):
        first = graph.edges[0]
        retyped = replace(first, relationship_type=RelationshipType.TIMELINE)
        changed = replace(graph, edges=(retyped,) + graph.edges[1:])
        assert hash_graph(changed) != hash_graph(graph)

    def test_entity_data_changes_hash(self):
        transformer = NodeTransformer()
        a = GraphData(nodes=(transformer.transform(Element(id="e1", name="Knife", status="Done")),))
        b = GraphData(nodes=(transformer.transform(Element(id="e1", name="Knife", status="In development")),))
        assert hash_graph(a) != hash_graph(b)

    def test_colliding_edge_ids_do_not_leak_order(self):
        def owns(source, target):
            return GraphEdge(
                id=make_edge_id(source, target, RelationshipType.OWNERSHIP),
                source=source,
                target=target,
                relationship_type=RelationshipType.OWNERSHIP,
                weight=1.0,
                strength=0.9,
                label="owns",
            )

        left, right = owns("x-y", "z"), owns("x", "y-z")
        assert left.id == right.id

        forward = GraphData(edges=(left, right))
        backward = GraphData(edges=(right, left))
        assert hash_graph(forward) == hash_graph(backward)
        assert hash_graph(forward, "fnv1a") == hash_graph(backward, "fnv1a")

    def test_nodes_sharing_an_id_do_not_leak_order(self):
        transformer = NodeTransformer()
        a = transformer.transform(Element(id="dup", name="Knife"))
        b = transformer.transform(Element(id="dup", name="Rope"))

        assert hash_graph(GraphData(nodes=(a, b))) == hash_graph(GraphData(nodes=(b, a)))

    def test_fnv1a_algorithm(self, graph):
        digest = hash_graph(graph, algorithm="fnv1a")
        assert int(digest, 36) < 2 ** 32
        assert digest == fnv1a_32(canonical_json(graph))

    def test_unknown_algorithm(self, graph):
        with pytest.raises(ValueError):
            hash_graph(graph, algorithm="md5")

    def test_unserializable_payload_raises_hash_error(self):
        element = Element(id="e1", name="Odd", properties=(("handle", object()),))
        graph = GraphData(nodes=(NodeTransformer().transform(element),))
        with pytest.raises(GraphHashError):
            hash_graph(graph)

    def test_canonical_json_excludes_positions(self, graph):
        positioned = grid_layout(graph, LayoutConfig("grid"))
        text = canonical_json(positioned)
        assert '"position"' not in text
        assert [n["id"] for n in json.loads(text)["nodes"]] == sorted(graph.node_ids)


class TestFnv1a:

    def test_reference_vectors(self):
        assert int(fnv1a_32(""), 36) == 0x811C9DC5
        assert int(fnv1a_32("a"), 36) == 0xE40C292C
        assert int(fnv1a_32("foobar"), 36) == 0xBF9CF968


class TestEstimateSize:

    def test_counts_utf8_bytes(self):
        ascii_node = NodeTransformer().transform(Element(id="e1", name="Knife"))
        accented = NodeTransformer().transform(Element(id="e1", name="Knifé"))

        ascii_size = estimate_size(GraphData(nodes=(ascii_node,)))
        accented_size = estimate_size(GraphData(nodes=(accented,)))
        # name and label each gain one byte for the two-byte character
        assert accented_size == ascii_size + 2

    def test_includes_positions(self, graph):
        assert estimate_size(grid_layout(graph, LayoutConfig("grid"))) > estimate_size(graph)

    def test_unserializable_raises_size_error(self):
        element = Element(id="e1", name="Odd", properties=(("handle", object()),))
        with pytest.raises(SizeEstimationError):
            estimate_size(GraphData(nodes=(NodeTransformer().transform(element),)))
