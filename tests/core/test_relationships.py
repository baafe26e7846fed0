"""
Relationship Resolver Tests
===========================

Verifies per-type edge rules, deduplication, self-reference rejection
and integrity accounting for dangling references.
"""

import pytest

from casegraph.config import EdgeWeighting
from casegraph.contracts import (
    Character, CharacterTier, DiagnosticCode, Element, NodeType, Puzzle,
    RelationshipType, Severity,
)
from casegraph.core import (
    EdgeBuilder, GraphBuilder, RelationshipResolver, build_lookup_maps,
    create_container_edges, create_ownership_edges, filter_edges_by_type,
    merge_edge_builders, resolve_all_relationships,
)
from casegraph.observability import DiagnosticsCollector

from tests.fixtures import EXPECTED_CASE_EDGES, make_broken_case, make_case


def triples(edges):
    return {(e.source, e.target, e.relationship_type.value) for e in edges}


@pytest.fixture
def collector():
    return DiagnosticsCollector("test")


class TestEdgeBuilder:

    def test_edge_id_is_deterministic(self):
        builder = EdgeBuilder()
        edge = builder.create_edge("p1", "e1", RelationshipType.REWARD)

        assert edge.id == "reward-p1-e1"
        assert edge.weight == 8.0
        assert edge.strength == 0.7
        assert edge.label == "gives"
        assert edge.animated is True

    def test_duplicate_collapses(self, collector):
        builder = EdgeBuilder(collector=collector)
        first = builder.create_edge("e1", "p1", RelationshipType.REQUIREMENT)
        second = builder.create_edge("e1", "p1", RelationshipType.REQUIREMENT)

        assert first is not None
        assert second is None
        assert len(builder) == 1
        dupes = collector.get_entries(code=DiagnosticCode.DUPLICATE_EDGE)
        assert dupes[0].severity == Severity.DEBUG

    def test_same_endpoints_different_type_are_distinct(self):
        builder = EdgeBuilder()
        builder.create_edge("a", "b", RelationshipType.CONTAINER)
        builder.create_edge("a", "b", RelationshipType.TIMELINE)
        assert len(builder) == 2

    def test_self_edge_rejected(self, collector):
        builder = EdgeBuilder(collector=collector)
        assert builder.create_edge("x", "x", RelationshipType.CHAIN) is None
        assert len(builder) == 0
        assert collector.get_entries(code=DiagnosticCode.SELF_REFERENCE)

    def test_unknown_endpoint_rejected_when_nodes_known(self, collector):
        builder = EdgeBuilder(collector=collector, known_node_ids={"a", "b"})

        assert builder.create_edge("a", "b", RelationshipType.CONTAINER) is not None
        assert builder.create_edge("a", "zz", RelationshipType.CONTAINER) is None
        assert collector.get_entries(code=DiagnosticCode.UNKNOWN_REFERENCE)

    def test_queries_and_removal(self):
        builder = EdgeBuilder()
        builder.create_edge("a", "b", RelationshipType.CONTAINER)
        builder.create_edge("b", "c", RelationshipType.CHAIN)

        assert builder.has_edge("a", "b", RelationshipType.CONTAINER)
        assert [e.id for e in builder.get_node_edges("b")] == ["container-a-b", "chain-b-c"]
        assert [e.id for e in builder.filter_by_type(RelationshipType.CHAIN)] == ["chain-b-c"]

        stats = builder.statistics()
        assert stats["total"] == 2
        assert stats["by_type"] == {"container": 1, "chain": 1}
        assert stats["average_weight"] == 8.0

        assert builder.remove_edge("a", "b", RelationshipType.CONTAINER) is True
        assert builder.remove_edge("a", "b", RelationshipType.CONTAINER) is False
        assert len(builder) == 1

    def test_merge_keeps_first_edge_per_key(self):
        left = EdgeBuilder()
        right = EdgeBuilder()
        left.create_edge("a", "b", RelationshipType.CONTAINER, label="left")
        right.create_edge("a", "b", RelationshipType.CONTAINER, label="right")
        right.create_edge("b", "c", RelationshipType.CONTAINER)

        merged = merge_edge_builders(left, right)

        assert len(merged) == 2
        assert merged[0].label == "left"


class TestPerTypeRules:

    def test_clean_case_resolves_every_relationship(self):
        edges = resolve_all_relationships(*make_case())
        assert triples(edges) == EXPECTED_CASE_EDGES

    def test_ownership_strength_follows_owner_tier(self):
        edges = {e.id: e for e in resolve_all_relationships(*make_case())}

        assert edges["ownership-char-alex-elem-diary"].strength == 0.9
        assert edges["ownership-char-marcus-elem-letter"].strength == 0.75

    def test_ownership_strength_for_unknown_tier(self):
        edges = resolve_all_relationships(
            characters=[Character(id="c1", name="Nobody")],
            elements=[Element(id="e1", name="Coin", owner_id="c1")],
        )
        assert edges[0].strength == 0.6

    def test_weights_per_type(self):
        edges = {e.relationship_type: e for e in resolve_all_relationships(*make_case())}

        assert edges[RelationshipType.CHAIN].weight == 15.0
        assert edges[RelationshipType.REQUIREMENT].weight == 10.0
        assert edges[RelationshipType.REWARD].weight == 8.0
        assert edges[RelationshipType.OWNERSHIP].weight == 1.0
        assert edges[RelationshipType.CHAIN].label == "leads to"
        assert edges[RelationshipType.TIMELINE].strength == 0.5

    def test_only_rewards_are_animated(self):
        for edge in resolve_all_relationships(*make_case()):
            assert edge.animated == (edge.relationship_type == RelationshipType.REWARD)

    def test_custom_weighting(self):
        weighting = EdgeWeighting(default_weight=2.5)
        resolver = RelationshipResolver(weighting=weighting)
        edges = resolver.resolve(*make_case())

        ownership = [e for e in edges if e.relationship_type == RelationshipType.OWNERSHIP]
        assert all(e.weight == 2.5 for e in ownership)

    def test_invalid_strength_rejected(self):
        with pytest.raises(ValueError):
            EdgeWeighting(strengths=((RelationshipType.REWARD, 1.5),))

    def test_self_containment_skipped_with_warning(self, collector):
        lookup = build_lookup_maps(elements=[
            Element(id="box", name="Box", content_ids=("box", "coin")),
            Element(id="coin", name="Coin"),
        ])
        builder = EdgeBuilder(collector=collector)
        created = create_container_edges(lookup, builder)

        assert [(e.source, e.target) for e in created] == [("box", "coin")]
        warnings = collector.get_entries(code=DiagnosticCode.SELF_REFERENCE)
        assert len(warnings) == 1
        assert warnings[0].context_value("element_id") == "box"

    def test_unknown_owner_warns_and_skips(self, collector):
        lookup = build_lookup_maps(elements=[Element(id="e1", name="Coin", owner_id="ghost")])
        builder = EdgeBuilder(collector=collector)

        assert create_ownership_edges(lookup, builder) == []
        warning = collector.get_entries(code=DiagnosticCode.UNKNOWN_OWNER)[0]
        assert warning.severity == Severity.WARNING
        assert warning.context_value("missing_id") == "ghost"

    def test_duplicate_reference_yields_one_edge(self):
        edges = resolve_all_relationships(
            elements=[Element(id="e1", name="Coin")],
            puzzles=[Puzzle(id="p1", name="Slot", puzzle_element_ids=("e1", "e1"))],
        )
        assert [e.id for e in edges] == ["requirement-e1-p1"]

    def test_restricting_relationship_types(self):
        resolver = RelationshipResolver(relationship_types=[RelationshipType.CHAIN])
        edges = resolver.resolve(*make_case())
        assert [e.id for e in edges] == ["chain-puz-safe-puz-combo"]


class TestResolverDeterminism:

    def test_input_order_does_not_matter(self):
        characters, elements, puzzles, timeline = make_case()
        forward = resolve_all_relationships(characters, elements, puzzles, timeline)
        backward = resolve_all_relationships(
            reversed(characters), reversed(elements), reversed(puzzles), reversed(timeline)
        )
        assert forward == backward

    def test_output_sorted_by_edge_id(self):
        edges = resolve_all_relationships(*make_case())
        assert [e.id for e in edges] == sorted(e.id for e in edges)

    def test_summary_diagnostic_recorded(self, collector):
        RelationshipResolver(collector=collector).resolve(*make_case())
        summary = collector.get_entries(code=DiagnosticCode.EDGES_CREATED)[0]
        assert summary.context_value("total") == "9"
        assert summary.context_value("ownership") == "3"


class TestIntegrityResolution:

    def test_broken_case_never_raises(self, collector):
        resolver = RelationshipResolver(collector=collector)
        edges = resolver.resolve(*make_broken_case())

        assert triples(edges) == {
            ("elem-nest", "elem-orphan", "container"),
            ("elem-orphan", "puz-broken", "requirement"),
        }
        codes = collector.summary()
        assert codes[DiagnosticCode.UNKNOWN_OWNER] == 1
        assert codes[DiagnosticCode.UNKNOWN_ELEMENT] == 2
        assert codes[DiagnosticCode.UNKNOWN_TIMELINE_EVENT] == 1
        assert codes[DiagnosticCode.SELF_REFERENCE] == 1

    def test_report_and_placeholders(self):
        resolution = RelationshipResolver().resolve_with_integrity(*make_broken_case())
        report = resolution.report

        missing = {m.entity_id: m for m in report.missing_entities}
        assert set(missing) == {"char-ghost", "elem-missing", "evt-lost"}
        assert missing["elem-missing"].referenced_by == ("puz-broken", "puz-broken")
        assert missing["evt-lost"].entity_type == NodeType.TIMELINE

        assert report.broken_relationships == 3
        assert report.total_relationships == 5
        assert report.integrity_score == 40

        labels = sorted(n.label for n in resolution.placeholder_nodes)
        assert labels == [
            "Missing character: char-gho...",
            "Missing element: elem-mis...",
            "Missing timeline: evt-lost...",
        ]
        assert all(n.type == NodeType.PLACEHOLDER for n in resolution.placeholder_nodes)

    def test_reference_to_entity_of_other_kind_gets_no_placeholder(self, collector):
        resolution = RelationshipResolver(collector=collector).resolve_with_integrity(
            elements=[Element(id="e1", name="Coin", owner_id="p1")],
            puzzles=[Puzzle(id="p1", name="Slot")],
        )

        assert resolution.edges == ()
        assert resolution.placeholder_nodes == ()
        assert [m.entity_id for m in resolution.report.missing_entities] == ["p1"]
        assert resolution.report.integrity_score == 0
        assert collector.get_entries(code=DiagnosticCode.UNKNOWN_OWNER)

    def test_built_graph_node_ids_stay_unique(self):
        graph = GraphBuilder().build(
            elements=[Element(id="e1", name="Coin", owner_id="p1")],
            puzzles=[Puzzle(id="p1", name="Slot")],
        )

        assert sorted(graph.node_ids) == ["e1", "p1"]
        assert graph.node_map()["p1"].type == NodeType.PUZZLE

    def test_clean_case_scores_100(self):
        resolution = RelationshipResolver().resolve_with_integrity(*make_case())
        assert resolution.report.integrity_score == 100
        assert resolution.placeholder_nodes == ()

    def test_empty_input_scores_100(self):
        report = RelationshipResolver().resolve_with_integrity().report
        assert report.total_relationships == 0
        assert report.integrity_score == 100


class TestFilterEdgesByType:

    def test_filters(self):
        edges = resolve_all_relationships(*make_case())
        kept = filter_edges_by_type(edges, [RelationshipType.REWARD, RelationshipType.CHAIN])
        assert {e.relationship_type for e in kept} == {
            RelationshipType.REWARD, RelationshipType.CHAIN
        }
        assert len(kept) == 2
