"""
Graph Builder

Orchestrates one resolver run: entity collections in, ResolvedGraph out.

LAYER FLOW:
===========
1. Lookup maps index the four collections by id
2. Transformers turn every entity into a node
3. The relationship resolver derives edges (with integrity accounting)
4. Placeholder nodes stand in for missing referenced entities
5. Diagnostics from every step travel with the result

The builder holds no state between runs; each ``build`` creates a fresh
diagnostics collector.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..config import (
    EdgeWeighting, ImportanceWeights,
    DEFAULT_EDGE_WEIGHTING, DEFAULT_IMPORTANCE_WEIGHTS,
)
from ..contracts.entities import Character, Element, Puzzle, TimelineEvent
from ..contracts.graph import ResolvedGraph
from ..observability import DiagnosticsCollector
from .filtering import filter_edges_to_visible
from .relationships import RelationshipResolver
from .transformers import NodeTransformer


@dataclass(frozen=True)
class BuilderConfig:
    edge_weighting: EdgeWeighting = field(default_factory=lambda: DEFAULT_EDGE_WEIGHTING)
    importance_weights: ImportanceWeights = field(default_factory=lambda: DEFAULT_IMPORTANCE_WEIGHTS)
    include_placeholders: bool = True


class GraphBuilder:
    """Entry point for turning investigation data into a graph."""

    def __init__(self, config: Optional[BuilderConfig] = None):
        self._config = config or BuilderConfig()

    @property
    def config(self) -> BuilderConfig:
        return self._config

    def build(
        self,
        characters: Iterable[Character] = (),
        elements: Iterable[Element] = (),
        puzzles: Iterable[Puzzle] = (),
        timeline: Iterable[TimelineEvent] = ()
    ) -> ResolvedGraph:
        characters = list(characters)
        elements = list(elements)
        puzzles = list(puzzles)
        timeline = list(timeline)

        collector = DiagnosticsCollector("builder")
        transformer = NodeTransformer(self._config.importance_weights, collector)
        resolver = RelationshipResolver(self._config.edge_weighting, collector)

        nodes = (
            transformer.transform_characters(characters)
            + transformer.transform_elements(elements)
            + transformer.transform_puzzles(puzzles)
            + transformer.transform_timeline_events(timeline)
        )

        resolution = resolver.resolve_with_integrity(characters, elements, puzzles, timeline)
        if self._config.include_placeholders:
            present = {n.id for n in nodes}
            nodes.extend(
                p for p in resolution.placeholder_nodes if p.id not in present
            )

        edges = filter_edges_to_visible(resolution.edges, (n.id for n in nodes))

        return ResolvedGraph(
            nodes=tuple(nodes),
            edges=tuple(edges),
            diagnostics=collector.snapshot(),
            integrity=resolution.report,
        )

    def build_from_records(
        self,
        characters: Sequence[Mapping[str, Any]] = (),
        elements: Sequence[Mapping[str, Any]] = (),
        puzzles: Sequence[Mapping[str, Any]] = (),
        timeline: Sequence[Mapping[str, Any]] = ()
    ) -> ResolvedGraph:
        """Build from raw camelCase records as delivered by the data source."""
        return self.build(
            characters=[Character.from_record(r) for r in characters],
            elements=[Element.from_record(r) for r in elements],
            puzzles=[Puzzle.from_record(r) for r in puzzles],
            timeline=[TimelineEvent.from_record(r) for r in timeline],
        )
