"""
Case Fixtures

Explicit investigation data for deterministic testing.

RULES:
======
1. All fixtures are EXPLICIT, not random
2. Every cross-reference in the clean case resolves
3. The broken case documents each defect it contains
"""

from __future__ import annotations
from typing import List, Tuple

from casegraph.contracts import (
    Act, Character, CharacterTier, CharacterType, Element, Puzzle,
    TimelineEvent, GraphData, GraphNode,
)
from casegraph.core import NodeTransformer
from layout_adapter import LayoutConfig


Case = Tuple[List[Character], List[Element], List[Puzzle], List[TimelineEvent]]


# =============================================================================
# CLEAN CASE: Blackwood Manor
# =============================================================================

def make_characters() -> List[Character]:
    return [
        Character(
            id="char-alex",
            name="Alex Reeves",
            character_type=CharacterType.PLAYER,
            tier=CharacterTier.CORE,
            owned_element_ids=("elem-diary", "elem-key"),
            character_puzzle_ids=("puz-safe",),
            event_ids=("evt-party",),
        ),
        Character(
            id="char-marcus",
            name="Marcus Blackwood",
            character_type=CharacterType.NPC,
            tier=CharacterTier.SECONDARY,
            owned_element_ids=("elem-letter",),
        ),
        Character(
            id="char-sam",
            name="Sam Ortiz",
            character_type=CharacterType.PLAYER,
            tier=CharacterTier.TERTIARY,
        ),
    ]


def make_elements() -> List[Element]:
    return [
        Element(
            id="elem-diary",
            name="Victoria's Diary",
            basic_type="Document",
            status="Done",
            owner_id="char-alex",
            timeline_event_id="evt-party",
            first_available=Act.ACT_1,
            required_for_puzzle_ids=("puz-safe",),
        ),
        Element(
            id="elem-key",
            name="Brass Key",
            basic_type="Prop",
            status="In development",
            owner_id="char-alex",
            first_available=Act.ACT_0,
            rewarded_by_puzzle_ids=("puz-safe",),
        ),
        Element(
            id="elem-box",
            name="Lockbox",
            basic_type="Set Dressing",
            status="Design Complete",
            content_ids=("elem-letter",),
            first_available=Act.ACT_1,
        ),
        Element(
            id="elem-letter",
            name="Threatening Letter",
            basic_type="Memory Token (Audio)",
            status="Ready for Playtest",
            owner_id="char-marcus",
            container_id="elem-box",
            first_available=Act.ACT_2,
            description="Unsigned letter warning Victoria to stay away",
        ),
    ]


def make_puzzles() -> List[Puzzle]:
    return [
        Puzzle(
            id="puz-safe",
            name="Open the Safe",
            puzzle_element_ids=("elem-diary",),
            reward_ids=("elem-key",),
            sub_puzzle_ids=("puz-combo",),
            locked_item_id="elem-box",
            timing=(Act.ACT_1,),
        ),
        Puzzle(
            id="puz-combo",
            name="Find the Combination",
            puzzle_element_ids=("elem-letter",),
            parent_item_id="puz-safe",
            timing=(Act.ACT_1,),
        ),
    ]


def make_timeline() -> List[TimelineEvent]:
    return [
        TimelineEvent(
            id="evt-party",
            name="The Engagement Party",
            description="Victoria announces her engagement",
            date="2023-02-14",
        ),
        TimelineEvent(
            id="evt-storm",
            name="The Storm",
            description="Power cut during the storm",
            date="2023-02-13T22:00:00Z",
        ),
    ]


def make_case() -> Case:
    return make_characters(), make_elements(), make_puzzles(), make_timeline()


# Every edge the clean case resolves to, as (source, target, type value)
EXPECTED_CASE_EDGES = {
    ("char-alex", "elem-diary", "ownership"),
    ("char-alex", "elem-key", "ownership"),
    ("char-marcus", "elem-letter", "ownership"),
    ("elem-diary", "puz-safe", "requirement"),
    ("elem-letter", "puz-combo", "requirement"),
    ("puz-safe", "elem-key", "reward"),
    ("elem-diary", "evt-party", "timeline"),
    ("elem-box", "elem-letter", "container"),
    ("puz-safe", "puz-combo", "chain"),
}


# =============================================================================
# BROKEN CASE
# =============================================================================

def make_broken_case() -> Case:
    """
    Defects:
    - elem-orphan is owned by char-ghost, who does not exist
    - puz-broken requires elem-missing, which does not exist
    - puz-broken rewards elem-missing as well (same missing id)
    - elem-nest lists itself among its contents
    - elem-dated points at evt-lost, which does not exist
    """
    characters = [
        Character(id="char-ivy", name="Ivy Lane", tier=CharacterTier.CORE,
                  character_type=CharacterType.PLAYER),
    ]
    elements = [
        Element(id="elem-orphan", name="Orphaned Locket", owner_id="char-ghost"),
        Element(id="elem-nest", name="Nested Box", content_ids=("elem-nest", "elem-orphan")),
        Element(id="elem-dated", name="Torn Photo", timeline_event_id="evt-lost"),
    ]
    puzzles = [
        Puzzle(
            id="puz-broken",
            name="Broken Puzzle",
            puzzle_element_ids=("elem-missing", "elem-orphan"),
            reward_ids=("elem-missing",),
        ),
    ]
    return characters, elements, puzzles, []


# =============================================================================
# GRAPH HELPERS
# =============================================================================

def tiny_graph(tag: str) -> GraphData:
    """One-element graph whose content depends only on ``tag``."""
    node = NodeTransformer().transform(Element(id=f"elem-{tag}", name=tag.title()))
    return GraphData(nodes=(node,), edges=())


def grid_layout(graph: GraphData, layout_config: LayoutConfig) -> GraphData:
    """Deterministic stand-in for an external layout engine."""
    spacing = layout_config.spacing or 100.0
    nodes: List[GraphNode] = [
        node.with_position(x=(i % 4) * spacing, y=(i // 4) * spacing)
        for i, node in enumerate(sorted(graph.nodes, key=lambda n: n.id))
    ]
    return GraphData(nodes=tuple(nodes), edges=graph.edges)
