"""
Weighting Configuration

Named constants for edge weighting and node importance scoring.
The values were tuned by hand against real case data; they carry no
meaning beyond their relative ordering. Override by constructing a new
config (``dataclasses.replace``) and passing it to the resolver or
transformers.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Tuple

from .contracts.entities import Act, CharacterTier
from .contracts.graph import RelationshipType


def _frozen(mapping: Dict) -> Tuple[Tuple, ...]:
    return tuple(mapping.items())


# =============================================================================
# EDGE WEIGHTING
# =============================================================================

@dataclass(frozen=True)
class EdgeWeighting:
    """Per-relationship-type weight, strength and label."""
    weights: Tuple[Tuple[RelationshipType, float], ...] = _frozen({
        RelationshipType.CHAIN: 15.0,
        RelationshipType.REQUIREMENT: 10.0,
        RelationshipType.REWARD: 8.0,
    })
    default_weight: float = 1.0
    strengths: Tuple[Tuple[RelationshipType, float], ...] = _frozen({
        RelationshipType.REQUIREMENT: 0.8,
        RelationshipType.REWARD: 0.7,
        RelationshipType.CONTAINER: 0.7,
        RelationshipType.TIMELINE: 0.5,
        RelationshipType.CHAIN: 0.9,
    })
    ownership_strength_by_tier: Tuple[Tuple[CharacterTier, float], ...] = _frozen({
        CharacterTier.CORE: 0.9,
        CharacterTier.SECONDARY: 0.75,
        CharacterTier.TERTIARY: 0.6,
    })
    default_ownership_strength: float = 0.6
    labels: Tuple[Tuple[RelationshipType, str], ...] = _frozen({
        RelationshipType.OWNERSHIP: "owns",
        RelationshipType.REQUIREMENT: "needs",
        RelationshipType.REWARD: "gives",
        RelationshipType.TIMELINE: "appears in",
        RelationshipType.CONTAINER: "contains",
        RelationshipType.CHAIN: "leads to",
    })
    animated_types: Tuple[RelationshipType, ...] = (RelationshipType.REWARD,)

    def __post_init__(self):
        for _, strength in self.strengths + self.ownership_strength_by_tier:
            if not 0.0 <= strength <= 1.0:
                raise ValueError("edge strengths must be between 0.0 and 1.0")

    def weight_for(self, relationship_type: RelationshipType) -> float:
        return dict(self.weights).get(relationship_type, self.default_weight)

    def strength_for(self, relationship_type: RelationshipType) -> float:
        return dict(self.strengths).get(relationship_type, 1.0)

    def ownership_strength(self, tier) -> float:
        return dict(self.ownership_strength_by_tier).get(
            tier, self.default_ownership_strength
        )

    def label_for(self, relationship_type: RelationshipType) -> str:
        return dict(self.labels).get(relationship_type, relationship_type.value)

    def is_animated(self, relationship_type: RelationshipType) -> bool:
        return relationship_type in self.animated_types


# =============================================================================
# IMPORTANCE SCORING
# =============================================================================

@dataclass(frozen=True)
class ImportanceWeights:
    """Point values feeding ``NodeMetadata.importance_score``."""
    # Characters
    tier_scores: Tuple[Tuple[CharacterTier, float], ...] = _frozen({
        CharacterTier.CORE: 10.0,
        CharacterTier.SECONDARY: 5.0,
        CharacterTier.TERTIARY: 2.0,
    })
    owned_element_points: float = 1.0
    character_puzzle_points: float = 2.0
    character_event_points: float = 1.0

    # Puzzles
    root_puzzle_bonus: float = 1000.0
    sub_puzzle_points: float = 100.0
    reward_points: float = 50.0
    act_bonus: Tuple[Tuple[Act, float], ...] = _frozen({
        Act.ACT_0: 300.0,
        Act.ACT_1: 200.0,
        Act.ACT_2: 100.0,
    })
    locked_puzzle_bonus: float = 150.0

    # Generic connection scoring (elements, timeline events)
    primary_points: float = 10.0
    secondary_points: float = 5.0
    tertiary_points: float = 2.0

    def tier_score(self, tier) -> float:
        return dict(self.tier_scores).get(tier, 0.0)

    def act_score(self, act) -> float:
        return dict(self.act_bonus).get(act, 0.0)

    def connection_score(self, primary: int = 0, secondary: int = 0, tertiary: int = 0) -> float:
        return (
            primary * self.primary_points
            + secondary * self.secondary_points
            + tertiary * self.tertiary_points
        )


DEFAULT_EDGE_WEIGHTING = EdgeWeighting()
DEFAULT_IMPORTANCE_WEIGHTS = ImportanceWeights()
