"""
Entity Contracts

The four entity kinds of an investigation: characters, puzzles, elements
and timeline events. Entities are external, immutable input; every
reference field holds the string ID of another entity.

The union is closed. Code that needs per-kind behaviour dispatches on
``type(entity)`` through an explicit table keyed by these four classes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple, Union
from enum import Enum


# =============================================================================
# ENUMS
# =============================================================================

class CharacterType(Enum):
    PLAYER = "Player"
    NPC = "NPC"


class CharacterTier(Enum):
    CORE = "Core"
    SECONDARY = "Secondary"
    TERTIARY = "Tertiary"


class Act(Enum):
    """Game act in which an element or puzzle becomes available."""
    ACT_0 = "Act 0"
    ACT_1 = "Act 1"
    ACT_2 = "Act 2"


def _enum_or_none(enum_cls, value):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _ids(record: Mapping[str, Any], key: str) -> Tuple[str, ...]:
    values = record.get(key) or ()
    return tuple(str(v) for v in values if v)


def _extra(record: Mapping[str, Any], known: Tuple[str, ...]) -> Tuple[Tuple[str, Any], ...]:
    return tuple(sorted(
        (k, v) for k, v in record.items() if k not in known
    ))


# =============================================================================
# ENTITIES
# =============================================================================

@dataclass(frozen=True)
class Character:
    """A suspect, witness or other figure in the case."""
    id: str
    name: str
    character_type: Optional[CharacterType] = None
    tier: Optional[CharacterTier] = None
    owned_element_ids: Tuple[str, ...] = field(default_factory=tuple)
    associated_element_ids: Tuple[str, ...] = field(default_factory=tuple)
    character_puzzle_ids: Tuple[str, ...] = field(default_factory=tuple)
    event_ids: Tuple[str, ...] = field(default_factory=tuple)
    connections: Tuple[str, ...] = field(default_factory=tuple)
    overview: str = ""
    properties: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    _RECORD_KEYS = (
        "id", "name", "type", "tier", "ownedElementIds",
        "associatedElementIds", "characterPuzzleIds", "eventIds",
        "connections", "overview",
    )

    @staticmethod
    def from_record(record: Mapping[str, Any]) -> Character:
        return Character(
            id=str(record.get("id") or ""),
            name=str(record.get("name") or ""),
            character_type=_enum_or_none(CharacterType, record.get("type")),
            tier=_enum_or_none(CharacterTier, record.get("tier")),
            owned_element_ids=_ids(record, "ownedElementIds"),
            associated_element_ids=_ids(record, "associatedElementIds"),
            character_puzzle_ids=_ids(record, "characterPuzzleIds"),
            event_ids=_ids(record, "eventIds"),
            connections=_ids(record, "connections"),
            overview=str(record.get("overview") or ""),
            properties=_extra(record, Character._RECORD_KEYS),
        )


@dataclass(frozen=True)
class Element:
    """A physical or narrative item: prop, document, memory token."""
    id: str
    name: str
    basic_type: Optional[str] = None
    status: Optional[str] = None
    owner_id: Optional[str] = None
    container_id: Optional[str] = None
    content_ids: Tuple[str, ...] = field(default_factory=tuple)
    timeline_event_id: Optional[str] = None
    first_available: Optional[Act] = None
    required_for_puzzle_ids: Tuple[str, ...] = field(default_factory=tuple)
    rewarded_by_puzzle_ids: Tuple[str, ...] = field(default_factory=tuple)
    container_puzzle_id: Optional[str] = None
    description: str = ""
    properties: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    _RECORD_KEYS = (
        "id", "name", "basicType", "status", "ownerId", "containerId",
        "contentIds", "timelineEventId", "firstAvailable",
        "requiredForPuzzleIds", "rewardedByPuzzleIds", "containerPuzzleId",
        "descriptionText",
    )

    @property
    def is_container(self) -> bool:
        return bool(self.content_ids) or self.container_puzzle_id is not None

    @staticmethod
    def from_record(record: Mapping[str, Any]) -> Element:
        return Element(
            id=str(record.get("id") or ""),
            name=str(record.get("name") or ""),
            basic_type=record.get("basicType"),
            status=record.get("status"),
            owner_id=record.get("ownerId") or None,
            container_id=record.get("containerId") or None,
            content_ids=_ids(record, "contentIds"),
            timeline_event_id=record.get("timelineEventId") or None,
            first_available=_enum_or_none(Act, record.get("firstAvailable")),
            required_for_puzzle_ids=_ids(record, "requiredForPuzzleIds"),
            rewarded_by_puzzle_ids=_ids(record, "rewardedByPuzzleIds"),
            container_puzzle_id=record.get("containerPuzzleId") or None,
            description=str(record.get("descriptionText") or ""),
            properties=_extra(record, Element._RECORD_KEYS),
        )


@dataclass(frozen=True)
class Puzzle:
    """A puzzle that consumes elements and rewards others."""
    id: str
    name: str
    puzzle_element_ids: Tuple[str, ...] = field(default_factory=tuple)
    reward_ids: Tuple[str, ...] = field(default_factory=tuple)
    locked_item_id: Optional[str] = None
    owner_id: Optional[str] = None
    parent_item_id: Optional[str] = None
    sub_puzzle_ids: Tuple[str, ...] = field(default_factory=tuple)
    timing: Tuple[Act, ...] = field(default_factory=tuple)
    description_solution: str = ""
    properties: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    _RECORD_KEYS = (
        "id", "name", "puzzleElementIds", "rewardIds", "lockedItemId",
        "ownerId", "parentItemId", "subPuzzleIds", "timing",
        "descriptionSolution",
    )

    @property
    def is_locked(self) -> bool:
        return self.locked_item_id is not None

    @staticmethod
    def from_record(record: Mapping[str, Any]) -> Puzzle:
        timing = tuple(
            act for act in (
                _enum_or_none(Act, value) for value in (record.get("timing") or ())
            )
            if act is not None
        )
        return Puzzle(
            id=str(record.get("id") or ""),
            name=str(record.get("name") or ""),
            puzzle_element_ids=_ids(record, "puzzleElementIds"),
            reward_ids=_ids(record, "rewardIds"),
            locked_item_id=record.get("lockedItemId") or None,
            owner_id=record.get("ownerId") or None,
            parent_item_id=record.get("parentItemId") or None,
            sub_puzzle_ids=_ids(record, "subPuzzleIds"),
            timing=timing,
            description_solution=str(record.get("descriptionSolution") or ""),
            properties=_extra(record, Puzzle._RECORD_KEYS),
        )


@dataclass(frozen=True)
class TimelineEvent:
    """A dated event in the backstory of the case."""
    id: str
    name: str
    description: str = ""
    date: Optional[str] = None
    characters_involved_ids: Tuple[str, ...] = field(default_factory=tuple)
    memory_evidence_ids: Tuple[str, ...] = field(default_factory=tuple)
    properties: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    _RECORD_KEYS = (
        "id", "name", "description", "date", "charactersInvolvedIds",
        "memoryEvidenceIds",
    )

    @staticmethod
    def from_record(record: Mapping[str, Any]) -> TimelineEvent:
        return TimelineEvent(
            id=str(record.get("id") or ""),
            name=str(record.get("name") or record.get("description") or ""),
            description=str(record.get("description") or ""),
            date=record.get("date") or None,
            characters_involved_ids=_ids(record, "charactersInvolvedIds"),
            memory_evidence_ids=_ids(record, "memoryEvidenceIds"),
            properties=_extra(record, TimelineEvent._RECORD_KEYS),
        )


Entity = Union[Character, Element, Puzzle, TimelineEvent]

ENTITY_KINDS: Tuple[type, ...] = (Character, Element, Puzzle, TimelineEvent)


def entity_kind(entity: object) -> type:
    """Return the entity class of ``entity``; reject anything outside the union."""
    kind = type(entity)
    if kind not in ENTITY_KINDS:
        raise TypeError(f"Not an investigation entity: {kind.__name__}")
    return kind
