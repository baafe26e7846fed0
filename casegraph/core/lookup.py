"""
Entity Lookup Maps

Indexes each entity collection by id for constant-time cross-reference
resolution. Later duplicates of an id replace earlier ones.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional

from ..contracts.entities import Character, Element, Puzzle, TimelineEvent


@dataclass(frozen=True)
class EntityLookupMaps:
    characters: Mapping[str, Character]
    elements: Mapping[str, Element]
    puzzles: Mapping[str, Puzzle]
    timeline: Mapping[str, TimelineEvent]

    def find(self, entity_id: str):
        """Look an id up across all four collections."""
        for table in (self.characters, self.elements, self.puzzles, self.timeline):
            entity = table.get(entity_id)
            if entity is not None:
                return entity
        return None

    @property
    def total(self) -> int:
        return (
            len(self.characters) + len(self.elements)
            + len(self.puzzles) + len(self.timeline)
        )


def _index(entities: Optional[Iterable]) -> Dict[str, object]:
    return {e.id: e for e in (entities or ())}


def build_lookup_maps(
    characters: Optional[Iterable[Character]] = None,
    elements: Optional[Iterable[Element]] = None,
    puzzles: Optional[Iterable[Puzzle]] = None,
    timeline: Optional[Iterable[TimelineEvent]] = None
) -> EntityLookupMaps:
    """Build id -> entity maps for the four collections."""
    return EntityLookupMaps(
        characters=_index(characters),
        elements=_index(elements),
        puzzles=_index(puzzles),
        timeline=_index(timeline),
    )
