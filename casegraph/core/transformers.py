"""
Entity Transformers

Converts investigation entities into graph nodes.

BOUNDARY ENFORCEMENT:
- Consumes Character, Element, Puzzle, TimelineEvent
- Produces GraphNode (no positions; layout is an external concern)
- Validation failures are attached to the node, never raised
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..config import ImportanceWeights, DEFAULT_IMPORTANCE_WEIGHTS
from ..contracts.base import Diagnostic, DiagnosticCode, Result
from ..contracts.entities import (
    Act, Character, CharacterTier, CharacterType, Element, Puzzle,
    TimelineEvent, Entity, entity_kind,
)
from ..contracts.graph import (
    ErrorState, GraphNode, NodeMetadata, NodeType, VisualHints,
)
from ..observability import DiagnosticsCollector


# =============================================================================
# VISUAL CONFIGURATION
# =============================================================================

TIER_STYLES = {
    CharacterTier.CORE: ("#dc2626", "large"),
    CharacterTier.SECONDARY: ("#2563eb", "medium"),
    CharacterTier.TERTIARY: ("#16a34a", "small"),
}

CHARACTER_TYPE_ICONS = {
    CharacterType.PLAYER: "user",
    CharacterType.NPC: "users",
}

ELEMENT_STATUS_COLORS = {
    "Idea/Placeholder": "#9ca3af",
    "in space playtest ready": "#10b981",
    "In development": "#eab308",
    "Writing Complete": "#3b82f6",
    "Design Complete": "#3b82f6",
    "Source Prop/print": "#f97316",
    "Ready for Playtest": "#10b981",
    "Done": "#10b981",
}

# Production pipeline order used to sort element batches
ELEMENT_STATUS_ORDER = (
    "Idea/Placeholder",
    "In development",
    "Writing Complete",
    "Design Complete",
    "Source Prop/print",
    "in space playtest ready",
    "Ready for Playtest",
    "Done",
)

ELEMENT_TYPE_ICONS = {
    "Set Dressing": "home",
    "Prop": "box",
    "Memory Token": "disc",
    "Document": "file-text",
}

PUZZLE_COMPLEXITY = (
    # name, max requirements, max chain depth, color, size
    ("simple", 1, 0, "#10b981", "small"),
    ("moderate", 3, 2, "#3b82f6", "medium"),
    ("complex", None, None, "#f59e0b", "large"),
)

ACT_COLORS = {
    Act.ACT_0: "#6b7280",
    Act.ACT_1: "#3b82f6",
    Act.ACT_2: "#f59e0b",
}

TIMELINE_HINTS = VisualHints(color="#9333ea", size="small", icon="clock")
PLACEHOLDER_HINTS = VisualHints(color="#dc2626", size="small", icon="circle")
DEFAULT_COLOR = "#6b7280"

_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def parse_event_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO date string to an aware UTC datetime; None if unparsable."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_event_date(value: Optional[str]) -> str:
    if not value:
        return "Unknown Date"
    parsed = parse_event_date(value)
    if parsed is None:
        return value
    return f"{_MONTHS[parsed.month - 1]} {parsed.day}, {parsed.year}"


def _error_state(kind: str, errors: List[str]) -> Optional[ErrorState]:
    if not errors:
        return None
    return ErrorState(kind=kind, message="; ".join(errors))


# =============================================================================
# NODE TRANSFORMER
# =============================================================================

class NodeTransformer:
    """
    Build nodes for the case graph.

    Each entity kind has its own transform; ``transform`` dispatches on
    the entity class. Validation problems become ``ErrorState`` on the
    node and a diagnostic on the collector.
    """

    def __init__(
        self,
        weights: Optional[ImportanceWeights] = None,
        collector: Optional[DiagnosticsCollector] = None
    ):
        self._weights = weights or DEFAULT_IMPORTANCE_WEIGHTS
        self._collector = collector or DiagnosticsCollector("transformer")
        self._dispatch: Dict[type, Callable[..., GraphNode]] = {
            Character: self.transform_character,
            Element: self.transform_element,
            Puzzle: self.transform_puzzle,
            TimelineEvent: self.transform_timeline_event,
        }

    @property
    def collector(self) -> DiagnosticsCollector:
        return self._collector

    def transform(self, entity: Entity) -> GraphNode:
        """Transform one entity; raises TypeError outside the entity union."""
        return self._dispatch[entity_kind(entity)](entity)

    # -------------------------------------------------------------------------
    # Characters
    # -------------------------------------------------------------------------

    def character_importance(self, character: Character) -> float:
        w = self._weights
        return (
            w.tier_score(character.tier)
            + len(character.owned_element_ids) * w.owned_element_points
            + len(character.character_puzzle_ids) * w.character_puzzle_points
            + len(character.event_ids) * w.character_event_points
        )

    def transform_character(self, character: Character) -> GraphNode:
        errors = []
        if not character.id:
            errors.append("Missing character ID")
        if not character.name:
            errors.append("Missing character name")
        if character.tier is None:
            errors.append("Missing character tier")
        if character.character_type is None:
            errors.append("Missing character type (Player/NPC)")

        color, size = TIER_STYLES.get(character.tier, TIER_STYLES[CharacterTier.TERTIARY])
        icon = CHARACTER_TYPE_ICONS.get(character.character_type, "users")

        label = character.name or "Unknown Character"
        if character.character_type == CharacterType.NPC:
            label = f"[NPC] {label}"
        owned = len(character.owned_element_ids)
        if owned > 5:
            label += f" ({owned} items)"

        attributes = ()
        if character.tier is not None:
            attributes = (("tier", character.tier.value),)

        return self._make_node(
            entity=character,
            node_type=NodeType.CHARACTER,
            label=label,
            importance=self.character_importance(character),
            hints=VisualHints(color=color, size=size, icon=icon),
            error_state=_error_state("missing_data", errors),
            attributes=attributes,
        )

    # -------------------------------------------------------------------------
    # Elements
    # -------------------------------------------------------------------------

    def element_importance(self, element: Element) -> float:
        return self._weights.connection_score(
            primary=len(element.required_for_puzzle_ids),
            secondary=len(element.rewarded_by_puzzle_ids),
            tertiary=len(element.content_ids),
        )

    def transform_element(self, element: Element) -> GraphNode:
        errors = []
        if not element.id:
            errors.append("Missing element ID")
        if not element.name:
            errors.append("Missing element name")

        basic_type = element.basic_type or ""
        icon = "circle"
        for prefix, type_icon in ELEMENT_TYPE_ICONS.items():
            if basic_type.startswith(prefix):
                icon = type_icon
                break

        label = element.name or "Unnamed Element"
        if basic_type and basic_type != "Prop":
            abbrev = "".join(
                ch for ch in (word.strip("()")[:1] for word in basic_type.split()) if ch
            )
            label = f"[{abbrev}] {label}"

        attributes = (("status", element.status or "Unknown"),)
        if element.first_available is not None:
            attributes += (("act", element.first_available.value),)

        return self._make_node(
            entity=element,
            node_type=NodeType.ELEMENT,
            label=label,
            importance=self.element_importance(element),
            hints=VisualHints(
                color=ELEMENT_STATUS_COLORS.get(element.status or "", DEFAULT_COLOR),
                size="medium" if element.is_container else "small",
                icon=icon,
            ),
            error_state=_error_state("missing_data", errors),
            attributes=attributes,
        )

    # -------------------------------------------------------------------------
    # Puzzles
    # -------------------------------------------------------------------------

    def puzzle_importance(self, puzzle: Puzzle) -> float:
        w = self._weights
        score = 0.0
        if not puzzle.parent_item_id:
            score += w.root_puzzle_bonus
        score += len(puzzle.sub_puzzle_ids) * w.sub_puzzle_points
        score += len(puzzle.reward_ids) * w.reward_points
        if puzzle.timing:
            score += w.act_score(puzzle.timing[0])
        if puzzle.is_locked:
            score += w.locked_puzzle_bonus
        return score

    @staticmethod
    def puzzle_complexity(puzzle: Puzzle) -> Tuple[str, str, str]:
        """Return (complexity, color, size) for a puzzle."""
        requirements = len(puzzle.puzzle_element_ids)
        chain_depth = 1 if (puzzle.parent_item_id or puzzle.sub_puzzle_ids) else 0
        for name, max_req, max_depth, color, size in PUZZLE_COMPLEXITY:
            if max_req is None or (requirements <= max_req and chain_depth <= max_depth):
                return name, color, size
        return PUZZLE_COMPLEXITY[-1][0], PUZZLE_COMPLEXITY[-1][3], PUZZLE_COMPLEXITY[-1][4]

    def transform_puzzle(self, puzzle: Puzzle) -> GraphNode:
        errors = []
        if not puzzle.id:
            errors.append("Missing puzzle ID")
        if not puzzle.name:
            errors.append("Missing puzzle name")
        if puzzle.id and puzzle.id in puzzle.sub_puzzle_ids:
            errors.append("Puzzle references itself as sub-puzzle")
        if puzzle.id and puzzle.parent_item_id == puzzle.id:
            errors.append("Puzzle references itself as parent")

        complexity, color, size = self.puzzle_complexity(puzzle)
        first_act = puzzle.timing[0] if puzzle.timing else None

        label = puzzle.name or "Unknown Puzzle"
        if puzzle.parent_item_id:
            label = f"↳ {label}"
        if puzzle.sub_puzzle_ids:
            label += f" [{len(puzzle.sub_puzzle_ids)}+]"
        if first_act is not None:
            label += f" ({first_act.value})"

        attributes = (("complexity", complexity),)
        attributes += tuple(("act", act.value) for act in puzzle.timing)

        return self._make_node(
            entity=puzzle,
            node_type=NodeType.PUZZLE,
            label=label,
            importance=self.puzzle_importance(puzzle),
            hints=VisualHints(
                color=ACT_COLORS.get(first_act, color),
                size=size,
                icon="lock" if puzzle.is_locked else "puzzle",
            ),
            error_state=_error_state("invalid_relation", errors),
            attributes=attributes,
        )

    # -------------------------------------------------------------------------
    # Timeline events
    # -------------------------------------------------------------------------

    def transform_timeline_event(self, event: TimelineEvent) -> GraphNode:
        errors = []
        if not event.id:
            errors.append("Missing timeline ID")
        if not event.description:
            errors.append("Missing timeline description")

        return self._make_node(
            entity=event,
            node_type=NodeType.TIMELINE,
            label=format_event_date(event.date),
            importance=self._weights.connection_score(
                primary=len(event.characters_involved_ids),
                secondary=len(event.memory_evidence_ids),
            ),
            hints=TIMELINE_HINTS,
            error_state=_error_state("missing_data", errors),
        )

    # -------------------------------------------------------------------------
    # Placeholders
    # -------------------------------------------------------------------------

    @staticmethod
    def create_placeholder_node(
        entity_id: str,
        entity_type: NodeType,
        referenced_by: Iterable[str] = ()
    ) -> GraphNode:
        """Stand-in node for an entity that is referenced but missing."""
        sources = ", ".join(referenced_by) or "unknown"
        return GraphNode(
            id=entity_id,
            type=NodeType.PLACEHOLDER,
            entity=None,
            label=f"Missing {entity_type.value}: {entity_id[:8]}...",
            metadata=NodeMetadata(
                entity_type=entity_type,
                importance_score=0.0,
                visual_hints=PLACEHOLDER_HINTS,
                error_state=ErrorState(
                    kind="missing_entity",
                    message=(
                        f"Referenced {entity_type.value} not found "
                        f"(referenced by: {sources})"
                    ),
                ),
            ),
        )

    # -------------------------------------------------------------------------
    # Batches
    # -------------------------------------------------------------------------

    def transform_entities(self, entities: Iterable[Entity]) -> List[GraphNode]:
        """
        Transform many entities, isolating failures.

        An entity that cannot be transformed is reported and skipped;
        the rest of the batch is unaffected.
        """
        nodes: List[GraphNode] = []
        for entity in entities:
            result = self.try_transform(entity)
            if result.is_success:
                nodes.append(result.value)
            else:
                self._collector.record(result.error)
        return nodes

    def try_transform(self, entity: object) -> Result:
        """Transform one entity, returning the failure as data."""
        try:
            return Result.success(self.transform(entity))
        except (TypeError, ValueError, AttributeError) as exc:
            return Result.failure(Diagnostic.warning(
                DiagnosticCode.ENTITY_TRANSFORM_FAILED,
                f"Failed to transform entity: {exc}",
                entity_id=str(getattr(entity, "id", "unknown")),
            ))

    def transform_characters(self, characters: Iterable[Character]) -> List[GraphNode]:
        nodes = self.transform_entities(characters)
        nodes.sort(key=lambda n: n.metadata.importance_score, reverse=True)
        return nodes

    def transform_elements(self, elements: Iterable[Element]) -> List[GraphNode]:
        nodes = self.transform_entities(elements)

        def status_rank(node: GraphNode) -> int:
            status = node.entity.status if isinstance(node.entity, Element) else None
            if status in ELEMENT_STATUS_ORDER:
                return ELEMENT_STATUS_ORDER.index(status)
            return len(ELEMENT_STATUS_ORDER)

        nodes.sort(key=status_rank)
        return nodes

    def transform_puzzles(self, puzzles: Iterable[Puzzle]) -> List[GraphNode]:
        nodes = self.transform_entities(puzzles)
        nodes.sort(key=lambda n: n.metadata.importance_score, reverse=True)
        return nodes

    def transform_timeline_events(self, events: Iterable[TimelineEvent]) -> List[GraphNode]:
        nodes = self.transform_entities(events)

        def date_key(node: GraphNode):
            date = node.entity.date if isinstance(node.entity, TimelineEvent) else None
            parsed = parse_event_date(date)
            if parsed is None:
                return (1, 0.0)
            return (0, parsed.timestamp())

        nodes.sort(key=date_key)
        return nodes

    def _make_node(
        self,
        entity: Entity,
        node_type: NodeType,
        label: str,
        importance: float,
        hints: VisualHints,
        error_state: Optional[ErrorState],
        attributes: Tuple[Tuple[str, str], ...] = ()
    ) -> GraphNode:
        if error_state is not None:
            self._collector.record(Diagnostic.warning(
                DiagnosticCode.NODE_VALIDATION_FAILED,
                error_state.message,
                entity_id=entity.id or "unknown",
                entity_type=node_type.value,
            ))
        return GraphNode(
            id=entity.id,
            type=node_type,
            entity=entity,
            label=label,
            metadata=NodeMetadata(
                entity_type=node_type,
                importance_score=importance,
                visual_hints=hints,
                error_state=error_state,
                attributes=attributes,
            ),
        )
