"""
Layout Adapter Contracts

Typed boundary between the case graph and an external layout engine.

WHY THIS BOUNDARY EXISTS:
=========================
Layout algorithms (force-directed, hierarchical, ...) are expensive and
live outside the core. The core never interprets a layout configuration
beyond turning it into a cache key, and never sees how positions are
computed.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple
from enum import Enum
import hashlib
import json

from casegraph.contracts.graph import GraphData


# =============================================================================
# LAYOUT CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class LayoutConfig:
    """
    Opaque configuration bag for a layout computation.

    ``options`` holds any engine-specific settings as (key, value) pairs.
    """
    algorithm: str
    direction: Optional[str] = None
    spacing: Optional[float] = None
    options: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.algorithm:
            raise ValueError("algorithm is required")

    @property
    def layout_type(self) -> str:
        """Cache key suffix: the algorithm, plus a digest of any settings."""
        if self.direction is None and self.spacing is None and not self.options:
            return self.algorithm
        settings = json.dumps(
            [self.direction, self.spacing, sorted(self.options, key=lambda kv: kv[0])],
            sort_keys=True, default=str,
        )
        digest = hashlib.sha256(settings.encode("utf-8")).hexdigest()[:8]
        return f"{self.algorithm}-{digest}"


# =============================================================================
# LAYOUT COMPUTATION INTERFACE
# =============================================================================

class LayoutComputation:
    """
    External collaborator that positions a graph.

    Implementations return a new GraphData whose nodes carry positions.
    They must not mutate the input graph.
    """

    def compute(self, graph: GraphData, layout_config: LayoutConfig) -> GraphData:
        raise NotImplementedError


class FunctionLayout(LayoutComputation):
    """Adapts a plain ``(graph, layout_config) -> GraphData`` callable."""

    def __init__(self, fn: Callable[[GraphData, LayoutConfig], GraphData]):
        self._fn = fn

    def compute(self, graph: GraphData, layout_config: LayoutConfig) -> GraphData:
        return self._fn(graph, layout_config)


# =============================================================================
# OUTCOMES
# =============================================================================

class LayoutErrorCode(Enum):
    """Every way a layout request can fail."""
    LAYOUT_TIMEOUT = "layout_timeout"
    LAYOUT_FAILED = "layout_failed"
    LAYOUT_CANCELLED = "layout_cancelled"
    INVALID_RESULT = "invalid_result"


@dataclass(frozen=True)
class LayoutError:
    code: LayoutErrorCode
    message: str
    layout_type: str


@dataclass(frozen=True)
class LayoutOutcome:
    """
    Result of one pipeline run.

    Exactly one of ``graph`` and ``error`` is set.
    """
    layout_type: str
    graph: Optional[GraphData] = None
    cache_hit: bool = False
    error: Optional[LayoutError] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @staticmethod
    def failure(layout_type: str, code: LayoutErrorCode, message: str) -> LayoutOutcome:
        return LayoutOutcome(
            layout_type=layout_type,
            error=LayoutError(code=code, message=message, layout_type=layout_type),
        )
