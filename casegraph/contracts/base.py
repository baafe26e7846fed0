"""
Base Contracts and Shared Types

Foundational types used across all layers of the case graph.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Layers may import types but MUST NOT modify this module
- All types are frozen dataclasses for immutability guarantee
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple
from enum import Enum, auto


# =============================================================================
# DIAGNOSTIC STATES (Explicit, never silent)
# =============================================================================

class Severity(Enum):
    """Severity of a diagnostic record, ordered from least to most severe."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DiagnosticCode(Enum):
    """
    Explicit diagnostic codes.
    Every degraded path in resolution and transformation is enumerated here.
    """
    # Reference resolution
    UNKNOWN_OWNER = auto()
    UNKNOWN_ELEMENT = auto()
    UNKNOWN_PUZZLE = auto()
    UNKNOWN_TIMELINE_EVENT = auto()
    UNKNOWN_REFERENCE = auto()
    SELF_REFERENCE = auto()
    DUPLICATE_EDGE = auto()

    # Entity validation
    NODE_VALIDATION_FAILED = auto()
    ENTITY_TRANSFORM_FAILED = auto()

    # Resolution summaries
    EDGES_CREATED = auto()
    INTEGRITY_REPORT = auto()


@dataclass(frozen=True)
class Diagnostic:
    """
    Immutable diagnostic with full context.
    Diagnostics are data, not exceptions - they can be stored and queried.
    """
    severity: Severity
    code: DiagnosticCode
    message: str
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Diagnostic:
        """Return new Diagnostic with additional context (immutable)."""
        return Diagnostic(
            severity=self.severity,
            code=self.code,
            message=self.message,
            context=self.context + ((key, value),)
        )

    def context_value(self, key: str) -> Optional[str]:
        for k, v in self.context:
            if k == key:
                return v
        return None

    @staticmethod
    def warning(code: DiagnosticCode, message: str, **context: str) -> Diagnostic:
        return Diagnostic(
            severity=Severity.WARNING,
            code=code,
            message=message,
            context=tuple((k, str(v)) for k, v in context.items())
        )

    @staticmethod
    def info(code: DiagnosticCode, message: str, **context: str) -> Diagnostic:
        return Diagnostic(
            severity=Severity.INFO,
            code=code,
            message=message,
            context=tuple((k, str(v)) for k, v in context.items())
        )

    @staticmethod
    def debug(code: DiagnosticCode, message: str, **context: str) -> Diagnostic:
        return Diagnostic(
            severity=Severity.DEBUG,
            code=code,
            message=message,
            context=tuple((k, str(v)) for k, v in context.items())
        )


@dataclass(frozen=True)
class Result:
    """
    Generic result type for operations that can fail.
    Either contains a value OR a diagnostic, never both.
    """
    value: Optional[object] = None
    error: Optional[Diagnostic] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @staticmethod
    def success(value: object) -> Result:
        return Result(value=value, error=None)

    @staticmethod
    def failure(error: Diagnostic) -> Result:
        return Result(value=None, error=error)
