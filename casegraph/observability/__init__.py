"""
Observability Layer

RESPONSIBILITY: Structured diagnostics for resolution and transformation
ALLOWED INPUTS: Diagnostic records from any layer
OUTPUTS: Queryable diagnostic lists, per-code summaries, log records

WHAT THIS LAYER MUST NOT DO:
============================
- Modify resolver or cache behaviour
- Raise on any recorded diagnostic
- Configure logging handlers (the embedding application owns them)

Every collected diagnostic is also forwarded to the ``casegraph.diagnostics``
logger at the level matching its severity, so callers that only watch logs
still see dangling references.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Tuple
import logging

from ..contracts.base import Diagnostic, DiagnosticCode, Severity


_LOG_LEVELS = {
    Severity.DEBUG: logging.DEBUG,
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}

_SEVERITY_ORDER = {
    Severity.DEBUG: 0,
    Severity.INFO: 1,
    Severity.WARNING: 2,
    Severity.ERROR: 3,
}


class DiagnosticsCollector:
    """
    Append-only diagnostics channel.

    One collector is passed through a resolver run; the resolved graph
    carries a snapshot of its entries.
    """

    def __init__(
        self,
        layer_name: str = "resolver",
        logger: Optional[logging.Logger] = None
    ):
        self._layer_name = layer_name
        self._logger = logger or logging.getLogger("casegraph.diagnostics")
        self._entries: List[Diagnostic] = []

    def record(self, diagnostic: Diagnostic) -> Diagnostic:
        """Collect a diagnostic (append-only) and mirror it to the logger."""
        self._entries.append(diagnostic)
        if self._logger.isEnabledFor(_LOG_LEVELS[diagnostic.severity]):
            context = " ".join(f"{k}={v}" for k, v in diagnostic.context)
            self._logger.log(
                _LOG_LEVELS[diagnostic.severity],
                "[%s] %s: %s %s",
                self._layer_name,
                diagnostic.code.name,
                diagnostic.message,
                context,
            )
        return diagnostic

    def extend(self, diagnostics) -> None:
        for diagnostic in diagnostics:
            self.record(diagnostic)

    def get_entries(
        self,
        min_severity: Optional[Severity] = None,
        code: Optional[DiagnosticCode] = None
    ) -> List[Diagnostic]:
        """Get entries, optionally filtered."""
        entries = self._entries

        if min_severity is not None:
            floor = _SEVERITY_ORDER[min_severity]
            entries = [
                e for e in entries
                if _SEVERITY_ORDER[e.severity] >= floor
            ]

        if code is not None:
            entries = [e for e in entries if e.code == code]

        return list(entries)

    def warnings(self) -> List[Diagnostic]:
        return self.get_entries(min_severity=Severity.WARNING)

    def summary(self) -> Dict[DiagnosticCode, int]:
        counts: Dict[DiagnosticCode, int] = {}
        for entry in self._entries:
            counts[entry.code] = counts.get(entry.code, 0) + 1
        return counts

    def snapshot(self) -> Tuple[Diagnostic, ...]:
        return tuple(self._entries)

    @property
    def layer_name(self) -> str:
        return self._layer_name

    @property
    def entry_count(self) -> int:
        return len(self._entries)


__all__ = ['DiagnosticsCollector']
