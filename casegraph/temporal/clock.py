"""
Injectable Clocks
=================

All cache time reads go through a clock object so TTL expiry can be
driven deterministically in tests.

GUARANTEES:
- ``now_ms`` is wall-clock milliseconds for ``SystemClock``
- ``ManualClock`` only moves when told to, and never backwards
"""

from __future__ import annotations
from dataclasses import dataclass
import time


class Clock:
    """Millisecond clock interface."""

    def now_ms(self) -> int:
        raise NotImplementedError


class SystemClock(Clock):
    """Reads the system clock."""

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000

    def __repr__(self) -> str:
        return "SystemClock()"


@dataclass
class ManualClock(Clock):
    """
    Simulated clock for deterministic expiry.

    Starts at ``current_ms`` and advances only through ``advance``/``set``.
    """
    current_ms: int = 0

    def now_ms(self) -> int:
        return self.current_ms

    def advance(self, ms: int) -> int:
        if ms < 0:
            raise ValueError("ManualClock cannot move backwards")
        self.current_ms += ms
        return self.current_ms

    def set(self, ms: int) -> None:
        if ms < self.current_ms:
            raise ValueError("ManualClock cannot move backwards")
        self.current_ms = ms
