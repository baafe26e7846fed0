"""
Temporal Layer
==============

Injectable time sources for the layout cache.
"""

from .clock import Clock, SystemClock, ManualClock

__all__ = [
    'Clock',
    'SystemClock',
    'ManualClock',
]
