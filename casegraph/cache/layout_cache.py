"""
Layout Cache
============

Memoizes positioned graphs keyed by ``<graph hash>:<layout type>``.

GUARANTEES:
- Entry count never exceeds ``max_size``
- Tracked memory equals the sum of live entry sizes and never exceeds
  ``max_memory_mb`` when that is finite
- LRU order is strict: every access takes a fresh (clock, sequence)
  stamp, so same-millisecond accesses still order deterministically
- Public operations do not raise on unhashable or unsizable graphs;
  such writes are skipped and such reads are misses

The cache is a plain object owned by its caller; there is no shared
instance. It performs no locking.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Tuple
import logging
import math

from ..contracts.graph import GraphData
from ..temporal import Clock, SystemClock
from .hashing import GraphHashError, SizeEstimationError, estimate_size, hash_graph

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024
KEY_SEPARATOR = ":"


# =============================================================================
# CONFIGURATION AND STATE
# =============================================================================

@dataclass(frozen=True)
class CacheConfig:
    """
    Constructor-time cache settings.

    ``ttl`` is in milliseconds. ``max_memory_mb`` may be ``math.inf``.
    Metrics are only counted when ``enable_metrics`` is set.
    """
    max_size: int = 100
    ttl: int = 60_000
    refresh_on_access: bool = False
    enable_metrics: bool = False
    max_memory_mb: float = math.inf
    on_memory_pressure: Optional[Callable[[], None]] = None
    hash_algorithm: str = "sha256"

    def __post_init__(self):
        if self.max_size < 1:
            raise ValueError("max_size must be >= 1")
        if self.ttl < 0:
            raise ValueError("ttl must be >= 0")
        if self.max_memory_mb <= 0:
            raise ValueError("max_memory_mb must be positive")
        if self.hash_algorithm not in ("sha256", "fnv1a"):
            raise ValueError(f"Unknown hash algorithm: {self.hash_algorithm}")

    @property
    def memory_limit_bytes(self) -> float:
        return self.max_memory_mb * BYTES_PER_MB


@dataclass
class CacheEntry:
    data: GraphData
    timestamp: int
    ttl: int
    size: int
    access_count: int
    last_accessed: Tuple[int, int]

    def is_expired(self, now_ms: int) -> bool:
        return now_ms - self.timestamp > self.ttl


@dataclass(frozen=True)
class CacheMetrics:
    """Read-only metrics snapshot."""
    hits: int
    misses: int
    hit_rate: float
    entries: int
    total_size: int
    average_size: float
    evictions: int

    def to_dict(self) -> Dict[str, float]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
            "entries": self.entries,
            "total_size": self.total_size,
            "average_size": self.average_size,
            "evictions": self.evictions,
        }


# =============================================================================
# CACHE
# =============================================================================

class LayoutCache:
    """Bounded TTL/LRU cache of layout results."""

    def __init__(self, config: Optional[CacheConfig] = None, clock: Optional[Clock] = None):
        self._config = config or CacheConfig()
        self._clock = clock or SystemClock()
        self._entries: Dict[str, CacheEntry] = {}
        self._memory_usage = 0
        self._sequence = 0
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def config(self) -> CacheConfig:
        return self._config

    # -------------------------------------------------------------------------
    # Keys
    # -------------------------------------------------------------------------

    def hash_graph(self, graph: GraphData) -> str:
        return hash_graph(graph, self._config.hash_algorithm)

    def create_cache_key(self, graph: GraphData, layout_type: str) -> str:
        return f"{self.hash_graph(graph)}{KEY_SEPARATOR}{layout_type}"

    def _try_key(self, graph: GraphData, layout_type: str) -> Optional[str]:
        try:
            return self.create_cache_key(graph, layout_type)
        except GraphHashError as exc:
            logger.warning("Layout cache bypassed, graph not hashable: %s", exc)
            return None

    def _next_stamp(self) -> Tuple[int, int]:
        self._sequence += 1
        return (self._clock.now_ms(), self._sequence)

    # -------------------------------------------------------------------------
    # Read / write
    # -------------------------------------------------------------------------

    def set(
        self,
        graph: GraphData,
        layout_type: str,
        result: GraphData,
        custom_ttl: Optional[int] = None
    ) -> bool:
        """
        Store ``result`` for ``(graph, layout_type)``.

        Returns False when the write was skipped: the graph could not be
        hashed, the result could not be sized, or storing it would
        exceed the memory limit.
        """
        key = self._try_key(graph, layout_type)
        if key is None:
            return False

        try:
            size = estimate_size(result)
        except SizeEstimationError as exc:
            logger.warning("Layout cache bypassed, result not sizable: %s", exc)
            return False

        existing = self._entries.get(key)
        if math.isfinite(self._config.max_memory_mb):
            projected = self._memory_usage + size - (existing.size if existing else 0)
            if projected > self._config.memory_limit_bytes:
                logger.debug(
                    "Layout cache write dropped, %d bytes would exceed limit", size
                )
                return False

        while len(self._entries) >= self._config.max_size and key not in self._entries:
            self._evict_lru()

        if existing is not None:
            self._memory_usage -= existing.size

        self._entries[key] = CacheEntry(
            data=result,
            timestamp=self._clock.now_ms(),
            ttl=self._config.ttl if custom_ttl is None else custom_ttl,
            size=size,
            access_count=0,
            last_accessed=self._next_stamp(),
        )
        self._memory_usage += size
        return True

    def get(self, graph: GraphData, layout_type: str) -> Optional[GraphData]:
        key = self._try_key(graph, layout_type)
        entry = self._entries.get(key) if key is not None else None
        if entry is None:
            self._count_miss()
            return None

        now = self._clock.now_ms()
        if entry.is_expired(now):
            self._remove(key)
            self._count_miss()
            return None

        entry.access_count += 1
        entry.last_accessed = self._next_stamp()
        if self._config.refresh_on_access:
            entry.timestamp = now

        if self._config.enable_metrics:
            self._hits += 1
        return entry.data

    def _count_miss(self) -> None:
        if self._config.enable_metrics:
            self._misses += 1

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    def invalidate(self, graph: GraphData, layout_type: str) -> bool:
        key = self._try_key(graph, layout_type)
        if key is None or key not in self._entries:
            return False
        self._remove(key)
        return True

    def invalidate_graph(self, graph: GraphData) -> int:
        """Drop every layout of ``graph``; returns the number removed."""
        try:
            graph_hash = self.hash_graph(graph)
        except GraphHashError as exc:
            logger.warning("Cannot invalidate unhashable graph: %s", exc)
            return 0
        return self._remove_where(lambda h, _: h == graph_hash)

    def invalidate_by_layout_type(self, layout_type: str) -> int:
        """Drop every entry computed with ``layout_type``."""
        return self._remove_where(lambda _, t: t == layout_type)

    def cleanup(self) -> int:
        """Sweep expired entries."""
        now = self._clock.now_ms()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            self._remove(key)
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self._memory_usage = 0

    def _remove_where(self, predicate: Callable[[str, str], bool]) -> int:
        doomed = []
        for key in self._entries:
            graph_hash, _, layout_type = key.partition(KEY_SEPARATOR)
            if predicate(graph_hash, layout_type):
                doomed.append(key)
        for key in doomed:
            self._remove(key)
        return len(doomed)

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._memory_usage -= entry.size

    # -------------------------------------------------------------------------
    # Eviction
    # -------------------------------------------------------------------------

    def _evict_lru(self) -> None:
        if not self._entries:
            return
        lru_key = min(self._entries, key=lambda k: self._entries[k].last_accessed)
        self._remove(lru_key)
        logger.debug("Evicted layout cache entry %s", lru_key)
        if self._config.enable_metrics:
            self._evictions += 1

    def handle_memory_pressure(self) -> int:
        """Run the pressure callback, then evict down to half the entries."""
        if self._config.on_memory_pressure is not None:
            try:
                self._config.on_memory_pressure()
            except Exception as exc:
                logger.warning("Memory pressure callback failed: %s", exc)

        before = len(self._entries)
        target = before // 2
        while len(self._entries) > target:
            self._evict_lru()
        logger.info("Memory pressure: evicted %d of %d entries", before - target, before)
        return before - target

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def get_metrics(self) -> CacheMetrics:
        entries = len(self._entries)
        total = self._hits + self._misses
        return CacheMetrics(
            hits=self._hits,
            misses=self._misses,
            hit_rate=self._hits / total if total else 0.0,
            entries=entries,
            total_size=self._memory_usage,
            average_size=self._memory_usage / entries if entries else 0.0,
            evictions=self._evictions,
        )

    def reset_metrics(self) -> None:
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get_memory_usage(self) -> int:
        return self._memory_usage

    @property
    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> List[str]:
        return list(self._entries)

    def update_config(self, **changes) -> CacheConfig:
        """
        Replace configuration fields.

        Shrinking ``max_size`` or ``max_memory_mb`` evicts LRU entries
        until the cache fits again.
        """
        self._config = replace(self._config, **changes)
        while len(self._entries) > self._config.max_size:
            self._evict_lru()
        while self._memory_usage > self._config.memory_limit_bytes:
            self._evict_lru()
        return self._config
