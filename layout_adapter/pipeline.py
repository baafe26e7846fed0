"""
Cached Layout Pipeline

Call path from resolved graph -> layout cache -> external layout engine.

BOUNDARY ENFORCEMENT:
=====================
- The layout engine is a black box; its failures become LayoutError data
- Only a successful, non-cancelled computation populates the cache
- A timed-out computation is abandoned, never awaited and never cached
- The input graph is never mutated

The pipeline runs on the caller's thread. When a timeout is configured,
the computation alone is moved to a worker thread so that the caller
can stop waiting for it.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Optional
import logging
import threading

from casegraph.cache import LayoutCache
from casegraph.contracts.graph import GraphData

from .contracts import (
    LayoutComputation, LayoutConfig, LayoutErrorCode, LayoutOutcome,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class PipelineConfig:
    """
    ``timeout_seconds`` of None waits for the computation indefinitely.
    ``cache_results`` False turns the pipeline into a read-through only.
    """
    timeout_seconds: Optional[float] = None
    cache_results: bool = True

    def __post_init__(self):
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")


class CancellationToken:
    """Cooperative cancellation flag, safe to set from another thread."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


# =============================================================================
# PIPELINE
# =============================================================================

class CachedLayoutPipeline:
    """
    Check the cache, compute on a miss, store the result.

    GUARANTEES:
    ===========
    1. ``run`` never raises for layout failures
    2. Cache hits never invoke the computation
    3. A cancelled request never calls ``cache.set``
    """

    def __init__(
        self,
        computation: LayoutComputation,
        cache: Optional[LayoutCache] = None,
        config: Optional[PipelineConfig] = None
    ):
        self._computation = computation
        self._cache = cache if cache is not None else LayoutCache()
        self._config = config or PipelineConfig()

    @property
    def cache(self) -> LayoutCache:
        return self._cache

    def run(
        self,
        graph: GraphData,
        layout_config: LayoutConfig,
        cancel_token: Optional[CancellationToken] = None
    ) -> LayoutOutcome:
        layout_type = layout_config.layout_type

        if cancel_token is not None and cancel_token.is_cancelled:
            return self._cancelled(layout_type)

        cached = self._cache.get(graph, layout_type)
        if cached is not None:
            return LayoutOutcome(layout_type=layout_type, graph=cached, cache_hit=True)

        try:
            result = self._compute(graph, layout_config)
        except FutureTimeoutError:
            logger.warning(
                "Layout %s timed out after %ss", layout_type, self._config.timeout_seconds
            )
            return LayoutOutcome.failure(
                layout_type,
                LayoutErrorCode.LAYOUT_TIMEOUT,
                f"Layout computation timed out after {self._config.timeout_seconds}s",
            )
        except Exception as e:
            logger.warning("Layout %s failed: %s", layout_type, e)
            return LayoutOutcome.failure(layout_type, LayoutErrorCode.LAYOUT_FAILED, str(e))

        if cancel_token is not None and cancel_token.is_cancelled:
            return self._cancelled(layout_type)

        if not isinstance(result, GraphData):
            return LayoutOutcome.failure(
                layout_type,
                LayoutErrorCode.INVALID_RESULT,
                f"Layout returned {type(result).__name__}, expected GraphData",
            )

        if self._config.cache_results:
            self._cache.set(graph, layout_type, result)

        return LayoutOutcome(layout_type=layout_type, graph=result)

    def _compute(self, graph: GraphData, layout_config: LayoutConfig) -> GraphData:
        if self._config.timeout_seconds is None:
            return self._computation.compute(graph, layout_config)

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="layout")
        try:
            future = executor.submit(self._computation.compute, graph, layout_config)
            return future.result(timeout=self._config.timeout_seconds)
        finally:
            executor.shutdown(wait=False)

    @staticmethod
    def _cancelled(layout_type: str) -> LayoutOutcome:
        logger.debug("Layout %s cancelled", layout_type)
        return LayoutOutcome.failure(
            layout_type, LayoutErrorCode.LAYOUT_CANCELLED, "Layout request was cancelled"
        )
