"""
Layout Adapter Package

ARCHITECTURAL BOUNDARY:
=======================
The only path between the case graph and an external layout engine.

DIRECTION OF DEPENDENCY:
========================
casegraph -> layout_adapter -> layout engine

The core never imports from this package.
"""

from .contracts import (
    LayoutConfig,
    LayoutComputation,
    FunctionLayout,
    LayoutErrorCode,
    LayoutError,
    LayoutOutcome,
)
from .pipeline import PipelineConfig, CancellationToken, CachedLayoutPipeline

__all__ = [
    'LayoutConfig',
    'LayoutComputation',
    'FunctionLayout',
    'LayoutErrorCode',
    'LayoutError',
    'LayoutOutcome',
    'PipelineConfig',
    'CancellationToken',
    'CachedLayoutPipeline',
]
