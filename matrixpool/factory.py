from __future__ import annotations
from functools import lru_cache

import torch

from .core.context import MatrixContext


@lru_cache(maxsize=1)
def get_default_context() -> MatrixContext:
    """Get the process-wide default matrix context (singleton)."""
    return MatrixContext()


def create_context(**kwargs) -> MatrixContext:
    """Create a new matrix context with custom configuration."""
    return MatrixContext(**kwargs)


def create_profiled_context(track_memory: bool = True) -> MatrixContext:
    """Create a context that records per-operation timings."""
    return MatrixContext(enable_profiling=True, track_memory=track_memory)


def create_double_precision_context() -> MatrixContext:
    """Create a context whose matrices hold 64-bit floats."""
    return MatrixContext(dtype=torch.float64)
