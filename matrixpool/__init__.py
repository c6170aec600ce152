"""
matrixpool - Reference-Counted Matrices with Shell Recycling

A mutable matrix value type for numeric pipelines that create, combine and
discard matrices of varying shape at high frequency.

Key Features:
- Shared, reference-counted matrix handles
- Recycling pool of matrix shells to cut allocation churn
- Aliasing-safe element-wise add/subtract/multiply/divide
- Status-code error reporting with no partial mutation on failure
- Optional per-operation profiling
"""

from __future__ import annotations

__version__ = "1.0.0"
__license__ = "MIT"

# Core components
from .core.context import MatrixContext
from .core.matrix import Matrix, MatrixSlot
from .core.pool import ShellPool
from .core.engine import ElementwiseEngine
from .factory import (
    get_default_context,
    create_context,
    create_profiled_context,
    create_double_precision_context
)

# Memory
from .memory.allocators import SystemAllocator
from .memory.shell import MatrixShell

# Performance and profiling
from .profiling.profiler import PerformanceProfiler
from .profiling.metrics import PoolMetrics

# Types and descriptors
from .types.descriptors import MatrixShape
from .types.enums import (
    MatrixStatus,
    ElementwiseOp,
    MatrixLifecycleState
)
from .types.protocols import IAllocator

# Exceptions
from .exceptions import (
    MatrixPoolError,
    AllocationFailure,
    MatrixReleased,
    MatrixError,
    MatrixOutOfMemory,
    MatrixNullOperand,
    MatrixInvalidOperand,
    MatrixUnmatchedSize,
    MatrixSizeExceeded,
    raise_for_status
)

# Public API
__all__ = [
    # Core components
    "MatrixContext",
    "Matrix",
    "MatrixSlot",
    "ShellPool",
    "ElementwiseEngine",
    "get_default_context",
    "create_context",
    "create_profiled_context",
    "create_double_precision_context",

    # Memory
    "SystemAllocator",
    "MatrixShell",

    # Performance
    "PerformanceProfiler",
    "PoolMetrics",

    # Types
    "MatrixShape",
    "MatrixStatus",
    "ElementwiseOp",
    "MatrixLifecycleState",
    "IAllocator",

    # Exceptions
    "MatrixPoolError",
    "AllocationFailure",
    "MatrixReleased",
    "MatrixError",
    "MatrixOutOfMemory",
    "MatrixNullOperand",
    "MatrixInvalidOperand",
    "MatrixUnmatchedSize",
    "MatrixSizeExceeded",
    "raise_for_status",
]

# Version info
VERSION_INFO = tuple(map(int, __version__.split('.')))


def get_version() -> str:
    """Get the current version string."""
    return __version__


def get_version_info() -> tuple[int, ...]:
    """Get version as tuple of integers."""
    return VERSION_INFO
