"""
Type definitions and protocols for matrixpool.

This module provides type definitions, protocols, and data structures
used throughout the library for type safety and clarity.
"""

from .descriptors import MatrixShape, PoolMetrics, default_max_elements
from .enums import (
    MatrixStatus,
    ElementwiseOp,
    MatrixLifecycleState
)
from .protocols import IAllocator
from .aliases import (
    ElementCount,
    ByteSize,
    ShellID
)

__all__ = [
    # Descriptors
    "MatrixShape",
    "PoolMetrics",
    "default_max_elements",

    # Enums
    "MatrixStatus",
    "ElementwiseOp",
    "MatrixLifecycleState",

    # Protocols
    "IAllocator",

    # Type aliases
    "ElementCount",
    "ByteSize",
    "ShellID",
]
