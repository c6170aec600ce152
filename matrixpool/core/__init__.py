"""
Core components of matrixpool.

This module contains the matrix handle, the shell recycling pool, the
element-wise engine and the context that ties them together.
"""

from .matrix import Matrix, MatrixSlot
from .pool import ShellPool
from .engine import ElementwiseEngine
from .context import MatrixContext

__all__ = [
    "Matrix",
    "MatrixSlot",
    "ShellPool",
    "ElementwiseEngine",
    "MatrixContext",
]
