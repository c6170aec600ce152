"""
Memory management components for matrixpool.

This module provides matrix shells and the allocator that hands them out,
together with element buffers, when the recycling pool cannot serve a request.
"""

from .shell import MatrixShell
from .allocators import SystemAllocator

__all__ = [
    "MatrixShell",
    "SystemAllocator",
]
