"""
Profiling and metrics components for matrixpool.

This module provides operation profiling and pool metrics snapshots.
"""

from .profiler import PerformanceProfiler, timed_operation
from .metrics import PoolMetrics

__all__ = [
    "PerformanceProfiler",
    "timed_operation",
    "PoolMetrics",
]
