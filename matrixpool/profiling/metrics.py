"""
Metrics definitions for matrixpool.

This module re-exports the PoolMetrics class for convenience.
"""

from ..types.descriptors import PoolMetrics

__all__ = ["PoolMetrics"]
