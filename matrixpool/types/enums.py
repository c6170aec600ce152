"""
Enumeration types for matrixpool.

This module defines the status taxonomy, the element-wise operator codes
and the lifecycle states used throughout the library.
"""

from enum import IntEnum


class MatrixStatus(IntEnum):
    """Result of every fallible matrix operation."""
    COMPLETED = 0
    OUT_OF_MEMORY = 1
    NULL_OPERAND = 2
    INVALID_OPERAND = 3
    UNMATCHED_SIZE = 4
    SIZE_EXCEEDED = 5

    @property
    def ok(self) -> bool:
        return self is MatrixStatus.COMPLETED


class ElementwiseOp(IntEnum):
    """Operators applied element by element to two equally shaped operands."""
    ADD = 1
    SUBTRACT = 2
    MULTIPLY = 3
    DIVIDE = 4


class MatrixLifecycleState(IntEnum):
    """Lifecycle states of a matrix handle."""
    ACTIVE = 1
    RELEASED = 2
