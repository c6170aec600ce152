"""
Element-wise arithmetic engine for matrixpool.

The destination of an operation may be either operand, both, an unrelated
matrix or an empty slot. When the destination already holds the right
number of elements the result is written straight into its buffer: every
output element depends only on the input elements at the same index, so
writing over an operand is safe. Otherwise a new buffer is allocated and
filled first, and the destination is only touched once the result is
complete. The choice depends on capacity alone, never on alias detection.

Division is not guarded; zero divisors yield inf or NaN as IEEE arithmetic
dictates and callers that need otherwise must check their divisors.
"""

from __future__ import annotations
import logging
from typing import Callable, Dict, Optional, TYPE_CHECKING

import torch

from ..types.enums import MatrixStatus, ElementwiseOp
from ..exceptions import MatrixOutOfMemory, MatrixSizeExceeded
from .matrix import Matrix, MatrixSlot

if TYPE_CHECKING:
    from .context import MatrixContext

logger = logging.getLogger(__name__)

Kernel = Callable[..., torch.Tensor]

_KERNELS: Dict[ElementwiseOp, Kernel] = {
    ElementwiseOp.ADD: torch.add,
    ElementwiseOp.SUBTRACT: torch.sub,
    ElementwiseOp.MULTIPLY: torch.mul,
    ElementwiseOp.DIVIDE: torch.div,
}


def kernel_for(op: ElementwiseOp) -> Kernel:
    return _KERNELS[ElementwiseOp(op)]


class ElementwiseEngine:
    """Executes element-wise binary operations on behalf of a context."""

    __slots__ = ('_context',)

    def __init__(self, context: MatrixContext):
        self._context = context

    def apply(
        self,
        op: ElementwiseOp,
        op1: Optional[Matrix],
        op2: Optional[Matrix],
        result: MatrixSlot
    ) -> MatrixStatus:
        """Compute ``op1 <op> op2`` element by element into ``result``.

        An empty slot receives a new matrix from this engine's context. A
        matrix already in the slot keeps its owning context, whose allocator
        supplies any replacement buffer. The destination always takes the
        operands' shape, even when only the element count matched, so a 1x4
        destination computed in place from 2x2 operands ends up 2x2.
        """
        if op1 is None or op2 is None:
            return MatrixStatus.NULL_OPERAND

        rows, cols = op1.shape
        if (rows, cols) != op2.shape:
            return MatrixStatus.UNMATCHED_SIZE

        kernel = kernel_for(op)
        lhs, rhs = op1.buffer, op2.buffer

        dest = result.matrix
        if dest is None:
            try:
                dest = self._context.create(rows, cols)
            except MatrixOutOfMemory:
                return MatrixStatus.OUT_OF_MEMORY
            except MatrixSizeExceeded:
                return MatrixStatus.SIZE_EXCEEDED
            kernel(lhs, rhs, out=dest.buffer)
            result.matrix = dest
            return MatrixStatus.COMPLETED

        shell = dest._live_shell()
        owner = dest.context
        size = rows * cols
        if shell.numel != size:
            new_buffer = owner._allocate_buffer(size)
            if new_buffer is None:
                return MatrixStatus.OUT_OF_MEMORY
            kernel(lhs, rhs, out=new_buffer)
            logger.debug("Resized result buffer %d -> %d elements", shell.numel, size)
            owner._swap_buffer(shell, new_buffer)
        else:
            kernel(lhs, rhs, out=shell.buffer)

        shell.rows = rows
        shell.cols = cols
        return MatrixStatus.COMPLETED

    def apply_scalar(self, op: ElementwiseOp, target: Matrix, value: float) -> None:
        """Combine every element of ``target`` with ``value`` in place."""
        buffer = target.buffer
        kernel_for(op)(buffer, value, out=buffer)
