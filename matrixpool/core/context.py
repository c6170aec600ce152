"""
Matrix construction context for matrixpool.

A ``MatrixContext`` owns the recycling pool and the allocator behind it and
exposes the lifecycle operations (create, reference, release, assign), the
element-wise engine and the scalar and reduction wrappers built on them.
"""

from __future__ import annotations
import logging
from threading import RLock
from typing import Any, Callable, Dict, Optional, Sequence

import torch

from ..types.descriptors import MatrixShape, PoolMetrics, default_max_elements
from ..types.enums import MatrixStatus, ElementwiseOp
from ..types.protocols import IAllocator
from ..memory.allocators import SystemAllocator
from ..memory.shell import MatrixShell
from ..exceptions import (
    AllocationFailure,
    MatrixInvalidOperand,
    MatrixNullOperand,
    MatrixOutOfMemory,
    MatrixSizeExceeded,
)
from ..profiling.profiler import PerformanceProfiler, timed_operation
from .engine import ElementwiseEngine
from .matrix import Matrix, MatrixSlot
from .pool import ShellPool

logger = logging.getLogger(__name__)


def log_out_of_memory() -> None:
    """Default out-of-memory hook."""
    logger.error("Out of memory while allocating matrix storage")


class MatrixContext:
    """Owns a shell pool and performs every matrix lifecycle operation.

    Not thread-safe beyond the pool and reference counts, which are guarded
    by locks; concurrent mutation of one matrix is the caller's concern.
    """

    __slots__ = (
        '_allocator', '_pool', '_engine', '_profiler', '_dtype',
        '_max_elements', '_out_of_memory', '_lock'
    )

    def __init__(
        self,
        allocator: Optional[IAllocator] = None,
        dtype: torch.dtype = torch.float32,
        max_elements: Optional[int] = None,
        out_of_memory: Optional[Callable[[], None]] = None,
        enable_profiling: bool = False,
        track_memory: bool = False
    ):
        if not dtype.is_floating_point:
            raise ValueError(f"Matrix dtype must be floating point: {dtype}")

        self._allocator = allocator if allocator is not None else SystemAllocator()
        self._pool = ShellPool(self._allocator)
        self._engine = ElementwiseEngine(self)
        self._dtype = dtype
        self._max_elements = max_elements if max_elements is not None else default_max_elements(dtype)
        self._out_of_memory = out_of_memory or log_out_of_memory
        self._lock = RLock()
        self._profiler = (
            PerformanceProfiler(enable_memory_tracking=track_memory) if enable_profiling else None
        )

    # Lifecycle

    @timed_operation(lambda self: self._profiler, 'create')
    def create(self, rows: int, cols: int) -> Matrix:
        """Create a ``rows`` x ``cols`` matrix with uninitialised elements.

        Raises ``MatrixSizeExceeded`` when ``rows * cols`` is above the
        context's element limit and ``MatrixOutOfMemory`` when allocation
        fails. Negative dimensions raise ``ValueError``.
        """
        shape = MatrixShape(rows, cols, self._dtype)
        if shape.exceeds(self._max_elements):
            raise MatrixSizeExceeded(
                f"Matrix of {rows}x{cols} exceeds {self._max_elements} elements",
                rows=rows, cols=cols
            )

        try:
            shell = self._pool.acquire_shell()
        except MatrixOutOfMemory:
            self._out_of_memory()
            raise

        try:
            buffer = self._allocator.allocate_buffer(shape.numel, self._dtype)
        except AllocationFailure as e:
            self._out_of_memory()
            self._allocator.free_shell(shell)
            raise MatrixOutOfMemory(
                str(e), rows=rows, cols=cols, requested_bytes=shape.raw_byte_size
            ) from e

        shell.rows = rows
        shell.cols = cols
        shell.buffer = buffer
        shell.refs = 1
        shell.next = None
        return Matrix(shell, self)

    def reference(self, matrix: Optional[Matrix]) -> Optional[Matrix]:
        """Take another reference to ``matrix`` and return it unchanged."""
        if matrix is None:
            return None
        with matrix.context._lock:
            matrix._live_shell().refs += 1
        return matrix

    def release(self, slot: MatrixSlot) -> None:
        """Drop the reference held in ``slot`` and clear it.

        The buffer is freed and the shell recycled once no reference is
        left. Releasing an empty slot does nothing.
        """
        matrix = slot.matrix
        if matrix is None:
            return
        if matrix.context is not self:
            matrix.context.release(slot)
            return

        slot.matrix = None
        if not matrix.is_valid:
            return

        with self._lock:
            shell = matrix._live_shell()
            if shell.refs > 0:
                shell.refs -= 1
            if shell.refs != 0:
                return
            matrix._detach_shell()

        self._allocator.free_buffer(shell.buffer)
        self._pool.release_shell(shell)

    @timed_operation(lambda self: self._profiler, 'assign')
    def assign(self, dest: MatrixSlot, src: Optional[Matrix]) -> MatrixStatus:
        """Copy the shape and every element of ``src`` into ``dest``.

        The destination keeps its own reference count and stays with the
        context that created it, dtype included. Its buffer is reused when
        the element count already matches and replaced otherwise; on failure
        the destination is left exactly as it was.
        """
        if src is None:
            return MatrixStatus.NULL_OPERAND

        src_shell = src._live_shell()
        target = dest.matrix
        if target is None:
            try:
                target = self.create(src_shell.rows, src_shell.cols)
            except MatrixOutOfMemory:
                return MatrixStatus.OUT_OF_MEMORY
            except MatrixSizeExceeded:
                return MatrixStatus.SIZE_EXCEEDED
            target.buffer.copy_(src_shell.buffer)
            dest.matrix = target
            return MatrixStatus.COMPLETED

        shell = target._live_shell()
        if shell is src_shell:
            return MatrixStatus.COMPLETED

        if shell.numel != src_shell.numel:
            owner = target.context
            new_buffer = owner._allocate_buffer(src_shell.numel)
            if new_buffer is None:
                return MatrixStatus.OUT_OF_MEMORY
            new_buffer.copy_(src_shell.buffer)
            owner._swap_buffer(shell, new_buffer)
        else:
            shell.buffer.copy_(src_shell.buffer)

        shell.rows = src_shell.rows
        shell.cols = src_shell.cols
        return MatrixStatus.COMPLETED

    def from_rows(self, values: Sequence[Sequence[float]] | Any) -> Matrix:
        """Create a matrix holding a copy of a 2-D sequence or array."""
        data = torch.as_tensor(values, dtype=self._dtype)
        if data.dim() != 2:
            raise ValueError(f"Expected 2-D values, got {data.dim()} dimension(s)")

        matrix = self.create(data.shape[0], data.shape[1])
        matrix.buffer.copy_(data.reshape(-1))
        return matrix

    # Element-wise operations

    @timed_operation(lambda self: self._profiler, 'apply')
    def apply(
        self,
        op: ElementwiseOp,
        op1: Optional[Matrix],
        op2: Optional[Matrix],
        result: MatrixSlot
    ) -> MatrixStatus:
        return self._engine.apply(op, op1, op2, result)

    def add(self, op1: Optional[Matrix], op2: Optional[Matrix], result: MatrixSlot) -> MatrixStatus:
        return self.apply(ElementwiseOp.ADD, op1, op2, result)

    def subtract(self, op1: Optional[Matrix], op2: Optional[Matrix], result: MatrixSlot) -> MatrixStatus:
        return self.apply(ElementwiseOp.SUBTRACT, op1, op2, result)

    def multiply(self, op1: Optional[Matrix], op2: Optional[Matrix], result: MatrixSlot) -> MatrixStatus:
        return self.apply(ElementwiseOp.MULTIPLY, op1, op2, result)

    def divide(self, op1: Optional[Matrix], op2: Optional[Matrix], result: MatrixSlot) -> MatrixStatus:
        return self.apply(ElementwiseOp.DIVIDE, op1, op2, result)

    # Scalar operations

    @timed_operation(lambda self: self._profiler, 'apply_scalar')
    def apply_scalar(
        self,
        op: ElementwiseOp,
        src: Optional[Matrix],
        result: MatrixSlot,
        value: float
    ) -> MatrixStatus:
        """Combine every element of ``src`` with ``value`` into ``result``."""
        if src is None:
            return MatrixStatus.NULL_OPERAND

        if result.matrix is not src:
            status = self.assign(result, src)
            if status is not MatrixStatus.COMPLETED:
                return status

        self._engine.apply_scalar(op, result.matrix, value)
        return MatrixStatus.COMPLETED

    def add_scalar(self, src: Optional[Matrix], result: MatrixSlot, value: float) -> MatrixStatus:
        return self.apply_scalar(ElementwiseOp.ADD, src, result, value)

    def subtract_scalar(self, src: Optional[Matrix], result: MatrixSlot, value: float) -> MatrixStatus:
        return self.apply_scalar(ElementwiseOp.SUBTRACT, src, result, value)

    def multiply_scalar(self, src: Optional[Matrix], result: MatrixSlot, value: float) -> MatrixStatus:
        return self.apply_scalar(ElementwiseOp.MULTIPLY, src, result, value)

    def divide_scalar(self, src: Optional[Matrix], result: MatrixSlot, value: float) -> MatrixStatus:
        return self.apply_scalar(ElementwiseOp.DIVIDE, src, result, value)

    # Reductions

    def matrix_max(self, src: Optional[Matrix]) -> float:
        return float(self._reducible(src).max())

    def matrix_min(self, src: Optional[Matrix]) -> float:
        return float(self._reducible(src).min())

    def _reducible(self, src: Optional[Matrix]) -> torch.Tensor:
        if src is None:
            raise MatrixNullOperand("Reduction on a null matrix")
        buffer = src.buffer
        if buffer.numel() == 0:
            raise MatrixInvalidOperand(
                f"Reduction on an empty {src.rows}x{src.cols} matrix",
                rows=src.rows, cols=src.cols
            )
        return buffer

    # Buffer management shared with the engine

    def _allocate_buffer(self, numel: int) -> Optional[torch.Tensor]:
        """Allocate a buffer, or call the out-of-memory hook and return None."""
        try:
            return self._allocator.allocate_buffer(numel, self._dtype)
        except AllocationFailure:
            self._out_of_memory()
            return None

    def _swap_buffer(self, shell: MatrixShell, new_buffer: torch.Tensor) -> None:
        old_buffer = shell.buffer
        shell.buffer = new_buffer
        if old_buffer is not None:
            self._allocator.free_buffer(old_buffer)

    # Introspection

    def get_metrics(self) -> PoolMetrics:
        pool_stats = self._pool.get_stats()
        allocator_stats = self._allocator.get_utilization_stats()
        return PoolMetrics(
            pooled_shells=int(pool_stats['pooled']),
            shells_acquired=int(pool_stats['acquired']),
            shells_recycled=int(pool_stats['recycled']),
            fresh_shells=int(pool_stats['fresh']),
            shell_allocations=int(allocator_stats.get('shell_allocations', 0)),
            shell_frees=int(allocator_stats.get('shell_frees', 0)),
            buffer_allocations=int(allocator_stats.get('buffer_allocations', 0)),
            buffer_frees=int(allocator_stats.get('buffer_frees', 0))
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get pool, allocator and profiling statistics."""
        return {
            'pool': self._pool.get_stats(),
            'allocator': self._allocator.get_utilization_stats(),
            'performance': self._profiler.get_summary() if self._profiler else {},
            'dtype': str(self._dtype),
            'max_elements': self._max_elements
        }

    def reset_stats(self) -> None:
        """Discard recorded profiles; pool and allocator counters are kept."""
        if self._profiler is not None:
            self._profiler.clear_profiles()

    def clear_pool(self) -> int:
        """Hand every parked shell back to the allocator."""
        return self._pool.clear()

    @property
    def pool(self) -> ShellPool:
        return self._pool

    @property
    def allocator(self) -> IAllocator:
        return self._allocator

    @property
    def engine(self) -> ElementwiseEngine:
        return self._engine

    @property
    def profiler(self) -> Optional[PerformanceProfiler]:
        return self._profiler

    @property
    def dtype(self) -> torch.dtype:
        return self._dtype

    @property
    def max_elements(self) -> int:
        return self._max_elements

    def __repr__(self) -> str:
        return (
            f"MatrixContext(dtype={self._dtype}, pooled={len(self._pool)}, "
            f"profiling={self._profiler is not None})"
        )
