"""
Matrix handle and output slot implementations for matrixpool.

A ``Matrix`` is the shared, reference-counted value collaborators pass
around. Every holder sees the same handle; the handle owns exactly one live
shell and drops it when the last reference is released, so any stale holder
fails loudly instead of reading a shell that was recycled for someone else.
"""

from __future__ import annotations
from typing import Any, List, Optional, Tuple, TYPE_CHECKING

import numpy as np
import torch

from ..memory.shell import MatrixShell
from ..types.aliases import ElementCount, ShellID
from ..types.enums import MatrixLifecycleState
from ..exceptions import MatrixReleased

if TYPE_CHECKING:
    from .context import MatrixContext


class Matrix:
    """Reference-counted handle to a row-major matrix of floats."""

    __slots__ = ('_shell', '_context', '__weakref__')

    def __init__(self, shell: MatrixShell, context: MatrixContext):
        self._shell: Optional[MatrixShell] = shell
        self._context = context

    def _live_shell(self) -> MatrixShell:
        shell = self._shell
        if shell is None:
            raise MatrixReleased("Matrix has been released")
        return shell

    def _detach_shell(self) -> MatrixShell:
        shell = self._live_shell()
        self._shell = None
        return shell

    @property
    def context(self) -> MatrixContext:
        return self._context

    @property
    def state(self) -> MatrixLifecycleState:
        if self._shell is None:
            return MatrixLifecycleState.RELEASED
        return MatrixLifecycleState.ACTIVE

    @property
    def is_valid(self) -> bool:
        return self._shell is not None

    @property
    def shell_id(self) -> ShellID:
        return self._live_shell().shell_id

    @property
    def rows(self) -> int:
        return self._live_shell().rows

    @property
    def cols(self) -> int:
        return self._live_shell().cols

    @property
    def shape(self) -> Tuple[int, int]:
        shell = self._live_shell()
        return (shell.rows, shell.cols)

    @property
    def size(self) -> ElementCount:
        return self._live_shell().numel

    @property
    def refs(self) -> int:
        return self._live_shell().refs

    @property
    def buffer(self) -> torch.Tensor:
        """The flat row-major element buffer, shared, not a copy."""
        return self._live_shell().buffer

    @property
    def dtype(self) -> torch.dtype:
        return self.buffer.dtype

    def _offset(self, index: Tuple[int, int]) -> int:
        shell = self._live_shell()
        r, c = index
        if not (0 <= r < shell.rows and 0 <= c < shell.cols):
            raise IndexError(f"Index ({r}, {c}) out of range for {shell.rows}x{shell.cols} matrix")
        return r * shell.cols + c

    def __getitem__(self, index: Tuple[int, int]) -> float:
        return float(self.buffer[self._offset(index)])

    def __setitem__(self, index: Tuple[int, int], value: float) -> None:
        self.buffer[self._offset(index)] = value

    def fill(self, value: float) -> None:
        self.buffer.fill_(value)

    def view(self) -> torch.Tensor:
        """2-D view over the buffer; writes go through to the matrix."""
        shell = self._live_shell()
        return shell.buffer.view(shell.rows, shell.cols)

    def to_list(self) -> List[List[float]]:
        return self.view().tolist()

    def to_numpy(self) -> np.ndarray:
        """Copy of the elements as a 2-D numpy array."""
        return self.view().detach().cpu().numpy().copy()

    def __repr__(self) -> str:
        shell = self._shell
        if shell is None:
            return "Matrix(released)"
        return f"Matrix(rows={shell.rows}, cols={shell.cols}, refs={shell.refs}, dtype={shell.buffer.dtype})"


class MatrixSlot:
    """Mutable holder for a caller's matrix handle.

    Operations that may replace or clear the caller's handle (release,
    assign, element-wise results) take a slot rather than a matrix.
    """

    __slots__ = ('matrix',)

    def __init__(self, matrix: Optional[Matrix] = None):
        self.matrix = matrix

    @property
    def is_empty(self) -> bool:
        return self.matrix is None

    def get(self) -> Matrix:
        if self.matrix is None:
            raise MatrixReleased("Slot is empty")
        return self.matrix

    def __enter__(self) -> MatrixSlot:
        return self

    def __exit__(self, *args: Any) -> None:
        if self.matrix is not None:
            self.matrix.context.release(self)

    def __repr__(self) -> str:
        return f"MatrixSlot({self.matrix!r})"
