"""
Recycling pool of matrix shells for matrixpool.

Shells whose matrix dropped its last reference are parked here without
their buffers and handed back out by the next construction, so high-rate
create/release loops stop paying for fresh metadata allocations.
"""

from __future__ import annotations
import logging
from threading import RLock
from typing import Optional, Dict

from ..types.protocols import IAllocator
from ..memory.shell import MatrixShell
from ..exceptions import AllocationFailure, MatrixOutOfMemory

logger = logging.getLogger(__name__)


class ShellPool:
    """Free list of buffer-less shells linked through ``MatrixShell.next``."""

    __slots__ = ('_allocator', '_head', '_size', '_lock', '_acquired', '_recycled', '_fresh')

    def __init__(self, allocator: IAllocator):
        self._allocator = allocator
        self._head: Optional[MatrixShell] = None
        self._size = 0
        self._lock = RLock()
        self._acquired = 0
        self._recycled = 0
        self._fresh = 0

    def acquire_shell(self) -> MatrixShell:
        """Pop the head shell, or allocate a fresh one when the pool is empty."""
        with self._lock:
            self._acquired += 1
            shell = self._head
            if shell is not None:
                self._head = shell.next
                self._size -= 1
                shell.next = None
                return shell

            self._fresh += 1

        try:
            return self._allocator.allocate_shell()
        except AllocationFailure as e:
            with self._lock:
                self._acquired -= 1
                self._fresh -= 1
            raise MatrixOutOfMemory(str(e)) from e

    def release_shell(self, shell: MatrixShell) -> None:
        """Park a shell at the head of the pool. Never fails."""
        shell.buffer = None
        with self._lock:
            shell.next = self._head
            self._head = shell
            self._size += 1
            self._recycled += 1
        logger.debug("Recycled shell %s, %d parked", shell.shell_id, self._size)

    def clear(self) -> int:
        """Return every parked shell to the allocator."""
        with self._lock:
            dropped = 0
            shell = self._head
            while shell is not None:
                following = shell.next
                self._allocator.free_shell(shell)
                shell = following
                dropped += 1
            self._head = None
            self._size = 0
        return dropped

    def get_stats(self) -> Dict[str, float]:
        """Get pool statistics."""
        with self._lock:
            return {
                'pooled': float(self._size),
                'acquired': float(self._acquired),
                'recycled': float(self._recycled),
                'fresh': float(self._fresh),
                'hit_ratio': (self._acquired - self._fresh) / self._acquired if self._acquired else 0.0
            }

    @property
    def allocator(self) -> IAllocator:
        return self._allocator

    @property
    def acquired(self) -> int:
        return self._acquired

    @property
    def recycled(self) -> int:
        return self._recycled

    @property
    def fresh(self) -> int:
        return self._fresh

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"ShellPool(pooled={self._size}, acquired={self._acquired}, fresh={self._fresh})"
