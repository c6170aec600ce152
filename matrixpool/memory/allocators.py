from __future__ import annotations
import logging
from threading import RLock
from typing import Dict

import torch

from ..types.aliases import ElementCount
from .shell import MatrixShell
from ..exceptions import AllocationFailure

logger = logging.getLogger(__name__)


class SystemAllocator:
    """Allocator backing the shell pool: fresh shells and torch buffers."""

    __slots__ = (
        '_device', '_lock', '_shell_allocations', '_shell_frees',
        '_buffer_allocations', '_buffer_frees', '_bytes_allocated'
    )

    def __init__(self, device: torch.device | str = 'cpu'):
        self._device = torch.device(device)
        self._lock = RLock()
        self._shell_allocations = 0
        self._shell_frees = 0
        self._buffer_allocations = 0
        self._buffer_frees = 0
        self._bytes_allocated = 0

    def allocate_shell(self) -> MatrixShell:
        """Allocate a zeroed shell without a buffer."""
        try:
            shell = MatrixShell()
        except MemoryError as e:
            raise AllocationFailure(f"Failed to allocate matrix shell: {e}")

        with self._lock:
            self._shell_allocations += 1
        return shell

    def free_shell(self, shell: MatrixShell) -> None:
        shell.buffer = None
        shell.next = None
        with self._lock:
            self._shell_frees += 1

    def allocate_buffer(self, numel: ElementCount, dtype: torch.dtype) -> torch.Tensor:
        """Allocate an uninitialised contiguous buffer of ``numel`` elements."""
        try:
            buffer = torch.empty(numel, dtype=dtype, device=self._device)
        except (MemoryError, RuntimeError) as e:
            logger.debug("torch.empty(%d, dtype=%s) failed: %s", numel, dtype, e)
            raise AllocationFailure(
                f"Failed to allocate buffer of {numel} elements: {e}",
                requested_size=numel
            )

        with self._lock:
            self._buffer_allocations += 1
            self._bytes_allocated += buffer.element_size() * numel
        return buffer

    def free_buffer(self, buffer: torch.Tensor) -> None:
        with self._lock:
            self._buffer_frees += 1
            self._bytes_allocated -= buffer.element_size() * buffer.numel()

    def get_utilization_stats(self) -> Dict[str, float]:
        """Get allocation counters."""
        with self._lock:
            return {
                'shell_allocations': float(self._shell_allocations),
                'shell_frees': float(self._shell_frees),
                'buffer_allocations': float(self._buffer_allocations),
                'buffer_frees': float(self._buffer_frees),
                'live_buffers': float(self._buffer_allocations - self._buffer_frees),
                'bytes_allocated': float(self._bytes_allocated)
            }

    @property
    def device(self) -> torch.device:
        return self._device

    @property
    def shell_allocations(self) -> int:
        return self._shell_allocations

    @property
    def shell_frees(self) -> int:
        return self._shell_frees

    @property
    def buffer_allocations(self) -> int:
        return self._buffer_allocations

    @property
    def buffer_frees(self) -> int:
        return self._buffer_frees
