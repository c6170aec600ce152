from __future__ import annotations
import sys
import time
from dataclasses import dataclass, field
from typing import Dict

import torch

from .aliases import ElementCount, ByteSize


@dataclass(frozen=True)
class MatrixShape:
    rows: int
    cols: int
    dtype: torch.dtype = torch.float32

    def __post_init__(self):
        if self.rows < 0 or self.cols < 0:
            raise ValueError(f"Invalid matrix shape: ({self.rows}, {self.cols})")

    @property
    def numel(self) -> ElementCount:
        return ElementCount(self.rows * self.cols)

    @property
    def element_size(self) -> int:
        dtype_sizes = {
            torch.float16: 2,
            torch.bfloat16: 2,
            torch.float32: 4,
            torch.float64: 8,
        }
        return dtype_sizes.get(self.dtype, 4)

    @property
    def raw_byte_size(self) -> ByteSize:
        return ByteSize(self.numel * self.element_size)

    def exceeds(self, max_elements: int) -> bool:
        # rows * cols > max_elements, without forming the product
        if self.rows == 0 or self.cols == 0:
            return False
        return self.cols > max_elements // self.rows

    def __str__(self) -> str:
        return f"MatrixShape({self.rows}x{self.cols}, dtype={self.dtype})"


def default_max_elements(dtype: torch.dtype = torch.float32) -> int:
    """Largest element count whose byte size the platform can address."""
    return sys.maxsize // MatrixShape(0, 0, dtype).element_size


@dataclass
class PoolMetrics:
    """Point-in-time snapshot of pool and allocator counters."""
    pooled_shells: int = 0
    shells_acquired: int = 0
    shells_recycled: int = 0
    fresh_shells: int = 0
    shell_allocations: int = 0
    shell_frees: int = 0
    buffer_allocations: int = 0
    buffer_frees: int = 0
    captured_at: float = field(default_factory=time.perf_counter)

    @property
    def hit_ratio(self) -> float:
        """Fraction of shell acquisitions served from the pool."""
        if self.shells_acquired == 0:
            return 0.0
        return (self.shells_acquired - self.fresh_shells) / self.shells_acquired

    @property
    def live_buffers(self) -> int:
        return self.buffer_allocations - self.buffer_frees

    def as_dict(self) -> Dict[str, float]:
        return {
            'pooled_shells': float(self.pooled_shells),
            'shells_acquired': float(self.shells_acquired),
            'shells_recycled': float(self.shells_recycled),
            'fresh_shells': float(self.fresh_shells),
            'shell_allocations': float(self.shell_allocations),
            'shell_frees': float(self.shell_frees),
            'buffer_allocations': float(self.buffer_allocations),
            'buffer_frees': float(self.buffer_frees),
            'hit_ratio': self.hit_ratio,
        }
