from __future__ import annotations
from typing import Protocol, runtime_checkable, Dict, TYPE_CHECKING

import torch

from .aliases import ElementCount

if TYPE_CHECKING:
    from ..memory.shell import MatrixShell


@runtime_checkable
class IAllocator(Protocol):
    def allocate_shell(self) -> MatrixShell:
        ...

    def free_shell(self, shell: MatrixShell) -> None:
        ...

    def allocate_buffer(self, numel: ElementCount, dtype: torch.dtype) -> torch.Tensor:
        ...

    def free_buffer(self, buffer: torch.Tensor) -> None:
        ...

    def get_utilization_stats(self) -> Dict[str, float]:
        ...
