from __future__ import annotations
from itertools import count
from typing import Optional

import torch

from ..types.aliases import ElementCount, ShellID

_shell_ids = count(1)


class MatrixShell:
    """Matrix metadata plus its exclusively owned buffer.

    While parked in a pool only ``next`` is meaningful; every other field
    holds whatever the last owner left behind and ``buffer`` is ``None``.
    """

    __slots__ = ('shell_id', 'rows', 'cols', 'refs', 'buffer', 'next')

    def __init__(self):
        self.shell_id = ShellID(next(_shell_ids))
        self.rows = 0
        self.cols = 0
        self.refs = 0
        self.buffer: Optional[torch.Tensor] = None
        self.next: Optional[MatrixShell] = None

    @property
    def numel(self) -> ElementCount:
        return ElementCount(self.rows * self.cols)

    def __repr__(self) -> str:
        return (
            f"MatrixShell(id={self.shell_id}, rows={self.rows}, cols={self.cols}, "
            f"refs={self.refs}, has_buffer={self.buffer is not None})"
        )
