from __future__ import annotations
from typing import Dict, Optional, Type

from .types.enums import MatrixStatus


class MatrixPoolError(Exception):
    def __init__(self, message: str, **kwargs):
        super().__init__(message)
        self.message = message
        self.context = kwargs


class AllocationFailure(MatrixPoolError):
    def __init__(self, message: str, requested_size: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.requested_size = requested_size


class MatrixReleased(MatrixPoolError):
    pass


class MatrixError(MatrixPoolError):
    status: MatrixStatus = MatrixStatus.COMPLETED

    def __init__(self, message: str, status: Optional[MatrixStatus] = None, **kwargs):
        super().__init__(message, **kwargs)
        if status is not None:
            self.status = status


class MatrixOutOfMemory(MatrixError):
    status = MatrixStatus.OUT_OF_MEMORY


class MatrixNullOperand(MatrixError):
    status = MatrixStatus.NULL_OPERAND


class MatrixInvalidOperand(MatrixError):
    status = MatrixStatus.INVALID_OPERAND


class MatrixUnmatchedSize(MatrixError):
    status = MatrixStatus.UNMATCHED_SIZE


class MatrixSizeExceeded(MatrixError):
    status = MatrixStatus.SIZE_EXCEEDED


_STATUS_ERRORS: Dict[MatrixStatus, Type[MatrixError]] = {
    MatrixStatus.OUT_OF_MEMORY: MatrixOutOfMemory,
    MatrixStatus.NULL_OPERAND: MatrixNullOperand,
    MatrixStatus.INVALID_OPERAND: MatrixInvalidOperand,
    MatrixStatus.UNMATCHED_SIZE: MatrixUnmatchedSize,
    MatrixStatus.SIZE_EXCEEDED: MatrixSizeExceeded,
}


def error_for_status(status: MatrixStatus) -> Optional[Type[MatrixError]]:
    return _STATUS_ERRORS.get(status)


def raise_for_status(status: MatrixStatus, message: Optional[str] = None) -> None:
    """Raise the exception matching ``status``; do nothing on COMPLETED."""
    error_cls = error_for_status(status)
    if error_cls is None:
        return
    raise error_cls(message or f"Matrix operation failed: {status.name}")


__all__ = [
    'MatrixPoolError',
    'AllocationFailure',
    'MatrixReleased',
    'MatrixError',
    'MatrixOutOfMemory',
    'MatrixNullOperand',
    'MatrixInvalidOperand',
    'MatrixUnmatchedSize',
    'MatrixSizeExceeded',
    'error_for_status',
    'raise_for_status',
]
