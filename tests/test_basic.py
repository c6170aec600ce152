"""
Basic tests for matrixpool.

This module covers the scalar and reduction operations built on the
lifecycle primitives, and the status helpers.
"""

import math

import pytest
import torch
from unittest.mock import Mock

from matrixpool import (
    MatrixContext,
    MatrixSlot,
    MatrixStatus,
    MatrixError,
    MatrixNullOperand,
    MatrixInvalidOperand,
    MatrixUnmatchedSize,
    raise_for_status,
)


class TestScalarOperations:
    """Scalar operations copy the source first unless the result aliases it."""

    def setup_method(self):
        self.context = MatrixContext()
        self.src = self.context.from_rows([[1, 2], [3, 4]])

    def test_add_scalar_into_empty_slot(self):
        result = MatrixSlot()

        status = self.context.add_scalar(self.src, result, 1.0)

        assert status == MatrixStatus.COMPLETED
        assert result.matrix.to_list() == [[2.0, 3.0], [4.0, 5.0]]
        assert self.src.to_list() == [[1.0, 2.0], [3.0, 4.0]]

    def test_scalar_in_place_when_result_is_source(self):
        result = MatrixSlot(self.src)
        buffer = self.src.buffer

        status = self.context.multiply_scalar(self.src, result, 3.0)

        assert status == MatrixStatus.COMPLETED
        assert self.src.buffer is buffer
        assert self.src.to_list() == [[3.0, 6.0], [9.0, 12.0]]

    def test_subtract_scalar(self):
        result = MatrixSlot(self.context.create(5, 5))

        self.context.subtract_scalar(self.src, result, 0.5)

        assert result.matrix.shape == (2, 2)
        assert result.matrix.to_list() == [[0.5, 1.5], [2.5, 3.5]]

    def test_divide_scalar_by_zero(self):
        result = MatrixSlot()

        status = self.context.divide_scalar(self.src, result, 0.0)

        assert status == MatrixStatus.COMPLETED
        assert all(math.isinf(v) for row in result.matrix.to_list() for v in row)

    def test_scalar_null_source(self):
        result = MatrixSlot()

        assert self.context.add_scalar(None, result, 1.0) == MatrixStatus.NULL_OPERAND
        assert result.matrix is None

    def test_scalar_copy_failure_leaves_result(self, failing_allocator):
        context = MatrixContext(allocator=failing_allocator, out_of_memory=Mock())
        src = context.from_rows([[1, 2], [3, 4]])
        dest = context.from_rows([[7, 7, 7]])
        result = MatrixSlot(dest)
        failing_allocator.fail_buffers = True

        status = context.add_scalar(src, result, 1.0)

        assert status == MatrixStatus.OUT_OF_MEMORY
        assert result.matrix is dest
        assert dest.to_list() == [[7.0, 7.0, 7.0]]


class TestReductions:
    def setup_method(self):
        self.context = MatrixContext()

    def test_max_and_min(self):
        matrix = self.context.from_rows([[3, -2, 8], [0, 5, -7]])

        assert self.context.matrix_max(matrix) == 8.0
        assert self.context.matrix_min(matrix) == -7.0

    def test_single_element(self):
        matrix = self.context.from_rows([[2.5]])

        assert self.context.matrix_max(matrix) == 2.5
        assert self.context.matrix_min(matrix) == 2.5

    def test_null_matrix(self):
        with pytest.raises(MatrixNullOperand) as exc_info:
            self.context.matrix_max(None)

        assert exc_info.value.status == MatrixStatus.NULL_OPERAND

    def test_empty_matrix(self):
        matrix = self.context.create(0, 3)

        with pytest.raises(MatrixInvalidOperand) as exc_info:
            self.context.matrix_min(matrix)

        assert exc_info.value.status == MatrixStatus.INVALID_OPERAND


class TestStatus:
    def test_ok(self):
        assert MatrixStatus.COMPLETED.ok
        assert not MatrixStatus.OUT_OF_MEMORY.ok

    def test_raise_for_completed(self):
        raise_for_status(MatrixStatus.COMPLETED)

    def test_raise_for_failure(self):
        with pytest.raises(MatrixUnmatchedSize, match="UNMATCHED_SIZE"):
            raise_for_status(MatrixStatus.UNMATCHED_SIZE)

    def test_raise_for_engine_status(self):
        context = MatrixContext()
        a = context.create(2, 2)
        b = context.create(3, 3)

        with pytest.raises(MatrixError) as exc_info:
            raise_for_status(context.add(a, b, MatrixSlot()))

        assert exc_info.value.status == MatrixStatus.UNMATCHED_SIZE

    def test_double_precision(self):
        context = MatrixContext(dtype=torch.float64)
        matrix = context.from_rows([[0.1, 0.2]])

        assert matrix.dtype == torch.float64
        assert matrix[0, 0] == 0.1

    def test_integer_dtype_rejected(self):
        with pytest.raises(ValueError, match="floating point"):
            MatrixContext(dtype=torch.int32)


if __name__ == "__main__":
    pytest.main([__file__])
