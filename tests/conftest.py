import pytest

from matrixpool.memory.allocators import SystemAllocator
from matrixpool.exceptions import AllocationFailure


class FailingAllocator(SystemAllocator):
    """System allocator that refuses allocations on demand."""

    def __init__(self):
        super().__init__()
        self.fail_shells = False
        self.fail_buffers = False

    def allocate_shell(self):
        if self.fail_shells:
            raise AllocationFailure("shell allocation refused")
        return super().allocate_shell()

    def allocate_buffer(self, numel, dtype):
        if self.fail_buffers:
            raise AllocationFailure("buffer allocation refused", requested_size=numel)
        return super().allocate_buffer(numel, dtype)


@pytest.fixture
def failing_allocator():
    return FailingAllocator()
