import json

import pytest
import torch

import matrixpool
from matrixpool import (
    get_default_context,
    create_context,
    create_profiled_context,
    create_double_precision_context,
    MatrixContext,
    MatrixSlot,
    MatrixStatus,
    ElementwiseOp,
    PerformanceProfiler,
    PoolMetrics,
)
from matrixpool.cli import run_benchmark, benchmark_command


class TestBasicIntegration:
    def test_import_matrixpool(self):
        """Test that matrixpool can be imported successfully"""
        assert matrixpool.__version__ == "1.0.0"
        assert matrixpool.get_version_info() == (1, 0, 0)
        assert "MatrixContext" in matrixpool.__all__

    def test_factory_functions(self):
        default_context = get_default_context()
        assert isinstance(default_context, MatrixContext)
        assert get_default_context() is default_context

        custom_context = create_context(max_elements=16)
        assert custom_context.max_elements == 16
        assert custom_context is not default_context

        assert create_double_precision_context().dtype == torch.float64

    def test_contexts_have_separate_pools(self):
        first = create_context()
        second = create_context()

        first.release(MatrixSlot(first.create(2, 2)))

        assert len(first.pool) == 1
        assert len(second.pool) == 0


class TestChurn:
    def setup_method(self):
        self.context = create_context()

    def test_steady_state_churn_stops_allocating_shells(self):
        shapes = [(2, 2), (3, 5), (8, 1), (4, 4)]

        for _ in range(25):
            for rows, cols in shapes:
                with MatrixSlot(self.context.create(rows, cols)) as a, \
                        MatrixSlot(self.context.create(rows, cols)) as b, \
                        MatrixSlot() as out:
                    a.get().fill(2.0)
                    b.get().fill(4.0)
                    assert self.context.divide(a.matrix, b.matrix, out) == MatrixStatus.COMPLETED
                    assert self.context.matrix_max(out.matrix) == 0.5

        metrics = self.context.get_metrics()
        assert isinstance(metrics, PoolMetrics)
        assert metrics.shell_allocations == 3
        assert metrics.pooled_shells == 3
        assert metrics.shells_acquired == 300
        assert metrics.live_buffers == 0
        assert metrics.hit_ratio == pytest.approx(297 / 300)

    def test_chained_accumulation_reuses_result(self):
        total = MatrixSlot(self.context.from_rows([[0, 0], [0, 0]]))
        step = self.context.from_rows([[1, 2], [3, 4]])
        allocations = self.context.allocator.buffer_allocations

        for _ in range(10):
            self.context.add(total.matrix, step, total)

        assert total.matrix.to_list() == [[10.0, 20.0], [30.0, 40.0]]
        assert self.context.allocator.buffer_allocations == allocations


class TestProfiling:
    def test_profiled_context_records_operations(self):
        context = create_profiled_context(track_memory=False)
        a = context.from_rows([[1, 2]])
        result = MatrixSlot()

        context.apply(ElementwiseOp.ADD, a, a, result)
        context.assign(MatrixSlot(), a)

        stats = context.get_stats()
        operations = stats['performance']['operations']
        assert operations['create']['call_count'] == 3
        assert operations['apply']['call_count'] == 1
        assert operations['assign']['call_count'] == 1

    def test_failed_operation_counts_as_error(self):
        context = create_profiled_context(track_memory=False)

        with pytest.raises(ValueError):
            context.create(-1, 2)

        aggregated = context.profiler.get_aggregated_stats('create')['create']
        assert aggregated.error_count == 1

    def test_timed_operation_records_status(self):
        context = create_profiled_context(track_memory=False)
        a = context.from_rows([[1, 2]])
        b = context.from_rows([[1, 2, 3]])

        context.add(a, b, MatrixSlot())

        profile = context.profiler.get_profiles('apply')[-1]
        assert profile.metadata['status'] == 'UNMATCHED_SIZE'
        assert profile.memory_delta == 0
        assert context.get_stats()['performance']['operations']['apply']['memory_delta'] == 0

    def test_reset_stats_clears_profiles(self):
        context = create_profiled_context(track_memory=False)
        slot = MatrixSlot(context.create(2, 2))

        context.reset_stats()

        assert context.profiler.profile_count == 0
        assert context.get_stats()['performance']['operations'] == {}
        assert context.get_metrics().shells_acquired == 1
        context.release(slot)

    def test_unprofiled_context(self):
        context = create_context()
        context.create(1, 1)
        context.reset_stats()

        assert context.profiler is None
        assert context.get_stats()['performance'] == {}

    def test_profile_operation_context_manager(self):
        profiler = PerformanceProfiler()

        with profiler.profile_operation('custom', {'rows': 2}) as profile:
            pass

        assert profile.duration >= 0.0
        assert profiler.profile_count == 1
        assert profiler.get_profiles('custom')[0].metadata == {'rows': 2}


class TestCli:
    def test_run_benchmark(self):
        context = create_context()

        results = run_benchmark(context, [4, 4], 20, ElementwiseOp.MULTIPLY)

        assert results['config']['op'] == 'MULTIPLY'
        assert results['results']['failures'] == 0
        assert results['results']['pool']['shell_allocations'] == 3.0
        assert results['results']['pool']['hit_ratio'] > 0.9

    def test_benchmark_command_writes_output(self, tmp_path):
        output = tmp_path / "bench.json"

        benchmark_command([
            '--shape', '3', '2',
            '--iterations', '5',
            '--op', 'subtract',
            '--profile',
            '--output', str(output)
        ])

        results = json.loads(output.read_text())
        assert results['config']['shape'] == [3, 2]
        assert results['results']['stats']['performance']['operations']['apply']['call_count'] == 5


if __name__ == "__main__":
    pytest.main([__file__])
