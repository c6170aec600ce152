"""
Command-line interface for matrixpool.

This module provides CLI commands for benchmarking the create / apply /
release churn that the shell pool is meant to absorb.
"""

import argparse
import json
import sys
import time
from typing import Any, Dict, List, Optional

import torch

from .factory import create_context
from .core.context import MatrixContext
from .core.matrix import MatrixSlot
from .types.enums import ElementwiseOp, MatrixStatus


def benchmark_command(argv: Optional[List[str]] = None) -> None:
    """CLI command for benchmarking matrix churn."""
    parser = argparse.ArgumentParser(description='Benchmark matrixpool allocation churn')
    parser.add_argument('--shape', type=int, nargs=2, default=[64, 64],
                        help='Matrix rows and columns')
    parser.add_argument('--iterations', type=int, default=1000,
                        help='Number of create/apply/release rounds')
    parser.add_argument('--op', choices=[op.name.lower() for op in ElementwiseOp],
                        default='add', help='Element-wise operation to apply')
    parser.add_argument('--double', action='store_true',
                        help='Use 64-bit floats')
    parser.add_argument('--profile', action='store_true',
                        help='Record per-operation timings')
    parser.add_argument('--output', type=str, help='Output file for results')

    args = parser.parse_args(argv)

    context = create_context(
        dtype=torch.float64 if args.double else torch.float32,
        enable_profiling=args.profile
    )

    results = run_benchmark(
        context,
        args.shape,
        args.iterations,
        ElementwiseOp[args.op.upper()]
    )

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(results, f, indent=2)
    else:
        print(json.dumps(results, indent=2))


def run_benchmark(
    context: MatrixContext,
    shape: List[int],
    iterations: int,
    op: ElementwiseOp = ElementwiseOp.ADD
) -> Dict[str, Any]:
    """Run a create / apply / release loop and report timings and pool usage."""
    rows, cols = shape
    results: Dict[str, Any] = {
        'config': {
            'shape': [rows, cols],
            'iterations': iterations,
            'op': op.name,
            'dtype': str(context.dtype)
        },
        'results': {}
    }

    round_times = []
    failures = 0
    for _ in range(iterations):
        start_time = time.perf_counter()

        with MatrixSlot(context.create(rows, cols)) as lhs, \
                MatrixSlot(context.create(rows, cols)) as rhs, \
                MatrixSlot() as out:
            lhs.get().fill(1.5)
            rhs.get().fill(0.5)
            status = context.apply(op, lhs.matrix, rhs.matrix, out)
            if status is not MatrixStatus.COMPLETED:
                failures += 1

        round_times.append(time.perf_counter() - start_time)

    total = sum(round_times)
    results['results'] = {
        'round_times': {
            'mean': total / len(round_times) if round_times else 0.0,
            'min': min(round_times, default=0.0),
            'max': max(round_times, default=0.0)
        },
        'rounds_per_second': iterations / total if total > 0 else 0.0,
        'failures': failures,
        'pool': context.get_metrics().as_dict(),
        'stats': context.get_stats()
    }

    return results


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python -m matrixpool.cli <command>")
        print("Commands: benchmark")
        sys.exit(1)

    command = sys.argv[1]

    if command == 'benchmark':
        benchmark_command(sys.argv[2:])
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == '__main__':
    main()
