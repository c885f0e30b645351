"""Command line entry point for the vector kernel benchmark.

Run with: python -m vecbench <kernel_id> <array_size>
"""

import argparse
import sys

from .benchmark import BenchmarkConfig, run_benchmark
from .errors import CompilationError, UnsupportedKernelError, VecBenchError
from .kernels import select_kernel
from .launch import DEFAULT_TRIALS, MAX_ELEMENTS, TIMING_METHODS


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid positive integer: {text!r}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value


def _array_size(text: str) -> int:
    value = _positive_int(text)
    if value > MAX_ELEMENTS:
        raise argparse.ArgumentTypeError(f"must be at most {MAX_ELEMENTS}, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vecbench",
        description="Benchmark a runtime-compiled vector divide/multiply CUDA kernel",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("kernel_id", type=int, help="Kernel to run: 0 = div, 1 = mul")
    parser.add_argument(
        "array_size", type=_array_size, help="Number of doubles in each vector"
    )
    parser.add_argument(
        "--trials", type=_positive_int, default=DEFAULT_TRIALS, help="Number of timed launches"
    )
    parser.add_argument(
        "--seed", type=int, default=0, help="Seed for the input vectors and scalar operand"
    )
    parser.add_argument(
        "--timing",
        type=str,
        default="issue",
        choices=TIMING_METHODS,
        help="issue: wall time of all launches plus one sync; event: per-launch CUDA events",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Print device and compilation details"
    )
    return parser


def main(argv=None) -> int:
    """Main benchmark entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        variant = select_kernel(args.kernel_id)
    except UnsupportedKernelError as e:
        parser.error(e.message)

    config = BenchmarkConfig(
        variant=variant,
        num_elements=args.array_size,
        trials=args.trials,
        seed=args.seed,
        timing=args.timing,
        verbose=args.verbose,
    )

    try:
        run_benchmark(config)
    except CompilationError as e:
        print(f"Log: {e.log}", file=sys.stderr)
        return e.exit_code
    except VecBenchError as e:
        print(e.message, file=sys.stderr)
        return e.exit_code
    return 0


if __name__ == "__main__":
    sys.exit(main())
