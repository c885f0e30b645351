"""End-to-end benchmark run.

A run moves through a fixed sequence of stages. There is no recovery path:
the first error tags itself with the stage it interrupted, every scoped
resource is released, and the error propagates to the caller.
"""

import enum
import sys
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Optional, TextIO

from .compiler import compile_kernel
from .driver import DeviceContext
from .errors import VecBenchError
from .kernels import KernelVariant
from .launch import DEFAULT_TRIALS, MAX_ELEMENTS, TIMING_METHODS, LaunchConfig, TimingResult, kernel_args, run_trials
from .memory import DeviceBuffer, HostVectors, draw_scalar, make_generator
from .validate import DEFAULT_ATOL, validate

DEVICE_ORDINAL = 0


class Stage(enum.Enum):
    START = "start"
    KERNEL_SELECTED = "kernel_selected"
    COMPILED = "compiled"
    CONTEXT_READY = "context_ready"
    BUFFERS_READY = "buffers_ready"
    LAUNCHED = "launched"
    SYNCED = "synced"
    VALIDATED = "validated"
    CLEANED_UP = "cleaned_up"
    FATAL_EXIT = "fatal_exit"


@dataclass(frozen=True)
class BenchmarkConfig:
    variant: KernelVariant
    num_elements: int
    trials: int = DEFAULT_TRIALS
    seed: int = 0
    timing: str = "issue"
    atol: float = DEFAULT_ATOL
    verbose: bool = False

    def __post_init__(self):
        if self.num_elements <= 0:
            raise ValueError(f"num_elements must be positive, got {self.num_elements}")
        if self.num_elements > MAX_ELEMENTS:
            raise ValueError(f"num_elements must be at most {MAX_ELEMENTS}, got {self.num_elements}")
        if self.trials <= 0:
            raise ValueError(f"trials must be positive, got {self.trials}")
        if self.timing not in TIMING_METHODS:
            raise ValueError(f"timing must be one of {TIMING_METHODS}, got {self.timing!r}")


@dataclass
class BenchmarkReport:
    config: BenchmarkConfig
    launch: LaunchConfig
    stage: Stage = Stage.START
    ptx_size: int = 0
    scalar: Optional[float] = None
    timing: Optional[TimingResult] = None


def run_benchmark(config: BenchmarkConfig, out: Optional[TextIO] = None) -> BenchmarkReport:
    """Compile, launch, time and validate one kernel variant.

    Args:
        config: What to run and how to time it
        out: Stream for progress and results, defaults to stdout

    Returns:
        BenchmarkReport: Final stage, timing and compilation details

    Raises:
        VecBenchError: Any compilation, driver, allocation or validation
            failure, with ``stage`` set to the last stage reached
    """
    out = out or sys.stdout
    report = BenchmarkReport(config=config, launch=LaunchConfig.for_elements(config.num_elements))
    try:
        _run(config, report, out)
    except VecBenchError as e:
        e.stage = report.stage
        report.stage = Stage.FATAL_EXIT
        raise
    return report


def _run(config: BenchmarkConfig, report: BenchmarkReport, out: TextIO) -> None:
    variant = config.variant
    print(f"{variant.label} selected.", file=out)
    report.stage = Stage.KERNEL_SELECTED

    compiled = compile_kernel(variant, arch=DeviceContext.device_arch(DEVICE_ORDINAL))
    report.ptx_size = compiled.size
    report.stage = Stage.COMPILED

    generator = make_generator(config.seed)
    with ExitStack() as stack:
        context = stack.enter_context(DeviceContext(DEVICE_ORDINAL))
        function = context.load(compiled)
        report.stage = Stage.CONTEXT_READY
        if config.verbose:
            print(f"Device {DEVICE_ORDINAL}: {context.device_name} ({compiled.arch})", file=out)
            print(f"PTX size: {compiled.size} bytes", file=out)

        host = stack.enter_context(HostVectors(config.num_elements, generator))
        d_a = stack.enter_context(DeviceBuffer(host.nbytes))
        d_a.copy_from_host(host.a)
        d_b = stack.enter_context(DeviceBuffer(host.nbytes))
        d_b.copy_from_host(host.b)
        report.stage = Stage.BUFFERS_READY

        launch = report.launch
        print(
            f"CUDA kernel launch with {launch.blocks_per_grid} blocks of "
            f"{launch.threads_per_block} threads",
            file=out,
        )
        report.scalar = draw_scalar(generator)

        def _issued():
            report.stage = Stage.LAUNCHED

        report.timing = run_trials(
            function,
            launch,
            kernel_args(d_a, d_b, report.scalar, config.num_elements),
            trials=config.trials,
            method=config.timing,
            on_issued=_issued,
        )
        report.stage = Stage.SYNCED

        d_a.copy_to_host(host.c_out)
        validate(variant, host.b, report.scalar, host.c_out, atol=config.atol)
        report.stage = Stage.VALIDATED

        if config.verbose:
            print(f"Timing method: {report.timing.method} over {report.timing.trials} trials", file=out)
        print(f"Time = {report.timing.average_seconds:.9f}", file=out)

    report.stage = Stage.CLEANED_UP
