"""Launch sizing and the timed launch loop.

Two timing methods are available:

``issue``
    Issue every launch back to back, synchronize the context once and divide
    the wall-clock time by the number of trials. This measures launch issue
    overhead plus a single synchronization, not isolated kernel time.

``event``
    Bracket every launch with a pair of CUDA events and wait on the end event
    before the next launch. This measures the device-side latency of each
    launch, at the cost of serializing the loop.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np

from .driver import _driver, device_call

THREADS_PER_BLOCK = 256
# numElements is a C int in the kernel signature.
MAX_ELEMENTS = 2**31 - 1
DEFAULT_TRIALS = 10000
TIMING_METHODS = ("issue", "event")

# cuLaunchKernel parameter layout for vectorAdd(double*, double*, double, int).
ARG_FORMAT = "PPdi"


@dataclass(frozen=True)
class LaunchConfig:
    """1-D grid/block shape covering ``num_elements``."""

    num_elements: int
    threads_per_block: int = THREADS_PER_BLOCK

    @classmethod
    def for_elements(cls, num_elements: int, threads_per_block: int = THREADS_PER_BLOCK):
        if num_elements <= 0:
            raise ValueError(f"num_elements must be positive, got {num_elements}")
        if num_elements > MAX_ELEMENTS:
            raise ValueError(f"num_elements must be at most {MAX_ELEMENTS}, got {num_elements}")
        return cls(num_elements=num_elements, threads_per_block=threads_per_block)

    @property
    def blocks_per_grid(self) -> int:
        return (self.num_elements + self.threads_per_block - 1) // self.threads_per_block

    @property
    def grid(self):
        return (self.blocks_per_grid, 1)

    @property
    def block(self):
        return (self.threads_per_block, 1, 1)


@dataclass(frozen=True)
class TimingResult:
    method: str
    trials: int
    total_seconds: float

    @property
    def average_seconds(self) -> float:
        return self.total_seconds / self.trials


def kernel_args(output, inputs, scalar: float, num_elements: int):
    """Pack launch arguments in kernel parameter order."""
    return (int(output), int(inputs), np.float64(scalar), np.int32(num_elements))


def run_trials(
    function,
    config: LaunchConfig,
    args: Sequence,
    trials: int = DEFAULT_TRIALS,
    method: str = "issue",
    on_issued: Optional[Callable[[], None]] = None,
) -> TimingResult:
    """Launch ``function`` ``trials`` times with identical arguments and time it.

    Args:
        function: Resolved ``pycuda.driver.Function``
        config: Grid/block shape for every launch
        args: Kernel arguments as produced by :func:`kernel_args`
        trials: Number of launches
        method: ``"issue"`` or ``"event"``, see the module docstring
        on_issued: Called once after the last launch has been issued, before
            the host blocks on the device

    Returns:
        TimingResult: Total and average time in seconds

    Raises:
        DriverError: On the first failed launch or synchronization
    """
    if method not in TIMING_METHODS:
        raise ValueError(f"unknown timing method {method!r}, expected one of {TIMING_METHODS}")
    if trials <= 0:
        raise ValueError(f"trials must be positive, got {trials}")

    cuda = _driver()
    function.prepare(ARG_FORMAT)
    grid, block = config.grid, config.block

    if method == "issue":
        start = time.perf_counter()
        for _ in range(trials):
            device_call(function.prepared_call, grid, block, *args, call="cuLaunchKernel").unwrap()
        if on_issued is not None:
            on_issued()
        device_call(cuda.Context.synchronize, call="cuCtxSynchronize").unwrap()
        return TimingResult(method, trials, time.perf_counter() - start)

    start_event = device_call(cuda.Event, call="cuEventCreate").unwrap()
    end_event = device_call(cuda.Event, call="cuEventCreate").unwrap()
    total_ms = 0.0
    for _ in range(trials):
        device_call(start_event.record, call="cuEventRecord").unwrap()
        device_call(function.prepared_call, grid, block, *args, call="cuLaunchKernel").unwrap()
        device_call(end_event.record, call="cuEventRecord").unwrap()
        device_call(end_event.synchronize, call="cuEventSynchronize").unwrap()
        total_ms += device_call(
            start_event.time_till, end_event, call="cuEventElapsedTime"
        ).unwrap()
    if on_issued is not None:
        on_issued()
    device_call(cuda.Context.synchronize, call="cuCtxSynchronize").unwrap()
    return TimingResult(method, trials, total_ms / 1000.0)
