"""Runtime-compiled CUDA vector kernel benchmark.

This package compiles an elementwise vector kernel at run time, launches it
repeatedly against random double-precision inputs, reports the average launch
time and validates the device output against a host reference.

Available kernels:
    - div: A[i] = B[i] / C
    - mul: A[i] = B[i] * C

Requirements:
    - PyTorch
    - PyCUDA and the CUDA toolkit (nvcc) for compilation and launches
"""

from .benchmark import BenchmarkConfig, BenchmarkReport, Stage, run_benchmark
from .compiler import CompiledKernel, compile_kernel
from .driver import DeviceContext, DeviceResult, device_call
from .errors import (
    CompilationError,
    DriverError,
    HostAllocationError,
    UnsupportedKernelError,
    ValidationError,
    VecBenchError,
)
from .kernels import KernelVariant, select_kernel
from .launch import LaunchConfig, TimingResult, run_trials
from .memory import DeviceBuffer, HostVectors
from .validate import validate
