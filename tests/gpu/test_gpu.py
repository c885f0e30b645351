"""End-to-end tests on a real CUDA device.

These tests compile and launch the kernels through PyCUDA and nvcc. They are
skipped when no CUDA device or nvcc is available. This module contains tests
for:
- Device results matching the host reference for both variants
- Divide/multiply inverse consistency on the device
- Compiler diagnostics for malformed sources
- The `vecbench 1 1024` command line scenario
"""

import sys

sys.path.append("./")

import io
import shutil
import subprocess
import unittest
from contextlib import ExitStack
from vecbench import (
    BenchmarkConfig,
    CompilationError,
    DeviceBuffer,
    DeviceContext,
    HostVectors,
    KernelVariant,
    LaunchConfig,
    Stage,
    compile_kernel,
    run_benchmark,
    run_trials,
    validate,
)
from vecbench.driver import is_available
from vecbench.launch import kernel_args
from vecbench.memory import make_generator

CUDA_READY = is_available(0) and shutil.which("nvcc") is not None


@unittest.skipUnless(CUDA_READY, "CUDA device and nvcc are required")
class TestDevice(unittest.TestCase):
    """Test suite for kernels running on device 0."""

    def test_both_variants(self):
        for variant in KernelVariant:
            for num_elements in (1, 256, 257, 4099):
                report = run_benchmark(
                    BenchmarkConfig(variant=variant, num_elements=num_elements, trials=10),
                    out=io.StringIO(),
                )
                self.assertEqual(report.stage, Stage.CLEANED_UP)
                self.assertGreater(report.ptx_size, 0)

    def test_event_timing(self):
        report = run_benchmark(
            BenchmarkConfig(variant=KernelVariant.MULTIPLY, num_elements=1024, trials=20, timing="event"),
            out=io.StringIO(),
        )
        self.assertGreater(report.timing.average_seconds, 0.0)

    def test_inverse_consistency(self):
        """Divide by C on the device, multiply the result by C, get B back."""
        arch = DeviceContext.device_arch(0)
        divide = compile_kernel(KernelVariant.DIVIDE, arch=arch)
        multiply = compile_kernel(KernelVariant.MULTIPLY, arch=arch)
        num_elements, scalar = 2048, 12345.0
        config = LaunchConfig.for_elements(num_elements)
        with ExitStack() as stack:
            context = stack.enter_context(DeviceContext(0))
            divide_fn = context.load(divide)
            multiply_fn = context.load(multiply)
            host = stack.enter_context(HostVectors(num_elements, make_generator(5)))
            d_b = stack.enter_context(DeviceBuffer(host.nbytes))
            d_q = stack.enter_context(DeviceBuffer(host.nbytes))
            d_r = stack.enter_context(DeviceBuffer(host.nbytes))
            d_b.copy_from_host(host.b)
            run_trials(divide_fn, config, kernel_args(d_q, d_b, scalar, num_elements), trials=1)
            run_trials(multiply_fn, config, kernel_args(d_r, d_q, scalar, num_elements), trials=1)
            d_r.copy_to_host(host.c_out)
            validate(KernelVariant.MULTIPLY, host.b / scalar, scalar, host.c_out)
            validate(KernelVariant.DIVIDE, host.c_out, 1.0, host.b)

    def test_malformed_source(self):
        source = 'extern "C" __global__ void vectorAdd(double *A) { A[0] = undefined_name }'
        with self.assertRaises(CompilationError) as ctx:
            compile_kernel(source, arch=DeviceContext.device_arch(0))
        self.assertTrue(ctx.exception.log.strip())

    def test_command_line(self):
        result = subprocess.run(
            [sys.executable, "-m", "vecbench", "1", "1024"],
            capture_output=True,
            text=True,
        )
        self.assertEqual(result.returncode, 0, result.stderr)
        self.assertIn("mul selected.", result.stdout)
        self.assertIn("4 blocks of 256 threads", result.stdout)
        time_line = [line for line in result.stdout.splitlines() if line.startswith("Time = ")]
        self.assertEqual(len(time_line), 1)
        self.assertGreaterEqual(float(time_line[0].split("=")[1]), 0.0)
        self.assertNotIn("Wrong result", result.stderr)


if __name__ == "__main__":
    unittest.main()
