"""Exception hierarchy for the vector benchmark.

Every failure the benchmark can hit is terminal. Errors are raised where they
are detected, unwind through the scoped resources (context, device buffers,
host vectors) and are reported once by the command line entry point.
"""

EXIT_FAILURE = 1


class VecBenchError(RuntimeError):
    """Base class for all benchmark failures."""

    exit_code = EXIT_FAILURE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.stage = None


class UnsupportedKernelError(VecBenchError):
    """Raised when a kernel id does not name a known kernel variant."""

    def __init__(self, kernel_id):
        super().__init__(
            f"unsupported kernel_id {kernel_id!r} (expected 0 for div or 1 for mul)"
        )
        self.kernel_id = kernel_id


class CompilationError(VecBenchError):
    """Raised when the kernel source fails to compile.

    Attributes:
        log: Full compiler diagnostic output, never empty
    """

    def __init__(self, message: str, log: str):
        super().__init__(message)
        self.log = log or message


class DriverError(VecBenchError):
    """Raised when a CUDA driver call reports a failure."""

    def __init__(self, call: str, status: str, message: str, location=None):
        self.call = call
        self.status = status
        self.reason = message
        self.location = location
        filename, line = location if location else ("<unknown>", 0)
        super().__init__(
            f'Driver API error = {status} "{call}: {message}" '
            f"from file <{filename}>, line {line}."
        )


class HostAllocationError(VecBenchError):
    """Raised when the host vectors cannot be allocated."""


class ValidationError(VecBenchError):
    """Raised on the first element that differs from the host reference."""

    def __init__(self, index: int, expected: float, actual: float, atol: float):
        super().__init__(
            f"Wrong result! element {index}: expected {expected!r}, "
            f"got {actual!r} (atol={atol})"
        )
        self.index = index
        self.expected = expected
        self.actual = actual
        self.atol = atol
