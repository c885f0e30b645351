"""CUDA driver access for the benchmark.

Every interaction with the driver goes through :func:`device_call`, which
returns a :class:`DeviceResult` instead of raising. Callers check results
uniformly with :meth:`DeviceResult.unwrap`, which turns a failure into a
:class:`~vecbench.errors.DriverError` carrying the driver call, the error
kind, the driver's description and the calling source location.

PyCUDA is imported lazily so the host side of the package (kernel selection,
launch sizing, validation) stays importable on machines without a CUDA driver.
"""

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from .errors import DriverError

SUCCESS = "CUDA_SUCCESS"


def _driver() -> Any:
    import pycuda.driver as cuda  # noqa: PLC0415

    return cuda


def _split_driver_message(text: str, default_call: str) -> Tuple[str, str]:
    # PyCUDA reports failures as "cuXxx failed: <description>".
    head, sep, tail = text.partition(" failed: ")
    if sep and head.startswith("cu"):
        return head, tail.strip()
    return default_call, text.strip()


@dataclass(frozen=True)
class DeviceResult:
    """Outcome of one driver interaction."""

    ok: bool
    call: str
    value: Any = None
    status: str = SUCCESS
    message: str = ""
    location: Optional[Tuple[str, int]] = None

    def unwrap(self) -> Any:
        """Return the call's value or raise the failure as a DriverError."""
        if self.ok:
            return self.value
        raise DriverError(self.call, self.status, self.message, self.location)


def device_call(fn: Callable, *args, call: Optional[str] = None, **kwargs) -> DeviceResult:
    """Run a single driver call and capture its outcome.

    Args:
        fn: PyCUDA callable to invoke
        *args: Positional arguments forwarded to ``fn``
        call: Driver API name to report, defaults to the callable's name
        **kwargs: Keyword arguments forwarded to ``fn``

    Returns:
        DeviceResult: Success with the return value, or failure details
    """
    cuda = _driver()
    name = call or getattr(fn, "__name__", repr(fn))
    try:
        value = fn(*args, **kwargs)
    except cuda.Error as e:
        caller = inspect.currentframe().f_back
        location = (caller.f_code.co_filename, caller.f_lineno) if caller else None
        driver_call, reason = _split_driver_message(str(e), name)
        return DeviceResult(
            ok=False,
            call=driver_call,
            status=type(e).__name__,
            message=reason,
            location=location,
        )
    return DeviceResult(ok=True, call=name, value=value)


def is_available(ordinal: int = 0) -> bool:
    """Check whether PyCUDA can reach the given device."""
    try:
        cuda = _driver()
    except ImportError:
        return False
    if not device_call(cuda.init, call="cuInit").ok:
        return False
    count = device_call(cuda.Device.count, call="cuDeviceGetCount")
    return count.ok and count.value > ordinal


class DeviceContext:
    """Owns the single CUDA context used by a benchmark run.

    Entering the context initializes the driver (once per process), creates a
    context on the requested device and makes it current. Leaving it drops the
    loaded modules, pops the context and detaches from it.

    Example:
        >>> with DeviceContext(0) as context:
        ...     function = context.load(compiled)
        ...     context.synchronize()
    """

    _driver_initialized = False

    def __init__(self, ordinal: int = 0):
        self.ordinal = ordinal
        self.device = None
        self.context = None
        self.modules = []

    @classmethod
    def init_driver(cls) -> None:
        """Initialize the CUDA driver if this process has not done so yet."""
        if cls._driver_initialized:
            return
        cuda = _driver()
        device_call(cuda.init, call="cuInit").unwrap()
        cls._driver_initialized = True

    @classmethod
    def device_arch(cls, ordinal: int = 0) -> str:
        """Return the ``sm_XY`` target for a device without creating a context."""
        cls.init_driver()
        cuda = _driver()
        device = device_call(cuda.Device, ordinal, call="cuDeviceGet").unwrap()
        major, minor = device_call(
            device.compute_capability, call="cuDeviceGetAttribute"
        ).unwrap()
        return f"sm_{major}{minor}"

    def __enter__(self):
        self.init_driver()
        cuda = _driver()
        self.device = device_call(cuda.Device, self.ordinal, call="cuDeviceGet").unwrap()
        self.context = device_call(self.device.make_context, call="cuCtxCreate").unwrap()
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.context is None:
            return False
        self.modules = []
        popped = device_call(self.context.pop, call="cuCtxPopCurrent")
        detached = device_call(self.context.detach, call="cuCtxDetach")
        self.context = None
        if exc_type is None:
            popped.unwrap()
            detached.unwrap()
        return False

    @property
    def device_name(self) -> str:
        return device_call(self.device.name, call="cuDeviceGetName").unwrap()

    def load(self, compiled) -> Any:
        """Load compiled PTX into this context and resolve its entry point.

        Args:
            compiled: CompiledKernel produced by :func:`vecbench.compiler.compile_kernel`

        Returns:
            The resolved ``pycuda.driver.Function``
        """
        cuda = _driver()
        module = device_call(
            cuda.module_from_buffer, compiled.ptx, call="cuModuleLoadData"
        ).unwrap()
        self.modules.append(module)
        return device_call(
            module.get_function, compiled.entry_symbol, call="cuModuleGetFunction"
        ).unwrap()

    def synchronize(self) -> None:
        """Block until all work queued in the current context has finished."""
        cuda = _driver()
        device_call(cuda.Context.synchronize, call="cuCtxSynchronize").unwrap()
