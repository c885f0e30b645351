"""Host vectors and device buffers.

Host vectors are float64 CPU tensors. Device buffers wrap a single
``pycuda.driver.DeviceAllocation``. Both are context managers so a run can
stack them on a :class:`contextlib.ExitStack` and have every allocation
released on any exit path.
"""

import numpy as np
import torch

from .driver import _driver, device_call
from .errors import HostAllocationError

RAND_MAX = 2**31 - 1
ELEMENT_SIZE = torch.tensor([], dtype=torch.float64).element_size()


def make_generator(seed: int = 0) -> torch.Generator:
    """Create the CPU generator that feeds the inputs and the scalar operand."""
    return torch.Generator().manual_seed(seed)


def draw_scalar(generator: torch.Generator) -> float:
    """Draw the scalar operand, an integer-valued double in [1, RAND_MAX]."""
    return float(torch.randint(1, RAND_MAX + 1, (1,), generator=generator).item())


class HostVectors:
    """The three host vectors of a run.

    Attributes:
        a: Input copied to device buffer ``A``; overwritten on the device by the kernel
        b: Kernel input ``B``
        c_out: Receives the device output after the timed loop
    """

    def __init__(self, num_elements: int, generator: torch.Generator):
        if num_elements <= 0:
            raise ValueError(f"num_elements must be positive, got {num_elements}")
        self.num_elements = num_elements
        self.generator = generator
        self.a = None
        self.b = None
        self.c_out = None

    @property
    def nbytes(self) -> int:
        return self.num_elements * ELEMENT_SIZE

    def allocate(self) -> "HostVectors":
        """Allocate all three vectors and fill ``a`` and ``b`` with uniform [0, 1) values."""
        try:
            self.a = torch.rand(self.num_elements, dtype=torch.float64, generator=self.generator)
            self.b = torch.rand(self.num_elements, dtype=torch.float64, generator=self.generator)
            self.c_out = torch.empty(self.num_elements, dtype=torch.float64)
        except RuntimeError as e:
            self.release()
            raise HostAllocationError(
                f"Failed to allocate host vectors ({self.num_elements} doubles each): {e}"
            ) from e
        return self

    def release(self) -> None:
        self.a = None
        self.b = None
        self.c_out = None

    def __enter__(self):
        return self.allocate()

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


def _host_array(tensor: torch.Tensor) -> np.ndarray:
    # Shares memory with the tensor, so device-to-host copies land in it.
    if tensor.device.type != "cpu" or not tensor.is_contiguous():
        raise ValueError("host transfers need a contiguous CPU tensor")
    return tensor.numpy()


class DeviceBuffer:
    """One device allocation mirroring a host vector."""

    def __init__(self, nbytes: int):
        self.nbytes = nbytes
        self.allocation = None

    def __enter__(self):
        cuda = _driver()
        self.allocation = device_call(cuda.mem_alloc, self.nbytes, call="cuMemAlloc").unwrap()
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.allocation is None:
            return False
        freed = device_call(self.allocation.free, call="cuMemFree")
        self.allocation = None
        if exc_type is None:
            freed.unwrap()
        return False

    def __int__(self) -> int:
        return int(self.allocation)

    def _check_size(self, tensor: torch.Tensor) -> np.ndarray:
        array = _host_array(tensor)
        if array.nbytes != self.nbytes:
            raise ValueError(
                f"host tensor holds {array.nbytes} bytes, device buffer holds {self.nbytes}"
            )
        return array

    def copy_from_host(self, tensor: torch.Tensor) -> None:
        """Blocking host-to-device copy of ``tensor``."""
        cuda = _driver()
        device_call(
            cuda.memcpy_htod, self.allocation, self._check_size(tensor), call="cuMemcpyHtoD"
        ).unwrap()

    def copy_to_host(self, tensor: torch.Tensor) -> None:
        """Blocking device-to-host copy into ``tensor``."""
        cuda = _driver()
        device_call(
            cuda.memcpy_dtoh, self._check_size(tensor), self.allocation, call="cuMemcpyDtoH"
        ).unwrap()
