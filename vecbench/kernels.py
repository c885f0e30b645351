"""Kernel variants benchmarked by vecbench.

Both kernels scale a vector of doubles by a scalar and export the same entry
symbol, ``vectorAdd``. Each variant still has its own identifier, label and
host reference so the rest of the benchmark never has to compare sources.
"""

import enum

import torch

from .errors import UnsupportedKernelError

ENTRY_SYMBOL = "vectorAdd"

_KERNEL_TEMPLATE = """
extern "C" __global__ void vectorAdd(double *A, double *B, double C, int numElements) {{
  int i = blockDim.x * blockIdx.x + threadIdx.x;
  if (i < numElements)
    A[i] = B[i] {op} C;
}}
"""

DIVIDE_SOURCE = _KERNEL_TEMPLATE.format(op="/")
MULTIPLY_SOURCE = _KERNEL_TEMPLATE.format(op="*")


class KernelVariant(enum.Enum):
    """Elementwise kernel choices, keyed by their command line id."""

    DIVIDE = 0
    MULTIPLY = 1

    @property
    def label(self) -> str:
        """Short name printed when the variant is selected."""
        return "div" if self is KernelVariant.DIVIDE else "mul"

    @property
    def source(self) -> str:
        """CUDA C source for this variant."""
        return DIVIDE_SOURCE if self is KernelVariant.DIVIDE else MULTIPLY_SOURCE

    @property
    def entry_symbol(self) -> str:
        return ENTRY_SYMBOL

    def reference(self, inputs: torch.Tensor, scalar: float) -> torch.Tensor:
        """Compute the expected kernel output on the host.

        Args:
            inputs: Host copy of the kernel input vector ``B``
            scalar: Scalar operand ``C`` passed to every launch

        Returns:
            Tensor with ``B / C`` for divide or ``B * C`` for multiply
        """
        if self is KernelVariant.DIVIDE:
            return inputs / scalar
        return inputs * scalar


def select_kernel(kernel_id) -> KernelVariant:
    """Map a numeric kernel id to its variant.

    Args:
        kernel_id: 0 for divide, 1 for multiply

    Returns:
        KernelVariant: The selected variant

    Raises:
        UnsupportedKernelError: If ``kernel_id`` is anything else
    """
    if isinstance(kernel_id, bool):
        raise UnsupportedKernelError(kernel_id)
    try:
        return KernelVariant(int(kernel_id))
    except (TypeError, ValueError):
        raise UnsupportedKernelError(kernel_id) from None
