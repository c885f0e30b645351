"""Host-side check of the device output."""

import torch

from .errors import ValidationError
from .kernels import KernelVariant

DEFAULT_ATOL = 1e-10


def validate(
    variant: KernelVariant,
    inputs: torch.Tensor,
    scalar: float,
    output: torch.Tensor,
    atol: float = DEFAULT_ATOL,
) -> None:
    """Compare the device output against the host reference, element by element.

    Args:
        variant: Kernel that produced ``output``
        inputs: Kernel input vector ``B``
        scalar: Scalar operand ``C``
        output: Vector copied back from the device
        atol: Absolute tolerance per element

    Raises:
        ValidationError: On the first element (lowest index) outside ``atol``.
            NaN never compares equal.
    """
    if output.shape != inputs.shape:
        raise ValidationError(-1, tuple(inputs.shape), tuple(output.shape), atol)
    expected = variant.reference(inputs, scalar)
    close = torch.isclose(output, expected, rtol=0.0, atol=atol)
    mismatches = torch.nonzero(~close)
    if mismatches.numel():
        index = int(mismatches[0, 0])
        raise ValidationError(index, expected[index].item(), output[index].item(), atol)
