"""Unit tests for kernel variant selection.

This module contains tests for:
- Mapping kernel ids to variants
- Rejecting unsupported kernel ids
- Kernel sources and labels
- Host reference operations
"""

import sys

sys.path.append("./")

import unittest
import torch
from vecbench.errors import UnsupportedKernelError
from vecbench.kernels import ENTRY_SYMBOL, KernelVariant, select_kernel


class TestSelectKernel(unittest.TestCase):
    """Test suite for select_kernel."""

    def test_divide(self):
        """Kernel id 0 selects divide."""
        self.assertIs(select_kernel(0), KernelVariant.DIVIDE)
        self.assertEqual(select_kernel(0).label, "div")

    def test_multiply(self):
        """Kernel id 1 selects multiply."""
        self.assertIs(select_kernel(1), KernelVariant.MULTIPLY)
        self.assertEqual(select_kernel(1).label, "mul")

    def test_unsupported_ids(self):
        """Anything outside {0, 1} is rejected instead of leaving no program."""
        for kernel_id in (2, -1, 100, "x", None, True):
            with self.assertRaises(UnsupportedKernelError, msg=f"kernel_id={kernel_id!r}"):
                select_kernel(kernel_id)

    def test_unsupported_id_is_reported(self):
        with self.assertRaises(UnsupportedKernelError) as ctx:
            select_kernel(2)
        self.assertEqual(ctx.exception.kernel_id, 2)
        self.assertIn("unsupported kernel_id 2", str(ctx.exception))


class TestKernelSources(unittest.TestCase):
    """Test suite for the CUDA sources of each variant."""

    def test_shared_entry_symbol(self):
        """Both variants export vectorAdd with the same signature."""
        for variant in KernelVariant:
            self.assertEqual(variant.entry_symbol, ENTRY_SYMBOL)
            self.assertIn(
                'extern "C" __global__ void vectorAdd(double *A, double *B, double C, int numElements)',
                variant.source,
            )

    def test_operators(self):
        self.assertIn("A[i] = B[i] / C;", KernelVariant.DIVIDE.source)
        self.assertIn("A[i] = B[i] * C;", KernelVariant.MULTIPLY.source)
        self.assertNotEqual(KernelVariant.DIVIDE.source, KernelVariant.MULTIPLY.source)

    def test_bounds_guard(self):
        for variant in KernelVariant:
            self.assertIn("if (i < numElements)", variant.source)


class TestReference(unittest.TestCase):
    """Test suite for the host reference of each variant."""

    def test_divide_reference(self):
        b = torch.tensor([1.0, 0.5, 0.25], dtype=torch.float64)
        result = KernelVariant.DIVIDE.reference(b, 2.0)
        self.assertTrue(torch.equal(result, torch.tensor([0.5, 0.25, 0.125], dtype=torch.float64)))

    def test_multiply_reference(self):
        b = torch.tensor([1.0, 0.5, 0.25], dtype=torch.float64)
        result = KernelVariant.MULTIPLY.reference(b, 4.0)
        self.assertTrue(torch.equal(result, torch.tensor([4.0, 2.0, 1.0], dtype=torch.float64)))

    def test_reference_keeps_input(self):
        b = torch.rand(16, dtype=torch.float64)
        before = b.clone()
        KernelVariant.MULTIPLY.reference(b, 3.0)
        self.assertTrue(torch.equal(b, before))


if __name__ == "__main__":
    unittest.main()
