"""Runtime compilation of the benchmark kernels to PTX."""

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from .driver import DeviceContext, _driver
from .errors import CompilationError
from .kernels import ENTRY_SYMBOL, KernelVariant


@dataclass(frozen=True)
class CompiledKernel:
    """PTX for one kernel, ready to be loaded into a context."""

    ptx: bytes
    arch: str
    entry_symbol: str = ENTRY_SYMBOL

    @property
    def size(self) -> int:
        return len(self.ptx)


def _text(output) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return str(output)


def compile_kernel(
    kernel: Union[KernelVariant, str],
    arch: Optional[str] = None,
    options: Iterable[str] = (),
) -> CompiledKernel:
    """Compile a kernel variant (or raw CUDA source) to PTX.

    Args:
        kernel: Variant to compile, or CUDA C source text
        arch: Target architecture such as ``sm_80``; queried from device 0 when omitted
        options: Extra nvcc flags

    Returns:
        CompiledKernel: PTX bytes and the target they were built for

    Raises:
        CompilationError: If nvcc rejects the source or cannot be run. The
            error's ``log`` holds the compiler diagnostics.
    """
    from pycuda.compiler import compile as compile_source  # noqa: PLC0415

    cuda = _driver()
    source = kernel.source if isinstance(kernel, KernelVariant) else str(kernel)
    if arch is None:
        arch = DeviceContext.device_arch(0)

    try:
        ptx = compile_source(
            source,
            options=list(options),
            no_extern_c=True,
            arch=arch,
            cache_dir=False,
            target="ptx",
        )
    except cuda.CompileError as e:
        log = "\n".join(
            part for part in (_text(e.stderr).strip(), _text(e.stdout).strip()) if part
        )
        raise CompilationError(f"kernel compilation failed ({arch})", log or str(e)) from e
    except OSError as e:
        raise CompilationError("nvcc could not be run", str(e)) from e

    return CompiledKernel(ptx=ptx, arch=arch)
