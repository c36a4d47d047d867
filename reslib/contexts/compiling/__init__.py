"""
Compiling Context

Responsibilities:
- Wraps the external resource compiler behind a backend protocol
- Compiles resource files concurrently with fail-fast semantics
- Packages compiled units into the compiled resources archive
- Orchestrates the whole library action (see compiling.action)

Owns: Compiler invocation, compiled payloads, the archive format
Never: Assigns symbol IDs
"""

from reslib.contexts.compiling.archive import CompiledResources, write_archive
from reslib.contexts.compiling.backend import (
    Aapt2Backend,
    CompiledResourceEntry,
    CompiledUnit,
    ResourceCompilerBackend,
)
from reslib.contexts.compiling.compiler import ParallelResourceCompiler

__all__ = [
    "Aapt2Backend",
    "CompiledResourceEntry",
    "CompiledResources",
    "CompiledUnit",
    "ParallelResourceCompiler",
    "ResourceCompilerBackend",
    "write_archive",
]
