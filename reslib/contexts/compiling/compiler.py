"""
Parallel Resource Compilation

Submits every resource file of a ResourceSet to a bounded worker pool and joins
on the whole batch. The first failing unit aborts the batch: queued units are
cancelled, units already running are awaited (never interrupted), and the error
is raised unchanged. Nothing from a failed batch is returned.
"""

import time
from concurrent.futures import FIRST_EXCEPTION, Executor, Future, wait
from pathlib import Path
from typing import Dict, List

from reslib.contexts.compiling.backend import CompiledUnit, ResourceCompilerBackend
from reslib.contexts.compiling.logger import (
    log_compilation_result,
    log_compilation_start,
    log_unit_compiled,
    log_unit_failure,
)
from reslib.contexts.resources.resource_set import ResourceFile, ResourceSet
from reslib.utils.exceptions import ResourceCompileError


class ParallelResourceCompiler:
    """
    Compiles resource files concurrently through a compiler backend.

    Args:
        backend: Backend compiling a single resource file
        executor: Worker pool (owned by the caller's ScopedWorkspace)
        compiled_root: Scratch directory receiving one intermediate blob per unit
        max_workers: Pool size, for logging only
    """

    def __init__(
        self,
        backend: ResourceCompilerBackend,
        executor: Executor,
        compiled_root: Path,
        max_workers: int = 0,
    ):
        self.backend = backend
        self.executor = executor
        self.compiled_root = Path(compiled_root)
        self.max_workers = max_workers

    def _compile_unit(self, resource_file: ResourceFile) -> CompiledUnit:
        unit = self.backend.compile(resource_file)
        if unit.source != resource_file:
            raise ResourceCompileError(
                "Backend returned a unit for a different resource file",
                resource_path=resource_file.path,
            )

        blob_path = self.compiled_root / resource_file.blob_name
        blob_path.parent.mkdir(parents=True, exist_ok=True)
        blob_path.write_bytes(unit.payload)
        unit.blob_path = blob_path

        log_unit_compiled(resource_file, len(unit.declarations))
        return unit

    def compile(self, resource_set: ResourceSet) -> List[CompiledUnit]:
        """
        Compile every file of the resource set.

        Args:
            resource_set: Validated (and possibly data-binding-processed) resources

        Returns:
            Compiled units in canonical resource-file order

        Raises:
            ResourceCompileError: If any unit fails (the first failure observed);
                other exceptions from a unit propagate unchanged
        """
        resource_files = resource_set.resource_files
        log_compilation_start(resource_set.label, len(resource_files), self.max_workers)
        start_time = time.time()

        futures: Dict[Future, int] = {
            self.executor.submit(self._compile_unit, resource_file): index
            for index, resource_file in enumerate(resource_files)
        }
        if not futures:
            log_compilation_result(0, 0, time.time() - start_time)
            return []

        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        failed = [future for future in done if future.exception() is not None]

        if failed:
            cancelled = sum(1 for future in pending if future.cancel())
            # Units already running finish before the error propagates
            wait(pending)
            first = min(failed, key=lambda future: futures[future])
            error = first.exception()
            log_unit_failure(resource_files[futures[first]], error, cancelled)
            raise error

        units = [future.result() for future in sorted(futures, key=futures.get)]
        entry_count = sum(len(unit.declarations) for unit in units)
        log_compilation_result(len(units), entry_count, time.time() - start_time)
        return units
