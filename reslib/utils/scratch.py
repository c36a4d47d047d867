"""
Scoped scratch workspace.

One object owns both the process-scoped temporary directory and the compile
worker pool, and releases both on every exit path (normal return, exception,
or KeyboardInterrupt).
"""

import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from loguru import logger

SCRATCH_PREFIX = "android_resources_tmp"


class ScopedWorkspace:
    """
    Context manager owning a scratch directory and a fixed-size thread pool.

    Attributes:
        path: Root of the scratch directory (valid only inside the ``with`` block)
        executor: Worker pool shared by compilation units
        data_binding_root: Where the data binding processor writes rewritten trees
        compiled_root: Where the parallel compiler writes intermediate blobs

    Example:
        with ScopedWorkspace(max_workers=15) as workspace:
            compiler = ParallelResourceCompiler(backend, workspace.executor, workspace.compiled_root)
    """

    def __init__(self, max_workers: int, parent_dir: Optional[Path] = None):
        self.max_workers = max_workers
        self.parent_dir = parent_dir
        self.path: Optional[Path] = None
        self.executor: Optional[ThreadPoolExecutor] = None

    @property
    def data_binding_root(self) -> Path:
        return self.path / "android_data_binding_resources"

    @property
    def compiled_root(self) -> Path:
        return self.path / "compiled"

    def __enter__(self) -> "ScopedWorkspace":
        self.path = Path(tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=self.parent_dir))
        try:
            for directory in (self.data_binding_root, self.compiled_root):
                directory.mkdir()
            self.executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="aapt2"
            )
        except BaseException:
            shutil.rmtree(self.path, ignore_errors=True)
            raise
        logger.debug(f"Scratch workspace: {self.path} ({self.max_workers} workers)")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self.executor is not None:
                # Queued units are dropped; running ones are awaited, never interrupted
                self.executor.shutdown(wait=True, cancel_futures=True)
        finally:
            if self.path is not None:
                shutil.rmtree(self.path, ignore_errors=True)
                logger.debug(f"Removed scratch workspace: {self.path}")
