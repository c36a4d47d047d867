"""
Compile Library Resources Action

Orchestrates one invocation for a single library:

    validate resources -> data binding (optional) -> parallel compile -> archive
                                                      -> R files (optional, re-reads the archive)

All configuration problems, including resolving the R package, surface before any
compilation starts. The scratch directory and worker pool live in one
ScopedWorkspace and are released on every exit path. Fatal errors are logged at
CRITICAL and re-raised; there is no partial success.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from reslib.contexts.compiling.archive import write_archive
from reslib.contexts.compiling.backend import Aapt2Backend, ResourceCompilerBackend
from reslib.contexts.compiling.compiler import ParallelResourceCompiler
from reslib.contexts.compiling.logger import (
    _log_info,
    _log_success,
    _log_warning,
    log_action_failure,
    log_symbols_skipped,
)
from reslib.contexts.resources.data_binding import DataBindingProcessor
from reslib.contexts.resources.manifest import resolve_package_for_r
from reslib.contexts.resources.resource_set import ResourceSet, validate_resource_set
from reslib.contexts.symbols.generate import SymbolOutputs, generate_r_files
from reslib.utils.config import CompilerConfig, load_compiler_config
from reslib.utils.exceptions import ConfigurationError, ResourceCompileError
from reslib.utils.scratch import ScopedWorkspace


@dataclass
class CompileLibraryResourcesOptions:
    """
    Inputs and outputs of one action.

    Attributes:
        resources: Resource roots to compile, in declaration order (required;
            an empty list is a library without resources)
        output: Destination of the compiled resources archive (always produced)
        manifest: Library manifest (data binding input, R package fallback)
        package_path: Package path of the library (data binding input)
        data_binding_info_out: Destination of the data binding metadata
        package_for_r: Explicit package for generated R symbols
        r_txt_out: Destination of R.txt
        class_jar_output: Destination of the R class jar
        srcjar_output: Destination of an R.java source jar
        target_label: Library identity; also the jar manifest Target-Label
        injecting_rule_kind: Jar manifest Injecting-Rule-Kind
    """

    resources: Optional[List[Path]] = None
    output: Optional[Path] = None
    manifest: Optional[Path] = None
    package_path: Optional[str] = None
    data_binding_info_out: Optional[Path] = None
    package_for_r: Optional[str] = None
    r_txt_out: Optional[Path] = None
    class_jar_output: Optional[Path] = None
    srcjar_output: Optional[Path] = None
    target_label: Optional[str] = None
    injecting_rule_kind: Optional[str] = None

    @property
    def generate_symbols(self) -> bool:
        """Symbol outputs are gated jointly: both destinations or nothing."""
        return self.r_txt_out is not None and self.class_jar_output is not None


@dataclass
class ActionResult:
    """
    Outcome of a successful action.

    Attributes:
        archive: Written compiled resources archive
        resource_set: Validated input resource set
        unit_count: Number of compiled resource files
        entry_count: Number of compiled resource entries
        data_binding_info: Metadata descriptor, if data binding ran
        symbols: Symbol outputs, if requested
        elapsed_time: Wall time in seconds
    """

    archive: Path
    resource_set: ResourceSet
    unit_count: int
    entry_count: int
    data_binding_info: Optional[Path] = None
    symbols: Optional[SymbolOutputs] = None
    elapsed_time: float = 0.0


def _check_options(options: CompileLibraryResourcesOptions) -> None:
    if options.output is None:
        raise ConfigurationError("An output path for the compiled resources archive is required")
    if options.resources is None:
        raise ConfigurationError("Resource directories are required")
    if options.srcjar_output is not None and not options.generate_symbols:
        _log_warning("--srcjar-output is ignored unless both R.txt and class jar outputs are set")


def _discard_uncommitted_outputs(options: CompileLibraryResourcesOptions) -> None:
    """Remove archive and data binding outputs so a failed run leaves nothing complete-looking."""
    for label, path in (
        ("archive", options.output),
        ("data binding metadata", options.data_binding_info_out),
    ):
        if path is not None and Path(path).is_file():
            Path(path).unlink()
            _log_warning(f"Removed stale {label}: {path}")


def _source_path(
    compiled_path: Optional[Path], compiled_set: ResourceSet, source_set: ResourceSet
) -> Optional[Path]:
    """Map a file of a derived tree (data binding copy) back to the file it came from."""
    sources = {(f.root_index, f.relative_path): f.path for f in source_set.resource_files}
    for resource_file in compiled_set.resource_files:
        if resource_file.path == compiled_path:
            return sources.get((resource_file.root_index, resource_file.relative_path))
    return None


def compile_library_resources(
    options: CompileLibraryResourcesOptions,
    config: Optional[CompilerConfig] = None,
    backend: Optional[ResourceCompilerBackend] = None,
    scratch_parent: Optional[Path] = None,
) -> ActionResult:
    """
    Compile one library's resources into an archive, and optionally its R files.

    Args:
        options: Action inputs and outputs
        config: Compiler configuration (defaults to load_compiler_config())
        backend: Compiler backend (defaults to an Aapt2Backend built from config)
        scratch_parent: Directory in which to create the scratch workspace

    Returns:
        ActionResult describing the written outputs

    Raises:
        ConfigurationError: Missing or inconsistent inputs (before compilation)
        ResourceValidationError: Resource roots or manifest unusable
        DataBindingError: Malformed data binding markup
        ResourceCompileError: A resource file failed to compile
        ArchiveFormatError: The archive could not be read back for symbols
        OSError: Any I/O failure, unchanged
    """
    start_time = time.time()
    archive_committed = False
    try:
        config = config or load_compiler_config()
        _check_options(options)

        resource_set = validate_resource_set(
            options.resources, manifest=options.manifest, label=options.target_label
        )

        package_for_r = None
        if options.generate_symbols:
            package_for_r = resolve_package_for_r(options.package_for_r, options.manifest)
        elif options.r_txt_out is not None or options.class_jar_output is not None:
            log_symbols_skipped(options.r_txt_out, options.class_jar_output)

        with ScopedWorkspace(config.max_workers, parent_dir=scratch_parent) as workspace:
            if backend is None:
                backend = Aapt2Backend(
                    config.aapt2,
                    workspace.compiled_root / ".aapt2",
                    generate_pseudo_locale=config.generate_pseudo_locale,
                )

            artifact = DataBindingProcessor(
                workspace.data_binding_root, use_androidx=config.use_data_binding_androidx
            ).process(resource_set, options.data_binding_info_out, options.package_path)

            compiler = ParallelResourceCompiler(
                backend, workspace.executor, workspace.compiled_root, config.max_workers
            )
            try:
                units = compiler.compile(artifact.resource_set)
            except ResourceCompileError as e:
                source_path = _source_path(e.resource_path, artifact.resource_set, resource_set)
                if source_path is None or source_path == e.resource_path:
                    raise
                # The data binding copy is gone once the workspace closes
                raise ResourceCompileError(
                    e.message, resource_path=source_path, returncode=e.returncode, output=e.output
                ) from e

            write_archive(
                units,
                options.output,
                label=resource_set.label,
                resource_roots=resource_set.resource_dirs,
            )
            archive_committed = True

        symbols = None
        if options.generate_symbols:
            symbols = generate_r_files(
                archive=options.output,
                package_for_r=package_for_r,
                r_txt_out=options.r_txt_out,
                class_jar_output=options.class_jar_output,
                srcjar_output=options.srcjar_output,
                target_label=options.target_label,
                injecting_rule_kind=options.injecting_rule_kind,
                include_file_contents_for_validation=config.include_file_contents_for_validation,
            )
    except (Exception, KeyboardInterrupt) as e:
        if not archive_committed:
            _discard_uncommitted_outputs(options)
        log_action_failure(e)
        raise

    elapsed_time = time.time() - start_time
    entry_count = sum(len(unit.declarations) for unit in units)
    _log_success(f"Done: {options.output} ({elapsed_time:.2f}s)")
    if artifact.active:
        _log_info(f"Data binding metadata: {artifact.info_out}")

    return ActionResult(
        archive=Path(options.output),
        resource_set=resource_set,
        unit_count=len(units),
        entry_count=entry_count,
        data_binding_info=artifact.info_out,
        symbols=symbols,
        elapsed_time=elapsed_time,
    )
