"""
Compiling context logger.

Provides logging interface for the compiling context with automatic [compile] prefix.
All compiling modules should import from this module, not from utils.logger directly.
"""

import os
from pathlib import Path

from loguru import logger

from reslib.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[compile]"


def setup_compiling_logger(log_dir: Path, config=None) -> Path:
    """
    Setup logger for the compile action.

    Configures loguru with provenance tracking and compiler-specific context.

    Args:
        log_dir: Directory for this compile session
        config: CompilerConfig whose compiler settings go into the provenance header

    Returns:
        Path to log file
    """
    aapt2 = getattr(config, "aapt2", None) or os.getenv("AAPT2")
    return _setup_logger(
        context_name="compile",
        log_dir=log_dir,
        extra_provenance={
            "aapt2": aapt2,
            "Build tools": getattr(config, "build_tools_version", None),
            "Workers": getattr(config, "max_workers", None),
        },
    )


def _log_info(message: str) -> None:
    """Log info message with [compile] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [compile] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [compile] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [compile] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [compile] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level compiling-specific logging helpers


def log_compilation_start(label: str, unit_count: int, max_workers: int) -> None:
    """Log start of a compile batch."""
    _log_info(f"Compiling {unit_count} resource file(s) for {label or '<unlabeled>'}")
    _log_debug(f"  Workers: {max_workers}")


def log_unit_compiled(resource_file, entry_count: int) -> None:
    _log_debug(f"  {resource_file.relative_path}: {entry_count} entr{'y' if entry_count == 1 else 'ies'}")


def log_unit_failure(resource_file, error: BaseException, cancelled: int) -> None:
    """Log the unit that aborted the batch."""
    _log_error(f"Compilation failed: {resource_file.relative_path}")
    _log_error(f"  {error}")
    if cancelled:
        _log_debug(f"  Cancelled {cancelled} queued unit(s)")


def log_compilation_result(unit_count: int, entry_count: int, elapsed_time: float) -> None:
    _log_success(f"Compiled {unit_count} unit(s), {entry_count} entries ({elapsed_time:.2f}s)")


def log_archive_written(path: Path, unit_count: int, entry_count: int) -> None:
    _log_info(f"Archive written: {path}")
    _log_debug(f"  Units: {unit_count}, entries: {entry_count}")


def log_symbols_skipped(r_txt_out, class_jar_output) -> None:
    """Log that only one of the two symbol outputs was supplied."""
    supplied = "R.txt" if r_txt_out is not None else "class jar"
    _log_warning(
        f"Only the {supplied} destination was supplied; symbol generation needs both and is skipped"
    )


def log_action_failure(error: BaseException) -> None:
    """Log a fatal action error with traceback at the highest severity."""
    logger.opt(exception=error).critical(f"{CONTEXT_PREFIX} Unexpected failure: {error}")
