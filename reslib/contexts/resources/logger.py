"""
Resources context logger.

Provides logging interface for the resources context with automatic [resources] prefix.
All resources modules should import from this module, not from loguru directly.
"""

from pathlib import Path
from typing import Optional

from loguru import logger

CONTEXT_PREFIX = "[resources]"


def _log_info(message: str) -> None:
    """Log info message with [resources] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [resources] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [resources] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_resource_set(resource_set) -> None:
    """Log the validated resource set (ResourceSet)."""
    _log_info(
        f"Resource set {resource_set.label}: {len(resource_set.resource_dirs)} root(s), "
        f"{len(resource_set.resource_files)} file(s)"
    )
    for root in resource_set.resource_dirs:
        _log_debug(f"  Root: {root}")
    if resource_set.manifest is not None:
        _log_debug(f"  Manifest: {resource_set.manifest}")


def log_manifest_package(manifest: Path, package: str) -> None:
    if package:
        _log_debug(f"Manifest {manifest} declares package '{package}'")
    else:
        _log_warning(f"No package could be read from manifest {manifest}")


def log_data_binding_skipped(missing: list) -> None:
    _log_debug(f"Data binding disabled (missing: {', '.join(missing)})")


def log_data_binding_result(layout_count: int, binding_count: int, info_out: Optional[Path]) -> None:
    """Log data binding rewrite summary."""
    _log_info(f"Data binding: rewrote {layout_count} layout(s), {binding_count} binding(s)")
    if info_out is not None:
        _log_debug(f"  Metadata: {info_out}")
