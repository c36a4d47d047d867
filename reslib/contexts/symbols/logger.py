"""
Symbols context logger.

Provides logging interface for the symbols context with automatic [symbols] prefix.
All symbols modules should import from this module, not from loguru directly.
"""

from pathlib import Path

from loguru import logger

CONTEXT_PREFIX = "[symbols]"


def _log_info(message: str) -> None:
    """Log info message with [symbols] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [symbols] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [symbols] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_deserialized(archive: Path, entry_count: int, resource_count: int, validated: bool) -> None:
    """Log archive read-back summary."""
    _log_info(f"Read {entry_count} entries from {archive} ({resource_count} distinct resources)")
    _log_debug(f"  Payload validation: {'on' if validated else 'off'}")


def log_symbol_table(package: str, type_count: int, symbol_count: int) -> None:
    _log_info(f"Symbol table for '{package or '<default package>'}': {symbol_count} symbols in {type_count} types")


def log_sink_written(kind: str, path: Path) -> None:
    _log_success(f"{kind} written: {path}")
