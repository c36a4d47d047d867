"""
Loguru setup shared by the context loggers in contexts/{context}/logger.py.

Every session gets one log file (DEBUG and up) plus a colorized console sink
(INFO and up), and starts with a provenance header.
"""

import sys
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv
from loguru import logger

from reslib.utils.timestamp import now_exact

load_dotenv()

LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"
CONSOLE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | <level>{level: <8}</level> | <level>{message}</level>"


def setup_logger(
    context_name: str,
    log_dir: Path,
    extra_provenance: Optional[Dict[str, object]] = None,
) -> Path:
    """
    Point loguru at <log_dir>/<context_name>.log and stdout, then log provenance.

    Args:
        context_name: Context identifier, also the log file stem (e.g., "compile")
        log_dir: Directory for this logging session (created if missing)
        extra_provenance: Context-specific entries for the provenance header
            (e.g., {"aapt2": "/opt/android/build-tools/35.0.0/aapt2"})

    Returns:
        Path to log file
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{context_name}.log"

    logger.remove()
    for level_name, color in LEVEL_COLORS.items():
        logger.level(level_name, color=color)

    logger.add(log_file, format=FILE_FORMAT, level="DEBUG")
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level="INFO", colorize=True)

    log_provenance(context_name, extra_provenance)

    return log_file


def log_provenance(context_name: str, extra_context: Optional[Dict[str, object]] = None) -> None:
    """Log the invocation (context, command line, cwd, Python) plus any extra entries."""
    logger.info("=" * 80)
    logger.info(f"Context: {context_name}")
    logger.info(f"Command: {' '.join(sys.argv)}")
    logger.info(f"Working directory: {Path.cwd()}")
    logger.info(f"Python: {sys.version.split()[0]}")
    logger.info(f"Started: {now_exact()}")

    for key, value in (extra_context or {}).items():
        logger.info(f"{key}: {value}")

    logger.info("=" * 80)
