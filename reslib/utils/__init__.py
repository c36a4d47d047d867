"""
Shared utilities for reslib.

Common functionality used across contexts:
- Logger setup with provenance
- Exception hierarchy
- Configuration loading
- Scoped scratch workspace and atomic file writes
"""

from reslib.utils.files import write_atomically
from reslib.utils.timestamp import now, now_exact

__all__ = ["now", "now_exact", "write_atomically"]
