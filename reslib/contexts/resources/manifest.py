"""
Manifest Package Resolver

Reads only the root <manifest> start tag and returns its package attribute.
The document is never modelled beyond that first element.
"""

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

from reslib.contexts.resources.logger import _log_debug, log_manifest_package
from reslib.utils.exceptions import ConfigurationError


def read_manifest_package(manifest: Path) -> str:
    """
    Best-effort extraction of the package declared by a manifest.

    Args:
        manifest: Path to the manifest XML

    Returns:
        The package name, or "" if the document is malformed or declares none

    Raises:
        OSError: If the manifest cannot be opened (I/O failures are not degraded)
    """
    package = ""
    with open(manifest, "rb") as f:
        try:
            for _, element in ET.iterparse(f, events=("start",)):
                if element.tag == "manifest":
                    package = (element.get("package") or "").strip()
                break
        except ET.ParseError as e:
            _log_debug(f"Unparsable manifest {manifest}: {e}")
            package = ""

    log_manifest_package(manifest, package)
    return package


def resolve_package_for_r(package_override: Optional[str], manifest: Optional[Path]) -> str:
    """
    Decide the package used for generated symbols.

    An explicit override always wins and the manifest is then never parsed.
    Without an override, the manifest must exist and must declare a package.

    Args:
        package_override: Explicit package (e.g., from --package-for-r)
        manifest: Manifest path, if any

    Returns:
        Resolved package name

    Raises:
        ConfigurationError: If neither source is given, or the manifest yields no package
    """
    if package_override is not None:
        return package_override

    if manifest is None:
        raise ConfigurationError(
            "To generate R files, either a package or manifest must be specified"
        )

    package = read_manifest_package(manifest)
    if not package:
        raise ConfigurationError(
            f"To generate R files without an explicit package, the manifest must declare one: {manifest}"
        )
    return package
