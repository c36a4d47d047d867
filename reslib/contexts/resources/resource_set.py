"""
Resource Set Validation

Turns raw resource directory input (plus an optional manifest) into a validated,
ordered ResourceSet bound to a library identity.

Ordering is canonical and drives every later stage:
    1. Roots in the order they were declared
    2. Within a root, values* directories first, then the rest, each sorted by name
    3. Within a directory, files sorted by name
"""

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from reslib.contexts.resources.logger import _log_warning, log_resource_set
from reslib.contexts.resources.resource_types import (
    FILE_RESOURCE_DIRECTORIES,
    VALUES_DIRECTORY,
)
from reslib.utils.exceptions import ResourceValidationError

# Mirrors the aapt ignore-assets defaults (case-insensitive)
IGNORE_PATTERNS = [".*", "*~", "thumbs.db", "picasa.ini", "*.scc", "cvs"]


@dataclass(frozen=True)
class ResourceFile:
    """
    One resource source file: a single compilation unit.

    Attributes:
        root_index: Position of the owning root in ResourceSet.resource_dirs
        root: Resource root directory containing this file
        path: Absolute path to the file
        directory: Name of the type directory (e.g., "values-fr", "drawable-hdpi")
    """

    root_index: int
    root: Path
    path: Path
    directory: str

    @property
    def type_prefix(self) -> str:
        return self.directory.split("-", 1)[0]

    @property
    def qualifiers(self) -> str:
        """Configuration qualifiers ("" for the default configuration)."""
        parts = self.directory.split("-", 1)
        return parts[1] if len(parts) > 1 else ""

    @property
    def is_values(self) -> bool:
        return self.type_prefix == VALUES_DIRECTORY

    @property
    def relative_path(self) -> str:
        return f"{self.directory}/{self.path.name}"

    @property
    def blob_name(self) -> str:
        """Archive member name for this unit's compiled payload (aapt2 naming)."""
        if self.is_values:
            stem = self.path.name[: -len(".xml")] if self.path.name.endswith(".xml") else self.path.name
            return f"{self.root_index}/{self.directory}_{stem}.arsc.flat"
        return f"{self.root_index}/{self.directory}_{self.path.name}.flat"


@dataclass(frozen=True)
class ResourceSet:
    """
    Validated, ordered resource tree for one library.

    Attributes:
        label: Library identity (e.g., "//java/com/example/lib:res")
        resource_dirs: Resource roots in declaration order
        manifest: Optional manifest path
        resource_files: Every compilation unit in canonical order
    """

    label: str
    resource_dirs: Tuple[Path, ...]
    manifest: Optional[Path]
    resource_files: Tuple[ResourceFile, ...]

    def rebased(self, resource_dirs: Sequence[Path]) -> "ResourceSet":
        """Validate a derived tree (e.g., data binding output) under the same identity."""
        return validate_resource_set(resource_dirs, manifest=self.manifest, label=self.label)


def is_ignored(name: str) -> bool:
    """Return True for hidden and editor/VCS files that are never resources."""
    lowered = name.lower()
    return any(fnmatch.fnmatchcase(lowered, pattern) for pattern in IGNORE_PATTERNS)


def _check_readable_dir(path: Path) -> None:
    if not path.exists():
        raise ResourceValidationError(f"Resource directory not found: {path}")
    if not path.is_dir():
        raise ResourceValidationError(f"Resource path is not a directory: {path}")
    if not os.access(path, os.R_OK | os.X_OK):
        raise ResourceValidationError(f"Resource directory is not readable: {path}")


def _directory_sort_key(name: str) -> Tuple[int, str]:
    is_values = name.split("-", 1)[0] == VALUES_DIRECTORY
    return (0 if is_values else 1, name)


def _scan_root(root_index: int, root: Path) -> List[ResourceFile]:
    """Collect resource files under one root in canonical order."""
    files = []
    type_dirs = [entry for entry in root.iterdir() if not is_ignored(entry.name)]

    for entry in sorted(type_dirs, key=lambda p: _directory_sort_key(p.name)):
        if not entry.is_dir():
            raise ResourceValidationError(
                f"Resource files must live in a type directory, found: {entry}"
            )

        type_prefix = entry.name.split("-", 1)[0]
        if type_prefix != VALUES_DIRECTORY and type_prefix not in FILE_RESOURCE_DIRECTORIES:
            raise ResourceValidationError(f"Invalid resource directory name: {entry}")
        _check_readable_dir(entry)

        for child in sorted(entry.iterdir(), key=lambda p: p.name):
            if is_ignored(child.name):
                continue
            if child.is_dir():
                raise ResourceValidationError(f"Nested directories are not allowed: {child}")
            files.append(
                ResourceFile(root_index=root_index, root=root, path=child, directory=entry.name)
            )

    return files


def validate_resource_set(
    resource_dirs: Iterable[Path],
    manifest: Optional[Path] = None,
    label: Optional[str] = None,
) -> ResourceSet:
    """
    Validate resource roots and build the ordered ResourceSet.

    Args:
        resource_dirs: Resource roots, in priority/declaration order
        manifest: Optional manifest path (must exist when given)
        label: Library identity; defaults to the name of the first root's parent

    Returns:
        ResourceSet with every resource file in canonical order

    Raises:
        ResourceValidationError: If a root or the manifest is missing/unreadable,
            or the tree contains something that cannot be a resource
    """
    roots: List[Path] = []
    for raw in resource_dirs:
        root = Path(raw).absolute()
        if root in roots:
            _log_warning(f"Ignoring repeated resource directory: {root}")
            continue
        _check_readable_dir(root)
        roots.append(root)

    if manifest is not None:
        manifest = Path(manifest).absolute()
        if not manifest.is_file():
            raise ResourceValidationError(f"Manifest not found: {manifest}")

    if label is None:
        label = roots[0].parent.name if roots else ""

    files: List[ResourceFile] = []
    for index, root in enumerate(roots):
        files.extend(_scan_root(index, root))

    resource_set = ResourceSet(
        label=label,
        resource_dirs=tuple(roots),
        manifest=manifest,
        resource_files=tuple(files),
    )
    log_resource_set(resource_set)
    return resource_set


def canonical_sort_key(resource_file: ResourceFile) -> Tuple[int, Tuple[int, str], str]:
    """Sort key reproducing the canonical unit order of validate_resource_set."""
    return (
        resource_file.root_index,
        _directory_sort_key(resource_file.directory),
        resource_file.path.name,
    )
