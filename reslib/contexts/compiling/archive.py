"""
Compiled Resources Archive

Packages compiled units into a single zip archive that describes itself:

    compiled_resources.json          header: format, version, label, roots, unit index
    0/values_strings.arsc.flat       payload of one unit (opaque compiler output)
    0/layout_main.xml.flat           ...

Each unit record in the header lists the resources its payload declares
(type, qualifiers, name, kind, metadata) together with the payload checksum, so
the archive can be symbolized later without touching any resource source file.

Member timestamps are fixed and units are written in canonical order, so
compiling the same resources twice yields byte-identical archives.
"""

import hashlib
import json
import os
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence, Tuple

from reslib.contexts.compiling.backend import CompiledResourceEntry, CompiledUnit
from reslib.contexts.compiling.logger import log_archive_written
from reslib.contexts.resources.resource_set import canonical_sort_key
from reslib.contexts.resources.resource_types import ResourceType
from reslib.utils.exceptions import ArchiveFormatError
from reslib.utils.files import temp_path_beside

ARCHIVE_FORMAT = "reslib-compiled-resources"
ARCHIVE_VERSION = 1
HEADER_MEMBER = "compiled_resources.json"

# DOS timestamps cannot go before 1980; any fixed value keeps output reproducible
FIXED_TIMESTAMP = (2010, 1, 1, 0, 0, 0)


def _write_member(archive: zipfile.ZipFile, name: str, data: bytes) -> None:
    info = zipfile.ZipInfo(name, date_time=FIXED_TIMESTAMP)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    archive.writestr(info, data)


def _unit_payload(unit: CompiledUnit) -> bytes:
    if unit.blob_path is not None:
        return unit.blob_path.read_bytes()
    return unit.payload


def _entry_record(declaration) -> Dict[str, Any]:
    return {
        "type": declaration.resource_type.value,
        "qualifiers": declaration.qualifiers,
        "name": declaration.name,
        "kind": declaration.kind,
        "metadata": declaration.metadata,
    }


def _require_name(record: Dict[str, Any], unit: Dict[str, Any]) -> str:
    name = record.get("name")
    if not isinstance(name, str) or not name:
        raise ArchiveFormatError(f"Entry without a name in {unit.get('blob')}")
    return name


def write_archive(
    units: Sequence[CompiledUnit],
    output: Path,
    label: str = "",
    resource_roots: Sequence[Path] = (),
) -> Path:
    """
    Write compiled units to ``output``, atomically replacing any existing file.

    Args:
        units: Compiled units (any order; canonical order is imposed here)
        output: Destination archive path
        label: Library identity recorded in the header
        resource_roots: Original resource roots, recorded as provenance

    Returns:
        The output path
    """
    output = Path(output)
    ordered = sorted(units, key=lambda unit: canonical_sort_key(unit.source))

    unit_records = []
    payloads: List[Tuple[str, bytes]] = []
    for unit in ordered:
        payload = _unit_payload(unit)
        blob = unit.source.blob_name
        unit_records.append(
            {
                "blob": blob,
                "source": unit.source.relative_path,
                "root": unit.source.root_index,
                "sha256": hashlib.sha256(payload).hexdigest(),
                "size": len(payload),
                "entries": [_entry_record(declaration) for declaration in unit.declarations],
            }
        )
        payloads.append((blob, payload))

    header = {
        "format": ARCHIVE_FORMAT,
        "version": ARCHIVE_VERSION,
        "label": label,
        "resource_roots": [str(root) for root in resource_roots],
        "units": unit_records,
    }

    temp_path = temp_path_beside(output)
    try:
        with zipfile.ZipFile(temp_path, "w") as archive:
            _write_member(archive, HEADER_MEMBER, (json.dumps(header, indent=2) + "\n").encode("utf-8"))
            for blob, payload in payloads:
                _write_member(archive, blob, payload)
        os.replace(temp_path, output)
    except BaseException:
        if temp_path.exists():
            temp_path.unlink()
        raise

    entry_count = sum(len(record["entries"]) for record in unit_records)
    log_archive_written(output, len(unit_records), entry_count)
    return output


class CompiledResources:
    """
    Read-only view of an archive produced by write_archive().

    Attributes:
        path: Archive location
        label: Library identity from the header
        resource_roots: Resource roots recorded at write time
        units: Unit records in archive (canonical) order

    Example:
        >>> archive = CompiledResources.open(Path("out/compiled.zip"))
        >>> for unit, entry in archive.iter_entries():
        ...     print(entry.resource_type.value, entry.name)
    """

    def __init__(self, path: Path, header: Dict[str, Any]):
        self.path = Path(path)
        self.label: str = header.get("label", "")
        self.resource_roots: List[str] = list(header.get("resource_roots", []))
        self.units: List[Dict[str, Any]] = list(header.get("units", []))

    @classmethod
    def open(cls, path: Path) -> "CompiledResources":
        """
        Read and check an archive header.

        Raises:
            OSError: If the archive cannot be read
            ArchiveFormatError: If the file is not a compiled resources archive of a known version
        """
        path = Path(path)
        try:
            with zipfile.ZipFile(path) as archive:
                raw_header = archive.read(HEADER_MEMBER)
        except zipfile.BadZipFile as e:
            raise ArchiveFormatError(f"Not a zip archive: {path}") from e
        except KeyError as e:
            raise ArchiveFormatError(f"Archive has no {HEADER_MEMBER}: {path}") from e

        try:
            header = json.loads(raw_header.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ArchiveFormatError(f"Unreadable archive header in {path}: {e}") from e

        if not isinstance(header, dict) or header.get("format") != ARCHIVE_FORMAT:
            raise ArchiveFormatError(f"Unknown archive format in {path}")
        if header.get("version") != ARCHIVE_VERSION:
            raise ArchiveFormatError(
                f"Unsupported archive version {header.get('version')!r} in {path} "
                f"(expected {ARCHIVE_VERSION})"
            )
        return cls(path, header)

    def read_payload(self, unit: Dict[str, Any], verify: bool = True) -> bytes:
        """
        Read one unit's payload bytes.

        Raises:
            ArchiveFormatError: If the member is missing, or (with verify) its size
                or checksum disagree with the header
        """
        blob = unit.get("blob")
        try:
            with zipfile.ZipFile(self.path) as archive:
                payload = archive.read(blob)
        except KeyError as e:
            raise ArchiveFormatError(f"Archive member missing: {blob}") from e

        if verify:
            if len(payload) != unit.get("size") or hashlib.sha256(payload).hexdigest() != unit.get("sha256"):
                raise ArchiveFormatError(f"Payload checksum mismatch for {blob}")
        return payload

    def iter_entries(
        self, include_payloads: bool = False, verify: bool = True
    ) -> Iterator[Tuple[Dict[str, Any], CompiledResourceEntry]]:
        """
        Yield (unit record, entry) pairs in archive order.

        Args:
            include_payloads: Load payload bytes into each entry (otherwise b"")
            verify: Check payload size and checksum when loading payloads

        Raises:
            ArchiveFormatError: On an unrecognized resource type tag or a bad payload
        """
        for unit in self.units:
            payload = self.read_payload(unit, verify=verify) if include_payloads else b""

            for record in unit.get("entries", []):
                tag = record.get("type")
                resource_type = ResourceType.from_tag(tag) if isinstance(tag, str) else None
                if resource_type is None:
                    raise ArchiveFormatError(
                        f"Unrecognized resource type tag {tag!r} in {unit.get('blob')}"
                    )
                yield unit, CompiledResourceEntry(
                    resource_type=resource_type,
                    qualifiers=record.get("qualifiers", ""),
                    name=_require_name(record, unit),
                    payload=payload,
                    kind=record.get("kind", "value"),
                    metadata=record.get("metadata") or {},
                )

    def read_entries(self) -> List[CompiledResourceEntry]:
        """Every entry with its payload, for lossless round-trip comparisons."""
        return [entry for _, entry in self.iter_entries(include_payloads=True)]
