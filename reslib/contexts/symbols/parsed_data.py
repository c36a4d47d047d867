"""
Parsed Android Data

Structured, provenance-tagged resource entries rebuilt from a compiled archive.
Entries are keyed by (type, name) and kept in first-seen order; all the
configurations a resource was compiled for are folded into its metadata.

Merge policy within one provenance class:
- Same (type, qualifiers, name) twice: DuplicateResourceError, unless the type
  is combining (id, styleable), in which case the declarations merge
- Same (type, name) under different qualifiers: one entry, several configurations

Across provenance classes a PRIMARY entry shadows a DEPENDENCY entry.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from reslib.contexts.compiling.backend import CompiledResourceEntry
from reslib.contexts.resources.resource_types import ResourceType
from reslib.utils.exceptions import DuplicateResourceError

ResourceKey = Tuple[ResourceType, str]


class DependencyType(Enum):
    """Where a resource entry comes from."""

    PRIMARY = "primary"
    DEPENDENCY = "dependency"


@dataclass
class ParsedAndroidDataEntry:
    """
    One resource rebuilt from an archive.

    Attributes:
        resource_type: Type of the resource
        name: Resource name
        provenance: PRIMARY for the library's own resources
        metadata: Value metadata ("configurations", "sources", "kind", and "attrs" for styleables)
    """

    resource_type: ResourceType
    name: str
    provenance: DependencyType
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> ResourceKey:
        return (self.resource_type, self.name)

    @property
    def configurations(self) -> List[str]:
        return self.metadata.get("configurations", [])


class ParsedAndroidData:
    """Immutable, ordered collection of ParsedAndroidDataEntry."""

    def __init__(self, entries: Dict[ResourceKey, ParsedAndroidDataEntry]):
        self._entries = dict(entries)

    def __iter__(self) -> Iterator[ParsedAndroidDataEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: ResourceKey) -> bool:
        return key in self._entries

    def get(self, resource_type: ResourceType, name: str) -> Optional[ParsedAndroidDataEntry]:
        return self._entries.get((resource_type, name))

    def keys(self) -> List[ResourceKey]:
        return list(self._entries)

    def resources_by_type(self) -> Dict[ResourceType, List[ParsedAndroidDataEntry]]:
        """Group entries by type, types and names both in first-seen order."""
        grouped: Dict[ResourceType, List[ParsedAndroidDataEntry]] = {}
        for entry in self._entries.values():
            grouped.setdefault(entry.resource_type, []).append(entry)
        return grouped


class ParsedAndroidDataBuilder:
    """Accumulates compiled entries into a ParsedAndroidData."""

    def __init__(self):
        self._entries: Dict[ResourceKey, ParsedAndroidDataEntry] = {}
        self._seen: Set[Tuple[DependencyType, ResourceType, str, str]] = set()

    def add(
        self,
        provenance: DependencyType,
        entry: CompiledResourceEntry,
        source: Optional[str] = None,
    ) -> None:
        """
        Add one compiled entry.

        Args:
            provenance: Provenance assigned by the caller
            entry: Entry read from an archive
            source: Relative source path of the declaring unit

        Raises:
            DuplicateResourceError: If this provenance already declared the same
                (type, qualifiers, name) and the type does not combine
        """
        config_key = (provenance, entry.resource_type, entry.qualifiers, entry.name)
        if config_key in self._seen and not entry.resource_type.is_combining:
            raise DuplicateResourceError(entry.resource_type.value, entry.name, entry.qualifiers)
        self._seen.add(config_key)

        existing = self._entries.get(entry.key)
        if existing is None or (
            existing.provenance is DependencyType.DEPENDENCY and provenance is DependencyType.PRIMARY
        ):
            self._entries[entry.key] = self._new_entry(provenance, entry, source)
            return

        if existing.provenance is not provenance:
            # A dependency never overrides the library's own resource
            return

        self._merge(existing, entry, source)

    @staticmethod
    def _new_entry(
        provenance: DependencyType, entry: CompiledResourceEntry, source: Optional[str]
    ) -> ParsedAndroidDataEntry:
        metadata: Dict[str, Any] = {
            "kind": entry.kind,
            "configurations": [entry.qualifiers],
            "sources": [source] if source else [],
        }
        if "attrs" in entry.metadata:
            metadata["attrs"] = list(entry.metadata["attrs"])
        return ParsedAndroidDataEntry(
            resource_type=entry.resource_type,
            name=entry.name,
            provenance=provenance,
            metadata=metadata,
        )

    @staticmethod
    def _merge(
        existing: ParsedAndroidDataEntry, entry: CompiledResourceEntry, source: Optional[str]
    ) -> None:
        metadata = existing.metadata
        if entry.qualifiers not in metadata["configurations"]:
            metadata["configurations"].append(entry.qualifiers)
        if source and source not in metadata["sources"]:
            metadata["sources"].append(source)
        for attr in entry.metadata.get("attrs", []):
            attrs = metadata.setdefault("attrs", [])
            if attr not in attrs:
                attrs.append(attr)

    def build(self) -> ParsedAndroidData:
        return ParsedAndroidData(self._entries)
