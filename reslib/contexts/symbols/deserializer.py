"""
Compiled Data Deserializer

Reads an archive written by the compiling context back into a
ParsedAndroidDataBuilder, tagging every entry with the caller's provenance.
"""

from pathlib import Path

from reslib.contexts.compiling.archive import CompiledResources
from reslib.contexts.symbols.logger import log_deserialized
from reslib.contexts.symbols.parsed_data import DependencyType, ParsedAndroidDataBuilder


class CompiledDataDeserializer:
    """
    Deserializer for compiled resources archives.

    Args:
        include_file_contents_for_validation: Load every payload and verify its size
            and checksum against the header. Off by default: the archive was just
            written by this process, so its payloads are trusted.
    """

    def __init__(self, include_file_contents_for_validation: bool = False):
        self.include_file_contents_for_validation = include_file_contents_for_validation

    def deserialize(
        self,
        archive_path: Path,
        provenance: DependencyType,
        builder: ParsedAndroidDataBuilder,
    ) -> int:
        """
        Feed every archive entry into builder, in archive order.

        Args:
            archive_path: Archive produced by write_archive()
            provenance: Provenance to tag entries with
            builder: Destination builder

        Returns:
            Number of entries read

        Raises:
            ArchiveFormatError: On unknown type tags, bad payloads, or duplicate resources
        """
        archive = CompiledResources.open(archive_path)
        validate = self.include_file_contents_for_validation

        count = 0
        for unit, entry in archive.iter_entries(include_payloads=validate, verify=validate):
            builder.add(provenance, entry, source=unit.get("source"))
            count += 1

        log_deserialized(Path(archive_path), count, len(builder.build()), validate)
        return count
