"""
R File Generation

Re-reads a freshly written compiled resources archive and emits its symbols.

Flow:
    archive -> CompiledDataDeserializer (PRIMARY) -> ParsedAndroidData
            -> SymbolTable -> class jar, R.txt (and optionally an R.java source jar)

Each sink commits its file only after its own output is fully built. The sinks
are independent of each other: if the second fails, the first one's file stays.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from reslib.contexts.symbols.class_writer import ResourceClassWriter
from reslib.contexts.symbols.deserializer import CompiledDataDeserializer
from reslib.contexts.symbols.logger import log_symbol_table
from reslib.contexts.symbols.parsed_data import (
    DependencyType,
    ParsedAndroidData,
    ParsedAndroidDataBuilder,
)
from reslib.contexts.symbols.rtxt_writer import RTxtWriter
from reslib.contexts.symbols.symbol_table import SymbolTable


@dataclass
class SymbolOutputs:
    """Files produced by generate_r_files()."""

    table: SymbolTable
    r_txt: Path
    class_jar: Path
    srcjar: Optional[Path] = None


def load_primary_data(
    archive: Path, include_file_contents_for_validation: bool = False
) -> ParsedAndroidData:
    """Deserialize a library's own archive with PRIMARY provenance."""
    builder = ParsedAndroidDataBuilder()
    deserializer = CompiledDataDeserializer(
        include_file_contents_for_validation=include_file_contents_for_validation
    )
    deserializer.deserialize(archive, DependencyType.PRIMARY, builder)
    return builder.build()


def generate_r_files(
    archive: Path,
    package_for_r: str,
    r_txt_out: Path,
    class_jar_output: Path,
    srcjar_output: Optional[Path] = None,
    target_label: Optional[str] = None,
    injecting_rule_kind: Optional[str] = None,
    include_file_contents_for_validation: bool = False,
) -> SymbolOutputs:
    """
    Generate the R class jar and R.txt for a compiled resources archive.

    Args:
        archive: Archive written by write_archive()
        package_for_r: Java package of the generated R class
        r_txt_out: Destination of R.txt
        class_jar_output: Destination of the class jar
        srcjar_output: Optional destination of an R.java source jar
        target_label: Jar manifest Target-Label
        injecting_rule_kind: Jar manifest Injecting-Rule-Kind
        include_file_contents_for_validation: Verify payloads while reading the archive

    Returns:
        SymbolOutputs with the shared symbol table and written paths
    """
    data = load_primary_data(archive, include_file_contents_for_validation)
    table = SymbolTable.from_parsed_data(data, package_for_r)
    log_symbol_table(package_for_r, len(table.types), len(table))

    class_writer = ResourceClassWriter(target_label=target_label, injecting_rule_kind=injecting_rule_kind)
    class_writer.write_class_jar(table, class_jar_output)
    RTxtWriter(r_txt_out).write(table)

    srcjar = None
    if srcjar_output is not None:
        srcjar = class_writer.write_source_jar(table, srcjar_output)

    return SymbolOutputs(table=table, r_txt=Path(r_txt_out), class_jar=Path(class_jar_output), srcjar=srcjar)
