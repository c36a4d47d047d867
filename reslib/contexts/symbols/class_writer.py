"""
R Class Output

Builds the R classes for a SymbolTable directly as JVM class files and packs
them into a jar:

    META-INF/MANIFEST.MF
    com/example/R.class
    com/example/R$layout.class
    com/example/R$string.class

Each R$<type> class holds one ``public static final int`` field per symbol with a
ConstantValue attribute, so no static initializer is needed. An R.java source
rendering of the same table can be packed into a source jar as well.
"""

import struct
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from reslib.contexts.symbols.logger import log_sink_written
from reslib.contexts.symbols.symbol_table import SymbolTable
from reslib.utils.files import temp_path_beside

TEMPLATES_PATH = Path(__file__).parent / "templates"

CLASS_MAGIC = 0xCAFEBABE
CLASS_MAJOR_VERSION = 52  # Java 8

ACC_PUBLIC = 0x0001
ACC_STATIC = 0x0008
ACC_FINAL = 0x0010
ACC_SUPER = 0x0020

CONSTANT_UTF8 = 1
CONSTANT_INTEGER = 3
CONSTANT_CLASS = 7

JAR_TIMESTAMP = (2010, 1, 1, 0, 0, 0)


class _ConstantPool:
    """Deduplicating JVM constant pool builder (1-based indices)."""

    def __init__(self):
        self._entries: List[bytes] = []
        self._indices: Dict[Tuple, int] = {}

    def _add(self, key: Tuple, data: bytes) -> int:
        if key not in self._indices:
            self._entries.append(data)
            self._indices[key] = len(self._entries)
        return self._indices[key]

    def utf8(self, text: str) -> int:
        # Names here are plain ASCII, where modified UTF-8 equals UTF-8
        encoded = text.encode("utf-8")
        return self._add(("utf8", text), struct.pack(">BH", CONSTANT_UTF8, len(encoded)) + encoded)

    def class_ref(self, internal_name: str) -> int:
        name_index = self.utf8(internal_name)
        return self._add(("class", internal_name), struct.pack(">BH", CONSTANT_CLASS, name_index))

    def integer(self, value: int) -> int:
        return self._add(("int", value), struct.pack(">Bi", CONSTANT_INTEGER, value))

    def to_bytes(self) -> bytes:
        return struct.pack(">H", len(self._entries) + 1) + b"".join(self._entries)


def _class_file(
    internal_name: str,
    fields: List[Tuple[str, int]],
    inner_classes: List[Tuple[str, str, str]],
) -> bytes:
    """
    Assemble a class file.

    Args:
        internal_name: e.g. "com/example/R$string"
        fields: (field name, int constant) pairs
        inner_classes: (inner internal name, outer internal name, simple name) triples
    """
    pool = _ConstantPool()
    this_class = pool.class_ref(internal_name)
    super_class = pool.class_ref("java/lang/Object")

    field_bytes = []
    if fields:
        constant_value = pool.utf8("ConstantValue")
        descriptor = pool.utf8("I")
        for name, value in fields:
            field_bytes.append(
                struct.pack(
                    ">HHHHHIH",
                    ACC_PUBLIC | ACC_STATIC | ACC_FINAL,
                    pool.utf8(name),
                    descriptor,
                    1,
                    constant_value,
                    2,
                    pool.integer(value),
                )
            )

    attributes = b""
    attribute_count = 0
    if inner_classes:
        records = b"".join(
            struct.pack(
                ">HHHH",
                pool.class_ref(inner),
                pool.class_ref(outer),
                pool.utf8(simple_name),
                ACC_PUBLIC | ACC_STATIC | ACC_FINAL,
            )
            for inner, outer, simple_name in inner_classes
        )
        attributes = (
            struct.pack(">HIH", pool.utf8("InnerClasses"), 2 + len(records), len(inner_classes))
            + records
        )
        attribute_count = 1

    return b"".join(
        [
            struct.pack(">IHH", CLASS_MAGIC, 0, CLASS_MAJOR_VERSION),
            pool.to_bytes(),
            struct.pack(">HHHH", ACC_PUBLIC | ACC_FINAL | ACC_SUPER, this_class, super_class, 0),
            struct.pack(">H", len(field_bytes)),
            *field_bytes,
            struct.pack(">H", 0),  # methods
            struct.pack(">H", attribute_count),
            attributes,
        ]
    )


def _jar_manifest(target_label: Optional[str], injecting_rule_kind: Optional[str]) -> bytes:
    lines = ["Manifest-Version: 1.0", "Created-By: reslib"]
    if target_label:
        lines.append(f"Target-Label: {target_label}")
    if injecting_rule_kind:
        lines.append(f"Injecting-Rule-Kind: {injecting_rule_kind}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")


def _write_jar(path: Path, members: List[Tuple[str, bytes]]) -> None:
    """Write members to a jar at path, replacing it atomically."""
    temp_path = temp_path_beside(path)
    try:
        with zipfile.ZipFile(temp_path, "w") as jar:
            for name, data in members:
                info = zipfile.ZipInfo(name, date_time=JAR_TIMESTAMP)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = 0o644 << 16
                jar.writestr(info, data)
        temp_path.replace(path)
    except BaseException:
        if temp_path.exists():
            temp_path.unlink()
        raise


class ResourceClassWriter:
    """
    Renders a SymbolTable as R classes.

    Args:
        target_label: Recorded as Target-Label in the jar manifest
        injecting_rule_kind: Recorded as Injecting-Rule-Kind in the jar manifest
    """

    def __init__(self, target_label: Optional[str] = None, injecting_rule_kind: Optional[str] = None):
        self.target_label = target_label
        self.injecting_rule_kind = injecting_rule_kind
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_PATH)),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    @staticmethod
    def class_prefix(package: str) -> str:
        """Internal name prefix for the R class ("com.example" -> "com/example/R")."""
        return f"{package.replace('.', '/')}/R" if package else "R"

    def build_classes(self, table: SymbolTable) -> Dict[str, bytes]:
        """
        Build every R class file in memory.

        Returns:
            Mapping of jar member name (e.g., "com/example/R$string.class") to class bytes
        """
        outer = self.class_prefix(table.package)
        nested = [(f"{outer}${t.value}", outer, t.value) for t in table.types]

        classes = {f"{outer}.class": _class_file(outer, [], nested)}
        for resource_type, (inner, _, simple_name) in zip(table.types, nested):
            fields = [(symbol.name, symbol.id) for symbol in table.symbols(resource_type)]
            classes[f"{inner}.class"] = _class_file(inner, fields, [(inner, outer, simple_name)])
        return classes

    def render_java(self, table: SymbolTable) -> str:
        """Render R.java source for the table."""
        template = self.env.get_template("R.java.jinja")
        groups = [(t.value, table.symbols(t)) for t in table.types]
        return template.render(package=table.package, groups=groups)

    def write_class_jar(self, table: SymbolTable, path: Path) -> Path:
        """Write R classes to a jar; the jar appears only once every class is built."""
        path = Path(path)
        classes = self.build_classes(table)
        members = [("META-INF/MANIFEST.MF", _jar_manifest(self.target_label, self.injecting_rule_kind))]
        members.extend(sorted(classes.items()))
        _write_jar(path, members)
        log_sink_written("Class jar", path)
        return path

    def write_source_jar(self, table: SymbolTable, path: Path) -> Path:
        """Write R.java into a source jar."""
        path = Path(path)
        source_name = f"{self.class_prefix(table.package)}.java"
        _write_jar(path, [(source_name, self.render_java(table).encode("utf-8"))])
        log_sink_written("R.java source jar", path)
        return path
