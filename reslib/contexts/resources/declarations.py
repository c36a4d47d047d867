"""
Resource Declarations

Reads one resource source file and lists the resources it declares. The compiler
backends use this to label the opaque payload they produce, so the archive can be
symbolized later without re-reading any source file.
"""

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, List

from reslib.contexts.resources.resource_set import ResourceFile
from reslib.contexts.resources.resource_types import (
    FILE_RESOURCE_DIRECTORIES,
    IGNORED_VALUES_TAGS,
    JAVA_KEYWORDS,
    VALUES_TAGS,
    ResourceType,
    java_field_name,
)
from reslib.utils.exceptions import ResourceCompileError

FILE_RESOURCE_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")
VALUE_RESOURCE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")
# Styleable children may reference framework attrs ("android:textColor")
STYLEABLE_ATTR_NAME = re.compile(r"^(?:[A-Za-z_][A-Za-z0-9_.]*:)?[A-Za-z_][A-Za-z0-9_.]*$")
NEW_ID_REFERENCE = re.compile(r"^@\+id/([A-Za-z_][A-Za-z0-9_.]*)$")

KIND_FILE = "file"
KIND_VALUE = "value"


@dataclass(frozen=True)
class ResourceDeclaration:
    """
    A single resource declared by a source file.

    Attributes:
        resource_type: Type of the resource
        name: Resource name as declared (may contain dots, e.g. "Theme.App")
        qualifiers: Configuration qualifiers ("" for default)
        kind: "file" for file-based resources, "value" for values entries
        metadata: Extra type-specific data (e.g., ordered attrs of a styleable)
    """

    resource_type: ResourceType
    name: str
    qualifiers: str
    kind: str
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)


def _check_field_name(name: str, resource_file: ResourceFile) -> str:
    """Reject names whose R field would be a reserved word ("class", "int.xml")."""
    if java_field_name(name) in JAVA_KEYWORDS:
        raise ResourceCompileError(
            f"'{name}' is a Java keyword and cannot be used as a resource name",
            resource_path=resource_file.path,
        )
    return name


def _parse_xml(resource_file: ResourceFile) -> ET.Element:
    try:
        return ET.parse(resource_file.path).getroot()
    except ET.ParseError as e:
        raise ResourceCompileError(
            f"Malformed XML: {e}", resource_path=resource_file.path
        ) from e


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _new_ids(root: ET.Element) -> List[str]:
    """Collect @+id/<name> declarations in document order, without repeats."""
    ids: List[str] = []
    for element in root.iter():
        for value in element.attrib.values():
            match = NEW_ID_REFERENCE.match(value.strip())
            if match and match.group(1) not in ids:
                ids.append(match.group(1))
    return ids


def _scan_file_resource(resource_file: ResourceFile) -> List[ResourceDeclaration]:
    resource_type = FILE_RESOURCE_DIRECTORIES[resource_file.type_prefix]
    # "icon.9.png" and "main.xml" both declare by the part before the first dot
    name = resource_file.path.name.split(".", 1)[0]
    if not FILE_RESOURCE_NAME.match(name):
        raise ResourceCompileError(
            f"'{resource_file.path.name}' is not a valid file-based resource name: "
            "must contain only [a-z0-9_.] and not start with a digit",
            resource_path=resource_file.path,
        )
    _check_field_name(name, resource_file)

    declarations = [
        ResourceDeclaration(resource_type, name, resource_file.qualifiers, KIND_FILE)
    ]

    if resource_file.path.suffix == ".xml" and resource_type is not ResourceType.RAW:
        root = _parse_xml(resource_file)
        for id_name in _new_ids(root):
            _check_field_name(id_name, resource_file)
            declarations.append(ResourceDeclaration(ResourceType.ID, id_name, "", KIND_VALUE))

    return declarations


def _require_name(element: ET.Element, resource_file: ResourceFile, pattern=VALUE_RESOURCE_NAME) -> str:
    name = element.get("name")
    if not name or not pattern.match(name):
        raise ResourceCompileError(
            f"<{element.tag}> requires a valid 'name' attribute, got {name!r}",
            resource_path=resource_file.path,
        )
    return _check_field_name(name, resource_file)


def _declares_attr(attr: ET.Element) -> bool:
    """An <attr> inside a styleable defines a new attr when it carries a format or values."""
    name = attr.get("name", "")
    if ":" in name:
        return False
    return attr.get("format") is not None or any(
        child.tag in ("enum", "flag") for child in attr
    )


def _scan_values_file(resource_file: ResourceFile) -> List[ResourceDeclaration]:
    root = _parse_xml(resource_file)
    if _local_name(root.tag) != "resources":
        raise ResourceCompileError(
            f"Root element of a values file must be <resources>, found <{root.tag}>",
            resource_path=resource_file.path,
        )

    qualifiers = resource_file.qualifiers
    declarations: List[ResourceDeclaration] = []

    for element in root:
        # Comments and processing instructions have non-string tags
        if not isinstance(element.tag, str):
            continue
        tag = element.tag
        if tag in IGNORED_VALUES_TAGS:
            continue

        if tag == "item":
            type_tag = element.get("type")
            resource_type = ResourceType.from_tag(type_tag) if type_tag else None
            if resource_type is None:
                raise ResourceCompileError(
                    f"<item> requires a known 'type' attribute, got {type_tag!r}",
                    resource_path=resource_file.path,
                )
        elif tag in VALUES_TAGS:
            resource_type = VALUES_TAGS[tag]
        else:
            raise ResourceCompileError(
                f"Unknown resource element <{tag}>", resource_path=resource_file.path
            )

        name = _require_name(element, resource_file)

        if resource_type is ResourceType.STYLEABLE:
            attrs = []
            for child in element:
                if child.tag != "attr":
                    continue
                attr_name = _require_name(child, resource_file, STYLEABLE_ATTR_NAME)
                attrs.append(attr_name)
                if _declares_attr(child):
                    declarations.append(
                        ResourceDeclaration(ResourceType.ATTR, attr_name, qualifiers, KIND_VALUE)
                    )
            declarations.append(
                ResourceDeclaration(
                    resource_type, name, qualifiers, KIND_VALUE, metadata={"attrs": attrs}
                )
            )
        else:
            declarations.append(ResourceDeclaration(resource_type, name, qualifiers, KIND_VALUE))

    return declarations


def scan_resource_file(resource_file: ResourceFile) -> List[ResourceDeclaration]:
    """
    List the resources declared by one resource file.

    Args:
        resource_file: Unit from a validated ResourceSet

    Returns:
        Declarations in document order (file resource first, then its @+id entries)

    Raises:
        ResourceCompileError: If the file is malformed or declares an invalid name
    """
    if resource_file.is_values:
        return _scan_values_file(resource_file)
    return _scan_file_resource(resource_file)
