"""
Data Binding Processing

Rewrites data binding layouts into plain layouts the resource compiler accepts,
and records the stripped bindings in a single JSON metadata descriptor.

A layout such as:

    <layout>
        <data><variable name="user" type="com.example.User"/></data>
        <TextView android:text="@{user.name}"/>
    </layout>

is written to the scratch tree as:

    <TextView android:tag="layout/main_0"/>

with {"tag": "layout/main_0", "attribute": "android:text", "expression": "user.name"}
recorded under "layout/main" in the descriptor.

Input directories are never modified: every root is copied into the scratch area
first and only the copies are rewritten.
"""

import json
import re
import shutil
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from reslib.contexts.resources.logger import log_data_binding_result, log_data_binding_skipped
from reslib.contexts.resources.resource_set import ResourceFile, ResourceSet
from reslib.utils.exceptions import DataBindingError
from reslib.utils.files import write_atomically

NAMESPACES = {
    "android": "http://schemas.android.com/apk/res/android",
    "app": "http://schemas.android.com/apk/res-auto",
    "tools": "http://schemas.android.com/tools",
}
for _prefix, _uri in NAMESPACES.items():
    ET.register_namespace(_prefix, _uri)

ANDROID_TAG = f"{{{NAMESPACES['android']}}}tag"
BINDING_EXPRESSION = re.compile(r"^@(=)?\{(.*)\}$", re.DOTALL)
BRACKET_PAIRS = {"(": ")", "[": "]", "{": "}"}
QUOTES = "'\"`"


@dataclass
class DataBindingArtifact:
    """
    Output of the data binding stage.

    Attributes:
        resource_set: Resource set to compile (the input set when binding is inactive)
        info_out: Metadata descriptor path (None when binding is inactive)
        layouts: Bindings recorded per layout, keyed by "<directory>/<name>"
    """

    resource_set: ResourceSet
    info_out: Optional[Path] = None
    layouts: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def active(self) -> bool:
        return self.info_out is not None


def validate_binding_expression(expression: str, layout_path: Optional[Path] = None) -> str:
    """
    Check that a binding expression is non-empty with balanced brackets and quotes.

    Args:
        expression: Text between "@{" and "}"
        layout_path: Layout being processed (for error messages)

    Returns:
        The stripped expression

    Raises:
        DataBindingError: If the expression is malformed
    """
    text = expression.strip()
    if not text:
        raise DataBindingError("Empty binding expression", layout_path, expression)

    expected_closers: List[str] = []
    quote = None
    escaped = False
    for char in text:
        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in QUOTES:
            quote = char
        elif char in BRACKET_PAIRS:
            expected_closers.append(BRACKET_PAIRS[char])
        elif char in BRACKET_PAIRS.values():
            if not expected_closers or expected_closers.pop() != char:
                raise DataBindingError(f"Unbalanced '{char}' in binding expression", layout_path, expression)

    if quote:
        raise DataBindingError("Unterminated string literal in binding expression", layout_path, expression)
    if expected_closers:
        raise DataBindingError(
            f"Missing '{expected_closers[-1]}' in binding expression", layout_path, expression
        )
    return text


def _display_attribute(name: str) -> str:
    """Turn "{uri}local" back into "prefix:local" for metadata."""
    if name.startswith("{"):
        uri, local = name[1:].split("}", 1)
        for prefix, known_uri in NAMESPACES.items():
            if known_uri == uri:
                return f"{prefix}:{local}"
        return local
    return name


def _binding_match(value: str, layout_path: Path):
    stripped = value.strip()
    if not (stripped.startswith("@{") or stripped.startswith("@={")):
        return None
    match = BINDING_EXPRESSION.match(stripped)
    if match is None:
        raise DataBindingError("Unterminated binding expression", layout_path, value)
    return match


class DataBindingProcessor:
    """
    Strips data binding markup from layouts in a copied resource tree.

    Args:
        output_root: Scratch directory receiving the rewritten tree
        use_androidx: Record the androidx runtime package instead of the support one
    """

    def __init__(self, output_root: Path, use_androidx: bool = False):
        self.output_root = Path(output_root)
        self.use_androidx = use_androidx

    @property
    def runtime_package(self) -> str:
        return "androidx.databinding" if self.use_androidx else "android.databinding"

    def process(
        self,
        resource_set: ResourceSet,
        info_out: Optional[Path],
        package_path: Optional[str],
    ) -> DataBindingArtifact:
        """
        Rewrite data binding layouts, or pass the resource set through untouched.

        Active only when the resource set has a manifest and both package_path and
        info_out are supplied.

        Args:
            resource_set: Validated input resources
            info_out: Destination of the metadata descriptor
            package_path: Package of the library being processed

        Returns:
            DataBindingArtifact (identity when inactive)

        Raises:
            DataBindingError: If any layout holds malformed binding markup
        """
        missing = [
            label
            for label, value in (
                ("manifest", resource_set.manifest),
                ("package path", package_path),
                ("metadata destination", info_out),
            )
            if not value
        ]
        if missing:
            log_data_binding_skipped(missing)
            return DataBindingArtifact(resource_set=resource_set)

        copied_roots = []
        for index, root in enumerate(resource_set.resource_dirs):
            target = self.output_root / str(index) / root.name
            shutil.copytree(root, target)
            copied_roots.append(target)

        layouts: Dict[str, Dict[str, Any]] = {}
        for resource_file in resource_set.resource_files:
            if resource_file.type_prefix != "layout" or resource_file.path.suffix != ".xml":
                continue
            destination = copied_roots[resource_file.root_index] / resource_file.directory / resource_file.path.name
            layout_info = self._rewrite_layout(resource_file, destination)
            if layout_info is not None:
                key = f"{resource_file.directory}/{resource_file.path.name.split('.', 1)[0]}"
                layouts[key] = layout_info

        descriptor = {
            "label": resource_set.label,
            "package": package_path,
            "runtime": self.runtime_package,
            "layouts": layouts,
        }
        # Descriptor is only written once every layout has been rewritten successfully
        write_atomically(Path(info_out), json.dumps(descriptor, indent=2) + "\n")

        binding_count = sum(len(info["bindings"]) for info in layouts.values())
        log_data_binding_result(len(layouts), binding_count, Path(info_out))

        return DataBindingArtifact(
            resource_set=resource_set.rebased(copied_roots),
            info_out=Path(info_out),
            layouts=layouts,
        )

    def _rewrite_layout(self, resource_file: ResourceFile, destination: Path) -> Optional[Dict[str, Any]]:
        """Rewrite one layout; returns its binding info, or None for plain layouts."""
        source = resource_file.path
        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
        try:
            root = ET.parse(source, parser).getroot()
        except ET.ParseError as e:
            raise DataBindingError(f"Malformed layout XML: {e}", source) from e

        if root.tag != "layout":
            for element in root.iter():
                for value in element.attrib.values():
                    if _binding_match(value, source) is not None:
                        raise DataBindingError(
                            "Binding expressions require a <layout> root element", source, value
                        )
            return None

        variables = []
        imports = []
        data = root.find("data")
        if data is not None:
            for child in data:
                if child.tag == "variable":
                    variables.append({"name": child.get("name"), "type": child.get("type")})
                elif child.tag == "import":
                    imports.append({"type": child.get("type"), "alias": child.get("alias")})

        views = [child for child in root if isinstance(child.tag, str) and child.tag != "data"]
        if len(views) != 1:
            raise DataBindingError(
                f"<layout> must contain exactly one view root, found {len(views)}", source
            )
        view_root = views[0]
        layout_name = source.name.split(".", 1)[0]

        bindings = []
        next_index = 1
        for element in view_root.iter():
            if not isinstance(element.tag, str):
                continue

            element_bindings = []
            for attribute, value in list(element.attrib.items()):
                match = _binding_match(value, source)
                if match is None:
                    continue
                expression = validate_binding_expression(match.group(2), source)
                element_bindings.append(
                    {
                        "attribute": _display_attribute(attribute),
                        "expression": expression,
                        "two_way": match.group(1) == "=",
                    }
                )
                del element.attrib[attribute]

            if not element_bindings:
                continue

            if element is view_root:
                tag = f"layout/{layout_name}_0"
            else:
                tag = f"binding_{next_index}"
                next_index += 1
            original_tag = element.get(ANDROID_TAG)
            element.set(ANDROID_TAG, tag)

            for binding in element_bindings:
                binding["tag"] = tag
                if original_tag is not None:
                    binding["original_tag"] = original_tag
                bindings.append(binding)

        ET.ElementTree(view_root).write(destination, encoding="utf-8", xml_declaration=True)

        return {
            "file": resource_file.relative_path,
            "variables": variables,
            "imports": imports,
            "bindings": bindings,
        }
