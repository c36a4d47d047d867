"""
Shared fixtures: an in-process compiler backend and a resource tree builder.

The fake backend labels each unit with the real declaration scanner and uses the
source bytes as the payload, so archives are deterministic without aapt2.
"""

import threading
from pathlib import Path
from typing import Dict, Optional

import pytest

from reslib.contexts.compiling.backend import CompiledUnit
from reslib.contexts.resources.declarations import scan_resource_file
from reslib.contexts.resources.resource_set import ResourceFile
from reslib.utils.exceptions import ResourceCompileError

STRINGS_XML = """<?xml version="1.0" encoding="utf-8"?>
<resources>
    <string name="app_name">Example</string>
</resources>
"""

MAIN_LAYOUT_XML = """<?xml version="1.0" encoding="utf-8"?>
<LinearLayout xmlns:android="http://schemas.android.com/apk/res/android"
    android:layout_width="match_parent"
    android:layout_height="match_parent" />
"""

MANIFEST_XML = """<?xml version="1.0" encoding="utf-8"?>
<manifest xmlns:android="http://schemas.android.com/apk/res/android"
    package="{package}">
    <application />
</manifest>
"""


class FakeBackend:
    """
    Compiles in-process: payload is the source bytes, declarations come from the scanner.

    Args:
        fail_on: File names (e.g., "broken.xml") that fail with ResourceCompileError
    """

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.compiled = []
        self._lock = threading.Lock()

    def compile(self, resource_file: ResourceFile) -> CompiledUnit:
        if resource_file.path.name in self.fail_on:
            raise ResourceCompileError(
                "fake compile failure", resource_path=resource_file.path, returncode=1
            )
        declarations = scan_resource_file(resource_file)
        with self._lock:
            self.compiled.append(resource_file.relative_path)
        return CompiledUnit(
            source=resource_file,
            payload=resource_file.path.read_bytes(),
            declarations=declarations,
        )


def build_tree(root: Path, files: Dict[str, str]) -> Path:
    """Create a resource root from {"values/strings.xml": "<resources>..."}."""
    root.mkdir(parents=True, exist_ok=True)
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def res_tree(tmp_path):
    """Factory fixture: res_tree({...}, name="res") -> resource root path."""

    def _make(files: Dict[str, str], name: str = "res") -> Path:
        return build_tree(tmp_path / "lib" / name, files)

    return _make


@pytest.fixture
def basic_res(res_tree):
    """One string and one layout."""
    return res_tree(
        {
            "values/strings.xml": STRINGS_XML,
            "layout/main.xml": MAIN_LAYOUT_XML,
        }
    )


@pytest.fixture
def manifest(tmp_path):
    """Factory fixture: manifest("com.example") -> manifest path."""

    def _make(package: Optional[str] = "com.example", name: str = "AndroidManifest.xml") -> Path:
        path = tmp_path / "lib" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if package is None:
            path.write_text('<manifest xmlns:android="http://schemas.android.com/apk/res/android"/>')
        else:
            path.write_text(MANIFEST_XML.format(package=package))
        return path

    return _make
