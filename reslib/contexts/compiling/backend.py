"""
Resource Compiler Backends

A backend turns one resource source file into an opaque compiled payload plus the
list of resources that payload declares. The parallel compiler only depends on the
ResourceCompilerBackend protocol, so the aapt2 process wrapper below can be
swapped for an in-process fake in tests.
"""

import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from reslib.contexts.compiling.logger import _log_debug
from reslib.contexts.resources.declarations import ResourceDeclaration, scan_resource_file
from reslib.contexts.resources.resource_set import ResourceFile
from reslib.contexts.resources.resource_types import ResourceType
from reslib.utils.exceptions import ConfigurationError, ResourceCompileError


@dataclass(frozen=True)
class CompiledResourceEntry:
    """
    One compiled resource: identity plus the opaque payload it came from.

    Attributes:
        resource_type: Type of the resource
        qualifiers: Configuration qualifiers ("" for default)
        name: Resource name
        payload: Compiled bytes of the unit declaring this resource
        kind: "file" or "value"
        metadata: Type-specific extras (e.g., styleable attrs)
    """

    resource_type: ResourceType
    qualifiers: str
    name: str
    payload: bytes = field(repr=False)
    kind: str = "value"
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def key(self):
        return (self.resource_type, self.name)


@dataclass
class CompiledUnit:
    """
    Result of compiling one resource file.

    Attributes:
        source: The compiled resource file
        payload: Opaque compiled bytes
        declarations: Resources declared by the file, in document order
        blob_path: Intermediate blob in the compiler scratch area (set by the compiler)
    """

    source: ResourceFile
    payload: bytes = field(repr=False)
    declarations: List[ResourceDeclaration] = field(default_factory=list)
    blob_path: Optional[Path] = None

    @property
    def entries(self) -> List[CompiledResourceEntry]:
        return [
            CompiledResourceEntry(
                resource_type=declaration.resource_type,
                qualifiers=declaration.qualifiers,
                name=declaration.name,
                payload=self.payload,
                kind=declaration.kind,
                metadata=declaration.metadata,
            )
            for declaration in self.declarations
        ]


class ResourceCompilerBackend(Protocol):
    """Capability: compile one resource file or raise ResourceCompileError."""

    def compile(self, resource_file: ResourceFile) -> CompiledUnit:
        ...


class Aapt2Backend:
    """
    Compiles resource files by invoking ``aapt2 compile``.

    Each call runs in its own directory under ``work_dir`` so concurrent calls
    never see each other's output.

    Args:
        aapt2: Path to the aapt2 binary (None looks it up on PATH)
        work_dir: Scratch directory for per-unit compiler output
        generate_pseudo_locale: Pass --pseudo-localize to aapt2
    """

    def __init__(self, aapt2: Optional[str], work_dir: Path, generate_pseudo_locale: bool = False):
        resolved = aapt2 or shutil.which("aapt2")
        if not resolved or not Path(resolved).exists():
            raise ConfigurationError(
                f"aapt2 binary not found ({aapt2 or 'not configured and not on PATH'})"
            )
        self.aapt2 = Path(resolved)
        self.work_dir = Path(work_dir)
        self.work_dir.mkdir(parents=True, exist_ok=True)
        self.generate_pseudo_locale = generate_pseudo_locale

    def command(self, resource_file: ResourceFile, output_dir: Path) -> List[str]:
        cmd = [str(self.aapt2), "compile", "--legacy"]
        if self.generate_pseudo_locale:
            cmd.append("--pseudo-localize")
        cmd.extend(["-o", str(output_dir), str(resource_file.path)])
        return cmd

    def compile(self, resource_file: ResourceFile) -> CompiledUnit:
        """
        Compile one resource file with aapt2.

        Declarations are scanned first so that invalid names fail before aapt2 runs.

        Raises:
            ResourceCompileError: If aapt2 exits non-zero or produces no output
        """
        declarations = scan_resource_file(resource_file)

        with tempfile.TemporaryDirectory(dir=self.work_dir) as output_dir:
            cmd = self.command(resource_file, Path(output_dir))
            _log_debug(f"  $ {' '.join(cmd)}")
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",  # Replace invalid UTF-8 bytes instead of crashing
            )
            output = "\n".join(part for part in (result.stdout, result.stderr) if part)

            if result.returncode != 0:
                raise ResourceCompileError(
                    "aapt2 compile failed",
                    resource_path=resource_file.path,
                    returncode=result.returncode,
                    output=output,
                )

            produced = sorted(Path(output_dir).glob("*.flat"))
            if not produced:
                raise ResourceCompileError(
                    "aapt2 compile produced no output",
                    resource_path=resource_file.path,
                    output=output,
                )
            payload = b"".join(path.read_bytes() for path in produced)

        return CompiledUnit(source=resource_file, payload=payload, declarations=declarations)
