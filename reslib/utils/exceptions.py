"""Exception hierarchy for resource compilation and symbol generation."""

from pathlib import Path
from typing import Optional


class ReslibError(Exception):
    """Base class for every error raised deliberately by reslib."""


class ConfigurationError(ReslibError, ValueError):
    """
    Raised when inputs are missing or mutually inconsistent.

    Always detected before any compilation work begins.
    """


class ResourceValidationError(ReslibError, ValueError):
    """Raised when a resource directory tree cannot be turned into a ResourceSet."""


class ResourceCompileError(ReslibError):
    """
    Exception raised when the compiler backend rejects a resource file.

    Attributes:
        message: Error description
        resource_path: Resource file that failed to compile
        returncode: Exit code of the external compiler (None for in-process failures)
        output: Combined compiler output, if any
    """

    def __init__(
        self,
        message: str,
        resource_path: Optional[Path] = None,
        returncode: Optional[int] = None,
        output: Optional[str] = None,
    ):
        self.message = message
        self.resource_path = resource_path
        self.returncode = returncode
        self.output = output

        parts = [message]

        if resource_path is not None:
            parts.append(f"Resource: {resource_path}")

        if returncode is not None:
            parts.append(f"Exit code: {returncode}")

        if output:
            # Truncate output if too long
            snippet = output[:500] + "..." if len(output) > 500 else output
            parts.append(f"Compiler output:\n{snippet}")

        super().__init__("\n".join(parts))


class DataBindingError(ReslibError):
    """
    Exception raised when a layout carries malformed data binding markup.

    Attributes:
        message: Error description
        layout_path: Layout file containing the binding
        expression: The offending binding expression, if known
    """

    def __init__(
        self,
        message: str,
        layout_path: Optional[Path] = None,
        expression: Optional[str] = None,
    ):
        self.message = message
        self.layout_path = layout_path
        self.expression = expression

        parts = [message]

        if layout_path is not None:
            parts.append(f"Layout: {layout_path}")

        if expression is not None:
            parts.append(f"Expression: {expression}")

        super().__init__("\n".join(parts))


class ArchiveFormatError(ReslibError):
    """Raised when a compiled resources archive cannot be read back consistently."""


class DuplicateResourceError(ArchiveFormatError):
    """
    Raised when one provenance class declares the same resource twice.

    Attributes:
        resource_type: Type tag of the duplicated resource
        name: Resource name
        qualifiers: Configuration qualifiers shared by both declarations
    """

    def __init__(self, resource_type: str, name: str, qualifiers: str):
        self.resource_type = resource_type
        self.name = name
        self.qualifiers = qualifiers
        config = qualifiers or "default"
        super().__init__(
            f"Duplicate resource {resource_type}/{name} in configuration '{config}'"
        )
