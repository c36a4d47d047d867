"""
Resources Context

Responsibilities:
- Validates resource roots into an ordered ResourceSet
- Lists the resources each source file declares
- Resolves the package declared by a manifest
- Rewrites data binding layouts into plain layouts plus metadata

Owns: Resource source trees, manifest lookup, data binding rewrite
Never: Invokes the external compiler
"""

from reslib.contexts.resources.data_binding import DataBindingArtifact, DataBindingProcessor
from reslib.contexts.resources.declarations import ResourceDeclaration, scan_resource_file
from reslib.contexts.resources.manifest import read_manifest_package, resolve_package_for_r
from reslib.contexts.resources.resource_set import ResourceFile, ResourceSet, validate_resource_set
from reslib.contexts.resources.resource_types import ResourceType

__all__ = [
    "DataBindingArtifact",
    "DataBindingProcessor",
    "ResourceDeclaration",
    "ResourceFile",
    "ResourceSet",
    "ResourceType",
    "read_manifest_package",
    "resolve_package_for_r",
    "scan_resource_file",
    "validate_resource_set",
]
