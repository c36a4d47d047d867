"""
reslib - Library resource compilation and symbol generation

Compiles the declared resources of a single Android library module through an
external resource compiler, packages the results into a self-describing archive,
and optionally emits the R symbol table for that archive.

Architecture:
- Resources Context: Resource set validation, manifest package lookup, data binding
- Compiling Context: Parallel compilation, archive packaging, action orchestration
- Symbols Context: Archive deserialization, ID assignment, R.txt and R.class output
"""

__version__ = "0.1.0"
