"""
Symbols Context

Responsibilities:
- Deserializes compiled resources archives into provenance-tagged entries
- Assigns deterministic symbol IDs per (type, name)
- Writes R.txt, the R class jar and optional R.java sources

Owns: ParsedAndroidData, SymbolTable, symbol sinks
Never: Compiles resources or reads resource source files
"""

from reslib.contexts.symbols.class_writer import ResourceClassWriter
from reslib.contexts.symbols.deserializer import CompiledDataDeserializer
from reslib.contexts.symbols.generate import SymbolOutputs, generate_r_files, load_primary_data
from reslib.contexts.symbols.parsed_data import (
    DependencyType,
    ParsedAndroidData,
    ParsedAndroidDataBuilder,
    ParsedAndroidDataEntry,
)
from reslib.contexts.symbols.rtxt_writer import RTxtWriter, render_r_txt
from reslib.contexts.symbols.symbol_table import Symbol, SymbolTable, java_field_name

__all__ = [
    "CompiledDataDeserializer",
    "DependencyType",
    "ParsedAndroidData",
    "ParsedAndroidDataBuilder",
    "ParsedAndroidDataEntry",
    "RTxtWriter",
    "ResourceClassWriter",
    "Symbol",
    "SymbolOutputs",
    "SymbolTable",
    "generate_r_files",
    "java_field_name",
    "load_primary_data",
    "render_r_txt",
]
