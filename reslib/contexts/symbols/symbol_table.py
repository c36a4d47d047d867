"""
Symbol Table

Deterministic integer IDs for every distinct (type, name) of a ParsedAndroidData.

Types keep the order in which they were first seen, names keep their first-seen
order within a type, and IDs count up from 0 across that grouped order. Both the
R.txt and the class jar sinks render the same SymbolTable instance, so their IDs
cannot disagree.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from reslib.contexts.resources.resource_types import ResourceType, java_field_name
from reslib.contexts.symbols.parsed_data import ParsedAndroidData


@dataclass(frozen=True)
class Symbol:
    resource_type: ResourceType
    name: str
    id: int


class SymbolTable:
    """
    Resource symbols for one package, grouped by type.

    Attributes:
        package: Java package for generated R classes ("" for the default package)
    """

    def __init__(self, package: str, symbols_by_type: Dict[ResourceType, List[Symbol]]):
        self.package = package
        self._symbols_by_type = symbols_by_type
        self._ids: Dict[Tuple[ResourceType, str], int] = {
            (symbol.resource_type, symbol.name): symbol.id
            for symbols in symbols_by_type.values()
            for symbol in symbols
        }

    @classmethod
    def from_parsed_data(cls, data: ParsedAndroidData, package: str) -> "SymbolTable":
        """
        Assign IDs to every resource of data.

        Names that collide once made Java-safe share the first symbol.
        """
        names_by_type: Dict[ResourceType, List[str]] = {}
        for resource_type, entries in data.resources_by_type().items():
            names: List[str] = []
            for entry in entries:
                field_name = java_field_name(entry.name)
                if field_name not in names:
                    names.append(field_name)
            names_by_type[resource_type] = names

        next_id = 0
        symbols_by_type: Dict[ResourceType, List[Symbol]] = {}
        for resource_type, names in names_by_type.items():
            symbols = []
            for name in names:
                symbols.append(Symbol(resource_type, name, next_id))
                next_id += 1
            symbols_by_type[resource_type] = symbols

        return cls(package, symbols_by_type)

    @property
    def types(self) -> List[ResourceType]:
        return list(self._symbols_by_type)

    def symbols(self, resource_type: ResourceType) -> List[Symbol]:
        return list(self._symbols_by_type.get(resource_type, []))

    def id_of(self, resource_type: ResourceType, name: str) -> Optional[int]:
        return self._ids.get((resource_type, java_field_name(name)))

    def __iter__(self) -> Iterator[Symbol]:
        for symbols in self._symbols_by_type.values():
            yield from symbols

    def __len__(self) -> int:
        return len(self._ids)
