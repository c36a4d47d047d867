"""Plain-text symbol table (R.txt) output."""

from pathlib import Path

from reslib.contexts.symbols.logger import log_sink_written
from reslib.contexts.symbols.symbol_table import SymbolTable
from reslib.utils.files import write_atomically


def render_r_txt(table: SymbolTable) -> str:
    """Render one "int <type> <name> <id>" line per symbol."""
    return "".join(
        f"int {symbol.resource_type.value} {symbol.name} {symbol.id}\n" for symbol in table
    )


class RTxtWriter:
    """Writes the R.txt for a symbol table; the file appears only once fully rendered."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def write(self, table: SymbolTable) -> Path:
        write_atomically(self.path, render_r_txt(table))
        log_sink_written("R.txt", self.path)
        return self.path
