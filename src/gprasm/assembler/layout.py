"""
First pass: address layout and symbol definition.

Walks the expanded line stream with a location counter starting at 0:

| Line        | Effect on the counter       |
|-------------|-----------------------------|
| ``label:``  | label defined at counter    |
| ``org n``   | counter = n                 |
| ``ds n``    | counter += n                |
| ``db ...``  | counter += bytes listed     |
| instruction | counter += shape size       |

A label on an ``org`` line is defined before the ``org`` takes effect.
The counter may reach 0x10000 (the byte just past the address space) but
not go beyond it.
"""

from dataclasses import dataclass, field
import logging

from gprasm.errors import AddressRangeError, InternalError
from gprasm.assembler.parser import Include, Line, Org
from gprasm.assembler.symbols import LabelScope, SymbolTable

logger = logging.getLogger(__name__)

ADDRESS_SPACE = 0x10000


@dataclass
class Layout:
    """
    Result of the first pass.

    Attributes:
        symbols: Frozen table of qualified label names
        addresses: Start address of each line, parallel to the line stream
        end: Counter value after the last line
    """
    symbols: SymbolTable
    addresses: list[int] = field(default_factory=list)
    end: int = 0


def advance(cursor: int, line: Line) -> tuple[int, int]:
    """
    Apply one line to the location counter.

    Shared by both passes so they cannot drift apart.

    Returns:
        (start address of the line's bytes, counter after the line)

    Raises:
        AddressRangeError: If the line runs past the end of the address space
    """
    instruction = line.instruction
    if instruction is None:
        return cursor, cursor

    if isinstance(instruction, Include):
        raise InternalError(
            "include directive was not expanded",
            line.location,
            source_line=line.source,
        )

    if isinstance(instruction, Org):
        return instruction.address, instruction.address

    end = cursor + instruction.size
    if end > ADDRESS_SPACE:
        raise AddressRangeError(
            f"address 0x{end - 1:X} is outside the 64 KiB address space",
            line.location,
            source_line=line.source,
        )
    return cursor, end


def layout(lines: list[Line]) -> Layout:
    """
    Lay out the program and build the symbol table.

    Args:
        lines: Expanded line stream (no include directives)

    Returns:
        Layout with a frozen symbol table

    Raises:
        DuplicateSymbolError: If a qualified label is defined twice
        AddressRangeError: If the program leaves the address space
    """
    symbols = SymbolTable()
    scope = LabelScope()
    result = Layout(symbols)
    cursor = 0

    for line in lines:
        if line.label is not None:
            name = scope.enter(line.label)
            if cursor >= ADDRESS_SPACE:
                raise AddressRangeError(
                    f"label '{name}' would be defined past the end of the address space",
                    line.location,
                    source_line=line.source,
                )
            symbols.define(name, cursor, line.location, line.source)

        start, cursor = advance(cursor, line)
        result.addresses.append(start)

    symbols.freeze()
    result.end = cursor

    logger.debug("Pass 1 complete: %d lines, %d symbols", len(lines), len(symbols))
    return result
