"""
Output generation: binary image, symbol file and listing.

The binary image is a flat memory image starting at address 0. Every
chunk is copied to its address, gaps between chunks are zero-filled and
the image ends with the highest byte written (``ds`` reservations count
as written). Two chunks may not claim the same byte.

Symbol files come in two formats:

    json (default)          text
    --------------          ----
    {                       # Symbol table
      "loop": 4,            # Generated by gprasm
      "start": 0            loop $0004
    }                       start $0000
"""

import json
import logging
from typing import Optional

from gprasm.errors import AddressRangeError
from gprasm.assembler.codegen import Chunk
from gprasm.assembler.layout import Layout
from gprasm.assembler.parser import Ds, Line
from gprasm.assembler.symbols import SymbolTable

logger = logging.getLogger(__name__)

SYMBOL_FORMATS = ("json", "text")

# Bytes shown per listing row
LISTING_BYTES_PER_ROW = 4


# =============================================================================
# Binary Image
# =============================================================================

def build_image(chunks: list[Chunk]) -> bytes:
    """
    Place chunks into a zero-filled memory image.

    Raises:
        AddressRangeError: If a chunk overlaps bytes emitted by an earlier line
    """
    if not chunks:
        return b""

    # Sort by address, keeping source order for chunks that start together
    ordered = sorted(enumerate(chunks), key=lambda item: (item[1].address, item[0]))
    furthest: Optional[tuple[int, Chunk]] = None

    for index, chunk in ordered:
        if furthest is not None and chunk.address < furthest[1].end:
            earlier, later = sorted([(index, chunk), furthest], key=lambda item: item[0])
            raise AddressRangeError(
                f"output at 0x{later[1].address:04X} overlaps bytes already emitted "
                f"by line {earlier[1].line.location.line} "
                f"({earlier[1].line.location.filename})",
                later[1].line.location,
                hint="check the org directives that move the location counter backwards",
                source_line=later[1].line.source,
            )
        if furthest is None or chunk.end > furthest[1].end:
            furthest = (index, chunk)

    image = bytearray(furthest[1].end)
    for chunk in chunks:
        image[chunk.address:chunk.end] = chunk.data

    logger.debug("Built image of %d bytes from %d chunks", len(image), len(chunks))
    return bytes(image)


# =============================================================================
# Symbol File
# =============================================================================

def format_symbols(symbols: SymbolTable, fmt: str = "json") -> str:
    """
    Serialize the symbol table.

    Args:
        symbols: Symbol table from the first pass
        fmt: "json" or "text"

    Returns:
        Symbol file contents, ordered by name
    """
    if fmt == "json":
        return json.dumps(symbols.as_dict(), indent=2, sort_keys=True) + "\n"

    if fmt == "text":
        lines = ["# Symbol table", "# Generated by gprasm"]
        for name, address in symbols.as_dict().items():
            lines.append(f"{name} ${address:04X}")
        return "\n".join(lines) + "\n"

    raise ValueError(f"unknown symbol format '{fmt}' (expected one of: {', '.join(SYMBOL_FORMATS)})")


# =============================================================================
# Listing
# =============================================================================

def format_listing(chunks: list[Chunk], lines: list[Line], layout: Layout) -> str:
    """
    Produce an assembly listing.

    Each row shows the address, the emitted bytes, the line number and
    the source text, followed by the symbol table.
    """
    emitted = {id(chunk.line): chunk.data for chunk in chunks}

    rows = [
        "GPR Assembler Listing",
        "=" * 60,
        "",
        "Addr   Code          Line  Source",
        "-" * 60,
    ]

    for line, address in zip(lines, layout.addresses):
        data = emitted.get(id(line), b"")
        first = data[:LISTING_BYTES_PER_ROW]
        rows.append(
            f"${address:04X}  {_hex(first):12s}  {line.location.line:4d}  {line.source.strip()}"
        )

        if isinstance(line.instruction, Ds):
            if len(data) > LISTING_BYTES_PER_ROW:
                rows.append(f"{'':7s}...")
            continue

        for offset in range(LISTING_BYTES_PER_ROW, len(data), LISTING_BYTES_PER_ROW):
            chunk = data[offset:offset + LISTING_BYTES_PER_ROW]
            rows.append(f"${address + offset:04X}  {_hex(chunk)}")

    rows.append("")
    rows.append("Symbol Table")
    rows.append("-" * 30)
    for name, address in layout.symbols.as_dict().items():
        rows.append(f"{name:20s} = ${address:04X}")

    return "\n".join(rows) + "\n"


def _hex(data: bytes) -> str:
    return " ".join(f"{b:02X}" for b in data)
