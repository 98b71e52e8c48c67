"""
GPR Code Generator (Second Pass)
================================

This module turns a laid-out line stream into machine code. It re-walks
the same lines as the first pass, with the same location counter rules,
and emits one ``Chunk`` (address plus bytes) per line that produces
output.

Address Resolution
------------------
Address operands are either literal 16-bit numbers or label references.
Label references are qualified with the same local label scope as in the
first pass and looked up in the frozen symbol table. ``hi(addr)`` and
``lo(addr)`` select the high and low byte of the resolved address.

Encoding
--------
Addresses are emitted big-endian, so ``hi()`` is always the first byte of
an encoded address and ``lo()`` the second::

    ldi R1, hi(msg)     ; 40 01 12
    ldi R2, lo(msg)     ; 40 02 34
    ld  R0, msg         ; 50 00 12 34      (msg = 0x1234)

Register pairs share one byte, four bits each::

    add R0, R1          ; 10 01
    ldr R4, [R2:R3]     ; 60 04 23

Consistency
-----------
After each line the generator checks that it emitted exactly the number
of bytes the first pass reserved, at the address the first pass
recorded. A mismatch is an internal error, never silently corrected.
"""

from dataclasses import dataclass
import logging
from typing import Optional

from gprasm.errors import InternalError
from gprasm.assembler.layout import Layout, advance
from gprasm.assembler.parser import (
    Address,
    AddressByte,
    BinaryRegAddr,
    BinaryRegDeref,
    BinaryRegIm,
    BinaryRegReg,
    Db,
    Ds,
    Immediate,
    LabelRef,
    Line,
    Nibble,
    Nullary,
    Org,
    UnaryAddr,
    UnaryReg,
    Value,
)
from gprasm.assembler.symbols import LabelScope

logger = logging.getLogger(__name__)


# =============================================================================
# Output Chunk
# =============================================================================

@dataclass(frozen=True)
class Chunk:
    """
    Bytes emitted for one source line.

    Attributes:
        address: Address of the first byte
        data: Encoded bytes
        line: Source line that produced them
    """
    address: int
    data: bytes
    line: Line

    @property
    def end(self) -> int:
        return self.address + len(self.data)


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Encodes a laid-out line stream.

    Usage:
        result = layout(lines)
        chunks = CodeGenerator(result).encode(lines)
    """

    def __init__(self, layout: Layout):
        self._layout = layout
        self._symbols = layout.symbols
        self._scope = LabelScope()
        self._code = bytearray()
        self._line: Optional[Line] = None

    def encode(self, lines: list[Line]) -> list[Chunk]:
        """
        Encode every line.

        Returns:
            Chunks in line order (lines without output produce none)

        Raises:
            UndefinedSymbolError: For a reference to an undefined label
            InternalError: If the two passes disagree on layout
        """
        if len(lines) != len(self._layout.addresses):
            raise InternalError(
                f"layout covers {len(self._layout.addresses)} lines, "
                f"encoder received {len(lines)}"
            )

        self._scope = LabelScope()
        chunks: list[Chunk] = []
        cursor = 0

        for line, expected in zip(lines, self._layout.addresses):
            if line.label is not None:
                self._scope.enter(line.label)

            start, cursor = advance(cursor, line)
            data = self._encode_line(line)

            if start != expected or len(data) != cursor - start:
                raise InternalError(
                    f"pass 2 emitted {len(data)} bytes at 0x{start:04X}, "
                    f"pass 1 reserved {cursor - start} bytes at 0x{expected:04X}",
                    line.location,
                    source_line=line.source,
                )

            if data:
                chunks.append(Chunk(start, data, line))

        logger.debug("Pass 2 complete: %d chunks", len(chunks))
        return chunks

    # =========================================================================
    # Line Encoding
    # =========================================================================

    def _encode_line(self, line: Line) -> bytes:
        self._line = line
        self._code = bytearray()
        instruction = line.instruction

        if instruction is None or isinstance(instruction, Org):
            pass

        elif isinstance(instruction, Db):
            for item in instruction.items:
                self._code.extend(item.to_bytes())

        elif isinstance(instruction, Ds):
            self._code.extend(bytes(instruction.length))

        elif isinstance(instruction, Nullary):
            self._emit_byte(instruction.opcode)

        elif isinstance(instruction, UnaryReg):
            self._emit_byte(instruction.opcode)
            self._emit_byte(instruction.register.index)

        elif isinstance(instruction, UnaryAddr):
            self._emit_byte(instruction.opcode)
            self._emit_word(self._resolve_address(instruction.address))

        elif isinstance(instruction, BinaryRegIm):
            self._emit_byte(instruction.opcode)
            self._emit_byte(instruction.register.index)
            self._emit_byte(self._resolve_value(instruction.value))

        elif isinstance(instruction, BinaryRegReg):
            self._emit_byte(instruction.opcode)
            self._emit_pair(instruction.destination.index, instruction.source.index)

        elif isinstance(instruction, BinaryRegAddr):
            self._emit_byte(instruction.opcode)
            self._emit_byte(instruction.register.index)
            self._emit_word(self._resolve_address(instruction.address))

        elif isinstance(instruction, BinaryRegDeref):
            self._emit_byte(instruction.opcode)
            self._emit_byte(instruction.register.index)
            self._emit_pair(instruction.high.index, instruction.low.index)

        else:
            raise InternalError(
                f"cannot encode {type(instruction).__name__}",
                line.location,
                source_line=line.source,
            )

        return bytes(self._code)

    # =========================================================================
    # Operand Resolution
    # =========================================================================

    def _resolve_address(self, address: Address) -> int:
        if isinstance(address, Immediate):
            return address.value

        elif isinstance(address, LabelRef):
            name = self._scope.qualify(address.name)
            return self._symbols.resolve(
                name,
                location=address.location or self._line.location,
                source_line=self._line.source,
            )

        else:
            raise InternalError(
                f"cannot resolve {type(address).__name__} as an address",
                self._line.location,
                source_line=self._line.source,
            )

    def _resolve_value(self, value: Value) -> int:
        if isinstance(value, AddressByte):
            address = self._resolve_address(value.address)
            if value.nibble is Nibble.HIGH:
                return (address >> 8) & 0xFF
            return address & 0xFF
        return value.value

    # =========================================================================
    # Output Helpers
    # =========================================================================

    def _emit_byte(self, value: int) -> None:
        """Emit a single byte to the output."""
        self._code.append(value & 0xFF)

    def _emit_word(self, value: int) -> None:
        """Emit a 16-bit word to the output (big-endian)."""
        self._code.append((value >> 8) & 0xFF)
        self._code.append(value & 0xFF)

    def _emit_pair(self, high: int, low: int) -> None:
        """Emit two register indices packed into one byte."""
        self._code.append(((high & 0x0F) << 4) | (low & 0x0F))


def encode(lines: list[Line], layout: Layout) -> list[Chunk]:
    """Encode a laid-out line stream into chunks."""
    return CodeGenerator(layout).encode(lines)
