"""
GPR Machine Instruction Set Definition
======================================

This module defines the instruction set of the target machine: a small
8-bit general-purpose-register CPU with sixteen registers (R0-R15) and a
16-bit address space. Every mnemonic maps to exactly one opcode byte and
one operand shape; the shape alone decides how operands are parsed, how
many bytes the instruction occupies and how they are encoded.

Multi-byte addresses are stored big-endian (most significant byte first).

Operand Shapes
--------------

| Shape                     | Syntax            | Size | Encoding                 |
|---------------------------|-------------------|------|--------------------------|
| NULLARY                   | nop               | 1    | op                       |
| UNARY_REG                 | inc R1            | 2    | op, r                    |
| UNARY_ADDR                | jmp label         | 3    | op, hi, lo               |
| BINARY_REG_IM             | ldi R1, 0x05      | 3    | op, r, imm               |
| BINARY_REG_REG            | add R0, R1        | 2    | op, rd << 4 | rs         |
| BINARY_REG_ADDR           | ld R2, buffer     | 4    | op, r, hi, lo            |
| BINARY_REG_DEREF          | ldr R0, [R2:R3]   | 3    | op, r, rh << 4 | rl      |

Register-register operands share a single byte, four bits per register,
which is why the register file is limited to sixteen entries.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# =============================================================================
# Operand Shape Enumeration
# =============================================================================

class Shape(Enum):
    """
    Operand shapes of the instruction set.

    The value of each member is the encoded size in bytes of an
    instruction with that shape, opcode included.
    """
    NULLARY = ("nullary", 1)
    UNARY_REG = ("unary-register", 2)
    UNARY_ADDR = ("unary-address", 3)
    BINARY_REG_IM = ("binary-register-immediate", 3)
    BINARY_REG_REG = ("binary-register-register", 2)
    BINARY_REG_ADDR = ("binary-register-address", 4)
    BINARY_REG_DEREF = ("binary-register-deref", 3)

    def __init__(self, label: str, size: int):
        self.label = label
        self.size = size

    def __str__(self) -> str:
        """Return human-readable name for error messages."""
        return self.label


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    Encoding information for one mnemonic.

    Attributes:
        opcode: The opcode byte
        shape: Operand shape, which fixes syntax, size and encoding
    """
    opcode: int
    shape: Shape

    @property
    def size(self) -> int:
        """Total instruction size in bytes."""
        return self.shape.size

    def __repr__(self) -> str:
        return f"InstructionInfo(opcode=0x{self.opcode:02X}, shape={self.shape.name})"


# =============================================================================
# Opcode Table
# =============================================================================
# Master table of all instructions, keyed by lowercase mnemonic.
# Opcodes are grouped by shape: the high nibble identifies the group.
# =============================================================================

OPCODE_TABLE: dict[str, InstructionInfo] = {
    # =========================================================================
    # NULLARY (no operand)
    # =========================================================================
    "nop": InstructionInfo(0x00, Shape.NULLARY),    # No operation
    "hlt": InstructionInfo(0x01, Shape.NULLARY),    # Halt the processor
    "ret": InstructionInfo(0x02, Shape.NULLARY),    # Return from subroutine
    "clc": InstructionInfo(0x03, Shape.NULLARY),    # Clear carry flag
    "sec": InstructionInfo(0x04, Shape.NULLARY),    # Set carry flag
    "ei": InstructionInfo(0x05, Shape.NULLARY),     # Enable interrupts
    "di": InstructionInfo(0x06, Shape.NULLARY),     # Disable interrupts
    "reti": InstructionInfo(0x07, Shape.NULLARY),   # Return from interrupt

    # =========================================================================
    # BINARY REGISTER-REGISTER (rd <- rd op rs)
    # =========================================================================
    "add": InstructionInfo(0x10, Shape.BINARY_REG_REG),
    "sub": InstructionInfo(0x11, Shape.BINARY_REG_REG),
    "and": InstructionInfo(0x12, Shape.BINARY_REG_REG),
    "or": InstructionInfo(0x13, Shape.BINARY_REG_REG),
    "xor": InstructionInfo(0x14, Shape.BINARY_REG_REG),
    "mov": InstructionInfo(0x15, Shape.BINARY_REG_REG),   # rd <- rs
    "cmp": InstructionInfo(0x16, Shape.BINARY_REG_REG),   # Flags only
    "adc": InstructionInfo(0x17, Shape.BINARY_REG_REG),   # Add with carry
    "sbc": InstructionInfo(0x18, Shape.BINARY_REG_REG),   # Subtract with borrow

    # =========================================================================
    # UNARY ADDRESS (jumps and calls to a 16-bit address)
    # =========================================================================
    "jmp": InstructionInfo(0x20, Shape.UNARY_ADDR),
    "jz": InstructionInfo(0x21, Shape.UNARY_ADDR),    # Jump if zero
    "jnz": InstructionInfo(0x22, Shape.UNARY_ADDR),   # Jump if not zero
    "jc": InstructionInfo(0x23, Shape.UNARY_ADDR),    # Jump if carry
    "jnc": InstructionInfo(0x24, Shape.UNARY_ADDR),   # Jump if no carry
    "call": InstructionInfo(0x25, Shape.UNARY_ADDR),

    # =========================================================================
    # UNARY REGISTER
    # =========================================================================
    "inc": InstructionInfo(0x30, Shape.UNARY_REG),
    "dec": InstructionInfo(0x31, Shape.UNARY_REG),
    "not": InstructionInfo(0x32, Shape.UNARY_REG),
    "shl": InstructionInfo(0x33, Shape.UNARY_REG),
    "shr": InstructionInfo(0x34, Shape.UNARY_REG),
    "push": InstructionInfo(0x35, Shape.UNARY_REG),
    "pop": InstructionInfo(0x36, Shape.UNARY_REG),

    # =========================================================================
    # BINARY REGISTER-IMMEDIATE (8-bit value)
    # =========================================================================
    "ldi": InstructionInfo(0x40, Shape.BINARY_REG_IM),
    "addi": InstructionInfo(0x41, Shape.BINARY_REG_IM),
    "subi": InstructionInfo(0x42, Shape.BINARY_REG_IM),
    "andi": InstructionInfo(0x43, Shape.BINARY_REG_IM),
    "ori": InstructionInfo(0x44, Shape.BINARY_REG_IM),
    "xori": InstructionInfo(0x45, Shape.BINARY_REG_IM),
    "cmpi": InstructionInfo(0x46, Shape.BINARY_REG_IM),

    # =========================================================================
    # BINARY REGISTER-ADDRESS (memory at a 16-bit address)
    # =========================================================================
    "ld": InstructionInfo(0x50, Shape.BINARY_REG_ADDR),   # r <- [addr]
    "st": InstructionInfo(0x51, Shape.BINARY_REG_ADDR),   # [addr] <- r

    # =========================================================================
    # BINARY REGISTER-DEREF (memory through a register pair)
    # =========================================================================
    "ldr": InstructionInfo(0x60, Shape.BINARY_REG_DEREF),  # r <- [rh:rl]
    "str": InstructionInfo(0x61, Shape.BINARY_REG_DEREF),  # [rh:rl] <- r
}


# =============================================================================
# Derived Instruction Lists
# =============================================================================

MNEMONICS: frozenset[str] = frozenset(OPCODE_TABLE)

# Pseudo-instructions handled by the parser itself, never by the table
DIRECTIVES: frozenset[str] = frozenset({"db", "ds", "org", "include"})

# Largest register index plus one that fits a 4-bit register field
MAX_REGISTERS = 16


# =============================================================================
# Lookup Functions
# =============================================================================

def get_instruction_info(mnemonic: str) -> Optional[InstructionInfo]:
    """
    Look up the encoding of a mnemonic.

    Args:
        mnemonic: Instruction mnemonic (case-insensitive)

    Returns:
        InstructionInfo, or None if the mnemonic is unknown
    """
    return OPCODE_TABLE.get(mnemonic.lower())


def is_valid_instruction(mnemonic: str) -> bool:
    """Check whether a mnemonic is part of the instruction set."""
    return mnemonic.lower() in OPCODE_TABLE


def mnemonics_for_shape(shape: Shape) -> list[str]:
    """Return the sorted mnemonics that use the given operand shape."""
    return sorted(name for name, info in OPCODE_TABLE.items() if info.shape is shape)
