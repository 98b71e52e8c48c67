# =============================================================================
# test_opcodes.py - Instruction Table Tests
# =============================================================================
# Tests for the GPR instruction table: opcode lookup, operand shapes and
# instruction sizes.
# =============================================================================

import pytest

from gprasm.assembler.opcodes import (
    DIRECTIVES,
    MAX_REGISTERS,
    MNEMONICS,
    OPCODE_TABLE,
    Shape,
    get_instruction_info,
    is_valid_instruction,
    mnemonics_for_shape,
)


class TestShapes:
    """Test operand shape sizes."""

    @pytest.mark.parametrize("shape,size", [
        (Shape.NULLARY, 1),
        (Shape.UNARY_REG, 2),
        (Shape.UNARY_ADDR, 3),
        (Shape.BINARY_REG_IM, 3),
        (Shape.BINARY_REG_REG, 2),
        (Shape.BINARY_REG_ADDR, 4),
        (Shape.BINARY_REG_DEREF, 3),
    ])
    def test_shape_size(self, shape, size):
        assert shape.size == size

    def test_shape_str(self):
        assert str(Shape.BINARY_REG_REG) == "binary-register-register"


class TestOpcodeTable:
    """Test the opcode table contents."""

    def test_opcodes_are_unique(self):
        opcodes = [info.opcode for info in OPCODE_TABLE.values()]
        assert len(opcodes) == len(set(opcodes))

    def test_opcodes_fit_in_a_byte(self):
        assert all(0 <= info.opcode <= 0xFF for info in OPCODE_TABLE.values())

    def test_mnemonics_are_lowercase(self):
        assert all(name == name.lower() for name in OPCODE_TABLE)

    def test_every_shape_is_used(self):
        used = {info.shape for info in OPCODE_TABLE.values()}
        assert used == set(Shape)

    def test_directives_are_not_mnemonics(self):
        assert not (DIRECTIVES & MNEMONICS)

    def test_known_encodings(self):
        assert OPCODE_TABLE["nop"].opcode == 0x00
        assert OPCODE_TABLE["add"].opcode == 0x10
        assert OPCODE_TABLE["jmp"].opcode == 0x20
        assert OPCODE_TABLE["ldi"].opcode == 0x40

    def test_info_size_follows_shape(self):
        assert OPCODE_TABLE["ld"].size == 4
        assert OPCODE_TABLE["inc"].size == 2

    def test_register_limit(self):
        # Two register indices share one byte
        assert MAX_REGISTERS == 16


class TestLookup:
    """Test lookup helpers."""

    def test_lookup_is_case_insensitive(self):
        assert get_instruction_info("ADD") == get_instruction_info("add")

    def test_lookup_unknown(self):
        assert get_instruction_info("frobnicate") is None

    def test_is_valid_instruction(self):
        assert is_valid_instruction("Jmp")
        assert not is_valid_instruction("db")

    def test_mnemonics_for_shape(self):
        assert mnemonics_for_shape(Shape.BINARY_REG_DEREF) == ["ldr", "str"]
        assert "add" in mnemonics_for_shape(Shape.BINARY_REG_REG)
