# =============================================================================
# test_assembler.py - Full Assembler Integration Tests
# =============================================================================
# End-to-end tests for the complete assembler pipeline, from source text to
# binary image, symbol file and listing.
#
# Test coverage includes:
#   - Complete program assembly
#   - Image layout: gaps, overlaps, reservations
#   - Symbol file formats
#   - Whitelist policy through the facade
#   - Include files and configuration
# =============================================================================

import json
import pytest
from pathlib import Path

from gprasm.assembler import Assembler, assemble, assemble_file
from gprasm.assembler.output import build_image, format_symbols
from gprasm.assembler.symbols import SymbolTable
from gprasm.config import AssemblerConfig
from gprasm.errors import (
    AddressRangeError,
    AssemblySyntaxError,
    DuplicateSymbolError,
    PolicyError,
    UndefinedSymbolError,
    WhitelistError,
)


# =============================================================================
# Full Assembly Pipeline Tests
# =============================================================================

class TestFullPipeline:
    """Test the complete assembly pipeline."""

    def test_example_program(self):
        source = """
start:
    ldi R1, 0x05
    inc R1
    jmp start
"""
        image, symfile = assemble(source)
        assert image == bytes([0x40, 0x01, 0x05, 0x30, 0x01, 0x20, 0x00, 0x00])
        assert json.loads(symfile) == {"start": 0}

    def test_add(self):
        image, _ = assemble("add R0, R1")
        assert image == bytes([0x10, 0x01])

    def test_empty_program(self):
        image, symfile = assemble("; nothing\n")
        assert image == b""
        assert json.loads(symfile) == {}

    def test_labels_only(self):
        image, symfile = assemble("org 0\nA:\norg 0x100\nB:\norg 0x40\nC:")
        assert image == b""
        assert json.loads(symfile) == {"A": 0, "B": 0x100, "C": 0x40}

    def test_local_labels(self):
        image, symfile = assemble("First:\n.loop: jmp .loop\nSecond:\n.loop: jmp .loop")
        assert image == bytes([0x20, 0x00, 0x00, 0x20, 0x00, 0x03])
        assert json.loads(symfile)["Second.loop"] == 3

    def test_local_label_skips_lowercase_scope(self):
        image, symfile = assemble("Main:\n.loop: nop\nhelper: nop\njmp .loop")
        assert image == bytes([0x00, 0x00, 0x20, 0x00, 0x00])
        assert json.loads(symfile) == {"Main": 0, "Main.loop": 0, "helper": 1}

    def test_string_data(self):
        image, _ = assemble('msg: db "Hi", 0\nend:')
        assert image == b"Hi\x00"

    def test_assembling_twice_is_identical(self):
        source = "start: ldi R1, lo(data)\nldi R2, hi(data)\njmp start\ndata: db 1, 2, 3"
        first = assemble(source)
        second = assemble(source)
        assert first == second

    def test_same_assembler_resets_between_runs(self):
        asm = Assembler()
        asm.assemble_string("a: nop")
        asm.assemble_string("b: hlt")
        assert asm.get_symbols() == {"b": 0}
        assert asm.get_code() == b"\x01"


# =============================================================================
# Image Layout Tests
# =============================================================================

class TestImage:
    """Test building the flat binary image."""

    def test_image_starts_at_zero(self):
        image, _ = assemble("org 4\ndb 1")
        assert image == bytes([0, 0, 0, 0, 1])

    def test_gaps_are_zero_filled(self):
        image, _ = assemble("nop\norg 3\nhlt")
        assert image == bytes([0x00, 0x00, 0x00, 0x01])

    def test_ds_counts_as_written(self):
        image, symfile = assemble("org 0x10\nbuf:\nds 1")
        assert len(image) == 0x11
        assert image == bytes(0x11)
        assert json.loads(symfile) == {"buf": 0x10}

    def test_org_backwards_into_free_space(self):
        image, _ = assemble("org 4\ndb 0xEE\norg 0\ndb 0xAA")
        assert image == bytes([0xAA, 0, 0, 0, 0xEE])

    def test_overlap_is_an_error(self):
        with pytest.raises(AddressRangeError, match="overlaps bytes already emitted by line 3") as exc_info:
            assemble("org 0x10\nnop\nnop\norg 0x11\nnop")
        assert exc_info.value.location.line == 5

    def test_build_image_without_chunks(self):
        assert build_image([]) == b""


# =============================================================================
# Error Reporting Tests
# =============================================================================

class TestErrors:
    """Test errors surfacing through the facade."""

    def test_syntax_error(self):
        with pytest.raises(AssemblySyntaxError):
            assemble("ldi R1, 256")

    def test_undefined_symbol(self):
        with pytest.raises(UndefinedSymbolError, match="undefined symbol 'nowhere'"):
            assemble("jmp nowhere")

    def test_duplicate_label(self):
        with pytest.raises(DuplicateSymbolError):
            assemble("loop: nop\nloop: nop")

    def test_whitelist_rejects(self):
        with pytest.raises(PolicyError) as exc_info:
            assemble("add R0, R1\nsub R0, R1", whitelist=["add"])
        assert exc_info.value.mnemonic == "sub"

    def test_whitelist_allows(self):
        image, _ = assemble("add R0, R1\nsub R0, R1", whitelist=["add", "sub"])
        assert image == bytes([0x10, 0x01, 0x11, 0x01])

    def test_whitelist_rejects_mov(self):
        with pytest.raises(PolicyError, match="'mov'"):
            assemble("add R0, R1\nmov R0, R1", whitelist=["add", "sub"])

    def test_unknown_whitelist_instruction(self):
        with pytest.raises(WhitelistError):
            assemble("nop", whitelist=["nop", "teleport"])

    def test_policy_runs_before_layout(self):
        # The undefined label would fail in pass 2; the policy fails first
        with pytest.raises(PolicyError):
            assemble("jmp nowhere", whitelist=["nop"])


# =============================================================================
# Output File Tests
# =============================================================================

class TestOutputs:
    """Test symbol files, listings and written files."""

    def test_symbol_file_json_is_sorted(self):
        _, symfile = assemble("zeta: nop\nalpha: nop")
        assert list(json.loads(symfile)) == ["alpha", "zeta"]

    def test_symbol_file_text(self):
        asm = Assembler()
        asm.assemble_string("start: nop\nend: hlt")
        text = asm.get_symbol_file("text")
        assert text.splitlines() == [
            "# Symbol table",
            "# Generated by gprasm",
            "end $0001",
            "start $0000",
        ]

    def test_symbol_format_from_config(self):
        asm = Assembler(AssemblerConfig(symbol_format="text"))
        asm.assemble_string("a: nop")
        assert asm.get_symbol_file().startswith("# Symbol table")

    def test_unknown_symbol_format(self):
        with pytest.raises(ValueError):
            format_symbols(SymbolTable(), "yaml")

    def test_listing(self):
        asm = Assembler()
        asm.assemble_string('start: ldi R1, 5\n  db "hello"\nend:')
        listing = asm.get_listing()
        assert "$0000  40 01 05" + " " * 9 + "1  start: ldi R1, 5" in listing
        assert '$0003  68 65 6C 6C' + " " * 6 + '2  db "hello"' in listing
        assert "$0007  6F" in listing
        assert "end".ljust(20) + " = $0008" in listing

    def test_write_files(self, tmp_path):
        asm = Assembler()
        asm.assemble_string("start: nop\njmp start")
        asm.write_binary(tmp_path / "out.bin")
        asm.write_symbols(tmp_path / "out.sym")
        asm.write_listing(tmp_path / "out.lst")

        assert (tmp_path / "out.bin").read_bytes() == bytes([0x00, 0x20, 0x00, 0x00])
        assert json.loads((tmp_path / "out.sym").read_text()) == {"start": 0}
        assert "Symbol Table" in (tmp_path / "out.lst").read_text()


# =============================================================================
# Files and Configuration Tests
# =============================================================================

class TestFiles:
    """Test assembling files with includes and configuration."""

    def test_assemble_file_with_include(self, tmp_path):
        (tmp_path / "lib.s").write_text("print: ret\n")
        main = tmp_path / "main.s"
        main.write_text('call print\nhlt\ninclude "lib.s"\n')

        image = assemble_file(main)
        assert image == bytes([0x25, 0x00, 0x04, 0x01, 0x02])

    def test_include_path_from_config(self, tmp_path):
        libdir = tmp_path / "lib"
        libdir.mkdir()
        (libdir / "consts.s").write_text("org 0x80\nbuffer:\norg 0\n")
        main = tmp_path / "main.s"
        main.write_text('include "consts.s"\nst R1, buffer\n')

        asm = Assembler(AssemblerConfig(include_paths=[libdir]))
        assert asm.assemble_file(main) == bytes([0x51, 0x01, 0x00, 0x80])

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            assemble_file(tmp_path / "missing.s")

    def test_register_count_from_config(self):
        asm = Assembler(AssemblerConfig(register_count=8))
        with pytest.raises(AssemblySyntaxError, match="between R0 and R7"):
            asm.assemble_string("inc R8")

    def test_config_rejects_too_many_registers(self):
        with pytest.raises(ValueError):
            AssemblerConfig(register_count=17)

    def test_config_from_env(self, tmp_path, monkeypatch):
        whitelist = tmp_path / "allowed.json"
        whitelist.write_text('["nop"]')
        monkeypatch.setenv("GPRASM_INCLUDE_PATH", f"{tmp_path}")
        monkeypatch.setenv("GPRASM_WHITELIST", str(whitelist))
        monkeypatch.setenv("GPRASM_SYMBOL_FORMAT", "text")

        config = AssemblerConfig.from_env()
        assert config.include_paths == [tmp_path]
        assert config.whitelist == frozenset({"nop"})
        assert config.symbol_format == "text"

    def test_config_rejects_unknown_env_symbol_format(self, monkeypatch):
        monkeypatch.setenv("GPRASM_SYMBOL_FORMAT", "yaml")
        with pytest.raises(ValueError, match="GPRASM_SYMBOL_FORMAT"):
            AssemblerConfig.from_env()

    def test_config_defaults(self, monkeypatch):
        for name in ("GPRASM_INCLUDE_PATH", "GPRASM_WHITELIST", "GPRASM_SYMBOL_FORMAT"):
            monkeypatch.delenv(name, raising=False)
        config = AssemblerConfig.from_env()
        assert config.register_count == 16
        assert config.include_paths == []
        assert config.whitelist is None
        assert config.symbol_format == "json"
