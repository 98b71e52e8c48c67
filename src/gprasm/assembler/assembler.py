"""
GPR Assembler - Main Interface
==============================

This module provides the main Assembler class, which is the primary
interface for assembling GPR source code. It runs the pipeline

    source -> includes -> whitelist -> layout (pass 1) -> encode (pass 2) -> image

and keeps the results of the last run for the output methods.

Example Usage
-------------
>>> from gprasm.assembler import Assembler
>>>
>>> asm = Assembler()
>>> asm.assemble_string('''
... start:
...     ldi R1, 0x05
...     inc R1
...     jmp start
... ''')
b'@\\x01\\x050\\x01 \\x00\\x00'
>>> asm.get_symbols()
{'start': 0}
>>> asm.write_binary("out.bin")

Command-Line Usage
------------------
    $ gprasm program.s -o program.bin -s program.sym -l program.lst
"""

from pathlib import Path
import logging
from typing import Optional

from gprasm.config import AssemblerConfig
from gprasm.assembler.codegen import Chunk, encode
from gprasm.assembler.includes import IncludeResolver
from gprasm.assembler.layout import Layout, layout
from gprasm.assembler.output import build_image, format_listing, format_symbols
from gprasm.assembler.parser import Line
from gprasm.assembler.symbols import SymbolTable
from gprasm.assembler.whitelist import check_whitelist, validate_whitelist

logger = logging.getLogger(__name__)


class Assembler:
    """
    Main GPR assembler class.

    Each call to ``assemble_string`` or ``assemble_file`` starts from a
    clean state; assembling the same source twice gives identical output.

    Attributes:
        config: Settings for the run (include paths, whitelist, registers)
        verbose: If True, print progress messages
    """

    def __init__(self, config: Optional[AssemblerConfig] = None, verbose: bool = False):
        """
        Initialize the assembler.

        Args:
            config: Assembler settings (defaults if omitted)
            verbose: Print progress messages
        """
        self.config = config or AssemblerConfig()
        self._verbose = verbose
        self._reset()

    def _reset(self) -> None:
        self._lines: list[Line] = []
        self._layout: Optional[Layout] = None
        self._chunks: list[Chunk] = []
        self._image = b""

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_string(self, source: str, filename: str = "<input>") -> bytes:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages and relative includes

        Returns:
            The flat binary image

        Raises:
            AssemblerError: If assembly fails
        """
        self._reset()

        if self._verbose:
            print(f"Assembling {filename}...")

        resolver = IncludeResolver(self.config.include_paths, self.config.register_count)
        lines = resolver.expand(source, filename)
        logger.debug("Expanded %s into %d lines", filename, len(lines))

        check_whitelist(lines, self.config.whitelist)

        program_layout = layout(lines)
        chunks = encode(lines, program_layout)
        image = build_image(chunks)

        self._lines = lines
        self._layout = program_layout
        self._chunks = chunks
        self._image = image

        if self._verbose:
            print(f"Generated {len(image)} bytes, {len(program_layout.symbols)} symbols")

        return image

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble source code from a file.

        Returns:
            The flat binary image

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        source = filepath.read_text(encoding="utf-8")
        return self.assemble_string(source, str(filepath))

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_code(self) -> bytes:
        """Return the binary image of the last run."""
        return self._image

    def get_symbols(self) -> dict[str, int]:
        """
        Get the symbol table.

        Returns:
            Dictionary mapping qualified label names to addresses
        """
        if self._layout is None:
            return {}
        return self._layout.symbols.as_dict()

    def get_symbol_file(self, fmt: Optional[str] = None) -> str:
        """Return the symbol file text in the given (or configured) format."""
        if self._layout is None:
            return format_symbols(SymbolTable(), fmt or self.config.symbol_format)
        return format_symbols(self._layout.symbols, fmt or self.config.symbol_format)

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            Assembly listing with addresses, code bytes, and source
        """
        if self._layout is None:
            return ""
        return format_listing(self._chunks, self._lines, self._layout)

    def write_binary(self, filepath: str | Path) -> None:
        """Write the binary image."""
        Path(filepath).write_bytes(self._image)

        if self._verbose:
            print(f"Wrote {len(self._image)} bytes to {filepath}")

    def write_symbols(self, filepath: str | Path, fmt: Optional[str] = None) -> None:
        """
        Write symbol table file.

        Args:
            filepath: Output file path
            fmt: "json" or "text" (defaults to the configured format)
        """
        Path(filepath).write_text(self.get_symbol_file(fmt), encoding="utf-8")

        if self._verbose:
            print(f"Wrote symbols to {filepath}")

    def write_listing(self, filepath: str | Path) -> None:
        """Write assembly listing file."""
        Path(filepath).write_text(self.get_listing(), encoding="utf-8")

        if self._verbose:
            print(f"Wrote listing to {filepath}")


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, whitelist: Optional[list[str]] = None) -> tuple[bytes, str]:
    """
    Assemble source code into an image and a JSON symbol file.

    Args:
        source: Assembly source code
        whitelist: Allowed mnemonics, or None to allow all

    Returns:
        (binary image, symbol file text)

    Raises:
        AssemblerError: If assembly fails
        WhitelistError: If the whitelist names an unknown mnemonic
    """
    allowed = validate_whitelist(whitelist) if whitelist is not None else None
    asm = Assembler(AssemblerConfig(whitelist=allowed))
    image = asm.assemble_string(source)
    return image, asm.get_symbol_file("json")


def assemble_file(filepath: str | Path, config: Optional[AssemblerConfig] = None) -> bytes:
    """
    Convenience function to assemble a file.

    Returns:
        The flat binary image

    Raises:
        AssemblerError: If assembly fails
    """
    asm = Assembler(config)
    return asm.assemble_file(filepath)
