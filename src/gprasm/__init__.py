"""
gprasm - Two-Pass Assembler for a Small GPR Machine
===================================================

This package translates assembly source for a small general-purpose-register
machine (sixteen 8-bit registers R0-R15, 16-bit address space) into a flat
binary memory image, with an optional symbol file and listing.

Main Components
---------------
- **assembler**: lexer, parser, include resolver, whitelist policy,
  the two assembly passes and output generation
- **config**: assembler settings and environment overrides
- **cli**: the ``gprasm`` command-line tool

Quick Start
-----------
Assemble a program:
    >>> from gprasm.assembler import Assembler
    >>> asm = Assembler()
    >>> code = asm.assemble_file("program.s")
    >>> asm.write_binary("program.bin")
    >>> asm.write_symbols("program.sym")

Or use the command-line tool:
    $ gprasm program.s -o program.bin -s program.sym

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from gprasm.assembler import Assembler, assemble, assemble_file
from gprasm.config import AssemblerConfig
from gprasm.errors import (
    GprasmError,
    SourceLocation,
    AssemblerError,
    AssemblySyntaxError,
    PolicyError,
    UndefinedSymbolError,
    DuplicateSymbolError,
    IncludeError,
    AddressRangeError,
    InternalError,
    WhitelistError,
)

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler",
    "AssemblerConfig",
    "assemble",
    "assemble_file",
    # Exception hierarchy
    "GprasmError",
    "SourceLocation",
    "AssemblerError",
    "AssemblySyntaxError",
    "PolicyError",
    "UndefinedSymbolError",
    "DuplicateSymbolError",
    "IncludeError",
    "AddressRangeError",
    "InternalError",
    "WhitelistError",
]
