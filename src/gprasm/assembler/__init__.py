"""
Two-Pass Assembler for the GPR Machine
======================================

This module provides an assembler for a small general-purpose-register
machine with sixteen 8-bit registers and a 16-bit address space. It
converts assembly source text into a flat binary memory image, with an
optional symbol file and listing.

Main Components
---------------
- **Assembler**: Main assembler class that orchestrates the assembly process
- **Lexer**: Tokenizes assembly source into tokens
- **Parser**: Parses tokens into lines (label, instruction, or both)
- **IncludeResolver**: Splices included files into the line stream
- **layout**: First pass, assigns addresses and builds the symbol table
- **CodeGenerator**: Second pass, encodes lines into byte chunks

Assembly Process
----------------
1. **Parsing (Lexer + Parser + IncludeResolver)**:
   - Tokenize and parse every file into lines
   - Replace include directives with the lines of the included file

2. **Policy (whitelist)** (optional):
   - Reject mnemonics that are not allowed

3. **Code Generation** (two-pass):
   - Pass 1: Address calculation, symbol collection
   - Pass 2: Encode instructions, resolve forward references

4. **Output**:
   - Zero-filled flat image starting at address 0
   - Symbol file (JSON or text) and listing

Example Usage
-------------
>>> from gprasm.assembler import assemble
>>> image, symbols = assemble('''
... start:
...     ldi R1, 0x05
...     inc R1
...     jmp start
... ''')
>>> image.hex()
'4001053001200000'
>>> import json
>>> json.loads(symbols)
{'start': 0}
"""

from gprasm.assembler.assembler import Assembler, assemble, assemble_file
from gprasm.assembler.lexer import Lexer, Token, TokenType
from gprasm.assembler.parser import (
    Parser,
    Line,
    Instruction,
    Operation,
    parse_source,
    parse_line,
)
from gprasm.assembler.includes import IncludeResolver, expand_includes
from gprasm.assembler.whitelist import check_whitelist, load_whitelist, validate_whitelist
from gprasm.assembler.symbols import SymbolTable, LabelScope
from gprasm.assembler.layout import Layout, layout
from gprasm.assembler.codegen import Chunk, CodeGenerator, encode
from gprasm.assembler.output import build_image, format_listing, format_symbols
from gprasm.assembler.opcodes import (
    Shape,
    InstructionInfo,
    OPCODE_TABLE,
    MNEMONICS,
    DIRECTIVES,
)

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    # Parser
    "Parser",
    "Line",
    "Instruction",
    "Operation",
    "parse_source",
    "parse_line",
    # Includes and policy
    "IncludeResolver",
    "expand_includes",
    "check_whitelist",
    "load_whitelist",
    "validate_whitelist",
    # Passes
    "SymbolTable",
    "LabelScope",
    "Layout",
    "layout",
    "Chunk",
    "CodeGenerator",
    "encode",
    # Output
    "build_image",
    "format_listing",
    "format_symbols",
    # Opcodes
    "Shape",
    "InstructionInfo",
    "OPCODE_TABLE",
    "MNEMONICS",
    "DIRECTIVES",
]
