"""
gprasm Error Hierarchy
======================

This module defines the exception hierarchy for the assembler. All
exceptions inherit from GprasmError, allowing callers to catch every
assembler-related error with a single except clause.

Exception Hierarchy
-------------------
GprasmError (base)
├── AssemblerError (assembly of a source program)
│   ├── AssemblySyntaxError - syntax or range error in source
│   ├── PolicyError - mnemonic rejected by the active whitelist
│   ├── DuplicateSymbolError - label defined more than once
│   ├── UndefinedSymbolError - reference to an undefined label
│   ├── IncludeError - included file missing, unreadable or circular
│   ├── AddressRangeError - cursor leaves the address space, output overlaps
│   └── InternalError - the two passes disagree (assembler bug)
└── WhitelistError - malformed whitelist file or unknown mnemonic in it

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class GprasmError(Exception):
    """
    Base exception for all gprasm errors.

        try:
            assembler.assemble_file("program.s")
        except GprasmError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(GprasmError):
    """
    Base exception for all errors raised while assembling a program.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            main.s:3:10: error: undefined symbol 'lop'
                jmp lop
                    ^
            hint: did you mean 'loop'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in assembly source code.

    Raised when a line does not match the grammar. Numeric literals
    wider than their slot (8-bit vs 16-bit) and register indices beyond
    the machine's register file are reported as syntax errors too, since
    they are detected while parsing.

    Examples:
        - Unknown mnemonic
        - Missing comma between operands
        - ``ldi R1, 300`` (value does not fit in 8 bits)
        - Unterminated string literal
    """
    pass


class PolicyError(AssemblerError):
    """
    Instruction rejected by the active mnemonic whitelist.

    Attributes:
        mnemonic: The offending mnemonic (lowercase)
    """

    def __init__(
        self,
        mnemonic: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        super().__init__(
            f"use of instruction '{mnemonic}' not allowed with current whitelist",
            location=location,
            source_line=source_line,
        )


class UndefinedSymbolError(AssemblerError):
    """
    Reference to an undefined label.

    Raised during the second pass when an address operand names a label
    that has no definition. Similarly-named labels are suggested to help
    catch typos.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = similar_symbols or []

        if not hint and self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateSymbolError(AssemblerError):
    """
    Label defined multiple times.

    Includes the location of the original definition when available.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{symbol}' was first defined at {original_location}"

        super().__init__(
            f"duplicate symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class IncludeError(AssemblerError):
    """
    Error including a file.

    Raised when:
    - Include file not found
    - Circular include detected
    - Permission denied reading file
    """

    def __init__(
        self,
        filename: str,
        reason: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        search_paths: Optional[list[str]] = None,
    ):
        self.included_filename = filename
        self.reason = reason
        self.search_paths = search_paths or []

        hint = None
        if self.search_paths:
            paths_str = ", ".join(self.search_paths)
            hint = f"searched in: {paths_str}"

        super().__init__(
            f"cannot include '{filename}': {reason}",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class AddressRangeError(AssemblerError):
    """
    Address layout error.

    Raised when:
    - The cursor moves past the end of the 64 KiB address space
    - An ``org`` moves the cursor back over bytes that were already emitted
    """
    pass


class InternalError(AssemblerError):
    """
    Inconsistency inside the assembler itself.

    Raised when the two passes disagree on the layout of a line. This is
    a bug in the assembler, never a problem with the source program.
    """

    def __init__(self, message: str, *args, **kwargs):
        super().__init__(f"internal error: {message}", *args, **kwargs)


# =============================================================================
# Whitelist Exceptions
# =============================================================================

class WhitelistError(GprasmError):
    """
    Invalid whitelist.

    Raised when a whitelist file is not a JSON array of strings, or names
    a mnemonic that is not part of the instruction set.
    """
    pass
