"""
GPR Assembly Language Lexer
===========================

This module implements a lexer (tokenizer) for the GPR machine's assembly
language. It converts source text into a stream of tokens that the parser
can process one line at a time.

Token Types
-----------
- IDENTIFIER: Labels, mnemonics, directives, register names, local labels
- NUMBER: Decimal, hex (0x7F) or binary (0b1010) literal
- CHAR: Single-quoted character ('A'), value is its code point
- STRING: Double-quoted string ("hello")
- Delimiters: , : ( ) [ ]
- NEWLINE: End of line
- EOF: End of file

Number Formats
--------------

| Format      | Prefix | Example | Value |
|-------------|--------|---------|-------|
| Decimal     | (none) | 123     | 123   |
| Hexadecimal | 0x     | 0x7F    | 127   |
| Binary      | 0b     | 0b1010  | 10    |
| Character   | '      | 'A'     | 65    |

The lexer does not know how wide a number is allowed to be; the parser
checks 8-bit and 16-bit widths depending on where the literal is used.

Escape Sequences
----------------
Character and string literals share one escape grammar:
``\\n``, ``\\r``, ``\\t``, ``\\xHH`` (exactly two hex digits) and the
identity escape: a backslash followed by any other character stands for
that character (``\\\\``, ``\\'``, ``\\"``).

Comments
--------
A semicolon starts a comment that runs to the end of the line.

Example
-------
>>> from gprasm.assembler.lexer import Lexer
>>> lexer = Lexer("start: ldi R1, 0x41 ; load 'A'", "example.s")
>>> for token in lexer.tokenize():
...     print(token)
Token(IDENTIFIER, 'start', 1:1)
Token(COLON, ':', 1:6)
Token(IDENTIFIER, 'ldi', 1:8)
Token(IDENTIFIER, 'R1', 1:12)
Token(COMMA, ',', 1:14)
Token(NUMBER, 0x41, 1:16)
Token(EOF, 1:31)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional
import string

from gprasm.errors import AssemblySyntaxError, SourceLocation


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types for the GPR assembly language."""

    # Structural tokens
    NEWLINE = auto()     # End of line (statement boundary)
    EOF = auto()         # End of file

    # Values
    IDENTIFIER = auto()  # Labels, mnemonics, registers, directives
    NUMBER = auto()      # Numeric literals (all formats)
    CHAR = auto()        # Single-quoted character 'X'
    STRING = auto()      # Double-quoted string "..."

    # Delimiters
    COMMA = auto()       # ,
    COLON = auto()       # : (label definition, register pair)
    LPAREN = auto()      # ( (hi/lo argument)
    RPAREN = auto()      # )
    LBRACKET = auto()    # [ (register pair dereference)
    RBRACKET = auto()    # ]


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from the source code.

    Attributes:
        type: The TokenType classification
        value: Token value (string for identifiers and strings, int for
               numbers and characters, the delimiter text otherwise)
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: str | int | None
    line: int
    column: int
    filename: str

    def __repr__(self) -> str:
        if self.value is not None:
            if isinstance(self.value, int):
                return f"Token({self.type.name}, 0x{self.value:X}, {self.line}:{self.column})"
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes GPR assembly source code.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = list(lexer.tokenize())

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
    """

    # Characters that can start an identifier
    IDENT_START = string.ascii_letters + "_"

    # Characters that can continue an identifier
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    SINGLE_CHAR_TOKENS = {
        ",": TokenType.COMMA,
        ":": TokenType.COLON,
        "(": TokenType.LPAREN,
        ")": TokenType.RPAREN,
        "[": TokenType.LBRACKET,
        "]": TokenType.RBRACKET,
    }

    ESCAPE_SEQUENCES = {
        "n": "\n",
        "r": "\r",
        "t": "\t",
    }

    # Digit sets and the name used for them in "expected ..." messages
    RADIXES = {
        "x": (16, string.hexdigits, "a hexadecimal digit"),
        "b": (2, "01", "a binary digit"),
    }

    def __init__(self, source: str, filename: str = "<input>", line_number: int = 1):
        """
        Initialize the lexer with source code.

        Args:
            source: The assembly source code to tokenize
            filename: Name of the source file (for error messages)
            line_number: Starting line number (default 1)
        """
        self.source = source
        self.filename = filename

        self._pos = 0
        self._line = line_number
        self._column = 1
        self._line_start_pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source code.

        Yields:
            Token objects, always ending with an EOF token

        Raises:
            AssemblySyntaxError: If invalid syntax is encountered
        """
        while not self._at_end():
            if self._skip_whitespace():
                continue

            if self._skip_comment():
                continue

            yield self._scan_token()

        yield self._make_token(TokenType.EOF, None)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """
        Look at character at current position + offset without advancing.

        Returns empty string if past end of source.
        """
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume and return the current character, tracking line/column."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1

        return char

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        value: str | int | None,
        start_line: Optional[int] = None,
        start_column: Optional[int] = None,
    ) -> Token:
        return Token(
            type=token_type,
            value=value,
            line=start_line or self._line,
            column=start_column or self._column,
            filename=self.filename,
        )

    def _error(self, message: str) -> AssemblySyntaxError:
        """Create a syntax error at the current position."""
        location = SourceLocation(self.filename, self._line, self._column)
        return AssemblySyntaxError(message, location, source_line=self.get_current_line())

    def _expected(self, construct: str) -> AssemblySyntaxError:
        """Create an "expected <construct>" error describing what was found."""
        found = self._peek()
        if found == "" or found == "\n":
            found_text = "end of line"
        else:
            found_text = f"'{found}'"
        return self._error(f"expected {construct}, found {found_text}")

    # =========================================================================
    # Whitespace and Comment Handling
    # =========================================================================

    def _skip_whitespace(self) -> bool:
        """Skip spaces, tabs and carriage returns (not newlines)."""
        skipped = False
        # Note: '' in ' \t\r' is True, so the empty check must come first
        while self._peek() and self._peek() in " \t\r":
            self._advance()
            skipped = True
        return skipped

    def _skip_comment(self) -> bool:
        """Skip a ';' comment up to (not including) the newline."""
        if self._peek() != ";":
            return False
        while not self._at_end() and self._peek() != "\n":
            self._advance()
        return True

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        start_line = self._line
        start_column = self._column

        char = self._peek()

        if char == "\n":
            self._advance()
            return self._make_token(TokenType.NEWLINE, None, start_line, start_column)

        if char in self.IDENT_START:
            return self._scan_identifier(start_line, start_column)

        if char.isdigit():
            return self._scan_number(start_line, start_column)

        if char == ".":
            return self._scan_local_label(start_line, start_column)

        if char == '"':
            return self._scan_string(start_line, start_column)

        if char == "'":
            return self._scan_char(start_line, start_column)

        if char in self.SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(
                self.SINGLE_CHAR_TOKENS[char],
                char,
                start_line,
                start_column,
            )

        raise self._error(f"unexpected character '{char}'")

    def _scan_identifier(self, start_line: int, start_column: int) -> Token:
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())
        return self._make_token(TokenType.IDENTIFIER, "".join(chars), start_line, start_column)

    def _scan_local_label(self, start_line: int, start_column: int) -> Token:
        """Scan a local label: '.' followed by identifier characters."""
        chars = [self._advance()]
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())

        if len(chars) == 1:
            raise self._expected("a label name after '.'")

        return self._make_token(TokenType.IDENTIFIER, "".join(chars), start_line, start_column)

    def _scan_number(self, start_line: int, start_column: int) -> Token:
        """
        Scan a numeric literal.

        Handles the 0x (hex) and 0b (binary) prefixes as well as plain
        decimal digits. A literal running straight into letters (``12ab``)
        is rejected rather than split into two tokens.
        """
        radix, digits, construct = 10, string.digits, "a decimal digit"

        prefix = self._peek(1).lower()
        if self._peek() == "0" and prefix in self.RADIXES:
            self._advance()  # consume 0
            self._advance()  # consume x / b
            radix, digits, construct = self.RADIXES[prefix]

        chars = []
        while self._peek() and self._peek() in digits:
            chars.append(self._advance())

        if not chars:
            raise self._expected(construct)

        if self._peek() and self._peek() in self.IDENT_CHARS:
            raise self._expected(construct)

        value = int("".join(chars), radix)
        return self._make_token(TokenType.NUMBER, value, start_line, start_column)

    def _scan_string(self, start_line: int, start_column: int) -> Token:
        """Scan a double-quoted string literal."""
        self._advance()  # consume opening "

        chars = []
        while not self._at_end() and self._peek() != "\n":
            char = self._peek()

            if char == '"':
                self._advance()
                return self._make_token(TokenType.STRING, "".join(chars), start_line, start_column)

            if char == "\\":
                self._advance()
                chars.append(self._scan_escape_sequence())
            else:
                chars.append(self._advance())

        raise self._error("unterminated string literal")

    def _scan_char(self, start_line: int, start_column: int) -> Token:
        """
        Scan a single-quoted character literal.

        The token value is the code point of the character.
        """
        self._advance()  # consume opening '

        if self._at_end() or self._peek() in "\n'":
            raise self._expected("a character")

        if self._peek() == "\\":
            self._advance()
            char = self._scan_escape_sequence()
        else:
            char = self._advance()

        if self._peek() != "'":
            raise self._expected("a closing quote")
        self._advance()

        return self._make_token(TokenType.CHAR, ord(char), start_line, start_column)

    def _scan_escape_sequence(self) -> str:
        """
        Scan an escape sequence after the backslash.

        Returns:
            The character represented by the escape sequence
        """
        if self._at_end() or self._peek() == "\n":
            raise self._expected("an escape character")

        char = self._advance()

        if char in self.ESCAPE_SEQUENCES:
            return self.ESCAPE_SEQUENCES[char]

        if char == "x":
            hex_chars = []
            for _ in range(2):
                if self._peek() and self._peek() in string.hexdigits:
                    hex_chars.append(self._advance())
                else:
                    raise self._expected("a hexadecimal digit")
            return chr(int("".join(hex_chars), 16))

        # Identity escape
        return char

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def get_current_line(self) -> str:
        """Get the current line of source text."""
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end].rstrip("\r")
