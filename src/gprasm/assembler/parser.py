"""
GPR Assembly Language Parser
============================

This module implements the line grammar of the GPR assembly language. It
converts the token stream from the lexer into one ``Line`` per source line
that carries a label definition, an instruction, or both.

Line Grammar
------------
Every line has the form::

    [label:] [instruction] [; comment]

where leading whitespace and whitespace between the parts is ignored and
every part is optional. Blank and comment-only lines produce no ``Line``.

Instruction Operands
--------------------

| Operand  | Syntax                   | Width   |
|----------|--------------------------|---------|
| register | R0 .. R15                | 4 bits  |
| value    | 0x41, 'A', hi(x), lo(x)  | 8 bits  |
| address  | label, .local, 0x8000    | 16 bits |
| pair     | [R2:R3]                  | 8 bits  |

Which operands a mnemonic takes is decided by its ``Shape`` in the
instruction table: the parser holds one template per shape and applies it
to every mnemonic of that shape.

Directives
----------
::

    db  0x01, 'x', "text"   ; define bytes (strings add no terminator)
    ds  16                  ; reserve zero-filled space
    org 0x8000              ; move the location counter
    include "file.s"        ; splice another source file in place

Range Checks
------------
The lexer returns plain integers. Whether a number fits is validated here
by ``check_width`` and ``check_register`` at the point of use, so that
``ldi R1, 300`` is a syntax error while ``org 300`` is fine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional, Union
import re

from gprasm.errors import AssemblySyntaxError, SourceLocation
from gprasm.assembler.lexer import Lexer, Token, TokenType
from gprasm.assembler.opcodes import (
    DIRECTIVES,
    MAX_REGISTERS,
    InstructionInfo,
    Shape,
    get_instruction_info,
)


# =============================================================================
# Operand Model
# =============================================================================

class Nibble(Enum):
    """Selects one byte of a 16-bit address."""
    HIGH = "hi"
    LOW = "lo"


@dataclass(frozen=True)
class Register:
    """A general-purpose register reference."""
    index: int

    def __str__(self) -> str:
        return f"R{self.index}"


@dataclass(frozen=True)
class LabelRef:
    """
    Reference to a label, resolved to an address in the second pass.

    Attributes:
        name: Label name as written (local labels keep their '.' prefix)
        location: Where the reference appears, for error reporting
    """
    name: str
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Immediate:
    """A literal number (8-bit value or 16-bit address, checked at parse time)."""
    value: int

    def __str__(self) -> str:
        return f"0x{self.value:X}"


# An address is a label reference or a literal 16-bit number
Address = Union[LabelRef, Immediate]


@dataclass(frozen=True)
class AddressByte:
    """
    ``hi(address)`` or ``lo(address)``: one byte of a resolved address.

    Used to load a 16-bit address into two 8-bit registers.
    """
    address: Address
    nibble: Nibble

    def __str__(self) -> str:
        return f"{self.nibble.value}({self.address})"


# A value is an 8-bit literal or one byte of an address
Value = Union[Immediate, AddressByte]


# =============================================================================
# Data Items (db)
# =============================================================================

@dataclass(frozen=True)
class Byte:
    """A single byte in a ``db`` list."""
    value: int

    @property
    def size(self) -> int:
        return 1

    def to_bytes(self) -> bytes:
        return bytes([self.value])


@dataclass(frozen=True)
class String:
    """A string in a ``db`` list: one byte per character, no terminator."""
    text: str

    @property
    def size(self) -> int:
        return len(self.text)

    def to_bytes(self) -> bytes:
        return bytes(ord(char) for char in self.text)


Serializable = Union[Byte, String]


# =============================================================================
# Instruction Model
# =============================================================================

@dataclass(frozen=True)
class Instruction:
    """
    Base class for everything that can follow a label on a line.

    Every variant knows its encoded size so the first pass can lay out
    addresses without encoding anything.
    """

    @property
    def size(self) -> int:
        raise NotImplementedError


@dataclass(frozen=True)
class Operation(Instruction):
    """
    A machine instruction from the opcode table.

    Attributes:
        mnemonic: Lowercase mnemonic as matched in the source
        opcode: Opcode byte looked up from the mnemonic
    """
    mnemonic: str
    opcode: int

    shape: ClassVar[Shape]

    @property
    def size(self) -> int:
        return self.shape.size


@dataclass(frozen=True)
class Nullary(Operation):
    shape: ClassVar[Shape] = Shape.NULLARY


@dataclass(frozen=True)
class UnaryReg(Operation):
    register: Register
    shape: ClassVar[Shape] = Shape.UNARY_REG


@dataclass(frozen=True)
class UnaryAddr(Operation):
    address: Address
    shape: ClassVar[Shape] = Shape.UNARY_ADDR


@dataclass(frozen=True)
class BinaryRegIm(Operation):
    register: Register
    value: Value
    shape: ClassVar[Shape] = Shape.BINARY_REG_IM


@dataclass(frozen=True)
class BinaryRegReg(Operation):
    destination: Register
    source: Register
    shape: ClassVar[Shape] = Shape.BINARY_REG_REG


@dataclass(frozen=True)
class BinaryRegAddr(Operation):
    register: Register
    address: Address
    shape: ClassVar[Shape] = Shape.BINARY_REG_ADDR


@dataclass(frozen=True)
class BinaryRegDeref(Operation):
    """Register plus a register pair ``[high:low]`` holding a pointer."""
    register: Register
    high: Register
    low: Register
    shape: ClassVar[Shape] = Shape.BINARY_REG_DEREF


@dataclass(frozen=True)
class Db(Instruction):
    items: tuple[Serializable, ...]

    @property
    def size(self) -> int:
        return sum(item.size for item in self.items)


@dataclass(frozen=True)
class Ds(Instruction):
    length: int

    @property
    def size(self) -> int:
        return self.length


@dataclass(frozen=True)
class Org(Instruction):
    address: int

    @property
    def size(self) -> int:
        return 0


@dataclass(frozen=True)
class Include(Instruction):
    path: str

    @property
    def size(self) -> int:
        return 0


# =============================================================================
# Line
# =============================================================================

@dataclass
class Line:
    """
    One parsed source line.

    Attributes:
        location: Start of the line (column 1)
        label: Label defined on this line, if any
        instruction: Instruction or directive on this line, if any
        source: Raw source text of the line, for diagnostics and listings
    """
    location: SourceLocation
    label: Optional[str] = None
    instruction: Optional[Instruction] = None
    source: str = ""


# =============================================================================
# Validation Helpers
# =============================================================================

REGISTER_PATTERN = re.compile(r"^[Rr]([0-9]+)$")

WIDTH_NAMES = {8: "an 8-bit value", 16: "a 16-bit value"}


def is_register_name(name: str) -> bool:
    """Check whether an identifier names a register (R0, r12, ...)."""
    return REGISTER_PATTERN.match(name) is not None


def check_width(value: int, bits: int) -> Optional[str]:
    """
    Check that a literal fits in an unsigned field of the given width.

    Returns:
        None if it fits, otherwise the "expected ..." construct to report
    """
    limit = (1 << bits) - 1
    if 0 <= value <= limit:
        return None
    return f"{WIDTH_NAMES[bits]} (0-{limit})"


def check_register(index: int, register_count: int) -> Optional[str]:
    """
    Check that a register index exists on the machine.

    Returns:
        None if valid, otherwise the "expected ..." construct to report
    """
    if 0 <= index < register_count:
        return None
    return f"a register between R0 and R{register_count - 1}"


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Parses GPR assembly tokens into lines.

    Usage:
        lexer = Lexer(source, filename)
        tokens = list(lexer.tokenize())
        parser = Parser(tokens, filename, source)
        lines = parser.parse()
    """

    # One operand template per shape; applied to every mnemonic of that shape
    SHAPE_TEMPLATES: ClassVar[dict[Shape, str]] = {
        Shape.NULLARY: "_parse_nullary",
        Shape.UNARY_REG: "_parse_unary_reg",
        Shape.UNARY_ADDR: "_parse_unary_addr",
        Shape.BINARY_REG_IM: "_parse_binary_reg_im",
        Shape.BINARY_REG_REG: "_parse_binary_reg_reg",
        Shape.BINARY_REG_ADDR: "_parse_binary_reg_addr",
        Shape.BINARY_REG_DEREF: "_parse_binary_reg_deref",
    }

    def __init__(
        self,
        tokens: list[Token],
        filename: str = "<input>",
        source: str = "",
        register_count: int = MAX_REGISTERS,
    ):
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from the lexer
            filename: Source filename for error reporting
            source: Original source text, used to quote lines in errors
            register_count: Number of registers on the target machine
        """
        self._tokens = tokens
        self._filename = filename
        self._source_lines = source.split("\n")
        self._register_count = register_count
        self._pos = 0

    def parse(self) -> list[Line]:
        """
        Parse all tokens into lines.

        Returns:
            Lines carrying a label, an instruction, or both

        Raises:
            AssemblySyntaxError: On the first line that does not match
        """
        lines: list[Line] = []

        while not self._at_end():
            if self._match(TokenType.NEWLINE):
                continue

            line = self._parse_line()
            if line is not None:
                lines.append(line)

        return lines

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self._tokens) or self._current().type == TokenType.EOF

    def _current(self) -> Token:
        if self._pos >= len(self._tokens):
            last = self._tokens[-1] if self._tokens else None
            return Token(
                TokenType.EOF, None,
                last.line if last else 1,
                last.column if last else 1,
                self._filename,
            )
        return self._tokens[self._pos]

    def _peek(self, offset: int = 0) -> Token:
        pos = self._pos + offset
        if pos >= len(self._tokens):
            return self._current()
        return self._tokens[pos]

    def _advance(self) -> Token:
        token = self._current()
        self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        return self._current().type in types

    def _match(self, *types: TokenType) -> Optional[Token]:
        if self._check(*types):
            return self._advance()
        return None

    # =========================================================================
    # Error Reporting
    # =========================================================================

    def _source_line(self, line: int) -> Optional[str]:
        if 1 <= line <= len(self._source_lines):
            return self._source_lines[line - 1].rstrip("\r")
        return None

    def _error(self, message: str, token: Token) -> AssemblySyntaxError:
        return AssemblySyntaxError(
            message,
            token.location,
            source_line=self._source_line(token.line),
        )

    def _expected(self, construct: str, token: Optional[Token] = None) -> AssemblySyntaxError:
        """Build an "expected <construct>, found <token>" error."""
        token = token or self._current()
        return self._error(f"expected {construct}, found {_describe(token)}", token)

    def _expect(self, token_type: TokenType, construct: str) -> Token:
        if not self._check(token_type):
            raise self._expected(construct)
        return self._advance()

    # =========================================================================
    # Line Parsing
    # =========================================================================

    def _parse_line(self) -> Optional[Line]:
        """
        Parse ``[label:] [instruction]`` up to the end of the line.

        Returns None for lines that turn out to be empty.
        """
        first = self._current()
        location = SourceLocation(first.filename, first.line, 1)

        label = self._try_parse_label()

        instruction = None
        if self._check(TokenType.IDENTIFIER):
            instruction = self._parse_instruction()
        elif not self._check(TokenType.NEWLINE, TokenType.EOF):
            construct = "an instruction" if label else "a label or an instruction"
            raise self._expected(construct)

        if not self._check(TokenType.NEWLINE, TokenType.EOF):
            raise self._expected("end of line")
        self._match(TokenType.NEWLINE)

        if label is None and instruction is None:
            return None

        return Line(
            location=location,
            label=label,
            instruction=instruction,
            source=self._source_line(first.line) or "",
        )

    def _try_parse_label(self) -> Optional[str]:
        """Parse ``name:`` if present, returning the label name."""
        if not (self._check(TokenType.IDENTIFIER) and self._peek(1).type == TokenType.COLON):
            return None

        name_token = self._advance()
        self._advance()  # consume colon

        if is_register_name(name_token.value):
            raise self._error(
                f"register name '{name_token.value}' cannot be used as a label",
                name_token,
            )
        return name_token.value

    # =========================================================================
    # Instruction Parsing
    # =========================================================================

    def _parse_instruction(self) -> Instruction:
        token = self._advance()
        name = token.value.lower()

        if name in DIRECTIVES:
            return getattr(self, f"_parse_{name}")()

        info = get_instruction_info(name)
        if info is None:
            raise self._expected("an instruction", token)

        template = getattr(self, self.SHAPE_TEMPLATES[info.shape])
        return template(name, info)

    def _parse_nullary(self, name: str, info: InstructionInfo) -> Nullary:
        return Nullary(name, info.opcode)

    def _parse_unary_reg(self, name: str, info: InstructionInfo) -> UnaryReg:
        return UnaryReg(name, info.opcode, self._parse_register())

    def _parse_unary_addr(self, name: str, info: InstructionInfo) -> UnaryAddr:
        return UnaryAddr(name, info.opcode, self._parse_address())

    def _parse_binary_reg_im(self, name: str, info: InstructionInfo) -> BinaryRegIm:
        register = self._parse_register()
        self._expect(TokenType.COMMA, "','")
        return BinaryRegIm(name, info.opcode, register, self._parse_value())

    def _parse_binary_reg_reg(self, name: str, info: InstructionInfo) -> BinaryRegReg:
        destination = self._parse_register()
        self._expect(TokenType.COMMA, "','")
        return BinaryRegReg(name, info.opcode, destination, self._parse_register())

    def _parse_binary_reg_addr(self, name: str, info: InstructionInfo) -> BinaryRegAddr:
        register = self._parse_register()
        self._expect(TokenType.COMMA, "','")
        return BinaryRegAddr(name, info.opcode, register, self._parse_address())

    def _parse_binary_reg_deref(self, name: str, info: InstructionInfo) -> BinaryRegDeref:
        register = self._parse_register()
        self._expect(TokenType.COMMA, "','")
        self._expect(TokenType.LBRACKET, "'['")
        high = self._parse_register()
        self._expect(TokenType.COLON, "':'")
        low = self._parse_register()
        self._expect(TokenType.RBRACKET, "']'")
        return BinaryRegDeref(name, info.opcode, register, high, low)

    # =========================================================================
    # Operand Parsing
    # =========================================================================

    def _parse_register(self) -> Register:
        token = self._current()
        match = None
        if token.type == TokenType.IDENTIFIER:
            match = REGISTER_PATTERN.match(token.value)
        if match is None:
            raise self._expected("a register")

        index = int(match.group(1))
        problem = check_register(index, self._register_count)
        if problem:
            raise self._expected(problem)

        self._advance()
        return Register(index)

    def _parse_address(self) -> Address:
        token = self._current()

        if token.type == TokenType.NUMBER:
            return Immediate(self._parse_number(16))

        if token.type == TokenType.IDENTIFIER and not is_register_name(token.value):
            self._advance()
            return LabelRef(token.value, token.location)

        raise self._expected("an address")

    def _parse_value(self) -> Value:
        token = self._current()

        if token.type in (TokenType.NUMBER, TokenType.CHAR):
            return Immediate(self._parse_number(8))

        if (token.type == TokenType.IDENTIFIER
                and token.value.lower() in ("hi", "lo")
                and self._peek(1).type == TokenType.LPAREN):
            self._advance()  # hi / lo
            self._advance()  # (
            address = self._parse_address()
            self._expect(TokenType.RPAREN, "')'")
            return AddressByte(address, Nibble(token.value.lower()))

        raise self._expected("a value")

    def _parse_number(self, bits: int) -> int:
        """
        Consume a number that must fit in ``bits`` bits.

        Character literals are bytes, so only 8-bit operands accept them.
        """
        token = self._current()
        accepted = (TokenType.NUMBER, TokenType.CHAR) if bits == 8 else (TokenType.NUMBER,)
        if token.type not in accepted:
            raise self._expected(WIDTH_NAMES[bits])

        problem = check_width(token.value, bits)
        if problem:
            raise self._expected(problem)

        self._advance()
        return token.value

    # =========================================================================
    # Directive Parsing
    # =========================================================================

    def _parse_db(self) -> Db:
        items: list[Serializable] = [self._parse_serializable()]
        while self._match(TokenType.COMMA):
            items.append(self._parse_serializable())
        return Db(tuple(items))

    def _parse_serializable(self) -> Serializable:
        token = self._current()

        if token.type == TokenType.STRING:
            for char in token.value:
                if ord(char) > 0xFF:
                    raise self._error(
                        f"expected characters with code points 0-255, found '{char}'",
                        token,
                    )
            self._advance()
            return String(token.value)

        if token.type in (TokenType.NUMBER, TokenType.CHAR):
            return Byte(self._parse_number(8))

        raise self._expected("a byte or a string")

    def _parse_ds(self) -> Ds:
        return Ds(self._parse_number(16))

    def _parse_org(self) -> Org:
        return Org(self._parse_number(16))

    def _parse_include(self) -> Include:
        token = self._expect(TokenType.STRING, "a file name string")
        return Include(token.value)


def _describe(token: Token) -> str:
    """Describe a token for "found ..." in error messages."""
    if token.type in (TokenType.NEWLINE, TokenType.EOF):
        return "end of line"
    if token.type == TokenType.STRING:
        return f'string "{token.value}"'
    if token.type == TokenType.CHAR:
        return f"character {chr(token.value)!r}"
    if token.type == TokenType.NUMBER:
        return str(token.value)
    return f"'{token.value}'"


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(
    source: str,
    filename: str = "<input>",
    register_count: int = MAX_REGISTERS,
) -> list[Line]:
    """
    Parse assembly source text into lines.

    Include directives are returned as ``Include`` instructions; expanding
    them is the job of ``gprasm.assembler.includes``.

    Args:
        source: Assembly source text
        filename: Source filename for error messages
        register_count: Number of registers on the target machine

    Returns:
        List of parsed lines
    """
    tokens = list(Lexer(source, filename).tokenize())
    return Parser(tokens, filename, source, register_count).parse()


def parse_line(text: str, register_count: int = MAX_REGISTERS) -> Optional[Line]:
    """
    Parse a single line of source text.

    Returns:
        The parsed line, or None for blank and comment-only lines
    """
    if "\n" in text:
        raise ValueError("parse_line() expects a single line of text")
    lines = parse_source(text, register_count=register_count)
    return lines[0] if lines else None
