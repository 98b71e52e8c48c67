# =============================================================================
# test_lexer.py - Lexer Unit Tests
# =============================================================================
# Tests for the GPR assembler lexer/tokenizer.
#
# Test coverage includes:
#   - Number formats: decimal, hexadecimal (0x), binary (0b)
#   - Character and string literals with escape sequences
#   - Identifiers, local labels and delimiters
#   - Comments and whitespace handling
#   - Error conditions and positions
# =============================================================================

import pytest
from gprasm.assembler.lexer import Lexer, TokenType, Token
from gprasm.errors import AssemblySyntaxError


# =============================================================================
# Helper Function
# =============================================================================

def tokenize(source: str) -> list:
    """Tokenize and drop the trailing EOF token."""
    lexer = Lexer(source, "<test>")
    return [t for t in lexer.tokenize() if t.type != TokenType.EOF]


def values(source: str) -> list:
    return [t.value for t in tokenize(source)]


# =============================================================================
# Basic Token Recognition Tests
# =============================================================================

class TestBasicTokens:
    """Test basic token recognition for simple inputs."""

    def test_empty_line(self):
        assert tokenize("") == []

    def test_whitespace_only(self):
        assert tokenize("   \t   ") == []

    def test_eof_always_last(self):
        tokens = list(Lexer("nop").tokenize())
        assert tokens[-1].type == TokenType.EOF

    def test_identifier(self):
        tokens = tokenize("start")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "start"

    def test_identifier_keeps_case(self):
        assert values("MyLabel") == ["MyLabel"]

    def test_local_label(self):
        tokens = tokenize(".loop")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == ".loop"

    def test_delimiters(self):
        types = [t.type for t in tokenize(", : ( ) [ ]")]
        assert types == [
            TokenType.COMMA, TokenType.COLON, TokenType.LPAREN,
            TokenType.RPAREN, TokenType.LBRACKET, TokenType.RBRACKET,
        ]

    def test_newline_token(self):
        types = [t.type for t in tokenize("nop\nnop")]
        assert types == [TokenType.IDENTIFIER, TokenType.NEWLINE, TokenType.IDENTIFIER]

    def test_crlf_line_endings(self):
        types = [t.type for t in tokenize("nop\r\nnop")]
        assert types == [TokenType.IDENTIFIER, TokenType.NEWLINE, TokenType.IDENTIFIER]

    def test_full_instruction(self):
        tokens = tokenize("loop: ldi R1, 0x41")
        assert [t.type for t in tokens] == [
            TokenType.IDENTIFIER, TokenType.COLON, TokenType.IDENTIFIER,
            TokenType.IDENTIFIER, TokenType.COMMA, TokenType.NUMBER,
        ]


# =============================================================================
# Number Tests
# =============================================================================

class TestNumbers:
    """Test numeric literal formats."""

    @pytest.mark.parametrize("text,value", [
        ("0", 0),
        ("123", 123),
        ("65535", 65535),
        ("0x7F", 0x7F),
        ("0XFF", 0xFF),
        ("0xbeef", 0xBEEF),
        ("0b1010", 10),
        ("0B11111111", 255),
    ])
    def test_number_formats(self, text, value):
        tokens = tokenize(text)
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == value

    def test_large_values_are_not_truncated(self):
        # Width is checked by the parser, not the lexer
        assert values("70000") == [70000]

    def test_hex_without_digits(self):
        with pytest.raises(AssemblySyntaxError, match="expected a hexadecimal digit"):
            tokenize("0x")

    def test_binary_with_bad_digit(self):
        with pytest.raises(AssemblySyntaxError, match="expected a binary digit"):
            tokenize("0b102")

    def test_number_running_into_letters(self):
        with pytest.raises(AssemblySyntaxError, match="expected a decimal digit, found 'a'"):
            tokenize("12ab")


# =============================================================================
# Character and String Tests
# =============================================================================

class TestCharacters:
    """Test character literals."""

    def test_simple_char(self):
        tokens = tokenize("'A'")
        assert tokens[0].type == TokenType.CHAR
        assert tokens[0].value == 65

    @pytest.mark.parametrize("text,value", [
        (r"'\n'", 10),
        (r"'\r'", 13),
        (r"'\t'", 9),
        (r"'\x41'", 0x41),
        (r"'\\'", ord("\\")),
        (r"'\''", ord("'")),
        (r"'\q'", ord("q")),
    ])
    def test_escapes(self, text, value):
        assert values(text) == [value]

    def test_empty_char(self):
        with pytest.raises(AssemblySyntaxError, match="expected a character"):
            tokenize("''")

    def test_unclosed_char(self):
        with pytest.raises(AssemblySyntaxError, match="expected a closing quote"):
            tokenize("'ab'")

    def test_hex_escape_needs_two_digits(self):
        with pytest.raises(AssemblySyntaxError, match="expected a hexadecimal digit"):
            tokenize(r"'\x4'")


class TestStrings:
    """Test string literals."""

    def test_simple_string(self):
        tokens = tokenize('"hello"')
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == "hello"

    def test_empty_string(self):
        assert values('""') == [""]

    def test_string_escapes(self):
        assert values(r'"a\tb\n\x21\""') == ['a\tb\n!"']

    def test_semicolon_inside_string(self):
        assert values('"a;b" ; comment') == ["a;b"]

    def test_unterminated_string(self):
        with pytest.raises(AssemblySyntaxError, match="unterminated string literal"):
            tokenize('"abc\nnop')


# =============================================================================
# Comments and Positions
# =============================================================================

class TestComments:
    """Test comment handling."""

    def test_comment_only(self):
        assert tokenize("; just a comment") == []

    def test_trailing_comment(self):
        assert values("nop ; do nothing") == ["nop"]


class TestPositions:
    """Test line and column tracking."""

    def test_columns(self):
        tokens = tokenize("  add R0, R1")
        assert [t.column for t in tokens] == [3, 7, 9, 11]

    def test_lines(self):
        tokens = [t for t in tokenize("nop\n\n  hlt") if t.type == TokenType.IDENTIFIER]
        assert tokens[1].line == 3
        assert tokens[1].column == 3

    def test_location(self):
        token = tokenize("nop")[0]
        assert str(token.location) == "<test>:1:1"

    def test_error_location(self):
        with pytest.raises(AssemblySyntaxError) as exc_info:
            tokenize("nop\n  ldi R1, #5")
        error = exc_info.value
        assert error.location.line == 2
        assert error.location.column == 11
        assert error.source_line == "  ldi R1, #5"

    def test_unexpected_character(self):
        with pytest.raises(AssemblySyntaxError, match="unexpected character '@'"):
            tokenize("@")

    def test_bare_dot(self):
        with pytest.raises(AssemblySyntaxError, match="expected a label name"):
            tokenize(". ")
