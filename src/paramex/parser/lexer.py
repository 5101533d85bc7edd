# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexical scanner for annotated function sources.

Converts raw source text into a sequence of tokens for subsequent parsing.
Every token carries a :class:`~paramex.diagnostics.location.Span` so that
parsed nodes and diagnostics can point back into the original text.
"""

import enum
from dataclasses import dataclass

from paramex.diagnostics.location import Span

# ###############
# Public Interface
# ###############


class TokenType(enum.Enum):
    """All token types produced by the lexer."""

    # Keywords
    FN = "fn"
    ASYNC = "async"
    MUT = "mut"
    IMPL = "impl"
    DYN = "dyn"
    SELF = "self"
    CONST = "const"
    PUB = "pub"
    WHERE = "where"

    # Symbols and operators
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    LBRACE = "{"
    RBRACE = "}"
    LANGLE = "<"
    RANGLE = ">"
    COMMA = ","
    SEMICOLON = ";"
    COLON = ":"
    PATH_SEP = "::"
    EQUALS = "="
    FAT_ARROW = "=>"
    ARROW = "->"
    POUND = "#"
    AMP = "&"
    BANG = "!"
    STAR = "*"
    DOT = "."
    PLUS = "+"
    MINUS = "-"
    SLASH = "/"
    PERCENT = "%"
    CARET = "^"
    PIPE = "|"
    QUESTION = "?"
    AT = "@"
    TILDE = "~"
    DOLLAR = "$"

    # Literals
    STRING = "STRING"
    CHAR = "CHAR"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    LIFETIME = "LIFETIME"

    # Identifiers
    IDENTIFIER = "IDENTIFIER"

    # End of file
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A lexical token with its source span.

    Attributes:
        type: The kind of token.
        value: The raw text of the token (or decoded content for STRING and
            CHAR tokens).
        span: Where the token sits in the source.
    """

    type: TokenType
    value: str
    span: Span

    @property
    def line(self) -> int:
        return self.span.line

    @property
    def column(self) -> int:
        return self.span.column


class LexerError(Exception):
    """Raised when the scanner encounters an invalid character or unterminated literal.

    Attributes:
        line: 1-based line number of the error.
        column: 1-based column number of the error.
        span: Span of the offending text.
    """

    def __init__(self, message: str, span: Span) -> None:
        super().__init__(f"Line {span.line}, column {span.column}: {message}")
        self.message = message
        self.line = span.line
        self.column = span.column
        self.span = span


def tokenize(source: str) -> list[Token]:
    """Tokenize source text into a sequence of tokens.

    Returns a list of tokens. The final token is always an EOF token.
    Comments and whitespace are consumed and not included in the output.

    Args:
        source: The full text to scan.

    Returns:
        A list of Token objects ending with a single EOF token.

    Raises:
        LexerError: On unexpected characters, unterminated string or char
            literals, or unterminated block comments.
    """
    return _Lexer(source).tokenize()


# ################
# Implementation
# ################

_KEYWORDS: dict[str, TokenType] = {
    "fn": TokenType.FN,
    "async": TokenType.ASYNC,
    "mut": TokenType.MUT,
    "impl": TokenType.IMPL,
    "dyn": TokenType.DYN,
    "self": TokenType.SELF,
    "const": TokenType.CONST,
    "pub": TokenType.PUB,
    "where": TokenType.WHERE,
}

_DOUBLE_CHAR_TOKENS: dict[str, TokenType] = {
    "::": TokenType.PATH_SEP,
    "=>": TokenType.FAT_ARROW,
    "->": TokenType.ARROW,
}

_SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "<": TokenType.LANGLE,
    ">": TokenType.RANGLE,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    ":": TokenType.COLON,
    "=": TokenType.EQUALS,
    "#": TokenType.POUND,
    "&": TokenType.AMP,
    "!": TokenType.BANG,
    "*": TokenType.STAR,
    ".": TokenType.DOT,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "^": TokenType.CARET,
    "|": TokenType.PIPE,
    "?": TokenType.QUESTION,
    "@": TokenType.AT,
    "~": TokenType.TILDE,
    "$": TokenType.DOLLAR,
}

_SIMPLE_ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "\\": "\\",
    '"': '"',
    "'": "'",
}


class _Lexer:
    """Internal scanner state machine."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0
        self._line = 1
        self._column = 1
        self._tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Run the scanner and return all tokens including the terminal EOF."""
        while self._pos < len(self._source):
            self._skip_whitespace_and_comments()
            if self._pos >= len(self._source):
                break
            self._scan_token()
        eof = Span(self._line, self._column, self._line, self._column, self._pos, self._pos)
        self._tokens.append(Token(TokenType.EOF, "", eof))
        return self._tokens

    # ------------------------------------------------------------------
    # Low-level character access helpers
    # ------------------------------------------------------------------

    def _current(self) -> str:
        """Return the character at the current position, or '' at end of input."""
        if self._pos < len(self._source):
            return self._source[self._pos]
        return ""

    def _peek(self, offset: int = 1) -> str:
        """Return the character *offset* positions ahead, or '' past end of input."""
        if self._pos + offset < len(self._source):
            return self._source[self._pos + offset]
        return ""

    def _advance(self) -> str:
        """Consume the current character, update position tracking, and return it."""
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return ch

    def _span_from(self, line: int, col: int, start: int) -> Span:
        """Return the span from a recorded start position to the current position."""
        return Span(line, col, self._line, self._column, start, self._pos)

    def _emit(self, token_type: TokenType, value: str, line: int, col: int, start: int) -> None:
        self._tokens.append(Token(token_type, value, self._span_from(line, col, start)))

    def _error(self, message: str, line: int, col: int, start: int) -> LexerError:
        end = min(start + 1, len(self._source))
        return LexerError(message, Span(line, col, line, col + (end - start), start, end))

    # ------------------------------------------------------------------
    # Whitespace and comment skipping
    # ------------------------------------------------------------------

    def _skip_whitespace_and_comments(self) -> None:
        """Skip all whitespace and comment runs at the current position."""
        while self._pos < len(self._source):
            ch = self._current()
            if ch in " \t\r\n":
                self._advance()
            elif ch == "/" and self._peek() == "/":
                self._skip_line_comment()
            elif ch == "/" and self._peek() == "*":
                self._skip_block_comment()
            else:
                break

    def _skip_line_comment(self) -> None:
        """Consume from '//' through end-of-line (exclusive of the newline itself)."""
        while self._pos < len(self._source) and self._current() != "\n":
            self._advance()

    def _skip_block_comment(self) -> None:
        """Consume from '/*' through the matching '*/', honouring nesting."""
        start_line, start_col, start = self._line, self._column, self._pos
        depth = 0
        while self._pos < len(self._source):
            if self._current() == "/" and self._peek() == "*":
                self._advance()  # /
                self._advance()  # *
                depth += 1
            elif self._current() == "*" and self._peek() == "/":
                self._advance()  # *
                self._advance()  # /
                depth -= 1
                if depth == 0:
                    return
            else:
                self._advance()
        raise self._error("Unterminated block comment", start_line, start_col, start)

    # ------------------------------------------------------------------
    # Token scanning dispatcher
    # ------------------------------------------------------------------

    def _scan_token(self) -> None:
        """Dispatch to the appropriate handler based on the current character."""
        ch = self._current()
        line, col, start = self._line, self._column, self._pos

        pair = ch + self._peek()
        if pair in _DOUBLE_CHAR_TOKENS:
            self._advance()
            self._advance()
            self._emit(_DOUBLE_CHAR_TOKENS[pair], pair, line, col, start)
        elif ch == '"':
            self._scan_string(line, col, start)
        elif ch == "'":
            self._scan_char_or_lifetime(line, col, start)
        elif ch.isdigit():
            self._scan_number(line, col, start)
        elif self._at_prefixed_string():
            self._scan_prefixed_string(line, col, start)
        elif ch.isalpha() or ch == "_":
            self._scan_identifier_or_keyword(line, col, start)
        elif ch in _SINGLE_CHAR_TOKENS:
            self._advance()
            self._emit(_SINGLE_CHAR_TOKENS[ch], ch, line, col, start)
        else:
            raise self._error(f"Unexpected character: {ch!r}", line, col, start)

    # ------------------------------------------------------------------
    # Literal scanners
    # ------------------------------------------------------------------

    def _scan_string(self, line: int, col: int, start: int) -> None:
        """Scan a double-quoted string literal with escape sequences."""
        self._advance()  # opening "
        chars: list[str] = []
        while self._pos < len(self._source):
            ch = self._current()
            if ch == '"':
                self._advance()  # closing "
                self._emit(TokenType.STRING, "".join(chars), line, col, start)
                return
            if ch == "\\":
                chars.append(self._scan_escape(line, col, start))
            else:
                chars.append(ch)
                self._advance()
        raise self._error("Unterminated string literal", line, col, start)

    def _scan_escape(self, line: int, col: int, start: int) -> str:
        """Consume an escape sequence starting at a backslash and return its value."""
        esc_line, esc_col, esc_start = self._line, self._column, self._pos
        self._advance()  # backslash
        if self._pos >= len(self._source):
            raise self._error("Unterminated literal", line, col, start)
        esc = self._advance()
        if esc in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[esc]
        if esc == "\n":
            # Line continuation: skip leading whitespace on the next line.
            while self._current() in (" ", "\t", "\n", "\r") and self._pos < len(self._source):
                self._advance()
            return ""
        if esc == "x":
            digits = self._advance() + self._advance() if self._pos + 1 < len(self._source) else ""
            try:
                return chr(int(digits, 16))
            except ValueError:
                raise self._error(f"Invalid escape sequence: '\\x{digits}'", esc_line, esc_col, esc_start) from None
        if esc == "u" and self._current() == "{":
            self._advance()  # {
            digits: list[str] = []
            while self._pos < len(self._source) and self._current() != "}":
                digits.append(self._advance())
            if self._pos >= len(self._source):
                raise self._error("Unterminated unicode escape", esc_line, esc_col, esc_start)
            self._advance()  # }
            try:
                return chr(int("".join(digits).replace("_", ""), 16))
            except ValueError:
                raise self._error("Invalid unicode escape", esc_line, esc_col, esc_start) from None
        raise self._error(f"Invalid escape sequence: '\\{esc}'", esc_line, esc_col, esc_start)

    def _at_prefixed_string(self) -> bool:
        """Return True at a byte (``b"``) or raw (``r"``, ``r#"``, ``br"``) string."""
        ch = self._current()
        if ch == "b":
            nxt = self._peek()
            if nxt in ('"', "'"):
                return True
            return nxt == "r" and self._raw_string_ahead(2)
        if ch == "r":
            return self._raw_string_ahead(1)
        return False

    def _raw_string_ahead(self, offset: int) -> bool:
        while self._peek(offset) == "#":
            offset += 1
        return self._peek(offset) == '"'

    def _scan_prefixed_string(self, line: int, col: int, start: int) -> None:
        """Scan ``b"..."``, ``b'.'``, ``r#"..."#`` and ``br"..."`` literals."""
        if self._current() == "b":
            self._advance()
            if self._current() == "'":
                self._scan_char_or_lifetime(line, col, start)
                return
            if self._current() == '"':
                self._scan_string(line, col, start)
                return
        self._advance()  # r
        hashes = 0
        while self._current() == "#":
            self._advance()
            hashes += 1
        self._advance()  # opening "
        terminator = '"' + "#" * hashes
        chars: list[str] = []
        while self._pos < len(self._source):
            if self._source.startswith(terminator, self._pos):
                for _ in terminator:
                    self._advance()
                self._emit(TokenType.STRING, "".join(chars), line, col, start)
                return
            chars.append(self._advance())
        raise self._error("Unterminated raw string literal", line, col, start)

    def _scan_char_or_lifetime(self, line: int, col: int, start: int) -> None:
        """Scan a char literal ``'x'`` or a lifetime ``'a``."""
        self._advance()  # opening '
        ch = self._current()
        if ch == "\\":
            value = self._scan_escape(line, col, start)
            if self._current() != "'":
                raise self._error("Unterminated char literal", line, col, start)
            self._advance()
            self._emit(TokenType.CHAR, value, line, col, start)
            return
        if ch and self._peek() == "'":
            self._advance()
            self._advance()
            self._emit(TokenType.CHAR, ch, line, col, start)
            return
        if ch.isalpha() or ch == "_":
            while self._pos < len(self._source) and (self._current().isalnum() or self._current() == "_"):
                self._advance()
            self._emit(TokenType.LIFETIME, self._source[start : self._pos], line, col, start)
            return
        raise self._error("Unterminated char literal", line, col, start)

    def _scan_number(self, line: int, col: int, start: int) -> None:
        """Scan an integer or floating-point literal, including type suffixes.

        A float requires at least one digit after the decimal point, so that
        ranges such as ``1..10`` scan as integer, dots, integer.
        """
        is_float = False
        if self._current() == "0" and self._peek() in ("x", "o", "b"):
            self._advance()
            self._advance()
            while self._pos < len(self._source) and (self._current().isalnum() or self._current() == "_"):
                self._advance()
            self._emit(TokenType.INTEGER, self._source[start : self._pos], line, col, start)
            return

        self._consume_digits()
        if self._current() == "." and self._peek().isdigit():
            is_float = True
            self._advance()  # consume the '.'
            self._consume_digits()
        if self._current() in ("e", "E") and (
            self._peek().isdigit() or (self._peek() in ("+", "-") and self._peek(2).isdigit())
        ):
            is_float = True
            self._advance()
            if self._current() in ("+", "-"):
                self._advance()
            self._consume_digits()
        # Type suffix such as u32 or f64.
        if self._current().isalpha() or self._current() == "_":
            while self._pos < len(self._source) and (self._current().isalnum() or self._current() == "_"):
                self._advance()
        value = self._source[start : self._pos]
        if value.endswith(("f32", "f64")):
            is_float = True
        self._emit(TokenType.FLOAT if is_float else TokenType.INTEGER, value, line, col, start)

    def _consume_digits(self) -> None:
        while self._pos < len(self._source) and (self._current().isdigit() or self._current() == "_"):
            self._advance()

    def _scan_identifier_or_keyword(self, line: int, col: int, start: int) -> None:
        """Scan an identifier and map it to a keyword token type if applicable."""
        while self._pos < len(self._source) and (self._current().isalnum() or self._current() == "_"):
            self._advance()
        value = self._source[start : self._pos]
        token_type = _KEYWORDS.get(value, TokenType.IDENTIFIER)
        self._emit(token_type, value, line, col, start)
