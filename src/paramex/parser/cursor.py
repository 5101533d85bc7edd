# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Token cursor shared by the annotation and source parsers.

Besides the usual current/advance/expect helpers this module owns the two
sub-grammars both parsers need: opaque expression capture and the type
grammar used for parameter types, return types, and ``default(T)`` /
``partial_N(T)`` overrides.
"""

from __future__ import annotations

from paramex.diagnostics.location import Span
from paramex.model.annotation import Expr
from paramex.model.types import (
    ArrayType,
    BindingArg,
    Bound,
    ConstArg,
    GenericArg,
    ImplTraitType,
    InferType,
    LifetimeArg,
    MacroType,
    NeverType,
    PathSegment,
    PathType,
    ReferenceType,
    SliceType,
    TraitObjectType,
    TupleType,
    TypeRef,
    VerbatimType,
)
from paramex.parser.lexer import Token, TokenType

# ###############
# Public Interface
# ###############


class ParseError(Exception):
    """Raised when the parser encounters a syntactically invalid construct.

    Attributes:
        line: 1-based line number of the error.
        column: 1-based column number of the error.
        span: Span of the offending token.
    """

    def __init__(self, message: str, span: Span) -> None:
        super().__init__(f"Line {span.line}, column {span.column}: {message}")
        self.message = message
        self.line = span.line
        self.column = span.column
        self.span = span


class TokenCursor:
    """Recursive-descent base class over a token list ending in EOF.

    Args:
        tokens: Tokens to parse; the last one must be an EOF token.
        source: The text the token spans point into.
    """

    def __init__(self, tokens: list[Token], source: str) -> None:
        self._tokens = tokens
        self._source = source
        self._pos = 0
        self._last: Token | None = None

    # ------------------------------------------------------------------
    # Token access helpers
    # ------------------------------------------------------------------

    def _current(self) -> Token:
        """Return the current (un-consumed) token."""
        return self._tokens[self._pos]

    def _peek_type(self, offset: int = 0) -> TokenType:
        """Return the type of the token *offset* positions ahead."""
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index].type

    def _at_end(self) -> bool:
        """Return True if the current token is the EOF token."""
        return self._peek_type() == TokenType.EOF

    def _advance(self) -> Token:
        """Consume and return the current token, stopping at EOF."""
        tok = self._tokens[self._pos]
        if self._pos < len(self._tokens) - 1:
            self._pos += 1
        self._last = tok
        return tok

    def _expect(self, *types: TokenType) -> Token:
        """Consume the current token if it matches any of the given types.

        Raises ParseError if the current token does not match.
        """
        tok = self._current()
        if tok.type not in types:
            expected = ", ".join(repr(t.value) for t in types)
            raise self._error(f"Expected {expected}, got {_describe(tok)}", tok)
        return self._advance()

    def _check(self, *types: TokenType) -> bool:
        """Return True if the current token matches any of the given types (without
        consuming).
        """
        return self._peek_type() in types

    def _expect_identifier(self) -> Token:
        tok = self._current()
        if tok.type != TokenType.IDENTIFIER:
            raise self._error(f"Expected identifier, got {_describe(tok)}", tok)
        return self._advance()

    def _error(self, message: str, tok: Token | None = None) -> ParseError:
        return ParseError(message, (tok or self._current()).span)

    def _span_from(self, start: Token) -> Span:
        """Return the span from *start* through the last consumed token."""
        last = self._last if self._last is not None else start
        if last.span.end < start.span.start:
            return start.span
        return start.span.to(last.span)

    def _text(self, span: Span) -> str:
        return span.text(self._source)

    # ------------------------------------------------------------------
    # Delimited groups
    # ------------------------------------------------------------------

    def _capture_group(self) -> tuple[list[Token], Span]:
        """Consume a balanced ``(..)``, ``[..]`` or ``{..}`` group.

        Returns:
            The tokens strictly inside the delimiters followed by an EOF token
            positioned at the closing delimiter, and the span of the whole
            group including its delimiters.
        """
        open_tok = self._current()
        if open_tok.type not in _CLOSER_FOR:
            raise self._error(f"Expected '(', '[' or '{{', got {_describe(open_tok)}", open_tok)
        self._advance()
        stack = [_CLOSER_FOR[open_tok.type]]
        inner: list[Token] = []
        while True:
            tok = self._current()
            if tok.type == TokenType.EOF:
                raise self._error(f"Unclosed delimiter {open_tok.value!r}", open_tok)
            if tok.type in _CLOSER_FOR:
                stack.append(_CLOSER_FOR[tok.type])
            elif tok.type in _CLOSERS:
                if tok.type != stack[-1]:
                    raise self._error(f"Mismatched closing delimiter {tok.value!r}", tok)
                stack.pop()
                if not stack:
                    self._advance()
                    eof = Token(TokenType.EOF, "", tok.span)
                    return [*inner, eof], open_tok.span.to(tok.span)
            inner.append(self._advance())

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _parse_expr(self) -> Expr:
        """Capture one opaque expression as a balanced run of tokens.

        The run ends at a top-level ``,``, at a closing delimiter, at end of
        input, or at a top-level ``::`` that does not continue a path (i.e.
        one not preceded by an identifier or ``>``).
        """
        start = self._current()
        stack: list[TokenType] = []
        while True:
            tok = self._current()
            if not stack:
                if tok.type in _EXPR_TERMINATORS:
                    break
                if tok.type == TokenType.PATH_SEP and not self._continues_path():
                    break
            if tok.type == TokenType.EOF:
                raise self._error("Unclosed delimiter in expression", start)
            if tok.type in _CLOSER_FOR:
                stack.append(_CLOSER_FOR[tok.type])
            elif tok.type == TokenType.LANGLE and self._last is not None and self._last.type == TokenType.PATH_SEP:
                # Turbofish: `Vec::<u8>::new()`.
                stack.append(TokenType.RANGLE)
            elif tok.type == TokenType.RANGLE and stack and stack[-1] == TokenType.RANGLE:
                stack.pop()
            elif tok.type in _CLOSERS:
                if tok.type != stack[-1]:
                    raise self._error(f"Mismatched closing delimiter {tok.value!r}", tok)
                stack.pop()
            self._advance()
        if tok is start:
            raise self._error(f"Expected expression, got {_describe(tok)}", tok)
        span = self._span_from(start)
        return Expr(text=self._text(span), span=span)

    def _continues_path(self) -> bool:
        return self._last is not None and self._last.type in (
            TokenType.IDENTIFIER,
            TokenType.SELF,
            TokenType.RANGLE,
        )

    def _parse_expr_list(self, close: TokenType) -> tuple[list[Expr], Span]:
        """Parse ``open expr, expr, ... close``; a trailing comma is allowed.

        Returns the expressions and the span of the list including delimiters.
        """
        open_tok = self._expect(_OPENER_FOR[close])
        exprs: list[Expr] = []
        while not self._check(close):
            exprs.append(self._parse_expr())
            if not self._check(TokenType.COMMA):
                break
            self._advance()
        close_tok = self._expect(close)
        return exprs, open_tok.span.to(close_tok.span)

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def _parse_type(self) -> TypeRef:
        """Parse a type reference."""
        tok = self._current()
        if tok.type == TokenType.AMP:
            return self._parse_reference_type()
        if tok.type == TokenType.LPAREN:
            return self._parse_tuple_type()
        if tok.type == TokenType.LBRACKET:
            return self._parse_array_or_slice_type()
        if tok.type == TokenType.BANG:
            self._advance()
            return NeverType()
        if tok.type == TokenType.IMPL:
            self._advance()
            return ImplTraitType(bounds=self._parse_bounds())
        if tok.type == TokenType.DYN:
            self._advance()
            return TraitObjectType(bounds=self._parse_bounds())
        if tok.type == TokenType.STAR:
            return self._parse_pointer_type()
        if tok.type == TokenType.FN or (tok.type == TokenType.IDENTIFIER and tok.value in ("unsafe", "extern")):
            return self._parse_fn_pointer_type()
        if tok.type == TokenType.IDENTIFIER and tok.value == "_":
            self._advance()
            return InferType()
        if tok.type == TokenType.IDENTIFIER and self._peek_type(1) == TokenType.BANG:
            self._advance()
            self._advance()
            self._capture_group()
            return MacroType(text=self._text(self._span_from(tok)))
        if tok.type in (TokenType.IDENTIFIER, TokenType.SELF, TokenType.PATH_SEP):
            return self._parse_path_type()
        raise self._error(f"Expected type, got {_describe(tok)}", tok)

    def _parse_reference_type(self) -> ReferenceType:
        self._expect(TokenType.AMP)
        lifetime = None
        if self._check(TokenType.LIFETIME):
            lifetime = self._advance().value
        mutable = False
        if self._check(TokenType.MUT):
            self._advance()
            mutable = True
        return ReferenceType(lifetime=lifetime, mutable=mutable, inner=self._parse_type())

    def _parse_tuple_type(self) -> TypeRef:
        self._expect(TokenType.LPAREN)
        elements: list[TypeRef] = []
        trailing_comma = False
        while not self._check(TokenType.RPAREN):
            elements.append(self._parse_type())
            trailing_comma = False
            if not self._check(TokenType.COMMA):
                break
            self._advance()
            trailing_comma = True
        self._expect(TokenType.RPAREN)
        if len(elements) == 1 and not trailing_comma:
            # Parenthesized type: `(T)` is just `T`.
            return elements[0]
        return TupleType(elements=elements)

    def _parse_array_or_slice_type(self) -> TypeRef:
        self._expect(TokenType.LBRACKET)
        element = self._parse_type()
        if self._check(TokenType.SEMICOLON):
            self._advance()
            length = self._parse_expr()
            self._expect(TokenType.RBRACKET)
            return ArrayType(element=element, length=length.text)
        self._expect(TokenType.RBRACKET)
        return SliceType(element=element)

    def _parse_pointer_type(self) -> VerbatimType:
        start = self._expect(TokenType.STAR)
        self._expect(TokenType.CONST, TokenType.MUT)
        self._parse_type()
        return VerbatimType(text=self._text(self._span_from(start)))

    def _parse_fn_pointer_type(self) -> VerbatimType:
        start = self._current()
        while self._check(TokenType.IDENTIFIER, TokenType.STRING) and not self._check(TokenType.FN):
            self._advance()  # unsafe, extern "C"
        self._expect(TokenType.FN)
        self._capture_group()
        if self._check(TokenType.ARROW):
            self._advance()
            self._parse_type()
        return VerbatimType(text=self._text(self._span_from(start)))

    def _parse_path_type(self, maybe: bool = False) -> PathType:
        leading_colon = False
        if self._check(TokenType.PATH_SEP):
            self._advance()
            leading_colon = True
        segments: list[PathSegment] = []
        while True:
            name_tok = self._expect(TokenType.IDENTIFIER, TokenType.SELF)
            segment = PathSegment(name=name_tok.value)
            if self._check(TokenType.PATH_SEP) and self._peek_type(1) == TokenType.LANGLE:
                self._advance()
            if self._check(TokenType.LANGLE):
                segment.args = self._parse_generic_args()
            elif self._check(TokenType.LPAREN):
                self._parse_parenthesized_args(segment)
            segments.append(segment)
            if self._check(TokenType.PATH_SEP) and self._peek_type(1) in (TokenType.IDENTIFIER, TokenType.SELF):
                self._advance()
                continue
            break
        return PathType(segments=segments, leading_colon=leading_colon, maybe=maybe)

    def _parse_parenthesized_args(self, segment: PathSegment) -> None:
        """Parse ``Fn(A, B) -> C`` sugar into *segment*."""
        self._expect(TokenType.LPAREN)
        segment.parenthesized = True
        while not self._check(TokenType.RPAREN):
            segment.args.append(self._parse_type())
            if not self._check(TokenType.COMMA):
                break
            self._advance()
        self._expect(TokenType.RPAREN)
        if self._check(TokenType.ARROW):
            self._advance()
            segment.output = self._parse_type()

    def _parse_generic_args(self) -> list[GenericArg]:
        self._expect(TokenType.LANGLE)
        args: list[GenericArg] = []
        while not self._check(TokenType.RANGLE):
            args.append(self._parse_generic_arg())
            if not self._check(TokenType.COMMA):
                break
            self._advance()
        self._expect(TokenType.RANGLE)
        return args

    def _parse_generic_arg(self) -> GenericArg:
        tok = self._current()
        if tok.type == TokenType.LIFETIME:
            self._advance()
            return LifetimeArg(name=tok.value)
        if tok.type == TokenType.IDENTIFIER and self._peek_type(1) == TokenType.EQUALS:
            self._advance()
            self._advance()
            return BindingArg(name=tok.value, type=self._parse_type())
        if tok.type in (TokenType.INTEGER, TokenType.CHAR, TokenType.STRING):
            self._advance()
            return ConstArg(value=self._text(tok.span))
        if tok.type == TokenType.MINUS and self._peek_type(1) == TokenType.INTEGER:
            self._advance()
            self._advance()
            return ConstArg(value=self._text(self._span_from(tok)))
        if tok.type == TokenType.LBRACE:
            _, span = self._capture_group()
            return ConstArg(value=self._text(span))
        return self._parse_type()

    def _parse_bounds(self) -> list[Bound]:
        """Parse ``Bound + Bound + ...`` for ``impl``/``dyn`` types and generics."""
        bounds: list[Bound] = []
        while True:
            tok = self._current()
            if tok.type == TokenType.LIFETIME:
                self._advance()
                bounds.append(LifetimeArg(name=tok.value))
            elif tok.type == TokenType.QUESTION:
                self._advance()
                bounds.append(self._parse_path_type(maybe=True))
            elif tok.type == TokenType.LPAREN:
                self._advance()
                bounds.append(self._parse_path_type())
                self._expect(TokenType.RPAREN)
            elif tok.type == TokenType.IDENTIFIER and tok.value == "for" and self._peek_type(1) == TokenType.LANGLE:
                self._advance()
                self._parse_generic_args()
                self._parse_path_type()
                bounds.append(VerbatimType(text=self._text(self._span_from(tok))))
            else:
                bounds.append(self._parse_path_type())
            if not self._check(TokenType.PLUS):
                return bounds
            self._advance()


# ################
# Implementation
# ################

_CLOSER_FOR: dict[TokenType, TokenType] = {
    TokenType.LPAREN: TokenType.RPAREN,
    TokenType.LBRACKET: TokenType.RBRACKET,
    TokenType.LBRACE: TokenType.RBRACE,
}

_OPENER_FOR: dict[TokenType, TokenType] = {closer: opener for opener, closer in _CLOSER_FOR.items()}

_CLOSERS: frozenset[TokenType] = frozenset(_CLOSER_FOR.values())

_EXPR_TERMINATORS: frozenset[TokenType] = frozenset({TokenType.COMMA, TokenType.EOF, *_CLOSERS})


def _describe(tok: Token) -> str:
    return "end of input" if tok.type == TokenType.EOF else repr(tok.value)
