# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Recursive-descent parser for source files of annotated functions.

Only function items are modelled. ``mod`` blocks are descended into; any
other item (``use``, ``struct``, ``impl``, ...) is skipped. Function bodies
are never parsed.

Syntax errors inside an attribute's arguments are recoverable: when a
:class:`~paramex.diagnostics.DiagnosticCollector` is supplied they are
recorded as SYNTAX_ERROR diagnostics and the attribute is dropped, so every
malformed attribute in a file is reported in one pass. Structural errors
(an unterminated function, a bad parameter list) always raise.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from paramex.diagnostics import DiagnosticCollector, DiagnosticKind, Span
from paramex.model.annotation import AnnotationModel, Case, Expr, Modifier
from paramex.model.signature import (
    ConstParam,
    FunctionItem,
    GenericParam,
    LifetimeParam,
    ParamAttribute,
    ParameterDescriptor,
    Signature,
    SourceFile,
    TypeParam,
)
from paramex.model.types import ReferenceType, TypeRef, path_type
from paramex.parser.annotation import parse_annotation_tokens
from paramex.parser.cursor import ParseError, TokenCursor
from paramex.parser.lexer import LexerError, Token, TokenType, tokenize

# ###############
# Public Interface
# ###############


def parse_signature(text: str) -> Signature:
    """Parse a single function signature such as ``fn add(a: u32, b: u32)``.

    The body may be omitted. Leading attributes are accepted and ignored.

    Raises:
        LexerError: If the text contains invalid characters or unterminated literals.
        ParseError: If the text is not a single function signature.
    """
    parser = _SourceParser(tokenize(text), text, None)
    item = parser.parse_function()
    if not parser.at_end():
        raise ParseError("Unexpected input after function signature", parser.current_span())
    return item.signature


def parse_source(text: str, diagnostics: DiagnosticCollector | None = None) -> SourceFile:
    """Parse a source file into its annotated function items.

    Args:
        text: The full text of the source file.
        diagnostics: Collector for recoverable attribute-level syntax errors.
            When omitted these raise like any other syntax error.

    Returns:
        A SourceFile listing every function item in source order.

    Raises:
        LexerError: If the source contains invalid characters or unterminated literals.
        ParseError: If the source is structurally invalid.
    """
    return _SourceParser(tokenize(text), text, diagnostics).parse()


# ################
# Implementation
# ################

_TEST_ATTRIBUTE = "rstest"
_FIXTURE_ATTRIBUTE = "fixture"
_CASE_ATTRIBUTE = "case"
_DEFAULT_ATTRIBUTE = "default"
_PARTIAL_PREFIX = "partial_"

# Qualifiers allowed between the visibility and the `fn` keyword.
_FN_QUALIFIERS = frozenset({"unsafe", "extern"})

_T = TypeVar("_T")


@dataclass
class _Attribute:
    """An outer attribute ``#[path(args)]`` before its meaning is applied."""

    path: list[str]
    span: Span
    args: list[Token] | None = None
    args_span: Span | None = None

    @property
    def name(self) -> str:
        return "::".join(self.path)


class _SourceParser(TokenCursor):
    """Recursive-descent parser for source token streams."""

    def __init__(self, tokens: list[Token], source: str, diagnostics: DiagnosticCollector | None) -> None:
        super().__init__(tokens, source)
        self._diagnostics = diagnostics

    def parse(self) -> SourceFile:
        """Parse the full token stream and return a SourceFile."""
        result = SourceFile()
        self._parse_items(result, TokenType.EOF)
        return result

    def at_end(self) -> bool:
        return self._at_end()

    def current_span(self) -> Span:
        return self._current().span

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def _parse_items(self, result: SourceFile, terminator: TokenType) -> None:
        while not self._check(terminator, TokenType.EOF):
            if self._check(TokenType.POUND) and self._peek_type(1) == TokenType.BANG:
                # Inner attribute `#![...]`.
                self._advance()
                self._advance()
                self._capture_group()
                continue
            attributes = self._parse_attributes()
            self._skip_visibility()
            if self._at_function():
                result.functions.append(self._finish_function(attributes))
            elif self._check(TokenType.IDENTIFIER) and self._current().value == "mod":
                self._parse_module(result)
            else:
                self._skip_item()

    def _parse_module(self, result: SourceFile) -> None:
        self._advance()  # mod
        self._expect_identifier()
        if self._check(TokenType.SEMICOLON):
            self._advance()
            return
        self._expect(TokenType.LBRACE)
        self._parse_items(result, TokenType.RBRACE)
        self._expect(TokenType.RBRACE)

    def _skip_item(self) -> None:
        """Skip a non-function item: up to a top-level ``;`` or through a ``{..}`` body."""
        start = self._current()
        while not self._at_end():
            if self._check(TokenType.SEMICOLON):
                self._advance()
                return
            if self._check(TokenType.LBRACE):
                self._capture_group()
                if self._check(TokenType.SEMICOLON):
                    self._advance()
                return
            if self._check(TokenType.LPAREN, TokenType.LBRACKET):
                self._capture_group()
            else:
                self._advance()
        raise self._error("Unterminated item", start)

    def _skip_visibility(self) -> None:
        if self._check(TokenType.PUB):
            self._advance()
            if self._check(TokenType.LPAREN):
                self._capture_group()

    def _at_function(self) -> bool:
        offset = 0
        while True:
            tok_type = self._peek_type(offset)
            if tok_type == TokenType.FN:
                return True
            tok = self._tokens[min(self._pos + offset, len(self._tokens) - 1)]
            if tok_type in (TokenType.ASYNC, TokenType.CONST, TokenType.STRING):
                offset += 1
            elif tok_type == TokenType.IDENTIFIER and tok.value in _FN_QUALIFIERS:
                offset += 1
            else:
                return False

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def parse_function(self) -> FunctionItem:
        """Parse one function item including its attributes."""
        attributes = self._parse_attributes()
        self._skip_visibility()
        return self._finish_function(attributes)

    def _finish_function(self, attributes: list[_Attribute]) -> FunctionItem:
        signature = self._parse_signature()
        self._skip_where_clause()
        if self._check(TokenType.LBRACE):
            self._capture_group()
        elif not self._at_end():
            self._expect(TokenType.SEMICOLON)
        item = FunctionItem(signature=signature)
        self._apply_attributes(item, attributes)
        return item

    def _parse_signature(self) -> Signature:
        start = self._current()
        is_async = False
        while not self._check(TokenType.FN):
            tok = self._advance()
            if tok.type == TokenType.ASYNC:
                is_async = True
            elif tok.type not in (TokenType.CONST, TokenType.STRING) and tok.value not in _FN_QUALIFIERS:
                raise self._error(f"Expected 'fn', got {tok.value!r}", tok)
        self._expect(TokenType.FN)
        name = self._expect_identifier().value
        generics: list[GenericParam] = []
        if self._check(TokenType.LANGLE):
            generics = self._parse_generics()
        parameters = self._parse_parameters()
        return_type = None
        if self._check(TokenType.ARROW):
            self._advance()
            return_type = self._parse_type()
        return Signature(
            name=name,
            span=self._span_from(start),
            is_async=is_async,
            generics=generics,
            parameters=parameters,
            return_type=return_type,
        )

    def _skip_where_clause(self) -> None:
        if not self._check(TokenType.WHERE):
            return
        while not self._check(TokenType.LBRACE, TokenType.SEMICOLON, TokenType.EOF):
            if self._check(TokenType.LPAREN, TokenType.LBRACKET):
                self._capture_group()
            else:
                self._advance()

    # ------------------------------------------------------------------
    # Generics
    # ------------------------------------------------------------------

    def _parse_generics(self) -> list[GenericParam]:
        self._expect(TokenType.LANGLE)
        generics: list[GenericParam] = []
        while not self._check(TokenType.RANGLE):
            generics.append(self._parse_generic_param())
            if not self._check(TokenType.COMMA):
                break
            self._advance()
        self._expect(TokenType.RANGLE)
        return generics

    def _parse_generic_param(self) -> GenericParam:
        tok = self._current()
        if tok.type == TokenType.LIFETIME:
            self._advance()
            bounds: list[str] = []
            if self._check(TokenType.COLON):
                self._advance()
                while self._check(TokenType.LIFETIME):
                    bounds.append(self._advance().value)
                    if not self._check(TokenType.PLUS):
                        break
                    self._advance()
            return LifetimeParam(name=tok.value, bounds=bounds)
        if tok.type == TokenType.CONST:
            self._advance()
            name = self._expect_identifier().value
            self._expect(TokenType.COLON)
            const_type = self._parse_type()
            if self._check(TokenType.EQUALS):
                self._advance()
                if self._check(TokenType.LBRACE):
                    self._capture_group()
                else:
                    self._advance()
            return ConstParam(name=name, type=const_type)
        name = self._expect_identifier().value
        bounds_text = None
        if self._check(TokenType.COLON):
            self._advance()
            if not self._check(TokenType.COMMA, TokenType.RANGLE, TokenType.EQUALS):
                first = self._current()
                self._parse_bounds()
                bounds_text = self._text(self._span_from(first))
        default = None
        if self._check(TokenType.EQUALS):
            self._advance()
            default = self._parse_type()
        return TypeParam(name=name, bounds=bounds_text, default=default)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def _parse_parameters(self) -> list[ParameterDescriptor]:
        self._expect(TokenType.LPAREN)
        parameters: list[ParameterDescriptor] = []
        while not self._check(TokenType.RPAREN):
            parameters.append(self._parse_parameter())
            if not self._check(TokenType.COMMA):
                break
            self._advance()
        self._expect(TokenType.RPAREN)
        return parameters

    def _parse_parameter(self) -> ParameterDescriptor:
        attributes = [a for a in map(self._to_param_attribute, self._parse_attributes()) if a is not None]
        start = self._current()
        receiver = self._try_parse_receiver(start)
        if receiver is not None:
            receiver.attributes = attributes
            return receiver

        is_mutable = False
        if self._check(TokenType.MUT):
            self._advance()
            is_mutable = True
        name_tok = self._expect_identifier()
        self._expect(TokenType.COLON)
        type_start = self._current()
        type_ref = self._parse_type()
        return ParameterDescriptor(
            name=name_tok.value,
            type=type_ref,
            span=self._span_from(start),
            type_span=self._span_from(type_start),
            is_mutable=is_mutable,
            attributes=attributes,
        )

    def _try_parse_receiver(self, start: Token) -> ParameterDescriptor | None:
        """Parse ``self``, ``mut self``, ``&self``, ``&mut self``, ``&'a self`` or ``self: T``."""
        offset = 0
        if self._peek_type() == TokenType.AMP:
            offset = 1
            if self._peek_type(offset) == TokenType.LIFETIME:
                offset += 1
        if self._peek_type(offset) == TokenType.MUT:
            offset += 1
        if self._peek_type(offset) != TokenType.SELF:
            return None

        is_reference = False
        lifetime = None
        is_mutable = False
        for _ in range(offset):
            tok = self._advance()
            if tok.type == TokenType.AMP:
                is_reference = True
            elif tok.type == TokenType.LIFETIME:
                lifetime = tok.value
            else:
                is_mutable = True
        self._expect(TokenType.SELF)
        type_ref: TypeRef | None = None
        type_span = None
        if self._check(TokenType.COLON):
            self._advance()
            type_start = self._current()
            type_ref = self._parse_type()
            type_span = self._span_from(type_start)
        elif is_reference:
            # `&'a mut self` is sugar for `self: &'a mut Self`.
            type_ref = ReferenceType(lifetime=lifetime, mutable=is_mutable, inner=path_type("Self"))
            type_span = self._span_from(start)
        return ParameterDescriptor(
            name="self",
            type=type_ref,
            span=self._span_from(start),
            type_span=type_span,
            is_receiver=True,
            is_mutable=is_mutable and not is_reference,
        )

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def _parse_attributes(self) -> list[_Attribute]:
        attributes: list[_Attribute] = []
        while self._check(TokenType.POUND) and self._peek_type(1) == TokenType.LBRACKET:
            attributes.append(self._parse_attribute())
        return attributes

    def _parse_attribute(self) -> _Attribute:
        pound = self._expect(TokenType.POUND)
        inner, _ = self._capture_group()
        return _AttributeParser(inner, self._source).parse(self._span_from(pound))

    def _to_param_attribute(self, attribute: _Attribute) -> ParamAttribute | None:
        args = None
        if attribute.args is not None:
            args = self._recover(attribute, lambda: _ExprListParser(attribute.args, self._source).parse())
            if args is None:
                return None
        return ParamAttribute(name=attribute.name, span=attribute.span, args=args, args_span=attribute.args_span)

    def _apply_attributes(self, item: FunctionItem, attributes: list[_Attribute]) -> None:
        """Fold the function's attributes into its kind and annotation."""
        annotation = item.annotation
        for attribute in attributes:
            head = attribute.path[0]
            if attribute.name in (_TEST_ATTRIBUTE, _FIXTURE_ATTRIBUTE):
                is_test = attribute.name == _TEST_ATTRIBUTE
                item.kind = "test" if is_test else "fixture"
                if attribute.args is not None:
                    parsed = self._recover(
                        attribute,
                        lambda a=attribute, t=is_test: parse_annotation_tokens(a.args, self._source, test=t),
                    )
                    if parsed is not None:
                        _merge(annotation, parsed)
            elif head == _CASE_ATTRIBUTE and len(attribute.path) <= 2:
                case = self._recover(attribute, lambda a=attribute: self._build_case(a))
                if case is not None:
                    annotation.cases.append(case)
            elif attribute.name == _DEFAULT_ATTRIBUTE or attribute.name.startswith(_PARTIAL_PREFIX):
                modifier = self._recover(attribute, lambda a=attribute: self._build_typed_modifier(a))
                if modifier is not None:
                    annotation.modifiers.modifiers.append(modifier)
            else:
                item.attributes.append(attribute.name)

    def _build_case(self, attribute: _Attribute) -> Case:
        if attribute.args is None or attribute.args_span is None:
            raise ParseError("Expected '(' after case", attribute.span)
        args = _ExprListParser(attribute.args, self._source).parse()
        description = attribute.path[1] if len(attribute.path) == 2 else None
        return Case(args=args, description=description, span=attribute.span, args_span=attribute.args_span)

    def _build_typed_modifier(self, attribute: _Attribute) -> Modifier:
        if attribute.args is None:
            raise ParseError(f"Expected '(' after {attribute.name}", attribute.span)
        sub = _TypeParser(attribute.args, self._source)
        return Modifier(name=attribute.name, span=attribute.span, type=sub.parse())

    def _recover(self, attribute: _Attribute, parse: Callable[[], _T]) -> _T | None:
        """Run *parse*; report syntax errors to the collector instead of raising."""
        try:
            return parse()
        except (LexerError, ParseError) as exc:
            if self._diagnostics is None:
                raise
            self._diagnostics.error(
                DiagnosticKind.SYNTAX_ERROR,
                exc.message,
                exc.span,
                notes=(f"in attribute #[{attribute.name}]",),
            )
            return None


class _AttributeParser(TokenCursor):
    """Parses the inside of ``#[...]``: a path and an optional argument group."""

    def parse(self, span: Span) -> _Attribute:
        path = [self._expect_identifier().value]
        while self._check(TokenType.PATH_SEP):
            self._advance()
            path.append(self._expect_identifier().value)
        if len(path) > 1 and path[0] == _TEST_ATTRIBUTE:
            path = path[1:]
        attribute = _Attribute(path=path, span=span)
        if self._check(TokenType.LPAREN):
            attribute.args, attribute.args_span = self._capture_group()
        return attribute


class _ExprListParser(TokenCursor):
    """Parses a bare comma-separated expression list, e.g. attribute arguments."""

    def parse(self) -> list[Expr]:
        exprs: list[Expr] = []
        while not self._at_end():
            exprs.append(self._parse_expr())
            if self._at_end():
                break
            self._expect(TokenType.COMMA)
        return exprs


class _TypeParser(TokenCursor):
    """Parses exactly one type."""

    def parse(self) -> TypeRef:
        type_ref = self._parse_type()
        if not self._at_end():
            raise self._error(f"Unexpected {self._current().value!r} after type")
        return type_ref


def _merge(target: AnnotationModel, parsed: AnnotationModel) -> None:
    target.items.extend(parsed.items)
    target.cases.extend(parsed.cases)
    target.modifiers.modifiers.extend(parsed.modifiers.modifiers)
