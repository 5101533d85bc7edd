# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Recursive-descent parser for fixture and test annotations.

An annotation is an optional comma-separated item list followed by an
optional ``::``-introduced modifier section::

    value = 42, db("memory") :: trace :: notrace(db)

Test annotations additionally accept cases, matrix value lists, and bare
case-bound argument names::

    a, case(1), case::second(2), b => [10, 20]
"""

from __future__ import annotations

from paramex.model.annotation import (
    AnnotationModel,
    ArgumentValue,
    Case,
    CaseArg,
    FixtureRef,
    Modifier,
    ValueList,
)
from paramex.parser.cursor import TokenCursor
from paramex.parser.lexer import Token, TokenType, tokenize

# ###############
# Public Interface
# ###############


def parse_fixture_annotation(text: str) -> AnnotationModel:
    """Parse the arguments of a fixture annotation.

    Args:
        text: Annotation text, e.g. ``"value = 42, f(1) :: trace"``.

    Returns:
        The parsed annotation.

    Raises:
        LexerError: If the text contains invalid characters or unterminated literals.
        ParseError: If the text is syntactically invalid.
    """
    return parse_annotation_tokens(tokenize(text), text, test=False)


def parse_test_annotation(text: str) -> AnnotationModel:
    """Parse the arguments of a test annotation.

    Raises:
        LexerError: If the text contains invalid characters or unterminated literals.
        ParseError: If the text is syntactically invalid.
    """
    return parse_annotation_tokens(tokenize(text), text, test=True)


def parse_annotation_tokens(tokens: list[Token], source: str, *, test: bool) -> AnnotationModel:
    """Parse an already tokenized annotation.

    Spans in the result point into *source*, which lets annotations embedded
    in a larger file report positions relative to that file.

    Args:
        tokens: Annotation tokens ending with an EOF token.
        source: The text the token spans refer to.
        test: Accept the test grammar (cases, value lists, case arguments).
    """
    return _AnnotationParser(tokens, source, test=test).parse()


# ################
# Implementation
# ################

# Modifiers whose argument is a type rather than a list of identifiers.
_TYPED_MODIFIER = "default"
_PARTIAL_PREFIX = "partial_"


class _AnnotationParser(TokenCursor):
    """Recursive-descent parser for annotation token streams."""

    def __init__(self, tokens: list[Token], source: str, *, test: bool) -> None:
        super().__init__(tokens, source)
        self._test = test

    def parse(self) -> AnnotationModel:
        """Parse the full token stream and return an AnnotationModel."""
        model = AnnotationModel()
        if not self._at_end() and not self._check(TokenType.PATH_SEP):
            self._parse_items(model)
        if self._check(TokenType.PATH_SEP):
            self._advance()
            self._parse_modifiers(model)
        if not self._at_end():
            tok = self._current()
            raise self._error(f"Expected ',' or '::', got {tok.value!r}", tok)
        return model

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def _parse_items(self, model: AnnotationModel) -> None:
        while True:
            self._parse_item(model)
            if not self._check(TokenType.COMMA):
                return
            self._advance()
            # One trailing comma before the modifiers or the end.
            if self._check(TokenType.PATH_SEP) or self._at_end():
                return

    def _parse_item(self, model: AnnotationModel) -> None:
        name_tok = self._expect_identifier()
        nxt = self._peek_type()

        if self._test and name_tok.value == "case" and self._is_case_start():
            model.cases.append(self._parse_case(name_tok))
        elif nxt == TokenType.EQUALS:
            self._advance()
            expr = self._parse_expr()
            model.items.append(ArgumentValue(name=name_tok.value, span=name_tok.span, expr=expr))
        elif self._test and nxt == TokenType.FAT_ARROW:
            self._advance()
            values, values_span = self._parse_expr_list(TokenType.RBRACKET)
            model.items.append(
                ValueList(name=name_tok.value, span=name_tok.span, values=values, values_span=values_span)
            )
        elif nxt == TokenType.LPAREN:
            positional, _ = self._parse_expr_list(TokenType.RPAREN)
            model.items.append(FixtureRef(name=name_tok.value, span=name_tok.span, positional=positional))
        elif self._test:
            model.items.append(CaseArg(name=name_tok.value, span=name_tok.span))
        else:
            model.items.append(FixtureRef(name=name_tok.value, span=name_tok.span))

    def _is_case_start(self) -> bool:
        """Return True at ``(`` or ``::description(`` following a ``case`` keyword."""
        if self._check(TokenType.LPAREN):
            return True
        return (
            self._check(TokenType.PATH_SEP)
            and self._peek_type(1) == TokenType.IDENTIFIER
            and self._peek_type(2) == TokenType.LPAREN
        )

    def _parse_case(self, case_tok: Token) -> Case:
        description = None
        if self._check(TokenType.PATH_SEP):
            self._advance()
            description = self._expect_identifier().value
        args, args_span = self._parse_expr_list(TokenType.RPAREN)
        return Case(args=args, description=description, span=self._span_from(case_tok), args_span=args_span)

    # ------------------------------------------------------------------
    # Modifiers
    # ------------------------------------------------------------------

    def _parse_modifiers(self, model: AnnotationModel) -> None:
        while True:
            model.modifiers.modifiers.append(self._parse_modifier())
            if not self._check(TokenType.PATH_SEP):
                return
            self._advance()

    def _parse_modifier(self) -> Modifier:
        name_tok = self._expect_identifier()
        name = name_tok.value
        if name == _TYPED_MODIFIER or name.startswith(_PARTIAL_PREFIX):
            self._expect(TokenType.LPAREN)
            type_ref = self._parse_type()
            self._expect(TokenType.RPAREN)
            return Modifier(name=name, span=self._span_from(name_tok), type=type_ref)
        tags: list[str] = []
        if self._check(TokenType.LPAREN):
            self._advance()
            while not self._check(TokenType.RPAREN):
                tags.append(self._expect_identifier().value)
                if not self._check(TokenType.COMMA):
                    break
                self._advance()
            self._expect(TokenType.RPAREN)
        return Modifier(name=name, span=self._span_from(name_tok), tags=tags)
