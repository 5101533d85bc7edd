# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexer and parsers for annotations and annotated source files."""

from paramex.parser.annotation import parse_annotation_tokens, parse_fixture_annotation, parse_test_annotation
from paramex.parser.cursor import ParseError
from paramex.parser.lexer import LexerError, Token, TokenType, tokenize
from paramex.parser.source import parse_signature, parse_source

__all__ = [
    "LexerError",
    "ParseError",
    "Token",
    "TokenType",
    "parse_annotation_tokens",
    "parse_fixture_annotation",
    "parse_signature",
    "parse_source",
    "parse_test_annotation",
    "tokenize",
]
