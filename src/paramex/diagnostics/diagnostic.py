# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Diagnostic kinds and the diagnostic record reported by every engine stage."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from paramex.diagnostics.location import Span

# ###############
# Public Interface
# ###############


class DiagnosticKind(enum.Enum):
    """Every failure the engine can report."""

    SYNTAX_ERROR = "syntax-error"
    MISSING_ARGUMENT = "missing-argument"
    DUPLICATE_ARGUMENT = "duplicate-argument"
    NO_CASES_FOR_ARGUMENT = "no-cases-for-argument"
    WRONG_CASE_SIGNATURE = "wrong-case-signature"
    EMPTY_VALUES_LIST = "empty-values-list"
    INVALID_PARTIAL_SYNTAX = "invalid-partial-syntax"
    REPEATED_DEFAULT_OR_PARTIAL = "repeated-default-or-partial"
    TYPE_NOT_ELIGIBLE_FOR_FUTURE = "type-not-eligible-for-future"
    REPEATED_FUTURE_TAG = "repeated-future-tag"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Diagnostic:
    """A single positioned error.

    Attributes:
        kind: The category of the error.
        message: Human-readable description of the error.
        spans: Source spans of the error; the first is the primary location,
            any further spans point at related code (e.g. a first definition).
        notes: Additional free-form hints shown after the pointer.
    """

    kind: DiagnosticKind
    message: str
    spans: tuple[Span, ...] = ()
    notes: tuple[str, ...] = ()

    @property
    def span(self) -> Span | None:
        """Return the primary span, if any."""
        return self.spans[0] if self.spans else None

    def __str__(self) -> str:
        loc = f"{self.span}: " if self.span else ""
        return f"{loc}error: {self.message}"
