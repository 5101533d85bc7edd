# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Source spans attached to tokens, parsed nodes, and diagnostics."""

from __future__ import annotations

from dataclasses import dataclass

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class Span:
    """A contiguous region of source text.

    Attributes:
        line: 1-based line number where the span starts.
        column: 1-based column number where the span starts.
        end_line: 1-based line number of the last character.
        end_column: 1-based column just past the last character.
        start: 0-based character offset of the first character.
        end: 0-based character offset just past the last character.
    """

    line: int
    column: int
    end_line: int
    end_column: int
    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"

    def to(self, other: Span) -> Span:
        """Return the span covering *self* through the end of *other*."""
        return Span(
            line=self.line,
            column=self.column,
            end_line=other.end_line,
            end_column=other.end_column,
            start=self.start,
            end=other.end,
        )

    def text(self, source: str) -> str:
        """Return the slice of *source* covered by this span."""
        return source[self.start : self.end]
