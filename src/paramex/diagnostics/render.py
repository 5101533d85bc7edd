# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiler-style rendering of diagnostics with source pointers."""

from __future__ import annotations

from yachalk import chalk

from paramex.diagnostics.diagnostic import Diagnostic
from paramex.diagnostics.location import Span

# ###############
# Public Interface
# ###############


def render_diagnostic(
    diagnostic: Diagnostic,
    source: str,
    filename: str = "<string>",
    *,
    color: bool = False,
) -> str:
    """Render a diagnostic as an ``error:`` header followed by caret pointers.

    The primary span is underlined with ``^`` and every related span with
    ``-``. A span covering several lines is underlined up to the end of its
    first line.

    Args:
        diagnostic: The diagnostic to render.
        source: The full source text the diagnostic's spans refer to.
        filename: Name shown in the ``-->`` location line.
        color: Whether to colour the output with ANSI escapes.

    Returns:
        The multi-line rendered text, without a trailing newline.
    """
    header = f"error: {diagnostic.message}"
    lines = [chalk.red.bold(header) if color else header]
    lines_of_source = source.splitlines()
    primary = diagnostic.span
    if primary is None:
        lines.extend(f"  = note: {note}" for note in diagnostic.notes)
        return "\n".join(lines)

    width = len(str(max(s.line for s in diagnostic.spans)))
    gutter = " " * width
    lines.append(f"{gutter}--> {filename}:{primary.line}:{primary.column}")
    for index, span in enumerate(diagnostic.spans):
        marker = "^" if index == 0 else "-"
        lines.extend(_snippet(span, lines_of_source, width, marker, color))
    lines.extend(f"{gutter} = note: {note}" for note in diagnostic.notes)
    return "\n".join(lines)


def render_all(
    diagnostics: list[Diagnostic],
    source: str,
    filename: str = "<string>",
    *,
    color: bool = False,
) -> str:
    """Render several diagnostics separated by blank lines."""
    return "\n\n".join(render_diagnostic(d, source, filename, color=color) for d in diagnostics)


# ################
# Implementation
# ################


def _snippet(span: Span, source_lines: list[str], width: int, marker: str, color: bool) -> list[str]:
    """Return the gutter, the source line, and the underline for one span."""
    gutter = " " * width
    text = source_lines[span.line - 1] if 0 < span.line <= len(source_lines) else ""
    if span.end_line == span.line:
        length = max(span.end_column - span.column, 1)
    else:
        length = max(len(text) - span.column + 1, 1)
    underline = marker * length
    if color:
        underline = chalk.red(underline) if marker == "^" else chalk.blue(underline)
    return [
        f"{gutter} |",
        f"{span.line:>{width}} | {text}",
        f"{gutter} | {' ' * (span.column - 1)}{underline}",
    ]
