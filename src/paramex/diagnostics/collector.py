# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Accumulation of diagnostics across a whole expansion pass.

No stage stops at its first failure: every check appends to a shared
:class:`DiagnosticCollector`, and the pass branches exactly once, at
:meth:`DiagnosticCollector.raise_if_errors`, into either a valid artifact or
the complete list of diagnostics.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from paramex.diagnostics.diagnostic import Diagnostic, DiagnosticKind
from paramex.diagnostics.location import Span

# ###############
# Public Interface
# ###############


class DiagnosticsError(Exception):
    """Raised when a pass finishes with one or more diagnostics.

    Attributes:
        diagnostics: Every diagnostic collected during the pass, in report order.
    """

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        lines = "\n".join(f"  {d}" for d in diagnostics)
        super().__init__(f"{len(diagnostics)} error(s):\n{lines}")
        self.diagnostics = diagnostics


class DiagnosticCollector:
    """Accumulates diagnostics produced by the parser and the engine stages."""

    def __init__(self) -> None:
        self._diagnostics: list[Diagnostic] = []

    def error(
        self,
        kind: DiagnosticKind,
        message: str,
        span: Span | None = None,
        *related: Span,
        notes: tuple[str, ...] = (),
    ) -> Diagnostic:
        """Record an error at *span*, optionally pointing at *related* spans too."""
        spans = ((span,) if span is not None else ()) + related
        diagnostic = Diagnostic(kind, message, spans, notes)
        self._diagnostics.append(diagnostic)
        return diagnostic

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        """Append already-built diagnostics, e.g. from another collector."""
        self._diagnostics.extend(diagnostics)

    def has_errors(self) -> bool:
        """Return True if any diagnostic has been recorded."""
        return bool(self._diagnostics)

    def get_all(self) -> list[Diagnostic]:
        """Return a copy of all collected diagnostics."""
        return list(self._diagnostics)

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        """Return the collected diagnostics of the given kind."""
        return [d for d in self._diagnostics if d.kind == kind]

    def raise_if_errors(self) -> None:
        """Raise :class:`DiagnosticsError` carrying everything collected so far."""
        if self._diagnostics:
            raise DiagnosticsError(self.get_all())

    def __len__(self) -> int:
        return len(self._diagnostics)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._diagnostics))
