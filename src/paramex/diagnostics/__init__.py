# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Positioned diagnostics: spans, kinds, accumulation, and rendering."""

from paramex.diagnostics.collector import DiagnosticCollector, DiagnosticsError
from paramex.diagnostics.diagnostic import Diagnostic, DiagnosticKind
from paramex.diagnostics.location import Span
from paramex.diagnostics.render import render_all, render_diagnostic

__all__ = [
    "Diagnostic",
    "DiagnosticCollector",
    "DiagnosticKind",
    "DiagnosticsError",
    "Span",
    "render_all",
    "render_diagnostic",
]
