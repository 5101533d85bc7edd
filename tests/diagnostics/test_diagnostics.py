# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for diagnostic accumulation and rendering."""

import pytest

from paramex.diagnostics import (
    Diagnostic,
    DiagnosticCollector,
    DiagnosticKind,
    DiagnosticsError,
    Span,
    render_all,
    render_diagnostic,
)

# ###############
# Test Helpers
# ###############


def _span(source: str, fragment: str, occurrence: int = 0) -> Span:
    """Return the single-line span of the *occurrence*-th *fragment* in *source*."""
    start = -1
    for _ in range(occurrence + 1):
        start = source.index(fragment, start + 1)
    line = source.count("\n", 0, start) + 1
    column = start - (source.rfind("\n", 0, start) + 1) + 1
    return Span(
        line=line,
        column=column,
        end_line=line,
        end_column=column + len(fragment),
        start=start,
        end=start + len(fragment),
    )


# ###############
# Spans
# ###############


class TestSpan:
    def test_text(self) -> None:
        source = "a = 1, x = 2"
        assert _span(source, "x").text(source) == "x"

    def test_to_covers_both(self) -> None:
        source = "case(1, 2)"
        joined = _span(source, "case").to(_span(source, ")"))
        assert joined.text(source) == source
        assert joined.column == 1

    def test_str_is_line_and_column(self) -> None:
        assert str(_span("ab\n cd", "cd")) == "2:2"


# ###############
# Collector
# ###############


class TestCollector:
    def test_empty_collector(self) -> None:
        diagnostics = DiagnosticCollector()
        assert not diagnostics.has_errors()
        assert len(diagnostics) == 0
        diagnostics.raise_if_errors()

    def test_error_records_in_order(self) -> None:
        source = "a, b"
        diagnostics = DiagnosticCollector()
        diagnostics.error(DiagnosticKind.MISSING_ARGUMENT, "first", _span(source, "a"))
        diagnostics.error(DiagnosticKind.NO_CASES_FOR_ARGUMENT, "second", _span(source, "b"))
        assert [d.message for d in diagnostics] == ["first", "second"]
        assert diagnostics.has_errors()

    def test_related_spans_follow_primary(self) -> None:
        source = "a = 1, a = 2"
        diagnostics = DiagnosticCollector()
        diagnostic = diagnostics.error(
            DiagnosticKind.DUPLICATE_ARGUMENT, "dup", _span(source, "a", 1), _span(source, "a")
        )
        assert diagnostic.span.start == 7
        assert diagnostic.spans[1].start == 0

    def test_error_without_span(self) -> None:
        diagnostics = DiagnosticCollector()
        diagnostic = diagnostics.error(DiagnosticKind.SYNTAX_ERROR, "oops", notes=("hint",))
        assert diagnostic.span is None
        assert diagnostic.notes == ("hint",)
        assert str(diagnostic) == "error: oops"

    def test_of_kind(self) -> None:
        diagnostics = DiagnosticCollector()
        diagnostics.error(DiagnosticKind.SYNTAX_ERROR, "a")
        diagnostics.error(DiagnosticKind.MISSING_ARGUMENT, "b")
        diagnostics.error(DiagnosticKind.SYNTAX_ERROR, "c")
        assert [d.message for d in diagnostics.of_kind(DiagnosticKind.SYNTAX_ERROR)] == ["a", "c"]

    def test_extend(self) -> None:
        other = DiagnosticCollector()
        other.error(DiagnosticKind.SYNTAX_ERROR, "from elsewhere")
        diagnostics = DiagnosticCollector()
        diagnostics.extend(other)
        assert len(diagnostics) == 1

    def test_get_all_returns_copy(self) -> None:
        diagnostics = DiagnosticCollector()
        diagnostics.error(DiagnosticKind.SYNTAX_ERROR, "a")
        diagnostics.get_all().clear()
        assert len(diagnostics) == 1

    def test_raise_if_errors_carries_everything(self) -> None:
        diagnostics = DiagnosticCollector()
        diagnostics.error(DiagnosticKind.EMPTY_VALUES_LIST, "first")
        diagnostics.error(DiagnosticKind.WRONG_CASE_SIGNATURE, "second")
        with pytest.raises(DiagnosticsError) as exc_info:
            diagnostics.raise_if_errors()
        assert [d.message for d in exc_info.value.diagnostics] == ["first", "second"]
        assert str(exc_info.value).startswith("2 error(s):")

    def test_diagnostic_str_includes_position(self) -> None:
        source = "a\n  b"
        diagnostic = Diagnostic(DiagnosticKind.MISSING_ARGUMENT, "missing", (_span(source, "b"),))
        assert str(diagnostic) == "2:3: error: missing"

    def test_kind_str(self) -> None:
        assert str(DiagnosticKind.REPEATED_FUTURE_TAG) == "repeated-future-tag"


# ###############
# Rendering
# ###############


class TestRender:
    def test_pointer_under_primary_span(self) -> None:
        source = "a = 1, x = 2"
        diagnostic = Diagnostic(DiagnosticKind.MISSING_ARGUMENT, "missed", (_span(source, "x"),))
        assert render_diagnostic(diagnostic, source, "t.rs") == "\n".join(
            [
                "error: missed",
                " --> t.rs:1:8",
                "  |",
                "1 | a = 1, x = 2",
                "  | " + " " * 7 + "^",
            ]
        )

    def test_related_span_uses_dashes(self) -> None:
        source = "abc = 1, abc = 2"
        diagnostic = Diagnostic(
            DiagnosticKind.DUPLICATE_ARGUMENT,
            "dup",
            (_span(source, "abc", 1), _span(source, "abc")),
        )
        lines = render_diagnostic(diagnostic, source).splitlines()
        assert lines[4] == "  | " + " " * 9 + "^^^"
        assert lines[7] == "  | ---"

    def test_gutter_width_follows_largest_line(self) -> None:
        source = "\n" * 11 + "value"
        diagnostic = Diagnostic(DiagnosticKind.SYNTAX_ERROR, "bad", (_span(source, "value"),))
        lines = render_diagnostic(diagnostic, source).splitlines()
        assert lines[1] == "  --> <string>:12:1"
        assert lines[3] == "12 | value"

    def test_notes_appended(self) -> None:
        source = "partial_x(u8)"
        diagnostic = Diagnostic(
            DiagnosticKind.INVALID_PARTIAL_SYNTAX, "invalid partial syntax", (_span(source, "partial_x"),), ("n",)
        )
        assert render_diagnostic(diagnostic, source).splitlines()[-1] == "  = note: n"

    def test_without_span(self) -> None:
        diagnostic = Diagnostic(DiagnosticKind.SYNTAX_ERROR, "bad", (), ("n",))
        assert render_diagnostic(diagnostic, "") == "error: bad\n  = note: n"

    def test_multiline_span_underlines_first_line(self) -> None:
        source = "case(1,\n 2)"
        span = Span(line=1, column=5, end_line=2, end_column=3, start=4, end=11)
        diagnostic = Diagnostic(DiagnosticKind.WRONG_CASE_SIGNATURE, "wrong", (span,))
        assert render_diagnostic(diagnostic, source).splitlines()[-1] == "  | " + " " * 4 + "^^^"

    def test_colored_output_keeps_text(self) -> None:
        source = "x"
        diagnostic = Diagnostic(DiagnosticKind.MISSING_ARGUMENT, "missed", (_span(source, "x"),))
        rendered = render_diagnostic(diagnostic, source, color=True)
        assert "missed" in rendered
        assert "1 | x" in rendered

    def test_render_all_separates_with_blank_line(self) -> None:
        source = "a b"
        diagnostics = [
            Diagnostic(DiagnosticKind.MISSING_ARGUMENT, "one", (_span(source, "a"),)),
            Diagnostic(DiagnosticKind.MISSING_ARGUMENT, "two", (_span(source, "b"),)),
        ]
        rendered = render_all(diagnostics, source)
        assert "\n\nerror: two" in rendered
        assert rendered.startswith("error: one")
