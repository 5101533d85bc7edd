# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for matching declared arguments against a parameter list."""

import itertools

import pytest

from paramex.diagnostics import DiagnosticCollector, DiagnosticKind
from paramex.engine.matcher import implicit_fixture_name, match_arguments
from paramex.model.plan import BindingPlan, CaseSlot, DefaultValue, FixtureBinding, MatrixValueList
from paramex.parser.annotation import parse_test_annotation
from paramex.parser.source import parse_signature

# ###############
# Test Helpers
# ###############


def _match(signature: str, annotation: str = "", **kwargs: bool) -> tuple[BindingPlan, DiagnosticCollector]:
    diagnostics = DiagnosticCollector()
    plan = match_arguments(parse_signature(signature), parse_test_annotation(annotation), diagnostics, **kwargs)
    return plan, diagnostics


def _kinds(diagnostics: DiagnosticCollector) -> list[DiagnosticKind]:
    return [d.kind for d in diagnostics]


_DECLARATIONS_OF_A = {
    "fixture": "a(1)",
    "default": "a = 1",
    "case": "a",
    "matrix": "a => [1]",
}


# ###############
# Valid Plans
# ###############


class TestValidPlans:
    def test_every_declaration_kind(self) -> None:
        plan, diagnostics = _match(
            "fn t(f: u32, v: u32, c: u32, m: u32)",
            "f(1), v = 2, c, case(3), m => [4, 5]",
        )
        assert not diagnostics.has_errors()
        assert isinstance(plan.bindings["f"], FixtureBinding)
        assert isinstance(plan.bindings["v"], DefaultValue)
        assert isinstance(plan.bindings["c"], CaseSlot)
        assert isinstance(plan.bindings["m"], MatrixValueList)

    def test_bindings_follow_parameter_order(self) -> None:
        plan, _ = _match("fn t(a: u32, b: u32, c: u32)", "c = 1, a = 2")
        assert list(plan.bindings) == ["a", "b", "c"]

    def test_fixture_ref_arguments_kept(self) -> None:
        plan, _ = _match("fn t(db: Db)", 'db("memory", 3)')
        binding = plan.bindings["db"]
        assert isinstance(binding, FixtureBinding)
        assert binding.fixture == "db"
        assert [a.text for a in binding.args] == ['"memory"', "3"]
        assert not binding.implicit

    def test_case_args_keep_declaration_order(self) -> None:
        plan, _ = _match("fn t(a: u32, b: u32)", "b, a, case(1, 2)")
        assert plan.case_args == ["b", "a"]
        assert plan.bindings["b"].index == 0
        assert plan.bindings["a"].index == 1

    def test_matrix_dimensions_keep_declaration_order(self) -> None:
        plan, _ = _match("fn t(a: u32, b: u32)", "b => [1], a => [2]")
        assert plan.matrix == ["b", "a"]
        assert [m.name for m in plan.matrix_lists()] == ["b", "a"]

    def test_cases_copied_into_plan(self) -> None:
        plan, _ = _match("fn t(a: u32)", "a, case(1), case::two(2)")
        assert [c.description for c in plan.cases] == [None, "two"]

    def test_receiver_is_never_bound(self) -> None:
        plan, diagnostics = _match("fn t(&self, a: u32)")
        assert list(plan.bindings) == ["a"]
        assert not diagnostics.has_errors()


# ###############
# Implicit Fixtures
# ###############


class TestImplicitFixtures:
    def test_unbound_parameters_become_fixtures(self) -> None:
        plan, _ = _match("fn t(db: Db, cache: Cache)")
        assert [b.fixture for b in plan.fixtures()] == ["db", "cache"]
        assert all(b.implicit for b in plan.fixtures())

    def test_leading_underscore_stripped(self) -> None:
        plan, _ = _match("fn t(_db: Db)")
        assert plan.bindings["_db"].fixture == "db"

    def test_underscore_kept_when_disabled(self) -> None:
        plan, _ = _match("fn t(_db: Db)", strip_underscore=False)
        assert plan.bindings["_db"].fixture == "_db"

    def test_only_one_underscore_stripped(self) -> None:
        assert implicit_fixture_name("__db") == "_db"

    def test_lone_underscore_kept(self) -> None:
        assert implicit_fixture_name("_") == "_"


# ###############
# Parameter Attributes
# ###############


class TestParameterAttributes:
    def test_case_attribute(self) -> None:
        plan, diagnostics = _match("fn t(#[case] a: u32)", "case(1)")
        assert not diagnostics.has_errors()
        assert plan.case_args == ["a"]

    def test_values_attribute(self) -> None:
        plan, _ = _match("fn t(#[values(1, 2)] a: u32)")
        binding = plan.bindings["a"]
        assert isinstance(binding, MatrixValueList)
        assert [v.text for v in binding.values] == ["1", "2"]

    def test_with_attribute_overrides_fixture_arguments(self) -> None:
        plan, _ = _match("fn t(#[with(3)] _conn: Conn)")
        binding = plan.bindings["_conn"]
        assert isinstance(binding, FixtureBinding)
        assert binding.fixture == "conn"
        assert [a.text for a in binding.args] == ["3"]
        assert not binding.implicit

    def test_default_attribute(self) -> None:
        plan, _ = _match("fn t(#[default(5)] a: u32)")
        binding = plan.bindings["a"]
        assert isinstance(binding, DefaultValue)
        assert binding.expr.text == "5"

    def test_default_attribute_needs_one_value(self) -> None:
        _, diagnostics = _match("fn t(#[default(1, 2)] a: u32)")
        assert _kinds(diagnostics) == [DiagnosticKind.SYNTAX_ERROR]

    def test_future_attribute_does_not_bind(self) -> None:
        plan, _ = _match("fn t(#[future] a: u32)")
        assert plan.bindings["a"].implicit


# ###############
# Missing Arguments
# ###############


class TestMissingArguments:
    def test_unknown_name_reported_once(self) -> None:
        _, diagnostics = _match("fn t(a: u32, b: u32)", "a = 1, x = 2, b = 3")
        assert _kinds(diagnostics) == [DiagnosticKind.MISSING_ARGUMENT]
        assert "'x'" in diagnostics.get_all()[0].message

    def test_message_wording(self) -> None:
        _, diagnostics = _match("fn t()", "x")
        assert diagnostics.get_all()[0].message == "Missed argument: 'x' should be a test function argument."

    def test_positioned_at_declaration(self) -> None:
        text = "a = 1, missing(2)"
        _, diagnostics = _match("fn t(a: u32)", text)
        assert diagnostics.get_all()[0].span.text(text) == "missing"

    def test_every_unknown_name_reported(self) -> None:
        _, diagnostics = _match("fn t()", "x = 1, y => [1], z")
        assert _kinds(diagnostics) == [DiagnosticKind.MISSING_ARGUMENT] * 3

    def test_unknown_case_argument_leaves_cases_alone(self) -> None:
        _, diagnostics = _match("fn t(a: u32, b: u32)", "x, case(1), case(2)")
        assert _kinds(diagnostics) == [DiagnosticKind.MISSING_ARGUMENT]

    def test_unknown_among_bound_case_arguments(self) -> None:
        _, diagnostics = _match("fn t(a: u32)", "a, x, case(1, 2)")
        assert _kinds(diagnostics) == [DiagnosticKind.MISSING_ARGUMENT]


# ###############
# Duplicate Arguments
# ###############


class TestDuplicateArguments:
    def test_reported_at_second_occurrence(self) -> None:
        text = "a = 1, a = 2"
        _, diagnostics = _match("fn t(a: u32)", text)
        assert _kinds(diagnostics) == [DiagnosticKind.DUPLICATE_ARGUMENT]
        diagnostic = diagnostics.get_all()[0]
        assert diagnostic.message == "Duplicate argument: 'a' is already defined."
        assert diagnostic.spans[0].start == text.rindex("a =")
        assert diagnostic.spans[1].start == 0

    def test_first_binding_wins(self) -> None:
        plan, _ = _match("fn t(a: u32)", "a = 1, a = 2")
        assert plan.bindings["a"].expr.text == "1"

    def test_across_categories(self) -> None:
        _, diagnostics = _match("fn t(a: u32)", "a, case(1), a => [1]")
        assert _kinds(diagnostics) == [DiagnosticKind.DUPLICATE_ARGUMENT]

    @pytest.mark.parametrize(("first", "second"), list(itertools.permutations(_DECLARATIONS_OF_A, 2)))
    def test_every_pair_of_categories(self, first: str, second: str) -> None:
        annotation = f"{_DECLARATIONS_OF_A[first]}, {_DECLARATIONS_OF_A[second]}"
        if "case" in (first, second):
            annotation += ", case(1)"
        _, diagnostics = _match("fn t(a: u32)", annotation)
        assert _kinds(diagnostics) == [DiagnosticKind.DUPLICATE_ARGUMENT]

    def test_repeated_case_argument(self) -> None:
        _, diagnostics = _match("fn t(a: u32)", "a, a, case(1)")
        assert _kinds(diagnostics) == [DiagnosticKind.DUPLICATE_ARGUMENT]

    def test_annotation_and_parameter_attribute(self) -> None:
        _, diagnostics = _match("fn t(#[values(1)] a: u32)", "a = 3")
        assert _kinds(diagnostics) == [DiagnosticKind.DUPLICATE_ARGUMENT]

    def test_every_later_occurrence_reported(self) -> None:
        _, diagnostics = _match("fn t(a: u32)", "a = 1, a = 2, a(3)")
        assert _kinds(diagnostics) == [DiagnosticKind.DUPLICATE_ARGUMENT] * 2


# ###############
# Cases and Value Lists
# ###############


class TestCaseChecks:
    def test_case_args_without_cases(self) -> None:
        _, diagnostics = _match("fn t(a: u32, b: u32)", "a, b")
        assert _kinds(diagnostics) == [DiagnosticKind.NO_CASES_FOR_ARGUMENT] * 2
        assert diagnostics.get_all()[0].message == "No cases for this argument."

    def test_wrong_case_arity(self) -> None:
        text = "a, b, case(1), case(1, 2), case(1, 2, 3)"
        _, diagnostics = _match("fn t(a: u32, b: u32)", text)
        assert _kinds(diagnostics) == [DiagnosticKind.WRONG_CASE_SIGNATURE] * 2
        assert [d.span.text(text) for d in diagnostics] == ["(1)", "(1, 2, 3)"]

    def test_case_without_case_args(self) -> None:
        _, diagnostics = _match("fn t(a: u32)", "case(1)")
        assert _kinds(diagnostics) == [DiagnosticKind.WRONG_CASE_SIGNATURE]

    def test_empty_value_list(self) -> None:
        text = "b => []"
        _, diagnostics = _match("fn t(b: u32)", text)
        assert _kinds(diagnostics) == [DiagnosticKind.EMPTY_VALUES_LIST]
        assert diagnostics.get_all()[0].span.text(text) == "[]"

    def test_empty_values_attribute(self) -> None:
        _, diagnostics = _match("fn t(#[values()] b: u32)")
        assert _kinds(diagnostics) == [DiagnosticKind.EMPTY_VALUES_LIST]

    def test_all_problems_collected(self) -> None:
        _, diagnostics = _match("fn t(a: u32, b: u32)", "x = 1, a = 1, a = 2, b => []")
        assert sorted(str(kind) for kind in _kinds(diagnostics)) == [
            "duplicate-argument",
            "empty-values-list",
            "missing-argument",
        ]
