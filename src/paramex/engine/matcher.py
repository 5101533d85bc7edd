# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Matching of declared arguments against a function's parameter list.

Declarations come from two places: the items of the function's annotation
(fixture references, fixed values, case arguments, value lists) and the
attributes attached to individual parameters (``#[case]``, ``#[values(..)]``,
``#[with(..)]``, ``#[default(..)]``). Every declaration must name a
parameter, and no parameter may be bound twice. Parameters left unbound are
resolved through an implicitly named fixture.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from paramex.diagnostics import DiagnosticCollector, DiagnosticKind, Span
from paramex.model.annotation import AnnotationModel, ArgumentValue, CaseArg, FixtureRef, ValueList
from paramex.model.plan import Binding, BindingPlan, CaseSlot, DefaultValue, FixtureBinding, MatrixValueList
from paramex.model.signature import ParamAttribute, ParameterDescriptor, Signature

# ###############
# Public Interface
# ###############

MISSING_ARGUMENT_MESSAGE = "Missed argument: '{}' should be a test function argument."
DUPLICATE_ARGUMENT_MESSAGE = "Duplicate argument: '{}' is already defined."
NO_CASES_MESSAGE = "No cases for this argument."
WRONG_CASE_SIGNATURE_MESSAGE = "Wrong case signature: should match the given parameters list."
EMPTY_VALUES_MESSAGE = "Values list should not be empty"


def match_arguments(
    signature: Signature,
    annotation: AnnotationModel,
    diagnostics: DiagnosticCollector,
    *,
    strip_underscore: bool = True,
) -> BindingPlan:
    """Bind every parameter of *signature* according to *annotation*.

    All problems are recorded on *diagnostics*; the returned plan is only
    meaningful when no diagnostic was added.

    Checks performed:
    - Every declared name must be a (non-receiver) parameter.
    - No parameter may be declared more than once, across all declaration
      kinds. The second and later declarations are reported, each pointing
      back at the first.
    - Case arguments require at least one case.
    - Every case must supply exactly one value per case argument.
    - Value lists must not be empty.

    Args:
        signature: The annotated function's signature.
        annotation: Items and cases declared for the function.
        diagnostics: Collector receiving every error found.
        strip_underscore: Remove one leading underscore from a parameter
            name to derive its implicit fixture name.

    Returns:
        The binding plan, with bindings in parameter order.
    """
    return _Matcher(signature, annotation, diagnostics, strip_underscore).match()


def implicit_fixture_name(parameter: str, *, strip_underscore: bool = True) -> str:
    """Return the fixture that resolves an otherwise unbound parameter.

    >>> implicit_fixture_name("_db")
    'db'
    """
    if strip_underscore and parameter.startswith("_") and len(parameter) > 1:
        return parameter[1:]
    return parameter


# ################
# Implementation
# ################


@dataclass(frozen=True)
class _Declaration:
    """One place where a parameter is given a binding."""

    name: str
    span: Span
    binding: Binding


class _Matcher:
    """Resolves one annotation against one signature."""

    def __init__(
        self,
        signature: Signature,
        annotation: AnnotationModel,
        diagnostics: DiagnosticCollector,
        strip_underscore: bool,
    ) -> None:
        self._signature = signature
        self._annotation = annotation
        self._diagnostics = diagnostics
        self._strip_underscore = strip_underscore
        self._parameters: dict[str, ParameterDescriptor] = {
            p.name: p for p in signature.bindable_parameters()
        }

    def match(self) -> BindingPlan:
        """Run all checks and return the plan."""
        declarations = self._collect_declarations()
        bound: dict[str, _Declaration] = {}
        case_args: list[_Declaration] = []
        case_names: list[str] = []

        for decl in declarations:
            if isinstance(decl.binding, CaseSlot) and decl.name not in case_names:
                case_names.append(decl.name)
            if decl.name not in self._parameters:
                self._diagnostics.error(
                    DiagnosticKind.MISSING_ARGUMENT,
                    MISSING_ARGUMENT_MESSAGE.format(decl.name),
                    decl.span,
                )
                continue
            first = bound.get(decl.name)
            if first is not None:
                self._diagnostics.error(
                    DiagnosticKind.DUPLICATE_ARGUMENT,
                    DUPLICATE_ARGUMENT_MESSAGE.format(decl.name),
                    decl.span,
                    first.span,
                )
                continue
            bound[decl.name] = decl
            if isinstance(decl.binding, CaseSlot):
                case_args.append(decl)

        self._check_cases(case_args, len(case_names))

        plan = BindingPlan(cases=list(self._annotation.cases))
        for index, decl in enumerate(case_args):
            plan.case_args.append(decl.name)
            bound[decl.name] = _Declaration(
                decl.name, decl.span, CaseSlot(name=decl.name, index=index, span=decl.span)
            )
        plan.matrix = [d.name for d in bound.values() if isinstance(d.binding, MatrixValueList)]

        for parameter in self._signature.bindable_parameters():
            decl = bound.get(parameter.name)
            if decl is not None:
                plan.bindings[parameter.name] = decl.binding
            else:
                plan.bindings[parameter.name] = FixtureBinding(
                    name=parameter.name,
                    fixture=implicit_fixture_name(parameter.name, strip_underscore=self._strip_underscore),
                    span=parameter.span,
                    implicit=True,
                )
        logger.debug(
            f"Matched {len(bound)} declared and {len(plan.bindings) - len(bound)} implicit "
            f"argument(s) of '{self._signature.name}'"
        )
        return plan

    # ------------------------------------------------------------------
    # Declaration collection
    # ------------------------------------------------------------------

    def _collect_declarations(self) -> list[_Declaration]:
        """Return every declaration: annotation items first, then parameter attributes."""
        declarations = [self._from_item(item) for item in self._annotation.items]
        for parameter in self._signature.bindable_parameters():
            for attribute in parameter.attributes:
                decl = self._from_attribute(parameter, attribute)
                if decl is not None:
                    declarations.append(decl)
        return declarations

    def _from_item(self, item: FixtureRef | ArgumentValue | CaseArg | ValueList) -> _Declaration:
        if isinstance(item, FixtureRef):
            binding: Binding = FixtureBinding(
                name=item.name,
                fixture=item.name,
                args=list(item.positional),
                span=item.span,
            )
        elif isinstance(item, ArgumentValue):
            binding = DefaultValue(name=item.name, expr=item.expr, span=item.span)
        elif isinstance(item, CaseArg):
            binding = CaseSlot(name=item.name, index=-1, span=item.span)
        else:
            if not item.values:
                self._diagnostics.error(DiagnosticKind.EMPTY_VALUES_LIST, EMPTY_VALUES_MESSAGE, item.values_span)
            binding = MatrixValueList(name=item.name, values=list(item.values), span=item.span)
        return _Declaration(item.name, item.span, binding)

    def _from_attribute(self, parameter: ParameterDescriptor, attribute: ParamAttribute) -> _Declaration | None:
        name = parameter.name
        span = attribute.span
        args = attribute.args or []
        if attribute.name == "case":
            binding: Binding = CaseSlot(name=name, index=-1, span=span)
        elif attribute.name == "values":
            if not args:
                self._diagnostics.error(
                    DiagnosticKind.EMPTY_VALUES_LIST, EMPTY_VALUES_MESSAGE, attribute.args_span or span
                )
            binding = MatrixValueList(name=name, values=list(args), span=span)
        elif attribute.name == "with":
            binding = FixtureBinding(
                name=name,
                fixture=implicit_fixture_name(name, strip_underscore=self._strip_underscore),
                args=list(args),
                span=span,
            )
        elif attribute.name == "default":
            if len(args) != 1:
                self._diagnostics.error(
                    DiagnosticKind.SYNTAX_ERROR,
                    "Expected exactly one default value.",
                    attribute.args_span or span,
                )
                return None
            binding = DefaultValue(name=name, expr=args[0], span=span)
        else:
            return None
        return _Declaration(name, span, binding)

    # ------------------------------------------------------------------
    # Case checks
    # ------------------------------------------------------------------

    def _check_cases(self, case_args: list[_Declaration], arity: int) -> None:
        """Check the cases against *arity*, the number of distinct case-argument names.

        Names that failed to bind still count, so a missing or duplicate case
        argument is reported once and not again on every case.
        """
        cases = self._annotation.cases
        if case_args and not cases:
            for decl in case_args:
                self._diagnostics.error(DiagnosticKind.NO_CASES_FOR_ARGUMENT, NO_CASES_MESSAGE, decl.span)
        for case in cases:
            if len(case.args) != arity:
                self._diagnostics.error(
                    DiagnosticKind.WRONG_CASE_SIGNATURE,
                    WRONG_CASE_SIGNATURE_MESSAGE,
                    case.args_span,
                )
