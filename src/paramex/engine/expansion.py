# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Expansion of a binding plan into concretely named instantiations.

Cases form the outer dimension, in declaration order. Inside each case the
matrix value lists are enumerated as an odometer: the last declared list
varies fastest. For N cases (or one pseudo-case when there are none) and
matrix lists of sizes M1..Mk the result always holds N * M1 * ... * Mk
instantiations with pairwise distinct names.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

from loguru import logger

from paramex.engine.fixtures import fixture_call
from paramex.model.annotation import Case, Expr
from paramex.model.plan import (
    BindingPlan,
    CaseSlot,
    DefaultValue,
    FixtureBinding,
    FixtureCallBinding,
    Instantiation,
    LiteralBinding,
    MatrixValueList,
    ParamBinding,
    ParameterType,
)
from paramex.model.signature import Signature
from paramex.model.types import FutureType, render_type

# ###############
# Public Interface
# ###############


def expand_plan(
    signature: Signature,
    plan: BindingPlan,
    *,
    pad_indices: bool = True,
    describe_values: bool = False,
) -> list[Instantiation]:
    """Enumerate every instantiation of *plan*.

    Args:
        signature: The signature after the future rewrite; parameter types
            are copied into every instantiation.
        plan: A validated binding plan.
        pad_indices: Zero-pad indices to the digit count of their dimension
            size, so that names sort in enumeration order.
        describe_values: Append a fragment derived from simple literal matrix
            values to their name segment.

    Returns:
        The instantiations, in enumeration order.

    Raises:
        ValueError: If a matrix list is empty or a case has the wrong arity.
            The matcher reports both as diagnostics first.
    """
    expander = _Expander(signature, plan, pad_indices, describe_values)
    instantiations = list(expander.expand())
    logger.debug(f"Expanded '{signature.name}' into {len(instantiations)} instantiation(s)")
    return instantiations


def sanitize_fragment(text: str) -> str:
    """Turn arbitrary text into an identifier fragment.

    Runs of characters that cannot appear in an identifier collapse into a
    single underscore; leading and trailing underscores are dropped.

    >>> sanitize_fragment("hello world!")
    'hello_world'
    """
    return _NON_IDENT.sub("_", text).strip("_")


def literal_fragment(expr: Expr) -> str | None:
    """Return an identifier fragment describing a simple literal, or None.

    Strings, chars, numbers, and booleans are described; any other
    expression is not.
    """
    text = expr.text.strip()
    match = _STRING_LITERAL.fullmatch(text)
    if match is not None:
        body = match.group("body") if match.group("body") is not None else match.group("char")
        return sanitize_fragment(body) or None
    if text in ("true", "false"):
        return text
    if _NUMBER_LITERAL.fullmatch(text):
        prefix = "minus_" if text.startswith("-") else ""
        return prefix + sanitize_fragment(text.lstrip("-"))
    return None


# ################
# Implementation
# ################

_NON_IDENT = re.compile(r"[^0-9A-Za-z_]+")
_STRING_LITERAL = re.compile(r"""b?(?:"(?P<body>(?:[^"\\]|\\.)*)"|'(?P<char>(?:[^'\\]|\\.))')""", re.DOTALL)
_NUMBER_LITERAL = re.compile(r"-?[0-9][0-9_]*(?:\.[0-9_]+)?(?:[eE][+-]?[0-9_]+)?(?:[iuf](?:8|16|32|64|128|size))?")


class _Expander:
    """Odometer enumeration over cases and matrix dimensions."""

    def __init__(self, signature: Signature, plan: BindingPlan, pad_indices: bool, describe_values: bool) -> None:
        self._signature = signature
        self._plan = plan
        self._pad = pad_indices
        self._describe = describe_values
        self._lists = plan.matrix_lists()
        self._radices = [len(values.values) for values in self._lists]
        self._futures = {
            p.name for p in signature.bindable_parameters() if isinstance(p.type, FutureType)
        }
        self._parameter_types = tuple(
            ParameterType(name=p.name, type=render_type(p.type))
            for p in signature.bindable_parameters()
            if p.type is not None
        )

    def expand(self) -> Iterator[Instantiation]:
        for dimension, radix in zip(self._lists, self._radices):
            if radix == 0:
                raise ValueError(f"Matrix list '{dimension.name}' is empty")
        for case in self._plan.cases:
            if len(case.args) != len(self._plan.case_args):
                raise ValueError(f"Case at {case.args_span} does not match the case arguments")

        case_indices: list[int | None] = list(range(len(self._plan.cases))) or [None]
        for case_index in case_indices:
            indices = [0] * len(self._lists)
            while True:
                yield self._instantiate(case_index, indices)
                if not self._increment(indices):
                    break

    def _increment(self, indices: list[int]) -> bool:
        """Advance the odometer; return False once every combination was produced."""
        position = len(indices) - 1
        while position >= 0:
            indices[position] += 1
            if indices[position] < self._radices[position]:
                return True
            indices[position] = 0
            position -= 1
        return False

    def _instantiate(self, case_index: int | None, indices: list[int]) -> Instantiation:
        path: list[str] = []
        case = None
        if case_index is not None:
            case = self._plan.cases[case_index]
            path.append(self._case_segment(case_index, case))
        for dimension, radix, index in zip(self._lists, self._radices, indices):
            path.append(self._matrix_segment(dimension, radix, index))

        bindings = tuple(
            self._bind(binding, case, indices) for binding in self._plan.bindings.values()
        )
        return Instantiation(
            function=self._signature.name,
            path=tuple(path),
            bindings=bindings,
            parameter_types=self._parameter_types,
            case=None if case_index is None else case_index + 1,
            matrix_indices=tuple(i + 1 for i in indices),
        )

    def _number(self, index: int, size: int) -> str:
        number = str(index + 1)
        return number.zfill(len(str(size))) if self._pad else number

    def _case_segment(self, index: int, case: Case) -> str:
        segment = f"case_{self._number(index, len(self._plan.cases))}"
        if case.description:
            fragment = sanitize_fragment(case.description)
            if fragment:
                segment += f"_{fragment}"
        return segment

    def _matrix_segment(self, dimension: MatrixValueList, radix: int, index: int) -> str:
        segment = f"{dimension.name}_{self._number(index, radix)}"
        if self._describe:
            fragment = literal_fragment(dimension.values[index])
            if fragment:
                segment += f"_{fragment}"
        return segment

    def _bind(
        self,
        binding: FixtureBinding | CaseSlot | MatrixValueList | DefaultValue,
        case: Case | None,
        indices: list[int],
    ) -> ParamBinding:
        is_future = binding.name in self._futures
        if isinstance(binding, FixtureBinding):
            return FixtureCallBinding(name=binding.name, call=fixture_call(binding), is_future=is_future)
        if isinstance(binding, CaseSlot):
            if case is None:
                raise ValueError(f"Case argument '{binding.name}' has no cases")
            expr = case.args[binding.index]
        elif isinstance(binding, MatrixValueList):
            expr = binding.values[indices[self._plan.matrix.index(binding.name)]]
        else:
            expr = binding.expr
        return LiteralBinding(name=binding.name, expr=expr, is_future=is_future)
