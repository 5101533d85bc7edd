# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Binding plans and the instantiations expanded from them."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

from paramex.diagnostics.location import Span
from paramex.model.annotation import Case, Expr
from paramex.model.types import TypeRef

# ###############
# Public Interface
# ###############


class ReturnOverride(BaseModel):
    """How a fixture call's return type is specialized.

    Attributes:
        mode: ``none`` keeps the fixture's natural return type, ``default``
            uses the fixture's ``default(T)`` type, ``partial`` its
            ``partial_N(T)`` type and ``full`` means every argument is given.
        partial: N for ``partial`` overrides.
        type: The override type for ``default`` and ``partial``.
    """

    mode: Literal["none", "default", "partial", "full"] = "none"
    partial: int | None = None
    type: TypeRef | None = None


class FixtureBinding(BaseModel):
    """A parameter whose value comes from calling a fixture."""

    kind: Literal["fixture"] = "fixture"
    name: str
    fixture: str
    args: list[Expr] = _Field(default_factory=list)
    span: Span | None = None
    implicit: bool = False
    return_override: ReturnOverride = _Field(default_factory=ReturnOverride)


class CaseSlot(BaseModel):
    """A parameter taking its value from position *index* of every case."""

    kind: Literal["case"] = "case"
    name: str
    index: int
    span: Span


class MatrixValueList(BaseModel):
    """A parameter taking each of *values* in turn."""

    kind: Literal["matrix"] = "matrix"
    name: str
    values: list[Expr]
    span: Span


class DefaultValue(BaseModel):
    """A parameter bound to one fixed value."""

    kind: Literal["default"] = "default"
    name: str
    expr: Expr
    span: Span


Binding = Annotated[FixtureBinding | CaseSlot | MatrixValueList | DefaultValue, _Field(discriminator="kind")]


class BindingPlan(BaseModel):
    """Validated binding of every bindable parameter of a signature.

    Attributes:
        bindings: Parameter name to binding, in parameter order.
        case_args: Names of the case-bound parameters, in case-tuple order.
        cases: The cases, in declaration order.
        matrix: Names of the matrix-bound parameters, in declaration order.
    """

    bindings: dict[str, Binding] = _Field(default_factory=dict)
    case_args: list[str] = _Field(default_factory=list)
    cases: list[Case] = _Field(default_factory=list)
    matrix: list[str] = _Field(default_factory=list)

    def fixtures(self) -> list[FixtureBinding]:
        return [b for b in self.bindings.values() if isinstance(b, FixtureBinding)]

    def matrix_lists(self) -> list[MatrixValueList]:
        """Return the matrix dimensions in declaration order."""
        lists = [self.bindings[name] for name in self.matrix]
        return [b for b in lists if isinstance(b, MatrixValueList)]


class FixtureCall(BaseModel):
    """A fixture invocation: name, positional arguments, and return override."""

    fixture: str
    args: list[Expr] = _Field(default_factory=list)
    return_override: ReturnOverride = _Field(default_factory=ReturnOverride)


class LiteralBinding(BaseModel):
    """A parameter bound to a literal expression in one instantiation."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["literal"] = "literal"
    name: str
    expr: Expr
    is_future: bool = False


class FixtureCallBinding(BaseModel):
    """A parameter bound to a fixture call in one instantiation."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["fixture_call"] = "fixture_call"
    name: str
    call: FixtureCall
    is_future: bool = False


ParamBinding = Annotated[LiteralBinding | FixtureCallBinding, _Field(discriminator="kind")]


class ParameterType(BaseModel):
    """The (possibly rewritten) declared type of a parameter, rendered as text."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str


class Instantiation(BaseModel):
    """One fully bound, concretely named test entry.

    Attributes:
        function: Name of the annotated function.
        path: Name segments, e.g. ``["case_1", "b_2"]``; empty when the
            function has neither cases nor matrix lists.
        bindings: One binding per bindable parameter, in parameter order.
        parameter_types: Declared parameter types after the future rewrite.
        case: 1-based case index, if the function has cases.
        matrix_indices: 1-based index into each matrix dimension.
    """

    model_config = ConfigDict(frozen=True)

    function: str
    path: tuple[str, ...] = ()
    bindings: tuple[ParamBinding, ...] = ()
    parameter_types: tuple[ParameterType, ...] = ()
    case: int | None = None
    matrix_indices: tuple[int, ...] = ()

    @property
    def name(self) -> str:
        """Return the instantiation name relative to the function."""
        return "::".join(self.path) if self.path else self.function

    @property
    def qualified_name(self) -> str:
        """Return ``function::segment::...``."""
        return "::".join((self.function, *self.path))

    def binding(self, name: str) -> LiteralBinding | FixtureCallBinding:
        """Return the binding of parameter *name*."""
        for b in self.bindings:
            if b.name == name:
                return b
        raise KeyError(name)


# Resolve forward references for models that use TypeRef.
ReturnOverride.model_rebuild()
FixtureBinding.model_rebuild()
BindingPlan.model_rebuild()
FixtureCall.model_rebuild()
FixtureCallBinding.model_rebuild()
Instantiation.model_rebuild()
