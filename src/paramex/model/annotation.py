# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Structured model of a parsed annotation: items, cases, and modifiers."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel
from pydantic import Field as _Field

from paramex.diagnostics.location import Span
from paramex.model.types import TypeRef

# ###############
# Public Interface
# ###############


class Expr(BaseModel):
    """An opaque literal expression: its exact source text and position."""

    text: str
    span: Span


class FixtureRef(BaseModel):
    """``name`` or ``name(arg, ...)``: resolve *name* through a fixture."""

    kind: Literal["fixture"] = "fixture"
    name: str
    span: Span
    positional: list[Expr] = _Field(default_factory=list)


class ArgumentValue(BaseModel):
    """``name = expr``: bind *name* to a fixed value."""

    kind: Literal["value"] = "value"
    name: str
    span: Span
    expr: Expr


class CaseArg(BaseModel):
    """A bare ``name`` in a test annotation: *name* takes its value from cases."""

    kind: Literal["case_arg"] = "case_arg"
    name: str
    span: Span


class ValueList(BaseModel):
    """``name => [v1, v2, ...]``: one matrix dimension."""

    kind: Literal["values"] = "values"
    name: str
    span: Span
    values: list[Expr] = _Field(default_factory=list)
    values_span: Span


# One annotation item. Every variant exposes `name` and `span`.
Item = Annotated[FixtureRef | ArgumentValue | CaseArg | ValueList, _Field(discriminator="kind")]


class Case(BaseModel):
    """``case(...)`` or ``case::description(...)``: one tuple of case values.

    Attributes:
        args: Values bound, in order, to the case-bound parameters.
        description: Optional human-readable description.
        span: Span of the whole case declaration.
        args_span: Span of the argument list (including parentheses).
    """

    args: list[Expr] = _Field(default_factory=list)
    description: str | None = None
    span: Span
    args_span: Span


class Modifier(BaseModel):
    """One entry of the ``::``-separated modifier section.

    A plain flag (``trace``) has neither *tags* nor *type*; a tagged modifier
    (``notrace(a, b)``) carries identifiers; ``default(T)`` and
    ``partial_N(T)`` carry a type.
    """

    name: str
    span: Span
    tags: list[str] = _Field(default_factory=list)
    type: TypeRef | None = None


class ModifierSet(BaseModel):
    """Ordered collection of modifiers with name-based lookup."""

    modifiers: list[Modifier] = _Field(default_factory=list)

    def has(self, name: str) -> bool:
        """Return True if a modifier with *name* is present."""
        return any(m.name == name for m in self.modifiers)

    def get_all(self, name: str) -> list[Modifier]:
        """Return every modifier named *name*, in declaration order."""
        return [m for m in self.modifiers if m.name == name]

    def tags(self, name: str) -> list[str]:
        """Return the tags of every modifier named *name*, concatenated."""
        return [t for m in self.get_all(name) for t in m.tags]

    def typed(self) -> list[Modifier]:
        """Return the modifiers that carry a type."""
        return [m for m in self.modifiers if m.type is not None]

    def __len__(self) -> int:
        return len(self.modifiers)


class AnnotationModel(BaseModel):
    """A parsed annotation.

    Item order is preserved for diagnostics only; lookups are by name.
    Item names need not be unique here, uniqueness is checked by the matcher.
    """

    items: list[Item] = _Field(default_factory=list)
    cases: list[Case] = _Field(default_factory=list)
    modifiers: ModifierSet = _Field(default_factory=ModifierSet)

    def fixtures(self) -> list[FixtureRef]:
        return [i for i in self.items if isinstance(i, FixtureRef)]

    def values(self) -> list[ArgumentValue]:
        return [i for i in self.items if isinstance(i, ArgumentValue)]

    def case_args(self) -> list[CaseArg]:
        return [i for i in self.items if isinstance(i, CaseArg)]

    def value_lists(self) -> list[ValueList]:
        return [i for i in self.items if isinstance(i, ValueList)]


# Resolve forward references for models that use TypeRef.
Modifier.model_rebuild()
ModifierSet.model_rebuild()
AnnotationModel.model_rebuild()
