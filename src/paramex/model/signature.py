# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Function signatures as seen by the engine: parameters, generics, attributes."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel
from pydantic import Field as _Field

from paramex.diagnostics.location import Span
from paramex.model.annotation import AnnotationModel, Expr
from paramex.model.types import TypeRef

# ###############
# Public Interface
# ###############


class ParamAttribute(BaseModel):
    """An attribute attached to a single parameter, e.g. ``#[values(1, 2)]``.

    Attributes:
        name: Attribute path, e.g. ``case``, ``future``, ``values``.
        span: Span of the whole attribute including ``#[`` and ``]``.
        args: Comma-separated argument expressions; ``None`` when the
            attribute has no parenthesized argument list.
        args_span: Span of the parenthesized argument list, if any.
    """

    name: str
    span: Span
    args: list[Expr] | None = None
    args_span: Span | None = None


class ParameterDescriptor(BaseModel):
    """A declared function parameter.

    Receiver parameters (``self``, ``&self``, ...) have ``is_receiver`` set
    and never take part in argument binding.
    """

    name: str
    type: TypeRef | None = None
    span: Span
    type_span: Span | None = None
    is_receiver: bool = False
    is_mutable: bool = False
    attributes: list[ParamAttribute] = _Field(default_factory=list)

    def attributes_named(self, name: str) -> list[ParamAttribute]:
        """Return the attributes with the given name, in declaration order."""
        return [a for a in self.attributes if a.name == name]


class LifetimeParam(BaseModel):
    """A lifetime generic parameter ``'a: 'b``."""

    kind: Literal["lifetime"] = "lifetime"
    name: str
    bounds: list[str] = _Field(default_factory=list)


class TypeParam(BaseModel):
    """A type generic parameter ``T: Bound = Default``; bounds are opaque text."""

    kind: Literal["type"] = "type"
    name: str
    bounds: str | None = None
    default: TypeRef | None = None


class ConstParam(BaseModel):
    """A const generic parameter ``const N: usize``."""

    kind: Literal["const"] = "const"
    name: str
    type: TypeRef


GenericParam = Annotated[LifetimeParam | TypeParam | ConstParam, _Field(discriminator="kind")]


class Signature(BaseModel):
    """The signature of an annotated function."""

    name: str
    span: Span | None = None
    is_async: bool = False
    generics: list[GenericParam] = _Field(default_factory=list)
    parameters: list[ParameterDescriptor] = _Field(default_factory=list)
    return_type: TypeRef | None = None

    def bindable_parameters(self) -> list[ParameterDescriptor]:
        """Return the parameters that can be bound (every non-receiver)."""
        return [p for p in self.parameters if not p.is_receiver]

    def type_param_names(self) -> list[str]:
        """Return the names of the type generic parameters in declaration order."""
        return [g.name for g in self.generics if isinstance(g, TypeParam)]


class FunctionItem(BaseModel):
    """A function found in a source file together with its annotation.

    Attributes:
        kind: ``test`` for ``#[rstest]`` functions, ``fixture`` for
            ``#[fixture]`` functions, ``plain`` otherwise.
        signature: The function's signature.
        annotation: Items, cases, and modifiers gathered from the main
            attribute and from function-level ``#[case]``, ``#[default(T)]``
            and ``#[partial_N(T)]`` attributes.
        attributes: Names of any other function attributes, kept verbatim.
    """

    kind: Literal["test", "fixture", "plain"] = "plain"
    signature: Signature
    annotation: AnnotationModel = _Field(default_factory=AnnotationModel)
    attributes: list[str] = _Field(default_factory=list)


class SourceFile(BaseModel):
    """Top-level model of a parsed source file."""

    functions: list[FunctionItem] = _Field(default_factory=list)

    @property
    def tests(self) -> list[FunctionItem]:
        return [f for f in self.functions if f.kind == "test"]

    @property
    def fixtures(self) -> list[FunctionItem]:
        return [f for f in self.functions if f.kind == "fixture"]
