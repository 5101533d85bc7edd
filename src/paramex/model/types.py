# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Type references used in parameter, return, and fixture override types."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel
from pydantic import Field as _Field

# ###############
# Public Interface
# ###############

FUTURE_TRAIT = "std::future::Future"


class LifetimeArg(BaseModel):
    """A lifetime used as a generic argument or a trait bound, e.g. ``'a``."""

    kind: Literal["lifetime"] = "lifetime"
    name: str


class BindingArg(BaseModel):
    """An associated-type binding inside generic arguments, e.g. ``Item = u32``."""

    kind: Literal["binding"] = "binding"
    name: str
    type: TypeRef


class ConstArg(BaseModel):
    """A literal const generic argument, e.g. the ``3`` in ``Foo<3>``."""

    kind: Literal["const"] = "const"
    value: str


class PathSegment(BaseModel):
    """One ``::``-separated segment of a path type.

    Parenthesized segments model ``Fn(A, B) -> C`` sugar: *args* holds the
    inputs and *output* the optional return type.
    """

    name: str
    args: list[GenericArg] = _Field(default_factory=list)
    parenthesized: bool = False
    output: TypeRef | None = None


class PathType(BaseModel):
    """A (possibly generic) named type such as ``u32`` or ``std::vec::Vec<T>``."""

    kind: Literal["path"] = "path"
    segments: list[PathSegment]
    leading_colon: bool = False
    maybe: bool = False

    @property
    def name(self) -> str:
        """Return the path without generic arguments, e.g. ``std::vec::Vec``."""
        prefix = "::" if self.leading_colon else ""
        return prefix + "::".join(s.name for s in self.segments)


class ReferenceType(BaseModel):
    """A reference ``&'a mut T``."""

    kind: Literal["reference"] = "reference"
    lifetime: str | None = None
    mutable: bool = False
    inner: TypeRef


class TupleType(BaseModel):
    """A tuple type; the empty tuple is the unit type ``()``."""

    kind: Literal["tuple"] = "tuple"
    elements: list[TypeRef] = _Field(default_factory=list)


class ArrayType(BaseModel):
    """A fixed-size array ``[T; N]``; the length is kept as opaque text."""

    kind: Literal["array"] = "array"
    element: TypeRef
    length: str


class SliceType(BaseModel):
    """A dynamically sized slice ``[T]``."""

    kind: Literal["slice"] = "slice"
    element: TypeRef


class ImplTraitType(BaseModel):
    """An existential ``impl Bound + Bound`` type."""

    kind: Literal["impl_trait"] = "impl_trait"
    bounds: list[Bound]


class TraitObjectType(BaseModel):
    """A trait object ``dyn Bound + Bound``."""

    kind: Literal["trait_object"] = "trait_object"
    bounds: list[Bound]


class InferType(BaseModel):
    """The inferred placeholder type ``_``."""

    kind: Literal["infer"] = "infer"


class MacroType(BaseModel):
    """A type produced by a macro invocation, kept as source text."""

    kind: Literal["macro"] = "macro"
    text: str


class NeverType(BaseModel):
    """The uninhabited type ``!``."""

    kind: Literal["never"] = "never"


class GroupType(BaseModel):
    """An anonymous, invisibly delimited group wrapping another type."""

    kind: Literal["group"] = "group"
    inner: TypeRef


class FutureType(BaseModel):
    """A deferred computation whose completion yields *output*."""

    kind: Literal["future"] = "future"
    output: TypeRef


class VerbatimType(BaseModel):
    """Any other type (raw pointers, function pointers), kept as source text."""

    kind: Literal["verbatim"] = "verbatim"
    text: str


# A type reference. The `kind` discriminator keeps deserialization unambiguous.
TypeRef = Annotated[
    PathType
    | ReferenceType
    | TupleType
    | ArrayType
    | SliceType
    | ImplTraitType
    | TraitObjectType
    | InferType
    | MacroType
    | NeverType
    | GroupType
    | FutureType
    | VerbatimType,
    _Field(discriminator="kind"),
]

# Anything allowed between the angle brackets of a path segment.
GenericArg = Annotated[
    PathType
    | ReferenceType
    | TupleType
    | ArrayType
    | SliceType
    | ImplTraitType
    | TraitObjectType
    | InferType
    | MacroType
    | NeverType
    | GroupType
    | FutureType
    | VerbatimType
    | LifetimeArg
    | BindingArg
    | ConstArg,
    _Field(discriminator="kind"),
]

# A trait bound in `impl` and `dyn` types.
Bound = Annotated[PathType | LifetimeArg | VerbatimType, _Field(discriminator="kind")]


def path_type(name: str, *args: GenericArg) -> PathType:
    """Build a path type from a ``::``-separated name; *args* go on the last segment."""
    leading = name.startswith("::")
    parts = name.removeprefix("::").split("::")
    segments = [PathSegment(name=p) for p in parts]
    segments[-1].args = list(args)
    return PathType(segments=segments, leading_colon=leading)


def render_type(type_ref: TypeRef | GenericArg) -> str:
    """Render a type reference back to its canonical source form."""
    if isinstance(type_ref, PathType):
        prefix = ("?" if type_ref.maybe else "") + ("::" if type_ref.leading_colon else "")
        return prefix + "::".join(_render_segment(s) for s in type_ref.segments)
    if isinstance(type_ref, ReferenceType):
        lifetime = f"{type_ref.lifetime} " if type_ref.lifetime else ""
        mutable = "mut " if type_ref.mutable else ""
        return f"&{lifetime}{mutable}{render_type(type_ref.inner)}"
    if isinstance(type_ref, TupleType):
        if len(type_ref.elements) == 1:
            return f"({render_type(type_ref.elements[0])},)"
        return "(" + ", ".join(render_type(e) for e in type_ref.elements) + ")"
    if isinstance(type_ref, ArrayType):
        return f"[{render_type(type_ref.element)}; {type_ref.length}]"
    if isinstance(type_ref, SliceType):
        return f"[{render_type(type_ref.element)}]"
    if isinstance(type_ref, ImplTraitType):
        return "impl " + " + ".join(render_type(b) for b in type_ref.bounds)
    if isinstance(type_ref, TraitObjectType):
        return "dyn " + " + ".join(render_type(b) for b in type_ref.bounds)
    if isinstance(type_ref, InferType):
        return "_"
    if isinstance(type_ref, NeverType):
        return "!"
    if isinstance(type_ref, GroupType):
        return render_type(type_ref.inner)
    if isinstance(type_ref, FutureType):
        return f"impl {FUTURE_TRAIT}<Output = {render_type(type_ref.output)}>"
    if isinstance(type_ref, (MacroType, VerbatimType)):
        return type_ref.text
    if isinstance(type_ref, LifetimeArg):
        return type_ref.name
    if isinstance(type_ref, BindingArg):
        return f"{type_ref.name} = {render_type(type_ref.type)}"
    if isinstance(type_ref, ConstArg):
        return type_ref.value
    raise TypeError(f"Unsupported type reference: {type_ref!r}")


def collect_path_names(type_ref: TypeRef | GenericArg) -> list[str]:
    """Recursively collect the names of all single-segment path types.

    Generic type parameters always appear as single-segment paths, so the
    result is what generic-parameter usage checks work from.
    """
    if isinstance(type_ref, PathType):
        names: list[str] = []
        if len(type_ref.segments) == 1 and not type_ref.segments[0].args and not type_ref.leading_colon:
            names.append(type_ref.segments[0].name)
        for segment in type_ref.segments:
            for arg in segment.args:
                names.extend(collect_path_names(arg))
            if segment.output is not None:
                names.extend(collect_path_names(segment.output))
        return names
    if isinstance(type_ref, (ReferenceType, GroupType)):
        return collect_path_names(type_ref.inner)
    if isinstance(type_ref, TupleType):
        return [n for e in type_ref.elements for n in collect_path_names(e)]
    if isinstance(type_ref, (ArrayType, SliceType)):
        return collect_path_names(type_ref.element)
    if isinstance(type_ref, (ImplTraitType, TraitObjectType)):
        return [n for b in type_ref.bounds for n in collect_path_names(b)]
    if isinstance(type_ref, FutureType):
        return collect_path_names(type_ref.output)
    if isinstance(type_ref, BindingArg):
        return collect_path_names(type_ref.type)
    return []


# ################
# Implementation
# ################


def _render_segment(segment: PathSegment) -> str:
    if segment.parenthesized:
        inputs = ", ".join(render_type(a) for a in segment.args)
        output = f" -> {render_type(segment.output)}" if segment.output is not None else ""
        return f"{segment.name}({inputs}){output}"
    if not segment.args:
        return segment.name
    return segment.name + "<" + ", ".join(render_type(a) for a in segment.args) + ">"


# Resolve forward references for models that use TypeRef.
BindingArg.model_rebuild()
PathSegment.model_rebuild()
PathType.model_rebuild()
ReferenceType.model_rebuild()
TupleType.model_rebuild()
ArrayType.model_rebuild()
SliceType.model_rebuild()
ImplTraitType.model_rebuild()
TraitObjectType.model_rebuild()
GroupType.model_rebuild()
FutureType.model_rebuild()
