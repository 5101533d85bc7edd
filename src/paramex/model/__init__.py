# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model: types, signatures, annotations, binding plans, instantiations."""

from paramex.model.annotation import (
    AnnotationModel,
    ArgumentValue,
    Case,
    CaseArg,
    Expr,
    FixtureRef,
    Item,
    Modifier,
    ModifierSet,
    ValueList,
)
from paramex.model.plan import (
    Binding,
    BindingPlan,
    CaseSlot,
    DefaultValue,
    FixtureBinding,
    FixtureCall,
    FixtureCallBinding,
    Instantiation,
    LiteralBinding,
    MatrixValueList,
    ParamBinding,
    ParameterType,
    ReturnOverride,
)
from paramex.model.signature import (
    ConstParam,
    FunctionItem,
    GenericParam,
    LifetimeParam,
    ParamAttribute,
    ParameterDescriptor,
    Signature,
    SourceFile,
    TypeParam,
)
from paramex.model.types import (
    ArrayType,
    BindingArg,
    ConstArg,
    FutureType,
    GroupType,
    ImplTraitType,
    InferType,
    LifetimeArg,
    MacroType,
    NeverType,
    PathSegment,
    PathType,
    ReferenceType,
    SliceType,
    TraitObjectType,
    TupleType,
    TypeRef,
    VerbatimType,
    path_type,
    render_type,
)

__all__ = [
    # Type system
    "ArrayType",
    "BindingArg",
    "ConstArg",
    "FutureType",
    "GroupType",
    "ImplTraitType",
    "InferType",
    "LifetimeArg",
    "MacroType",
    "NeverType",
    "PathSegment",
    "PathType",
    "ReferenceType",
    "SliceType",
    "TraitObjectType",
    "TupleType",
    "TypeRef",
    "VerbatimType",
    "path_type",
    "render_type",
    # Annotations
    "AnnotationModel",
    "ArgumentValue",
    "Case",
    "CaseArg",
    "Expr",
    "FixtureRef",
    "Item",
    "Modifier",
    "ModifierSet",
    "ValueList",
    # Signatures
    "ConstParam",
    "FunctionItem",
    "GenericParam",
    "LifetimeParam",
    "ParamAttribute",
    "ParameterDescriptor",
    "Signature",
    "SourceFile",
    "TypeParam",
    # Plans and instantiations
    "Binding",
    "BindingPlan",
    "CaseSlot",
    "DefaultValue",
    "FixtureBinding",
    "FixtureCall",
    "FixtureCallBinding",
    "Instantiation",
    "LiteralBinding",
    "MatrixValueList",
    "ParamBinding",
    "ParameterType",
    "ReturnOverride",
]
