# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Rewrite of ``#[future]`` parameters into future contracts.

A parameter ``#[future] name: T`` becomes
``name: impl std::future::Future<Output = T>``. A reference type without
a lifetime cannot appear inside an ``impl Trait`` output, so it receives a
fresh lifetime ``'_name`` which is also declared on the function.
"""

from __future__ import annotations

from loguru import logger

from paramex.diagnostics import DiagnosticCollector, DiagnosticKind
from paramex.model.signature import LifetimeParam, ParameterDescriptor, Signature
from paramex.model.types import (
    FutureType,
    GroupType,
    ImplTraitType,
    InferType,
    MacroType,
    NeverType,
    ReferenceType,
    SliceType,
    TraitObjectType,
    TypeRef,
    VerbatimType,
)

# ###############
# Public Interface
# ###############

FUTURE_ATTRIBUTE = "future"

REPEATED_FUTURE_MESSAGE = "Cannot use #[future] more than once."
NOT_ELIGIBLE_MESSAGE = "This type cannot be used to generate impl Future."


def rewrite_futures(signature: Signature, diagnostics: DiagnosticCollector) -> Signature:
    """Return a copy of *signature* with every ``#[future]`` parameter rewritten.

    Errors are recorded on *diagnostics*; a parameter whose type cannot be
    rewritten keeps its declared type. Synthesized lifetimes are prepended to
    the generic parameters in parameter order, ahead of any existing ones.
    """
    rewritten = signature.model_copy(deep=True)
    declared = {g.name for g in rewritten.generics if isinstance(g, LifetimeParam)}
    fresh: list[str] = []

    for parameter in rewritten.bindable_parameters():
        tags = parameter.attributes_named(FUTURE_ATTRIBUTE)
        if not tags:
            continue
        for extra in tags[1:]:
            diagnostics.error(DiagnosticKind.REPEATED_FUTURE_TAG, REPEATED_FUTURE_MESSAGE, extra.span, tags[0].span)
        output = _future_output(parameter, diagnostics)
        if output is None:
            continue
        lifetime = future_lifetime(parameter.name)
        if isinstance(output, ReferenceType) and output.lifetime == lifetime:
            if lifetime not in declared and lifetime not in fresh:
                fresh.append(lifetime)
        parameter.type = FutureType(output=output)

    rewritten.generics = [LifetimeParam(name=name) for name in fresh] + rewritten.generics
    if fresh:
        logger.debug(f"Synthesized lifetime(s) {', '.join(fresh)} for '{signature.name}'")
    return rewritten


def future_lifetime(parameter: str) -> str:
    """Return the lifetime synthesized for a future reference parameter."""
    return f"'_{parameter}"


# ################
# Implementation
# ################

_NOT_ELIGIBLE = (
    GroupType,
    ImplTraitType,
    InferType,
    MacroType,
    NeverType,
    SliceType,
    TraitObjectType,
    VerbatimType,
)


def _future_output(parameter: ParameterDescriptor, diagnostics: DiagnosticCollector) -> TypeRef | None:
    """Return the future's output type, or None if the declared type is not eligible."""
    declared = parameter.type
    if declared is None or isinstance(declared, _NOT_ELIGIBLE):
        diagnostics.error(
            DiagnosticKind.TYPE_NOT_ELIGIBLE_FOR_FUTURE,
            NOT_ELIGIBLE_MESSAGE,
            parameter.type_span or parameter.span,
        )
        return None
    if isinstance(declared, ReferenceType) and declared.lifetime is None:
        return declared.model_copy(update={"lifetime": future_lifetime(parameter.name)})
    return declared
