# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Fixture definitions and fixture-call return type resolution.

A fixture may declare ``default(T)`` and ``partial_N(T)`` modifiers that
replace its natural return type when it is called with no override
arguments or with only the first N of them. :func:`define_fixture`
validates those modifiers; :func:`resolve_fixture_calls` picks the
override that applies to each fixture binding of a test.
"""

from __future__ import annotations

from collections.abc import Iterator

from loguru import logger
from pydantic import BaseModel
from pydantic import Field as _Field

from paramex.diagnostics import DiagnosticCollector, DiagnosticKind, Span
from paramex.engine.matcher import match_arguments
from paramex.model.annotation import AnnotationModel, Modifier
from paramex.model.plan import BindingPlan, FixtureBinding, FixtureCall, ReturnOverride
from paramex.model.signature import Signature
from paramex.model.types import TypeRef, collect_path_names

# ###############
# Public Interface
# ###############

DEFAULT_MODIFIER = "default"
PARTIAL_PREFIX = "partial_"

INVALID_PARTIAL_MESSAGE = "invalid partial syntax"


class FixtureDefinition(BaseModel):
    """A validated fixture.

    Attributes:
        signature: The fixture function's signature.
        plan: How the fixture's own parameters are bound.
        default_type: Return type when called without override arguments.
        partial_types: Return type when called with exactly N override
            arguments, keyed by N.
        generics: Type parameters that occur in the return type, in
            declaration order.
    """

    signature: Signature
    plan: BindingPlan = _Field(default_factory=BindingPlan)
    default_type: TypeRef | None = None
    partial_types: dict[int, TypeRef] = _Field(default_factory=dict)
    generics: list[str] = _Field(default_factory=list)

    @property
    def name(self) -> str:
        return self.signature.name

    @property
    def arity(self) -> int:
        """Number of parameters a call can supply positionally."""
        return len(self.signature.bindable_parameters())


class FixtureRegistry:
    """Fixture definitions by name."""

    def __init__(self, definitions: list[FixtureDefinition] | None = None) -> None:
        self._definitions: dict[str, FixtureDefinition] = {}
        for definition in definitions or []:
            self.register(definition)

    def register(self, definition: FixtureDefinition) -> None:
        """Add *definition*, replacing any earlier fixture of the same name."""
        if definition.name in self._definitions:
            logger.debug(f"Fixture '{definition.name}' redefined")
        self._definitions[definition.name] = definition

    def get(self, name: str) -> FixtureDefinition | None:
        return self._definitions.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[FixtureDefinition]:
        return iter(self._definitions.values())


def define_fixture(
    signature: Signature,
    annotation: AnnotationModel,
    diagnostics: DiagnosticCollector,
    *,
    strip_underscore: bool = True,
) -> FixtureDefinition:
    """Validate a fixture's annotation and build its definition.

    The fixture's own parameters go through :func:`match_arguments`, so
    unknown and repeated names are reported exactly as for tests.

    Checks performed on typed modifiers:
    - ``default`` at most once.
    - Each ``partial_N`` at most once.
    - The ``partial_`` suffix is a non-negative integer no greater than the
      number of type parameters used in the return type.
    """
    plan = match_arguments(signature, annotation, diagnostics, strip_underscore=strip_underscore)
    definition = FixtureDefinition(signature=signature, plan=plan, generics=_return_type_generics(signature))

    seen: dict[str, Span] = {}
    for modifier in annotation.modifiers.typed():
        if modifier.type is None:
            continue
        if modifier.name == DEFAULT_MODIFIER:
            if _repeated(DEFAULT_MODIFIER, modifier, seen, diagnostics):
                continue
            definition.default_type = modifier.type
        elif modifier.name.startswith(PARTIAL_PREFIX):
            n = _partial_index(modifier, definition, diagnostics)
            if n is None or _repeated(f"{PARTIAL_PREFIX}{n}", modifier, seen, diagnostics):
                continue
            definition.partial_types[n] = modifier.type

    logger.debug(
        f"Defined fixture '{definition.name}' (arity {definition.arity}, "
        f"default={definition.default_type is not None}, partials={sorted(definition.partial_types)})"
    )
    return definition


def resolve_return_override(binding: FixtureBinding, definition: FixtureDefinition | None) -> ReturnOverride:
    """Pick the return type override for one fixture binding.

    With k positional override arguments: k = 0 selects the ``default``
    override, 0 < k < arity selects ``partial_k``, and k >= arity > 0 means
    the fixture is fully specialized by the call. Anything else (including an
    unknown fixture or an undeclared override) keeps the natural type.
    """
    if definition is None:
        return ReturnOverride()
    k = len(binding.args)
    arity = definition.arity
    if k == 0 and definition.default_type is not None:
        return ReturnOverride(mode="default", type=definition.default_type)
    if 0 < k < arity and k in definition.partial_types:
        return ReturnOverride(mode="partial", partial=k, type=definition.partial_types[k])
    if k >= arity > 0:
        return ReturnOverride(mode="full", type=definition.signature.return_type)
    return ReturnOverride()


def resolve_fixture_calls(plan: BindingPlan, registry: FixtureRegistry) -> BindingPlan:
    """Set the return override of every fixture binding in *plan* (in place)."""
    for binding in plan.fixtures():
        binding.return_override = resolve_return_override(binding, registry.get(binding.fixture))
        mode = binding.return_override.mode
        if mode != "none":
            logger.debug(f"Fixture '{binding.fixture}' for '{binding.name}' uses {mode} override")
    return plan


def fixture_call(binding: FixtureBinding) -> FixtureCall:
    """Return the call descriptor an emitter needs for *binding*."""
    return FixtureCall(fixture=binding.fixture, args=list(binding.args), return_override=binding.return_override)


# ################
# Implementation
# ################


def _return_type_generics(signature: Signature) -> list[str]:
    if signature.return_type is None:
        return []
    used = set(collect_path_names(signature.return_type))
    return [name for name in signature.type_param_names() if name in used]


def _repeated(key: str, modifier: Modifier, seen: dict[str, Span], diagnostics: DiagnosticCollector) -> bool:
    """Report *modifier* if *key* was already seen; otherwise remember it.

    Partials are keyed by their parsed index, so ``partial_01`` repeats ``partial_1``.
    """
    first = seen.get(key)
    if first is None:
        seen[key] = modifier.span
        return False
    diagnostics.error(
        DiagnosticKind.REPEATED_DEFAULT_OR_PARTIAL,
        f"Cannot use {key} more than once.",
        modifier.span,
        first,
    )
    return True


def _partial_index(
    modifier: Modifier, definition: FixtureDefinition, diagnostics: DiagnosticCollector
) -> int | None:
    suffix = modifier.name[len(PARTIAL_PREFIX) :]
    if not suffix.isdigit() or not suffix.isascii():
        diagnostics.error(
            DiagnosticKind.INVALID_PARTIAL_SYNTAX,
            INVALID_PARTIAL_MESSAGE,
            modifier.span,
            notes=(f"'{suffix}' is not a number; expected partial_N(Type)",),
        )
        return None
    n = int(suffix)
    if n > len(definition.generics):
        diagnostics.error(
            DiagnosticKind.INVALID_PARTIAL_SYNTAX,
            INVALID_PARTIAL_MESSAGE,
            modifier.span,
            notes=(f"the return type uses only {len(definition.generics)} generic parameter(s)",),
        )
        return None
    return n
