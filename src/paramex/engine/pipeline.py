# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""End-to-end expansion: parse, rewrite, match, resolve, and expand.

Every stage reports into one :class:`~paramex.diagnostics.DiagnosticCollector`
per pass. A pass either returns complete results or raises
:class:`~paramex.diagnostics.DiagnosticsError` with every diagnostic it
found; it never returns partial results.
"""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel
from pydantic import Field as _Field

from paramex.diagnostics import DiagnosticCollector, DiagnosticKind
from paramex.engine.expansion import expand_plan
from paramex.engine.fixtures import FixtureRegistry, define_fixture, resolve_fixture_calls
from paramex.engine.future import rewrite_futures
from paramex.engine.matcher import match_arguments
from paramex.model.annotation import AnnotationModel
from paramex.model.plan import BindingPlan, Instantiation
from paramex.model.signature import Signature
from paramex.parser.annotation import parse_test_annotation
from paramex.parser.cursor import ParseError
from paramex.parser.lexer import LexerError
from paramex.parser.source import parse_signature, parse_source
from paramex.workspace.config import WorkspaceConfig

# ###############
# Public Interface
# ###############

TRACE_MODIFIER = "trace"
NOTRACE_MODIFIERS = ("notrace", "no_trace")


class ExpansionResult(BaseModel):
    """Everything produced for one annotated test function.

    Attributes:
        function: Name of the test function.
        signature: The signature after the future rewrite.
        plan: The validated binding plan.
        instantiations: Every instantiation, in enumeration order.
        traced_parameters: Parameters whose values are to be traced.
    """

    function: str
    signature: Signature
    plan: BindingPlan
    instantiations: list[Instantiation] = _Field(default_factory=list)
    traced_parameters: list[str] = _Field(default_factory=list)


def expand(
    signature: Signature,
    annotation: AnnotationModel | None = None,
    *,
    fixtures: FixtureRegistry | None = None,
    config: WorkspaceConfig | None = None,
) -> ExpansionResult:
    """Expand one annotated function.

    Args:
        signature: The function's signature.
        annotation: Its annotation; an empty one when omitted.
        fixtures: Fixture definitions used to resolve return type overrides.
        config: Expansion options; defaults when omitted.

    Raises:
        DiagnosticsError: If any stage reported a diagnostic.
    """
    diagnostics = DiagnosticCollector()
    result = _expand_function(
        signature,
        annotation or AnnotationModel(),
        fixtures or FixtureRegistry(),
        config or WorkspaceConfig(),
        diagnostics,
    )
    diagnostics.raise_if_errors()
    return result


def expand_text(signature: str, annotation: str = "", *, config: WorkspaceConfig | None = None) -> ExpansionResult:
    """Expand a function given as signature text plus test annotation text.

    Syntax errors in either text are reported as SYNTAX_ERROR diagnostics.

    Raises:
        DiagnosticsError: If either text is malformed or any stage reported a
            diagnostic.
    """
    diagnostics = DiagnosticCollector()
    try:
        parsed_signature = parse_signature(signature)
        parsed_annotation = parse_test_annotation(annotation)
    except (LexerError, ParseError) as exc:
        diagnostics.error(DiagnosticKind.SYNTAX_ERROR, exc.message, exc.span)
        diagnostics.raise_if_errors()
        raise
    return expand(parsed_signature, parsed_annotation, config=config)


def expand_source(text: str, *, config: WorkspaceConfig | None = None) -> list[ExpansionResult]:
    """Expand every test function of a source file.

    Fixture functions of the file are validated and registered first, so
    tests resolve their fixture return type overrides against them.

    Raises:
        DiagnosticsError: With every diagnostic of every function in the file.
    """
    config = config or WorkspaceConfig()
    diagnostics = DiagnosticCollector()
    try:
        source_file = parse_source(text, diagnostics)
    except (LexerError, ParseError) as exc:
        diagnostics.error(DiagnosticKind.SYNTAX_ERROR, exc.message, exc.span)
        diagnostics.raise_if_errors()
        raise
    logger.debug(f"Parsed {len(source_file.tests)} test(s) and {len(source_file.fixtures)} fixture(s)")

    registry = FixtureRegistry()
    for item in source_file.fixtures:
        fixture_signature = rewrite_futures(item.signature, diagnostics)
        registry.register(
            define_fixture(
                fixture_signature,
                item.annotation,
                diagnostics,
                strip_underscore=config.strip_fixture_underscore,
            )
        )

    results = [
        _expand_function(item.signature, item.annotation, registry, config, diagnostics)
        for item in source_file.tests
    ]
    diagnostics.raise_if_errors()
    return results


# ################
# Implementation
# ################


def _expand_function(
    signature: Signature,
    annotation: AnnotationModel,
    fixtures: FixtureRegistry,
    config: WorkspaceConfig,
    diagnostics: DiagnosticCollector,
) -> ExpansionResult:
    """Run every stage for one function, expanding only if it reported nothing."""
    reported = len(diagnostics)
    rewritten = rewrite_futures(signature, diagnostics)
    plan = match_arguments(rewritten, annotation, diagnostics, strip_underscore=config.strip_fixture_underscore)
    resolve_fixture_calls(plan, fixtures)

    result = ExpansionResult(function=signature.name, signature=rewritten, plan=plan)
    if len(diagnostics) > reported:
        logger.debug(f"Skipping expansion of '{signature.name}': {len(diagnostics) - reported} error(s)")
        return result

    result.instantiations = expand_plan(
        rewritten,
        plan,
        pad_indices=config.pad_indices,
        describe_values=config.describe_values,
    )
    result.traced_parameters = _traced_parameters(rewritten, annotation)
    return result


def _traced_parameters(signature: Signature, annotation: AnnotationModel) -> list[str]:
    """With ``trace``, every bindable parameter except those listed by ``notrace`` or ``no_trace``."""
    modifiers = annotation.modifiers
    if not modifiers.has(TRACE_MODIFIER):
        return []
    excluded = {tag for name in NOTRACE_MODIFIERS for tag in modifiers.tags(name)}
    return [p.name for p in signature.bindable_parameters() if p.name not in excluded]
