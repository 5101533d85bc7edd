# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Expansion engine: argument matching, fixtures, future rewrite, and expansion."""

from paramex.engine.expansion import expand_plan, literal_fragment, sanitize_fragment
from paramex.engine.fixtures import (
    FixtureDefinition,
    FixtureRegistry,
    define_fixture,
    fixture_call,
    resolve_fixture_calls,
    resolve_return_override,
)
from paramex.engine.future import future_lifetime, rewrite_futures
from paramex.engine.matcher import implicit_fixture_name, match_arguments
from paramex.engine.pipeline import ExpansionResult, expand, expand_source, expand_text

__all__ = [
    "ExpansionResult",
    "FixtureDefinition",
    "FixtureRegistry",
    "define_fixture",
    "expand",
    "expand_plan",
    "expand_source",
    "expand_text",
    "fixture_call",
    "future_lifetime",
    "implicit_fixture_name",
    "literal_fragment",
    "match_arguments",
    "resolve_fixture_calls",
    "resolve_return_override",
    "rewrite_futures",
    "sanitize_fragment",
]
