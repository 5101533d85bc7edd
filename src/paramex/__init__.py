# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Paramex: expansion of parameterized test annotations into named instantiations."""

from loguru import logger

from paramex.diagnostics import Diagnostic, DiagnosticKind, DiagnosticsError
from paramex.engine import ExpansionResult, expand, expand_source, expand_text
from paramex.workspace import WorkspaceConfig

__version__ = "0.1.0"

logger.disable("paramex")

__all__ = [
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticsError",
    "ExpansionResult",
    "WorkspaceConfig",
    "expand",
    "expand_source",
    "expand_text",
]
