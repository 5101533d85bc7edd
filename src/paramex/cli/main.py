# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the Paramex command-line interface."""

import argparse
import json
import sys
from pathlib import Path

from yachalk import chalk

from paramex.diagnostics import DiagnosticsError, render_all
from paramex.engine.pipeline import ExpansionResult, expand_source
from paramex.logging import setup_logging
from paramex.model.plan import FixtureCallBinding, Instantiation
from paramex.model.types import render_type
from paramex.workspace.config import (
    WorkspaceConfig,
    WorkspaceConfigError,
    find_workspace_config,
    load_workspace_config,
)

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the Paramex CLI."""
    parser = argparse.ArgumentParser(
        prog="paramex",
        description="Paramex - expand parameterized test annotations",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # expand subcommand
    expand_parser = subparsers.add_parser(
        "expand",
        help="List every test instantiation of a source file",
        description="Expand the annotated tests of a source file into named instantiations.",
    )
    _add_common_arguments(expand_parser)
    expand_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the expansion results as JSON",
    )

    # check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Validate the annotations of a source file",
        description="Report every annotation error of a source file without printing instantiations.",
    )
    _add_common_arguments(check_parser)

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    setup_logging(
        level="DEBUG" if args.verbose else "WARNING",
        json_output=args.log_json,
        log_file=Path(args.log_file) if args.log_file else None,
    )
    sys.exit(_dispatch(args))


# ################
# Implementation
# ################


def _add_common_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument("file", help="Source file to process")
    subparser.add_argument(
        "--config",
        default=None,
        help="Path to a .paramex.yaml file (default: nearest one above FILE)",
    )
    subparser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log each expansion stage",
    )
    subparser.add_argument(
        "--log-json",
        action="store_true",
        help="Write log records as JSON lines",
    )
    subparser.add_argument(
        "--log-file",
        default=None,
        metavar="PATH",
        help="Also append every log record, including debug records, to PATH",
    )
    subparser.add_argument(
        "--no-color",
        action="store_true",
        help="Do not colour diagnostics",
    )


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "expand":
        return _cmd_expand(args)
    if args.command == "check":
        return _cmd_check(args)
    return 0


def _cmd_expand(args: argparse.Namespace) -> int:
    """Handle the expand subcommand."""
    results = _run(args)
    if results is None:
        return 1
    if args.json:
        print(json.dumps([r.model_dump(mode="json") for r in results], indent=2))
        return 0
    for result in results:
        for instantiation in result.instantiations:
            print(instantiation.qualified_name)
            for line in _describe_bindings(instantiation):
                print(f"    {line}")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    """Handle the check subcommand."""
    results = _run(args)
    if results is None:
        return 1
    count = sum(len(r.instantiations) for r in results)
    message = f"No problems found in '{args.file}' ({len(results)} test(s), {count} instantiation(s))."
    print(chalk.green(message) if _use_color(args, sys.stdout) else message)
    return 0


def _run(args: argparse.Namespace) -> list[ExpansionResult] | None:
    """Load the config and source and expand; print errors and return None on failure."""
    source_path = Path(args.file)
    if not source_path.is_file():
        print(f"Error: file '{source_path}' does not exist.", file=sys.stderr)
        return None
    try:
        config = _load_config(args.config, source_path)
    except WorkspaceConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None
    try:
        text = source_path.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Error: cannot read '{source_path}': {exc}", file=sys.stderr)
        return None

    try:
        return expand_source(text, config=config)
    except DiagnosticsError as exc:
        rendered = render_all(exc.diagnostics, text, str(source_path), color=_use_color(args, sys.stderr))
        print(rendered, file=sys.stderr)
        print(f"Error: {len(exc.diagnostics)} error(s) in '{source_path}'.", file=sys.stderr)
        return None


def _load_config(config_arg: str | None, source_path: Path) -> WorkspaceConfig:
    if config_arg is not None:
        return load_workspace_config(Path(config_arg))
    found = find_workspace_config(source_path.resolve())
    return load_workspace_config(found) if found is not None else WorkspaceConfig()


def _describe_bindings(instantiation: Instantiation) -> list[str]:
    lines = []
    for binding in instantiation.bindings:
        if isinstance(binding, FixtureCallBinding):
            call = binding.call
            value = f"{call.fixture}({', '.join(a.text for a in call.args)})"
            if call.return_override.type is not None and call.return_override.mode in ("default", "partial"):
                value += f" -> {render_type(call.return_override.type)}"
        else:
            value = binding.expr.text
        suffix = " (future)" if binding.is_future else ""
        lines.append(f"{binding.name} = {value}{suffix}")
    return lines


def _use_color(args: argparse.Namespace, stream: object) -> bool:
    return not args.no_color and hasattr(stream, "isatty") and stream.isatty()
